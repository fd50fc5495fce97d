from datetime import datetime

from pickapp.extensions import db


class Area(db.Model):
    __tablename__ = "area"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)

    def __repr__(self):
        return f"<Area {self.id} {self.name}>"


class Item(db.Model):
    __tablename__ = "item"

    barcode_id = db.Column(db.String(128), primary_key=True)
    barcode_type = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String, nullable=True)
    description = db.Column(db.Text, nullable=True)
    # Cached sum of the ledger quantities; the fulfillment engine keeps both in step.
    total_quantity = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    locations = db.relationship(
        "ItemLocation",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="ItemLocation.position",
    )

    def __repr__(self):
        return f"<Item {self.barcode_id} total={self.total_quantity}>"


class ItemLocation(db.Model):
    """One bin holding stock for an item."""

    __tablename__ = "item_location"

    __table_args__ = (
        db.UniqueConstraint("item_id", "bin", name="uq_item_location_bin"),
        db.CheckConstraint("quantity >= 0", name="ck_item_location_quantity"),
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(
        db.String(128),
        db.ForeignKey("item.barcode_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    bin = db.Column(db.String(64), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    type = db.Column(db.String(32), nullable=False)
    area_id = db.Column(db.Integer, db.ForeignKey("area.id"), nullable=False, index=True)

    item = db.relationship("Item", back_populates="locations")
    area = db.relationship("Area")

    def __repr__(self):
        return f"<ItemLocation {self.item_id}@{self.bin} qty={self.quantity}>"


class OrderStatus:
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    LABELS = {
        PENDING: "Pending",
        IN_PROGRESS: "In Progress",
        COMPLETED: "Completed",
    }


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    order_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    status = db.Column(
        db.String(16), nullable=False, default=OrderStatus.PENDING, index=True
    )

    lines = db.relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.barcode_id",
    )

    def __repr__(self):
        return f"<Order {self.id} status={self.status}>"

    @property
    def status_label(self):
        return OrderStatus.LABELS.get(self.status, self.status)


class OrderLine(db.Model):
    __tablename__ = "order_items"

    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity"),
        db.CheckConstraint("picked_quantity >= 0", name="ck_order_items_picked"),
    )

    order_id = db.Column(
        db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True
    )
    barcode_id = db.Column(
        db.String(128), db.ForeignKey("item.barcode_id"), primary_key=True
    )
    quantity = db.Column(db.Integer, nullable=False)
    picked_quantity = db.Column(db.Integer, nullable=False, default=0)
    picked_by = db.Column(db.Integer, nullable=True, index=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    order = db.relationship("Order", back_populates="lines")
    item = db.relationship("Item")

    def __repr__(self):
        return (
            f"<OrderLine order={self.order_id} item={self.barcode_id} "
            f"picked={self.picked_quantity}/{self.quantity}>"
        )

    @property
    def is_complete(self) -> bool:
        return (self.picked_quantity or 0) >= self.quantity


class Employee(db.Model):
    __tablename__ = "employee"

    account_id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)
    phone_number = db.Column(db.String(32), nullable=True)
    position = db.Column(db.String(80), nullable=True)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Account(db.Model):
    __tablename__ = "account"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    account_type = db.Column(db.String(32), nullable=False, default="picker")
