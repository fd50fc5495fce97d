from __future__ import annotations

from typing import Iterable

from pickapp.models import Area


class AreaDirectory:
    def __init__(self, session):
        self.session = session

    def list(self) -> list[dict[str, object]]:
        areas = self.session.query(Area).order_by(Area.name).all()
        return [{"area_id": area.id, "name": area.name} for area in areas]

    def get(self, area_id: int) -> Area | None:
        return self.session.get(Area, area_id)

    def names_for(self, area_ids: Iterable[int]) -> dict[int, str]:
        ids = {area_id for area_id in area_ids if area_id is not None}
        if not ids:
            return {}
        rows = self.session.query(Area.id, Area.name).filter(Area.id.in_(ids)).all()
        return {area_id: name for area_id, name in rows}

    def ensure(self, names: Iterable[str]) -> list[Area]:
        """Create any areas that do not exist yet; returns the new ones."""

        wanted = []
        for name in names:
            cleaned = " ".join(str(name).split())
            if cleaned and cleaned not in wanted:
                wanted.append(cleaned)
        if not wanted:
            return []

        existing = {
            name for (name,) in self.session.query(Area.name).filter(Area.name.in_(wanted))
        }
        created = [Area(name=name) for name in wanted if name not in existing]
        self.session.add_all(created)
        return created
