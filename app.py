from pickapp import create_app

app = create_app()

if __name__ == "__main__":
    # Listen on all interfaces so the handheld scanners on the floor can reach it
    app.run(host="0.0.0.0", port=3000, debug=True)
