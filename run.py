import os
from peerdns import create_app

app = create_app()

if __name__ == "__main__":
    debug = os.environ.get("FLASK_DEBUG", "false").lower() == "true"
    # reloader would start a second refresh thread
    app.run(host="0.0.0.0", port=app.config["PORT"], debug=debug, use_reloader=False)
