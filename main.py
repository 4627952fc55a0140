"""
main.py

Flask server for single-use download links.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, redis, SQLAlchemy, psycopg2
  - Infrastructure: Redis server or PostgreSQL, selected by ONETIME_PROVIDER

Notes:
  - Files at /api/files, links at /api/links, redemption at /download/<token>
  - Swagger docs at /api/docs, health at /health
"""

import os

from onetime.app_factory import create_app

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    app.run(host=host, port=port, debug=debug, threaded=True)
