import logging
import sys

import mysql.connector
from flask import Flask
from werkzeug.serving import make_server

from config import load_config
from db import connect_database
from errors import register_error_handlers
from middleware import JSONBodyRequest, init_pipeline
from models import init_db
from pages import pages_bp
from routes import API_BLUEPRINTS

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

ROUTE_SUMMARY = (
    '- GET  /                  - Home page',
    '- GET  /login.html        - Login page',
    '- GET  /teacher-panel.html - Teacher Panel',
    '- POST /api/auth/login    - Login endpoint',
    '- GET  /api/auth/verify   - Token verification',
)


def create_app(config, blueprints=API_BLUEPRINTS):
    app = Flask(__name__, static_folder=None)
    app.request_class = JSONBodyRequest
    # "/api/attendance/" and "/api/attendance" reach the same handler.
    app.url_map.strict_slashes = False
    app.config.update(
        SECRET_KEY=config.secret_key,
        ENV_NAME=config.env,
        PRODUCTION=config.is_production,
        DATABASE_URI=config.database_uri,
        STATIC_ROOT=config.static_root,
        TOKEN_MAX_AGE=config.token_max_age,
    )

    init_pipeline(app, config)
    for prefix, blueprint in blueprints:
        app.register_blueprint(blueprint, url_prefix=prefix)
    app.register_blueprint(pages_bp)
    register_error_handlers(app)
    return app


def main():
    config = load_config()
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    logger.info("Connecting to database (%s mode)...", config.env)
    try:
        connect_database(config.database_uri)
        init_db(config)
    except (mysql.connector.Error, ValueError) as e:
        logger.error("Database connection error: %s", e)
        sys.exit(1)
    logger.info("Connected to database successfully")

    app = create_app(config)
    try:
        server = make_server('0.0.0.0', config.port, app, threaded=True)
    except OSError as e:
        logger.error("Cannot listen on port %s: %s", config.port, e)
        sys.exit(1)
    logger.info("Server is running on port %s in %s mode", config.port, config.env)
    logger.info("Available routes:\n%s", '\n'.join(ROUTE_SUMMARY))
    server.serve_forever()


if __name__ == '__main__':
    main()
