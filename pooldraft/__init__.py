from flask import Flask
from .config import Config
from .extensions import db


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    db.init_app(app)

    # Draft transitions and auto-skips are logged at INFO
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    return app
