import logging
import os

from flask import Flask
from flask_cors import CORS

from core.config import get_settings
from routes.bible_api import bible_bp
from routes.chat_api import chat_bp
from routes.status_api import status_bp

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app() -> Flask:
    app = Flask(__name__)

    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()] or "*"
    CORS(app, origins=origins, expose_headers=["X-Chat-Provider"])

    # Register blueprints
    app.register_blueprint(status_bp)
    app.register_blueprint(bible_bp)
    app.register_blueprint(chat_bp)
    return app


app = create_app()

if __name__ == "__main__":
    app.run(host="127.0.0.1", port=int(os.getenv("PORT", "5055")))
