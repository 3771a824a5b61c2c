from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import logging
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    level = getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.getLogger('arquiz').setLevel(level)
    flask_app.logger.setLevel(level)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    allowed_origins = list(flask_app.config.get('CORS_ORIGINS') or [])
    if allowed_origins:
        CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins or None)

    # Ensure models are registered before create_all / migrations
    from arquiz import models  # noqa: F401

    # Game sessions live on the app, not in module globals
    from arquiz.runtime import GameRuntime, EXTENSION_KEY
    flask_app.extensions[EXTENSION_KEY] = GameRuntime(flask_app)

    from arquiz.main import main
    flask_app.register_blueprint(main)

    from arquiz.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from arquiz.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the analytics tables."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
