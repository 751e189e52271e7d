from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from colormatch.api.rounds import rounds
    flask_app.register_blueprint(rounds, url_prefix='/api/rounds')

    from colormatch.api.progress import progress
    flask_app.register_blueprint(progress, url_prefix='/api')

    # Register Socket.IO event handlers on the initialized socketio instance
    from colormatch.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    with flask_app.app_context():
        import colormatch.models  # noqa: F401
        db.create_all()

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database (scores and achievements included)."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
