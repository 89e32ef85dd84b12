import random

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

from bomb_party.services.games import RoomRegistry

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry per app; handlers reach it through current_app
    seed = flask_app.config.get('RANDOM_SEED')
    flask_app.extensions['room_registry'] = RoomRegistry(
        rng=random.Random(seed) if seed is not None else None,
        code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 6)),
        min_players=int(flask_app.config.get('MIN_PLAYERS', 2)),
        hp_range=(int(flask_app.config.get('BOMB_HP_MIN', 50)), int(flask_app.config.get('BOMB_HP_MAX', 150))),
    )

    from bomb_party.main import main
    flask_app.register_blueprint(main)

    from bomb_party.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from bomb_party.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    return flask_app
