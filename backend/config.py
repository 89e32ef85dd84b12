import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of origins allowed to open a socket
    CORS_ORIGINS = [
        o.strip() for o in
        (os.environ.get('CORS_ORIGINS') or 'http://localhost:3000,http://localhost:3001').split(',')
        if o.strip()
    ]
    PORT = int(os.environ.get('BACKEND_PORT') or os.environ.get('PORT') or '3001')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Minimum players needed before the host may start
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    # Bomb capacity is drawn uniformly from this range for every room
    BOMB_HP_MIN = int(os.environ.get('BOMB_HP_MIN', '50'))
    BOMB_HP_MAX = int(os.environ.get('BOMB_HP_MAX', '150'))
    # Optional: seed room codes, bomb parameters and dice. Unset means random.
    RANDOM_SEED = os.environ.get('RANDOM_SEED')
