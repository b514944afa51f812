import os

BACKEND_ROOT = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Image pool
    IMAGES_DIR = os.environ.get('IMAGES_DIR') or os.path.join(BACKEND_ROOT, 'images')
    IMAGES_URL_PREFIX = os.environ.get('IMAGES_URL_PREFIX', '/images')
    IMAGE_RESCAN_SEC = int(os.environ.get('IMAGE_RESCAN_SEC', '300'))
    MIN_IMAGES = int(os.environ.get('MIN_IMAGES', '3'))
    # Round structure
    TOTAL_ROUNDS = int(os.environ.get('TOTAL_ROUNDS', '30'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    # Phase timers (seconds)
    PREROLL_DURATION_SEC = int(os.environ.get('PREROLL_DURATION_SEC', '2'))
    DISCUSSION_DURATION_SEC = int(os.environ.get('DISCUSSION_DURATION_SEC', '60'))
    VOTING_DURATION_SEC = int(os.environ.get('VOTING_DURATION_SEC', '30'))
    RESULTS_DURATION_SEC = int(os.environ.get('RESULTS_DURATION_SEC', '5'))
    SCOREBOARD_DURATION_SEC = int(os.environ.get('SCOREBOARD_DURATION_SEC', '5'))
    ROUND_GAP_DURATION_SEC = int(os.environ.get('ROUND_GAP_DURATION_SEC', '3'))
    # Disconnected players are dropped after this long
    DISCONNECT_GRACE_SEC = int(os.environ.get('DISCONNECT_GRACE_SEC', '300'))
    SWEEP_INTERVAL_SEC = int(os.environ.get('SWEEP_INTERVAL_SEC', '60'))
