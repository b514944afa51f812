from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def orchestrator():
    """Session orchestrator bound to the current app."""
    return current_app.extensions['ssm']['orchestrator']


def image_pool():
    return current_app.extensions['ssm']['pool']


def create_app(config_class=Config, scheduler=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = flask_app.config.get('CORS_ORIGINS', '*')
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from ssm.services.games import (
        GameEngine, ImagePool, PhaseTimings, SessionOrchestrator, SessionRegistry,
        SocketIOBroadcaster, SocketIOScheduler,
    )

    logger = flask_app.logger
    cfg = flask_app.config
    scheduler = scheduler or SocketIOScheduler(socketio, logger=logger)
    registry = SessionRegistry()
    pool = ImagePool(
        cfg['IMAGES_DIR'],
        url_prefix=cfg.get('IMAGES_URL_PREFIX', '/images'),
        minimum=int(cfg.get('MIN_IMAGES', 3)),
        logger=logger,
    )
    pool.refresh()
    broadcaster = SocketIOBroadcaster(socketio, namespace=cfg.get('SOCKETIO_NAMESPACE', '/ws'))
    engine = GameEngine(registry, pool, scheduler, broadcaster,
                        timings=PhaseTimings.from_config(cfg), logger=logger)
    sessions = SessionOrchestrator(
        registry, pool, engine, broadcaster,
        min_players=int(cfg.get('MIN_PLAYERS', 2)),
        grace_period=int(cfg.get('DISCONNECT_GRACE_SEC', 300)),
        logger=logger,
    )
    flask_app.extensions['ssm'] = {
        'registry': registry,
        'pool': pool,
        'engine': engine,
        'orchestrator': sessions,
        'scheduler': scheduler,
    }

    # Import and register blueprints here
    from ssm.main import main
    flask_app.register_blueprint(main)

    from ssm.api.lobbies import lobbies
    flask_app.register_blueprint(lobbies, url_prefix='/api')

    from ssm.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=cfg.get('SOCKETIO_NAMESPACE', '/ws'))

    # Periodic upkeep runs only against a live server
    if not cfg.get('TESTING'):
        scheduler.every(int(cfg.get('SWEEP_INTERVAL_SEC', 60)), sessions.sweep_disconnected)
        scheduler.every(int(cfg.get('IMAGE_RESCAN_SEC', 300)), pool.refresh)

    @click.command('images-scan')
    def images_scan_command():
        """Rescans the image directory and reports what was found."""
        count = pool.refresh()
        print(f'Loaded {count} images from {pool.directory}')
        if not pool.usable:
            print(f'Need at least {pool.minimum} images to play!')

    flask_app.cli.add_command(images_scan_command)

    return flask_app
