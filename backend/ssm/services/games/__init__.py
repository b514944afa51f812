"""Game domain services: registry, image pool, phase engine and scoring.

This package contains the lobby/game logic that HTTP routes and socket
handlers call into, keeping transport concerns separated from core game
mechanics.
"""

from .broadcast import SocketIOBroadcaster
from .engine import GameEngine, PhaseTimings
from .images import ImagePool
from .orchestrator import SessionOrchestrator
from .registry import SessionRegistry
from .scheduler import SocketIOScheduler
from .scoring import RoundOutcome, score_round

__all__ = [
    'GameEngine',
    'ImagePool',
    'PhaseTimings',
    'RoundOutcome',
    'SessionOrchestrator',
    'SessionRegistry',
    'SocketIOBroadcaster',
    'SocketIOScheduler',
    'score_round',
]
