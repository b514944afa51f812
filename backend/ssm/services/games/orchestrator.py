import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ssm.errors import InvalidInput, NotFound, PreconditionFailed, Unauthorized
from ssm.models import Game, Lobby, Phase, Vote

# Phases in which a leaving player is removed right away
_SETTLED_PHASES = (Phase.WAITING, Phase.ENDED)


class SessionOrchestrator:
    """Validate inbound lobby events and drive the game engine.

    Host-only checks, membership rules and the disconnect grace period live
    here; phase mechanics live in :class:`GameEngine`.
    """

    def __init__(self, registry, pool, engine, broadcaster, min_players: int = 2,
                 grace_period: float = 300, clock: Callable[[], float] = time.time, logger=None):
        self.registry = registry
        self.pool = pool
        self.engine = engine
        self.broadcaster = broadcaster
        self.min_players = min_players
        self.grace_period = grace_period
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        # (lobby code, username) -> time the player dropped mid-round
        self._disconnected: Dict[Tuple[str, str], float] = {}

    # ---- lobby membership ----

    def create_lobby(self, username: Any) -> Lobby:
        username = _clean(username)
        if len(username) < 2:
            raise InvalidInput('Username must be at least 2 characters')
        with self.registry.lock:
            lobby = self.registry.create_lobby(username)
        self.logger.info(f"[lobby-create] lobby={lobby.code} host={username}")
        return lobby

    def join_lobby(self, code: Any, username: Any) -> Tuple[Lobby, bool]:
        code, username = _clean(code).upper(), _clean(username)
        if not code or not username:
            raise InvalidInput('Code and username are required')
        with self.registry.lock:
            lobby, reconnection = self.registry.join_lobby(code, username)
            self._disconnected.pop((code, username), None)
        self.logger.info(f"[lobby-join] lobby={code} user={username} reconnection={reconnection}")
        return lobby, reconnection

    def attach(self, code: str, username: str) -> Lobby:
        """A player's socket joined the lobby room."""
        with self.registry.lock:
            lobby = self._require_lobby(code)
            participant = lobby.find(username)
            if participant:
                participant.connected = True
                self._disconnected.pop((code, username), None)
            self.broadcaster.emit(code, 'lobby-updated', lobby.to_dict())
            return lobby

    def leave(self, code: str, username: str) -> None:
        with self.registry.lock:
            self._depart(code, username, reason='leave')

    def disconnect(self, code: str, username: str) -> None:
        with self.registry.lock:
            self._depart(code, username, reason='disconnect')

    def teardown(self, code: str) -> None:
        """Close the session: cancel its timer and tell every member."""
        with self.registry.lock:
            self.registry.delete_session(code)
            for key in [k for k in self._disconnected if k[0] == code]:
                del self._disconnected[key]
            self.logger.info(f"[lobby-close] lobby={code}")
            self.broadcaster.emit(code, 'lobby-closed')
            self.broadcaster.close(code)

    # ---- game actions ----

    def start_game(self, code: str, username: str) -> Game:
        return self._launch(code, username, 'start')

    def restart_game(self, code: str, username: str) -> Game:
        return self._launch(code, username, 'restart')

    def cast_vote(self, code: str, username: str, payload: Any) -> bool:
        """Record a vote. Returns False when the vote is ignored."""
        vote = Vote.from_payload(payload)
        with self.registry.lock:
            game = self.registry.get_game(code)
            if game is None:
                return False
            accepted = self.engine.record_vote(game, username, vote)
        if not accepted:
            self.logger.debug(f"[vote-ignored] lobby={code} user={username}")
        return accepted

    # ---- grace period ----

    def sweep_disconnected(self, now: Optional[float] = None) -> List[Tuple[str, str]]:
        """Drop players who have been disconnected longer than the grace period."""
        removed = []
        with self.registry.lock:
            now = self.clock() if now is None else now
            for key, since in list(self._disconnected.items()):
                # A host removed earlier in this pass tears down its lobby's records
                if key not in self._disconnected or now - since <= self.grace_period:
                    continue
                del self._disconnected[key]
                code, username = key
                lobby = self.registry.get_lobby(code)
                participant = lobby.find(username) if lobby else None
                if participant is None or participant.connected:
                    continue
                self.logger.info(f"[sweep] lobby={code} user={username} removed after {int(now - since)}s")
                self._remove(lobby, username)
                removed.append(key)
        return removed

    # ---- internals ----

    def _launch(self, code: str, username: str, action: str) -> Game:
        with self.registry.lock:
            lobby = self._require_lobby(code)
            if username != lobby.host:
                raise Unauthorized(f'Only the host can {action} the game')
            if len(lobby.participants) < self.min_players:
                raise PreconditionFailed(f'At least {self.min_players} players are required to start')
            if not self.pool.usable:
                self.logger.warning(f"[game-{action}] lobby={code} rejected: {self.pool.count} images available")
                raise PreconditionFailed(
                    f'Need at least {self.pool.minimum} images to play Shoot Shag Marry. '
                    'Please add more images to the images/ folder'
                )
            return self.engine.start(lobby)

    def _require_lobby(self, code: str) -> Lobby:
        lobby = self.registry.get_lobby(code)
        if lobby is None:
            raise NotFound('Lobby not found')
        return lobby

    def _depart(self, code: str, username: str, reason: str) -> None:
        lobby = self.registry.get_lobby(code)
        participant = lobby.find(username) if lobby else None
        if participant is None:
            return

        game = self.registry.get_game(code)
        if game is not None and game.phase not in _SETTLED_PHASES:
            # Mid-round: keep the seat so the round is not disturbed
            participant.connected = False
            self._disconnected[(code, username)] = self.clock()
            self.logger.info(
                f"[{reason}] lobby={code} user={username} marked disconnected during {game.phase.value}"
            )
            self.broadcaster.emit(code, 'lobby-updated', lobby.to_dict())
            return

        self.logger.info(f"[{reason}] lobby={code} user={username} removed")
        self._remove(lobby, username)

    def _remove(self, lobby: Lobby, username: str) -> None:
        lobby.remove(username)
        self._disconnected.pop((lobby.code, username), None)
        if not lobby.participants or username == lobby.host:
            self.teardown(lobby.code)
        else:
            self.broadcaster.emit(lobby.code, 'lobby-updated', lobby.to_dict())


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ''
