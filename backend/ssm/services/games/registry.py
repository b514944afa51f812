import threading
from typing import Callable, Dict, List, Optional, Tuple

from ssm.errors import NotFound
from ssm.models import Game, Lobby, Participant, generate_lobby_code


class SessionRegistry:
    """In-memory owner of every live lobby and its game, keyed by lobby code."""

    def __init__(self, code_factory: Callable[[], str] = generate_lobby_code):
        self._code_factory = code_factory
        # Serializes socket handlers, timer callbacks and sweeps
        self.lock = threading.RLock()
        self._lobbies: Dict[str, Lobby] = {}
        self._games: Dict[str, Game] = {}

    def __contains__(self, code: str) -> bool:
        return code in self._lobbies

    def __len__(self) -> int:
        return len(self._lobbies)

    def codes(self) -> List[str]:
        return list(self._lobbies)

    def create_lobby(self, username: str) -> Lobby:
        code = self._code_factory()
        while code in self._lobbies:
            code = self._code_factory()
        lobby = Lobby(
            code=code,
            host=username,
            participants=[Participant(username=username, is_host=True, connected=True)],
        )
        self._lobbies[code] = lobby
        return lobby

    def join_lobby(self, code: str, username: str) -> Tuple[Lobby, bool]:
        """Add ``username`` to the lobby, or mark them connected again.

        Returns the lobby and whether this was a reconnection.
        """
        lobby = self.get_lobby(code)
        if lobby is None:
            raise NotFound('Lobby not found')

        existing = lobby.find(username)
        if existing:
            existing.connected = True
            return lobby, True

        lobby.participants.append(Participant(username=username, is_host=False, connected=True))
        game = self._games.get(code)
        if game is not None:
            game.scores[username] = 0
        return lobby, False

    def get_lobby(self, code: str) -> Optional[Lobby]:
        return self._lobbies.get(code)

    def get_game(self, code: str) -> Optional[Game]:
        return self._games.get(code)

    def set_game(self, code: str, game: Game) -> None:
        previous = self._games.get(code)
        if previous is not None and previous is not game:
            previous.cancel_timer()
        self._games[code] = game

    def delete_session(self, code: str) -> None:
        game = self._games.pop(code, None)
        if game is not None:
            game.cancel_timer()
        self._lobbies.pop(code, None)
