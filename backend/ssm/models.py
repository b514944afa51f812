from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import string
import random

CATEGORIES = ('shoot', 'shag', 'marry')


class Phase(str, Enum):
    WAITING = 'waiting'
    DISCUSSION = 'discussion'
    VOTING = 'voting'
    RESULTS = 'results'
    SCOREBOARD = 'scoreboard'
    ENDED = 'ended'


def generate_lobby_code(length=6):
    """Generate a short lobby code. Uniqueness is checked by the registry."""
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


@dataclass
class Participant:
    username: str
    is_host: bool = False
    connected: bool = True

    def to_dict(self):
        return {
            'username': self.username,
            'isHost': self.is_host,
            'connected': self.connected,
        }


@dataclass
class Lobby:
    code: str
    host: str
    participants: List[Participant] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    game_started: bool = False

    def find(self, username: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.username == username:
                return participant
        return None

    def remove(self, username: str) -> bool:
        before = len(self.participants)
        self.participants = [p for p in self.participants if p.username != username]
        return len(self.participants) != before

    def to_dict(self):
        return {
            'code': self.code,
            'host': self.host,
            'participants': [p.to_dict() for p in self.participants],
            'createdAt': self.created_at.isoformat(),
            'gameStarted': self.game_started,
        }


@dataclass
class Vote:
    shoot: Optional[str] = None
    shag: Optional[str] = None
    marry: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Any) -> 'Vote':
        """Build a vote from a client payload, ignoring blank or non-string picks."""
        if not isinstance(data, dict):
            return cls()
        picks = {}
        for category in CATEGORIES:
            value = data.get(category)
            picks[category] = value if isinstance(value, str) and value else None
        return cls(**picks)

    def choice(self, category: str) -> Optional[str]:
        return getattr(self, category)

    def is_complete(self) -> bool:
        return all(self.choice(c) for c in CATEGORIES)

    def to_dict(self):
        return {c: self.choice(c) for c in CATEGORIES}


@dataclass
class Game:
    code: str
    total_rounds: int = 30
    phase: Phase = Phase.WAITING
    round_number: int = 1
    current_images: List[str] = field(default_factory=list)
    # username -> Vote, in the order votes were first received
    votes: Dict[str, Vote] = field(default_factory=dict)
    scores: Dict[str, int] = field(default_factory=dict)
    timer: int = 0
    timer_handle: Any = None

    def cancel_timer(self) -> None:
        if self.timer_handle is not None:
            self.timer_handle.cancel()
            self.timer_handle = None

    def to_dict(self):
        return {
            'phase': self.phase.value,
            'roundNumber': self.round_number,
            'totalRounds': self.total_rounds,
            'currentImages': list(self.current_images),
            'scores': dict(self.scores),
            'timer': self.timer,
        }
