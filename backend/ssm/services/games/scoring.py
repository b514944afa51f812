from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ssm.models import CATEGORIES, Participant, Vote


@dataclass
class RoundOutcome:
    majority_choices: Dict[str, Optional[str]]
    valid_voters: List[str] = field(default_factory=list)
    winners: List[str] = field(default_factory=list)

    @property
    def points_awarded(self) -> int:
        return len(self.winners)

    def to_dict(self):
        return {
            'majorityChoices': dict(self.majority_choices),
            'pointsAwarded': self.points_awarded,
            'totalVoters': len(self.valid_voters),
            'winners': list(self.winners),
        }


def score_round(participants: Sequence[Participant], votes: Dict[str, Vote],
                current_images: Sequence[str]) -> RoundOutcome:
    """Tally the round and decide who matched the majority.

    Only connected participants with a complete vote are counted. Votes are
    tallied in the order they were first received, and a tied category goes
    to the image that reached the top count first in that order. A category
    nobody voted on falls back to the first drawn image.

    A voter scores when their pick matches the majority in all three
    categories.
    """
    connected = {p.username for p in participants if p.connected}
    valid_voters = [
        username for username, vote in votes.items()
        if username in connected and vote.is_complete()
    ]

    tallies = {category: Counter() for category in CATEGORIES}
    for username in valid_voters:
        vote = votes[username]
        for category in CATEGORIES:
            tallies[category][vote.choice(category)] += 1

    majority_choices: Dict[str, Optional[str]] = {}
    for category in CATEGORIES:
        # most_common() is stable, so equal counts keep first-encountered order
        ranked = tallies[category].most_common(1)
        if ranked:
            majority_choices[category] = ranked[0][0]
        else:
            majority_choices[category] = current_images[0] if current_images else None

    winners = [
        username for username in valid_voters
        if all(votes[username].choice(c) == majority_choices[c] for c in CATEGORIES)
    ]
    return RoundOutcome(majority_choices=majority_choices, valid_voters=valid_voters, winners=winners)
