import logging
from dataclasses import dataclass
from typing import Callable

from ssm.models import Game, Lobby, Phase, Vote
from .scoring import score_round

Transition = Callable[[Game], None]


@dataclass
class PhaseTimings:
    total_rounds: int = 30
    preroll: int = 2
    discussion: int = 60
    voting: int = 30
    results: int = 5
    scoreboard: int = 5
    round_gap: int = 3

    @classmethod
    def from_config(cls, config) -> 'PhaseTimings':
        return cls(
            total_rounds=int(config.get('TOTAL_ROUNDS', 30)),
            preroll=int(config.get('PREROLL_DURATION_SEC', 2)),
            discussion=int(config.get('DISCUSSION_DURATION_SEC', 60)),
            voting=int(config.get('VOTING_DURATION_SEC', 30)),
            results=int(config.get('RESULTS_DURATION_SEC', 5)),
            scoreboard=int(config.get('SCOREBOARD_DURATION_SEC', 5)),
            round_gap=int(config.get('ROUND_GAP_DURATION_SEC', 3)),
        )


class GameEngine:
    """Phase pipeline for one lobby's game.

    waiting -> discussion -> voting -> results -> scoreboard -> waiting/ended

    Every countdown tick and phase delay goes through :meth:`_schedule`,
    which keeps a single live timer per game. Scheduled transitions re-check
    that their game is still registered and that their handle is still the
    current one before touching any state.
    """

    def __init__(self, registry, pool, scheduler, broadcaster, timings: PhaseTimings = None,
                 logger=None):
        self.registry = registry
        self.pool = pool
        self.scheduler = scheduler
        self.broadcaster = broadcaster
        self.timings = timings or PhaseTimings()
        self.logger = logger or logging.getLogger(__name__)

    # ---- entry points ----

    def start(self, lobby: Lobby) -> Game:
        """Begin a fresh game in ``lobby``, replacing any previous one."""
        game = Game(code=lobby.code, total_rounds=self.timings.total_rounds)
        game.scores = {p.username: 0 for p in lobby.participants}
        self.registry.set_game(lobby.code, game)
        lobby.game_started = True
        self.logger.info(
            f"[game-start] lobby={lobby.code} players={len(lobby.participants)} rounds={game.total_rounds}"
        )
        self.broadcaster.emit(lobby.code, 'game-started', {'lobby': lobby.to_dict(), 'gameState': game.to_dict()})
        self._schedule(game, self.timings.preroll, self._start_discussion)
        return game

    def record_vote(self, game: Game, username: str, vote: Vote) -> bool:
        if game.phase != Phase.VOTING or username in game.votes or not vote.is_complete():
            return False
        game.votes[username] = vote
        self.logger.info(f"[vote] lobby={game.code} user={username} vote={vote.to_dict()}")
        return True

    def end(self, game: Game) -> None:
        game.cancel_timer()
        game.phase = Phase.ENDED
        self.logger.info(f"[game-end] lobby={game.code} round={game.round_number} scores={game.scores}")
        self.broadcaster.emit(game.code, 'game-ended', {'finalScores': dict(game.scores)})

    # ---- timers ----

    def _schedule(self, game: Game, delay: int, transition: Transition) -> None:
        game.cancel_timer()

        def fire():
            with self.registry.lock:
                if not self._is_live(game, handle):
                    self.logger.debug(f"[timer-abort] lobby={game.code} phase={game.phase.value} stale callback")
                    return
                game.timer_handle = None
                transition(game)

        handle = self.scheduler.call_later(delay, fire)
        game.timer_handle = handle
        self.logger.debug(f"[timer-set] lobby={game.code} phase={game.phase.value} delay={delay}s")

    def _is_live(self, game: Game, handle) -> bool:
        return (
            self.registry.get_game(game.code) is game
            and self.registry.get_lobby(game.code) is not None
            and game.timer_handle is handle
        )

    def _countdown(self, game: Game, seconds: int, on_expire: Transition) -> None:
        game.timer = seconds
        self._schedule(game, 1, lambda g: self._tick(g, on_expire))

    def _tick(self, game: Game, on_expire: Transition) -> None:
        game.timer -= 1
        self.broadcaster.emit(game.code, 'game-timer', {'timeRemaining': game.timer})
        if game.timer <= 0:
            on_expire(game)
        else:
            self._schedule(game, 1, lambda g: self._tick(g, on_expire))

    # ---- phases ----

    def _start_discussion(self, game: Game) -> None:
        if not self.pool.usable or game.round_number > game.total_rounds:
            self.end(game)
            return
        images = self.pool.draw(3)
        if len(images) < 3:
            self.end(game)
            return

        game.current_images = images
        game.phase = Phase.DISCUSSION
        game.votes = {}
        self.logger.info(f"[phase] lobby={game.code} round={game.round_number} discussion images={images}")
        self.broadcaster.emit(game.code, 'images-selected', {'images': list(images)})
        self.broadcaster.emit(game.code, 'game-phase-update', {
            'phase': Phase.DISCUSSION.value,
            'roundNumber': game.round_number,
        })
        self._countdown(game, self.timings.discussion, self._start_voting)

    def _start_voting(self, game: Game) -> None:
        game.phase = Phase.VOTING
        self.logger.info(f"[phase] lobby={game.code} round={game.round_number} voting")
        self.broadcaster.emit(game.code, 'game-phase-update', {'phase': Phase.VOTING.value})
        self._countdown(game, self.timings.voting, self._show_results)

    def _show_results(self, game: Game) -> None:
        lobby = self.registry.get_lobby(game.code)
        if lobby is None:
            return
        outcome = score_round(lobby.participants, game.votes, game.current_images)
        for username in outcome.winners:
            game.scores[username] = game.scores.get(username, 0) + 1

        game.phase = Phase.RESULTS
        self.logger.info(
            f"[results] lobby={game.code} round={game.round_number} voters={outcome.valid_voters} "
            f"majority={outcome.majority_choices} winners={outcome.winners}"
        )
        self.broadcaster.emit(game.code, 'game-phase-update', {'phase': Phase.RESULTS.value})
        self.broadcaster.emit(game.code, 'round-results', outcome.to_dict())
        self._schedule(game, self.timings.results, self._show_scoreboard)

    def _show_scoreboard(self, game: Game) -> None:
        game.phase = Phase.SCOREBOARD
        self.broadcaster.emit(game.code, 'game-phase-update', {'phase': Phase.SCOREBOARD.value})
        self.broadcaster.emit(game.code, 'scoreboard-update', {'scores': dict(game.scores)})
        self._schedule(game, self.timings.scoreboard, self._next_round)

    def _next_round(self, game: Game) -> None:
        game.round_number += 1
        if game.round_number > game.total_rounds:
            self.end(game)
            return
        game.phase = Phase.WAITING
        self.broadcaster.emit(game.code, 'game-phase-update', {'phase': Phase.WAITING.value})
        self._schedule(game, self.timings.round_gap, self._start_discussion)
