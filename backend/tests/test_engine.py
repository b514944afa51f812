from ssm.models import Phase

PREROLL, DISCUSSION, VOTING, RESULTS, SCOREBOARD, GAP = 2, 60, 30, 5, 5, 3
ALL_IN = {'shoot': 'A', 'shag': 'B', 'marry': 'C'}


def to_voting(scheduler):
    scheduler.advance(PREROLL + DISCUSSION)


def finish_round(scheduler):
    scheduler.advance(VOTING + RESULTS + SCOREBOARD)


def test_start_announces_game_and_prerolls(sessions, lobby, registry, broadcaster, scheduler):
    game = sessions.start_game(lobby.code, 'p1')
    assert registry.get_game(lobby.code) is game
    assert lobby.game_started is True
    assert game.phase == Phase.WAITING
    assert game.scores == {'p1': 0, 'p2': 0}
    started = broadcaster.payloads('game-started')[0]
    assert started['lobby']['code'] == lobby.code
    assert started['gameState']['roundNumber'] == 1
    assert started['gameState']['totalRounds'] == 30

    scheduler.advance(PREROLL - 1)
    assert game.phase == Phase.WAITING
    scheduler.advance(1)
    assert game.phase == Phase.DISCUSSION
    assert len(game.current_images) == 3
    assert broadcaster.payloads('images-selected') == [{'images': game.current_images}]
    assert broadcaster.payloads('game-phase-update')[-1] == {'phase': 'discussion', 'roundNumber': 1}


def test_countdowns_tick_every_second(sessions, lobby, registry, broadcaster, scheduler):
    game = sessions.start_game(lobby.code, 'p1')
    scheduler.advance(PREROLL)
    broadcaster.clear()

    scheduler.advance(DISCUSSION - 1)
    ticks = broadcaster.payloads('game-timer')
    assert [t['timeRemaining'] for t in ticks] == list(range(DISCUSSION - 1, 0, -1))
    assert game.phase == Phase.DISCUSSION

    scheduler.advance(1)
    assert broadcaster.payloads('game-timer')[-1] == {'timeRemaining': 0}
    assert game.phase == Phase.VOTING
    assert broadcaster.payloads('game-phase-update')[-1] == {'phase': 'voting'}


def test_full_round_scores_matching_voters(sessions, lobby, registry, broadcaster, scheduler):
    game = sessions.start_game(lobby.code, 'p1')
    to_voting(scheduler)
    assert sessions.cast_vote(lobby.code, 'p1', ALL_IN)
    assert sessions.cast_vote(lobby.code, 'p2', ALL_IN)

    scheduler.advance(VOTING)
    assert game.phase == Phase.RESULTS
    assert broadcaster.payloads('round-results') == [{
        'majorityChoices': ALL_IN,
        'pointsAwarded': 2,
        'totalVoters': 2,
        'winners': ['p1', 'p2'],
    }]
    assert game.scores == {'p1': 1, 'p2': 1}

    scheduler.advance(RESULTS)
    assert game.phase == Phase.SCOREBOARD
    assert broadcaster.payloads('scoreboard-update') == [{'scores': {'p1': 1, 'p2': 1}}]

    scheduler.advance(SCOREBOARD)
    assert game.phase == Phase.WAITING
    assert game.round_number == 2
    assert broadcaster.payloads('game-phase-update')[-1] == {'phase': 'waiting'}

    scheduler.advance(GAP)
    assert game.phase == Phase.DISCUSSION
    assert game.votes == {}
    assert broadcaster.payloads('game-phase-update')[-1] == {'phase': 'discussion', 'roundNumber': 2}


def test_scores_never_decrease_across_rounds(sessions, lobby, scheduler):
    game = sessions.start_game(lobby.code, 'p1')
    history = []
    for _ in range(3):
        to_voting(scheduler)
        sessions.cast_vote(lobby.code, 'p1', ALL_IN)
        finish_round(scheduler)
        history.append(dict(game.scores))
        scheduler.advance(GAP - PREROLL)
    assert [h['p1'] for h in history] == [1, 2, 3]
    assert [h['p2'] for h in history] == [0, 0, 0]


def test_only_one_timer_is_ever_live(sessions, lobby, scheduler):
    sessions.start_game(lobby.code, 'p1')
    for step in [1] * 5 + [PREROLL + DISCUSSION, VOTING, RESULTS, SCOREBOARD, GAP]:
        scheduler.advance(step)
        assert len(scheduler.pending()) == 1


def test_restart_cancels_running_timer_and_resets_scores(sessions, lobby, registry, broadcaster, scheduler):
    first = sessions.start_game(lobby.code, 'p1')
    to_voting(scheduler)
    sessions.cast_vote(lobby.code, 'p1', ALL_IN)
    scheduler.advance(VOTING)
    assert first.scores['p1'] == 1
    old_handle = first.timer_handle

    second = sessions.restart_game(lobby.code, 'p1')
    assert old_handle.cancelled
    assert registry.get_game(lobby.code) is second
    assert second.scores == {'p1': 0, 'p2': 0}
    assert second.round_number == 1
    assert len(scheduler.pending()) == 1

    broadcaster.clear()
    scheduler.advance(RESULTS + SCOREBOARD)
    # The replaced game's scoreboard must not fire
    assert broadcaster.payloads('scoreboard-update') == []
    assert second.phase == Phase.DISCUSSION


def test_game_ends_after_last_round(sessions, lobby, engine, broadcaster, scheduler):
    engine.timings.total_rounds = 2
    game = sessions.start_game(lobby.code, 'p1')
    to_voting(scheduler)
    finish_round(scheduler)
    scheduler.advance(GAP)
    assert game.round_number == 2
    assert not sessions.cast_vote(lobby.code, 'p2', ALL_IN)
    scheduler.advance(DISCUSSION)
    assert sessions.cast_vote(lobby.code, 'p2', ALL_IN)
    finish_round(scheduler)

    assert game.phase == Phase.ENDED
    assert broadcaster.payloads('game-ended') == [{'finalScores': {'p1': 0, 'p2': 1}}]
    assert scheduler.pending() == []


def test_shrunken_pool_ends_game_at_next_draw(sessions, lobby, pool, broadcaster, scheduler):
    game = sessions.start_game(lobby.code, 'p1')
    to_voting(scheduler)
    pool.set_images(['/images/only.jpg'])
    finish_round(scheduler)
    scheduler.advance(GAP)
    assert game.phase == Phase.ENDED
    assert len(broadcaster.payloads('game-ended')) == 1


def test_teardown_silences_pending_callbacks(sessions, lobby, registry, broadcaster, scheduler):
    game = sessions.start_game(lobby.code, 'p1')
    scheduler.advance(PREROLL + 5)
    handle = game.timer_handle

    sessions.teardown(lobby.code)
    assert handle.cancelled
    assert broadcaster.names()[-1] == 'lobby-closed'
    assert broadcaster.closed == [lobby.code]

    broadcaster.clear()
    scheduler.advance(200)
    assert broadcaster.events == []
    assert registry.get_lobby(lobby.code) is None


def test_stale_callback_is_a_noop(sessions, lobby, registry, engine, broadcaster, scheduler):
    game = sessions.start_game(lobby.code, 'p1')
    # Drop the game without cancelling, as if the timer raced the teardown
    handle = game.timer_handle
    registry._games.pop(lobby.code)
    broadcaster.clear()
    scheduler.advance(PREROLL)
    assert not handle.cancelled
    assert game.phase == Phase.WAITING
    assert broadcaster.events == []
