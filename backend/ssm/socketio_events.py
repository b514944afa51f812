from flask import current_app, request
from flask_socketio import join_room, leave_room, emit
from ssm import socketio, orchestrator
from ssm.errors import GameError, Unauthorized
from ssm.services.games.broadcast import lobby_room
from typing import Dict, Tuple

# socket id -> (lobby code, username) bound by join-lobby
_sid_to_ctx: Dict[str, Tuple[str, str]] = {}


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _read(data) -> Tuple[str, str]:
    data = data if isinstance(data, dict) else {}
    code = data.get('code')
    username = data.get('username')
    code = code.upper() if isinstance(code, str) else ''
    username = username if isinstance(username, str) else ''
    if not username:
        # Fall back to the identity bound when this socket joined
        ctx = _sid_to_ctx.get(_get_sid())
        if ctx and (not code or ctx[0] == code):
            code, username = ctx
    return code, username


def _reject(exc: GameError, event: str) -> None:
    current_app.logger.info(f"[{event}-rejected] sid={_get_sid()} reason={exc.message}")
    if isinstance(exc, Unauthorized):
        return
    emit('error', {'message': exc.message})


def handle_connect():
    emit('connected', {'sid': _get_sid()})


def handle_disconnect(reason=None):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    code, username = ctx
    orchestrator().disconnect(code, username)


def handle_join_lobby(data):
    code, username = _read(data)
    if not code or not username:
        emit('error', {'message': 'Code and username are required'})
        return
    join_room(lobby_room(code))
    _sid_to_ctx[_get_sid()] = (code, username)
    try:
        orchestrator().attach(code, username)
    except GameError as exc:
        _reject(exc, 'join-lobby')


def handle_leave_lobby(data):
    code, username = _read(data)
    if not code or not username:
        emit('error', {'message': 'Code and username are required'})
        return
    _sid_to_ctx.pop(_get_sid(), None)
    orchestrator().leave(code, username)
    leave_room(lobby_room(code))


def handle_start_game(data):
    code, username = _read(data)
    try:
        orchestrator().start_game(code, username)
    except GameError as exc:
        _reject(exc, 'start-game')


def handle_restart_game(data):
    code, username = _read(data)
    try:
        orchestrator().restart_game(code, username)
    except GameError as exc:
        _reject(exc, 'restart-game')


def handle_cast_vote(data):
    code, username = _read(data)
    vote = data.get('vote') if isinstance(data, dict) else None
    orchestrator().cast_vote(code, username, vote)


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join-lobby', handle_join_lobby, namespace=namespace)
    socketio.on_event('leave-lobby', handle_leave_lobby, namespace=namespace)
    socketio.on_event('start-game', handle_start_game, namespace=namespace)
    socketio.on_event('restart-game', handle_restart_game, namespace=namespace)
    socketio.on_event('cast-vote', handle_cast_vote, namespace=namespace)
