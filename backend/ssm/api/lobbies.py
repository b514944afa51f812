from flask import Blueprint, jsonify, request
from ssm import image_pool, orchestrator
from ssm.errors import GameError

lobbies = Blueprint('lobbies', __name__)


@lobbies.errorhandler(GameError)
def handle_game_error(exc):
    return jsonify({'error': exc.message}), exc.status_code


@lobbies.route('/lobby/create', methods=['POST'])
def create_lobby():
    """
    Creates a new lobby with the requesting player as host.
    """
    data = request.get_json(silent=True) or {}
    lobby = orchestrator().create_lobby(data.get('username'))
    return jsonify({'code': lobby.code, 'lobby': lobby.to_dict()})


@lobbies.route('/lobby/join', methods=['POST'])
def join_lobby():
    """
    Adds a player to a lobby, or reconnects them if the name is already seated.
    """
    data = request.get_json(silent=True) or {}
    lobby, reconnection = orchestrator().join_lobby(data.get('code'), data.get('username'))
    payload = {'lobby': lobby.to_dict()}
    if reconnection:
        payload['reconnection'] = True
    return jsonify(payload)


@lobbies.route('/lobby/<string:code>', methods=['GET'])
def get_lobby(code):
    sessions = orchestrator()
    with sessions.registry.lock:
        lobby = sessions.registry.get_lobby(code.upper())
        if lobby is None:
            return jsonify({'error': 'Lobby not found'}), 404
        game = sessions.registry.get_game(lobby.code)
        return jsonify({
            'lobby': lobby.to_dict(),
            'gameState': game.to_dict() if game else None,
        })


@lobbies.route('/images', methods=['GET'])
def list_images():
    pool = image_pool()
    return jsonify({
        'images': pool.identifiers(),
        'count': pool.count,
        'usable': pool.usable,
    })
