def lobby_room(code: str) -> str:
    return f"lobby:{code}"


class SocketIOBroadcaster:
    """Deliver named events to every socket in a lobby's room."""

    def __init__(self, socketio, namespace: str = '/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def emit(self, code: str, event: str, payload=None) -> None:
        if payload is None:
            self.socketio.emit(event, to=lobby_room(code), namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=lobby_room(code), namespace=self.namespace)

    def close(self, code: str) -> None:
        self.socketio.close_room(lobby_room(code), namespace=self.namespace)
