from typing import Callable


class TimerHandle:
    """Cancellation token for one scheduled callback."""

    __slots__ = ('delay', 'cancelled')

    def __init__(self, delay: float):
        self.delay = delay
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class SocketIOScheduler:
    """Run callbacks after a delay on Socket.IO background tasks.

    Uses ``socketio.sleep`` so the wait cooperates with whichever async mode
    (threading, eventlet, gevent) the server runs under. A cancelled handle
    never fires. Errors raised by a callback are logged and dropped so one
    session cannot take down the timer worker of another.
    """

    def __init__(self, socketio, logger=None):
        self.socketio = socketio
        self.logger = logger

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(delay)
        self.socketio.start_background_task(self._worker, handle, callback)
        return handle

    def _worker(self, handle: TimerHandle, callback: Callable[[], None]) -> None:
        if handle.delay > 0:
            self.socketio.sleep(handle.delay)
        if handle.cancelled:
            return
        try:
            callback()
        except Exception:
            if self.logger is not None:
                self.logger.exception("[timer-error] scheduled callback failed")

    def every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` every ``interval`` seconds until cancelled."""
        handle = TimerHandle(interval)
        self.socketio.start_background_task(self._loop, handle, callback)
        return handle

    def _loop(self, handle: TimerHandle, callback: Callable[[], None]) -> None:
        while not handle.cancelled:
            self.socketio.sleep(handle.delay)
            if handle.cancelled:
                return
            try:
                callback()
            except Exception:
                if self.logger is not None:
                    self.logger.exception("[timer-error] periodic callback failed")
