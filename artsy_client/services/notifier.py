import threading
from typing import Callable, List, Union

Listener = Callable[[], None]


class Subscription:
    def __init__(self, notifier: "ChangeNotifier", callback: Listener):
        self._notifier = notifier
        self.callback = callback

    def cancel(self) -> None:
        self._notifier.unsubscribe(self.callback)


class ChangeNotifier:
    """Listeners are called synchronously, in registration order, on every
    ``notify``. A raising listener propagates to whoever triggered the change."""

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Listener) -> Subscription:
        with self._lock:
            self._listeners.append(callback)
        return Subscription(self, callback)

    def unsubscribe(self, callback: Union[Listener, Subscription]) -> None:
        if isinstance(callback, Subscription):
            callback = callback.callback
        with self._lock:
            try:
                self._listeners.remove(callback)
            except ValueError:
                return

    def notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener()

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)
