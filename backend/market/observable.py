from __future__ import annotations

from collections import deque
from typing import Callable


Listener = Callable[["Store"], None]


class Store:
    """Base for objects that own state and tell subscribers when it changes."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)


class TaskQueue:
    """FIFO of deferred callables.

    Event handlers enqueue follow-up work here instead of running it inline;
    the owner drains the queue once the current event has been handled.
    Tasks enqueued while draining run in the same drain.
    """

    def __init__(self):
        self._tasks: deque[Callable[[], None]] = deque()
        self._draining = False

    def __len__(self) -> int:
        return len(self._tasks)

    def enqueue(self, task: Callable[[], None]) -> None:
        self._tasks.append(task)

    def drain(self) -> int:
        if self._draining:
            return 0

        ran = 0
        self._draining = True
        try:
            while self._tasks:
                task = self._tasks.popleft()
                task()
                ran += 1
        finally:
            self._draining = False
        return ran
