"""Connectivity signal."""

import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

OnlineCallback = Callable[[], Awaitable[None]]


class Connectivity:
    """Online flag plus "became online" subscribers."""

    def __init__(self, online: bool = True):
        self._online = online
        self._subscribers: list[OnlineCallback] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, callback: OnlineCallback) -> Callable[[], None]:
        """Register a coroutine function run on every offline -> online change.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def set_online(self, online: bool) -> None:
        """Update the flag, notifying subscribers when coming back online."""
        was_online = self._online
        self._online = online
        if online and not was_online:
            logger.info("Connectivity restored")
            for callback in list(self._subscribers):
                await callback()
        elif was_online and not online:
            logger.info("Connectivity lost")
