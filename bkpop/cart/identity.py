"""Current visitor identity and login/logout notifications."""
from typing import Awaitable, Callable, List, Optional

from bkpop.logging import get_logger, describe_owner

logger = get_logger(__name__)

IdentityListener = Callable[[Optional[int]], Awaitable[None]]


class IdentityObserver:
    """
    Holds "current user id or anonymous" for one browser session.

    Listeners are awaited in subscription order whenever the identity
    actually changes.
    """

    def __init__(self, user_id: Optional[int] = None):
        self._user_id = user_id
        self._listeners: List[IdentityListener] = []

    @property
    def current_user_id(self) -> Optional[int]:
        return self._user_id

    @property
    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def login(self, user_id: int) -> None:
        await self._set(user_id)

    async def logout(self) -> None:
        await self._set(None)

    async def _set(self, user_id: Optional[int]) -> None:
        if user_id == self._user_id:
            return
        logger.info(f"Identity changed: {describe_owner(self._user_id)} -> {describe_owner(user_id)}")
        self._user_id = user_id
        for listener in list(self._listeners):
            await listener(user_id)
