import logging
from typing import Callable, List, Optional, Protocol

from bookswap_engine.models.user import UserDocument

logger = logging.getLogger(__name__)


class SessionProvider(Protocol):

    def current_user(self) -> Optional[UserDocument]:
        ...


class BrowserSession:
    """Holds the logged-in user of the single browsing session."""

    def __init__(self, user: Optional[UserDocument] = None) -> None:
        self._user = user
        self._logout_hooks: List[Callable[[], None]] = []

    def current_user(self) -> Optional[UserDocument]:
        return self._user

    @property
    def user_id(self) -> Optional[str]:
        return self._user["id"] if self._user else None

    def login(self, user_id: str, name: str) -> UserDocument:
        self._user = {"id": user_id, "name": name}
        logger.info(f"User {user_id} logged in")
        return self._user

    def on_logout(self, hook: Callable[[], None]) -> None:
        self._logout_hooks.append(hook)

    def logout(self) -> None:
        if self._user is None:
            return
        logger.info(f"User {self._user['id']} logged out")
        self._user = None
        for hook in self._logout_hooks:
            hook()
