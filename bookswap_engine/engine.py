import logging
import random
from typing import Optional

from bookswap_engine.config import Settings, get_settings
from bookswap_engine.database.store import KeyValueStore
from bookswap_engine.models.user import UserDocument
from bookswap_engine.repositories.conversation_repository import ConversationRepository
from bookswap_engine.repositories.notification_repository import NotificationRepository
from bookswap_engine.services.chat_service import ChatService
from bookswap_engine.services.event_source import EventSource, SimulatedEventSource
from bookswap_engine.services.handoff import HandoffAdapter
from bookswap_engine.services.notification_dispatcher import NotificationDispatcher
from bookswap_engine.services.notification_service import NotificationService
from bookswap_engine.services.session import BrowserSession
from bookswap_engine.utils.scheduler import Scheduler

logger = logging.getLogger(__name__)


class Engine:
    """Wires the repositories, dispatcher and event source for one browsing session."""

    def __init__(
        self,
        store: KeyValueStore,
        scheduler: Scheduler,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
        event_source: Optional[EventSource] = None,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.session = BrowserSession()
        self.conversations = ConversationRepository(store)
        self.notifications = NotificationRepository(store)
        self.dispatcher = NotificationDispatcher(
            self.notifications,
            self.session,
            scheduler,
            dropdown_size=settings.dropdown_size,
        )
        self.chat = ChatService(self.conversations)
        self.handoff = HandoffAdapter(self.conversations)
        self.notification_service = NotificationService(self.dispatcher)
        self.event_source: EventSource = event_source or SimulatedEventSource(
            self.session,
            self.dispatcher,
            scheduler,
            period=settings.poll_seconds,
            probability=settings.notification_probability,
            rng=rng,
        )
        self.session.on_logout(self.event_source.stop)
        self.session.on_logout(self.dispatcher.reset)

    def login(self, user_id: str, name: str) -> UserDocument:
        if self.session.user_id and self.session.user_id != user_id:
            self.logout()
        user = self.session.login(user_id, name)
        self.event_source.start()
        return user

    def logout(self) -> None:
        self.session.logout()

    def shutdown(self) -> None:
        self.event_source.stop()
        self.dispatcher.reset()
