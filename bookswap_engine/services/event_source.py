import logging
import random
import string
from typing import Any, Dict, Optional, Protocol

from bookswap_engine.models.notification import NotificationKind
from bookswap_engine.services.notification_dispatcher import NotificationDispatcher
from bookswap_engine.services.session import SessionProvider
from bookswap_engine.utils.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

POLL_SECONDS = 30.0
PROBABILITY = 0.1

BOOK_SUBJECTS = ["Calculus", "Physics", "Computer Science", "Biology", "Chemistry"]
SENDER_NAMES = ["Alex", "Jordan", "Taylor", "Morgan", "Casey"]
TRANSACTION_EVENTS = ["Payment received", "Book sold", "New purchase", "Transaction completed"]
SYSTEM_MESSAGES = [
    "Welcome to Campus BookSwap!",
    "Your account has been verified",
    "New feature: Book price comparison is now available",
    "Maintenance scheduled for tonight",
    "Your listing is about to expire",
]

_BASE36 = string.digits + string.ascii_lowercase


class EventSource(Protocol):

    @property
    def running(self) -> bool:
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class SimulatedEventSource:
    """
    Stand-in for a server push channel.

    Ticks every ``period`` seconds while started and, with probability
    ``probability``, feeds one made-up notification through the dispatcher for
    whoever is logged in at that moment.
    """

    def __init__(
        self,
        session: SessionProvider,
        dispatcher: NotificationDispatcher,
        scheduler: Scheduler,
        period: float = POLL_SECONDS,
        probability: float = PROBABILITY,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._session = session
        self._dispatcher = dispatcher
        self._scheduler = scheduler
        self._period = period
        self._probability = probability
        self._rng = rng or random.Random()
        self._timer: Optional[TimerHandle] = None
        self._running = False
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._generation += 1
        self._schedule()
        logger.info(f"Simulated event source started (every {self._period}s, p={self._probability})")

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        logger.info("Simulated event source stopped")

    def _schedule(self) -> None:
        generation = self._generation
        self._timer = self._scheduler.call_later(self._period, lambda: self._on_timer(generation))

    def _on_timer(self, generation: int) -> None:
        if not self._running or generation != self._generation:
            # queued before stop(), possibly surviving a restart
            return
        try:
            self.tick()
        finally:
            if self._running:
                self._schedule()

    def tick(self) -> Optional[Dict[str, Any]]:
        user = self._session.current_user()
        if not user:
            logger.debug("No user logged in, skipping simulated notification")
            return None
        if self._rng.random() >= self._probability:
            return None
        kind, message, payload, link = self.synthesize()
        return self._dispatcher.notify(user["id"], kind, message, payload=payload, link=link)

    def _token(self, prefix: str) -> str:
        return prefix + "".join(self._rng.choice(_BASE36) for _ in range(9))

    def synthesize(self):
        kind = self._rng.choice(list(NotificationKind))
        if kind is NotificationKind.NEW_LISTING:
            subject = self._rng.choice(BOOK_SUBJECTS)
            return kind, f"New {subject} textbook listed in your department", {"bookId": self._token("book_")}, "browse.html"
        if kind is NotificationKind.MESSAGE:
            name = self._rng.choice(SENDER_NAMES)
            return kind, f"New message from {name} about your book listing", {"conversationId": self._token("conv_")}, "messages.html"
        if kind is NotificationKind.TRANSACTION:
            event = self._rng.choice(TRANSACTION_EVENTS)
            return kind, f"{event} - check your transactions", {"transactionId": self._token("trans_")}, "dashboard.html?tab=transactions"
        if kind is NotificationKind.REVIEW:
            return kind, "Someone left a new review on your book listing", {"reviewId": self._token("review_")}, "dashboard.html?tab=reviews"
        return kind, self._rng.choice(SYSTEM_MESSAGES), {}, None
