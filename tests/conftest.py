"""Shared test fixtures for the BookSwap engine tests."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from bookswap_engine.database.store import MemoryStore
from bookswap_engine.repositories.conversation_repository import ConversationRepository
from bookswap_engine.repositories.notification_repository import NotificationRepository
from bookswap_engine.services.notification_dispatcher import NotificationDispatcher
from bookswap_engine.services.session import BrowserSession


class VirtualTimer:

    def __init__(self, when, seq, callback):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class VirtualScheduler:
    """Deterministic stand-in for the event loop's call_later."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._timers = []

    def call_later(self, delay, callback):
        timer = VirtualTimer(self.now + delay, self._seq, callback)
        self._seq += 1
        self._timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self._timers if not t.cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.when, t.seq))
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target

    def fire(self, timer):
        """Run a timer's callback even if it was cancelled (a lost cancellation race)."""
        if timer in self._timers:
            self._timers.remove(timer)
        timer.callback()


class FakeClock:

    def __init__(self, start=None):
        self.current = start or datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)


class ScriptedRandom:
    """Scripted probability draws; choices come from a seeded generator."""

    def __init__(self, draws=(), seed=7):
        self._draws = list(draws)
        self._choices = random.Random(seed)

    def random(self):
        if self._draws:
            return self._draws.pop(0)
        return 1.0

    def choice(self, seq):
        return self._choices.choice(seq)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture
def alice():
    return {"id": "user-alice", "name": "Alice Smith"}


@pytest.fixture
def bob():
    return {"id": "user-bob", "name": "Bob Johnson", "handle": "+1 (234) 567-890"}


@pytest.fixture
def book():
    return {"id": "book-42", "title": "Calculus: Early Transcendentals"}


@pytest.fixture
def conversation_repo(store, clock):
    return ConversationRepository(store, clock=clock)


@pytest.fixture
def notification_repo(store, clock):
    return NotificationRepository(store, clock=clock)


@pytest.fixture
def session(alice):
    session = BrowserSession()
    session.login(alice["id"], alice["name"])
    return session


@pytest.fixture
def removed_toasts():
    return []


@pytest.fixture
def navigations():
    return []


@pytest.fixture
def dispatcher(notification_repo, session, scheduler, clock, removed_toasts, navigations):
    return NotificationDispatcher(
        notification_repo,
        session,
        scheduler,
        navigate=navigations.append,
        on_toast_removed=removed_toasts.append,
        clock=clock,
    )


@pytest.fixture
def scripted_random():
    return ScriptedRandom
