from datetime import datetime, timedelta

import pytest

from pooldraft import create_app
from pooldraft.config import Config
from pooldraft.extensions import db
from pooldraft.models import Account, PoolOption
from pooldraft.routes import register_blueprints
from pooldraft.helpers.draft_status_cache import invalidate_draft_status
from pooldraft.helpers.drafts import create_draft, start_draft

# Fixed clock for every time-dependent test
T0 = datetime(2026, 1, 1, 12, 0, 0)

POOL_ID = 1
ALICE, BOB, CARA = 1, 2, 3
OPTION_IDS = [f"opt_{i}" for i in range(1, 10)]


def at(seconds) -> datetime:
    return T0 + timedelta(seconds=seconds)


class DraftTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    DRAFT_STATUS_CACHE_TTL = 0
    DRAFT_CRON_SECRET = None
    DRAFT_PICK_TIME_SECONDS = 86400
    DRAFT_REMINDER_MINUTES = 720
    DRAFT_ENABLE_AUTO_SKIP = True
    DRAFT_AUTO_SKIP_AFTER_SECONDS = 86400
    DRAFT_BREAK_BETWEEN_ROUNDS_SECONDS = 0


class KeepOrder:
    """rng stand-in that leaves the roster order alone."""

    def shuffle(self, seq):
        pass


class RecordingSink:
    def __init__(self):
        self.events = []

    def deliver(self, participant_id, event_type, payload):
        self.events.append((participant_id, event_type, payload))

    def of_type(self, event_type):
        return [(pid, payload) for pid, et, payload in self.events if et == event_type]

    def clear(self):
        self.events = []


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def app(sink):
    app = create_app(DraftTestConfig)
    app.config["DRAFT_NOTIFICATION_SINK"] = sink
    register_blueprints(app)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

    invalidate_draft_status()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def roster(app):
    """Three accounts plus a nine-option catalog for POOL_ID."""
    for acct_id, name in ((ALICE, "Alice"), (BOB, "Bob"), (CARA, "Cara")):
        db.session.add(Account(id=acct_id, email=f"{name.lower()}@example.com", name=name))
    for option_id in OPTION_IDS:
        db.session.add(PoolOption(id=option_id, pool_id=POOL_ID, name=option_id.upper()))
    db.session.commit()
    return [ALICE, BOB, CARA]


@pytest.fixture
def pending_draft(roster):
    """Two rounds, order fixed as [ALICE, BOB, CARA]."""
    return create_draft(POOL_ID, 2, roster, ALICE, rng=KeepOrder())


@pytest.fixture
def running_draft(pending_draft, sink):
    """pending_draft started at T0; the start notifications are cleared."""
    draft = start_draft(pending_draft.id, now=T0)
    sink.clear()
    return draft
