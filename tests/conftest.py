"""Shared fixtures: a throwaway database, a fixed clock and a recording sink."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio

from focusnudge.db.migrations import run_migrations
from focusnudge.db.models import CreateReminderRequest, User
from focusnudge.db.repository import Repository
from focusnudge.engine.reminder_service import ReminderService
from focusnudge.engine.scheduler import SchedulerHandle
from focusnudge.utils.errors import NotificationSinkFailure
from focusnudge.utils.time_utils import FixedClock

# Wednesday, outside the default 22:00-08:00 quiet hours
NOW = datetime(2026, 3, 4, 12, 0, tzinfo=ZoneInfo("UTC"))


class RecordingSink:
    """Notification sink that remembers what it was asked to send."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    async def send(self, user_id, title, body, priority, reminder_id=None):
        if self.fail:
            raise NotificationSinkFailure("sink offline")
        self.sent.append(
            {
                "user_id": user_id,
                "title": title,
                "body": body,
                "priority": priority,
                "reminder_id": reminder_id,
            }
        )


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest_asyncio.fixture
async def repo(tmp_path):
    db_path = tmp_path / "focusnudge.db"
    await run_migrations(db_path)
    repo = Repository(db_path)
    await repo.connect()
    yield repo
    await repo.close()


@pytest_asyncio.fixture
async def user(repo, clock) -> User:
    return await repo.create_user(1001, clock.now())


@pytest.fixture
def service(repo, clock):
    return ReminderService(repo, clock)


@pytest.fixture
def scheduler(service, sink, clock):
    return SchedulerHandle(service, sink, clock)


@pytest.fixture
def make_request(user, clock):
    """Build a CreateReminderRequest for the test user."""

    def _make(**overrides) -> CreateReminderRequest:
        values = {
            "user_id": user.id,
            "title": "Start the report",
            "reminder_type": "task_start",
            "priority": "medium",
            "scheduled_time": clock.now() + timedelta(minutes=30),
        }
        values.update(overrides)
        return CreateReminderRequest(**values)

    return _make
