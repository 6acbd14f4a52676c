"""Tests for the reminder service."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from focusnudge.db.models import (
    LogContext,
    ReminderFilters,
    ReminderLog,
    ReminderPreferences,
    Task,
)
from focusnudge.engine.escalation import mark_sent
from focusnudge.engine.reminder_service import ReminderService, merge_preferences
from focusnudge.utils.errors import AuthorizationError, NotFoundError, ValidationError

UTC = ZoneInfo("UTC")


async def send(repo, reminder, now):
    """Mark a reminder as delivered, the way the dispatch sweep does."""
    mark_sent(reminder, now)
    await repo.update_reminder(reminder)
    return reminder


# Creation


@pytest.mark.asyncio
async def test_create_reminder(service, make_request, clock):
    reminder = await service.create_reminder(make_request())

    assert reminder.id is not None
    assert reminder.status == "scheduled"
    assert reminder.escalation_level == 0
    assert reminder.max_escalations == 3
    assert reminder.scheduled_time == clock.now() + timedelta(minutes=30)
    assert reminder.context.predicted_energy == 5.0


@pytest.mark.asyncio
async def test_create_in_quiet_hours_moves_to_morning(service, make_request):
    late = datetime(2026, 3, 4, 23, 15, tzinfo=UTC)
    reminder = await service.create_reminder(make_request(scheduled_time=late))
    assert reminder.scheduled_time == datetime(2026, 3, 5, 8, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_create_uses_user_timezone(service, make_request, user):
    await service.update_preferences(user.id, {"timezone": "America/New_York"})

    # 03:00 UTC is 22:00 in New York (EST), inside quiet hours there
    requested = datetime(2026, 3, 5, 3, 0, tzinfo=UTC)
    reminder = await service.create_reminder(make_request(scheduled_time=requested))

    # 08:00 EST the next morning
    assert reminder.scheduled_time == datetime(2026, 3, 5, 13, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_create_validation_writes_nothing(service, make_request, user):
    with pytest.raises(ValidationError):
        await service.create_reminder(make_request(reminder_type="nap_time"))
    with pytest.raises(ValidationError):
        await service.create_reminder(make_request(priority="critical"))
    with pytest.raises(ValidationError):
        await service.create_reminder(make_request(title="x" * 201))
    with pytest.raises(ValidationError):
        await service.create_reminder(make_request(title="   "))
    with pytest.raises(ValidationError):
        await service.create_reminder(make_request(max_escalations=11))

    assert await service.list_reminders(user.id) == []


@pytest.mark.asyncio
async def test_create_requires_known_user_and_task(service, make_request):
    with pytest.raises(AuthorizationError):
        await service.create_reminder(make_request(user_id=None))
    with pytest.raises(NotFoundError):
        await service.create_reminder(make_request(user_id=999))
    with pytest.raises(NotFoundError):
        await service.create_reminder(make_request(task_id=999))


# Escalation


@pytest.mark.asyncio
async def test_escalation_until_expired_then_idempotent(service, repo, make_request, clock):
    reminder = await service.create_reminder(make_request())

    for level in (1, 2, 3):
        escalated = await service.escalate(reminder.id)
        assert escalated.escalation_level == level
        assert escalated.status == "scheduled"
        assert escalated.scheduled_time == clock.now() + timedelta(minutes=15)

    expired = await service.escalate(reminder.id)
    assert expired.status == "expired"
    assert expired.escalation_level == 3

    again = await service.escalate(reminder.id)
    assert again.status == "expired"
    assert again.escalation_level == 3

    stored = await repo.get_reminder(reminder.id)
    assert stored.status == "expired"


@pytest.mark.asyncio
async def test_escalate_unknown_reminder(service):
    with pytest.raises(NotFoundError):
        await service.escalate(12345)


@pytest.mark.asyncio
async def test_check_unanswered_only_escalates_sent(service, repo, make_request, clock):
    reminder = await service.create_reminder(make_request())
    assert await service.check_unanswered(reminder.id) is None

    await send(repo, reminder, clock.now())
    escalated = await service.check_unanswered(reminder.id)
    assert escalated.escalation_level == 1
    assert escalated.escalation_check_at is None


# Responses


@pytest.mark.asyncio
async def test_dismiss_round_trip(service, repo, make_request, clock):
    reminder = await service.create_reminder(make_request())
    await send(repo, reminder, clock.now())

    clock.advance(minutes=2)
    await service.record_response(reminder.id, "dismissed", 120)

    stored = await repo.get_reminder(reminder.id)
    assert stored.status == "dismissed"
    assert stored.escalation_check_at is None

    logs = await repo.get_logs_for_reminder(reminder.id)
    assert len(logs) == 1
    assert logs[0].user_response == "dismissed"
    assert logs[0].response_time_seconds == 120
    assert logs[0].sent_at == reminder.actual_sent_time
    assert logs[0].context.time_of_day == "12:02"
    assert logs[0].context.day_of_week == "Wednesday"

    # Nothing escalates a dismissed reminder any more
    assert await service.check_unanswered(reminder.id) is None
    assert (await service.escalate(reminder.id)).status == "dismissed"
    assert len(await repo.get_logs_for_reminder(reminder.id)) == 1


@pytest.mark.asyncio
async def test_snooze_response(service, repo, make_request, clock):
    reminder = await service.create_reminder(make_request())
    await send(repo, reminder, clock.now())

    await service.record_response(reminder.id, "snoozed_15min", 30)

    stored = await repo.get_reminder(reminder.id)
    assert stored.status == "snoozed"
    assert stored.scheduled_time == clock.now() + timedelta(minutes=15)


@pytest.mark.asyncio
async def test_response_folds_energy(service, repo, make_request, user, clock):
    reminder = await service.create_reminder(make_request())
    await service.record_response(reminder.id, "acknowledged", 10, energy_before=8)

    [pattern] = await repo.get_energy_patterns(user.id)
    assert pattern.time_slot == "12:00"
    assert pattern.day_of_week == 3
    assert pattern.average_energy_level == 8.0


@pytest.mark.asyncio
async def test_response_validation(service, make_request):
    reminder = await service.create_reminder(make_request())

    with pytest.raises(ValidationError):
        await service.record_response(reminder.id, "maybe", 10)
    with pytest.raises(ValidationError):
        await service.record_response(reminder.id, "acknowledged", -1)
    with pytest.raises(ValidationError):
        await service.record_response(reminder.id, "acknowledged", 10, effectiveness=6)
    with pytest.raises(ValidationError):
        await service.record_response(reminder.id, "acknowledged", 10, energy_before=0)
    with pytest.raises(NotFoundError):
        await service.record_response(999, "acknowledged", 10)


@pytest.mark.asyncio
async def test_non_finite_latency_rejected_before_any_write(service, repo, make_request):
    reminder = await service.create_reminder(make_request())

    for latency in (float("nan"), float("inf"), float("-inf")):
        with pytest.raises(ValidationError):
            await service.record_response(reminder.id, "acknowledged", latency)

    assert await repo.get_logs_for_reminder(reminder.id) == []
    assert (await repo.get_reminder(reminder.id)).status == "scheduled"


@pytest.mark.asyncio
async def test_response_to_terminal_reminder_rejected(service, repo, make_request):
    reminder = await service.create_reminder(make_request())
    await service.record_response(reminder.id, "acknowledged", 10)

    with pytest.raises(ValidationError):
        await service.record_response(reminder.id, "dismissed", 10)
    assert len(await repo.get_logs_for_reminder(reminder.id)) == 1


@pytest.mark.asyncio
async def test_learning_hook_runs_for_rated_responses(repo, clock, make_request):
    calls = []

    async def hook(user_id, log, prefs):
        calls.append((user_id, log.effectiveness_rating))

    service = ReminderService(repo, clock, learning_hook=hook)
    first = await service.create_reminder(make_request())
    second = await service.create_reminder(make_request())

    await service.record_response(first.id, "acknowledged", 5)
    await service.record_response(second.id, "completed_task", 5, effectiveness=4)

    assert calls == [(first.user_id, 4)]


# Snooze and dismiss


@pytest.mark.asyncio
async def test_snooze_and_dismiss(service, make_request, clock):
    reminder = await service.create_reminder(make_request())

    snoozed = await service.snooze(reminder.id)
    assert snoozed.status == "snoozed"
    assert snoozed.scheduled_time == clock.now() + timedelta(minutes=15)

    with pytest.raises(ValidationError):
        await service.snooze(reminder.id, 0)

    await service.dismiss(reminder.id)
    assert (await service.get_reminder(reminder.id)).status == "dismissed"

    # Dismissing twice is harmless, snoozing a dismissed reminder is not
    await service.dismiss(reminder.id)
    with pytest.raises(ValidationError):
        await service.snooze(reminder.id, 10)


# Preferences


@pytest.mark.asyncio
async def test_default_preferences_created_once(service, repo, user):
    prefs = await service.get_preferences(user.id)

    assert prefs.max_daily_reminders == 8
    assert prefs.quiet_hours.start == "22:00"
    assert prefs.quiet_hours.end == "08:00"
    assert prefs.escalation_preferences.max_escalations == 3
    assert prefs.reminder_types_enabled.hyperfocus_break
    assert len(prefs.preferred_times) == 2

    again = await service.get_preferences(user.id)
    assert again.id == prefs.id


@pytest.mark.asyncio
async def test_update_preferences_partial(service, user):
    updated = await service.update_preferences(
        user.id,
        {
            "max_daily_reminders": 4,
            "quiet_hours": {"start": "23:00"},
            "reminder_types_enabled": {"break_reminder": False},
        },
    )

    assert updated.max_daily_reminders == 4
    assert updated.quiet_hours.start == "23:00"
    assert updated.quiet_hours.end == "08:00"
    assert not updated.reminder_types_enabled.break_reminder
    assert updated.reminder_types_enabled.task_start

    stored = await service.get_preferences(user.id)
    assert stored.max_daily_reminders == 4
    assert stored.quiet_hours.start == "23:00"


@pytest.mark.asyncio
async def test_update_preferences_rejects_bad_values(service, user):
    bad_updates = [
        {},
        {"max_daily_reminders": 0},
        {"max_daily_reminders": 51},
        {"quiet_hours": {"start": "25:00"}},
        {"escalation_preferences": {"escalation_interval_minutes": 2}},
        {"adaptive_learning": {"effectiveness_weight": 1.5}},
        {"adaptive_learning": {"effectiveness_weight": float("nan")}},
        {"max_daily_reminders": float("inf")},
        {"timezone": "Mars/Olympus_Mons"},
        {"reminder_frequency": "constant"},
        {"favourite_colour": "blue"},
    ]
    for update in bad_updates:
        with pytest.raises(ValidationError):
            await service.update_preferences(user.id, update)

    assert (await service.get_preferences(user.id)).max_daily_reminders == 8


def test_merge_preferences_does_not_touch_original():
    current = ReminderPreferences(user_id=1)
    merged = merge_preferences(current, {"quiet_hours": {"end": "07:00"}})

    assert merged.quiet_hours.end == "07:00"
    assert current.quiet_hours.end == "08:00"


# Queries


@pytest.mark.asyncio
async def test_list_reminders_filters_and_pages(service, make_request, user, clock):
    for minutes in range(5):
        await service.create_reminder(
            make_request(scheduled_time=clock.now() + timedelta(minutes=10 * (minutes + 1)))
        )
    urgent = await service.create_reminder(make_request(priority="urgent"))
    await service.dismiss(urgent.id)

    everything = await service.list_reminders(user.id)
    assert len(everything) == 6

    dismissed = await service.list_reminders(user.id, ReminderFilters(status="dismissed"))
    assert [r.id for r in dismissed] == [urgent.id]

    page_one = await service.list_reminders(user.id, page=1, page_size=4)
    page_two = await service.list_reminders(user.id, page=2, page_size=4)
    assert len(page_one) == 4
    assert len(page_two) == 2
    assert page_one[0].scheduled_time >= page_one[-1].scheduled_time

    with pytest.raises(ValidationError):
        await service.list_reminders(user.id, ReminderFilters(status="lost"))
    with pytest.raises(ValidationError):
        await service.list_reminders(user.id, page=0)


@pytest.mark.asyncio
async def test_list_reminders_date_range_in_user_timezone(service, make_request, user, clock):
    await service.update_preferences(user.id, {"timezone": "America/New_York"})
    morning = await service.create_reminder(
        make_request(scheduled_time=datetime(2026, 3, 4, 15, 0, tzinfo=UTC))
    )
    afternoon = await service.create_reminder(
        make_request(scheduled_time=datetime(2026, 3, 4, 18, 0, tzinfo=UTC))
    )

    # Naive noon in New York is 17:00 UTC
    local_noon = datetime(2026, 3, 4, 12, 0)
    found = await service.list_reminders(
        user.id, ReminderFilters(start=local_noon, end=clock.now() + timedelta(hours=10))
    )
    assert [r.id for r in found] == [afternoon.id]

    found = await service.list_reminders(user.id, ReminderFilters(end=local_noon))
    assert [r.id for r in found] == [morning.id]

    with pytest.raises(ValidationError):
        await service.list_reminders(
            user.id,
            ReminderFilters(start=local_noon, end=datetime(2026, 3, 4, 16, 0, tzinfo=UTC)),
        )
    with pytest.raises(ValidationError):
        await service.list_reminders(user.id, ReminderFilters(start="yesterday"))


async def add_rated_log(repo, reminder, sent_at, rating, response="acknowledged"):
    await repo.create_log(
        ReminderLog(
            reminder_id=reminder.id,
            user_id=reminder.user_id,
            sent_at=sent_at,
            user_response=response,
            response_time_seconds=60,
            effectiveness_rating=rating,
            context=LogContext("14:00", "Wednesday", False, False),
            created_at=sent_at,
        )
    )


@pytest.mark.asyncio
async def test_optimal_times_fallback(service, user):
    assert await service.get_optimal_times(user.id, "task_start") == ["09:00", "14:00", "16:00"]

    with pytest.raises(ValidationError):
        await service.get_optimal_times(user.id, "nap_time")


@pytest.mark.asyncio
async def test_optimal_times_from_ratings(service, repo, make_request, user, clock):
    reminder = await service.create_reminder(make_request())
    day = clock.now() - timedelta(days=2)

    for rating in (5, 4, 5):
        await add_rated_log(repo, reminder, day.replace(hour=14, minute=10), rating)
    for rating in (2, 3, 2):
        await add_rated_log(repo, reminder, day.replace(hour=9, minute=40), rating)
    # Too few samples to count
    await add_rated_log(repo, reminder, day.replace(hour=17), 5)
    # Too old to count
    for rating in (5, 5, 5):
        await add_rated_log(repo, reminder, clock.now() - timedelta(days=40), rating)

    assert await service.get_optimal_times(user.id, "task_start") == ["14:00", "09:00"]
    assert await service.get_optimal_times(user.id, "break_reminder") == [
        "09:00",
        "14:00",
        "16:00",
    ]


@pytest.mark.asyncio
async def test_analytics(service, repo, make_request, user, clock):
    answered = await service.create_reminder(make_request())
    ignored = await service.create_reminder(make_request(reminder_type="break_reminder"))
    await service.create_reminder(make_request())

    await service.record_response(answered.id, "acknowledged", 30, effectiveness=4)
    await service.record_response(ignored.id, "not_now", 90, effectiveness=2)

    analytics = await service.get_analytics(user.id, days=7)

    assert analytics.total == 3
    assert analytics.response_rate == 33.33
    assert analytics.avg_effectiveness == 3.0
    assert analytics.avg_response_time == 60.0
    assert analytics.type_effectiveness == {"break_reminder": 2.0, "task_start": 4.0}
    assert [h.hour for h in analytics.optimal_hours] == [12]


@pytest.mark.asyncio
async def test_analytics_empty(service, user):
    analytics = await service.get_analytics(user.id)
    assert analytics.total == 0
    assert analytics.response_rate == 0.0
    assert analytics.avg_effectiveness is None
    assert analytics.optimal_hours == []


# Task-driven reminders


@pytest.mark.asyncio
async def test_schedule_automatic_reminders(service, repo, user, clock):
    due = clock.now() + timedelta(hours=48)
    task = await repo.create_task(Task(user_id=user.id, title="Tax return", due_date=due))
    await repo.create_task(
        Task(user_id=user.id, title="Old", due_date=clock.now() - timedelta(days=1))
    )
    await repo.create_task(Task(user_id=user.id, title="Done", due_date=due, completed=True))

    created = await service.schedule_automatic_reminders(user.id)

    assert [(r.reminder_type, r.priority) for r in created] == [
        ("task_start", "medium"),
        ("deadline_warning", "high"),
        ("deadline_warning", "urgent"),
    ]
    assert all(r.task_id == task.id for r in created)
    assert created[0].scheduled_time == clock.now() + timedelta(minutes=5)
    assert created[1].scheduled_time == due - timedelta(hours=24)
    assert created[2].scheduled_time == due - timedelta(hours=2)
    assert created[0].title == "Time to start: Tax return"


@pytest.mark.asyncio
async def test_task_reminders_respect_type_switches(service, repo, user, clock):
    await service.update_preferences(
        user.id, {"reminder_types_enabled": {"deadline_warning": False}}
    )
    task = await repo.create_task(
        Task(
            user_id=user.id,
            title="Slides",
            due_date=clock.now() + timedelta(hours=10),
            started_at=clock.now() - timedelta(hours=1),
        )
    )
    prefs = await service.get_preferences(user.id)

    assert await service.schedule_task_reminders(task, prefs) == []


@pytest.mark.asyncio
async def test_close_deadline_skips_day_before_warning(service, repo, user, clock):
    task = await repo.create_task(
        Task(
            user_id=user.id,
            title="Slides",
            due_date=clock.now() + timedelta(hours=10),
            started_at=clock.now(),
        )
    )
    prefs = await service.get_preferences(user.id)

    created = await service.schedule_task_reminders(task, prefs)
    assert [r.priority for r in created] == ["urgent"]
