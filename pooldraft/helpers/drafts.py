import json
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from pooldraft.extensions import db
from pooldraft.models import Draft, DraftTimer
from pooldraft.helpers import draft_store
from pooldraft.helpers.draft_notifications import (
    notify_draft_completed,
    notify_draft_started,
    notify_next_picker,
)
from pooldraft.helpers.draft_order import generate_draft_order
from pooldraft.helpers.draft_status_cache import invalidate_draft_status
from pooldraft.helpers.errors import ConcurrencyConflict, InvalidState
from pooldraft.helpers.time import seconds_between, utcnow
from pooldraft.helpers.turns import whose_turn

MIN_PARTICIPANTS_TO_START = 2


def create_draft(pool_id, total_rounds, participant_ids, creator_id, rng=None) -> Draft:
    """
    Create a pending draft for a pool with a shuffled order and default settings.

    A roster smaller than two is recorded but can't be started.
    """
    try:
        total_rounds = int(total_rounds)
    except (TypeError, ValueError):
        raise ValueError("total_rounds must be an integer")

    max_rounds = current_app.config.get("DRAFT_MAX_ROUNDS", 50)
    if total_rounds < 1 or total_rounds > max_rounds:
        raise ValueError(f"total_rounds must be between 1 and {max_rounds}")

    participant_ids = list(participant_ids or [])
    if not participant_ids:
        raise ValueError("at least one participant is required")

    if draft_store.get_draft_for_pool(pool_id):
        raise InvalidState("Draft already exists for this pool")

    order = generate_draft_order(participant_ids, rng=rng)

    draft = Draft(
        pool_id=pool_id,
        status="pending",
        current_pick=0,
        current_round=1,
        total_rounds=total_rounds,
        total_picks=total_rounds * len(order),
        draft_order_json=json.dumps(order),
        created_by=creator_id,
    )
    db.session.add(draft)
    draft_store.create_default_settings(pool_id)

    try:
        db.session.flush()
        db.session.add(DraftTimer(draft_id=draft.id))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise InvalidState("Draft already exists for this pool")

    current_app.logger.info(
        "draft %s: created for pool %s, %s rounds, order=%s", draft.id, pool_id, total_rounds, order
    )
    return draft


def start_draft(draft_id, now=None) -> Draft:
    now = now or utcnow()
    draft = draft_store.get_draft_or_raise(draft_id)

    if draft.status != "pending":
        raise InvalidState(f"Draft is {draft.status}; only a pending draft can start")
    if draft.participant_count < MIN_PARTICIPANTS_TO_START:
        raise InvalidState(f"At least {MIN_PARTICIPANTS_TO_START} participants required to start a draft")

    settings = draft_store.get_settings_or_default(draft.pool_id)
    timer = draft_store.get_or_create_timer(draft.id)

    if not draft_store.compare_and_set_status(draft.id, "pending", "in_progress", started_at=now):
        db.session.rollback()
        raise ConcurrencyConflict("Draft status changed concurrently; re-fetch and retry")

    draft_store.start_turn(timer, now, settings.pick_time_seconds)
    db.session.commit()

    current_app.logger.info("draft %s: started, deadline %s", draft.id, timer.current_pick_deadline)
    invalidate_draft_status(draft.id)
    notify_draft_started(draft, timer)
    return draft


def pause_draft(draft_id, now=None) -> Draft:
    """Stop the clock, remembering how much of the current turn was left."""
    now = now or utcnow()
    draft = draft_store.get_draft_or_raise(draft_id)

    if draft.status != "in_progress":
        raise InvalidState(f"Draft is {draft.status}; only an in-progress draft can be paused")

    timer = draft_store.get_or_create_timer(draft.id)

    remaining = None
    if timer.current_pick_deadline is not None:
        remaining = max(0, int(seconds_between(timer.current_pick_deadline, now)))

    if not draft_store.compare_and_set_status(
        draft.id, "in_progress", "paused", expected_pick=draft.current_pick
    ):
        db.session.rollback()
        raise ConcurrencyConflict("Draft status changed concurrently; re-fetch and retry")

    timer.paused_at = now
    timer.paused_remaining_seconds = remaining
    timer.current_pick_deadline = None
    db.session.commit()

    current_app.logger.info("draft %s: paused with %s seconds remaining", draft.id, remaining)
    invalidate_draft_status(draft.id)
    return draft


def resume_draft(draft_id, now=None) -> Draft:
    """
    Restart the clock with exactly the time that was left at pause.
    Falls back to a full pick allotment when nothing was captured.
    """
    now = now or utcnow()
    draft = draft_store.get_draft_or_raise(draft_id)

    if draft.status != "paused":
        raise InvalidState(f"Draft is {draft.status}; only a paused draft can be resumed")

    settings = draft_store.get_settings_or_default(draft.pool_id)
    timer = draft_store.get_or_create_timer(draft.id)

    remaining = timer.paused_remaining_seconds
    if remaining is None:
        remaining = settings.pick_time_seconds

    if not draft_store.compare_and_set_status(draft.id, "paused", "in_progress"):
        db.session.rollback()
        raise ConcurrencyConflict("Draft status changed concurrently; re-fetch and retry")

    # time_taken on the eventual pick should not include the pause
    if timer.turn_started_at is not None and timer.paused_at is not None:
        timer.turn_started_at = timer.turn_started_at + (now - timer.paused_at)

    timer.current_pick_deadline = now + timedelta(seconds=int(remaining))
    timer.paused_at = None
    timer.paused_remaining_seconds = None
    db.session.commit()

    current_app.logger.info("draft %s: resumed, deadline %s", draft.id, timer.current_pick_deadline)
    invalidate_draft_status(draft.id)
    notify_next_picker(draft, timer)
    return draft


def complete_draft(draft_id, now=None) -> Draft:
    """Forced completion by an admin; the remaining picks are never made."""
    now = now or utcnow()
    draft = draft_store.get_draft_or_raise(draft_id)

    if draft.status not in ("in_progress", "paused"):
        raise InvalidState(f"Draft is {draft.status}; it can't be completed")

    timer = draft_store.get_or_create_timer(draft.id)

    if not draft_store.compare_and_set_status(
        draft.id, ("in_progress", "paused"), "completed", completed_at=now
    ):
        db.session.rollback()
        raise ConcurrencyConflict("Draft status changed concurrently; re-fetch and retry")

    draft_store.clear_clock(timer)
    db.session.commit()

    current_app.logger.info(
        "draft %s: force-completed at pick %s of %s", draft.id, draft.current_pick, draft.total_picks
    )
    invalidate_draft_status(draft.id)
    notify_draft_completed(draft)
    return draft


def remaining_seconds(draft, timer, now=None) -> int:
    """Seconds left on the clock for display; 0 when nothing is running."""
    if not timer:
        return 0

    if draft.status == "paused":
        return int(timer.paused_remaining_seconds or 0)

    if draft.status != "in_progress" or timer.current_pick_deadline is None:
        return 0

    now = now or utcnow()
    return max(0, int(seconds_between(timer.current_pick_deadline, now)))


def get_status(draft_id, now=None) -> dict:
    """
    Read-only snapshot of a draft for the draft room.

    allocations lists each participant's picked option ids; skipped turns are
    not counted as an allocation.
    """
    draft = draft_store.get_draft_or_raise(draft_id)
    timer = draft_store.get_timer(draft.id)
    settings = draft_store.get_settings(draft.pool_id)
    picks = draft_store.list_picks(draft.id)

    taken = draft_store.taken_option_ids(draft.id)
    available = [o.to_dict() for o in draft_store.list_catalog(draft.pool_id) if o.id not in taken]

    allocations = {str(pid): [] for pid in draft.draft_order}
    for p in picks:
        if not p.is_skip:
            allocations.setdefault(str(p.participant_id), []).append(p.option_id)

    remaining = remaining_seconds(draft, timer, now)

    return {
        "draft": draft.to_dict(),
        "current_picker": whose_turn(draft),
        "remaining_seconds": remaining,
        "is_timed_out": draft.status == "in_progress" and remaining <= 0,
        "picks": [p.to_dict() for p in picks],
        "available_options": available,
        "allocations": allocations,
        "timer": timer.to_dict() if timer else None,
        "settings": settings.to_dict() if settings else None,
    }
