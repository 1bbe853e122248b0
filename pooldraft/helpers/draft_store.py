from datetime import timedelta
from typing import Optional

from flask import current_app
from sqlalchemy import update

from pooldraft.extensions import db
from pooldraft.models import Draft, DraftPick, DraftSettings, DraftTimer, PoolOption, SKIPPED_OPTION_ID
from pooldraft.helpers.draft_status_cache import invalidate_draft_status
from pooldraft.helpers.errors import NotFound
from pooldraft.helpers.time import utcnow

# DraftSettings fields an admin may edit, with the smallest allowed value
EDITABLE_SETTINGS = {
    "pick_time_seconds": 60,
    "reminder_minutes": 0,
    "enable_auto_skip": None,
    "auto_skip_after_seconds": 60,
    "break_between_rounds_seconds": 0,
}

TRUE_FLAGS = ("1", "true", "yes", "on")
FALSE_FLAGS = ("0", "false", "no", "off")

# --- Drafts ---

def get_draft(draft_id) -> Optional[Draft]:
    return db.session.get(Draft, draft_id)


def get_draft_or_raise(draft_id) -> Draft:
    draft = get_draft(draft_id)
    if not draft:
        raise NotFound(f"Draft {draft_id} not found")
    return draft


def get_draft_for_pool(pool_id) -> Optional[Draft]:
    return Draft.query.filter_by(pool_id=pool_id).first()


def list_active_draft_ids() -> list[int]:
    rows = (
        db.session.query(Draft.id)
        .filter(Draft.status == "in_progress")
        .order_by(Draft.id.asc())
        .all()
    )
    return [r[0] for r in rows]


def compare_and_set_pick(draft_id, expected_pick, new_pick, new_round, complete=False, now=None) -> bool:
    """
    Move current_pick from expected_pick to new_pick in one conditional UPDATE.

    Returns False when another writer already moved it (or the draft left
    in_progress). Caller owns the transaction: nothing is committed here.
    """
    now = now or utcnow()
    values = {
        "current_pick": new_pick,
        "current_round": new_round,
        "updated_at": now,
    }
    if complete:
        values["status"] = "completed"
        values["completed_at"] = now

    result = db.session.execute(
        update(Draft)
        .where(
            Draft.id == draft_id,
            Draft.current_pick == expected_pick,
            Draft.status == "in_progress",
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def compare_and_set_status(draft_id, from_statuses, to_status, expected_pick=None, **values) -> bool:
    """
    Conditional status change; from_statuses is a status or a tuple of them.

    With expected_pick the change also requires current_pick to be unmoved,
    for transitions that snapshot the turn on the clock.
    """
    if isinstance(from_statuses, str):
        from_statuses = (from_statuses,)

    conditions = [Draft.id == draft_id, Draft.status.in_(from_statuses)]
    if expected_pick is not None:
        conditions.append(Draft.current_pick == expected_pick)

    values.setdefault("updated_at", utcnow())
    result = db.session.execute(
        update(Draft)
        .where(*conditions)
        .values(status=to_status, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1

# --- Timers ---

def get_timer(draft_id) -> Optional[DraftTimer]:
    return db.session.get(DraftTimer, draft_id)


def get_or_create_timer(draft_id) -> DraftTimer:
    timer = get_timer(draft_id)
    if timer:
        return timer

    timer = DraftTimer(draft_id=draft_id)
    db.session.add(timer)
    # NOTE: caller commits together with the draft change it belongs to.
    return timer


def start_turn(timer: DraftTimer, now, seconds) -> None:
    """Put a fresh turn on the clock."""
    timer.current_pick_deadline = now + timedelta(seconds=int(seconds))
    timer.turn_started_at = now
    timer.last_reminded_at = None
    timer.paused_at = None
    timer.paused_remaining_seconds = None


def clear_clock(timer: DraftTimer) -> None:
    timer.current_pick_deadline = None
    timer.turn_started_at = None
    timer.paused_at = None
    timer.paused_remaining_seconds = None


def claim_reminder(draft_id, deadline, now=None) -> bool:
    """
    Stamp last_reminded_at for the turn ending at deadline, once.

    Conditional on no reminder yet and the deadline being unchanged, so two
    overlapping timeout checks can't both send one. Caller commits.
    """
    result = db.session.execute(
        update(DraftTimer)
        .where(
            DraftTimer.draft_id == draft_id,
            DraftTimer.current_pick_deadline == deadline,
            DraftTimer.last_reminded_at.is_(None),
        )
        .values(last_reminded_at=now or utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1

# --- Settings ---

def get_settings(pool_id) -> Optional[DraftSettings]:
    return DraftSettings.query.filter_by(pool_id=pool_id).first()


def create_default_settings(pool_id) -> DraftSettings:
    """Settings row seeded from app config; reuses an existing row for the pool."""
    settings = get_settings(pool_id)
    if settings:
        return settings

    cfg = current_app.config
    settings = DraftSettings(
        pool_id=pool_id,
        pick_time_seconds=cfg.get("DRAFT_PICK_TIME_SECONDS", 86400),
        reminder_minutes=cfg.get("DRAFT_REMINDER_MINUTES", 720),
        enable_auto_skip=bool(cfg.get("DRAFT_ENABLE_AUTO_SKIP", True)),
        auto_skip_after_seconds=cfg.get("DRAFT_AUTO_SKIP_AFTER_SECONDS", 86400),
        break_between_rounds_seconds=cfg.get("DRAFT_BREAK_BETWEEN_ROUNDS_SECONDS", 0),
    )
    db.session.add(settings)
    return settings


def get_settings_or_default(pool_id) -> DraftSettings:
    return get_settings(pool_id) or create_default_settings(pool_id)


def _parse_flag(field, value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in TRUE_FLAGS:
            return True
        if raw in FALSE_FLAGS:
            return False
    raise ValueError(f"{field} must be true or false")


def update_settings(pool_id, **changes) -> DraftSettings:
    """
    Apply admin edits to a pool's settings and commit.

    Unknown fields or values below their minimum raise ValueError and
    nothing is written.
    """
    unknown = set(changes) - set(EDITABLE_SETTINGS)
    if unknown:
        raise ValueError(f"unknown settings: {', '.join(sorted(unknown))}")

    cleaned = {}
    for field, value in changes.items():
        if value is None:
            continue
        minimum = EDITABLE_SETTINGS[field]
        if minimum is None:
            cleaned[field] = _parse_flag(field, value)
            continue
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"{field} must be an integer")
        if value < minimum:
            raise ValueError(f"{field} must be >= {minimum}")
        cleaned[field] = value

    settings = get_settings_or_default(pool_id)
    for field, value in cleaned.items():
        setattr(settings, field, value)
    db.session.commit()

    draft = get_draft_for_pool(pool_id)
    if draft:
        invalidate_draft_status(draft.id)
    return settings

# --- Picks ---

def list_picks(draft_id) -> list[DraftPick]:
    return (
        DraftPick.query
        .filter_by(draft_id=draft_id)
        .order_by(DraftPick.pick_number.asc())
        .all()
    )


def picks_for_participant(draft_id, participant_id, include_skips=False) -> list[DraftPick]:
    q = DraftPick.query.filter_by(draft_id=draft_id, participant_id=participant_id)
    if not include_skips:
        q = q.filter(DraftPick.option_id != SKIPPED_OPTION_ID)
    return q.order_by(DraftPick.pick_number.asc()).all()


def taken_option_ids(draft_id) -> set:
    rows = (
        db.session.query(DraftPick.option_id)
        .filter(
            DraftPick.draft_id == draft_id,
            DraftPick.option_id != SKIPPED_OPTION_ID,
        )
        .all()
    )
    return {r[0] for r in rows}


def option_is_taken(draft_id, option_id) -> bool:
    return (
        DraftPick.query
        .filter_by(draft_id=draft_id, option_id=option_id)
        .first()
        is not None
    )

# --- Catalog ---

def list_catalog(pool_id) -> list[PoolOption]:
    return (
        PoolOption.query
        .filter_by(pool_id=pool_id)
        .order_by(PoolOption.name.asc())
        .all()
    )


def get_option(pool_id, option_id) -> Optional[PoolOption]:
    return PoolOption.query.filter_by(pool_id=pool_id, id=option_id).first()
