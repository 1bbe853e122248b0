"""
Deadline checks for drafts, driven from outside.

Nothing here sleeps or schedules: an external cron calls
check_and_handle_timeout (or the sweep) as often as it likes, and each call
looks at the stored deadline once and acts on it.
"""
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from pooldraft.extensions import db
from pooldraft.models import SKIPPED_OPTION_ID
from pooldraft.helpers import draft_store
from pooldraft.helpers.draft_notifications import send_reminder
from pooldraft.helpers.errors import ConcurrencyConflict, DraftError
from pooldraft.helpers.picks import advance_turn
from pooldraft.helpers.time import seconds_between, utcnow
from pooldraft.helpers.turns import whose_turn


def check_and_handle_timeout(draft_id, now=None) -> dict:
    """
    Auto-skip an overdue turn, or send the one reminder a turn gets.

    Returns {"skipped": bool, "reminded": bool, "remaining_seconds": int|None}.
    Raises NotFound for an unknown draft; every other "nothing to do"
    (not running, deadline already superseded) is a quiet no-op.
    """
    now = now or utcnow()
    result = {"skipped": False, "reminded": False, "remaining_seconds": None}

    draft = draft_store.get_draft_or_raise(draft_id)
    if draft.status != "in_progress":
        return result

    timer = draft_store.get_timer(draft.id)
    if not timer or timer.current_pick_deadline is None:
        return result

    picker = whose_turn(draft)
    if picker is None:
        return result

    settings = draft_store.get_settings_or_default(draft.pool_id)
    remaining = seconds_between(timer.current_pick_deadline, now)
    result["remaining_seconds"] = max(0, int(remaining))

    if remaining <= 0:
        overdue = -remaining
        if not settings.enable_auto_skip or overdue < settings.auto_skip_grace_seconds:
            return result

        try:
            advance_turn(draft, picker, SKIPPED_OPTION_ID, now=now, reason="timeout")
        except ConcurrencyConflict:
            # Someone picked (or another check skipped) first
            current_app.logger.info(
                "draft %s: timeout for pick %s already superseded", draft.id, draft.current_pick + 1
            )
            return result

        current_app.logger.info("draft %s: auto-skipped participant %s", draft_id, picker)
        result["skipped"] = True
        return result

    window = (settings.reminder_minutes or 0) * 60
    if window > 0 and remaining <= window and timer.last_reminded_at is None:
        if draft_store.claim_reminder(draft.id, timer.current_pick_deadline, now=now):
            db.session.commit()
            send_reminder(draft, picker, remaining)
            result["reminded"] = True
        else:
            db.session.rollback()

    return result


def check_all_timeouts(now=None) -> list[dict]:
    """Run the timeout check for every in-progress draft."""
    now = now or utcnow()
    results = []

    for draft_id in draft_store.list_active_draft_ids():
        try:
            outcome = check_and_handle_timeout(draft_id, now=now)
        except DraftError as e:
            current_app.logger.warning("draft %s: timeout check failed: %s", draft_id, e)
            outcome = {"skipped": False, "reminded": False, "remaining_seconds": None, "error": e.code}
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("draft %s: timeout check hit a database error", draft_id)
            outcome = {"skipped": False, "reminded": False, "remaining_seconds": None, "error": "database_error"}
        outcome["draft_id"] = draft_id
        results.append(outcome)

    return results
