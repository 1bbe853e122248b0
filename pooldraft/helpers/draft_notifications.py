"""
Who hears about what after a draft state change.

Only the recipient/event decision lives here. Delivery is delegated to a sink
object with deliver(participant_id, event_type, payload): whatever is set in
app.config["DRAFT_NOTIFICATION_SINK"], or email by default.

A delivery failure is logged and never propagated; the state change that
triggered it is already committed.
"""
from flask import current_app

from pooldraft.helpers.email import EmailNotificationSink
from pooldraft.helpers.turns import whose_turn


def get_notification_sink():
    sink = current_app.config.get("DRAFT_NOTIFICATION_SINK")
    return sink if sink is not None else EmailNotificationSink()


def _send(participant_id, event_type: str, payload: dict) -> None:
    try:
        get_notification_sink().deliver(participant_id, event_type, payload)
    except Exception:
        current_app.logger.exception(
            "draft %s: failed to deliver %s to participant %s",
            payload.get("draft_id"), event_type, participant_id,
        )


def _your_turn_payload(draft, timer) -> dict:
    return {
        "draft_id": draft.id,
        "pool_id": draft.pool_id,
        "pick_number": draft.current_pick + 1,
        "round": draft.current_round,
        "deadline": timer.current_pick_deadline if timer else None,
    }


def notify_draft_started(draft, timer) -> None:
    for participant_id in draft.draft_order:
        _send(participant_id, "draft_started", {"draft_id": draft.id, "pool_id": draft.pool_id})

    notify_next_picker(draft, timer)


def notify_next_picker(draft, timer) -> None:
    """your_turn to whoever is now on the clock (nobody if the draft isn't running)."""
    picker = whose_turn(draft)
    if picker is None:
        return
    _send(picker, "your_turn", _your_turn_payload(draft, timer))


def notify_after_pick(draft, timer, pick, reason=None) -> None:
    """
    Fan-out after a committed pick or skip.

    draft must already reflect the advanced current_pick.
    """
    if pick.is_skip and reason == "timeout":
        _send(
            pick.participant_id,
            "pick_skipped",
            {"draft_id": draft.id, "pool_id": draft.pool_id, "pick_number": pick.pick_number},
        )

    if draft.status == "completed":
        notify_draft_completed(draft)
        return

    notify_next_picker(draft, timer)


def notify_draft_completed(draft) -> None:
    for participant_id in draft.draft_order:
        _send(participant_id, "draft_completed", {"draft_id": draft.id, "pool_id": draft.pool_id})


def send_reminder(draft, participant_id, remaining_seconds) -> None:
    _send(
        participant_id,
        "reminder",
        {
            "draft_id": draft.id,
            "pool_id": draft.pool_id,
            "pick_number": draft.current_pick + 1,
            "remaining_seconds": int(remaining_seconds),
        },
    )
