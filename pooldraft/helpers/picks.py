from flask import current_app
from sqlalchemy.exc import IntegrityError

from pooldraft.extensions import db
from pooldraft.models import DraftPick, SKIPPED_OPTION_ID
from pooldraft.helpers import draft_store
from pooldraft.helpers.draft_notifications import notify_after_pick
from pooldraft.helpers.draft_status_cache import invalidate_draft_status
from pooldraft.helpers.errors import (
    ConcurrencyConflict,
    InvalidState,
    NotFound,
    NotYourTurn,
    ResourceAlreadyTaken,
)
from pooldraft.helpers.time import seconds_between, utcnow
from pooldraft.helpers.turns import is_round_boundary, round_for_pick, whose_turn


def _require_in_progress(draft) -> None:
    if draft.status != "in_progress":
        raise InvalidState(f"Draft is {draft.status}, not in progress")


def make_pick(draft_id, participant_id, option_id, now=None) -> DraftPick:
    """
    Record participant_id's pick of option_id and put the next picker on the clock.

    Checks run in this order and the first failure is raised:
      NotFound (draft) -> InvalidState -> NotYourTurn
      -> NotFound (option not in the pool catalog) -> ResourceAlreadyTaken
    A failed call writes nothing.
    """
    option_id = (option_id or "").strip()
    if not option_id:
        raise ValueError("option_id required")
    if option_id == SKIPPED_OPTION_ID:
        raise ValueError(f"'{SKIPPED_OPTION_ID}' is reserved; use skip instead")

    draft = draft_store.get_draft_or_raise(draft_id)
    _require_in_progress(draft)

    if whose_turn(draft) != participant_id:
        raise NotYourTurn("Not your turn to pick")

    if not draft_store.get_option(draft.pool_id, option_id):
        raise NotFound(f"Option {option_id} is not in this pool")

    if draft_store.option_is_taken(draft.id, option_id):
        raise ResourceAlreadyTaken(f"Option {option_id} already selected")

    return advance_turn(draft, participant_id, option_id, now=now)


def skip_turn(draft_id, participant_id, now=None) -> DraftPick:
    """The participant on the clock passes on their own pick."""
    draft = draft_store.get_draft_or_raise(draft_id)
    _require_in_progress(draft)

    if whose_turn(draft) != participant_id:
        raise NotYourTurn("Not your turn to pick")

    return advance_turn(draft, participant_id, SKIPPED_OPTION_ID, now=now, reason="manual")


def force_skip(draft_id, now=None) -> DraftPick:
    """Admin path: skip whoever is on the clock."""
    draft = draft_store.get_draft_or_raise(draft_id)
    _require_in_progress(draft)

    picker = whose_turn(draft)
    if picker is None:
        raise InvalidState("No current picker")

    return advance_turn(draft, picker, SKIPPED_OPTION_ID, now=now, reason="forced")


def advance_turn(draft, participant_id, option_id, now=None, reason=None) -> DraftPick:
    """
    Commit one pick (or skip) for the turn draft.current_pick points at.

    The conditional advance of current_pick, the pick insert and the timer
    update share one transaction. If current_pick moved since draft was read,
    or a unique constraint trips, everything is rolled back and
    ConcurrencyConflict is raised.
    """
    now = now or utcnow()

    draft_id = draft.id
    n = draft.participant_count
    expected = draft.current_pick
    new_pick = expected + 1
    complete = new_pick >= draft.total_picks
    new_round = min(round_for_pick(new_pick, n), draft.total_rounds)

    settings = draft_store.get_settings_or_default(draft.pool_id)
    timer = draft_store.get_or_create_timer(draft_id)

    time_taken = None
    if timer.turn_started_at is not None:
        time_taken = max(0, int(seconds_between(now, timer.turn_started_at)))

    try:
        if not draft_store.compare_and_set_pick(
            draft_id, expected, new_pick, new_round, complete=complete, now=now
        ):
            db.session.rollback()
            current_app.logger.info(
                "draft %s: lost race for pick %s (participant %s)", draft_id, expected + 1, participant_id
            )
            raise ConcurrencyConflict("Draft moved on before this pick was applied; re-fetch and retry")

        pick = DraftPick(
            draft_id=draft_id,
            round=round_for_pick(expected, n),
            pick_number=new_pick,
            participant_id=participant_id,
            option_id=option_id,
            picked_at=now,
            time_taken=time_taken,
        )
        db.session.add(pick)

        if complete:
            draft_store.clear_clock(timer)
        else:
            seconds = settings.pick_time_seconds
            if is_round_boundary(new_pick, n):
                seconds += settings.break_between_rounds_seconds or 0
            draft_store.start_turn(timer, now, seconds)

        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.info("draft %s: constraint hit applying pick %s", draft_id, new_pick)
        raise ConcurrencyConflict("Pick conflicted with a concurrent pick; re-fetch and retry")

    current_app.logger.info(
        "draft %s: pick %s by participant %s -> %s%s",
        draft_id, new_pick, participant_id, option_id, f" ({reason})" if reason else "",
    )
    if complete:
        current_app.logger.info("draft %s: completed after %s picks", draft_id, new_pick)

    invalidate_draft_status(draft_id)
    notify_after_pick(draft, timer, pick, reason=reason)
    return pick
