import random

import pytest

from pooldraft.extensions import db
from pooldraft.models import Draft
from pooldraft.helpers import draft_store
from pooldraft.helpers.drafts import (
    complete_draft,
    create_draft,
    get_status,
    pause_draft,
    resume_draft,
    start_draft,
)
from pooldraft.helpers.errors import ConcurrencyConflict, InvalidState, NotFound
from pooldraft.helpers.picks import make_pick

from tests.conftest import ALICE, BOB, CARA, POOL_ID, KeepOrder, at, T0


def test_create_draft_records_order_and_defaults(pending_draft):
    draft = db.session.get(Draft, pending_draft.id)
    assert draft.status == "pending"
    assert draft.draft_order == [ALICE, BOB, CARA]
    assert draft.total_picks == 6
    assert draft.current_pick == 0

    settings = draft_store.get_settings(POOL_ID)
    assert settings.pick_time_seconds == 86400
    assert settings.reminder_minutes == 720
    assert settings.enable_auto_skip is True

    timer = draft_store.get_timer(draft.id)
    assert timer is not None
    assert timer.current_pick_deadline is None


def test_one_participant_draft_is_created_but_cannot_start(roster):
    draft = create_draft(99, 3, [ALICE], ALICE)
    assert draft.status == "pending"

    with pytest.raises(InvalidState):
        start_draft(draft.id, now=T0)
    assert db.session.get(Draft, draft.id).status == "pending"


def test_second_draft_for_pool_rejected(pending_draft, roster):
    with pytest.raises(InvalidState):
        create_draft(POOL_ID, 2, roster, ALICE)


@pytest.mark.parametrize("rounds", [0, -1, 51, "many"])
def test_round_count_validated(roster, rounds):
    with pytest.raises(ValueError):
        create_draft(5, rounds, roster, ALICE)


def test_empty_roster_rejected(roster):
    with pytest.raises(ValueError):
        create_draft(5, 2, [], ALICE)


def test_start_sets_deadline_one_pick_allotment_ahead(pending_draft, sink):
    draft = start_draft(pending_draft.id, now=T0)

    assert draft.status == "in_progress"
    assert draft.started_at == T0
    timer = draft_store.get_timer(draft.id)
    assert timer.current_pick_deadline == at(86400)
    assert timer.turn_started_at == T0

    assert sorted(pid for pid, _ in sink.of_type("draft_started")) == [ALICE, BOB, CARA]
    assert [pid for pid, _ in sink.of_type("your_turn")] == [ALICE]


def test_start_twice_is_invalid(running_draft):
    with pytest.raises(InvalidState):
        start_draft(running_draft.id, now=at(10))


def test_unknown_draft_is_not_found(app):
    for op in (start_draft, pause_draft, resume_draft, complete_draft, get_status):
        with pytest.raises(NotFound):
            op(12345)


def test_pause_then_resume_keeps_remaining_time(running_draft):
    pause_draft(running_draft.id, now=at(400))

    timer = draft_store.get_timer(running_draft.id)
    assert db.session.get(Draft, running_draft.id).status == "paused"
    assert timer.current_pick_deadline is None
    assert timer.paused_remaining_seconds == 86000
    assert timer.paused_at == at(400)

    resume_draft(running_draft.id, now=at(10000))

    timer = draft_store.get_timer(running_draft.id)
    assert db.session.get(Draft, running_draft.id).status == "in_progress"
    assert timer.current_pick_deadline == at(10000 + 86000)
    assert timer.paused_at is None
    assert timer.paused_remaining_seconds is None


def test_paused_time_is_not_counted_against_the_picker(running_draft):
    pause_draft(running_draft.id, now=at(400))
    resume_draft(running_draft.id, now=at(10000))

    pick = make_pick(running_draft.id, ALICE, "opt_1", now=at(10100))
    assert pick.time_taken == 500


def test_resume_without_snapshot_gives_full_allotment(running_draft):
    timer = draft_store.get_timer(running_draft.id)
    pause_draft(running_draft.id, now=at(400))
    timer.paused_remaining_seconds = None
    db.session.commit()

    resume_draft(running_draft.id, now=at(1000))
    assert draft_store.get_timer(running_draft.id).current_pick_deadline == at(1000 + 86400)


def test_pause_and_resume_require_matching_status(running_draft):
    with pytest.raises(InvalidState):
        resume_draft(running_draft.id, now=at(1))

    pause_draft(running_draft.id, now=at(1))
    with pytest.raises(InvalidState):
        pause_draft(running_draft.id, now=at(2))


def test_pause_refused_when_a_pick_lands_first(running_draft, monkeypatch):
    real_cas = draft_store.compare_and_set_status

    def pick_then_cas(*args, **kwargs):
        # Alice's pick commits after pause has read her clock
        make_pick(running_draft.id, ALICE, "opt_1", now=at(86000))
        return real_cas(*args, **kwargs)

    monkeypatch.setattr(draft_store, "compare_and_set_status", pick_then_cas)

    with pytest.raises(ConcurrencyConflict):
        pause_draft(running_draft.id, now=at(86000))

    draft = db.session.get(Draft, running_draft.id)
    timer = draft_store.get_timer(running_draft.id)
    assert draft.status == "in_progress"
    assert draft.current_pick == 1
    assert timer.paused_remaining_seconds is None
    assert timer.current_pick_deadline == at(86000 + 86400)


def test_picks_rejected_while_paused(running_draft):
    pause_draft(running_draft.id, now=at(1))
    with pytest.raises(InvalidState):
        make_pick(running_draft.id, ALICE, "opt_1", now=at(2))


def test_forced_completion_locks_the_draft(running_draft, sink):
    make_pick(running_draft.id, ALICE, "opt_1", now=at(10))
    sink.clear()

    draft = complete_draft(running_draft.id, now=at(20))
    assert draft.status == "completed"
    assert draft.completed_at == at(20)
    assert draft.current_pick == 1
    assert draft_store.get_timer(draft.id).current_pick_deadline is None
    assert sorted(pid for pid, _ in sink.of_type("draft_completed")) == [ALICE, BOB, CARA]

    with pytest.raises(InvalidState):
        make_pick(draft.id, BOB, "opt_2", now=at(30))
    with pytest.raises(InvalidState):
        complete_draft(draft.id, now=at(40))


def test_paused_draft_can_be_force_completed(running_draft):
    pause_draft(running_draft.id, now=at(5))
    draft = complete_draft(running_draft.id, now=at(6))
    assert draft.status == "completed"
    timer = draft_store.get_timer(draft.id)
    assert timer.paused_at is None
    assert timer.paused_remaining_seconds is None


def test_pending_draft_cannot_be_completed(pending_draft):
    with pytest.raises(InvalidState):
        complete_draft(pending_draft.id, now=T0)


def test_status_snapshot(running_draft):
    make_pick(running_draft.id, ALICE, "opt_3", now=at(100))

    status = get_status(running_draft.id, now=at(200))

    assert status["current_picker"] == BOB
    assert status["remaining_seconds"] == 86400 - 100
    assert status["is_timed_out"] is False
    assert [p["option_id"] for p in status["picks"]] == ["opt_3"]
    assert "opt_3" not in {o["id"] for o in status["available_options"]}
    assert len(status["available_options"]) == 8
    assert status["allocations"] == {str(ALICE): ["opt_3"], str(BOB): [], str(CARA): []}
    assert status["settings"]["pick_time_seconds"] == 86400


def test_status_while_paused_reports_snapshot(running_draft):
    pause_draft(running_draft.id, now=at(600))
    status = get_status(running_draft.id, now=at(5000))
    assert status["current_picker"] is None
    assert status["remaining_seconds"] == 86400 - 600
    assert status["is_timed_out"] is False


def test_seeded_order_is_used_at_creation(roster):
    draft = create_draft(7, 1, roster, ALICE, rng=random.Random(3))
    expected = list(roster)
    random.Random(3).shuffle(expected)
    assert draft.draft_order == expected


def test_keep_order_helper_is_identity(roster):
    draft = create_draft(8, 1, [CARA, ALICE], ALICE, rng=KeepOrder())
    assert draft.draft_order == [CARA, ALICE]
