from typing import Optional


def round_for_pick(pick_index: int, participant_count: int) -> int:
    """1-based round for a 0-based pick index."""
    return pick_index // participant_count + 1


def picker_for_pick(draft_order: list, pick_index: int):
    """
    Snake order: odd rounds run forward through draft_order, even rounds
    run it backwards, so the last picker of a round also opens the next one.
    """
    n = len(draft_order)
    if n == 0:
        return None

    slot = pick_index % n
    if round_for_pick(pick_index, n) % 2 == 1:
        return draft_order[slot]
    return draft_order[n - 1 - slot]


def is_round_boundary(pick_index: int, participant_count: int) -> bool:
    """True when pick_index is the first pick of a round after round 1."""
    return participant_count > 0 and pick_index > 0 and pick_index % participant_count == 0


def whose_turn(draft) -> Optional[int]:
    """
    Participant on the clock, derived from current_pick alone.
    None unless the draft is in progress with picks remaining.
    """
    if draft is None or draft.status != "in_progress":
        return None
    if draft.current_pick >= draft.total_picks:
        return None

    return picker_for_pick(draft.draft_order, draft.current_pick)
