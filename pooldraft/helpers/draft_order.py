import random


def generate_draft_order(participant_ids, rng=None) -> list:
    """
    Random initial draft order for a roster.

    rng: anything with .shuffle(list) (e.g. random.Random(seed) in tests).
    The input sequence is never mutated.
    """
    order = list(participant_ids or [])
    if len(set(order)) != len(order):
        raise ValueError("participant ids must be unique")

    (rng or random.SystemRandom()).shuffle(order)
    return order
