import time

from flask import current_app

# --- Draft status cache ---
# The status payload is what the draft room and the standings broadcaster
# poll; every committed state change must invalidate its entry.

DEFAULT_STATUS_CACHE_TTL = 5.0  # seconds

# key: draft_id
# value: (payload, timestamp)
DRAFT_STATUS_CACHE: dict = {}


def _ttl() -> float:
    try:
        return float(current_app.config.get("DRAFT_STATUS_CACHE_TTL", DEFAULT_STATUS_CACHE_TTL))
    except RuntimeError:
        return DEFAULT_STATUS_CACHE_TTL


def get_cached_status(draft_id):
    """
    Return cached status payload if still valid.
    """
    entry = DRAFT_STATUS_CACHE.get(draft_id)
    if not entry:
        return None

    payload, timestamp = entry
    if (time.time() - timestamp) > _ttl():
        DRAFT_STATUS_CACHE.pop(draft_id, None)
        return None

    return payload


def set_cached_status(draft_id, payload):
    """
    Store status payload in cache.
    """
    if _ttl() <= 0:
        return
    DRAFT_STATUS_CACHE[draft_id] = (payload, time.time())


def invalidate_draft_status(draft_id=None):
    """Drop one draft's entry, or everything when draft_id is None."""
    if draft_id is None:
        DRAFT_STATUS_CACHE.clear()
        return
    DRAFT_STATUS_CACHE.pop(draft_id, None)
