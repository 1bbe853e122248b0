"""
Draft errors.

Every validation failure in the draft helpers is raised as one of these so
routes can map them to a response without string matching.
"""


class DraftError(Exception):
    """Base exception for all draft-related errors"""
    code = "draft_error"
    retryable = False


class NotFound(DraftError):
    """Draft (or catalog option) doesn't exist"""
    code = "not_found"


class InvalidState(DraftError):
    """Operation not allowed in the draft's current status"""
    code = "invalid_state"


class NotYourTurn(DraftError):
    """Actor is not the participant on the clock"""
    code = "not_your_turn"


class ResourceAlreadyTaken(DraftError):
    """Option was already picked earlier in this draft"""
    code = "resource_already_taken"


class ConcurrencyConflict(DraftError):
    """Lost the race to advance current_pick; re-fetch and retry"""
    code = "concurrency_conflict"
    retryable = True
