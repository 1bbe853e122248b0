import hmac

from flask import Blueprint, current_app, jsonify, request, session

from pooldraft.helpers import draft_store
from pooldraft.helpers.drafts import (
    complete_draft,
    create_draft,
    get_status,
    pause_draft,
    resume_draft,
    start_draft,
)
from pooldraft.helpers.draft_status_cache import get_cached_status, set_cached_status
from pooldraft.helpers.errors import (
    ConcurrencyConflict,
    DraftError,
    InvalidState,
    NotFound,
    NotYourTurn,
    ResourceAlreadyTaken,
)
from pooldraft.helpers.picks import force_skip, make_pick, skip_turn
from pooldraft.helpers.timeouts import check_all_timeouts, check_and_handle_timeout

drafts_bp = Blueprint("drafts", __name__)

ERROR_STATUS = {
    NotFound: 404,
    InvalidState: 409,
    NotYourTurn: 403,
    ResourceAlreadyTaken: 409,
    ConcurrencyConflict: 409,
}


@drafts_bp.errorhandler(DraftError)
def handle_draft_error(e):
    status = ERROR_STATUS.get(type(e), 400)
    body = {"ok": False, "error": e.code, "message": str(e)}
    if e.retryable:
        body["retry"] = True
    return jsonify(body), status


@drafts_bp.errorhandler(ValueError)
def handle_value_error(e):
    return jsonify({"ok": False, "error": "bad_request", "message": str(e)}), 400


def _viewer_id():
    raw = session.get("account_id")
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def _require_admin():
    if not session.get("admin_ok", False):
        return jsonify({"ok": False, "error": "forbidden", "message": "Admin only"}), 403
    return None


@drafts_bp.route("/api/drafts", methods=["POST"])
def api_create_draft():
    """
    Create a pending draft for a pool.

    Payload:
      {
        "pool_id": 7,
        "total_rounds": 3,
        "participant_ids": [12, 15, 19]
      }
    """
    denied = _require_admin()
    if denied:
        return denied

    data = request.get_json(force=True, silent=True) or {}

    try:
        pool_id = int(data.get("pool_id", 0))
    except (TypeError, ValueError):
        return jsonify({"ok": False, "error": "bad_request", "message": "Invalid pool_id"}), 400
    if pool_id <= 0:
        return jsonify({"ok": False, "error": "bad_request", "message": "Invalid pool_id"}), 400

    raw_ids = data.get("participant_ids") or []
    if not isinstance(raw_ids, list):
        return jsonify({"ok": False, "error": "bad_request", "message": "participant_ids must be a list"}), 400
    try:
        participant_ids = [int(x) for x in raw_ids]
    except (TypeError, ValueError):
        return jsonify({"ok": False, "error": "bad_request", "message": "Invalid participant id"}), 400

    draft = create_draft(pool_id, data.get("total_rounds"), participant_ids, _viewer_id())
    return jsonify({"ok": True, "draft": draft.to_dict()}), 201


@drafts_bp.route("/api/drafts/<int:draft_id>/status")
def api_draft_status(draft_id):
    payload = get_cached_status(draft_id)
    if payload is None:
        payload = get_status(draft_id)
        set_cached_status(draft_id, payload)

    resp = jsonify({"ok": True, **payload})
    resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    return resp


@drafts_bp.route("/api/drafts/<int:draft_id>/pick", methods=["POST"])
def api_make_pick(draft_id):
    """
    Pick for the logged-in participant.

    Payload: {"option_id": "opt_lakers"}  or  {"skip": true}
    """
    viewer_id = _viewer_id()
    if not viewer_id:
        return jsonify({"ok": False, "error": "unauthorized", "message": "Login required"}), 401

    data = request.get_json(force=True, silent=True) or {}

    if data.get("skip"):
        pick = skip_turn(draft_id, viewer_id)
    else:
        option_id = data.get("option_id")
        if not option_id:
            return jsonify({"ok": False, "error": "bad_request", "message": "Missing option_id"}), 400
        pick = make_pick(draft_id, viewer_id, str(option_id))

    return jsonify({"ok": True, "pick": pick.to_dict()})


@drafts_bp.route("/api/drafts/<int:draft_id>/<action>", methods=["POST"])
def api_draft_lifecycle(draft_id, action):
    denied = _require_admin()
    if denied:
        return denied

    if action == "skip":
        pick = force_skip(draft_id)
        return jsonify({"ok": True, "pick": pick.to_dict()})

    actions = {
        "start": start_draft,
        "pause": pause_draft,
        "resume": resume_draft,
        "complete": complete_draft,
    }
    handler = actions.get(action)
    if not handler:
        return jsonify({"ok": False, "error": "not_found", "message": "Unknown action"}), 404

    draft = handler(draft_id)
    return jsonify({"ok": True, "draft": draft.to_dict()})


@drafts_bp.route("/api/drafts/<int:draft_id>/settings", methods=["GET", "PATCH"])
def api_draft_settings(draft_id):
    draft = draft_store.get_draft_or_raise(draft_id)

    if request.method == "GET":
        settings = draft_store.get_settings(draft.pool_id)
        return jsonify({"ok": True, "settings": settings.to_dict() if settings else None})

    denied = _require_admin()
    if denied:
        return denied

    data = request.get_json(force=True, silent=True) or {}
    settings = draft_store.update_settings(draft.pool_id, **data)
    return jsonify({"ok": True, "settings": settings.to_dict()})


def _cron_allowed() -> bool:
    secret = current_app.config.get("DRAFT_CRON_SECRET")
    if not secret:
        return True
    supplied = request.headers.get("X-Cron-Secret", "")
    return hmac.compare_digest(supplied, secret)


@drafts_bp.route("/api/drafts/check-timeouts", methods=["POST"])
def api_check_timeouts():
    """Hit by the external scheduler; checks every running draft."""
    if not _cron_allowed():
        return jsonify({"ok": False, "error": "forbidden", "message": "Bad cron secret"}), 403

    results = check_all_timeouts()
    return jsonify({"ok": True, "results": results})


@drafts_bp.route("/api/drafts/<int:draft_id>/check-timeout", methods=["POST"])
def api_check_timeout(draft_id):
    if not _cron_allowed():
        return jsonify({"ok": False, "error": "forbidden", "message": "Bad cron secret"}), 403

    return jsonify({"ok": True, **check_and_handle_timeout(draft_id)})
