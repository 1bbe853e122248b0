import sys
from pooldraft.config import RESEND_API_KEY, RESEND_FROM_EMAIL
import resend

from flask import current_app

from pooldraft.extensions import db
from pooldraft.models import Account
from pooldraft.helpers.time import format_remaining, utc_to_local

if RESEND_API_KEY:
    resend.api_key = RESEND_API_KEY

SUBJECTS = {
    "draft_started": "The draft has started",
    "your_turn": "It's your turn to pick!",
    "reminder": "Reminder: your pick is due soon",
    "pick_skipped": "Your pick was skipped",
    "draft_completed": "The draft is complete",
}

def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

def _draft_room_url(draft_id) -> str:
    base = (current_app.config.get("DRAFT_ROOM_BASE_URL") or "").rstrip("/")
    return f"{base}/drafts/{draft_id}"

def render_draft_email(event_type: str, payload: dict) -> str:
    """Small inline HTML body for a draft notification."""
    url = _draft_room_url(payload.get("draft_id"))

    if event_type == "your_turn":
        deadline = utc_to_local(payload.get("deadline"), current_app.config.get("DRAFT_TIMEZONE"))
        when = deadline.strftime("%d %b %Y, %I:%M %p %Z") if deadline else "soon"
        body = (
            f"<p>It's your turn to make pick #{payload.get('pick_number')} "
            f"(round {payload.get('round')}).</p>"
            f"<p>Please pick before <strong>{when}</strong>. "
            "If you don't pick in time, your pick will be automatically skipped.</p>"
        )
    elif event_type == "reminder":
        left = format_remaining(payload.get("remaining_seconds"))
        body = f"<p>You have <strong>{left}</strong> left to make your pick.</p>"
    elif event_type == "pick_skipped":
        body = f"<p>Time ran out on pick #{payload.get('pick_number')}, so it was skipped.</p>"
    elif event_type == "draft_completed":
        body = "<p>All picks are in. The draft is complete.</p>"
    else:
        body = "<p>The draft is under way.</p>"

    return f"""
      <div style="font-family: system-ui, -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; padding: 16px;">
        {body}
        <p style="margin: 12px 0;">
          <a href="{url}" style="display: inline-block; padding: 10px 14px; border-radius: 10px; background: #10b981; color: #fff; text-decoration: none;">
            Go to the draft room
          </a>
        </p>
      </div>
    """


class EmailNotificationSink:
    """
    Delivers draft notifications by email via Resend.

    - If RESEND_API_KEY is not set, just log to stderr (local dev).
    """

    def deliver(self, participant_id, event_type: str, payload: dict) -> bool:
        acct = db.session.get(Account, participant_id)
        email = normalize_email(acct.email if acct else None)
        if not email:
            current_app.logger.warning(
                "draft notification %s: no email for participant %s", event_type, participant_id
            )
            return False

        subject = SUBJECTS.get(event_type, "Draft update")

        # Dev / fallback path
        if not RESEND_API_KEY:
            print(f"[DRAFT {event_type.upper()} - DEV ONLY] {email} -> {subject}", file=sys.stderr)
            return True

        try:
            params = {
                "from": RESEND_FROM_EMAIL,
                "to": [email],
                "subject": subject,
                "html": render_draft_email(event_type, payload),
            }
            resend.Emails.send(params)
            print(f"[DRAFT {event_type.upper()}] Sent to {email}", file=sys.stderr)
            return True
        except Exception as e:
            # Don't fail the draft if email fails; just log it.
            print(f"[DRAFT {event_type.upper()}] Failed to send via Resend: {e}", file=sys.stderr)
            return False
