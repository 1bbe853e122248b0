from pooldraft.extensions import db

class DraftTimer(db.Model):
    __tablename__ = "draft_timer"

    draft_id = db.Column(
        db.Integer,
        db.ForeignKey("draft.id", ondelete="CASCADE"),
        primary_key=True,
    )

    # Absolute deadline for the pick on the clock; NULL unless in_progress
    current_pick_deadline = db.Column(db.DateTime, nullable=True)

    # When the current turn began (shifted forward on resume by the paused time)
    turn_started_at = db.Column(db.DateTime, nullable=True)

    # Cleared whenever a new turn starts, so one reminder per turn
    last_reminded_at = db.Column(db.DateTime, nullable=True)

    # Only set while paused
    paused_at = db.Column(db.DateTime, nullable=True)
    paused_remaining_seconds = db.Column(db.Integer, nullable=True)

    def to_dict(self) -> dict:
        def iso(dt):
            return dt.isoformat() if dt is not None else None

        return {
            "current_pick_deadline": iso(self.current_pick_deadline),
            "turn_started_at": iso(self.turn_started_at),
            "last_reminded_at": iso(self.last_reminded_at),
            "paused_at": iso(self.paused_at),
            "paused_remaining_seconds": self.paused_remaining_seconds,
        }
