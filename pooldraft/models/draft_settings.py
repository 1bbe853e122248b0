from pooldraft.extensions import db
from pooldraft.helpers.time import utcnow

class DraftSettings(db.Model):
    __tablename__ = "draft_settings"

    id = db.Column(db.Integer, primary_key=True)

    pool_id = db.Column(db.Integer, nullable=False, unique=True, index=True)

    pick_time_seconds = db.Column(db.Integer, nullable=False, default=86400)

    # Send a reminder once the deadline is this close
    reminder_minutes = db.Column(db.Integer, nullable=False, default=720)

    enable_auto_skip = db.Column(db.Boolean, nullable=False, default=True)

    # Measured from the start of the turn; anything beyond pick_time_seconds
    # is grace after the deadline before the skip fires
    auto_skip_after_seconds = db.Column(db.Integer, nullable=False, default=86400)

    # Extra time added to the first deadline of each new round
    break_between_rounds_seconds = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def auto_skip_grace_seconds(self) -> int:
        return max(0, (self.auto_skip_after_seconds or 0) - (self.pick_time_seconds or 0))

    def to_dict(self) -> dict:
        return {
            "pool_id": self.pool_id,
            "pick_time_seconds": self.pick_time_seconds,
            "reminder_minutes": self.reminder_minutes,
            "enable_auto_skip": self.enable_auto_skip,
            "auto_skip_after_seconds": self.auto_skip_after_seconds,
            "break_between_rounds_seconds": self.break_between_rounds_seconds,
        }
