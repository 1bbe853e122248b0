from sqlalchemy import UniqueConstraint, text
from pooldraft.extensions import db
from pooldraft.helpers.time import utcnow

# option_id recorded for a missed / forced-skip turn
SKIPPED_OPTION_ID = "skipped"

class DraftPick(db.Model):
    __tablename__ = "draft_pick"

    id = db.Column(db.Integer, primary_key=True)

    draft_id = db.Column(
        db.Integer,
        db.ForeignKey("draft.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    round = db.Column(db.Integer, nullable=False)

    # Overall pick number, 1-based and contiguous
    pick_number = db.Column(db.Integer, nullable=False)

    participant_id = db.Column(db.Integer, nullable=False, index=True)

    # PoolOption.id, or SKIPPED_OPTION_ID
    option_id = db.Column(db.String(64), nullable=False, index=True)

    picked_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Seconds the participant had the turn (paused time excluded)
    time_taken = db.Column(db.Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("draft_id", "pick_number", name="uq_draft_pick_number"),
        UniqueConstraint("draft_id", "round", "pick_number", name="uq_draft_round_pick"),
        # An option can go once per draft; any number of skips are allowed
        db.Index(
            "uq_draft_pick_option",
            "draft_id",
            "option_id",
            unique=True,
            sqlite_where=text(f"option_id != '{SKIPPED_OPTION_ID}'"),
            postgresql_where=text(f"option_id != '{SKIPPED_OPTION_ID}'"),
        ),
    )

    @property
    def is_skip(self) -> bool:
        return self.option_id == SKIPPED_OPTION_ID

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "draft_id": self.draft_id,
            "round": self.round,
            "pick_number": self.pick_number,
            "participant_id": self.participant_id,
            "option_id": self.option_id,
            "is_skip": self.is_skip,
            "picked_at": self.picked_at.isoformat() if self.picked_at else None,
            "time_taken": self.time_taken,
        }
