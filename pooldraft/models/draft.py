import json

from pooldraft.extensions import db
from pooldraft.helpers.time import utcnow

class Draft(db.Model):
    __tablename__ = "draft"

    id = db.Column(db.Integer, primary_key=True)

    # One draft per pool
    pool_id = db.Column(db.Integer, nullable=False, unique=True, index=True)

    # pending -> in_progress <-> paused -> completed
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)

    # Number of picks made so far (0-based index of the pick on the clock).
    # Only ever moved forward by the conditional UPDATE in draft_store.
    current_pick = db.Column(db.Integer, nullable=False, default=0)
    current_round = db.Column(db.Integer, nullable=False, default=1)

    total_rounds = db.Column(db.Integer, nullable=False)
    total_picks = db.Column(db.Integer, nullable=False)

    # JSON list of account ids, fixed at creation
    draft_order_json = db.Column(db.Text, nullable=False)

    created_by = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    @property
    def draft_order(self) -> list:
        return json.loads(self.draft_order_json or "[]")

    @property
    def participant_count(self) -> int:
        return len(self.draft_order)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pool_id": self.pool_id,
            "status": self.status,
            "current_pick": self.current_pick,
            "current_round": self.current_round,
            "total_rounds": self.total_rounds,
            "total_picks": self.total_picks,
            "draft_order": self.draft_order,
            "created_by": self.created_by,
            "created_at": _iso(self.created_at),
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
        }


def _iso(dt):
    return dt.isoformat() if dt is not None else None
