from sqlalchemy import UniqueConstraint
from pooldraft.extensions import db

class PoolOption(db.Model):
    """One entry of a pool's resource catalog (a team, a player, a horse...)."""
    __tablename__ = "pool_option"

    id = db.Column(db.String(64), primary_key=True)

    pool_id = db.Column(db.Integer, nullable=False, index=True)

    name = db.Column(db.String(160), nullable=False)
    abbreviation = db.Column(db.String(16), nullable=True)

    __table_args__ = (
        UniqueConstraint("pool_id", "name", name="uq_pool_option_name"),
    )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "abbreviation": self.abbreviation}
