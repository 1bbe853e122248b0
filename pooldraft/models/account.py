from pooldraft.extensions import db
from pooldraft.helpers.time import utcnow

class Account(db.Model):
    """A pool member. Draft orders and picks refer to Account.id."""
    __tablename__ = "account"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
