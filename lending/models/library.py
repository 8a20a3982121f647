from lending.utils.clock import utcnow
from lending.extensions import db


class Library(db.Model):
    __tablename__ = "libraries"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    code = db.Column(db.String(32), unique=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
