from lending.utils.clock import utcnow
from lending.constants import Role
from lending.extensions import db


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=True)
    role = db.Column(db.String(20), nullable=False, default=Role.USER.value)

    # None means "use MAX_BORROW_LIMIT from config"
    max_borrow_limit = db.Column(db.Integer, nullable=True)

    # bumped at the start of every borrow request; the row write serializes
    # concurrent requests from the same user
    borrow_seq = db.Column(db.Integer, nullable=False, default=0)

    library_id = db.Column(db.Integer, db.ForeignKey("libraries.id"), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
