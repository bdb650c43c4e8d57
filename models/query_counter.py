from datetime import datetime
from models.db import db

class QueryCounter(db.Model):
    __tablename__ = "query_counters"

    id = db.Column(db.Integer, primary_key=True)

    # user id, chat session id or "anonymous"
    identifier = db.Column(db.String(128), nullable=False, index=True)
    day = db.Column(db.Date, nullable=False, index=True)
    count = db.Column(db.Integer, default=0, nullable=False)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("identifier", "day", name="uq_query_counter_identifier_day"),
    )
