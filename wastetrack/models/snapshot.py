"""Stored collection model"""
from wastetrack import db
from wastetrack.utils.helpers import utcnow


class StoredCollection(db.Model):
    """
    One persisted collection ("jobs" or "workers") as a whole-collection snapshot

    payload maps record id -> full record. version is bumped on every write
    and compared on the next one, so a writer holding an outdated snapshot is
    rejected instead of overwriting someone else's update.
    """
    __tablename__ = 'stored_collections'

    name = db.Column(db.String(50), primary_key=True)
    payload = db.Column(db.JSON, nullable=False, default=dict)
    version = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f'<StoredCollection {self.name} v{self.version}>'
