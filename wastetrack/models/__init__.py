"""Domain records and the SQLAlchemy snapshot model"""
from .job import Job, Location
from .worker import Worker, EarningRecord
from .snapshot import StoredCollection

__all__ = [
    'Job',
    'Location',
    'Worker',
    'EarningRecord',
    'StoredCollection',
]
