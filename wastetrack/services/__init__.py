"""
Core services and the container wiring them together
"""
from flask import current_app

from wastetrack.utils.helpers import utcnow
from .classifier import BrightnessClassifier, Classification, ClassifierError, ImageClassifier
from .engine import AssignmentEngine
from .intake import InvalidReportError, submit_report
from .ledger import JobLedger
from .locks import KeyedLocks
from .registry import UnknownWorkerError, WorkerRegistry
from .store import InMemoryStore, SqlAlchemyStore, StoreConflictError, StoreError
from .timer import NullReleaseTimer, SchedulerReleaseTimer, project

EXTENSION_KEY = 'wastetrack'


class Services:
    """
    One store, the two registries on top of it, and the engine driving them

    Args:
        store (CollectionStore): Persistence for jobs and workers
        release_timer (ReleaseTimer): Deferred release scheduling
        classifier (ImageClassifier): Report image classifier
        clock (callable): Current aware UTC datetime
        lock_timeout (float): Seconds to wait for a record lock
        max_retries (int): Attempts per operation on version conflicts
    """

    def __init__(self, store, release_timer=None, classifier=None, clock=utcnow,
                 lock_timeout=5.0, max_retries=3):
        self.store = store
        self.clock = clock
        self.ledger = JobLedger(store)
        self.registry = WorkerRegistry(store)
        self.classifier = classifier or BrightnessClassifier()
        self.engine = AssignmentEngine(
            self.ledger,
            self.registry,
            release_timer=release_timer or NullReleaseTimer(),
            clock=clock,
            locks=KeyedLocks(timeout=lock_timeout),
            max_retries=max_retries,
        )

    def submit_report(self, fields, image_bytes):
        return submit_report(self.ledger, self.classifier, fields, image_bytes)


def get_services():
    """Services of the current Flask app"""
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    'Services',
    'get_services',
    'AssignmentEngine',
    'JobLedger',
    'WorkerRegistry',
    'UnknownWorkerError',
    'InMemoryStore',
    'SqlAlchemyStore',
    'StoreError',
    'StoreConflictError',
    'ImageClassifier',
    'BrightnessClassifier',
    'Classification',
    'ClassifierError',
    'InvalidReportError',
    'NullReleaseTimer',
    'SchedulerReleaseTimer',
    'project',
]
