"""
Pytest configuration and fixtures for WasteTrack backend tests
"""
import io
import os
from datetime import datetime, timedelta, timezone

import pytest
from PIL import Image

from wastetrack import create_app, db
from wastetrack.models.job import Location
from wastetrack.models.severity import vehicle_for, MEDIUM
from wastetrack.models.worker import SENIOR_WORKER
from wastetrack.services import Services, InMemoryStore, get_services
from wastetrack.services.timer import ReleaseTimer


START = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock standing in for utcnow"""

    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


class RecordingReleaseTimer(ReleaseTimer):
    """Keeps armed releases so tests can fire them by hand"""

    def __init__(self):
        self.armed = {}
        self.disarmed = []

    def arm(self, job_id, worker_id, run_at, action):
        self.armed[job_id] = (worker_id, run_at, action)

    def disarm(self, job_id):
        self.disarmed.append(job_id)
        self.armed.pop(job_id, None)

    def fire(self, job_id):
        worker_id, _, action = self.armed.pop(job_id)
        return action(job_id, worker_id)


def _solid_image(shade, size=(64, 64), fmt='PNG'):
    buf = io.BytesIO()
    Image.new('RGB', size, (shade, shade, shade)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_image():
    """Factory for solid-colour test images of a given grey level, as encoded bytes"""
    return _solid_image


@pytest.fixture(scope='function')
def app():
    """Create application instance for testing"""
    os.environ['FLASK_ENV'] = 'testing'
    app = create_app('testing')

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def app_services(app):
    """Services wired into the test app (SQL store)"""
    return get_services()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def release_timer():
    return RecordingReleaseTimer()


@pytest.fixture
def services(clock, release_timer):
    """Services over an in-memory store, a fake clock and a recording release timer"""
    return Services(InMemoryStore(), release_timer=release_timer, clock=clock, lock_timeout=5.0)


@pytest.fixture
def engine(services):
    return services.engine


@pytest.fixture
def ledger(services):
    return services.ledger


@pytest.fixture
def registry(services):
    return services.registry


@pytest.fixture
def job_factory(ledger, clock):
    """Factory for creating pending jobs of a given severity"""
    counter = {'n': 0}

    def _create_job(severity=MEDIUM, **kwargs):
        counter['n'] += 1
        defaults = {
            'id': f'job-{counter["n"]}',
            'reporter_name': 'Anita',
            'reporter_contact': '9876543210',
            'location': Location(lat=13.0827, lng=80.2707, address='12 Marina Rd'),
            'description': 'Construction debris on the footpath',
            'image_url': '/uploads/test.png',
            'zone': 'North',
            'severity': severity,
            'vehicle': vehicle_for(severity),
            'reported_at': clock(),
        }
        defaults.update(kwargs)
        return ledger.create(defaults)

    return _create_job


@pytest.fixture
def worker_a(registry):
    return registry.provision('Worker 1', 'North', worker_id='worker-1')


@pytest.fixture
def worker_b(registry):
    return registry.provision('Worker 2', 'North', worker_id='worker-2')


@pytest.fixture
def senior_worker(registry):
    return registry.provision('Senior Worker 1', 'North', role=SENIOR_WORKER, worker_id='senior-1')
