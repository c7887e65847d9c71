"""Job model"""
from dataclasses import dataclass, replace

from wastetrack.utils.helpers import to_iso, parse_iso
from .severity import SEVERITY_TIERS, VEHICLE_TYPES, timer_minutes_for


PENDING = 'pending'
ACCEPTED = 'accepted'
COMPLETED = 'completed'

JOB_STATUSES = (PENDING, ACCEPTED, COMPLETED)

ZONES = ('North', 'Central', 'South')


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float
    address: str

    def to_dict(self):
        return {'lat': self.lat, 'lng': self.lng, 'address': self.address}

    @classmethod
    def from_dict(cls, data):
        return cls(lat=data['lat'], lng=data['lng'], address=data['address'])


@dataclass(frozen=True)
class Job:
    """
    Job model - one reported dump site and its handling

    Reporter facts and classification are fixed at creation. Lifecycle fields
    only move forward: pending -> accepted -> completed.
    """
    id: str
    reporter_name: str
    location: Location
    description: str
    image_url: str
    zone: str
    severity: str
    vehicle: str
    reported_at: object
    reporter_contact: str = None
    confidence: float = None
    estimated_eta: int = None

    status: str = PENDING
    assigned_to: str = None
    assigned_worker_name: str = None
    accepted_at: object = None
    completed_at: object = None
    timer_duration: int = None
    timer_started_at: object = None
    bonus_paid: bool = False

    def __post_init__(self):
        if self.severity not in SEVERITY_TIERS:
            raise ValueError(f'Invalid severity: {self.severity!r}')
        if self.vehicle not in VEHICLE_TYPES:
            raise ValueError(f'Invalid vehicle: {self.vehicle!r}')
        if self.status not in JOB_STATUSES:
            raise ValueError(f'Invalid status: {self.status!r}')

    def __repr__(self):
        return f'<Job {self.id} - {self.status}>'

    def accepted_by(self, worker, now):
        """
        Return a copy of this job accepted by worker at now

        The handling window is fixed here from the severity tier and never
        changes afterwards.
        """
        return replace(
            self,
            status=ACCEPTED,
            assigned_to=worker.id,
            assigned_worker_name=worker.name,
            accepted_at=now,
            timer_duration=timer_minutes_for(self.severity),
            timer_started_at=now,
        )

    def completed(self, now):
        """Return a completed copy of this job with its bonus marked paid"""
        return replace(self, status=COMPLETED, completed_at=now, bonus_paid=True)

    def lifecycle_consistent(self):
        """
        Check the lifecycle invariant

        Returns:
            bool: True when assignment, timer and completion fields are
            present exactly for the statuses that require them
        """
        assigned = (
            self.assigned_to is not None
            and self.accepted_at is not None
            and self.timer_duration is not None
            and self.timer_started_at is not None
        )
        unassigned = (
            self.assigned_to is None
            and self.accepted_at is None
            and self.timer_duration is None
            and self.timer_started_at is None
        )
        if self.status == PENDING:
            return unassigned and self.completed_at is None
        if self.status == ACCEPTED:
            return assigned and self.completed_at is None
        return assigned and self.completed_at is not None

    def to_dict(self):
        return {
            'id': self.id,
            'reporter_name': self.reporter_name,
            'reporter_contact': self.reporter_contact,
            'location': self.location.to_dict(),
            'description': self.description,
            'image_url': self.image_url,
            'zone': self.zone,
            'severity': self.severity,
            'vehicle': self.vehicle,
            'confidence': self.confidence,
            'estimated_eta': self.estimated_eta,
            'reported_at': to_iso(self.reported_at),
            'status': self.status,
            'assigned_to': self.assigned_to,
            'assigned_worker_name': self.assigned_worker_name,
            'accepted_at': to_iso(self.accepted_at),
            'completed_at': to_iso(self.completed_at),
            'timer_duration': self.timer_duration,
            'timer_started_at': to_iso(self.timer_started_at),
            'bonus_paid': self.bonus_paid,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            reporter_name=data['reporter_name'],
            reporter_contact=data.get('reporter_contact'),
            location=Location.from_dict(data['location']),
            description=data['description'],
            image_url=data['image_url'],
            zone=data['zone'],
            severity=data['severity'],
            vehicle=data['vehicle'],
            confidence=data.get('confidence'),
            estimated_eta=data.get('estimated_eta'),
            reported_at=parse_iso(data['reported_at']),
            status=data.get('status', PENDING),
            assigned_to=data.get('assigned_to'),
            assigned_worker_name=data.get('assigned_worker_name'),
            accepted_at=parse_iso(data.get('accepted_at')),
            completed_at=parse_iso(data.get('completed_at')),
            timer_duration=data.get('timer_duration'),
            timer_started_at=parse_iso(data.get('timer_started_at')),
            bonus_paid=data.get('bonus_paid', False),
        )
