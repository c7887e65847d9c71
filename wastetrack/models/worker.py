"""Worker and earning record models"""
from collections import namedtuple
from dataclasses import dataclass, field, replace
from datetime import date

from wastetrack.utils.helpers import to_iso, parse_iso


FREE = 'free'
BUSY = 'busy'

AVAILABILITY_STATES = (FREE, BUSY)

WORKER = 'worker'
SENIOR_WORKER = 'senior-worker'

WORKER_ROLES = (WORKER, SENIOR_WORKER)

BONUS = 'bonus'
SALARY = 'salary'

EARNING_KINDS = (BONUS, SALARY)

# Role tier only affects these constants, never the lifecycle rules
RoleProfile = namedtuple('RoleProfile', ['salary', 'daily_quota', 'bonus_rate'])

ROLE_PROFILES = {
    WORKER: RoleProfile(salary=15000, daily_quota=5, bonus_rate=200),
    SENIOR_WORKER: RoleProfile(salary=20000, daily_quota=4, bonus_rate=300),
}


@dataclass(frozen=True)
class EarningRecord:
    """Append-only ledger entry posted when a job is completed"""
    date: object
    job_id: str
    amount: int
    kind: str = BONUS

    def __post_init__(self):
        if self.kind not in EARNING_KINDS:
            raise ValueError(f'Invalid earning kind: {self.kind!r}')

    def to_dict(self):
        return {
            'date': to_iso(self.date),
            'job_id': self.job_id,
            'amount': self.amount,
            'kind': self.kind,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            date=parse_iso(data['date']),
            job_id=data['job_id'],
            amount=data['amount'],
            kind=data.get('kind', BONUS),
        )


@dataclass(frozen=True)
class Worker:
    """
    Worker model - one dispatchable field agent
    """
    id: str
    name: str
    zone: str
    role: str = WORKER
    availability: str = FREE
    completed_today: int = 0
    lifetime_completed: int = 0
    earnings: tuple = field(default_factory=tuple)
    counters_date: object = None

    def __post_init__(self):
        if self.role not in WORKER_ROLES:
            raise ValueError(f'Invalid role: {self.role!r}')
        if self.availability not in AVAILABILITY_STATES:
            raise ValueError(f'Invalid availability: {self.availability!r}')

    def __repr__(self):
        return f'<Worker {self.id} - {self.availability}>'

    @property
    def profile(self):
        return ROLE_PROFILES[self.role]

    @property
    def is_free(self):
        return self.availability == FREE

    @property
    def bonus_total(self):
        return sum(e.amount for e in self.earnings if e.kind == BONUS)

    def completed_on(self, day):
        """Completions counted for day; zero when the counter belongs to another day"""
        if self.counters_date != day:
            return 0
        return self.completed_today

    def with_availability(self, state):
        if state not in AVAILABILITY_STATES:
            raise ValueError(f'Invalid availability: {state!r}')
        return replace(self, availability=state)

    def with_completion(self, earning):
        """
        Return a copy with both completion counters bumped and the earning appended

        completed_today restarts from zero when the earning falls on a later
        day than the one the counter currently refers to.
        """
        day = earning.date.date()
        completed_today = self.completed_today
        if self.counters_date is not None and self.counters_date != day:
            completed_today = 0
        return replace(
            self,
            completed_today=completed_today + 1,
            lifetime_completed=self.lifetime_completed + 1,
            earnings=self.earnings + (earning,),
            counters_date=day,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'zone': self.zone,
            'role': self.role,
            'availability': self.availability,
            'completed_today': self.completed_today,
            'lifetime_completed': self.lifetime_completed,
            'earnings': [e.to_dict() for e in self.earnings],
            'counters_date': self.counters_date.isoformat() if self.counters_date else None,
        }

    @classmethod
    def from_dict(cls, data):
        counters_date = data.get('counters_date')
        return cls(
            id=data['id'],
            name=data['name'],
            zone=data['zone'],
            role=data.get('role', WORKER),
            availability=data.get('availability', FREE),
            completed_today=data.get('completed_today', 0),
            lifetime_completed=data.get('lifetime_completed', 0),
            earnings=tuple(EarningRecord.from_dict(e) for e in data.get('earnings', [])),
            counters_date=date.fromisoformat(counters_date) if counters_date else None,
        )
