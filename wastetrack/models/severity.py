"""
Severity tiers and the policy table keyed by them.

The same table drives the handling-window duration, the completion bonus and
the vehicle dispatched, so the three can never disagree.
"""
from collections import namedtuple


LOW = 'low'
MEDIUM = 'medium'
HIGH = 'high'

SEVERITY_TIERS = (LOW, MEDIUM, HIGH)

SMALL_VEHICLE = 'small'
LARGE_VEHICLE = 'large'

VEHICLE_TYPES = (SMALL_VEHICLE, LARGE_VEHICLE)

SeverityPolicy = namedtuple('SeverityPolicy', ['timer_minutes', 'bonus', 'vehicle'])

SEVERITY_POLICY = {
    LOW: SeverityPolicy(timer_minutes=60, bonus=200, vehicle=SMALL_VEHICLE),
    MEDIUM: SeverityPolicy(timer_minutes=120, bonus=300, vehicle=SMALL_VEHICLE),
    HIGH: SeverityPolicy(timer_minutes=240, bonus=500, vehicle=LARGE_VEHICLE),
}


def policy_for(severity):
    """
    Look up the policy row for a severity tier

    Raises:
        ValueError: if the tier is unknown
    """
    try:
        return SEVERITY_POLICY[severity]
    except KeyError:
        raise ValueError(f'Unknown severity tier: {severity!r}')


def timer_minutes_for(severity):
    return policy_for(severity).timer_minutes


def bonus_for(severity):
    return policy_for(severity).bonus


def vehicle_for(severity):
    return policy_for(severity).vehicle
