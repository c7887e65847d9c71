"""
Helper utilities
"""
import uuid
from datetime import datetime, timezone


def generate_unique_id():
    """
    Generate a unique UUID

    Returns:
        str: UUID string
    """
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


def to_iso(dt):
    """
    Serialize a datetime for storage

    Args:
        dt: datetime or None

    Returns:
        str: ISO-8601 string, or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def parse_iso(value):
    """
    Parse a stored ISO-8601 string back into an aware datetime

    Args:
        value (str): ISO string (a trailing 'Z' is accepted)

    Returns:
        datetime: Aware UTC datetime, or None if value is empty
    """
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_currency(amount, currency='INR'):
    """
    Format amount as currency

    Args:
        amount: Numeric amount
        currency (str): Currency code

    Returns:
        str: Formatted currency string
    """
    if isinstance(amount, (float, int)):
        if currency == 'INR':
            return f'₹{amount:,.0f}'
        return f'{amount:,.2f} {currency}'

    return str(amount)


def safe_float(value, default=None):
    """
    Safely convert value to float

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        float: Converted value or default
    """
    try:
        return float(value)
    except (ValueError, TypeError):
        return default
