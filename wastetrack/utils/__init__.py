"""Utilities package"""
from .validators import validate_phone, validate_coordinates, allowed_image
from .helpers import generate_unique_id, utcnow, to_iso, parse_iso, format_currency, safe_float

__all__ = [
    'validate_phone',
    'validate_coordinates',
    'allowed_image',
    'generate_unique_id',
    'utcnow',
    'to_iso',
    'parse_iso',
    'format_currency',
    'safe_float',
]
