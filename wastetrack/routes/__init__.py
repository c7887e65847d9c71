"""
WasteTrack API Route Blueprints
"""
from .reports import reports_bp
from .jobs import jobs_bp
from .workers import workers_bp
from .zones import zones_bp

__all__ = [
    'reports_bp',
    'jobs_bp',
    'workers_bp',
    'zones_bp',
]
