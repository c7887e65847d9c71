from flask import Blueprint, jsonify

from wastetrack.models.job import ZONES
from wastetrack.services import get_services
from wastetrack.services.stats import zone_stats
from .serializers import serialize_job

zones_bp = Blueprint('zones', __name__)


def _unknown_zone(zone):
    return jsonify({'error': f'Unknown zone {zone!r}. Must be one of: {", ".join(ZONES)}'}), 404


@zones_bp.route('/<zone>/pending', methods=['GET'])
def pending_jobs(zone):
    """
    Open jobs workers of a zone can pick up
    GET /api/zones/:zone/pending
    """
    if zone not in ZONES:
        return _unknown_zone(zone)

    services = get_services()
    now = services.clock()
    jobs = [serialize_job(job, now) for job in services.engine.pending_in_zone(zone)]
    return jsonify({'zone': zone, 'jobs': jobs, 'total': len(jobs)}), 200


@zones_bp.route('/<zone>/stats', methods=['GET'])
def get_zone_stats(zone):
    """
    Supervisor overview of a zone
    GET /api/zones/:zone/stats
    """
    if zone not in ZONES:
        return _unknown_zone(zone)

    services = get_services()
    return jsonify(zone_stats(zone, services.ledger.all(), services.registry.all())), 200
