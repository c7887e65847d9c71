"""
Worker provisioning and worker dashboards
"""
from flask import Blueprint, request, jsonify

from wastetrack.models.job import ZONES
from wastetrack.models.worker import WORKER, WORKER_ROLES
from wastetrack.sanitize import sanitize_string
from wastetrack.services import get_services
from wastetrack.services.stats import earnings_summary
from .serializers import serialize_job, serialize_worker

workers_bp = Blueprint('workers', __name__)


@workers_bp.route('', methods=['POST'])
def provision_worker():
    """
    Register a worker
    POST /api/workers
    Body: {
        "name": "Ravi",
        "zone": "North",
        "role": "worker" | "senior-worker",
        "id": "worker-7"            (optional)
    }
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'No data provided'}), 400

    name = sanitize_string(data.get('name'), max_length=100)
    zone = data.get('zone')
    role = data.get('role') or WORKER

    if not name:
        return jsonify({'error': 'name is required'}), 400
    if zone not in ZONES:
        return jsonify({'error': f'Invalid zone. Must be one of: {", ".join(ZONES)}'}), 400
    if role not in WORKER_ROLES:
        return jsonify({'error': f'Invalid role. Must be one of: {", ".join(WORKER_ROLES)}'}), 400

    services = get_services()
    worker_id = data.get('id')
    if worker_id and services.registry.find(worker_id):
        return jsonify({'error': 'Worker already exists'}), 409

    worker = services.registry.provision(name, zone, role=role, worker_id=worker_id)
    worker_data = serialize_worker(worker, services.clock().date())
    return jsonify({'message': 'Worker registered', 'worker': worker_data}), 201


@workers_bp.route('/<worker_id>', methods=['GET'])
def get_worker(worker_id):
    """
    GET /api/workers/:id
    """
    services = get_services()
    worker = services.registry.find(worker_id)
    if not worker:
        return jsonify({'error': 'Worker not found'}), 404

    return jsonify({'worker': serialize_worker(worker, services.clock().date())}), 200


@workers_bp.route('/<worker_id>/jobs', methods=['GET'])
def get_active_jobs(worker_id):
    """
    Jobs the worker currently holds
    GET /api/workers/:id/jobs
    """
    services = get_services()
    if not services.registry.find(worker_id):
        return jsonify({'error': 'Worker not found'}), 404

    now = services.clock()
    jobs = [serialize_job(job, now) for job in services.engine.active_jobs_of(worker_id)]
    return jsonify({'worker_id': worker_id, 'jobs': jobs, 'total': len(jobs)}), 200


@workers_bp.route('/<worker_id>/earnings', methods=['GET'])
def get_earnings(worker_id):
    """
    Salary, bonuses and daily quota progress
    GET /api/workers/:id/earnings
    """
    services = get_services()
    worker = services.registry.find(worker_id)
    if not worker:
        return jsonify({'error': 'Worker not found'}), 404

    return jsonify(earnings_summary(worker, services.clock().date())), 200
