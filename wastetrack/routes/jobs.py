from flask import Blueprint, request, jsonify

from wastetrack.models.job import JOB_STATUSES, ZONES
from wastetrack.models.severity import bonus_for
from wastetrack.services import get_services
from .serializers import serialize_job

jobs_bp = Blueprint('jobs', __name__)


@jobs_bp.route('', methods=['GET'])
def list_jobs():
    """
    List jobs
    GET /api/jobs?status=pending&zone=North&assignee=worker-1

    All filters are optional and combine with AND.
    """
    status = request.args.get('status')
    if status and status not in JOB_STATUSES:
        return jsonify({'error': f'Invalid status. Must be one of: {", ".join(JOB_STATUSES)}'}), 400

    zone = request.args.get('zone')
    if zone and zone not in ZONES:
        return jsonify({'error': f'Invalid zone. Must be one of: {", ".join(ZONES)}'}), 400

    services = get_services()
    now = services.clock()
    jobs = services.ledger.list_by(
        status=status or None,
        zone=zone or None,
        assignee=request.args.get('assignee') or None,
    )
    items = sorted((serialize_job(job, now) for job in jobs), key=lambda j: j['reported_at'], reverse=True)

    return jsonify({'items': items, 'total': len(items)}), 200


@jobs_bp.route('/<job_id>', methods=['GET'])
def get_job(job_id):
    """
    Job details with live timer
    GET /api/jobs/:id
    """
    services = get_services()
    job = services.ledger.find(job_id)
    if not job:
        return jsonify({'error': 'Job not found'}), 404

    return jsonify({'job': serialize_job(job, services.clock())}), 200


@jobs_bp.route('/<job_id>/timer', methods=['GET'])
def get_job_timer(job_id):
    """
    Handling window countdown
    GET /api/jobs/:id/timer

    Returns null timer for jobs that are not currently accepted.
    """
    services = get_services()
    if not services.ledger.find(job_id):
        return jsonify({'error': 'Job not found'}), 404

    timer = services.engine.timer_for(job_id)
    return jsonify({'job_id': job_id, 'timer': timer.to_dict() if timer else None}), 200


@jobs_bp.route('/<job_id>/accept', methods=['POST'])
def accept_job(job_id):
    """
    Worker accepts a pending job
    POST /api/jobs/:id/accept
    Body: {"worker_id": "worker-1"}

    409 when the job is no longer pending or the worker is busy.
    """
    data = request.get_json(silent=True) or {}
    worker_id = data.get('worker_id')
    if not worker_id:
        return jsonify({'error': 'worker_id is required'}), 400

    services = get_services()
    if not services.ledger.find(job_id):
        return jsonify({'error': 'Job not found'}), 404
    if not services.registry.find(worker_id):
        return jsonify({'error': 'Worker not found'}), 404

    if not services.engine.accept(job_id, worker_id):
        return jsonify({'error': 'Job is no longer available or worker is busy'}), 409

    job = services.ledger.find(job_id)
    return jsonify({
        'message': 'Job accepted',
        'job': serialize_job(job, services.clock()),
    }), 200


@jobs_bp.route('/<job_id>/complete', methods=['POST'])
def complete_job(job_id):
    """
    Assignee marks an accepted job done
    POST /api/jobs/:id/complete
    Body: {"worker_id": "worker-1"}

    Posts the severity bonus to the worker. 409 when the job is held by
    someone else or was already completed.
    """
    data = request.get_json(silent=True) or {}
    worker_id = data.get('worker_id')
    if not worker_id:
        return jsonify({'error': 'worker_id is required'}), 400

    services = get_services()
    if not services.ledger.find(job_id):
        return jsonify({'error': 'Job not found'}), 404
    if not services.registry.find(worker_id):
        return jsonify({'error': 'Worker not found'}), 404

    if not services.engine.complete(job_id, worker_id):
        return jsonify({'error': 'Job is not held by this worker or is already completed'}), 409

    job = services.ledger.find(job_id)
    return jsonify({
        'message': 'Job completed',
        'bonus': bonus_for(job.severity),
        'job': serialize_job(job, services.clock()),
    }), 200
