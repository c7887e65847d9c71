"""JSON shapes shared by the blueprints"""
from wastetrack.models.severity import bonus_for
from wastetrack.services.timer import project


def serialize_job(job, now):
    """Job as JSON, with its bonus and live timer projection"""
    data = job.to_dict()
    timer = project(job, now)
    data['bonus'] = bonus_for(job.severity)
    data['timer'] = timer.to_dict() if timer else None
    return data


def serialize_worker(worker, today):
    """Worker as JSON, with completed_today as of today"""
    data = worker.to_dict()
    data['completed_today'] = worker.completed_on(today)
    return data
