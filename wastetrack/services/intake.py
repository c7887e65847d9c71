"""
Report submission

Turns a citizen report into a pending job: validates the fields, runs the
image through the classifier and hands the result to the Job Ledger. A
classifier failure propagates and no job is created.
"""
import logging
import zlib

from wastetrack.models.job import Location, ZONES
from wastetrack.sanitize import sanitize_dict
from wastetrack.utils.helpers import generate_unique_id
from wastetrack.utils.validators import validate_coordinates, validate_phone

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('reporter_name', 'address', 'description', 'zone')

FIELD_LIMITS = {
    'reporter_name': 100,
    'reporter_contact': 20,
    'address': 255,
    'description': 1000,
}

MIN_ETA_MINUTES = 30
ETA_SPREAD_MINUTES = 30


class InvalidReportError(ValueError):
    """A report field is missing or malformed"""


def estimate_eta(job_id):
    """Arrival estimate shown to the reporter, 30-59 minutes, stable per job"""
    return MIN_ETA_MINUTES + zlib.crc32(job_id.encode('utf-8')) % ETA_SPREAD_MINUTES


def validate_report(fields):
    """
    Check a report's fields

    Args:
        fields (dict): reporter_name, reporter_contact (optional), address,
            description, zone, lat, lng, image_url

    Returns:
        dict: Sanitized fields

    Raises:
        InvalidReportError: on the first missing or malformed field
    """
    fields = sanitize_dict(dict(fields), limits=FIELD_LIMITS)

    for name in REQUIRED_FIELDS:
        if not fields.get(name):
            raise InvalidReportError(f'{name} is required')

    if fields['zone'] not in ZONES:
        raise InvalidReportError(f'zone must be one of: {", ".join(ZONES)}')

    if not validate_coordinates(fields.get('lat'), fields.get('lng')):
        raise InvalidReportError('lat and lng must be valid coordinates')

    contact = fields.get('reporter_contact')
    if contact and not validate_phone(contact):
        raise InvalidReportError('reporter_contact is not a valid phone number')

    return fields


def submit_report(ledger, classifier, fields, image_bytes):
    """
    Classify the reported image and create a pending job

    Returns:
        Job: The created job

    Raises:
        InvalidReportError: if the fields are invalid
        ClassifierError: if the image cannot be classified
    """
    fields = validate_report(fields)
    classification = classifier.classify(image_bytes)

    job_id = generate_unique_id()
    job = ledger.create({
        'id': job_id,
        'reporter_name': fields['reporter_name'],
        'reporter_contact': fields.get('reporter_contact') or None,
        'location': Location(lat=fields['lat'], lng=fields['lng'], address=fields['address']),
        'description': fields['description'],
        'image_url': fields.get('image_url') or '',
        'zone': fields['zone'],
        'severity': classification.severity,
        'vehicle': classification.vehicle,
        'confidence': classification.confidence,
        'estimated_eta': estimate_eta(job_id),
    })
    logger.info(
        'Report from %s filed as job %s (%s, %s vehicle, confidence %.2f)',
        job.reporter_name, job.id, job.severity, job.vehicle, classification.confidence,
    )
    return job
