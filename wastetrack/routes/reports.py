"""
Citizen report submission
"""
import os

from flask import Blueprint, request, jsonify, current_app

from wastetrack.extensions import limiter
from wastetrack.services import get_services
from wastetrack.utils import allowed_image, generate_unique_id, safe_float
from .serializers import serialize_job

reports_bp = Blueprint('reports', __name__)


def _report_rate_limit():
    return current_app.config['REPORT_RATE_LIMIT']


def _save_image(image_bytes, extension):
    """Write the uploaded image to UPLOAD_FOLDER and return (path, public url)."""
    folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(folder, exist_ok=True)
    filename = f'{generate_unique_id()}.{extension}'
    path = os.path.join(folder, filename)
    with open(path, 'wb') as fh:
        fh.write(image_bytes)
    return path, f'/uploads/{filename}'


@reports_bp.route('', methods=['POST'])
@limiter.limit(_report_rate_limit)
def submit_report():
    """
    Report a waste-dump site
    POST /api/reports  (multipart/form-data)
    Form fields:
        image            - photo of the dump (jpg, jpeg, png, gif, webp)
        reporter_name    - required
        reporter_contact - optional phone number
        address          - required
        description      - required
        zone             - North | Central | South
        lat, lng         - pinned location

    The photo is classified before the job is created; an unreadable photo
    is rejected with 422 and no job is filed.
    """
    image = request.files.get('image')
    if image is None or not image.filename:
        return jsonify({'error': "No image provided. Use the 'image' form field."}), 400

    if not allowed_image(image.filename, current_app.config['ALLOWED_IMAGE_EXTENSIONS']):
        return jsonify({'error': 'Image type not allowed'}), 400

    image_bytes = image.read()
    extension = image.filename.rsplit('.', 1)[1].lower()

    form = request.form
    fields = {
        'reporter_name': form.get('reporter_name'),
        'reporter_contact': form.get('reporter_contact'),
        'address': form.get('address'),
        'description': form.get('description'),
        'zone': form.get('zone'),
        'lat': safe_float(form.get('lat')),
        'lng': safe_float(form.get('lng')),
    }

    services = get_services()
    path, fields['image_url'] = _save_image(image_bytes, extension)
    try:
        job = services.submit_report(fields, image_bytes)
    except Exception:
        # No job was filed, so the stored photo is an orphan
        os.remove(path)
        raise

    return jsonify({
        'message': 'Report submitted successfully',
        'job': serialize_job(job, services.clock()),
    }), 201
