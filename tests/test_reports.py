"""
Report intake tests for WasteTrack
Tests image classification, field validation and job creation from reports
"""
import io
import warnings
from datetime import timedelta

import pytest
from PIL import Image

from wastetrack.models.job import PENDING, COMPLETED
from wastetrack.models.severity import HIGH, LOW, MEDIUM
from wastetrack.services import BrightnessClassifier, ClassifierError, InvalidReportError
from wastetrack.sanitize import sanitize_dict, sanitize_string
from wastetrack.services.intake import estimate_eta, validate_report


def report_fields(**overrides):
    fields = {
        'reporter_name': 'Anita',
        'reporter_contact': '+91 98765 43210',
        'address': '12 Marina Rd',
        'description': 'Mixed household waste',
        'zone': 'Central',
        'lat': 13.0827,
        'lng': 80.2707,
        'image_url': '/uploads/dump.png',
    }
    fields.update(overrides)
    return fields


class TestBrightnessClassifier:
    """Test severity from image brightness"""

    @pytest.mark.parametrize('shade,severity,vehicle', [
        (20, HIGH, 'large'),
        (110, MEDIUM, 'small'),
        (230, LOW, 'small'),
    ])
    def test_solid_images(self, make_image, shade, severity, vehicle):
        result = BrightnessClassifier().classify(make_image(shade))

        assert result.severity == severity
        assert result.vehicle == vehicle
        assert 0 < result.confidence < 1

    def test_jpeg_input(self, make_image):
        assert BrightnessClassifier().classify(make_image(15, fmt='JPEG')).severity == HIGH

    def test_large_image_is_downsampled(self, make_image):
        assert BrightnessClassifier().classify(make_image(240, size=(1600, 1200))).severity == LOW

    def test_same_image_same_result(self, make_image):
        image = make_image(90)
        classifier = BrightnessClassifier()

        assert classifier.classify(image) == classifier.classify(image)

    def test_half_dark_image(self):
        buf = io.BytesIO()
        img = Image.new('RGB', (64, 64), (250, 250, 250))
        img.paste((10, 10, 10), (0, 0, 64, 32))
        img.save(buf, format='PNG')

        assert BrightnessClassifier().classify(buf.getvalue()).severity == HIGH

    def test_no_deprecated_pillow_calls(self, make_image):
        with warnings.catch_warnings():
            warnings.simplefilter('error', DeprecationWarning)
            BrightnessClassifier().classify(make_image(110))

    def test_garbage_bytes(self):
        with pytest.raises(ClassifierError):
            BrightnessClassifier().classify(b'definitely not an image')

    def test_empty_bytes(self):
        with pytest.raises(ClassifierError):
            BrightnessClassifier().classify(b'')


class TestValidation:
    """Test report field validation"""

    def test_valid_report(self):
        fields = validate_report(report_fields())
        assert fields['zone'] == 'Central'

    @pytest.mark.parametrize('missing', ['reporter_name', 'address', 'description', 'zone'])
    def test_missing_field(self, missing):
        with pytest.raises(InvalidReportError, match=missing):
            validate_report(report_fields(**{missing: ''}))

    def test_unknown_zone(self):
        with pytest.raises(InvalidReportError):
            validate_report(report_fields(zone='East'))

    @pytest.mark.parametrize('lat,lng', [(None, 80.0), (13.0, None), (91.0, 80.0), (13.0, 181.0)])
    def test_bad_coordinates(self, lat, lng):
        with pytest.raises(InvalidReportError):
            validate_report(report_fields(lat=lat, lng=lng))

    def test_bad_phone(self):
        with pytest.raises(InvalidReportError):
            validate_report(report_fields(reporter_contact='12345'))

    def test_contact_is_optional(self):
        validate_report(report_fields(reporter_contact=None))

    def test_markup_is_escaped(self):
        fields = validate_report(report_fields(description='<script>alert(1)</script>'))
        assert '<script>' not in fields['description']


class TestSubmitReport:
    """Test turning reports into jobs"""

    def test_report_creates_pending_job(self, services, make_image):
        job = services.submit_report(report_fields(), make_image(200))

        stored = services.ledger.find(job.id)
        assert stored.status == PENDING
        assert stored.severity == LOW
        assert stored.vehicle == 'small'
        assert stored.zone == 'Central'
        assert stored.location.address == '12 Marina Rd'
        assert stored.assigned_to is None
        assert stored.lifecycle_consistent()
        assert 30 <= stored.estimated_eta <= 59

    def test_unreadable_image_creates_no_job(self, services):
        with pytest.raises(ClassifierError):
            services.submit_report(report_fields(), b'\x89PNG broken')

        assert services.ledger.all() == []

    def test_invalid_fields_create_no_job(self, services, make_image):
        with pytest.raises(InvalidReportError):
            services.submit_report(report_fields(zone='Nowhere'), make_image(200))

        assert services.ledger.all() == []

    def test_eta_is_stable(self):
        assert estimate_eta('job-1') == estimate_eta('job-1')
        assert 30 <= estimate_eta('job-1') <= 59


class TestDarkDumpScenario:
    """A dark photo becomes a large-vehicle job with a four hour window"""

    def test_dark_report_through_completion(self, services, engine, registry, worker_a, clock, make_image):
        job = services.submit_report(report_fields(), make_image(25))
        assert job.severity == HIGH
        assert job.vehicle == 'large'

        assert engine.accept(job.id, worker_a.id) is True
        assert services.ledger.find(job.id).timer_duration == 240

        clock.advance(minutes=10)
        assert engine.timer_for(job.id).remaining_seconds == 240 * 60 - 600

        assert engine.complete(job.id, worker_a.id) is True
        job = services.ledger.find(job.id)
        assert job.status == COMPLETED
        assert job.completed_at - job.accepted_at == timedelta(minutes=10)

        worker = registry.find(worker_a.id)
        assert [e.amount for e in worker.earnings] == [500]
        assert worker.completed_today == 1


class TestSanitize:
    """Test escaping and truncation of reporter text"""

    def test_long_description_is_truncated(self):
        fields = validate_report(report_fields(description='x' * 5000))
        assert len(fields['description']) == 1000

    def test_truncation_happens_before_escaping(self):
        assert sanitize_string('ab<c', max_length=3) == 'ab&lt;'

    def test_non_strings_pass_through(self):
        assert sanitize_dict({'lat': 13.0, 'tags': ['<b>']}) == {'lat': 13.0, 'tags': ['&lt;b&gt;']}
