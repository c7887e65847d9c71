"""
Image classification for reported dump sites

The brightness classifier treats dark, low-brightness photos as heavier
dumps: it counts pixels darker than a threshold and averages brightness over
a downsampled copy of the image.
"""
import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from wastetrack.models.severity import HIGH, MEDIUM, LOW, vehicle_for

logger = logging.getLogger(__name__)

MAX_SIDE = 200
DARK_PIXEL_THRESHOLD = 100


class ClassifierError(Exception):
    """The image could not be read or analysed"""


@dataclass(frozen=True)
class Classification:
    severity: str
    vehicle: str
    confidence: float


class ImageClassifier:
    """Interface: raw image bytes in, Classification out"""

    def classify(self, image_bytes):
        raise NotImplementedError


class BrightnessClassifier(ImageClassifier):
    """
    Severity from dark-pixel ratio and average brightness

    - high:   dark ratio > 0.4  or average brightness < 80
    - medium: dark ratio > 0.25 or average brightness < 120
    - low:    otherwise

    Confidence grows with how far the image is past the threshold of its
    tier and is capped below 1.
    """

    def classify(self, image_bytes):
        if not image_bytes:
            raise ClassifierError('Empty image')

        try:
            with Image.open(io.BytesIO(image_bytes)) as img:
                img.thumbnail((MAX_SIDE, MAX_SIDE))
                grey = img.convert('RGB').convert('L', matrix=(1 / 3, 1 / 3, 1 / 3, 0))
                histogram = grey.histogram()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            logger.warning('Could not read reported image: %s', e)
            raise ClassifierError('Unreadable image') from e

        total = sum(histogram)
        if not total:
            raise ClassifierError('Image has no pixels')

        dark_ratio = sum(histogram[:DARK_PIXEL_THRESHOLD]) / total
        avg_brightness = sum(level * count for level, count in enumerate(histogram)) / total

        severity, confidence = self._grade(dark_ratio, avg_brightness)
        logger.debug(
            'Classified image: dark_ratio=%.3f avg_brightness=%.1f -> %s',
            dark_ratio, avg_brightness, severity,
        )
        return Classification(severity=severity, vehicle=vehicle_for(severity), confidence=confidence)

    @staticmethod
    def _grade(dark_ratio, avg_brightness):
        darkness = 1 - avg_brightness / 255
        if dark_ratio > 0.4 or avg_brightness < 80:
            return HIGH, round(0.85 + 0.1 * min(1.0, max(dark_ratio, darkness)), 2)
        if dark_ratio > 0.25 or avg_brightness < 120:
            return MEDIUM, round(0.75 + 0.15 * min(1.0, max(dark_ratio, darkness)), 2)
        return LOW, round(0.70 + 0.2 * (avg_brightness / 255), 2)
