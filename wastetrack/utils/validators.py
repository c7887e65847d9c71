"""
Validation utilities
"""
import re


def validate_phone(phone):
    """
    Validate a reporter contact number (India, optional +91 prefix)

    Args:
        phone (str): Phone number to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not phone:
        return False

    # Remove common separators
    cleaned = re.sub(r'[\s\-\(\)\.]', '', phone)

    pattern = r'^(\+?91)?[6-9]\d{9}$'
    return bool(re.match(pattern, cleaned))


def validate_coordinates(lat, lng):
    """
    Validate a latitude/longitude pair

    Args:
        lat (float): Latitude in degrees
        lng (float): Longitude in degrees

    Returns:
        bool: True if both are within range, False otherwise
    """
    if lat is None or lng is None:
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def allowed_image(filename, allowed_extensions):
    """Check if a filename has an allowed image extension."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed_extensions
