"""
Testing configuration for the WasteTrack backend
"""
import os
import tempfile

from .settings import Config


class TestingConfig(Config):
    """Testing configuration with isolated database and safe defaults"""

    TESTING = True
    DEBUG = False

    # Use in-memory SQLite for fast tests
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'TEST_DATABASE_URL',
        'sqlite:///:memory:'
    )

    STORE_BACKEND = 'sql'

    # Report photos land in a throwaway directory
    UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), 'wastetrack-test-uploads')

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False

    # Tests drive releases explicitly
    SCHEDULER_ENABLED = False

    # Logging
    LOG_LEVEL = 'WARNING'
    SENTRY_DSN = None

    # CORS - allow local frontends in tests
    CORS_ORIGINS = ['http://localhost:5173', 'http://localhost:3000']
