"""
Configuration settings for different environments
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _database_url():
    url = os.environ.get('DATABASE_URL') or 'sqlite:///wastetrack.db'
    # Fix postgres:// to postgresql:// for SQLAlchemy 2.x
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def _env_flag(name, default='false'):
    return os.environ.get(name, default).lower() in ['true', 'on', '1']


class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Persistence: 'sql' keeps job/worker snapshots in the database,
    # 'memory' keeps them in process (single instance, lost on restart)
    STORE_BACKEND = os.environ.get('STORE_BACKEND', 'sql')
    STORE_MAX_RETRIES = int(os.environ.get('STORE_MAX_RETRIES', 3))
    LOCK_TIMEOUT_SECONDS = float(os.environ.get('LOCK_TIMEOUT_SECONDS', 5))

    # API
    API_PREFIX = '/api'

    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

    # Report uploads
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB
    ALLOWED_IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(os.getcwd(), 'uploads')

    # Rate limiting (Flask-Limiter)
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    REPORT_RATE_LIMIT = os.environ.get('REPORT_RATE_LIMIT', '10 per minute')

    # Background scheduler (deferred releases, expiry sweep, daily rollover).
    # Enable on exactly one instance.
    SCHEDULER_ENABLED = _env_flag('SCHEDULER_ENABLED')
    RELEASE_SWEEP_MINUTES = int(os.environ.get('RELEASE_SWEEP_MINUTES', 5))

    # Logging / monitoring
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    SENTRY_DSN = os.environ.get('SENTRY_DSN')

    # Timezone
    TIMEZONE = os.environ.get('TIMEZONE', 'Asia/Kolkata')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 20,
        'max_overflow': 40,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }
