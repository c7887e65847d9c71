"""
Shared Flask extension instances.

Created as a separate module to avoid circular imports when route
blueprints need access to extensions that are initialised in create_app().
"""

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Limiter is created without an app; storage and on/off switch come from
# RATELIMIT_STORAGE_URI / RATELIMIT_ENABLED when init_app() runs.
limiter = Limiter(key_func=get_remote_address)
