"""
Request ID middleware for request tracing and logging
"""
import logging
import re
import uuid

from flask import has_request_context, request

ENVIRON_KEY = 'request_id'
HEADER = 'X-Request-ID'

# Client-supplied ids are echoed into logs and headers, so only plain tokens pass
_VALID_REQUEST_ID = re.compile(r'^[A-Za-z0-9._-]{1,64}$')


class RequestIdMiddleware:
    """
    WSGI middleware tagging every request with an id

    A well-formed incoming X-Request-ID is kept, anything else is replaced
    with a fresh UUID. The id goes back out on the response and into every
    log record written while the request is handled (see RequestIdFilter),
    so a report, its accept and its complete can be followed in the logs.
    """

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        incoming = environ.get('HTTP_X_REQUEST_ID', '')
        request_id = incoming if _VALID_REQUEST_ID.match(incoming) else str(uuid.uuid4())
        environ[ENVIRON_KEY] = request_id

        def custom_start_response(status, headers, exc_info=None):
            headers.append((HEADER, request_id))
            return start_response(status, headers, exc_info)

        return self.app(environ, custom_start_response)


class RequestIdFilter(logging.Filter):
    """Adds ``request_id`` to log records ('-' outside a request)"""

    def filter(self, record):
        request_id = None
        if has_request_context():
            request_id = request.environ.get(ENVIRON_KEY)
        record.request_id = request_id or '-'
        return True
