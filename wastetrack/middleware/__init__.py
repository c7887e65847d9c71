"""WSGI middleware"""
from .request_id import RequestIdMiddleware, RequestIdFilter

__all__ = ['RequestIdMiddleware', 'RequestIdFilter']
