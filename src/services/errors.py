# src/services/errors.py - v1
"""Business-rule errors raised by the services."""

from __future__ import annotations


class ServiceError(Exception):
    """A service operation could not be completed."""


class NotFoundError(ServiceError):
    """A referenced record does not exist."""


class DeletionBlockedError(ServiceError):
    """A record cannot be deleted while dependent records exist."""
