# src/datastore/errors.py - v1
"""Errors raised at the remote datastore boundary."""

from __future__ import annotations

from typing import Any


class DataClientError(Exception):
    """A remote query or RPC failed.

    Attributes:
        code: Backend error code (e.g. a PostgREST or Postgres code), if any.
        details: Backend-supplied detail payload, if any.
    """

    def __init__(self, message: str, code: str | None = None, details: Any = None):
        self.message = message
        self.code = code
        self.details = details
        super().__init__(f"[{code}] {message}" if code else message)
