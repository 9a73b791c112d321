# tests/unit/logging/test_handlers.py - v2
"""Tests for logging/handlers.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from silvererp.logging.handlers import create_rotating_handler, parse_size


class TestParseSize:
    @pytest.mark.parametrize("text,expected", [
        ("10MB", 10 * 1024**2),
        ("512 KB", 512 * 1024),
        ("1gb", 1024**3),
        ("100B", 100),
        ("2048", 2048),
    ])
    def test_valid(self, text, expected):
        assert parse_size(text) == expected

    @pytest.mark.parametrize("text", ["", "ten MB", "10TB", "-5MB"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_size(text)


class TestRotatingHandler:
    def test_creates_parent(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "erp.log"
        handler = create_rotating_handler(path, rotation="1KB", retention=3)
        try:
            assert path.parent.is_dir()
            assert handler.maxBytes == 1024
            assert handler.backupCount == 3
        finally:
            handler.close()

    def test_negative_retention(self, tmp_path: Path):
        with pytest.raises(ValueError, match="retention"):
            create_rotating_handler(tmp_path / "x.log", retention=-1)
