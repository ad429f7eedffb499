"""Shared filesystem path constants for the DocPortal backend."""

from __future__ import annotations

from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
FRONTEND_DIR = ROOT / "frontend"
DEFAULT_UPLOAD_DIR = ROOT / "uploads"

__all__ = ["ROOT", "FRONTEND_DIR", "DEFAULT_UPLOAD_DIR"]
