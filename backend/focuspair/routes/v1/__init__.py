# backend/focuspair/routes/v1/__init__.py
"""Versioned API routers mounted under /api/v1."""

from . import internal_sweeps, sessions

__all__ = ["internal_sweeps", "sessions"]
