"""Identifier helpers for substances."""

from __future__ import annotations

from uuid import uuid4


def new_id() -> str:
    """Return a fresh random id for ad-hoc substances."""
    return str(uuid4())
