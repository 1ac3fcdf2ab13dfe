from __future__ import annotations

from .app import STATE_KEY, create_app, run_server

__all__ = ["STATE_KEY", "create_app", "run_server"]
