from __future__ import annotations

import secrets


def new_session_token() -> str:
    """Generate an opaque, URL-safe session token."""
    return secrets.token_urlsafe(32)
