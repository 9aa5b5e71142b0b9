"""
Owner identity.

Sign-in flows live elsewhere; voxbench only needs a stable owner id to
scope every storage call. AuthSession tracks the signed-in owner for one
client session, and owner_from_header() resolves it on the HTTP side.
"""

from __future__ import annotations

import logging

from voxbench.errors import NotSignedIn

logger = logging.getLogger(__name__)

OWNER_HEADER = "X-Owner-Id"


class AuthSession:
    """Current owner for one session."""

    def __init__(self, owner_id: str | None = None):
        self._owner_id = owner_id or None

    @classmethod
    def from_config(cls, cfg: dict, override: str | None = None) -> "AuthSession":
        return cls(override or cfg.get("auth", {}).get("owner_id") or None)

    @property
    def signed_in(self) -> bool:
        return self._owner_id is not None

    def sign_in(self, owner_id: str):
        if not owner_id:
            raise NotSignedIn("Owner id must not be empty")
        self._owner_id = owner_id
        logger.info("Signed in as %s", owner_id)

    def sign_out(self):
        if self._owner_id:
            logger.info("Signed out %s", self._owner_id)
        self._owner_id = None

    def current_owner(self) -> str:
        """The signed-in owner id. Raises NotSignedIn."""
        if self._owner_id is None:
            raise NotSignedIn("Sign in to continue")
        return self._owner_id


def owner_from_header(value: str | None) -> str:
    """Validate an X-Owner-Id header value. Raises NotSignedIn."""
    owner = (value or "").strip()
    if not owner:
        raise NotSignedIn(f"Missing {OWNER_HEADER} header")
    return owner
