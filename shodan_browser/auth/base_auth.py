"""
Credentials
===========
Credential container handed to the login manager.

Credentials come from ``ServiceConfig`` (``SHODAN_USER`` / ``SHODAN_PASS``)
and are never logged: ``repr()`` masks the password.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Credentials:
    """Plain credential container: resolved once, used by the login flow."""
    username: str = ""
    password: str = field(default="", repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.username and self.password)

    @classmethod
    def from_config(cls, config) -> "Credentials":
        return cls(username=config.username, password=config.password)
