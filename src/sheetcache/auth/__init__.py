"""Public auth exports for sheetcache."""

from __future__ import annotations

from .auth_info import AuthInfo
from .oauth_client import DRIVE_SCOPES, SCRIPT_SCOPES, OAuthClient

__all__ = ["AuthInfo", "OAuthClient", "SCRIPT_SCOPES", "DRIVE_SCOPES"]
