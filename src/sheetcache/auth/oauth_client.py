"""Signed-in access to the dashboard web apps and to the Drive blob folder."""

from __future__ import annotations

import os
from typing import Sequence

from sheetcache.errors import AuthError, InvalidArgumentError

from .auth_info import AuthInfo

# Enough for a web app deployed as "Anyone with a Google account".
SCRIPT_SCOPES: tuple[str, ...] = (
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
)
# Files the app itself creates (uploaded flyers and images).
DRIVE_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/drive.file",)


class OAuthClient:
    """
    Token cache plus the two clients sheetcache needs.

        build_session()        -> requests session for the web app calls
        build_drive_service()  -> Drive v3 resource for blob uploads

    The user token lives in auth_info.token_file; the consent screen only
    opens when that file is missing or can no longer be refreshed.
    """

    def __init__(self, auth_info: AuthInfo) -> None:
        if auth_info.kind != "oauth":
            raise InvalidArgumentError("OAuthClient requires AuthInfo(kind='oauth')")
        self._auth_info = auth_info

    def get_credentials(self, scopes: Sequence[str], ensure_valid: bool = True):
        """
        Stored user credentials for scopes, refreshed or re-authorized as needed.

        With ensure_valid=False a stored token is returned as loaded.

        Raises:
            InvalidArgumentError: scopes is empty or holds a non-string.
            AuthError: the token cannot be loaded, refreshed, authorized or saved.
        """
        if not scopes or not all(isinstance(s, str) and s.strip() for s in scopes):
            raise InvalidArgumentError("scopes must be a non-empty sequence of strings")

        creds = self._load_token(scopes)
        if creds is not None:
            if not ensure_valid:
                return creds
            if not creds.valid and creds.refresh_token:
                self._refresh(creds)
            if creds.valid:
                return creds
        return self._authorize(scopes)

    def build_session(self, scopes: Sequence[str] = SCRIPT_SCOPES, ensure_valid: bool = True):
        """AuthorizedSession that signs every web app request with the user token."""
        try:
            from google.auth.transport.requests import AuthorizedSession
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-auth requests transport is not available",
                details={"hint": "Install google-auth and requests"},
                cause=exc,
            ) from exc

        creds = self.get_credentials(scopes=scopes, ensure_valid=ensure_valid)
        return AuthorizedSession(creds)

    def build_drive_service(self, scopes: Sequence[str] = DRIVE_SCOPES, ensure_valid: bool = True):
        """Drive v3 resource for direct blob uploads."""
        try:
            from googleapiclient.discovery import build
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                details={"hint": "Install google-api-python-client"},
                cause=exc,
            ) from exc

        creds = self.get_credentials(scopes=scopes, ensure_valid=ensure_valid)
        try:
            return build("drive", "v3", credentials=creds, cache_discovery=False)
        except Exception as exc:
            raise AuthError("Failed to build Drive service", cause=exc) from exc

    # ----------------------------
    # Token lifecycle
    # ----------------------------
    def _load_token(self, scopes: Sequence[str]):
        token_file = self._auth_info.token_file
        if not os.path.exists(token_file):
            return None
        try:
            from google.oauth2.credentials import Credentials

            return Credentials.from_authorized_user_file(token_file, scopes=list(scopes))
        except Exception as exc:
            raise AuthError(
                "Could not read the saved sign-in token",
                details={"token_file": token_file},
                cause=exc,
            ) from exc

    def _refresh(self, creds) -> None:
        try:
            from google.auth.transport.requests import Request

            creds.refresh(Request())
        except Exception as exc:
            raise AuthError(
                "Could not refresh the saved sign-in token",
                details={"token_file": self._auth_info.token_file},
                cause=exc,
            ) from exc
        self._save_credentials(creds)

    def _authorize(self, scopes: Sequence[str]):
        client_secrets = self._auth_info.client_secrets_file
        try:
            from google_auth_oauthlib.flow import InstalledAppFlow

            flow = InstalledAppFlow.from_client_secrets_file(client_secrets, scopes=list(scopes))
            creds = flow.run_local_server(port=0)
        except Exception as exc:
            raise AuthError(
                "Google sign-in did not complete",
                details={
                    "client_secrets_file": client_secrets,
                    "token_file": self._auth_info.token_file,
                },
                cause=exc,
            ) from exc
        self._save_credentials(creds)
        return creds

    def _save_credentials(self, creds) -> None:
        token_file = self._auth_info.token_file
        token_dir = os.path.dirname(token_file)
        try:
            if token_dir:
                os.makedirs(token_dir, exist_ok=True)
            with open(token_file, "w", encoding="utf-8") as f:
                f.write(creds.to_json())
        except OSError as exc:
            raise AuthError(
                "Could not save the sign-in token",
                details={"token_file": token_file},
                cause=exc,
            ) from exc
