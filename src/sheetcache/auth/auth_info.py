"""Where the Google sign-in files live."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    Sign-in settings, set as SheetsConfig.auth_info.

    Leave auth_info unset for web apps deployed as "Anyone". Set it when the
    web app asks for a Google account, or when blobs go straight to a Drive
    folder:

        AuthInfo(kind="oauth", data={
            "client_secrets_file": "client_secret.json",  # desktop OAuth client
            "token_file": ".sheetcache/token.json",       # written after sign-in
        })
    """

    kind: str
    data: dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind != "oauth":
            raise ValueError("Only kind='oauth' is supported")
        if not isinstance(self.data, dict):
            raise TypeError("AuthInfo.data must be a dict")

        missing = [
            key
            for key in ("client_secrets_file", "token_file")
            if not isinstance(self.data.get(key), str) or not self.data[key].strip()
        ]
        if missing:
            raise ValueError(f"AuthInfo.data needs a path for: {', '.join(missing)}")

    @property
    def client_secrets_file(self) -> str:
        return str(self.data["client_secrets_file"])

    @property
    def token_file(self) -> str:
        return str(self.data["token_file"])
