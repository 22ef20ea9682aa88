import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, PropertyMock, patch

from sheetcache.auth import SCRIPT_SCOPES, AuthInfo, OAuthClient
from sheetcache.errors import AuthError, InvalidArgumentError


def _write_token(tmp_path: Path) -> Path:
    token_file = tmp_path / "token.json"
    token_payload = {
        "token": "fake-token",
        "refresh_token": "fake-refresh-token",
        "token_uri": "https://oauth2.googleapis.com/token",
        "client_id": "fake-client-id",
        "client_secret": "fake-client-secret",
        "scopes": list(SCRIPT_SCOPES),
        "type": "authorized_user",
    }
    token_file.write_text(json.dumps(token_payload), encoding="utf-8")
    return token_file


class TestOAuthClient(unittest.TestCase):
    def _client(self, tmp_path: Path) -> OAuthClient:
        token_file = _write_token(tmp_path)
        info = AuthInfo(
            kind="oauth",
            data={
                "client_secrets_file": str(tmp_path / "client_secrets.json"),
                "token_file": str(token_file),
            },
        )
        return OAuthClient(info)

    def test_get_credentials_loads_token_file_without_refresh(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            client = self._client(Path(tmp))
            creds = client.get_credentials(scopes=list(SCRIPT_SCOPES), ensure_valid=False)

            self.assertTrue(hasattr(creds, "refresh_token"))
            self.assertEqual(creds.refresh_token, "fake-refresh-token")

    def test_get_credentials_rejects_empty_scopes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            client = self._client(Path(tmp))
            with self.assertRaises(InvalidArgumentError):
                client.get_credentials(scopes=[])

    def test_build_session_wraps_credentials(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            client = self._client(Path(tmp))
            creds = Mock()
            with patch.object(OAuthClient, "get_credentials", return_value=creds) as get_creds:
                with patch("google.auth.transport.requests.AuthorizedSession") as session_cls:
                    session = client.build_session()

            get_creds.assert_called_once_with(scopes=SCRIPT_SCOPES, ensure_valid=True)
            session_cls.assert_called_once_with(creds)
            self.assertIs(session, session_cls.return_value)

    def test_missing_token_runs_sign_in_and_saves_token(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            tmp_path = Path(tmp)
            token_file = tmp_path / "nested" / "token.json"
            info = AuthInfo(
                kind="oauth",
                data={
                    "client_secrets_file": str(tmp_path / "client_secrets.json"),
                    "token_file": str(token_file),
                },
            )
            creds = Mock()
            creds.to_json.return_value = '{"token": "new"}'
            with patch("google_auth_oauthlib.flow.InstalledAppFlow.from_client_secrets_file") as from_secrets:
                from_secrets.return_value.run_local_server.return_value = creds
                result = OAuthClient(info).get_credentials(scopes=list(SCRIPT_SCOPES))

            self.assertIs(result, creds)
            from_secrets.assert_called_once_with(
                str(tmp_path / "client_secrets.json"),
                scopes=list(SCRIPT_SCOPES),
            )
            self.assertEqual(token_file.read_text(encoding="utf-8"), '{"token": "new"}')

    def test_failed_refresh_raises_auth_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            client = self._client(Path(tmp))
            expired = patch(
                "google.oauth2.credentials.Credentials.valid",
                new_callable=PropertyMock,
                return_value=False,
            )
            revoked = patch(
                "google.oauth2.credentials.Credentials.refresh",
                side_effect=RuntimeError("revoked"),
            )
            with expired, revoked:
                with self.assertRaises(AuthError) as ctx:
                    client.get_credentials(scopes=list(SCRIPT_SCOPES))

            self.assertIsInstance(ctx.exception.cause, RuntimeError)


if __name__ == "__main__":
    unittest.main()
