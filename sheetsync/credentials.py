"""Google credential resolution: ordered strategies, first available wins."""

import base64
import binascii
import json
import subprocess
from collections.abc import Callable, Sequence

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from pydantic import BaseModel, ConfigDict

from sheetsync.exceptions import CredentialError
from sheetsync.logging import get_logger
from sheetsync.settings import SyncSettings

logger = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


class SheetsCredential(BaseModel):
    """Request decoration for the Sheets API: auth headers or an API key param."""

    model_config = ConfigDict(frozen=True)

    strategy: str
    headers: dict[str, str] = {}
    params: dict[str, str] = {}


Strategy = Callable[[SyncSettings], SheetsCredential | None]


def _bearer(strategy: str, token: str) -> SheetsCredential:
    return SheetsCredential(strategy=strategy, headers={"Authorization": f"Bearer {token}"})


def from_access_token(settings: SyncSettings) -> SheetsCredential | None:
    if settings.google_access_token:
        return _bearer("token", settings.google_access_token.get_secret_value())
    return None


def from_api_key(settings: SyncSettings) -> SheetsCredential | None:
    # API keys only read sheets shared as "anyone with the link"
    if settings.google_api_key:
        return SheetsCredential(strategy="api-key", params={"key": settings.google_api_key.get_secret_value()})
    return None


def _service_account_token(strategy: str, build: Callable[[], service_account.Credentials]) -> SheetsCredential:
    """Sign a service account assertion and exchange it for an access token.

    A configured but unusable key is an error, not a reason to try the next strategy.
    """
    try:
        credentials = build()
        credentials.refresh(Request())
    except (ValueError, OSError, GoogleAuthError) as exc:
        raise CredentialError(f"Service account credentials ({strategy}) failed: {exc}") from exc
    return _bearer(strategy, credentials.token)


def from_service_account(settings: SyncSettings) -> SheetsCredential | None:
    """Service account email and private key given directly, e.g. as CI secrets."""
    email = settings.google_service_account_email
    key = settings.google_service_account_private_key
    if not (email and key):
        return None
    info = {
        "type": "service_account",
        "client_email": email,
        # Keys pasted into env vars usually carry literal \n sequences
        "private_key": key.get_secret_value().replace("\\n", "\n"),
        "token_uri": TOKEN_URI,
    }
    return _service_account_token(
        "service-account",
        lambda: service_account.Credentials.from_service_account_info(info, scopes=SCOPES),
    )


def _decode_key(encoded: str) -> dict:
    try:
        return json.loads(base64.b64decode(encoded, validate=True))
    except (binascii.Error, ValueError) as exc:
        raise CredentialError(f"google_service_account_key is not base64-encoded key JSON: {exc}") from exc


def from_service_account_b64(settings: SyncSettings) -> SheetsCredential | None:
    if not settings.google_service_account_key:
        return None
    info = _decode_key(settings.google_service_account_key.get_secret_value())
    return _service_account_token(
        "service-account-b64",
        lambda: service_account.Credentials.from_service_account_info(info, scopes=SCOPES),
    )


def from_service_account_file(settings: SyncSettings) -> SheetsCredential | None:
    path = settings.google_credentials_path
    if path is None:
        return None
    return _service_account_token(
        "service-account-file",
        lambda: service_account.Credentials.from_service_account_file(str(path.expanduser()), scopes=SCOPES),
    )


def _gcloud_token(args: list[str]) -> str | None:
    try:
        result = subprocess.run(["gcloud", *args], capture_output=True, text=True)
    except FileNotFoundError:
        return None
    if result.returncode != 0:
        logger.debug("gcloud %s failed: %s", " ".join(args), result.stderr.strip())
        return None
    return result.stdout.strip() or None


def from_gcloud_adc(settings: SyncSettings) -> SheetsCredential | None:
    """Application Default Credentials, including GOOGLE_APPLICATION_CREDENTIALS key files."""
    token = _gcloud_token(["auth", "application-default", "print-access-token"])
    return _bearer("gcloud-adc", token) if token else None


def from_gcloud(settings: SyncSettings) -> SheetsCredential | None:
    token = _gcloud_token(["auth", "print-access-token"])
    return _bearer("gcloud", token) if token else None


STRATEGIES: dict[str, Strategy] = {
    "token": from_access_token,
    "api-key": from_api_key,
    "service-account": from_service_account,
    "service-account-b64": from_service_account_b64,
    "service-account-file": from_service_account_file,
    "gcloud-adc": from_gcloud_adc,
    "gcloud": from_gcloud,
}


def resolve_credential(settings: SyncSettings, strategies: Sequence[str] | None = None) -> SheetsCredential:
    """Return the first credential an enabled strategy can produce.

    ``settings.google_auth`` pins a single strategy unless it is "auto".
    """
    if strategies is None:
        if settings.google_auth == "auto":
            strategies = list(STRATEGIES)
        elif settings.google_auth in STRATEGIES:
            strategies = [settings.google_auth]
        else:
            raise CredentialError(
                f"Unknown google_auth '{settings.google_auth}'. Valid: auto, {', '.join(STRATEGIES)}"
            )

    for name in strategies:
        credential = STRATEGIES[name](settings)
        if credential is not None:
            logger.debug("Google credentials from strategy %s", name)
            return credential
    raise CredentialError(
        "No Google credentials found. Set SHEETSYNC_GOOGLE_CREDENTIALS_PATH to a service account key file, "
        "SHEETSYNC_GOOGLE_ACCESS_TOKEN or SHEETSYNC_GOOGLE_API_KEY, or run: gcloud auth application-default login"
    )
