import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build

from gmail_mark_read.config import settings
from gmail_mark_read.exceptions import AuthenticationError, TokenStoreError

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",
]

DEFAULT_REDIRECT_URI = "http://localhost"
AUTH_STATE = "state-token"

# Receives the authorization URL, returns the one-time code the user pasted back.
CodeProvider = Callable[[str], str]


def console_code_provider(authorization_url: str) -> str:
    print(f"Open this link and authenticate: \n{authorization_url}")
    return input("Enter the code: ").strip()


def load_client_config(credentials_path: str) -> dict:
    path = Path(credentials_path)
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError as e:
        raise AuthenticationError(f"Credentials file not found: {credentials_path}") from e
    except OSError as e:
        raise AuthenticationError(f"Could not read {credentials_path}: {e}") from e
    except ValueError as e:
        raise AuthenticationError(f"Could not parse {credentials_path}: {e}") from e

    if not isinstance(data, dict) or not ({"installed", "web"} & data.keys()):
        raise AuthenticationError(f"Invalid OAuth client config in {credentials_path}")
    return data


def _redirect_uri(config: dict) -> str:
    section = config.get("installed") or config.get("web") or {}
    redirect_uris = section.get("redirect_uris") or []
    return redirect_uris[0] if redirect_uris else DEFAULT_REDIRECT_URI


class TokenRepository(ABC):
    """Where the OAuth token lives between runs."""

    @abstractmethod
    def load(self) -> Credentials | None:
        """Return the saved token, or None if nothing has been saved.

        Raises TokenStoreError when something is saved but cannot be read back.
        """

    @abstractmethod
    def save(self, credentials: Credentials) -> None:
        ...


class FileTokenRepository(TokenRepository):
    def __init__(self, token_path: str | None = None, scopes: list[str] | None = None):
        self._token_path = Path(token_path or settings.token_path)
        self._scopes = scopes or SCOPES

    @property
    def path(self) -> Path:
        return self._token_path

    def load(self) -> Credentials | None:
        if not self._token_path.exists():
            return None
        try:
            data = json.loads(self._token_path.read_text())
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            return Credentials.from_authorized_user_info(data, self._scopes)
        except (OSError, ValueError) as e:
            raise TokenStoreError(f"Could not read token file {self._token_path}: {e}") from e

    def save(self, credentials: Credentials) -> None:
        print(f"Saving token file: {self._token_path}")
        try:
            self._token_path.parent.mkdir(parents=True, exist_ok=True)
            self._token_path.write_text(credentials.to_json())
        except OSError as e:
            raise TokenStoreError(f"Could not create token file {self._token_path}: {e}") from e
        logger.info("[FileTokenRepository] token saved to %s", self._token_path)


class MemoryTokenRepository(TokenRepository):
    def __init__(self, credentials: Credentials | None = None):
        self.credentials = credentials
        self.saves = 0

    def load(self) -> Credentials | None:
        return self.credentials

    def save(self, credentials: Credentials) -> None:
        self.credentials = credentials
        self.saves += 1


def build_service(credentials: Credentials):
    """Bind a Gmail v1 resource to the credentials. No request is made here."""
    try:
        return build("gmail", "v1", credentials=credentials, cache_discovery=False)
    except Exception as e:
        raise AuthenticationError(f"Could not create Gmail service: {e}") from e


class GmailAuth:
    def __init__(
        self,
        credentials_path: str | None = None,
        token_path: str | None = None,
        scopes: list[str] | None = None,
        repository: TokenRepository | None = None,
        code_provider: CodeProvider | None = None,
    ):
        self._credentials_path = credentials_path or settings.credentials_path
        self._scopes = scopes or SCOPES
        self._repository = repository or FileTokenRepository(token_path, self._scopes)
        self._code_provider = code_provider or console_code_provider
        self._creds: Credentials | None = None
        self._client_config: dict | None = None

    def authenticate(self) -> Credentials:
        # Client config is required even when a cached token makes it unused.
        self._client_config = load_client_config(self._credentials_path)
        try:
            self._creds = self._repository.load()
        except TokenStoreError as e:
            logger.warning("[GmailAuth] %s; starting a new authorization", e)
            self._creds = None

        if self._creds and self._creds.valid:
            return self._creds

        if self._creds and self._creds.refresh_token and self._refresh():
            self._repository.save(self._creds)
            return self._creds

        self._creds = self.acquire_interactive()
        self._repository.save(self._creds)
        return self._creds

    def acquire_interactive(self) -> Credentials:
        if self._client_config is None:
            self._client_config = load_client_config(self._credentials_path)
        config = self._client_config
        try:
            flow = Flow.from_client_config(
                config, scopes=self._scopes, redirect_uri=_redirect_uri(config),
            )
        except ValueError as e:
            raise AuthenticationError(f"Could not create OAuth2 config: {e}") from e

        authorization_url, _ = flow.authorization_url(
            state=AUTH_STATE,
            access_type="offline",
            prompt="consent",
        )
        logger.info("[GmailAuth] starting OAuth2 authorization-code flow")
        try:
            code = self._code_provider(authorization_url)
            if not code:
                raise AuthenticationError("No authorization code entered")
            flow.fetch_token(code=code)
        except AuthenticationError:
            raise
        except Exception as e:
            raise AuthenticationError(f"Could not get token: {e}") from e
        return flow.credentials

    def get_service(self):
        if not self._creds or not self._creds.valid:
            self.authenticate()
        return build_service(self._creds)

    def _refresh(self) -> bool:
        logger.info("[GmailAuth] refreshing expired token")
        try:
            self._creds.refresh(Request())
        except GoogleAuthError as e:
            logger.warning("[GmailAuth] token refresh failed: %s", e)
            return False
        return True
