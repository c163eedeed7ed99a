from datetime import datetime

import pytest
from google.oauth2.credentials import Credentials

from gmail_mark_read.client import MailService
from gmail_mark_read.config import get_settings
from gmail_mark_read.exceptions import GmailAPIError


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_raw_message():
    return {
        "id": "msg_123",
        "threadId": "thread_456",
        "labelIds": ["INBOX", "UNREAD"],
        "snippet": "Test email snippet",
        "historyId": "12345",
        "payload": {
            "mimeType": "text/plain",
            "headers": [
                {"name": "From", "value": "sender@example.com"},
                {"name": "To", "value": "recipient@example.com"},
                {"name": "Subject", "value": "Test Subject"},
                {"name": "Date", "value": "Tue, 14 Nov 2023 12:00:00 +0000"},
            ],
        },
    }


def raw_message(message_id: str, subject: str, date: str = "Tue, 14 Nov 2023 12:00:00 +0000") -> dict:
    return {
        "id": message_id,
        "payload": {
            "headers": [
                {"name": "Subject", "value": subject},
                {"name": "Date", "value": date},
            ],
        },
    }


class FakeMailClient(MailService):
    """In-memory mailbox.

    ``listings`` holds one entry per listing run, each a list of pages of ids.
    A list call without a page token starts the next listing run.
    """

    def __init__(self, listings, messages=None, get_failures=(), mark_failures=(), list_failures=()):
        self._listings = list(listings)
        self._current: list[list[str]] = []
        self.messages = messages or {}
        self.get_failures = set(get_failures)
        self.mark_failures = set(mark_failures)
        self.list_failures = set(list_failures)
        self.list_calls: list[tuple[str, str | None, int]] = []
        self.get_calls: list[str] = []
        self.mark_calls: list[tuple[str, str]] = []

    def list_messages_page(self, query, page_token=None, max_results=500):
        self.list_calls.append((query, page_token, max_results))
        if len(self.list_calls) in self.list_failures:
            raise GmailAPIError("503 backend error")
        if page_token is None:
            self._current = list(self._listings.pop(0))
            index = 0
        else:
            index = int(page_token.removeprefix("page-"))
        ids = self._current[index]
        next_token = f"page-{index + 1}" if index + 1 < len(self._current) else ""
        return ids, next_token

    def get_metadata(self, message_id):
        self.get_calls.append(message_id)
        if message_id in self.get_failures:
            raise GmailAPIError(f"Failed to get message {message_id}: 404 not found")
        return self.messages.get(message_id, raw_message(message_id, f"Subject {message_id}"))

    def remove_label(self, message_id, label_id):
        self.mark_calls.append((message_id, label_id))
        if message_id in self.mark_failures:
            raise GmailAPIError(f"Failed to modify message {message_id}: 429 rate limited")
        return {"id": message_id, "labelIds": ["INBOX"]}


@pytest.fixture
def fake_client():
    return FakeMailClient


@pytest.fixture
def credentials():
    return Credentials(
        token="access-token",
        refresh_token="refresh-token",
        token_uri="https://oauth2.googleapis.com/token",
        client_id="client-id.apps.googleusercontent.com",
        client_secret="client-secret",
        scopes=["https://www.googleapis.com/auth/gmail.modify"],
    )


@pytest.fixture
def expired_credentials(credentials):
    credentials.expiry = datetime(2000, 1, 1)
    return credentials


@pytest.fixture
def credentials_file(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(
        '{"installed": {"client_id": "client-id.apps.googleusercontent.com",'
        ' "client_secret": "client-secret",'
        ' "auth_uri": "https://accounts.google.com/o/oauth2/auth",'
        ' "token_uri": "https://oauth2.googleapis.com/token",'
        ' "redirect_uris": ["http://localhost"]}}'
    )
    return path
