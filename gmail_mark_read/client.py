import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime

from gmail_mark_read.auth import GmailAuth
from gmail_mark_read.config import settings
from gmail_mark_read.exceptions import GmailAPIError

logger = logging.getLogger(__name__)

UNREAD_LABEL = "UNREAD"
# RFC 1123 with a numeric zone, e.g. "Tue, 14 Nov 2023 12:00:00 +0000"
DATE_FORMAT = "%a, %d %b %Y %H:%M:%S %z"
# strptime alone also takes one-digit days and a bare "Z" zone
DATE_SHAPE = re.compile(r"[A-Z][a-z]{2}, \d{2} [A-Z][a-z]{2} \d{4} \d{2}:\d{2}:\d{2} [+-]\d{4}")
ZERO_DATE = datetime.min.replace(tzinfo=UTC)


@dataclass
class MessageMetadata:
    subject: str = ""
    date: datetime = ZERO_DATE


class MailService(ABC):
    """The three mailbox operations the mark-read run needs."""

    @abstractmethod
    def list_messages_page(
        self, query: str, page_token: str | None = None, max_results: int = 500,
    ) -> tuple[list[str], str]:
        """Return one page of message ids and the next page token ("" on the last page)."""

    @abstractmethod
    def get_metadata(self, message_id: str) -> dict:
        ...

    @abstractmethod
    def remove_label(self, message_id: str, label_id: str) -> dict:
        ...


class GmailClient(MailService):
    def __init__(self, auth: GmailAuth | None = None, user_id: str | None = None, service=None):
        self._auth = auth or GmailAuth()
        self._user_id = user_id or settings.user_id
        self._service = service

    @property
    def service(self):
        if not self._service:
            self._service = self._auth.get_service()
        return self._service

    @property
    def user_id(self) -> str:
        return self._user_id

    # --- Messages ---

    def list_messages_page(
        self, query: str, page_token: str | None = None, max_results: int = 500,
    ) -> tuple[list[str], str]:
        messages = self.service.users().messages()
        kwargs = {"userId": self._user_id, "q": query, "maxResults": max_results}
        if page_token:
            kwargs["pageToken"] = page_token
        try:
            response = messages.list(**kwargs).execute()
        except Exception as e:
            raise GmailAPIError(f"Failed to list messages for '{query}': {e}") from e
        ids = [m["id"] for m in response.get("messages", [])]
        return ids, response.get("nextPageToken", "")

    def get_metadata(self, message_id: str) -> dict:
        messages = self.service.users().messages()
        try:
            return messages.get(
                userId=self._user_id, id=message_id, format="metadata",
            ).execute()
        except Exception as e:
            raise GmailAPIError(f"Failed to get message {message_id}: {e}") from e

    def remove_label(self, message_id: str, label_id: str) -> dict:
        messages = self.service.users().messages()
        body = {"removeLabelIds": [label_id]}
        try:
            return messages.modify(userId=self._user_id, id=message_id, body=body).execute()
        except Exception as e:
            raise GmailAPIError(f"Failed to modify message {message_id}: {e}") from e

    # --- Parsing ---

    @staticmethod
    def parse_headers(headers: list[dict]) -> dict:
        return {h["name"]: h["value"] for h in headers}

    @staticmethod
    def parse_date(value: str | None) -> datetime:
        if not value or not DATE_SHAPE.fullmatch(value):
            return ZERO_DATE
        try:
            return datetime.strptime(value, DATE_FORMAT)
        except ValueError:
            return ZERO_DATE

    @staticmethod
    def parse_metadata(raw_message: dict) -> MessageMetadata:
        headers = GmailClient.parse_headers(raw_message.get("payload", {}).get("headers", []))
        return MessageMetadata(
            subject=headers.get("Subject", ""),
            date=GmailClient.parse_date(headers.get("Date")),
        )
