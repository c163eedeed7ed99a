import enum
import logging
from dataclasses import dataclass
from datetime import datetime

from gmail_mark_read.client import UNREAD_LABEL, GmailClient, MailService
from gmail_mark_read.config import settings
from gmail_mark_read.exceptions import GmailAPIError, ListingError

logger = logging.getLogger(__name__)

UNREAD_QUERY = "is:unread"
MAX_PAGE_SIZE = 500


def list_all_unread(
    client: MailService, query: str = UNREAD_QUERY, page_size: int = MAX_PAGE_SIZE,
) -> list[str]:
    """Follow page tokens until the listing is exhausted.

    A failure on any page aborts the whole listing; pages already fetched
    are discarded.
    """
    message_ids: list[str] = []
    page_token = None
    pages = 0
    while True:
        try:
            ids, page_token = client.list_messages_page(query, page_token, page_size)
        except GmailAPIError as e:
            raise ListingError(f"Could not fetch messages: {e}") from e
        pages += 1
        message_ids.extend(ids)
        if not page_token:
            break
    logger.debug("[list_all_unread] %d messages over %d pages", len(message_ids), pages)
    return message_ids


def format_received(date: datetime) -> str:
    # isoformat keeps the zero-padded year that strftime drops for year 1
    return date.replace(tzinfo=None).isoformat(sep=" ", timespec="seconds")


class MessageOutcome(enum.Enum):
    SKIPPED = "skipped"
    MARKED = "marked"
    MARK_FAILED = "mark_failed"


@dataclass
class RunSummary:
    total_unread: int = 0
    marked_read: int = 0
    remaining_unread: int = 0
    skipped: int = 0
    mark_failed: int = 0


class MarkReadPipeline:
    def __init__(
        self,
        client: MailService | None = None,
        query: str | None = None,
        page_size: int | None = None,
    ):
        self._client = client or GmailClient()
        self._query = query or settings.query
        self._page_size = min(page_size or settings.page_size, MAX_PAGE_SIZE)

    def list_unread(self) -> list[str]:
        return list_all_unread(self._client, self._query, self._page_size)

    def process_message(self, message_id: str) -> MessageOutcome:
        try:
            raw = self._client.get_metadata(message_id)
        except GmailAPIError as e:
            logger.error("Could not retrieve message %s: %s", message_id, e)
            return MessageOutcome.SKIPPED

        metadata = GmailClient.parse_metadata(raw)
        print(f"📧 {metadata.subject} - Received: {format_received(metadata.date)}")

        try:
            self._client.remove_label(message_id, UNREAD_LABEL)
        except GmailAPIError as e:
            logger.error("❌ Failed to mark message %s as read: %s", message_id, e)
            return MessageOutcome.MARK_FAILED

        print("✅ Marked as read!")
        return MessageOutcome.MARKED

    def run(self) -> RunSummary:
        unread = self.list_unread()
        summary = RunSummary(total_unread=len(unread))
        print(f"📩 Total unread emails: {summary.total_unread}")

        if not unread:
            print("✅ No unread messages found.")
            return summary

        for message_id in unread:
            outcome = self.process_message(message_id)
            if outcome is MessageOutcome.MARKED:
                summary.marked_read += 1
            elif outcome is MessageOutcome.MARK_FAILED:
                summary.mark_failed += 1
            else:
                summary.skipped += 1

        # Independent second query; may not equal total - marked against a live mailbox.
        try:
            summary.remaining_unread = len(self.list_unread())
        except ListingError as e:
            raise ListingError(f"Could not fetch updated unread count: {e.__cause__ or e}") from e

        logger.info(
            "[MarkReadPipeline] run complete: %d marked, %d skipped, %d failed to mark",
            summary.marked_read,
            summary.skipped,
            summary.mark_failed,
        )
        print("\n📊 Summary:")
        print(f"🔹 Emails marked as read: {summary.marked_read}")
        print(f"📩 Remaining unread emails: {summary.remaining_unread}")
        return summary
