from gmail_mark_read.auth import (
    FileTokenRepository,
    GmailAuth,
    MemoryTokenRepository,
    TokenRepository,
    build_service,
    console_code_provider,
)
from gmail_mark_read.client import GmailClient, MailService, MessageMetadata
from gmail_mark_read.config import MarkReadSettings, settings
from gmail_mark_read.exceptions import (
    AuthenticationError,
    GmailAPIError,
    ListingError,
    MarkReadError,
    TokenStoreError,
)
from gmail_mark_read.pipeline import MarkReadPipeline, MessageOutcome, RunSummary, list_all_unread

__all__ = [
    "GmailAuth",
    "TokenRepository",
    "FileTokenRepository",
    "MemoryTokenRepository",
    "build_service",
    "console_code_provider",
    "GmailClient",
    "MailService",
    "MessageMetadata",
    "MarkReadSettings",
    "settings",
    "MarkReadPipeline",
    "MessageOutcome",
    "RunSummary",
    "list_all_unread",
    "MarkReadError",
    "AuthenticationError",
    "TokenStoreError",
    "GmailAPIError",
    "ListingError",
]
