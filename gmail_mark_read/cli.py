"""
Mark every unread Gmail message as read.

Usage:
    gmail-mark-read                              # all unread mail
    gmail-mark-read --query "is:unread older_than:30d"
    gmail-mark-read --credentials path/to/credentials.json --token path/to/token.json

The first run prints an authorization link and asks for the code Google shows
after consent; the token is cached for later runs.
"""
import argparse
import logging

from pydantic import ValidationError

from gmail_mark_read.auth import GmailAuth
from gmail_mark_read.client import GmailClient
from gmail_mark_read.config import get_settings
from gmail_mark_read.exceptions import MarkReadError
from gmail_mark_read.pipeline import MarkReadPipeline

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s | %(message)s"


def _page_size(value: str) -> int:
    size = int(value)
    if not 0 < size <= 500:
        raise argparse.ArgumentTypeError(f"must be between 1 and 500, got {size}")
    return size


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gmail-mark-read", description="Mark all unread Gmail messages as read")
    parser.add_argument("--credentials", type=str, help="OAuth client secrets file (default: credentials.json)")
    parser.add_argument("--token", type=str, help="Cached token file (default: token.json)")
    parser.add_argument("--user", type=str, help="Mailbox user id (default: me)")
    parser.add_argument("--query", type=str, help="Gmail search query (default: is:unread)")
    parser.add_argument("--page-size", type=_page_size, help="Messages per list request, at most 500")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = get_settings()
    except ValidationError as e:
        logging.basicConfig(format=LOG_FORMAT)
        logger.error("Invalid GMAIL_MARK_READ_* settings: %s", e)
        return 1
    logging.basicConfig(level=logging.DEBUG if args.verbose else config.log_level, format=LOG_FORMAT)

    try:
        auth = GmailAuth(credentials_path=args.credentials, token_path=args.token)
        service = auth.get_service()
        client = GmailClient(auth, user_id=args.user, service=service)
        pipeline = MarkReadPipeline(client, query=args.query, page_size=args.page_size)
        pipeline.run()
    except MarkReadError as e:
        logger.error("%s", e)
        return 1
    return 0
