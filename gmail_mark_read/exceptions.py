class MarkReadError(Exception):
    pass


class AuthenticationError(MarkReadError):
    pass


class TokenStoreError(MarkReadError):
    pass


class GmailAPIError(MarkReadError):
    pass


class ListingError(MarkReadError):
    pass
