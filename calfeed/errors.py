# calfeed/errors.py
"""
Feed anomalies. The parser raises these internally and absorbs them, so a
caller only ever sees fewer events. FeedFetchError is the exception: it comes
from the transport layer and does propagate.
"""


class FeedError(Exception):
    pass


class MalformedFeed(FeedError):
    pass


class MissingRequiredField(FeedError):
    pass


class InvalidDateToken(FeedError):
    pass


class FeedFetchError(Exception):
    """The calendar could not be fetched (not found, not public, or network)."""
