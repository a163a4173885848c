"""Page-to-host messaging."""

from .tag_channel import DEFAULT_REPORTER, Subscription, TagChannel, make_reporter

__all__ = [
    "DEFAULT_REPORTER",
    "Subscription",
    "TagChannel",
    "make_reporter",
]
