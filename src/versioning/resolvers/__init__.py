"""Version resolvers."""

from .wordpress import WordPressVersionResolver

__all__ = [
    "WordPressVersionResolver",
]
