"""Chat prompt/context management."""

from .builder import ChatContextBuilder, strip_premium_footers
from .prompts import BOT_SETTINGS_OPTIONS, ChatPrompts

__all__ = [
    "ChatContextBuilder",
    "ChatPrompts",
    "BOT_SETTINGS_OPTIONS",
    "strip_premium_footers",
]
