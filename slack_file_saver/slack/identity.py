"""Bot identity lookup and the self-message filter.

WHY: The bot posts messages into the same channels it listens to. Those
messages come back as events and must be dropped before any download or
reply happens, otherwise the bot talks to itself.

HOW: BotIdentityCache resolves the bot's user ID and bot ID through
auth.test the first time it is needed and keeps the answer for the life
of the process. A lock guards the first resolution so concurrent callers
never issue two lookups. A failed lookup is not cached; the next message
tries again.

RULES:
- Identity cannot change at runtime, so a successful lookup is final
- Lookup failures raise IdentityLookupError; callers skip the one event
- A message is "self" if its user matches the bot user ID or its bot_id
  matches the bot ID
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

from slack_sdk.errors import SlackApiError

from slack_file_saver.slack.events import MessageEvent

logger = logging.getLogger(__name__)


class IdentityLookupError(Exception):
    """Raised when the bot identity cannot be resolved."""


@dataclass(frozen=True)
class BotIdentity:
    user_id: str
    bot_id: Optional[str] = None


class BotIdentityCache:
    """Process-wide, lazily resolved bot identity."""

    def __init__(self, client: Any) -> None:
        self._client = client
        self._identity = None  # type: Optional[BotIdentity]
        self._lock = threading.Lock()

    @property
    def resolved(self) -> bool:
        return self._identity is not None

    def get(self) -> BotIdentity:
        """Return the bot identity, resolving it on first use."""
        identity = self._identity
        if identity is not None:
            return identity

        with self._lock:
            if self._identity is None:
                self._identity = self._lookup()
            return self._identity

    def _lookup(self) -> BotIdentity:
        try:
            resp = self._client.auth_test()
        except (SlackApiError, OSError) as exc:
            raise IdentityLookupError("auth.test failed: {}".format(exc)) from exc

        user_id = resp.get("user_id") or ""
        if not user_id:
            raise IdentityLookupError("auth.test returned no user_id")

        identity = BotIdentity(user_id=user_id, bot_id=resp.get("bot_id"))
        logger.info("Resolved bot identity: user=%s bot=%s", identity.user_id, identity.bot_id)
        return identity

    def is_self(self, message: MessageEvent) -> bool:
        """True if the message was authored by this bot."""
        identity = self.get()
        if message.user and message.user == identity.user_id:
            return True
        if message.bot_id and identity.bot_id and message.bot_id == identity.bot_id:
            return True
        return False
