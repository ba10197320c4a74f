"""Best-effort channel replies.

WHY: Each processed file gets exactly one reply in the originating
channel. A reply that fails to post must not stop the next file, but the
failure should not vanish silently either.

HOW: Notifier.send() wraps chat.postMessage and returns a SendResult
instead of raising. Callers decide what to do with a failed result (the
bot logs it and moves on).

RULES:
- One chat.postMessage per send() call, no batching
- No retries
- Any error from chat.postMessage becomes SendResult(ok=False, error=...)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from slack_sdk.errors import SlackApiError

from slack_file_saver.slack.messages import format_download_error, format_saved

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    ok: bool
    error: Optional[str] = None


class Notifier:
    """Posts plain-text messages to a channel."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def send(self, channel: str, text: str) -> SendResult:
        try:
            self._client.chat_postMessage(channel=channel, text=text)
        except SlackApiError as exc:
            return SendResult(ok=False, error=str(exc.response.get("error") or exc))
        except Exception as exc:
            return SendResult(ok=False, error=str(exc))
        return SendResult(ok=True)

    def notify_saved(self, channel: str, filename: str) -> SendResult:
        return self.send(channel, format_saved(filename))

    def notify_failed(self, channel: str, filename: str, error: object) -> SendResult:
        return self.send(channel, format_download_error(filename, error))


def log_if_failed(result: SendResult, channel: str) -> None:
    """Log a failed send; delivery is best-effort."""
    if not result.ok:
        logger.warning("Failed to post message to %s: %s", channel, result.error)
