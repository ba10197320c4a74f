"""Slash command replies."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from slack_file_saver.slack.events import SlashCommand
from slack_file_saver.slack.messages import COMMAND_UPLOAD, UPLOAD_INSTRUCTIONS
from slack_file_saver.slack.notifier import Notifier, SendResult, log_if_failed

logger = logging.getLogger(__name__)

# Command → static reply
COMMAND_REPLIES = {
    COMMAND_UPLOAD: UPLOAD_INSTRUCTIONS,
}  # type: Dict[str, str]


class CommandResponder:
    """Answers the fixed set of slash commands.

    Unknown commands get no reply. The dispatch loop has already acked
    the command by the time respond() is called.
    """

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier

    def reply_for(self, command: SlashCommand) -> Optional[str]:
        return COMMAND_REPLIES.get(command.command.strip())

    def respond(self, command: SlashCommand) -> Optional[SendResult]:
        reply = self.reply_for(command)
        if reply is None:
            logger.debug("No reply for slash command %s", command.command)
            return None

        result = self._notifier.send(command.channel_id, reply)
        log_if_failed(result, command.channel_id)
        return result
