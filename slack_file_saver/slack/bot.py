"""Slack bot: Socket Mode dispatch loop and process entry point.

WHY: Users drop files into a Slack channel and expect them to show up in
a local directory, with a short confirmation per file. This module is the
glue: it drains the envelope stream, acknowledges what Slack needs
acknowledged, and routes messages and slash commands to their handlers.

HOW: FileSaverBot.run() iterates the transport's envelope stream on a
single worker thread and calls dispatch() for each envelope. Messages go
through the self-message filter and then the file retrieval pipeline;
slash commands go to the command responder. main() loads settings, builds
the Slack clients, connects, and blocks on the worker.

RULES:
- ApiEvent and SlashCommandEvent are ack()'d before their handler runs
- Unrecognized envelopes are logged and skipped, never ack()'d
- No exception escapes dispatch(); the worker must outlive any one event
- Envelopes are handled strictly one at a time, in arrival order
- Runnable as: python -m slack_file_saver
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import Any, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError
from typing_extensions import assert_never

from slack_file_saver.config import ConfigError, Settings, ensure_upload_dir, load_settings
from slack_file_saver.slack.commands import CommandResponder
from slack_file_saver.slack.events import (
    EVENT_TYPE_MESSAGE,
    ApiEvent,
    Connected,
    ConnectionFailed,
    Connecting,
    Envelope,
    SlashCommandEvent,
    Unrecognized,
    parse_message_event,
)
from slack_file_saver.slack.identity import BotIdentityCache, IdentityLookupError
from slack_file_saver.slack.notifier import Notifier
from slack_file_saver.slack.retrieval import FileRetriever
from slack_file_saver.slack.transport import SocketModeTransport

logger = logging.getLogger(__name__)


class FileSaverBot:
    """Routes envelopes from the transport to the message and command paths."""

    def __init__(
        self,
        transport: Any,
        identity: BotIdentityCache,
        retriever: FileRetriever,
        commands: CommandResponder,
    ) -> None:
        self._transport = transport
        self._identity = identity
        self._retriever = retriever
        self._commands = commands
        self._worker = None  # type: Optional[threading.Thread]

    @property
    def transport(self) -> Any:
        return self._transport

    # -- event loop ---------------------------------------------------------

    def start(self) -> threading.Thread:
        """Start the dispatch worker thread."""
        self._worker = threading.Thread(target=self.run, name="event-dispatch", daemon=True)
        self._worker.start()
        return self._worker

    def run(self) -> None:
        """Drain the envelope stream until the transport closes it."""
        for envelope in self._transport.events():
            try:
                self.dispatch(envelope)
            except Exception:
                logger.exception("Unhandled error while processing %s", type(envelope).__name__)

    def dispatch(self, envelope: Envelope) -> None:
        """Handle a single envelope.

        WHY: Slack redelivers anything that is not acknowledged, so the ack
        has to happen before the (possibly slow) handler runs.

        RULES:
        - Lifecycle envelopes are only logged
        - Non-message API events are acked and ignored
        - Unrecognized envelopes are not acked
        - An envelope outside the Envelope union raises AssertionError
        """
        if isinstance(envelope, Connecting):
            logger.info("Connecting to Slack with Socket Mode...")
        elif isinstance(envelope, ConnectionFailed):
            logger.warning("Connection failed. Retrying... (%s)", envelope.error)
        elif isinstance(envelope, Connected):
            logger.info("Connected to Slack with Socket Mode.")
        elif isinstance(envelope, ApiEvent):
            self._transport.ack(envelope.envelope_id)
            logger.info("Event received: %s", envelope.event_type)
            self.handle_api_event(envelope)
        elif isinstance(envelope, SlashCommandEvent):
            self._transport.ack(envelope.envelope_id)
            self._commands.respond(envelope.command)
        elif isinstance(envelope, Unrecognized):
            logger.warning("Ignored %s request: %s", envelope.request_type or "unknown", envelope.reason)
        else:
            assert_never(envelope)

    # -- message path -------------------------------------------------------

    def handle_api_event(self, envelope: ApiEvent) -> None:
        if envelope.event_type != EVENT_TYPE_MESSAGE:
            return

        message = parse_message_event(envelope.event)
        if message is None:
            logger.warning("Ignored malformed message event")
            return

        try:
            if self._identity.is_self(message):
                return
        except IdentityLookupError as exc:
            logger.error("Error getting bot info: %s", exc)
            return

        if message.files:
            self._retriever.retrieve_all(message)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_bot(settings: Settings) -> FileSaverBot:
    """Wire the Slack clients and handlers for the given settings."""
    web_client = WebClient(token=settings.bot_token, timeout=settings.slack_api_timeout_s)
    transport = SocketModeTransport(
        app_token=settings.app_token,
        web_client=web_client,
        debug=settings.debug,
    )
    notifier = Notifier(web_client)
    retriever = FileRetriever(
        client=web_client,
        notifier=notifier,
        upload_dir=settings.upload_dir,
        bot_token=settings.bot_token,
        timeout_s=settings.download_timeout_s,
    )
    return FileSaverBot(
        transport=transport,
        identity=BotIdentityCache(web_client),
        retriever=retriever,
        commands=CommandResponder(notifier),
    )


def main() -> None:
    """Start the bot in Socket Mode and block until interrupted.

    RULES:
    - Requires SLACK_BOT_TOKEN and SLACK_APP_TOKEN
    - Misconfiguration exits with status 1
    """
    try:
        settings = load_settings()
        ensure_upload_dir(settings.upload_dir)
    except ConfigError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("%s", exc)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    bot = build_bot(settings)
    transport = bot.transport

    logger.info("Starting Slack bot...")
    logger.info("Saving files to: %s", settings.upload_dir.resolve())

    worker = bot.start()
    try:
        transport.connect()
        while worker.is_alive():
            worker.join(timeout=1.0)
    except (SlackApiError, OSError) as exc:
        logger.error("Error starting bot: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        transport.close()


if __name__ == "__main__":
    main()
