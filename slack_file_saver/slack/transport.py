"""Socket Mode transport: an ordered stream of envelopes plus ack().

WHY: The dispatch loop wants a plain blocking iterator of typed envelopes
and a way to acknowledge them. slack_sdk's SocketModeClient delivers
requests through listener callbacks on its own threads and reports
connection trouble through separate error listeners.

HOW: Listeners classify each request and push the envelope onto a
queue.Queue. connect() announces itself with a Connecting envelope. Raw
message listeners turn every "hello" frame into Connected and every
"disconnect" frame into ConnectionFailed, so reconnects show up too.
Error listeners push ConnectionFailed. events() drains the queue
until close() pushes an end-of-stream sentinel.

RULES:
- The client runs with concurrency=1 so requests reach the queue in the
  order Slack sent them
- Reconnects are handled by the client itself (auto_reconnect_enabled)
- ack() sends an empty SocketModeResponse for the envelope_id
- This module never dispatches; it only produces and acknowledges
"""

from __future__ import annotations

import json
import logging
import queue
from typing import Any, Iterator, Optional

from slack_sdk import WebClient
from slack_sdk.socket_mode import SocketModeClient
from slack_sdk.socket_mode.response import SocketModeResponse

from slack_file_saver.slack.events import (
    Connected,
    ConnectionFailed,
    Connecting,
    Envelope,
    classify_request,
)

logger = logging.getLogger(__name__)

# End-of-stream marker
_CLOSED = object()


class SocketModeTransport:
    """Adapts a SocketModeClient to an envelope iterator."""

    def __init__(
        self,
        app_token: str,
        web_client: WebClient,
        debug: bool = False,
        socket_client: Optional[Any] = None,
    ) -> None:
        self._queue = queue.Queue()  # type: queue.Queue
        if socket_client is None:
            socket_client = SocketModeClient(
                app_token=app_token,
                web_client=web_client,
                trace_enabled=debug,
                auto_reconnect_enabled=True,
                concurrency=1,
            )
        self._socket = socket_client
        self._socket.socket_mode_request_listeners.append(self._on_request)
        self._socket.on_message_listeners.append(self._on_message)
        self._socket.on_error_listeners.append(self._on_error)

    # -- listener callbacks (run on the client's threads) -------------------

    def _on_request(self, client: Any, request: Any) -> None:
        self._queue.put(classify_request(request))

    def _on_message(self, message: str) -> None:
        # Raw frames; hello and disconnect arrive on every (re)connect
        try:
            data = json.loads(message)
        except ValueError:
            return
        if not isinstance(data, dict):
            return
        if data.get("type") == "hello":
            self._queue.put(Connected())
        elif data.get("type") == "disconnect":
            self._queue.put(ConnectionFailed(error="disconnect: {}".format(data.get("reason", ""))))

    def _on_error(self, error: Exception) -> None:
        self._queue.put(ConnectionFailed(error=str(error)))

    # -- public API ---------------------------------------------------------

    def connect(self) -> None:
        """Open the WebSocket connection, announcing it on the stream."""
        self._queue.put(Connecting())
        try:
            self._socket.connect()
        except Exception as exc:
            self._queue.put(ConnectionFailed(error=str(exc)))
            raise

    def events(self) -> Iterator[Envelope]:
        """Yield envelopes in arrival order until close() is called."""
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item

    def ack(self, envelope_id: str) -> None:
        self._socket.send_socket_mode_response(
            SocketModeResponse(envelope_id=envelope_id)
        )

    def close(self) -> None:
        """Disconnect and end the envelope stream."""
        try:
            self._socket.close()
        finally:
            self._queue.put(_CLOSED)
