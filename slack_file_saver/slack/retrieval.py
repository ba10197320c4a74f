"""File retrieval pipeline: resolve, download, store, and report each file.

WHY: A message can carry several attachments. Each one has to be fetched
from Slack and written into the upload directory, and the user needs to
hear about every file individually. One broken file (deleted, expired
URL, full disk) must not cost the user the others.

HOW: FileRetriever.retrieve_all() walks the message's files in order and
runs retrieve_one() for each. retrieve_one() goes through four steps, each
with its own exception type:

  files.info          → MetadataResolutionError
  httpx GET (stream)  → FetchError
  open destination    → FileCreationError
  copy bytes          → WriteError

Any DownloadError is turned into an error reply for that file; the loop
then moves to the next one. Errors outside the four steps are wrapped in
a plain DownloadError so they are contained the same way. Successful files get a confirmation reply
naming the original declared filename.

RULES:
- Files are processed one at a time, in declaration order
- Exactly one reply per file (success or failure)
- The HTTP response and the destination file are both closed on every
  exit path (nested with-blocks)
- Non-2xx download responses count as FetchError
- Nothing is written before the download response has succeeded
- A partially written file is removed after a WriteError
- Downloads send the bot token as a bearer header (Slack requires it for
  url_private_download) and use a bounded timeout
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

import httpx

from slack_file_saver.slack.events import FileReference, MessageEvent
from slack_file_saver.slack.notifier import Notifier, log_if_failed
from slack_file_saver.storage import destination_path

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class DownloadError(Exception):
    """Base class for per-file retrieval failures.

    RULES:
    - filename is the original declared name (for user-facing messages)
    - str(error) is "<stage>: <cause>"
    """

    stage = "error downloading file"

    def __init__(self, filename: str, cause: object) -> None:
        super().__init__("{}: {}".format(self.stage, cause))
        self.filename = filename
        self.cause = cause


class MetadataResolutionError(DownloadError):
    stage = "error getting file info"


class FetchError(DownloadError):
    stage = "error downloading file"


class FileCreationError(DownloadError):
    stage = "error creating file"


class WriteError(DownloadError):
    stage = "error writing file"


@dataclass(frozen=True)
class RetrievalResult:
    """Outcome for one file reference."""

    file_id: str
    filename: str
    path: Optional[Path] = None
    error: Optional[DownloadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class FileRetriever:
    """Downloads message attachments into the upload directory."""

    def __init__(
        self,
        client: Any,
        notifier: Notifier,
        upload_dir: Path,
        bot_token: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = client
        self._notifier = notifier
        self._upload_dir = upload_dir
        self._bot_token = bot_token
        self._timeout_s = timeout_s
        # Injected in tests (httpx.MockTransport); None means real network
        self._transport = transport

    def retrieve_all(self, message: MessageEvent) -> List[RetrievalResult]:
        """Process every file on the message and reply once per file."""
        results = []  # type: List[RetrievalResult]
        for file_ref in message.files:
            result = self.retrieve_one(file_ref)
            results.append(result)

            if result.error is not None:
                logger.warning("Error downloading file %s: %s", file_ref.id, result.error)
                sent = self._notifier.notify_failed(message.channel, file_ref.name, result.error)
            else:
                sent = self._notifier.notify_saved(message.channel, file_ref.name)
            log_if_failed(sent, message.channel)
        return results

    def retrieve_one(self, file_ref: FileReference) -> RetrievalResult:
        """Download a single file, returning its outcome instead of raising."""
        try:
            path = self.download(file_ref)
        except DownloadError as exc:
            return RetrievalResult(file_ref.id, file_ref.name, error=exc)
        except Exception as exc:
            logger.exception("Unexpected error downloading file %s", file_ref.id)
            return RetrievalResult(file_ref.id, file_ref.name, error=DownloadError(file_ref.name, exc))
        return RetrievalResult(file_ref.id, file_ref.name, path=path)

    def download(self, file_ref: FileReference) -> Path:
        """Resolve, fetch, and store one file.

        RULES:
        - Raises a DownloadError subclass on any failure
        - Returns the path the file was written to
        """
        path = destination_path(self._upload_dir, file_ref.name)
        url = self.resolve_download_url(file_ref)

        headers = {"Authorization": "Bearer {}".format(self._bot_token)}
        with httpx.Client(
            timeout=self._timeout_s,
            follow_redirects=True,
            transport=self._transport,
        ) as http:
            try:
                with http.stream("GET", url, headers=headers) as resp:
                    resp.raise_for_status()
                    self._write_stream(file_ref, resp, path)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise FetchError(file_ref.name, exc) from exc

        logger.info("File downloaded: %s", path)
        return path

    def resolve_download_url(self, file_ref: FileReference) -> str:
        """Look up the private download URL via files.info."""
        try:
            resp = self._client.files_info(file=file_ref.id)
        except Exception as exc:
            raise MetadataResolutionError(file_ref.name, exc) from exc

        info = resp.get("file") or {}
        url = info.get("url_private_download") or info.get("url_private")
        if not url:
            raise MetadataResolutionError(file_ref.name, "no download URL for {}".format(file_ref.id))
        return url

    def _write_stream(self, file_ref: FileReference, resp: httpx.Response, path: Path) -> None:
        try:
            out = open(path, "wb")
        except OSError as exc:
            raise FileCreationError(file_ref.name, exc) from exc

        try:
            with out:
                for chunk in resp.iter_bytes(_CHUNK_SIZE):
                    out.write(chunk)
        except Exception as exc:
            path.unlink(missing_ok=True)
            raise WriteError(file_ref.name, exc) from exc
