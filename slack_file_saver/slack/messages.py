"""User-facing message texts.

WHY: Every reply the bot posts is a short plain-text line. Keeping the
wording here keeps the handlers focused on control flow and lets tests
assert on the exact strings.

RULES:
- Filenames are the original declared names, wrapped in backticks
- Functions return plain str (no Block Kit)
"""

from __future__ import annotations

# Slash commands the bot answers
COMMAND_UPLOAD = "/upload"

UPLOAD_INSTRUCTIONS = "To upload a file, simply attach it to a message in this channel."


def format_saved(filename: str) -> str:
    return "File `{}` has been successfully downloaded and saved.".format(filename)


def format_download_error(filename: str, error: object) -> str:
    return "Error downloading file `{}`: {}".format(filename, error)
