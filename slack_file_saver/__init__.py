"""Slack file saver: downloads files shared in Slack to a local directory.

WHY: Teams share files in Slack channels and want them collected on disk
without anyone downloading them by hand. The bot watches the channels it
is in, saves every attachment, and confirms each one in the channel.

HOW: A Socket Mode connection delivers events; a single worker classifies
them, drops the bot's own messages, downloads attachments with httpx, and
replies through the Slack Web API.

RULES:
- One reply per file, success or failure
- Files land directly under the upload directory, never outside it
"""

__version__ = "0.1.0"
