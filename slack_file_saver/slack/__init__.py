"""Slack integration: envelopes, transport, handlers, and the dispatch loop.

WHY: Everything that talks to Slack lives here, so the storage rules in
slack_file_saver.storage stay free of Slack types.

HOW: transport.py turns Socket Mode requests into typed envelopes from
events.py; bot.py dispatches them to identity.py (self-message filter),
retrieval.py (downloads), commands.py (slash commands), and notifier.py
(replies).

RULES:
- Socket Mode requires SLACK_BOT_TOKEN and SLACK_APP_TOKEN
- Every events_api and slash_commands request must be ack()'d
"""
