"""Package entry point for ``python -m slack_file_saver``.

HOW: Delegates to the bot's main(), which loads settings from the
environment (and .env), connects over Socket Mode, and blocks.
"""

from slack_file_saver.slack.bot import main

if __name__ == "__main__":
    main()
