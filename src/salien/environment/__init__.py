"""Process harness for the bot.

Reads configuration, installs signal handlers, runs the account loops
and reports on exit. The game rules live in salien.bot.

Structure:
- cli/__main__.py: Typer application (``salien run``, ``salien planets``)
"""
