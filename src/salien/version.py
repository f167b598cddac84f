"""Bot version, reported at startup.

Bump the minor version when round behaviour changes (zone choice,
ranking, timings), the patch version for fixes.
"""

BOT_VERSION = "0.4.0"
