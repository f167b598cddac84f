"""Salien territory-control bot.

Keeps one or more Steam accounts playing the planet/zone minigame:
join the most valuable planet, sit in its hardest zone, report the
score, fight bosses when they appear.

Structure:
- salien/bot/: Game logic
  - client.py: HTTP client for the game service
  - models.py: Planet, Zone and Player snapshots
  - errors.py: Error taxonomy
  - blacklist.py: Shared blacklist of zones that refuse joins
  - selector.py: Best-planet ranking with a shared TTL cache
  - round.py: Per-account round state machine (zones, scores, bosses)
  - account.py: Account loop with backoff
  - core.py: Shared context and process runner
  - config.py: Configuration via pydantic-settings

- salien/lib/: Reusable pieces (retry, cache, scheduler, throttle, metrics)

- salien/environment/: Command line entry point
"""
