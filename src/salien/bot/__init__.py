"""Game logic for the territory-control minigame.

- client.py: HTTP client, one request per method, no retries
- models.py: Planet, Zone, Player and response models
- errors.py: SalienError and its subclasses
- blacklist.py: ZoneBlacklist shared by all accounts
- selector.py: PlanetSelector and the ranking rules
- round.py: RoundStateMachine, one round per call
- account.py: AccountLoop
- core.py: BotContext and run_bot
- config.py: Settings
"""
