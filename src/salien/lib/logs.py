"""Logging helpers.

``configure_logging`` is called once by the CLI. ``AccountLogger`` tags
every line an account loop writes with a short account label, so the
interleaved output of several accounts stays readable.
"""

import logging
from collections.abc import MutableMapping
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def account_label(token: str) -> str:
    """Short, non-secret label for a token."""
    return token[:6]


class AccountLogger(logging.LoggerAdapter[logging.Logger]):
    """Prefixes messages with ``[label]``."""

    def __init__(self, logger: logging.Logger, label: str) -> None:
        super().__init__(logger, {"account": label})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['account'] if self.extra else '?'}] {msg}", kwargs
