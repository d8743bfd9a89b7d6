"""Exception taxonomy shared by the runner, backtester and service layer."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when a request or setting is invalid before any data is fetched.

    Covers missing required fields, unknown granularity or exchange,
    out-of-range day counts and explicitly requested pairs that the
    exchange catalog does not list.
    """


class CandleSourceError(RuntimeError):
    """Raised when an exchange answers with an error envelope or a malformed payload."""

    def __init__(self, exchange: str, message: str) -> None:
        super().__init__(f"{exchange}: {message}")
        self.exchange = exchange
