"""Intraday time-slot seasonality and walk-forward slot backtesting for crypto futures."""

__version__ = "0.1.0"
