"""Monero pool block tracker: fetch, merge and serve found-block timelines."""

__version__ = "0.3.0"
