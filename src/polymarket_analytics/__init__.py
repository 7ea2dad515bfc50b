"""Polymarket Analytics - explainable market, trade and trader signals."""

__version__ = "0.1.0"
