"""TradeSearch: search abstraction layer for the B2B trading platform."""

__version__ = "0.1.0"
