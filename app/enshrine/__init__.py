"""enshrine - Lifecycle management for deployed release directories."""

__version__ = "0.1.0"
