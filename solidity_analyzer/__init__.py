"""Rule-based static analysis for Solidity syntax trees."""

__version__ = "0.1.0"
