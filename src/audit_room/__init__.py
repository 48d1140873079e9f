"""Audit room engine for the trading dashboard admin backend."""

__version__ = "0.1.0"
