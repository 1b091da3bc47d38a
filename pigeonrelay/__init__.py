"""Relayer core for a Paloma validator sidecar serving EVM chains."""

__version__ = "0.1.0"