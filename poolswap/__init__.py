"""Quote and execute swaps against a Soroban constant-product pool."""

__version__ = "0.1.0"
