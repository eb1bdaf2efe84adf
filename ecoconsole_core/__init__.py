"""EcoConsole Core - partner administration and campaign verification API."""

__version__ = "0.1.0"
