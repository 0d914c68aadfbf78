"""ghcert: short-lived SSH certificates brokered through GitHub repository dispatch events."""

__version__ = "0.3.0"
