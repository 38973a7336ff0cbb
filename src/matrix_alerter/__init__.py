"""Matrix Alerter - deliver monitoring alerts to Matrix rooms."""

__version__ = "0.1.0"
