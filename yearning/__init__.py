"""Records, settings, crypto, tokens, notifications, query formatting and workflow rules for a SQL audit platform."""

__version__ = "0.1.0"