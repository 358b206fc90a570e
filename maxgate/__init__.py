"""maxgate: Max messenger webhook normalization and Bot API error handling."""

__version__ = "0.1.0"
