"""chess_review: spaced-repetition review of recorded chess mistakes."""

__version__ = "0.1.0"
