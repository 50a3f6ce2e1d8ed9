from enum import Enum


class MistakeType(str, Enum):
    """Severity buckets shared by analysis, scheduler and UI."""

    blunder = "blunder"
    mistake = "mistake"
    inaccuracy = "inaccuracy"


class Side(str, Enum):
    white = "white"
    black = "black"


class RecallConfidence(str, Enum):
    """How the learner rates the answer they just gave.

    The first three apply to correct answers, the last three to misses.
    """

    very_confident = "very_confident"
    somewhat_confident = "somewhat_confident"
    lucky_guess = "lucky_guess"
    knew_it_but_missed = "knew_it_but_missed"
    somewhat_familiar = "somewhat_familiar"
    completely_new = "completely_new"
