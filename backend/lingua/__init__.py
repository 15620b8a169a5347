"""Lingua Review - spaced-repetition study sessions for vocabulary."""

__version__ = "0.1.0"
