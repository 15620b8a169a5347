"""
Centralized enum definitions for the application.

Usage:
    from lingua.enums import Grade
"""

from lingua.enums.learning import Grade, PASSING_GRADE

__all__ = ["Grade", "PASSING_GRADE"]
