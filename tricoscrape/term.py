"""
Term codes.

Banner identifies a catalog by year + two-digit semester suffix:

    fall 2024   -> 202404
    spring 2024 -> 202402
"""

from __future__ import annotations

FALL_SUFFIX = "04"
SPRING_SUFFIX = "02"


def encode_term(semester: str, year: str) -> str:
    # Only two semesters exist; every label that is not "fall" is spring.
    if semester.strip().lower() == "fall":
        return f"{year}{FALL_SUFFIX}"
    return f"{year}{SPRING_SUFFIX}"
