"""
tricoscrape: download one term of a Banner "Student Registration SSB"
course catalog and attach each section's free-text description.
"""

from pathlib import Path

__version__ = (Path(__file__).resolve().parent / "VERSION").read_text(encoding="utf-8").strip()
