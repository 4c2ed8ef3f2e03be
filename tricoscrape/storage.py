"""
Writing and reading the output file (courses.json).

Schema, mirroring the search endpoint envelope:

    {"totalCount": <int>, "data": [<course>, ...]}

Every course additionally carries "descriptionUrl" and "description".
The file is written once, at the end of a run.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from tricoscrape.errors import DecodeError, PersistenceError
from tricoscrape.model import Dataset


def dataset_to_json(dataset: Dataset) -> dict[str, Any]:
    """
    Assemble the output document from the frozen course list.
    """
    courses = dataset.freeze()
    return {
        "totalCount": dataset.total_count,
        "data": [course.to_json() for course in courses],
    }


def write_dataset(dataset: Dataset, path: str | Path) -> Path:
    """
    Write dataset as pretty-printed UTF-8 JSON to path.

    Creates parent directories if needed. Any OS-level failure is
    raised as PersistenceError; nothing is retried.
    """
    out_path = Path(path)
    payload = json.dumps(dataset_to_json(dataset), indent=2, ensure_ascii=False)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload + "\n", encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"could not write {out_path}: {exc}") from exc
    return out_path


def load_dataset(path: str | Path) -> Dataset:
    """
    Read a file written by write_dataset back into a Dataset.
    """
    in_path = Path(path)
    try:
        raw = json.loads(in_path.read_text(encoding="utf-8"))
        return Dataset.from_json(raw)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, DecodeError) as exc:
        raise PersistenceError(f"could not read {in_path}: {exc}") from exc
