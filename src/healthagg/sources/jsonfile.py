"""JSON-file backed stores.

Each file holds a list of raw documents (or an object with a ``records``
list).  Used by the CLI and handy for tests; real deployments plug in their
own stores with the same ``query`` signatures.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

from healthagg.errors import SourceUnavailable
from healthagg.sources.base import RawDocument, parse_day


def read_documents(source: str, path: str | Path) -> list[RawDocument]:
    """Load the documents in ``path``; any read/parse failure is SourceUnavailable."""
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise SourceUnavailable(source, f"file not found: {path}")
    except (OSError, json.JSONDecodeError) as e:
        raise SourceUnavailable(source, f"cannot read {path}: {e}")

    if isinstance(data, dict) and "records" in data:
        data = data["records"]
    if not isinstance(data, list):
        raise SourceUnavailable(source, f"{path} must hold a list of documents")
    return data


def _doc_day(doc: Any, *fields: str) -> date | None:
    if not isinstance(doc, dict):
        return None
    for name in fields:
        try:
            return parse_day(doc.get(name))
        except ValueError:
            continue
    return None


def _sort_key(day: date | None) -> date:
    return day or date.min


class JsonNutritionStore:
    source = "nutrition"

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def query(self, start_date: date) -> list[RawDocument]:
        docs = read_documents(self.source, self.path)
        keyed = [(_doc_day(doc, "date"), doc) for doc in docs]
        # Documents we can't date are passed through so the adapter can report them.
        return [doc for day, doc in keyed if day is None or day >= start_date]


class JsonActivityStore:
    source = "activity"

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def query(self, user_id: str, start_date: date, limit: int) -> list[RawDocument]:
        docs = read_documents(self.source, self.path)
        docs = [
            doc for doc in docs
            if not isinstance(doc, dict) or doc.get("userId", user_id) == user_id
        ]
        keyed = [(_doc_day(doc, "date", "start_date", "start_date_local"), doc) for doc in docs]
        keyed = [(day, doc) for day, doc in keyed if day is None or day >= start_date]
        keyed.sort(key=lambda item: _sort_key(item[0]), reverse=True)
        return [doc for _, doc in keyed[:limit]]


class JsonLabPanelStore:
    source = "labs"

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def query(self, user_id: str, limit: int = 1) -> list[RawDocument]:
        docs = read_documents(self.source, self.path)
        docs = [
            doc for doc in docs
            if not isinstance(doc, dict) or doc.get("userId", user_id) == user_id
        ]
        docs.sort(key=lambda doc: _sort_key(_doc_day(doc, "date")), reverse=True)
        return docs[:limit]
