from __future__ import annotations

import json
import os
import re
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# ------------------------------------------------------------
# JSON file storage (one file per collection under DATA_DIR)
# ------------------------------------------------------------
ROOT_DIR = Path(__file__).resolve().parents[2]

_LOCK = threading.RLock()

Doc = Dict[str, Any]


class NotFoundError(LookupError):
    pass


class ConflictError(ValueError):
    pass


class CamelModel(BaseModel):
    """Payload model: accepts camelCase (wire) or snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_doc(self, partial: bool = False) -> Doc:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=partial)


def data_dir() -> Path:
    raw = (os.getenv("DATA_DIR") or "").strip()
    return Path(raw) if raw else ROOT_DIR / "data"


def now_iso() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="microseconds") + "Z"


def parse_iso(value: Any) -> Optional[datetime]:
    """Parse an ISO date/datetime string into an aware UTC datetime."""
    try:
        s = str(value or "").strip()
        if not s:
            return None
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (TypeError, ValueError):
        return None


def slugify(text: str) -> str:
    s = re.sub(r"[^a-z0-9]+", "-", str(text or "").lower())
    return s.strip("-")


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _read_json(path: Path, default: Any) -> Any:
    try:
        if not path.exists():
            return default
        raw = path.read_text(encoding="utf-8")
        return json.loads(raw) if raw.strip() else default
    except (OSError, ValueError):
        return default


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)


class JsonCollection:
    """A list of documents persisted in ``DATA_DIR/<name>.json``."""

    def __init__(self, name: str, prefix: str):
        self.name = name
        self.prefix = prefix

    @property
    def path(self) -> Path:
        return data_dir() / f"{self.name}.json"

    def load(self) -> List[Doc]:
        data = _read_json(self.path, [])
        return [x for x in data if isinstance(x, dict)] if isinstance(data, list) else []

    def save(self, items: List[Doc]) -> None:
        _write_json(self.path, items)

    @contextmanager
    def transaction(self) -> Iterator[List[Doc]]:
        with _LOCK:
            items = self.load()
            yield items
            self.save(items)

    def mutate(self, fn: Callable[[List[Doc]], Any]) -> Any:
        with self.transaction() as items:
            return fn(items)

    def all(self, newest_first: bool = True) -> List[Doc]:
        items = self.load()
        items.sort(key=lambda x: str(x.get("createdAt") or ""), reverse=newest_first)
        return items

    def find(self, pred: Callable[[Doc], bool], newest_first: bool = True) -> List[Doc]:
        return [x for x in self.all(newest_first=newest_first) if pred(x)]

    def find_one(self, pred: Callable[[Doc], bool]) -> Optional[Doc]:
        return next((x for x in self.load() if pred(x)), None)

    def get(self, doc_id: str) -> Optional[Doc]:
        return self.find_one(lambda x: str(x.get("id")) == str(doc_id))

    def require(self, doc_id: str, label: str = "Document") -> Doc:
        doc = self.get(doc_id)
        if doc is None:
            raise NotFoundError(f"{label} not found")
        return doc

    def stamp_new(self, doc: Doc) -> Doc:
        row = dict(doc or {})
        if not row.get("id"):
            row["id"] = new_id(self.prefix)
        ts = now_iso()
        row.setdefault("createdAt", ts)
        row["updatedAt"] = ts
        return row

    def insert(self, doc: Doc) -> Doc:
        row = self.stamp_new(doc)
        with self.transaction() as items:
            items.append(row)
        return row

    def update(self, doc_id: str, fields: Doc) -> Optional[Doc]:
        with self.transaction() as items:
            row = next((x for x in items if str(x.get("id")) == str(doc_id)), None)
            if row is None:
                return None
            apply_fields(row, fields)
            return row

    def delete(self, doc_id: str) -> Optional[Doc]:
        with self.transaction() as items:
            for i, row in enumerate(items):
                if str(row.get("id")) == str(doc_id):
                    return items.pop(i)
        return None

    def count(self) -> int:
        return len(self.load())


def apply_fields(row: Doc, fields: Doc) -> Doc:
    for k, v in (fields or {}).items():
        if k in ("id", "createdAt"):
            continue
        row[k] = v
    row["updatedAt"] = now_iso()
    return row


class JsonDocument:
    """A single settings document persisted in ``DATA_DIR/<name>.json``."""

    def __init__(self, name: str, defaults: Doc):
        self.name = name
        self.defaults = defaults

    @property
    def path(self) -> Path:
        return data_dir() / f"{self.name}.json"

    def exists(self) -> bool:
        return self.path.exists()

    def default(self) -> Doc:
        return json.loads(json.dumps(self.defaults))

    def load(self) -> Doc:
        data = _read_json(self.path, None)
        if isinstance(data, dict):
            return data
        return self.default()

    def save(self, doc: Doc) -> Doc:
        doc["updatedAt"] = now_iso()
        with _LOCK:
            _write_json(self.path, doc)
        return doc

    def update(self, fn: Callable[[Doc], Optional[Doc]]) -> Doc:
        """Load, apply ``fn`` and write back while holding the store lock."""
        with _LOCK:
            doc = self.load()
            result = fn(doc)
            if result is not None:
                doc = result
            doc["updatedAt"] = now_iso()
            _write_json(self.path, doc)
        return doc
