"""Content-hash keyed cache of per-file extraction results."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import orjson
from pydantic import ValidationError

from archctl.logging import get_logger
from archctl.models.graph import ExtractionResult
from archctl.utils import load_json, write_json_atomic

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from archctl.rules.config import CapabilityPattern

logger = get_logger("graph.cache")

CACHE_VERSION = "1.0.0"
CACHE_FILENAME = "cache.json"


def compute_context_hash(
    capability_patterns: Sequence[CapabilityPattern], extractor_version: str
) -> str:
    """Hash of everything besides file content that shapes extraction output."""
    payload = orjson.dumps(
        {
            "extractor": extractor_version,
            "capabilities": [p.model_dump(mode="json") for p in capability_patterns],
        },
        option=orjson.OPT_SORT_KEYS,
    )
    return hashlib.sha256(payload).hexdigest()


def compute_content_hash(content: bytes, context_hash: str) -> str:
    digest = hashlib.sha256()
    digest.update(content)
    digest.update(context_hash.encode("utf-8"))
    return digest.hexdigest()


class ScanCache:
    """Extraction cache persisted as ``{version, entries: {path: entry}}``.

    Each entry is ``{hash, timestamp, result}``. Anything unreadable or
    of another version is discarded with a warning.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._entries: dict[str, dict[str, Any]] = {}
        self._dirty = False

    @classmethod
    def load(cls, path: Path) -> ScanCache:
        cache = cls(path)
        if not path.is_file():
            return cache
        try:
            data = load_json(path)
        except (OSError, orjson.JSONDecodeError) as exc:
            logger.warning("Discarding unreadable scan cache %s: %s", path, exc)
            return cache
        if not isinstance(data, dict) or data.get("version") != CACHE_VERSION:
            logger.warning("Discarding scan cache %s with mismatched version", path)
            return cache
        entries = data.get("entries")
        if isinstance(entries, dict):
            cache._entries = {
                key: value
                for key, value in entries.items()
                if isinstance(key, str) and isinstance(value, dict)
            }
        return cache

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def dirty(self) -> bool:
        return self._dirty

    def get(self, file_path: str, content_hash: str) -> ExtractionResult | None:
        entry = self._entries.get(file_path)
        if entry is None or entry.get("hash") != content_hash:
            return None
        try:
            return ExtractionResult.model_validate(entry.get("result"))
        except ValidationError:
            logger.warning("Discarding invalid cache entry for %s", file_path)
            del self._entries[file_path]
            self._dirty = True
            return None

    def put(self, file_path: str, content_hash: str, result: ExtractionResult) -> None:
        self._entries[file_path] = {
            "hash": content_hash,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "result": result.to_json_dict(),
        }
        self._dirty = True

    def prune(self, keep: set[str]) -> None:
        """Drop entries for files that are no longer scanned."""
        stale = [key for key in self._entries if key not in keep]
        for key in stale:
            del self._entries[key]
        if stale:
            self._dirty = True

    def save(self) -> None:
        if not self._dirty:
            return
        write_json_atomic(self.path, {"version": CACHE_VERSION, "entries": self._entries})
        self._dirty = False


__all__ = [
    "CACHE_FILENAME",
    "CACHE_VERSION",
    "ScanCache",
    "compute_content_hash",
    "compute_context_hash",
]
