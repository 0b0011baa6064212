from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(slots=True)
class TopKEntry:
    key: str
    score: float
    payload: Mapping[str, object] | None = None


@dataclass(slots=True)
class TopK:
    k: int = 10
    entries: list[TopKEntry] = field(default_factory=list)

    def add(self, key: str, score: float, payload: Mapping[str, object] | None = None) -> None:
        entry = TopKEntry(key=key, score=float(score), payload=dict(payload or {}))
        self.entries.append(entry)
        self.entries.sort(key=lambda e: (-e.score, e.key))
        if len(self.entries) > max(1, int(self.k)):
            self.entries = self.entries[: int(self.k)]

    def snapshot(self) -> list[Mapping[str, object]]:
        return [
            {"key": entry.key, "score": entry.score, "payload": dict(entry.payload or {})}
            for entry in self.entries
        ]


@dataclass(slots=True)
class Metrics:
    """Session counters and gauges (``days.advanced``, ``purchase.rejected.<reason>`` ...)."""

    counters: dict[str, float] = field(default_factory=dict)
    gauges: dict[str, Any] = field(default_factory=dict)
    topk: dict[str, TopK] = field(default_factory=dict)

    def inc(self, path: str, n: float = 1.0) -> float:
        self.counters[path] = self.counters.get(path, 0.0) + float(n)
        return self.counters[path]

    def get(self, path: str, default: float = 0.0) -> float:
        return self.counters.get(path, default)

    def set_gauge(self, path: str, value: Any) -> Any:
        self.gauges[path] = value
        return value

    def topk_add(self, path: str, key: str, score: float, payload: Mapping[str, object] | None = None) -> None:
        bucket = self.topk.get(path)
        if bucket is None:
            bucket = TopK()
            self.topk[path] = bucket
        bucket.add(key, score, payload=payload)

    def snapshot(self) -> dict[str, Any]:
        return {
            "counters": {k: float(v) for k, v in sorted(self.counters.items())},
            "gauges": {k: self._to_jsonable(v) for k, v in sorted(self.gauges.items())},
            "topk": {k: bucket.snapshot() for k, bucket in sorted(self.topk.items())},
        }

    def snapshot_signature(self) -> str:
        return json.dumps(self.snapshot(), sort_keys=True, separators=(",", ":"))

    @staticmethod
    def _to_jsonable(value: Any) -> Any:
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        if isinstance(value, Mapping):
            return {str(k): Metrics._to_jsonable(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [Metrics._to_jsonable(v) for v in value]
        return str(value)


__all__ = ["Metrics", "TopK", "TopKEntry"]
