from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Sequence

import pytest

from warren.runtime.rng_service import RNGService

# Rolls that keep a day uneventful: no event, no births, no breakdown.
CALM = {"event:roll": 1.0, "breed:roll": 1.0, "breakage:roll": 1.0}


class ScriptedRandom:
    """Random source whose named draws can be forced.

    ``script(key, *values)`` queues values for a stream key; once a queue is
    empty the stream falls back to ``defaults`` and then to a seeded
    :class:`RNGService`.  Values are returned as-is for ``rand``, ``uniform``
    and ``randint``.  For ``choice`` an int is an index and a string matches an
    element's id.  For ``sample`` the value is the list of ids to return.
    """

    def __init__(self, seed: int = 0, defaults: Dict[str, Any] | None = None) -> None:
        self.fallback = RNGService(seed=seed)
        self.defaults = dict(defaults or {})
        self.queues: Dict[str, list[Any]] = defaultdict(list)
        self.calls: list[str] = []

    def script(self, key: str, *values: Any) -> "ScriptedRandom":
        self.queues[key].extend(values)
        return self

    def _forced(self, key: str) -> tuple[bool, Any]:
        self.calls.append(key)
        if self.queues.get(key):
            return True, self.queues[key].pop(0)
        if key in self.defaults:
            return True, self.defaults[key]
        return False, None

    def rand(self, stream_key: str, *, scope=None) -> float:
        forced, value = self._forced(stream_key)
        return float(value) if forced else self.fallback.rand(stream_key, scope=scope)

    def uniform(self, stream_key: str, lo: float, hi: float, *, scope=None) -> float:
        forced, value = self._forced(stream_key)
        return float(value) if forced else self.fallback.uniform(stream_key, lo, hi, scope=scope)

    def randint(self, stream_key: str, a: int, b: int, *, scope=None) -> int:
        forced, value = self._forced(stream_key)
        return int(value) if forced else self.fallback.randint(stream_key, a, b, scope=scope)

    def choice(self, stream_key: str, seq: Sequence[Any], *, scope=None) -> Any:
        forced, value = self._forced(stream_key)
        if not forced:
            return self.fallback.choice(stream_key, seq, scope=scope)
        if isinstance(value, int):
            return seq[value]
        for element in seq:
            if _ident(element) == value:
                return element
        raise LookupError(f"{value!r} not offered for {stream_key}")

    def sample(self, stream_key: str, seq: Sequence[Any], k: int, *, scope=None) -> list[Any]:
        forced, value = self._forced(stream_key)
        if not forced:
            return self.fallback.sample(stream_key, seq, k, scope=scope)
        return list(value)[: max(0, min(int(k), len(seq)))]


def _ident(element: Any) -> Any:
    for attr in ("event_id", "item_id", "id"):
        if hasattr(element, attr):
            return getattr(element, attr)
    return element


@pytest.fixture
def scripted() -> ScriptedRandom:
    return ScriptedRandom(defaults=CALM)
