"""Stable player identifier kept apart from the colony save so it survives resets."""

from __future__ import annotations

import uuid

from warren.runtime.snapshot import SaveStore

PLAYER_ID_KEY = "warren.player_id"
PLAYER_NAME_KEY = "warren.player_name"


def get_player_id(store: SaveStore) -> str | None:
    return store.get(PLAYER_ID_KEY)


def get_or_create_player_id(store: SaveStore) -> str:
    player_id = store.get(PLAYER_ID_KEY)
    if not player_id:
        player_id = str(uuid.uuid4())
        store.set(PLAYER_ID_KEY, player_id)
    return player_id


def get_player_name(store: SaveStore) -> str | None:
    return store.get(PLAYER_NAME_KEY) or None


def set_player_name(store: SaveStore, name: str) -> str:
    cleaned = name.strip()
    store.set(PLAYER_NAME_KEY, cleaned)
    return cleaned


__all__ = [
    "PLAYER_ID_KEY",
    "PLAYER_NAME_KEY",
    "get_or_create_player_id",
    "get_player_id",
    "get_player_name",
    "set_player_name",
]
