from __future__ import annotations

import logging
import threading

from .lookup import normalize_name

DECK_MAX_SIZE = 6

logger = logging.getLogger("pokedeck.deck")


class DeckError(Exception):
    """Base class for rejected deck mutations."""


class DeckDuplicateError(DeckError):
    """Raised when the name is already in the deck."""


class DeckFullError(DeckError):
    """Raised when the deck already holds DECK_MAX_SIZE entries."""


class DeckStore:
    """Ordered, unique, bounded list of Pokémon names for this process.

    The duplicate check, the size check and the write happen under one lock,
    so concurrent appends cannot overfill the deck or admit a duplicate.
    """

    def __init__(self, max_size: int = DECK_MAX_SIZE) -> None:
        self.max_size = max_size
        self._lock = threading.Lock()
        self._entries: list[str] = []

    def list(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def append(self, raw_name: object) -> list[str]:
        name = normalize_name(raw_name)
        with self._lock:
            if name in self._entries:
                raise DeckDuplicateError(f"Pokémon '{str(raw_name).strip()}' is already in your deck.")
            if len(self._entries) >= self.max_size:
                raise DeckFullError(f"Deck is full. Maximum {self.max_size} Pokémon allowed.")
            self._entries.append(name)
            snapshot = list(self._entries)
        logger.info("deck append name=%s size=%d", name, len(snapshot))
        return snapshot
