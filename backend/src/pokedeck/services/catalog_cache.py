from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Protocol

from .pokeapi_client import PokeApiError

logger = logging.getLogger("pokedeck.catalog")


class CatalogSource(Protocol):
    def list_names(self, limit: int) -> list[str]: ...


class CatalogState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"


class CatalogCache:
    """Snapshot of every known Pokémon name, fetched once at startup.

    A failed initial load leaves the cache empty instead of blocking startup;
    suggestions then degrade to "no suggestion". Nothing retries on its own,
    a reload only happens through ``refresh()``.
    """

    def __init__(self, source: CatalogSource, limit: int = 2000) -> None:
        self._source = source
        self._limit = limit
        self._lock = threading.Lock()
        self._names: tuple[str, ...] = ()
        self._state = CatalogState.UNLOADED

    @property
    def state(self) -> CatalogState:
        with self._lock:
            return self._state

    def names(self) -> tuple[str, ...]:
        with self._lock:
            return self._names

    def load(self) -> tuple[str, ...]:
        started = time.perf_counter()
        try:
            names = self._source.list_names(self._limit)
        except PokeApiError as exc:
            logger.warning("catalog load failed, suggestions disabled: %s", exc)
            with self._lock:
                self._names = ()
                self._state = CatalogState.LOAD_FAILED
            return ()

        snapshot = tuple(names[: self._limit])
        with self._lock:
            self._names = snapshot
            self._state = CatalogState.LOADED
        logger.info(
            "catalog loaded: names=%d duration_ms=%.2f",
            len(snapshot),
            (time.perf_counter() - started) * 1000.0,
        )
        return snapshot

    def refresh(self) -> tuple[str, ...]:
        """Replace the snapshot wholesale; on failure keep serving the old one."""
        try:
            names = self._source.list_names(self._limit)
        except PokeApiError:
            logger.exception("catalog refresh failed, keep old snapshot")
            raise

        snapshot = tuple(names[: self._limit])
        with self._lock:
            self._names = snapshot
            self._state = CatalogState.LOADED
        logger.info("catalog refreshed: names=%d", len(snapshot))
        return snapshot
