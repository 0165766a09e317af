from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .catalog_cache import CatalogCache
from .pokeapi_client import PokeApiUnavailableError, PokemonNotFoundError
from .suggest import suggest

logger = logging.getLogger("pokedeck.lookup")


class InvalidInputError(Exception):
    """Raised when a required name is missing or blank."""


class PokemonSource(Protocol):
    def get_pokemon(self, name: str) -> dict[str, str | None]: ...


@dataclass(frozen=True)
class Found:
    name: str
    image: str | None = None


@dataclass(frozen=True)
class NotFound:
    queried: str
    error: str
    kind: str
    suggestion: str | None = None


def normalize_name(raw: object) -> str:
    if not isinstance(raw, str):
        raise InvalidInputError("name must be a string")
    name = raw.strip().lower()
    if not name:
        raise InvalidInputError("name is required")
    return name


class PokemonLookup:
    def __init__(self, client: PokemonSource, catalog: CatalogCache) -> None:
        self._client = client
        self._catalog = catalog

    def find(self, raw_name: object) -> Found | NotFound:
        name = normalize_name(raw_name)

        try:
            record = self._client.get_pokemon(name)
        except PokemonNotFoundError:
            # Only genuine misses get a suggestion.
            suggestion = suggest(name, self._catalog.names())
            logger.info("lookup miss name=%s suggestion=%s", name, suggestion)
            if suggestion:
                error = f'Pokémon "{name}" not found.'
            else:
                error = f'Pokémon "{name}" not found'
            return NotFound(queried=name, error=error, kind="not_found", suggestion=suggestion)
        except PokeApiUnavailableError as exc:
            logger.warning("lookup upstream unavailable name=%s: %s", name, exc)
            return NotFound(
                queried=name,
                error=f'Could not look up Pokémon "{name}" right now.',
                kind="upstream_unavailable",
            )

        return Found(name=str(record["name"]), image=record.get("image") or None)
