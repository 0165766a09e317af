from __future__ import annotations

import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = BACKEND_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from pokedeck.services.pokeapi_client import (  # type: ignore[import-not-found]  # noqa: E402
    PokeApiUnavailableError,
    PokemonNotFoundError,
)

CATALOG_NAMES = [
    "bulbasaur",
    "ivysaur",
    "venusaur",
    "charmander",
    "charmeleon",
    "charizard",
    "squirtle",
    "wartortle",
    "blastoise",
    "pikachu",
    "raichu",
    "jigglypuff",
    "meowth",
    "psyduck",
    "snorlax",
    "mewtwo",
    "mew",
]

SPRITE_URL = "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/{}.png"


class FakePokeApi:
    def __init__(
        self,
        names: list[str] | None = None,
        *,
        listing_fails: bool = False,
        detail_unavailable: bool = False,
    ) -> None:
        self.names = list(CATALOG_NAMES if names is None else names)
        self.listing_fails = listing_fails
        self.detail_unavailable = detail_unavailable
        self.no_image = {"missingno"}
        self.listing_calls = 0
        self.detail_calls: list[str] = []

    def list_names(self, limit: int) -> list[str]:
        self.listing_calls += 1
        if self.listing_fails:
            raise PokeApiUnavailableError("failed to reach pokeapi: connection refused")
        return self.names[:limit]

    def get_pokemon(self, name: str) -> dict[str, str | None]:
        self.detail_calls.append(name)
        if self.detail_unavailable:
            raise PokeApiUnavailableError("pokeapi returned HTTP error: 503")
        if name in self.no_image:
            return {"name": name, "image": None}
        if name not in self.names:
            raise PokemonNotFoundError(f"pokeapi has no resource for {name}")
        return {"name": name, "image": SPRITE_URL.format(self.names.index(name) + 1)}


@pytest.fixture
def fake_pokeapi() -> FakePokeApi:
    return FakePokeApi()
