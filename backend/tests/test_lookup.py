from __future__ import annotations

import pytest
from conftest import FakePokeApi

from pokedeck.services.catalog_cache import CatalogCache  # type: ignore[import-not-found]
from pokedeck.services.lookup import (  # type: ignore[import-not-found]
    Found,
    InvalidInputError,
    NotFound,
    PokemonLookup,
)


def _lookup(api: FakePokeApi, *, load: bool = True) -> PokemonLookup:
    catalog = CatalogCache(api)
    if load:
        catalog.load()
    return PokemonLookup(api, catalog)


def test_found_returns_canonical_name_and_image(fake_pokeapi: FakePokeApi) -> None:
    outcome = _lookup(fake_pokeapi).find("  Pikachu ")

    assert isinstance(outcome, Found)
    assert outcome.name == "pikachu"
    assert outcome.image and outcome.image.endswith("/10.png")
    assert fake_pokeapi.detail_calls == ["pikachu"]


def test_found_without_image(fake_pokeapi: FakePokeApi) -> None:
    outcome = _lookup(fake_pokeapi).find("missingno")

    assert outcome == Found(name="missingno", image=None)


def test_miss_carries_suggestion(fake_pokeapi: FakePokeApi) -> None:
    outcome = _lookup(fake_pokeapi).find("Pikuchu")

    assert isinstance(outcome, NotFound)
    assert outcome.kind == "not_found"
    assert outcome.queried == "pikuchu"
    assert outcome.suggestion == "pikachu"
    assert outcome.error == 'Pokémon "pikuchu" not found.'


def test_miss_without_close_name_has_no_suggestion(fake_pokeapi: FakePokeApi) -> None:
    outcome = _lookup(fake_pokeapi).find("nonexistent-entity-xyz")

    assert isinstance(outcome, NotFound)
    assert outcome.suggestion is None
    assert outcome.error == 'Pokémon "nonexistent-entity-xyz" not found'


def test_miss_with_empty_catalog_has_no_suggestion() -> None:
    api = FakePokeApi(listing_fails=True)
    outcome = _lookup(api).find("pikuchu")

    assert isinstance(outcome, NotFound)
    assert outcome.kind == "not_found"
    assert outcome.suggestion is None


def test_upstream_failure_skips_suggestion() -> None:
    api = FakePokeApi(detail_unavailable=True)

    outcome = _lookup(api).find("pikuchu")

    assert isinstance(outcome, NotFound)
    assert outcome.kind == "upstream_unavailable"
    assert outcome.suggestion is None


@pytest.mark.parametrize("raw", [None, "", "  "])
def test_blank_name_is_rejected_before_upstream(fake_pokeapi: FakePokeApi, raw: object) -> None:
    with pytest.raises(InvalidInputError):
        _lookup(fake_pokeapi).find(raw)

    assert fake_pokeapi.detail_calls == []


@pytest.mark.parametrize("raw", [0, 123, ["pikachu"], {"name": "pikachu"}])
def test_non_string_name_is_rejected(fake_pokeapi: FakePokeApi, raw: object) -> None:
    with pytest.raises(InvalidInputError):
        _lookup(fake_pokeapi).find(raw)

    assert fake_pokeapi.detail_calls == []
