from __future__ import annotations

import http.client
import json
import socket
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..config import DEFAULT_POKEAPI_BASE_URL, DEFAULT_TIMEOUT_SECONDS

_USER_AGENT = "Mozilla/5.0 (pokedeck)"


class PokeApiError(Exception):
    """Raised when PokeAPI data cannot be fetched or parsed."""


class PokemonNotFoundError(PokeApiError):
    """PokeAPI answered 404: the requested name does not exist."""


class PokeApiUnavailableError(PokeApiError):
    """Network failure, timeout, non-404 HTTP error or unreadable payload."""


class PokeApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_POKEAPI_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout_seconds

    def _get_json(self, url: str) -> object:
        request = Request(url, headers={"User-Agent": _USER_AGENT})
        try:
            with urlopen(request, timeout=self.timeout) as response:
                status = getattr(response, "status", None) or response.getcode()
                if status != 200:
                    raise PokeApiUnavailableError(f"pokeapi returned non-200 status: {status}")
                try:
                    return json.load(response)
                except (UnicodeDecodeError, ValueError) as exc:
                    raise PokeApiUnavailableError("failed to parse pokeapi JSON payload") from exc
                except (OSError, http.client.HTTPException) as exc:
                    raise PokeApiUnavailableError(f"failed to read pokeapi response: {exc}") from exc
        except HTTPError as exc:
            if exc.code == 404:
                raise PokemonNotFoundError(f"pokeapi has no resource at {url}") from exc
            raise PokeApiUnavailableError(f"pokeapi returned HTTP error: {exc.code}") from exc
        except URLError as exc:
            raise PokeApiUnavailableError(f"failed to reach pokeapi: {exc.reason}") from exc
        except socket.timeout as exc:
            raise PokeApiUnavailableError("request to pokeapi timed out") from exc
        except TimeoutError as exc:
            raise PokeApiUnavailableError("request to pokeapi timed out") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise PokeApiUnavailableError(f"connection to pokeapi failed: {exc}") from exc

    def list_names(self, limit: int) -> list[str]:
        payload = self._get_json(f"{self.base_url}/pokemon?limit={int(limit)}")
        if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
            raise PokeApiUnavailableError("unexpected pokeapi listing shape: expected results list")

        names: list[str] = []
        for item in payload["results"][:limit]:
            if not isinstance(item, dict):
                continue
            name = str(item.get("name") or "").strip().lower()
            if name:
                names.append(name)
        return names

    def get_pokemon(self, name: str) -> dict[str, str | None]:
        payload = self._get_json(f"{self.base_url}/pokemon/{quote(name, safe='')}")
        if not isinstance(payload, dict) or not payload.get("name"):
            raise PokeApiUnavailableError("unexpected pokeapi detail shape: missing name")

        sprites = payload.get("sprites")
        image = sprites.get("front_default") if isinstance(sprites, dict) else None
        return {
            "name": str(payload["name"]),
            "image": str(image) if image else None,
        }
