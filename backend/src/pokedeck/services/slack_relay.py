from __future__ import annotations

import hashlib
import hmac
import json
import logging
import socket
import time
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from .blocks import (
    ACTION_ADD,
    ACTION_SUGGEST_NO,
    ACTION_SUGGEST_YES,
    deck_message,
    display_name,
    found_message,
)

logger = logging.getLogger("pokedeck.slack")

SLACK_SIGNATURE_VERSION = "v0"
SLACK_MAX_CLOCK_SKEW_SECONDS = 60 * 5
DEFAULT_TIMEOUT_SECONDS = 8.0

USAGE_TEXT = (
    "Command error: use `/jerry search <pokemon name>` to search for a Pokémon "
    "or `/jerry deck` to view your current deck."
)


class SlackSignatureError(Exception):
    """Raised when a Slack request signature is missing, stale or wrong."""


class DeckApiError(Exception):
    """Raised when the relay's call into the deck API fails."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload or {}


def verify_slack_signature(
    *,
    signing_secret: str,
    timestamp: str,
    signature: str,
    body: bytes,
    now: float | None = None,
) -> None:
    try:
        ts = int(timestamp)
    except (TypeError, ValueError) as exc:
        raise SlackSignatureError("missing or invalid request timestamp") from exc

    current = time.time() if now is None else now
    if abs(current - ts) > SLACK_MAX_CLOCK_SKEW_SECONDS:
        raise SlackSignatureError("request timestamp outside allowed window")

    base = f"{SLACK_SIGNATURE_VERSION}:{ts}:".encode() + body
    digest = hmac.new(signing_secret.encode(), base, hashlib.sha256).hexdigest()
    expected = f"{SLACK_SIGNATURE_VERSION}={digest}"
    if not hmac.compare_digest(expected, signature or ""):
        raise SlackSignatureError("signature mismatch")


def _read_json(raw: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(raw.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


class DeckApiClient:
    """HTTP client for this service's own /pokemon API, used by the relay."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout_seconds

    def _request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        data = json.dumps(body).encode("utf-8") if body is not None else None
        headers = {"x-api-key": self.api_key}
        if data is not None:
            headers["Content-Type"] = "application/json"
        request = Request(f"{self.base_url}{path}", data=data, headers=headers, method=method)
        try:
            with urlopen(request, timeout=self.timeout) as response:
                return _read_json(response.read())
        except HTTPError as exc:
            payload = _read_json(exc.read() or b"")
            raise DeckApiError(
                f"deck api returned HTTP error: {exc.code}",
                status=exc.code,
                payload=payload,
            ) from exc
        except URLError as exc:
            raise DeckApiError(f"failed to reach deck api: {exc.reason}") from exc
        except socket.timeout as exc:
            raise DeckApiError("request to deck api timed out") from exc
        except TimeoutError as exc:
            raise DeckApiError("request to deck api timed out") from exc

    def lookup(self, name: str) -> dict[str, Any]:
        return self._request("GET", f"/pokemon?name={quote(name)}")

    def deck(self) -> dict[str, Any]:
        return self._request("GET", "/pokemon/deck")

    def add(self, name: str) -> dict[str, Any]:
        return self._request("POST", "/pokemon", {"name": name})


class DeckApi(Protocol):
    def lookup(self, name: str) -> dict[str, Any]: ...

    def deck(self) -> dict[str, Any]: ...

    def add(self, name: str) -> dict[str, Any]: ...


def post_response(
    response_url: str,
    message: dict[str, Any],
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> None:
    data = json.dumps(message).encode("utf-8")
    request = Request(
        response_url,
        data=data,
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urlopen(request, timeout=timeout_seconds) as response:
            status = getattr(response, "status", None) or response.getcode()
            if status != 200:
                logger.warning("slack response_url returned status=%s", status)
    except (URLError, TimeoutError) as exc:
        logger.warning("failed to post slack response: %s", exc)


class SlackRelay:
    """Turns `/jerry` commands and button presses into Slack messages."""

    def __init__(self, api: DeckApi) -> None:
        self._api = api

    def handle_command(self, text: str) -> dict[str, Any]:
        args = str(text or "").split()
        if args and args[0] == "search":
            return self._search(" ".join(args[1:]))
        if args and args[0] == "deck":
            return self._deck()
        return {"text": USAGE_TEXT}

    def handle_action(self, action_id: str, value: str) -> dict[str, Any]:
        if action_id == ACTION_ADD:
            return self._add(value)
        if action_id == ACTION_SUGGEST_YES:
            try:
                found = self._api.lookup(value)
            except DeckApiError:
                return {"text": "Error fetching suggested Pokémon."}
            return found_message(str(found.get("name") or value), found.get("image"))
        if action_id == ACTION_SUGGEST_NO:
            return {"text": "No Pokémon selected."}
        logger.warning("unknown slack action_id=%s", action_id)
        return {"text": "Unknown action."}

    def _search(self, name: str) -> dict[str, Any]:
        try:
            found = self._api.lookup(name)
        except DeckApiError as exc:
            if exc.status == 404 and exc.payload.get("blocks"):
                return {"text": str(exc.payload.get("error") or ""), "blocks": exc.payload["blocks"]}
            if exc.status == 404 and exc.payload.get("error"):
                return {"text": str(exc.payload["error"])}
            logger.warning("slack search failed name=%s: %s", name, exc)
            return {"text": "Error fetching Pokémon data."}
        return found_message(str(found.get("name") or name), found.get("image"))

    def _deck(self) -> dict[str, Any]:
        try:
            names = [str(n) for n in self._api.deck().get("list") or []]
        except DeckApiError as exc:
            logger.warning("slack deck fetch failed: %s", exc)
            return {"text": "Error fetching your deck."}
        if not names:
            return {"text": "Your deck is empty."}

        entries: list[dict[str, str | None]] = []
        for name in names:
            try:
                image = self._api.lookup(name).get("image")
            except DeckApiError:
                image = None
            entries.append({"name": name, "image": image})
        return deck_message(entries)

    def _add(self, value: str) -> dict[str, Any]:
        name = str(value or "").lower()
        try:
            result = self._api.add(name)
        except DeckApiError as exc:
            return {"text": str(exc.payload.get("error") or "Cannot add to deck.")}
        current = ", ".join(display_name(str(n)) for n in result.get("list") or [])
        return {
            "text": f"Pokémon '{display_name(name)}' added to your deck!\nCurrent deck: {current}"
        }
