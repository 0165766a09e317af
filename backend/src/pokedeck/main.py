import json
import logging
import time
from typing import Any, Callable

import uvicorn
from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .services.blocks import suggestion_blocks
from .services.catalog_cache import CatalogCache
from .services.deck_store import DeckDuplicateError, DeckFullError, DeckStore
from .services.lookup import Found, InvalidInputError, PokemonLookup
from .services.pokeapi_client import PokeApiClient, PokeApiError
from .services.slack_relay import (
    DeckApi,
    DeckApiClient,
    SlackRelay,
    SlackSignatureError,
    post_response,
    verify_slack_signature,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("pokedeck.main")

_KIND_BY_STATUS = {
    400: "invalid_input",
    401: "unauthorized",
    404: "not_found",
    503: "upstream_unavailable",
}


def _error_response(
    *,
    status_code: int,
    kind: str,
    message: str,
    **extra: Any,
) -> JSONResponse:
    content: dict[str, Any] = {"error": message, "kind": kind}
    content.update({key: value for key, value in extra.items() if value is not None})
    return JSONResponse(status_code=status_code, content=content)


def require_api_key(request: Request) -> None:
    expected = request.app.state.settings.api_key
    provided = request.headers.get("x-api-key")
    if not provided or not expected or provided != expected:
        raise HTTPException(status_code=401, detail="Unauthorized")


def create_app(
    settings: Settings | None = None,
    *,
    pokeapi: Any = None,
    deck_store: DeckStore | None = None,
    deck_api: DeckApi | None = None,
    responder: Callable[[str, dict[str, Any]], None] | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    pokeapi = pokeapi or PokeApiClient(
        base_url=settings.pokeapi_base_url,
        timeout_seconds=settings.upstream_timeout_seconds,
    )
    catalog = CatalogCache(pokeapi, limit=settings.catalog_limit)

    app = FastAPI(title="Pokedeck API")
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.lookup = PokemonLookup(pokeapi, catalog)
    app.state.deck = deck_store or DeckStore()
    app.state.relay = SlackRelay(
        deck_api
        or DeckApiClient(
            base_url=settings.self_base_url,
            api_key=settings.api_key,
            timeout_seconds=settings.upstream_timeout_seconds,
        )
    )
    app.state.responder = responder or post_response

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(
            status_code=exc.status_code,
            kind=_KIND_BY_STATUS.get(exc.status_code, "error"),
            message=str(exc.detail),
        )

    @app.middleware("http")
    async def request_log_middleware(request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        path = request.url.path
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000.0
            logger.exception(
                "request failed method=%s path=%s duration_ms=%.2f",
                method,
                path,
                elapsed_ms,
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.info(
            "request method=%s path=%s status=%s duration_ms=%.2f",
            method,
            path,
            response.status_code,
            elapsed_ms,
        )
        return response

    @app.on_event("startup")
    def _startup_catalog() -> None:
        logger.info(
            "startup config host=%s port=%s version=%s commit=%s",
            settings.host,
            settings.port,
            settings.version,
            settings.commit,
        )
        logger.info(
            "startup config pokeapi_base_url=%s catalog_limit=%s upstream_timeout_seconds=%.2f",
            settings.pokeapi_base_url,
            settings.catalog_limit,
            settings.upstream_timeout_seconds,
        )
        if not settings.api_key:
            logger.warning("MY_API_KEY is not set, every /pokemon request will be rejected")
        if not settings.slack_signing_secret:
            logger.warning("SLACK_SIGNING_SECRET is not set, every /slack/events request will be rejected")
        catalog.load()
        logger.info("startup catalog state=%s", catalog.state.value)

    @app.get("/health")
    def health() -> dict[str, object]:
        return {
            "ok": True,
            "catalog": catalog.state.value,
            "names": len(catalog.names()),
        }

    @app.get("/pokemon", response_model=None, dependencies=[Depends(require_api_key)])
    def lookup_pokemon(request: Request, name: str | None = None) -> object:
        try:
            outcome = request.app.state.lookup.find(name)
        except InvalidInputError:
            return _error_response(
                status_code=400,
                kind="invalid_input",
                message='Missing "name" query parameter',
            )

        if isinstance(outcome, Found):
            return {"name": outcome.name, "image": outcome.image}

        blocks = None
        if outcome.suggestion:
            blocks = suggestion_blocks(outcome.queried, outcome.suggestion)
        return _error_response(
            status_code=404,
            kind=outcome.kind,
            message=outcome.error,
            suggestion=outcome.suggestion,
            blocks=blocks,
        )

    @app.get("/pokemon/deck", dependencies=[Depends(require_api_key)])
    def get_deck(request: Request) -> dict[str, list[str]]:
        return {"list": request.app.state.deck.list()}

    @app.post("/pokemon", response_model=None, dependencies=[Depends(require_api_key)])
    async def add_to_deck(request: Request) -> object:
        # Body is only read once the key has been accepted.
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            payload = {}
        raw_name = payload.get("name") if isinstance(payload, dict) else None

        deck: DeckStore = request.app.state.deck
        try:
            entries = deck.append(raw_name)
        except InvalidInputError:
            return _error_response(
                status_code=400,
                kind="invalid_input",
                message='Missing "name" in request body',
            )
        except DeckDuplicateError as exc:
            return _error_response(status_code=400, kind="deck_duplicate", message=str(exc))
        except DeckFullError as exc:
            return _error_response(status_code=400, kind="deck_full", message=str(exc))

        return {"message": f"Pokémon '{entries[-1]}' added.", "list": entries}

    @app.post(
        "/pokemon/catalog/refresh",
        response_model=None,
        dependencies=[Depends(require_api_key)],
    )
    def refresh_catalog() -> object:
        try:
            names = catalog.refresh()
        except PokeApiError as exc:
            return _error_response(
                status_code=503,
                kind="upstream_unavailable",
                message=f"Catalog refresh failed: {exc}",
            )
        return {"state": catalog.state.value, "count": len(names)}

    @app.post("/slack/events", response_model=None)
    async def slack_events(request: Request, background_tasks: BackgroundTasks) -> object:
        if not settings.slack_signing_secret:
            return _error_response(
                status_code=401,
                kind="unauthorized",
                message="Slack signing secret is not configured",
            )

        body = await request.body()
        try:
            verify_slack_signature(
                signing_secret=settings.slack_signing_secret,
                timestamp=request.headers.get("x-slack-request-timestamp", ""),
                signature=request.headers.get("x-slack-signature", ""),
                body=body,
            )
        except SlackSignatureError as exc:
            logger.warning("slack signature rejected: %s", exc)
            return _error_response(
                status_code=401,
                kind="unauthorized",
                message="Invalid Slack signature",
            )

        content_type = (request.headers.get("content-type") or "").lower()
        if "application/json" in content_type:
            try:
                event = json.loads(body or b"{}")
            except json.JSONDecodeError:
                event = {}
            if isinstance(event, dict) and event.get("type") == "url_verification":
                return {"challenge": event.get("challenge")}
            return Response(status_code=200)

        form = await request.form()
        relay: SlackRelay = request.app.state.relay
        responder = request.app.state.responder

        raw_payload = form.get("payload")
        if raw_payload is not None:
            try:
                interaction = json.loads(str(raw_payload))
            except json.JSONDecodeError:
                interaction = None
            if not isinstance(interaction, dict):
                return _error_response(
                    status_code=400,
                    kind="invalid_input",
                    message="Invalid interaction payload",
                )
            response_url = str(interaction.get("response_url") or "")
            actions = interaction.get("actions")
            if response_url and isinstance(actions, list) and actions and isinstance(actions[0], dict):
                action = actions[0]
                background_tasks.add_task(
                    _relay_action,
                    relay,
                    responder,
                    response_url,
                    str(action.get("action_id") or ""),
                    str(action.get("value") or ""),
                )
            return Response(status_code=200)

        response_url = str(form.get("response_url") or "")
        if response_url:
            background_tasks.add_task(
                _relay_command,
                relay,
                responder,
                response_url,
                str(form.get("text") or ""),
            )
        return Response(status_code=200)

    return app


def _relay_command(relay: SlackRelay, responder, response_url: str, text: str) -> None:
    responder(response_url, relay.handle_command(text))


def _relay_action(
    relay: SlackRelay,
    responder,
    response_url: str,
    action_id: str,
    value: str,
) -> None:
    responder(response_url, relay.handle_action(action_id, value))


app = create_app()


def run() -> None:
    settings: Settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)
