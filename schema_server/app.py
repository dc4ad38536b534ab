import asyncio
import contextlib
import json
import logging
import time

import uvicorn
from fastapi import Body, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from .config import Settings
from .constants import CHARACTER_CLASSES, RAW_SECTION_KEYS, Category, RawSection
from .errors import InvalidClassError, InvalidInputError, InvalidRawKeyError, SchemaServiceError
from .facade import QueryFacade
from .fetcher import FileSchemaFetcher, HttpSchemaFetcher, SnapshotFetcher
from .logging import setup_logging
from .models import ItemObject
from .refresh import AutoRefresher, RefreshCoordinator, RefreshResult
from .sku import from_item_object, parse_sku
from .stats import RouteStats
from .store import SnapshotStore

UNMATCHED_ROUTE = "<unmatched>"

def _require(value, what: str):
    if value is None:
        raise InvalidInputError(f"body of {what} is not defined")
    return value

def _ok(**payload) -> JSONResponse:
    return JSONResponse({"success": True, **payload})

def _entry_response(entry) -> JSONResponse:
    schema_item, items_game_item = entry
    return _ok(schemaItems=schema_item, items_gameItems=items_game_item)

def _build_fetcher(settings: Settings) -> SnapshotFetcher:
    if settings.schema_file:
        return FileSchemaFetcher(settings.schema_file)
    return HttpSchemaFetcher(settings.upstream_url, timeout_sec=settings.fetch_timeout_sec)

def create_app(
    settings: Settings | None = None,
    fetcher: SnapshotFetcher | None = None,
    clock=time.monotonic,
) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging("schema-api", settings.log_level)
    log = logging.getLogger(__name__)
    app = FastAPI(title="Item Schema Server")

    fetcher = fetcher or _build_fetcher(settings)
    store = SnapshotStore()
    coordinator = RefreshCoordinator(store, fetcher, cooldown_sec=settings.refresh_cooldown_sec, clock=clock)
    facade = QueryFacade(store)
    auto_refresher = AutoRefresher(coordinator, settings.update_interval_sec)
    stats = RouteStats(capacity=1000)
    started_at = time.time()

    app.state.settings = settings
    app.state.store = store
    app.state.coordinator = coordinator
    app.state.facade = facade
    app.state.bootstrap_task = None

    # Access log + latency
    @app.middleware("http")
    async def access_logger(request: Request, call_next):
        t0 = time.time()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            latency_ms = int((time.time() - t0) * 1000)
            route = request.scope.get("route")
            # unmatched URLs share one bucket so the stats map stays bounded
            key = route.path if route is not None else UNMATCHED_ROUTE
            stats.add(key, latency_ms, status)
            age_ms = store.age_ms()
            log.info(
                "access",
                extra={
                    "event": "http.access",
                    "extra_fields": {
                        "path": request.url.path,
                        "method": request.method,
                        "latency_ms": latency_ms,
                        "status": status,
                        "age_ms": age_ms if age_ms is not None else -1,
                        "generation": store.generation,
                    },
                },
            )

    # Error mapping
    @app.exception_handler(SchemaServiceError)
    async def _service_error(request: Request, exc: SchemaServiceError):
        return JSONResponse(exc.to_body(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"success": False, "message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
            status_code=400,
        )

    # Startup/Shutdown
    @app.on_event("startup")
    async def _startup():
        log.info(
            "starting schema server",
            extra={
                "event": "startup",
                "extra_fields": {
                    "source": settings.schema_file or settings.upstream_url,
                    "blocking": settings.startup_blocking,
                    "cooldown_sec": settings.refresh_cooldown_sec,
                    "update_interval_sec": settings.update_interval_sec,
                },
            },
        )
        start = getattr(fetcher, "start", None)
        if start is not None:
            await start()
        if settings.startup_blocking:
            await coordinator.bootstrap(settings.bootstrap_retry_ms)
        else:
            app.state.bootstrap_task = asyncio.create_task(coordinator.bootstrap(settings.bootstrap_retry_ms))
        await auto_refresher.start()

    @app.on_event("shutdown")
    async def _shutdown():
        log.info("stopping schema server", extra={"event": "shutdown"})
        await auto_refresher.stop()
        task = app.state.bootstrap_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        stop = getattr(fetcher, "stop", None)
        if stop is not None:
            await stop()

    # Schema (raw)
    # full-document encodes run in the threadpool, off the event loop
    @app.get("/schema", tags=["Schema (raw)"])
    def get_schema():
        return JSONResponse(facade.raw())

    @app.get("/schema/download", tags=["Schema (raw)"])
    def download_schema():
        return Response(
            json.dumps(facade.raw(), indent=2),
            media_type="application/json",
            headers={"Content-Disposition": "attachment; filename=schema.json"},
        )

    @app.patch("/schema/refresh", tags=["Schema (raw)"])
    async def refresh_schema():
        outcome = await coordinator.trigger_refresh()
        if outcome.result is RefreshResult.OK:
            return _ok()
        if outcome.result is RefreshResult.FETCH_FAILED:
            return JSONResponse(
                {"success": False, "message": "Error while requesting schema", "detail": outcome.detail},
                status_code=500,
            )
        if outcome.result is RefreshResult.ALREADY_IN_PROGRESS:
            message = "A schema refresh is already in progress"
        else:
            minutes = int(coordinator.cooldown_sec // 60)
            message = f"This has already been called in the last {minutes} minutes"
        return JSONResponse(
            {"success": False, "message": message, "retry-after": outcome.retry_after_ms},
            status_code=429,
            headers={"Retry-After": str(outcome.retry_after_sec)},
        )

    # Schema properties (simplified)
    def _property_route(category: Category):
        async def handler():
            return JSONResponse(facade.property_table(category))
        handler.__name__ = f"get_{category.value}"
        return handler

    for category in Category:
        app.add_api_route(
            f"/properties/{category.value}",
            _property_route(category),
            methods=["GET"],
            tags=["Schema Properties (simplified)"],
        )

    @app.get("/properties/craftWeaponsByClass", tags=["Schema Properties (simplified)"])
    async def craft_weapons_no_class():
        raise InvalidClassError("params of Character Class must be defined", accepted=CHARACTER_CLASSES)

    @app.get("/properties/craftWeaponsByClass/{classChar}", tags=["Schema Properties (simplified)"])
    async def craft_weapons_by_class(classChar: str):
        fixed = classChar[:1].upper() + classChar[1:]
        return JSONResponse(facade.class_weapons(fixed))

    # Get item name
    @app.post("/getName/fromItemObject", tags=["Get item name"])
    async def name_from_item_object(
        item: ItemObject | None = Body(None),
        proper: bool = Query(False),
        usePipeForSkin: bool = Query(False),
    ):
        item = _require(item, "item object")
        name = facade.name_from_identifier(from_item_object(item.model_dump()), proper, usePipeForSkin)
        return _ok(name=name)

    @app.post("/getName/fromSku", tags=["Get item name"])
    async def name_from_sku(
        sku: str | None = Body(None, examples=["5021;6"]),
        proper: bool = Query(False),
        usePipeForSkin: bool = Query(False),
    ):
        name = facade.name_from_sku(_require(sku, "item sku"), proper, usePipeForSkin)
        return _ok(name=name)

    # Get item sku
    @app.post("/getSku/fromItemObject", tags=["Get item sku"])
    async def sku_from_item_object(item: ItemObject | None = Body(None)):
        item = _require(item, "item object")
        return _ok(sku=facade.sku_from_identifier(from_item_object(item.model_dump())))

    @app.post("/getSku/fromName", tags=["Get item sku"])
    async def sku_from_name(name: str | None = Body(None, examples=["Mann Co. Supply Crate Key"])):
        return _ok(sku=facade.sku_from_name(_require(name, "item name")))

    # Get item object
    @app.post("/getItemObject/fromName", tags=["Get item object"])
    async def item_object_from_name(name: str | None = Body(None, examples=["Mann Co. Supply Crate Key"])):
        item = facade.item_object_from_name(_require(name, "item name"))
        return _ok(item=item.to_dict())

    @app.post("/getItemObject/fromSku", tags=["Get item object"])
    async def item_object_from_sku(sku: str | None = Body(None, examples=["5021;6"])):
        return _ok(item=parse_sku(_require(sku, "item sku")).to_dict())

    # Get item element
    @app.post("/getItem/fromDefindex", tags=["Get item element"])
    async def item_from_defindex(defindex: int | None = Body(None, examples=[5021])):
        return _entry_response(facade.item_from_defindex(_require(defindex, "item defindex")))

    @app.post("/getItem/fromName", tags=["Get item element"])
    async def item_from_name(name: str | None = Body(None, examples=["Mann Co. Supply Crate Key"])):
        return _entry_response(facade.item_from_name(_require(name, "item name")))

    @app.post("/getItem/fromSku", tags=["Get item element"])
    async def item_from_sku(sku: str | None = Body(None, examples=["5021;6"])):
        return _entry_response(facade.item_from_sku(_require(sku, "item sku")))

    # Raw
    def _raw_routes(section: RawSection):
        keys = RAW_SECTION_KEYS[section]

        async def missing_key():
            raise InvalidRawKeyError("params of key must be defined", accepted=keys)

        async def by_key(key: str):
            return _ok(value=facade.by_raw_category(section, key))

        missing_key.__name__ = f"raw_{section.value}_missing_key"
        by_key.__name__ = f"raw_{section.value}_by_key"
        app.add_api_route(f"/raw/{section.value}", missing_key, methods=["GET"], tags=["Raw"])
        app.add_api_route(
            f"/raw/{section.value}/{{key}}",
            by_key,
            methods=["GET"],
            tags=["Raw"],
            description=f'Raw value for "raw.{section.value}[key]"',
        )

    for section in RawSection:
        _raw_routes(section)

    # Operational
    @app.get("/health")
    async def health():
        snap = store.peek()
        return {
            "ok": True,
            "ready": snap is not None,
            "version": snap.version if snap else None,
            "generation": store.generation,
            "age_ms": store.age_ms(),
            "refresh": coordinator.status(),
        }

    @app.get("/stats")
    async def stats_endpoint():
        return {
            "uptime_s": int(time.time() - started_at),
            "refresh": coordinator.status(),
            "endpoints": stats.snapshot(),
        }

    return app

def main():
    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.bind_host, port=settings.port)

if __name__ == "__main__":
    # Dev run: python -m schema_server.app
    main()
