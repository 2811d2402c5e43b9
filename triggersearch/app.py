"""SearchSync handle and its composition from configuration."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncEngine

from triggersearch.config import TriggerSearchConfig, load_config
from triggersearch.db import create_engine, create_session_factory
from triggersearch.entity import EntityProvider, SQLAlchemyEntityProvider
from triggersearch.events import (
    CaptureEvent,
    CapturePoller,
    EventModelInfo,
    Scheduler,
    WatchedEntity,
    build_event_models,
    count_pending,
)
from triggersearch.index import IndexBackend, IndexMapping, IndexMappings, IndexUpdater, InMemoryIndexBackend
from triggersearch.triggers import TriggerSQLSource, apply_trigger_strategy, resolve_trigger_source

logger = logging.getLogger(__name__)


class SearchSync:
    """One search synchronization instance.

    Returned by :func:`create_search_sync` and passed explicitly to whatever
    needs it; nothing is registered globally.

    Usage::

        sync = await create_search_sync(config=cfg, mappings=[place_mapping])
        sync.start()
        ...
        await sync.close()
    """

    def __init__(
        self,
        *,
        config: TriggerSearchConfig,
        infos: Sequence[EventModelInfo],
        mappings: IndexMappings,
        backend: IndexBackend,
        engine: AsyncEngine | None = None,
        updater: IndexUpdater | None = None,
        poller: CapturePoller | None = None,
        owns_engine: bool = False,
    ) -> None:
        self._config = config
        self._infos = list(infos)
        self._mappings = mappings
        self._backend = backend
        self._engine = engine
        self._updater = updater
        self._poller = poller
        self._owns_engine = owns_engine
        self._closed = False

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> TriggerSearchConfig:
        return self._config

    @property
    def infos(self) -> list[EventModelInfo]:
        return list(self._infos)

    @property
    def mappings(self) -> IndexMappings:
        return self._mappings

    @property
    def backend(self) -> IndexBackend:
        return self._backend

    @property
    def engine(self) -> AsyncEngine | None:
        return self._engine

    @property
    def poller(self) -> CapturePoller | None:
        return self._poller

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start polling capture tables (no-op for manual-updates)."""
        if self._closed:
            raise RuntimeError(f"search sync {self.name!r} is closed")
        if self._poller is None:
            logger.info("search sync %s uses manual updates; no poller started", self.name)
            return
        self._poller.start()

    async def flush_updates(self) -> int:
        """Run one poller tick now and return the number of events dispatched."""
        if self._closed:
            raise RuntimeError(f"search sync {self.name!r} is closed")
        if self._poller is None:
            return 0
        return await self._poller.tick()

    async def apply(self, events: Sequence[CaptureEvent]) -> None:
        """Dispatch a batch to the index updater directly (manual updates)."""
        if self._updater is None:
            raise RuntimeError(f"search sync {self.name!r} has no entity provider; cannot apply events")
        await self._updater.update_event(events)

    async def pending(self) -> dict[str, int]:
        """Capture rows waiting per capture table."""
        if self._engine is None:
            return {}
        return await count_pending(self._engine, self._infos)

    async def close(self, timeout: float | None = None) -> None:
        """Stop the poller (waiting for the tick in flight) and release the engine if owned."""
        if self._closed:
            return
        self._closed = True
        if self._poller is not None:
            await self._poller.stop(timeout)
        if self._owns_engine and self._engine is not None:
            await self._engine.dispose()
        logger.info("search sync %s closed", self.name)

    async def __aenter__(self) -> SearchSync:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def create_search_sync(
    *,
    mappings: IndexMappings | Iterable[IndexMapping],
    config: TriggerSearchConfig | None = None,
    watched: Iterable[WatchedEntity] | None = None,
    backend: IndexBackend | None = None,
    engine: AsyncEngine | None = None,
    trigger_source: TriggerSQLSource | str | None = None,
    entity_provider: EntityProvider | None = None,
    scheduler: Scheduler | None = None,
) -> SearchSync:
    """Validate everything, set up triggers and build a SearchSync.

    Initialization is all-or-nothing: any ConfigurationError is raised
    before triggers are touched, and an engine created here is disposed
    again if setup fails.
    """
    cfg = config or load_config()
    registry = mappings if isinstance(mappings, IndexMappings) else IndexMappings.of(mappings)
    registry.validate()
    index_backend = backend or InMemoryIndexBackend(registry)
    infos = build_event_models([*cfg.watched(), *(watched or [])])

    if cfg.type == "manual-updates":
        updater = None
        if entity_provider is None and engine is not None:
            entity_provider = SQLAlchemyEntityProvider(create_session_factory(engine))
        if entity_provider is not None:
            updater = IndexUpdater(mappings=registry, entity_provider=entity_provider, backend=index_backend)
        return SearchSync(
            config=cfg,
            infos=infos,
            mappings=registry,
            backend=index_backend,
            engine=engine,
            updater=updater,
        )

    if not infos:
        logger.warning("search sync %s: no watched entities declared; the poller will stay idle", cfg.name)
    owns_engine = engine is None
    db_engine = engine or create_engine(cfg.database_url)
    try:
        source = resolve_trigger_source(trigger_source or cfg.trigger_source or db_engine.dialect.name)
        if entity_provider is None:
            entity_provider = SQLAlchemyEntityProvider(create_session_factory(db_engine))
        updater = IndexUpdater(mappings=registry, entity_provider=entity_provider, backend=index_backend)
        poller = CapturePoller(
            engine=db_engine,
            infos=infos,
            consumer=updater,
            scheduler=scheduler,
            delay_seconds=cfg.update_delay_seconds,
            batch_size=cfg.batch_size_for_updates,
            page_size=cfg.batch_size_for_update_queries,
            name=cfg.name,
        )
        await apply_trigger_strategy(db_engine, source, infos, cfg.trigger_creation_strategy)
    except BaseException:
        if owns_engine:
            await db_engine.dispose()
        raise
    logger.info(
        "search sync %s ready: %d capture tables, %d index mappings, trigger source %s",
        cfg.name,
        len(infos),
        len(registry),
        type(source).__name__,
    )
    return SearchSync(
        config=cfg,
        infos=infos,
        mappings=registry,
        backend=index_backend,
        engine=db_engine,
        updater=updater,
        poller=poller,
        owns_engine=owns_engine,
    )
