"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from talent_engine.config import AppConfig, check_config, validate_config
from talent_engine.cv_import.parser import DocumentParser, HttpCvParser
from talent_engine.models import create_session_factory
from talent_engine.search.pipeline import TalentSearch
from talent_engine.storage.database import SqlTalentStore
from talent_engine.storage.store import TalentStore
from talent_engine.talent.aggregator import SignalAggregator
from talent_engine.talent.catalog import SkillCatalogCache

from .api import router as api_router
from .dependencies import EngineServices

logger = logging.getLogger("talent_engine.web")


@asynccontextmanager
async def lifespan(app: FastAPI):
    services: EngineServices = app.state.services
    for w in validate_config(services.config):
        logger.warning("Config: %s", w)
    logger.info("Talent engine API started")

    yield

    logger.info("Talent engine API stopped")


def build_services(
    config: AppConfig,
    store: Optional[TalentStore] = None,
    parser: Optional[DocumentParser] = None,
) -> EngineServices:
    """Wire the store, catalog cache, aggregator and search for one app."""
    if store is None:
        store = SqlTalentStore(create_session_factory(config.database.url))
    if parser is None and config.parser.endpoint_url:
        parser = HttpCvParser(config.parser)

    catalog = SkillCatalogCache(store.fetch_skill_catalog, ttl_seconds=config.catalog.ttl_seconds)
    aggregator = SignalAggregator(store, catalog=catalog, max_workers=config.search.fetch_workers)
    search = TalentSearch(
        store,
        aggregator,
        max_page_size=config.search.max_page_size,
        fetch_timeout=config.search.fetch_timeout_seconds,
    )
    return EngineServices(
        config=config,
        store=store,
        catalog=catalog,
        aggregator=aggregator,
        search=search,
        parser=parser,
    )


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[TalentStore] = None,
    parser: Optional[DocumentParser] = None,
) -> FastAPI:
    config = config or AppConfig()
    check_config(config)

    app = FastAPI(title="Talent Engine", lifespan=lifespan)
    app.state.services = build_services(config, store=store, parser=parser)

    app.include_router(api_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
