"""Shared FastAPI dependencies - the engine services held on app.state."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from talent_engine.config import AppConfig
from talent_engine.cv_import.parser import DocumentParser
from talent_engine.search.pipeline import TalentSearch
from talent_engine.storage.store import TalentStore
from talent_engine.talent.aggregator import SignalAggregator
from talent_engine.talent.catalog import SkillCatalogCache


@dataclass
class EngineServices:
    """Everything a request handler needs, built once per app."""

    config: AppConfig
    store: TalentStore
    catalog: SkillCatalogCache
    aggregator: SignalAggregator
    search: TalentSearch
    parser: Optional[DocumentParser] = None


def get_services(request: Request) -> EngineServices:
    return request.app.state.services
