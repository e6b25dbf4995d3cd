"""Caller-owned read-through cache of the hard-skills catalog."""

import logging
import threading
import time
from typing import Callable, Optional

from talent_engine.errors import CollaboratorError
from talent_engine.profile.models import CatalogSkill
from talent_engine.utils.text_processing import normalize

logger = logging.getLogger("talent_engine.talent.catalog")


class SkillCatalogCache:
    """Loads the catalog lazily and reloads it once ``ttl_seconds`` have passed.

    The engine never holds one of these itself: whoever owns the request
    scope (the web app, a CLI run, a test) creates it and passes it in.
    """

    def __init__(
        self,
        loader: Callable[[], list[CatalogSkill]],
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._loaded_at: Optional[float] = None
        self._by_id: dict[str, CatalogSkill] = {}
        self._by_name: dict[str, CatalogSkill] = {}

    def _ensure_fresh(self):
        with self._lock:
            now = self._clock()
            if self._loaded_at is not None and now - self._loaded_at < self._ttl:
                return
            try:
                skills = self._loader()
            except Exception as e:
                logger.error("Skill catalog load failed: %s", e)
                raise CollaboratorError("fetch_skill_catalog", str(e)) from e
            self._by_id = {s.skill_id: s for s in skills}
            self._by_name = {}
            for s in skills:
                self._by_name.setdefault(normalize(s.name), s)
            self._loaded_at = now
            logger.debug("Skill catalog loaded: %d skills", len(skills))

    def invalidate(self):
        """Drop the cached catalog; the next lookup reloads it."""
        with self._lock:
            self._loaded_at = None

    def get(self, skill_id: str) -> Optional[CatalogSkill]:
        self._ensure_fresh()
        return self._by_id.get(skill_id)

    def find_by_name(self, name: str) -> Optional[CatalogSkill]:
        """Catalog entry whose name is normalized-equal to ``name``."""
        key = normalize(name)
        if not key:
            return None
        self._ensure_fresh()
        return self._by_name.get(key)

    def all(self) -> list[CatalogSkill]:
        self._ensure_fresh()
        return sorted(self._by_id.values(), key=lambda s: ((s.category or ""), s.name))

    def categories(self) -> list[str]:
        return sorted({s.category for s in self.all() if s.category})
