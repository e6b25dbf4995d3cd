"""YAML config loading and validation."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class DatabaseConfig:
    url: str = "sqlite:///data/talent_engine.db"


@dataclass
class SearchConfig:
    default_page_size: int = 20
    max_page_size: int = 100
    fetch_workers: int = 4
    fetch_timeout_seconds: float | None = None


@dataclass
class MatchingConfig:
    assessment_scale_max: int = 30
    scoring_workers: int = 4
    parallel_threshold: int = 50


@dataclass
class CatalogConfig:
    ttl_seconds: float = 300.0


@dataclass
class ParserConfig:
    endpoint_url: str = ""
    api_key: str = ""
    timeout_seconds: int = 60
    max_retries: int = 2


@dataclass
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    log_dir: str = "logs"
    log_level: str = "INFO"


def load_config(config_path: str = "config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Copy config.example.yaml to config.yaml and fill in your settings."
        )

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    config = AppConfig()

    # Database (env var takes precedence)
    database_raw = raw.get("database", {})
    config.database = DatabaseConfig(
        url=os.environ.get("DATABASE_URL", database_raw.get("url", "sqlite:///data/talent_engine.db")),
    )

    # Search
    search_raw = raw.get("search", {})
    config.search = SearchConfig(
        default_page_size=search_raw.get("default_page_size", 20),
        max_page_size=search_raw.get("max_page_size", 100),
        fetch_workers=search_raw.get("fetch_workers", 4),
        fetch_timeout_seconds=search_raw.get("fetch_timeout_seconds"),
    )

    # Matching
    matching_raw = raw.get("matching", {})
    config.matching = MatchingConfig(
        assessment_scale_max=matching_raw.get("assessment_scale_max", 30),
        scoring_workers=matching_raw.get("scoring_workers", 4),
        parallel_threshold=matching_raw.get("parallel_threshold", 50),
    )

    # Skill catalog cache
    catalog_raw = raw.get("catalog", {})
    config.catalog = CatalogConfig(
        ttl_seconds=catalog_raw.get("ttl_seconds", 300.0),
    )

    # CV parser collaborator
    parser_raw = raw.get("parser", {})
    config.parser = ParserConfig(
        endpoint_url=parser_raw.get("endpoint_url", ""),
        api_key=os.environ.get("TALENT_ENGINE_PARSER_API_KEY", parser_raw.get("api_key", "")),
        timeout_seconds=parser_raw.get("timeout_seconds", 60),
        max_retries=parser_raw.get("max_retries", 2),
    )

    config.log_dir = raw.get("log_dir", "logs")
    config.log_level = raw.get("log_level", "INFO")

    check_config(config)
    return config


def check_config(config: AppConfig) -> None:
    """Raise ValueError for settings the engine cannot run with."""
    scale_max = config.matching.assessment_scale_max
    if isinstance(scale_max, bool) or not isinstance(scale_max, (int, float)) or scale_max <= 0:
        raise ValueError(f"matching.assessment_scale_max must be a positive number (got {scale_max!r})")


def validate_config(config: AppConfig) -> list[str]:
    """Return list of validation warnings (empty = OK)."""
    warnings = []

    if config.search.default_page_size < 1:
        warnings.append("search.default_page_size must be at least 1")

    if config.search.default_page_size > config.search.max_page_size:
        warnings.append("search.default_page_size exceeds search.max_page_size")

    if config.search.fetch_workers < 1:
        warnings.append("search.fetch_workers must be at least 1 - signal fetches will run with 1 worker")

    if config.catalog.ttl_seconds <= 0:
        warnings.append("catalog.ttl_seconds is not positive - the skill catalog will be reloaded on every lookup")

    if not config.parser.endpoint_url:
        warnings.append("No CV parser endpoint configured - CV import will be unavailable")
    elif not config.parser.api_key:
        warnings.append("CV parser endpoint configured without an API key")

    return warnings
