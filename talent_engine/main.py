"""CLI entry point for the talent engine."""

import argparse
import logging
import sys
from pathlib import Path

from sqlalchemy.engine import make_url

from talent_engine.config import AppConfig, load_config, validate_config
from talent_engine.errors import TalentEngineError
from talent_engine.models import create_session_factory
from talent_engine.search.filters import SearchFilterSet
from talent_engine.search.pipeline import SearchPage, TalentSearch
from talent_engine.storage.database import SqlTalentStore
from talent_engine.talent.aggregator import SignalAggregator
from talent_engine.talent.catalog import SkillCatalogCache
from talent_engine.talent.qualification import TalentPoolStats, talent_pool_stats
from talent_engine.utils.logging_config import setup_logging

logger = logging.getLogger("talent_engine")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Talent Engine - talent pool search and statistics",
    )
    parser.add_argument(
        "--config", default="config.yaml",
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "--init-db", action="store_true",
        help="Create missing database tables and exit",
    )
    parser.add_argument(
        "--stats", action="store_true",
        help="Print talent pool statistics and exit",
    )
    parser.add_argument(
        "--search", metavar="QUERY",
        help="Run a talent search and print one page of results",
    )
    parser.add_argument(
        "--looking-for-work", action="store_true",
        help="Only candidates who are looking for work (with --search)",
    )
    parser.add_argument(
        "--page", type=int, default=0,
        help="Zero-based result page (with --search)",
    )
    parser.add_argument(
        "--page-size", type=int, default=None,
        help="Results per page (default: search.default_page_size)",
    )
    return parser.parse_args(argv)


def build_store(config: AppConfig) -> SqlTalentStore:
    url = make_url(config.database.url)
    # SQLite will not create the parent directory of its database file
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return SqlTalentStore(create_session_factory(config.database.url))


def build_aggregator(config: AppConfig, store: SqlTalentStore) -> SignalAggregator:
    catalog = SkillCatalogCache(store.fetch_skill_catalog, ttl_seconds=config.catalog.ttl_seconds)
    return SignalAggregator(store, catalog=catalog, max_workers=config.search.fetch_workers)


def print_stats(stats: TalentPoolStats):
    """Print talent pool statistics."""
    print("\n=== Talent Pool Statistics ===")
    print(f"Talent profiles: {stats.total_profiles}")
    print(f"With completed assessment: {stats.profiles_with_assessment}")
    print(f"Looking for work: {stats.looking_for_work}")
    print(f"New this week: {stats.new_this_week}")
    print(f"New this month: {stats.new_this_month}")

    if stats.top_skills:
        print("\nTop skills:")
        for name, count in stats.top_skills:
            print(f"  {name}: {count}")

    if stats.location_distribution:
        print("\nLocations:")
        for location, count in stats.location_distribution:
            print(f"  {location}: {count}")
    print()


def print_page(page: SearchPage):
    print(f"\n=== {page.total_count} candidates (page {page.page + 1} of {page.total_pages}) ===")
    for summary in page.results:
        profile = summary.profile
        flags = []
        if profile.looking_for_work:
            flags.append("looking")
        if summary.has_assessment:
            flags.append(summary.candidate.signals.assessment.profile_code)
        print(f"- {profile.display_name} <{profile.email}> {profile.headline or profile.job_title}")
        print(f"    {profile.location or 'unknown location'} | {', '.join(flags) or '-'}"
              f" | skills: {', '.join(summary.top_skills) or '-'}")
    if page.skill_category_facets:
        facets = ", ".join(f"{k} ({v})" for k, v in page.skill_category_facets.items())
        print(f"\nSkill categories: {facets}")
    print()


def run_search(config: AppConfig, store: SqlTalentStore, args: argparse.Namespace) -> SearchPage:
    search = TalentSearch(
        store,
        build_aggregator(config, store),
        max_page_size=config.search.max_page_size,
        fetch_timeout=config.search.fetch_timeout_seconds,
    )
    filters = SearchFilterSet(query=args.search, looking_for_work_only=args.looking_for_work)
    return search.search(
        filters,
        page=args.page,
        page_size=args.page_size or config.search.default_page_size,
    )


def main(argv=None):
    args = parse_args(argv)

    # Load config
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config.log_dir, config.log_level)

    # Validate config and print warnings
    warnings = validate_config(config)
    for w in warnings:
        logger.warning("Config: %s", w)

    store = build_store(config)

    if args.init_db:
        store.init_schema()
        logger.info("Database schema ready at %s", config.database.url)
        return

    try:
        if args.stats:
            print_stats(talent_pool_stats(store, build_aggregator(config, store)))
            return

        if args.search is not None:
            print_page(run_search(config, store, args))
            return
    except TalentEngineError as e:
        logger.error("%s: %s", type(e).__name__, e)
        sys.exit(1)

    print("Nothing to do. Use --init-db, --stats or --search QUERY.", file=sys.stderr)
    sys.exit(2)


if __name__ == "__main__":
    main()
