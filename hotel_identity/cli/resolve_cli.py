#!/usr/bin/env python3
"""
CLI for hotel identity resolution

Usage:
    hotel-identity resolve "The Westin Sacramento" Sacramento --state CA
    hotel-identity resolve "Hotel Nia" "Menlo Park" --platform google --persist
    hotel-identity analyze "Andaz West Hollywood" "Hyatt Regency West Hollywood"
    hotel-identity queries "The Westin Sacramento" Sacramento --state CA
"""

import argparse
import asyncio
import json
import sys
import uuid
from typing import List, Optional

from ..config import get_settings, load_platform_config
from ..database import DatabaseManager, InMemoryRecordStore, SqlAlchemyRecordStore
from ..resolution_types import Platform, PropertyRef
from ..scrapers.registry import build_adapters
from ..services import ResolutionCancelled, ResolutionOrchestrator
from ..utils.hotel_matcher import analyze_match
from ..utils.logging import configure_logging, get_logger
from ..utils.query_generator import generate_queries

logger = get_logger(__name__)


class ResolveCLI:
    """Command-line interface for resolution runs"""

    def __init__(self, settings=None):
        self.settings = settings or get_settings()

    async def resolve(
        self,
        name: str,
        city: str,
        state: Optional[str],
        platforms: Optional[List[Platform]],
        property_id: Optional[str],
        persist: bool,
    ) -> List[dict]:
        """Resolve one property and return the records as dicts"""
        prop = PropertyRef(
            id=property_id or str(uuid.uuid4()),
            name=name,
            city=city,
            state=state,
        )
        platforms_config = load_platform_config(self.settings.PLATFORM_CONFIG_PATH)
        adapters = build_adapters(self.settings, platforms_config, platforms)

        db = None
        if persist:
            db = DatabaseManager(self.settings.DATABASE_URL)
            await db.initialize()
            await db.create_schema()
            store = SqlAlchemyRecordStore(db)
        else:
            store = InMemoryRecordStore()

        orchestrator = ResolutionOrchestrator.from_settings(self.settings, store=store)
        try:
            records = await orchestrator.resolve_platforms(prop, list(adapters.values()))
        finally:
            for adapter in adapters.values():
                await adapter.close()
            if db is not None:
                await db.close()

        return [record.to_dict() for record in records]

    @staticmethod
    def analyze(search_name: str, candidate_name: str) -> dict:
        return analyze_match(search_name, candidate_name).to_dict()

    @staticmethod
    def queries(name: str, city: str, state: Optional[str]) -> List[str]:
        return generate_queries(name, city, state)


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser"""
    parser = argparse.ArgumentParser(
        description="Hotel identity resolution CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s resolve "The Westin Sacramento" Sacramento --state CA
  %(prog)s resolve "Hotel Nia" "Menlo Park" --platform google --platform booking
  %(prog)s analyze "The Rittenhouse" "The Rittenhouse Hotel"
  %(prog)s queries "Courtyard by Marriott Tyler" Tyler --state TX
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    resolve_parser = subparsers.add_parser('resolve', help='Resolve a property on review platforms')
    resolve_parser.add_argument('name', help='Property name')
    resolve_parser.add_argument('city', help='Property city')
    resolve_parser.add_argument('--state', help='State or region code')
    resolve_parser.add_argument(
        '--platform',
        action='append',
        choices=[p.value for p in Platform],
        help='Platform to resolve (repeatable, default: all)'
    )
    resolve_parser.add_argument('--property-id', help='Internal property id (default: random)')
    resolve_parser.add_argument(
        '--persist',
        action='store_true',
        help='Upsert records into DATABASE_URL instead of memory'
    )

    analyze_parser = subparsers.add_parser('analyze', help='Explain the match verdict for two names')
    analyze_parser.add_argument('search_name', help='Internal property name')
    analyze_parser.add_argument('candidate_name', help='Listing display name')

    queries_parser = subparsers.add_parser('queries', help='Show search query variants')
    queries_parser.add_argument('name', help='Property name')
    queries_parser.add_argument('city', help='Property city')
    queries_parser.add_argument('--state', help='State or region code')

    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    cli = ResolveCLI(settings)

    try:
        if args.command == 'resolve':
            platforms = [Platform(p) for p in args.platform] if args.platform else None
            output = await cli.resolve(
                args.name, args.city, args.state, platforms, args.property_id, args.persist
            )
        elif args.command == 'analyze':
            output = cli.analyze(args.search_name, args.candidate_name)
        else:
            output = cli.queries(args.name, args.city, args.state)

    except (KeyboardInterrupt, ResolutionCancelled):
        print("Operation cancelled", file=sys.stderr)
        return 1
    except Exception as e:
        logger.error("cli_error", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2, default=str))
    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
