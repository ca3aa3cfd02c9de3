from __future__ import annotations

import argparse
import sqlite3
import sys

from backend.app.config import AppSettings, load_settings
from backend.app.dependencies import build_award_sync_service
from backend.app.logging_config import configure_script_logging
from backend.app.repositories.award_repository import AwardRepository
from backend.app.repositories.database import Database
from backend.app.repositories.nomination_repository import NominationRepository
from backend.app.services.sync_errors import AwardSyncError
from backend.app.telemetry import build_telemetry_client


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Manage award organizations, ceremonies and IMDb nomination syncs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    organization_parser = subparsers.add_parser(
        "add-organization",
        help="Create an award organization.",
    )
    organization_parser.add_argument("--name", required=True, help="Organization name.")
    organization_parser.add_argument("--short-name", help="Short name (for example: AMPAS).")
    organization_parser.add_argument("--country", help="Country code.")

    category_parser = subparsers.add_parser("add-category", help="Create an award category.")
    category_parser.add_argument("--organization-uid", required=True, help="Organization uid (org_...).")
    category_parser.add_argument("--name", required=True, help="Canonical category name.")
    category_parser.add_argument("--name-en", help="English category name.")
    category_parser.add_argument("--name-local", help="Category name in the local language.")
    category_parser.add_argument("--short-name", help="Short category name.")

    ceremony_parser = subparsers.add_parser("add-ceremony", help="Create an award ceremony.")
    ceremony_parser.add_argument("--organization-uid", required=True, help="Organization uid (org_...).")
    ceremony_parser.add_argument("--year", required=True, type=int, help="Ceremony year.")
    ceremony_parser.add_argument("--ceremony-number", type=int, help="Ceremony edition number.")
    ceremony_parser.add_argument(
        "--imdb-event-url",
        help="IMDb event page (for example: https://www.imdb.com/event/ev0000003/2024/1).",
    )

    sync_parser = subparsers.add_parser(
        "sync",
        help="Replace a category's nominations with the IMDb event page snapshot.",
    )
    sync_parser.add_argument("--ceremony-uid", required=True, help="Ceremony uid (cer_...).")
    sync_parser.add_argument("--category-uid", required=True, help="Category uid (cat_...).")

    list_parser = subparsers.add_parser(
        "list-nominations",
        help="List the stored nominations of a ceremony category.",
    )
    list_parser.add_argument("--ceremony-uid", required=True, help="Ceremony uid (cer_...).")
    list_parser.add_argument("--category-uid", required=True, help="Category uid (cat_...).")

    return parser.parse_args(argv)


def _run_sync(args: argparse.Namespace, *, settings: AppSettings, database: Database) -> int:
    service = build_award_sync_service(
        settings=settings,
        database=database,
        telemetry=build_telemetry_client(
            enabled=settings.telemetry_enabled,
            sink=settings.telemetry_sink,
        ),
    )
    try:
        result = service.sync_ceremony_nominations(args.ceremony_uid, args.category_uid)
    except AwardSyncError as exc:
        print(f"Sync failed ({type(exc).__name__}): {exc}", file=sys.stderr)
        return 1

    print(f"Matched IMDb category: {result.category_name}")
    print(f"IMDb entries: {result.imdb_entries}")
    print(f"Nominations inserted: {result.nominations_inserted}")
    print(f"Movies created: {result.movies_created}")
    print(f"Skipped (no IMDb id): {result.skipped}")
    return 0


def _print_nominations(repository: NominationRepository, *, ceremony_uid: str, category_uid: str) -> None:
    nominations = repository.list_for_category(
        ceremony_uid=ceremony_uid,
        category_uid=category_uid,
    )
    if not nominations:
        print("No nominations found.")
        return

    print("uid\tmovie_uid\timdb_id\twinner\tspecial_mention")
    for nomination in nominations:
        print(
            "\t".join(
                [
                    nomination.uid,
                    nomination.movie_uid,
                    nomination.imdb_id or "-",
                    "yes" if nomination.is_winner else "no",
                    nomination.special_mention or "-",
                ]
            )
        )


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = load_settings()
    configure_script_logging(settings.log_level)
    database = Database(settings.db_path)
    database.initialize()
    awards = AwardRepository(database)

    try:
        if args.command == "add-organization":
            organization = awards.create_organization(
                name=args.name,
                short_name=args.short_name,
                country=args.country,
            )
            print(f"Created organization: {organization.uid} ({organization.name})")
            return 0

        if args.command == "add-category":
            category = awards.create_category(
                organization_uid=args.organization_uid,
                name=args.name,
                name_en=args.name_en,
                name_local=args.name_local,
                short_name=args.short_name,
            )
            print(f"Created category: {category.uid} ({category.name})")
            return 0

        if args.command == "add-ceremony":
            ceremony = awards.create_ceremony(
                organization_uid=args.organization_uid,
                year=args.year,
                ceremony_number=args.ceremony_number,
                imdb_event_url=args.imdb_event_url,
            )
            print(f"Created ceremony: {ceremony.uid} ({ceremony.year})")
            return 0
    except (sqlite3.IntegrityError, ValueError) as exc:
        print(f"Could not create record: {exc}", file=sys.stderr)
        return 1

    if args.command == "sync":
        return _run_sync(args, settings=settings, database=database)

    if args.command == "list-nominations":
        _print_nominations(
            NominationRepository(database),
            ceremony_uid=args.ceremony_uid,
            category_uid=args.category_uid,
        )
        return 0

    raise RuntimeError(f"Unhandled command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())
