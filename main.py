"""Main entry point for the directory application."""
import argparse
import sys
from loguru import logger
from database import engine, get_db, Base
from config import settings
from directory.facets import category_facets, directory_stats, state_facets
from directory.query import FilterSpec, query_stores, suggest
from importers.csv_importer import CsvImporter
from importers.json_importer import JsonImporter
from maintenance.categories import fill_empty_categories, fix_categories
from maintenance.coordinates import coordinate_report, geocode_missing
from maintenance.store_types import normalize_legacy_types
from maintenance.verification import verify_stores
from repository import StoreRepository
from utils.geocoder import NominatimClient
from utils.website_checker import WebsiteChecker

# Configure logger
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    level="INFO"
)


def init_database():
    """Initialize database tables."""
    logger.info("Initializing database...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized successfully")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Eco directory maintenance and query tool")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables")

    p = sub.add_parser("import-csv", help="Import listings from a CSV file")
    p.add_argument("path")
    p.add_argument("--review", action="store_true",
                   help="Geocode rows and import them as needs-review")

    p = sub.add_parser("import-json", help="Migrate the legacy JSON data directory")
    p.add_argument("path", nargs="?", default=settings.legacy_data_dir)

    sub.add_parser("check-coords", help="Report listings missing coordinates")
    sub.add_parser("geocode-missing", help="Geocode listings missing coordinates")
    sub.add_parser("fix-categories", help="Normalize categories and fill empty ones")
    sub.add_parser("fix-types", help="Rewrite legacy 'both' store types")
    sub.add_parser("verify", help="Re-verify listing websites")

    p = sub.add_parser("search", help="Query active listings")
    p.add_argument("-q", "--query", dest="text_query")
    p.add_argument("--category", action="append", default=[])
    p.add_argument("--state", action="append", default=[])
    p.add_argument("--city")
    p.add_argument("--country", choices=["USA", "Canada"])
    p.add_argument("--type", dest="store_types", action="append", default=[])
    p.add_argument("--wholesale", action="store_true")
    p.add_argument("--delivery", action="store_true")
    p.add_argument("--near", nargs=2, metavar=("LAT", "LNG"))
    p.add_argument("--sort", choices=["az", "newest", "featured"])

    sub.add_parser("facets", help="Show state and category counts")

    p = sub.add_parser("suggest", help="Search-box suggestions")
    p.add_argument("query")

    p = sub.add_parser("submit", help="Submit a business for review")
    p.add_argument("--name", required=True)
    p.add_argument("--description", required=True)
    p.add_argument("--category", dest="categories", action="append", default=[])
    p.add_argument("--type")
    p.add_argument("--website")
    p.add_argument("--email")
    p.add_argument("--phone")
    p.add_argument("--address")
    p.add_argument("--city")
    p.add_argument("--state")
    p.add_argument("--country", choices=["USA", "Canada"])
    p.add_argument("--postal-code", dest="postal_code")
    p.add_argument("--wholesale", dest="offers_wholesale", action="store_true")
    p.add_argument("--delivery", dest="offers_local_delivery", action="store_true")

    return parser


def run_search(repository: StoreRepository, args) -> None:
    spec = FilterSpec(
        text_query=args.text_query,
        categories=args.category,
        states=args.state,
        city=args.city,
        country=args.country,
        store_types=args.store_types,
        wholesale_only=args.wholesale,
        delivery_only=args.delivery,
        near_point=tuple(args.near) if args.near else None,
        sort=args.sort,
    )
    results = query_stores(repository.fetch_active_records(), spec)
    logger.info(f"{len(results)} business{'es' if len(results) != 1 else ''} found")
    for record in results:
        print(f"{record.id}\t{record.name}\t{record.city}, {record.state}\t{record.type.serialize()}")


def run_facets(repository: StoreRepository) -> None:
    records = repository.fetch_active_records()
    categories = repository.list_categories()
    stats = directory_stats(records, categories)
    logger.info(
        f"{stats.total_stores} stores in {stats.total_cities} cities and {stats.total_states} states "
        f"(USA: {stats.by_country.get('USA', 0)}, Canada: {stats.by_country.get('Canada', 0)})"
    )
    for facet in state_facets(records):
        print(f"{facet.slug}\t{facet.state_name}\t{facet.country}\t{facet.store_count}")
    for facet in category_facets(records, categories):
        print(f"{facet.category.id}\t{facet.category.name}\t{facet.store_count}")


def run_suggest(repository: StoreRepository, query: str) -> None:
    result = suggest(repository.fetch_active_records(), repository.list_categories(), query)
    for record in result.stores:
        print(f"store\t{record.id}\t{record.name}\t{record.city}, {record.state}")
    for city in result.cities:
        print(f"city\t{city}")
    for category in result.categories:
        print(f"category\t{category.id}\t{category.name}")


def run_submit(repository: StoreRepository, args) -> None:
    submission = {key: value for key, value in vars(args).items() if key != "command"}
    record = repository.submit_listing(submission)
    repository.commit()
    print(f"{record.id}\t{record.status.value}")


def main(argv=None):

    """Main function to run directory commands."""
    args = build_parser().parse_args(argv)

    if args.command == "init-db":
        init_database()
        return

    db = next(get_db())
    repository = StoreRepository(db)

    try:
        if args.command == "import-csv":
            if args.review:
                importer = CsvImporter.for_review(db)
            else:
                importer = CsvImporter(db)
            importer.run(args.path)
        elif args.command == "import-json":
            JsonImporter(db).run(args.path)
        elif args.command == "check-coords":
            coordinate_report(repository)
        elif args.command == "geocode-missing":
            geocode_missing(repository, NominatimClient())
        elif args.command == "fix-categories":
            fix_categories(db)
            fill_empty_categories(db)
        elif args.command == "fix-types":
            normalize_legacy_types(db)
        elif args.command == "verify":
            verify_stores(repository, WebsiteChecker())
        elif args.command == "search":
            run_search(repository, args)
        elif args.command == "facets":
            run_facets(repository)
        elif args.command == "suggest":
            run_suggest(repository, args.query)
        elif args.command == "submit":
            run_submit(repository, args)

    except Exception as e:
        logger.error(f"Error in main execution: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
