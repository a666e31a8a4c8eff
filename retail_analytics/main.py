"""
Command line interface for the retail analytics engine.

Loads CSV exports or the relational schema into an entity store and prints
one derived view as a table, CSV or JSON.
"""
import argparse
import sys

from tabulate import tabulate

from retail_analytics.config import Config
from retail_analytics.db import DatabaseConnection
from retail_analytics.exceptions import RetailAnalyticsError
from retail_analytics.logging_setup import configure_logging, get_logger, log_exception
from retail_analytics.services.loader_service import LoaderService
from retail_analytics.services.persistence_service import PersistenceService
from retail_analytics.services.reporting_service import ReportingService
from retail_analytics.services.view_registry import ViewRegistry
from retail_analytics.store import EntityStore


def print_report(reporting, report, output_format):
    """Write a report to stdout in the requested format."""
    if output_format == 'csv':
        sys.stdout.write(reporting.export_report_to_csv(report))
    elif output_format == 'json':
        sys.stdout.write(reporting.export_report_to_json(report) + "\n")
    else:
        if not report['data']:
            print("No rows")
            return
        table_data = [
            ['' if row.get(column) is None else row.get(column) for column in report['columns']]
            for row in report['data']
        ]
        print(f"\n{report['view']}:")
        print(tabulate(table_data, headers=report['columns']))
        print(f"\nRows: {report['summary']['rows_returned']} of {report['summary']['row_count']}")


def show_view(store, settings, args):
    """Refresh every view over the store and print the requested one."""
    log = get_logger('report')
    registry = ViewRegistry(store, settings)
    summary = registry.refresh_all()
    for view_name, error in summary.failed.items():
        log.error(f"View {view_name} could not be computed: {error}")

    reporting = ReportingService(registry)
    report = reporting.report(args.view, sort_by=args.sort_by, limit=args.limit)
    print_report(reporting, report, args.format)
    return 0 if args.view not in summary.failed else 1


def load_csv(args, settings):
    store = EntityStore()
    loaded = LoaderService(store).load_directory(args.directory)
    get_logger('load').info(f"Loaded from {args.directory}: {loaded}")
    return show_view(store, settings, args)


def setup_db(args, settings):
    database = DatabaseConnection(settings)
    if args.drop:
        database.drop_all_tables()
    database.create_all_tables()
    get_logger('db_setup').info(f"Database tables created at {database.url}")
    return 0


def import_csv(args, settings):
    """Load CSV exports into the store, then write them to the database."""
    store = EntityStore()
    LoaderService(store).load_directory(args.directory)

    database = DatabaseConnection(settings)
    database.create_all_tables()
    with database.session_scope() as session:
        written = PersistenceService(session).save_store(store)
    get_logger('db_setup').info(f"Imported into {database.url}: {written}")
    return 0


def report_from_db(args, settings):
    store = EntityStore()
    database = DatabaseConnection(settings)
    with database.session_scope() as session:
        PersistenceService(session).load_store(store)
    return show_view(store, settings, args)


def list_views(args, settings):
    registry = ViewRegistry(EntityStore(), settings)
    for view_name in registry.view_names():
        print(f"{view_name:32} {registry.definition(view_name).description}")
    return 0


def non_negative_int(value):
    """argparse type for row limits."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more, got {number}")
    return number


def add_view_arguments(parser):
    parser.add_argument('view', help='View to display')
    parser.add_argument('--format', choices=['table', 'csv', 'json'], default='table',
                        help='Output format')
    parser.add_argument('--sort-by', type=str, help='Column to sort on')
    parser.add_argument('--limit', type=non_negative_int, help='Maximum number of rows')


def build_parser():
    parser = argparse.ArgumentParser(description='Retail Sales & Inventory Analytics')
    parser.add_argument('--config', type=str, help='Path to settings.ini')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    load_parser = subparsers.add_parser('load-csv', help='Load CSV exports and show a view')
    load_parser.add_argument('directory', help='Directory holding the CSV exports')
    add_view_arguments(load_parser)
    load_parser.set_defaults(handler=load_csv)

    setup_parser = subparsers.add_parser('setup-db', help='Create the database schema')
    setup_parser.add_argument('--drop', action='store_true', help='Drop existing tables first')
    setup_parser.set_defaults(handler=setup_db)

    import_parser = subparsers.add_parser('import-csv', help='Load CSV exports into the database')
    import_parser.add_argument('directory', help='Directory holding the CSV exports')
    import_parser.set_defaults(handler=import_csv)

    report_parser = subparsers.add_parser('report', help='Show a view computed from the database')
    add_view_arguments(report_parser)
    report_parser.set_defaults(handler=report_from_db)

    views_parser = subparsers.add_parser('views', help='List available views')
    views_parser.set_defaults(handler=list_views)

    return parser


def main(argv=None):
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, 'handler', None):
        parser.print_help()
        return 2

    settings = Config(args.config)
    configure_logging(settings)
    log = get_logger('app')

    try:
        return args.handler(args, settings)
    except RetailAnalyticsError as e:
        log_exception('app', e, f"{args.command} failed")
        log.error(f"Error details: {e.to_dict()}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
