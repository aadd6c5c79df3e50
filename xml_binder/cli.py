"""
Command-line interface for the XML Binder system.

Subcommands:
    build-query       print query text assembled from the given clauses
    check-connection  probe the configured eXist-db server
    config            print the effective configuration
"""

import sys
import json
import logging
import argparse

from typing import Optional

from .config.binder_defaults import BinderDefaults
from .config.config_manager import ConfigManager, get_config_manager
from .database.exist_client import ExistDBClient
from .exceptions import XMLBinderError
from .query.xquery_builder import XQueryBuilder


LOG_LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xml_binder", description="XML record binding and eXist-db query tools")

    parser.add_argument("--log-level", choices=LOG_LEVELS,
                        help=f"Logging level (default: XML_BINDER_LOG_LEVEL or {BinderDefaults.LOG_LEVEL})")
    parser.add_argument("--config", metavar="FILE",
                        help="YAML or JSON settings file overlaid on the environment")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    build = subparsers.add_parser("build-query", help="Print an XQuery built from the given clauses")
    build.add_argument("--collection", required=True, help="Collection path (e.g., '/db/bookshop/novels')")
    build.add_argument("--entity", help="Entity element name appended as //TAG")
    build.add_argument("--filter", dest="filters", action="append", default=[], metavar="FILTER",
                       help="Filter such as 'year < 1950' or 'title=1984'; repeatable")
    build.add_argument("--group-by", help="Field for a group by clause")
    build.add_argument("--order-by", help="Field for an order by clause")
    build.add_argument("--field", dest="fields", action="append", metavar="FIELD",
                       help="Projected field; repeatable")

    subparsers.add_parser("check-connection", help="Probe the configured eXist-db server")
    subparsers.add_parser("config", help="Print the effective configuration")

    return parser


def _configure_logging(level: str) -> None:
    # Set up logging without reconfiguring root if already configured
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level, logging.WARNING))


def _build_query(args: argparse.Namespace) -> int:
    query = XQueryBuilder().build(
        args.collection,
        args.entity,
        args.filters,
        group_by=args.group_by,
        order_by=args.order_by,
        fields=args.fields
    )
    print(query)
    return 0


def _check_connection(config_manager: ConfigManager) -> int:
    exist_config = config_manager.get_exist_config()
    client = ExistDBClient(exist_config, verify_connection=False)
    try:
        success = client.test_connection()
    finally:
        client.close()

    print(f"eXist-db at {exist_config.url}: {'OK' if success else 'UNREACHABLE'}")
    return 0 if success else 1


def _show_config(config_manager: ConfigManager) -> int:
    summary = config_manager.get_configuration_summary()
    summary['valid'] = config_manager.validate_configuration()
    print(json.dumps(summary, indent=2))
    return 0 if summary['valid'] else 1


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI application.

    Args:
        args: Optional command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args is None:
        args = sys.argv[1:]

    options = build_parser().parse_args(args)
    logger = logging.getLogger(__name__)

    try:
        config_manager = ConfigManager(options.config) if options.config else get_config_manager()
        _configure_logging(options.log_level or config_manager.get_log_level())

        if options.command == "build-query":
            return _build_query(options)
        if options.command == "check-connection":
            return _check_connection(config_manager)
        return _show_config(config_manager)

    except (XMLBinderError, ValueError) as e:
        _configure_logging(options.log_level or BinderDefaults.LOG_LEVEL)
        logger.error(f"{options.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
