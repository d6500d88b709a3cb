#!/usr/bin/env python3
"""
Snipe-IT Reports - Main entry point.

Runs one named report against the Snipe-IT API and prints it as a table,
JSON, or CSV.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional, Sequence

from .. import __version__
from ..collectors.base import CollectorError
from ..collectors.snipe import SnipeCollector, SnipeTransport
from ..data.models import Report
from ..logs import debug, set_verbose
from ..reports.service import ReportService
from .commands import COMMANDS, command_listing
from .config import Config, ConfigurationError, load_api_key
from .printer import TablePrinter, reports_to_json, write_csv

EXIT_OK = 0
EXIT_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snipe-report",
        description="Inventory reports from the Snipe-IT asset tracker.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=None, help="Path to config YAML file")
    parser.add_argument("--base-url", default=None, help="Snipe-IT base URL (overrides config)")
    parser.add_argument("--api-key-path", default=None, help="File holding the API token (overrides config)")
    parser.add_argument("--timeout", type=int, default=None, help="Network timeout in seconds")
    parser.add_argument("--insecure", action="store_true", help="Disable TLS certificate verification")
    parser.add_argument("--json", action="store_true", help="Output reports as JSON")
    parser.add_argument("--csv", dest="csv_path", help="Also write results to CSV at this path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log requests and cache activity to stderr")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True
    sub.add_parser("commands", help="List available report commands")

    for spec in COMMANDS.values():
        cmd = sub.add_parser(spec.name, help=spec.help, description=spec.help)
        for param in spec.params:
            cmd.add_argument(
                param.name,
                nargs=None if param.required else "?",
                default=param.default,
                type=None if param.convert is str or param.choices else param.convert,
                choices=param.choices,
                help=param.help,
            )
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Override config with CLI args."""
    if args.base_url:
        config.base_url = args.base_url
    if args.api_key_path:
        config.api_key_path = args.api_key_path
    if args.timeout:
        config.http.timeout = args.timeout
    if args.insecure:
        config.http.verify = False
    return config


def create_collector(config: Config, token: str) -> SnipeCollector:
    transport = SnipeTransport(
        config.api_url,
        token,
        timeout=config.http.timeout,
        verify=config.http.verify,
        ca_bundle=config.http.ca_bundle,
        connect_retries=config.http.connect_retries,
    )
    return SnipeCollector(
        transport,
        laptop_category_id=config.laptop_category_id,
        strict_pagination=config.pagination.strict,
        page_size=config.pagination.page_size,
    )


def emit(reports: Sequence[Report], args: argparse.Namespace, printer: TablePrinter) -> None:
    if args.csv_path:
        write_csv(reports, args.csv_path)
    if args.json:
        printer.stream.write(reports_to_json(reports) + "\n")
        return
    if not reports:
        printer.stream.write("No results.\n")
    for report in reports:
        printer.print_report(report)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    set_verbose(args.verbose)

    try:
        config = apply_overrides(Config.load(args.config), args)
        debug("config", f"Loaded: deployment={config.deployment_name!r}, api_url={config.api_url!r}")
        printer = TablePrinter(config.base_url)

        if args.command == "commands":
            emit([command_listing()], args, printer)
            return EXIT_OK

        spec = COMMANDS[args.command]
        token = load_api_key(config.api_key_path)
        with create_collector(config, token) as collector:
            service = ReportService(
                collector,
                depreciation_years=config.depreciation_years,
                mac_manufacturer=config.mac_manufacturer,
            )
            reports = spec.run(service, vars(args))
        emit(reports, args, printer)
    except ConfigurationError as e:
        sys.stderr.write(f"Error: {e}\n")
        return EXIT_ERROR
    except CollectorError as e:
        sys.stderr.write(f"Error: {e}\n")
        return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
