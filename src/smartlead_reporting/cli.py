"""Command-line entry point.

.. code-block:: bash

    # Export January campaigns of every client
    smartlead-report export --start 2024-01-01 --end 2024-01-31

    # Export one client into a custom directory
    smartlead-report export --start 2024-01-01 --end 2024-01-31 --client 42 --output-dir out

    # Print dashboard KPIs
    smartlead-report kpis
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .api.client import create_api_client
from .config.settings import Settings
from .exceptions import SmartleadError
from .export.filters import (
    ALL_CLIENTS,
    ExportFilterCriteria,
    estimate_export_seconds,
    filter_campaigns,
)
from .export.orchestrator import ExportOrchestrator
from .export.writer import WorkbookWriter
from .services.dashboard import load_dashboard_data
from .utils.security import safe_log_dict, setup_secure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smartlead-report", description="Smartlead campaign reporting"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    export = commands.add_parser("export", help="Export campaigns to an Excel workbook")
    export.add_argument("--start", required=True, help="First day, YYYY-MM-DD")
    export.add_argument("--end", required=True, help="Last day, YYYY-MM-DD")
    export.add_argument("--client", default=ALL_CLIENTS, help="Client id or 'all'")
    export.add_argument("--output-dir", default=None, help="Directory for the workbook")

    commands.add_parser("kpis", help="Print dashboard KPIs as JSON")
    return parser


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _report_progress(percent: int) -> None:
    print(f"Progress: {percent}%", file=sys.stderr)


async def run_export(args: argparse.Namespace, config: Settings) -> int:
    """Load the dashboard snapshot and export the selected campaigns."""
    async with create_api_client(config) as api:
        data = await load_dashboard_data(api)

        criteria = ExportFilterCriteria.create(args.start, args.end, args.client)
        selected = len(filter_campaigns(data.campaigns, criteria))
        logger.info(
            "Estimated export time for %d campaigns: ~%ds",
            selected,
            estimate_export_seconds(selected),
        )

        orchestrator = ExportOrchestrator(
            api,
            WorkbookWriter(args.output_dir or config.export_dir),
            max_concurrency=config.export_max_concurrency,
        )
        result = await orchestrator.export(
            data.campaigns,
            data.clients,
            args.start,
            args.end,
            client_filter=args.client,
            on_progress=_report_progress,
        )

    _print_json(
        {
            "success": result.success,
            "filename": result.filename,
            "path": result.path,
            "error": result.error,
            "campaign_count": result.campaign_count,
            "analytics_count": result.analytics_count,
        }
    )
    return EXIT_OK if result.success else EXIT_FAILED


async def run_kpis(config: Settings) -> int:
    async with create_api_client(config) as api:
        data = await load_dashboard_data(api)
    _print_json(data.kpis.model_dump())
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return its exit code.

    Exit codes: 0 on success, 1 when the export or an API call fails, 2 for
    invalid input (rejected before any network call).
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    config = Settings()
    setup_secure_logging(level=config.log_level)
    logger.debug("Settings: %s", safe_log_dict(config.model_dump()))

    try:
        if args.command == "export":
            # Fail fast before the snapshot is downloaded
            ExportFilterCriteria.create(args.start, args.end, args.client)
    except SmartleadError as e:
        _print_json({"success": False, "error": e.message})
        return EXIT_INVALID_INPUT

    try:
        if args.command == "export":
            return asyncio.run(run_export(args, config))
        return asyncio.run(run_kpis(config))
    except SmartleadError as e:
        logger.error("%s: %s", e.code, e.message)
        print(e.to_json())
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
