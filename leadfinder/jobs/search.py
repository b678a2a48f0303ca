"""Search pipeline shared by the HTTP API, the chat bot and the command line."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from leadfinder.core.commands import CommandError, build_request
from leadfinder.delivery.excel import EmptyExportError, build_workbook, export_filename
from leadfinder.etl.transform import normalize_businesses, to_export_row
from leadfinder.models import ALLOWED_ENGINES, COUNTRY_REGIONS, BusinessRecord, SearchRequest
from leadfinder.vendors.serpapi_client import fetch_businesses

logger = logging.getLogger(__name__)


def run_search(request: SearchRequest, limit: Optional[int] = None) -> List[BusinessRecord]:
    """Fetch listings for a validated request and normalize them.

    ``limit`` caps the number of normalized records returned.
    """
    logger.info(
        "Starting search keyword=%s city=%s country=%s engine=%s",
        request.keyword,
        request.city or "-",
        request.country,
        request.engine,
    )
    raw_results = fetch_businesses(request.query, request.region, request.engine)
    records = normalize_businesses(raw_results)
    if limit is not None:
        records = records[:limit]
    logger.info("Normalized %s businesses for query=%s", len(records), request.query)
    return records


def export_search(request: SearchRequest, output: Optional[Path] = None) -> Path:
    """Run a search and write the results to an xlsx file."""
    records = run_search(request)
    payload = build_workbook([to_export_row(record) for record in records])
    target = output or Path(export_filename(request.keyword, request.city, request.country))
    target.write_bytes(payload)
    logger.info("Wrote %s businesses to %s", len(records), target)
    return target


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search SerpAPI for local businesses and export them to Excel.")
    parser.add_argument("keyword", help="Business keyword, e.g. 'seo agency'")
    parser.add_argument("--country", required=True, choices=sorted(COUNTRY_REGIONS), type=str.lower, help="Country to search in")
    parser.add_argument("--city", default="", help="Optional city filter")
    parser.add_argument("--engine", default=ALLOWED_ENGINES[0], choices=ALLOWED_ENGINES, help="SerpAPI engine")
    parser.add_argument("--output", type=Path, default=None, help="Target .xlsx path (derived from the query by default)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        request = build_request(args.keyword, args.country, args.city, args.engine)
        export_search(request, args.output)
    except CommandError as exc:
        logger.error("Invalid search: %s", exc)
        return 2
    except EmptyExportError:
        logger.warning("No businesses found for %s; nothing written.", args.keyword)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
