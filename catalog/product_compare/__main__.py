"""
CLI entry point for Product Compare.

Usage:
    python -m catalog.product_compare --input export.xlsx --output compared.xlsx
    python -m catalog.product_compare --input export.xlsx --output compared.xlsx --bags bags.json
    python -m catalog.product_compare --input export.xlsx --output compared.xlsx --output-csv diff.csv
    python -m catalog.product_compare --input export.xlsx --output out/compared.xlsx --output-csv
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .adapters import JsonWebDataAdapter, ScraperWebDataAdapter
from .comparators import weight_policy_for
from .config import DEFAULT_CONFIG_PATH, load_config
from .report import export_csv, format_console, generate_report_filename
from .scraper import ProductScraper
from .sheet_writer import process_workbook


def main():
    parser = argparse.ArgumentParser(
        prog="product_compare",
        description="Product Compare - Check DB export values against the vendor catalog",
    )

    parser.add_argument(
        "--input",
        required=True,
        metavar="FILE",
        help="DB export workbook (XLSX)",
    )

    parser.add_argument(
        "--output",
        required=True,
        metavar="FILE",
        help="Annotated workbook to write (XLSX)",
    )

    parser.add_argument(
        "--bags",
        metavar="FILE",
        help="JSON file with catalog attribute bags (default: scrape live)",
    )

    parser.add_argument(
        "--config",
        default=None,
        metavar="FILE",
        help="Layout/settings file (default: module's compare_config.json)",
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Parallel scrape workers (default from config)",
    )

    parser.add_argument(
        "--weight-tolerance",
        type=float,
        default=None,
        metavar="PERCENT",
        help="Relative weight tolerance in percent (default from config, 0 = strict)",
    )

    parser.add_argument(
        "--output-csv",
        nargs="?",
        const="",
        metavar="FILE",
        help="Output CSV file path (without FILE: dated name next to --output)",
    )

    parser.add_argument(
        "--show-clean",
        action="store_true",
        help="Include matching fields in console output",
    )

    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress console output",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config_path = Path(args.config) if args.config else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        sys.exit(1)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input workbook not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    scraper = None
    try:
        config = load_config(config_path)
        if args.concurrency is not None:
            config.settings = replace(config.settings, scrape_concurrency=args.concurrency)
        if args.weight_tolerance is not None:
            config.settings = replace(config.settings, weight_tolerance_percent=args.weight_tolerance)

        if args.bags:
            if not args.quiet:
                print(f"Loading catalog attributes from {args.bags}...")
            adapter = JsonWebDataAdapter(args.bags)
        else:
            scraper = ProductScraper(config.settings)
            adapter = ScraperWebDataAdapter(scraper)

        if not args.quiet:
            print(f"Comparing {input_path}...")

        policy = weight_policy_for(config.settings.weight_tolerance_percent)
        content, results = process_workbook(input_path, adapter, config, weight_policy=policy)

        output_path = Path(args.output)
        output_path.write_bytes(content)

        if not args.quiet:
            print(format_console(results, show_clean=args.show_clean))
            print(f"\nWorkbook written to: {output_path}")

        if args.output_csv is not None:
            csv_path = Path(args.output_csv) if args.output_csv \
                else output_path.parent / generate_report_filename(input_path.stem)
            with open(csv_path, "w", newline="", encoding="utf-8") as f:
                export_csv(results, output=f)
            if not args.quiet:
                print(f"CSV exported to: {csv_path}")

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        if scraper is not None:
            scraper.close()


if __name__ == "__main__":
    main()
