#!/usr/bin/env python3
"""
Invoice Reconciliation Engine - Main Entry Point.

This is the command-line entry point. It extracts fields from one invoice
or a folder of invoices, reconciles them against an optional ledger and
writes the results as a JSON array of {file, extraction, verdict}.

Usage:
    Command Line:
        python main.py --input invoice.jpg --ledger ledger.json
        python main.py --input ./invoices/ --output results.json --handwritten

    Python:
        from main import run_reconciliation
        results = run_reconciliation("invoice.pdf", "ledger.json")

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from config import ConfigurationManager
from invoice_reconciler.utils.logger import ROOT_LOGGER_NAME, get_logger, setup_logger_from_config
from invoice_reconciler.utils.helpers import ensure_directory
from invoice_reconciler.utils.exceptions import ConfigurationError, InputError


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Invoice Field Extraction & Reconciliation Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Reconcile a single invoice:
        python main.py --input invoice.jpg --ledger ledger.json

    Process a folder of handwritten invoices, pattern extraction only:
        python main.py --input ./invoices/ --handwritten --no-ai --output results.json
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Invoice file or directory of invoices"
    )

    parser.add_argument(
        "--ledger", "-l",
        type=str,
        default=None,
        help="Ledger JSON (staff entries or raw task records)"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Write results to this JSON file (default: stdout)"
    )

    parser.add_argument(
        "--handwritten",
        action="store_true",
        help="Use the handwritten preprocessing profile"
    )

    parser.add_argument(
        "--no-ai",
        action="store_true",
        help="Disable AI cross-validation (pattern extraction only)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Load environment, configuration and logging.

    Returns:
        Initialized configuration manager.
    """
    load_dotenv()

    if args.config:
        ConfigurationManager.reset()
    try:
        config = ConfigurationManager(args.config)
    except (FileNotFoundError, ValueError) as e:
        ConfigurationManager.reset()
        raise ConfigurationError(args.config or "settings.yaml", str(e))

    logger = setup_logger_from_config()

    if args.debug:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.WARNING)

    logger.info("=" * 60)
    logger.info("INVOICE RECONCILIATION ENGINE")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")

    return config


def run_reconciliation(
    input_path: str,
    ledger_path: Optional[str] = None,
    is_handwritten: bool = False,
    use_ai: bool = True,
    pipeline=None
) -> List[Dict[str, Any]]:
    """
    Run extraction and reconciliation over a file or directory.

    Args:
        input_path: Invoice file or directory.
        ledger_path: Ledger JSON file; without it every verdict is no_match.
        is_handwritten: Use the handwritten preprocessing profile.
        use_ai: Enable AI cross-validation.
        pipeline: Pre-built InvoicePipeline (built from config if None).

    Returns:
        List of {file, extraction, verdict} dictionaries.

    Raises:
        InputError: If the input path or ledger cannot be read.
    """
    from invoice_reconciler.input_handler import DocumentLoader
    from invoice_reconciler.model_inference import ExtractionAggregator, create_field_extractor
    from invoice_reconciler.pipeline import InvoicePipeline
    from invoice_reconciler.reconciliation import load_ledger

    logger = get_logger(__name__)

    ledger = []
    if ledger_path:
        try:
            ledger = load_ledger(ledger_path)
        except FileNotFoundError as e:
            raise InputError(str(e), {'path': ledger_path})
    else:
        logger.warning("No ledger given; every document will be reported as no_match")

    if pipeline is None:
        aggregator = ExtractionAggregator(field_extractor=create_field_extractor(enabled=use_ai))
        pipeline = InvoicePipeline(aggregator=aggregator)

    source = Path(input_path)
    loader = pipeline.loader
    if source.is_dir():
        documents = loader.load_batch(source, is_handwritten=is_handwritten)
    elif source.is_file():
        documents = [loader.load(source, is_handwritten=is_handwritten)]
    else:
        raise InputError(f"Input path not found: {source}", {'path': str(source)})

    if not documents:
        logger.warning(f"No supported documents found in {source}")
        return []

    results = pipeline.process_batch(documents, ledger)
    return [r.to_dict() for r in results]


def print_summary(results: List[Dict[str, Any]]) -> None:
    """Print one line per processed file."""
    for entry in results:
        extraction = entry.get('extraction') or {}
        verdict = entry['verdict']
        total = extraction.get('total_amount')
        shown_total = f"${total:.2f}" if total is not None else "-"
        print(
            f"{entry['file']}: {verdict['status']} | "
            f"staff={extraction.get('staff_name') or '-'} | total={shown_total} | "
            f"method={extraction.get('extraction_method', '-')}"
        )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 success, 1 input error, 130 interrupted).
    """
    try:
        args = parse_arguments(argv)
        initialize_system(args)
        logger = get_logger(__name__)

        results = run_reconciliation(
            input_path=args.input,
            ledger_path=args.ledger,
            is_handwritten=args.handwritten,
            use_ai=not args.no_ai,
        )

        payload = json.dumps(results, indent=2)
        if args.output:
            output_path = Path(args.output)
            ensure_directory(output_path.parent)
            output_path.write_text(payload, encoding='utf-8')
            logger.info(f"Results written to {output_path}")
        else:
            print(payload)

        if args.output and not args.quiet:
            print_summary(results)

        logger.info("=" * 60)
        logger.info(f"Reconciliation complete. Processed {len(results)} file(s).")
        logger.info("=" * 60)

        return 0

    except (InputError, ConfigurationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
