"""Command line entry point.

Exports the trading activity of an Alpaca account in a Ledger CLI
compatible format on stdout.

Usage:
    alpaca-ledger registry.json
    alpaca-ledger registry.json --begin 2024-01-01 -v
    alpaca-ledger registry.json --force-separate-fees
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from config import settings
from integrations.alpaca_client import AlpacaClient
from integrations.exceptions import ProviderError
from logging_config import setup_logging
from services.exceptions import ReconciliationError
from services.export_service import LedgerExportService
from services.ledger_renderer import LedgerAccounts, LedgerRenderer
from utils.registry import RegistryError, load_registry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="alpaca-ledger",
        description="Format Alpaca account activity in Ledger format.",
    )
    parser.add_argument(
        "registry", type=Path,
        help="The path to the JSON registry for looking up names from symbols",
    )
    parser.add_argument(
        "-b", "--begin", type=date.fromisoformat,
        help="Only show activities dated at the given date or after (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--force-separate-fees", action="store_true",
        help="Keep regulatory fees separate instead of matching them up with trades",
    )
    parser.add_argument(
        "--investment-account", default=settings.INVESTMENT_ACCOUNT,
        help="The account holding the shares (default: %(default)s)",
    )
    parser.add_argument(
        "--brokerage-account", default=settings.BROKERAGE_ACCOUNT,
        help="The account holding uninvested cash (default: %(default)s)",
    )
    parser.add_argument(
        "--brokerage-fee-account", default=settings.BROKERAGE_FEE_ACCOUNT,
        help="The brokerage's fee account (default: %(default)s)",
    )
    parser.add_argument(
        "--dividend-account", default=settings.DIVIDEND_ACCOUNT,
        help="The account to book dividend payments against (default: %(default)s)",
    )
    parser.add_argument(
        "--sec-fee-account", default=settings.SEC_FEE_ACCOUNT,
        help="The account for regulatory fees by the SEC (default: %(default)s)",
    )
    parser.add_argument(
        "--finra-taf-account", default=settings.FINRA_TAF_ACCOUNT,
        help="The account for FINRA trading activity fees (default: %(default)s)",
    )
    parser.add_argument(
        "--interest-account", default=settings.INTEREST_ACCOUNT,
        help="The account to book interest payments against (default: %(default)s)",
    )
    parser.add_argument(
        "--transfer-account", default=settings.TRANSFER_ACCOUNT,
        help="The counter account of cash deposits and withdrawals (default: %(default)s)",
    )
    parser.add_argument(
        "-v", "--verbose", dest="verbosity", action="count", default=0,
        help="Increase verbosity (can be supplied multiple times)",
    )
    return parser


def format_error(exc: BaseException) -> str:
    """Render an exception and its chain of causes on one line."""
    parts = [str(exc) or type(exc).__name__]
    cause = exc.__cause__
    while cause is not None:
        parts.append(str(cause) or type(cause).__name__)
        cause = cause.__cause__
    return ": ".join(parts)


def run(args: argparse.Namespace) -> int:
    """Export all activities; returns the number of entries written."""
    registry = load_registry(args.registry)
    accounts = LedgerAccounts(
        investment=args.investment_account,
        brokerage=args.brokerage_account,
        brokerage_fee=args.brokerage_fee_account,
        dividend=args.dividend_account,
        sec_fee=args.sec_fee_account,
        finra_taf=args.finra_taf_account,
        interest=args.interest_account,
        transfer=args.transfer_account,
    )
    service = LedgerExportService(
        AlpacaClient(),
        LedgerRenderer(accounts, registry),
        force_separate_fees=args.force_separate_fees,
        page_size=settings.PAGE_SIZE,
    )
    return service.export(args.begin)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbosity)

    try:
        run(args)
        exit_code = 0
    except (ProviderError, ReconciliationError, RegistryError) as exc:
        logger.debug("Export failed", exc_info=True)
        print(format_error(exc), file=sys.stderr)
        exit_code = 1
    finally:
        sys.stdout.flush()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
