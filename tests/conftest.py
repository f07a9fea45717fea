"""Pytest configuration and fixtures."""

import io
from unittest.mock import patch

import pytest

from services.ledger_renderer import LedgerAccounts, LedgerRenderer


@pytest.fixture(name="registry")
def registry_fixture():
    """Symbol registry covering the symbols used by the sample activities."""
    return {
        "SPCE": "Virgin Galactic Holdings Inc",
        "AAPL": "Apple Inc",
        "TSM": "Taiwan Semiconductor Manufacturing",
        "XLNX": "Xilinx Inc",
    }


@pytest.fixture(name="accounts")
def accounts_fixture():
    """Default ledger accounts."""
    return LedgerAccounts(
        investment="Assets:Investments:Alpaca:Stock",
        brokerage="Assets:Alpaca Brokerage",
        brokerage_fee="Expenses:Broker:Fee",
        dividend="Income:Dividend",
        sec_fee="Expenses:Broker:SEC Fee",
        finra_taf="Expenses:Broker:FINRA TAF",
        interest="Income:Interest",
        transfer="Assets:Transfer",
    )


@pytest.fixture(name="output")
def output_fixture():
    """Stream capturing rendered journal blocks."""
    return io.StringIO()


@pytest.fixture(name="renderer")
def renderer_fixture(accounts, registry, output):
    """Renderer writing into the captured output stream."""
    return LedgerRenderer(accounts, registry, currency="USD", out=output)


@pytest.fixture(autouse=True)
def no_keychain():
    """Keep tests away from the real OS keychain."""
    with patch("config.get_credential", return_value=None):
        yield
