"""Unit tests for fee classification and fee-to-trade association."""

from decimal import Decimal

import pytest

from integrations.activity_protocol import ReconciledNonTrade, ReconciledTrade
from services.exceptions import ClassificationError, FeeAssociationError
from services.fee_service import (
    FeeCategory,
    FeeClassification,
    associate_fees,
    classify_fee,
    fee_matches_trade,
    keep_fees_separate,
)
from tests.fixtures import make_fee, make_non_trade, make_trade


TAF_DESCRIPTION = "TAF fee for proceed of 56 shares (1 trades) on 2021-02-23 by 1 account"
REG_DESCRIPTION = "REG fee for proceed of $522.48 on 2021-02-23 by 1 account"
ADR_DESCRIPTION = "ADR Fees TSM 02/23/2021 0.0082 per share"


class TestClassifyFee:
    """Tests for classify_fee."""

    def test_taf_fee(self):
        result = classify_fee(make_fee(description=TAF_DESCRIPTION))
        assert result == FeeClassification(FeeCategory.TAF, quantity=Decimal("56"))

    def test_reg_fee(self):
        result = classify_fee(make_fee(description=REG_DESCRIPTION))
        assert result == FeeClassification(FeeCategory.REG, proceeds=Decimal("522.48"))

    def test_adr_fee(self):
        result = classify_fee(make_fee(description=ADR_DESCRIPTION))
        assert result.category is FeeCategory.ADR
        assert result.quantity is None
        assert result.proceeds is None
        assert result.per_trade is False

    @pytest.mark.parametrize("shares", ["1", "56", "1000", "0.5", "12.3456"])
    def test_taf_extracts_embedded_quantity(self, shares):
        fee = make_fee(description=f"TAF fee for proceed of {shares} shares (2 trades)")
        assert classify_fee(fee).quantity == Decimal(shares)

    @pytest.mark.parametrize("proceeds", ["0.01", "9.33", "522.48", "100000.00", "5"])
    def test_reg_extracts_embedded_proceeds(self, proceeds):
        fee = make_fee(description=f"REG fee for proceed of ${proceeds} on 2021-02-23")
        assert classify_fee(fee).proceeds == Decimal(proceeds)

    def test_reg_proceeds_with_thousands_separator(self):
        fee = make_fee(description="REG fee for proceed of $12,345.67 on 2021-02-23")
        assert classify_fee(fee).proceeds == Decimal("12345.67")

    def test_missing_description_raises(self):
        with pytest.raises(ClassificationError, match="does not have a description"):
            classify_fee(make_fee(description=None))

    def test_unknown_description_raises(self):
        with pytest.raises(ClassificationError, match="Some other fee"):
            classify_fee(make_fee(description="Some other fee"))

    def test_pattern_must_match_at_start(self):
        with pytest.raises(ClassificationError):
            classify_fee(make_fee(description="Refund of TAF fee for proceed of 5 shares"))


class TestFeeMatchesTrade:
    """Tests for fee_matches_trade."""

    def test_taf_matches_quantity(self):
        taf = FeeClassification(FeeCategory.TAF, quantity=Decimal("56"))
        assert fee_matches_trade(taf, make_trade(quantity="56"))
        assert not fee_matches_trade(taf, make_trade(quantity="55"))

    def test_reg_matches_proceeds(self):
        reg = FeeClassification(FeeCategory.REG, proceeds=Decimal("522.48"))
        assert fee_matches_trade(reg, make_trade(price="9.33", quantity="56"))
        assert not fee_matches_trade(reg, make_trade(price="9.34", quantity="56"))

    def test_reg_compares_at_reported_precision(self):
        reg = FeeClassification(FeeCategory.REG, proceeds=Decimal("3.38"))
        assert fee_matches_trade(reg, make_trade(price="1.1255", quantity="3"))

    def test_reg_rounds_half_up(self):
        reg = FeeClassification(FeeCategory.REG, proceeds=Decimal("200.01"))
        assert fee_matches_trade(reg, make_trade(price="200.005", quantity="1"))

    def test_adr_matches_nothing(self):
        adr = FeeClassification(FeeCategory.ADR)
        assert not fee_matches_trade(adr, make_trade())


class TestAssociateFees:
    """Tests for associate_fees."""

    def test_taf_and_reg_attach_to_trade(self):
        trade = make_trade(price="9.33", quantity="56")
        taf = make_fee(id="taf", description=TAF_DESCRIPTION)
        reg = make_fee(id="reg", description=REG_DESCRIPTION)

        result = associate_fees([trade, taf, reg])

        assert result == [ReconciledTrade(trade, (taf, reg))]

    def test_fee_before_trade(self):
        """Fees may precede the trade they were billed for."""
        taf = make_fee(id="taf", description=TAF_DESCRIPTION)
        trade = make_trade(quantity="56")

        result = associate_fees([taf, trade])

        assert result == [ReconciledTrade(trade, (taf,))]

    def test_attaches_to_first_matching_trade(self):
        first = make_trade(id="first", order_id="o1", quantity="56")
        second = make_trade(id="second", order_id="o2", quantity="56")
        taf = make_fee(description=TAF_DESCRIPTION)

        result = associate_fees([first, second, taf])

        assert result == [ReconciledTrade(first, (taf,)), ReconciledTrade(second, ())]

    def test_identical_trades_each_take_one_fee(self):
        first = make_trade(id="first", order_id="o1", quantity="56")
        second = make_trade(id="second", order_id="o2", quantity="56")
        taf_first = make_fee(id="taf_1", description=TAF_DESCRIPTION)
        taf_second = make_fee(id="taf_2", description=TAF_DESCRIPTION)

        result = associate_fees([first, second, taf_first, taf_second])

        assert result == [
            ReconciledTrade(first, (taf_first,)),
            ReconciledTrade(second, (taf_second,)),
        ]

    def test_fee_of_other_kind_shares_trade(self):
        first = make_trade(id="first", order_id="o1", price="9.33", quantity="56")
        second = make_trade(id="second", order_id="o2", price="9.33", quantity="56")
        taf = make_fee(id="taf", description=TAF_DESCRIPTION)
        reg = make_fee(id="reg", description=REG_DESCRIPTION)
        extra_taf = make_fee(id="taf_2", description=TAF_DESCRIPTION)

        result = associate_fees([first, second, taf, reg, extra_taf])

        assert result == [
            ReconciledTrade(first, (taf, reg)),
            ReconciledTrade(second, (extra_taf,)),
        ]

    def test_surplus_fee_of_same_kind_raises(self):
        trade = make_trade(quantity="56")
        taf_first = make_fee(id="taf_1", description=TAF_DESCRIPTION)
        taf_second = make_fee(id="taf_2", description=TAF_DESCRIPTION)

        with pytest.raises(FeeAssociationError, match="taf_2"):
            associate_fees([trade, taf_first, taf_second])

    def test_picks_trade_with_matching_quantity(self):
        small = make_trade(id="small", order_id="o1", quantity="10")
        large = make_trade(id="large", order_id="o2", quantity="56")
        taf = make_fee(description=TAF_DESCRIPTION)

        result = associate_fees([small, large, taf])

        assert result == [ReconciledTrade(small, ()), ReconciledTrade(large, (taf,))]

    def test_adr_fee_stays_standalone(self):
        trade = make_trade(symbol="TSM")
        adr = make_fee(id="adr", description=ADR_DESCRIPTION, symbol="TSM")

        result = associate_fees([trade, adr])

        assert result == [ReconciledTrade(trade, ()), ReconciledNonTrade(adr)]

    def test_unmatched_fee_raises(self):
        trade = make_trade(quantity="10")
        taf = make_fee(description=TAF_DESCRIPTION)

        with pytest.raises(FeeAssociationError, match="fee_001"):
            associate_fees([trade, taf])

    def test_fee_without_trades_raises(self):
        with pytest.raises(FeeAssociationError):
            associate_fees([make_fee(description=REG_DESCRIPTION)])

    def test_unclassifiable_fee_raises(self):
        with pytest.raises(ClassificationError):
            associate_fees([make_trade(), make_fee(description="Mystery charge")])

    def test_other_activities_preserved_in_order(self):
        dividend = make_non_trade(id="div", symbol="AAPL")
        trade = make_trade()
        taf = make_fee(description=TAF_DESCRIPTION)
        deposit = make_non_trade(id="dep")

        result = associate_fees([dividend, taf, trade, deposit])

        assert result == [
            ReconciledNonTrade(dividend),
            ReconciledTrade(trade, (taf,)),
            ReconciledNonTrade(deposit),
        ]

    def test_empty_batch(self):
        assert associate_fees([]) == []


class TestKeepFeesSeparate:
    """Tests for keep_fees_separate."""

    def test_wraps_without_attaching(self):
        trade = make_trade()
        taf = make_fee(description=TAF_DESCRIPTION)

        result = keep_fees_separate([trade, taf])

        assert result == [ReconciledTrade(trade, ()), ReconciledNonTrade(taf)]

    def test_does_not_classify(self):
        """Unclassifiable fees pass through; they only fail when rendered."""
        fee = make_fee(description="Mystery charge")
        assert keep_fees_separate([fee]) == [ReconciledNonTrade(fee)]
