"""Unit tests for data models."""
from __future__ import annotations

import pytest

from collateral_engine.models import (
    AccountInformation,
    CollateralDeposited,
    LiquidationResult,
    PriceReading,
)


class TestPriceReading:
    def test_default_decimals(self) -> None:
        r = PriceReading(answer=2000 * 10**8, updated_at=1)
        assert r.decimals == 8

    def test_frozen(self) -> None:
        r = PriceReading(answer=1, updated_at=1)
        with pytest.raises(AttributeError):
            r.answer = 2  # type: ignore[misc]


class TestEvents:
    def test_equality(self) -> None:
        e1 = CollateralDeposited(user="alice", asset="WETH", amount=1)
        e2 = CollateralDeposited(user="alice", asset="WETH", amount=1)
        assert e1 == e2

    def test_frozen(self) -> None:
        e = CollateralDeposited(user="alice", asset="WETH", amount=1)
        with pytest.raises(AttributeError):
            e.amount = 2  # type: ignore[misc]


class TestAccountModels:
    def test_account_information(self) -> None:
        info = AccountInformation(total_dsc_minted=100, collateral_value_usd=2000)
        assert info.total_dsc_minted == 100
        assert info.collateral_value_usd == 2000

    def test_liquidation_result_frozen(self) -> None:
        result = LiquidationResult(
            user="alice",
            liquidator="bob",
            asset="WETH",
            debt_covered=100,
            collateral_seized=55,
            bonus_collateral=5,
            starting_health_factor=9,
            ending_health_factor=10,
        )
        with pytest.raises(AttributeError):
            result.debt_covered = 0  # type: ignore[misc]
