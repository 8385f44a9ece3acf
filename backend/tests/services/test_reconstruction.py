# backend/tests/services/test_reconstruction.py
"""
Tests for HoldingsReconstructor (pure ledger replay, no database).

Covers:
- Current balances as Σ(credit - debit), positives only
- Month-end snapshots over the full ledger span
- Soft-deleted rows are ignored
- Metadata comes from the latest dated row
- Idempotence
- Carrying the last month forward for the chart series
"""

from datetime import date
from decimal import Decimal

from portfolio_engine.models import AssetClass
from portfolio_engine.services.holdings.reconstruction import HoldingsReconstructor, carry_forward, snapshot_months
from tests.conftest import make_transaction


def _acme_ledger():
    return [
        make_transaction(date(2024, 1, 5), credit="10"),
        make_transaction(date(2024, 2, 10), debit="3"),
    ]


class TestCalculateCurrent:

    def test_credit_then_debit(self):
        """10 credited in January, 3 debited in February leaves 7."""
        positions = HoldingsReconstructor().calculate_current(_acme_ledger())

        assert len(positions) == 1
        assert positions[0].asset_name == "Acme"
        assert positions[0].balance == Decimal("7")

    def test_balance_is_net_of_every_live_row(self):
        ledger = [
            make_transaction(date(2024, 1, 1), credit="1.5"),
            make_transaction(date(2024, 1, 2), credit="2.25"),
            make_transaction(date(2024, 1, 3), debit="0.75"),
            make_transaction(date(2024, 1, 4), credit="5", debit="1"),
        ]
        positions = HoldingsReconstructor().calculate_current(ledger)

        assert positions[0].balance == Decimal("7.00")

    def test_closed_and_negative_positions_are_dropped(self):
        ledger = [
            make_transaction(date(2024, 1, 1), asset_name="Closed", symbol="CLS", credit="4"),
            make_transaction(date(2024, 1, 2), asset_name="Closed", symbol="CLS", debit="4"),
            make_transaction(date(2024, 1, 3), asset_name="Short", symbol="SHT", debit="2"),
            make_transaction(date(2024, 1, 4), asset_name="Open", symbol="OPN", credit="1"),
        ]
        positions = HoldingsReconstructor().calculate_current(ledger)

        assert [p.asset_name for p in positions] == ["Open"]
        assert all(p.balance > 0 for p in positions)

    def test_soft_deleted_rows_are_ignored(self):
        ledger = _acme_ledger() + [make_transaction(date(2024, 2, 11), debit="7", deleted=True)]
        positions = HoldingsReconstructor().calculate_current(ledger)

        assert positions[0].balance == Decimal("7")

    def test_metadata_from_latest_row(self):
        ledger = [
            make_transaction(date(2024, 1, 1), asset_name="Gold", symbol="XAU", credit="1",
                             asset_class=AssetClass.UNKNOWN, unit="UNKNOWN"),
            make_transaction(date(2024, 3, 1), asset_name="Gold", symbol="GC=F", credit="1",
                             asset_class=AssetClass.COMMODITY, unit="UNIT"),
            make_transaction(date(2024, 2, 1), asset_name="Gold", symbol="OLD", credit="1"),
        ]
        position = HoldingsReconstructor().calculate_current(ledger)[0]

        assert position.symbol == "GC=F"
        assert position.asset_class == AssetClass.COMMODITY
        assert position.unit == "UNIT"
        assert position.balance == Decimal("3")

    def test_sorted_by_asset_name(self):
        ledger = [
            make_transaction(date(2024, 1, 1), asset_name="Zinc", symbol="ZN", credit="1"),
            make_transaction(date(2024, 1, 1), asset_name="Apple", symbol="AAPL", credit="1"),
        ]
        positions = HoldingsReconstructor().calculate_current(ledger)

        assert [p.asset_name for p in positions] == ["Apple", "Zinc"]

    def test_empty_ledger(self):
        assert HoldingsReconstructor().calculate_current([]) == []

    def test_idempotent(self):
        reconstructor = HoldingsReconstructor()
        ledger = _acme_ledger()

        assert reconstructor.calculate_current(ledger) == reconstructor.calculate_current(ledger)


class TestCalculateMonthly:

    def test_one_snapshot_per_month(self):
        """January closes at 10, February at 7."""
        snapshots = HoldingsReconstructor().calculate_monthly(_acme_ledger())

        assert [(s.month_end_date, s.balance) for s in snapshots] == [
            (date(2024, 1, 31), Decimal("10")),
            (date(2024, 2, 29), Decimal("7")),
        ]

    def test_months_without_activity_are_filled(self):
        ledger = [
            make_transaction(date(2023, 11, 20), credit="2"),
            make_transaction(date(2024, 2, 1), credit="1"),
        ]
        snapshots = HoldingsReconstructor().calculate_monthly(ledger)

        assert snapshot_months(snapshots) == [
            date(2023, 11, 30),
            date(2023, 12, 31),
            date(2024, 1, 31),
            date(2024, 2, 29),
        ]
        assert [s.balance for s in snapshots] == [Decimal("2"), Decimal("2"), Decimal("2"), Decimal("3")]

    def test_snapshot_balance_counts_rows_up_to_month_end(self):
        ledger = [
            make_transaction(date(2024, 1, 31), credit="5"),
            make_transaction(date(2024, 2, 1), credit="1"),
            make_transaction(date(2024, 2, 29), debit="2"),
            make_transaction(date(2024, 3, 1), credit="100"),
        ]
        by_month = {s.month_end_date: s.balance for s in HoldingsReconstructor().calculate_monthly(ledger)}

        assert by_month[date(2024, 1, 31)] == Decimal("5")
        assert by_month[date(2024, 2, 29)] == Decimal("4")
        assert by_month[date(2024, 3, 31)] == Decimal("104")

    def test_zero_and_negative_balances_are_kept(self):
        ledger = [
            make_transaction(date(2024, 1, 1), credit="1"),
            make_transaction(date(2024, 2, 1), debit="1"),
            make_transaction(date(2024, 3, 1), debit="1"),
        ]
        balances = [s.balance for s in HoldingsReconstructor().calculate_monthly(ledger)]

        assert balances == [Decimal("1"), Decimal("0"), Decimal("-1")]

    def test_asset_appears_from_its_first_month(self):
        ledger = [
            make_transaction(date(2024, 1, 10), asset_name="Acme", credit="1"),
            make_transaction(date(2024, 2, 10), asset_name="Bolt", symbol="BLT", credit="2"),
        ]
        snapshots = HoldingsReconstructor().calculate_monthly(ledger)

        january = [s.asset_name for s in snapshots if s.month_end_date == date(2024, 1, 31)]
        february = [s.asset_name for s in snapshots if s.month_end_date == date(2024, 2, 29)]
        assert january == ["Acme"]
        assert february == ["Acme", "Bolt"]

    def test_span_ignores_deleted_rows(self):
        ledger = [
            make_transaction(date(2023, 6, 1), credit="9", deleted=True),
            make_transaction(date(2024, 1, 5), credit="1"),
        ]
        snapshots = HoldingsReconstructor().calculate_monthly(ledger)

        assert snapshot_months(snapshots) == [date(2024, 1, 31)]

    def test_empty_ledger(self):
        assert HoldingsReconstructor().calculate_monthly([]) == []

    def test_idempotent(self):
        reconstructor = HoldingsReconstructor()
        ledger = _acme_ledger()

        assert reconstructor.calculate_monthly(ledger) == reconstructor.calculate_monthly(ledger)

    def test_to_position_keeps_balance(self):
        snapshot = HoldingsReconstructor().calculate_monthly(_acme_ledger())[-1]
        position = snapshot.to_position()

        assert position.asset_name == snapshot.asset_name
        assert position.balance == snapshot.balance


class TestCarryForward:

    def test_quiet_months_repeat_last_balances(self):
        snapshots = HoldingsReconstructor().calculate_monthly([make_transaction(date(2024, 1, 5), credit="10")])

        result = carry_forward(snapshots, date(2024, 3, 31))

        assert snapshot_months(result) == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]
        assert {s.balance for s in result} == {Decimal("10")}

    def test_every_asset_of_the_last_month_is_repeated(self):
        snapshots = HoldingsReconstructor().calculate_monthly([
            make_transaction(date(2024, 1, 5), credit="10"),
            make_transaction(date(2024, 1, 9), asset_name="Bolt", symbol="BLT", credit="2"),
            make_transaction(date(2024, 1, 20), asset_name="Bolt", symbol="BLT", debit="2"),
        ])

        february = [s for s in carry_forward(snapshots, date(2024, 2, 29)) if s.month_end_date == date(2024, 2, 29)]

        assert [(s.asset_name, s.balance) for s in february] == [("Acme", Decimal("10")), ("Bolt", Decimal("0"))]

    def test_months_after_cutoff_are_dropped(self):
        snapshots = HoldingsReconstructor().calculate_monthly([
            make_transaction(date(2024, 2, 5), credit="10"),
            make_transaction(date(2024, 3, 5), credit="5"),
        ])

        result = carry_forward(snapshots, date(2024, 2, 29))

        assert snapshot_months(result) == [date(2024, 2, 29)]
        assert result[0].balance == Decimal("10")

    def test_nothing_before_cutoff(self):
        snapshots = HoldingsReconstructor().calculate_monthly([make_transaction(date(2024, 3, 5), credit="5")])

        assert carry_forward(snapshots, date(2024, 2, 29)) == []

    def test_ledger_reaching_cutoff_is_unchanged(self):
        snapshots = HoldingsReconstructor().calculate_monthly(_acme_ledger())

        assert carry_forward(snapshots, date(2024, 2, 29)) == snapshots
