import pytest

from bill_splitter.models.bill_models import Bill, ChargeSplit, ItemSplit, ReceiptItem, SplitType
from bill_splitter.services.expense_calculations import (
    expense_calculation_service as service,
    format_currency,
    parse_currency_input,
    round_currency,
)


def prices(*values):
    return [ReceiptItem(name=f"item {i}", price=value) for i, value in enumerate(values)]


class TestDiscrepancy:
    def test_matching_total_is_not_flagged(self):
        check = service.calculate_discrepancy(prices(10, 20), 30, taxes=0, tolerance=0.02)

        assert check.flag is False
        assert check.message is None
        assert check.calculated_total == 30.0

    def test_mismatch_is_flagged_with_difference(self):
        check = service.calculate_discrepancy(prices(10, 20), 33, tolerance=0.02)

        assert check.flag is True
        assert check.difference == 3.0
        assert "$3.00" in check.message
        assert "$33.00" in check.message

    def test_difference_exactly_at_tolerance_is_not_flagged(self):
        assert service.calculate_discrepancy(prices(10.00), 10.02).flag is False
        assert service.calculate_discrepancy(prices(10.00), 10.03).flag is True

    def test_components_and_discount(self):
        check = service.calculate_discrepancy(
            prices(50.00), 50.00, taxes=5.00, other_charges=2.00, discount=7.00
        )
        assert check.flag is False

    def test_accepts_plain_mappings(self):
        check = service.calculate_discrepancy([{"price": 10}, {"price": 20}], 31)
        assert check.flag is True
        assert check.difference == 1.0

    def test_apply_discrepancy_refreshes_bill(self):
        bill = Bill(store_name="Cafe", date="2026-10-01", items=prices(4.50, 3.00), total_cost=9.50)

        updated = service.apply_discrepancy(bill)

        assert updated.discrepancy_flag is True
        assert "$2.00" in updated.discrepancy_message
        assert bill.discrepancy_flag is False

        fixed = service.apply_discrepancy(updated.model_copy(update={"total_cost": 7.50}))
        assert fixed.discrepancy_flag is False
        assert fixed.discrepancy_message is None


class TestAllocation:
    def test_equal_split_gives_identical_shares(self):
        result = service.calculate_equal_split(10.0, ["a", "b", "c"])

        assert result.custom_amounts == {"a": 10.0 / 3, "b": 10.0 / 3, "c": 10.0 / 3}
        assert result.total_allocated == 10.0

    def test_equal_split_without_members(self):
        result = service.calculate_equal_split(10.0, [])
        assert result.custom_amounts == {}
        assert result.total_allocated == 0.0

    def test_custom_split_is_trusted(self):
        split = ChargeSplit(split_type=SplitType.CUSTOM, custom_amounts={"a": 7.0, "b": 2.0})
        assert service.allocate_split(10.0, split) == {"a": 7.0, "b": 2.0}

    def test_equal_split_with_cents_gives_extra_cents_to_first_members(self):
        assert service.calculate_equal_split_with_cents(10.00, 3) == [3.34, 3.33, 3.33]
        assert sum(service.calculate_equal_split_with_cents(100.01, 4)) == pytest.approx(100.01)
        assert service.calculate_equal_split_with_cents(5, 0) == []

    def test_distribute_remaining_amount(self):
        allocations = service.distribute_remaining_amount(3.0, ["a", "b"], {"a": 1.0})
        assert allocations == {"a": 2.5, "b": 1.5}
        assert service.distribute_remaining_amount(-1.0, ["a"], {"a": 1.0}) == {"a": 1.0}

    def test_aggregate_member_totals(self, dinner_bill, dinner_splits, tax_split):
        totals = service.aggregate_member_totals(dinner_bill, dinner_splits, ["1", "2", "3"], tax_split)
        assert totals == pytest.approx({"1": 22.0, "2": 12.0, "3": 10.0})

    def test_members_outside_selection_are_ignored(self):
        bill = Bill(store_name="Shop", date="2026-10-01", items=prices(10.0), total_cost=10.0)
        splits = [ItemSplit(item_id="item-0", shared_by=["a", "z"])]

        assert service.aggregate_member_totals(bill, splits, ["a", "b"]) == {"a": 5.0, "b": 0.0}


class TestReconciliation:
    def test_last_member_absorbs_remainder(self):
        raw = {"a": 31 / 3, "b": 31 / 3, "c": 31 / 3}

        splits = service.reconcile_remainder(raw, 31, ["a", "b", "c"])

        assert [s.amount_owed for s in splits] == [10.33, 10.33, 10.34]
        assert round(sum(s.amount_owed for s in splits), 2) == 31.00

    def test_caller_order_decides_who_absorbs(self):
        raw = {"a": 31 / 3, "b": 31 / 3, "c": 31 / 3}

        splits = service.reconcile_remainder(raw, 31, ["c", "a", "b"])

        assert [s.user_id for s in splits] == ["c", "a", "b"]
        assert splits[-1].amount_owed == 10.34

    def test_no_members(self):
        assert service.reconcile_remainder({}, 10, []) == []

    @pytest.mark.parametrize("total,count", [(10.00, 3), (0.05, 3), (99.99, 7), (1234.56, 6)])
    def test_sum_equals_total_exactly(self, total, count):
        order = [str(i) for i in range(count)]
        raw = {member: total / count for member in order}

        splits = service.reconcile_remainder(raw, total, order)

        assert round(sum(s.amount_owed for s in splits), 2) == round(total, 2)


class TestFinalSplits:
    def test_itemised_bill_with_tax(self, dinner_bill, dinner_splits, tax_split, members):
        splits = service.calculate_final_splits(dinner_bill, dinner_splits, members, tax_split)

        assert [(s.user_id, s.amount_owed) for s in splits] == [("1", 22.0), ("2", 12.0), ("3", 10.0)]

    def test_discount_is_spread_proportionally(self):
        bill = Bill(store_name="Shop", date="2026-10-01", items=prices(10.0, 10.0), discount=2.0, total_cost=18.0)
        splits = [ItemSplit(item_id="item-0", shared_by=["a"]), ItemSplit(item_id="item-1", shared_by=["b"])]

        result = service.calculate_final_splits(bill, splits, ["a", "b"])

        assert [s.amount_owed for s in result] == [9.0, 9.0]

    def test_uneven_item_reconciles_to_total(self):
        bill = Bill(store_name="Shop", date="2026-10-01", items=prices(10.0), total_cost=10.0)
        splits = [ItemSplit(item_id="item-0", shared_by=["a", "b", "c"])]

        result = service.calculate_final_splits(bill, splits, ["a", "b", "c"])

        assert [s.amount_owed for s in result] == [3.33, 3.33, 3.34]

    def test_nothing_assigned_splits_total_equally(self):
        bill = Bill(store_name="Shop", date="2026-10-01", items=prices(10.0), total_cost=10.0)

        result = service.calculate_final_splits(bill, [], ["a", "b", "c"])

        assert round(sum(s.amount_owed for s in result), 2) == 10.0
        assert result[-1].amount_owed == 3.34

    def test_custom_item_amounts(self):
        bill = Bill(store_name="Shop", date="2026-10-01", items=prices(10.0), total_cost=10.0)
        splits = [ItemSplit(item_id="item-0", split_type=SplitType.CUSTOM, custom_amounts={"a": 7.0, "b": 3.0})]

        result = service.calculate_final_splits(bill, splits, ["a", "b"])

        assert [s.amount_owed for s in result] == [7.0, 3.0]


class TestCurrencyHelpers:
    def test_round_currency_is_half_up(self):
        assert round_currency(2.675) == 2.68
        assert round_currency(2.665) == 2.67
        assert round_currency(-1.005) == -1.01

    def test_format_currency(self):
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(None) == "$0.00"
        assert format_currency(-3) == "-$3.00"

    def test_parse_currency_input(self):
        assert parse_currency_input("$1,234.50") == 1234.5
        assert parse_currency_input("abc") == 0.0
        assert parse_currency_input("") == 0.0


def test_last_member_can_absorb_a_negative_residual():
    raw = {"a": 5.025, "b": 5.025, "c": 0.0}

    splits = service.reconcile_remainder(raw, 10.05, ["a", "b", "c"])

    assert [s.amount_owed for s in splits] == [5.03, 5.03, -0.01]
