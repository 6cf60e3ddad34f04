from bill_splitter.models.bill_models import Bill, ChargeSplit, FinalSplit, ItemSplit, ReceiptItem, SplitType
from bill_splitter.services.validation_service import validation_service


def custom_item(item_id, amounts, price=None):
    return ItemSplit(item_id=item_id, split_type=SplitType.CUSTOM, custom_amounts=amounts, price=price)


class TestCustomAmounts:
    def test_one_cent_short_is_rejected(self):
        result = validation_service.validate_custom_amounts({"A": 15.00, "B": 14.99}, 30.00)

        assert result.is_valid is False
        assert result.errors == ["Custom amounts total $29.99 but expense is $30.00"]

    def test_half_cent_difference_counts_as_a_cent(self):
        result = validation_service.validate_custom_amounts({"A": 0.01}, 0.005)
        assert result.is_valid is False

    def test_exact_amounts_pass(self):
        assert validation_service.validate_custom_amounts({"A": 15.00, "B": 15.00}, 30.00).is_valid

    def test_float_noise_is_not_a_mismatch(self):
        assert validation_service.validate_custom_amounts({"A": 0.1, "B": 0.2}, 0.3).is_valid

    def test_zero_or_negative_amounts_are_rejected(self):
        result = validation_service.validate_custom_amounts({"A": 30.00, "B": 0.0}, 30.00)
        assert result.errors == ["All amounts must be greater than zero."]

        result = validation_service.validate_custom_amounts({"A": 35.00, "B": -5.00}, 30.00)
        assert "All amounts must be greater than zero." in result.errors

    def test_manual_equal_split_needs_no_amounts(self):
        assert validation_service.validate_manual_splits(30.00, SplitType.EQUAL).is_valid

    def test_manual_custom_split_checks_amounts(self):
        result = validation_service.validate_manual_splits(30.00, SplitType.CUSTOM, {"A": 10.00, "B": 10.00})
        assert result.is_valid is False


class TestReceiptSplits:
    def test_complete_assignment(self, dinner_bill, dinner_splits, tax_split):
        result = validation_service.validate_receipt_splits(dinner_bill, dinner_splits, tax_split)
        assert result.is_valid
        assert result.errors == []

    def test_unassigned_item_and_tax(self, dinner_bill, dinner_splits):
        result = validation_service.validate_receipt_splits(dinner_bill, dinner_splits[:1])

        assert result.errors == [
            "Please select members for: Dumplings.",
            "Please select members to split the tax.",
        ]

    def test_other_charges_need_members(self):
        bill = Bill(
            store_name="Pizza",
            date="2026-10-01",
            items=[ReceiptItem(name="Pizza", price=20.0)],
            other_charges=3.0,
            total_cost=23.0,
        )
        splits = [ItemSplit(item_id="item-0", shared_by=["1"])]

        result = validation_service.validate_receipt_splits(bill, splits, other_charges_split=ChargeSplit())

        assert result.errors == ["Please select members to split other charges."]

    def test_custom_item_amounts_must_match_price(self, dinner_bill, tax_split):
        splits = [
            custom_item("item-0", {"1": 20.0, "2": 5.0}),
            ItemSplit(item_id="item-1", shared_by=["1"]),
        ]

        result = validation_service.validate_receipt_splits(dinner_bill, splits, tax_split)

        assert result.errors == ["Family Platter: Custom amounts total $25.00 but expense is $30.00"]


class TestItemSplits:
    def test_balanced_items(self):
        splits = [
            ItemSplit(item_id="item-0", shared_by=["1"], price=12.0),
            custom_item("item-1", {"1": 4.0, "2": 4.0}),
        ]
        assert validation_service.validate_item_splits(splits, 20.0).is_valid

    def test_item_without_members_and_unbalanced_total(self):
        splits = [
            ItemSplit(item_id="item-0", shared_by=["1"], price=12.0),
            ItemSplit(item_id="item-1", price=8.0),
        ]

        result = validation_service.validate_item_splits(splits, 25.0)

        assert result.errors == [
            "Item 2 must have at least one member selected.",
            "Total allocated amount must equal the total bill amount.",
        ]


class TestFinalSplits:
    def test_within_tolerance(self):
        splits = [FinalSplit(user_id="1", amount_owed=10.0), FinalSplit(user_id="2", amount_owed=10.0)]

        assert validation_service.validate_final_splits(splits, 20.00).is_valid
        assert validation_service.validate_final_splits(splits, 20.01).is_valid

    def test_outside_tolerance(self):
        splits = [FinalSplit(user_id="1", amount_owed=10.0), FinalSplit(user_id="2", amount_owed=10.0)]

        check = validation_service.validate_final_splits(splits, 20.02)

        assert check.is_valid is False
        assert check.calculated_total == 20.0
        assert check.difference == 0.02


class TestCanFinalize:
    def splits(self):
        return [
            FinalSplit(user_id="1", amount_owed=22.0),
            FinalSplit(user_id="2", amount_owed=12.0),
            FinalSplit(user_id="3", amount_owed=10.0),
        ]

    def test_ready(self, dinner_bill):
        check = validation_service.can_finalize_expense(dinner_bill, self.splits(), "1")
        assert check.can_finalize is True
        assert check.reason is None

    def test_payer_required(self, dinner_bill):
        check = validation_service.can_finalize_expense(dinner_bill, self.splits(), None)
        assert check.reason == "Please select who paid the bill."

    def test_discrepancy_blocks(self, dinner_bill):
        bill = dinner_bill.model_copy(update={"discrepancy_flag": True, "discrepancy_message": "off"})

        check = validation_service.can_finalize_expense(bill, self.splits(), "1")

        assert check.can_finalize is False
        assert check.reason.startswith("Cannot finalize due to bill discrepancy.")

    def test_mismatch_blocks(self, dinner_bill):
        splits = self.splits()[:2]

        check = validation_service.can_finalize_expense(dinner_bill, splits, "1")

        assert check.reason == "Cannot finalize due to calculation mismatch."
