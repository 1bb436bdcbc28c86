import unittest
from datetime import date
from decimal import Decimal

from payee_report.split_classifier import (
    SplitEntry,
    Transaction,
    classify_transaction,
    normalize_status,
)


def make_transaction(amount: str, type: str, id: int = 1) -> Transaction:
    return Transaction(
        id=id,
        account_id=1,
        payee_id=1,
        date=date(2024, 5, 1),
        amount=Decimal(amount),
        type=type,
    )


def make_splits(*amounts: str, transaction_id: int = 1) -> list[SplitEntry]:
    return [SplitEntry(transaction_id=transaction_id, amount=Decimal(value)) for value in amounts]


class SplitClassifierTests(unittest.TestCase):
    def test_plain_deposit_is_income(self) -> None:
        result = classify_transaction(make_transaction("100", "deposit"), [], Decimal("1.5"))

        self.assertEqual(result, (Decimal("150"), Decimal("0")))

    def test_plain_withdrawal_is_negative_expense(self) -> None:
        result = classify_transaction(make_transaction("40", "Withdrawal"), [], Decimal("2"))

        self.assertEqual(result, (Decimal("0"), Decimal("-80")))

    def test_deposit_splits_route_by_sign(self) -> None:
        result = classify_transaction(
            make_transaction("50", "deposit"),
            make_splits("30", "-5"),
            Decimal("1"),
        )

        self.assertEqual(result, (Decimal("30"), Decimal("-5")))

    def test_split_amounts_replace_parent_amount(self) -> None:
        income, expense = classify_transaction(
            make_transaction("999", "deposit"),
            make_splits("10", "20"),
            Decimal("1"),
        )

        self.assertEqual(income, Decimal("30"))
        self.assertEqual(expense, Decimal("0"))

    def test_withdrawal_refund_split_counts_as_income(self) -> None:
        result = classify_transaction(
            make_transaction("60", "withdrawal"),
            make_splits("70", "-10"),
            Decimal("2"),
        )

        self.assertEqual(result, (Decimal("20"), Decimal("-140")))

    def test_zero_split_on_deposit_contributes_nothing(self) -> None:
        income, expense = classify_transaction(
            make_transaction("0", "deposit"),
            make_splits("0"),
            Decimal("1"),
        )

        self.assertEqual(income, Decimal("0"))
        self.assertEqual(expense, Decimal("0"))
        self.assertFalse(expense.is_signed())
        self.assertFalse(income.is_signed())

    def test_zero_split_on_withdrawal_has_no_negative_zero(self) -> None:
        income, expense = classify_transaction(
            make_transaction("0", "withdrawal"),
            make_splits("0"),
            Decimal("1"),
        )

        self.assertEqual((income, expense), (Decimal("0"), Decimal("0")))
        self.assertFalse(expense.is_signed())

    def test_zero_withdrawal_without_splits_has_no_negative_zero(self) -> None:
        _, expense = classify_transaction(make_transaction("0", "withdrawal"), [], Decimal("1"))

        self.assertFalse(expense.is_signed())

    def test_zero_split_is_treated_as_non_negative(self) -> None:
        # A zero entry lands on the income side of a deposit and the expense
        # side of a withdrawal; both contribute exactly zero.
        deposit = classify_transaction(
            make_transaction("5", "deposit"),
            make_splits("0", "5"),
            Decimal("1"),
        )
        withdrawal = classify_transaction(
            make_transaction("5", "withdrawal"),
            make_splits("0", "5"),
            Decimal("1"),
        )

        self.assertEqual(deposit, (Decimal("5"), Decimal("0")))
        self.assertEqual(withdrawal, (Decimal("0"), Decimal("-5")))

    def test_accepts_string_split_amounts(self) -> None:
        splits = [SplitEntry(transaction_id=1, amount="-2.50")]

        result = classify_transaction(make_transaction("10", "deposit"), splits, Decimal("2"))

        self.assertEqual(result, (Decimal("0"), Decimal("-5.00")))

    def test_transfer_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            classify_transaction(make_transaction("10", "transfer"), [], Decimal("1"))

    def test_unknown_type_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            classify_transaction(make_transaction("10", "refund"), [], Decimal("1"))

    def test_normalize_status(self) -> None:
        self.assertEqual(normalize_status(None), "none")
        self.assertEqual(normalize_status(" Void "), "void")
        self.assertEqual(normalize_status("Follow-Up"), "follow_up")
        self.assertEqual(normalize_status("pending"), "pending")
        self.assertEqual(normalize_status(" R "), "r")
        self.assertEqual(normalize_status(""), "none")


if __name__ == "__main__":
    unittest.main()
