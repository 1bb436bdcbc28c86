import unittest
from datetime import date, timedelta
from decimal import Decimal

from fastapi.testclient import TestClient

from payee_report.currency_rates import Account
from payee_report.data_sources import InMemoryReportDataSource
from payee_report.date_ranges import DateRange
from payee_report.main import app, get_data_source, resolve_date_range
from payee_report.split_classifier import SplitEntry, Transaction


def build_source() -> InMemoryReportDataSource:
    return InMemoryReportDataSource(
        account_list=[Account(id=1, currency="USD")],
        currency_rates={"USD": Decimal("1")},
        transaction_list=[
            Transaction(
                id=1,
                account_id=1,
                payee_id=1,
                date=date(2024, 5, 2),
                amount=Decimal("100"),
                type="deposit",
            ),
            Transaction(
                id=2,
                account_id=1,
                payee_id=2,
                date=date(2024, 5, 3),
                amount=Decimal("45"),
                type="withdrawal",
            ),
        ],
        payee_names={1: "Employer", 2: "Grocer"},
    )


class PayeeReportApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.source = build_source()
        app.dependency_overrides[get_data_source] = lambda: self.source
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_health(self) -> None:
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_payee_report(self) -> None:
        response = self.client.get(
            "/reports/payees",
            params={"start_date": "2024-05-01", "end_date": "2024-05-31", "sort": "name"},
        )

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["date_caption"], "From 2024-05-01 to 2024-05-31")
        self.assertEqual(payload["sort_key"], "name")
        self.assertEqual([row["name"] for row in payload["rows"]], ["Employer", "Grocer"])
        self.assertEqual(Decimal(str(payload["footer"]["difference"])), Decimal("55"))
        self.assertEqual([pair["label"] for pair in payload["chart_values"]], ["Grocer"])

    def test_invalid_sort_falls_back_to_difference(self) -> None:
        response = self.client.get(
            "/reports/payees",
            params={"start_date": "2024-05-01", "end_date": "2024-05-31", "sort": "volume"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["sort_key"], "difference")
        self.assertEqual([row["name"] for row in response.json()["rows"]], ["Grocer", "Employer"])

    def test_inverted_range_is_bad_request(self) -> None:
        response = self.client.get(
            "/reports/payees",
            params={"start_date": "2024-06-01", "end_date": "2024-05-01"},
        )

        self.assertEqual(response.status_code, 400)

    def test_unknown_timeframe_is_bad_request(self) -> None:
        response = self.client.get("/reports/payees", params={"timeframe": "10Y"})

        self.assertEqual(response.status_code, 400)

    def test_corrupt_dataset_is_server_error(self) -> None:
        self.source.split_entries = [SplitEntry(transaction_id=77, amount=Decimal("1"))]

        response = self.client.get(
            "/reports/payees",
            params={"start_date": "2024-05-01", "end_date": "2024-05-31"},
        )

        self.assertEqual(response.status_code, 500)

    def test_unlisted_status_outside_window_is_ignored(self) -> None:
        self.source.transaction_list.append(
            Transaction(
                id=3,
                account_id=1,
                payee_id=2,
                date=date(2020, 1, 15),
                amount=Decimal("300"),
                type="deposit",
                status="pending",
            )
        )

        response = self.client.get(
            "/reports/payees",
            params={"start_date": "2024-05-01", "end_date": "2024-05-31"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(str(response.json()["footer"]["positive_total"])), Decimal("100"))

    def test_ignore_future_query_flag(self) -> None:
        tomorrow = date.today() + timedelta(days=1)
        self.source.transaction_list = [
            Transaction(
                id=1,
                account_id=1,
                payee_id=1,
                date=tomorrow,
                amount=Decimal("10"),
                type="deposit",
            )
        ]
        params = {
            "start_date": date.today().isoformat(),
            "end_date": (tomorrow + timedelta(days=1)).isoformat(),
        }

        included = self.client.get("/reports/payees", params={**params, "ignore_future": "false"})
        excluded = self.client.get("/reports/payees", params={**params, "ignore_future": "true"})

        self.assertEqual(len(included.json()["rows"]), 1)
        self.assertEqual(excluded.json()["rows"], [])


class ResolveDateRangeTests(unittest.TestCase):
    def test_defaults_to_current_month(self) -> None:
        self.assertEqual(
            resolve_date_range(None, None, None, date(2024, 5, 20)),
            DateRange(date(2024, 5, 1), date(2024, 5, 20)),
        )

    def test_explicit_dates_win_over_timeframe(self) -> None:
        self.assertEqual(
            resolve_date_range(date(2024, 1, 1), None, "YTD", date(2024, 5, 20)),
            DateRange(date(2024, 1, 1), date(2024, 5, 20)),
        )

    def test_timeframe(self) -> None:
        self.assertEqual(
            resolve_date_range(None, None, "30D", date(2024, 5, 30)),
            DateRange(date(2024, 5, 1), date(2024, 5, 30)),
        )


if __name__ == "__main__":
    unittest.main()
