"""
Tests for bulk order import: parsing, per-row processing and the report
"""

import csv
import io
from datetime import datetime, timezone

import pytest

from uniform_api.models.eligibility_rule_model import EligibilityRule
from uniform_api.models.order_model import Order
from uniform_api.services.bulk_order_import_service import (
    BulkOrderImporter,
    REPORT_COLUMNS,
    import_orders,
    parse_csv,
)
from uniform_api.utils.eligibility.errors import MalformedInputError
from uniform_api.utils.eligibility.quota_engine import QuotaEngine
from uniform_api.utils.eligibility.records import EmployeeProfile


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


EMPLOYEES = {
    "IND-001": EmployeeProfile("IND-001", "c1", "Pilot", "male", utc(2025, 10, 1)),
    "IND-002": EmployeeProfile("IND-002", "c1", "Pilot", "female", utc(2025, 10, 1)),
    "EXT-001": EmployeeProfile("EXT-001", "c2", "Pilot", "male", utc(2025, 10, 1)),
}

PRODUCTS = {
    "SH-01": {"_id": "p1", "sku": "SH-01", "name": "Shirt", "category": "shirt", "sizes": ["S", "M"], "price": 20.0},
    "TR-01": {"_id": "p2", "sku": "TR-01", "name": "Trouser", "category": "pant", "sizes": ["32"], "price": 30.0},
    "BL-F": {"_id": "p3", "sku": "BL-F", "name": "Blouse", "category": "shirt", "sizes": ["M"], "price": 22.0,
             "gender": "female"},
}

RULE = {
    "company_id": "c1",
    "designation": "Pilot",
    "gender": "male",
    "item_eligibility": {
        "shirt": {"quantity": 2, "renewal_frequency": 6},
        "pant": {"quantity": 1, "renewal_frequency": 6},
    },
}


class FakeOrders:
    def __init__(self, fail_for=()):
        self.created = []
        self.fail_for = set(fail_for)

    def __call__(self, company_id, employee, lines, source=None):
        if employee.employee_id in self.fail_for:
            raise RuntimeError("write failed")
        self.created.append((employee.employee_id, lines, source))
        return f"order-{len(self.created)}"


def make_importer(orders=None, find_rule=lambda *args: RULE):
    engine = QuotaEngine(
        find_rule=find_rule,
        get_orders_for_employee=lambda employee_id: [],
        as_of=utc(2026, 1, 1),
    )
    return BulkOrderImporter(
        "c1",
        engine=engine,
        find_employee=EMPLOYEES.get,
        find_product=lambda company_id, sku: PRODUCTS.get(sku),
        create_order=orders or FakeOrders(),
    )


def run(text, orders=None):
    return make_importer(orders).run(parse_csv(text))


class TestParseCsv:

    def test_header_aliases_and_bom(self):
        rows = parse_csv("\ufeffEmployeeNo,Product ID,size,QTY\nIND-001,SH-01,M,1\n".encode("utf-8"))
        assert len(rows) == 1
        assert (rows[0].employee_id, rows[0].sku, rows[0].size, rows[0].quantity) == ("IND-001", "SH-01", "M", "1")

    def test_row_numbers_count_header(self):
        rows = parse_csv("Employee ID,SKU,Size,Quantity\nIND-001,SH-01,M,1\n\nIND-002,SH-01,S,1\n")
        assert [r.row_number for r in rows] == [2, 4]

    def test_columns_matched_by_name_not_position(self):
        rows = parse_csv("Quantity,Size,SKU,Employee_No\n2,M,SH-01,IND-001\n")
        assert rows[0].employee_id == "IND-001"
        assert rows[0].quantity == "2"

    def test_missing_columns_fail_whole_file(self):
        with pytest.raises(MalformedInputError) as exc:
            parse_csv("Employee ID,SKU\nIND-001,SH-01\n")
        assert exc.value.missing_columns == ["Size", "Quantity"]

    def test_empty_file(self):
        with pytest.raises(MalformedInputError):
            parse_csv("")

    def test_wrong_column_count_marks_row(self):
        rows = parse_csv("Employee ID,SKU,Size,Quantity\nIND-001,SH-01,M\n")
        assert rows[0].error

    def test_row_limit(self):
        text = "Employee ID,SKU,Size,Quantity\n" + "IND-001,SH-01,M,1\n" * 3
        with pytest.raises(MalformedInputError):
            parse_csv(text, max_rows=2)


class TestBulkOrderImporter:

    def test_missing_employee_fails_only_its_row(self):
        """3 rows, one unknown employee: 3 total, 2 successful, 1 failed"""
        report = run(
            "Employee ID,SKU,Size,Quantity\n"
            "IND-001,SH-01,M,1\n"
            "IND-999,SH-01,M,1\n"
            "IND-001,TR-01,32,1\n"
        )
        data = report.to_dict()
        assert data["summary"] == {"total": 3, "successful": 2, "failed": 1}

        failed = [r for r in data["results"] if r["status"] == "failed"]
        assert failed[0]["row_number"] == 3
        assert "IND-999" in failed[0]["error"]

    def test_accepted_rows_grouped_into_one_order_per_employee(self):
        orders = FakeOrders()
        report = run(
            "Employee ID,SKU,Size,Quantity\n"
            "IND-001,SH-01,M,1\n"
            "IND-001,TR-01,32,1\n",
            orders,
        )
        assert len(orders.created) == 1
        employee_id, lines, source = orders.created[0]
        assert employee_id == "IND-001"
        assert [line["category"] for line in lines] == ["shirt", "pant"]
        assert source == "bulk_import"
        assert {r.order_id for r in report.results} == {"order-1"}

    def test_quota_accumulates_within_file(self):
        """The second shirt row sees only what the first left over"""
        report = run(
            "Employee ID,SKU,Size,Quantity\n"
            "IND-001,SH-01,M,2\n"
            "IND-001,SH-01,S,1\n"
        )
        assert [r.status for r in report.results] == ["success", "failed"]
        assert report.results[1].error == "Eligibility exceeded: requested 3 shirt(s), but only 2 remaining"

    def test_row_level_checks(self):
        report = run(
            "Employee ID,SKU,Size,Quantity\n"
            ",SH-01,M,1\n"
            "EXT-001,SH-01,M,1\n"
            "IND-001,NOPE,M,1\n"
            "IND-001,SH-01,XXL,1\n"
            "IND-001,SH-01,M,0\n"
            "IND-001,SH-01,M,two\n"
        )
        errors = [r.error for r in report.results]
        assert errors[0] == "Employee ID is required"
        assert "does not belong to your company" in errors[1]
        assert errors[2] == "Product not found for SKU: NOPE"
        assert errors[3].startswith("Invalid size XXL for product SH-01")
        assert errors[4] == "Invalid quantity: 0. Must be greater than 0"
        assert errors[5] == "Invalid quantity: two. Must be greater than 0"
        assert report.successful == 0

    def test_product_gender_must_suit_employee(self):
        report = run(
            "Employee ID,SKU,Size,Quantity\n"
            "IND-001,BL-F,M,1\n"
            "IND-001,SH-01,M,1\n"
        )
        assert report.results[0].error == "Product BL-F is not available for male employees"
        assert report.results[1].status == "success"

    def test_employee_without_rule_rejected(self):
        """IND-002 is female and the only rule is for men"""
        importer = make_importer(
            find_rule=lambda company_id, designation, gender: RULE if gender == "male" else None
        )
        report = importer.run(parse_csv("Employee ID,SKU,Size,Quantity\nIND-002,SH-01,M,1\n"))
        assert report.failed == 1
        assert "only 0 remaining" in report.results[0].error

    def test_failed_order_write_fails_that_employees_rows(self):
        orders = FakeOrders(fail_for=["IND-001"])
        report = run(
            "Employee ID,SKU,Size,Quantity\n"
            "IND-001,SH-01,M,1\n"
            "IND-001,TR-01,32,1\n",
            orders,
        )
        assert report.failed == 2
        assert report.results[0].error.startswith("Order could not be created")


class TestReport:

    def test_csv_report_columns(self):
        report = run(
            "Employee ID,SKU,Size,Quantity\n"
            "IND-001,SH-01,M,1\n"
            "IND-999,SH-01,M,1\n"
        )
        rows = list(csv.reader(io.StringIO(report.to_csv())))
        assert rows[0] == REPORT_COLUMNS
        assert rows[1] == ["2", "IND-001", "SH-01", "M", "1", "success", "order-1"]
        assert rows[2][5] == "failed"
        assert "IND-999" in rows[2][6]


class TestImportAgainstMongo:

    def test_creates_orders_that_consume_allowance(self, mongo_db, seed_employee, seed_product):
        seed_employee("IND-001", company_id="c1", designation="Pilot", gender="male")
        seed_product("SH-01", category="shirt", sizes=("M",), company_ids=("c1",))
        EligibilityRule.create("c1", "Pilot", "male", item_eligibility={
            "shirt": {"quantity": 2, "renewal_frequency": 6},
        })

        report = import_orders(
            "c1",
            "orders.csv",
            b"Employee ID,SKU,Size,Quantity\nIND-001,SH-01,M,2\nIND-404,SH-01,M,1\n",
        )

        assert report.to_dict()["summary"] == {"total": 2, "successful": 1, "failed": 1}
        orders = Order.get_for_employee("IND-001")
        assert len(orders) == 1
        assert orders[0]["source"] == "bulk_import"
        assert orders[0]["items"][0]["quantity"] == 2

        again = import_orders("c1", "orders.csv", b"Employee ID,SKU,Size,Quantity\nIND-001,SH-01,M,1\n")
        assert again.failed == 1
