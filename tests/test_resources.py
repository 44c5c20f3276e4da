"""
HTTP tests for the rule, allowance and order resources
"""

import csv
import io

import pytest

API = "/api/v1"
COMPANY_ID = "company-1"

PILOT_RULE = {
    "designation": "Pilot",
    "gender": "male",
    "item_eligibility": {
        "shirt": {"quantity": 2, "renewal_frequency": 6},
        "trouser": {"quantity": 1, "renewal_frequency": 1, "renewal_unit": "years"},
    },
}


@pytest.fixture
def admin(auth_header):
    return auth_header(role="company_admin")


@pytest.fixture
def employee(auth_header):
    return auth_header(role="employee", employee_id="IND-001", user_id="user-2")


@pytest.fixture
def catalogue(app, client, admin, seed_employee, seed_product):
    seed_employee("IND-001", designation="Pilot", gender="male")
    seed_product("SH-01", category="shirt", sizes=("M", "L"), price=20.0)
    seed_product("TR-01", category="pant", sizes=("32",), price=30.0)
    response = client.post(f"{API}/eligibility-rules", json=PILOT_RULE, headers=admin)
    assert response.status_code == 201
    return response.get_json()["data"]


def upload(client, headers, content, filename="orders.csv", query=""):
    return client.post(
        f"{API}/orders/bulk/import{query}",
        data={"file": (io.BytesIO(content), filename)},
        content_type="multipart/form-data",
        headers=headers,
    )


class TestAuth:

    def test_token_required(self, client):
        response = client.get(f"{API}/eligibility-rules")
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get(f"{API}/eligibility-rules", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401

    def test_employee_cannot_create_rule(self, client, employee):
        response = client.post(f"{API}/eligibility-rules", json=PILOT_RULE, headers=employee)
        assert response.status_code == 403

    def test_super_admin_needs_company(self, client, auth_header):
        no_company = auth_header(role="super_admin", company_id=None)
        response = client.post(f"{API}/eligibility-rules", json=PILOT_RULE, headers=no_company)
        assert response.status_code == 403

    def test_super_admin_with_company(self, client, auth_header):
        response = client.post(f"{API}/eligibility-rules", json=PILOT_RULE, headers=auth_header(role="super_admin"))
        assert response.status_code == 201
        assert response.get_json()["data"]["company_id"] == COMPANY_ID


class TestEligibilityRules:

    def test_create_stores_canonical_categories(self, catalogue):
        assert catalogue["designation"] == "Pilot"
        assert set(catalogue["item_eligibility"]) == {"shirt", "pant"}

    def test_duplicate_is_conflict(self, client, admin, catalogue):
        response = client.post(f"{API}/eligibility-rules", json=PILOT_RULE, headers=admin)
        assert response.status_code == 409

    def test_unisex_rejected(self, client, admin):
        response = client.post(f"{API}/eligibility-rules", json=dict(PILOT_RULE, gender="unisex"), headers=admin)
        assert response.status_code == 400

    def test_no_categories_rejected(self, client, admin):
        response = client.post(
            f"{API}/eligibility-rules",
            json={"designation": "Pilot", "gender": "male"},
            headers=admin,
        )
        assert response.status_code == 422

    def test_list_get_patch_delete(self, client, admin, catalogue):
        rule_id = catalogue["_id"]

        listed = client.get(f"{API}/eligibility-rules", headers=admin).get_json()["data"]
        assert [r["_id"] for r in listed] == [rule_id]

        assert client.get(f"{API}/eligibility-rules/{rule_id}", headers=admin).status_code == 200

        response = client.patch(
            f"{API}/eligibility-rules/{rule_id}",
            json={"item_eligibility": {"shirt": {"quantity": 5, "renewal_frequency": 6}}},
            headers=admin,
        )
        assert response.status_code == 200
        assert response.get_json()["data"]["item_eligibility"]["shirt"]["quantity"] == 5

        assert client.delete(f"{API}/eligibility-rules/{rule_id}", headers=admin).status_code == 200
        assert client.get(f"{API}/eligibility-rules", headers=admin).get_json()["data"] == []

    def test_other_company_cannot_read(self, client, auth_header, catalogue):
        other = auth_header(role="company_admin", company_id="company-2")
        response = client.get(f"{API}/eligibility-rules/{catalogue['_id']}", headers=other)
        assert response.status_code == 404


class TestAllowanceAndCart:

    def test_employee_reads_own_allowance(self, client, employee, catalogue):
        response = client.get(f"{API}/employees/IND-001/allowances", headers=employee)
        assert response.status_code == 200
        rows = {row["category"]: row for row in response.get_json()["data"]["allowances"]}
        assert rows["shirt"]["remaining"] == 2
        assert rows["pant"]["remaining"] == 1

    def test_employee_cannot_read_colleague(self, client, auth_header, seed_employee, catalogue):
        seed_employee("IND-002")
        colleague = auth_header(role="employee", employee_id="IND-002", user_id="user-3")
        response = client.get(f"{API}/employees/IND-001/allowances", headers=colleague)
        assert response.status_code == 403

    def test_unknown_employee(self, client, admin, catalogue):
        response = client.get(f"{API}/employees/IND-404/allowances", headers=admin)
        assert response.status_code == 404

    def test_catalog_filters_by_gender_and_rule(self, client, employee, seed_product, catalogue):
        seed_product("BL-F", category="shirt", gender="female")
        seed_product("SHM-01", category="shirt", gender="male")
        seed_product("SHOE-01", category="shoe")
        seed_product("SH-X", category="shirt", company_ids=("company-2",))

        response = client.get(f"{API}/employees/IND-001/catalog", headers=employee)
        assert response.status_code == 200
        items = {item["sku"]: item for item in response.get_json()["data"]["items"]}
        assert set(items) == {"SH-01", "TR-01", "SHM-01"}
        assert items["SH-01"]["remaining"] == 2
        assert items["TR-01"]["category"] == "pant"

    def test_catalog_of_colleague_forbidden(self, client, auth_header, seed_employee, catalogue):
        seed_employee("IND-002")
        colleague = auth_header(role="employee", employee_id="IND-002", user_id="user-3")
        response = client.get(f"{API}/employees/IND-001/catalog", headers=colleague)
        assert response.status_code == 403

    def test_cart_within_allowance(self, client, employee, catalogue):
        response = client.post(
            f"{API}/employees/IND-001/cart/validate",
            json={"items": [{"category": "shirt", "quantity": 2}]},
            headers=employee,
        )
        assert response.status_code == 200
        assert response.get_json()["data"]["accepted"] is True

    def test_cart_over_allowance(self, client, employee, catalogue):
        response = client.post(
            f"{API}/employees/IND-001/cart/validate",
            json={"items": [{"category": "trouser", "quantity": 1}, {"category": "pant", "quantity": 1}]},
            headers=employee,
        )
        assert response.status_code == 422
        body = response.get_json()
        assert body["message"] == "Eligibility exceeded: requested 2 pant(s), but only 1 remaining"
        assert body["data"]["accepted"] is False

    def test_add_mode_requires_category(self, client, employee, catalogue):
        response = client.post(
            f"{API}/employees/IND-001/cart/validate",
            json={"mode": "add", "items": []},
            headers=employee,
        )
        assert response.status_code == 422


class TestOrders:

    def place(self, client, headers, quantity):
        return client.post(
            f"{API}/employees/IND-001/orders",
            json={"items": [{"sku": "SH-01", "size": "M", "quantity": quantity}]},
            headers=headers,
        )

    def test_order_then_over_quota(self, client, employee, catalogue):
        response = self.place(client, employee, 2)
        assert response.status_code == 201
        assert response.get_json()["data"]["order_id"]

        response = self.place(client, employee, 1)
        assert response.status_code == 422
        assert response.get_json()["errors"]["remaining"] == 0

    def test_product_for_other_gender(self, client, employee, seed_product, catalogue):
        seed_product("BL-F", category="shirt", sizes=("M",), gender="female")
        response = client.post(
            f"{API}/employees/IND-001/orders",
            json={"items": [{"sku": "BL-F", "size": "M", "quantity": 1}]},
            headers=employee,
        )
        assert response.status_code == 400
        assert response.get_json()["message"] == "Product BL-F is not available for male employees"

    def test_unknown_size(self, client, employee, catalogue):
        response = client.post(
            f"{API}/employees/IND-001/orders",
            json={"items": [{"sku": "SH-01", "size": "XXL", "quantity": 1}]},
            headers=employee,
        )
        assert response.status_code == 400

    def test_reject_restores_allowance(self, client, admin, employee, catalogue):
        order_id = self.place(client, employee, 2).get_json()["data"]["order_id"]

        response = client.post(f"{API}/orders/{order_id}/reject", headers=admin)
        assert response.status_code == 200
        assert response.get_json()["data"]["status"] == "Rejected"

        assert self.place(client, employee, 2).status_code == 201

    def test_approve_then_reject_conflicts(self, client, admin, employee, catalogue):
        order_id = self.place(client, employee, 1).get_json()["data"]["order_id"]

        assert client.post(f"{API}/orders/{order_id}/approve", headers=admin).status_code == 200
        assert client.post(f"{API}/orders/{order_id}/reject", headers=admin).status_code == 409

    def test_employee_cannot_approve(self, client, employee, catalogue):
        order_id = self.place(client, employee, 1).get_json()["data"]["order_id"]
        assert client.post(f"{API}/orders/{order_id}/approve", headers=employee).status_code == 403


class TestBulkImport:

    CSV = (
        b"Employee ID,SKU,Size,Quantity\n"
        b"IND-001,SH-01,M,1\n"
        b"IND-999,SH-01,M,1\n"
        b"IND-001,TR-01,32,1\n"
    )

    def test_summary(self, client, admin, catalogue):
        response = upload(client, admin, self.CSV)
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["summary"] == {"total": 3, "successful": 2, "failed": 1}
        assert data["results"][1]["error"] == "Employee not found: IND-999"

    def test_csv_report_download(self, client, admin, catalogue):
        response = upload(client, admin, self.CSV, query="?format=csv")
        assert response.status_code == 200
        assert response.headers["Content-Type"].startswith("text/csv")
        assert "bulk_order_report.csv" in response.headers["Content-Disposition"]

        rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
        assert len(rows) == 4
        assert rows[2][5] == "failed"

    def test_missing_columns(self, client, admin, catalogue):
        response = upload(client, admin, b"Employee ID,SKU\nIND-001,SH-01\n")
        assert response.status_code == 400
        assert response.get_json()["errors"]["missing_columns"] == ["Size", "Quantity"]

    def test_file_required(self, client, admin, catalogue):
        response = client.post(
            f"{API}/orders/bulk/import", data={}, content_type="multipart/form-data", headers=admin
        )
        assert response.status_code == 400
        assert response.get_json()["required_fields"] == ["file"]

    def test_unsupported_extension(self, client, admin, catalogue):
        response = upload(client, admin, self.CSV, filename="orders.txt")
        assert response.status_code == 400

    def test_employee_forbidden(self, client, employee, catalogue):
        response = upload(client, employee, self.CSV)
        assert response.status_code == 403
