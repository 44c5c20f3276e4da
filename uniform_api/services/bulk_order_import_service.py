# uniform_api/services/bulk_order_import_service.py
"""
Bulk order import.

An admin uploads a sheet of (Employee ID, SKU, Size, Quantity) rows. Every
row is checked on its own: employee, product, size, quantity and remaining
allowance. One bad row never stops the rest. Rows that pass are grouped into
one order per employee.

Quota for a row is checked against what is left after the rows already
accepted earlier in the same file for that employee.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import pandas as pd

from ..models.employee_model import Employee
from ..models.order_model import ORDER_SOURCE_BULK_IMPORT, Order
from ..models.product_model import Product
from ..utils.eligibility.errors import (
    EligibilityError,
    MalformedInputError,
    RowProcessingError,
)
from ..utils.eligibility.order_validator import OrderValidator
from ..utils.eligibility.quota_engine import QuotaEngine
from ..utils.logger import Log

DEFAULT_MAX_ROWS = 10000

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"

# canonical column -> accepted header spellings (after normalize_header)
COLUMN_ALIASES = {
    "employee_id": ("employee id", "employeeid", "employee no", "employeeno"),
    "sku": ("sku", "product id", "productid"),
    "size": ("size",),
    "quantity": ("quantity", "qty"),
}
COLUMN_LABELS = {
    "employee_id": "Employee ID",
    "sku": "SKU",
    "size": "Size",
    "quantity": "Quantity",
}

REPORT_COLUMNS = ["Row Number", "Employee ID", "SKU", "Size", "Quantity", "Status", "Order ID / Error"]


def normalize_header(value) -> str:
    if value is None:
        return ""
    s = str(value).replace("\ufeff", "").strip().lower()
    s = s.replace("_", " ").replace("-", " ")
    return " ".join(s.split())


def map_columns(headers) -> Dict[str, int]:
    """
    {canonical column: position} for a header row. Raises MalformedInputError
    naming every required column that is missing.
    """
    normalized = [normalize_header(h) for h in headers]
    positions = {}
    for column, aliases in COLUMN_ALIASES.items():
        for index, header in enumerate(normalized):
            if header in aliases:
                positions[column] = index
                break

    missing = [COLUMN_LABELS[c] for c in COLUMN_ALIASES if c not in positions]
    if missing:
        raise MalformedInputError(
            "Missing required columns: " + ", ".join(missing),
            missing_columns=missing,
        )
    return positions


@dataclass
class BulkOrderRow:
    row_number: int
    employee_id: str = ""
    sku: str = ""
    size: str = ""
    quantity: str = ""
    error: Optional[str] = None


def _is_blank(values) -> bool:
    return all(v is None or str(v).strip() == "" for v in values)


def _cell(values, index) -> str:
    value = values[index] if index < len(values) else None
    return "" if value is None else str(value).strip()


def _rows_from_records(records, max_rows: int) -> List[BulkOrderRow]:
    """records: iterable of (row_number, [cells]) with the header row first."""
    records = iter(records)
    header = None
    for _, values in records:
        if not _is_blank(values):
            header = values
            break
    if header is None:
        raise MalformedInputError("The file is empty")

    positions = map_columns(header)
    width = len(header)

    rows: List[BulkOrderRow] = []
    for row_number, values in records:
        if _is_blank(values):
            continue
        if len(rows) >= max_rows:
            raise MalformedInputError(f"The file has more than {max_rows} rows")

        row = BulkOrderRow(
            row_number=row_number,
            employee_id=_cell(values, positions["employee_id"]),
            sku=_cell(values, positions["sku"]),
            size=_cell(values, positions["size"]),
            quantity=_cell(values, positions["quantity"]),
        )
        if len(values) != width:
            row.error = f"Row has {len(values)} columns, expected {width}"
        rows.append(row)
    return rows


def parse_csv(content, max_rows: int = DEFAULT_MAX_ROWS) -> List[BulkOrderRow]:
    """Rows of a UTF-8 CSV (BOM tolerated). Row numbers count the header as row 1."""
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise MalformedInputError("The file is not valid UTF-8 text")
    elif content.startswith("\ufeff"):
        content = content[1:]

    reader = csv.reader(io.StringIO(content))

    def records():
        for values in reader:
            yield reader.line_num, values

    return _rows_from_records(records(), max_rows)


def parse_excel(content: bytes, max_rows: int = DEFAULT_MAX_ROWS) -> List[BulkOrderRow]:
    """Rows of the first sheet of an .xlsx workbook."""
    try:
        df = pd.read_excel(io.BytesIO(content), dtype=str, header=None, keep_default_na=False)
    except Exception as e:
        raise MalformedInputError(f"Could not read spreadsheet: {e}")

    def records():
        for index, values in enumerate(df.itertuples(index=False, name=None), start=1):
            yield index, [str(v) for v in values]

    return _rows_from_records(records(), max_rows)


def parse_upload(filename: str, content: bytes, max_rows: int = DEFAULT_MAX_ROWS) -> List[BulkOrderRow]:
    extension = (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""
    if extension == "xlsx":
        return parse_excel(content, max_rows)
    return parse_csv(content, max_rows)


@dataclass
class BulkRowResult:
    row_number: int
    employee_id: str
    sku: str
    size: str
    quantity: object
    status: str = STATUS_SUCCESS
    order_id: Optional[str] = None
    error: Optional[str] = None

    def fail(self, error: RowProcessingError):
        self.status = STATUS_FAILED
        self.error = error.message
        self.order_id = None

    def to_dict(self) -> dict:
        doc = {
            "row_number": self.row_number,
            "employee_id": self.employee_id,
            "sku": self.sku,
            "size": self.size,
            "quantity": self.quantity,
            "status": self.status,
        }
        if self.status == STATUS_SUCCESS:
            doc["order_id"] = self.order_id
        else:
            doc["error"] = self.error
        return doc


@dataclass
class BulkImportReport:
    results: List[BulkRowResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.status == STATUS_SUCCESS)

    @property
    def failed(self) -> int:
        return self.total - self.successful

    def to_dict(self) -> dict:
        return {
            "summary": {"total": self.total, "successful": self.successful, "failed": self.failed},
            "results": [r.to_dict() for r in self.results],
        }

    def to_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(REPORT_COLUMNS)
        for r in self.results:
            outcome = r.order_id if r.status == STATUS_SUCCESS else r.error
            writer.writerow([r.row_number, r.employee_id, r.sku, r.size, r.quantity, r.status, outcome or ""])
        return buffer.getvalue()


def _parse_quantity(raw):
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if not value.is_integer():
        return None
    return int(value)


class BulkOrderImporter:
    """
    Replays parsed rows through the checkout validation path for one company.

    Collaborators default to the MongoDB stores and can be swapped for tests:
      find_employee(employee_id)      -> EmployeeProfile | None
      find_product(company_id, sku)   -> product doc | None
      create_order(company_id, employee, lines, source=...) -> order id
    """

    def __init__(
        self,
        company_id,
        engine: QuotaEngine = None,
        find_employee: Callable = None,
        find_product: Callable = None,
        create_order: Callable = None,
    ):
        if engine is None:
            from .eligibility_service import build_quota_engine
            engine = build_quota_engine()

        self.company_id = str(company_id)
        self.validator = OrderValidator(engine)
        self.find_employee = find_employee or Employee.get_profile
        self.find_product = find_product or Product.get_by_sku
        self.create_order = create_order or Order.create

    def _check_row(self, row: BulkOrderRow, employees: dict, pending: dict):
        """Returns (employee, order line) or raises RowProcessingError."""
        if row.error:
            raise RowProcessingError(row.row_number, row.error)
        if not row.employee_id:
            raise RowProcessingError(row.row_number, "Employee ID is required")

        if row.employee_id not in employees:
            employees[row.employee_id] = self.find_employee(row.employee_id)
        employee = employees[row.employee_id]
        if employee is None:
            raise RowProcessingError(row.row_number, f"Employee not found: {row.employee_id}")
        if str(employee.company_id) != self.company_id:
            raise RowProcessingError(row.row_number, f"Employee {row.employee_id} does not belong to your company")

        product = self.find_product(self.company_id, row.sku) if row.sku else None
        if product is None:
            raise RowProcessingError(row.row_number, f"Product not found for SKU: {row.sku}")
        if not Product.suits_gender(product, employee.gender):
            raise RowProcessingError(
                row.row_number,
                f"Product {row.sku} is not available for {employee.gender} employees",
            )

        if not row.size or not Product.offers_size(product, row.size):
            sizes = ", ".join(str(s) for s in product.get("sizes") or [])
            raise RowProcessingError(
                row.row_number,
                f"Invalid size {row.size} for product {row.sku}. Available sizes: {sizes}",
            )

        quantity = _parse_quantity(row.quantity)
        if quantity is None or quantity <= 0:
            raise RowProcessingError(row.row_number, f"Invalid quantity: {row.quantity}. Must be greater than 0")

        in_file = pending.setdefault(employee.employee_id, [])
        try:
            decision = self.validator.validate_add_to_cart(employee, in_file, product.get("category"), quantity)
        except EligibilityError as e:
            raise RowProcessingError(row.row_number, e.message)
        if not decision.accepted:
            raise RowProcessingError(row.row_number, decision.rejections[0].message)

        line = {
            "product_id": product.get("_id"),
            "product_name": product.get("name"),
            "category": product.get("category"),
            "size": row.size,
            "quantity": quantity,
            "unit_price": product.get("price") or 0.0,
        }
        in_file.append(line)
        return employee, line

    def run(self, rows: List[BulkOrderRow]) -> BulkImportReport:
        log_tag = f"[bulk_order_import_service.py][BulkOrderImporter][run][{self.company_id}]"

        report = BulkImportReport()
        employees: Dict[str, object] = {}
        pending: Dict[str, list] = {}
        accepted: Dict[str, list] = {}

        for row in rows:
            quantity = _parse_quantity(row.quantity)
            result = BulkRowResult(
                row_number=row.row_number,
                employee_id=row.employee_id,
                sku=row.sku,
                size=row.size,
                quantity=row.quantity if quantity is None else quantity,
            )
            report.results.append(result)
            try:
                employee, _ = self._check_row(row, employees, pending)
            except RowProcessingError as e:
                Log.info(f"{log_tag} row {e.row_number} failed: {e.message}")
                result.fail(e)
                continue
            accepted.setdefault(employee.employee_id, []).append(result)

        for employee_id, row_results in accepted.items():
            employee = employees[employee_id]
            try:
                order_id = self.create_order(
                    self.company_id, employee, pending[employee_id], source=ORDER_SOURCE_BULK_IMPORT
                )
            except Exception as e:
                Log.error(f"{log_tag} order write failed for {employee_id}: {e}", exc_info=True)
                for result in row_results:
                    result.fail(RowProcessingError(result.row_number, f"Order could not be created: {e}"))
                continue
            for result in row_results:
                result.order_id = order_id

        report.results.sort(key=lambda r: r.row_number)
        Log.info(
            f"{log_tag} total={report.total} successful={report.successful} failed={report.failed}"
        )
        return report


def import_orders(company_id, filename: str, content: bytes, max_rows: int = DEFAULT_MAX_ROWS,
                  importer: BulkOrderImporter = None) -> BulkImportReport:
    """Parse an uploaded file and import it. MalformedInputError fails the whole file."""
    rows = parse_upload(filename, content, max_rows)
    return (importer or BulkOrderImporter(company_id)).run(rows)
