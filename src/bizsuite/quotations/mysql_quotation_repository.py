from __future__ import annotations

from typing import Optional

from ..core.enums import QuotationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_int, to_decimal
from .model import Invoice, Quotation, QuotationItem
from .repository import LeadDirectory, QuotationRepository


def _quotation(r: dict, items: tuple[QuotationItem, ...]) -> Quotation:
    return Quotation(
        quotation_id=int(r["quotation_id"]),
        quotation_number=r["quotation_number"],
        owner_id=optional_int(r.get("owner_id")),
        issue_date=r["issue_date"],
        expiry_date=r["expiry_date"],
        lead_id=optional_int(r.get("lead_id")),
        client_id=optional_int(r.get("client_id")),
        items=items,
        tax_rate=to_decimal(r.get("tax_rate")),
        discount_amount=to_decimal(r.get("discount_amount")),
        subtotal=to_decimal(r.get("subtotal")),
        tax_amount=to_decimal(r.get("tax_amount")),
        total_amount=to_decimal(r.get("total_amount")),
        currency=r["currency"],
        status=QuotationStatus(r["status"]),
        notes=r.get("notes"),
        terms=r.get("terms"),
        sent_at=r.get("sent_at"),
        accepted_at=r.get("accepted_at"),
        rejected_at=r.get("rejected_at"),
        rejection_reason=r.get("rejection_reason"),
        converted_to_invoice_id=optional_int(r.get("converted_to_invoice_id")),
        converted_at=r.get("converted_at"),
    )


def _insert_items(cur, table: str, owner_column: str, owner_id: int, items: tuple[QuotationItem, ...]) -> None:
    for position, item in enumerate(items, start=1):
        cur.execute(
            f"""
            INSERT INTO {table}({owner_column}, position, description, quantity, unit_price, total_price)
            VALUES(%s,%s,%s,%s,%s,%s)
            """,
            (owner_id, position, item.description, item.quantity, item.unit_price, item.line_total),
        )


class MySQLQuotationRepository(QuotationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, quotation_id: int) -> Optional[Quotation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM quotations WHERE quotation_id=%s", (int(quotation_id),))
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                """
                SELECT description, quantity, unit_price
                FROM quotation_items
                WHERE quotation_id=%s
                ORDER BY position
                """,
                (int(quotation_id),),
            )
            items = tuple(
                QuotationItem(
                    description=i["description"],
                    quantity=to_decimal(i["quantity"]),
                    unit_price=to_decimal(i["unit_price"]),
                )
                for i in fetchall(cur)
            )
            return _quotation(r, items)

    def last_number(self, prefix: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT quotation_number
                FROM quotations
                WHERE quotation_number LIKE %s
                ORDER BY quotation_number DESC
                LIMIT 1
                """,
                (f"{prefix}%",),
            )
            r = fetchone(cur)
            return r["quotation_number"] if r else None

    def add(self, quotation: Quotation) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO quotations(
                    quotation_number, owner_id, lead_id, client_id, issue_date, expiry_date,
                    tax_rate, discount_amount, subtotal, tax_amount, total_amount,
                    currency, status, notes, terms
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    quotation.quotation_number,
                    quotation.owner_id,
                    quotation.lead_id,
                    quotation.client_id,
                    quotation.issue_date,
                    quotation.expiry_date,
                    quotation.tax_rate,
                    quotation.discount_amount,
                    quotation.subtotal,
                    quotation.tax_amount,
                    quotation.total_amount,
                    quotation.currency,
                    quotation.status.value,
                    quotation.notes,
                    quotation.terms,
                ),
            )
            quotation_id = int(cur.lastrowid)
            _insert_items(cur, "quotation_items", "quotation_id", quotation_id, quotation.items)
            return quotation_id

    def update(self, quotation: Quotation, *, expected_status: QuotationStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE quotations
                SET status=%s, subtotal=%s, tax_amount=%s, total_amount=%s,
                    sent_at=%s, accepted_at=%s, rejected_at=%s, rejection_reason=%s
                WHERE quotation_id=%s AND status=%s
                """,
                (
                    quotation.status.value,
                    quotation.subtotal,
                    quotation.tax_amount,
                    quotation.total_amount,
                    quotation.sent_at,
                    quotation.accepted_at,
                    quotation.rejected_at,
                    quotation.rejection_reason,
                    quotation.quotation_id,
                    expected_status.value,
                ),
            )
            if cur.rowcount == 0:
                return False
            cur.execute("DELETE FROM quotation_items WHERE quotation_id=%s", (quotation.quotation_id,))
            _insert_items(cur, "quotation_items", "quotation_id", quotation.quotation_id, quotation.items)
            return True

    def save_conversion(self, quotation: Quotation, invoice: Invoice) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Claim the quotation first; a concurrent conversion leaves nothing to claim.
            cur.execute(
                """
                UPDATE quotations
                SET client_id=%s, converted_at=%s
                WHERE quotation_id=%s AND status=%s AND converted_at IS NULL AND converted_to_invoice_id IS NULL
                """,
                (quotation.client_id, quotation.converted_at, quotation.quotation_id, QuotationStatus.ACCEPTED.value),
            )
            if cur.rowcount == 0:
                return None

            cur.execute(
                """
                INSERT INTO invoices(
                    billable_kind, billable_id, owner_id, quotation_id, status, issue_date, due_date,
                    subtotal, tax_amount, discount_amount, total_amount, currency, notes, terms
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    invoice.billable.kind.value,
                    invoice.billable.id,
                    invoice.owner_id,
                    invoice.quotation_id,
                    invoice.status.value,
                    invoice.issue_date,
                    invoice.due_date,
                    invoice.subtotal,
                    invoice.tax_amount,
                    invoice.discount_amount,
                    invoice.total_amount,
                    invoice.currency,
                    invoice.notes,
                    invoice.terms,
                ),
            )
            invoice_id = int(cur.lastrowid)
            _insert_items(cur, "invoice_items", "invoice_id", invoice_id, invoice.items)
            cur.execute(
                "UPDATE quotations SET converted_to_invoice_id=%s WHERE quotation_id=%s",
                (invoice_id, quotation.quotation_id),
            )
            return invoice_id


class MySQLLeadDirectory(LeadDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def converted_client_id(self, lead_id: int) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT converted_to_client_id FROM leads WHERE lead_id=%s", (int(lead_id),))
            r = fetchone(cur)
            return optional_int(r.get("converted_to_client_id")) if r else None
