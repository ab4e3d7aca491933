"""
Monthly Invoice Compiler

Turns delivery records into a CompiledInvoice for one month and one
billing category:

1. Filter deliveries by month and by the material's category
2. Price each delivery: amount = quantity x rate
3. Group by (vehicle, material) - one printed line per lorry per material
4. Sort groups by vehicle number
5. Subtotal, GST split, grand total, amount in words

MONEY RULES:
- Subtotal and tax stay unrounded internally; rounding to whole rupees
  happens once, for display, so errors do not compound across groups.
- Grouping never changes money: the subtotal equals the sum of the
  per-delivery amounts.
- A material with no rate is billed at 0 and reported in
  configuration_gaps. It is never silently absorbed.
"""

from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Union

import structlog

from supply_ledger.billing.tables import BillingTables, TaxRule, default_billing_tables
from supply_ledger.billing.words import amount_in_words
from supply_ledger.models.records import (
    CompiledInvoice,
    DeliveryRecord,
    GroupedInvoiceRow,
    InvoiceCategory,
    InvoiceLineItem,
    TaxBreakdown,
    round_whole,
)

logger = structlog.get_logger(__name__)

NO_VEHICLE = "-"
HUNDRED = Decimal("100")


def select_records(
    records: Iterable[DeliveryRecord],
    month: str,
    category: InvoiceCategory,
    tables: BillingTables,
) -> list[DeliveryRecord]:
    """Deliveries in the month whose material bills under the category."""
    return [
        record for record in records
        if record.month == month and tables.category_for(record.material) == category
    ]


def price_records(
    records: Iterable[DeliveryRecord],
    tables: BillingTables,
) -> tuple[list[InvoiceLineItem], list[str]]:
    """
    Price each delivery.

    Returns:
        (line_items, materials_without_rate) - the second list is in
        first-seen order without duplicates.
    """
    items = []
    gaps: list[str] = []

    for record in records:
        rate = tables.rate_for(record.material)
        rate_missing = rate is None or rate <= 0
        if rate_missing:
            rate = Decimal("0")
            if record.material not in gaps:
                gaps.append(record.material)

        items.append(InvoiceLineItem(
            record_id=record.id,
            date=record.date,
            challan_number=record.challan_number,
            vehicle_number=record.vehicle_number or NO_VEHICLE,
            description=record.material,
            quantity=record.quantity,
            rate=rate,
            amount=record.quantity * rate,
            rate_missing=rate_missing,
        ))

    return items, gaps


def group_line_items(items: Iterable[InvoiceLineItem]) -> list[GroupedInvoiceRow]:
    """
    Merge line items sharing (vehicle, description).

    Quantities and amounts are summed; the rate of the first member is
    kept (callers guarantee one rate per material). Groups come back
    sorted by vehicle number; equal vehicles keep first-seen order.
    """
    groups: dict[tuple[str, str], GroupedInvoiceRow] = {}

    for item in items:
        key = (item.vehicle_number, item.description)
        group = groups.get(key)
        if group is None:
            groups[key] = GroupedInvoiceRow(
                vehicle_number=item.vehicle_number,
                description=item.description,
                quantity=item.quantity,
                rate=item.rate,
                amount=item.amount,
                rate_missing=item.rate_missing,
            )
            continue

        group.quantity += item.quantity
        group.amount += item.amount
        group.member_count += 1
        group.rate_missing = group.rate_missing or item.rate_missing

    return sorted(groups.values(), key=lambda group: group.vehicle_number)


def compute_tax(subtotal: Decimal, rule: TaxRule) -> TaxBreakdown:
    """GST on the subtotal. Exempt categories get zero on both components."""
    if rule.exempt:
        return TaxBreakdown(exempt=True)

    return TaxBreakdown(
        exempt=False,
        sgst_percent=rule.sgst_percent,
        cgst_percent=rule.cgst_percent,
        sgst_amount=subtotal * rule.sgst_percent / HUNDRED,
        cgst_amount=subtotal * rule.cgst_percent / HUNDRED,
    )


def compile_invoice(
    records: Iterable[DeliveryRecord],
    month: str,
    category: Union[str, InvoiceCategory],
    rate_table: Optional[Mapping[Any, Any]] = None,
    tables: Optional[BillingTables] = None,
) -> CompiledInvoice:
    """
    Compile the invoice for one month and category.

    Args:
        records: Delivery records (any month/category; filtered here)
        month: Billing period as YYYY-MM
        category: Invoice category
        rate_table: Per-material rate overrides, merged over the price list
        tables: Price list, catalog and GST rules (defaults to the standard set)

    Returns:
        CompiledInvoice. An empty selection yields an empty, zero-total
        invoice; use CompiledInvoice.is_empty to reject it before rendering.
    """
    category = InvoiceCategory(category)
    tables = tables or default_billing_tables()
    if rate_table:
        tables = tables.with_rates(rate_table)

    selected = select_records(records, month, category, tables)
    items, gaps = price_records(selected, tables)
    rows = group_line_items(items)

    subtotal = sum((row.amount for row in rows), Decimal("0"))
    tax = compute_tax(subtotal, tables.tax_rule_for(category))
    grand_total = round_whole(subtotal + tax.rounded_sgst + tax.rounded_cgst)

    if gaps:
        logger.warning(
            "invoice_rate_missing",
            month=month,
            category=category.value,
            materials=gaps,
        )

    return CompiledInvoice(
        month=month,
        category=category,
        line_items=items,
        rows=rows,
        subtotal=subtotal,
        tax=tax,
        round_off=Decimal("0"),
        grand_total=grand_total,
        amount_in_words=amount_in_words(grand_total),
        configuration_gaps=gaps,
    )
