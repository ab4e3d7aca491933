"""
Billing Package

Challan numbering, invoice compilation, amount-in-words and page layouts.
"""

from supply_ledger.billing.compiler import (
    compile_invoice,
    compute_tax,
    group_line_items,
    price_records,
    select_records,
)
from supply_ledger.billing.layout import (
    PartyDetails,
    build_invoice_layout,
    build_ledger_layout,
    default_company,
    default_customer,
    format_indian,
    invoice_number,
)
from supply_ledger.billing.numbering import (
    allocate_challan_number,
    format_challan_number,
    highest_sequence,
)
from supply_ledger.billing.tables import (
    BillingTables,
    TaxRule,
    default_billing_tables,
)
from supply_ledger.billing.words import amount_in_words

__all__ = [
    "BillingTables",
    "PartyDetails",
    "TaxRule",
    "allocate_challan_number",
    "amount_in_words",
    "build_invoice_layout",
    "build_ledger_layout",
    "compile_invoice",
    "compute_tax",
    "default_billing_tables",
    "default_company",
    "default_customer",
    "format_challan_number",
    "format_indian",
    "group_line_items",
    "highest_sequence",
    "invoice_number",
    "price_records",
    "select_records",
]
