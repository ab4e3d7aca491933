"""
Page layouts for the tax invoice and the client ledger statement.

Both builders return a DocumentLayout: ordered draw instructions in
millimetres on an A4 page. Nothing here draws; a DocumentRenderer does.

Table heights are not known until a renderer lays the table out, so the
footer position is estimated from the row count. The estimate only decides
whether the footer moves to a fresh page.
"""

import textwrap
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from pydantic import BaseModel

from supply_ledger.ledger.statement import LedgerStatement
from supply_ledger.models.records import CompiledInvoice, LedgerRow, round_whole
from supply_ledger.services.rendering.interface import (
    PAGE_WIDTH_MM,
    WHITE,
    Alignment,
    DocumentLayout,
    FontStyle,
    LineInstruction,
    PageBreakInstruction,
    RectInstruction,
    TableColumn,
    TableInstruction,
    TextInstruction,
)

MARGIN = 10.0
INVOICE_SERIES = "55"

# Footer box geometry
FOOTER_BOTTOM = 280.0
FOOTER_SPLIT_X = 145.0
FOOTER_ROW_HEIGHT = 8.0
FOOTER_PAGE_LIMIT = 220.0

# Table height estimate
TABLE_HEADER_HEIGHT = 14.0
TABLE_ROW_HEIGHT = 10.0

# Rough average glyph width (mm) per point of font size, Helvetica
_GLYPH_WIDTH_PER_PT = 0.19

BRAND_BLUE = (14, 165, 233)
DARK_SLATE = (44, 62, 80)
MAROON = (60, 0, 0)
GREEN = (22, 163, 74)
RED = (220, 38, 38)


class PartyDetails(BaseModel):
    """Name, address and tax identity printed for one side of an invoice."""

    name: str
    subtitle: str = ""
    address: str
    gstin: str
    state: str = "Maharashtra"
    state_code: str
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    ifsc: Optional[str] = None


def default_company() -> PartyDetails:
    return PartyDetails(
        name="JAY MALHAR ENTERPRISES",
        subtitle="BUILDING MATERIAL SUPPLIER",
        address="At. Bapgaon, Post. Loand, Tal. Bhiwandi, Dist. Thane, Maharashtra",
        gstin="27AASFJ3172C1ZA",
        state_code="27",
        bank_name="Federal Bank, Kalyan (W)",
        account_number="15420200005950",
        ifsc="FDRL0001542",
    )


def default_customer() -> PartyDetails:
    return PartyDetails(
        name="Arihant Superstructures Ltd.",
        address="Arihant Aura, B-Wing, 25th Floor, Plot 13/1, TTC Industrial Area, Vashi",
        gstin="27AABCS1848L1Z2",
        state="MAHARASHTRA",
        state_code="421302",
    )


# =============================================================================
# FORMATTING HELPERS
# =============================================================================

def format_indian(amount: Union[float, Decimal]) -> str:
    """
    Two-decimal amount with Indian digit grouping.

        >>> format_indian(1234567.5)
        '12,34,567.50'
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    return f"{sign}{whole}.{fraction}"


def format_whole(amount: Decimal) -> str:
    return str(int(round_whole(amount)))


def format_percent(percent: Decimal) -> str:
    """2.5 -> '2.5', 9.00 -> '9'"""
    return format(percent.normalize(), "f")


def invoice_number(month: str) -> str:
    """Invoice number for a billing month: 2025-11 -> 55/25-26."""
    year = int(month[2:4])
    return f"{INVOICE_SERIES}/{year:02d}-{(year + 1) % 100:02d}"


def invoice_filename(category: str, month: str) -> str:
    return f"Invoice_{category}_{month}.pdf"


def ledger_filename(client_name: str, period_label: str) -> str:
    client = client_name.split()[0] if client_name.strip() else "Client"
    return f"Ledger_{client}_{'_'.join(period_label.split())}.pdf"


def _wrap(text: str, width_mm: float, font_size: float) -> list[str]:
    chars = max(1, int(width_mm / (font_size * _GLYPH_WIDTH_PER_PT)))
    return textwrap.wrap(text, chars) or [""]


def _estimated_table_bottom(start_y: float, row_count: int) -> float:
    return start_y + TABLE_HEADER_HEIGHT + row_count * TABLE_ROW_HEIGHT


# =============================================================================
# TAX INVOICE
# =============================================================================

def build_invoice_layout(
    invoice: CompiledInvoice,
    company: Optional[PartyDetails] = None,
    customer: Optional[PartyDetails] = None,
    invoice_date: Optional[date] = None,
) -> DocumentLayout:
    """
    Lay out a compiled invoice as a single tax-invoice page.

    Date and challan columns are printed blank: a grouped row spans several
    deliveries. Rows billed without a configured rate are highlighted.
    """
    company = company or default_company()
    customer = customer or default_customer()
    invoice_date = invoice_date or date.today()
    width = PAGE_WIDTH_MM
    center = width / 2
    right = width - 15

    out: list = [
        TextInstruction(x=center, y=8, text="TAX INVOICE", font_size=8, align=Alignment.CENTER),
        TextInstruction(
            x=center, y=18, text=company.name, font_size=26,
            font_style=FontStyle.BOLD, align=Alignment.CENTER, color=MAROON,
        ),
        TextInstruction(
            x=center, y=24, text=company.subtitle, font_size=10,
            font_style=FontStyle.BOLD, align=Alignment.CENTER,
        ),
        TextInstruction(
            x=center, y=29, text=f"Address : {company.address}", font_size=9,
            align=Alignment.CENTER,
        ),
        LineInstruction(x1=MARGIN, y1=32, x2=width - MARGIN, y2=32),
        TextInstruction(
            x=15, y=37, text=f"GSTIN No. : {company.gstin}", font_size=9,
            font_style=FontStyle.BOLD,
        ),
        TextInstruction(
            x=center, y=37, text=f"State : {company.state}", font_size=9,
            font_style=FontStyle.BOLD, align=Alignment.CENTER,
        ),
        TextInstruction(
            x=right, y=37, text=f"State Code : {company.state_code}", font_size=9,
            font_style=FontStyle.BOLD, align=Alignment.RIGHT,
        ),
        LineInstruction(x1=MARGIN, y1=40, x2=width - MARGIN, y2=40),
        TextInstruction(x=15, y=46, text=f"Invoice No. : {invoice_number(invoice.month)}"),
        TextInstruction(
            x=right, y=46, text=f"Invoice Date : {invoice_date.strftime('%d/%m/%Y')}",
            align=Alignment.RIGHT,
        ),
        TextInstruction(x=15, y=52, text="Party Name", font_style=FontStyle.BOLD),
        TextInstruction(x=36, y=52, text=f"  {customer.name}", font_style=FontStyle.BOLD),
        TextInstruction(x=15, y=57, text="Address"),
    ]

    address_lines = _wrap(customer.address, width - 50, 10)
    out.append(TextInstruction(x=36, y=57, text=address_lines, font_style=FontStyle.BOLD))

    current_y = 57 + len(address_lines) * 5
    out.extend([
        TextInstruction(
            x=15, y=current_y, text=f"GSTIN No. : {customer.gstin}",
            font_style=FontStyle.BOLD,
        ),
        TextInstruction(
            x=115, y=current_y, text=f"State : {customer.state}",
            font_style=FontStyle.BOLD,
        ),
        TextInstruction(
            x=right, y=current_y, text=f"State Code {customer.state_code}",
            font_style=FontStyle.BOLD, align=Alignment.RIGHT,
        ),
    ])
    current_y += 3
    out.append(LineInstruction(x1=MARGIN, y1=current_y, x2=width - MARGIN, y2=current_y))

    table_y = current_y + 2
    out.append(TableInstruction(
        y=table_y,
        columns=[
            TableColumn(header="Date", width=15, align=Alignment.CENTER),
            TableColumn(header="Challan\nNo.", width=18, align=Alignment.CENTER),
            TableColumn(header="Lorry No.", width=28, align=Alignment.CENTER, bold=True),
            TableColumn(header="DESCRIPTION"),
            TableColumn(header="Quantity", width=18, align=Alignment.CENTER),
            TableColumn(header="RATE", width=20, align=Alignment.CENTER),
            TableColumn(header="Amount\nRs.", width=30, align=Alignment.RIGHT),
        ],
        rows=[
            [
                "",
                "",
                row.vehicle_number,
                row.description,
                f"{row.quantity:.2f}",
                format_whole(row.rate),
                format_whole(row.amount),
            ]
            for row in invoice.rows
        ],
        highlighted_rows=[i for i, row in enumerate(invoice.rows) if row.rate_missing],
    ))

    footer_top = _estimated_table_bottom(table_y, len(invoice.rows))
    if footer_top > FOOTER_PAGE_LIMIT:
        out.append(PageBreakInstruction())
        footer_top = 20.0

    out.extend(_invoice_footer(invoice, company, footer_top))
    return DocumentLayout(
        instructions=out,
        filename=invoice_filename(invoice.category.value, invoice.month),
    )


def _invoice_footer(invoice: CompiledInvoice, company: PartyDetails, top: float) -> list:
    width = PAGE_WIDTH_MM
    split = FOOTER_SPLIT_X
    bottom = FOOTER_BOTTOM

    out: list = [
        RectInstruction(x=MARGIN, y=top, width=width - 2 * MARGIN, height=bottom - top),
        LineInstruction(x1=split, y1=top, x2=split, y2=bottom),
    ]

    # Left column: amount in words, bank details, declaration
    left_y = top + 5
    word_lines = _wrap(invoice.amount_in_words, split - 15, 9)
    out.extend([
        TextInstruction(x=12, y=left_y, text="Total Invoice Amount (Including GST)", font_size=9),
        TextInstruction(
            x=12, y=left_y + 5, text=word_lines, font_size=9,
            font_style=FontStyle.BOLD_ITALIC,
        ),
    ])
    left_y += 15 + len(word_lines) * 4
    out.append(LineInstruction(x1=MARGIN, y1=left_y, x2=split, y2=left_y))

    left_y += 5
    out.extend([
        TextInstruction(x=12, y=left_y, text="Bank Details", font_size=9, font_style=FontStyle.BOLD),
        TextInstruction(
            x=12, y=left_y + 5, font_size=9,
            text=[
                f"Bank Name : {company.bank_name or ''}",
                f"A/C No. : {company.account_number or ''}",
                f"IFSC Code : {company.ifsc or ''}",
            ],
        ),
    ])

    declaration_y = bottom - 35
    out.extend([
        LineInstruction(x1=MARGIN, y1=declaration_y, x2=split, y2=declaration_y),
        TextInstruction(
            x=12, y=declaration_y + 4, font_size=7,
            text=[
                "DECLARATION:",
                "1) I/We Declare that this Invoice shows actual price of the goods and/",
                "or services described and that all particulars are true and correct.",
                "2) Error and Omission Excepted.",
                "3) Subject to Kalyan Jurisdiction",
            ],
        ),
    ])

    # Right column: totals
    tax = invoice.tax
    totals = [
        ("TOTAL", format_whole(invoice.subtotal)),
        (f"SGST {format_percent(tax.sgst_percent)}%", format_whole(tax.rounded_sgst)),
        (f"CGST {format_percent(tax.cgst_percent)}%", format_whole(tax.rounded_cgst)),
        ("Round Off", format_whole(invoice.round_off)),
        ("G. TOTAL", format_whole(invoice.grand_total)),
    ]
    right_y = top
    for label, value in totals:
        out.extend([
            TextInstruction(x=split + 2, y=right_y + 5.5, text=label, font_style=FontStyle.BOLD),
            TextInstruction(
                x=width - 12, y=right_y + 5.5, text=value, align=Alignment.RIGHT,
                font_style=FontStyle.BOLD if label == "G. TOTAL" else FontStyle.NORMAL,
            ),
            LineInstruction(
                x1=split, y1=right_y + FOOTER_ROW_HEIGHT,
                x2=width - MARGIN, y2=right_y + FOOTER_ROW_HEIGHT,
            ),
        ])
        right_y += FOOTER_ROW_HEIGHT

    # Signatures
    out.extend([
        TextInstruction(
            x=width - 35, y=bottom - 25, text=f"FOR {company.name}", font_size=9,
            font_style=FontStyle.BOLD, align=Alignment.CENTER,
        ),
        TextInstruction(
            x=width - 35, y=bottom - 5, text="Auth. Signatory", font_size=9,
            font_style=FontStyle.BOLD, align=Alignment.CENTER,
        ),
        LineInstruction(x1=split + 5, y1=bottom - 5, x2=split + 45, y2=bottom - 5),
        TextInstruction(x=split + 5, y=bottom - 5, text="Rec. Sign.", font_size=9),
    ])
    return out


# =============================================================================
# LEDGER STATEMENT
# =============================================================================

def build_ledger_layout(
    rows: Iterable[LedgerRow],
    period_label: str,
    client_name: str = "Arihant Superstructures Ltd",
    site_name: str = "Arihant Aaradhya",
    company_name: str = "JAY MALHAR ENTERPRISES",
) -> DocumentLayout:
    """Lay out a ledger statement: branded header, rows, then totals."""
    statement = LedgerStatement(rows=list(rows))
    center = PAGE_WIDTH_MM / 2

    out: list = [
        RectInstruction(x=0, y=0, width=PAGE_WIDTH_MM, height=40, fill=BRAND_BLUE, stroke=False),
        TextInstruction(
            x=center, y=18, text=company_name, font_size=22,
            font_style=FontStyle.BOLD, align=Alignment.CENTER, color=WHITE,
        ),
        TextInstruction(
            x=center, y=26, text="Supply Chain & Material Management",
            align=Alignment.CENTER, color=WHITE,
        ),
        TextInstruction(
            x=center, y=55, text="CLIENT LEDGER STATEMENT", font_size=16,
            align=Alignment.CENTER,
        ),
        TextInstruction(x=15, y=65, text=f"Client: {client_name}"),
        TextInstruction(x=15, y=70, text=f"Site: {site_name}"),
        TextInstruction(x=140, y=65, text=f"Period: {period_label}"),
    ]

    table_y = 75.0
    out.append(TableInstruction(
        y=table_y,
        columns=[
            TableColumn(header="Date", width=20),
            TableColumn(header="Particulars"),
            TableColumn(header="Vch Type"),
            TableColumn(header="Vch No."),
            TableColumn(header="Debit (Received)", width=30, align=Alignment.RIGHT, color=GREEN),
            TableColumn(header="Credit (Billed)", width=30, align=Alignment.RIGHT, color=RED),
        ],
        rows=[
            [
                row.date,
                row.particulars,
                row.voucher_type,
                row.voucher_number,
                format_indian(row.debit) if row.debit > 0 else "-",
                format_indian(row.credit) if row.credit > 0 else "-",
            ]
            for row in statement.rows
        ],
        font_size=8,
        header_fill=DARK_SLATE,
        header_text_color=WHITE,
        striped=True,
    ))

    totals_y = _estimated_table_bottom(table_y, len(statement.rows)) + 10
    if totals_y > FOOTER_BOTTOM - 20:
        out.append(PageBreakInstruction())
        totals_y = 20.0

    label_x, value_x = 120, 195
    out.extend([
        TextInstruction(x=label_x, y=totals_y, text="Total Billed (Credit):"),
        TextInstruction(
            x=value_x, y=totals_y, text=format_indian(statement.total_billed),
            align=Alignment.RIGHT,
        ),
        TextInstruction(x=label_x, y=totals_y + 6, text="Total Received (Debit):"),
        TextInstruction(
            x=value_x, y=totals_y + 6, text=format_indian(statement.total_received),
            align=Alignment.RIGHT,
        ),
        TextInstruction(
            x=label_x, y=totals_y + 16, text="Closing Balance:", font_size=12,
            font_style=FontStyle.BOLD,
        ),
        TextInstruction(
            x=value_x, y=totals_y + 16, text=format_indian(statement.closing_balance),
            font_size=12, font_style=FontStyle.BOLD, align=Alignment.RIGHT,
        ),
    ])

    return DocumentLayout(
        instructions=out,
        filename=ledger_filename(client_name, period_label),
    )
