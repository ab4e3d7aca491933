"""
Core Data Models for Supply Ledger

These models define the strict schemas for all data flowing through the
engine: delivery (challan) records, client ledger rows, compiled invoices
and import previews.

DESIGN DECISION: Money on invoices is Decimal. Quantities and rates arrive
as user input or spreadsheet floats, so they are converted through str()
before any arithmetic to keep totals reproducible.
"""

import re
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class MaterialType(str, Enum):
    """
    Materials and services the supplier delivers.

    Stored records keep the plain string value; these members are the
    catalog keys used by the billing tables.
    """
    WASHSAND = "Washsand"
    CRUSHSAND = "Crushsand"
    METAL1 = "Metal 1"
    METAL2 = "Metal 2"
    METAL4 = "Metal 4"
    RUBBLE = "Rubble"
    GSB = "GSB"
    CONSTRUCTION_WATER = "Construction Water"
    DRINKING_WATER = "Drinking Water"
    BORING_WATER = "Boring Water"
    DRINKING_JAR = "Drinking Jar (20L)"
    JCB = "JCB"
    DUMPER = "Dumper"


class InvoiceCategory(str, Enum):
    """Billing classification. Drives which GST rates apply."""
    BUILDING_MATERIAL = "Building Material"
    WATER_SUPPLY = "Water Supply"
    MACHINERY = "Machinery"


class UserRole(str, Enum):
    """Role of the acting user, consumed as input for privileged operations."""
    ADMIN = "ADMIN"
    USER = "USER"


class SkipReason(str, Enum):
    """Why an uploaded ledger row was left out of the import."""
    HEADER_FOOTER = "header_footer"
    UNPARSED_DATE = "unparsed_date"
    BLANK = "blank"
    INVALID = "invalid"


MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

WHOLE_UNIT = Decimal("1")


def round_whole(value: Decimal) -> Decimal:
    """Round half-up to whole rupees (display rounding)."""
    return value.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """Convert a float/int/str to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# =============================================================================
# DELIVERY RECORDS
# =============================================================================

class DeliveryRecord(BaseModel):
    """
    One material delivery tied to a challan number.

    Created, edited and deleted by the entry workflow. The invoice
    category is NEVER stored here - it is looked up from the material.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    # No Field() default here: the assignment would shadow the `date` type
    date: date
    challan_number: str = Field(
        default="",
        max_length=50,
        description="Delivery challan number, e.g. JME/2025/014"
    )
    material: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Material delivered (MaterialType value)"
    )
    quantity: Decimal = Field(
        ...,
        ge=0,
        description="Quantity in the material's unit"
    )
    unit: str = Field(
        default="",
        max_length=20,
        description="Unit of measurement (Brass, Tanker, Jars, Hours)"
    )
    vehicle_number: Optional[str] = Field(
        default=None,
        max_length=30,
        description="Lorry / vehicle registration"
    )
    site_name: str = Field(
        default="",
        max_length=200
    )
    phase: Optional[str] = Field(
        default=None,
        max_length=50
    )
    created_by: str = Field(
        default="",
        max_length=100
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    @field_validator('material', mode='before')
    @classmethod
    def material_as_plain_string(cls, v: Any) -> Any:
        """Accept MaterialType members but store their string value."""
        if isinstance(v, Enum):
            return v.value
        return v

    @property
    def month(self) -> str:
        """Delivery month as YYYY-MM."""
        return self.date.strftime("%Y-%m")


# =============================================================================
# CLIENT LEDGER
# =============================================================================

class LedgerClassification(BaseModel):
    """Classification derived from the particulars text. Never stored."""

    entry_type: str
    bank_name: Optional[str] = None


_TRANSFER_KEYWORDS = ("NEFT", "RTGS", "IMPS", "CHQ", "CHEQUE", "UPI", "PAYMENT", "RECEIPT")

# "Federal Bank Ltd (Payment)"
_SUFFIX_TYPE = re.compile(r"^(?P<bank>.+?)\s*\((?P<type>[^()]+)\)\s*$")
# "RTGS: Federal Bank Ltd" / "Cheque - Federal Bank Ltd"
_PREFIX_TYPE = re.compile(r"^(?P<type>[A-Za-z]+)\s*(?::|-)\s*(?P<bank>.+)$")


def classify_particulars(particulars: str, voucher_type: str = "") -> LedgerClassification:
    """
    Derive (type, bank name) from the particulars prefix convention.

    Falls back to the voucher type with no bank.
    """
    text = (particulars or "").strip()

    match = _SUFFIX_TYPE.match(text)
    if match and "bank" in match.group("bank").lower():
        return LedgerClassification(
            entry_type=match.group("type").strip(),
            bank_name=match.group("bank").strip(),
        )

    match = _PREFIX_TYPE.match(text)
    if match and match.group("type").upper() in _TRANSFER_KEYWORDS:
        return LedgerClassification(
            entry_type=match.group("type").strip(),
            bank_name=match.group("bank").strip(),
        )

    return LedgerClassification(entry_type=(voucher_type or "").strip() or "Other")


class LedgerRow(BaseModel):
    """
    One line of the client's billing/payment statement.

    Created only through bulk import (full replace). Debit is money
    received, credit is money billed; both are independent and default 0.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[UUID] = None
    date: str = Field(
        ...,
        description="ISO date (YYYY-MM-DD)"
    )
    particulars: str = Field(
        default="",
        max_length=500
    )
    voucher_type: str = Field(
        default="",
        max_length=50
    )
    voucher_number: str = Field(
        default="",
        max_length=50
    )
    debit: float = Field(
        default=0.0,
        ge=0,
        description="Amount received"
    )
    credit: float = Field(
        default=0.0,
        ge=0,
        description="Amount billed"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Memo / narration"
    )
    dr_cr: Optional[str] = Field(
        default=None,
        max_length=5
    )
    account_name: Optional[str] = Field(
        default=None,
        max_length=200
    )

    @property
    def classification(self) -> LedgerClassification:
        """Recomputed on every read from the particulars text."""
        return classify_particulars(self.particulars, self.voucher_type)

    @property
    def month(self) -> str:
        return self.date[:7]


class SkippedRow(BaseModel):
    """An uploaded row dropped by import policy, kept for the user to review."""

    row_index: int = Field(
        ...,
        ge=0,
        description="Zero-based index in the uploaded table"
    )
    reason: SkipReason
    values: dict[str, Any] = Field(
        default_factory=dict,
        description="The raw row as uploaded"
    )
    detail: Optional[str] = Field(
        default=None,
        description="Which field was rejected, for INVALID rows"
    )


class ColumnMapping(BaseModel):
    """Column label chosen for each semantic ledger field."""

    date: str
    particulars: str
    voucher_type: str
    voucher_number: str
    debit: str
    credit: str
    dr_cr: str
    account_name: str
    description: str


class LedgerImportPreview(BaseModel):
    """
    Normalized import result awaiting explicit confirmation.

    CRITICAL: Nothing has been written to storage yet.
    """

    import_id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    source_filename: Optional[str] = None

    rows: list[LedgerRow] = Field(default_factory=list)
    skipped_rows: list[SkippedRow] = Field(default_factory=list)
    total_input_rows: int = Field(default=0, ge=0)
    column_mapping: Optional[ColumnMapping] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def total_debit(self) -> float:
        return sum(row.debit for row in self.rows)

    @property
    def total_credit(self) -> float:
        return sum(row.credit for row in self.rows)

    def skipped_by_reason(self, reason: SkipReason) -> list[SkippedRow]:
        return [row for row in self.skipped_rows if row.reason == reason]


# =============================================================================
# INVOICE MODELS
# =============================================================================

class InvoiceLineItem(BaseModel):
    """A single delivery priced for the invoice."""

    record_id: Optional[UUID] = None
    date: date
    challan_number: str = ""
    vehicle_number: str = "-"
    description: str
    quantity: Decimal = Field(ge=0)
    rate: Decimal = Field(ge=0)
    amount: Decimal = Field(ge=0)
    rate_missing: bool = Field(
        default=False,
        description="No rate configured for this material; amount forced to 0"
    )


class GroupedInvoiceRow(BaseModel):
    """Line items merged by (vehicle, material). This is what gets printed."""

    vehicle_number: str
    description: str
    quantity: Decimal = Field(ge=0)
    rate: Decimal = Field(ge=0)
    amount: Decimal = Field(ge=0)
    member_count: int = Field(default=1, ge=1)
    rate_missing: bool = False


class TaxBreakdown(BaseModel):
    """
    GST split for an invoice.

    Amounts are kept unrounded; the rounded_* properties are what the
    document shows.
    """

    exempt: bool = False
    sgst_percent: Decimal = Decimal("0")
    cgst_percent: Decimal = Decimal("0")
    sgst_amount: Decimal = Decimal("0")
    cgst_amount: Decimal = Decimal("0")

    @property
    def rounded_sgst(self) -> Decimal:
        return round_whole(self.sgst_amount)

    @property
    def rounded_cgst(self) -> Decimal:
        return round_whole(self.cgst_amount)

    @property
    def total_tax(self) -> Decimal:
        return self.sgst_amount + self.cgst_amount


class CompiledInvoice(BaseModel):
    """
    A monthly invoice for one category, computed on demand.

    An empty invoice (no matching deliveries) is a valid value; callers
    must check is_empty before rendering it.
    """

    month: str = Field(
        ...,
        pattern=MONTH_PATTERN,
        description="Billing period as YYYY-MM"
    )
    category: InvoiceCategory
    compiled_at: datetime = Field(default_factory=datetime.utcnow)

    line_items: list[InvoiceLineItem] = Field(default_factory=list)
    rows: list[GroupedInvoiceRow] = Field(default_factory=list)

    subtotal: Decimal = Decimal("0")
    tax: TaxBreakdown = Field(default_factory=TaxBreakdown)
    round_off: Decimal = Field(
        default=Decimal("0"),
        description="Always 0; kept as a visible invoice line"
    )
    grand_total: Decimal = Field(
        default=Decimal("0"),
        description="Subtotal plus rounded tax, rounded to whole units"
    )
    amount_in_words: str = "Zero"

    configuration_gaps: list[str] = Field(
        default_factory=list,
        description="Materials billed with no configured rate"
    )

    @property
    def is_empty(self) -> bool:
        return not self.line_items

    @property
    def rounded_subtotal(self) -> Decimal:
        return round_whole(self.subtotal)

    @property
    def has_configuration_gaps(self) -> bool:
        return bool(self.configuration_gaps)


class GeneratedInvoice(BaseModel):
    """Metadata of a rendered invoice that was saved to history."""

    id: UUID = Field(default_factory=uuid4)
    month: str = Field(..., pattern=MONTH_PATTERN)
    category: InvoiceCategory
    total_amount: Decimal = Field(ge=0)
    file_url: str = Field(
        ...,
        description="Where the rendered artifact was stored"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
