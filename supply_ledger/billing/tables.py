"""
Billing reference tables: price list, material catalog and GST rules.

DESIGN DECISION: The tables are a VALUE (BillingTables) handed to the
compiler, not globals the compiler reaches for. Each call to
default_billing_tables() builds a fresh copy from the constants below,
so a test or a user override never leaks into another invoice.

Lookups are keyed by the plain string value of the material/category.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, Field

from supply_ledger.models.records import InvoiceCategory, MaterialType, to_decimal


def _key(value: Union[str, Enum]) -> str:
    return value.value if isinstance(value, Enum) else str(value).strip()


DEFAULT_RATES: dict[str, str] = {
    MaterialType.METAL1.value: "2650",
    MaterialType.METAL2.value: "2650",
    MaterialType.METAL4.value: "2650",
    MaterialType.GSB.value: "2000",
    MaterialType.WASHSAND.value: "6600",
    MaterialType.CRUSHSAND.value: "3550",
    MaterialType.RUBBLE.value: "2200",
    MaterialType.DUMPER.value: "7000",
    MaterialType.JCB.value: "1000",
    MaterialType.CONSTRUCTION_WATER.value: "1400",
    MaterialType.DRINKING_WATER.value: "1900",
    MaterialType.BORING_WATER.value: "1400",
    MaterialType.DRINKING_JAR.value: "40",
}

MATERIAL_CATEGORIES: dict[str, InvoiceCategory] = {
    MaterialType.WASHSAND.value: InvoiceCategory.BUILDING_MATERIAL,
    MaterialType.CRUSHSAND.value: InvoiceCategory.BUILDING_MATERIAL,
    MaterialType.METAL1.value: InvoiceCategory.BUILDING_MATERIAL,
    MaterialType.METAL2.value: InvoiceCategory.BUILDING_MATERIAL,
    MaterialType.METAL4.value: InvoiceCategory.BUILDING_MATERIAL,
    MaterialType.RUBBLE.value: InvoiceCategory.BUILDING_MATERIAL,
    MaterialType.GSB.value: InvoiceCategory.BUILDING_MATERIAL,
    MaterialType.CONSTRUCTION_WATER.value: InvoiceCategory.WATER_SUPPLY,
    MaterialType.DRINKING_WATER.value: InvoiceCategory.WATER_SUPPLY,
    MaterialType.BORING_WATER.value: InvoiceCategory.WATER_SUPPLY,
    MaterialType.DRINKING_JAR.value: InvoiceCategory.WATER_SUPPLY,
    MaterialType.JCB.value: InvoiceCategory.MACHINERY,
    MaterialType.DUMPER.value: InvoiceCategory.MACHINERY,
}

MATERIAL_UNITS: dict[str, str] = {
    MaterialType.WASHSAND.value: "Brass",
    MaterialType.CRUSHSAND.value: "Brass",
    MaterialType.METAL1.value: "Brass",
    MaterialType.METAL2.value: "Brass",
    MaterialType.METAL4.value: "Brass",
    MaterialType.RUBBLE.value: "Brass",
    MaterialType.GSB.value: "Brass",
    MaterialType.CONSTRUCTION_WATER.value: "Tanker",
    MaterialType.DRINKING_WATER.value: "Tanker",
    MaterialType.BORING_WATER.value: "Tanker",
    MaterialType.DRINKING_JAR.value: "Jars",
    MaterialType.JCB.value: "Hours",
    MaterialType.DUMPER.value: "Hours",
}

# (SGST %, CGST %) per category
GST_RATES: dict[str, tuple[str, str]] = {
    InvoiceCategory.BUILDING_MATERIAL.value: ("2.5", "2.5"),
    InvoiceCategory.MACHINERY.value: ("9", "9"),
    InvoiceCategory.WATER_SUPPLY.value: ("0", "0"),
}


class TaxRule(BaseModel):
    """GST percentages for one category. Both zero means exempt."""

    sgst_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    cgst_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)

    @property
    def exempt(self) -> bool:
        return self.sgst_percent == 0 and self.cgst_percent == 0


class BillingTables(BaseModel):
    """Everything the invoice compiler needs to price and tax deliveries."""

    rates: dict[str, Decimal] = Field(default_factory=dict)
    categories: dict[str, InvoiceCategory] = Field(default_factory=dict)
    units: dict[str, str] = Field(default_factory=dict)
    tax_rules: dict[str, TaxRule] = Field(default_factory=dict)

    def category_for(self, material: Union[str, Enum]) -> Optional[InvoiceCategory]:
        """Category of a material, or None for materials outside the catalog."""
        return self.categories.get(_key(material))

    def unit_for(self, material: Union[str, Enum]) -> str:
        return self.units.get(_key(material), "")

    def rate_for(self, material: Union[str, Enum]) -> Optional[Decimal]:
        """Configured rate, or None when the price list has no entry."""
        return self.rates.get(_key(material))

    def tax_rule_for(self, category: Union[str, InvoiceCategory]) -> TaxRule:
        """
        GST rule for a category.

        A category with no rule is treated as exempt.
        """
        return self.tax_rules.get(_key(category), TaxRule())

    def materials_in(self, category: Union[str, InvoiceCategory]) -> list[str]:
        """All catalog materials billed under a category, in catalog order."""
        wanted = _key(category)
        return [
            material for material, cat in self.categories.items()
            if cat.value == wanted
        ]

    def with_rates(self, overrides: Mapping[Any, Any]) -> "BillingTables":
        """
        Copy of these tables with some rates replaced.

        Override values may be numbers or numeric strings.
        """
        merged = dict(self.rates)
        for material, rate in overrides.items():
            merged[_key(material)] = to_decimal(rate)
        return self.model_copy(update={"rates": merged})


def default_billing_tables() -> BillingTables:
    """Fresh tables built from the standard price list and GST rules."""
    return BillingTables(
        rates={material: Decimal(rate) for material, rate in DEFAULT_RATES.items()},
        categories=dict(MATERIAL_CATEGORIES),
        units=dict(MATERIAL_UNITS),
        tax_rules={
            category: TaxRule(sgst_percent=Decimal(sgst), cgst_percent=Decimal(cgst))
            for category, (sgst, cgst) in GST_RATES.items()
        },
    )
