"""Pricing results returned by the price resolver."""

from enum import Enum
from typing import Optional
from datetime import date

from pydantic import BaseModel, Field


class PriceSource(str, Enum):
    OVERRIDE = "override"
    STANDARD = "standard"


class ResolvedPrice(BaseModel):
    """The base price that applies and where it came from."""
    amount: int
    source: PriceSource
    valid_until: Optional[date] = None


class VatBreakdown(BaseModel):
    """A VAT-inclusive total split into its parts. ex_vat + vat == inc_vat."""
    ex_vat: int
    vat: int
    inc_vat: int


class PriceQuote(BaseModel):
    """Full price for a job: base service plus automatically priced add-ons."""
    base_price: int
    base_source: PriceSource
    add_ons_total: int = 0
    total_price: int
    vat: VatBreakdown
    poa_add_on_ids: list[str] = Field(default_factory=list)
