"""
Price resolution for a customer, service and vehicle size.

A live customer-specific override beats the service's standard tier
price. When neither exists the resolver returns None, which callers must
treat as "quote required" and never as zero. All amounts are integer
pence including VAT.
"""

import logging
from datetime import date, datetime
from fractions import Fraction
from typing import Iterable, Optional, Union

from booking_engine.config import TIE_BREAK_POLICIES, settings
from booking_engine.errors import ValidationError
from booking_engine.schemas.catalog_schema import AddOn, CustomerPriceOverride, VehicleSize
from booking_engine.schemas.pricing_schema import (
    PriceQuote,
    PriceSource,
    ResolvedPrice,
    VatBreakdown,
)
from booking_engine.stores.protocols import AddOnCatalog, PricingStore, guarded_call
from booking_engine.utils import round_half_up

logger = logging.getLogger(__name__)


def normalize_vehicle_size(size: Union[str, VehicleSize]) -> VehicleSize:
    """Map a car's size category ("Small", "XL", ...) onto a pricing tier key."""
    if isinstance(size, VehicleSize):
        return size
    try:
        return VehicleSize(str(size).strip().lower())
    except ValueError:
        raise ValidationError("vehicle_size", f"unknown size category {size!r}") from None


def _rate(rate: Optional[float]) -> Fraction:
    # str() keeps 0.2 as exactly 1/5 instead of its binary approximation
    return Fraction(str(settings.pricing.vat_rate if rate is None else rate))


def decompose_vat(total_inc_vat: int, rate: Optional[float] = None) -> VatBreakdown:
    """Split a VAT-inclusive total so that ex_vat + vat == inc_vat exactly."""
    if isinstance(total_inc_vat, bool) or not isinstance(total_inc_vat, int):
        raise ValidationError("total", f"must be whole pence, got {total_inc_vat!r}")
    ex_vat = round_half_up(Fraction(total_inc_vat) / (1 + _rate(rate)))
    return VatBreakdown(ex_vat=ex_vat, vat=total_inc_vat - ex_vat, inc_vat=total_inc_vat)


def add_vat(price_ex_vat: int, rate: Optional[float] = None) -> int:
    return round_half_up(Fraction(price_ex_vat) * (1 + _rate(rate)))


def calculate_vat(price_ex_vat: int, rate: Optional[float] = None) -> int:
    return round_half_up(Fraction(price_ex_vat) * _rate(rate))


def _most_recent_key(o: CustomerPriceOverride) -> tuple:
    created = o.created_at.timestamp() if o.created_at else float("-inf")
    return created, o.valid_until or date.max


def _latest_expiry_key(o: CustomerPriceOverride) -> tuple:
    created = o.created_at.timestamp() if o.created_at else float("-inf")
    return o.valid_until or date.max, created


class PriceResolver:
    """Resolves base prices and add-on totals against injected stores."""

    def __init__(
        self,
        pricing_store: PricingStore,
        add_on_catalog: Optional[AddOnCatalog] = None,
        vat_rate: Optional[float] = None,
        tie_break: Optional[str] = None,
    ) -> None:
        self._pricing = pricing_store
        self._add_ons = add_on_catalog
        self.vat_rate = settings.pricing.vat_rate if vat_rate is None else vat_rate
        self.tie_break = settings.pricing.override_tie_break if tie_break is None else tie_break
        if self.tie_break not in TIE_BREAK_POLICIES:
            raise ValueError(f"Unknown tie-break policy: {self.tie_break!r}")

    def _pick_override(self, rows: list[CustomerPriceOverride]) -> CustomerPriceOverride:
        if len(rows) > 1:
            logger.warning(
                "%d active overrides for %s/%s/%s, applying '%s'",
                len(rows), rows[0].customer_id, rows[0].service_id,
                rows[0].vehicle_size.value, self.tie_break,
            )
        if self.tie_break == "lowest_price":
            return min(rows, key=lambda o: o.price_incl_vat)
        if self.tie_break == "latest_expiry":
            return max(rows, key=_latest_expiry_key)
        return max(rows, key=_most_recent_key)

    def resolve_price(
        self,
        customer_id: Optional[str],
        service_id: str,
        vehicle_size: Union[str, VehicleSize],
        as_of: Optional[date] = None,
    ) -> Optional[ResolvedPrice]:
        """Return the applicable base price and its source, or None if unpriced."""
        size = normalize_vehicle_size(vehicle_size)
        if isinstance(as_of, datetime):
            as_of = as_of.date()
        as_of = as_of or date.today()

        if customer_id:
            rows = guarded_call(
                "pricing store", self._pricing.get_customer_override,
                customer_id, service_id, size.value, as_of,
            )
            # stores may return rows outside the requested key or date
            live = [
                o for o in rows
                if o.customer_id == customer_id
                and o.service_id == service_id
                and o.vehicle_size == size
                and o.is_active(as_of)
            ]
            if live:
                chosen = self._pick_override(live)
                logger.debug("Override price %d for %s/%s", chosen.price_incl_vat, customer_id, service_id)
                return ResolvedPrice(
                    amount=chosen.price_incl_vat,
                    source=PriceSource.OVERRIDE,
                    valid_until=chosen.valid_until,
                )

        standard = guarded_call(
            "pricing store", self._pricing.get_standard_price, service_id, size.value
        )
        if standard is None:
            logger.info("No price configured for %s (%s)", service_id, size.value)
            return None
        return ResolvedPrice(amount=standard, source=PriceSource.STANDARD)

    def resolve_base_price(
        self,
        customer_id: Optional[str],
        service_id: str,
        vehicle_size: Union[str, VehicleSize],
        as_of: Optional[date] = None,
    ) -> Optional[int]:
        resolved = self.resolve_price(customer_id, service_id, vehicle_size, as_of)
        return resolved.amount if resolved else None

    def _catalog(self, catalog: Optional[AddOnCatalog]) -> AddOnCatalog:
        catalog = catalog or self._add_ons
        if catalog is None:
            raise ValueError("No add-on catalog configured")
        return catalog

    def _fetch_add_ons(
        self, selected_add_on_ids: Iterable[str], catalog: Optional[AddOnCatalog] = None
    ) -> list[AddOn]:
        """Look each selected id up once. Unknown ids are skipped."""
        catalog = self._catalog(catalog)
        found = []
        for add_on_id in selected_add_on_ids:
            add_on = guarded_call("add-on catalog", catalog.get_by_id, add_on_id)
            if add_on is None:
                logger.debug("Add-on %s not in catalog, skipped", add_on_id)
                continue
            found.append(add_on)
        return found

    @staticmethod
    def _fixed_total(add_ons: Iterable[AddOn]) -> int:
        return sum(a.price_incl_vat or 0 for a in add_ons if not a.is_variable_price)

    def add_ons_total(
        self, selected_add_on_ids: Iterable[str], catalog: Optional[AddOnCatalog] = None
    ) -> int:
        """Sum of fixed add-on prices. Unknown ids and POA add-ons add nothing."""
        return self._fixed_total(self._fetch_add_ons(selected_add_on_ids, catalog))

    def poa_add_ons(
        self, selected_add_on_ids: Iterable[str], catalog: Optional[AddOnCatalog] = None
    ) -> list[str]:
        """Selected add-ons that must be priced by hand."""
        return [a.id for a in self._fetch_add_ons(selected_add_on_ids, catalog) if a.is_variable_price]

    def decompose_vat(self, total_inc_vat: int, rate: Optional[float] = None) -> VatBreakdown:
        return decompose_vat(total_inc_vat, self.vat_rate if rate is None else rate)

    def quote(
        self,
        customer_id: Optional[str],
        service_id: str,
        vehicle_size: Union[str, VehicleSize],
        add_on_ids: Iterable[str] = (),
        as_of: Optional[date] = None,
    ) -> Optional[PriceQuote]:
        """Base price, add-ons and VAT split for a job, or None if the base is unpriced."""
        resolved = self.resolve_price(customer_id, service_id, vehicle_size, as_of)
        if resolved is None:
            return None
        add_on_ids = list(add_on_ids)
        add_ons = self._fetch_add_ons(add_on_ids) if add_on_ids else []
        add_ons_total = self._fixed_total(add_ons)
        total = resolved.amount + add_ons_total
        return PriceQuote(
            base_price=resolved.amount,
            base_source=resolved.source,
            add_ons_total=add_ons_total,
            total_price=total,
            vat=self.decompose_vat(total),
            poa_add_on_ids=[a.id for a in add_ons if a.is_variable_price],
        )
