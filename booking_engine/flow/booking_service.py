"""
Job creation and edit flows built on the booking engine.

Ordering within one attempt is fixed: resolve the price, size the
appointment, then check the calendar. The conflict window ends at start
plus the resolved duration. A job is never persisted with an unresolved
price or an unacknowledged conflict.

Usage:
    service = BookingService(resolver, checker, job_store, catalog)
    gate = service.new_gate()
    outcome = await service.create_job(request, gate)
    if outcome.status == BookingStatus.CONFLICT:
        outcome = service.force_book(outcome.draft, gate)   # or service.cancel(gate)
"""

from datetime import date
from typing import Optional

from booking_engine.engine.conflicts import ConflictChecker
from booking_engine.engine.duration import DurationNormalizer
from booking_engine.engine.pricing import PriceResolver, normalize_vehicle_size
from booking_engine.errors import ValidationError
from booking_engine.flow.gate import ConflictGate, GateTrigger
from booking_engine.logging_context import get_attempt_logger, new_attempt_id, set_attempt_id
from booking_engine.schemas.catalog_schema import Service
from booking_engine.schemas.job_schema import (
    BookingOutcome,
    BookingStatus,
    JobChanges,
    JobDraft,
    JobRecord,
    JobRequest,
)
from booking_engine.schemas.pricing_schema import PriceQuote, PriceSource
from booking_engine.stores.protocols import JobStore, ServiceCatalog, guarded_call
from booking_engine.utils import format_price

logger = get_attempt_logger(__name__)


class BookingService:
    """Orchestrates pricing, sizing, the conflict gate and persistence."""

    def __init__(
        self,
        resolver: PriceResolver,
        checker: ConflictChecker,
        job_store: JobStore,
        services: ServiceCatalog,
        normalizer: Optional[DurationNormalizer] = None,
    ) -> None:
        self._resolver = resolver
        self._checker = checker
        self._jobs = job_store
        self._services = services
        self._normalizer = normalizer or DurationNormalizer()

    def new_gate(self) -> ConflictGate:
        """Start a new booking attempt with its own correlation id."""
        set_attempt_id(new_attempt_id())
        return ConflictGate(self._checker)

    # ------------------------------------------------------------------ #
    # Shared helpers
    # ------------------------------------------------------------------ #

    def _get_service(self, service_id: str) -> Service:
        service = guarded_call("service catalog", self._services.get_service, service_id)
        if service is None:
            raise ValidationError("service_id", f"unknown service {service_id!r}")
        return service

    def _quote(
        self,
        service: Service,
        customer_id: str,
        size_category: str,
        add_on_ids: list[str],
        as_of: Optional[date],
    ) -> Optional[PriceQuote]:
        quote = self._resolver.quote(customer_id, service.id, size_category, add_on_ids, as_of)
        if quote is None:
            return None
        if service.requires_quote and quote.base_source != PriceSource.OVERRIDE:
            logger.info("Service %s requires a quote", service.id)
            return None
        return quote

    def _size(
        self, service: Service, value, unit: Optional[str]
    ) -> tuple[int, str]:
        """Minutes and editor unit, defaulting to the service's stored duration."""
        if value is None:
            minutes = self._normalizer.clamp(service.duration_minutes)
            chosen = self._normalizer.coerce_unit(unit) if unit else self._normalizer.infer_default_unit(minutes)
            return minutes, chosen.value
        chosen = (
            self._normalizer.coerce_unit(unit)
            if unit
            else self._normalizer.infer_default_unit(service.duration_minutes)
        )
        return self._normalizer.to_minutes(value, chosen), chosen.value

    @staticmethod
    def _check_deposit(deposit: Optional[int], total: int) -> None:
        if deposit is None:
            return
        if deposit < 0:
            raise ValidationError("deposit_amount", "must not be negative")
        if deposit > total:
            raise ValidationError(
                "deposit_amount",
                f"{format_price(deposit)} exceeds the total {format_price(total)}",
            )

    @staticmethod
    def _quote_required(service: Service) -> BookingOutcome:
        return BookingOutcome(
            success=False,
            status=BookingStatus.QUOTE_REQUIRED,
            message=f"No price available for {service.name}. A quote is required.",
        )

    # ------------------------------------------------------------------ #
    # Create / edit preparation
    # ------------------------------------------------------------------ #

    def prepare(self, request: JobRequest) -> BookingOutcome:
        """Price and size a new job. Returns READY with a draft, or QUOTE_REQUIRED."""
        service = self._get_service(request.service_id)
        size = normalize_vehicle_size(request.size_category)

        quote = self._quote(
            service, request.customer_id, size.value, request.add_on_ids, request.as_of
        )
        if quote is None:
            return self._quote_required(service)

        minutes, unit = self._size(service, request.duration_value, request.duration_unit)
        self._check_deposit(request.deposit_amount, quote.total_price)

        record = JobRecord(
            customer_id=request.customer_id,
            car_id=request.car_id,
            service_id=service.id,
            vehicle_size=size,
            booking_datetime=request.booking_datetime,
            duration_minutes=minutes,
            base_price=quote.base_price,
            total_price=quote.total_price,
            deposit_amount=request.deposit_amount,
            add_on_ids=list(request.add_on_ids),
        )
        return BookingOutcome(
            success=True,
            status=BookingStatus.READY,
            message=f"{service.name}: {format_price(quote.total_price)}",
            draft=JobDraft(record=record, quote=quote, duration_unit=unit),
        )

    def prepare_edit(self, job_id: str, changes: JobChanges) -> BookingOutcome:
        """
        Apply form changes to an existing job.

        Changing the service or car re-runs pricing and resets the duration
        to the new service's default unless a duration is supplied.
        Changing only the time or duration keeps the stored prices.
        """
        existing = guarded_call("job store", self._jobs.get, job_id)
        if existing is None:
            raise ValidationError("job_id", f"unknown job {job_id!r}")

        service_id = changes.service_id or existing.service_id
        size = (
            normalize_vehicle_size(changes.size_category)
            if changes.size_category is not None
            else existing.vehicle_size
        )
        add_on_ids = existing.add_on_ids if changes.add_on_ids is None else changes.add_on_ids
        service_changed = service_id != existing.service_id
        repriced = service_changed or size != existing.vehicle_size or add_on_ids != existing.add_on_ids

        service = self._get_service(service_id)
        quote: Optional[PriceQuote] = None
        base_price, total_price = existing.base_price, existing.total_price
        if repriced:
            quote = self._quote(service, existing.customer_id, size.value, add_on_ids, changes.as_of)
            if quote is None:
                return self._quote_required(service)
            base_price, total_price = quote.base_price, quote.total_price

        if changes.duration_value is not None or service_changed:
            minutes, unit = self._size(service, changes.duration_value, changes.duration_unit)
        else:
            minutes = existing.duration_minutes
            shown = changes.duration_unit or self._normalizer.infer_default_unit(minutes)
            unit = self._normalizer.coerce_unit(shown).value

        deposit = (
            existing.deposit_amount if changes.deposit_amount is None else changes.deposit_amount
        )
        self._check_deposit(deposit, total_price)

        record = existing.model_copy(update={
            "car_id": changes.car_id or existing.car_id,
            "service_id": service_id,
            "vehicle_size": size,
            "booking_datetime": changes.booking_datetime or existing.booking_datetime,
            "duration_minutes": minutes,
            "base_price": base_price,
            "total_price": total_price,
            "deposit_amount": deposit,
            "add_on_ids": list(add_on_ids),
        })
        return BookingOutcome(
            success=True,
            status=BookingStatus.READY,
            message=f"{service.name}: {format_price(total_price)}",
            job_id=job_id,
            draft=JobDraft(record=record, quote=quote, duration_unit=unit, job_id=job_id),
        )

    # ------------------------------------------------------------------ #
    # Gate and persistence
    # ------------------------------------------------------------------ #

    def _persist(self, draft: JobDraft) -> BookingOutcome:
        if draft.job_id:
            job_id = guarded_call("job store", self._jobs.update, draft.job_id, draft.record)
            logger.info("Job %s updated", job_id)
            return BookingOutcome(
                success=True, status=BookingStatus.UPDATED, job_id=job_id, draft=draft,
                message=f"Job {job_id} updated.",
            )
        job_id = guarded_call("job store", self._jobs.insert, draft.record)
        logger.info("Job %s booked for %s", job_id, draft.record.booking_datetime.isoformat())
        return BookingOutcome(
            success=True, status=BookingStatus.BOOKED, job_id=job_id, draft=draft,
            message=f"Job {job_id} booked.",
        )

    async def submit(self, draft: JobDraft, gate: ConflictGate) -> BookingOutcome:
        """Run the conflict gate for a prepared draft and persist it when clear."""
        record = draft.record
        conflicts = await gate.check(record.booking_datetime, draft.end_datetime, draft.job_id)
        if conflicts is None:
            return BookingOutcome(
                success=False, status=BookingStatus.CANCELLED, draft=draft,
                message="Booking attempt was cancelled.",
            )
        if conflicts:
            return BookingOutcome(
                success=False, status=BookingStatus.CONFLICT, draft=draft,
                conflicts=conflicts, job_id=draft.job_id,
                message=f"{len(conflicts)} calendar conflict(s) found. Confirm to book anyway.",
            )
        try:
            outcome = self._persist(draft)
        except Exception:
            gate.persist_failed()
            raise
        gate.commit()
        return outcome

    def force_book(self, draft: JobDraft, gate: ConflictGate) -> BookingOutcome:
        """
        Persist a conflicted draft after the user confirmed the clash.

        The gate stays conflicted until the write succeeds, so a failed
        write can be retried without checking the calendar again.
        """
        gate.require(GateTrigger.FORCE_BOOK)
        outcome = self._persist(draft)
        gate.force_book()
        return outcome

    def cancel(self, gate: ConflictGate) -> BookingOutcome:
        gate.cancel()
        return BookingOutcome(
            success=False, status=BookingStatus.CANCELLED, message="Booking attempt was cancelled."
        )

    async def create_job(self, request: JobRequest, gate: ConflictGate) -> BookingOutcome:
        """Prepare and submit a new job in one step."""
        prepared = self.prepare(request)
        if prepared.status != BookingStatus.READY:
            return prepared
        return await self.submit(prepared.draft, gate)

    async def edit_job(self, job_id: str, changes: JobChanges, gate: ConflictGate) -> BookingOutcome:
        """Prepare and submit an edit in one step."""
        prepared = self.prepare_edit(job_id, changes)
        if prepared.status != BookingStatus.READY:
            return prepared
        return await self.submit(prepared.draft, gate)

    def delete_job(self, job_id: str) -> bool:
        """Remove a job. Calendar cleanup is the job store's concern."""
        deleted = guarded_call("job store", self._jobs.delete, job_id)
        if deleted:
            logger.info("Job %s deleted", job_id)
        return deleted
