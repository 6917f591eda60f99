import json
from dataclasses import dataclass
from datetime import date
from enum import Enum

import structlog
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from .availability import WeeklyAvailability, resolve_weekday
from .config import settings
from .db import begin_booking_transaction
from .errors import BookingError, Internal, NoRunnerAssigned, NoSlotAvailable, NotFound, SlotTaken, Unavailable
from .models import Apartment, PotentialTenant, Runner, Visit
from .rules import validate_booking, week_bounds
from .slots import find_slot, open_slots
from .store import VisitStore

logger = structlog.get_logger("visit_scheduler.booking")


class BookingState(str, Enum):
    LOADING = "loading"
    VALIDATED = "validated"
    SLOT_FOUND = "slot_found"
    COMMITTED = "committed"


@dataclass(frozen=True)
class BookingRequest:
    apartment_id: int
    tenant_id: int
    preferred_date: date


@dataclass
class BookingContext:
    apartment: Apartment
    runner: Runner
    tenant: PotentialTenant | None
    apartment_schedule: WeeklyAvailability
    runner_schedule: WeeklyAvailability
    visits_on_date: list[Visit]


def _parse_schedule(raw, owner: str, owner_id: int, day: date) -> WeeklyAvailability:
    """Ranges for the weekday of ``day`` only; a bad entry on another weekday does not matter here."""
    try:
        if isinstance(raw, (str, bytes)):
            raw = json.loads(raw)
        return WeeklyAvailability.parse(raw, strict=True, only=resolve_weekday(day))
    except ValueError as exc:
        raise Internal(
            f"Malformed availability for {owner} {owner_id}",
            details={"owner": owner, "owner_id": owner_id},
        ) from exc


def _load(
    store: VisitStore,
    apartment_id: int,
    day: date,
    tenant_id: int | None = None,
    lock: bool = False,
) -> BookingContext:
    apartment = store.get_apartment(apartment_id, lock=lock)
    tenant = store.get_tenant(tenant_id) if tenant_id is not None else None
    if apartment is None or (tenant_id is not None and tenant is None):
        raise NotFound(
            "Apartment or Tenant not found",
            details={"apartment_id": apartment_id, "tenant_id": tenant_id},
        )

    runner = store.get_runner_for_apartment(apartment.id, lock=lock)
    if runner is None:
        raise NoRunnerAssigned(
            "Runner not found for this apartment",
            details={"apartment_id": apartment.id},
        )

    return BookingContext(
        apartment=apartment,
        runner=runner,
        tenant=tenant,
        apartment_schedule=_parse_schedule(apartment.availability, "apartment", apartment.id, day),
        runner_schedule=_parse_schedule(runner.availability, "runner", runner.id, day),
        visits_on_date=store.list_apartment_visits(apartment.id, day),
    )


def _validate(store: VisitStore, ctx: BookingContext, day: date) -> None:
    week_start, week_end = week_bounds(day)
    weekly_count = store.count_apartment_visits(ctx.apartment.id, week_start, week_end)
    runner_zones = [zone for _visit, zone in store.list_runner_visits_with_zone(ctx.runner.id, day)]
    validate_booking(
        preferred_date=day,
        weekly_visit_count=weekly_count,
        apartment_zone=ctx.apartment.zone,
        runner_zones_on_date=runner_zones,
        max_visits_per_week=settings.MAX_VISITS_PER_WEEK,
    )


def _free_seat(visits: list[Visit], time_slot: str) -> int:
    taken = {int(v.seat) for v in visits if v.time_slot == time_slot}
    seat = 0
    while seat in taken:
        seat += 1
    return seat


def schedule_visit(db: Session, request: BookingRequest) -> Visit:
    """Book the earliest valid slot on the preferred date and return the stored visit.

    Everything runs in one write transaction: the apartment and runner rows are
    locked while the quota, zone and slot checks read the existing visits, and
    the insert commits in the same transaction. Nothing is written unless the
    whole sequence succeeds.
    """
    log = logger.bind(
        apartment_id=request.apartment_id,
        tenant_id=request.tenant_id,
        preferred_date=request.preferred_date.isoformat(),
    )
    state = BookingState.LOADING
    store = VisitStore(db)
    try:
        begin_booking_transaction(db)
        log.debug("booking_state", state=state.value)
        ctx = _load(store, request.apartment_id, request.preferred_date, request.tenant_id, lock=True)
        log = log.bind(runner_id=ctx.runner.id, zone=ctx.apartment.zone)

        _validate(store, ctx, request.preferred_date)
        state = BookingState.VALIDATED
        log.debug("booking_state", state=state.value)

        slot = find_slot(
            ctx.apartment_schedule,
            ctx.runner_schedule,
            [v.time_slot for v in ctx.visits_on_date],
            request.preferred_date,
        )
        if slot is None:
            raise NoSlotAvailable(
                "No available slots on the preferred date",
                details={"date": request.preferred_date.isoformat()},
            )
        state = BookingState.SLOT_FOUND
        log.debug("booking_state", state=state.value, time_slot=slot)

        visit = store.insert_visit(
            apartment_id=ctx.apartment.id,
            runner_id=ctx.runner.id,
            tenant_id=request.tenant_id,
            day=request.preferred_date,
            time_slot=slot,
            seat=_free_seat(ctx.visits_on_date, slot),
        )
        # Detach before commit so the returned row keeps its loaded columns.
        db.expunge(visit)
        db.commit()
        state = BookingState.COMMITTED
        log.info("visit_scheduled", state=state.value, visit_id=visit.id, time_slot=visit.time_slot)
        return visit
    except Internal as exc:
        db.rollback()
        log.error("booking_failed", state=state.value, code=exc.code, reason=exc.message, exc_info=True)
        raise
    except BookingError as exc:
        db.rollback()
        log.info("booking_rejected", state=state.value, code=exc.code, reason=exc.message)
        raise
    except IntegrityError as exc:
        db.rollback()
        log.warning("booking_slot_race_lost", state=state.value, error=str(exc.orig))
        raise SlotTaken(
            "The selected slot was booked concurrently, please retry",
            details={"date": request.preferred_date.isoformat()},
        ) from exc
    except (OperationalError, PoolTimeoutError) as exc:
        db.rollback()
        log.warning("booking_store_unavailable", state=state.value, error=str(exc))
        raise Unavailable("Visit store is temporarily unavailable, please retry") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("booking_store_error", state=state.value, error=str(exc), exc_info=True)
        raise Internal("Internal Server Error") from exc


def preview_open_slots(db: Session, apartment_id: int, day: date) -> tuple[Runner, list[tuple[str, int]]]:
    """Open slots for the apartment's runner on ``day`` without booking anything.

    Runs the same preconditions as a booking, so a day that could not be booked
    fails with the same error.
    """
    store = VisitStore(db)
    try:
        ctx = _load(store, apartment_id, day)
        _validate(store, ctx, day)
        slots = open_slots(
            ctx.apartment_schedule,
            ctx.runner_schedule,
            [v.time_slot for v in ctx.visits_on_date],
            day,
        )
    except (OperationalError, PoolTimeoutError) as exc:
        db.rollback()
        raise Unavailable("Visit store is temporarily unavailable, please retry") from exc
    return ctx.runner, slots
