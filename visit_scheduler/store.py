from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import VISIT_STATUS_SCHEDULED, Apartment, PotentialTenant, Runner, RunnerApartment, Visit, utc_now_naive


class VisitStore:
    """Reads and writes the scheduler needs, bound to one session and its transaction."""

    def __init__(self, db: Session):
        self.db = db

    def get_apartment(self, apartment_id: int, lock: bool = False) -> Apartment | None:
        stmt = select(Apartment).where(Apartment.id == apartment_id)
        if lock:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_tenant(self, tenant_id: int) -> PotentialTenant | None:
        return self.db.get(PotentialTenant, tenant_id)

    def get_runner_for_apartment(self, apartment_id: int, lock: bool = False) -> Runner | None:
        stmt = (
            select(Runner)
            .join(RunnerApartment, RunnerApartment.runner_id == Runner.id)
            .where(RunnerApartment.apartment_id == apartment_id)
            .order_by(RunnerApartment.id.asc())
            .limit(1)
        )
        if lock:
            stmt = stmt.with_for_update(of=Runner)
        return self.db.execute(stmt).scalar_one_or_none()

    def count_apartment_visits(self, apartment_id: int, start: date, end: date) -> int:
        """Visits for the apartment dated within [start, end], both inclusive."""
        stmt = select(func.count(Visit.id)).where(
            Visit.apartment_id == apartment_id,
            Visit.visit_date >= start,
            Visit.visit_date <= end,
        )
        return int(self.db.execute(stmt).scalar_one() or 0)

    def list_apartment_visits(self, apartment_id: int, day: date) -> list[Visit]:
        stmt = (
            select(Visit)
            .where(Visit.apartment_id == apartment_id, Visit.visit_date == day)
            .order_by(Visit.time_slot.asc(), Visit.seat.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_runner_visits_with_zone(self, runner_id: int, day: date) -> list[tuple[Visit, str]]:
        stmt = (
            select(Visit, Apartment.zone)
            .join(Apartment, Apartment.id == Visit.apartment_id)
            .where(Visit.runner_id == runner_id, Visit.visit_date == day)
            .order_by(Visit.time_slot.asc())
        )
        return [(visit, zone) for visit, zone in self.db.execute(stmt).all()]

    def get_visit(self, visit_id: int) -> Visit | None:
        return self.db.get(Visit, visit_id)

    def insert_visit(
        self,
        apartment_id: int,
        runner_id: int,
        tenant_id: int,
        day: date,
        time_slot: str,
        seat: int,
    ) -> Visit:
        visit = Visit(
            apartment_id=apartment_id,
            runner_id=runner_id,
            tenant_id=tenant_id,
            visit_date=day,
            time_slot=time_slot,
            seat=seat,
            status=VISIT_STATUS_SCHEDULED,
            created_at=utc_now_naive(),
        )
        self.db.add(visit)
        self.db.flush()
        return visit
