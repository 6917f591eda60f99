from datetime import date, datetime, timezone

from sqlalchemy import JSON, CheckConstraint, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .config import settings
from .db import Base

VISIT_STATUS_SCHEDULED = "Scheduled"


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Apartment(Base):
    __tablename__ = "apartments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    zone: Mapped[str] = mapped_column(String(64), index=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    availability: Mapped[dict] = mapped_column(JSON, default=dict)


class Runner(Base):
    __tablename__ = "runners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), index=True)
    availability: Mapped[dict] = mapped_column(JSON, default=dict)


class RunnerApartment(Base):
    __tablename__ = "runner_apartments"
    __table_args__ = (UniqueConstraint("runner_id", "apartment_id", name="uq_runner_apartments_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    runner_id: Mapped[int] = mapped_column(ForeignKey("runners.id"), index=True)
    apartment_id: Mapped[int] = mapped_column(ForeignKey("apartments.id"), index=True)

    runner = relationship("Runner")
    apartment = relationship("Apartment")


class PotentialTenant(Base):
    __tablename__ = "potential_tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str | None] = mapped_column(String(120), nullable=True)


class Visit(Base):
    __tablename__ = "visits"
    __table_args__ = (
        # One row per seat; the seat bound caps each (apartment, date, slot) at SLOT_CAPACITY.
        UniqueConstraint("apartment_id", "date", "time_slot", "seat", name="uq_visits_apartment_slot_seat"),
        CheckConstraint(f"seat >= 0 AND seat < {int(settings.SLOT_CAPACITY)}", name="ck_visits_seat_capacity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    apartment_id: Mapped[int] = mapped_column(ForeignKey("apartments.id"), index=True)
    runner_id: Mapped[int] = mapped_column(ForeignKey("runners.id"), index=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("potential_tenants.id"), index=True)
    visit_date: Mapped[date] = mapped_column("date", Date, index=True)
    time_slot: Mapped[str] = mapped_column(String(5))
    seat: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(32), default=VISIT_STATUS_SCHEDULED, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)

    apartment = relationship("Apartment")
    runner = relationship("Runner")
    tenant = relationship("PotentialTenant")
