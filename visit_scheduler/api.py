from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .booking import BookingRequest, preview_open_slots, schedule_visit
from .db import get_db
from .models import Visit
from .schemas import OpenSlotOut, OpenSlotsOut, ScheduleVisitCreate, VisitOut
from .store import VisitStore

router = APIRouter(prefix="/api")
legacy_router = APIRouter()


def _to_visit_out(v: Visit) -> VisitOut:
    return VisitOut(
        id=v.id,
        apartment_id=v.apartment_id,
        runner_id=v.runner_id,
        tenant_id=v.tenant_id,
        date=v.visit_date,
        time_slot=v.time_slot,
        status=v.status,
    )


def _book(payload: ScheduleVisitCreate, db: Session) -> VisitOut:
    request = BookingRequest(
        apartment_id=payload.apartment_id,
        tenant_id=payload.tenant_id,
        preferred_date=payload.preferred_date,
    )
    return _to_visit_out(schedule_visit(db, request))


@router.post("/visits/schedule", response_model=VisitOut, status_code=status.HTTP_201_CREATED)
def create_scheduled_visit(payload: ScheduleVisitCreate, db: Session = Depends(get_db)):
    return _book(payload, db)


@legacy_router.post("/schedule", response_model=VisitOut, status_code=status.HTTP_201_CREATED)
def schedule(payload: ScheduleVisitCreate, db: Session = Depends(get_db)):
    return _book(payload, db)


@router.get("/visits/{visit_id}", response_model=VisitOut)
def get_visit(visit_id: int, db: Session = Depends(get_db)):
    visit = VisitStore(db).get_visit(visit_id)
    if not visit:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Visit not found")
    return _to_visit_out(visit)


@router.get("/visits", response_model=List[VisitOut])
def list_visits(
    apartment_id: int = Query(..., gt=0),
    day: date = Query(...),
    db: Session = Depends(get_db),
):
    visits = VisitStore(db).list_apartment_visits(apartment_id, day)
    return [_to_visit_out(v) for v in visits]


@router.get("/apartments/{apartment_id}/slots", response_model=OpenSlotsOut)
def list_open_slots(
    apartment_id: int,
    day: date = Query(...),
    db: Session = Depends(get_db),
):
    runner, slots = preview_open_slots(db, apartment_id, day)
    return OpenSlotsOut(
        apartment_id=apartment_id,
        runner_id=runner.id,
        date=day,
        slots=[OpenSlotOut(time_slot=slot, remaining=remaining) for slot, remaining in slots],
    )
