from datetime import date

from pydantic import AliasChoices, BaseModel, Field


class ScheduleVisitCreate(BaseModel):
    apartment_id: int = Field(gt=0, validation_alias=AliasChoices("apartment_id", "apartmentId"))
    tenant_id: int = Field(gt=0, validation_alias=AliasChoices("tenant_id", "tenantId"))
    preferred_date: date = Field(validation_alias=AliasChoices("preferred_date", "preferredDate"))


class VisitOut(BaseModel):
    id: int
    apartment_id: int
    runner_id: int
    tenant_id: int
    date: date
    time_slot: str
    status: str = "Scheduled"


class OpenSlotOut(BaseModel):
    time_slot: str
    remaining: int


class OpenSlotsOut(BaseModel):
    apartment_id: int
    runner_id: int
    date: date
    slots: list[OpenSlotOut]

