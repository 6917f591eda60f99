import argparse
import json
import sys
from pathlib import Path

from visit_scheduler.availability import WeeklyAvailability
from visit_scheduler.db import Base, SessionLocal, engine
from visit_scheduler.models import Apartment, PotentialTenant, Runner, RunnerApartment

WEEKDAYS_9_TO_17 = {day: ["09:00-17:00"] for day in ("monday", "tuesday", "wednesday", "thursday", "friday")}

DEMO_DATA = {
    "apartments": [
        {"id": 1, "zone": "A", "address": "Mokotowska 12/4", "availability": WEEKDAYS_9_TO_17},
        {"id": 2, "zone": "A", "address": "Hoza 51/2", "availability": {"monday": ["12:00-18:00"]}},
        {"id": 3, "zone": "B", "address": "Grochowska 230/17", "availability": WEEKDAYS_9_TO_17},
    ],
    "runners": [
        {"id": 1, "name": "Ola", "availability": {"monday": ["09:00-12:00", "13:00-18:00"], "tuesday": ["09:00-15:00"]}},
        {"id": 2, "name": "Piotr", "availability": WEEKDAYS_9_TO_17},
    ],
    "tenants": [
        {"id": 1, "name": "Anna Kowalska"},
        {"id": 2, "name": "Jan Nowak"},
    ],
    "assignments": [
        {"runner_id": 1, "apartment_id": 1},
        {"runner_id": 1, "apartment_id": 3},
        {"runner_id": 2, "apartment_id": 2},
    ],
}


def _load_data(path: str | None) -> dict:
    if not path:
        return DEMO_DATA
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _validated_availability(raw, owner: str) -> dict:
    try:
        return WeeklyAvailability.parse(raw, strict=True).to_dict()
    except ValueError as exc:
        raise SystemExit(f"Invalid availability for {owner}: {exc}")


def seed(data: dict, reset: bool = False) -> dict:
    if reset:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    counts = {"apartments": 0, "runners": 0, "tenants": 0, "assignments": 0}
    with SessionLocal() as db:
        for row in data.get("apartments", []):
            db.merge(
                Apartment(
                    id=row["id"],
                    zone=row["zone"],
                    address=row.get("address"),
                    availability=_validated_availability(row.get("availability"), f"apartment {row['id']}"),
                )
            )
            counts["apartments"] += 1
        for row in data.get("runners", []):
            db.merge(
                Runner(
                    id=row["id"],
                    name=row["name"],
                    availability=_validated_availability(row.get("availability"), f"runner {row['id']}"),
                )
            )
            counts["runners"] += 1
        for row in data.get("tenants", []):
            db.merge(PotentialTenant(id=row["id"], name=row.get("name")))
            counts["tenants"] += 1
        db.flush()
        for row in data.get("assignments", []):
            exists = (
                db.query(RunnerApartment)
                .filter_by(runner_id=row["runner_id"], apartment_id=row["apartment_id"])
                .first()
            )
            if not exists:
                db.add(RunnerApartment(runner_id=row["runner_id"], apartment_id=row["apartment_id"]))
                counts["assignments"] += 1
        db.commit()
    return counts


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create tables and load apartments, runners and tenants.")
    parser.add_argument("--file", help="JSON file with apartments/runners/tenants/assignments (default: built-in demo data)")
    parser.add_argument("--reset", action="store_true", help="Drop all tables before seeding")
    args = parser.parse_args(argv)

    counts = seed(_load_data(args.file), reset=args.reset)
    print(json.dumps(counts))
    return 0


if __name__ == "__main__":
    sys.exit(main())
