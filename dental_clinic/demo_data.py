from __future__ import annotations

import logging
import random
from datetime import date, datetime, time, timedelta

from sqlalchemy import delete, select

from .config import configure_logging
from .db import db_session, init_db
from .models import (
    Category,
    DentalSession,
    Drug,
    Patient,
    PaymentRecord,
    Personnel,
    PersonnelType,
    Prescription,
    Room,
    SessionStatus,
    SessionType,
    Tooth,
    ToothSession,
    TreatmentSession,
)
from .seed import seed_base

logger = logging.getLogger(__name__)


# =========================
# Generation settings
# =========================
RANDOM_SEED = 42

PATIENTS_COUNT = 80
DAYS_BACK = 30

# Slots every 30 minutes, 08:00-12:00 and 13:30-17:30
SLOT_MINUTES = 30
OPENING_HOURS = [("08:00", "12:00"), ("13:30", "17:30")]

# Clinic load by weekday (0=Mon...6=Sun)
LOAD_FACTOR = {0: 1.1, 1: 1.0, 2: 1.0, 3: 1.0, 4: 1.1, 5: 0.5, 6: 0.0}

FIRST_NAMES = ["An", "Binh", "Chi", "Dung", "Giang", "Hoa", "Khanh", "Lan", "Minh", "Nam", "Phuong", "Quang"]
LAST_NAMES = ["Nguyen", "Tran", "Le", "Pham", "Hoang", "Vu", "Dang", "Bui", "Do", "Ho"]

NOTES = [
    None,
    "Sensitivity on cold drinks.",
    "Routine check.",
    "Follow-up after filling.",
    "Pain when chewing.",
]


def _random_phone() -> str:
    return f"09{random.randint(10000000, 99999999)}"


def _slots_for_day(day: date) -> list[datetime]:
    """Slot start times of one day (start included, end excluded)."""
    out: list[datetime] = []
    for start_hm, end_hm in OPENING_HOURS:
        sh, sm = map(int, start_hm.split(":"))
        eh, em = map(int, end_hm.split(":"))
        cur = datetime.combine(day, time(sh, sm))
        end = datetime.combine(day, time(eh, em))
        while cur < end:
            out.append(cur)
            cur += timedelta(minutes=SLOT_MINUTES)
    return out


def _status_for(day: date) -> SessionStatus:
    """Past days are mostly done, today is still open."""
    if day < date.today():
        return SessionStatus.DONE if random.random() < 0.9 else SessionStatus.CANCELLED
    return SessionStatus.SCHEDULED


def reset_db() -> None:
    """Delete sessions and patients (keeps the schema and the base seed)."""
    with db_session() as s:
        # FK order
        s.execute(delete(PaymentRecord))
        s.execute(delete(ToothSession))
        s.execute(delete(Prescription))
        s.execute(delete(TreatmentSession))
        s.execute(delete(DentalSession))
        s.execute(delete(Patient))


def seed_patients(count: int = PATIENTS_COUNT) -> None:
    with db_session() as s:
        for _ in range(count):
            name = f"{random.choice(LAST_NAMES)} {random.choice(FIRST_NAMES)}"
            s.add(
                Patient(
                    name=name,
                    phone=_random_phone(),
                    birthday=date.today() - timedelta(days=random.randint(6 * 365, 80 * 365)),
                )
            )


def _enrich_treatment(s, sess: DentalSession, categories, drugs, teeth) -> None:
    category = random.choice(categories)
    t = TreatmentSession(session_id=sess.id, category_id=category.id)
    s.add(t)
    s.flush()

    for tooth in random.sample(teeth, k=random.randint(1, 2)):
        s.add(ToothSession(treatment_session_id=t.id, tooth_id=tooth.id))

    if random.random() < 0.6:
        drug = random.choice(drugs)
        s.add(Prescription(treatment_session_id=t.id, drug_id=drug.id, quantity=random.randint(5, 20), dosage="2x day"))

    if sess.status == SessionStatus.DONE:
        amount = sum(p.price for p in category.procedures) or 50.0
        s.add(PaymentRecord(treatment_session_id=t.id, amount=amount, method=random.choice(["CASH", "CARD"])))


def generate_sessions(days_back: int = DAYS_BACK) -> int:
    """Sessions from `days_back` days ago up to today; returns how many were created."""
    created = 0
    with db_session() as s:
        patients = list(s.scalars(select(Patient)))
        dentists = list(s.scalars(select(Personnel).where(Personnel.type == PersonnelType.DENTIST)))
        assistants = list(s.scalars(select(Personnel).where(Personnel.type == PersonnelType.ASSISTANT)))
        rooms = list(s.scalars(select(Room)))
        categories = list(s.scalars(select(Category)))
        drugs = list(s.scalars(select(Drug)))
        teeth = list(s.scalars(select(Tooth)))

        if not patients or not dentists or not rooms:
            raise RuntimeError("Base data missing (patients/dentists/rooms). Run seed_base + seed_patients.")

        day = date.today() - timedelta(days=days_back)
        while day <= date.today():
            factor = LOAD_FACTOR.get(day.weekday(), 1.0)
            if factor <= 0:
                day += timedelta(days=1)
                continue

            for slot in _slots_for_day(day):
                # (room, dentist) pairs free in this slot
                free_rooms = list(rooms)
                random.shuffle(free_rooms)
                for dentist in dentists:
                    if not free_rooms or random.random() > 0.55 * factor:
                        continue
                    room = free_rooms.pop()
                    kind = random.choices(
                        [SessionType.EXAMINATION, SessionType.RE_EXAMINATION, SessionType.TREATMENT],
                        weights=[5, 2, 3],
                    )[0]
                    sess = DentalSession(
                        patient_id=random.choice(patients).id,
                        dentist_id=dentist.id,
                        assistant_id=random.choice(assistants).id if assistants and random.random() < 0.5 else None,
                        room_id=room.id,
                        time=slot,
                        type=kind,
                        status=_status_for(day),
                        note=random.choice(NOTES),
                    )
                    s.add(sess)
                    s.flush()

                    if kind == SessionType.TREATMENT and categories:
                        _enrich_treatment(s, sess, categories, drugs, teeth)
                    created += 1

            day += timedelta(days=1)
    return created


def main(reset: bool = True) -> None:
    configure_logging()
    random.seed(RANDOM_SEED)

    init_db()
    seed_base()

    if reset:
        reset_db()

    seed_patients()
    created = generate_sessions()

    logger.info("Demo data ready: %s sessions over the last %s days", created, DAYS_BACK)


if __name__ == "__main__":
    main(reset=True)
