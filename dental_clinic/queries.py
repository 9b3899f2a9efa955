from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload, selectinload

from .errors import NotFoundError, ValidationError
from .models import (
    PATIENT_TYPE,
    Category,
    DentalSession,
    Patient,
    PaymentRecord,
    Personnel,
    PersonnelType,
    Prescription,
    Room,
    SessionType,
    ToothSession,
    TreatmentSession,
)
from .pagination import skip_take


# =========================
# Flat serializers
# =========================
# Plain dicts built while the session is open: no lazy-load after close.

def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def personnel_flat(p: Personnel | None) -> dict | None:
    if p is None:
        return None
    return {
        "id": p.id,
        "name": p.name,
        "type": p.type.value,
        "phone": p.phone,
        "email": p.email,
        "active": p.active,
    }


def patient_flat(p: Patient | None) -> dict | None:
    if p is None:
        return None
    return {
        "id": p.id,
        "name": p.name,
        "phone": p.phone,
        "email": p.email,
        "birthday": _iso(p.birthday),
        "address": p.address,
        "created_at": _iso(p.created_at),
    }


def room_flat(r: Room) -> dict:
    return {"id": r.id, "name": r.name}


def session_flat(sess: DentalSession, room_name_only: bool = False) -> dict:
    """Session row with its patient, dentist, assistant and room."""
    return {
        "id": sess.id,
        "patient_id": sess.patient_id,
        "dentist_id": sess.dentist_id,
        "assistant_id": sess.assistant_id,
        "room_id": sess.room_id,
        "note": sess.note,
        "time": _iso(sess.time),
        "type": sess.type.value,
        "status": sess.status.value,
        "patient": patient_flat(sess.patient),
        "dentist": personnel_flat(sess.dentist),
        "assistant": personnel_flat(sess.assistant),
        "room": {"name": sess.room.name} if room_name_only else room_flat(sess.room),
    }


def _category_flat(c: Category | None) -> dict | None:
    if c is None:
        return None
    return {
        "id": c.id,
        "name": c.name,
        "procedures": [{"id": p.id, "name": p.name, "price": p.price} for p in c.procedures],
    }


def _prescription_flat(pr: Prescription) -> dict:
    return {
        "id": pr.id,
        "quantity": pr.quantity,
        "dosage": pr.dosage,
        "drug": {"id": pr.drug.id, "name": pr.drug.name, "unit": pr.drug.unit, "price": pr.drug.price},
    }


def _tooth_session_flat(ts: ToothSession) -> dict:
    return {
        "id": ts.id,
        "note": ts.note,
        "tooth": {"id": ts.tooth.id, "name": ts.tooth.name, "position": ts.tooth.position},
    }


def _payment_flat(pay: PaymentRecord) -> dict:
    return {"id": pay.id, "amount": pay.amount, "method": pay.method, "paid_at": _iso(pay.paid_at)}


def treatment_flat(t: TreatmentSession) -> dict:
    return {
        "id": t.id,
        "session_id": t.session_id,
        "note": t.note,
        "session": session_flat(t.session),
        "category": _category_flat(t.category),
        "prescriptions": [_prescription_flat(pr) for pr in t.prescriptions],
        "tooth_sessions": [_tooth_session_flat(ts) for ts in t.tooth_sessions],
        "payment_records": [_payment_flat(pay) for pay in t.payment_records],
    }


def _session_people():
    return (
        joinedload(DentalSession.patient),
        joinedload(DentalSession.dentist),
        joinedload(DentalSession.assistant),
        joinedload(DentalSession.room),
    )


# =========================
# Listing
# =========================
def list_people(
    s: Session,
    kind: PersonnelType | str | None,
    name: str | None = None,
    limit: str | int | None = None,
    page: str | int | None = None,
) -> dict:
    """
    Paginated personnel (or patients when `kind` is PATIENT_TYPE).

    `kind=None` lists every personnel row regardless of role. Count and page
    are read in the same transaction with the same filter.
    """
    skip, take = skip_take(limit, page)

    if kind == PATIENT_TYPE:
        model, flat = Patient, patient_flat
        conditions = []
    else:
        model, flat = Personnel, personnel_flat
        conditions = [Personnel.type == kind] if kind is not None else []

    if name:
        conditions.append(model.name.contains(name, autoescape=True))

    total = s.scalar(select(func.count()).select_from(model).where(*conditions))
    rows = s.scalars(select(model).where(*conditions).order_by(model.id).offset(skip).limit(take)).all()

    return {"list": [flat(r) for r in rows], "total": total}


def list_rooms(s: Session) -> list[dict]:
    return [room_flat(r) for r in s.scalars(select(Room).order_by(Room.id))]


def today_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Start (00:00:00.000) and end (23:59:59.999) of the local calendar day of `now`."""
    now = now or datetime.now()
    if now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = now.replace(hour=23, minute=59, second=59, microsecond=999000)
    return start, end


def list_sessions(
    s: Session,
    session_type: SessionType,
    limit: str | int | None = None,
    page: str | int | None = None,
    today: bool = False,
    now: datetime | None = None,
) -> dict:
    """
    Paginated sessions of one type, newest first.

    With `today` only sessions of the current local day are returned;
    `now` overrides the clock.
    """
    skip, take = skip_take(limit, page)

    conditions = [DentalSession.type == session_type]
    if today:
        start, end = today_bounds(now)
        conditions += [DentalSession.time >= start, DentalSession.time <= end]

    q = (
        select(DentalSession)
        .options(*_session_people())
        .where(*conditions)
        .order_by(DentalSession.time.desc())
        .offset(skip)
        .limit(take)
    )
    rows = s.scalars(q).unique().all()
    total = s.scalar(select(func.count()).select_from(DentalSession).where(*conditions))

    return {"list": [session_flat(r, room_name_only=True) for r in rows], "total": total}


# =========================
# Detail lookups
# =========================
def parse_id(value: str | int | None) -> int:
    if value is None or value == "":
        raise ValidationError("id is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("id must be a number")


_PERSONNEL_LABELS = {
    PersonnelType.DENTIST: "dentist",
    PersonnelType.ASSISTANT: "assistant",
    PersonnelType.STAFF: "staff",
    PersonnelType.ADMIN: "admin",
}


def get_personnel(s: Session, personnel_id: str | int | None, kind: PersonnelType | None = None) -> dict:
    """Personnel row by id; with `kind` the row must also have that role."""
    pid = parse_id(personnel_id)
    p = s.get(Personnel, pid)
    if p is None or (kind is not None and p.type != kind):
        label = _PERSONNEL_LABELS.get(kind, "personnel")
        raise NotFoundError(f"{label} not found")
    return personnel_flat(p)


def get_patient(s: Session, patient_id: str | int | None) -> dict:
    p = s.get(Patient, parse_id(patient_id))
    if p is None:
        raise NotFoundError("patient not found")
    return patient_flat(p)


def get_session_info(s: Session, session_id: str | int | None) -> dict:
    sid = parse_id(session_id)
    sess = s.scalars(select(DentalSession).options(*_session_people()).where(DentalSession.id == sid)).first()
    if sess is None:
        raise NotFoundError("session not found")
    return session_flat(sess)


def get_examination_info(s: Session, examination_id: str | int | None) -> dict:
    """Session with full detail; sessions of another type count as not found."""
    sid = parse_id(examination_id)
    q = (
        select(DentalSession)
        .options(*_session_people())
        .where(DentalSession.id == sid, DentalSession.type == SessionType.EXAMINATION)
    )
    sess = s.scalars(q).first()
    if sess is None:
        raise NotFoundError("examination not found")
    return session_flat(sess)


def get_treatment_info(s: Session, treatment_id: str | int | None) -> dict:
    """
    Treatment session with its whole graph:
    - session (patient, dentist, assistant, room)
    - category (procedures)
    - prescriptions (drug)
    - tooth sessions (tooth)
    - payment records
    """
    tid = parse_id(treatment_id)
    q = (
        select(TreatmentSession)
        .options(
            joinedload(TreatmentSession.session).joinedload(DentalSession.patient),
            joinedload(TreatmentSession.session).joinedload(DentalSession.dentist),
            joinedload(TreatmentSession.session).joinedload(DentalSession.assistant),
            joinedload(TreatmentSession.session).joinedload(DentalSession.room),
            joinedload(TreatmentSession.category).selectinload(Category.procedures),
            selectinload(TreatmentSession.prescriptions).joinedload(Prescription.drug),
            selectinload(TreatmentSession.tooth_sessions).joinedload(ToothSession.tooth),
            selectinload(TreatmentSession.payment_records),
        )
        .where(TreatmentSession.id == tid)
    )
    t = s.scalars(q).first()
    if t is None:
        raise NotFoundError("treatment not found")
    return treatment_flat(t)
