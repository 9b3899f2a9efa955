from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import ConflictError, NotFoundError, ValidationError
from .models import (
    NO_ASSISTANT,
    DentalSession,
    Patient,
    Personnel,
    Room,
    SessionStatus,
    SessionType,
)
from .queries import session_flat

logger = logging.getLogger(__name__)


def _as_id(value: str | int, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")


def parse_time(value: str | datetime) -> datetime:
    """
    ISO-8601 string (or datetime) to a naive server-local timestamp.

    Aware values, "Z" suffix included, are converted to local time first.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError("time is not a valid timestamp")
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def _has_assistant(assistant_id: str | int | None) -> bool:
    if assistant_id is None or assistant_id == "":
        return False
    return _as_id(assistant_id, "assistantID") not in (0, NO_ASSISTANT)


def _is_slot_clash(exc: IntegrityError) -> bool:
    """True when the failure is one of the slot unique indexes, not a foreign key or other constraint."""
    msg = str(exc.orig)
    # PostgreSQL names the index; SQLite lists the indexed columns
    return "uq_session_" in msg or "UNIQUE constraint failed: sessions." in msg


def _booked(s: Session, room_id: int, dentist_id: int, start: datetime) -> DentalSession | None:
    q = (
        select(DentalSession)
        .where(
            DentalSession.time == start,
            DentalSession.status != SessionStatus.CANCELLED,
            or_(DentalSession.room_id == room_id, DentalSession.dentist_id == dentist_id),
        )
        .limit(1)
    )
    return s.scalars(q).first()


def schedule_session(
    s: Session,
    patient_id: str | int | None,
    dentist_id: str | int | None,
    room_id: str | int | None,
    time: str | datetime | None,
    session_type: SessionType,
    assistant_id: str | int | None = None,
    note: str | None = None,
) -> dict:
    """
    Use case: schedule a new session.

    Checks run in order and stop at the first failure:
    - required fields (patient, dentist, room, time)
    - patient exists
    - dentist exists
    - room exists
    - assistant exists, only when given and not NO_ASSISTANT
    - room and dentist free at that exact time

    Checks and insert share the caller's transaction; the new session is
    committed and returned as a flat dict.
    """
    if not patient_id or not dentist_id or not room_id or not time:
        raise ValidationError("You are missing some fields !")

    pid = _as_id(patient_id, "patientID")
    did = _as_id(dentist_id, "dentistID")
    rid = _as_id(room_id, "roomID")
    start = parse_time(time)

    # patient ids live in the patients table, not in personnel
    if s.get(Patient, pid) is None:
        logger.info("Session rejected: patient %s does not exist", pid)
        raise NotFoundError("Patient is not exist")

    if s.get(Personnel, did) is None:
        logger.info("Session rejected: dentist %s does not exist", did)
        raise NotFoundError("Dentist is not exist")

    if s.get(Room, rid) is None:
        logger.info("Session rejected: room %s does not exist", rid)
        raise NotFoundError("Room is not exist")

    aid: int | None = None
    if _has_assistant(assistant_id):
        aid = _as_id(assistant_id, "assistantID")
        if s.get(Personnel, aid) is None:
            logger.info("Session rejected: assistant %s does not exist", aid)
            raise NotFoundError("Assistant is not exist")

    clash = _booked(s, rid, did, start)
    if clash is not None:
        if clash.room_id == rid:
            raise ConflictError("Room is already booked at this time")
        raise ConflictError("Dentist is already booked at this time")

    sess = DentalSession(
        patient_id=pid,
        dentist_id=did,
        assistant_id=aid,
        room_id=rid,
        note=note,
        time=start,
        type=session_type,
        status=SessionStatus.SCHEDULED,
    )
    s.add(sess)
    try:
        s.commit()
    except IntegrityError as e:
        s.rollback()
        if not _is_slot_clash(e):
            raise
        # concurrent booking of the same slot won the race
        raise ConflictError("Room or dentist is already booked at this time")
    s.refresh(sess)

    logger.info(
        "Session %s scheduled: %s for patient %s with dentist %s in room %s at %s",
        sess.id, session_type.value, pid, did, rid, start.isoformat(),
    )
    return session_flat(sess)
