from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from .errors import ValidationError
from .models import Patient, Personnel, PersonnelType
from .queries import patient_flat, personnel_flat

logger = logging.getLogger(__name__)


def create_patient(
    s: Session,
    name: str,
    phone: str | None = None,
    email: str | None = None,
    birthday: date | None = None,
    address: str | None = None,
) -> dict:
    if not name or not name.strip():
        raise ValidationError("name is required")

    p = Patient(name=name.strip(), phone=phone, email=email, birthday=birthday, address=address)
    s.add(p)
    s.commit()
    logger.info("Patient %s created", p.id)
    return patient_flat(p)


def create_personnel(
    s: Session,
    name: str,
    kind: PersonnelType,
    phone: str | None = None,
    email: str | None = None,
) -> dict:
    if not name or not name.strip():
        raise ValidationError("name is required")

    p = Personnel(name=name.strip(), type=kind, phone=phone, email=email, active=True)
    s.add(p)
    s.commit()
    logger.info("%s %s created", kind.value.title(), p.id)
    return personnel_flat(p)
