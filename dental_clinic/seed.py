from __future__ import annotations

from sqlalchemy import select

from .db import db_session
from .models import Category, Drug, Personnel, PersonnelType, Procedure, Room, Tooth

ROOMS = ["Room 1", "Room 2", "X-Ray"]

PERSONNEL = [
    ("Anna Tran", PersonnelType.DENTIST, "a.tran@clinic.local"),
    ("Marco Rossi", PersonnelType.DENTIST, "m.rossi@clinic.local"),
    ("Linh Pham", PersonnelType.ASSISTANT, "l.pham@clinic.local"),
    ("Sara Bianchi", PersonnelType.STAFF, "s.bianchi@clinic.local"),
    ("Admin", PersonnelType.ADMIN, "admin@clinic.local"),
]

CATEGORIES = {
    "Restorative": [("Composite filling", 60.0), ("Crown", 400.0)],
    "Endodontics": [("Root canal", 350.0)],
    "Hygiene": [("Scaling", 45.0), ("Polishing", 25.0)],
    "Surgery": [("Extraction", 90.0)],
}

DRUGS = [
    ("Amoxicillin 500mg", "capsule", 0.4),
    ("Ibuprofen 400mg", "tablet", 0.2),
    ("Chlorhexidine 0.12%", "ml", 0.05),
]

_QUADRANT_NAMES = {1: "Upper right", 2: "Upper left", 3: "Lower left", 4: "Lower right"}
_TOOTH_NAMES = {
    1: "central incisor",
    2: "lateral incisor",
    3: "canine",
    4: "first premolar",
    5: "second premolar",
    6: "first molar",
    7: "second molar",
    8: "third molar",
}


def seed_base() -> None:
    """
    Load the minimum data (idempotent):
    - rooms
    - personnel
    - categories and procedures
    - drugs
    - the 32 permanent teeth (FDI numbering)
    """
    with db_session() as s:
        for name in ROOMS:
            if s.execute(select(Room).where(Room.name == name)).scalar_one_or_none() is None:
                s.add(Room(name=name))

        for name, kind, email in PERSONNEL:
            exists = s.execute(
                select(Personnel).where(Personnel.name == name, Personnel.type == kind)
            ).scalar_one_or_none()
            if exists is None:
                s.add(Personnel(name=name, type=kind, email=email, active=True))

        for cat_name, procedures in CATEGORIES.items():
            cat = s.execute(select(Category).where(Category.name == cat_name)).scalar_one_or_none()
            if cat is None:
                cat = Category(name=cat_name)
                s.add(cat)
                s.flush()

            known = {p.name for p in cat.procedures}
            for proc_name, price in procedures:
                if proc_name not in known:
                    s.add(Procedure(category_id=cat.id, name=proc_name, price=price))

        for name, unit, price in DRUGS:
            if s.execute(select(Drug).where(Drug.name == name)).scalar_one_or_none() is None:
                s.add(Drug(name=name, unit=unit, price=price))

        existing_teeth = set(s.scalars(select(Tooth.position)))
        for quadrant, q_name in _QUADRANT_NAMES.items():
            for n, t_name in _TOOTH_NAMES.items():
                position = f"{quadrant}{n}"
                if position not in existing_teeth:
                    s.add(Tooth(position=position, name=f"{q_name} {t_name}"))
