from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base

# Marker used by listing endpoints to query the patients table instead of personnel
PATIENT_TYPE = "PATIENT"

# assistantID value meaning "no assistant"
NO_ASSISTANT = -1


class PersonnelType(enum.Enum):
    DENTIST = "DENTIST"
    ASSISTANT = "ASSISTANT"
    STAFF = "STAFF"
    ADMIN = "ADMIN"


class SessionType(enum.Enum):
    EXAMINATION = "EXAMINATION"
    RE_EXAMINATION = "RE_EXAMINATION"
    TREATMENT = "TREATMENT"


class SessionStatus(enum.Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


# Rows that hold their room and dentist slot (enum columns store the member name)
_ACTIVE = f"status != '{SessionStatus.CANCELLED.name}'"


class Personnel(Base):
    """Dentists, assistants, staff and admins share one table, told apart by `type`."""
    __tablename__ = "personnel"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    type: Mapped[PersonnelType] = mapped_column(Enum(PersonnelType), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(120), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    dentist_sessions: Mapped[list["DentalSession"]] = relationship(
        back_populates="dentist", foreign_keys="DentalSession.dentist_id"
    )
    assistant_sessions: Mapped[list["DentalSession"]] = relationship(
        back_populates="assistant", foreign_keys="DentalSession.assistant_id"
    )

    def __repr__(self) -> str:
        return f"Personnel({self.name}, {self.type.value})"


class Patient(Base):
    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(120), nullable=True)
    birthday: Mapped[date | None] = mapped_column(Date, nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    sessions: Mapped[list["DentalSession"]] = relationship(back_populates="patient")

    def __repr__(self) -> str:
        return f"Patient({self.name})"


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)

    sessions: Mapped[list["DentalSession"]] = relationship(back_populates="room")


class DentalSession(Base):
    """A scheduled visit: examination, re-examination or treatment."""
    __tablename__ = "sessions"
    __table_args__ = (
        # no exact double booking (same room or same dentist at the same time);
        # cancelled sessions free their slot
        Index(
            "uq_session_room_time", "room_id", "time", unique=True,
            sqlite_where=text(_ACTIVE), postgresql_where=text(_ACTIVE),
        ),
        Index(
            "uq_session_dentist_time", "dentist_id", "time", unique=True,
            sqlite_where=text(_ACTIVE), postgresql_where=text(_ACTIVE),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False)
    dentist_id: Mapped[int] = mapped_column(ForeignKey("personnel.id"), nullable=False)
    assistant_id: Mapped[int | None] = mapped_column(ForeignKey("personnel.id"), nullable=True)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), nullable=False)

    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    type: Mapped[SessionType] = mapped_column(Enum(SessionType), nullable=False, index=True)
    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus), default=SessionStatus.SCHEDULED, nullable=False
    )

    patient: Mapped["Patient"] = relationship(back_populates="sessions")
    dentist: Mapped["Personnel"] = relationship(back_populates="dentist_sessions", foreign_keys=[dentist_id])
    assistant: Mapped[Personnel | None] = relationship(
        back_populates="assistant_sessions", foreign_keys=[assistant_id]
    )
    room: Mapped["Room"] = relationship(back_populates="sessions")
    treatment: Mapped[TreatmentSession | None] = relationship(back_populates="session")


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)

    procedures: Mapped[list["Procedure"]] = relationship(back_populates="category", cascade="all, delete-orphan")


class Procedure(Base):
    __tablename__ = "procedures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    price: Mapped[float] = mapped_column(Float, default=0, nullable=False)

    category: Mapped["Category"] = relationship(back_populates="procedures")


class Drug(Base):
    __tablename__ = "drugs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    unit: Mapped[str] = mapped_column(String(30), nullable=False, default="tablet")
    price: Mapped[float] = mapped_column(Float, default=0, nullable=False)


class Tooth(Base):
    __tablename__ = "teeth"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(80), nullable=False)
    position: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)  # FDI notation, e.g. "11"


class TreatmentSession(Base):
    """1:1 enrichment of a TREATMENT session."""
    __tablename__ = "treatment_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("sessions.id"), nullable=False, unique=True)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    session: Mapped["DentalSession"] = relationship(back_populates="treatment")
    category: Mapped[Category | None] = relationship()
    prescriptions: Mapped[list["Prescription"]] = relationship(
        back_populates="treatment_session", cascade="all, delete-orphan"
    )
    tooth_sessions: Mapped[list["ToothSession"]] = relationship(
        back_populates="treatment_session", cascade="all, delete-orphan"
    )
    payment_records: Mapped[list["PaymentRecord"]] = relationship(
        back_populates="treatment_session", cascade="all, delete-orphan"
    )


class Prescription(Base):
    __tablename__ = "prescriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    treatment_session_id: Mapped[int] = mapped_column(ForeignKey("treatment_sessions.id"), nullable=False)
    drug_id: Mapped[int] = mapped_column(ForeignKey("drugs.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    dosage: Mapped[str | None] = mapped_column(String(255), nullable=True)

    treatment_session: Mapped["TreatmentSession"] = relationship(back_populates="prescriptions")
    drug: Mapped["Drug"] = relationship()


class ToothSession(Base):
    __tablename__ = "tooth_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    treatment_session_id: Mapped[int] = mapped_column(ForeignKey("treatment_sessions.id"), nullable=False)
    tooth_id: Mapped[int] = mapped_column(ForeignKey("teeth.id"), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    treatment_session: Mapped["TreatmentSession"] = relationship(back_populates="tooth_sessions")
    tooth: Mapped["Tooth"] = relationship()


class PaymentRecord(Base):
    __tablename__ = "payment_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    treatment_session_id: Mapped[int] = mapped_column(ForeignKey("treatment_sessions.id"), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    method: Mapped[str] = mapped_column(String(30), default="CASH", nullable=False)
    paid_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    treatment_session: Mapped["TreatmentSession"] = relationship(back_populates="payment_records")
