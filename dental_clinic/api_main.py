from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth_models import User
from .auth_security import create_access_token, get_subject
from .auth_service import authenticate, create_user, get_user_by_id
from .config import configure_logging
from .db import get_db, init_db
from .errors import ClinicError
from .models import PATIENT_TYPE, PersonnelType, SessionType
from .queries import (
    get_examination_info,
    get_patient,
    get_personnel,
    get_session_info,
    get_treatment_info,
    list_people,
    list_rooms,
    list_sessions,
)
from .registry import create_patient
from .responses import ERROR_RESPONSES, message_response
from .scheduler import schedule_session
from .seed import seed_base

configure_logging()
logger = logging.getLogger(__name__)

# OAuth2 Bearer (Authorization: Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

app = FastAPI(title="Dental Clinic API", version="1.0.0")



# Startup

@app.on_event("startup")
def startup() -> None:
    # Creates the tables and loads the base seed (idempotent)
    init_db()
    seed_base()



# Error boundary: every error leaves as an envelope

@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=message_response(exc.status_code, exc.message))


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Persistence error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content=message_response(500, "internal server error"))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=message_response(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "request"
    return JSONResponse(status_code=400, content=message_response(400, f"{field}: {first.get('msg', 'invalid')}"))



# Schemas

class RegisterIn(BaseModel):
    username: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SessionCreateIn(BaseModel):
    # ids are validated by the scheduler, so strings pass through untouched
    model_config = ConfigDict(populate_by_name=True)

    patient_id: int | str | None = Field(None, alias="patientID")
    dentist_id: int | str | None = Field(None, alias="dentistID")
    room_id: int | str | None = Field(None, alias="roomID")
    assistant_id: int | str | None = Field(None, alias="assistantID")
    time: str | None = None
    note: str | None = None


class PatientCreateIn(BaseModel):
    name: str
    phone: str | None = None
    email: str | None = None
    birthday: date | None = None
    address: str | None = None



# Auth dependency

def get_current_user(token: str = Depends(oauth2_scheme), s: Session = Depends(get_db)) -> User:
    # stray spaces or quotes pasted with the token
    token = token.strip().strip('"').strip("'")

    user_id = get_subject(token)
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token")

    u = get_user_by_id(s, user_id)
    if not u or not u.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid user")
    return u



# AUTH endpoints

auth_router = APIRouter(prefix="/api", tags=["auth"])


@auth_router.post("/auth/register")
def register(payload: RegisterIn, s: Session = Depends(get_db)) -> dict[str, Any]:
    user_id = create_user(s, payload.username, payload.password)
    return message_response(200, {"user_id": user_id})


@auth_router.post("/auth/login", response_model=TokenOut)
def login(form: OAuth2PasswordRequestForm = Depends(), s: Session = Depends(get_db)) -> TokenOut:
    u = authenticate(s, form.username, form.password)
    if not u:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid credentials")

    token = create_access_token(subject=u.id, extra={"username": u.username})
    return TokenOut(access_token=token)


@auth_router.get("/me")
def me(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return message_response(200, {"id": user.id, "username": user.username, "is_active": user.is_active})



# DENTIST endpoints (public)

dentist_router = APIRouter(prefix="/api", tags=["dentists"], responses=ERROR_RESPONSES)


@dentist_router.get("/dentists")
def api_dentists(
    limit: str | None = None, page: str | None = None, name: str | None = None, s: Session = Depends(get_db)
) -> dict[str, Any]:
    return message_response(200, list_people(s, PersonnelType.DENTIST, name, limit, page))


@dentist_router.get("/dentist/{dentist_id}")
def api_dentist(dentist_id: str, s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, get_personnel(s, dentist_id, PersonnelType.DENTIST))


@dentist_router.get("/sessions/{session_id}")
def api_session(session_id: str, s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, get_session_info(s, session_id))



# ADMIN endpoints (JWT)

admin_router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(get_current_user)], responses=ERROR_RESPONSES
)


@admin_router.get("/staffs")
def admin_staffs(
    limit: str | None = None, page: str | None = None, name: str | None = None, s: Session = Depends(get_db)
) -> dict[str, Any]:
    return message_response(200, list_people(s, PersonnelType.STAFF, name, limit, page))



# STAFF endpoints (JWT)

staff_router = APIRouter(
    prefix="/staff", tags=["staff"], dependencies=[Depends(get_current_user)], responses=ERROR_RESPONSES
)


def _sessions_page(s: Session, session_type: SessionType, limit: str | None, page: str | None, today: str | None) -> dict[str, Any]:
    data = list_sessions(s, session_type, limit, page, today=today == "true")
    return message_response(200, data)


def _book(s: Session, payload: SessionCreateIn, session_type: SessionType) -> dict[str, Any]:
    created = schedule_session(
        s,
        patient_id=payload.patient_id,
        dentist_id=payload.dentist_id,
        room_id=payload.room_id,
        time=payload.time,
        session_type=session_type,
        assistant_id=payload.assistant_id,
        note=payload.note,
    )
    return message_response(200, created)


@staff_router.get("/examinations")
def staff_examinations(
    limit: str | None = None, page: str | None = None, today: str | None = None, s: Session = Depends(get_db)
) -> dict[str, Any]:
    return _sessions_page(s, SessionType.EXAMINATION, limit, page, today)


@staff_router.get("/re-examinations")
def staff_re_examinations(
    limit: str | None = None, page: str | None = None, today: str | None = None, s: Session = Depends(get_db)
) -> dict[str, Any]:
    return _sessions_page(s, SessionType.RE_EXAMINATION, limit, page, today)


@staff_router.get("/treatments")
def staff_treatments(
    limit: str | None = None, page: str | None = None, today: str | None = None, s: Session = Depends(get_db)
) -> dict[str, Any]:
    return _sessions_page(s, SessionType.TREATMENT, limit, page, today)


@staff_router.post("/examinations")
def staff_book_examination(payload: SessionCreateIn, s: Session = Depends(get_db)) -> dict[str, Any]:
    return _book(s, payload, SessionType.EXAMINATION)


@staff_router.post("/re-examinations")
def staff_book_re_examination(payload: SessionCreateIn, s: Session = Depends(get_db)) -> dict[str, Any]:
    return _book(s, payload, SessionType.RE_EXAMINATION)


@staff_router.post("/treatments")
def staff_book_treatment(payload: SessionCreateIn, s: Session = Depends(get_db)) -> dict[str, Any]:
    return _book(s, payload, SessionType.TREATMENT)


@staff_router.get("/examinations/{examination_id}")
def staff_examination(examination_id: str, s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, get_examination_info(s, examination_id))


@staff_router.get("/treatments/{treatment_id}")
def staff_treatment(treatment_id: str, s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, get_treatment_info(s, treatment_id))


@staff_router.get("/personels")
def staff_personels(
    limit: str | None = None, page: str | None = None, name: str | None = None, s: Session = Depends(get_db)
) -> dict[str, Any]:
    return message_response(200, list_people(s, None, name, limit, page))


@staff_router.get("/assistants")
def staff_assistants(
    limit: str | None = None, page: str | None = None, name: str | None = None, s: Session = Depends(get_db)
) -> dict[str, Any]:
    return message_response(200, list_people(s, PersonnelType.ASSISTANT, name, limit, page))


@staff_router.get("/patients")
def staff_patients(
    limit: str | None = None, page: str | None = None, name: str | None = None, s: Session = Depends(get_db)
) -> dict[str, Any]:
    return message_response(200, list_people(s, PATIENT_TYPE, name, limit, page))


@staff_router.post("/patients")
def staff_create_patient(payload: PatientCreateIn, s: Session = Depends(get_db)) -> dict[str, Any]:
    created = create_patient(s, payload.name, payload.phone, payload.email, payload.birthday, payload.address)
    return message_response(200, created)


@staff_router.get("/personels/{personnel_id}")
def staff_personel(personnel_id: str, s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, get_personnel(s, personnel_id))


@staff_router.get("/staffs/{staff_id}")
def staff_staff(staff_id: str, s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, get_personnel(s, staff_id, PersonnelType.STAFF))


@staff_router.get("/dentists/{dentist_id}")
def staff_dentist(dentist_id: str, s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, get_personnel(s, dentist_id, PersonnelType.DENTIST))


@staff_router.get("/assistants/{assistant_id}")
def staff_assistant(assistant_id: str, s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, get_personnel(s, assistant_id, PersonnelType.ASSISTANT))


@staff_router.get("/patients/{patient_id}")
def staff_patient(patient_id: str, s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, get_patient(s, patient_id))


@staff_router.get("/sessions/{session_id}")
def staff_session(session_id: str, s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, get_session_info(s, session_id))


@staff_router.get("/rooms")
def staff_rooms(s: Session = Depends(get_db)) -> dict[str, Any]:
    return message_response(200, list_rooms(s))


app.include_router(auth_router)
app.include_router(dentist_router)
app.include_router(admin_router)
app.include_router(staff_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("dental_clinic.api_main:app", host="0.0.0.0", port=8000, reload=True)
