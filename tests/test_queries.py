"""
Tests for the listing queries and the detail lookups.
"""

from datetime import datetime

import pytest

from dental_clinic.errors import NotFoundError, ValidationError
from dental_clinic.models import (
    PATIENT_TYPE,
    Category,
    DentalSession,
    Drug,
    Patient,
    PaymentRecord,
    PersonnelType,
    Prescription,
    Procedure,
    SessionStatus,
    SessionType,
    Tooth,
    ToothSession,
    TreatmentSession,
)
from dental_clinic.queries import (
    get_examination_info,
    get_patient,
    get_personnel,
    get_session_info,
    get_treatment_info,
    list_people,
    list_rooms,
    list_sessions,
    today_bounds,
)

NOW = datetime(2024, 1, 1, 12, 0)


def _session(db_session, clinic, when, kind=SessionType.EXAMINATION, room=0, assistant=False, dentist=None):
    sess = DentalSession(
        patient_id=clinic.patient.id,
        dentist_id=(dentist or clinic.dentist).id,
        assistant_id=clinic.assistant.id if assistant else None,
        room_id=clinic.rooms[room].id,
        time=when,
        type=kind,
        status=SessionStatus.SCHEDULED,
    )
    db_session.add(sess)
    db_session.commit()
    return sess


class TestListPeople:

    def test_filters_by_type(self, db_session, clinic):
        page = list_people(db_session, PersonnelType.DENTIST, limit="10")
        assert page["total"] == 2
        assert {p["name"] for p in page["list"]} == {"Anna Tran", "Marco Rossi"}
        assert all(p["type"] == "DENTIST" for p in page["list"])

    def test_name_substring(self, db_session, clinic):
        page = list_people(db_session, PersonnelType.DENTIST, name="Tran", limit="10")
        assert page["total"] == 1
        assert page["list"][0]["id"] == clinic.dentist.id

    @pytest.mark.parametrize("pattern", ["%", "_", "An%", "A_na"])
    def test_like_wildcards_are_literal(self, db_session, clinic, pattern):
        page = list_people(db_session, None, name=pattern, limit="10")
        assert page == {"list": [], "total": 0}

    def test_literal_percent_in_name(self, db_session, clinic):
        db_session.add(Patient(name="Promo 100% Smile"))
        db_session.commit()

        page = list_people(db_session, PATIENT_TYPE, name="100%", limit="10")
        assert page["total"] == 1
        assert page["list"][0]["name"] == "Promo 100% Smile"

    def test_all_personnel_without_type(self, db_session, clinic):
        page = list_people(db_session, None, limit="10")
        assert page["total"] == 4

    def test_patients_marker(self, db_session, clinic):
        db_session.add(Patient(name="Le Thi Hoa"))
        db_session.commit()

        page = list_people(db_session, PATIENT_TYPE, name="Hoa", limit="10")
        assert page["total"] == 1
        assert page["list"][0]["name"] == "Le Thi Hoa"
        assert "type" not in page["list"][0]

    def test_total_counts_every_match_and_list_is_bounded(self, db_session, clinic):
        db_session.add_all([Patient(name=f"Patient {i}") for i in range(7)])
        db_session.commit()

        first = list_people(db_session, PATIENT_TYPE, name="Patient", limit="3", page="0")
        last = list_people(db_session, PATIENT_TYPE, name="Patient", limit="3", page="2")

        assert first["total"] == 7
        assert len(first["list"]) == 3
        assert last["total"] == 7
        assert len(last["list"]) == 1

    def test_missing_limit(self, db_session, clinic):
        with pytest.raises(ValidationError, match="limit is required"):
            list_people(db_session, PersonnelType.STAFF)

    def test_repeated_calls_are_identical(self, db_session, clinic):
        a = list_people(db_session, None, limit="2", page="1")
        b = list_people(db_session, None, limit="2", page="1")
        assert a == b


class TestTodayBounds:

    def test_whole_local_day(self):
        start, end = today_bounds(NOW)
        assert start == datetime(2024, 1, 1, 0, 0, 0, 0)
        assert end == datetime(2024, 1, 1, 23, 59, 59, 999000)


class TestListSessions:

    def test_newest_first_with_relations(self, db_session, clinic):
        _session(db_session, clinic, datetime(2024, 1, 1, 9, 0), assistant=True)
        _session(db_session, clinic, datetime(2024, 1, 1, 11, 0), room=1)

        page = list_sessions(db_session, SessionType.EXAMINATION, limit="10")

        assert page["total"] == 2
        times = [x["time"] for x in page["list"]]
        assert times == sorted(times, reverse=True)
        first, second = page["list"]
        assert first["room"] == {"name": "Room 2"}
        assert first["assistant"] is None
        assert second["assistant"]["name"] == "Linh Pham"
        assert second["patient"]["name"] == "Nguyen Van An"
        assert second["dentist"]["name"] == "Anna Tran"

    def test_only_requested_type(self, db_session, clinic):
        _session(db_session, clinic, datetime(2024, 1, 1, 9, 0))
        _session(db_session, clinic, datetime(2024, 1, 1, 10, 0), kind=SessionType.RE_EXAMINATION)

        page = list_sessions(db_session, SessionType.RE_EXAMINATION, limit="10")
        assert page["total"] == 1
        assert page["list"][0]["type"] == "RE_EXAMINATION"

    def test_today_keeps_inclusive_day_bounds(self, db_session, clinic):
        _session(db_session, clinic, datetime(2024, 1, 1, 0, 0, 0))
        _session(db_session, clinic, datetime(2024, 1, 1, 23, 59, 59, 999000))
        _session(db_session, clinic, datetime(2023, 12, 31, 23, 59, 59))
        _session(db_session, clinic, datetime(2024, 1, 2, 0, 0, 0))

        page = list_sessions(db_session, SessionType.EXAMINATION, limit="10", today=True, now=NOW)

        assert page["total"] == 2
        start, end = today_bounds(NOW)
        for x in page["list"]:
            assert start <= datetime.fromisoformat(x["time"]) <= end

    def test_without_today_returns_everything(self, db_session, clinic):
        _session(db_session, clinic, datetime(2023, 12, 31, 9, 0))
        _session(db_session, clinic, datetime(2024, 1, 1, 9, 0))

        page = list_sessions(db_session, SessionType.EXAMINATION, limit="10", now=NOW)
        assert page["total"] == 2

    def test_missing_limit(self, db_session, clinic):
        with pytest.raises(ValidationError, match="limit is required"):
            list_sessions(db_session, SessionType.EXAMINATION, today=True)


class TestDetails:

    def test_examination_found(self, db_session, clinic):
        sess = _session(db_session, clinic, NOW, assistant=True)

        info = get_examination_info(db_session, str(sess.id))

        assert info["id"] == sess.id
        assert info["room"] == {"id": clinic.rooms[0].id, "name": "Room 1"}
        assert info["assistant"]["id"] == clinic.assistant.id

    def test_examination_missing(self, db_session, clinic):
        with pytest.raises(NotFoundError) as exc:
            get_examination_info(db_session, "999")
        assert exc.value.message == "examination not found"
        assert exc.value.status_code == 400

    def test_examination_of_other_type_is_not_found(self, db_session, clinic):
        sess = _session(db_session, clinic, NOW, kind=SessionType.TREATMENT)
        with pytest.raises(NotFoundError, match="examination not found"):
            get_examination_info(db_session, sess.id)

    def test_id_is_required(self, db_session, clinic):
        with pytest.raises(ValidationError, match="id is required"):
            get_examination_info(db_session, "")

    def test_session_of_any_type(self, db_session, clinic):
        sess = _session(db_session, clinic, NOW, kind=SessionType.RE_EXAMINATION)
        assert get_session_info(db_session, sess.id)["type"] == "RE_EXAMINATION"
        with pytest.raises(NotFoundError, match="session not found"):
            get_session_info(db_session, 12345)

    def test_treatment_graph(self, db_session, clinic):
        sess = _session(db_session, clinic, NOW, kind=SessionType.TREATMENT)
        category = Category(name="Endodontics", procedures=[Procedure(name="Root canal", price=350.0)])
        drug = Drug(name="Ibuprofen 400mg", unit="tablet", price=0.2)
        tooth = Tooth(name="Upper right first molar", position="16")
        db_session.add_all([category, drug, tooth])
        db_session.flush()
        treatment = TreatmentSession(session_id=sess.id, category_id=category.id)
        db_session.add(treatment)
        db_session.flush()
        db_session.add_all([
            Prescription(treatment_session_id=treatment.id, drug_id=drug.id, quantity=10, dosage="2x day"),
            ToothSession(treatment_session_id=treatment.id, tooth_id=tooth.id),
            PaymentRecord(treatment_session_id=treatment.id, amount=350.0),
        ])
        db_session.commit()

        info = get_treatment_info(db_session, treatment.id)

        assert info["session"]["id"] == sess.id
        assert info["session"]["patient"]["name"] == "Nguyen Van An"
        assert info["category"]["procedures"][0]["name"] == "Root canal"
        assert info["prescriptions"][0]["drug"]["name"] == "Ibuprofen 400mg"
        assert info["tooth_sessions"][0]["tooth"]["position"] == "16"
        assert info["payment_records"][0]["amount"] == 350.0

    def test_treatment_missing(self, db_session, clinic):
        with pytest.raises(NotFoundError, match="treatment not found"):
            get_treatment_info(db_session, 1)

    def test_personnel_role_scoped(self, db_session, clinic):
        assert get_personnel(db_session, clinic.dentist.id, PersonnelType.DENTIST)["name"] == "Anna Tran"
        assert get_personnel(db_session, clinic.staff.id)["type"] == "STAFF"
        with pytest.raises(NotFoundError, match="assistant not found"):
            get_personnel(db_session, clinic.dentist.id, PersonnelType.ASSISTANT)

    def test_patient(self, db_session, clinic):
        assert get_patient(db_session, clinic.patient.id)["phone"] == "0901234567"
        with pytest.raises(NotFoundError, match="patient not found"):
            get_patient(db_session, 42)

    def test_rooms(self, db_session, clinic):
        assert [r["name"] for r in list_rooms(db_session)] == ["Room 1", "Room 2", "X-Ray"]
