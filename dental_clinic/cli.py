from __future__ import annotations

import argparse

from .config import configure_logging
from .db import db_session, init_db
from .errors import ClinicError
from .models import PATIENT_TYPE, PersonnelType, SessionType
from .queries import list_people, list_rooms, list_sessions
from .registry import create_patient, create_personnel
from .scheduler import schedule_session
from .seed import seed_base

_PEOPLE = {
    "dentists": PersonnelType.DENTIST,
    "assistants": PersonnelType.ASSISTANT,
    "staffs": PersonnelType.STAFF,
    "admins": PersonnelType.ADMIN,
    "patients": PATIENT_TYPE,
}


def cmd_init(args: argparse.Namespace) -> None:
    init_db()
    seed_base()
    print("Database ready and base seed loaded.")


def cmd_list(args: argparse.Namespace) -> None:
    with db_session() as s:
        if args.entity == "rooms":
            for r in list_rooms(s):
                print(f"{r['id']} | {r['name']}")
            return

        page = list_people(s, _PEOPLE[args.entity], args.name, args.limit, args.page)
        for p in page["list"]:
            print(f"{p['id']} | {p['name']} | {p.get('phone') or '-'} | {p.get('email') or '-'}")
        print(f"({len(page['list'])} of {page['total']})")


def cmd_add_patient(args: argparse.Namespace) -> None:
    with db_session() as s:
        p = create_patient(s, args.name, phone=args.phone, email=args.email)
    print(f"Patient created: {p['id']}")


def cmd_add_personnel(args: argparse.Namespace) -> None:
    with db_session() as s:
        p = create_personnel(s, args.name, PersonnelType(args.type), phone=args.phone, email=args.email)
    print(f"{p['type'].title()} created: {p['id']}")


def cmd_book(args: argparse.Namespace) -> None:
    with db_session() as s:
        sess = schedule_session(
            s,
            patient_id=args.patient_id,
            dentist_id=args.dentist_id,
            room_id=args.room_id,
            time=args.time,  # ISO format: 2026-01-14T10:30
            session_type=SessionType(args.type),
            assistant_id=args.assistant_id,
            note=args.note,
        )
    print(f"Session scheduled: {sess['id']} at {sess['time']} ({sess['status']})")


def cmd_sessions(args: argparse.Namespace) -> None:
    with db_session() as s:
        page = list_sessions(s, SessionType(args.type), args.limit, args.page, today=args.today)
    if not page["list"]:
        print("No sessions.")
        return
    for x in page["list"]:
        assistant = x["assistant"]["name"] if x["assistant"] else "-"
        print(
            f"{x['id']} | {x['time']} | {x['status']} | patient: {x['patient']['name']} | "
            f"dentist: {x['dentist']['name']} | assistant: {assistant} | {x['room']['name']}"
        )
    print(f"({len(page['list'])} of {page['total']})")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="dental_clinic_cli", description="Dental clinic CLI")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Create the database and load the base seed")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="List people or rooms")
    p_list.add_argument("entity", choices=[*_PEOPLE, "rooms"])
    p_list.add_argument("--name", default=None, help="Substring filter on the name")
    p_list.add_argument("--limit", default="20")
    p_list.add_argument("--page", default="0")
    p_list.set_defaults(func=cmd_list)

    p_addp = sub.add_parser("add-patient", help="Create a patient")
    p_addp.add_argument("--name", required=True)
    p_addp.add_argument("--phone", default=None)
    p_addp.add_argument("--email", default=None)
    p_addp.set_defaults(func=cmd_add_patient)

    p_adds = sub.add_parser("add-personnel", help="Create a dentist, assistant, staff or admin")
    p_adds.add_argument("--name", required=True)
    p_adds.add_argument("--type", required=True, choices=[t.value for t in PersonnelType])
    p_adds.add_argument("--phone", default=None)
    p_adds.add_argument("--email", default=None)
    p_adds.set_defaults(func=cmd_add_personnel)

    p_book = sub.add_parser("book", help="Schedule a session")
    p_book.add_argument("--patient-id", required=True)
    p_book.add_argument("--dentist-id", required=True)
    p_book.add_argument("--room-id", required=True)
    p_book.add_argument("--time", required=True, help="ISO datetime e.g. 2026-01-14T10:30")
    p_book.add_argument("--type", default=SessionType.EXAMINATION.value, choices=[t.value for t in SessionType])
    p_book.add_argument("--assistant-id", default=None, help="-1 or omitted for no assistant")
    p_book.add_argument("--note", default=None)
    p_book.set_defaults(func=cmd_book)

    p_sess = sub.add_parser("sessions", help="List sessions of one type, newest first")
    p_sess.add_argument("--type", default=SessionType.EXAMINATION.value, choices=[t.value for t in SessionType])
    p_sess.add_argument("--today", action="store_true", help="Only sessions of the current day")
    p_sess.add_argument("--limit", default="20")
    p_sess.add_argument("--page", default="0")
    p_sess.set_defaults(func=cmd_sessions)

    return p


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    init_db()  # ensures the tables
    try:
        args.func(args)
    except ClinicError as e:
        print(f"Error: {e.message}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
