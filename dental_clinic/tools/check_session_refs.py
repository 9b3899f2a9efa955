from __future__ import annotations

from sqlalchemy import text

from dental_clinic.db import engine

# Sessions whose references point to rows that no longer exist.
# SQLite does not enforce foreign keys unless PRAGMA foreign_keys is on.
CHECKS = {
    "missing patient": (
        "SELECT COUNT(*) FROM sessions s LEFT JOIN patients p ON p.id = s.patient_id WHERE p.id IS NULL"
    ),
    "missing dentist": (
        "SELECT COUNT(*) FROM sessions s LEFT JOIN personnel d ON d.id = s.dentist_id WHERE d.id IS NULL"
    ),
    "missing assistant": (
        "SELECT COUNT(*) FROM sessions s LEFT JOIN personnel a ON a.id = s.assistant_id "
        "WHERE s.assistant_id IS NOT NULL AND a.id IS NULL"
    ),
    "missing room": (
        "SELECT COUNT(*) FROM sessions s LEFT JOIN rooms r ON r.id = s.room_id WHERE r.id IS NULL"
    ),
}


def run_checks(conn) -> dict[str, int]:
    return {label: conn.execute(text(sql)).scalar() for label, sql in CHECKS.items()}


def main() -> None:
    print("DB:", engine.url)
    with engine.connect() as c:
        results = run_checks(c)

    for label, count in results.items():
        print(f"{label:<28}: {count}")

    if any(results.values()):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
