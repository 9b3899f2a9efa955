"""
Dental clinic backend.

Layout:
- config.py      : settings from the environment (.env supported)
- db.py          : SQLAlchemy engine and sessions
- models.py      : ORM models and enums
- pagination.py  : limit/page -> skip/take
- responses.py   : response envelope
- queries.py     : listing and detail lookups
- scheduler.py   : session scheduling (existence checks + insert)
- registry.py    : patient and personnel creation
- api_main.py    : FastAPI application
- seed.py        : base data (rooms, personnel, teeth, categories, drugs)
- demo_data.py   : demo patients and sessions of the last weeks
- cli.py         : command line access to the same services
"""
