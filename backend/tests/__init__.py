"""
Lingua Review Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures (in-memory gateway, SQLite engine)
    └── unit/                # Unit tests (no external services)
        ├── test_sm2.py                    # SM-2 scheduling math
        ├── test_study_session_service.py  # Session lifecycle
        ├── test_memory_gateway.py         # In-memory gateway
        ├── test_sql_gateway.py            # SQLAlchemy gateway on aiosqlite
        ├── test_study_api.py              # HTTP routes and error mapping
        ├── test_learning_models.py        # Pydantic schemas
        ├── test_migrations.py             # Alembic migration
        └── test_config.py                 # Settings and YAML config

Running Tests:
    # Run all tests
    pytest backend/tests/ -v

    # Run with coverage
    pytest backend/tests/ --cov=lingua --cov-report=html
"""
