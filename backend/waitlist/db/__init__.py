"""Database Infrastructure - SQLAlchemy Base and portable column types.

Invariants:
    - Single async engine per process (initialized via init_db)
    - All timestamps stored and returned as timezone-aware UTC
"""
