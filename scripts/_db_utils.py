from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.orm import Session

from app.petcare.db import build_engine, build_sessionmaker


def create_script_engine(db_url: str):
    return build_engine(db_url)


@contextmanager
def script_session(db_url: str):
    """Standalone session for scripts; commits on success and disposes the engine."""
    engine = create_script_engine(db_url)
    sm = build_sessionmaker(engine)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()
