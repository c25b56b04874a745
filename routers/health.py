import logging
from pathlib import Path
from typing import List, Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from alembic.util import CommandError
from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from db import engine
from errors import Unavailable

logger = logging.getLogger("iqtest.health")

router = APIRouter(prefix="/health", tags=["health"])

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


@router.get("/db")
def health_db():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database ping failed: %s", e)
        raise Unavailable(f"db_error: {type(e).__name__}") from e
    return {"ok": True}


def code_heads() -> List[str]:
    """Revision heads shipped in alembic/versions."""
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
    return list(ScriptDirectory.from_config(cfg).get_heads())


def db_revision() -> Optional[str]:
    """Revision stamped in the database, None when it was never migrated."""
    with engine.connect() as conn:
        try:
            return conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one_or_none()
        except SQLAlchemyError:
            return None


@router.get("/migrations")
def health_migrations():
    try:
        heads = code_heads()
    except (CommandError, OSError) as e:
        logger.warning("Could not read alembic heads: %s", e)
        heads = []

    try:
        current = db_revision()
    except SQLAlchemyError as e:
        return {
            "ok": False,
            "error": f"db_connect_failed: {type(e).__name__}",
            "code_heads": heads,
            "db_version": None,
        }

    synced = bool(heads) and current in heads
    return {"ok": synced, "synced": synced, "db_version": current, "code_heads": heads}
