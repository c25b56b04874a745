import logging
from datetime import timedelta
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from config import get_settings
from db import get_db
from errors import Unavailable
from services.catalog import TestCatalog
from services.credentials import CredentialStore
from services.results import ResultStore
from services.scoring import ScoringEngine
from services.tokens import TokenService

DbSession = Annotated[Session, Depends(get_db)]


def get_token_service() -> TokenService:
    settings = get_settings()
    if not settings.jwt_secret:
        logging.getLogger("iqtest.auth").error("JWT_SECRET not configured")
        raise Unavailable("Server misconfigured: JWT_SECRET is not set")
    return TokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        lifetime=timedelta(days=settings.jwt_expires_days),
    )


def get_credential_store(db: DbSession) -> CredentialStore:
    return CredentialStore(db, logging.getLogger("iqtest.auth"))


def get_catalog(db: DbSession) -> TestCatalog:
    return TestCatalog(db, logging.getLogger("iqtest.catalog"))


def get_result_store(db: DbSession) -> ResultStore:
    return ResultStore(db, logging.getLogger("iqtest.results"))


def get_scoring_engine(
    catalog: Annotated[TestCatalog, Depends(get_catalog)],
    results: Annotated[ResultStore, Depends(get_result_store)],
) -> ScoringEngine:
    return ScoringEngine(catalog, results, logging.getLogger("iqtest.scoring"))
