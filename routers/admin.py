from __future__ import annotations

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends

from bank import DEFAULT_BANK_PATH
from config import get_settings
from deps.auth import Principal, require_permission
from deps.services import get_catalog
from schemas.tests import QuestionIn, QuestionOut, TestIn, TestOut
from services.catalog import TestCatalog

router = APIRouter(prefix="/admin", tags=["admin"])

ContentAdmin = Annotated[Principal, Depends(require_permission("manage_content"))]
Catalog = Annotated[TestCatalog, Depends(get_catalog)]


@router.post("/questions", response_model=QuestionOut, status_code=201)
def create_question(payload: QuestionIn, admin: ContentAdmin, catalog: Catalog):
    return QuestionOut.model_validate(catalog.create_question(payload, admin.id))


@router.post("/tests", response_model=TestOut, status_code=201)
def create_test(payload: TestIn, admin: ContentAdmin, catalog: Catalog):
    return TestOut.model_validate(catalog.create_test(payload, admin.id))


@router.post("/reload")
def reload_bank(admin: ContentAdmin, catalog: Catalog):
    path = Path(get_settings().question_bank_path or DEFAULT_BANK_PATH)
    imported, skipped = catalog.import_bank(path, admin.id)
    return {"ok": True, "count": imported, "skipped": skipped}
