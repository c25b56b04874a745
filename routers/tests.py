from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query

from deps.auth import CurrentUser, Principal, require_permission
from deps.services import get_catalog, get_scoring_engine
from models import Difficulty, TestCategory
from schemas.tests import (
    CategoryStat,
    QuickSubmitRequest,
    QuickSubmitResponse,
    SolvableTestOut,
    TestListOut,
    TestOut,
    TestUpdate,
)
from services.catalog import TestCatalog
from services.scoring import ScoringEngine

router = APIRouter(prefix="/tests", tags=["tests"])

Catalog = Annotated[TestCatalog, Depends(get_catalog)]
ContentAdmin = Annotated[Principal, Depends(require_permission("manage_content"))]


@router.get("", response_model=TestListOut)
def list_tests(
    catalog: Catalog,
    category: Optional[TestCategory] = None,
    difficulty: Optional[Difficulty] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    sort: Optional[str] = Query(default=None, pattern="^(participants|rating|createdAt)$"),
):
    return TestListOut.model_validate(
        catalog.list_tests(category, difficulty, search, page, limit, sort)
    )


@router.get("/categories/stats", response_model=List[CategoryStat])
def category_stats(catalog: Catalog):
    return [CategoryStat.model_validate(s) for s in catalog.category_stats()]


@router.get("/{test_id}/questions", response_model=SolvableTestOut)
def get_solvable_test(test_id: int, catalog: Catalog):
    # correct answers are stripped before the payload leaves the catalog
    return SolvableTestOut.model_validate(catalog.get_solvable_test(test_id))


@router.post("/{test_id}/submit", response_model=QuickSubmitResponse)
def quick_submit(
    test_id: int,
    req: QuickSubmitRequest,
    user: CurrentUser,
    engine: Annotated[ScoringEngine, Depends(get_scoring_engine)],
):
    return QuickSubmitResponse.model_validate(
        engine.quick_submit(test_id, req.answers, req.time_spent)
    )


# ---------- Content admin ----------


@router.get("/{test_id}", response_model=TestOut)
def get_test(test_id: int, admin: ContentAdmin, catalog: Catalog):
    # full view with correct answers; players use /{test_id}/questions
    return TestOut.model_validate(catalog.get_test(test_id))


@router.put("/{test_id}", response_model=TestOut)
def update_test(test_id: int, payload: TestUpdate, admin: ContentAdmin, catalog: Catalog):
    return TestOut.model_validate(catalog.update_test(test_id, payload))
