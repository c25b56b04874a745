import logging
import os
import tempfile

# Configure before anything reads settings or builds the engine
_TMP = tempfile.mkdtemp(prefix="iqtest-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/test.db"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.pop("QUESTION_BANK_PATH", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from db import Base, SessionLocal, engine  # noqa: E402
from deps.services import get_token_service  # noqa: E402
from main import app  # noqa: E402
from models import Role  # noqa: E402
from schemas.tests import QuestionIn, TestIn  # noqa: E402
from services.catalog import TestCatalog  # noqa: E402
from services.credentials import CredentialStore  # noqa: E402

log = logging.getLogger("tests")


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user():
    counter = {"n": 0}

    def _make(role=Role.USER, email=None, password="s3cret-pass"):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        with SessionLocal() as db:
            user = CredentialStore(db, log).register(f"User {counter['n']}", email, password, role=role)
            token = get_token_service().issue(user.id, user.role)
            return {
                "id": user.id,
                "email": user.email,
                "token": token,
                "headers": {"Authorization": f"Bearer {token}"},
            }

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(role=Role.ADMIN)


@pytest.fixture
def make_test():
    def _make(correct=(1, 0, 2, 3), categories=None, difficulties=None, is_active=True, points=None):
        with SessionLocal() as db:
            catalog = TestCatalog(db, log)
            ids = []
            for i, answer in enumerate(correct):
                q = catalog.create_question(
                    QuestionIn(
                        question_text=f"Question {i + 1}",
                        options=["a", "b", "c", "d"],
                        correct_answer=answer,
                        category=categories[i] if categories else "logic",
                        difficulty=difficulties[i] if difficulties else "medium",
                        points=points[i] if points else 1,
                    )
                )
                ids.append(q.id)
            test = catalog.create_test(
                TestIn(title="Pattern test", category="science", questions=ids, is_active=is_active)
            )
            return {"id": test.id, "question_ids": ids}

    return _make
