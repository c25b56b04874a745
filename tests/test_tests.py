import json

from bank import DEFAULT_BANK_PATH
from models import Role


def test_solvable_test_hides_correct_answers(client, make_test):
    t = make_test(correct=(1, 0, 2, 3))
    r = client.get(f"/tests/{t['id']}/questions")
    assert r.status_code == 200
    body = r.json()

    assert body["test"]["id"] == t["id"]
    assert [q["id"] for q in body["questions"]] == t["question_ids"]
    for q in body["questions"]:
        assert "correctAnswer" not in q
        assert set(q) == {
            "id",
            "questionText",
            "options",
            "explanation",
            "difficulty",
            "category",
            "image",
            "optionImages",
            "points",
            "timeLimit",
        }
    assert "correctAnswer" not in json.dumps(body)


def test_solvable_test_missing(client):
    r = client.get("/tests/12345/questions")
    assert r.status_code == 404
    assert r.json()["detail"] == "Test not found"


def test_solvable_test_inactive(client, make_test):
    t = make_test(is_active=False)
    r = client.get(f"/tests/{t['id']}/questions")
    assert r.status_code == 404
    assert r.json()["detail"] == "Test is not active"


def test_list_tests_only_active(client, make_test):
    active = make_test()
    make_test(is_active=False)
    r = client.get("/tests")
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 1
    assert body["tests"][0]["id"] == active["id"]
    assert body["tests"][0]["questionCount"] == 4
    assert "questions" not in body["tests"][0]


def test_list_tests_filters(client, make_test):
    make_test()
    assert client.get("/tests", params={"category": "history"}).json()["total"] == 0
    assert client.get("/tests", params={"category": "science"}).json()["total"] == 1
    assert client.get("/tests", params={"search": "pattern"}).json()["total"] == 1
    assert client.get("/tests", params={"category": "astrology"}).status_code == 400


def test_category_stats(client, make_test):
    make_test()
    make_test()
    r = client.get("/tests/categories/stats")
    assert r.status_code == 200
    assert r.json() == [{"category": "science", "count": 2}]


def test_quick_submit_requires_user(client, make_test):
    t = make_test()
    r = client.post(f"/tests/{t['id']}/submit", json={"answers": [1, 0, 2, 3]})
    assert r.status_code == 401


def test_quick_submit_positional(client, user, make_test):
    t = make_test(correct=(1, 0, 2, 3), points=(1, 2, 3, 4))
    r = client.post(
        f"/tests/{t['id']}/submit",
        json={"answers": [1, 3, 2], "timeSpent": 40},
        headers=user["headers"],
    )
    assert r.status_code == 200
    body = r.json()
    assert body["correctAnswers"] == 2
    assert body["totalQuestions"] == 4
    assert body["totalScore"] == 4
    assert body["percentage"] == 50.0
    assert body["timeSpent"] == 40
    assert body["results"][3]["userAnswer"] is None

    listing = client.get("/tests").json()
    assert listing["tests"][0]["participants"] == 1


def test_admin_creates_question_and_test(client, admin):
    q = client.post(
        "/admin/questions",
        json={
            "questionText": "2 + 2?",
            "options": ["3", "4"],
            "correctAnswer": 1,
            "category": "numeric",
            "difficulty": "easy",
        },
        headers=admin["headers"],
    )
    assert q.status_code == 201
    qid = q.json()["id"]

    t = client.post(
        "/admin/tests",
        json={"title": "Maths", "category": "science", "questions": [qid]},
        headers=admin["headers"],
    )
    assert t.status_code == 201
    assert t.json()["questions"][0]["correctAnswer"] == 1
    assert t.json()["questionCount"] == 1


def test_question_correct_answer_must_be_an_option(client, admin):
    r = client.post(
        "/admin/questions",
        json={"questionText": "?", "options": ["a", "b"], "correctAnswer": 2, "category": "x"},
        headers=admin["headers"],
    )
    assert r.status_code == 400


def test_question_needs_two_options(client, admin):
    r = client.post(
        "/admin/questions",
        json={"questionText": "?", "options": ["a"], "correctAnswer": 0, "category": "x"},
        headers=admin["headers"],
    )
    assert r.status_code == 400


def test_test_with_unknown_question(client, admin):
    r = client.post(
        "/admin/tests",
        json={"title": "Broken", "category": "science", "questions": [999]},
        headers=admin["headers"],
    )
    assert r.status_code == 400
    assert "999" in r.json()["detail"]


def test_content_admin_forbidden_for_users(client, user):
    r = client.post(
        "/admin/questions",
        json={"questionText": "?", "options": ["a", "b"], "correctAnswer": 0, "category": "x"},
        headers=user["headers"],
    )
    assert r.status_code == 403


def test_super_admin_may_manage_content(client, make_user):
    boss = make_user(role=Role.SUPER_ADMIN)
    r = client.post(
        "/admin/questions",
        json={"questionText": "?", "options": ["a", "b"], "correctAnswer": 0, "category": "x"},
        headers=boss["headers"],
    )
    assert r.status_code == 201


def test_reload_bank(client, admin):
    assert DEFAULT_BANK_PATH.exists()
    r = client.post("/admin/reload", headers=admin["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True and body["count"] == 1 and body["skipped"] == 0

    listing = client.get("/tests").json()
    assert listing["total"] == 1
    tid = listing["tests"][0]["id"]
    assert len(client.get(f"/tests/{tid}/questions").json()["questions"]) == 5


def test_reload_requires_admin(client):
    r = client.post("/admin/reload")
    assert r.status_code == 401


def test_reload_twice_keeps_one_copy(client, admin):
    first = client.post("/admin/reload", headers=admin["headers"]).json()
    second = client.post("/admin/reload", headers=admin["headers"]).json()
    assert first["count"] == second["count"] == 1

    listing = client.get("/tests").json()
    assert listing["total"] == 1
    tid = listing["tests"][0]["id"]
    assert len(client.get(f"/tests/{tid}/questions").json()["questions"]) == 5


def test_reload_updates_existing_bank_test(client, admin, tmp_path, monkeypatch):
    import routers.admin
    from config import Settings

    bank = tmp_path / "bank.json"
    monkeypatch.setattr(
        routers.admin, "get_settings", lambda: Settings(question_bank_path=str(bank))
    )

    def write(n_questions, time_limit):
        questions = [
            {"questionText": f"Q{i}", "options": ["a", "b"], "correctAnswer": 0, "category": "logic"}
            for i in range(n_questions)
        ]
        bank.write_text(
            json.dumps(
                [
                    {
                        "title": "Bank test",
                        "category": "science",
                        "timeLimit": time_limit,
                        "questions": questions,
                    }
                ]
            )
        )

    write(3, 10)
    client.post("/admin/reload", headers=admin["headers"])
    tid = client.get("/tests").json()["tests"][0]["id"]

    write(2, 15)
    client.post("/admin/reload", headers=admin["headers"])
    listing = client.get("/tests").json()
    assert listing["total"] == 1
    assert listing["tests"][0]["id"] == tid
    assert listing["tests"][0]["timeLimit"] == 15
    assert [q["questionText"] for q in client.get(f"/tests/{tid}/questions").json()["questions"]] == [
        "Q0",
        "Q1",
    ]


def test_admin_test_detail_includes_answers(client, admin, make_test):
    t = make_test(correct=(2, 1))
    r = client.get(f"/tests/{t['id']}", headers=admin["headers"])
    assert r.status_code == 200
    body = r.json()
    assert [q["correctAnswer"] for q in body["questions"]] == [2, 1]
    assert body["isActive"] is True


def test_test_detail_is_admin_only(client, user, make_test):
    t = make_test()
    assert client.get(f"/tests/{t['id']}").status_code == 401
    assert client.get(f"/tests/{t['id']}", headers=user["headers"]).status_code == 403


def test_test_detail_missing(client, admin):
    assert client.get("/tests/4242", headers=admin["headers"]).status_code == 404


def test_update_test_fields_and_question_order(client, admin, make_test):
    t = make_test(correct=(0, 1, 2))
    a, b, c = t["question_ids"]
    r = client.put(
        f"/tests/{t['id']}",
        json={"title": "Renamed", "isActive": False, "questions": [c, a]},
        headers=admin["headers"],
    )
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Renamed"
    assert body["isActive"] is False
    assert body["category"] == "science"
    assert [q["id"] for q in body["questions"]] == [c, a]
    assert body["questionCount"] == 2

    # deactivated tests leave the public listing
    assert client.get("/tests").json()["total"] == 0
    detail = client.get(f"/tests/{t['id']}", headers=admin["headers"]).json()
    assert [q["id"] for q in detail["questions"]] == [c, a]


def test_update_test_keeps_questions_when_omitted(client, admin, make_test):
    t = make_test()
    r = client.put(f"/tests/{t['id']}", json={"timeLimit": 45}, headers=admin["headers"])
    assert r.status_code == 200
    assert r.json()["timeLimit"] == 45
    assert [q["id"] for q in r.json()["questions"]] == t["question_ids"]


def test_update_test_rejects_unknown_questions(client, admin, make_test):
    t = make_test()
    r = client.put(f"/tests/{t['id']}", json={"questions": [31337]}, headers=admin["headers"])
    assert r.status_code == 400
    assert "31337" in r.json()["detail"]
    detail = client.get(f"/tests/{t['id']}", headers=admin["headers"]).json()
    assert detail["questionCount"] == 4


def test_update_test_cannot_clear_title(client, admin, make_test):
    t = make_test()
    r = client.put(f"/tests/{t['id']}", json={"title": None}, headers=admin["headers"])
    assert r.status_code == 400


def test_update_test_missing(client, admin):
    r = client.put("/tests/4242", json={"title": "x"}, headers=admin["headers"])
    assert r.status_code == 404


def test_update_test_forbidden_for_users(client, user, make_test):
    t = make_test()
    r = client.put(f"/tests/{t['id']}", json={"title": "x"}, headers=user["headers"])
    assert r.status_code == 403
