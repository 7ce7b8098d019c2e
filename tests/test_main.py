import logging
from concurrent.futures import ThreadPoolExecutor
from logging.handlers import RotatingFileHandler

from fastapi.testclient import TestClient

from facts.config import settings
from facts.main import app

COOKIE = settings.SESSION_COOKIE_NAME

client = TestClient(app)


def solve(question):
    x, y = question["x"], question["y"]
    return {"+": x + y, "-": x - y, "*": x * y}[question["operator"]]


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert isinstance(body["sessions"], int)


def test_root_starts_session():
    c = TestClient(app)
    r = c.get("/")
    assert r.status_code == 200
    assert r.cookies.get(COOKIE)
    assert 'id="num-facts">150<' in r.text


def test_next_without_cookie_welcomes():
    c = TestClient(app)
    before = client.get("/health").json()["sessions"]
    r = c.get("/next")
    assert r.status_code == 200
    assert 'id="num-facts"' in r.text
    assert r.cookies.get(COOKIE)
    assert client.get("/health").json()["sessions"] == before + 1


def test_unknown_cookie_welcomes():
    c = TestClient(app)
    r = c.get("/next", headers={"Cookie": f"{COOKIE}=stale:42"})
    assert 'id="num-facts"' in r.text
    assert r.cookies.get(COOKIE) not in (None, "stale:42")


def test_html_round():
    c = TestClient(app)
    token = c.get("/").cookies[COOKIE]

    r = c.post("/next")
    assert r.status_code == 200
    assert 'name="answer"' in r.text
    assert r.cookies[COOKIE] == token

    question = c.get("/api/state").json()
    r = c.post("/next", data={"answer": str(solve(question))})
    assert '<span id="total">1</span>' in r.text
    assert '<span id="errors">0</span>' in r.text

    # garbage re-emits the same problem
    question = c.get("/api/state").json()
    r = c.post("/next", data={"answer": "abc"})
    assert f'<span id="x">{question["x"]}</span>' in r.text
    assert c.get("/api/state").json() == question


def test_html_answer_from_query_string():
    c = TestClient(app)
    c.get("/")
    c.get("/next")
    question = c.get("/api/state").json()
    r = c.get("/next", params={"answer": str(solve(question))})
    assert '<span id="total">1</span>' in r.text


def test_missing_answer_restarts_session():
    c = TestClient(app)
    token = c.get("/").cookies[COOKIE]
    c.post("/next")

    r = c.post("/next", data={"answer": ""})
    assert 'id="num-facts"' in r.text
    assert r.cookies[COOKIE] != token


def test_api_round():
    c = TestClient(app)
    r = c.post("/api/session")
    assert r.status_code == 200
    assert r.json() == {"num_facts": 150}

    r = c.post("/api/next")
    body = r.json()
    assert body["outcome"] == "started"
    question = body["question"]
    assert question["questions_answered"] == 0
    assert question["errors_charged"] == 0

    body = c.post("/api/next", data={"answer": str(solve(question))}).json()
    assert body["outcome"] == "correct"
    assert body["question"]["questions_answered"] == 1
    question = body["question"]

    wrong = str(solve(question) + 1)
    body = c.post("/api/next", data={"answer": wrong}).json()
    assert body["outcome"] == "charged"
    assert body["question"] == {**question, "errors_charged": 1}

    body = c.post("/api/next", data={"answer": wrong}).json()
    assert body["outcome"] == "retry"
    assert body["question"]["errors_charged"] == 1

    body = c.post("/api/next", data={"answer": "abc"}).json()
    assert body["outcome"] == "ignored"
    assert body["question"] == {**question, "errors_charged": 1}


def test_api_next_requires_session():
    c = TestClient(app)
    r = c.post("/api/next", data={"answer": "1"})
    assert r.status_code == 401
    assert r.json()["error"]


def test_api_next_requires_answer_once_started():
    c = TestClient(app)
    c.post("/api/session")
    c.post("/api/next")
    r = c.post("/api/next")
    assert r.status_code == 400


def test_api_state():
    c = TestClient(app)
    assert c.get("/api/state").status_code == 401

    c.post("/api/session")
    assert c.get("/api/state").status_code == 404

    question = c.post("/api/next").json()["question"]
    r = c.get("/api/state")
    assert r.status_code == 200
    assert r.json() == question


def test_oversized_answer_is_ignored():
    c = TestClient(app)
    c.get("/")
    c.post("/next")
    question = c.get("/api/state").json()

    r = c.post("/next", data={"answer": "9" * 5000})
    assert r.status_code == 200
    assert f'<span id="x">{question["x"]}</span>' in r.text
    assert c.get("/api/state").json() == question


def test_first_wrong_answer_is_charged_over_http():
    c = TestClient(app)
    c.post("/api/session")
    question = c.post("/api/next").json()["question"]

    body = c.post("/api/next", data={"answer": str(solve(question) + 1)}).json()
    assert body["outcome"] == "charged"
    assert body["question"]["errors_charged"] == 1


def test_concurrent_first_requests_issue_one_problem():
    token = TestClient(app).get("/").cookies[COOKIE]

    def first_request(_):
        return TestClient(app).post("/next", headers={"Cookie": f"{COOKIE}={token}"})

    with ThreadPoolExecutor(max_workers=8) as pool:
        pages = [r.text for r in pool.map(first_request, range(8))]

    # one request draws the first problem; the rest arrive without an answer
    assert sum('name="answer"' in page for page in pages) == 1
    assert sum('id="num-facts"' in page for page in pages) == 7


def test_file_logging_is_off_under_tests():
    assert settings.LOG_TO_FILE is False
    handlers = logging.getLogger("facts").handlers
    assert not any(isinstance(h, RotatingFileHandler) for h in handlers)
