import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

import uvicorn
from fastapi import (
    Cookie,
    Depends,
    FastAPI,
    Form,
    Request,
    Response,
)
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .config import settings
from .grader import submit_answer
from .models import AnswerResult, QuestionView, WelcomeView
from .registry import SessionRegistry, get_registry
from .session import Session

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# --- Logging Setup ---
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

if settings.LOG_TO_FILE:
    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    # Registry and grader log under the package logger.
    logging.getLogger("facts").addHandler(file_handler)
    logging.getLogger("facts").setLevel(logging.INFO)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"{settings.PROJECT_NAME} ready, {settings.MAX_QUESTIONS} facts per session"
    )
    yield
    logger.info(f"Shutting down with {len(app.state.registry)} live sessions")


app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan,
)
app.state.registry = SessionRegistry()

app.mount(
    "/static",
    StaticFiles(directory=os.path.join(BASE_DIR, "static")),
    name="static",
)
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))


# --- Dependencies ---
def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME),
) -> Optional[str]:
    return session_id


async def get_answer(request: Request) -> Optional[str]:
    """Read ``answer`` from the posted form, falling back to the query string."""
    form = await request.form()
    answer = form.get("answer")
    if answer is None:
        answer = request.query_params.get("answer")
    return answer


# --- Rendering ---
def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="Lax",
    )


def render_welcome(request: Request, session: Session) -> HTMLResponse:
    page = WelcomeView(num_facts=settings.MAX_QUESTIONS)
    response = templates.TemplateResponse(
        request, "welcome.html", {"page": page, "title": settings.PROJECT_NAME}
    )
    set_session_cookie(response, session.token)
    return response


def render_question(request: Request, session: Session) -> HTMLResponse:
    response = templates.TemplateResponse(
        request,
        "question.html",
        {"page": session.view(), "title": settings.PROJECT_NAME},
    )
    set_session_cookie(response, session.token)
    return response


# --- Routes ---
@app.get("/", response_class=HTMLResponse)
def new_session(
    request: Request,
    session_id: Optional[str] = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_registry),
):
    if session_id:
        logger.info(f"Session {session_id} replaced by a new one")
    session, _ = registry.resolve_or_create(None)
    return render_welcome(request, session)


@app.api_route("/next", methods=["GET", "POST"], response_class=HTMLResponse)
def next_question(
    request: Request,
    answer: Optional[str] = Depends(get_answer),
    session_id: Optional[str] = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_registry),
):
    session, created = registry.resolve_or_create(session_id)
    if created:
        return render_welcome(request, session)

    with session.lock:
        restart = session.has_current_problem and not answer
        if not restart:
            submit_answer(session, answer)
            return render_question(request, session)

    logger.info(f"Session {session.token} sent no answer, starting over")
    session, _ = registry.resolve_or_create(None)
    return render_welcome(request, session)


@app.post("/api/session", response_model=WelcomeView)
def start_api_session(
    response: Response,
    registry: SessionRegistry = Depends(get_registry),
):
    token = registry.create_session()
    set_session_cookie(response, token)
    return WelcomeView(num_facts=settings.MAX_QUESTIONS)


@app.post("/api/next", response_model=AnswerResult)
def submit_api_answer(
    answer: Optional[str] = Form(None),
    session_id: Optional[str] = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.lookup(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    with session.lock:
        if session.has_current_problem and not answer:
            return JSONResponse({"error": "Answer required"}, status_code=400)
        outcome = submit_answer(session, answer)
        return AnswerResult(outcome=outcome.value, question=session.view())


@app.get("/api/state", response_model=QuestionView)
def get_state(
    session_id: Optional[str] = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.lookup(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    if not session.has_current_problem:
        return JSONResponse({"error": "No problem issued yet"}, status_code=404)
    return session.view()


@app.get("/health")
def health(registry: SessionRegistry = Depends(get_registry)):
    return {"ok": True, "sessions": len(registry)}


def run():
    uvicorn.run(
        "facts.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
