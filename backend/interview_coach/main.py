import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from interview_coach.ai.llm import LLMClient
from interview_coach.auth import AuthError, AuthService, get_bearer_token
from interview_coach.catalog import list_companies, list_roles
from interview_coach.core.config import Settings, load_settings
from interview_coach.db.repo import Repository
from interview_coach.db.store import JsonKeyValueStore
from interview_coach.interview.engine import (
    InterviewAccessError,
    InterviewEngine,
    InterviewValidationError,
    summarize,
)
from interview_coach.interview.models import InterviewConfig
from interview_coach.interview.service import InterviewAI
from interview_coach.schemas import (
    AnswerRequest,
    ChatRequest,
    ChatResponse,
    EvaluateResponse,
    LoginRequest,
    ProfileUpdate,
    QuestionsResponse,
    ResetPasswordRequest,
    SignupRequest,
)

logger = logging.getLogger("interview_coach.main")


def _get_allowed_origins(settings: Settings) -> list[str]:
    if settings.cors_allow_origins:
        return settings.cors_allow_origins
    return [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]


def _parse_config(raw: Any, detail: str) -> InterviewConfig:
    if not isinstance(raw, dict):
        raise HTTPException(status_code=400, detail=detail)
    try:
        return InterviewConfig.model_validate(raw)
    except ValidationError:
        raise HTTPException(status_code=400, detail=detail)


def _session_payload(session) -> dict:
    return session.model_dump(by_alias=True, mode="json", exclude={"user_id"})


def create_app(settings: Settings | None = None, llm: LLMClient | None = None) -> FastAPI:
    settings = settings or load_settings()
    llm = llm or LLMClient(settings)
    repo = Repository(JsonKeyValueStore(settings.store_path))
    ai = InterviewAI(llm)

    app = FastAPI(title="AI Interview Coach")
    app.state.settings = settings
    app.state.repo = repo
    app.state.ai = ai
    app.state.engine = InterviewEngine(ai, repo)
    app.state.auth = AuthService(repo, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_get_allowed_origins(settings),
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    @app.on_event("startup")
    async def startup_banner():
        if not llm.configured:
            logger.warning("[SYSTEM] LLM API key missing; all interview AI calls use local fallback")
        logger.info("[SYSTEM] model=%s base_url=%s", settings.llm_model, settings.llm_base_url)
        if settings.store_path is None:
            logger.warning("[SYSTEM] STORE_PATH not set; accounts and history are kept in memory only")

    def _user_id(request: Request) -> str:
        return request.app.state.auth.resolve_user_id(get_bearer_token(request))

    @app.get("/api/health")
    async def health():
        return {"ok": True, "service": "ai-interview-backend"}

    @app.get("/api/catalog")
    async def catalog():
        return {"companies": list_companies(), "roles": list_roles()}

    # ---------- stateless AI endpoints ----------

    @app.post("/api/interview/questions", response_model=QuestionsResponse, response_model_exclude_none=True)
    async def interview_questions(payload: dict):
        config = _parse_config(payload.get("config"), "Missing required interview config.")
        batch = await ai.generate_questions(config)
        return QuestionsResponse(questions=batch.questions, source=batch.source, error=batch.error)

    @app.post("/api/interview/evaluate", response_model=EvaluateResponse, response_model_exclude_none=True)
    async def interview_evaluate(payload: dict):
        question = payload.get("question")
        if not isinstance(question, str) or not question.strip():
            raise HTTPException(status_code=400, detail="Missing required payload for evaluation.")
        config = _parse_config(payload.get("config"), "Missing required payload for evaluation.")
        outcome = await ai.evaluate_answer(question, str(payload.get("answer") or ""), config)
        return EvaluateResponse(evaluation=outcome.evaluation, source=outcome.source, error=outcome.error)

    @app.post("/api/interview/chat", response_model=ChatResponse, response_model_exclude_none=True)
    async def interview_chat(req: ChatRequest):
        if not req.message.strip():
            raise HTTPException(status_code=400, detail="Message is required.")
        outcome = await ai.chat(req.message, req.history)
        return ChatResponse(response=outcome.response, source=outcome.source, error=outcome.error)

    # ---------- accounts ----------

    @app.post("/api/auth/signup")
    def signup(req: SignupRequest, request: Request):
        try:
            profile, token = request.app.state.auth.signup(req.name, req.email, req.password)
        except AuthError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return {"user": profile.model_dump(), "token": token}

    @app.post("/api/auth/login")
    def login(req: LoginRequest, request: Request):
        try:
            profile, token = request.app.state.auth.login(req.email, req.password)
        except AuthError as exc:
            raise HTTPException(status_code=401, detail=str(exc))
        return {"user": profile.model_dump(), "token": token}

    @app.post("/api/auth/reset-password")
    def reset_password(req: ResetPasswordRequest, request: Request):
        try:
            request.app.state.auth.reset_password(req.email, req.new_password)
        except AuthError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return {"ok": True}

    @app.post("/api/auth/logout")
    def logout(request: Request):
        user_id = request.app.state.auth.logout(get_bearer_token(request))
        request.app.state.engine.reset(user_id)
        return {"ok": True}

    @app.get("/api/profile")
    def get_profile(request: Request):
        return repo.get_profile(_user_id(request)).model_dump()

    @app.put("/api/profile")
    def update_profile(req: ProfileUpdate, request: Request):
        profile = repo.get_profile(_user_id(request))
        updated = profile.model_copy(update=req.model_dump(exclude_none=True))
        return repo.update_profile(updated).model_dump()

    # ---------- sessions ----------

    @app.post("/api/session/start")
    async def start_session(payload: dict, request: Request):
        user_id = _user_id(request)
        config = _parse_config(payload.get("config"), "Missing required interview config.")
        session = await request.app.state.engine.start(user_id, config)
        return _session_payload(session)

    @app.post("/api/session/{session_id}/answer")
    async def submit_answer(session_id: str, req: AnswerRequest, request: Request):
        user_id = _user_id(request)
        engine: InterviewEngine = request.app.state.engine
        if engine.get_session(session_id) is None:
            raise HTTPException(status_code=404, detail="Invalid interview session")
        try:
            session = await engine.submit_answer(session_id, req.answer, user_id=user_id)
        except InterviewAccessError:
            raise HTTPException(status_code=403, detail="Forbidden")
        except InterviewValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return _session_payload(session)

    def _owned_session(session_id: str, request: Request):
        user_id = _user_id(request)
        session = request.app.state.engine.get_session(session_id)
        if session is None:
            session = next((item for item in repo.get_history(user_id) if item.id == session_id), None)
            if session is None:
                raise HTTPException(status_code=404, detail="Session not found")
        if session.user_id and session.user_id != user_id:
            raise HTTPException(status_code=403, detail="Forbidden")
        return session

    @app.get("/api/session/{session_id}")
    def get_session(session_id: str, request: Request):
        return _session_payload(_owned_session(session_id, request))

    @app.get("/api/session/{session_id}/summary")
    def get_session_summary(session_id: str, request: Request):
        return summarize(_owned_session(session_id, request))

    @app.get("/api/history")
    def history(request: Request):
        return [_session_payload(item) for item in repo.get_history(_user_id(request))]

    return app


app = create_app()
