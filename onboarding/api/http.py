import logging
import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

from ..config import AppConfig
from ..core.engine import OnboardingEngine
from ..core.errors import RegistrationClosedError, SessionNotFoundError, StepMismatchError
from ..domain.catalogs import get_bank_display_options

logger = logging.getLogger(__name__)


class SessionSnapshot(BaseModel):
    session_id: str
    current_index: int
    current_section: str
    highest_completed: int
    submitted: bool
    statuses: List[str]
    record: Dict[str, Dict[str, Any]]
    prefill: Dict[str, Any]


class StepSubmitResponse(BaseModel):
    accepted: bool
    submitted: bool
    reference: Optional[str] = None
    snapshot: SessionSnapshot


class JumpResponse(BaseModel):
    moved: bool
    snapshot: SessionSnapshot


class MessageItem(BaseModel):
    level: str
    title: str
    description: Optional[str] = None


class MessagesResponse(BaseModel):
    messages: List[MessageItem]


class ZipCodeLookupRequest(BaseModel):
    zipCode: str
    draft: Optional[Dict[str, Any]] = None
    explicit: bool = True  # False: chamada a cada tecla (só consulta com 8 dígitos)


class LookupResultItem(BaseModel):
    found: bool
    data: Optional[Dict[str, Any]] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None


class ZipCodeLookupResponse(BaseModel):
    draft: Dict[str, Any]
    result: Optional[LookupResultItem] = None
    stale: bool


class CnaeItem(BaseModel):
    id: str
    description: str
    display: str


class CnaeSearchResponse(BaseModel):
    items: List[CnaeItem]
    error: Optional[str] = None


class FormatResponse(BaseModel):
    kind: str
    value: str
    formatted: str


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware que gera request_id único para cada requisição
    e adiciona aos logs e headers de resposta.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = uuid4().hex[:16]
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Request processado: request_id={request_id}, "
            f"method={request.method}, path={request.url.path}, "
            f"status={response.status_code}, duration_ms={duration_ms:.2f}"
        )
        return response


def create_app(
    config: Optional[AppConfig] = None,
    engine: Optional[OnboardingEngine] = None,
) -> FastAPI:
    """
    Cria a aplicação FastAPI e injeta dependências principais (config + engine).
    """
    config = config or AppConfig.load_from_env()
    engine = engine or OnboardingEngine(config=config)

    app = FastAPI(
        title="Merchant Onboarding API",
        version="0.1.0",
        description="Cadastro em etapas de estabelecimentos (checkout/pagamentos).",
    )
    app.add_middleware(RequestIDMiddleware)

    def session_or_404(request: Request, session_id: str):
        try:
            return engine.get_session(session_id)
        except SessionNotFoundError:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.warning(f"Sessão inexistente: request_id={request_id}, session_id={session_id}")
            raise HTTPException(status_code=404, detail="Sessão não encontrada")

    def closed_conflict(request: Request, error: Exception) -> HTTPException:
        request_id = getattr(request.state, "request_id", "unknown")
        logger.warning(f"Operação recusada: request_id={request_id}, error={type(error).__name__}: {error}")
        return HTTPException(status_code=409, detail=str(error))

    @app.get("/health")
    def health_check():
        """
        Endpoint de health check para monitoramento.
        """
        return {
            "status": "healthy",
            "env": config.env,
            "cnae_catalog_loaded": engine.cnae_catalog.loaded,
        }

    @app.get("/steps")
    def list_steps() -> List[Dict[str, Any]]:
        return engine.list_steps()

    @app.get("/banks")
    def list_banks() -> List[Dict[str, str]]:
        return get_bank_display_options()

    @app.post("/sessions", response_model=SessionSnapshot, status_code=201)
    def start_session() -> SessionSnapshot:
        session = engine.start_session()
        return SessionSnapshot(**engine.snapshot(session))

    @app.get("/sessions/{session_id}", response_model=SessionSnapshot)
    def get_session(session_id: str, request: Request) -> SessionSnapshot:
        session = session_or_404(request, session_id)
        return SessionSnapshot(**engine.snapshot(session))

    @app.post("/sessions/{session_id}/steps/current")
    def submit_current_step(
        session_id: str,
        request: Request,
        payload: Dict[str, Any] = Body(...),
        index: Optional[int] = Query(default=None),
    ):
        """
        Submete a seção da etapa atual.

        - 200: seção aceita (avançou ou, na última etapa, cadastro submetido)
        - 422: erros de validação por campo; a etapa não muda
        - 409: cadastro já submetido ou índice diferente da etapa atual
        """
        request_id = getattr(request.state, "request_id", "unknown")
        session_or_404(request, session_id)

        try:
            outcome, snapshot = engine.submit_step(session_id, payload, index=index)
        except (RegistrationClosedError, StepMismatchError) as e:
            raise closed_conflict(request, e)
        except Exception as e:
            logger.error(
                f"Erro ao submeter etapa: request_id={request_id}, session_id={session_id}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            raise HTTPException(
                status_code=500,
                detail="Erro interno ao processar a etapa. Tente novamente mais tarde.",
            )

        if not outcome.accepted:
            return JSONResponse(
                status_code=422,
                content=jsonable_encoder({
                    "errors": [error.to_dict() for error in outcome.errors],
                    "snapshot": snapshot,
                }),
            )

        if outcome.submission_error:
            logger.error(
                f"Cadastro não entregue: request_id={request_id}, session_id={session_id}, "
                f"error={outcome.submission_error}"
            )
            raise HTTPException(
                status_code=502,
                detail="Não foi possível enviar o cadastro. Tente novamente em alguns minutos.",
            )

        return StepSubmitResponse(
            accepted=True,
            submitted=outcome.submitted,
            reference=outcome.receipt.reference if outcome.receipt else None,
            snapshot=SessionSnapshot(**snapshot),
        )

    @app.post("/sessions/{session_id}/back", response_model=SessionSnapshot)
    def go_back(session_id: str, request: Request) -> SessionSnapshot:
        session_or_404(request, session_id)
        try:
            return SessionSnapshot(**engine.go_back(session_id))
        except RegistrationClosedError as e:
            raise closed_conflict(request, e)

    @app.post("/sessions/{session_id}/jump/{target_index}", response_model=JumpResponse)
    def jump_to(session_id: str, target_index: int, request: Request) -> JumpResponse:
        session_or_404(request, session_id)
        try:
            moved, snapshot = engine.jump_to(session_id, target_index)
        except RegistrationClosedError as e:
            raise closed_conflict(request, e)
        return JumpResponse(moved=moved, snapshot=SessionSnapshot(**snapshot))

    @app.post("/sessions/{session_id}/reset", response_model=SessionSnapshot)
    def reset(session_id: str, request: Request) -> SessionSnapshot:
        session_or_404(request, session_id)
        return SessionSnapshot(**engine.reset(session_id))

    @app.get("/sessions/{session_id}/messages", response_model=MessagesResponse)
    def drain_messages(session_id: str, request: Request) -> MessagesResponse:
        session_or_404(request, session_id)
        messages = engine.drain_messages(session_id)
        return MessagesResponse(messages=[MessageItem(**m.to_dict()) for m in messages])

    @app.post("/sessions/{session_id}/lookups/cep", response_model=ZipCodeLookupResponse)
    def lookup_zip_code(
        session_id: str,
        payload: ZipCodeLookupRequest,
        request: Request,
    ) -> ZipCodeLookupResponse:
        """
        Consulta o endereço pelo CEP e devolve o rascunho preenchido.
        Falhas da consulta são avisos: a resposta é 200 e o rascunho fica como estava.
        """
        session_or_404(request, session_id)
        outcome = engine.lookup_zip_code(
            session_id,
            payload.zipCode,
            draft=payload.draft,
            explicit=payload.explicit,
        )
        return ZipCodeLookupResponse(
            draft=outcome.draft,
            result=LookupResultItem(**outcome.result.to_dict()) if outcome.result else None,
            stale=outcome.stale,
        )

    @app.get("/lookups/cnae", response_model=CnaeSearchResponse)
    def search_cnae(
        q: Optional[str] = Query(default=None),
        limit: Optional[int] = Query(default=50, ge=1, le=2000),
    ) -> CnaeSearchResponse:
        items = engine.search_cnae(q, limit=limit)
        error = engine.cnae_catalog.last_error
        return CnaeSearchResponse(
            items=[CnaeItem(id=i.id, description=i.description, display=i.display()) for i in items],
            error=error.message if error else None,
        )

    @app.get("/format/{kind}", response_model=FormatResponse)
    def format_value(kind: str, value: str = Query(default="")) -> FormatResponse:
        try:
            formatted = engine.format_value(kind, value)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Formatador desconhecido: {kind}")
        return FormatResponse(kind=kind, value=value, formatted=formatted)

    return app


app = create_app()
