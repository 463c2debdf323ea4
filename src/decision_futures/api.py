"""HTTP API for decision exploration.

Routes:
    GET    /health                   Liveness check
    POST   /start-decision-making    Generate grounded scenarios for a decision or question
    POST   /expand-consequence       Expand one node of a saved decision tree
    GET    /decisions                List a user's decisions
    GET    /decisions/{decision_id}  Get one decision
    DELETE /decisions/{decision_id}  Delete one decision

Request and response bodies use camelCase keys.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from decision_futures import __version__
from decision_futures.config import settings
from decision_futures.llm import LLMError
from decision_futures.models import Scenario, WireModel
from decision_futures.phases.generate import GenerationExhaustedError
from decision_futures.service import DecisionService, build_service
from decision_futures.storage import (
    DecisionAccessDeniedError,
    DecisionConflictError,
    DecisionNotFoundError,
)
from decision_futures.tree import InvalidNodePathError

logger = logging.getLogger(__name__)


class StartRequest(WireModel):
    message: str | None = None
    email: str | None = None


class ExpandRequest(WireModel):
    decision_id: str | None = None
    node_id: str | None = None
    original_decision: str = ""
    consequence: Scenario | None = None
    email: str | None = None


def _require(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise HTTPException(status_code=400, detail=f"{field} is required")
    return value.strip()


def get_service(request: Request) -> DecisionService:
    return request.app.state.service


def _error_response(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


def create_app(service: DecisionService | None = None) -> FastAPI:
    """Create the API application.

    Args:
        service: Service to serve requests with. If None, one is built from
            settings at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_service = app.state.service is None
        if owns_service:
            app.state.service = build_service(settings)
        yield
        if owns_service:
            await app.state.service.close()
            app.state.service = None

    app = FastAPI(title="decision-futures", version=__version__, lifespan=lifespan)
    app.state.service = service
    app.state.started = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DecisionNotFoundError, _error_response(404))
    app.add_exception_handler(DecisionAccessDeniedError, _error_response(403))
    app.add_exception_handler(InvalidNodePathError, _error_response(400))
    app.add_exception_handler(DecisionConflictError, _error_response(409))
    app.add_exception_handler(GenerationExhaustedError, _error_response(500))
    app.add_exception_handler(LLMError, _error_response(500))

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - app.state.started, 3),
        }

    @app.post("/start-decision-making")
    async def start_decision_making(
        body: StartRequest, service: DecisionService = Depends(get_service)
    ):
        email = _require(body.email, "email")
        message = _require(body.message, "message")

        outcome = await service.start(message, email)
        result = outcome.result
        response = {
            "inputType": result.input_type.value,
            "consequences": [s.to_wire() for s in result.scenarios],
            "searchResults": [r.to_wire() for r in result.search_results],
        }
        if outcome.decision_id is not None:
            response["decisionId"] = outcome.decision_id
        return response

    @app.post("/expand-consequence")
    async def expand_consequence(
        body: ExpandRequest, service: DecisionService = Depends(get_service)
    ):
        email = _require(body.email, "email")
        decision_id = _require(body.decision_id, "decisionId")
        node_id = _require(body.node_id, "nodeId")
        if body.consequence is None:
            raise HTTPException(status_code=400, detail="consequence is required")

        children = await service.expand(
            decision_id, node_id, body.original_decision, body.consequence, email
        )
        return {"consequences": [s.to_wire() for s in children]}

    @app.get("/decisions")
    async def list_decisions(
        email: str | None = None, service: DecisionService = Depends(get_service)
    ):
        decisions = await service.list_decisions(_require(email, "email"))
        return {"decisions": [d.to_wire() for d in decisions]}

    @app.get("/decisions/{decision_id}")
    async def get_decision(
        decision_id: str, email: str | None = None, service: DecisionService = Depends(get_service)
    ):
        decision = await service.get_decision(decision_id, _require(email, "email"))
        return {"decision": decision.to_wire()}

    @app.delete("/decisions/{decision_id}")
    async def delete_decision(
        decision_id: str, email: str | None = None, service: DecisionService = Depends(get_service)
    ):
        await service.delete_decision(decision_id, _require(email, "email"))
        return {"success": True}

    return app
