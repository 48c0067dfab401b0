"""
FastAPI application serving one purchase order agent.

Endpoints
---------
  GET  /.well-known/agent.json   → agent card (discovery)
  POST /                         → JSON-RPC 2.0, method "message/send"
  POST /v1/message:send          → same, plain JSON body {"message": {...}}
  GET  /health                   → liveness probe

Protocol faults come back as JSON-RPC errors. Problems with the purchase
order itself come back as an agent message explaining what went wrong.
"""
import json
import logging
from typing import Any, Optional, Protocol

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from models.agent import AgentCard, JsonRpcRequest, Message, MessageSendParams

logger = logging.getLogger(__name__)

SEND_MESSAGE = "message/send"

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class Agent(Protocol):
    def card(self, url: str) -> AgentCard: ...
    def handle_message(self, message: Message) -> Message: ...


def _rpc_error(request_id: Any, code: int, message: str) -> JSONResponse:
    return JSONResponse({
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": code, "message": message},
    })


def _dump_message(message: Message) -> dict:
    return message.model_dump(mode="json", by_alias=True, exclude_none=True)


def create_app(agent: Agent, title: Optional[str] = None) -> FastAPI:
    app = FastAPI(title=title or type(agent).__name__, docs_url=None, redoc_url=None)

    @app.get("/.well-known/agent.json")
    def agent_card(request: Request):
        card = agent.card(str(request.base_url))
        return card.model_dump(mode="json", by_alias=True, exclude_none=True)

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    @app.post("/")
    async def json_rpc(request: Request):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _rpc_error(None, PARSE_ERROR, "Parse error")

        request_id = body.get("id") if isinstance(body, dict) else None
        try:
            rpc = JsonRpcRequest.model_validate(body)
        except ValidationError:
            return _rpc_error(request_id, INVALID_REQUEST, "Invalid request")

        if rpc.method != SEND_MESSAGE:
            return _rpc_error(rpc.id, METHOD_NOT_FOUND, f"Method not found: {rpc.method}")

        try:
            params = MessageSendParams.model_validate(rpc.params or {})
        except ValidationError as e:
            return _rpc_error(rpc.id, INVALID_PARAMS, f"Invalid params: {e.errors()[0]['msg']}")

        logger.info("Processing message %s", params.message.message_id)
        reply = await run_in_threadpool(agent.handle_message, params.message)
        return {"jsonrpc": "2.0", "id": rpc.id, "result": _dump_message(reply)}

    @app.post("/v1/message:send")
    async def send_message(request: Request):
        try:
            params = MessageSendParams.model_validate(await request.json())
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise HTTPException(400, "Body is not valid JSON")
        except ValidationError as e:
            raise HTTPException(422, f"Invalid message: {e.errors()[0]['msg']}")

        logger.info("Processing message %s", params.message.message_id)
        reply = await run_in_threadpool(agent.handle_message, params.message)
        return _dump_message(reply)

    return app
