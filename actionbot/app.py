"""HTTP surface — trigger actions over FastAPI."""

import asyncio
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from actionbot.adapters.json_store import JsonStore
from actionbot.adapters.log_sender import LogChatSender
from actionbot.bots.action_handler import ActionHandler
from actionbot.channel import OutboundChannel, deliver
from actionbot.config import CONFIG
from actionbot.domain.models import ErrorKind, Failure, Reply
from actionbot.ports.outbound import ChatSender


def _log(msg: str):
    print(msg, file=sys.stderr)


class ActionBody(BaseModel):
    channel: str
    args: List[str] = Field(default_factory=list)


_STATUS_BY_KIND = {
    ErrorKind.INVALID_ARGUMENTS: 400,
    ErrorKind.UNKNOWN_ACTION: 404,
    ErrorKind.NOT_CONFIGURED: 409,
    ErrorKind.PERSISTENCE_ERROR: 502,
    ErrorKind.EXTERNAL_API_ERROR: 502,
}


def create_app(
    handler: Optional[ActionHandler] = None,
    outbound: Optional[OutboundChannel] = None,
    sender: Optional[ChatSender] = None,
) -> FastAPI:
    handler = handler or ActionHandler.from_config(JsonStore(CONFIG["store_path"]))
    outbound = outbound or OutboundChannel(maxsize=CONFIG["outbound_queue_size"])
    sender = sender or LogChatSender()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        delivery = asyncio.create_task(deliver(outbound, sender))
        _log("[App] outbound delivery started")
        try:
            yield
        finally:
            await handler.join()
            outbound.close()
            await delivery
            _log("[App] outbound delivery stopped")

    app = FastAPI(title="actionbot", lifespan=lifespan)
    app.state.handler = handler
    app.state.outbound = outbound

    @app.get("/health")
    async def health():
        return {"status": "ok", "pending_tasks": handler.pending_tasks}

    @app.post("/actions/{name}")
    async def run_action(name: str, body: ActionBody):
        result = await handler.run(name, body.args, body.channel, outbound)
        if isinstance(result, Failure):
            return JSONResponse(
                status_code=_STATUS_BY_KIND.get(result.kind, 500),
                content={"reply": None, "error": {"kind": result.kind.value, "detail": result.detail}},
            )
        reply = result.text if isinstance(result, Reply) else None
        return {"reply": reply, "error": None}

    return app


def main():
    import uvicorn

    uvicorn.run(create_app(), host=CONFIG["host"], port=CONFIG["port"])


if __name__ == "__main__":
    main()
