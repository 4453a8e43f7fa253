"""HTTP and WebSocket server for crondesk.

Exposes expression description and validation to the form layer, proxies
job submission and run previews to the external scheduler, and hosts one
CronEditor per WebSocket connection.
"""

import json
import logging

import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.handlers import (
    EditorSession,
    handle_config,
    handle_editor_message,
    send_state,
    send_ws,
)
from core.config import get_config
from core.scheduler_client import SchedulerClient
from cron.describe import describe
from cron.validation import validate_command, validate_expression

logger = logging.getLogger(__name__)

app = FastAPI(title="crondesk")

# Created on startup
scheduler: SchedulerClient | None = None


class ExpressionBody(BaseModel):
    expression: str


class CommandBody(BaseModel):
    command: str


class JobBody(BaseModel):
    schedule: str
    command: str
    name: str | None = None


class ToggleBody(BaseModel):
    is_active: bool


@app.on_event("startup")
async def startup() -> None:
    """Create the scheduler client on server start."""
    global scheduler
    config = get_config()
    scheduler = SchedulerClient()
    logger.info(
        "crondesk started: http://%s:%d (scheduler at %s)",
        config.server.host,
        config.server.port,
        scheduler.base_url,
    )


@app.on_event("shutdown")
async def shutdown() -> None:
    """Clean up resources."""
    try:
        if scheduler:
            await scheduler.close()
    except Exception:
        logger.exception("Error during shutdown")


@app.get("/api/describe")
async def describe_expression(expression: str = "", locale: str | None = None) -> JSONResponse:
    """Describe an expression; an empty description means nothing to show."""
    locale = locale or get_config().description.locale
    return JSONResponse({"expression": expression, "description": describe(expression, locale)})


@app.post("/api/validate")
async def validate(body: ExpressionBody) -> JSONResponse:
    return JSONResponse(validate_expression(body.expression).to_dict())


@app.post("/api/validate-command")
async def validate_job_command(body: CommandBody) -> JSONResponse:
    blocked = get_config().safety.blocked_commands
    return JSONResponse(validate_command(body.command, blocked).to_dict())


@app.get("/api/next-runs")
async def next_runs(expression: str = "", count: int | None = None) -> JSONResponse:
    """Preview upcoming runs as computed by the scheduler."""
    check = validate_expression(expression)
    if not check.is_valid:
        return JSONResponse({"error": check.message}, status_code=422)
    if scheduler is None:
        return JSONResponse({"error": "Scheduler client not initialized."}, status_code=503)

    result = await scheduler.next_runs(expression, count)
    if not result.ok:
        return JSONResponse({"error": result.error}, status_code=502)
    return JSONResponse({"runs": result.data})


@app.post("/api/jobs")
async def create_job(body: JobBody) -> JSONResponse:
    """Validate a job and hand it to the scheduler."""
    blocked = get_config().safety.blocked_commands
    for check in (validate_expression(body.schedule), validate_command(body.command, blocked)):
        if not check.is_valid:
            return JSONResponse({"error": check.message}, status_code=422)
    if scheduler is None:
        return JSONResponse({"error": "Scheduler client not initialized."}, status_code=503)

    result = await scheduler.submit_job(body.schedule, body.command, body.name)
    if not result.ok:
        return JSONResponse({"error": result.error}, status_code=502)
    return JSONResponse({"job": result.data})


@app.get("/api/jobs")
async def list_jobs() -> JSONResponse:
    if scheduler is None:
        return JSONResponse({"error": "Scheduler client not initialized."}, status_code=503)
    result = await scheduler.list_jobs()
    if not result.ok:
        return JSONResponse({"error": result.error}, status_code=502)
    return JSONResponse({"jobs": result.data})


@app.put("/api/jobs/{job_id}")
async def update_job(job_id: str, body: JobBody) -> JSONResponse:
    """Validate an edited job and replace the stored one."""
    blocked = get_config().safety.blocked_commands
    for check in (validate_expression(body.schedule), validate_command(body.command, blocked)):
        if not check.is_valid:
            return JSONResponse({"error": check.message}, status_code=422)
    if scheduler is None:
        return JSONResponse({"error": "Scheduler client not initialized."}, status_code=503)

    result = await scheduler.update_job(job_id, body.schedule, body.command, body.name)
    if not result.ok:
        return JSONResponse({"error": result.error}, status_code=502)
    return JSONResponse({"job": result.data})


@app.post("/api/jobs/{job_id}/toggle")
async def toggle_job(job_id: str, body: ToggleBody) -> JSONResponse:
    if scheduler is None:
        return JSONResponse({"error": "Scheduler client not initialized."}, status_code=503)
    result = await scheduler.toggle_job(job_id, body.is_active)
    if not result.ok:
        return JSONResponse({"error": result.error}, status_code=502)
    return JSONResponse({"job": result.data})


@app.delete("/api/jobs/{job_id}")
async def delete_job(job_id: str) -> JSONResponse:
    if scheduler is None:
        return JSONResponse({"error": "Scheduler client not initialized."}, status_code=503)
    result = await scheduler.delete_job(job_id)
    if not result.ok:
        return JSONResponse({"error": result.error}, status_code=502)
    return JSONResponse({"deleted": job_id})


@app.get("/api/jobs/{job_id}/history")
async def job_history(job_id: str) -> JSONResponse:
    """Past runs of a job as recorded by the scheduler."""
    if scheduler is None:
        return JSONResponse({"error": "Scheduler client not initialized."}, status_code=503)
    result = await scheduler.job_history(job_id)
    if not result.ok:
        return JSONResponse({"error": result.error}, status_code=502)
    return JSONResponse({"history": result.data})


@app.websocket("/ws/editor")
async def editor_endpoint(ws: WebSocket, expression: str = "") -> None:
    """Editing session for one form; the editor lives as long as the connection."""
    await ws.accept()
    session = EditorSession.open(expression)
    logger.info("Editor session opened")
    await send_state(ws, session)

    try:
        while True:
            raw = await ws.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                await send_ws(ws, "error", "Invalid message format.")
                continue
            if not isinstance(data, dict):
                await send_ws(ws, "error", "Invalid message format.")
                continue

            if data.get("type") == "config":
                await handle_config(ws, session, data)
                await send_state(ws, session)
            else:
                await handle_editor_message(ws, session, data)
    except WebSocketDisconnect:
        logger.info("Editor session closed")
    except Exception:
        logger.exception("WebSocket error")


def main() -> None:
    """Entry point for `python -m api.server`."""
    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    uvicorn.run(
        "api.server:app",
        host=config.server.host,
        port=config.server.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
