from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile, WebSocket, WebSocketDisconnect

from interview_agent.api.schemas import ApiKeyRequest, ResumeTextRequest, UtteranceRequest
from interview_agent.capture.dedup import CaptionDeduplicator
from interview_agent.resume.parser import parse_resume
from interview_agent.rules import EVENT_STREAM_QUEUE_SIZE
from interview_agent.session.controller import SessionController

logger = logging.getLogger("interview_agent.api")

router = APIRouter()


def _controller(request: Request) -> SessionController:
    return request.app.state.controller


def _deduplicator(request: Request) -> CaptionDeduplicator:
    return request.app.state.caption_deduplicator


@router.get("/healthz")
async def healthz():
    return {"status": "ok", "service": "interview-agent"}


@router.post("/api/messages")
async def post_message(payload: dict, request: Request):
    return await _controller(request).dispatch(payload)


@router.post("/api/resume/text")
async def upload_resume_text(req: ResumeTextRequest, request: Request):
    return await _controller(request).dispatch(
        {"type": "UPLOAD_RESUME", "resumeText": req.resume_text, "candidateName": req.candidate_name}
    )


@router.post("/api/resume/upload")
async def upload_resume_file(request: Request, file: UploadFile = File(...), candidate_name: str = Form("")):
    try:
        content = await file.read()
        text = parse_resume(file.filename, content)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Resume parsing failed: {exc}")

    return await _controller(request).dispatch(
        {"type": "UPLOAD_RESUME", "resumeText": text, "candidateName": candidate_name}
    )


@router.post("/api/interview/start")
async def start_interview(request: Request):
    _deduplicator(request).reset()
    return await _controller(request).dispatch({"type": "START_INTERVIEW"})


@router.post("/api/interview/utterance")
async def post_utterance(req: UtteranceRequest, request: Request):
    if req.source == "caption" and not _deduplicator(request).accept(req.text):
        return {"ok": True, "dropped": True}
    return await _controller(request).dispatch({"type": "UTTERANCE", "utterance": req.model_dump()})


@router.post("/api/interview/force-assess")
async def force_assess(request: Request):
    return await _controller(request).dispatch({"type": "FORCE_ASSESS"})


@router.post("/api/interview/end")
async def end_interview(request: Request):
    return await _controller(request).dispatch({"type": "END_INTERVIEW"})


@router.post("/api/interview/report/retry")
async def retry_report(request: Request):
    return await _controller(request).dispatch({"type": "RETRY_REPORT"})


@router.post("/api/reset")
async def reset(request: Request):
    return await _controller(request).dispatch({"type": "RESET"})


@router.get("/api/state")
async def get_state(request: Request):
    return await _controller(request).dispatch({"type": "GET_STATE"})


@router.get("/api/settings/api-key")
async def get_api_key(request: Request):
    return await _controller(request).dispatch({"type": "GET_API_KEY"})


@router.post("/api/settings/api-key")
async def set_api_key(req: ApiKeyRequest, request: Request):
    return await _controller(request).dispatch({"type": "SET_API_KEY", "key": req.key})


@router.websocket("/ws/events")
async def stream_events(websocket: WebSocket):
    controller: SessionController = websocket.app.state.controller
    await websocket.accept()
    queue: asyncio.Queue[dict] = asyncio.Queue(maxsize=EVENT_STREAM_QUEUE_SIZE)

    async def _enqueue(payload: dict) -> None:
        try:
            queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Event stream backlog full, dropping event | type=%s", payload.get("type"))

    async def _pump() -> None:
        while True:
            payload = await queue.get()
            await websocket.send_text(json.dumps(payload, default=str))

    unsubscribe = controller.handle.bus.subscribe(_enqueue)
    sender: asyncio.Task | None = None
    try:
        await websocket.send_text(json.dumps({"type": "state", **controller.get_state()}, default=str))
        sender = asyncio.create_task(_pump())
        # inbound frames are ignored; reading is how a disconnect is noticed
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Event stream closed by client")
    finally:
        unsubscribe()
        if sender is not None:
            sender.cancel()
