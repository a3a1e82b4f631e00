from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse
from boards import BoardService
from exceptions import Exceptions
from models import Outcome, ReplyResponse, ThreadResponse, ThreadSummary
from validators import parse_id, required_fields


def outcome_response(outcome: Outcome) -> PlainTextResponse:
    """Negative outcomes are normal answers, so every outcome is a 200"""
    return PlainTextResponse(outcome.message, status_code=status.HTTP_200_OK)

# =============================================================================
# THREAD ENDPOINTS
# =============================================================================

def create_thread_router(boards: BoardService) -> APIRouter:
    router = APIRouter(prefix="/api", tags=["threads"])

    @router.get("/threads/{board}", response_model=List[ThreadSummary])
    async def list_threads(board: str):
        """Ten most recently bumped threads with their three newest replies"""
        return await boards.get_threads(board)

    @router.post("/threads/{board}", response_model=ThreadResponse, status_code=status.HTTP_201_CREATED)
    async def create_thread(board: str, body: Dict[str, Any] = Depends(required_fields("text", "delete_password"))):
        return await boards.create_thread(board, body["text"], body["delete_password"])

    @router.delete("/threads/{board}", response_class=PlainTextResponse)
    async def delete_thread(board: str, body: Dict[str, Any] = Depends(required_fields("thread_id", "delete_password"))):
        outcome = await boards.delete_thread(parse_id(body, "thread_id"), board, body["delete_password"])
        return outcome_response(outcome)

    @router.put("/threads/{board}", response_class=PlainTextResponse)
    async def report_thread(board: str, body: Dict[str, Any] = Depends(required_fields("report_id"))):
        outcome = await boards.report_thread(parse_id(body, "report_id"), board)
        return outcome_response(outcome)

    return router

# =============================================================================
# REPLY ENDPOINTS
# =============================================================================

def create_reply_router(boards: BoardService) -> APIRouter:
    router = APIRouter(prefix="/api", tags=["replies"])

    @router.get("/replies/{board}", response_model=ThreadResponse)
    async def get_thread_replies(board: str, thread_id: Optional[str] = None):
        """A thread with every reply, or an empty object if it does not exist"""
        if not thread_id:
            raise Exceptions.MISSING_THREAD_ID

        thread = await boards.get_replies(parse_id({"thread_id": thread_id}, "thread_id"), board)
        if thread is None:
            return JSONResponse({})
        return thread

    @router.post("/replies/{board}", response_model=ReplyResponse)
    async def create_reply(board: str, body: Dict[str, Any] = Depends(required_fields("text", "delete_password", "thread_id"))):
        result = await boards.create_reply(parse_id(body, "thread_id"), body["text"], body["delete_password"], board)
        if isinstance(result, Outcome):
            return outcome_response(result)
        return result

    @router.delete("/replies/{board}", response_class=PlainTextResponse)
    async def delete_reply(board: str, body: Dict[str, Any] = Depends(required_fields("thread_id", "reply_id", "delete_password"))):
        outcome = await boards.delete_reply(
            parse_id(body, "thread_id"), parse_id(body, "reply_id"), body["delete_password"], board
        )
        return outcome_response(outcome)

    @router.put("/replies/{board}", response_class=PlainTextResponse)
    async def report_reply(board: str, body: Dict[str, Any] = Depends(required_fields("thread_id", "reply_id"))):
        outcome = await boards.report_reply(parse_id(body, "thread_id"), parse_id(body, "reply_id"), board)
        return outcome_response(outcome)

    return router

# =============================================================================
# ROUTER FACTORY FUNCTIONS
# =============================================================================

def get_all_routers(boards: BoardService) -> List[APIRouter]:
    """Get all API routers"""
    return [
        create_thread_router(boards),
        create_reply_router(boards),
    ]
