import asyncio
import logging
from typing import List, Optional, Union
from config import THREAD_LIST_LIMIT, REPLY_PREVIEW_LIMIT, DELETED_TEXT
from database import DatabaseManager, timestamp
from models import Outcome, ReplyResponse, ThreadResponse, ThreadSummary
from security import PasswordHasher

logger = logging.getLogger(__name__)

THREAD_SUMMARY_COLUMNS = ("_id", "board", "text", "created_on", "bumped_on")
THREAD_DETAIL_COLUMNS = THREAD_SUMMARY_COLUMNS + ("reported",)
REPLY_PREVIEW_COLUMNS = ("_id", "text", "created_on")
REPLY_DETAIL_COLUMNS = ("_id", "thread_id", "text", "created_on", "reported")

NEWEST_BUMP_FIRST = ("-bumped_on", "-_id")
NEWEST_REPLY_FIRST = ("-created_on", "-_id")


class BoardService:
    """Threads and replies of every board, backed by a DatabaseManager."""

    def __init__(self, db: DatabaseManager, hasher: PasswordHasher) -> None:
        self.db = db
        self.hasher = hasher

    @property
    def threads(self) -> str:
        return self.db.tables.threads

    @property
    def replies(self) -> str:
        return self.db.tables.replies

    async def _hash(self, password: str) -> str:
        # bcrypt is CPU bound; run it off the event loop
        return await asyncio.to_thread(self.hasher.hash_password, password)

    async def _verify(self, password: str, hashed: str) -> bool:
        return await asyncio.to_thread(self.hasher.verify_password, password, hashed)

    async def _thread_exists(self, thread_id: int, board: str) -> int:
        return await self.db.count(self.threads, {"_id": thread_id, "board": board})

    async def create_thread(self, board: str, text: str, password: str) -> ThreadResponse:
        """Create a thread on ``board``; a new thread is bumped at creation time."""
        hashed = await self._hash(password)
        now = timestamp()
        row = await self.db.insert(self.threads, {
            "board": board,
            "text": text,
            "delete_password": hashed,
            "created_on": now,
            "bumped_on": now,
        })
        logger.info("Thread %s created on board %r", row["_id"], board)
        return ThreadResponse(**row)

    async def get_threads(self, board: str) -> List[ThreadSummary]:
        """The most recently bumped threads, each with its newest replies."""
        rows = await self.db.select_nested(
            self.threads, self.replies, "thread_id", "replies",
            {"board": board},
            columns=THREAD_SUMMARY_COLUMNS,
            order_by=NEWEST_BUMP_FIRST,
            limit=THREAD_LIST_LIMIT,
            child_columns=REPLY_PREVIEW_COLUMNS,
            child_order_by=NEWEST_REPLY_FIRST,
            child_limit=REPLY_PREVIEW_LIMIT,
        )
        return [ThreadSummary(**row) for row in rows]

    async def report_thread(self, thread_id: int, board: str) -> Outcome:
        count = await self.db.update(self.threads, {"reported": True}, {"_id": thread_id, "board": board})
        if not count:
            logger.debug("Report for unknown thread %s on %r", thread_id, board)
            return Outcome.not_found("thread not found")
        logger.info("Thread %s reported on board %r", thread_id, board)
        return Outcome.success("reported")

    async def delete_thread(self, thread_id: int, board: str, password: str) -> Outcome:
        """
        Delete a thread and every reply under it.

        Replies go first; the thread row is only removed once they are gone.
        """
        rows = await self.db.select(
            self.threads, {"_id": thread_id, "board": board}, columns=("_id", "delete_password")
        )
        if not rows or not await self._verify(password, rows[0]["delete_password"]):
            logger.debug("Rejected delete of thread %s on %r", thread_id, board)
            return Outcome.incorrect_password()

        removed = await self.db.delete(self.replies, {"thread_id": thread_id})
        deleted = await self.db.delete(self.threads, {"_id": thread_id, "board": board})
        if not deleted:
            logger.warning("Thread %s vanished after %d replies were deleted", thread_id, removed)
            return Outcome.error("thread could not be deleted")

        logger.info("Thread %s deleted from board %r with %d replies", thread_id, board, removed)
        return Outcome.success()

    async def create_reply(self, thread_id: int, text: str, password: str,
                           board: str) -> Union[ReplyResponse, Outcome]:
        if not await self._thread_exists(thread_id, board):
            return Outcome.not_found("thread not found")

        hashed = await self._hash(password)
        now = timestamp()
        bump = self.db.update(self.threads, {"bumped_on": now}, {"_id": thread_id, "board": board})
        insert = self.db.insert(self.replies, {
            "thread_id": thread_id,
            "text": text,
            "delete_password": hashed,
            "created_on": now,
        })
        _, row = await asyncio.gather(bump, insert)

        logger.info("Reply %s added to thread %s on %r", row["_id"], thread_id, board)
        return ReplyResponse(**row)

    async def get_replies(self, thread_id: int, board: str) -> Optional[ThreadResponse]:
        """A single thread with all of its replies, or None when it does not exist."""
        rows = await self.db.select_nested(
            self.threads, self.replies, "thread_id", "replies",
            {"_id": thread_id, "board": board},
            columns=THREAD_DETAIL_COLUMNS,
            child_columns=REPLY_DETAIL_COLUMNS,
            child_order_by=NEWEST_REPLY_FIRST,
        )
        if not rows:
            return None
        return ThreadResponse(**rows[0])

    async def report_reply(self, thread_id: int, reply_id: int, board: str) -> Outcome:
        thread_count, flagged = await asyncio.gather(
            self._thread_exists(thread_id, board),
            self.db.update(self.replies, {"reported": True}, {"_id": reply_id, "thread_id": thread_id}),
        )
        if not thread_count or not flagged:
            return Outcome.not_found("reply not found")
        logger.info("Reply %s in thread %s reported", reply_id, thread_id)
        return Outcome.success("reported")

    async def delete_reply(self, thread_id: int, reply_id: int, password: str, board: str) -> Outcome:
        """Replace a reply's text with the deleted marker, keeping the row."""
        thread_count, replies = await asyncio.gather(
            self._thread_exists(thread_id, board),
            self.db.select(
                self.replies, {"_id": reply_id, "thread_id": thread_id}, columns=("_id", "delete_password")
            ),
        )
        if not thread_count or not replies:
            return Outcome.incorrect_password()
        if not await self._verify(password, replies[0]["delete_password"]):
            logger.debug("Rejected delete of reply %s in thread %s", reply_id, thread_id)
            return Outcome.incorrect_password()

        updated = await self.db.update(
            self.replies, {"text": DELETED_TEXT}, {"_id": reply_id, "thread_id": thread_id}
        )
        if not updated:
            return Outcome.incorrect_password()

        logger.info("Reply %s in thread %s deleted", reply_id, thread_id)
        return Outcome.success()
