import aiosqlite
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Dict, Optional, Any, Sequence
from exceptions import StorageError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def timestamp() -> str:
    """Current UTC time as a sortable ISO-8601 string"""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def _where(match: Dict[str, Any]) -> tuple[str, tuple]:
    if not match:
        return "", ()
    clause = " AND ".join(f"{_identifier(column)} = ?" for column in match)
    return f" WHERE {clause}", tuple(match.values())


def _order(order_by: Sequence[str]) -> str:
    """Build an ORDER BY list; a leading '-' sorts that column descending"""
    terms = []
    for column in order_by:
        if column.startswith("-"):
            terms.append(f"{_identifier(column[1:])} DESC")
        else:
            terms.append(f"{_identifier(column)} ASC")
    return ", ".join(terms)


def _columns(columns: Sequence[str]) -> str:
    return ", ".join(_identifier(column) for column in columns) if columns else "*"


@dataclass(frozen=True, slots=True)
class TableNames:
    """Physical table names; a suffix selects an isolated dataset"""
    threads: str
    replies: str

    @classmethod
    def with_suffix(cls, suffix: str = "") -> "TableNames":
        if suffix and not re.match(r"^[A-Za-z0-9_]+$", suffix):
            raise ValueError(f"Invalid table suffix: {suffix!r}")
        return cls(threads=f"threads{suffix}", replies=f"replies{suffix}")


class DatabaseManager:
    def __init__(self, db_path: str, tables: TableNames):
        self.db_path = db_path
        self.tables = tables

    async def get_connection(self):
        conn = await aiosqlite.connect(self.db_path)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def initialize(self):
        """Create the thread and reply tables if they are missing"""
        threads, replies = self.tables.threads, self.tables.replies
        schema = f"""
            CREATE TABLE IF NOT EXISTS {threads} (
                _id INTEGER PRIMARY KEY AUTOINCREMENT,
                board TEXT NOT NULL,
                text TEXT NOT NULL,
                delete_password TEXT NOT NULL,
                created_on TEXT NOT NULL,
                bumped_on TEXT NOT NULL,
                reported BOOLEAN NOT NULL DEFAULT FALSE,
                CHECK (bumped_on >= created_on)
            );
            CREATE INDEX IF NOT EXISTS idx_{threads}_board_bumped
                ON {threads} (board, bumped_on DESC);

            CREATE TABLE IF NOT EXISTS {replies} (
                _id INTEGER PRIMARY KEY AUTOINCREMENT,
                thread_id INTEGER NOT NULL REFERENCES {threads} (_id),
                text TEXT NOT NULL,
                delete_password TEXT NOT NULL,
                created_on TEXT NOT NULL,
                reported BOOLEAN NOT NULL DEFAULT FALSE
            );
            CREATE INDEX IF NOT EXISTS idx_{replies}_thread_created
                ON {replies} (thread_id, created_on DESC);
        """
        conn = await self.get_connection()
        try:
            await conn.executescript(schema)
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error("Schema creation failed for %s: %s", self.db_path, e)
            raise StorageError(f"Could not initialize database: {e}") from e
        finally:
            await conn.close()
        logger.info("Database ready at %s (tables %s, %s)", self.db_path, threads, replies)

    async def execute_query(self, query: str, params: tuple = (), fetch_one: bool = False):
        conn = await self.get_connection()
        try:
            cursor = await conn.execute(query, params)
            if fetch_one:
                result = await cursor.fetchone()
            else:
                result = await cursor.fetchall()
            await cursor.close()
            return result
        except aiosqlite.Error as e:
            logger.error("Query failed: %s (%s)", e, query.strip().split("\n")[0])
            raise StorageError(str(e)) from e
        finally:
            await conn.close()

    async def execute_write(self, query: str, params: tuple = ()) -> int:
        """Run an UPDATE or DELETE and return the number of affected rows"""
        conn = await self.get_connection()
        try:
            cursor = await conn.execute(query, params)
            await conn.commit()
            count = cursor.rowcount
            await cursor.close()
            return count
        except aiosqlite.Error as e:
            logger.error("Write failed: %s (%s)", e, query.strip().split("\n")[0])
            raise StorageError(str(e)) from e
        finally:
            await conn.close()

    async def insert(self, table: str, values: Dict[str, Any]) -> Dict:
        """Insert one row and return it as stored"""
        table = _identifier(table)
        columns = _columns(list(values))
        placeholders = ", ".join("?" for _ in values)
        conn = await self.get_connection()
        try:
            cursor = await conn.execute(
                f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                tuple(values.values())
            )
            row_id = cursor.lastrowid
            await conn.commit()
            cursor = await conn.execute(f"SELECT * FROM {table} WHERE rowid = ?", (row_id,))
            row = await cursor.fetchone()
            await cursor.close()
        except aiosqlite.Error as e:
            logger.error("Insert into %s failed: %s", table, e)
            raise StorageError(f"Could not insert into {table}: {e}") from e
        finally:
            await conn.close()

        if row is None:
            raise StorageError(f"Inserted row missing from {table}")
        return dict(row)

    async def select(self, table: str, match: Optional[Dict[str, Any]] = None,
                     columns: Sequence[str] = (), order_by: Sequence[str] = (),
                     limit: Optional[int] = None) -> List[Dict]:
        where, params = _where(match or {})
        query = f"SELECT {_columns(columns)} FROM {_identifier(table)}{where}"
        if order_by:
            query += f" ORDER BY {_order(order_by)}"
        if limit is not None:
            query += " LIMIT ?"
            params += (limit,)
        rows = await self.execute_query(query, params)
        return [dict(row) for row in rows]

    async def count(self, table: str, match: Dict[str, Any]) -> int:
        """Exact number of rows matching every column in ``match``"""
        where, params = _where(match)
        row = await self.execute_query(
            f"SELECT COUNT(*) AS n FROM {_identifier(table)}{where}",
            params,
            fetch_one=True
        )
        return row["n"] if row else 0

    async def update(self, table: str, values: Dict[str, Any], match: Dict[str, Any]) -> int:
        assignments = ", ".join(f"{_identifier(column)} = ?" for column in values)
        where, params = _where(match)
        return await self.execute_write(
            f"UPDATE {_identifier(table)} SET {assignments}{where}",
            tuple(values.values()) + params
        )

    async def delete(self, table: str, match: Dict[str, Any]) -> int:
        if not match:
            raise ValueError("Refusing to delete without a filter")
        where, params = _where(match)
        return await self.execute_write(f"DELETE FROM {_identifier(table)}{where}", params)

    async def select_nested(self, parent: str, child: str, foreign_key: str, relation: str,
                            match: Dict[str, Any], columns: Sequence[str] = (),
                            order_by: Sequence[str] = (), limit: Optional[int] = None,
                            child_columns: Sequence[str] = (), child_order_by: Sequence[str] = (),
                            child_limit: Optional[int] = None) -> List[Dict]:
        """
        Select parent rows and attach their children under ``relation``.

        Parents are filtered, ordered and limited like ``select``. Children are
        ordered per parent and, with ``child_limit``, capped per parent.
        """
        parent_columns = list(columns)
        if parent_columns and "_id" not in parent_columns:
            parent_columns.append("_id")
        parents = await self.select(parent, match, parent_columns, order_by, limit)
        if not parents:
            return []

        child = _identifier(child)
        foreign_key = _identifier(foreign_key)
        parent_ids = tuple(row["_id"] for row in parents)
        placeholders = ", ".join("?" for _ in parent_ids)
        child_order = _order(child_order_by) if child_order_by else "_id ASC"

        if child_limit is None:
            query = f"""
                SELECT {_columns(child_columns)}, {foreign_key} AS parent_ref FROM {child}
                WHERE {foreign_key} IN ({placeholders})
                ORDER BY {child_order}
            """
            params = parent_ids
        else:
            query = f"""
                SELECT {_columns(child_columns)}, parent_ref FROM (
                    SELECT *, {foreign_key} AS parent_ref,
                           ROW_NUMBER() OVER (PARTITION BY {foreign_key} ORDER BY {child_order}) AS position
                    FROM {child}
                    WHERE {foreign_key} IN ({placeholders})
                )
                WHERE position <= ?
                ORDER BY parent_ref, position
            """
            params = parent_ids + (child_limit,)

        children: Dict[int, List[Dict]] = {parent_id: [] for parent_id in parent_ids}
        for row in await self.execute_query(query, params):
            item = dict(row)
            item.pop("position", None)
            children[item.pop("parent_ref")].append(item)

        for row in parents:
            row[relation] = children[row["_id"]]
        return parents
