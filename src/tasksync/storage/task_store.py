# src/tasksync/storage/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

from ..core.models import Category, Priority, Task

logger = logging.getLogger(__name__)

_TASK_SELECT = """
    SELECT t.id, t.title, t.completed, t.created_at,
           t.priority_id, p.title AS priority_title, p.color AS priority_color, p.ord AS priority_ord,
           t.category_id, c.title AS category_title
    FROM tasks t
    LEFT JOIN priorities p ON p.id = t.priority_id
    LEFT JOIN categories c ON c.id = t.category_id
"""


class TaskStore:
    """
    SQLite store for priorities, categories and tasks.

    Schema handling follows the usual migration-safe pattern:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Deleting a category leaves its tasks in place with category_id = NULL.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_total(None)
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS priorities (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    color TEXT NOT NULL DEFAULT '',
                    ord INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS categories (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL,
                    priority_id INTEGER,
                    category_id INTEGER
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("created_at", "REAL NOT NULL DEFAULT 0")
            add_col("priority_id", "INTEGER")
            add_col("category_id", "INTEGER")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_category ON tasks(category_id, completed)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        priority = None
        if row["priority_id"] is not None and row["priority_title"] is not None:
            priority = Priority(
                id=int(row["priority_id"]),
                title=str(row["priority_title"]),
                color=str(row["priority_color"] or ""),
                order=int(row["priority_ord"] or 0),
            )
        category = None
        if row["category_id"] is not None and row["category_title"] is not None:
            category = Category(id=int(row["category_id"]), title=str(row["category_title"]))
        return Task(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            completed=bool(row["completed"]),
            created_at=float(row["created_at"] or 0.0),
            priority=priority,
            category=category,
        )

    def _fetch_task(self, conn: sqlite3.Connection, task_id: int) -> Task | None:
        row = conn.execute(_TASK_SELECT + " WHERE t.id = ?", (int(task_id),)).fetchone()
        return self._row_to_task(row) if row else None

    # ---- priorities ----

    def list_priorities(self) -> list[Priority]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT id, title, color, ord FROM priorities ORDER BY ord ASC, id ASC").fetchall()
            return [
                Priority(id=int(r["id"]), title=str(r["title"]), color=str(r["color"] or ""), order=int(r["ord"]))
                for r in rows
            ]
        finally:
            conn.close()

    def add_priority(self, title: str, *, color: str = "", order: int = 0) -> Priority:
        if not title or not title.strip():
            raise ValueError("title is required")
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "INSERT INTO priorities(title, color, ord) VALUES (?, ?, ?)",
                (title.strip(), color, int(order)),
            )
            conn.commit()
            return Priority(id=int(cur.lastrowid or 0), title=title.strip(), color=color, order=int(order))
        finally:
            conn.close()

    # ---- categories ----

    def list_categories(self) -> list[Category]:
        return self.search_categories("")

    def search_categories(self, text: str) -> list[Category]:
        """Case-insensitive substring match on title; empty text returns everything."""
        needle = (text or "").strip().lower()
        conn = self._get_conn()
        try:
            if needle:
                rows = conn.execute(
                    "SELECT id, title FROM categories WHERE instr(lower(title), ?) > 0 ORDER BY id ASC",
                    (needle,),
                ).fetchall()
            else:
                rows = conn.execute("SELECT id, title FROM categories ORDER BY id ASC").fetchall()
            return [Category(id=int(r["id"]), title=str(r["title"])) for r in rows]
        finally:
            conn.close()

    def add_category(self, title: str) -> Category:
        if not title or not title.strip():
            raise ValueError("title is required")
        conn = self._get_conn()
        try:
            cur = conn.execute("INSERT INTO categories(title) VALUES (?)", (title.strip(),))
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for categories insert")
            logger.debug("Category added id=%s title=%s", rowid, title)
            return Category(id=int(rowid), title=title.strip())
        finally:
            conn.close()

    def update_category(self, category_id: int, title: str) -> None:
        if not title or not title.strip():
            raise ValueError("title is required")
        conn = self._get_conn()
        try:
            cur = conn.execute("UPDATE categories SET title = ? WHERE id = ?", (title.strip(), int(category_id)))
            conn.commit()
            if cur.rowcount != 1:
                raise LookupError(f"category {category_id} not found")
        finally:
            conn.close()

    def delete_category(self, category_id: int) -> Category:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT id, title FROM categories WHERE id = ?", (int(category_id),)).fetchone()
            if row is None:
                raise LookupError(f"category {category_id} not found")
            conn.execute("UPDATE tasks SET category_id = NULL WHERE category_id = ?", (int(category_id),))
            conn.execute("DELETE FROM categories WHERE id = ?", (int(category_id),))
            conn.commit()
            return Category(id=int(row["id"]), title=str(row["title"]))
        finally:
            conn.close()

    # ---- tasks ----

    def get_task(self, task_id: int) -> Task | None:
        conn = self._get_conn()
        try:
            return self._fetch_task(conn, task_id)
        finally:
            conn.close()

    def search_tasks(
        self,
        *,
        category_id: int | None = None,
        text: str = "",
        completed: bool | None = None,
        priority_id: int | None = None,
    ) -> list[Task]:
        """
        All filters are conjunctive; None / empty means "no restriction".

        Ordering: uncompleted first, newest first.
        """
        where: list[str] = []
        params: list[Any] = []

        if category_id is not None:
            where.append("t.category_id = ?")
            params.append(int(category_id))

        needle = (text or "").strip().lower()
        if needle:
            where.append("instr(lower(t.title), ?) > 0")
            params.append(needle)

        if completed is not None:
            where.append("t.completed = ?")
            params.append(1 if completed else 0)

        if priority_id is not None:
            where.append("t.priority_id = ?")
            params.append(int(priority_id))

        sql = _TASK_SELECT
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY t.completed ASC, t.created_at DESC, t.id DESC"

        conn = self._get_conn()
        try:
            return [self._row_to_task(r) for r in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def add_task(
        self,
        *,
        title: str,
        completed: bool = False,
        priority_id: int | None = None,
        category_id: int | None = None,
        created_at: float | None = None,
    ) -> Task:
        if not title or not title.strip():
            raise ValueError("title is required")

        now = time.time() if created_at is None else float(created_at)
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                INSERT INTO tasks(title, completed, created_at, priority_id, category_id)
                VALUES (?, ?, ?, ?, ?)
                """,
                (title.strip(), 1 if completed else 0, now, priority_id, category_id),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task = self._fetch_task(conn, int(rowid))
            if task is None:
                raise RuntimeError(f"task {rowid} vanished after insert")
            logger.debug("Task added id=%s category_id=%s completed=%s", rowid, category_id, completed)
            return task
        finally:
            conn.close()

    def update_task(
        self,
        task_id: int,
        *,
        title: str,
        completed: bool,
        priority_id: int | None,
        category_id: int | None,
    ) -> None:
        if not title or not title.strip():
            raise ValueError("title is required")
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE tasks
                SET title = ?, completed = ?, priority_id = ?, category_id = ?
                WHERE id = ?
                """,
                (title.strip(), 1 if completed else 0, priority_id, category_id, int(task_id)),
            )
            conn.commit()
            if cur.rowcount != 1:
                raise LookupError(f"task {task_id} not found")
        finally:
            conn.close()

    def delete_task(self, task_id: int) -> Task:
        conn = self._get_conn()
        try:
            task = self._fetch_task(conn, task_id)
            if task is None:
                raise LookupError(f"task {task_id} not found")
            conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            conn.commit()
            return task
        finally:
            conn.close()

    # ---- counters ----

    def _count(self, category_id: int | None, completed: bool | None) -> int:
        where: list[str] = []
        params: list[Any] = []
        if category_id is not None:
            where.append("category_id = ?")
            params.append(int(category_id))
        if completed is not None:
            where.append("completed = ?")
            params.append(1 if completed else 0)

        sql = "SELECT COUNT(*) FROM tasks"
        if where:
            sql += " WHERE " + " AND ".join(where)

        conn = self._get_conn()
        try:
            (n,) = conn.execute(sql, params).fetchone()
            return int(n)
        finally:
            conn.close()

    def count_total(self, category_id: int | None) -> int:
        return self._count(category_id, None)

    def count_completed(self, category_id: int | None) -> int:
        return self._count(category_id, True)

    def count_uncompleted(self, category_id: int | None) -> int:
        return self._count(category_id, False)

    def is_empty(self) -> bool:
        conn = self._get_conn()
        try:
            (n,) = conn.execute(
                "SELECT (SELECT COUNT(*) FROM priorities) + (SELECT COUNT(*) FROM categories)"
                " + (SELECT COUNT(*) FROM tasks)"
            ).fetchone()
            return int(n) == 0
        finally:
            conn.close()
