from __future__ import annotations

import os
import sqlite3
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from .models import (
    DashboardContent,
    Goal,
    GoalDuration,
    JournalEntry,
    NewTask,
    Task,
    TaskPriority,
    User,
)

UNSET = object()

_GOAL_COLUMNS = (
    "title",
    "description",
    "target_value",
    "current_value",
    "unit",
    "duration",
    "completed",
)
_TASK_COLUMNS = (
    "title",
    "description",
    "category",
    "time_estimate",
    "priority",
    "completed",
    "related_goal_id",
)
_JOURNAL_COLUMNS = ("title", "content", "mood")


class GrowthRepository:
    """SQLiteベースのユーザー/ジャーナル/目標/タスク/ダッシュボード管理。

    (user_id, date) 単位で一意なジャーナルとダッシュボードはUNIQUE制約とupsertで保証する。
    """

    def __init__(self, db_path: Optional[Path] = None):
        root = Path(__file__).resolve().parents[2]
        default_path = root / "data" / "growth_tracker.db"
        env_path = os.getenv("GROWTH_TRACKER_DB_PATH")
        if db_path:
            self.db_path = Path(db_path)
        elif env_path:
            self.db_path = Path(env_path)
        else:
            self.db_path = default_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS journals (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    date TEXT NOT NULL,
                    title TEXT,
                    content TEXT,
                    mood TEXT,
                    created_at TEXT NOT NULL,
                    UNIQUE (user_id, date)
                );

                CREATE TABLE IF NOT EXISTS goals (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    title TEXT NOT NULL,
                    description TEXT,
                    target_value INTEGER,
                    current_value INTEGER NOT NULL DEFAULT 0,
                    unit TEXT,
                    duration TEXT CHECK (
                        duration IS NULL
                        OR duration IN ('daily','weekly','monthly','yearly','ongoing')
                    ),
                    completed INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    date TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    category TEXT NOT NULL DEFAULT 'General',
                    time_estimate INTEGER,
                    priority TEXT NOT NULL DEFAULT 'medium'
                        CHECK (priority IN ('low','medium','high')),
                    completed INTEGER NOT NULL DEFAULT 0,
                    related_goal_id INTEGER,
                    generated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS dashboard_content (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    date TEXT NOT NULL,
                    daily_quote TEXT,
                    focus_area TEXT,
                    created_at TEXT NOT NULL,
                    UNIQUE (user_id, date)
                );

                CREATE INDEX IF NOT EXISTS idx_journals_user_date ON journals(user_id, date);
                CREATE INDEX IF NOT EXISTS idx_goals_user ON goals(user_id);
                CREATE INDEX IF NOT EXISTS idx_tasks_user_date ON tasks(user_id, date);
                """
            )
            conn.commit()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # row変換
    # ------------------------------------------------------------------
    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            password_hash=row["password_hash"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _row_to_journal(row: sqlite3.Row) -> JournalEntry:
        return JournalEntry(
            id=row["id"],
            user_id=row["user_id"],
            date=row["date"],
            title=row["title"],
            content=row["content"],
            mood=row["mood"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _row_to_goal(row: sqlite3.Row) -> Goal:
        return Goal(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            description=row["description"],
            target_value=row["target_value"],
            current_value=row["current_value"],
            unit=row["unit"],
            duration=GoalDuration(row["duration"]) if row["duration"] else None,
            completed=bool(row["completed"]),
            created_at=row["created_at"],
        )

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            user_id=row["user_id"],
            date=row["date"],
            title=row["title"],
            description=row["description"],
            category=row["category"],
            time_estimate=row["time_estimate"],
            priority=TaskPriority(row["priority"]),
            completed=bool(row["completed"]),
            related_goal_id=row["related_goal_id"],
            generated_at=row["generated_at"],
        )

    @staticmethod
    def _row_to_content(row: sqlite3.Row) -> DashboardContent:
        return DashboardContent(
            id=row["id"],
            user_id=row["user_id"],
            date=row["date"],
            daily_quote=row["daily_quote"],
            focus_area=row["focus_area"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _to_db_value(value: Any) -> Any:
        if isinstance(value, (TaskPriority, GoalDuration)):
            return value.value
        if isinstance(value, bool):
            return int(value)
        return value

    # ------------------------------------------------------------------
    # users
    # ------------------------------------------------------------------
    def create_user(self, email: str, name: str, password_hash: str) -> User:
        """ユーザーを新規作成する。

        Raises:
            sqlite3.IntegrityError: emailが重複している場合
        """
        now = self._now()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO users (email, name, password_hash, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (email, name, password_hash, now, now),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM users WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return self._row_to_user(row)

    def update_user(
        self,
        user_id: int,
        *,
        name: Any = UNSET,
        password_hash: Any = UNSET,
    ) -> Optional[User]:
        """名前・資格情報を更新する。UNSETのフィールドは変更しない。"""
        fields: list[str] = []
        params: list[object] = []
        if name is not UNSET:
            fields.append("name = ?")
            params.append(name)
        if password_hash is not UNSET:
            fields.append("password_hash = ?")
            params.append(password_hash)

        if not fields:
            return self.get_user(user_id)

        fields.append("updated_at = ?")
        params.extend([self._now(), user_id])
        with self._connect() as conn:
            conn.execute(f"UPDATE users SET {', '.join(fields)} WHERE id = ?", params)
            conn.commit()
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def get_user(self, user_id: int) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        return self._row_to_user(row) if row else None

    # ------------------------------------------------------------------
    # journals
    # ------------------------------------------------------------------
    def upsert_journal(
        self,
        user_id: int,
        entry_date: str,
        *,
        title: Any = UNSET,
        content: Any = UNSET,
        mood: Any = UNSET,
    ) -> JournalEntry:
        """(user_id, date) 単位でジャーナルを作成または更新する。

        UNSETのフィールドは既存行の値を維持する。
        """
        values = {"title": title, "content": content, "mood": mood}
        provided = {key: value for key, value in values.items() if value is not UNSET}
        insert_values = {key: provided.get(key) for key in _JOURNAL_COLUMNS}

        if provided:
            update_clause = ", ".join(f"{key} = excluded.{key}" for key in provided)
        else:
            update_clause = "date = excluded.date"

        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO journals (user_id, date, title, content, mood, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, date) DO UPDATE SET {update_clause}
                """,
                (
                    user_id,
                    entry_date,
                    insert_values["title"],
                    insert_values["content"],
                    insert_values["mood"],
                    self._now(),
                ),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM journals WHERE user_id = ? AND date = ?",
                (user_id, entry_date),
            ).fetchone()
        return self._row_to_journal(row)

    def get_journals(self, user_id: int) -> list[JournalEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM journals WHERE user_id = ? ORDER BY date DESC, id DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_journal(row) for row in rows]

    def get_journal_by_date(self, user_id: int, entry_date: str) -> Optional[JournalEntry]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM journals WHERE user_id = ? AND date = ?",
                (user_id, entry_date),
            ).fetchone()
        return self._row_to_journal(row) if row else None

    def get_recent_journals(
        self, user_id: int, days: int, today: Optional[date] = None
    ) -> list[JournalEntry]:
        """today - days 以降のジャーナルを新しい順に返す。"""
        since = ((today or date.today()) - timedelta(days=days)).isoformat()
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM journals
                WHERE user_id = ? AND date >= ?
                ORDER BY date DESC, id DESC
                """,
                (user_id, since),
            ).fetchall()
        return [self._row_to_journal(row) for row in rows]

    # ------------------------------------------------------------------
    # goals
    # ------------------------------------------------------------------
    def create_goal(
        self,
        user_id: int,
        title: str,
        description: Optional[str] = None,
        target_value: Optional[int] = None,
        current_value: int = 0,
        unit: Optional[str] = None,
        duration: Optional[GoalDuration] = None,
        completed: bool = False,
    ) -> Goal:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO goals (
                    user_id, title, description, target_value, current_value,
                    unit, duration, completed, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    title,
                    description,
                    target_value,
                    current_value,
                    unit,
                    self._to_db_value(duration),
                    int(completed),
                    self._now(),
                ),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM goals WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return self._row_to_goal(row)

    def get_goals(self, user_id: int) -> list[Goal]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM goals WHERE user_id = ? ORDER BY created_at DESC, id DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_goal(row) for row in rows]

    def get_goal(self, user_id: int, goal_id: int) -> Optional[Goal]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM goals WHERE id = ? AND user_id = ?", (goal_id, user_id)
            ).fetchone()
        return self._row_to_goal(row) if row else None

    def update_goal(
        self, user_id: int, goal_id: int, changes: Mapping[str, Any]
    ) -> Optional[Goal]:
        """指定カラムのみ更新する。他ユーザーの目標はNoneを返す。"""
        fields: list[str] = []
        params: list[object] = []
        for column in _GOAL_COLUMNS:
            if column in changes:
                fields.append(f"{column} = ?")
                params.append(self._to_db_value(changes[column]))

        if not fields:
            return self.get_goal(user_id, goal_id)

        params.extend([goal_id, user_id])
        with self._connect() as conn:
            conn.execute(
                f"UPDATE goals SET {', '.join(fields)} WHERE id = ? AND user_id = ?",
                params,
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM goals WHERE id = ? AND user_id = ?", (goal_id, user_id)
            ).fetchone()
        return self._row_to_goal(row) if row else None

    def adjust_goal_progress(self, user_id: int, goal_id: int, delta: int) -> Optional[Goal]:
        """current_valueを増減する。0未満にはならない。"""
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE goals SET current_value = MAX(current_value + ?, 0)
                WHERE id = ? AND user_id = ?
                """,
                (delta, goal_id, user_id),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM goals WHERE id = ? AND user_id = ?", (goal_id, user_id)
            ).fetchone()
        return self._row_to_goal(row) if row else None

    def delete_goal(self, user_id: int, goal_id: int) -> bool:
        """目標を削除し、参照しているタスクの関連付けを外す。"""
        with self._connect() as conn:
            conn.execute(
                "UPDATE tasks SET related_goal_id = NULL WHERE related_goal_id = ? AND user_id = ?",
                (goal_id, user_id),
            )
            cursor = conn.execute(
                "DELETE FROM goals WHERE id = ? AND user_id = ?", (goal_id, user_id)
            )
            conn.commit()
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # tasks
    # ------------------------------------------------------------------
    def _insert_tasks(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        task_date: str,
        items: Iterable[NewTask],
    ) -> list[int]:
        generated_at = self._now()
        ids: list[int] = []
        for item in items:
            cursor = conn.execute(
                """
                INSERT INTO tasks (
                    user_id, date, title, description, category, time_estimate,
                    priority, completed, related_goal_id, generated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (
                    user_id,
                    task_date,
                    item.title,
                    item.description,
                    item.category,
                    item.time_estimate,
                    self._to_db_value(item.priority),
                    item.related_goal_id,
                    generated_at,
                ),
            )
            ids.append(cursor.lastrowid)
        return ids

    def _fetch_tasks_by_ids(self, conn: sqlite3.Connection, ids: list[int]) -> list[Task]:
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = conn.execute(
            f"SELECT * FROM tasks WHERE id IN ({placeholders}) ORDER BY id ASC", ids
        ).fetchall()
        return [self._row_to_task(row) for row in rows]

    def create_tasks(self, user_id: int, task_date: str, items: Iterable[NewTask]) -> list[Task]:
        """1日分のタスクを1トランザクションで一括登録する。"""
        with self._connect() as conn:
            ids = self._insert_tasks(conn, user_id, task_date, items)
            conn.commit()
            return self._fetch_tasks_by_ids(conn, ids)

    def get_tasks(self, user_id: int, task_date: Optional[str] = None) -> list[Task]:
        query = "SELECT * FROM tasks WHERE user_id = ?"
        params: list[object] = [user_id]
        if task_date:
            query += " AND date = ?"
            params.append(task_date)
        query += " ORDER BY generated_at DESC, id ASC"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_task(row) for row in rows]

    def get_task(self, user_id: int, task_id: int) -> Optional[Task]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
            ).fetchone()
        return self._row_to_task(row) if row else None

    def update_task(
        self, user_id: int, task_id: int, changes: Mapping[str, Any]
    ) -> Optional[Task]:
        fields: list[str] = []
        params: list[object] = []
        for column in _TASK_COLUMNS:
            if column in changes:
                fields.append(f"{column} = ?")
                params.append(self._to_db_value(changes[column]))

        if not fields:
            return self.get_task(user_id, task_id)

        params.extend([task_id, user_id])
        with self._connect() as conn:
            conn.execute(
                f"UPDATE tasks SET {', '.join(fields)} WHERE id = ? AND user_id = ?",
                params,
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
            ).fetchone()
        return self._row_to_task(row) if row else None

    def delete_task(self, user_id: int, task_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
            )
            conn.commit()
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # dashboard content
    # ------------------------------------------------------------------
    def get_dashboard_content(self, user_id: int, content_date: str) -> Optional[DashboardContent]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM dashboard_content WHERE user_id = ? AND date = ?",
                (user_id, content_date),
            ).fetchone()
        return self._row_to_content(row) if row else None

    def upsert_dashboard_content(
        self,
        user_id: int,
        content_date: str,
        daily_quote: Optional[str],
        focus_area: Optional[str],
    ) -> DashboardContent:
        """同日の行があれば同じidのまま更新する。"""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO dashboard_content (user_id, date, daily_quote, focus_area, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, date) DO UPDATE SET
                    daily_quote = excluded.daily_quote,
                    focus_area = excluded.focus_area
                """,
                (user_id, content_date, daily_quote, focus_area, self._now()),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM dashboard_content WHERE user_id = ? AND date = ?",
                (user_id, content_date),
            ).fetchone()
        return self._row_to_content(row)

    def create_daily_plan(
        self,
        user_id: int,
        plan_date: str,
        daily_quote: Optional[str],
        focus_area: Optional[str],
        items: Iterable[NewTask],
    ) -> Optional[DashboardContent]:
        """その日のダッシュボードとタスク一式を1トランザクションで登録する。

        (user_id, date) のダッシュボード行が既に存在する場合は何も書き込まずNoneを返す。
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO dashboard_content (user_id, date, daily_quote, focus_area, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, date) DO NOTHING
                """,
                (user_id, plan_date, daily_quote, focus_area, self._now()),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                return None
            content_id = cursor.lastrowid
            self._insert_tasks(conn, user_id, plan_date, items)
            conn.commit()
            row = conn.execute(
                "SELECT * FROM dashboard_content WHERE id = ?", (content_id,)
            ).fetchone()
        return self._row_to_content(row)

    def replace_daily_plan(
        self,
        user_id: int,
        plan_date: str,
        daily_quote: Optional[str],
        focus_area: Optional[str],
        items: Iterable[NewTask],
    ) -> tuple[list[Task], DashboardContent]:
        """その日のタスクを入れ替え、ダッシュボード内容を同じ行のまま更新する。

        削除・登録・更新は1トランザクションで行い、途中で失敗した場合は既存のタスクが残る。
        """
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM tasks WHERE user_id = ? AND date = ?", (user_id, plan_date)
            )
            ids = self._insert_tasks(conn, user_id, plan_date, items)
            conn.execute(
                """
                INSERT INTO dashboard_content (user_id, date, daily_quote, focus_area, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, date) DO UPDATE SET
                    daily_quote = excluded.daily_quote,
                    focus_area = excluded.focus_area
                """,
                (user_id, plan_date, daily_quote, focus_area, self._now()),
            )
            conn.commit()
            tasks = self._fetch_tasks_by_ids(conn, ids)
            row = conn.execute(
                "SELECT * FROM dashboard_content WHERE user_id = ? AND date = ?",
                (user_id, plan_date),
            ).fetchone()
        return tasks, self._row_to_content(row)
