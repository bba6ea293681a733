# storage/repos.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import json
import time
from typing import List, Optional, Sequence

from domain.models import Interval, Task
from storage.db import Database


def _now_ts() -> int:
    return int(time.time())


class TaskRepo:
    def __init__(self, db: Database):
        self.db = db

    def create(
        self,
        message: str,
        n_intervals: int,
        interval_duration: float,
        tags: Sequence[str] = (),
    ) -> Task:
        with self.db.lock:
            cur = self.db.conn.execute(
                """
                INSERT INTO tasks(message, n_pomodoros, duration_sec, tags, created_at)
                VALUES(?,?,?,?,?)
                """,
                (message, int(n_intervals), float(interval_duration), json.dumps(list(tags)), _now_ts()),
            )
            self.db.conn.commit()
            return self.get(cur.lastrowid)

    def _intervals(self, task_id: int) -> List[Interval]:
        rows = self.db.conn.execute(
            """
            SELECT start_ts, end_ts, partial FROM pomodoros
            WHERE task_id=? ORDER BY start_ts ASC, id ASC
            """,
            (task_id,),
        ).fetchall()
        return [
            Interval(start=r["start_ts"], end=r["end_ts"], partial=bool(r["partial"]))
            for r in rows
        ]

    def _to_task(self, r) -> Task:
        return Task(
            id=r["id"],
            message=r["message"],
            n_intervals=r["n_pomodoros"],
            interval_duration=r["duration_sec"],
            tags=tuple(json.loads(r["tags"] or "[]")),
            intervals=self._intervals(r["id"]),
        )

    def get(self, task_id: int) -> Optional[Task]:
        with self.db.lock:
            r = self.db.conn.execute(
                """
                SELECT id, message, n_pomodoros, duration_sec, tags
                FROM tasks WHERE id=?
                """,
                (task_id,),
            ).fetchone()
            return self._to_task(r) if r else None

    def list(self) -> List[Task]:
        with self.db.lock:
            rows = self.db.conn.execute(
                """
                SELECT id, message, n_pomodoros, duration_sec, tags
                FROM tasks ORDER BY id ASC
                """
            ).fetchall()
            return [self._to_task(r) for r in rows]

    def delete_task(self, task_id: int) -> bool:
        with self.db.lock:
            # pomodoros go with the task (FK ON DELETE CASCADE)
            cur = self.db.conn.execute("DELETE FROM tasks WHERE id=?", (task_id,))
            self.db.conn.commit()
            return cur.rowcount > 0

    # ---- intervals ----
    def add_interval(self, task_id: int, interval: Interval) -> None:
        with self.db.lock:
            self.db.conn.execute(
                "INSERT INTO pomodoros(task_id, start_ts, end_ts, partial) VALUES(?,?,?,?)",
                (task_id, interval.start, interval.end, int(interval.partial)),
            )
            self.db.conn.commit()
