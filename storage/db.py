#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import sqlite3
import threading


class Database:
    def __init__(self, db_path: str = "pomo.db"):
        self.db_path = db_path
        # the session clock thread records intervals through this connection
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON;")
        self.lock = threading.RLock()

    def _cols(self, table: str):
        try:
            return [
                r["name"]
                for r in self.conn.execute(f"PRAGMA table_info({table});").fetchall()
            ]
        except sqlite3.Error:
            return []

    def init_schema(self):
        with self.lock:
            cur = self.conn.cursor()

            cur.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    message TEXT NOT NULL,
                    n_pomodoros INTEGER NOT NULL,
                    duration_sec REAL NOT NULL,
                    tags TEXT NOT NULL DEFAULT '[]',
                    created_at INTEGER NOT NULL
                );
            """)

            cur.execute("""
                CREATE TABLE IF NOT EXISTS pomodoros (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id INTEGER NOT NULL,
                    start_ts REAL NOT NULL,
                    end_ts REAL,
                    partial INTEGER NOT NULL DEFAULT 0,
                    FOREIGN KEY(task_id) REFERENCES tasks(id) ON DELETE CASCADE
                );
            """)

            # pomodoros migration: older databases had no partial flag
            if "partial" not in self._cols("pomodoros"):
                cur.execute(
                    "ALTER TABLE pomodoros ADD COLUMN partial INTEGER NOT NULL DEFAULT 0;"
                )

            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_pomodoros_task ON pomodoros(task_id);"
            )

            self.conn.commit()

    def close(self):
        with self.lock:
            self.conn.close()
