import json
import logging
import sqlite3
from contextlib import closing, contextmanager
from typing import List, Optional

from models import PersistenceError, Skill

LOGGER = logging.getLogger(__name__)

STORAGE_KEY = 'skillclock_skills'


class SkillStore:
    """All skills live in one JSON record of a small key-value table.

    Each public method is one transaction, so a put or remove either lands
    completely or leaves the stored list as it was.
    """

    def __init__(self, db_path='skills.db', key=STORAGE_KEY):
        self.db_path = db_path
        self.key = key
        self.init_db()

    def get_connection(self):
        try:
            return sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to connect to database: {str(e)}")

    @contextmanager
    def get_cursor(self):
        """Context manager for database operations"""
        with closing(self.get_connection()) as conn:
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                LOGGER.exception("Skill store operation failed on %s", self.db_path)
                raise PersistenceError(f"Database operation failed: {str(e)}")
            except Exception:
                conn.rollback()
                raise

    def init_db(self):
        with self.get_cursor() as c:
            c.execute('''CREATE TABLE IF NOT EXISTS kv_store
                         (key TEXT PRIMARY KEY,
                         value TEXT NOT NULL)''')

    def _read(self, cursor) -> List[dict]:
        cursor.execute("SELECT value FROM kv_store WHERE key = ?", (self.key,))
        row = cursor.fetchone()
        if row is None:
            return []
        try:
            records = json.loads(row[0])
        except ValueError as e:
            raise PersistenceError(f"Stored skills are not valid JSON: {str(e)}")
        if not isinstance(records, list):
            raise PersistenceError("Stored skills must be a JSON array")
        if not all(isinstance(record, dict) for record in records):
            raise PersistenceError("Every stored skill must be a JSON object")
        return records

    def _write(self, cursor, records: List[dict]):
        cursor.execute(
            "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
            (self.key, json.dumps(records))
        )

    def get_all(self) -> List[Skill]:
        with self.get_cursor() as c:
            records = self._read(c)
        try:
            return [Skill.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Stored skill record is malformed: {str(e)}")

    def get(self, skill_id: str) -> Optional[Skill]:
        for skill in self.get_all():
            if skill.id == skill_id:
                return skill
        return None

    def put(self, skill: Skill):
        """Insert or replace a skill by id, keeping its position in the list"""
        with self.get_cursor() as c:
            records = self._read(c)
            for index, record in enumerate(records):
                if str(record.get('id')) == skill.id:
                    records[index] = skill.to_dict()
                    break
            else:
                records.append(skill.to_dict())
            self._write(c, records)
        LOGGER.debug("Stored skill %s (%s)", skill.id, skill.name)

    def remove(self, skill_id: str):
        with self.get_cursor() as c:
            records = self._read(c)
            remaining = [r for r in records if str(r.get('id')) != skill_id]
            self._write(c, remaining)
        LOGGER.debug("Removed skill %s", skill_id)

    def clear(self):
        with self.get_cursor() as c:
            c.execute("DELETE FROM kv_store WHERE key = ?", (self.key,))
        LOGGER.info("Cleared all skills from %s", self.db_path)
