from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Any

from .database import PharmacyStoreError, SQLitePharmacyDB


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class User:
    id: int
    name: str
    has_prescription_permission: bool


@dataclass(frozen=True)
class Medication:
    id: int
    name: str
    name_he: str
    active_ingredient: str
    active_ingredient_he: str
    requires_prescription: bool
    usage_instructions: str
    usage_instructions_he: str
    purpose: str
    purpose_he: str

    def localized(self, language: str) -> dict[str, Any]:
        if language == "he":
            return {
                "name": self.name_he,
                "active_ingredient": self.active_ingredient_he,
                "usage_instructions": self.usage_instructions_he,
                "purpose": self.purpose_he,
            }
        return {
            "name": self.name,
            "active_ingredient": self.active_ingredient,
            "usage_instructions": self.usage_instructions,
            "purpose": self.purpose,
        }

    def display_name(self, language: str) -> str:
        return self.name_he if language == "he" else self.name


def _medication_from_row(row: sqlite3.Row) -> Medication:
    return Medication(
        id=int(row["id"]),
        name=row["name"],
        name_he=row["name_he"],
        active_ingredient=row["active_ingredient"],
        active_ingredient_he=row["active_ingredient_he"],
        requires_prescription=bool(row["requires_prescription"]),
        usage_instructions=row["usage_instructions"],
        usage_instructions_he=row["usage_instructions_he"],
        purpose=row["purpose"],
        purpose_he=row["purpose_he"],
    )


class PharmacyService:
    """Read-only lookups over the pharmacy record store."""

    def __init__(self, db: SQLitePharmacyDB) -> None:
        self.db = db

    def _fetchone(self, sql: str, params: tuple[Any, ...]) -> sqlite3.Row | None:
        try:
            with self.db.connection() as conn:
                return conn.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            logger.error("pharmacy store query failed: %s", exc)
            raise PharmacyStoreError(f"Pharmacy data store unavailable: {exc}") from exc

    def _fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        try:
            with self.db.connection() as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            logger.error("pharmacy store query failed: %s", exc)
            raise PharmacyStoreError(f"Pharmacy data store unavailable: {exc}") from exc

    def get_user(self, user_id: int) -> User | None:
        row = self._fetchone("SELECT * FROM users WHERE id = ?", (user_id,))
        if row is None:
            return None
        return User(
            id=int(row["id"]),
            name=row["name"],
            has_prescription_permission=bool(row["has_prescription_permission"]),
        )

    def lookup_by_name(self, name: str) -> Medication | None:
        key = (name or "").strip()
        if not key:
            return None
        row = self._fetchone(
            "SELECT * FROM medications WHERE LOWER(name) = LOWER(?) OR LOWER(name_he) = LOWER(?)",
            (key, key),
        )
        return _medication_from_row(row) if row is not None else None

    def check_availability(self, name: str) -> int:
        medication = self.lookup_by_name(name)
        if medication is None:
            return 0
        # Stock is keyed by the canonical English name.
        row = self._fetchone("SELECT quantity FROM stock WHERE name = ?", (medication.name,))
        return max(0, int(row["quantity"])) if row is not None else 0

    def has_valid_authorization(self, user_id: int, name: str) -> bool:
        medication = self.lookup_by_name(name)
        if medication is None:
            return False
        if not medication.requires_prescription:
            return True
        row = self._fetchone(
            "SELECT COUNT(*) AS n FROM prescriptions WHERE user_id = ? AND medication_id = ? AND valid = 1",
            (user_id, medication.id),
        )
        return bool(row and row["n"])

    def list_all_names(self) -> list[str]:
        return [row["name"] for row in self._fetchall("SELECT name FROM medications ORDER BY name")]

    def list_all(self) -> list[Medication]:
        return [_medication_from_row(row) for row in self._fetchall("SELECT * FROM medications ORDER BY name")]
