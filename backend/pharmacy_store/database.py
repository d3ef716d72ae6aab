from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class PharmacyStoreError(Exception):
    """The record store could not be read."""


SYNTHETIC_USERS: tuple[tuple[str, bool], ...] = (
    ("Alice Johnson", True),
    ("Bob Smith", False),
    ("Carol White", True),
    ("David Brown", False),
    ("Eve Davis", True),
    ("Frank Miller", False),
    ("Grace Wilson", True),
    ("Henry Moore", False),
    ("Iris Taylor", True),
    ("Jack Anderson", False),
)

SYNTHETIC_MEDICATIONS: tuple[dict[str, object], ...] = (
    {
        "name": "Paracetamol",
        "name_he": "פאראצטמול",
        "active_ingredient": "Acetaminophen",
        "active_ingredient_he": "אצטאמינופן",
        "requires_prescription": False,
        "usage_instructions": "Take 500-1000mg every 4-6 hours as needed. Do not exceed 4g per day.",
        "usage_instructions_he": 'קח 500-1000 מ"ג כל 4-6 שעות לפי הצורך. אל תחרוג מ-4 גרם ליום.',
        "purpose": "Pain relief and fever reduction",
        "purpose_he": "הקלה על כאבים והורדת חום",
        "stock": 150,
    },
    {
        "name": "Ibuprofen",
        "name_he": "איבופרופן",
        "active_ingredient": "Ibuprofen",
        "active_ingredient_he": "איבופרופן",
        "requires_prescription": False,
        "usage_instructions": "Take 200-400mg every 4-6 hours with food. Maximum 1200mg per day.",
        "usage_instructions_he": 'קח 200-400 מ"ג כל 4-6 שעות עם אוכל. מקסימום 1200 מ"ג ליום.',
        "purpose": "Pain relief, inflammation reduction, fever reduction",
        "purpose_he": "הקלה על כאבים, הפחתת דלקות, הורדת חום",
        "stock": 80,
    },
    {
        "name": "Amoxicillin",
        "name_he": "אמוקסיצילין",
        "active_ingredient": "Amoxicillin",
        "active_ingredient_he": "אמוקסיצילין",
        "requires_prescription": True,
        "usage_instructions": (
            "Take 500mg three times daily for 7-10 days. Complete the full course even if symptoms improve."
        ),
        "usage_instructions_he": 'קח 500 מ"ג שלוש פעמים ביום למשך 7-10 ימים. השלם את המנה המלאה גם אם התסמינים משתפרים.',
        "purpose": "Bacterial infections treatment",
        "purpose_he": "טיפול בזיהומים חיידקיים",
        "stock": 45,
    },
    {
        "name": "Aspirin",
        "name_he": "אספירין",
        "active_ingredient": "Acetylsalicylic acid",
        "active_ingredient_he": "חומצה אצטילסליצילית",
        "requires_prescription": False,
        "usage_instructions": "Take 75-325mg once daily. Do not give to children under 16.",
        "usage_instructions_he": 'קח 75-325 מ"ג פעם ביום. אל תתן לילדים מתחת לגיל 16.',
        "purpose": "Pain relief, blood thinning, heart attack prevention",
        "purpose_he": "הקלה על כאבים, דילול דם, מניעת התקפי לב",
        "stock": 200,
    },
    {
        "name": "Metformin",
        "name_he": "מטפורמין",
        "active_ingredient": "Metformin hydrochloride",
        "active_ingredient_he": "מטפורמין הידרוכלוריד",
        "requires_prescription": True,
        "usage_instructions": "Take 500-1000mg twice daily with meals. Monitor blood sugar levels regularly.",
        "usage_instructions_he": 'קח 500-1000 מ"ג פעמיים ביום עם הארוחות. בדוק את רמות הסוכר בדם באופן קבוע.',
        "purpose": "Type 2 diabetes management",
        "purpose_he": "ניהול סוכרת מסוג 2",
        "stock": 30,
    },
)

# (user id, medication id) pairs; ids follow insertion order above.
SYNTHETIC_PRESCRIPTIONS: tuple[tuple[int, int], ...] = (
    (1, 3),
    (1, 5),
    (3, 3),
    (5, 5),
    (7, 3),
    (7, 5),
    (9, 3),
    (9, 5),
)


class SQLitePharmacyDB:
    def __init__(self, db_path: str, *, seed: bool = True) -> None:
        self._path = Path(db_path).expanduser().resolve()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()
        if seed:
            self.seed_synthetic_data()

    @property
    def path(self) -> str:
        return str(self._path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path), timeout=30.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._lock, self.connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  name TEXT NOT NULL,
                  has_prescription_permission INTEGER NOT NULL DEFAULT 0
                );

                CREATE TABLE IF NOT EXISTS medications (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  name TEXT NOT NULL UNIQUE,
                  name_he TEXT NOT NULL,
                  active_ingredient TEXT NOT NULL,
                  active_ingredient_he TEXT NOT NULL,
                  requires_prescription INTEGER NOT NULL DEFAULT 0,
                  usage_instructions TEXT NOT NULL,
                  usage_instructions_he TEXT NOT NULL,
                  purpose TEXT NOT NULL,
                  purpose_he TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS stock (
                  name TEXT PRIMARY KEY,
                  quantity INTEGER NOT NULL CHECK (quantity >= 0)
                );

                CREATE TABLE IF NOT EXISTS prescriptions (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  user_id INTEGER NOT NULL REFERENCES users(id),
                  medication_id INTEGER NOT NULL REFERENCES medications(id),
                  valid INTEGER NOT NULL DEFAULT 1
                );

                CREATE INDEX IF NOT EXISTS idx_prescriptions_user_med
                  ON prescriptions(user_id, medication_id);
                """
            )

    def seed_synthetic_data(self) -> bool:
        """Insert the demo data set. Returns False when the catalog already has rows."""
        with self._lock, self.connection() as conn:
            existing = conn.execute("SELECT COUNT(*) AS n FROM medications").fetchone()
            if existing["n"]:
                return False
            conn.executemany(
                "INSERT INTO users (name, has_prescription_permission) VALUES (?, ?)",
                [(name, int(permission)) for name, permission in SYNTHETIC_USERS],
            )
            for med in SYNTHETIC_MEDICATIONS:
                conn.execute(
                    """
                    INSERT INTO medications (
                      name, name_he, active_ingredient, active_ingredient_he, requires_prescription,
                      usage_instructions, usage_instructions_he, purpose, purpose_he
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        med["name"],
                        med["name_he"],
                        med["active_ingredient"],
                        med["active_ingredient_he"],
                        int(bool(med["requires_prescription"])),
                        med["usage_instructions"],
                        med["usage_instructions_he"],
                        med["purpose"],
                        med["purpose_he"],
                    ),
                )
                conn.execute("INSERT INTO stock (name, quantity) VALUES (?, ?)", (med["name"], med["stock"]))
            conn.executemany(
                "INSERT INTO prescriptions (user_id, medication_id, valid) VALUES (?, ?, 1)",
                SYNTHETIC_PRESCRIPTIONS,
            )
            return True
