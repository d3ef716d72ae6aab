from __future__ import annotations

from pharmacy_agent_core import ToolExecutor, ToolRegistry
from pharmacy_store import PharmacyService, SQLitePharmacyDB
from pharmacy_tools import TOOL_DECLARATIONS, MedicationToolset, build_handlers


def test_seed_is_idempotent(pharmacy_db, service):
    assert pharmacy_db.seed_synthetic_data() is False
    reopened = SQLitePharmacyDB(pharmacy_db.path)
    assert PharmacyService(reopened).list_all_names() == service.list_all_names()
    with reopened.connection() as conn:
        assert conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()["n"] == 10
        assert conn.execute("SELECT COUNT(*) AS n FROM prescriptions").fetchone()["n"] == 8


def test_lookup_is_case_insensitive(service):
    assert service.lookup_by_name("PARACETAMOL").name == "Paracetamol"
    assert service.lookup_by_name("  ibuprofen ").id == 2
    assert service.lookup_by_name("") is None


def test_availability_for_unknown_medication_is_zero(service):
    assert service.check_availability("Unobtainium") == 0
    assert service.check_availability("Metformin") == 30
    assert service.check_availability("אספירין") == 200


def test_authorization_rules(service):
    assert service.has_valid_authorization(2, "Aspirin") is True
    assert service.has_valid_authorization(1, "Metformin") is True
    assert service.has_valid_authorization(2, "Metformin") is False
    assert service.has_valid_authorization(1, "Unobtainium") is False


def test_invalidated_prescription_is_not_honored(pharmacy_db, service):
    with pharmacy_db.connection() as conn:
        conn.execute("UPDATE prescriptions SET valid = 0 WHERE user_id = 5")
    assert service.has_valid_authorization(5, "Metformin") is False


def test_get_user(service):
    user = service.get_user(3)
    assert user.name == "Carol White"
    assert user.has_prescription_permission is True
    assert service.get_user(42) is None


def test_empty_store_resolves_nothing(tmp_path):
    db = SQLitePharmacyDB(str(tmp_path / "empty.sqlite"), seed=False)
    service = PharmacyService(db)
    executor = ToolExecutor(ToolRegistry(TOOL_DECLARATIONS), build_handlers(MedicationToolset(service)))

    assert service.list_all_names() == []
    assert service.check_availability("Aspirin") == 0

    catalog = executor.execute("list_medications", {})
    assert catalog.success is True
    assert catalog.as_envelope()["data"] == {"medications": [], "count": 0}

    lookup = executor.execute("lookup_medication", {"name": "Aspirin"})
    assert lookup.success is False
    assert lookup.error_kind == "resolution"

    report = executor.execute("check_availability", {"medication_name": ["Aspirin", "Ibuprofen"]})
    assert report.success is True
    assert report.data.medications == []
    assert len(report.data.errors) == 2
