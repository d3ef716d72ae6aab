from __future__ import annotations

import functools
from typing import Any, Callable

from pharmacy_agent_core.executor import ToolHandler, ToolInputError, ToolResolutionError, ToolTransportError
from pharmacy_agent_core.models import ToolPayload
from pharmacy_store.database import PharmacyStoreError
from pharmacy_store.service import PharmacyService

from .declarations import SUPPORTED_LANGUAGES
from .payloads import MedicationCatalog, MedicationInfo, PrescriptionStatus, StockLevel, StockReport


def _store_guard(handler: Callable[..., ToolPayload]) -> Callable[..., ToolPayload]:
    @functools.wraps(handler)
    def wrapper(self: "MedicationToolset", args: dict[str, Any]) -> ToolPayload:
        try:
            return handler(self, args)
        except PharmacyStoreError as exc:
            raise ToolTransportError(str(exc)) from exc

    return wrapper


def _language(args: dict[str, Any]) -> str:
    value = args.get("language")
    if value is None:
        return "en"
    if not isinstance(value, str) or value.strip().lower() not in SUPPORTED_LANGUAGES:
        raise ToolInputError('language must be "en" or "he"')
    return value.strip().lower()


def _required_name(args: dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ToolInputError(f"{key} is required and must be a non-empty string")
    return value.strip()


class MedicationToolset:
    def __init__(self, service: PharmacyService) -> None:
        self.service = service

    @_store_guard
    def lookup_medication(self, args: dict[str, Any]) -> MedicationInfo:
        name = _required_name(args, "name")
        language = _language(args)
        medication = self.service.lookup_by_name(name)
        if medication is None:
            raise ToolResolutionError(f'Medication "{name}" not found in our database')
        return MedicationInfo(
            id=medication.id,
            requires_prescription=medication.requires_prescription,
            **medication.localized(language),
        )

    @_store_guard
    def check_availability(self, args: dict[str, Any]) -> StockLevel | StockReport:
        requested = args.get("medication_name")
        language = _language(args)

        if isinstance(requested, list):
            if not requested:
                raise ToolInputError("medication_name list must contain at least one name")
            levels: list[StockLevel] = []
            errors: list[str] = []
            for item in requested:
                if not isinstance(item, str) or not item.strip():
                    errors.append(f"Invalid medication name: {item!r}")
                    continue
                level = self._stock_level(item.strip(), language)
                if level is None:
                    errors.append(f'Medication "{item.strip()}" not found')
                    continue
                levels.append(level)
            return StockReport(medications=levels, errors=errors)

        name = _required_name(args, "medication_name")
        level = self._stock_level(name, language)
        if level is None:
            raise ToolResolutionError(f'Medication "{name}" not found in our database')
        return level

    def _stock_level(self, name: str, language: str) -> StockLevel | None:
        medication = self.service.lookup_by_name(name)
        if medication is None:
            return None
        stock = self.service.check_availability(medication.name)
        return StockLevel(medication_name=medication.display_name(language), stock=stock, available=stock > 0)

    @_store_guard
    def check_prescription(self, args: dict[str, Any]) -> PrescriptionStatus:
        user_id = args.get("user_id")
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
            raise ToolInputError("Valid user ID is required (must be a positive integer)")
        name = _required_name(args, "medication_name")
        language = _language(args)

        if self.service.get_user(user_id) is None:
            raise ToolResolutionError(f"User with ID {user_id} not found")
        medication = self.service.lookup_by_name(name)
        if medication is None:
            raise ToolResolutionError(f'Medication "{name}" not found in our database')

        authorized = self.service.has_valid_authorization(user_id, medication.name)
        return PrescriptionStatus(
            user_id=user_id,
            medication_name=medication.display_name(language),
            requires_prescription=medication.requires_prescription,
            has_valid_prescription=authorized,
            can_purchase=authorized,
        )

    @_store_guard
    def list_medications(self, args: dict[str, Any]) -> MedicationCatalog:
        language = _language(args)
        names = [medication.display_name(language) for medication in self.service.list_all()]
        return MedicationCatalog(medications=names, count=len(names))


def build_handlers(toolset: MedicationToolset) -> dict[str, ToolHandler]:
    return {
        "lookup_medication": toolset.lookup_medication,
        "check_availability": toolset.check_availability,
        "check_prescription": toolset.check_prescription,
        "list_medications": toolset.list_medications,
    }
