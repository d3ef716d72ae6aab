from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from pharmacy_agent_core.models import ToolPayload


# No payload carries a stock field except StockLevel, so availability can only
# reach the model through check_availability.


@dataclass(frozen=True)
class MedicationInfo(ToolPayload):
    tool: ClassVar[str] = "lookup_medication"

    id: int
    name: str
    active_ingredient: str
    requires_prescription: bool
    usage_instructions: str
    purpose: str


@dataclass(frozen=True)
class StockLevel(ToolPayload):
    tool: ClassVar[str] = "check_availability"

    medication_name: str
    stock: int
    available: bool


@dataclass(frozen=True)
class StockReport(ToolPayload):
    tool: ClassVar[str] = "check_availability"

    medications: list[StockLevel] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PrescriptionStatus(ToolPayload):
    tool: ClassVar[str] = "check_prescription"

    user_id: int
    medication_name: str
    requires_prescription: bool
    has_valid_prescription: bool
    can_purchase: bool


@dataclass(frozen=True)
class MedicationCatalog(ToolPayload):
    tool: ClassVar[str] = "list_medications"

    medications: list[str] = field(default_factory=list)
    count: int = 0
