from .declarations import SUPPORTED_LANGUAGES, TOOL_DECLARATIONS
from .medication_tools import MedicationToolset, build_handlers
from .payloads import MedicationCatalog, MedicationInfo, PrescriptionStatus, StockLevel, StockReport

__all__ = [
    "SUPPORTED_LANGUAGES",
    "TOOL_DECLARATIONS",
    "MedicationCatalog",
    "MedicationInfo",
    "MedicationToolset",
    "PrescriptionStatus",
    "StockLevel",
    "StockReport",
    "build_handlers",
]
