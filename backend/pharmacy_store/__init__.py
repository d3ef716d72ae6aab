from .database import PharmacyStoreError, SQLitePharmacyDB
from .service import Medication, PharmacyService, User

__all__ = ["Medication", "PharmacyService", "PharmacyStoreError", "SQLitePharmacyDB", "User"]
