"""Pydantic schemas for store records and API payloads."""
from .records import AccountRecord, FileRecord, PaymentRecord, StoreStats
from .file import FileMeta, StorageSummary, UploadResult
from .payment import PaymentIntent, PlanState

__all__ = [
    "AccountRecord",
    "FileRecord",
    "PaymentRecord",
    "StoreStats",
    "FileMeta",
    "StorageSummary",
    "UploadResult",
    "PaymentIntent",
    "PlanState",
]
