"""
Services package initializer.

Re-exports the service classes so callers can import from `src.services`
instead of deep module paths.
"""
from .accounts import AccountService
from .files import FileService
from .payments import PlanUpgradeWorkflow, build_verifier
from .quota import QuotaAccountant

__all__ = [
    "AccountService",
    "FileService",
    "PlanUpgradeWorkflow",
    "QuotaAccountant",
    "build_verifier",
]
