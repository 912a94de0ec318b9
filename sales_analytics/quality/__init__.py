"""
Data Quality Module
"""
from .validators import (
    DataQualityError,
    DataValidator,
    ValidationResult,
    ValidationSeverity,
    ValidationStatus,
    validate_record_sets,
)

__all__ = [
    "DataQualityError",
    "DataValidator",
    "ValidationResult",
    "ValidationSeverity",
    "ValidationStatus",
    "validate_record_sets",
]
