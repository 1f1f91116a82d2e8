"""
Exception hierarchy for the Progress Report Crew.

This module defines the custom exceptions raised by the report enrichment
agents and tools, plus the ProcessingError record used to collect failures
that a pipeline contains instead of raising (unresolved grades, venue lookup
failures, per-report batch failures).

Severity model:
    - Contained, per-item problems become ProcessingError records with
      WARNING/INFO severity and the run continues.
    - Structural problems (store unreachable, malformed caller input)
      are raised and stop the operation.
"""

import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ErrorSeverity(Enum):
    """Categorizes the severity of errors for handling decisions."""

    CRITICAL = "critical"
    """Operation should stop; this error prevents meaningful continuation"""

    WARNING = "warning"
    """Log but continue; the item degrades (empty venues, no grade, skipped report)"""

    INFO = "info"
    """Track but don't alarm; this is informational"""


# Error type tags used in ProcessingError.error_type
UNRESOLVED_GRADE = "UNRESOLVED_GRADE"
VENUE_LOOKUP_FAILED = "VENUE_LOOKUP_FAILED"
BATCH_ITEM_FAILED = "BATCH_ITEM_FAILED"


@dataclass
class ProcessingError:
    """
    Structured error record for failures contained during a pipeline run.

    Collected so they can be logged and reported in the output without
    stopping execution (for WARNING/INFO severity).
    """

    item_id: str
    """Report id (or recommendation name) the error belongs to"""

    error_type: str
    """Category of error (e.g., "VENUE_LOOKUP_FAILED", "BATCH_ITEM_FAILED")"""

    message: str
    """Human-readable error message"""

    severity: ErrorSeverity
    """How serious is this error? CRITICAL/WARNING/INFO"""

    traceback_str: Optional[str] = None
    """Full traceback for debugging (only for CRITICAL/WARNING raised errors)"""

    context: dict = field(default_factory=dict)
    """Additional context data (stage, query, cause, etc.)"""

    @classmethod
    def from_exception(
        cls,
        item_id: str,
        error_type: str,
        exception: Exception,
        severity: ErrorSeverity,
        context: Optional[dict] = None,
    ) -> "ProcessingError":
        """
        Create ProcessingError from a caught exception.

        Args:
            item_id: Id of the report or item being processed
            error_type: Custom error category
            exception: The exception that was caught
            severity: How to categorize this error
            context: Optional additional context data

        Returns:
            ProcessingError with traceback automatically extracted
        """
        tb_str = traceback.format_exc() if severity in (ErrorSeverity.CRITICAL, ErrorSeverity.WARNING) else None
        ctx = dict(context or {})
        ctx.setdefault("cause", type(exception).__name__)
        return cls(
            item_id=item_id,
            error_type=error_type,
            message=str(exception),
            severity=severity,
            traceback_str=tb_str,
            context=ctx,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "item_id": self.item_id,
            "error_type": self.error_type,
            "message": self.message,
            "severity": self.severity.value,
            "traceback": self.traceback_str,
            "context": self.context,
        }


# ============================================================================
# BASE EXCEPTION CLASSES
# ============================================================================

class ProgressCrewException(Exception):
    """
    Base exception for all Progress Report Crew errors.

    Inheriting from this allows catching all framework errors:
        try:
            ...
        except ProgressCrewException as e:
            ...
    """

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__


class DataProcessingError(ProgressCrewException):
    """Base class for errors during report processing."""
    pass


class ValidationError(ProgressCrewException):
    """Base class for data validation failures."""
    pass


class ConfigurationError(ProgressCrewException):
    """Base class for configuration/setup issues."""
    pass


class PipelineError(ProgressCrewException):
    """Base class for agent pipeline execution errors."""
    pass


# ============================================================================
# INPUT VALIDATION EXCEPTIONS (ingestion boundary)
# ============================================================================

class MalformedInputError(ValidationError):
    """
    Raised when a report document lacks required fields or has invalid types.

    Required fields are never defaulted; the caller gets this error instead.

    Example:
        raise MalformedInputError("Report 'r-12' missing required field 'extractedText'")
    """

    def __init__(self, message: str, missing_fields: Optional[list[str]] = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class UnresolvedGradeError(ValidationError):
    """
    No grade rule matched the report text.

    Non-fatal: the grade is stored as explicitly unresolved and the
    condition is recorded as an UNRESOLVED_GRADE ProcessingError.
    Raised only by callers that insist on a grade (require_grade).

    Example:
        raise UnresolvedGradeError("No grade found in report 'r-12'")
    """
    pass


# ============================================================================
# ENRICHMENT EXCEPTIONS (venue lookup)
# ============================================================================

class VenueLookupError(DataProcessingError):
    """
    Raised by a venue lookup client when geocoding or search fails.

    VenueMatcher contains it: the affected recommendation gets an empty
    venue list and the failure is logged.

    Example:
        raise VenueLookupError("Geocoding failed for '221B Baker St': ZERO_RESULTS")
    """
    pass


# ============================================================================
# STORE & PIPELINE EXCEPTIONS
# ============================================================================

class StoreUnavailableError(ConfigurationError):
    """
    Raised when the report store cannot be reached at all.

    Structural: batch operations propagate it instead of recording
    per-item failures.

    Example:
        raise StoreUnavailableError("Report store directory 'data/reports' not found")
    """
    pass


class ReportNotFoundError(PipelineError):
    """
    Raised when a report id is not present in the store.

    Example:
        raise ReportNotFoundError("Report 'r-99' not found")
    """
    pass


class OutputWriteError(PipelineError):
    """
    Raised when JSON/Excel output cannot be written.

    Example:
        raise OutputWriteError("Cannot write enrichment_r-12.xlsx: Permission denied")
    """
    pass


# ============================================================================
# UTILITY FUNCTIONS FOR ERROR HANDLING
# ============================================================================

def wrap_exception_as_processing_error(
    exception: Exception,
    item_id: str,
    error_type: str,
    severity: ErrorSeverity = ErrorSeverity.WARNING,
    context: Optional[dict] = None,
) -> ProcessingError:
    """
    Convert any exception to ProcessingError for unified logging.

    Args:
        exception: The exception to wrap
        item_id: Id of the report or item being processed
        error_type: Custom categorization
        severity: How to treat this error (default: WARNING)
        context: Optional additional context data

    Returns:
        ProcessingError ready for logging
    """
    return ProcessingError.from_exception(
        item_id=item_id,
        error_type=error_type,
        exception=exception,
        severity=severity,
        context=context,
    )
