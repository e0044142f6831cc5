"""Exception hierarchy for the incident metrics ETL.

Recoverable row-level problems (malformed values, unresolved references)
never raise; they are counted on the run summary instead. These errors are
the ones that stop a run.
"""


class IncidentEtlError(Exception):
    """Base exception for all ETL failures."""


class EtlConfigError(IncidentEtlError):
    """Raised for invalid run configuration."""


class SchemaViolationError(IncidentEtlError):
    """Raised when a required column is missing or too many rows are excluded."""


class SourceUnavailableError(IncidentEtlError):
    """Raised when the source or reporting database cannot be reached."""


class PublishError(IncidentEtlError):
    """Raised when the reporting database rejects the metric rows being published."""
