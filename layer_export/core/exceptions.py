"""Exception hierarchy for the export engine.

These never escape a job: they are raised inside components and converted
to a text artifact or a ``None`` result at the job boundary.
"""

from __future__ import annotations


class ExportError(RuntimeError):
    """Base class for export failures."""

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def as_dict(self) -> dict:
        """Return a serializable representation."""
        payload = {"message": str(self)}
        if self.details:
            payload["details"] = self.details
        return payload


class FetchError(ExportError):
    """The map server could not be reached or returned nothing."""


class WriteError(ExportError):
    """Local I/O failed while staging or zipping a file."""


class MissingResourceError(ExportError):
    """A referenced icon is not present under the symbology root."""


class MalformedDocumentError(ExportError):
    """The upstream document lacks tags the rewrite pass expected."""
