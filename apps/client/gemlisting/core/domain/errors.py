from typing import Dict, Optional

DUPLICATE_REPORT_MARKERS = ("Duplicate Report Number", "already exists")


def is_duplicate_report_message(message: str) -> bool:
    # TODO: switch to a structured error code once the backend exposes one.
    return any(marker in (message or "") for marker in DUPLICATE_REPORT_MARKERS)


class GemListingError(Exception):
    pass


class ValidationError(GemListingError):
    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.field_errors = field_errors or {}


class UploadValidationError(ValidationError):
    pass


class AuthenticationRequired(GemListingError):
    pass


class ExtractionError(GemListingError):
    """OCR extraction did not produce usable data; manual entry stays available."""


class SubmissionError(GemListingError):
    @property
    def is_duplicate_report(self) -> bool:
        return is_duplicate_report_message(str(self))


class UploadError(SubmissionError):
    pass


class JobPollingError(GemListingError):
    pass


class JobPollingTimeout(JobPollingError):
    pass


class JobPollingCancelled(JobPollingError):
    pass
