"""OCR extraction of lab-certificate data.

Extraction is advisory: every outcome, including transport failures, is
returned as a value so the wizard can fall back to manual entry.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from gemlisting.core.domain.errors import ValidationError
from gemlisting.core.domain.media import LocalFile
from gemlisting.infrastructure.http.api_client import NETWORK_ERROR
from gemlisting.infrastructure.http.gem_service import GemService
from gemlisting.interfaces.api.schemas import ExtractedMetadata, ExtractionMeta, ExtractionResponse

logger = logging.getLogger(__name__)

OCR_UNAVAILABLE_MESSAGE = "OCR service is temporarily unavailable. You can continue with manual entry."
NO_DATA_MESSAGE = "No gem data was extracted from the lab report. You can continue with manual entry."
DEFAULT_FAILURE_MESSAGE = "Failed to extract data from lab report"

OCR_DOWN_MARKERS = (
    "Failed to process lab report URL",
    "Unknown error",
    "fetch failed",
    "ECONNREFUSED",
    "NetworkError",
)


@dataclass(frozen=True)
class ExtractionSucceeded:
    data: ExtractedMetadata
    meta: Optional[ExtractionMeta] = None


@dataclass(frozen=True)
class ExtractionFailed:
    message: str
    # True when the OCR backend itself looks unreachable, as opposed to a bad document.
    service_unavailable: bool = False


ExtractionResult = Union[ExtractionSucceeded, ExtractionFailed]


def rewrite_failure_message(message: Optional[str], error_code: Optional[str] = None) -> str:
    if error_code == NETWORK_ERROR:
        return OCR_UNAVAILABLE_MESSAGE
    message = message or DEFAULT_FAILURE_MESSAGE
    if any(marker in message for marker in OCR_DOWN_MARKERS):
        return OCR_UNAVAILABLE_MESSAGE
    return message


class ExtractionClient:
    def __init__(self, service: GemService):
        self.service = service

    async def extract_file(
        self, file: LocalFile, on_progress: Optional[Callable[[int], None]] = None
    ) -> ExtractionResult:
        try:
            response = await self.service.extract_lab_report(file, on_progress)
        except ValidationError as exc:
            logger.info("Lab report %s rejected locally: %s", file.name, exc)
            return ExtractionFailed(str(exc))
        except PydanticValidationError as exc:
            logger.warning("Malformed extraction response for %s: %s", file.name, exc)
            return ExtractionFailed(NO_DATA_MESSAGE)
        return self._interpret(response, source=file.name)

    async def extract_url(self, url: str) -> ExtractionResult:
        try:
            response = await self.service.extract_lab_report_by_url(url)
        except PydanticValidationError as exc:
            logger.warning("Malformed extraction response for %s: %s", url, exc)
            return ExtractionFailed(NO_DATA_MESSAGE)
        return self._interpret(response, source=url)

    def _interpret(self, response: ExtractionResponse, source: str) -> ExtractionResult:
        if not response.success:
            message = rewrite_failure_message(response.message, response.error)
            logger.warning("Lab report extraction failed for %s: %s", source, response.message)
            return ExtractionFailed(message, service_unavailable=message == OCR_UNAVAILABLE_MESSAGE)

        try:
            metadata = ExtractedMetadata.model_validate(response.data or {})
        except PydanticValidationError as exc:
            logger.warning("Unusable extraction payload for %s: %s", source, exc)
            return ExtractionFailed(NO_DATA_MESSAGE)

        # A successful call with nothing in it is still reported as a failure.
        if metadata.is_empty():
            logger.info("Lab report extraction returned no fields for %s", source)
            return ExtractionFailed(NO_DATA_MESSAGE)

        logger.info("Extracted %d fields from %s", len(metadata.populated()), source)
        return ExtractionSucceeded(data=metadata, meta=response.meta)
