import asyncio
import io
import logging
import re
from typing import Any, AsyncIterator, BinaryIO, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from gemlisting import config
from gemlisting.core.domain.errors import UploadError, UploadValidationError, ValidationError
from gemlisting.core.domain.media import LocalFile, MediaKind
from gemlisting.infrastructure.http.api_client import ApiClient
from gemlisting.interfaces.api.schemas import (
    ApiEnvelope,
    ExtractionResponse,
    FileUploadRequest,
    GemSubmission,
    JobProgress,
    SubmitAsyncData,
    UploadTarget,
)

logger = logging.getLogger(__name__)

GEMS_PATH = "/gems"
ADMIN_GEMS_PATH = "/admin/gems"

UPLOAD_CHUNK_SIZE = 256 * 1024
_OBJECT_ID_RE = re.compile(r"^[a-fA-F0-9]{24}$")

ProgressCallback = Callable[[int], None]


class ProgressReader:
    """File-like wrapper that reports how much of the body httpx has read."""

    def __init__(self, handle: BinaryIO, total: int, on_progress: Optional[ProgressCallback]):
        self._handle = handle
        self._total = total
        self._sent = 0
        self._on_progress = on_progress

    def read(self, size: int = -1) -> bytes:
        chunk = self._handle.read(size)
        if chunk:
            self._sent += len(chunk)
            if self._on_progress and self._total:
                self._on_progress(min(100, round(self._sent * 100 / self._total)))
        return chunk

    def seek(self, offset: int, whence: int = 0) -> int:
        position = self._handle.seek(offset, whence)
        self._sent = position
        return position

    def tell(self) -> int:
        return self._handle.tell()

    def close(self) -> None:
        self._handle.close()


async def _stream_file(file: LocalFile, on_progress: Optional[ProgressCallback]) -> AsyncIterator[bytes]:
    # File reads happen off the event loop.
    handle = await asyncio.to_thread(file.open)
    sent = 0
    try:
        while True:
            chunk = await asyncio.to_thread(handle.read, UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            sent += len(chunk)
            if on_progress and file.size:
                on_progress(min(100, round(sent * 100 / file.size)))
            yield chunk
    finally:
        handle.close()


def validate_lab_report_file(file: LocalFile) -> None:
    limit = config.UPLOAD_LIMITS["max_lab_report_size"]
    if file.size > limit:
        raise ValidationError(f"File size must be less than {limit // config.MB}MB")
    if file.content_type not in config.UPLOAD_LIMITS["allowed_lab_report_types"]:
        raise ValidationError("Only PDF and image files (JPEG, PNG) are allowed")


def validate_file_upload_request(files: List[FileUploadRequest]) -> None:
    if not files:
        raise UploadValidationError("At least one file is required")
    limit = config.UPLOAD_LIMITS["max_files_per_request"]
    if len(files) > limit:
        raise UploadValidationError(f"Maximum {limit} files allowed")
    kinds = {kind.value for kind in MediaKind}
    for item in files:
        if not item.file_name.strip():
            raise UploadValidationError("File name is required")
        if not item.file_type.strip():
            raise UploadValidationError("File type is required")
        if item.media_type not in kinds:
            raise UploadValidationError("Valid media type is required (image, video, or lab-report)")


def validate_gem_data(submission: GemSubmission) -> None:
    if not submission.gem_type.strip():
        raise ValidationError("Gem type is required", {"gem_type": "Gem type is required"})
    if not submission.color.strip():
        raise ValidationError("Gem color is required", {"color": "Gem color is required"})
    if submission.weight.value <= 0:
        raise ValidationError("Valid gem weight is required", {"weight": "Valid gem weight is required"})
    if submission.price is not None and not (0 < submission.price <= config.MAX_GEM_PRICE):
        message = f"Price must be between $1 and ${config.MAX_GEM_PRICE:,} if specified"
        raise ValidationError(message, {"price": message})


class GemService:
    """Typed wrappers around the marketplace gem routes."""

    def __init__(self, api: ApiClient):
        self.api = api

    # -------- Extraction --------

    async def extract_lab_report(
        self, file: LocalFile, on_progress: Optional[ProgressCallback] = None
    ) -> ExtractionResponse:
        validate_lab_report_file(file)
        content = await asyncio.to_thread(file.read_bytes)
        body = ProgressReader(io.BytesIO(content), len(content), on_progress)
        raw = await self.api.request_json(
            "POST",
            f"{GEMS_PATH}/extract-lab-report",
            files={"labReport": (file.name, body, file.content_type)},
        )
        return ExtractionResponse.model_validate(raw)

    async def extract_lab_report_by_url(self, file_url: str) -> ExtractionResponse:
        if not file_url or not file_url.strip():
            return ExtractionResponse(success=False, message="fileUrl is required")
        raw = await self.api.request_json(
            "POST", f"{GEMS_PATH}/extract-lab-report/from-url", json={"fileUrl": file_url}
        )
        return ExtractionResponse.model_validate(raw)

    async def get_extraction_info(self) -> ApiEnvelope:
        return await self.api.get(f"{GEMS_PATH}/extract-lab-report/info")

    async def check_health(self) -> ApiEnvelope:
        return await self.api.get(f"{GEMS_PATH}/health")

    async def delete_lab_report(self, s3_key: str) -> ApiEnvelope:
        return await self.api.post(f"{GEMS_PATH}/delete-lab-report", json={"s3Key": s3_key})

    # -------- Uploads --------

    async def generate_upload_urls(self, files: List[FileUploadRequest]) -> ApiEnvelope:
        validate_file_upload_request(files)
        envelope = await self.api.post(
            f"{GEMS_PATH}/upload-urls", json={"files": [f.to_payload() for f in files]}
        )
        if envelope.success:
            envelope.data = [UploadTarget.model_validate(item) for item in envelope.data or []]
        return envelope

    async def upload_to_storage(
        self, file: LocalFile, upload_url: str, on_progress: Optional[ProgressCallback] = None
    ) -> None:
        headers = {"Content-Type": file.content_type, "Content-Length": str(file.size)}
        try:
            response = await self.api.storage.put(
                upload_url, content=_stream_file(file, on_progress), headers=headers
            )
        except httpx.TimeoutException as exc:
            raise UploadError(
                "S3 upload failed: Upload timeout: The file upload took too long. Please try again."
            ) from exc
        except httpx.RequestError as exc:
            raise UploadError(
                "S3 upload failed: Network error: Unable to connect to S3. "
                "Please check your internet connection and try again."
            ) from exc
        if not response.is_success:
            raise UploadError(
                f"S3 upload failed: Upload failed: {response.status_code} {response.reason_phrase}"
            )

    # -------- Gem records --------

    async def create_gem(self, submission: GemSubmission) -> ApiEnvelope:
        validate_gem_data(submission)
        envelope = await self.api.post(GEMS_PATH, json=submission.to_payload())
        envelope.message = envelope.message or (
            "Gem created successfully" if envelope.success else "Failed to create gem"
        )
        return envelope

    async def create_admin_gem(self, submission: GemSubmission) -> ApiEnvelope:
        validate_gem_data(submission)
        envelope = await self.api.post(ADMIN_GEMS_PATH, json=submission.to_payload())
        envelope.message = envelope.message or (
            "Gem created successfully" if envelope.success else "Failed to create gem"
        )
        return envelope

    async def update_gem(self, gem_id: str, submission: GemSubmission) -> ApiEnvelope:
        if not gem_id or not _OBJECT_ID_RE.match(gem_id):
            return ApiEnvelope(success=False, message="Invalid gem ID format")
        envelope = await self.api.put(f"{GEMS_PATH}/{gem_id}", json=submission.to_payload())
        envelope.message = envelope.message or (
            "Gem updated successfully" if envelope.success else "Failed to update gem"
        )
        return envelope

    async def submit_gem_async(self, submission: GemSubmission) -> ApiEnvelope:
        validate_gem_data(submission)
        envelope = await self.api.post(f"{GEMS_PATH}/submit", json=submission.to_payload())
        if envelope.success:
            data = envelope.data or {}
            if not data.get("jobId"):
                return ApiEnvelope(success=False, message="Job ID missing from submission response")
            envelope.data = SubmitAsyncData.model_validate(data)
        envelope.message = envelope.message or (
            "Gem submitted for processing" if envelope.success else "Failed to submit gem for processing"
        )
        return envelope

    async def get_job_status(self, job_id: str) -> ApiEnvelope:
        if not job_id or not job_id.strip():
            return ApiEnvelope(success=False, message="Job ID is required")
        envelope = await self.api.get(f"{GEMS_PATH}/status/{job_id}")
        if envelope.success:
            data: Dict[str, Any] = envelope.data or {}
            data.setdefault("jobId", job_id)
            try:
                envelope.data = JobProgress.model_validate(data)
            except PydanticValidationError as exc:
                logger.warning("Malformed status for job %s: %s", job_id, exc)
                return ApiEnvelope(success=False, message="Malformed job status response")
        return envelope
