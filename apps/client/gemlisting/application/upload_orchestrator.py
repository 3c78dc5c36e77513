import asyncio
import logging
import random
import string
import time
from typing import List, Optional

from gemlisting.application.progress import UploadProgressTracker
from gemlisting.core.domain.errors import UploadError, UploadValidationError
from gemlisting.core.domain.media import MediaKind, StoredCertificateDescriptor, UploadTask
from gemlisting.infrastructure.http.gem_service import GemService
from gemlisting.interfaces.api.schemas import FileUploadRequest, MediaFileEntry, UploadTarget

logger = logging.getLogger(__name__)


def temporary_gem_id() -> str:
    """Grouping id for a batch uploaded before the gem record exists."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"temp-{int(time.time() * 1000)}-{suffix}"


def build_manifest(
    tasks: List[UploadTask], stored_certificate: Optional[StoredCertificateDescriptor] = None
) -> List[MediaFileEntry]:
    entries: List[MediaFileEntry] = []
    has_primary = False
    for index, task in enumerate(tasks):
        is_primary = task.media_type is MediaKind.image and not has_primary
        has_primary = has_primary or is_primary
        entries.append(
            MediaFileEntry(
                s3_key=task.s3_key,
                type=task.media_type.value,
                filename=task.file_name,
                file_size=task.file_size,
                mime_type=task.file_type,
                is_primary=is_primary,
                order=index,
            )
        )

    # Already in storage from the extraction step; referenced, not re-uploaded.
    if stored_certificate is not None:
        entries.append(
            MediaFileEntry(
                s3_key=stored_certificate.s3_key,
                type=MediaKind.lab_report.value,
                filename=stored_certificate.filename,
                file_size=stored_certificate.file_size,
                mime_type=stored_certificate.file_type,
                is_primary=False,
                order=len(entries),
            )
        )
    return entries


class UploadOrchestrator:
    def __init__(self, service: GemService, progress: Optional[UploadProgressTracker] = None):
        self.service = service
        self.progress = progress or UploadProgressTracker()

    def _check_batch(self, tasks: List[UploadTask]) -> None:
        if not tasks:
            raise UploadValidationError("No files to upload")
        for index, task in enumerate(tasks):
            missing = task.missing_fields()
            if missing:
                raise UploadValidationError(
                    f"Invalid file at position {index + 1}: missing {', '.join(missing)}"
                )

    async def _issue_targets(self, tasks: List[UploadTask]) -> List[UploadTarget]:
        requests = [
            FileUploadRequest(
                file_name=task.file_name,
                file_type=task.file_type,
                file_size=task.file_size,
                media_type=task.media_type.value,
                gem_id=task.gem_id,
            )
            for task in tasks
        ]
        envelope = await self.service.generate_upload_urls(requests)
        if not envelope.success:
            raise UploadError(envelope.message or "Failed to generate upload URLs")
        targets = envelope.data or []
        if len(targets) != len(tasks):
            raise UploadError(
                f"Expected {len(tasks)} upload URLs but received {len(targets)}"
            )
        return targets

    async def _upload_one(self, task: UploadTask) -> None:
        key = task.progress_key
        await self.service.upload_to_storage(
            task.file, task.upload_url, on_progress=lambda percent: self.progress.set(key, percent)
        )
        self.progress.set(key, 100)

    async def upload_all(
        self,
        tasks: List[UploadTask],
        stored_certificate: Optional[StoredCertificateDescriptor] = None,
    ) -> List[MediaFileEntry]:
        """Upload a batch all-or-nothing and return the media manifest for the gem record."""
        self._check_batch(tasks)
        targets = await self._issue_targets(tasks)
        for task, target in zip(tasks, targets):
            task.upload_url = target.upload_url
            task.s3_key = target.s3_key

        keys = [task.progress_key for task in tasks]
        for key in keys:
            self.progress.set(key, 0)

        logger.info("Uploading %d files for %s", len(tasks), tasks[0].gem_id)
        pending = [asyncio.ensure_future(self._upload_one(task)) for task in tasks]
        try:
            await asyncio.gather(*pending)
        except BaseException:
            for future in pending:
                future.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            self.progress.remove(keys)
            logger.exception("Upload batch for %s aborted", tasks[0].gem_id)
            raise

        return build_manifest(tasks, stored_certificate)
