"""Four-step listing wizard: certificate, details, media, review.

The wizard is headless. It owns the draft and every asynchronous concern
around it (OCR extraction, uploads, submission, background jobs) and
reports to the seller only through the Notifier.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional

from gemlisting import config
from gemlisting.application.draft_store import AuthTokenStore, CertificateDraftStore, now_ms
from gemlisting.application.extraction import (
    ExtractionClient,
    ExtractionFailed,
    ExtractionResult,
)
from gemlisting.application.field_matcher import match_extracted_fields
from gemlisting.application.job_poller import CancelToken, JobPoller
from gemlisting.application.notifications import Notifier
from gemlisting.application.progress import UploadProgressTracker
from gemlisting.application.upload_orchestrator import UploadOrchestrator, build_manifest, temporary_gem_id
from gemlisting.application.validation import parse_amount, step_errors
from gemlisting.core.domain.errors import (
    AuthenticationRequired,
    GemListingError,
    JobPollingCancelled,
    SubmissionError,
    UploadValidationError,
    ValidationError,
    is_duplicate_report_message,
)
from gemlisting.core.domain.jobs import BackgroundJob
from gemlisting.core.domain.listing import ADVANCED_FIELDS, ListingDraft, ListingType, Step, WizardMode
from gemlisting.core.domain.media import (
    ExistingMedia,
    LocalFile,
    MediaKind,
    StoredCertificateDescriptor,
    UploadTask,
)
from gemlisting.core.domain.states import (
    ExtractionState,
    Failed,
    Idle,
    InFlight,
    RestoreState,
    Succeeded,
    SubmissionState,
)
from gemlisting.infrastructure.http.gem_service import GemService, validate_lab_report_file
from gemlisting.interfaces.api.schemas import (
    ExtractedMetadata,
    GemDimensions,
    GemSubmission,
    GemWeight,
    JobProgress,
    JobStatus,
    MediaFileEntry,
)

logger = logging.getLogger(__name__)

EXTRACTION_SUCCESS_MESSAGE = "Data extracted successfully! Form fields have been pre-filled with intelligent matching."
RESTORED_EXTRACTION_SUCCESS_MESSAGE = (
    "Data extracted successfully from stored report! Form fields have been pre-filled with intelligent matching."
)
EXTRACTION_SKIPPED_MESSAGE = "OCR extraction failed, but you can continue with manual entry."
NO_TOKEN_MESSAGE = "No authentication token found. Please log in again."


@dataclass
class SubmissionResult:
    message: str
    job_id: Optional[str] = None
    gem: Any = None


class ListingWizard:
    def __init__(
        self,
        service: GemService,
        draft_store: CertificateDraftStore,
        token_store: AuthTokenStore,
        notifier: Optional[Notifier] = None,
        mode: WizardMode = WizardMode.create,
        initial_data: Optional[Dict[str, Any]] = None,
        edit_gem_id: Optional[str] = None,
        async_submission: Optional[bool] = None,
        poller: Optional[JobPoller] = None,
        on_edit_success: Optional[Callable[[], None]] = None,
    ):
        if mode is WizardMode.edit and not edit_gem_id:
            raise ValueError("edit mode requires the id of the gem being edited")

        self.service = service
        self.draft_store = draft_store
        self.token_store = token_store
        self.notifier = notifier or Notifier()
        self.mode = mode
        self.edit_gem_id = edit_gem_id
        self.async_submission = config.ASYNC_SUBMISSION if async_submission is None else async_submission
        self.on_edit_success = on_edit_success

        self.extraction = ExtractionClient(service)
        self.progress = UploadProgressTracker()
        self.uploads = UploadOrchestrator(service, self.progress)
        self.poller = poller or JobPoller(service)

        self.background_jobs: Dict[str, BackgroundJob] = {}
        self._job_tasks: Dict[str, asyncio.Task] = {}
        self._job_cancels: Dict[str, CancelToken] = {}

        self._reset_state()
        if self.is_edit_mode and initial_data:
            self._load_initial_data(initial_data)

    # -------- State --------

    def _reset_state(self) -> None:
        self.step = Step.CERTIFICATE
        self.draft = ListingDraft()
        self.errors: Dict[str, str] = {}
        self.extraction_state: ExtractionState = Idle()
        self.restore_state = RestoreState.pending
        self.submission_state = SubmissionState.idle
        self.existing_images: List[ExistingMedia] = []
        self.existing_videos: List[ExistingMedia] = []
        self.existing_lab_report: Optional[ExistingMedia] = None
        self.deleted_media_ids: List[str] = []

    def _load_initial_data(self, data: Dict[str, Any]) -> None:
        self.draft = ListingDraft.from_initial_data(data)
        if data.get("reportNumber") and data.get("labName"):
            self.extraction_state = Succeeded(ExtractedMetadata.model_validate(data))

        for raw in data.get("media") or []:
            media = ExistingMedia.from_api(raw)
            if media.type == MediaKind.image.value:
                self.existing_images.append(media)
            elif media.type == MediaKind.video.value:
                self.existing_videos.append(media)
            elif media.type == MediaKind.lab_report.value and self.existing_lab_report is None:
                self.existing_lab_report = media

    @property
    def is_edit_mode(self) -> bool:
        return self.mode is WizardMode.edit

    @property
    def is_admin(self) -> bool:
        return self.mode is WizardMode.admin

    @property
    def uses_async_submission(self) -> bool:
        return self.async_submission and self.mode is WizardMode.create

    @property
    def extracted_data(self) -> Optional[ExtractedMetadata]:
        state = self.extraction_state
        return state.data if isinstance(state, Succeeded) else None

    @property
    def upload_progress(self) -> Dict[str, int]:
        return self.progress.snapshot()

    @property
    def active_jobs(self) -> List[BackgroundJob]:
        return list(self.background_jobs.values())

    def update(self, **fields: Any) -> None:
        self.draft.apply(fields)

    def set_show_advanced(self, enabled: bool) -> None:
        self.draft.show_advanced = enabled

    # -------- Validation and navigation --------

    def _errors_for(self, step: int) -> Dict[str, str]:
        existing = len(self.existing_images)
        errors = step_errors(self.draft, step, existing_images=existing, edit_mode=self.is_edit_mode)
        if step == Step.REVIEW:
            # Nothing reaches the backend without at least one image.
            media = step_errors(self.draft, Step.MEDIA, existing_images=existing, edit_mode=self.is_edit_mode)
            errors = {**media, **errors}
        return errors

    def is_step_valid(self, step: Optional[int] = None) -> bool:
        return not self._errors_for(self.step if step is None else step)

    def validate_step(self, step: Optional[int] = None) -> bool:
        self.errors = self._errors_for(self.step if step is None else step)
        return not self.errors

    def _advance(self) -> None:
        self.step = Step(min(self.step + 1, Step.REVIEW))

    async def next_step(self) -> bool:
        if not self.validate_step():
            return False
        if self.step == Step.CERTIFICATE and self.draft.certificate and not isinstance(self.extraction_state, Succeeded):
            result = await self.extract_certificate()
            if isinstance(result, ExtractionFailed):
                self.notifier.info(EXTRACTION_SKIPPED_MESSAGE, 6000)
        self._advance()
        return True

    async def extract_and_continue(self) -> bool:
        if not self.validate_step():
            return False
        result = await self.extract_certificate()
        if isinstance(result, ExtractionFailed):
            self.notifier.info(
                EXTRACTION_SKIPPED_MESSAGE + " The lab report has been uploaded successfully.", 6000
            )
            return False
        self._advance()
        return True

    def continue_without_extraction(self) -> bool:
        if not self.validate_step():
            return False
        self._advance()
        return True

    def previous_step(self) -> None:
        self.step = Step(max(self.step - 1, Step.CERTIFICATE))

    def skip_certificate(self) -> bool:
        if not self.is_edit_mode or self.step != Step.CERTIFICATE:
            return False
        self.step = Step.DETAILS
        return True

    # -------- Certificate --------

    async def _delete_remote_certificate(self, s3_key: str) -> None:
        envelope = await self.service.delete_lab_report(s3_key)
        if not envelope.success:
            logger.warning("Could not delete lab report %s: %s", s3_key, envelope.message)

    async def _discard_stored_certificate(self) -> None:
        stored = self.draft_store.load()
        if stored is None:
            return
        if stored.s3_key:
            try:
                await self._delete_remote_certificate(stored.s3_key)
            except Exception as exc:
                logger.warning("Failed to delete previous lab report %s: %s", stored.s3_key, exc)
        self.draft_store.clear()

    async def select_certificate(self, file: LocalFile) -> None:
        validate_lab_report_file(file)
        await self._discard_stored_certificate()
        self.draft.certificate = file
        self.extraction_state = Idle()
        self.errors.pop("certificate", None)

    def remove_certificate(self) -> None:
        self.draft.certificate = None
        self.extraction_state = Idle()
        self.draft_store.clear()

    def _apply_extraction(self, metadata: ExtractedMetadata) -> None:
        updates = match_extracted_fields(metadata)
        self.draft.apply(updates)
        logger.info("Pre-filled %d listing fields from the certificate", len(updates))

    async def extract_certificate(self) -> ExtractionResult:
        certificate = self.draft.certificate
        if certificate is None:
            return ExtractionFailed("Lab certificate is required")

        self.extraction_state = InFlight(0)

        def on_progress(percent: int) -> None:
            self.extraction_state = InFlight(percent)

        if certificate.placeholder:
            stored = self.draft_store.load()
            if stored is None:
                result: ExtractionResult = ExtractionFailed("Stored lab report is no longer available")
            else:
                result = await self.extraction.extract_url(stored.url)
        else:
            result = await self.extraction.extract_file(certificate, on_progress)

        if isinstance(result, ExtractionFailed):
            self.extraction_state = Failed(result.message)
            return result

        self.extraction_state = Succeeded(result.data, result.meta)
        meta = result.meta
        if not certificate.placeholder and meta is not None and meta.s3_url:
            descriptor = StoredCertificateDescriptor(
                url=meta.s3_url,
                filename=meta.filename or certificate.name,
                s3_key=meta.s3_key or "",
                uploaded_at=now_ms(),
                file_size=certificate.size,
                file_type=certificate.content_type,
            )
            await self.draft_store.replace(descriptor, delete_old=self._delete_remote_certificate)

        self.notifier.success(
            RESTORED_EXTRACTION_SUCCESS_MESSAGE if certificate.placeholder else EXTRACTION_SUCCESS_MESSAGE, 3000
        )
        self._apply_extraction(result.data)
        return result

    async def restore_stored_certificate(self, now: Optional[int] = None) -> None:
        """Bring back a lab report uploaded in an earlier session, running OCR on it at most once."""
        if self.restore_state is not RestoreState.pending:
            return
        stored = self.draft_store.load()
        if stored is None:
            self.restore_state = RestoreState.already_attempted
            return

        if self.draft_store.is_expired(stored, now):
            self.draft_store.clear()
            self.notifier.info("Previous lab report has expired. Please upload a new one.", 4000)
            self.restore_state = RestoreState.already_attempted
            return

        self.restore_state = RestoreState.in_flight
        self.draft.certificate = stored.as_placeholder_file()
        self.notifier.info("Loading previous lab report and extracting data...", 3000)
        try:
            result = await self.extract_certificate()
        finally:
            self.restore_state = RestoreState.already_attempted

        if isinstance(result, ExtractionFailed):
            if result.service_unavailable:
                self.notifier.info(
                    "Previous lab report loaded, but OCR extraction failed. "
                    "You can continue with manual entry or try OCR again later.",
                    6000,
                )
            else:
                self.draft_store.clear()
                self.draft.certificate = None
                self.notifier.error("Failed to load previous lab report. Please upload a new one.", 4000)

    # -------- Media --------

    def _add_media(self, files: Iterable[LocalFile], kind: MediaKind) -> List[str]:
        limits = config.UPLOAD_LIMITS
        if kind is MediaKind.image:
            target, existing = self.draft.images, self.existing_images
            maximum, max_size, noun = limits["max_images"], limits["max_image_size"], "images"
        else:
            target, existing = self.draft.videos, self.existing_videos
            maximum, max_size, noun = limits["max_videos"], limits["max_video_size"], "videos"

        rejected: List[str] = []
        for file in files:
            if kind is MediaKind.image and file.content_type not in limits["allowed_image_types"]:
                rejected.append(f"{file.name}: Only JPEG, PNG, and WebP images are allowed")
                continue
            if kind is MediaKind.video and not file.content_type.startswith("video/"):
                rejected.append(f"{file.name}: Only video files are allowed")
                continue
            if len(existing) + len(target) >= maximum:
                rejected.append(
                    f"Maximum {maximum} {noun} allowed (including existing ones)"
                    if self.is_edit_mode
                    else f"Maximum {maximum} {noun} allowed"
                )
                continue
            if file.size > max_size:
                label = "Image" if kind is MediaKind.image else "Video"
                rejected.append(f"{file.name}: {label} size must be less than {max_size // config.MB}MB")
                continue
            target.append(file)
        return rejected

    def add_images(self, files: Iterable[LocalFile]) -> List[str]:
        return self._add_media(files, MediaKind.image)

    def add_videos(self, files: Iterable[LocalFile]) -> List[str]:
        return self._add_media(files, MediaKind.video)

    def remove_image(self, index: int) -> None:
        del self.draft.images[index]

    def remove_video(self, index: int) -> None:
        del self.draft.videos[index]

    def delete_existing_media(self, media_id: str) -> None:
        self.existing_images = [m for m in self.existing_images if m.media_id != media_id]
        self.existing_videos = [m for m in self.existing_videos if m.media_id != media_id]
        if self.existing_lab_report and self.existing_lab_report.media_id == media_id:
            self.existing_lab_report = None
        if media_id not in self.deleted_media_ids:
            self.deleted_media_ids.append(media_id)

    # -------- Submission --------

    def _usable_stored_certificate(self) -> Optional[StoredCertificateDescriptor]:
        stored = self.draft_store.load()
        if stored and stored.url and stored.s3_key:
            return stored
        return None

    def _upload_tasks(self, gem_id: str, stored: Optional[StoredCertificateDescriptor]) -> List[UploadTask]:
        tasks: List[UploadTask] = []
        for file in self.draft.images:
            tasks.append(UploadTask.for_file(file, MediaKind.image, gem_id, len(tasks)))
        for file in self.draft.videos:
            tasks.append(UploadTask.for_file(file, MediaKind.video, gem_id, len(tasks)))
        certificate = self.draft.certificate
        if stored is None and certificate is not None and not certificate.placeholder:
            tasks.append(UploadTask.for_file(certificate, MediaKind.lab_report, gem_id, len(tasks)))
        return tasks

    async def _upload_media(self) -> List[MediaFileEntry]:
        stored = self._usable_stored_certificate()
        tasks = self._upload_tasks(temporary_gem_id(), stored)
        if not tasks:
            # Edits may keep only the media already on the listing.
            if self.is_edit_mode:
                return build_manifest([], stored)
            raise UploadValidationError("No files to upload. Please add at least one image before submitting.")
        return await self.uploads.upload_all(tasks, stored)

    def build_submission(self, media_files: List[MediaFileEntry]) -> GemSubmission:
        draft = self.draft
        values: Dict[str, Any] = {
            "report_number": draft.report_number,
            "lab_name": draft.lab_name,
            "certificate_date": draft.certificate_date or None,
            "gem_type": draft.gem_type,
            "variety": draft.variety or None,
            "weight": GemWeight(value=parse_amount(draft.weight.value) or 0, unit=draft.weight.unit),
            "dimensions": GemDimensions(**asdict(draft.dimensions)) if draft.dimensions.is_set() else None,
            "shape_cut": draft.shape_cut or None,
            "color": draft.color,
            "clarity": draft.clarity,
            "origin": draft.origin,
            "treatments": draft.treatments or None,
            "additional_comments": draft.additional_comments or None,
            "listing_type": draft.listing_type,
            "shipping_method": draft.shipping_method,
            "media_files": media_files,
        }
        if draft.show_advanced:
            for name in ADVANCED_FIELDS:
                values[name] = getattr(draft, name) or None

        if draft.listing_type == ListingType.direct_sale.value:
            values["price"] = parse_amount(draft.price)
        elif draft.listing_type == ListingType.auction.value:
            values["starting_bid"] = parse_amount(draft.starting_bid)
            values["reserve_price"] = parse_amount(draft.reserve_price)
            values["auction_duration"] = draft.auction_duration or None

        if self.is_edit_mode:
            if self.deleted_media_ids:
                values["deleted_media_ids"] = list(self.deleted_media_ids)
            values["gem_id"] = self.edit_gem_id
        return GemSubmission(**values)

    async def submit(self) -> Optional[SubmissionResult]:
        """Upload media and create (or update) the listing.

        Returns None when the review step does not validate or another
        submission is still running. Failures are notified, recorded against
        the draft, then re-raised.
        """
        if self.submission_state is not SubmissionState.idle:
            logger.warning("Ignoring submit while a submission is %s", self.submission_state.value)
            return None
        if not self.validate_step(Step.REVIEW):
            return None

        self.submission_state = SubmissionState.uploading
        try:
            if not self.token_store.get():
                raise AuthenticationRequired(NO_TOKEN_MESSAGE)
            media_files = await self._upload_media()
            self.submission_state = SubmissionState.submitting
            submission = self.build_submission(media_files)
            if self.uses_async_submission:
                return await self._submit_async(submission)
            return await self._submit_sync(submission)
        except GemListingError as exc:
            self._handle_submission_failure(exc)
            raise
        finally:
            self.submission_state = SubmissionState.idle

    async def _submit_async(self, submission: GemSubmission) -> SubmissionResult:
        envelope = await self.service.submit_gem_async(submission)
        if not envelope.success or not envelope.data:
            raise SubmissionError(envelope.message or "Failed to submit gem listing")

        job_id = envelope.data.job_id
        gem_type, report_number = self.draft.gem_type, self.draft.report_number
        self.track_job(job_id, gem_type, report_number)
        self.draft_store.clear()
        message = f"{gem_type} ({report_number}) submitted! Processing in background..."
        self.notifier.success(message, 5000)
        self.reset()
        return SubmissionResult(message=message, job_id=job_id)

    async def _submit_sync(self, submission: GemSubmission) -> SubmissionResult:
        if self.is_edit_mode:
            envelope = await self.service.update_gem(self.edit_gem_id, submission)
        elif self.is_admin:
            admin_submission = submission.model_copy(
                update={
                    "is_platform_gem": True,
                    "seller_type": "Ishq",
                    "admin_submitted": True,
                    "auto_verified": True,
                }
            )
            envelope = await self.service.create_admin_gem(admin_submission)
        else:
            envelope = await self.service.create_gem(submission)

        if not envelope.success:
            action = "update" if self.is_edit_mode else "create"
            raise SubmissionError(envelope.message or f"Failed to {action} gem listing")

        self.draft_store.clear()
        label = f"{self.draft.gem_type} ({self.draft.report_number})"
        if self.is_edit_mode:
            message = f"{label} updated successfully!"
        elif self.is_admin:
            message = f"{label} added as Ishq Gems! Automatically verified and ready."
        else:
            message = f"{label} created! It will be reviewed by our team."
        self.notifier.success(message, 6000)

        if self.is_edit_mode and self.on_edit_success:
            self.on_edit_success()
        elif not self.is_edit_mode:
            self.reset()
        return SubmissionResult(message=message, gem=envelope.data)

    def _handle_submission_failure(self, exc: GemListingError) -> None:
        message = str(exc) or "Failed to submit gem listing. Please try again."
        logger.error("Gem submission failed: %s", message)
        report_number = self.draft.report_number

        if is_duplicate_report_message(message):
            if self.is_edit_mode:
                message = (
                    f'There was an issue updating the gem listing. The report number "{report_number}" '
                    "might already be in use by another gem. Please contact support if this persists."
                )
                self.errors = {"report_number": "Report number conflict detected. Contact support if this issue persists."}
            else:
                message = (
                    f'Report number "{report_number}" already exists. Please verify the report number '
                    "or check if this gem has already been listed."
                )
                self.errors = {"report_number": "This report number is already in use"}
            self.step = Step.DETAILS
        elif isinstance(exc, ValidationError) and exc.field_errors:
            self.errors = dict(exc.field_errors)

        self.notifier.error(message, 8000)

    def reset(self) -> None:
        """Start a fresh listing; background jobs keep running."""
        self._reset_state()
        self.progress.clear()
        self.draft_store.clear()

    # -------- Background jobs --------

    def track_job(self, job_id: str, gem_type: str, report_number: str) -> asyncio.Task:
        self.background_jobs[job_id] = BackgroundJob.accepted(job_id, gem_type, report_number)
        cancel = CancelToken()
        self._job_cancels[job_id] = cancel
        task = asyncio.ensure_future(self._follow_job(job_id, cancel))
        self._job_tasks[job_id] = task
        return task

    def _on_job_progress(self, job_id: str, progress: JobProgress) -> None:
        job = self.background_jobs.get(job_id)
        if job is None:
            return
        reached = set(job.milestones_reached)
        if not progress.is_terminal:
            for threshold, label in sorted(config.JOB_MILESTONES.items()):
                if progress.progress >= threshold and threshold not in reached:
                    reached.add(threshold)
                    self.notifier.info(f"{job.label}: {label}", 2000)
        self.background_jobs[job_id] = replace(job, progress=progress, milestones_reached=reached)

    async def _follow_job(self, job_id: str, cancel: CancelToken) -> Optional[JobProgress]:
        label = self.background_jobs[job_id].label
        try:
            final = await self.poller.poll(
                job_id, on_progress=lambda p: self._on_job_progress(job_id, p), cancel=cancel
            )
        except JobPollingCancelled:
            logger.info("Stopped following job %s", job_id)
            self.background_jobs.pop(job_id, None)
            return None
        except Exception:
            logger.exception("Background job polling error for %s", job_id)
            self.notifier.error(f"Connection lost while processing {label}", 6000)
            return None
        finally:
            self._job_tasks.pop(job_id, None)
            self._job_cancels.pop(job_id, None)

        if final.status is JobStatus.completed:
            self.background_jobs.pop(job_id, None)
            self.notifier.success(f"{label} added successfully! Check your listings.", 6000)
        else:
            job = self.background_jobs.get(job_id)
            if job is not None:
                self.background_jobs[job_id] = replace(job, progress=final)
            self.notifier.error(f"Failed to process {label}: {final.error}", 8000)
        return final

    def cancel_job(self, job_id: str) -> None:
        cancel = self._job_cancels.get(job_id)
        if cancel is not None:
            cancel.cancel()

    async def wait_for_jobs(self) -> None:
        tasks = list(self._job_tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        for job_id in list(self._job_cancels):
            self.cancel_job(job_id)
        await self.wait_for_jobs()
