"""Client for listing gems on the marketplace.

Drives the certificate -> details -> media -> review wizard against the
marketplace REST API: OCR extraction of lab reports, direct-to-storage
uploads through pre-signed URLs, and tracking of background submissions.
"""

from gemlisting.application.draft_store import AuthTokenStore, CertificateDraftStore
from gemlisting.application.notifications import Notifier, Toast
from gemlisting.application.wizard import ListingWizard, SubmissionResult
from gemlisting.core.domain.listing import ListingDraft, Step, WizardMode
from gemlisting.core.domain.media import LocalFile
from gemlisting.infrastructure.http.api_client import ApiClient
from gemlisting.infrastructure.http.gem_service import GemService
from gemlisting.infrastructure.storage.local_storage import storage_from_url

__version__ = "0.1.0"

__all__ = [
    "ApiClient",
    "AuthTokenStore",
    "CertificateDraftStore",
    "GemService",
    "ListingDraft",
    "ListingWizard",
    "LocalFile",
    "Notifier",
    "Step",
    "SubmissionResult",
    "Toast",
    "WizardMode",
    "storage_from_url",
]
