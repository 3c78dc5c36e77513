import logging
import time
from typing import Awaitable, Callable, Optional

from gemlisting import config
from gemlisting.core.domain.media import StoredCertificateDescriptor
from gemlisting.infrastructure.storage.local_storage import LocalStorage

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class CertificateDraftStore:
    """Keeps at most one uploaded lab report so a restart doesn't re-upload or re-run OCR."""

    def __init__(self, storage: LocalStorage, key: str = config.LAB_REPORT_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def save(self, descriptor: StoredCertificateDescriptor) -> None:
        self.storage.set(self.key, descriptor.to_dict())

    def load(self) -> Optional[StoredCertificateDescriptor]:
        raw = self.storage.get(self.key)
        if not raw:
            return None
        try:
            return StoredCertificateDescriptor.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding malformed stored lab report: %s", exc)
            self.clear()
            return None

    def clear(self) -> None:
        self.storage.remove(self.key)

    @staticmethod
    def is_expired(descriptor: StoredCertificateDescriptor, now: Optional[int] = None) -> bool:
        now = now_ms() if now is None else now
        return now - descriptor.uploaded_at > config.LAB_REPORT_EXPIRY_MS

    async def replace(
        self,
        descriptor: StoredCertificateDescriptor,
        delete_old: Optional[Callable[[str], Awaitable[object]]] = None,
    ) -> None:
        current = self.load()
        if current and current.s3_key and delete_old:
            try:
                await delete_old(current.s3_key)
            except Exception as exc:
                logger.warning("Failed to delete old lab report %s: %s", current.s3_key, exc)
        self.save(descriptor)


class AuthTokenStore:
    def __init__(self, storage: LocalStorage, key: str = config.AUTH_TOKEN_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def get(self) -> Optional[str]:
        token = self.storage.get(self.key)
        return str(token) if token else None

    def set(self, token: str) -> None:
        self.storage.set(self.key, token)

    def clear(self) -> None:
        self.storage.remove(self.key)
