import io
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional


class MediaKind(str, Enum):
    image = "image"
    video = "video"
    lab_report = "lab-report"


@dataclass
class LocalFile:
    """A file picked by the seller, either on disk or already in memory."""

    name: str
    content_type: str
    size: int
    path: Optional[Path] = None
    data: Optional[bytes] = None
    # True for the stand-in shown when a stored lab report is restored.
    placeholder: bool = False

    @classmethod
    def from_path(cls, path, content_type: Optional[str] = None) -> "LocalFile":
        path = Path(path)
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content_type=content_type or guessed or "application/octet-stream",
            size=path.stat().st_size,
            path=path,
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: str) -> "LocalFile":
        return cls(name=name, content_type=content_type, size=len(data), data=data)

    def open(self) -> BinaryIO:
        if self.data is not None:
            return io.BytesIO(self.data)
        if self.path is not None:
            return self.path.open("rb")
        return io.BytesIO(b"")

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is not None:
            return self.path.read_bytes()
        return b""


@dataclass
class ExistingMedia:
    media_id: str
    type: str
    url: str = ""
    is_primary: bool = False
    order: int = 0
    filename: Optional[str] = None
    file_size: Optional[int] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "ExistingMedia":
        return cls(
            media_id=str(raw.get("_id") or raw.get("id") or ""),
            type=raw.get("type", ""),
            url=raw.get("url", ""),
            is_primary=bool(raw.get("isPrimary", False)),
            order=int(raw.get("order") or 0),
            filename=raw.get("filename"),
            file_size=raw.get("fileSize"),
        )


@dataclass
class StoredCertificateDescriptor:
    url: str
    filename: str
    s3_key: str
    uploaded_at: int  # epoch milliseconds
    file_size: int
    file_type: str

    def to_dict(self) -> Dict[str, Any]:
        # Same JSON shape the web client keeps in localStorage.
        return {
            "url": self.url,
            "filename": self.filename,
            "s3Key": self.s3_key,
            "uploadedAt": self.uploaded_at,
            "fileSize": self.file_size,
            "fileType": self.file_type,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "StoredCertificateDescriptor":
        return cls(
            url=raw["url"],
            filename=raw["filename"],
            s3_key=raw["s3Key"],
            uploaded_at=int(raw["uploadedAt"]),
            file_size=int(raw.get("fileSize") or 0),
            file_type=raw.get("fileType") or "",
        )

    def as_placeholder_file(self) -> LocalFile:
        return LocalFile(
            name=self.filename,
            content_type=self.file_type,
            size=self.file_size,
            placeholder=True,
        )


@dataclass
class UploadTask:
    file_name: str
    file_type: str
    file_size: int
    media_type: MediaKind
    gem_id: str
    file: LocalFile
    order: int = 0
    upload_url: Optional[str] = None
    s3_key: Optional[str] = None

    @classmethod
    def for_file(cls, file: LocalFile, media_type: MediaKind, gem_id: str, order: int) -> "UploadTask":
        return cls(
            file_name=file.name,
            file_type=file.content_type,
            file_size=file.size,
            media_type=media_type,
            gem_id=gem_id,
            file=file,
            order=order,
        )

    @property
    def progress_key(self) -> str:
        return f"{self.media_type.value}-{self.order}-{self.file_name}"

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.file_name:
            missing.append("fileName")
        if not self.file_type:
            missing.append("fileType")
        if not self.file_size or self.file_size <= 0:
            missing.append("fileSize")
        if not isinstance(self.media_type, MediaKind):
            missing.append("mediaType")
        if not self.gem_id:
            missing.append("gemId")
        if not isinstance(self.file, LocalFile) or self.file.placeholder:
            missing.append("file")
        return missing
