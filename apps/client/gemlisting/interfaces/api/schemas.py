import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # The marketplace backend speaks camelCase; Python code uses snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ApiEnvelope(BaseModel):
    """Standard `{success, data, message, error}` response wrapper."""

    model_config = ConfigDict(extra="allow")

    success: bool = False
    data: Any = None
    message: Optional[str] = None
    error: Optional[str] = None


# -------- Gem metadata --------


_NUMBER_RE = re.compile(r"-?\d+(?:[.,]\d+)?")


class GemWeight(CamelModel):
    value: float = 0.0
    unit: str = "ct"

    @model_validator(mode="before")
    @classmethod
    def _from_scalar(cls, data: Any) -> Any:
        if isinstance(data, (str, int, float)):
            return {"value": data}
        return data

    @field_validator("value", mode="before")
    @classmethod
    def _parse_value(cls, v: Any) -> float:
        # OCR output often looks like "2.15 ct".
        if v is None or v == "":
            return 0.0
        if isinstance(v, (int, float)):
            return float(v)
        match = _NUMBER_RE.search(str(v))
        if not match:
            return 0.0
        return float(match.group(0).replace(",", "."))

    @field_validator("unit", mode="before")
    @classmethod
    def _default_unit(cls, v: Any) -> str:
        return v or "ct"


class GemDimensions(CamelModel):
    length: str = ""
    width: str = ""
    height: str = ""
    unit: str = "mm"

    @field_validator("length", "width", "height", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("unit", mode="before")
    @classmethod
    def _default_unit(cls, v: Any) -> str:
        return v or "mm"


class ExtractedMetadata(CamelModel):
    # Report numbers sometimes come back as bare integers.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    report_number: Optional[str] = None
    lab_name: Optional[str] = None
    gem_type: Optional[str] = None
    variety: Optional[str] = None
    weight: Optional[GemWeight] = None
    dimensions: Optional[GemDimensions] = None
    shape_cut: Optional[str] = None
    color: Optional[str] = None
    clarity: Optional[str] = None
    origin: Optional[str] = None
    treatments: Optional[str] = None
    certificate_date: Optional[str] = None
    additional_comments: Optional[str] = None

    def populated(self) -> Dict[str, Any]:
        values = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            values[name] = value
        return values

    def is_empty(self) -> bool:
        return not self.populated()


class ExtractionMeta(CamelModel):
    filename: Optional[str] = None
    s3_key: Optional[str] = None
    s3_url: Optional[str] = None
    extracted_text_length: Optional[int] = None
    key_value_pairs_count: Optional[int] = None


class ExtractionResponse(CamelModel):
    success: bool = False
    data: Optional[Dict[str, Any]] = None
    meta: Optional[ExtractionMeta] = None
    message: Optional[str] = None
    error: Optional[str] = None


# -------- Uploads --------


class FileUploadRequest(CamelModel):
    file_name: str
    file_type: str
    file_size: int
    media_type: str
    gem_id: str


class UploadTarget(CamelModel):
    file_name: str
    upload_url: str
    s3_key: str
    media_type: Optional[str] = None


class MediaFileEntry(CamelModel):
    s3_key: str
    type: str
    filename: str
    file_size: int
    mime_type: str
    is_primary: bool = False
    order: int = 0


# -------- Jobs --------


class JobStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class JobSteps(CamelModel):
    validating: bool = False
    creating_gem: bool = False
    processing_media: bool = False
    finalizing: bool = False


class JobProgress(CamelModel):
    job_id: str
    status: JobStatus = JobStatus.pending
    progress: int = Field(default=0, ge=0, le=100)
    message: str = ""
    steps: JobSteps = Field(default_factory=JobSteps)
    gem_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.completed, JobStatus.failed)


class SubmitAsyncData(CamelModel):
    job_id: str
    status: Optional[str] = None
    message: Optional[str] = None


# -------- Gem record --------


class GemSubmission(CamelModel):
    report_number: str
    lab_name: str
    certificate_date: Optional[str] = None

    gem_type: str
    variety: Optional[str] = None
    weight: GemWeight
    dimensions: Optional[GemDimensions] = None
    shape_cut: Optional[str] = None
    color: str
    clarity: str
    origin: str
    treatments: Optional[str] = None
    additional_comments: Optional[str] = None

    fluorescence: Optional[str] = None
    fluorescence_color: Optional[str] = None
    polish: Optional[str] = None
    symmetry: Optional[str] = None
    girdle: Optional[str] = None
    culet: Optional[str] = None
    depth: Optional[str] = None
    table: Optional[str] = None
    crown_angle: Optional[str] = None
    pavilion_angle: Optional[str] = None
    crown_height: Optional[str] = None
    pavilion_depth: Optional[str] = None
    star_length: Optional[str] = None
    lower_half: Optional[str] = None

    price_per_carat: Optional[str] = None
    market_trend: Optional[str] = None
    investment_grade: Optional[str] = None
    rapnet_price: Optional[str] = None
    discount: Optional[str] = None

    laser_inscription: Optional[str] = None
    memo: Optional[bool] = None
    consignment: Optional[bool] = None
    stock_number: Optional[str] = None

    listing_type: str
    price: Optional[float] = None
    starting_bid: Optional[float] = None
    reserve_price: Optional[float] = None
    auction_duration: Optional[str] = None
    shipping_method: str

    media_files: List[MediaFileEntry] = Field(default_factory=list)

    # Edit mode only.
    deleted_media_ids: Optional[List[str]] = None
    gem_id: Optional[str] = None

    # Admin listings only.
    is_platform_gem: Optional[bool] = None
    seller_type: Optional[str] = None
    admin_submitted: Optional[bool] = None
    auto_verified: Optional[bool] = None
