import os
from pathlib import Path

API_BASE_URL = os.environ.get("GEMLISTING_API_BASE_URL", "http://localhost:5000/api")
API_TIMEOUT = float(os.environ.get("GEMLISTING_API_TIMEOUT", "30"))
# Direct-to-storage PUTs can be slow for videos.
UPLOAD_TIMEOUT = float(os.environ.get("GEMLISTING_UPLOAD_TIMEOUT", "300"))

STORAGE_URL = os.environ.get(
    "GEMLISTING_STORAGE_URL",
    str(Path.home() / ".gemlisting" / "local_storage.json"),
)

JOB_POLL_INTERVAL = float(os.environ.get("GEMLISTING_JOB_POLL_INTERVAL", "2.0"))
JOB_POLL_TIMEOUT = float(os.environ.get("GEMLISTING_JOB_POLL_TIMEOUT", "300"))
ASYNC_SUBMISSION = os.environ.get("GEMLISTING_ASYNC_SUBMISSION", "1").lower() not in {"0", "false", "no"}

LOG_LEVEL = os.environ.get("GEMLISTING_LOG_LEVEL", "INFO")

# Keys shared with the web client's localStorage.
LAB_REPORT_STORAGE_KEY = "labReportUrl"
AUTH_TOKEN_STORAGE_KEY = "token"
LAB_REPORT_EXPIRY_MS = 24 * 60 * 60 * 1000

MB = 1024 * 1024

UPLOAD_LIMITS = {
    "max_image_size": 5 * MB,
    "max_video_size": 50 * MB,
    "max_lab_report_size": 10 * MB,
    "allowed_image_types": ("image/jpeg", "image/png", "image/webp"),
    "allowed_video_types": ("video/mp4", "video/mov", "video/avi", "video/quicktime"),
    "allowed_lab_report_types": ("application/pdf", "image/jpeg", "image/png"),
    "max_images": 5,
    "max_videos": 2,
    "max_files_per_request": 20,
}

MAX_GEM_PRICE = 10_000_000

JOB_MILESTONES = {
    30: "Creating gem record...",
    70: "Processing media...",
}
