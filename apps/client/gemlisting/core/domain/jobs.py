import time
from dataclasses import dataclass, field
from typing import Set

from gemlisting.interfaces.api.schemas import JobProgress, JobStatus


@dataclass
class BackgroundJob:
    job_id: str
    gem_type: str
    report_number: str
    progress: JobProgress
    start_time: float = field(default_factory=lambda: time.time() * 1000)
    milestones_reached: Set[int] = field(default_factory=set)

    @classmethod
    def accepted(cls, job_id: str, gem_type: str, report_number: str) -> "BackgroundJob":
        return cls(
            job_id=job_id,
            gem_type=gem_type,
            report_number=report_number,
            progress=JobProgress(job_id=job_id, status=JobStatus.pending, progress=0, message="Starting processing..."),
        )

    @property
    def label(self) -> str:
        return f"{self.gem_type} ({self.report_number})"

    @property
    def status(self) -> JobStatus:
        return self.progress.status
