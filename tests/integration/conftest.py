import itertools
import json

import httpx
import pytest

fastapi = pytest.importorskip("fastapi")
from fastapi import FastAPI, Request  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

MARKETPLACE = "http://marketplace.test"


class MarketplaceState:
    """In-memory backend: stored objects, gem records and background jobs."""

    def __init__(self):
        self.objects = {}
        self.gems = {}
        self.jobs = {}
        self.deleted_reports = []
        self.extractions = 0
        self._ids = itertools.count(1)

    def next_id(self):
        return f"{next(self._ids):024x}"


def _unauthorized():
    return JSONResponse({"success": False, "message": "Authentication required"}, status_code=401)


def _authorized(request: Request) -> bool:
    return request.headers.get("authorization", "").startswith("Bearer ")


def build_marketplace(state: MarketplaceState) -> FastAPI:
    app = FastAPI()
    report_data = {
        "reportNumber": "GRS2024-0815",
        "labName": "GRS",
        "gemType": "sapphire",
        "variety": "blue sapphire",
        "weight": "3.02 ct",
        "color": "royal blue",
        "clarity": "VVS",
        "origin": "Burma",
        "dimensions": {"length": 9.1, "width": 7.3, "height": 4.8},
    }

    @app.post("/api/gems/extract-lab-report")
    async def extract(request: Request):
        if not _authorized(request):
            return _unauthorized()
        body = await request.body()
        if b'name="labReport"' not in body:
            return JSONResponse({"success": False, "message": "labReport is required"}, status_code=400)
        state.extractions += 1
        key = f"lab-reports/{state.extractions}-report.pdf"
        state.objects[key] = body
        return {
            "success": True,
            "data": report_data,
            "meta": {"filename": "report.pdf", "s3Key": key, "s3Url": f"{MARKETPLACE}/storage/{key}"},
        }

    @app.post("/api/gems/extract-lab-report/from-url")
    async def extract_from_url(request: Request):
        payload = await request.json()
        key = payload["fileUrl"].split("/storage/", 1)[-1]
        if key not in state.objects:
            return JSONResponse({"success": False, "message": "Lab report not found"}, status_code=404)
        return {"success": True, "data": report_data}

    @app.post("/api/gems/delete-lab-report")
    async def delete_report(request: Request):
        key = (await request.json())["s3Key"]
        state.objects.pop(key, None)
        state.deleted_reports.append(key)
        return {"success": True}

    @app.post("/api/gems/upload-urls")
    async def upload_urls(request: Request):
        if not _authorized(request):
            return _unauthorized()
        files = (await request.json())["files"]
        targets = []
        for item in files:
            key = f"{item['gemId']}/{item['mediaType']}/{item['fileName']}"
            targets.append(
                {
                    "fileName": item["fileName"],
                    "uploadUrl": f"{MARKETPLACE}/storage/{key}?X-Signature=ok",
                    "s3Key": key,
                    "mediaType": item["mediaType"],
                }
            )
        return {"success": True, "data": targets}

    @app.put("/storage/{key:path}")
    async def put_object(key: str, request: Request):
        if "authorization" in request.headers:
            return JSONResponse({"message": "Pre-signed URLs take no bearer token"}, status_code=400)
        state.objects[key] = await request.body()
        return {}

    def _create(payload, extra=None):
        missing = [m["s3Key"] for m in payload.get("mediaFiles", []) if m["s3Key"] not in state.objects]
        if missing:
            return JSONResponse({"success": False, "message": f"Unknown media: {missing}"}, status_code=400)
        if any(g["reportNumber"] == payload["reportNumber"] for g in state.gems.values()):
            return JSONResponse(
                {"success": False, "message": f"Duplicate Report Number: {payload['reportNumber']}"},
                status_code=409,
            )
        gem_id = state.next_id()
        state.gems[gem_id] = {**payload, **(extra or {}), "_id": gem_id}
        return {"success": True, "data": state.gems[gem_id]}

    @app.post("/api/gems")
    async def create_gem(request: Request):
        if not _authorized(request):
            return _unauthorized()
        return _create(await request.json())

    @app.post("/api/gems/submit")
    async def submit_gem(request: Request):
        if not _authorized(request):
            return _unauthorized()
        payload = await request.json()
        job_id = f"job-{len(state.jobs) + 1}"
        state.jobs[job_id] = {"payload": payload, "polls": 0}
        return {"success": True, "data": {"jobId": job_id, "status": "pending"}}

    @app.get("/api/gems/status/{job_id}")
    async def job_status(job_id: str):
        job = state.jobs.get(job_id)
        if job is None:
            return JSONResponse({"success": False, "message": "Job not found"}, status_code=404)
        job["polls"] += 1
        if job["polls"] < 3:
            progress = {1: 35, 2: 75}[job["polls"]]
            return {"success": True, "data": {"status": "processing", "progress": progress}}
        result = _create(job["payload"])
        if isinstance(result, JSONResponse):
            error = json.loads(result.body)["message"]
            return {"success": True, "data": {"status": "failed", "progress": 100, "error": error}}
        return {
            "success": True,
            "data": {"status": "completed", "progress": 100, "gemId": result["data"]["_id"]},
        }

    @app.put("/api/gems/{gem_id}")
    async def update_gem(gem_id: str, request: Request):
        if gem_id not in state.gems:
            return JSONResponse({"success": False, "message": "Gem not found"}, status_code=404)
        payload = await request.json()
        state.gems[gem_id].update(payload)
        return {"success": True, "data": state.gems[gem_id]}

    return app


@pytest.fixture
def marketplace():
    return MarketplaceState()


@pytest.fixture
def marketplace_transport(marketplace):
    return httpx.ASGITransport(app=build_marketplace(marketplace))
