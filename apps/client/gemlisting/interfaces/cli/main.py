import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from gemlisting import config
from gemlisting.application.draft_store import AuthTokenStore, CertificateDraftStore
from gemlisting.application.extraction import ExtractionClient, ExtractionFailed
from gemlisting.application.field_matcher import match_with_summary
from gemlisting.application.job_poller import JobPoller
from gemlisting.application.notifications import Notifier, Toast
from gemlisting.application.wizard import ListingWizard
from gemlisting.core.domain.errors import ExtractionError, GemListingError, ValidationError
from gemlisting.core.domain.listing import Step, WizardMode
from gemlisting.core.domain.media import LocalFile
from gemlisting.infrastructure.http.api_client import ApiClient
from gemlisting.infrastructure.http.gem_service import GemService
from gemlisting.infrastructure.storage.local_storage import storage_from_url
from gemlisting.interfaces.api.schemas import JobStatus

logger = logging.getLogger(__name__)


def _print_toast(toast: Toast) -> None:
    print(f"[{toast.kind.value}] {toast.message}")


def _load_json(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValidationError(f"{path} must contain a JSON object")
    return data


def _build_api(args: argparse.Namespace, token_store: AuthTokenStore) -> ApiClient:
    return ApiClient(base_url=args.api_url, token_provider=token_store.get)


async def _submit(args: argparse.Namespace) -> int:
    storage = storage_from_url(args.storage)
    token_store = AuthTokenStore(storage)
    async with _build_api(args, token_store) as api:
        service = GemService(api)
        mode = WizardMode(args.mode)
        wizard = ListingWizard(
            service,
            CertificateDraftStore(storage),
            token_store,
            notifier=Notifier(_print_toast),
            mode=mode,
            initial_data=_load_json(args.initial_data),
            edit_gem_id=args.gem_id,
            async_submission=not args.sync,
        )

        if args.certificate:
            await wizard.select_certificate(LocalFile.from_path(args.certificate))
        else:
            await wizard.restore_stored_certificate()

        if wizard.draft.certificate is None and not wizard.skip_certificate():
            print("A lab certificate is required (use --certificate).")
            return 2
        if wizard.step == Step.CERTIFICATE:
            await wizard.next_step()

        # Values given on the command line win over OCR output.
        try:
            wizard.draft.apply(_load_json(args.listing))
        except AttributeError as exc:
            raise ValidationError(str(exc)) from exc
        if not await wizard.next_step():
            for name, message in wizard.errors.items():
                print(f"{name}: {message}")
            return 2

        rejected = wizard.add_images(LocalFile.from_path(p) for p in args.image)
        rejected += wizard.add_videos(LocalFile.from_path(p) for p in args.video)
        for message in rejected:
            print(message)
        if not await wizard.next_step():
            for name, message in wizard.errors.items():
                print(f"{name}: {message}")
            return 2

        wizard.update(confirm_accuracy=True)
        result = await wizard.submit()
        if result is None:
            for name, message in wizard.errors.items():
                print(f"{name}: {message}")
            return 2
        if result.job_id:
            print(f"job: {result.job_id}")
            if args.wait:
                await wizard.wait_for_jobs()
            else:
                await wizard.aclose()
        return 0


async def _status(args: argparse.Namespace) -> int:
    storage = storage_from_url(args.storage)
    async with _build_api(args, AuthTokenStore(storage)) as api:
        service = GemService(api)
        if not args.wait:
            envelope = await service.get_job_status(args.job_id)
            if not envelope.success:
                print(envelope.message or "Failed to fetch job status")
                return 1
            print(json.dumps(envelope.data.to_payload(), indent=2))
            return 0

        def report(progress) -> None:
            print(f"{progress.status.value} {progress.progress}% {progress.message}")

        final = await JobPoller(service).poll(args.job_id, on_progress=report)
        return 0 if final.status is JobStatus.completed else 1


async def _extract(args: argparse.Namespace) -> int:
    storage = storage_from_url(args.storage)
    async with _build_api(args, AuthTokenStore(storage)) as api:
        result = await ExtractionClient(GemService(api)).extract_file(LocalFile.from_path(args.file))
    if isinstance(result, ExtractionFailed):
        raise ExtractionError(result.message)
    updates, matches = match_with_summary(result.data)
    print(json.dumps(updates, indent=2, ensure_ascii=False))
    for match in matches:
        print(f"{match.field}: {match.original!r} -> {match.matched!r} ({match.confidence})")
    return 0


async def _health(args: argparse.Namespace) -> int:
    storage = storage_from_url(args.storage)
    async with _build_api(args, AuthTokenStore(storage)) as api:
        service = GemService(api)
        health = await service.check_health()
        info = await service.get_extraction_info()
    report = {
        "api": health.data if health.success else health.message,
        "extraction": info.data if info.success else info.message,
    }
    print(json.dumps(report, indent=2))
    return 0 if health.success and info.success else 1


def _set_token(args: argparse.Namespace) -> int:
    AuthTokenStore(storage_from_url(args.storage)).set(args.token)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gemlisting", description="Gem listing client")
    parser.add_argument("--api-url", default=config.API_BASE_URL, help="Marketplace API base URL.")
    parser.add_argument("--storage", default=config.STORAGE_URL, help="Local storage file or redis:// URL.")
    sub = parser.add_subparsers(dest="command", required=True)

    submit = sub.add_parser("submit", help="Run the listing wizard end to end.")
    submit.add_argument("listing", type=Path, help="JSON object of listing fields (snake_case).")
    submit.add_argument("--certificate", type=Path, help="Lab report (PDF, JPEG or PNG).")
    submit.add_argument("--image", type=Path, action="append", default=[], help="Image file; repeatable.")
    submit.add_argument("--video", type=Path, action="append", default=[], help="Video file; repeatable.")
    submit.add_argument("--mode", choices=[m.value for m in WizardMode], default=WizardMode.create.value)
    submit.add_argument("--gem-id", help="Gem being edited (edit mode).")
    submit.add_argument("--initial-data", type=Path, help="Existing gem record as JSON (edit mode).")
    submit.add_argument("--sync", action="store_true", help="Create the gem synchronously.")
    submit.add_argument("--wait", action="store_true", help="Wait for the background job to finish.")
    submit.set_defaults(handler=_submit)

    status = sub.add_parser("status", help="Show or follow a background job.")
    status.add_argument("job_id")
    status.add_argument("--wait", action="store_true", help="Poll until the job finishes.")
    status.set_defaults(handler=_status)

    extract = sub.add_parser("extract", help="Run OCR on a lab report and print matched fields.")
    extract.add_argument("file", type=Path)
    extract.set_defaults(handler=_extract)

    health = sub.add_parser("health", help="Check the API and the OCR extraction service.")
    health.set_defaults(handler=_health)

    token = sub.add_parser("set-token", help="Store the API bearer token.")
    token.add_argument("token")
    token.set_defaults(handler=_set_token)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        if asyncio.iscoroutinefunction(args.handler):
            return asyncio.run(args.handler(args))
        return args.handler(args)
    except GemListingError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
