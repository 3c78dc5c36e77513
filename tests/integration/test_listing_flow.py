import asyncio

from gemlisting.application.draft_store import AuthTokenStore, CertificateDraftStore
from gemlisting.application.job_poller import JobPoller
from gemlisting.application.notifications import Notifier, ToastKind
from gemlisting.application.wizard import ListingWizard
from gemlisting.core.domain.errors import SubmissionError
from gemlisting.core.domain.listing import Step
from gemlisting.core.domain.media import LocalFile
from gemlisting.infrastructure.http.api_client import ApiClient
from gemlisting.infrastructure.http.gem_service import GemService
from gemlisting.infrastructure.storage.local_storage import FileStorage

MARKETPLACE = "http://marketplace.test"


def open_wizard(api, storage, **kwargs):
    service = GemService(api)
    return ListingWizard(
        service,
        CertificateDraftStore(storage),
        AuthTokenStore(storage),
        notifier=Notifier(),
        poller=JobPoller(service, interval=0),
        **kwargs,
    )


def client(transport, storage):
    return ApiClient(
        base_url=f"{MARKETPLACE}/api",
        token_provider=AuthTokenStore(storage).get,
        transport=transport,
    )


def write_report(tmp_path):
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.7\n" + b"0" * 2048)
    return LocalFile.from_path(path)


async def walk_to_review(wizard, images):
    assert await wizard.next_step()
    assert wizard.step == Step.DETAILS
    wizard.update(listing_type="direct-sale", price="48000")
    assert await wizard.next_step()
    assert wizard.add_images(images) == []
    assert await wizard.next_step()
    assert wizard.step == Step.REVIEW
    wizard.update(confirm_accuracy=True)


def test_async_listing_end_to_end(marketplace, marketplace_transport, tmp_path):
    storage = FileStorage(tmp_path / "local_storage.json")
    AuthTokenStore(storage).set("seller-token")
    images = [LocalFile.from_bytes(f"view{i}.jpg", b"\xff\xd8" + b"1" * 512, "image/jpeg") for i in range(2)]

    async def scenario():
        async with client(marketplace_transport, storage) as api:
            wizard = open_wizard(api, storage, async_submission=True)
            await wizard.select_certificate(write_report(tmp_path))
            await walk_to_review(wizard, images)
            assert wizard.draft.gem_type == "Sapphire"
            assert wizard.draft.variety == "Blue Sapphire"
            assert wizard.draft.lab_name == "GRS (Gem Research Swisslab)"
            assert wizard.draft.weight.value == 3.02

            result = await wizard.submit()
            assert wizard.active_jobs[0].job_id == result.job_id
            await wizard.wait_for_jobs()
            return wizard

    wizard = asyncio.run(scenario())

    assert wizard.background_jobs == {}
    assert len(marketplace.gems) == 1
    gem = next(iter(marketplace.gems.values()))
    assert gem["reportNumber"] == "GRS2024-0815"
    assert gem["price"] == 48000
    media = gem["mediaFiles"]
    assert [m["type"] for m in media] == ["image", "image", "lab-report"]
    assert media[-1]["s3Key"] == "lab-reports/1-report.pdf"
    assert all(m["s3Key"] in marketplace.objects for m in media)
    assert CertificateDraftStore(storage).load() is None
    assert wizard.notifier.messages(ToastKind.success)[-1] == (
        "Sapphire (GRS2024-0815) added successfully! Check your listings."
    )


def test_stored_report_survives_a_restart(marketplace, marketplace_transport, tmp_path):
    storage = FileStorage(tmp_path / "local_storage.json")
    AuthTokenStore(storage).set("seller-token")
    images = [LocalFile.from_bytes("front.jpg", b"\xff\xd8" + b"2" * 256, "image/jpeg")]

    async def first_session():
        async with client(marketplace_transport, storage) as api:
            wizard = open_wizard(api, storage, async_submission=False)
            await wizard.select_certificate(write_report(tmp_path))
            await wizard.next_step()

    async def second_session():
        async with client(marketplace_transport, storage) as api:
            wizard = open_wizard(api, FileStorage(tmp_path / "local_storage.json"), async_submission=False)
            await wizard.restore_stored_certificate()
            assert wizard.draft.certificate.placeholder
            assert wizard.draft.report_number == "GRS2024-0815"
            await walk_to_review(wizard, images)
            return await wizard.submit()

    asyncio.run(first_session())
    assert marketplace.extractions == 1
    result = asyncio.run(second_session())

    assert marketplace.extractions == 1
    assert result.message == "Sapphire (GRS2024-0815) created! It will be reviewed by our team."
    gem = result.gem
    assert [m["s3Key"] for m in gem["mediaFiles"]][-1] == "lab-reports/1-report.pdf"
    assert not any(key.endswith("/lab-report/report.pdf") for key in marketplace.objects)


def test_duplicate_report_is_surfaced_on_details(marketplace, marketplace_transport, tmp_path):
    storage = FileStorage(tmp_path / "local_storage.json")
    AuthTokenStore(storage).set("seller-token")
    marketplace.gems["existing"] = {"reportNumber": "GRS2024-0815"}
    images = [LocalFile.from_bytes("front.jpg", b"\xff\xd8" + b"3" * 256, "image/jpeg")]

    async def scenario():
        async with client(marketplace_transport, storage) as api:
            wizard = open_wizard(api, storage, async_submission=False)
            await wizard.select_certificate(write_report(tmp_path))
            await walk_to_review(wizard, images)
            try:
                await wizard.submit()
            except SubmissionError:
                return wizard
            raise AssertionError("duplicate report number was accepted")

    wizard = asyncio.run(scenario())

    assert wizard.step == Step.DETAILS
    assert wizard.errors == {"report_number": "This report number is already in use"}
    assert len(marketplace.gems) == 1
