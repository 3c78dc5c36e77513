import asyncio

from gemlisting import config
from gemlisting.application.draft_store import AuthTokenStore, CertificateDraftStore
from gemlisting.core.domain.media import StoredCertificateDescriptor
from gemlisting.infrastructure.storage import local_storage
from gemlisting.infrastructure.storage.local_storage import (
    FileStorage,
    MemoryStorage,
    RedisStorage,
    storage_from_url,
)

UPLOADED_AT = 1_700_000_000_000


def descriptor(**overrides):
    values = dict(
        url="https://storage.test/bucket/lab-reports/r1.pdf",
        filename="r1.pdf",
        s3_key="lab-reports/r1.pdf",
        uploaded_at=UPLOADED_AT,
        file_size=2048,
        file_type="application/pdf",
    )
    values.update(overrides)
    return StoredCertificateDescriptor(**values)


def test_expiry_is_a_function_of_elapsed_time():
    d = descriptor()
    day = config.LAB_REPORT_EXPIRY_MS
    assert not CertificateDraftStore.is_expired(d, now=UPLOADED_AT + day - 1)
    assert not CertificateDraftStore.is_expired(d, now=UPLOADED_AT + day)
    assert CertificateDraftStore.is_expired(d, now=UPLOADED_AT + day + 1)


def test_save_load_round_trip_and_clear():
    store = CertificateDraftStore(MemoryStorage())
    assert store.load() is None

    original = descriptor()
    store.save(original)
    assert store.load() == original

    store.clear()
    assert store.load() is None


def test_save_overwrites_previous_descriptor():
    store = CertificateDraftStore(MemoryStorage())
    store.save(descriptor())
    store.save(descriptor(s3_key="lab-reports/r2.pdf", filename="r2.pdf"))
    assert store.load().s3_key == "lab-reports/r2.pdf"


def test_stored_shape_matches_web_client_keys():
    storage = MemoryStorage()
    CertificateDraftStore(storage).save(descriptor())
    raw = storage.get("labReportUrl")
    assert set(raw) == {"url", "filename", "s3Key", "uploadedAt", "fileSize", "fileType"}


def test_malformed_descriptor_is_discarded():
    storage = MemoryStorage({"labReportUrl": {"url": "https://x"}})
    store = CertificateDraftStore(storage)
    assert store.load() is None
    assert storage.get("labReportUrl") is None


def test_replace_deletes_old_object_first():
    store = CertificateDraftStore(MemoryStorage())
    store.save(descriptor())
    deleted = []

    async def delete_old(key):
        deleted.append(key)

    asyncio.run(store.replace(descriptor(s3_key="lab-reports/r2.pdf"), delete_old))
    assert deleted == ["lab-reports/r1.pdf"]
    assert store.load().s3_key == "lab-reports/r2.pdf"


def test_replace_survives_delete_failure():
    store = CertificateDraftStore(MemoryStorage())
    store.save(descriptor())

    async def delete_old(_key):
        raise RuntimeError("storage down")

    asyncio.run(store.replace(descriptor(s3_key="lab-reports/r2.pdf"), delete_old))
    assert store.load().s3_key == "lab-reports/r2.pdf"


def test_file_storage_persists_between_instances(tmp_path):
    path = tmp_path / "state" / "local_storage.json"
    CertificateDraftStore(FileStorage(path)).save(descriptor())
    assert CertificateDraftStore(FileStorage(path)).load() == descriptor()

    FileStorage(path).remove("labReportUrl")
    assert FileStorage(path).get("labReportUrl") is None


def test_file_storage_ignores_corrupt_file(tmp_path):
    path = tmp_path / "local_storage.json"
    path.write_text("{not json", encoding="utf-8")
    assert FileStorage(path).get("token") is None


class FakeRedis:
    instances = []

    def __init__(self):
        self.data = {}

    @classmethod
    def from_url(cls, url, **kwargs):
        client = cls()
        client.url = url
        client.kwargs = kwargs
        cls.instances.append(client)
        return client

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


def test_redis_storage_namespaces_keys(monkeypatch):
    monkeypatch.setattr(local_storage.redis, "Redis", FakeRedis)
    storage = RedisStorage("redis://localhost:6379/0")
    tokens = AuthTokenStore(storage)

    tokens.set("abc")
    assert tokens.get() == "abc"

    client = FakeRedis.instances[-1]
    assert client.kwargs["decode_responses"] is True
    assert client.data == {"gemlisting:token": '"abc"'}

    tokens.clear()
    assert tokens.get() is None


def test_storage_from_url_selects_backend(tmp_path):
    assert isinstance(storage_from_url("redis://localhost:6379/0"), RedisStorage)
    assert isinstance(storage_from_url(":memory:"), MemoryStorage)
    assert isinstance(storage_from_url(str(tmp_path / "s.json")), FileStorage)
