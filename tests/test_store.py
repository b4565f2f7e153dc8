"""Tests for log stores and the persistence gateway."""

import base64
import json
from datetime import datetime, timezone

import httpx
import pytest

from codetrack.store import (
    DirectoryLogStore,
    GitHubLogStore,
    LogStoreError,
    PersistenceGateway,
    ProvisionStatus,
)

from conftest import FakeLogStore


class FakeGitHub:
    """Minimal GitHub REST handler for MockTransport."""

    def __init__(self, repo_exists=False, user_status=200):
        self.repo_exists = repo_exists
        self.user_status = user_status
        self.files = {}
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST" and path == "/user/repos":
            if self.repo_exists:
                return httpx.Response(422, json={"message": "Repository creation failed."})
            self.repo_exists = True
            return httpx.Response(201, json={"name": json.loads(request.content)["name"]})
        if request.method == "GET" and path == "/user":
            if self.user_status != 200:
                return httpx.Response(self.user_status, json={"message": "Bad credentials"})
            return httpx.Response(200, json={"login": "octocat"})
        if path.startswith("/repos/octocat/code-tracking/contents/"):
            file_path = path[len("/repos/octocat/code-tracking/contents/"):]
            if request.method == "GET":
                if file_path not in self.files:
                    return httpx.Response(404, json={"message": "Not Found"})
                return httpx.Response(200, json={"sha": f"sha-{file_path}"})
            if request.method == "PUT":
                payload = json.loads(request.content)
                if file_path in self.files and "sha" not in payload:
                    return httpx.Response(422, json={"message": '"sha" wasn\'t supplied.'})
                self.files[file_path] = payload
                return httpx.Response(201, json={"content": {"path": file_path}})
        return httpx.Response(404, json={"message": "Not Found"})


def github_store(fake):
    return GitHubLogStore(token="ghp_test", transport=httpx.MockTransport(fake))


class TestGitHubLogStore:
    """Tests for GitHubLogStore against a fake API."""

    @pytest.mark.asyncio
    async def test_creates_private_repo(self):
        fake = FakeGitHub()
        store = github_store(fake)

        status = await store.ensure_container_exists("code-tracking")

        assert status is ProvisionStatus.CREATED
        request = fake.requests[0]
        assert json.loads(request.content) == {"name": "code-tracking", "private": True}
        assert request.headers["Authorization"] == "Bearer ghp_test"

    @pytest.mark.asyncio
    async def test_existing_repo_is_already_exists(self):
        store = github_store(FakeGitHub(repo_exists=True))

        assert await store.ensure_container_exists("code-tracking") is ProvisionStatus.ALREADY_EXISTS
        assert await store.ensure_container_exists("code-tracking") is ProvisionStatus.ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_provision_error_raises(self):
        store = github_store(lambda request: httpx.Response(401, json={"message": "Bad credentials"}))

        with pytest.raises(LogStoreError) as exc_info:
            await store.ensure_container_exists("code-tracking")

        assert exc_info.value.status_code == 401
        assert "Bad credentials" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_write_record_puts_base64_file(self):
        fake = FakeGitHub()
        store = github_store(fake)
        await store.ensure_container_exists("code-tracking")

        await store.write_record("log-2026-10-19", b"Worked on a.txt", "Activity at 2026-10-19")

        payload = fake.files["log-2026-10-19.txt"]
        assert base64.b64decode(payload["content"]) == b"Worked on a.txt"
        assert payload["message"] == "Activity at 2026-10-19"

    @pytest.mark.asyncio
    async def test_owner_is_fetched_once(self):
        fake = FakeGitHub()
        store = github_store(fake)
        await store.ensure_container_exists("code-tracking")

        await store.write_record("log-1", b"one", "m")
        await store.write_record("log-2", b"two", "m")

        user_calls = [r for r in fake.requests if r.url.path == "/user"]
        assert len(user_calls) == 1

    @pytest.mark.asyncio
    async def test_same_key_overwrites(self):
        fake = FakeGitHub()
        store = github_store(fake)
        await store.ensure_container_exists("code-tracking")

        await store.write_record("log-1", b"first", "m")
        await store.write_record("log-1", b"second", "m")

        payload = fake.files["log-1.txt"]
        assert base64.b64decode(payload["content"]) == b"second"
        assert payload["sha"] == "sha-log-1.txt"

    @pytest.mark.asyncio
    async def test_key_with_separators_is_quoted(self):
        fake = FakeGitHub()
        store = github_store(fake)
        await store.ensure_container_exists("code-tracking")

        await store.write_record("log-10/19/2026, 14:05:09", b"x", "m")

        put = [r for r in fake.requests if r.method == "PUT"][0]
        assert "%2C%20" in put.url.raw_path.decode()
        assert "log-10/19/2026, 14:05:09.txt" in fake.files

    @pytest.mark.asyncio
    async def test_auth_failure_raises(self):
        fake = FakeGitHub(user_status=401)
        store = github_store(fake)
        await store.ensure_container_exists("code-tracking")

        with pytest.raises(LogStoreError) as exc_info:
            await store.write_record("log-1", b"x", "m")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        store = github_store(handler)

        with pytest.raises(LogStoreError, match="request failed"):
            await store.ensure_container_exists("code-tracking")

    @pytest.mark.asyncio
    async def test_non_object_error_body_keeps_status(self):
        store = github_store(lambda request: httpx.Response(500, json=["boom"]))

        with pytest.raises(LogStoreError) as exc_info:
            await store.ensure_container_exists("code-tracking")

        assert exc_info.value.status_code == 500
        assert "(500)" in str(exc_info.value)
        assert "boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_write_before_provision_raises(self):
        store = github_store(FakeGitHub())

        with pytest.raises(LogStoreError, match="not been provisioned"):
            await store.write_record("log-1", b"x", "m")


class TestDirectoryLogStore:
    """Tests for DirectoryLogStore."""

    @pytest.mark.asyncio
    async def test_provision_is_idempotent(self, tmp_path):
        store = DirectoryLogStore(tmp_path)

        assert await store.ensure_container_exists("code-tracking") is ProvisionStatus.CREATED
        assert await store.ensure_container_exists("code-tracking") is ProvisionStatus.ALREADY_EXISTS
        assert (tmp_path / "code-tracking").is_dir()

    @pytest.mark.asyncio
    async def test_write_record_creates_file_and_journal(self, tmp_path):
        store = DirectoryLogStore(tmp_path)
        await store.ensure_container_exists("code-tracking")

        await store.write_record("log-10/19/2026, 14:05:09", b"Worked on a.txt", "Activity at now")

        record = tmp_path / "code-tracking" / "log-10" / "19" / "2026, 14:05:09.txt"
        assert record.read_bytes() == b"Worked on a.txt"
        journal = store.read_journal()
        assert len(journal) == 1
        assert journal[0]["key"] == "log-10/19/2026, 14:05:09"
        assert journal[0]["message"] == "Activity at now"

    @pytest.mark.asyncio
    async def test_key_cannot_escape_container(self, tmp_path):
        store = DirectoryLogStore(tmp_path)
        await store.ensure_container_exists("code-tracking")

        with pytest.raises(LogStoreError, match="escapes"):
            await store.write_record("../../outside", b"x", "m")

    @pytest.mark.asyncio
    async def test_write_before_provision_raises(self, tmp_path):
        with pytest.raises(LogStoreError):
            await DirectoryLogStore(tmp_path).write_record("log-1", b"x", "m")

    def test_journal_before_provision_raises(self, tmp_path):
        with pytest.raises(LogStoreError, match="not been provisioned"):
            DirectoryLogStore(tmp_path)._append_journal("log-1", "m")

    @pytest.mark.asyncio
    async def test_journal_failure_keeps_written_record(self, tmp_path):
        store = DirectoryLogStore(tmp_path)
        await store.ensure_container_exists("code-tracking")
        # A directory where the journal file should be makes the append fail
        (tmp_path / "code-tracking" / "commits.jsonl").mkdir()

        await store.write_record("log-1", b"Worked on a.txt", "m")

        assert (tmp_path / "code-tracking" / "log-1.txt").read_bytes() == b"Worked on a.txt"


class TestPersistenceGateway:
    """Tests for PersistenceGateway."""

    NOW = datetime(2026, 10, 19, 8, 35, 9, tzinfo=timezone.utc)

    def test_record_key_uses_timezone_and_format(self):
        gateway = PersistenceGateway(FakeLogStore())

        record = gateway.build_record("summary", now=self.NOW)

        # 08:35:09 UTC is 14:05:09 in Asia/Kolkata
        assert record.date == "10/19/2026, 14:05:09"
        assert record.key == "log-10/19/2026, 14:05:09"
        assert record.message == "Activity at 10/19/2026, 14:05:09"
        assert record.body == b"summary"

    def test_default_format_does_not_pad_month_and_day(self):
        gateway = PersistenceGateway(FakeLogStore())

        early = datetime(2026, 1, 5, 3, 35, 3, tzinfo=timezone.utc)

        assert gateway.format_date(early) == "1/5/2026, 09:05:03"

    def test_custom_format(self):
        gateway = PersistenceGateway(
            FakeLogStore(), timezone="UTC", timestamp_format="%Y-%m-%dT%H-%M-%S"
        )
        assert gateway.format_date(self.NOW) == "2026-10-19T08-35-09"

    @pytest.mark.asyncio
    async def test_persist_success(self):
        store = FakeLogStore()
        gateway = PersistenceGateway(store)

        result = await gateway.persist("Worked on a.txt", now=self.NOW)

        assert result.ok
        assert result.key == "log-10/19/2026, 14:05:09"
        assert store.records == [
            ("log-10/19/2026, 14:05:09", b"Worked on a.txt", "Activity at 10/19/2026, 14:05:09")
        ]

    @pytest.mark.asyncio
    async def test_persist_failure_is_reported_not_raised(self):
        gateway = PersistenceGateway(FakeLogStore(fail_writes=True))

        result = await gateway.persist("Worked on a.txt")

        assert not result.ok
        assert result.error == "Bad credentials"

    @pytest.mark.asyncio
    async def test_provision_twice_succeeds(self):
        gateway = PersistenceGateway(FakeLogStore())

        first = await gateway.provision()
        second = await gateway.provision()

        assert first.ok and first.provision_status is ProvisionStatus.CREATED
        assert second.ok and second.provision_status is ProvisionStatus.ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_provision_failure(self):
        store = FakeLogStore()

        async def broken(name):
            raise LogStoreError("rate limited", status_code=429)

        store.ensure_container_exists = broken

        result = await PersistenceGateway(store).provision()

        assert not result.ok
        assert result.error == "rate limited"
