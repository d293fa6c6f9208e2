"""Unit tests for appforge.execution.local module."""

import pytest

from appforge.execution.local import LocalSandboxProvider
from appforge.execution.sandbox import (
    CommandFailedError,
    SandboxUnavailable,
    create_sandbox_provider,
    get_sandbox,
)


@pytest.fixture
def provider(tmp_path):
    return LocalSandboxProvider(root_dir=str(tmp_path), timeout=60)


class TestLocalSandboxProvider:
    """Tests for the directory-backed sandbox provider."""

    @pytest.mark.asyncio
    async def test_write_then_read(self, provider):
        """Test that files written through one handle are visible through another."""
        sandbox_id = await provider.create()
        first = await provider.connect(sandbox_id)
        await first.write_file("app/page.tsx", "export default function Page() {}")

        second = await provider.connect(sandbox_id)
        assert await second.read_file("app/page.tsx") == "export default function Page() {}"

    @pytest.mark.asyncio
    async def test_sandbox_survives_provider_instances(self, tmp_path):
        """Test that another provider sharing the root reconnects by id."""
        sandbox_id = await LocalSandboxProvider(root_dir=str(tmp_path)).create()
        handle = await LocalSandboxProvider(root_dir=str(tmp_path)).connect(sandbox_id)
        assert handle.sandbox_id == sandbox_id

    @pytest.mark.asyncio
    async def test_run_command_streams_output(self, provider):
        """Test that command output is streamed to the callbacks and returned."""
        handle = await provider.connect(await provider.create())
        chunks = []

        result = await handle.run_command("echo hello", on_stdout=chunks.append)

        assert result.exit_code == 0
        assert result.stdout.strip() == "hello"
        assert "".join(chunks).strip() == "hello"

    @pytest.mark.asyncio
    async def test_failing_command_raises_with_buffers(self, provider):
        """Test that a non-zero exit raises CommandFailedError carrying the output."""
        handle = await provider.connect(await provider.create())

        with pytest.raises(CommandFailedError) as exc_info:
            await handle.run_command("echo partial; echo oops >&2; exit 3")

        assert exc_info.value.exit_code == 3
        assert "partial" in exc_info.value.stdout
        assert "oops" in exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_unknown_sandbox_is_unavailable(self, provider):
        """Test that connecting to an unknown id raises SandboxUnavailable."""
        with pytest.raises(SandboxUnavailable):
            await provider.connect("0" * 32)
        with pytest.raises(SandboxUnavailable, match="malformed"):
            await provider.connect("../etc")

    @pytest.mark.asyncio
    async def test_expired_sandbox_is_unavailable(self, provider):
        """Test that a sandbox past its idle timeout cannot be reconnected."""
        sandbox_id = await provider.create()
        provider._write_expiry(sandbox_id, 0)

        with pytest.raises(SandboxUnavailable, match="expired"):
            await provider.connect(sandbox_id)

    @pytest.mark.asyncio
    async def test_get_sandbox_refreshes_timeout(self, provider):
        """Test that get_sandbox extends the idle expiry."""
        sandbox_id = await provider.create(timeout=1)
        before = provider._read_expiry(sandbox_id)

        await get_sandbox(provider, sandbox_id, timeout=3600)

        assert provider._read_expiry(sandbox_id) > before

    @pytest.mark.asyncio
    async def test_paths_cannot_escape_the_sandbox(self, provider):
        """Test that paths outside the sandbox directory are rejected."""
        handle = await provider.connect(await provider.create())
        with pytest.raises(ValueError, match="escapes"):
            await handle.write_file("../outside.txt", "nope")

    @pytest.mark.asyncio
    async def test_host_for_port(self, provider):
        """Test that the local host points at localhost."""
        handle = await provider.connect(await provider.create())
        assert handle.get_host(3000) == "localhost:3000"


class TestCreateSandboxProvider:
    """Tests for create_sandbox_provider."""

    def test_local(self, tmp_path):
        """Test that "local" builds a LocalSandboxProvider."""
        provider = create_sandbox_provider("local", timeout=5, root_dir=str(tmp_path))
        assert isinstance(provider, LocalSandboxProvider)
        assert provider.default_timeout == 5

    def test_unknown(self):
        """Test that unknown names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown sandbox provider"):
            create_sandbox_provider("vmware")
