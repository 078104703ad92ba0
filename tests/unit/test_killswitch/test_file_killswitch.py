"""Tests for the file-backed killswitch."""

import pytest

from feature_gate.core.context import EvaluationContext
from feature_gate.core.matchers import with_exact_match
from feature_gate.domain.exceptions import KillswitchFetchError
from feature_gate.domain.models import MAX_LEVEL
from feature_gate.killswitch import FileKillswitch, attach_file_killswitch


class TestFileKillswitch:
    """Test reading killswitch files."""

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path, metrics):
        """Test a file that does not exist disables nothing."""
        ks = FileKillswitch(tmp_path / "killswitch", 1.0, metrics=metrics)

        await ks.poll()
        assert dict(ks.snapshot()) == {}
        assert ks.fingerprint is not None

    @pytest.mark.asyncio
    async def test_levels(self, tmp_path, metrics):
        """Test records are parsed from the file."""
        path = tmp_path / "killswitch"
        path.write_text("foo=0\nbaz\nbar=2")
        ks = FileKillswitch(path, 1.0, metrics=metrics)

        await ks.poll()
        assert ks.get("foo") == 0
        assert ks.get("baz") == MAX_LEVEL
        assert ks.get("bar") == 2
        assert ks.get("qux") is None

    @pytest.mark.asyncio
    async def test_source_label(self, tmp_path, metrics):
        """Test the source names the file."""
        ks = FileKillswitch(tmp_path / "ks", 1.0, metrics=metrics)
        assert ks.source == f"file:{tmp_path / 'ks'}"

    @pytest.mark.asyncio
    async def test_update_detection(self, tmp_path, metrics, wait_until):
        """Test changes to the file are picked up in the background."""
        path = tmp_path / "killswitch"
        ks = FileKillswitch(path, 0.01, jitter=0, metrics=metrics)

        async with ks:
            assert not ks.enabled("foo")
            path.write_text("foo\n")
            await wait_until(lambda: ks.enabled("foo"))

            path.unlink()
            await wait_until(lambda: not ks.enabled("foo"))

    @pytest.mark.asyncio
    async def test_unreadable_path(self, tmp_path, metrics):
        """Test read errors other than a missing file fail the poll."""
        ks = FileKillswitch(tmp_path, 1.0, metrics=metrics)

        with pytest.raises(KillswitchFetchError) as exc_info:
            await ks.poll()
        assert isinstance(exc_info.value.__cause__, OSError)
        assert exc_info.value.source == f"file:{tmp_path}"


class TestAttachFileKillswitch:
    """Test attaching a file killswitch to a context."""

    @pytest.mark.asyncio
    async def test_attach(self, tmp_path, make_feature):
        """Test the returned context evaluates against the file."""
        path = tmp_path / "killswitch"
        path.write_text("killed\n")
        killed = make_feature("killed", with_exact_match("a", "1"))
        alive = make_feature("alive", with_exact_match("a", "1"))

        base = EvaluationContext.background().with_value("a", "1")
        ctx, ks = await attach_file_killswitch(base, path, 60.0)
        try:
            assert ctx.killswitch is ks
            assert not killed.enabled(ctx)
            assert alive.enabled(ctx)
            assert killed.enabled(base)
        finally:
            await ks.stop()

    @pytest.mark.asyncio
    async def test_attach_unreadable(self, tmp_path):
        """Test attaching fails when the path cannot be read."""
        with pytest.raises(KillswitchFetchError):
            await attach_file_killswitch(EvaluationContext.background(), tmp_path, 60.0)
