"""Tests for per-requirement name resolution and batch orchestration."""

import asyncio
from typing import List, Optional
from unittest.mock import patch

import pytest

from naming.builder import MetadataBuilder
from naming.errors import MalformedFilenameError, SourceBuildError, UnsupportedSchemeError
from naming.locator import path_to_url
from naming.models import BuildMetadata, Requirement, SourceKind, SourceUrl, UnnamedRequirement
from naming.reporter import Reporter
from naming.resolver import NamedRequirementsResolver, resolve_requirements


class FakeBuilder(MetadataBuilder):
    """Records every build call and returns a fixed or per-URL name."""

    def __init__(self, name: str = "built", names=None, delays=None, error=None):
        self.name = name
        self.names = names or {}
        self.delays = delays or {}
        self.error = error
        self.calls: List[SourceUrl] = []
        self.reporters: List[Optional[Reporter]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def build_metadata(self, source, reporter=None):
        self.calls.append(source)
        self.reporters.append(reporter)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(source.url, 0))
            if self.error is not None:
                raise self.error
            return BuildMetadata(name=self.names.get(source.url, self.name), version="1.0")
        finally:
            self.in_flight -= 1


class RecordingReporter(Reporter):
    """Reporter that only records calls."""

    def __init__(self):
        self.events = []

    def on_build_start(self, source):
        self.events.append(("start", source.url))
        return len(self.events)

    def on_build_complete(self, source, build_id):
        self.events.append(("complete", source.url))


def _resolve(requirements, builder, **kwargs):
    return asyncio.run(resolve_requirements(requirements, builder, **kwargs))


def _resolve_one(requirement, builder):
    return asyncio.run(NamedRequirementsResolver.resolve_requirement(requirement, builder))


class TestFilenameStrategies:
    """Wheel and sdist filenames short-circuit the chain."""

    def test_remote_wheel(self):
        builder = FakeBuilder()
        req = UnnamedRequirement(url="https://example.com/dist/pkg-1.0-py3-none-any.whl")
        result = _resolve_one(req, builder)
        assert result.name == "pkg"
        assert result.url == req.url
        assert builder.calls == []

    def test_local_wheel_does_not_need_to_exist(self, tmp_path):
        builder = FakeBuilder()
        req = UnnamedRequirement(url=path_to_url(tmp_path / "pkg-1.0-py3-none-any.whl"))
        assert _resolve_one(req, builder).name == "pkg"
        assert builder.calls == []

    def test_sdist_filename(self):
        builder = FakeBuilder()
        req = UnnamedRequirement(url="https://example.com/pkg-1.0.tar.gz")
        assert _resolve_one(req, builder).name == "pkg"
        assert builder.calls == []

    def test_sdist_filename_skips_scheme_check(self):
        builder = FakeBuilder()
        req = UnnamedRequirement(url="ftp://example.com/pkg-1.0.tar.gz")
        assert _resolve_one(req, builder).name == "pkg"

    def test_malformed_wheel_fails_batch(self, tmp_path):
        (tmp_path / "PKG-INFO").write_text("Name: foo\n", encoding="utf-8")
        builder = FakeBuilder()
        requirements = [
            UnnamedRequirement(url=path_to_url(tmp_path)),
            UnnamedRequirement(url="https://example.com/pkg-1.0.whl"),
        ]
        with pytest.raises(MalformedFilenameError):
            _resolve(requirements, builder)
        assert builder.calls == []

    def test_malformed_wheel_never_reads_directory(self, tmp_path):
        wheel_dir = tmp_path / "pkg-1.0.whl"
        wheel_dir.mkdir()
        (wheel_dir / "PKG-INFO").write_text("Name: foo\n", encoding="utf-8")
        with patch("naming.resolver.read_static_metadata") as reader:
            with pytest.raises(MalformedFilenameError):
                _resolve_one(UnnamedRequirement(url=path_to_url(wheel_dir)), FakeBuilder())
        reader.assert_not_called()


class TestDirectoryStrategies:
    """Static metadata in local directories."""

    def test_pkg_info_only(self, tmp_path):
        (tmp_path / "PKG-INFO").write_text("Metadata-Version: 1.0\nName: foo\n", encoding="utf-8")
        builder = FakeBuilder()
        assert _resolve_one(UnnamedRequirement(url=path_to_url(tmp_path)), builder).name == "foo"
        assert builder.calls == []

    def test_pkg_info_precedes_pyproject(self, tmp_path):
        (tmp_path / "PKG-INFO").write_text("Name: foo\n", encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "bar"\n', encoding="utf-8")
        assert _resolve_one(UnnamedRequirement(url=path_to_url(tmp_path)), FakeBuilder()).name == "foo"

    def test_poetry_name(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[tool.poetry]\nname = "baz"\n', encoding="utf-8")
        assert _resolve_one(UnnamedRequirement(url=path_to_url(tmp_path)), FakeBuilder()).name == "baz"

    def test_setup_cfg_name(self, tmp_path):
        (tmp_path / "setup.cfg").write_text("[metadata]\nname = qux\n", encoding="utf-8")
        assert _resolve_one(UnnamedRequirement(url=path_to_url(tmp_path)), FakeBuilder()).name == "qux"

    def test_setup_cfg_default_section_falls_through_to_build(self, tmp_path):
        (tmp_path / "setup.cfg").write_text(
            "[DEFAULT]\nname = leaked\n\n[metadata]\nversion = 1\n", encoding="utf-8"
        )
        builder = FakeBuilder(name="built")
        assert _resolve_one(UnnamedRequirement(url=path_to_url(tmp_path)), builder).name == "built"
        assert len(builder.calls) == 1

    def test_directory_without_metadata_builds(self, tmp_path):
        builder = FakeBuilder(name="built")
        url = path_to_url(tmp_path)
        result = _resolve_one(UnnamedRequirement(url=url), builder)
        assert result.name == "built"
        assert len(builder.calls) == 1
        assert builder.calls[0].kind is SourceKind.PATH
        assert builder.calls[0].path == tmp_path.resolve()

    def test_local_archive_file_is_not_read_as_directory(self, tmp_path):
        archive = tmp_path / "weird_archive.tar.gz"
        archive.write_bytes(b"")
        with patch("naming.resolver.read_static_metadata") as reader:
            result = _resolve_one(UnnamedRequirement(url=path_to_url(archive)), FakeBuilder())
        reader.assert_not_called()
        assert result.name == "built"


class TestBuildFallback:
    """The external builder is the last resort."""

    def test_remote_archive_builds_once(self):
        builder = FakeBuilder(name="remote-pkg")
        req = UnnamedRequirement(url="https://example.com/download/archive.tar.gz")
        result = _resolve_one(req, builder)
        assert result.name == "remote-pkg"
        assert len(builder.calls) == 1
        assert builder.calls[0].kind is SourceKind.DIRECT

    def test_git_url_builds(self):
        builder = FakeBuilder(name="from-git")
        req = UnnamedRequirement(url="git+https://github.com/example/repo.git@main")
        assert _resolve_one(req, builder).name == "from-git"
        assert builder.calls[0].kind is SourceKind.GIT

    def test_build_name_is_normalized(self):
        builder = FakeBuilder(name="Remote_Pkg")
        req = UnnamedRequirement(url="https://example.com/download")
        assert _resolve_one(req, builder).name == "remote-pkg"

    def test_build_failure_is_wrapped(self):
        cause = RuntimeError("backend exploded")
        builder = FakeBuilder(error=cause)
        url = "https://example.com/download/archive.tar.gz"
        with pytest.raises(SourceBuildError) as excinfo:
            _resolve([UnnamedRequirement(url=url)], builder)
        assert excinfo.value.cause is cause
        assert excinfo.value.__cause__ is cause
        assert "Failed to build source distribution" in str(excinfo.value)
        assert len(builder.calls) == 1

    def test_unsupported_scheme(self):
        builder = FakeBuilder()
        url = "ftp://example.com/pub/archive"
        with patch("naming.resolver.read_static_metadata") as reader:
            with pytest.raises(UnsupportedSchemeError) as excinfo:
                _resolve([UnnamedRequirement(url=url)], builder)
        assert url in str(excinfo.value)
        assert builder.calls == []
        reader.assert_not_called()

    def test_reporter_is_shared(self):
        builder = FakeBuilder()
        reporter = RecordingReporter()
        requirements = [
            UnnamedRequirement(url="https://example.com/a"),
            UnnamedRequirement(url="https://example.com/b"),
        ]
        _resolve(requirements, builder, reporter=reporter)
        assert builder.reporters == [reporter, reporter]


class TestOutputShape:
    """Extras and markers are carried forward unchanged."""

    def test_extras_and_marker_copied(self):
        req = UnnamedRequirement(
            url="https://example.com/pkg-1.0.tar.gz",
            extras=["socks", "security"],
            marker='python_version >= "3.8"',
        )
        result = _resolve_one(req, FakeBuilder())
        assert result == Requirement(
            name="pkg",
            extras=["socks", "security"],
            url="https://example.com/pkg-1.0.tar.gz",
            specifier=None,
            marker='python_version >= "3.8"',
        )
        assert result.extras is not req.extras

    def test_pep508_rendering(self):
        req = Requirement(
            name="pkg",
            extras=["socks"],
            url="https://example.com/pkg-1.0.tar.gz",
            marker='sys_platform == "linux"',
        )
        assert str(req) == 'pkg[socks] @ https://example.com/pkg-1.0.tar.gz ; sys_platform == "linux"'

    def test_named_rendering(self):
        assert str(Requirement(name="requests", specifier=">=2.0")) == "requests>=2.0"


class TestBatch:
    """Ordering, pass-through, fail-fast and concurrency ceiling."""

    def test_named_requirements_pass_through(self):
        builder = FakeBuilder()
        named = Requirement(name="requests", specifier=">=2.0")
        with patch("naming.resolver.classify_source") as classify, \
                patch("naming.resolver.read_static_metadata") as reader:
            result = _resolve([named], builder)
        assert result == [named]
        assert result[0] is named
        classify.assert_not_called()
        reader.assert_not_called()
        assert builder.calls == []

    def test_empty_batch(self):
        assert _resolve([], FakeBuilder()) == []

    def test_mixed_order_preserved(self):
        named = Requirement(name="requests")
        requirements = [
            UnnamedRequirement(url="https://example.com/a"),
            named,
            UnnamedRequirement(url="https://example.com/pkg-1.0.tar.gz"),
        ]
        builder = FakeBuilder(names={"https://example.com/a": "alpha"})
        result = _resolve(requirements, builder)
        assert [r.name for r in result] == ["alpha", "requests", "pkg"]

    def test_order_preserved_when_completion_is_reversed(self):
        count = 8
        urls = [f"https://example.com/src/{i}" for i in range(count)]
        builder = FakeBuilder(
            names={url: f"pkg{i}" for i, url in enumerate(urls)},
            delays={url: 0.01 * (count - i) for i, url in enumerate(urls)},
        )
        result = _resolve([UnnamedRequirement(url=u) for u in urls], builder)
        assert [r.name for r in result] == [f"pkg{i}" for i in range(count)]
        assert [r.url for r in result] == urls

    def test_order_preserved_under_tight_ceiling(self):
        count = 6
        urls = [f"https://example.com/src/{i}" for i in range(count)]
        builder = FakeBuilder(
            names={url: f"pkg{i}" for i, url in enumerate(urls)},
            delays={url: 0.005 * (count - i) for i, url in enumerate(urls)},
        )
        result = _resolve([UnnamedRequirement(url=u) for u in urls], builder, max_concurrency=2)
        assert [r.name for r in result] == [f"pkg{i}" for i in range(count)]

    def test_concurrency_ceiling(self):
        urls = [f"https://example.com/src/{i}" for i in range(20)]
        builder = FakeBuilder(delays={url: 0.01 for url in urls})
        _resolve([UnnamedRequirement(url=u) for u in urls], builder, max_concurrency=3)
        assert builder.max_in_flight == 3
        assert len(builder.calls) == 20

    def test_default_ceiling_from_constants(self):
        with patch("naming.resolver.Constants.MAX_CONCURRENCY", 4):
            resolver = NamedRequirementsResolver([], FakeBuilder())
        assert resolver.max_concurrency == 4

    def test_invalid_ceiling(self):
        with pytest.raises(ValueError):
            NamedRequirementsResolver([], FakeBuilder(), max_concurrency=0)

    def test_fail_fast_stops_dispatch(self):
        class FailingFirst(FakeBuilder):
            async def build_metadata(self, source, reporter=None):
                if source.url.endswith("/0"):
                    self.calls.append(source)
                    raise RuntimeError("boom")
                return await super().build_metadata(source, reporter)

        urls = [f"https://example.com/src/{i}" for i in range(10)]
        builder = FailingFirst(delays={url: 0.05 for url in urls})
        with pytest.raises(SourceBuildError):
            _resolve([UnnamedRequirement(url=u) for u in urls], builder, max_concurrency=2)
        # Only the first window was ever dispatched.
        assert len(builder.calls) == 2
        assert builder.in_flight == 0

    def test_fail_fast_cancels_in_flight(self):
        cancelled = []

        class SlowBuilder(FakeBuilder):
            async def build_metadata(self, source, reporter=None):
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    cancelled.append(source.url)
                    raise
                return BuildMetadata(name="never")

        requirements = [
            UnnamedRequirement(url="https://example.com/slow"),
            UnnamedRequirement(url="ftp://example.com/bad"),
        ]
        with pytest.raises(UnsupportedSchemeError):
            _resolve(requirements, SlowBuilder())
        assert cancelled == ["https://example.com/slow"]

    def test_unexpected_entry_type(self):
        with pytest.raises(TypeError):
            _resolve(["not-a-requirement"], FakeBuilder())

    def test_requirements_are_consumed(self):
        resolver = NamedRequirementsResolver([Requirement(name="requests")], FakeBuilder())
        assert len(asyncio.run(resolver.resolve())) == 1
        assert asyncio.run(resolver.resolve()) == []

    def test_with_reporter_returns_new_resolver(self):
        reporter = RecordingReporter()
        builder = FakeBuilder()
        base = NamedRequirementsResolver(
            [UnnamedRequirement(url="https://example.com/a")], builder, max_concurrency=5
        )
        resolver = base.with_reporter(reporter)
        assert resolver is not base
        assert resolver.max_concurrency == 5
        asyncio.run(resolver.resolve())
        assert builder.reporters == [reporter]
