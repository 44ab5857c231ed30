"""Unit tests for save detection and the watch loop.

WHY: The watcher turns file saves into render cycles. Missing a save
leaves a stale picture; rendering unchanged files burns time; letting
one bad cycle kill the loop defeats the point of watching.

HOW: mtimes are bumped with os.utime so tests do not depend on the
filesystem's timestamp resolution. Cycles run against the fake_host fixture.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import replace

import pytest

from wavedrom_mode.watch import SaveWatcher, collect_sources, is_wavejson_file


def _touch_later(path, seconds=10):
    stat = path.stat()
    os.utime(path, (stat.st_atime + seconds, stat.st_mtime + seconds))


class TestFileBinding:
    def test_suffix_binding(self, tmp_path):
        assert is_wavejson_file(tmp_path / "a.wjson")
        assert not is_wavejson_file(tmp_path / "a.json")
        assert not is_wavejson_file(tmp_path / "a.wjson.bak")

    def test_directory_expands_to_wavejson_files(self, tmp_path):
        (tmp_path / "b.wjson").write_text("{}", encoding="utf-8")
        (tmp_path / "a.wjson").write_text("{}", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("", encoding="utf-8")
        assert collect_sources([tmp_path]) == [
            (tmp_path / "a.wjson").resolve(),
            (tmp_path / "b.wjson").resolve(),
        ]

    def test_named_non_wavejson_file_rejected(self, tmp_path):
        other = tmp_path / "diagram.json"
        other.write_text("{}", encoding="utf-8")
        with pytest.raises(ValueError, match="Not a WaveJSON file"):
            collect_sources([other])

    def test_missing_path_rejected(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            collect_sources([tmp_path / "nope"])

    def test_duplicates_collapse(self, source_file):
        assert collect_sources([source_file, source_file.parent]) == [source_file.resolve()]


class TestPolling:
    def test_prime_does_not_report_changes(self, source_file, settings, fake_host):
        watcher = SaveWatcher([source_file], fake_host, lambda: settings)
        assert watcher.prime() == [source_file.resolve()]
        assert watcher.poll() == []

    def test_save_is_detected_once(self, source_file, settings, fake_host):
        watcher = SaveWatcher([source_file], fake_host, lambda: settings)
        watcher.prime()
        _touch_later(source_file)
        assert watcher.poll() == [source_file.resolve()]
        assert watcher.poll() == []

    def test_new_file_in_directory_counts_as_saved(self, source_file, settings, fake_host, hello_world):
        watcher = SaveWatcher([source_file.parent], fake_host, lambda: settings)
        watcher.prime()
        added = source_file.parent / "second.wjson"
        added.write_text(hello_world, encoding="utf-8")
        assert watcher.poll() == [added.resolve()]

    def test_deleted_file_is_forgotten(self, source_file, settings, fake_host):
        watcher = SaveWatcher([source_file.parent], fake_host, lambda: settings)
        watcher.prime()
        source_file.unlink()
        assert watcher.poll() == []


class TestRendering:
    def test_render_runs_cycle(self, source_file, settings, fake_host):
        watcher = SaveWatcher([source_file], fake_host, lambda: settings)
        result = asyncio.run(watcher.render(source_file))
        assert result is not None
        assert result.job.output == source_file.resolve().with_suffix(".svg")

    def test_failed_cycle_is_reported_not_raised(self, source_file, settings, fake_host):
        broken = replace(settings, renderer_path=None)
        watcher = SaveWatcher([source_file], fake_host, lambda: broken)
        assert asyncio.run(watcher.render(source_file)) is None
        assert len(fake_host.notifications) == 1
        assert "renderer not found" in fake_host.notifications[0][0]

    def test_settings_loaded_per_cycle(self, source_file, settings, fake_host):
        formats = iter(["svg", "png"])
        watcher = SaveWatcher(
            [source_file], fake_host, lambda: replace(settings, output_format=next(formats))
        )
        first = asyncio.run(watcher.render(source_file))
        second = asyncio.run(watcher.render(source_file))
        assert first.job.output.suffix == ".svg"
        assert second.job.output.suffix == ".png"

    def test_run_renders_on_start_and_stops(self, source_file, settings, fake_host):
        watcher = SaveWatcher([source_file], fake_host, lambda: settings, poll_interval=0)
        asyncio.run(watcher.run(render_on_start=True, max_polls=2))
        assert len(fake_host.processes) == 1

    def test_run_without_changes_renders_nothing(self, source_file, settings, fake_host):
        watcher = SaveWatcher([source_file], fake_host, lambda: settings, poll_interval=0)
        asyncio.run(watcher.run(max_polls=3))
        assert fake_host.processes == []
