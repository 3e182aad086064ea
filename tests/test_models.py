"""
Unit tests for data models: ContentHash, DuplicateGroup, reports and params.
"""
import os
import pytest
from dedlink.core.models import (
    ContentHash, DuplicateGroup, GroupResult, GroupOutcome, MemberFailure,
    DeduplicationReport, DeduplicationParams, DeduplicationStats, DEFAULT_STORE_DIR)
from dedlink.core.errors import PathRelativizationError


class TestContentHash:
    def test_hex_is_128_lowercase_chars(self):
        h = ContentHash(bytes(range(64)))
        assert len(h.hex) == 128
        assert h.hex == h.hex.lower()
        assert h.hex.startswith("000102")

    def test_hex_keeps_leading_zeros(self):
        """Every byte must be two hex digits, otherwise store names could collide."""
        h = ContentHash(b"\x01" * 64)
        assert h.hex == "01" * 64

    def test_from_hex_round_trip(self):
        h = ContentHash(bytes(range(64)))
        assert ContentHash.from_hex(h.hex) == h

    def test_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            ContentHash(b"\x00" * 8)

    def test_usable_as_dict_key(self):
        assert {ContentHash(b"\x00" * 64): 1}[ContentHash(b"\x00" * 64)] == 1


class TestDuplicateGroup:
    def test_canonical_source_is_first_file(self):
        group = DuplicateGroup(ContentHash(b"\x00" * 64), ["/first", "/second"])
        assert group.canonical_source == "/first"
        assert group.is_duplicate()

    def test_single_file_is_not_duplicate(self):
        group = DuplicateGroup(ContentHash(b"\x00" * 64), ["/only"])
        assert not group.is_duplicate()

    def test_empty_group_has_no_canonical_source(self):
        with pytest.raises(ValueError):
            DuplicateGroup(ContentHash(b"\x00" * 64)).canonical_source


class TestDeduplicationReport:
    def _group(self, byte, count, size=10):
        return DuplicateGroup(ContentHash(bytes([byte]) * 64), [f"/f{i}" for i in range(count)], size)

    def test_counts_and_bytes_saved(self):
        ok = GroupResult(self._group(1, 3), GroupOutcome.DEDUPLICATED, linked=["/f0", "/f1", "/f2"])
        partial = GroupResult(
            self._group(2, 3), GroupOutcome.PARTIAL, linked=["/f0", "/f1"],
            failures=[MemberFailure("/f2", PathRelativizationError("no path", "/f2"))])
        unique = GroupResult(self._group(3, 1), GroupOutcome.SKIPPED_UNIQUE)
        report = DeduplicationReport(results=[ok, partial, unique])

        assert report.deduplicated_count == 1
        assert report.failed_count == 1
        assert report.unique_count == 1
        assert report.bytes_saved == 20 + 10
        assert report.has_failures
        assert "PathRelativizationError" in partial.reason

    def test_planned_groups_report_potential_savings(self):
        report = DeduplicationReport(
            results=[GroupResult(self._group(1, 4, size=100), GroupOutcome.PLANNED)], dry_run=True)

        assert report.planned_count == 1
        assert report.potential_bytes_saved == 300
        assert report.bytes_saved == 0
        assert not report.has_failures


class TestDeduplicationParams:
    def test_defaults(self):
        params = DeduplicationParams(root="/data")
        assert params.store_root == DEFAULT_STORE_DIR
        assert params.dry_run is False
        assert params.verify_content is False
        assert params.use_trash is False

    @pytest.mark.parametrize("kwargs", [
        {"root": ""},
        {"root": "/data", "store_root": ""},
        {"root": "/data", "workers": 0},
    ])
    def test_validation(self, kwargs):
        with pytest.raises(ValueError):
            DeduplicationParams(**kwargs)

    def test_resolved_makes_paths_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        params = DeduplicationParams(root="data", dry_run=True).resolved()

        assert params.root == os.path.join(str(tmp_path), "data")
        assert params.store_root == os.path.join(str(tmp_path), DEFAULT_STORE_DIR)
        assert params.dry_run is True


class TestDeduplicationStats:
    def test_update_stage_notifies_listeners(self):
        stats = DeduplicationStats()
        events = []
        stats.add_listener(lambda stage, data: events.append((stage, dict(data))))

        stats.update_stage("scan", groups_found=3, files_processed=5, duration=0.5)

        assert events == [("scan", {"groups": 3, "files": 5, "time": 0.5})]
        assert "Scan" in stats.print_summary()

    def test_failing_listener_does_not_break_update(self):
        stats = DeduplicationStats()

        def broken(stage, data):
            raise RuntimeError("listener bug")

        stats.add_listener(broken)
        stats.update_stage("replace", groups_found=1, files_processed=2, duration=0.1)

        assert stats.stage_stats["replace"]["files"] == 2
