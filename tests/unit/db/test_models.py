"""Unit tests for manifest record models."""

import json

import pytest
from debslice.db.models import (
    ContentRecord,
    PathRecord,
    RecordFormatError,
    add_sorted,
    format_mode,
    record_from_dict,
)


class TestPathRecord:
    """Tests for PathRecord model."""

    def test_to_dict_file(self) -> None:
        """File records carry digest and size."""
        record = PathRecord(
            path="/usr/bin/hello",
            mode=0o755,
            slices=["hello_bins"],
            sha256="ab" * 32,
            size=12,
        )
        assert record.to_dict() == {
            "kind": "path",
            "path": "/usr/bin/hello",
            "mode": "0755",
            "slices": ["hello_bins"],
            "sha256": "ab" * 32,
            "size": 12,
        }

    def test_to_dict_omits_empty_fields(self) -> None:
        """Empty digest, link and size are omitted; slices are always present."""
        assert PathRecord(path="/etc/", mode=0o755).to_dict() == {
            "kind": "path",
            "path": "/etc/",
            "mode": "0755",
            "slices": [],
        }

    def test_to_dict_symlink_and_final_digest(self) -> None:
        """Links and final digests are included when set."""
        data = PathRecord(
            path="/a", mode=0o777, link="b", sha256="1" * 64, final_sha256="2" * 64
        ).to_dict()
        assert data["link"] == "b"
        assert data["final_sha256"] == "2" * 64
        assert data["size"] == 0

    def test_json_roundtrip(self) -> None:
        """Records survive JSON serialization."""
        record = PathRecord(path="/tmp/", mode=0o1777, slices=["base_tmp"])
        data = json.loads(json.dumps(record.to_dict()))
        assert data["mode"] == "01777"
        assert PathRecord.from_dict(data) == record

    def test_add_slice(self) -> None:
        """Slices stay sorted and unique."""
        record = PathRecord(path="/a")
        assert record.add_slice("pkg_b")
        assert record.add_slice("pkg_a")
        assert not record.add_slice("pkg_b")
        assert record.slices == ["pkg_a", "pkg_b"]

    @pytest.mark.parametrize(
        "data",
        [
            {"kind": "content", "path": "/a"},
            {"kind": "path", "path": "/a", "mode": "0999"},
        ],
    )
    def test_from_dict_invalid(self, data: dict) -> None:
        """Wrong kinds and modes are rejected."""
        with pytest.raises(RecordFormatError):
            PathRecord.from_dict(data)


class TestContentRecord:
    """Tests for ContentRecord model."""

    def test_to_dict(self) -> None:
        """Content records name the slice and the path."""
        assert ContentRecord(slice="hello_bins", path="/usr/bin/hello").to_dict() == {
            "kind": "content",
            "slice": "hello_bins",
            "path": "/usr/bin/hello",
        }

    def test_record_from_dict_dispatches_on_kind(self) -> None:
        """The kind field selects the record class."""
        assert record_from_dict({"kind": "content", "slice": "a_b", "path": "/x"}) == ContentRecord(
            slice="a_b", path="/x"
        )
        assert isinstance(record_from_dict({"kind": "path", "path": "/x"}), PathRecord)

    def test_from_dict_invalid_kind(self) -> None:
        """A path dictionary is not a content record."""
        with pytest.raises(RecordFormatError, match="must be \"content\""):
            ContentRecord.from_dict({"kind": "path", "slice": "a", "path": "/x"})


class TestHelpers:
    """Tests for module helpers."""

    def test_format_mode(self) -> None:
        """Modes are octal with a leading zero."""
        assert format_mode(0o755) == "0755"
        assert format_mode(0o4755) == "04755"
        assert format_mode(0) == "0"

    def test_add_sorted(self) -> None:
        """Items are inserted in order, once."""
        items: list[str] = []
        for item in ["c", "a", "b", "a"]:
            add_sorted(items, item)
        assert items == ["a", "b", "c"]
