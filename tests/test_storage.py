"""Tests for the filesystem object store."""

import hashlib
import os
from datetime import timezone

import pytest

from simples3.s3.storage import (
    InvalidObjectKey,
    LocalObjectStore,
    ObjectNotFound,
    StorageError,
    content_etag,
    metadata_etag,
)


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def test_write_then_read_round_trip(storage):
    record = storage.write_file("hello.txt", b"hi")
    data, read_record = storage.read_file("hello.txt")

    assert data == b"hi"
    assert record.etag == f'"{sha256_hex(b"hi")}"'
    assert read_record.etag == record.etag
    assert read_record.size == 2


def test_write_overwrites_existing_content(storage):
    storage.write_file("a.txt", b"a much longer first version")
    storage.write_file("a.txt", b"short")

    data, _ = storage.read_file("a.txt")
    assert data == b"short"


def test_write_creates_intermediate_directories(storage, data_dir):
    storage.write_file("nested/dir/obj.bin", b"\x00\x01")
    assert (data_dir / "nested" / "dir" / "obj.bin").read_bytes() == b"\x00\x01"


def test_write_into_file_parent_raises_storage_error(storage):
    storage.write_file("blocker", b"x")
    with pytest.raises(StorageError):
        storage.write_file("blocker/child.txt", b"y")


def test_read_missing_raises(storage):
    with pytest.raises(ObjectNotFound):
        storage.read_file("missing.txt")


def test_read_directory_raises(storage, data_dir):
    (data_dir / "folder").mkdir()
    with pytest.raises(ObjectNotFound):
        storage.read_file("folder")


def test_stat_etag_uses_key_and_size(storage):
    storage.write_file("hello.txt", b"hi")
    record = storage.stat_file("hello.txt")

    assert record.size == 2
    assert record.etag == f'"{sha256_hex(b"hello.txt:2")}"'
    assert record.last_modified.tzinfo == timezone.utc


def test_stat_and_read_etags_differ(storage):
    # Content ETag and metadata ETag are computed differently on purpose;
    # reconciling them must be a deliberate change.
    storage.write_file("hello.txt", b"hi")
    _, read_record = storage.read_file("hello.txt")

    assert storage.stat_file("hello.txt").etag != read_record.etag


def test_stat_missing_raises(storage):
    with pytest.raises(ObjectNotFound):
        storage.stat_file("missing.txt")


def test_remove_is_idempotent(storage, data_dir):
    storage.write_file("gone.txt", b"bye")
    storage.remove_file("gone.txt")
    storage.remove_file("gone.txt")

    assert not (data_dir / "gone.txt").exists()


class TestListFiles:
    def test_filters_by_prefix_and_sorts(self, storage):
        for key in ("hello.txt", "help.md", "world.txt", "he"):
            storage.write_file(key, key.encode())

        keys = [obj.key for obj in storage.list_files(prefix="he")]
        assert keys == ["he", "hello.txt", "help.md"]

    def test_respects_max_keys(self, storage):
        for i in range(10):
            storage.write_file(f"obj-{i}", b"x")

        objects = storage.list_files(max_keys=3)
        keys = [obj.key for obj in objects]

        assert len(objects) == 3
        assert keys == sorted(keys)
        assert all(key.startswith("obj-") for key in keys)

    def test_zero_max_keys_returns_nothing(self, storage):
        storage.write_file("a", b"x")
        assert storage.list_files(max_keys=0) == []

    def test_does_not_recurse(self, storage):
        storage.write_file("top.txt", b"x")
        storage.write_file("sub/inner.txt", b"x")

        assert [obj.key for obj in storage.list_files()] == ["top.txt"]

    def test_skips_symlinks(self, storage, data_dir):
        storage.write_file("real.txt", b"x")
        os.symlink(data_dir / "real.txt", data_dir / "link.txt")

        assert [obj.key for obj in storage.list_files()] == ["real.txt"]

    def test_entry_etag_uses_key_and_size(self, storage):
        storage.write_file("data.bin", b"12345")
        (record,) = storage.list_files()

        assert record.size == 5
        assert record.etag == f'"{sha256_hex(b"data.bin:5")}"'

    def test_missing_root_lists_nothing(self, tmp_path):
        assert LocalObjectStore(tmp_path / "does-not-exist").list_files() == []


class TestKeyResolution:
    @pytest.mark.parametrize("key", ["../escape.txt", "a/../../escape.txt", "", "..", "/etc/passwd"])
    def test_rejects_keys_outside_root(self, storage, key):
        with pytest.raises(InvalidObjectKey):
            storage.write_file(key, b"x")
        with pytest.raises(InvalidObjectKey):
            storage.stat_file(key)

    def test_allows_dot_segments_that_stay_inside(self, storage, data_dir):
        storage.write_file("a/../inside.txt", b"x")
        assert (data_dir / "inside.txt").exists()

    def test_rejects_symlinked_directory_outside_root(self, storage, data_dir, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_bytes(b"top secret")
        os.symlink(outside, data_dir / "link")

        with pytest.raises(InvalidObjectKey):
            storage.read_file("link/secret.txt")
        with pytest.raises(InvalidObjectKey):
            storage.stat_file("link/secret.txt")
        with pytest.raises(InvalidObjectKey):
            storage.write_file("link/planted.txt", b"x")
        with pytest.raises(InvalidObjectKey):
            storage.remove_file("link/secret.txt")

        assert not (outside / "planted.txt").exists()
        assert (outside / "secret.txt").exists()

    def test_rejects_symlinked_file_outside_root(self, storage, data_dir, tmp_path):
        target = tmp_path / "target.txt"
        target.write_bytes(b"original")
        os.symlink(target, data_dir / "alias.txt")

        with pytest.raises(InvalidObjectKey):
            storage.write_file("alias.txt", b"overwritten")
        assert target.read_bytes() == b"original"

    def test_allows_symlink_that_stays_inside(self, storage, data_dir):
        storage.write_file("real/obj.txt", b"x")
        os.symlink(data_dir / "real", data_dir / "alias")

        data, _ = storage.read_file("alias/obj.txt")
        assert data == b"x"

    @pytest.mark.parametrize("key", ["dir/", "nested/dir/"])
    def test_rejects_trailing_slash(self, storage, data_dir, key):
        with pytest.raises(InvalidObjectKey):
            storage.write_file(key, b"x")
        assert list(data_dir.iterdir()) == []


def test_list_files_tolerates_undecodable_names(storage, data_dir):
    storage.write_file("hello.txt", b"hi")
    with open(os.path.join(os.fsencode(data_dir), b"bad\xffname"), "wb") as f:
        f.write(b"abc")

    records = storage.list_files()

    assert [record.key for record in records] == ["bad�name", "hello.txt"]
    bad = records[0]
    assert bad.size == 3
    assert bad.etag == f'"{sha256_hex("bad�name:3".encode("utf-8"))}"'


def test_etag_helpers():
    assert content_etag(b"hi") == f'"{sha256_hex(b"hi")}"'
    assert metadata_etag("k", 7) == f'"{sha256_hex(b"k:7")}"'
