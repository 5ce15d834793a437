# pylint: disable=C0116
#
#   Copyright 2024 getcarrier.io
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

""" Filesystem-backed object storage: object key = path relative to the root """

import hashlib
import logging
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import List, NamedTuple, Tuple, Union

from hurry.filesize import size as human_size

log = logging.getLogger(__name__)

MAX_KEYS = 1000


class S3StorageError(Exception):
    """Base class for object storage errors"""


class ObjectNotFound(S3StorageError):
    """The key does not name a readable regular file"""


class InvalidObjectKey(S3StorageError):
    """The key is empty, names a directory, or resolves outside the storage root"""


class StorageError(S3StorageError):
    """Directory creation or write failed"""


class ObjectRecord(NamedTuple):
    key: str
    size: int
    last_modified: datetime
    etag: str


def content_etag(data: bytes) -> str:
    """ETag reported by get/put: quoted sha256 of the content"""
    return f'"{hashlib.sha256(data).hexdigest()}"'


def metadata_etag(key: str, file_size: int) -> str:
    """ETag reported by list/head: quoted sha256 of 'key:size'"""
    return f'"{hashlib.sha256(f"{key}:{file_size}".encode("utf-8")).hexdigest()}"'


def _modified(st: os.stat_result) -> datetime:
    return datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)


class LocalObjectStore:
    """Flat object store rooted at a single directory"""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(os.path.abspath(root))

    @staticmethod
    def _is_inside(root: str, target: str) -> bool:
        return target != root and os.path.commonpath([root, target]) == root

    def _resolve(self, key: str) -> Path:
        """
        Map a key onto the filesystem, refusing anything outside the root.

        The check is made on the normalised path and again with symlinks
        resolved, so a link inside the root cannot point a key elsewhere.
        """
        if not key or key.startswith('/') or key.endswith('/') or '\x00' in key:
            raise InvalidObjectKey(key)
        target = os.path.normpath(os.path.join(self.root, key))
        if not self._is_inside(str(self.root), target):
            raise InvalidObjectKey(key)
        if not self._is_inside(os.path.realpath(self.root), os.path.realpath(target)):
            raise InvalidObjectKey(key)
        return Path(target)

    def list_files(self, prefix: str = '', max_keys: int = MAX_KEYS) -> List[ObjectRecord]:
        """
        List regular files directly under the root whose name starts with prefix.

        Collection stops after max_keys matches in directory order; the
        collected records are then sorted by key. Subdirectories are not
        descended into.
        """
        objects: List[ObjectRecord] = []
        if max_keys <= 0:
            return objects

        try:
            entries = os.scandir(self.root)
        except OSError as e:
            log.warning("Cannot read storage root %s: %s", self.root, e)
            return objects

        with entries:
            for entry in entries:
                try:
                    st = entry.stat(follow_symlinks=False)
                except OSError:
                    continue
                # names that are not valid UTF-8 are listed with U+FFFD
                key = os.fsencode(entry.name).decode('utf-8', 'replace')
                if not stat.S_ISREG(st.st_mode) or not key.startswith(prefix):
                    continue

                objects.append(ObjectRecord(
                    key=key,
                    size=st.st_size,
                    last_modified=_modified(st),
                    etag=metadata_etag(key, st.st_size),
                ))
                if len(objects) >= max_keys:
                    break

        objects.sort(key=lambda x: x.key)
        return objects

    def read_file(self, key: str) -> Tuple[bytes, ObjectRecord]:
        path = self._resolve(key)
        try:
            data = path.read_bytes()
            st = path.stat()
        except OSError as e:
            raise ObjectNotFound(key) from e

        return data, ObjectRecord(
            key=key,
            size=len(data),
            last_modified=_modified(st),
            etag=content_etag(data),
        )

    def write_file(self, key: str, data: bytes) -> ObjectRecord:
        """
        Create or overwrite an object.

        Parent directories are created as needed. The file is written in
        place, so concurrent readers may see partial content.
        """
        path = self._resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'wb') as f:
                f.write(data)
            st = path.stat()
        except OSError as e:
            raise StorageError(f'Failed to write {key}: {e}') from e

        log.info("Stored object: %s (%s)", key, human_size(len(data)))
        return ObjectRecord(
            key=key,
            size=len(data),
            last_modified=_modified(st),
            etag=content_etag(data),
        )

    def remove_file(self, key: str) -> None:
        """Remove an object; a missing object is not an error"""
        path = self._resolve(key)
        try:
            path.unlink()
        except OSError as e:
            log.debug("Delete of %s ignored: %s", key, e)
            return
        log.info("Deleted object: %s", key)

    def stat_file(self, key: str) -> ObjectRecord:
        path = self._resolve(key)
        try:
            st = path.stat()
        except OSError as e:
            raise ObjectNotFound(key) from e
        if not stat.S_ISREG(st.st_mode):
            raise ObjectNotFound(key)

        return ObjectRecord(
            key=key,
            size=st.st_size,
            last_modified=_modified(st),
            etag=metadata_etag(key, st.st_size),
        )
