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

""" S3 Object Operations Handler """

import logging

from flask import request, Response
from werkzeug.exceptions import BadRequest

from ..responses import (
    list_objects_response,
    put_object_response,
    get_object_response,
    delete_response,
    head_response,
    error_response
)
from ..storage import LocalObjectStore, ObjectNotFound, InvalidObjectKey, StorageError
from ..utils import guess_content_type, parse_max_keys

log = logging.getLogger(__name__)


def _no_such_key(key: str) -> Response:
    return error_response(
        code='NoSuchKey',
        message='The specified key does not exist',
        resource=f'/{key}',
        status_code=404
    )


def _invalid_key(key: str) -> Response:
    log.warning("Rejected object key: %r", key)
    return error_response(
        code='InvalidArgument',
        message='Invalid object key',
        resource=f'/{key}',
        status_code=400
    )


class ObjectHandler:
    """Handler for S3 object operations"""

    def __init__(self, storage: LocalObjectStore, bucket_name: str):
        """
        Initialize the object handler.

        Args:
            storage: Object store the bucket lives in
            bucket_name: Name reported in listings
        """
        self.storage = storage
        self.bucket_name = bucket_name

    def list_objects(self) -> Response:
        """
        List objects in the bucket.

        S3 Operation: GET /

        Query parameters:
        - prefix: Limits results to keys beginning with prefix
        - max-keys: Maximum number of keys to return (default and cap 1000)
        - marker: Echoed back, not used for filtering
        """
        prefix = request.args.get('prefix', '')
        marker = request.args.get('marker', '')
        max_keys = parse_max_keys(request.args.get('max-keys'))
        if max_keys is None:
            log.warning("Invalid max-keys: %r", request.args.get('max-keys'))
            return error_response(
                code='InvalidArgument',
                message='max-keys must be a non-negative integer',
                status_code=400
            )

        objects = self.storage.list_files(prefix=prefix, max_keys=max_keys)

        try:
            return list_objects_response(
                bucket=self.bucket_name,
                objects=objects,
                prefix=prefix,
                marker=marker,
                max_keys=max_keys
            )
        except Exception as e:  # pylint: disable=W0703
            log.error("ListObjects serialization failed: %s", e)
            return error_response(
                code='InternalError',
                message='We encountered an internal error. Please try again.',
                status_code=500
            )

    def put_object(self, key: str) -> Response:
        """
        Upload an object.

        S3 Operation: PUT /{key}
        """
        try:
            data = request.get_data(cache=False)
        except BadRequest as e:
            log.warning("Failed to read request body for %s: %s", key, e)
            return error_response(
                code='IncompleteBody',
                message='Could not read the request body',
                resource=f'/{key}',
                status_code=400
            )

        try:
            record = self.storage.write_file(key, data)
        except InvalidObjectKey:
            return _invalid_key(key)
        except StorageError as e:
            log.error("PutObject failed: %s", e)
            return error_response(
                code='InternalError',
                message='We encountered an internal error. Please try again.',
                resource=f'/{key}',
                status_code=500
            )

        return put_object_response(etag=record.etag)

    def get_object(self, key: str) -> Response:
        """
        Download an object.

        S3 Operation: GET /{key}
        """
        try:
            data, record = self.storage.read_file(key)
        except InvalidObjectKey:
            return _invalid_key(key)
        except ObjectNotFound:
            return _no_such_key(key)

        return get_object_response(
            body=data,
            record=record,
            content_type=guess_content_type(key)
        )

    def delete_object(self, key: str) -> Response:
        """
        Delete an object.

        S3 Operation: DELETE /{key}
        S3 returns 204 even if the key doesn't exist.
        """
        try:
            self.storage.remove_file(key)
        except InvalidObjectKey:
            return _invalid_key(key)

        return delete_response()

    def head_object(self, key: str) -> Response:
        """
        Get object metadata without downloading the body.

        S3 Operation: HEAD /{key}
        The ETag is derived from key and size, not from the content.
        """
        try:
            record = self.storage.stat_file(key)
        except InvalidObjectKey:
            return _invalid_key(key)
        except ObjectNotFound:
            return _no_such_key(key)

        return head_response(record=record, content_type=guess_content_type(key))
