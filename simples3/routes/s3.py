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

""" S3-Compatible API Routes """

import logging

import flask

from ..s3 import responses
from ..s3.auth import s3_auth_required
from ..s3.handlers.object import ObjectHandler

log = logging.getLogger(__name__)

bp = flask.Blueprint('s3', __name__)


def _object_handler() -> ObjectHandler:
    ctx = flask.current_app.extensions['simples3']
    return ObjectHandler(ctx.storage, bucket_name=ctx.credentials.bucket_name)


@bp.route('/', methods=['GET'], endpoint='s3_list_objects')
@s3_auth_required
def s3_list_objects():
    """List objects (GET /)"""
    try:
        return _object_handler().list_objects()
    except Exception:  # pylint: disable=W0703
        log.exception("S3 ListObjects error")
        return responses.error_response('InternalError', 'Internal error', status_code=500)


@bp.route(
    '/<path:key>',
    methods=['GET', 'PUT', 'DELETE', 'HEAD'],
    endpoint='s3_object_operations',
)
@s3_auth_required
def s3_object_operations(key: str):
    """Object operations (GET/PUT/DELETE/HEAD /{key})"""
    try:
        handler = _object_handler()
        method = flask.request.method

        if method == 'GET':
            return handler.get_object(key)
        elif method == 'PUT':
            return handler.put_object(key)
        elif method == 'DELETE':
            return handler.delete_object(key)
        elif method == 'HEAD':
            return handler.head_object(key)

        return responses.error_response('MethodNotAllowed', 'Method not allowed', status_code=405)

    except Exception:  # pylint: disable=W0703
        log.exception("S3 object operation error")
        return responses.error_response('InternalError', 'Internal error', status_code=500)
