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

"""
S3-compatible API modules for SimpleS3

This package contains:
- auth.py: request authentication (header pair, simple/Bearer, AWS SigV4, query pair)
- storage.py: filesystem-backed object store
- responses.py: S3 XML response builders
- utils.py: Helper functions
- handlers/: Operation handlers

Routes are defined in simples3/routes/s3.py as a Flask blueprint.
"""

from . import responses
from .auth import S3Credentials, verify_auth, verify_s3_auth, s3_auth_required
from .storage import LocalObjectStore

__all__ = [
    'responses', 'S3Credentials', 'verify_auth', 'verify_s3_auth',
    's3_auth_required', 'LocalObjectStore',
]
