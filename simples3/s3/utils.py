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

""" S3 API Utility Functions """

import mimetypes
from datetime import datetime, timezone
from typing import Optional

from .storage import MAX_KEYS


def guess_content_type(filename: str) -> str:
    """
    Guess the content type from filename.

    Returns application/octet-stream if unknown.
    """
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or 'application/octet-stream'


def format_http_date(dt: datetime) -> str:
    """
    Format datetime as HTTP date (RFC 7231).

    Example: Wed, 21 Oct 2015 07:28:00 GMT
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime('%a, %d %b %Y %H:%M:%S GMT')


def parse_max_keys(value: Optional[str]) -> Optional[int]:
    """
    Parse the max-keys query parameter.

    Missing means 1000, larger values are clamped to 1000.
    Returns None for non-numeric or negative input.
    """
    if value is None or value == '':
        return MAX_KEYS
    try:
        max_keys = int(value)
    except ValueError:
        return None
    if max_keys < 0:
        return None
    return min(max_keys, MAX_KEYS)
