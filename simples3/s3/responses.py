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

""" S3 XML Response Builders """

from datetime import datetime
from typing import List
from xml.etree.ElementTree import Element, SubElement, tostring
from flask import Response

from .storage import ObjectRecord
from .utils import format_http_date


S3_NAMESPACE = 'http://s3.amazonaws.com/doc/2006-03-01/'
SERVER_NAME = 'SimpleS3/1.0'


def _create_root(tag: str) -> Element:
    """Create root element with S3 namespace"""
    return Element(tag, xmlns=S3_NAMESPACE)


def _format_datetime(dt: datetime) -> str:
    """Format datetime in S3 format: ISO 8601, millisecond precision, Z suffix"""
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f'{dt.microsecond // 1000:03d}Z'


def _to_xml_response(root: Element, status_code: int = 200) -> Response:
    """Convert Element to Flask Response with proper headers"""
    xml_str = b'<?xml version="1.0" encoding="UTF-8"?>\n' + tostring(root, encoding='utf-8')
    return Response(
        xml_str,
        status=status_code,
        mimetype='application/xml',
        headers={'Server': SERVER_NAME}
    )


def error_response(code: str, message: str, resource: str = '',
                   status_code: int = 400) -> Response:
    """
    Generate S3 error response.

    <Error>
        <Code>NoSuchKey</Code>
        <Message>The specified key does not exist</Message>
        <Resource>/mykey</Resource>
    </Error>
    """
    root = Element('Error')
    SubElement(root, 'Code').text = code
    SubElement(root, 'Message').text = message
    if resource:
        SubElement(root, 'Resource').text = resource

    return _to_xml_response(root, status_code)


def list_objects_response(bucket: str, objects: List[ObjectRecord],
                          prefix: str = '', marker: str = '',
                          max_keys: int = 1000) -> Response:
    """
    Generate ListObjects response.

    <ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
        <Name>simple-bucket</Name>
        <Prefix></Prefix>
        <Marker></Marker>
        <MaxKeys>1000</MaxKeys>
        <IsTruncated>false</IsTruncated>
        <Contents>
            <Key>my-image.jpg</Key>
            <LastModified>2024-01-01T00:00:00.000Z</LastModified>
            <ETag>"5f27731c9771645a39863328..."</ETag>
            <Size>434234</Size>
            <StorageClass>STANDARD</StorageClass>
        </Contents>
    </ListBucketResult>

    IsTruncated is always false, even when max_keys cut the listing short.
    """
    root = _create_root('ListBucketResult')

    SubElement(root, 'Name').text = bucket
    SubElement(root, 'Prefix').text = prefix
    SubElement(root, 'Marker').text = marker
    SubElement(root, 'MaxKeys').text = str(max_keys)
    SubElement(root, 'IsTruncated').text = 'false'

    for obj in objects:
        contents = SubElement(root, 'Contents')
        SubElement(contents, 'Key').text = obj.key
        SubElement(contents, 'LastModified').text = _format_datetime(obj.last_modified)
        SubElement(contents, 'ETag').text = obj.etag
        SubElement(contents, 'Size').text = str(obj.size)
        SubElement(contents, 'StorageClass').text = 'STANDARD'

    return _to_xml_response(root)


def delete_response() -> Response:
    """Generate successful delete response (204 No Content)"""
    return Response('', status=204, headers={'Server': SERVER_NAME})


def head_response(record: ObjectRecord, content_type: str) -> Response:
    """
    Generate HEAD response with metadata headers.

    No body is attached so the explicit Content-Length survives.
    """
    headers = {
        'Content-Length': str(record.size),
        'Content-Type': content_type,
        'ETag': record.etag,
        'Last-Modified': format_http_date(record.last_modified),
        'Accept-Ranges': 'bytes',
        'Server': SERVER_NAME,
    }
    return Response(status=200, headers=headers)


def put_object_response(etag: str) -> Response:
    """
    Generate PutObject response.

    Returns ETag in header.
    """
    return Response('', status=200, headers={'ETag': etag, 'Server': SERVER_NAME})


def get_object_response(body: bytes, record: ObjectRecord, content_type: str) -> Response:
    """Generate GetObject response with body and headers"""
    headers = {
        'Content-Type': content_type,
        'Content-Length': str(len(body)),
        'ETag': record.etag,
        'Last-Modified': format_http_date(record.last_modified),
        'Accept-Ranges': 'bytes',
        'Server': SERVER_NAME,
    }
    return Response(body, status=200, headers=headers)
