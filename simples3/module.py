#   Copyright 2021 getcarrier.io
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

""" Application factory """

import logging
from typing import NamedTuple, Optional

import flask

from .models.pd.configuration import S3ServerConfig
from .routes.s3 import bp as s3_blueprint
from .s3.auth import S3Credentials
from .s3.storage import LocalObjectStore

log = logging.getLogger(__name__)


class S3Context(NamedTuple):
    """Per-application state shared read-only by all requests"""
    credentials: S3Credentials
    storage: LocalObjectStore


def create_app(config: Optional[S3ServerConfig] = None) -> flask.Flask:
    """ Build the gateway application """
    if config is None:
        config = S3ServerConfig()

    log.info("Initializing S3 gateway for bucket %s", config.bucket)

    app = flask.Flask(__name__)
    # Request bodies are unbounded
    app.config['MAX_CONTENT_LENGTH'] = None

    app.extensions['simples3'] = S3Context(
        credentials=config.credentials(),
        storage=LocalObjectStore(config.data_dir),
    )
    app.register_blueprint(s3_blueprint)

    return app
