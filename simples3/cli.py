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

""" Command line entry point """

import logging
from pathlib import Path
from typing import Optional

import typer

from .models.pd.configuration import S3ServerConfig
from .module import create_app

log = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="S3-compatible server backed by a local directory")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address [env: HOST]"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port [env: PORT]"),
    bucket: Optional[str] = typer.Option(None, "--bucket", "-b", help="Bucket name [env: BUCKET]"),
    access_key: Optional[str] = typer.Option(None, "--access-key", help="Access key [env: ACCESS_KEY]"),
    secret_key: Optional[str] = typer.Option(None, "--secret-key", help="Secret key [env: SECRET_KEY]"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Storage root [env: DATA_DIR]"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
):
    """Run the gateway"""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {
        "host": host,
        "port": port,
        "bucket": bucket,
        "access_key": access_key,
        "secret_key": secret_key,
        "data_dir": data_dir,
    }
    config = S3ServerConfig(**{k: v for k, v in overrides.items() if v is not None})

    config.data_dir.mkdir(parents=True, exist_ok=True)

    flask_app = create_app(config)

    log.info("S3-compatible server starting on http://%s:%s", config.host, config.port)
    log.info("Bucket: %s", config.bucket)
    log.info("Data directory: %s", config.data_dir.resolve())

    flask_app.run(host=config.host, port=config.port, threaded=True)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
