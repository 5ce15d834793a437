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

""" Server configuration model """

from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...s3.auth import S3Credentials


class S3ServerConfig(BaseSettings):
    """
    Gateway settings, read from environment variables (HOST, PORT, BUCKET,
    ACCESS_KEY, SECRET_KEY, DATA_DIR) or a local .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    host: str = Field("0.0.0.0", description="Bind address")
    port: int = Field(9000, ge=1, le=65535, description="Bind port")
    bucket: str = Field("simple-bucket", description="Bucket name reported in listings")
    access_key: str = Field("mykey", description="Access key accepted by every auth scheme")
    secret_key: SecretStr = Field(SecretStr("mysecret"), description="Secret key")
    data_dir: Path = Field(Path("./s3-data"), description="Storage root directory")

    def credentials(self) -> S3Credentials:
        return S3Credentials(
            access_key=self.access_key,
            secret_key=self.secret_key.get_secret_value(),
            bucket_name=self.bucket,
        )
