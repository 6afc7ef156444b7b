"""
BlogSpace Client — Configuration
==================================

What:  Settings for the Python client SDK, read from BLOGSPACE_* environment
       variables (or a .env file).

Example:
    BLOGSPACE_API_BASE_URL=https://blog.example.com
    BLOGSPACE_API_VERSION=v1
    BLOGSPACE_TOKEN_FILE=~/.blogspace/token
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    api_base_url: str = Field(default="http://localhost:5001")
    api_version: str = Field(default="v1")
    timeout: float = Field(default=10.0, gt=0, le=300)
    token_file: str = Field(default="~/.blogspace/token")

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def api_url(self) -> str:
        """Versioned API root, e.g. http://localhost:5001/api/v1"""
        return f"{self.api_base_url}/api/{self.api_version}"

    @property
    def token_path(self) -> Path:
        return Path(self.token_file).expanduser()

    model_config = {
        "env_prefix": "BLOGSPACE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }
