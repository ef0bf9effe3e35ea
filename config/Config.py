# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-08
# Updated: 2026-02-14
# Description: Config
# -----------------------------------------------------------------------------

import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv, find_dotenv

# Load .env once globally
load_dotenv(find_dotenv(usecwd=True), override=True)


@dataclass(frozen=True)
class Config:
    # Azure OpenAI (optional embedding backend)
    openai_azure_api_key: str = ""
    openai_azure_endpoint: str = ""
    openai_azure_api_version: str = ""

    # Chroma Cloud (optional; local persistent Chroma needs no secrets)
    chroma_api_key: str = ""
    chroma_tenant: str = ""
    chroma_database: str = ""

    # ---- Single source of truth: field_name -> ENV VAR NAME ----
    ENV_VARS = {
        # Azure OpenAI
        "openai_azure_api_key": "AZURE_OPENAI_API_KEY",
        "openai_azure_endpoint": "AZURE_OPENAI_ENDPOINT",
        "openai_azure_api_version": "AZURE_OPENAI_API_VERSION",

        # Chroma
        "chroma_api_key": "CHROMA_API_KEY",
        "chroma_tenant": "CHROMA_TENANT",
        "chroma_database": "CHROMA_DATABASE",
    }

    # Convenient *groups* for backends / tests
    AZURE_OPENAI_FIELDS = (
        "openai_azure_api_key",
        "openai_azure_endpoint",
    )

    CHROMA_CLOUD_FIELDS = (
        "chroma_api_key",
        "chroma_tenant",
        "chroma_database",
    )

    @staticmethod
    def from_env() -> "Config":
        """Build Config object from environment variables."""
        kwargs = {
            field_name: os.getenv(env_name, "")
            for field_name, env_name in Config.ENV_VARS.items()
        }
        return Config(**kwargs)

    def validate(self, fields: Iterable[str]) -> None:
        """
        Fail fast if any of the given fields is missing.

        Every backend is optional, so strictness is per use site:
        the Azure model asks for AZURE_OPENAI_FIELDS, Chroma Cloud for CHROMA_CLOUD_FIELDS.
        """
        missing_fields = [f for f in fields if not getattr(self, f)]

        if missing_fields:
            missing_env_vars = [self.ENV_VARS[f] for f in missing_fields]
            raise ValueError(f"Missing required environment variables: {missing_env_vars}")

    @property
    def chroma_cloud_enabled(self) -> bool:
        return all(getattr(self, f) for f in self.CHROMA_CLOUD_FIELDS)

    def summary(self) -> dict:
        """Return a safe, non-sensitive summary for logging."""
        return {
            "openai_azure_endpoint": self.openai_azure_endpoint,
            "openai_azure_api_version": self.openai_azure_api_version or "2024-10-21",
            "chroma_tenant": self.chroma_tenant,
            "chroma_database": self.chroma_database,
            "chroma_cloud_enabled": self.chroma_cloud_enabled,
        }
