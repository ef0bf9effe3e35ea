# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-14
# Updated: 2026-02-17
# Description: AzureOpenAIModel
# -----------------------------------------------------------------------------
import time
from typing import List

import numpy as np
from openai import AzureOpenAI, OpenAI

from config.Config import Config
from utility.logging_utils import get_class_logger


class AzureOpenAIModel:
    """
    Embedding backend for an Azure OpenAI deployment.
    Selected with a model name of the form "azure-openai:<deployment>".
    """

    def __init__(
            self,
            cfg: Config,
            deployment: str,
            *,
            normalize: bool = True,
            max_retries: int = 5,
            logger=None,
    ):
        cfg.validate(Config.AZURE_OPENAI_FIELDS)

        self.cfg = cfg
        self.deployment = deployment
        self.name = f"azure-openai:{deployment}"
        self.normalize = normalize
        self.max_retries = max_retries
        self.dimension = None
        self.logger = logger or get_class_logger(self.__class__)

        self._init_client()
        self.logger.info("Azure OpenAI embedder initialized deployment='%s'", self.deployment)

    def _init_client(self) -> None:
        """
        Tries classic AzureOpenAI(...) first; if the installed SDK signature
        is incompatible, falls back to OpenAI(base_url=.../deployments/<model>).
        Sets self._use_deployment_param accordingly.
        """
        endpoint = self.cfg.openai_azure_endpoint.rstrip("/")
        key = self.cfg.openai_azure_api_key
        api_version = self.cfg.openai_azure_api_version or "2024-10-21"

        try:
            self.client = AzureOpenAI(
                api_key=key,
                azure_endpoint=endpoint,
                api_version=api_version,
            )
            self._use_deployment_param = True
            return
        except TypeError as e:
            # Newer SDKs may alter signature. Fall through.
            self.logger.debug("AzureOpenAI init fell through to base_url mode: %s", e)

        # Fallback: deployment encoded in base_url; do not pass model= on each call
        self.client = OpenAI(
            api_key=key,
            base_url=f"{endpoint}/openai/deployments/{self.deployment}",
        )
        self._use_deployment_param = False

    def encode(self, texts: List[str]) -> np.ndarray:
        delay = 0.8
        for attempt in range(1, self.max_retries + 1):
            try:
                if self._use_deployment_param:
                    resp = self.client.embeddings.create(model=self.deployment, input=texts)
                else:
                    resp = self.client.embeddings.create(input=texts)

                arr = np.asarray([d.embedding for d in resp.data], dtype=np.float32)

                # Normalize vectors (cosine-friendly)
                if self.normalize:
                    norms = np.linalg.norm(arr, axis=1, keepdims=True) + 1e-12
                    arr = arr / norms

                if self.dimension is None and arr.size:
                    self.dimension = int(arr.shape[1])
                return arr

            except Exception as e:
                self.logger.warning("Embedding batch failed (attempt %d/%d): %s", attempt, self.max_retries, e)
                if attempt == self.max_retries:
                    raise
                time.sleep(delay)
                delay *= 1.7  # backoff

        # Unreachable and include for type checkers
        return np.empty((0, 0), dtype=np.float32)
