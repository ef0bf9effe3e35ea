# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-17
# Description: ModelLoader
# -----------------------------------------------------------------------------
from typing import Callable, List, Optional, Protocol, runtime_checkable

import numpy as np

from config.Config import Config

AZURE_PREFIX = "azure-openai:"


@runtime_checkable
class EmbeddingModel(Protocol):
    """What the worker needs from a loaded model: batch encode to an (n, D) array."""
    name: str

    def encode(self, texts: List[str]) -> np.ndarray:
        ...


ModelLoaderFn = Callable[[str], EmbeddingModel]


def load_model(model_name: str, cfg: Optional[Config] = None) -> EmbeddingModel:
    """
    Resolve a model name to a backend:
      - "azure-openai:<deployment>" -> AzureOpenAIModel
      - anything else               -> local SentenceTransformerModel
    Runs on the worker thread; any exception here becomes a ModelLoadFailure.
    """
    if model_name.startswith(AZURE_PREFIX):
        from embedding.AzureOpenAIModel import AzureOpenAIModel

        deployment = model_name[len(AZURE_PREFIX):].strip()
        if not deployment:
            raise ValueError(f"Missing deployment name in model '{model_name}'")
        return AzureOpenAIModel(cfg or Config.from_env(), deployment)

    from embedding.SentenceTransformerModel import SentenceTransformerModel

    return SentenceTransformerModel(model_name)
