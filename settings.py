# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-09
# Updated: 2026-02-21
# Description: settings.py
# -----------------------------------------------------------------------------
import os
from typing import Any, Dict


def _env(name: str, default: str = "") -> str:
    """Read env var safely and strip whitespace."""
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return int(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be an int, got {v!r}") from e


def _env_float(name: str, default: float) -> float:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return float(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be a float, got {v!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name, "")
    if v == "":
        return default
    v = v.lower()
    if v in ("1", "true", "t", "yes", "y", "on"):
        return True
    if v in ("0", "false", "f", "no", "n", "off"):
        return False
    raise RuntimeError(f"Env var {name} must be a boolean, got {v!r}")


# -----------------------------------------------------------------------------
# Embedding model
# -----------------------------------------------------------------------------
# Local sentence-transformers name, or "azure-openai:<deployment>"
MODEL_NAME = _env("KB_MODEL_NAME", "all-MiniLM-L6-v2")

# Dimension of fallback vectors; must match the real model so both can be compared
EMBEDDING_DIM = _env_int("KB_EMBEDDING_DIM", 384)

# Load the model when the API starts instead of on first use
INIT_ON_STARTUP = _env_bool("KB_INIT_ON_STARTUP", False)


# -----------------------------------------------------------------------------
# Chunking
# -----------------------------------------------------------------------------
CHUNK_MAX_LEN = _env_int("KB_CHUNK_MAX_LEN", 512)
CHUNK_OVERLAP = _env_int("KB_CHUNK_OVERLAP", 50)


# -----------------------------------------------------------------------------
# Worker timeouts (seconds)
# -----------------------------------------------------------------------------
WORKER_TIMEOUTS: Dict[str, float] = {
    "init": _env_float("KB_INIT_TIMEOUT", 60.0),
    "embed": _env_float("KB_EMBED_TIMEOUT", 10.0),
    # batch calls carry many texts in one round-trip
    "batch": _env_float("KB_BATCH_TIMEOUT", 30.0),
}


# -----------------------------------------------------------------------------
# Similarity / search / clustering defaults
# -----------------------------------------------------------------------------
SIMILARITY_DEFAULTS: Dict[str, Any] = {
    "similar_threshold": _env_float("KB_SIMILAR_THRESHOLD", 0.7),
    "similar_limit": _env_int("KB_SIMILAR_LIMIT", 5),
    "search_threshold": _env_float("KB_SEARCH_THRESHOLD", 0.6),
    "search_limit": _env_int("KB_SEARCH_LIMIT", 10),
    "cluster_max_k": _env_int("KB_CLUSTER_MAX_K", 10),
}


# -----------------------------------------------------------------------------
# Result cache
# -----------------------------------------------------------------------------
CACHE_MAX_MB = _env_float("KB_CACHE_MAX_MB", 50.0)
CACHE_TTL_SECONDS = _env_float("KB_CACHE_TTL_SECONDS", 60.0 * 60.0)
CACHE_CLEANUP_INTERVAL = _env_float("KB_CACHE_CLEANUP_INTERVAL", 5.0 * 60.0)
CACHE_PERSIST_PATH = _env("KB_CACHE_PERSIST_PATH", "./.kb_cache/cache.json")
CACHE_PERSIST_MAX_BYTES = _env_int("KB_CACHE_PERSIST_MAX_BYTES", 10 * 1024)


# -----------------------------------------------------------------------------
# Storage + content
# -----------------------------------------------------------------------------
# "memory" keeps embeddings in-process; "chroma" uses a local or cloud Chroma collection
STORE_BACKEND = _env("KB_STORE_BACKEND", "memory").lower()
CHROMA_PATH = _env("KB_CHROMA_PATH", "./.kb_chroma")
CHROMA_COLLECTION = _env("KB_CHROMA_COLLECTION", "kb_embeddings")

# Directory of notes (*.md) and files the API embeds; blank means in-memory content only
CONTENT_DIR = _env("KB_CONTENT_DIR", "")


# -----------------------------------------------------------------------------
# Sanity checks (tunable)
# -----------------------------------------------------------------------------
if not MODEL_NAME:
    raise RuntimeError("MODEL_NAME resolved to empty value")

if EMBEDDING_DIM <= 0:
    raise RuntimeError(f"KB_EMBEDDING_DIM must be positive, got {EMBEDDING_DIM}")

if CHUNK_OVERLAP >= CHUNK_MAX_LEN:
    raise RuntimeError(
        f"KB_CHUNK_OVERLAP ({CHUNK_OVERLAP}) must be < KB_CHUNK_MAX_LEN ({CHUNK_MAX_LEN})"
    )

if STORE_BACKEND not in ("memory", "chroma"):
    raise RuntimeError(f"KB_STORE_BACKEND must be 'memory' or 'chroma', got {STORE_BACKEND!r}")

if not CHROMA_COLLECTION:
    raise RuntimeError("CHROMA_COLLECTION resolved to empty value")
