"""Centralized configuration for the document Q&A pipeline.

Reads settings from environment variables (via python-dotenv) with sensible
defaults.  Numeric values use safe parsers that log a warning and fall back
to the default when the env value is invalid or out of range.

Exports:
    Paths      — DATA_DIR, CHROMA_DIR
    Embedding  — EMBEDDING_MODEL, COLLECTION_NAME
    LLM        — LOCAL_LLM_MODEL, LOCAL_LLM_DEVICE, LOCAL_LLM_MAX_NEW_TOKENS
    Chunking   — CHUNK_SIZE, CHUNK_OVERLAP
    Indexing   — CHROMA_UPSERT_BATCH_SIZE
    Retrieval  — PRIMARY_K, SECONDARY_K, SCORE_THRESHOLD, MAX_EVIDENCE,
                  DEDUP_PREFIX_CHARS, PARALLEL_RETRIEVAL
    Citations  — MAX_SNIPPETS, SNIPPET_MAX_CHARS
"""
import logging
import math
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(key: str, default: int) -> int:
    """Parse *key* from the environment as an int, returning *default* on failure."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %d", key, raw, default)
        return default


def _safe_float(key: str, default: float) -> float:
    """Parse *key* from the environment as a float, returning *default* on failure or non-finite values."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        val = float(raw)
        if math.isnan(val) or math.isinf(val):
            logger.warning("Invalid %s=%r (non-finite), using default %s", key, raw, default)
            return default
        return val
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", key, raw, default)
        return default


def _safe_positive_int(key: str, default: int) -> int:
    """Parse env as int; require value >= 1, else use default and log."""
    val = _safe_int(key, default)
    if val < 1:
        logger.warning("Invalid %s=%d (must be >= 1), using default %d", key, val, default)
        return default
    return val


def _safe_float_positive(key: str, default: float) -> float:
    """Parse env as float; require value > 0, else use default and log."""
    val = _safe_float(key, default)
    if val <= 0:
        logger.warning("Invalid %s=%s (must be > 0), using default %s", key, val, default)
        return default
    return val


def _safe_bool(key: str, default: bool) -> bool:
    """Parse env as a flag (1/true/yes or 0/false/no); anything else logs and uses default."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no"):
        return False
    logger.warning("Invalid %s=%r (expected true/false), using default %s", key, raw, default)
    return default


# Repo root: directory containing pyproject.toml (when run from repo or editable install)
_REPO_ROOT = Path(__file__).resolve().parents[2]
if not (_REPO_ROOT / "pyproject.toml").exists():
    _REPO_ROOT = Path.cwd()

DATA_DIR = Path(os.environ.get("DATA_DIR", _REPO_ROOT / "data"))

# Local embeddings and vector store
CHROMA_DIR = DATA_DIR / "chroma"
COLLECTION_NAME = os.environ.get("COLLECTION_NAME", "docqa_chunks")
EMBEDDING_MODEL = os.environ.get(
    "EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2"
)

# Chroma batch size (env-overridable; must be >= 1)
CHROMA_UPSERT_BATCH_SIZE = _safe_positive_int("CHROMA_UPSERT_BATCH_SIZE", 5000)

# Chunking defaults (size >= 1; overlap in [0, size))
CHUNK_SIZE = _safe_positive_int("CHUNK_SIZE", 1000)
_chunk_overlap_raw = _safe_int("CHUNK_OVERLAP", 200)
if _chunk_overlap_raw < 0 or _chunk_overlap_raw >= CHUNK_SIZE:
    logger.warning(
        "Invalid CHUNK_OVERLAP=%d (must be 0 <= overlap < CHUNK_SIZE=%d), using default 200",
        _chunk_overlap_raw,
        CHUNK_SIZE,
    )
    CHUNK_OVERLAP = 200
else:
    CHUNK_OVERLAP = _chunk_overlap_raw

# Retrieval fan-out: compression retrieval for the question, scored retrieval
# for the hypothetical answer
PRIMARY_K = _safe_positive_int("PRIMARY_K", 12)
SECONDARY_K = _safe_positive_int("SECONDARY_K", 8)

# Relevance cutoff for the expanded-query results. Scale depends on the store's
# relevance function; Chroma's normalised relevance scores lie in [0, 1].
SCORE_THRESHOLD = _safe_float("SCORE_THRESHOLD", 0.2)

# Evidence set cap and dedup key prefix length
MAX_EVIDENCE = _safe_positive_int("MAX_EVIDENCE", 8)
DEDUP_PREFIX_CHARS = _safe_positive_int("DEDUP_PREFIX_CHARS", 120)

# Run the two retrievers on separate threads
PARALLEL_RETRIEVAL = _safe_bool("PARALLEL_RETRIEVAL", False)

# Snippets shown in the sources drawer
MAX_SNIPPETS = _safe_positive_int("MAX_SNIPPETS", 4)
SNIPPET_MAX_CHARS = _safe_positive_int("SNIPPET_MAX_CHARS", 500)

# Local LLM (Hugging Face pipeline, runs with sentence-transformers stack)
LOCAL_LLM_MODEL = os.environ.get(
    "LOCAL_LLM_MODEL", "TinyLlama/TinyLlama-1.1B-Chat-v1.0"
)
LOCAL_LLM_DEVICE = os.environ.get("LOCAL_LLM_DEVICE", "auto")
LOCAL_LLM_MAX_NEW_TOKENS = _safe_positive_int("LOCAL_LLM_MAX_NEW_TOKENS", 512)
LOCAL_LLM_REPETITION_PENALTY = _safe_float_positive(
    "LOCAL_LLM_REPETITION_PENALTY", 1.05
)
