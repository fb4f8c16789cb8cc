"""
Content hashing for embedding cache keys and mock embedding buckets.
"""

import hashlib
import json
import unicodedata


def stable_hash(obj: dict | list | str | bytes) -> str:
    """
    Hash text or a JSON-able key to a 64-character blake2b hex digest.

    Dict keys are sorted and strings NFC-normalized, so the
    `{"text": ..., "model": ...}` cache keys and composed/decomposed
    spellings of the same text hash identically across runs.
    """
    if isinstance(obj, (dict, list)):
        data = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    elif isinstance(obj, str):
        data = unicodedata.normalize("NFC", obj).encode("utf-8")
    elif isinstance(obj, bytes):
        data = obj
    else:
        raise TypeError(f"Cannot hash type {type(obj)}: {obj}")

    return hashlib.blake2b(data, digest_size=32).hexdigest()
