"""Utilities package - Flat structure (no nested directories)"""

# Hash utilities
from .hash_utils import hash_string, hash_bytes, similarity_bucket, generate_dedup_key

# URL utilities
from .url_utils import normalize_url, extract_domain, domain_matches

__all__ = [
    # hash
    "hash_string",
    "hash_bytes",
    "similarity_bucket",
    "generate_dedup_key",
    # url
    "normalize_url",
    "extract_domain",
    "domain_matches",
]
