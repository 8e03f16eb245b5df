"""Stable content hashing for generated object names"""
import hashlib
import json
from typing import Any
from urllib.parse import quote

from cryptography.hazmat.primitives import hashes

# Lower-case hex digest of SHA-256
IDENTITY_HASH_LENGTH = 64


def canonicalise(value: Any) -> str:
    """
    Serialise a value so logically-equal inputs produce identical text.

    Mapping keys are sorted and whitespace removed. Lists keep their order, callers that
    need order independence must sort before hashing.
    """
    return json.dumps(value, sort_keys=True, separators=(',', ':'), ensure_ascii=False, default=str)


def hash_identity(value: Any) -> str:
    """Return the SHA-256 hex digest of the canonical form of value"""
    digest = hashes.Hash(hashes.SHA256())
    digest.update(canonicalise(value).encode('utf-8'))
    return digest.finalize().hex()[:IDENTITY_HASH_LENGTH]


def short_name_hash(text: str) -> str:
    """MD5 of a plain string, used for the short f5_appsvcs_ helper object names"""
    return hashlib.md5(text.encode('utf-8')).hexdigest()


def tenant_scoped_id(tenant_id: str, value: Any) -> str:
    """
    Build an appliance-safe identifier of the form ~tenant~<sha256>.

    The tenant name is percent-encoded and the resulting quote and percent characters are
    removed, leaving only letters, digits and the characters - _ . ~
    """
    raw = f"~{tenant_id}~{hash_identity(value)}"
    return quote(raw, safe='~').replace("'", '').replace('%', '')
