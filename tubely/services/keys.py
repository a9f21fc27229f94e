# tubely/services/keys.py
from __future__ import annotations

"""
Storage key derivation.

    {orientation}/{random_id}{ext}      e.g. landscape/Zk3...Qw.mp4

Keys are a pure function of a fresh random token, the declared media type and
the orientation already computed by the Aspect Inspector. File contents are
never read here. Keys derived from the video id are deprecated: they let a
re-upload overwrite the previous object.
"""

import base64
import secrets

from tubely.media.probe import AspectClass

FALLBACK_EXTENSION = ".bin"
RANDOM_ID_BYTES = 32


def random_id() -> str:
    """32 bytes from the OS CSPRNG, base64url without padding (43 chars)."""
    return base64.urlsafe_b64encode(secrets.token_bytes(RANDOM_ID_BYTES)).rstrip(b"=").decode("ascii")


def media_type_to_ext(media_type: str) -> str:
    parts = (media_type or "").split("/")
    if len(parts) != 2:
        return FALLBACK_EXTENSION
    return "." + parts[1]


def derive_key(media_type: str) -> str:
    return f"{random_id()}{media_type_to_ext(media_type)}"


def apply_orientation(base_key: str, aspect: AspectClass) -> str:
    return f"{aspect.prefix}{base_key}"


def prefixed_key(prefix: str, base_key: str) -> str:
    return f"{prefix.strip('/')}/{base_key}"
