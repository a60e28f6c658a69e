# src/kraken_spot_sdk/auth/signer.py

"""
Signature scheme of the Kraken spot REST API.

    API-Sign = base64(HMAC-SHA512(secret, uri_path + SHA256(nonce + post_data)))

See https://docs.kraken.com/rest/#section/Authentication/Headers-and-Signature
"""

# --- Built Ins ---
import base64
import binascii
import hashlib
import hmac
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlencode

# --- Local Application Imports ---
from ..core.errors import ConstructionError


def _iter_pairs(fields: Any) -> Iterable[tuple[str, Any]]:
    items = fields.items() if isinstance(fields, Mapping) else fields
    for key, value in items:
        if isinstance(value, (list, tuple)):
            for item in value:
                yield key, item
        else:
            yield key, value


def _text(value: Any) -> str:
    # The API expects JSON style booleans.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def form_pairs(fields: Any) -> list[tuple[str, str]]:
    """
    Flattens form data into key/value text pairs sorted by key.

    The sort is stable: repeated keys keep their relative order.
    """
    if not fields:
        return []
    pairs = [(str(key), _text(value)) for key, value in _iter_pairs(fields)]
    return sorted(pairs, key=lambda pair: pair[0])


def encode_form(fields: Any) -> str:
    """
    URL form encodes a mapping or a list of pairs, keys sorted.

    This is the exact byte sequence that is both signed and transmitted.
    """
    return urlencode(form_pairs(fields))


def decode_secret(secret: str) -> bytes:
    """
    Base64 decodes the API secret. Failures are permanent construction errors.

    Surrounding whitespace (e.g. a trailing newline from a secrets file) is
    ignored. An empty secret is rejected rather than used as an HMAC key.
    """
    try:
        decoded = base64.b64decode(secret.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConstructionError(f"could not base64 decode provided secret for Kraken spot API: {e}") from e
    if not decoded:
        raise ConstructionError("provided secret for Kraken spot API is empty")
    return decoded


def sign(path: str, fields: Any, secret: bytes) -> str:
    """Computes the API-Sign value for a request to `path` carrying `fields`."""
    pairs = form_pairs(fields)
    nonce = next((value for key, value in pairs if key == "nonce"), "")
    # The nonce appears twice: alone, then inside the encoded body.
    digest = hashlib.sha256((nonce + urlencode(pairs)).encode()).digest()
    mac = hmac.new(secret, path.encode() + digest, hashlib.sha512).digest()
    return base64.b64encode(mac).decode()
