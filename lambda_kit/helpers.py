# lambda_kit/helpers.py
import base64
import hashlib

from lambda_kit.errors import InputInvalidError

ENCODINGS = ("hex", "base64", "latin1")


def hash_value(value: str, algorithm: str = "md5", encoding: str = "hex") -> str:
    """
    Hashes a string and renders the digest.

    Args:
        value: Text to hash, encoded as UTF-8.
        algorithm: Any algorithm hashlib knows (md5, sha1, sha256, ...).
        encoding: "hex", "base64" or "latin1".

    Raises:
        InputInvalidError: If the algorithm or the encoding is not supported.
    """
    if encoding not in ENCODINGS:
        raise InputInvalidError(f"Unsupported digest encoding: {encoding}")
    try:
        digest = hashlib.new(algorithm, value.encode("utf-8")).digest()
    except ValueError as e:
        raise InputInvalidError(f"Unsupported hash algorithm: {algorithm}") from e

    if encoding == "hex":
        return digest.hex()
    if encoding == "base64":
        return base64.b64encode(digest).decode("ascii")
    return digest.decode("latin1")
