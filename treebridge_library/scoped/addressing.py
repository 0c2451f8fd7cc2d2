"""Textual helpers for scoped-tree addresses.

Scoped addresses are opaque strings. The only structure relied on here is
that the scoped root is a literal prefix and that path separators below it
appear percent-encoded as %2F.
"""

from urllib.parse import quote
from urllib.parse import unquote

ENCODED_SEPARATOR = "%2F"

# Characters left literal when encoding, in addition to A-Z a-z 0-9 _ . - ~
_UNRESERVED = "!'()*"


def encode_component(value: str) -> str:
    """Percent-encode everything except unreserved characters, including '/'."""
    return quote(value, safe=_UNRESERVED)


def decode_component(value: str) -> str:
    return unquote(value)


def normalize_path(path: str, scoped_root: str) -> str:
    """Rewrite an application path into an address inside scoped_root.

    The scoped-root prefix is stripped if present, the remainder is
    percent-encoded and the literal root is put back in front.

    Example:
        >>> root = "content://a/tree/primary%3AGame/document/primary%3AGame"
        >>> normalize_path(root + "/deck/my deck.ydk", root)[len(root):]
        '%2Fdeck%2Fmy%20deck.ydk'
    """
    return scoped_root + encode_component(path.removeprefix(scoped_root))


def split_address(address: str) -> tuple[str, str]:
    """Split an encoded address into (parent address, encoded leaf name).

    A single trailing encoded separator is dropped first so that a directory
    address never yields an empty leaf.

    Raises:
        ValueError: If the address contains no encoded separator
    """
    if address.endswith(ENCODED_SEPARATOR):
        address = address[: -len(ENCODED_SEPARATOR)]
    index = address.rfind(ENCODED_SEPARATOR)
    if index < 0:
        raise ValueError(f"Address has no parent component: {address}")
    return address[:index], address[index + len(ENCODED_SEPARATOR) :]
