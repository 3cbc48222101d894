r"""Parameter encodings for request bodies and query strings.

An endpoint selects one of ``JsonEncoding``, ``UrlEncoding``,
``FormDataEncoding`` or ``CustomEncoding``. The request builder calls
``encode_body`` to turn the endpoint's body parameters into bytes.
"""

from __future__ import annotations

__all__ = [
    "CustomEncoding",
    "FormDataEncoding",
    "JsonEncoding",
    "ParameterEncoding",
    "UrlEncoding",
    "describe",
    "encode_body",
    "encode_form_data",
    "encode_query",
    "encode_url_parameters",
    "percent_encode",
]

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union
from urllib.parse import quote

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping


@dataclass(frozen=True)
class JsonEncoding:
    """Serialize body parameters as a JSON object."""


@dataclass(frozen=True)
class UrlEncoding:
    """Serialize body parameters as ``application/x-www-form-urlencoded``."""


@dataclass(frozen=True)
class FormDataEncoding:
    """Serialize body parameters as ``multipart/form-data``.

    Args:
        boundary: The multipart boundary. It is also injected into the
            ``Content-Type`` header of the built request.
    """

    boundary: str

    def __post_init__(self) -> None:
        if not self.boundary:
            msg = "boundary must not be empty"
            raise ValueError(msg)

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"


@dataclass(frozen=True)
class CustomEncoding:
    """Serialize body parameters with a user supplied encoder.

    Args:
        encoder: Callable receiving the body parameters and returning the
            encoded body.
    """

    encoder: Callable[[Mapping[str, Any]], bytes]


ParameterEncoding = Union[JsonEncoding, UrlEncoding, FormDataEncoding, CustomEncoding]


def describe(value: Any) -> str:
    r"""Convert a parameter value to its canonical textual form.

    Example:
        ```pycon
        >>> from endpointkit.encoding import describe
        >>> describe(True), describe(None), describe(3.5), describe(b"raw")
        ('true', 'null', '3.5', 'raw')

        ```
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def percent_encode(text: str) -> str:
    """Percent-encode ``text`` leaving only RFC 3986 unreserved
    characters untouched."""
    return quote(text, safe="")


def encode_query(params: Iterable[tuple[str, Any]]) -> str:
    r"""Serialize query parameters in the order supplied.

    Example:
        ```pycon
        >>> from endpointkit.encoding import encode_query
        >>> encode_query([("a", "1 2"), ("b", "x&y")])
        'a=1%202&b=x%26y'

        ```
    """
    return "&".join(
        f"{percent_encode(name)}={percent_encode(describe(value))}" for name, value in params
    )


def encode_url_parameters(params: Mapping[str, Any]) -> bytes:
    """Encode body parameters as ``key=value`` pairs joined with
    ``&``."""
    return encode_query(params.items()).encode("utf-8")


def encode_form_data(params: Mapping[str, Any], boundary: str) -> bytes:
    r"""Encode body parameters as a multipart/form-data body.

    Binary values (``bytes``/``bytearray``) are emitted as file parts,
    every other value as a plain text part.

    Example:
        ```pycon
        >>> from endpointkit.encoding import encode_form_data
        >>> encode_form_data({"name": "foo"}, "B1")
        b'--B1\r\nContent-Disposition: form-data; name="name"\r\n\r\nfoo\r\n--B1--\r\n'

        ```
    """
    parts: list[bytes] = []
    for key, value in params.items():
        parts.append(f"--{boundary}\r\n".encode())
        if isinstance(value, (bytes, bytearray)):
            parts.append(
                f'Content-Disposition: form-data; name="{key}"; filename="file"\r\n'.encode()
            )
            parts.append(b"Content-Type: application/octet-stream\r\n\r\n")
            parts.append(bytes(value))
            parts.append(b"\r\n")
        else:
            parts.append(f'Content-Disposition: form-data; name="{key}"\r\n\r\n'.encode())
            parts.append(f"{describe(value)}\r\n".encode())
    parts.append(f"--{boundary}--\r\n".encode())
    return b"".join(parts)


def encode_body(encoding: ParameterEncoding, params: Mapping[str, Any]) -> bytes:
    """Encode body parameters according to ``encoding``.

    Args:
        encoding: The parameter encoding declared by the endpoint.
        params: The body parameters.

    Returns:
        The encoded request body.

    Raises:
        TypeError: If a JSON body contains values that cannot be
            serialized.
    """
    if isinstance(encoding, UrlEncoding):
        return encode_url_parameters(params)
    if isinstance(encoding, FormDataEncoding):
        return encode_form_data(params, encoding.boundary)
    if isinstance(encoding, CustomEncoding):
        return encoding.encoder(params)
    return json.dumps(dict(params)).encode("utf-8")
