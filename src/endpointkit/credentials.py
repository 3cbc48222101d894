r"""Authentication credentials carried by endpoint descriptors.

A credential is resolved to a set of request headers when the request is
built. ``BearerCredential`` without an explicit token is resolved
against the access token currently held by the token coordinator, which
is what lets the attempt following a token refresh carry the new token.
"""

from __future__ import annotations

__all__ = [
    "ApiKeyCredential",
    "BasicCredential",
    "BearerCredential",
    "Credential",
    "CustomCredential",
    "NoCredential",
    "resolve_authorization",
    "uses_access_token",
]

import base64
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NoCredential:
    """The endpoint does not require authentication."""


@dataclass(frozen=True)
class BearerCredential:
    """Bearer token authentication.

    Args:
        token: The bearer token. If ``None``, the current access token
            is used when the request is built.
    """

    token: str | None = None


@dataclass(frozen=True)
class BasicCredential:
    """HTTP basic authentication with a username and password."""

    username: str
    password: str


@dataclass(frozen=True)
class ApiKeyCredential:
    """API key sent in a header named by ``header_name``."""

    header_name: str
    value: str


@dataclass(frozen=True)
class CustomCredential:
    """Pre-encoded token sent as ``Authorization: Basic <token>``.

    The token is inserted verbatim after the ``Basic`` prefix and is not
    base64 encoded again.
    """

    token: str


Credential = Union[
    NoCredential, BearerCredential, BasicCredential, ApiKeyCredential, CustomCredential
]


def uses_access_token(credential: Credential) -> bool:
    r"""Indicate whether a credential is resolved against the access
    token held by the token coordinator.

    Example:
        ```pycon
        >>> from endpointkit.credentials import BearerCredential, uses_access_token
        >>> uses_access_token(BearerCredential())
        True
        >>> uses_access_token(BearerCredential("static"))
        False

        ```
    """
    return isinstance(credential, BearerCredential) and credential.token is None


def resolve_authorization(
    credential: Credential, access_token: str | None = None
) -> dict[str, str]:
    r"""Resolve a credential to the headers that authenticate a request.

    Args:
        credential: The credential declared by the endpoint.
        access_token: The current access token, used by a
            ``BearerCredential`` that carries no explicit token.

    Returns:
        The authorization headers. Empty if the credential resolves to
        nothing (no credential, or a bearer credential with no token
        available).

    Example:
        ```pycon
        >>> from endpointkit.credentials import (
        ...     BasicCredential,
        ...     BearerCredential,
        ...     resolve_authorization,
        ... )
        >>> resolve_authorization(BearerCredential("abc"))
        {'Authorization': 'Bearer abc'}
        >>> resolve_authorization(BearerCredential(), access_token="fresh")
        {'Authorization': 'Bearer fresh'}
        >>> resolve_authorization(BasicCredential("user", "pass"))
        {'Authorization': 'Basic dXNlcjpwYXNz'}

        ```
    """
    if isinstance(credential, BearerCredential):
        token = credential.token if credential.token is not None else access_token
        if token is None:
            return {}
        return {"Authorization": f"Bearer {token}"}
    if isinstance(credential, BasicCredential):
        raw = f"{credential.username}:{credential.password}".encode()
        return {"Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}"}
    if isinstance(credential, ApiKeyCredential):
        return {credential.header_name: credential.value}
    if isinstance(credential, CustomCredential):
        return {"Authorization": f"Basic {credential.token}"}
    return {}
