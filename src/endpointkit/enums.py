r"""Enumerations and constants shared by endpoint descriptors and the
response classifier."""

from __future__ import annotations

__all__ = ["BODYLESS_METHODS", "ContentType", "HttpMethod", "ResponseStatus"]

from enum import Enum


class HttpMethod(str, Enum):
    """HTTP methods supported by endpoint descriptors."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"


# Methods whose requests never carry a body, even if body parameters are set
BODYLESS_METHODS = frozenset({HttpMethod.GET, HttpMethod.HEAD})


class ContentType(str, Enum):
    """Media types used for the ``Content-Type`` and ``Accept``
    headers."""

    JSON = "application/json"
    URL_ENCODED = "application/x-www-form-urlencoded"
    MULTIPART_FORM_DATA = "multipart/form-data"
    TEXT = "text/plain"
    XML = "application/xml"


class ResponseStatus:
    """HTTP status codes with a dedicated meaning for the classifier.

    ``EXPIRED`` (440) is a non-standard code used by some APIs to signal
    that the access token has expired.
    """

    OK = 200
    CREATED = 201
    BAD_REQUEST = 400
    UNAUTHENTICATED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    VALIDATION = 422
    UPGRADE_REQUIRED = 426
    EXPIRED = 440
    SERVER_ERROR = 500
