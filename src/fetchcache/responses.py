"""Response body decoding."""

from enum import Enum
from typing import Any
from urllib.parse import parse_qsl

import aiohttp
from multidict import MultiDict

from fetchcache.common.errors import InvalidConfigurationError


class ResponseType(str, Enum):
    """Shapes a response body can be decoded into."""

    JSON = "json"
    TEXT = "text"
    BLOB = "blob"  # bytes
    ARRAY_BUFFER = "arrayBuffer"  # bytearray
    FORM_DATA = "formData"  # MultiDict of a url-encoded body

    @classmethod
    def parse(cls, value: "ResponseType | str") -> "ResponseType":
        """Resolve a response type name, case-insensitively."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        options = ", ".join(member.value for member in cls)
        raise InvalidConfigurationError(
            f"Unrecognized response type {value!r}. Options are {options}"
        )


async def read_body(response: aiohttp.ClientResponse, response_type: ResponseType) -> Any:
    """Decode a response body according to the requested type."""
    if response_type is ResponseType.JSON:
        # content_type=None skips the mimetype check; an empty body gives None
        return await response.json(content_type=None)
    if response_type is ResponseType.TEXT:
        return await response.text()
    if response_type is ResponseType.BLOB:
        return await response.read()
    if response_type is ResponseType.ARRAY_BUFFER:
        return bytearray(await response.read())
    text = await response.text()
    return MultiDict(parse_qsl(text, keep_blank_values=True))
