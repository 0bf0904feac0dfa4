"""OAuth ``state`` round-trip payload and redirect target validation.

The state value is base64(JSON) and is NOT signed. Anything decoded from it
is attacker-controlled: callers re-validate each field they consume (the
redirect target goes back through ``resolve_redirect_url``, the user id is
only trusted on flows that have no authenticated caller to prefer).
"""

import base64
import binascii
import json
from typing import Iterable, Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from lfg.exceptions import InvalidStateError


class OAuthState(BaseModel):
    """Intent carried across the Strava authorization redirect."""

    model_config = ConfigDict(populate_by_name=True)

    action: Optional[Literal["login", "signup"]] = None
    user_id: Optional[int] = Field(default=None, alias="userId")
    redirect_url: Optional[str] = Field(default=None, alias="redirectUrl")


def encode_state(payload: OAuthState) -> str:
    """Serialize a state payload into the opaque query-string value."""
    raw = payload.model_dump_json(by_alias=True, exclude_none=True)
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_state(value: Optional[str]) -> OAuthState:
    """Parse a state value returned by Strava.

    Raises:
        InvalidStateError: If the value is not base64-encoded JSON of the
            expected shape.
    """
    if not value:
        raise InvalidStateError()
    try:
        raw = base64.b64decode(value, validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError, RecursionError):
        # ValueError covers UnicodeDecodeError and JSONDecodeError.
        # RecursionError is deeply nested JSON.
        raise InvalidStateError()

    if not isinstance(data, dict):
        raise InvalidStateError()
    try:
        return OAuthState.model_validate(data)
    except PydanticValidationError:
        raise InvalidStateError()


def is_allowed_redirect(url: str, allowed_hosts: Iterable[str]) -> bool:
    """Check a redirect target against the host allow-list.

    A host matches when it equals an allowed entry exactly, either as bare
    hostname or as ``host:port``. Substring matches never count.
    """
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not hostname:
        return False

    host = parts.netloc.rpartition("@")[2].lower()
    return any(hostname == allowed or host == allowed for allowed in allowed_hosts)


def resolve_redirect_url(
    candidate: Optional[str],
    allowed_hosts: Iterable[str],
    default: str,
) -> str:
    """Return ``candidate`` verbatim if allow-listed, otherwise ``default``."""
    if candidate and is_allowed_redirect(candidate, allowed_hosts):
        return candidate
    return default
