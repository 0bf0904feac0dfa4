"""Error taxonomy shared by services, dependencies and routers.

Every error carries the HTTP status it is translated to at the API
boundary; services raise these and never build HTTP responses themselves.
"""

from typing import Optional


class LFGError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    default_message = "Internal server error"
    code = None

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(LFGError):
    """A required secret or credential is missing or a placeholder."""

    default_message = "Server is not configured correctly"


class Unauthenticated(LFGError):
    """No credential was supplied."""

    status_code = 401
    default_message = "Access token required"


class Forbidden(LFGError):
    """A credential was supplied but is invalid or expired."""

    status_code = 403
    default_message = "Invalid or expired token"


class InvalidTokenError(LFGError):
    """A signed token failed verification."""

    status_code = 403
    default_message = "Invalid or expired token"


class InvalidCredentialsError(LFGError):
    status_code = 401
    default_message = "Invalid email or password"


class ValidationError(LFGError):
    """Input has the wrong shape."""

    status_code = 400
    default_message = "Validation failed"


class InvalidStateError(ValidationError):
    """The OAuth state round-trip value could not be decoded."""

    default_message = "Invalid state parameter"


class NotFoundError(LFGError):
    status_code = 404
    default_message = "Not found"


class ConflictError(LFGError):
    status_code = 409
    default_message = "Resource already exists"


class NotConnectedError(LFGError):
    status_code = 400
    default_message = "User is not connected to Strava"
    code = "strava_not_connected"


class FeatureDisabledError(LFGError):
    status_code = 503
    default_message = "Strava integration not configured"
    code = "strava_disabled"


class OAuthExchangeError(LFGError):
    """The remote token endpoint rejected a code or refresh token."""

    status_code = 502
    default_message = "Failed to exchange authorization code for access token"


class OAuthApiError(LFGError):
    """The remote API rejected a call made with a user's access token."""

    status_code = 502
    default_message = "Strava API request failed"

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status

    @property
    def reconnect_required(self) -> bool:
        return False


class ReconnectRequiredError(OAuthApiError):
    """Remote 401: the stored access token is expired or revoked."""

    status_code = 401
    default_message = "Strava authentication expired. Please reconnect to Strava."
    code = "strava_reconnect_required"

    @property
    def reconnect_required(self) -> bool:
        return True


class RemotePermissionError(OAuthApiError):
    """Remote 403: the granted scopes do not cover the resource."""

    status_code = 403
    default_message = "Access denied by Strava. Please check your Strava permissions."
    code = "strava_permission_denied"


class IncompleteRemoteDataError(LFGError):
    status_code = 502
    default_message = "Missing required route data from remote platform"
