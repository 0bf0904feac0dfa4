"""Pydantic schemas for API request/response validation."""

from datetime import datetime
from typing import Optional, List, Literal, Dict, Any

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


ExperienceLevel = Literal["beginner", "intermediate", "advanced"]


class CamelModel(BaseModel):
    """JSON uses camelCase keys; Python code uses snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _id_to_str(value):
    # Strava ids exceed the JS safe integer range
    return str(value) if value is not None else None


# ============== User Schemas ==============

class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    location: Optional[str] = Field(default=None, max_length=255)
    bike_type: Optional[str] = Field(default=None, max_length=50)
    experience_level: Optional[ExperienceLevel] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)


class UpdateProfileRequest(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    location: Optional[str] = Field(default=None, max_length=255)
    bike_type: Optional[str] = Field(default=None, max_length=50)
    experience_level: Optional[ExperienceLevel] = None
    profile_photo_url: Optional[AnyHttpUrl] = None

    def to_fields(self) -> Dict[str, Any]:
        fields = self.model_dump(exclude_unset=True)
        if fields.get("profile_photo_url") is not None:
            fields["profile_photo_url"] = str(fields["profile_photo_url"])
        return fields


class UserResponse(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    strava_user_id: Optional[str] = None
    profile_photo_url: Optional[str] = None
    location: Optional[str] = None
    bike_type: Optional[str] = None
    experience_level: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("strava_user_id", mode="before")
    @classmethod
    def stringify_strava_user_id(cls, value):
        return _id_to_str(value)


class AuthResponse(CamelModel):
    message: str
    user: UserResponse
    token: str


class UserEnvelope(CamelModel):
    user: UserResponse


class UserUpdateResponse(CamelModel):
    message: str
    user: UserResponse


class MessageResponse(CamelModel):
    message: str


# ============== Strava Schemas ==============

class AuthUrlResponse(CamelModel):
    auth_url: str


class StravaConnectRequest(CamelModel):
    code: str = Field(min_length=1)
    state: str = Field(min_length=1)


class StravaConnectResponse(CamelModel):
    success: bool = True
    message: str


class StravaStatusResponse(CamelModel):
    connected: bool


class StravaRoutesResponse(CamelModel):
    routes: List[Dict[str, Any]]
    page: int
    per_page: int


# ============== Route Schemas ==============

class RouteResponse(CamelModel):
    id: int
    strava_route_id: Optional[str] = None
    ridewithgps_route_id: Optional[str] = None
    route_source: Optional[str] = None
    name: str
    description: Optional[str] = None
    distance_meters: int
    elevation_gain_meters: Optional[int] = None
    polyline: Optional[str] = None
    estimated_moving_time: Optional[int] = None
    created_at: Optional[datetime] = None

    @field_validator("strava_route_id", mode="before")
    @classmethod
    def stringify_strava_route_id(cls, value):
        return _id_to_str(value)


class RouteEnvelope(CamelModel):
    route: RouteResponse


class RouteImportResponse(CamelModel):
    message: str
    route: RouteResponse


class RouteListResponse(CamelModel):
    routes: List[RouteResponse]
    total: int
    page: int
    total_pages: int
    query: Optional[str] = None


class RideWithGPSImportRequest(CamelModel):
    url: str = Field(min_length=1)
    name: Optional[str] = Field(default=None, max_length=255)
