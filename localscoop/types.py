"""
Typed models for Google Places API (New v1) place details and the
display-ready record built from them.

All upstream fields are Optional because the set of fields returned is
exactly what the X-Goog-FieldMask header requests.

Reference:
https://developers.google.com/maps/documentation/places/web-service/place-details
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LocalizedText(BaseModel):
    """Localized text with language code."""

    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    language_code: Optional[str] = Field(default=None, alias="languageCode")


class Location(BaseModel):
    """Geographic point: latitude and longitude."""

    model_config = ConfigDict(populate_by_name=True)

    latitude: float
    longitude: float

    @field_validator("latitude")
    @classmethod
    def validate_latitude(cls, v: float) -> float:
        """Reject latitudes outside [-90.0, 90.0]."""
        if not -90.0 <= v <= 90.0:
            raise ValueError(f"latitude out of range: {v}")
        return v

    @field_validator("longitude")
    @classmethod
    def validate_longitude(cls, v: float) -> float:
        """Reject longitudes outside [-180.0, 180.0]."""
        if not -180.0 <= v <= 180.0:
            raise ValueError(f"longitude out of range: {v}")
        return v


class OpeningHoursPoint(BaseModel):
    """A day and time at which a business opens or closes."""

    model_config = ConfigDict(populate_by_name=True)

    day: Optional[int] = None  # 0 = Sunday
    hour: Optional[int] = None
    minute: Optional[int] = None


class OpeningHoursPeriod(BaseModel):
    """Single period of opening hours. No close point means open 24 hours."""

    model_config = ConfigDict(populate_by_name=True)

    open: Optional[OpeningHoursPoint] = None
    close: Optional[OpeningHoursPoint] = None


class OpeningHours(BaseModel):
    """Regular weekly opening hours."""

    model_config = ConfigDict(populate_by_name=True)

    open_now: Optional[bool] = Field(default=None, alias="openNow")
    periods: Optional[List[OpeningHoursPeriod]] = None
    weekday_descriptions: Optional[List[str]] = Field(
        default=None, alias="weekdayDescriptions"
    )


class PlaceDetails(BaseModel):
    """
    Subset of the Places API (New v1) Place resource requested by
    PlacesClient.FIELD_MASK.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    display_name: Optional[LocalizedText] = Field(
        default=None, alias="displayName"
    )
    formatted_address: Optional[str] = Field(
        default=None, alias="formattedAddress"
    )
    regular_opening_hours: Optional[OpeningHours] = Field(
        default=None, alias="regularOpeningHours"
    )
    business_status: Optional[str] = Field(default=None, alias="businessStatus")
    national_phone_number: Optional[str] = Field(
        default=None, alias="nationalPhoneNumber"
    )
    international_phone_number: Optional[str] = Field(
        default=None, alias="internationalPhoneNumber"
    )
    google_maps_uri: Optional[str] = Field(default=None, alias="googleMapsUri")
    location: Optional[Location] = None


class PlaceRecord(BaseModel):
    """
    Display-ready business record.

    is_open_now is tri-state: None means the upstream place carries no
    weekly schedule, so the status is unknown and is not displayed.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    formatted_address: str = ""
    phone: str = ""
    is_open_now: Optional[bool] = None
    maps_url: str = ""

    @property
    def is_cacheable(self) -> bool:
        """Only records with a name are worth caching."""
        return bool(self.name)

    def to_dict(self) -> dict[str, Any]:
        """Flat dict for JSON responses and cache storage."""
        return self.model_dump()


DEFAULT_PLACE_NAME = "Local Business"

# Shown whenever real data is unavailable
SAMPLE_PLACE = PlaceRecord(
    name=DEFAULT_PLACE_NAME,
    phone="(555) 123-4567",
    is_open_now=True,
    maps_url="https://maps.google.com",
)
