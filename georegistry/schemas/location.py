"""
Location schema definitions for request/response handling.
"""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field

from georegistry.schemas.base import BaseSchema, BaseDBSchema, BaseCreateSchema, BaseUpdateSchema


class GeoPoint(BaseSchema):
    """GeoJSON point; coordinates are [longitude, latitude]."""

    type: Literal["Point"] = "Point"
    coordinates: List[float]


class Address(BaseSchema):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class Contact(BaseSchema):
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None


class LocationFields(BaseSchema):
    """
    Every user-supplied location field, all optional at the schema level.

    Required-ness depends on the deployment profile and is checked by the
    location service, which reports all missing fields at once.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    coordinates: Optional[GeoPoint] = None
    address: Optional[Address] = None
    contact: Optional[Contact] = None
    company_name: Optional[str] = None
    municipality: Optional[str] = None
    tax_id: Optional[str] = None
    activity_code: Optional[str] = None


class LocationCreate(BaseCreateSchema, LocationFields):
    """Schema for creating a location."""
    pass


class LocationPatch(BaseUpdateSchema, LocationFields):
    """Schema for partially updating a location; absent fields are left untouched."""
    pass


class OwnerRef(BaseSchema):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class LocationResponse(BaseDBSchema):
    """Schema for location data in responses."""

    name: str
    description: Optional[str] = None
    category: str
    coordinates: GeoPoint
    address: Address
    contact: Contact
    company_name: Optional[str] = None
    municipality: Optional[str] = None
    tax_id: Optional[str] = None
    activity_code: Optional[str] = None
    is_active: bool
    owner: OwnerRef = Field(validation_alias="owner_ref")
    distance_meters: Optional[float] = None

    @classmethod
    def from_match(cls, location: Any, distance_meters: Optional[float] = None) -> "LocationResponse":
        """Build the response for a listed location, with its distance when one was computed."""
        response = cls.model_validate(location)
        if distance_meters is None:
            return response
        return response.model_copy(update={"distance_meters": distance_meters})


class LocationFilter(BaseModel):
    """Filter dimensions accepted by the location listing."""

    category: Optional[str] = None
    search: Optional[str] = None
    lng: Optional[float] = None
    lat: Optional[float] = None
    radius: Optional[float] = None  # kilometers

    @property
    def has_proximity(self) -> bool:
        return any(value is not None for value in (self.lng, self.lat, self.radius))
