"""
Location model definition.
"""

from sqlalchemy import Column, String, Boolean, Float, Text, Index
from sqlalchemy.orm import relationship

from georegistry.models.base import BaseModel

# Address and contact sub-fields, mapped onto prefixed columns
ADDRESS_FIELDS = ("street", "city", "state", "country", "postal_code")
CONTACT_FIELDS = ("phone", "email", "website")


class Location(BaseModel):
    """A geotagged point of interest owned by the user who created it."""

    name = Column(String(200), nullable=False, index=True)
    description = Column(Text)
    category = Column(String(100), nullable=False, index=True)

    longitude = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False)

    address_street = Column(String(255))
    address_city = Column(String(120))
    address_state = Column(String(120))
    address_country = Column(String(120))
    address_postal_code = Column(String(20))

    contact_phone = Column(String(50))
    contact_email = Column(String(255))
    contact_website = Column(String(255))

    # Business profile fields
    company_name = Column(String(200), index=True)
    municipality = Column(String(120), index=True)
    tax_id = Column(String(50), index=True)
    activity_code = Column(String(20), index=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    # Weak reference: deleting a user leaves the location in place
    owner_id = Column(String(36), nullable=False, index=True)

    owner = relationship(
        "User",
        primaryjoin="foreign(Location.owner_id) == User.id",
        viewonly=True,
        lazy="joined",
    )

    __table_args__ = (
        Index("ix_locations_lat_lng", "latitude", "longitude"),
        Index("ix_locations_category_active", "category", "is_active"),
        # Relevance search index; SQLite has no FULLTEXT and scores in Python instead
        Index(
            "ix_locations_relevance",
            "name", "address_street", "address_city", "address_state", "address_country",
            mysql_prefix="FULLTEXT",
        ).ddl_if(dialect="mysql"),
    )

    @property
    def owner_ref(self) -> dict:
        """Denormalized owner for output; name and email only when the user still exists."""
        if self.owner is None:
            return {"id": self.owner_id, "name": None, "email": None}
        return {"id": self.owner_id, "name": self.owner.name, "email": self.owner.email}

    @property
    def address(self) -> dict:
        return {field: getattr(self, f"address_{field}") for field in ADDRESS_FIELDS}

    @property
    def contact(self) -> dict:
        return {field: getattr(self, f"contact_{field}") for field in CONTACT_FIELDS}

    @property
    def coordinates(self) -> dict:
        """GeoJSON point, longitude first."""
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}
