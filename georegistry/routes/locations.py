"""
Location API endpoints. Reads are public, writes need a bearer token.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from georegistry.core.database import get_db
from georegistry.models.location import Location
from georegistry.routes.deps import get_current_user, get_writable_location
from georegistry.schemas.location import LocationCreate, LocationFilter, LocationPatch, LocationResponse
from georegistry.schemas.user import UserIdentity
from georegistry.services import location as location_service


router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("/", response_model=List[LocationResponse])
def list_locations(
    category: Optional[str] = None,
    search: Optional[str] = None,
    lng: Optional[float] = None,
    lat: Optional[float] = None,
    radius: Optional[float] = Query(None, description="Radius in kilometers"),
    db: Session = Depends(get_db)
) -> List[LocationResponse]:
    """List active locations, optionally by category, text or proximity."""
    filters = LocationFilter(category=category, search=search, lng=lng, lat=lat, radius=radius)
    return [
        LocationResponse.from_match(match.location, match.distance_meters)
        for match in location_service.list_locations(db, filters)
    ]


@router.get("/search", response_model=List[LocationResponse])
def search_locations(
    q: str = Query("", description="Substring matched against name, category and address"),
    db: Session = Depends(get_db)
) -> List[LocationResponse]:
    """Type-ahead search, capped at ten results."""
    return location_service.search_locations(db, q)


@router.get("/{location_id}", response_model=LocationResponse)
def get_location(
    location_id: str,
    db: Session = Depends(get_db)
) -> LocationResponse:
    """Get location by ID, including soft-deleted ones."""
    return location_service.get_location(db, location_id)


@router.post("/", response_model=LocationResponse, status_code=201)
def create_location(
    location_data: LocationCreate,
    current: UserIdentity = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> LocationResponse:
    """Create a location owned by the caller."""
    return location_service.create_location(db, current, location_data)


@router.put("/{location_id}", response_model=LocationResponse)
@router.patch("/{location_id}", response_model=LocationResponse)
def update_location(
    patch: LocationPatch,
    location: Location = Depends(get_writable_location),
    current: UserIdentity = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> LocationResponse:
    """Apply the fields present in the body; owner or admin only."""
    return location_service.update_location(db, current, location.id, patch)


@router.delete("/{location_id}", status_code=204)
def delete_location(
    location: Location = Depends(get_writable_location),
    current: UserIdentity = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> None:
    """Soft-delete a location; owner or admin only."""
    location_service.soft_delete_location(db, current, location.id)
