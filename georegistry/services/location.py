"""
Location service: validated CRUD, proximity and text search over locations.

List-style reads only ever return active locations; a fetch by identifier
returns the record whatever its is_active flag.
"""

import logging
import re
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.dialects.mysql import match as mysql_match
from sqlalchemy.orm import Session

from georegistry.core import geo
from georegistry.core.config import settings
from georegistry.core.database import transaction, translate_store_errors, with_transaction_retry
from georegistry.core.errors import NotFoundError, ValidationError
from georegistry.models.base import is_valid_id, utcnow
from georegistry.models.location import Location, ADDRESS_FIELDS, CONTACT_FIELDS
from georegistry.schemas.location import LocationCreate, LocationFilter, LocationPatch
from georegistry.schemas.user import UserIdentity
from georegistry.services.auth import require_owner_or_admin
from georegistry.services.user import check_email

logger = logging.getLogger(__name__)

PROFILE_BASIC = "basic"
PROFILE_BUSINESS = "business"

REQUIRED_FIELDS = {
    PROFILE_BASIC: ("name", "category", "coordinates"),
    PROFILE_BUSINESS: ("name", "category", "coordinates", "company_name", "municipality"),
}

# Plain string fields copied to same-named columns
SIMPLE_FIELDS = ("name", "description", "category", "company_name", "municipality", "tax_id", "activity_code")

# Fields scored by the relevance search of the listing
RELEVANCE_COLUMNS = (
    Location.name,
    Location.address_street,
    Location.address_city,
    Location.address_state,
    Location.address_country,
)

# Fields scanned by the type-ahead search
SUBSTRING_COLUMNS = (
    Location.name,
    Location.category,
    Location.address_street,
    Location.address_city,
    Location.address_state,
    Location.address_country,
    Location.address_postal_code,
)

WORD_RE = re.compile(r"\w+", re.UNICODE)


class LocationMatch(NamedTuple):
    """A listed location and, for proximity listings, its distance in meters."""

    location: Location
    distance_meters: Optional[float] = None


def required_fields() -> tuple:
    return REQUIRED_FIELDS.get(settings.LOCATION_PROFILE, REQUIRED_FIELDS[PROFILE_BASIC])


def check_location_id(location_id: str) -> str:
    """Validate a location identifier and return it in its stored, lower-case form."""
    if not is_valid_id(location_id):
        raise ValidationError.single("id", "Invalid identifier")
    return location_id.lower()


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_coordinates(point: Optional[Dict[str, Any]], errors: List[Dict[str, str]]) -> None:
    coordinates = (point or {}).get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
        errors.append({"field": "coordinates", "message": "Coordinates must be [longitude, latitude]"})
        return
    lng, lat = coordinates
    if not geo.is_valid_longitude(lng):
        errors.append({"field": "coordinates", "message": "Longitude must be between -180 and 180"})
    if not geo.is_valid_latitude(lat):
        errors.append({"field": "coordinates", "message": "Latitude must be between -90 and 90"})


def validate_fields(data: Dict[str, Any], partial: bool) -> None:
    """
    Check user-supplied location fields, collecting every violation.

    Args:
        data: Field values; for a partial update only the fields sent
        partial: When True absent fields are fine, but required ones cannot be nulled

    Raises:
        ValidationError: Listing every failing field
    """
    errors: List[Dict[str, str]] = []
    for field in required_fields():
        if partial and field not in data:
            continue
        if _blank(data.get(field)):
            errors.append({"field": field, "message": f"{field} is required"})

    if data.get("coordinates") is not None:
        _check_coordinates(data["coordinates"], errors)

    contact = data.get("contact") or {}
    if not _blank(contact.get("email")):
        check_email(contact["email"], errors, field="contact.email")

    if errors:
        raise ValidationError(errors)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def column_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map validated field values onto Location columns.

    Only keys present in ``data`` are mapped. A null address or contact clears
    every sub-field; a nested object only touches the sub-fields it carries.
    """
    values: Dict[str, Any] = {}
    for field in SIMPLE_FIELDS:
        if field in data:
            values[field] = _clean(data[field])

    if "coordinates" in data and data["coordinates"] is not None:
        lng, lat = data["coordinates"]["coordinates"]
        values["longitude"] = float(lng)
        values["latitude"] = float(lat)

    for group, sub_fields in (("address", ADDRESS_FIELDS), ("contact", CONTACT_FIELDS)):
        if group not in data:
            continue
        nested = data[group]
        for sub_field in sub_fields:
            if nested is None:
                values[f"{group}_{sub_field}"] = None
            elif sub_field in nested:
                values[f"{group}_{sub_field}"] = _clean(nested[sub_field])

    if values.get("contact_email"):
        values["contact_email"] = values["contact_email"].lower()
    return values


# PUBLIC_INTERFACE
@with_transaction_retry
def create_location(db: Session, actor: UserIdentity, location_data: LocationCreate) -> Location:
    """
    Create a location owned by the actor.

    Raises:
        ValidationError: Listing every missing or invalid field
    """
    data = location_data.model_dump()
    validate_fields(data, partial=False)

    db_location = Location(
        **column_values(data),
        owner_id=actor.id,
        is_active=True,
    )
    with transaction(db):
        db.add(db_location)

    logger.info(f"User {actor.id} created location {db_location.id}")
    return db_location


# PUBLIC_INTERFACE
def get_location(db: Session, location_id: str) -> Location:
    """
    Fetch a location by identifier, active or not.

    Raises:
        ValidationError: If the identifier is malformed
        NotFoundError: If no location has this identifier
    """
    location_id = check_location_id(location_id)
    with translate_store_errors():
        db_location = db.query(Location).filter(Location.id == location_id).first()
    if db_location is None:
        raise NotFoundError("Location not found")
    return db_location


def _check_proximity(filters: LocationFilter) -> None:
    errors: List[Dict[str, str]] = []
    if filters.lng is None or not geo.is_valid_longitude(filters.lng):
        errors.append({"field": "lng", "message": "lng must be between -180 and 180"})
    if filters.lat is None or not geo.is_valid_latitude(filters.lat):
        errors.append({"field": "lat", "message": "lat must be between -90 and 90"})
    if filters.radius is None or not filters.radius > 0:
        errors.append({"field": "radius", "message": "radius must be a positive number of kilometers"})
    if errors:
        raise ValidationError(errors)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def relevance_score(location: Location, terms: List[str]) -> int:
    """Count whole-word occurrences of the terms across the relevance fields."""
    score = 0
    for column in RELEVANCE_COLUMNS:
        text = getattr(location, column.key) or ""
        words = WORD_RE.findall(text.lower())
        score += sum(words.count(term) for term in terms)
    return score


def text_match(dialect_name: str, terms: List[str]) -> Tuple[Any, Any]:
    """
    Build the relevance search criterion for the given database dialect.

    MySQL answers from the FULLTEXT index and ranks the matches itself, so the
    MATCH expression is returned a second time as the score to order by.
    Elsewhere the criterion is a prefilter; relevance_score ranks the rows.

    Returns:
        Tuple of (WHERE criterion, score expression or None)
    """
    if dialect_name == "mysql":
        relevance = mysql_match(*RELEVANCE_COLUMNS, against=" ".join(terms))
        return relevance, relevance
    criterion = or_(*[
        column.ilike(f"%{_escape_like(term)}%", escape="\\")
        for term in terms
        for column in RELEVANCE_COLUMNS
    ])
    return criterion, None


# PUBLIC_INTERFACE
def list_locations(db: Session, filters: Optional[LocationFilter] = None) -> List[LocationMatch]:
    """
    List active locations matching every given filter dimension.

    Each result pairs the location with its distance from the requested point,
    which is None unless a proximity filter was given.

    - category: exact match
    - search: whole-word terms across name and address, any term may match,
      ordered by descending relevance
    - lng/lat/radius: within radius kilometers of the point, ordered by
      ascending distance; this ordering wins when combined with search

    Without filters every active location is returned, newest first.

    Raises:
        ValidationError: If the proximity filter is incomplete or out of range
    """
    filters = filters or LocationFilter()
    query = db.query(Location).filter(Location.is_active.is_(True))

    if filters.category:
        query = query.filter(Location.category == filters.category)

    terms: List[str] = []
    relevance = None
    if filters.search and filters.search.strip():
        terms = list(dict.fromkeys(WORD_RE.findall(filters.search.lower())))
        if not terms:
            return []
        criterion, relevance = text_match(db.get_bind().dialect.name, terms)
        query = query.filter(criterion)

    radius_meters = None
    if filters.has_proximity:
        _check_proximity(filters)
        # The only place the kilometer radius is turned into meters
        radius_meters = geo.km_to_meters(filters.radius)
        box = geo.bounding_box(filters.lng, filters.lat, radius_meters)
        query = query.filter(Location.latitude.between(box.min_lat, box.max_lat))
        if box.crosses_antimeridian:
            query = query.filter(or_(Location.longitude >= box.min_lng, Location.longitude <= box.max_lng))
        else:
            query = query.filter(and_(Location.longitude >= box.min_lng, Location.longitude <= box.max_lng))

    if relevance is not None:
        query = query.order_by(relevance.desc())
    with translate_store_errors():
        candidates = query.order_by(Location.created_at.desc()).all()

    if terms and relevance is None:
        scored = [(relevance_score(location, terms), location) for location in candidates]
        scored = [pair for pair in scored if pair[0] > 0]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        candidates = [location for _, location in scored]

    matches = [LocationMatch(location) for location in candidates]
    if radius_meters is not None:
        matches = []
        for location in candidates:
            distance = geo.within_radius(
                location.longitude, location.latitude, filters.lng, filters.lat, radius_meters
            )
            if distance is not None:
                matches.append(LocationMatch(location, distance))
        matches.sort(key=lambda match: match.distance_meters)

    logger.info(f"Listed {len(matches)} locations")
    return matches


# PUBLIC_INTERFACE
def search_locations(db: Session, term: str) -> List[Location]:
    """
    Type-ahead lookup: case-insensitive substring match on name, category or
    any address field, active locations only, at most SEARCH_RESULT_LIMIT results.

    Raises:
        ValidationError: If the term is blank
    """
    if term is None or not term.strip():
        raise ValidationError.single("q", "Search term is required")

    pattern = f"%{_escape_like(term.strip())}%"
    query = (
        db.query(Location)
        .filter(Location.is_active.is_(True))
        .filter(or_(*[column.ilike(pattern, escape="\\") for column in SUBSTRING_COLUMNS]))
        .order_by(Location.name)
        .limit(settings.SEARCH_RESULT_LIMIT)
    )
    with translate_store_errors():
        results = query.all()
    logger.info(f"Search for {term.strip()!r} matched {len(results)} locations")
    return results


# PUBLIC_INTERFACE
@with_transaction_retry
def update_location(
    db: Session, actor: UserIdentity, location_id: str, patch: LocationPatch
) -> Location:
    """
    Merge the fields present in the patch into a location.

    The write is a single conditional UPDATE keyed on id and owner, so
    concurrent patches touching different fields do not overwrite each other.

    Raises:
        ValidationError: If the identifier or a supplied field is invalid
        NotFoundError: If the location does not exist
        AuthorizationError: If the actor is neither the owner nor an admin
    """
    db_location = get_location(db, location_id)
    require_owner_or_admin(actor, db_location.owner_id)

    data = patch.model_dump(exclude_unset=True)
    validate_fields(data, partial=True)
    values = column_values(data)
    if not values:
        return db_location

    values["updated_at"] = utcnow()
    with transaction(db):
        updated = (
            db.query(Location)
            .filter(Location.id == db_location.id, Location.owner_id == db_location.owner_id)
            .update(values, synchronize_session=False)
        )
    if not updated:
        raise NotFoundError("Location not found")

    db.refresh(db_location)
    logger.info(f"User {actor.id} updated location {db_location.id}: {sorted(values)}")
    return db_location


# PUBLIC_INTERFACE
@with_transaction_retry
def soft_delete_location(db: Session, actor: UserIdentity, location_id: str) -> None:
    """
    Mark a location inactive. Deleting an inactive location is a no-op.

    Raises:
        ValidationError: If the identifier is malformed
        NotFoundError: If the location does not exist
        AuthorizationError: If the actor is neither the owner nor an admin
    """
    db_location = get_location(db, location_id)
    require_owner_or_admin(actor, db_location.owner_id)
    if not db_location.is_active:
        return

    with transaction(db):
        db.query(Location).filter(Location.id == db_location.id).update(
            {"is_active": False, "updated_at": utcnow()}, synchronize_session=False
        )
    db.refresh(db_location)
    logger.info(f"User {actor.id} soft-deleted location {db_location.id}")
