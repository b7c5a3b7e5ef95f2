"""
Database models. Importing this package registers every table on Base.metadata.
"""

from georegistry.models.user import User
from georegistry.models.location import Location

__all__ = ["User", "Location"]
