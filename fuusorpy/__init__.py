"""
fuusorpy - A Python client for the Fuusor reporting API

This package uploads datasets (dimension, date, value and description fields,
data rows and dimension hierarchies) to Fuusor and manages Fuusor users and
user groups. Access tokens are cached per OAuth scope for their lifetime.
"""

from .client import FuusorClient
from .dataset import DataSet
from .exceptions import (
    FuusorAPIError, ConfigurationError, ValidationError, NotFoundError,
    AuthenticationError, HttpError
)
from .models import (
    DataSetOptions, Period, FieldType, User, UserGroup, Created,
    DimensionFieldItem, DimensionHierarchyItem
)

__version__ = "0.1.0"

# Make the main client easily accessible
__all__ = [
    "FuusorClient",
    "DataSet",
    "DataSetOptions",
    "Period",
    "FieldType",
    "User",
    "UserGroup",
    "Created",
    "DimensionFieldItem",
    "DimensionHierarchyItem",
    "FuusorAPIError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "AuthenticationError",
    "HttpError"
]
