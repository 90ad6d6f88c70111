"""Data models for the fuusorpy package."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

RowValue = Union[str, int, float, None]
Row = Dict[str, RowValue]

class FieldType(str, Enum):
    """Kinds of fields a dataset row can carry."""
    DIMENSION = "dimension"
    DATE = "date"
    VALUE = "value"
    DESCRIPTION = "description"

class AuthenticationType(str, Enum):
    MICROSOFT = "microsoft"
    GOOGLE = "google"
    ACTIVATION_LINK = "activationlink"

class Language(str, Enum):
    FINNISH = "fi-FI"
    ENGLISH = "en-US"

@dataclass
class Period:
    """A reporting period, e.g. a financial year."""
    begin: str  # YYYY-MM-DD
    end: str  # YYYY-MM-DD

    def to_dict(self) -> Dict[str, str]:
        return {"begin": self.begin, "end": self.end}

@dataclass
class DataSetOptions:
    """Identity and time frame of an uploaded dataset.

    Setting ``begin`` and ``end`` together with ``primary_date`` replaces the
    existing Fuusor data inside that time frame.
    """
    group_id: str  # Company id from Fuusor settings
    dataset_id: str  # Re-use the same id to update the dataset later
    dataset_name: str
    dataset_type: str  # Simple naming such as "Invoices"
    begin: Optional[str] = None
    end: Optional[str] = None
    primary_date: Optional[str] = None
    periods: Optional[List[Period]] = None

@dataclass
class DimensionFieldItem:
    id: Union[str, int]
    name: str

    def to_dict(self) -> Dict[str, Union[str, int]]:
        return {"id": self.id, "name": self.name}

@dataclass
class DimensionField:
    """Dimension field; its items act as automatic filters in reports."""
    id: str
    name: str
    items: List[DimensionFieldItem] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {"id": self.id, "name": self.name,
                "items": [item.to_dict() for item in self.items]}

@dataclass
class Field:
    """Date, value or description field."""
    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}

@dataclass
class DimensionHierarchyItem:
    """Node of a dimension hierarchy tree."""
    id: str
    name: str
    items: Optional[List[Union[str, int]]] = None  # dimension item ids
    children: Optional[List["DimensionHierarchyItem"]] = None

    def to_dict(self) -> Dict:
        result = {"id": self.id, "name": self.name}
        if self.items is not None:
            result["items"] = list(self.items)
        if self.children is not None:
            result["children"] = [child.to_dict() for child in self.children]
        return result

@dataclass
class DimensionHierarchy:
    id: str
    name: str
    dimension_id: str
    items: List[DimensionHierarchyItem] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "dimensionid": self.dimension_id,
            "id": self.id,
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
        }

@dataclass
class DataSetData:
    """Fields, hierarchies and rows accumulated by a dataset, in insertion order."""
    dimension_fields: List[DimensionField] = field(default_factory=list)
    date_fields: List[Field] = field(default_factory=list)
    value_fields: List[Field] = field(default_factory=list)
    description_fields: List[Field] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)
    dimension_hierarchies: List[DimensionHierarchy] = field(default_factory=list)

@dataclass
class User:
    """Fuusor user account."""
    user_name: str  # Email used for login
    authentication_type: Optional[str] = None  # Defaults to microsoft
    language: Optional[str] = None  # Defaults to fi-FI
    valid_until: Optional[str] = None  # Account expiration date, YYYY-MM-DD

    @classmethod
    def from_dict(cls, data: Dict) -> "User":
        """Build a User from camelCase or snake_case keys."""
        return cls(
            user_name=data.get("user_name", data.get("userName")),
            authentication_type=data.get("authentication_type", data.get("authenticationType")),
            language=data.get("language"),
            valid_until=data.get("valid_until", data.get("validUntil")),
        )

    def to_dict(self) -> Dict[str, str]:
        result = {"userName": self.user_name}
        if self.authentication_type is not None:
            result["authenticationType"] = self.authentication_type
        if self.language is not None:
            result["language"] = self.language
        if self.valid_until is not None:
            result["validUntil"] = self.valid_until
        return result

@dataclass
class UserGroup:
    id: str
    name: str
    description: Optional[str] = None
    users: Optional[List[str]] = None  # member emails

    @classmethod
    def from_dict(cls, data: Dict) -> "UserGroup":
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            description=data.get("description"),
            users=data.get("users"),
        )

@dataclass
class Created:
    """Result of a user creation; only activation link users get a link back."""
    activation_link: Optional[str] = None

    @property
    def has_activation_link(self) -> bool:
        return bool(self.activation_link)
