"""User group API functionality for managing Fuusor user groups."""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from .exceptions import ConfigurationError, ValidationError
from .models import UserGroup
from .utils import validate_email

USERS_SCOPE = "users"

class UserGroupAPI:
    """Handler for Fuusor User Group API operations."""

    def __init__(self, client):
        if client is None:
            raise ConfigurationError("Missing client")
        self.client = client

    def request(self, method: str, uri: str, json: Optional[Any] = None,
                params: Optional[Dict[str, Any]] = None) -> Any:
        """Make a request to the Fuusor User Group API."""
        return self.client.request(USERS_SCOPE, f"UserGroup/{uri}", method, json, params)

    def get_all(self) -> List[UserGroup]:
        """Get all user groups."""
        return [UserGroup.from_dict(item) for item in self.request("GET", "Get") or []]

    def get_all_as_dataframe(self) -> pd.DataFrame:
        """Get all user groups as a pandas DataFrame."""
        return pd.DataFrame([asdict(group) for group in self.get_all()],
                            columns=["id", "name", "description", "users"])

    def _validate_members(self, id: str, users: List[str]) -> None:
        if not id:
            raise ValidationError("Missing id")
        if users is None:
            raise ValidationError("Missing users")
        if not isinstance(users, (list, tuple)):
            raise ValidationError("Invalid users")

        invalid = [user for user in users if not validate_email(user)]
        if invalid:
            raise ValidationError(f"Invalid users: {', '.join(map(str, invalid))}")

    def add_users(self, id: str, users: List[str]) -> Any:
        """
        Add users to a user group.

        Args:
            id: User group id
            users: List of user emails
        """
        self._validate_members(id, users)
        return self.request("POST", "AddUsers", {"id": id, "users": list(users)})

    def remove_users(self, id: str, users: List[str]) -> Any:
        """
        Remove users from a user group.

        Args:
            id: User group id
            users: List of user emails
        """
        self._validate_members(id, users)
        return self.request("DELETE", "RemoveUsers", {"id": id, "users": list(users)})
