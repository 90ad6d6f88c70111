"""User API functionality for managing Fuusor user accounts."""

from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from .exceptions import ConfigurationError, ValidationError
from .models import AuthenticationType, Created, Language, User
from .utils import validate_date, validate_email

USERS_SCOPE = "users"

_AUTHENTICATION_TYPES = {t.value for t in AuthenticationType}
_LANGUAGES = {lang.value for lang in Language}

def _coerce_user(user: Union[User, Mapping[str, Any]]) -> User:
    if isinstance(user, User):
        return User(user.user_name, user.authentication_type, user.language, user.valid_until)
    if isinstance(user, Mapping):
        return User.from_dict(user)
    raise ValidationError(f"Invalid user: {user!r}")

class UserAPI:
    """Handler for Fuusor User API operations."""

    def __init__(self, client):
        if client is None:
            raise ConfigurationError("Missing client")
        self.client = client

    def request(self, method: str, uri: str, json: Optional[Any] = None,
                params: Optional[Dict[str, Any]] = None) -> Any:
        """Make a request to the Fuusor User API."""
        return self.client.request(USERS_SCOPE, f"User/{uri}", method, json, params)

    def get_all(self) -> List[User]:
        """Get all user accounts."""
        return [User.from_dict(item) for item in self.request("GET", "Get") or []]

    def get_all_as_dataframe(self) -> pd.DataFrame:
        """
        Get all user accounts as a pandas DataFrame.

        Returns:
            DataFrame with one row per user
        """
        return pd.DataFrame([asdict(user) for user in self.get_all()],
                            columns=["user_name", "authentication_type", "language", "valid_until"])

    def create(self, user: Union[User, Mapping[str, Any]]) -> Created:
        """
        Create a new user account.

        Args:
            user: User or dict with ``user_name`` (login email) and optional
                ``authentication_type`` (``microsoft``, ``google`` or
                ``activationlink``, default ``microsoft``), ``language``
                (``fi-FI`` or ``en-US``, default ``fi-FI``) and
                ``valid_until`` (YYYY-MM-DD)

        Returns:
            Created result carrying the activation link for
            ``activationlink`` users
        """
        user = _coerce_user(user)

        if not user.user_name:
            raise ValidationError("Missing user.user_name")
        if not validate_email(user.user_name):
            raise ValidationError(f"Invalid user_name {user.user_name}")

        user.authentication_type = user.authentication_type or AuthenticationType.MICROSOFT.value
        if user.authentication_type not in _AUTHENTICATION_TYPES:
            raise ValidationError(f"Invalid user.authentication_type {user.authentication_type}")

        user.language = user.language or Language.FINNISH.value
        if user.language not in _LANGUAGES:
            raise ValidationError(f"Invalid user.language {user.language}")

        if user.valid_until is not None and not validate_date(user.valid_until):
            raise ValidationError(f"Invalid user.valid_until {user.valid_until}, use YYYY-MM-DD")

        result = self.request("POST", "Create", user.to_dict())

        if user.authentication_type == AuthenticationType.ACTIVATION_LINK.value:
            return Created(activation_link=result)
        return Created()

    def delete(self, user_name: str) -> None:
        """Delete a user account."""
        if not user_name:
            raise ValidationError("Missing user_name")
        if not validate_email(user_name):
            raise ValidationError(f"Invalid user_name {user_name}")

        self.request("DELETE", "Delete", params={"userName": user_name})
