"""Main client class for the fuusorpy package."""

import json as jsonlib
import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import requests

from .dataset import DataSet
from .exceptions import (
    AuthenticationError, ConfigurationError, FuusorAPIError, ValidationError
)
from .models import DataSetOptions
from .user_groups import UserGroupAPI
from .users import UserAPI
from .utils import (
    TokenCache, handle_api_errors, minimize_keys, parse_response_body, validate_email
)

logger = logging.getLogger(__name__)

DATASET_UPLOAD_SCOPE = "fileupload"

class FuusorClient:
    """
    Main client for accessing the Fuusor API.

    The client authenticates with the OAuth2 password grant and caches one
    access token per scope until it expires. It gives access to the dataset
    upload and to the user and user group APIs.
    """

    DEFAULT_URI_CONNECT = "https://api.fuusor.fi/connect/token"
    DEFAULT_URI_UPLOAD_FILE = "https://api.fuusor.fi/api/v1/uploadfile"
    DEFAULT_URI_DATASET = "https://api.fuusor.fi/api/v1/dataset"
    DEFAULT_URI_BASE = "https://api.fuusor.fi/api/v1"
    DEFAULT_TIMEOUT = 60
    FILE_TYPE = "JsonTransformer"

    def __init__(self,
                 client_id: str,
                 client_secret: str,
                 username: str,
                 password: str,
                 uri_connect: Optional[str] = None,
                 uri_upload_file: Optional[str] = None,
                 uri_dataset: Optional[str] = None,
                 uri_base: Optional[str] = None,
                 timeout: Optional[float] = None,
                 token_cache: Optional[TokenCache] = None):
        """
        Initialize the Fuusor client.

        Args:
            client_id: OAuth client id
            client_secret: OAuth client secret
            username: Fuusor user name
            password: Fuusor password
            uri_connect: Token endpoint
            uri_upload_file: Legacy file upload endpoint
            uri_dataset: Dataset upload endpoint
            uri_base: Base URI for the user and user group APIs
            timeout: Timeout in seconds applied to every request
            token_cache: Token cache to use instead of a new empty one

        Raises:
            ConfigurationError: If any credential is missing
        """
        if not client_id:
            raise ConfigurationError("Missing client_id")
        if not client_secret:
            raise ConfigurationError("Missing client_secret")
        if not username:
            raise ConfigurationError("Missing username")
        if not password:
            raise ConfigurationError("Missing password")

        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password

        self.uri_connect = uri_connect or self.DEFAULT_URI_CONNECT
        self.uri_upload_file = uri_upload_file or self.DEFAULT_URI_UPLOAD_FILE
        self.uri_dataset = uri_dataset or self.DEFAULT_URI_DATASET
        self.uri_base = uri_base or self.DEFAULT_URI_BASE
        self.timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT

        self.session = requests.Session()
        self.tokens = token_cache if token_cache is not None else TokenCache()

        # Initialize API handlers
        self.users = UserAPI(self)
        self.user_groups = UserGroupAPI(self)

    def __repr__(self) -> str:
        return f"FuusorClient(username={self.username!r}, uri_base={self.uri_base!r})"

    def __enter__(self) -> "FuusorClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    @staticmethod
    def validate_email(value: Any) -> bool:
        return validate_email(value)

    def create_dataset(self, options: Union[DataSetOptions, Mapping[str, Any], None] = None,
                       **kwargs) -> DataSet:
        """
        Create a dataset bound to this client.

        Defining ``primary_date`` together with ``begin`` and ``end`` replaces
        the Fuusor data in that time frame.

        Args:
            options: DataSetOptions or a dict with ``group_id`` (company id
                from Fuusor settings), ``dataset_id``, ``dataset_name``,
                ``dataset_type`` and optional ``begin``, ``end``,
                ``primary_date`` and ``periods``
            **kwargs: The same options as keyword arguments

        Returns:
            DataSet object

        Examples:
            dataset = client.create_dataset(
                group_id="g1",
                dataset_id="invoices",
                dataset_name="Invoices",
                dataset_type="Invoices",
            )
        """
        return DataSet(self, options, **kwargs)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def _fetch_access_token(self, scope: str) -> Tuple[str, Any]:
        """Request a new token from the token endpoint with the password grant."""
        payload = {
            "scope": scope,
            "grant_type": "password",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "username": self.username,
            "password": self.password,
            "filetype": self.FILE_TYPE,
        }
        logger.debug("Fetching access token for scope '%s'", scope)
        try:
            response = self.session.request(
                "POST", self.uri_connect, data=payload, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise AuthenticationError(f"Failed to connect to token endpoint: {e}") from e

        handle_api_errors(response)

        try:
            token_info = response.json()
        except ValueError as e:
            raise AuthenticationError(f"Failed to parse token response: {e}") from e

        access_token = token_info.get("access_token") if isinstance(token_info, dict) else None
        if not access_token:
            raise AuthenticationError("Token response did not contain an access_token")

        return access_token, token_info.get("expires_in")

    def refresh_access_token(self, scope: str) -> str:
        """
        Get an access token for a scope, fetching one only when none is cached.

        Args:
            scope: OAuth scope, e.g. ``fileupload`` or ``users``

        Returns:
            Access token string
        """
        return self.tokens.get_or_fetch(scope, lambda: self._fetch_access_token(scope))

    def clear_token_cache(self) -> None:
        """Forget all cached access tokens."""
        self.tokens.clear()

    def fetch_access_token_for_dataset_upload(self) -> str:
        """Get an access token for the dataset upload scope."""
        return self.refresh_access_token(DATASET_UPLOAD_SCOPE)

    # ------------------------------------------------------------------
    # HTTP requests
    # ------------------------------------------------------------------
    def _build_url(self, path: str) -> str:
        return f"{self.uri_base.rstrip('/')}/{path.lstrip('/')}"

    def _send(self, method: str, url: str, access_token: str, **kwargs) -> requests.Response:
        headers = {"Authorization": f"Bearer {access_token}"}
        headers.update(kwargs.pop("headers", {}))

        logger.debug("Request: %s %s", method, url)
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.exceptions.InvalidJSONError as e:
            raise ValidationError(f"Request body for {url} is not valid JSON: {e}") from e
        except requests.exceptions.RequestException as e:
            raise FuusorAPIError(f"Failed to connect to {url}: {e}") from e

        handle_api_errors(response)
        return response

    def request(self,
                scope: str,
                path: str,
                method: str = "GET",
                json: Optional[Any] = None,
                params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Make an authenticated request to the Fuusor API.

        Args:
            scope: OAuth scope of the token to use
            path: Path relative to ``uri_base``
            method: HTTP method
            json: JSON body
            params: Query parameters

        Returns:
            Parsed JSON response body

        Raises:
            HttpError: If the response status is not 200
        """
        access_token = self.refresh_access_token(scope)

        kwargs = {}
        if json is not None:
            kwargs["json"] = json
        if params is not None:
            kwargs["params"] = params

        response = self._send(method.upper(), self._build_url(path), access_token, **kwargs)
        return parse_response_body(response)

    def upload_dataset(self, payload: Dict[str, Any]) -> None:
        """Upload a serialized dataset to the dataset endpoint."""
        access_token = self.refresh_access_token(DATASET_UPLOAD_SCOPE)
        self._send("POST", self.uri_dataset, access_token, json=payload)

    def save_dataset(self, access_token: str, data: Dict[str, Any]) -> None:
        """
        Upload dataset data to the legacy file upload endpoint.

        Args:
            access_token: Token from :meth:`fetch_access_token_for_dataset_upload`
            data: Dataset payload; top-level keys are lower-cased before sending
        """
        body = jsonlib.dumps(minimize_keys(data))
        self._send(
            "POST", self.uri_upload_file, access_token,
            data=body,
            headers={"Content-Type": "application/octet-stream"},
        )
