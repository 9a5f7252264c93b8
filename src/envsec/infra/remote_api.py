"""Secret store backed by the remote secrets service."""

import requests
from typing import Any, Dict, Final, List, Optional
from pydantic import BaseModel

from ..api.schemas import (
    Action,
    BatchRequest,
    DeleteSecretRequest,
    ErrorResponse,
    ListSecretsRequest,
    ListSecretsResponse,
    PatchSecretRequest,
    Secret,
)
from ..domain.env_id import EnvironmentID
from ..domain.errors import RemoteAPIError
from ..domain.interfaces import Logger, Store
from ..domain.secret import SecretEntry, sort_entries
from .logger import StructLogger
from .xray import xray_capture

CONNECT_TIMEOUT: Final[float] = 5.0
READ_TIMEOUT: Final[float] = 30.0

SERVICE_PATH: Final[str] = "priv.secrets.v1alpha1.SecretsService"


class RemoteAPIBackend(Store):
    """Store secrets as documents holding one value per environment."""

    def __init__(
        self,
        api_host: str,
        access_token: str,
        session: Optional[requests.Session] = None,
        logger: Optional[Logger] = None,
        connect_timeout: float = CONNECT_TIMEOUT,
        read_timeout: float = READ_TIMEOUT,
    ):
        """Initialize remote API store."""
        self.api_host = api_host.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
                "Connect-Protocol-Version": "1",
            }
        )
        self.timeout = (connect_timeout, read_timeout)
        self.logger = logger or StructLogger("remote-store")

    def list(self, env_id: EnvironmentID) -> List[SecretEntry]:
        """List secrets that have a value in the environment."""
        data = self._call("ListSecrets", ListSecretsRequest(project_id=env_id.project_id))
        response = ListSecretsResponse.model_validate(data)
        entries = []
        for secret in response.secrets:
            value = secret.value_for(env_id.env_name)
            if value is not None:
                entries.append(SecretEntry(name=secret.name, value=value))
        return sort_entries(entries)

    def get(self, env_id: EnvironmentID, name: str) -> Optional[str]:
        """Get the value of a secret, or None if it does not exist."""
        for entry in self.list(env_id):
            if entry.name == name:
                return entry.value
        return None

    def get_all(self, env_id: EnvironmentID, names: List[str]) -> List[SecretEntry]:
        """Get the values of several secrets."""
        wanted = set(names)
        return [entry for entry in self.list(env_id) if entry.name in wanted]

    def set(self, env_id: EnvironmentID, name: str, value: str) -> None:
        """Create or overwrite a secret."""
        self._call("PatchSecret", self._patch(env_id, name, value))

    def set_all(self, env_id: EnvironmentID, values: Dict[str, str]) -> None:
        """Create or overwrite several secrets in one batch call."""
        if not values:
            return
        actions = [Action(patch_secret=self._patch(env_id, name, value)) for name, value in values.items()]
        self._call("Batch", BatchRequest(actions=actions))

    def delete(self, env_id: EnvironmentID, name: str) -> None:
        """Delete a secret from the environment."""
        self._call("DeleteSecret", self._delete(env_id, name))

    def delete_all(self, env_id: EnvironmentID, names: List[str]) -> None:
        """Delete several secrets in one batch call."""
        if not names:
            return
        actions = [Action(delete_secret=self._delete(env_id, name)) for name in names]
        self._call("Batch", BatchRequest(actions=actions))

    @staticmethod
    def _patch(env_id: EnvironmentID, name: str, value: str) -> PatchSecretRequest:
        return PatchSecretRequest(
            project_id=env_id.project_id,
            secret=Secret.for_environment(name, env_id.env_name, value),
        )

    @staticmethod
    def _delete(env_id: EnvironmentID, name: str) -> DeleteSecretRequest:
        return DeleteSecretRequest(
            project_id=env_id.project_id,
            secret_name=name,
            environments=[env_id.env_name],
        )

    @xray_capture("secrets_api_call")
    def _call(self, method: str, request: BaseModel) -> Dict[str, Any]:
        """Issue a unary RPC and return the decoded response body."""
        url = f"{self.api_host}/{SERVICE_PATH}/{method}"
        self.logger.debug("Calling secrets service", method=method)
        response = self.session.post(
            url,
            data=request.model_dump_json(by_alias=True, exclude_none=True),
            timeout=self.timeout,
        )
        if not response.ok:
            try:
                error = ErrorResponse.model_validate(response.json())
            except ValueError:
                error = ErrorResponse(code=str(response.status_code), message=response.text)
            raise RemoteAPIError(error.code, error.message, response.status_code)
        if not response.content:
            return {}
        return response.json()
