"""Pydantic schemas for the remote secrets service wire format."""

import base64
from typing import Optional, Dict, List
from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base for messages encoded as camelCase JSON."""

    model_config = ConfigDict(populate_by_name=True)


class Secret(WireModel):
    """A secret with one value per environment.

    Values are bytes on the wire, encoded as base64 strings.
    """

    name: str = Field(..., description="Secret name")
    environment_values: Dict[str, str] = Field(
        default_factory=dict, alias="environmentValues", description="Base64 value per environment"
    )

    @classmethod
    def for_environment(cls, name: str, env_name: str, value: str) -> "Secret":
        """Create a secret carrying a single environment's value."""
        encoded = base64.b64encode(value.encode("utf-8", "surrogateescape")).decode("ascii")
        return cls(name=name, environment_values={env_name: encoded})

    def value_for(self, env_name: str) -> Optional[str]:
        """Decoded value for an environment, or None if unset or empty."""
        encoded = self.environment_values.get(env_name)
        if not encoded:
            return None
        # Bytes that are not UTF-8 survive as surrogates and encode back unchanged
        value = base64.b64decode(encoded).decode("utf-8", "surrogateescape")
        return value or None


class ListSecretsRequest(WireModel):
    """ListSecrets request."""

    project_id: str = Field(..., alias="projectId")


class ListSecretsResponse(WireModel):
    """ListSecrets response."""

    secrets: List[Secret] = Field(default_factory=list)


class PatchSecretRequest(WireModel):
    """PatchSecret request."""

    project_id: str = Field(..., alias="projectId")
    secret: Secret


class DeleteSecretRequest(WireModel):
    """DeleteSecret request."""

    project_id: str = Field(..., alias="projectId")
    secret_name: str = Field(..., alias="secretName")
    environments: List[str] = Field(default_factory=list)


class Action(WireModel):
    """One action of a Batch request; exactly one field is set."""

    patch_secret: Optional[PatchSecretRequest] = Field(None, alias="patchSecret")
    delete_secret: Optional[DeleteSecretRequest] = Field(None, alias="deleteSecret")


class BatchRequest(WireModel):
    """Batch request."""

    actions: List[Action] = Field(default_factory=list)


class ErrorResponse(WireModel):
    """Connect error body."""

    code: str = Field("unknown", description="Error code")
    message: str = Field("", description="Error message")
