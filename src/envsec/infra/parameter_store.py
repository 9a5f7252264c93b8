"""Parameter Store backed secret store."""

import os
import boto3
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..domain.env_id import EnvironmentID
from ..domain.errors import AggregateError, BatchItemError, FaultyParameterError, ValueTooLargeError
from ..domain.interfaces import Logger, Store
from ..domain.secret import SecretEntry, sort_entries
from .addressing import SSMConfig, build_filters, build_tags, name_from_path, parse_faulty_parameter
from .logger import StructLogger
from .xray import xray_capture

# SecureString parameters cannot hold an empty string
EMPTY_STRING_PLACEHOLDER = "__###EMPTY_STRING###__"

# Parameter values are limited in size to 4KB
PARAMETER_VALUE_MAX_LENGTH = 4 * 1024

# get_parameters and delete_parameters accept at most 10 names per call
BATCH_SIZE = 10


@dataclass
class Parameter:
    """A parameter about to be written."""

    provider_id: str
    description: str = ""
    tags: List[Dict[str, str]] = field(default_factory=list)


def to_provider_value(value: str) -> str:
    """Map a secret value to its stored form."""
    return EMPTY_STRING_PLACEHOLDER if value == "" else value


def from_provider_value(value: str) -> str:
    """Map a stored value back to the secret value."""
    return "" if value == EMPTY_STRING_PLACEHOLDER else value


def chunked(items: Sequence[Any], size: int = BATCH_SIZE) -> Iterator[Sequence[Any]]:
    """Split items into consecutive groups of at most size elements."""
    for start in range(0, len(items), size):
        yield items[start:start + size]


def error_code(error: ClientError) -> str:
    """Provider error code of a ClientError."""
    return error.response.get("Error", {}).get("Code", "")


def error_message(error: ClientError) -> str:
    """Provider error message of a ClientError."""
    return error.response.get("Error", {}).get("Message", "")


def create_ssm_client(config: SSMConfig) -> Any:
    """Create an SSM client honoring the configured credentials and timeouts."""
    credentials: Dict[str, Any] = {}
    if config.has_static_credentials():
        credentials = {
            "aws_access_key_id": config.access_key_id or None,
            "aws_secret_access_key": config.secret_access_key or None,
            "aws_session_token": config.session_token or None,
        }
    return boto3.client(
        "ssm",
        region_name=config.region or None,
        endpoint_url=config.endpoint_url or os.getenv("AWS_ENDPOINT_URL"),
        config=Config(
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            # Retrying is left to the caller
            retries={"total_max_attempts": 1},
        ),
        **credentials,
    )


class ParameterStoreBackend(Store):
    """Secret store on top of AWS Systems Manager Parameter Store."""

    def __init__(self, config: SSMConfig, client: Any = None, logger: Optional[Logger] = None):
        """Initialize SSM store."""
        self.config = config
        self.ssm = client if client is not None else create_ssm_client(config)
        self.logger = logger or StructLogger("ssm-store")

    def list(self, env_id: EnvironmentID) -> List[SecretEntry]:
        """List all secrets of an environment, sorted by name."""
        if self.config.has_default_paths():
            return self._list_by_path(env_id)
        return self._list_by_tags(env_id)

    def get(self, env_id: EnvironmentID, name: str) -> Optional[str]:
        """Get the value of a secret, or None if it does not exist."""
        entries = self.get_all(env_id, [name])
        if not entries:
            return None
        return entries[0].value

    def get_all(self, env_id: EnvironmentID, names: List[str]) -> List[SecretEntry]:
        """Get the values of several secrets.

        Unknown names are left out of the result. Any provider error aborts
        the whole request.
        """
        paths = [self.config.var_path(env_id, name) for name in dict.fromkeys(names)]
        return self._get_parameters(paths)

    def set(self, env_id: EnvironmentID, name: str, value: str) -> None:
        """Create a secret, overwriting it if it already exists."""
        parameter = Parameter(
            provider_id=self.config.var_path(env_id, name),
            tags=build_tags(env_id, name),
        )
        self._new_parameter(parameter, name, value)

    def set_all(self, env_id: EnvironmentID, values: Dict[str, str]) -> None:
        """Set every secret, then report all failures together."""
        errors: List[Exception] = []
        for name, value in values.items():
            try:
                self.set(env_id, name, value)
            except ValueTooLargeError as e:
                errors.append(e)
            except (ClientError, BotoCoreError) as e:
                errors.append(BatchItemError("set", [name], e))

        if errors:
            self.logger.warning(
                "Failed to set some parameters",
                env_name=env_id.env_name,
                failed=len(errors),
                total=len(values),
            )
            raise AggregateError(errors)

    def delete(self, env_id: EnvironmentID, name: str) -> None:
        """Delete a secret."""
        try:
            self.delete_all(env_id, [name])
        except AggregateError as e:
            errors = e.errors()
            if len(errors) == 1:
                raise errors[0]
            raise

    def delete_all(self, env_id: EnvironmentID, names: List[str]) -> None:
        """Delete secrets in provider-sized batches.

        Every batch is attempted even when an earlier one fails. Failures are
        raised together as an AggregateError once all batches have run.
        """
        targets = [(name, self.config.var_path(env_id, name)) for name in dict.fromkeys(names)]
        errors: List[Exception] = []
        for batch in chunked(targets):
            error = self._delete_batch(batch)
            if error is not None:
                errors.append(error)

        if errors:
            self.logger.warning(
                "Failed to delete some parameters",
                env_name=env_id.env_name,
                failed_batches=len(errors),
                total=len(targets),
            )
            raise AggregateError(errors)

    @xray_capture("ssm_list_by_path")
    def _list_by_path(self, env_id: EnvironmentID) -> List[SecretEntry]:
        """List an environment with one recursive get-by-path query."""
        path = self.config.var_path(env_id, "")
        entries = [
            SecretEntry(
                name=name_from_path(p["Name"]),
                value=from_provider_value(p["Value"]),
            )
            for p in self._paginate(
                "get_parameters_by_path",
                "Parameters",
                Path=path,
                Recursive=True,
                WithDecryption=True,
            )
        ]
        self.logger.debug("Listed parameters by path", path=path, count=len(entries))
        return sort_entries(entries)

    @xray_capture("ssm_list_by_tags")
    def _list_by_tags(self, env_id: EnvironmentID) -> List[SecretEntry]:
        """List an environment through its tags, then fetch the values."""
        provider_ids = [
            p["Name"]
            for p in self._paginate(
                "describe_parameters",
                "Parameters",
                ParameterFilters=build_filters(self.config, env_id),
            )
        ]
        self.logger.debug("Described parameters by tags", count=len(provider_ids))
        return self._get_parameters(provider_ids)

    @xray_capture("ssm_get_parameters")
    def _get_parameters(self, provider_ids: List[str]) -> List[SecretEntry]:
        """Fetch decrypted values in provider-sized batches."""
        entries: List[SecretEntry] = []
        for batch in chunked(provider_ids):
            response = self.ssm.get_parameters(Names=list(batch), WithDecryption=True)
            for p in response.get("Parameters", []):
                entries.append(
                    SecretEntry(
                        name=name_from_path(p["Name"]),
                        value=from_provider_value(p["Value"]),
                    )
                )
            invalid = response.get("InvalidParameters", [])
            if invalid:
                self.logger.debug("Parameters not found", names=invalid)
        return sort_entries(entries)

    @xray_capture("ssm_put_parameter")
    def _new_parameter(self, parameter: Parameter, name: str, value: str) -> None:
        """Create a parameter, falling back to an overwrite if it exists."""
        size = len(value.encode("utf-8"))
        if size > PARAMETER_VALUE_MAX_LENGTH:
            raise ValueTooLargeError(name, size, PARAMETER_VALUE_MAX_LENGTH)

        request = self._put_request(parameter, value)
        request["Tags"] = parameter.tags
        try:
            self.ssm.put_parameter(**request)
        except ClientError as e:
            if error_code(e) != "ParameterAlreadyExists":
                raise
            self.logger.debug("Parameter exists, overwriting", provider_id=parameter.provider_id)
            self._overwrite_parameter(parameter, value)

    def _overwrite_parameter(self, parameter: Parameter, value: str) -> None:
        """Replace the value of an existing parameter."""
        # Tags cannot be combined with Overwrite
        request = self._put_request(parameter, value)
        request["Overwrite"] = True
        self.ssm.put_parameter(**request)

    def _put_request(self, parameter: Parameter, value: str) -> Dict[str, Any]:
        """Common put_parameter arguments."""
        request: Dict[str, Any] = {
            "Name": parameter.provider_id,
            "Type": "SecureString",
            "Value": to_provider_value(value),
        }
        if parameter.description:
            request["Description"] = parameter.description
        # Without a key id SSM uses the account's default key
        if self.config.kms_key_id:
            request["KeyId"] = self.config.kms_key_id
        return request

    @xray_capture("ssm_delete_parameters")
    def _delete_batch(self, batch: Sequence[Tuple[str, str]]) -> Optional[Exception]:
        """Delete one batch, returning its failure instead of raising it."""
        names = [name for name, _ in batch]
        try:
            response = self.ssm.delete_parameters(Names=[path for _, path in batch])
        except ClientError as e:
            if error_code(e) == "AccessDeniedException":
                faulty = parse_faulty_parameter(error_message(e))
                self.logger.warning("Access denied deleting parameter", name=faulty)
                return FaultyParameterError(faulty, e, names)
            return BatchItemError("delete", names, e)
        except BotoCoreError as e:
            return BatchItemError("delete", names, e)

        invalid = response.get("InvalidParameters", [])
        if invalid:
            self.logger.debug("Parameters to delete did not exist", names=invalid)
        return None

    def _paginate(self, operation: str, result_key: str, **kwargs: Any) -> Iterator[Dict[str, Any]]:
        """Yield results across every page of a paginated SSM call."""
        paginator = self.ssm.get_paginator(operation)
        for page in paginator.paginate(**kwargs):
            yield from page.get(result_key, [])
