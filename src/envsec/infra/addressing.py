"""Parameter addressing for the SSM store.

Two strategies locate a secret in Parameter Store:

* Path addressing (default): the parameter name is the deterministic path
  ``/jetpack-data/env/<org>/<project>/<env>/<name>`` and an environment is
  listed with a single recursive get-by-path query.
* Tag addressing: used when the configuration supplies custom path
  functions. Parameters are located by equality filters on the ``org-id``,
  ``project-id`` and ``env-name`` tags attached on creation.

Everything here is pure so it can be tested without a provider.
"""

import posixpath
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..domain.env_id import EnvironmentID
from ..domain.errors import ValidationError

PATH_PREFIX = "/jetpack-data/env"

TAG_PROJECT_ID = "project-id"
TAG_ORG_ID = "org-id"
TAG_ENV_NAME = "env-name"
TAG_NAME = "name"

VarPathFn = Callable[[EnvironmentID, str], str]
PathNamespaceFn = Callable[[EnvironmentID], str]


@dataclass(frozen=True)
class SSMConfig:
    """Parameter Store connection and addressing configuration."""

    region: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    session_token: str = ""
    kms_key_id: str = ""
    endpoint_url: Optional[str] = None
    connect_timeout: float = 5.0
    read_timeout: float = 30.0

    var_path_fn: Optional[VarPathFn] = None
    path_namespace_fn: Optional[PathNamespaceFn] = None

    def has_static_credentials(self) -> bool:
        """Check if explicit credentials were supplied."""
        return bool(self.access_key_id and self.secret_access_key) or bool(self.session_token)

    def has_default_paths(self) -> bool:
        """Check if path addressing applies."""
        return self.var_path_fn is None and self.path_namespace_fn is None

    def path_namespace(self, env_id: EnvironmentID) -> str:
        """Root path under which an organization's parameters live."""
        if self.path_namespace_fn is not None:
            return self.path_namespace_fn(env_id)
        return join_path(PATH_PREFIX, env_id.org_id)

    def var_path(self, env_id: EnvironmentID, name: str) -> str:
        """Provider identifier of a secret; an empty name yields the listing root."""
        # Names are a single path segment
        if "/" in name or name in (".", ".."):
            raise ValidationError(f"invalid secret name {name!r}")
        if self.var_path_fn is not None:
            return self.var_path_fn(env_id, name)
        return join_path(self.path_namespace(env_id), env_id.project_id, env_id.env_name, name)


def join_path(*parts: str) -> str:
    """Join path segments, skipping empty ones, and clean the result."""
    joined = "/".join(p for p in parts if p)
    if not joined:
        return ""
    return posixpath.normpath(joined)


def name_from_path(path: str) -> str:
    """Secret name encoded in the last segment of a parameter path."""
    return path.split("/")[-1]


def build_tags(env_id: EnvironmentID, name: str) -> List[Dict[str, str]]:
    """Tags identifying a secret, one per non-empty component."""
    pairs = [
        (TAG_PROJECT_ID, env_id.project_id),
        (TAG_ORG_ID, env_id.org_id),
        (TAG_ENV_NAME, env_id.env_name),
        (TAG_NAME, name),
    ]
    return [{"Key": key, "Value": value} for key, value in pairs if value]


def build_filters(config: SSMConfig, env_id: EnvironmentID) -> List[Dict[str, Any]]:
    """describe_parameters filters selecting an environment's secrets."""
    filters: List[Dict[str, Any]] = [
        {
            "Key": "Path",
            "Option": "Recursive",
            "Values": [config.path_namespace(env_id)],
        }
    ]
    for key, value in (
        (TAG_PROJECT_ID, env_id.project_id),
        (TAG_ORG_ID, env_id.org_id),
        (TAG_ENV_NAME, env_id.env_name),
    ):
        if value:
            filters.append({"Key": f"tag:{key}", "Option": "Equals", "Values": [value]})
    return filters


def parse_faulty_parameter(message: str) -> str:
    """Extract the parameter name from an access-denied error message.

    The message names the resource ARN, e.g. ``... on resource:
    arn:aws:ssm:us-west-2:1234:parameter/jetpack-data/env/o/p/dev/SECRET
    because ...``.
    """
    resource = message.split("/")[-1]
    return resource.split(" ")[0]
