"""Envsec composition root.

Builds the store once from the environment and hands back an explicit
``Envsec`` context. Programmatic users can skip this module and construct
``Envsec`` with their own store.
"""

import os
from dataclasses import replace
from typing import Optional

from .domain.env_id import EnvironmentID
from .domain.errors import ValidationError
from .domain.interfaces import Logger, Store
from .domain.token import Token
from .infra.federation import CredentialFederation
from .infra.file_cache import LocalCache
from .infra.logger import setup_logging, StructLogger
from .infra.parameter_store import ParameterStoreBackend
from .infra.remote_api import RemoteAPIBackend
from .infra.xray import setup_xray, tracing_enabled
from .service.envsec_service import Envsec

CACHE_APP_NAME = "jetpack.io/envsec"
DEFAULT_API_HOST = "https://api.jetpack.io"
DEFAULT_ENV_NAME = "dev"


def env_flag(key: str) -> bool:
    """Read a boolean environment variable."""
    return os.getenv(key, "").strip().lower() in ("1", "t", "true", "yes", "on")


def build_store(
    token: Optional[Token],
    logger: Logger,
    use_aws_store: bool = False,
    api_host: str = DEFAULT_API_HOST,
    federation: Optional[CredentialFederation] = None,
) -> Store:
    """Select and construct the store backend."""
    if use_aws_store:
        if federation is None:
            federation = CredentialFederation.from_environment(LocalCache(CACHE_APP_NAME), logger)
        config = federation.ssm_config_from_token(token)
        if not config.region and os.getenv("AWS_REGION"):
            config = replace(config, region=os.environ["AWS_REGION"])
        return ParameterStoreBackend(config, logger=logger)

    if token is None or not token.access_token:
        raise ValidationError("you must log in to use the remote secrets store")
    return RemoteAPIBackend(api_host, token.access_token, logger=logger)


def envsec_from_environment(
    token: Optional[Token],
    project_id: str,
    org_id: str = "",
    env_name: str = DEFAULT_ENV_NAME,
) -> Envsec:
    """Create an Envsec context configured from environment variables."""
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    setup_xray("envsec")
    logger = StructLogger("envsec")

    if not org_id and token is not None:
        claims = token.id_claims()
        if claims is not None:
            org_id = claims.org_id

    env_id = EnvironmentID.create(project_id, org_id, env_name)
    store = build_store(
        token,
        logger,
        use_aws_store=env_flag("ENVSEC_USE_AWS_STORE"),
        api_host=os.getenv("ENVSEC_API_HOST") or DEFAULT_API_HOST,
    )
    logger.info(
        "envsec ready",
        backend=type(store).__name__,
        environment=env_id.env_name,
        tracing=tracing_enabled(),
    )
    return Envsec(store, env_id, logger)
