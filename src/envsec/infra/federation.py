"""Identity federation: ID token to temporary AWS credentials."""

import hashlib
import json
import os
import boto3
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
from botocore import UNSIGNED
from botocore.config import Config

from ..domain.errors import CacheError, CacheMissError
from ..domain.interfaces import Cache, Logger
from ..domain.token import Token
from .addressing import SSMConfig
from .logger import StructLogger
from .xray import xray_capture

CACHE_KEY_PREFIX = "awsfed"

DEFAULT_ACCOUNT_ID = "984256416385"
DEFAULT_IDENTITY_POOL_ID = "us-west-2:8111c156-085b-4ac5-b94d-f823205f6261"
DEFAULT_LEGACY_PROVIDER = "auth.jetpack.io"
DEFAULT_PROVIDER = "accounts.jetpack.io"
DEFAULT_REGION = "us-west-2"


@dataclass(frozen=True)
class Credentials:
    """Temporary AWS credentials."""

    access_key_id: str
    secret_key: str
    session_token: str
    expiration: datetime

    def to_json(self) -> bytes:
        """Serialize for the local cache."""
        return json.dumps(
            {
                "AccessKeyId": self.access_key_id,
                "SecretKey": self.secret_key,
                "SessionToken": self.session_token,
                "Expiration": self.expiration.isoformat(),
            }
        ).encode("utf-8")

    @classmethod
    def from_json(cls, data: bytes) -> "Credentials":
        """Deserialize from the local cache."""
        raw = json.loads(data)
        return cls(
            access_key_id=raw["AccessKeyId"],
            secret_key=raw["SecretKey"],
            session_token=raw["SessionToken"],
            expiration=datetime.fromisoformat(raw["Expiration"]),
        )

    @classmethod
    def from_response(cls, raw: Dict[str, Any]) -> "Credentials":
        """Build from a get_credentials_for_identity response."""
        return cls(
            access_key_id=raw["AccessKeyId"],
            secret_key=raw["SecretKey"],
            session_token=raw["SessionToken"],
            expiration=raw["Expiration"],
        )


def cache_key(token: Token) -> str:
    """Cache key for a token: its organization, or a hash of the ID token."""
    claims = token.id_claims()
    if claims is not None and claims.org_id:
        ident = claims.org_id
    else:
        ident = hashlib.sha256(token.id_token.encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}-{ident}"


class CredentialFederation:
    """Exchanges ID tokens for credentials through a Cognito identity pool."""

    def __init__(
        self,
        cache: Cache,
        account_id: str = DEFAULT_ACCOUNT_ID,
        identity_pool_id: str = DEFAULT_IDENTITY_POOL_ID,
        provider: str = DEFAULT_PROVIDER,
        legacy_provider: str = DEFAULT_LEGACY_PROVIDER,
        region: str = DEFAULT_REGION,
        client: Any = None,
        logger: Optional[Logger] = None,
    ):
        """Initialize federation."""
        self.cache = cache
        self.account_id = account_id
        self.identity_pool_id = identity_pool_id
        self.provider = provider
        self.legacy_provider = legacy_provider
        self.region = region
        self._client = client
        self.logger = logger or StructLogger("awsfed")

    @classmethod
    def from_environment(cls, cache: Cache, logger: Optional[Logger] = None) -> "CredentialFederation":
        """Create a federation honoring ENVSEC_AUTH_DOMAIN."""
        return cls(
            cache=cache,
            provider=os.getenv("ENVSEC_AUTH_DOMAIN") or DEFAULT_PROVIDER,
            logger=logger,
        )

    @property
    def client(self) -> Any:
        """Lazy-initialize the Cognito identity client."""
        if self._client is None:
            self._client = boto3.client(
                "cognito-identity",
                region_name=self.region,
                # GetId and GetCredentialsForIdentity are unauthenticated calls
                config=Config(signature_version=UNSIGNED, retries={"total_max_attempts": 1}),
            )
        return self._client

    def exchange(self, token: Token) -> Credentials:
        """Credentials for a token, served from the local cache while valid."""
        key = cache_key(token)
        try:
            return Credentials.from_json(self.cache.get(key))
        except CacheMissError as e:
            self.logger.debug("Credential cache miss", key=key, reason=type(e).__name__)
        except (CacheError, ValueError, KeyError) as e:
            self.logger.debug("Ignoring unreadable cached credentials", key=key, error=str(e))

        claims = token.id_claims()
        credentials = self.exchange_id_token(token.id_token, claims.issuer if claims else "")
        self.cache.set_until(key, credentials.to_json(), credentials.expiration)
        return credentials

    @xray_capture("cognito_exchange_id_token")
    def exchange_id_token(self, id_token: str, issuer: str = "") -> Credentials:
        """Exchange an ID token for credentials without touching the cache.

        Provider errors propagate unchanged; retrying is up to the caller.
        """
        logins = {self.login_provider(issuer): id_token}
        identity = self.client.get_id(
            AccountId=self.account_id,
            IdentityPoolId=self.identity_pool_id,
            Logins=logins,
        )
        response = self.client.get_credentials_for_identity(
            IdentityId=identity["IdentityId"],
            Logins=logins,
        )
        self.logger.info("Federated credentials issued", identity_id=identity["IdentityId"])
        return Credentials.from_response(response["Credentials"])

    def login_provider(self, issuer: str) -> str:
        """Identity provider name matching the token's issuer."""
        if issuer == f"https://{self.legacy_provider}/":
            return self.legacy_provider
        return self.provider

    def ssm_config_from_token(self, token: Optional[Token], use_cache: bool = True) -> SSMConfig:
        """SSM configuration using federated credentials.

        Without a token the default AWS credential chain applies.
        """
        if token is None:
            return SSMConfig()
        if use_cache:
            credentials = self.exchange(token)
        else:
            claims = token.id_claims()
            credentials = self.exchange_id_token(token.id_token, claims.issuer if claims else "")
        return SSMConfig(
            access_key_id=credentials.access_key_id,
            secret_access_key=credentials.secret_key,
            session_token=credentials.session_token,
            region=self.region,
        )
