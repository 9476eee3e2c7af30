"""Token validation and principal extraction.

Tokens are minted by the identity provider; this module only validates
them and maps their claims onto a Principal.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, FrozenSet, List, Optional

import jwt
import requests

from inventory_api.domain.rbac.models import Principal

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """The bearer token is missing, expired or otherwise invalid."""


class IdentityProviderUnavailable(Exception):
    """The JWKS endpoint could not be reached and no cached key set exists."""


class JwtValidator:
    def __init__(
        self,
        secret: Optional[str] = None,
        jwks_url: Optional[str] = None,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
        algorithms: Optional[List[str]] = None,
    ):
        self.secret = secret
        self.jwks_url = jwks_url
        self.issuer = issuer
        self.audience = audience
        self.algorithms = algorithms or ["HS256"]
        self._jwks_cache: Optional[Dict[str, Any]] = None
        self._jwks_last_fetch: Optional[datetime] = None

    def _fetch_jwks(self) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        if self._jwks_cache and self._jwks_last_fetch and (now - self._jwks_last_fetch) < timedelta(hours=1):
            return self._jwks_cache

        try:
            response = requests.get(self.jwks_url, timeout=10)
            response.raise_for_status()
            self._jwks_cache = response.json()
            self._jwks_last_fetch = now
            return self._jwks_cache
        except requests.RequestException as e:
            logger.error(f"Failed to fetch JWKS from {self.jwks_url}: {e}")
            if self._jwks_cache:
                return self._jwks_cache
            raise IdentityProviderUnavailable("Identity provider unavailable") from e

    def _signing_key(self, token: str):
        if self.secret and not self.jwks_url:
            return self.secret
        if not self.jwks_url:
            raise AuthenticationError("No token verification key configured")

        kid = jwt.get_unverified_header(token).get("kid")
        for key in self._fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return jwt.algorithms.RSAAlgorithm.from_jwk(key)
        raise AuthenticationError("Invalid token key ID")

    def validate_token(self, token: str) -> Dict[str, Any]:
        """Validate a JWT and return its claims."""
        try:
            key = self._signing_key(token)
            algorithms = self.algorithms if isinstance(key, str) else ["RS256"]
            return jwt.decode(
                token,
                key,
                algorithms=algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": self.audience is not None},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            raise AuthenticationError("Invalid token")


def _claim_values(value: Any) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset([value])
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(str(v) for v in value if v is not None)
    return frozenset([str(value)])


def parse_user_id(value: Any) -> Optional[int]:
    """Parse a user id claim; anything unparseable means no self-access grants."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        logger.debug(f"Ignoring unparseable user id claim {value!r}")
        return None


def principal_from_claims(claims: Dict[str, Any], role_claim: str = "role", user_id_claim: str = "userId") -> Principal:
    return Principal(
        subject=claims.get("sub"),
        role_names=_claim_values(claims.get(role_claim)),
        user_id=parse_user_id(claims.get(user_id_claim)),
    )
