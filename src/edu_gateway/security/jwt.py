"""JWT token handling for principal authentication.

Issues stateless access/refresh token pairs embedding the principal id
and role. Uses python-jose for JWT operations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import structlog
from jose import JWTError, jwt
from jose.exceptions import JOSEError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from edu_gateway.domain.errors import ConfigError, TokenInvalid
from edu_gateway.domain.model.roles import Principal, Role

logger = structlog.get_logger(__name__)

TokenType = Literal["access", "refresh"]


class TokenPayload(BaseModel):
    """JWT token payload.

    Attributes:
        sub: Subject (principal id)
        role: Role the token was issued for
        exp: Expiration timestamp
        iat: Issued at timestamp
        type: Token type ("access" or "refresh")
    """

    sub: str
    role: Role
    exp: datetime
    iat: datetime
    type: TokenType

    def to_jwt_claims(self) -> dict[str, Any]:
        """Convert payload to JWT claims with Unix timestamps.

        Returns:
            Dictionary suitable for JWT encoding
        """
        return {
            "sub": self.sub,
            "role": self.role.value,
            "exp": int(self.exp.timestamp()),
            "iat": int(self.iat.timestamp()),
            "type": self.type,
        }

    def to_principal(self) -> Principal:
        """Build the principal this token vouches for."""
        return Principal(id=self.sub, role=self.role)


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh tokens issued together.

    Attributes:
        access_token: Short-lived token for per-request authorization
        refresh_token: Longer-lived token for minting a new pair
        expires_in: Access token lifetime in seconds
    """

    access_token: str
    refresh_token: str
    expires_in: int


class TokenService:
    """Service for creating and validating JWT tokens.

    The signing key is process-wide static configuration. There is no
    revocation list: a leaked token stays valid until it expires.

    Attributes:
        secret: Secret key for signing tokens
        algorithm: JWT signing algorithm (default: HS256)
        access_expiry_minutes: Access token validity period
        refresh_expiry_days: Refresh token validity period
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_expiry_minutes: int = 30,
        refresh_expiry_days: int = 7,
    ) -> None:
        """Initialize token service.

        Args:
            secret: Secret key for signing tokens. Must be kept secure.
            algorithm: JWT signing algorithm (default: HS256)
            access_expiry_minutes: Access token validity in minutes (default: 30)
            refresh_expiry_days: Refresh token validity in days (default: 7)

        Raises:
            ValueError: If secret is empty or too short
        """
        if not secret or len(secret) < 32:
            raise ValueError("Secret must be at least 32 characters long")

        self._secret = secret
        self._algorithm = algorithm
        self._access_expiry_minutes = access_expiry_minutes
        self._refresh_expiry_days = refresh_expiry_days

    @property
    def access_expiry_seconds(self) -> int:
        """Access token lifetime in seconds."""
        return self._access_expiry_minutes * 60

    def _encode(self, principal: Principal, token_type: TokenType, lifetime: timedelta) -> str:
        now = datetime.now(UTC)
        payload = TokenPayload(
            sub=principal.id,
            role=principal.role,
            exp=now + lifetime,
            iat=now,
            type=token_type,
        )
        try:
            token: str = jwt.encode(
                payload.to_jwt_claims(),
                self._secret,
                algorithm=self._algorithm,
            )
        except JOSEError as e:
            logger.error("Failed to sign token", algorithm=self._algorithm, error=str(e))
            raise ConfigError("error while generating tokens") from e

        logger.debug(
            "Created token",
            principal_id=principal.id,
            role=principal.role.value,
            type=token_type,
            expires=payload.exp.isoformat(),
        )
        return token

    def create_access_token(self, principal: Principal) -> str:
        """Create a new access token.

        Args:
            principal: Principal to encode in the token

        Returns:
            Encoded JWT access token string
        """
        return self._encode(
            principal, "access", timedelta(minutes=self._access_expiry_minutes)
        )

    def create_refresh_token(self, principal: Principal) -> str:
        """Create a new refresh token.

        Refresh tokens are longer-lived and must only be used to obtain
        a new token pair.

        Args:
            principal: Principal to encode in the token

        Returns:
            Encoded JWT refresh token string
        """
        return self._encode(principal, "refresh", timedelta(days=self._refresh_expiry_days))

    def issue_token_pair(self, principal: Principal) -> TokenPair:
        """Create access and refresh token pair.

        Args:
            principal: Principal to encode in the tokens

        Returns:
            TokenPair with both tokens

        Raises:
            ConfigError: If the tokens cannot be signed
        """
        return TokenPair(
            access_token=self.create_access_token(principal),
            refresh_token=self.create_refresh_token(principal),
            expires_in=self.access_expiry_seconds,
        )

    def decode_token(self, token: str, expected_type: TokenType | None = None) -> TokenPayload:
        """Decode and validate a token.

        Validates the signature, the expiration and the claim shape.

        Args:
            token: JWT token string to decode
            expected_type: If given, reject tokens of any other type

        Returns:
            Decoded token payload

        Raises:
            TokenInvalid: If the token is invalid, expired, has a wrong
                signature, unknown role, or the wrong type
        """
        if not token:
            raise TokenInvalid("Not authenticated")

        try:
            payload_dict = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
            )
            payload_dict["exp"] = datetime.fromtimestamp(payload_dict["exp"], tz=UTC)
            payload_dict["iat"] = datetime.fromtimestamp(payload_dict["iat"], tz=UTC)
            payload = TokenPayload.model_validate(payload_dict)
        except JWTError as e:
            logger.warning("Failed to decode token", error_type="jwt_decode_error")
            raise TokenInvalid("Invalid or expired token") from e
        except (KeyError, TypeError, ValueError, PydanticValidationError) as e:
            logger.warning("Failed to decode token", error_type="invalid_claims")
            raise TokenInvalid("Invalid token claims") from e

        if expected_type is not None and payload.type != expected_type:
            logger.warning(
                "Rejected token of wrong type",
                expected=expected_type,
                actual=payload.type,
            )
            raise TokenInvalid("Invalid token type")

        return payload
