"""
Authorization strategies for the Azure OpenAI service.

An :class:`Authorizer` holds either an API key or a token credential.  The
credential follows the ``azure.identity`` shape – any object exposing
``get_token(*scopes)`` that returns something with a ``token`` attribute –
so ``DefaultAzureCredential``, managed identity credentials or a test stub
can be passed in directly.
"""

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Protocol, Tuple

from azopenai_lib.base.constants import (
    API_KEY_HEADER,
    AUTHORIZATION_HEADER,
    CONTENT_TYPE_JSON,
    DEFAULT_TOKEN_SCOPE,
)
from azopenai_lib.exceptions import ConfigurationError
from azopenai_lib.utils.context import CallContext


class AccessToken(Protocol):
    token: str


class TokenCredential(Protocol):
    def get_token(self, *scopes: str, **kwargs: Any) -> AccessToken: ...


class AuthMethod(enum.Enum):
    UNKNOWN = 0
    API_KEY = 1
    TOKEN_CREDENTIAL = 2


@dataclass(frozen=True)
class TokenRequestOptions:
    """Scopes requested from the credential on every call."""

    scopes: Tuple[str, ...] = (DEFAULT_TOKEN_SCOPE,)


@dataclass(frozen=True)
class Authorizer:
    """
    Attaches credentials to outgoing requests.

    Exactly one of two strategies is used:

    * ``api_key`` – the key is sent verbatim in the ``api-key`` header,
    * ``credential`` – a bearer token is fetched on every call (caching is
      left to the credential) and sent as ``Authorization: Bearer <token>``.

    When both are set the API key wins.  Call :meth:`validate` (the client
    does it on construction) before :meth:`authorize`.
    """

    api_key: str = ""
    credential: Optional[TokenCredential] = None
    options: TokenRequestOptions = field(default_factory=TokenRequestOptions)
    method: AuthMethod = AuthMethod.UNKNOWN

    def validate(self) -> "Authorizer":
        """
        Return a copy of the authorizer with its strategy selected.

        Raises
        ------
        ConfigurationError
            If neither an API key nor a credential is configured.
        """
        if self.api_key:
            return replace(self, method=AuthMethod.API_KEY)
        if self.credential is not None:
            if not callable(getattr(self.credential, "get_token", None)):
                raise ConfigurationError("credential must provide get_token()")
            return replace(self, method=AuthMethod.TOKEN_CREDENTIAL)
        raise ConfigurationError("Authorizer must have api_key or credential set")

    def authorize(self, request: Any, ctx: CallContext) -> None:
        """
        Add the authorization headers to ``request.headers``.

        Token acquisition errors propagate unchanged.
        """
        if self.method == AuthMethod.API_KEY:
            request.headers[API_KEY_HEADER] = self.api_key
            return
        if self.method != AuthMethod.TOKEN_CREDENTIAL:
            raise ConfigurationError("unknown authorization method")

        ctx.raise_if_cancelled()
        access = self.credential.get_token(*self.options.scopes)
        ctx.raise_if_cancelled()
        request.headers[AUTHORIZATION_HEADER] = f"Bearer {access.token}"
        request.headers["Content-Type"] = CONTENT_TYPE_JSON

    def __repr__(self) -> str:
        # never print the key
        return f"Authorizer(method={self.method.name})"
