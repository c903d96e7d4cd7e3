"""
Resolution and caching of per-deployment endpoint URLs.

Each endpoint type owns a fixed URL template.  A URL is rendered and
validated once per ``(endpoint type, deployment id)`` pair and cached for
the lifetime of the owning :class:`EndpointResolver`.
"""

import enum
import string
import threading
from dataclasses import dataclass
from typing import Dict, Tuple
from urllib.parse import urlsplit

from azopenai_lib.exceptions import ConfigurationError


class EndpointType(str, enum.Enum):
    COMPLETIONS = "completions"
    EMBEDDINGS = "embeddings"
    CHAT = "chat"


_BASE_TEMPLATE = (
    "https://${resource_name}.openai.azure.com/openai/deployments/${deployment_id}"
)

TEMPLATES: Dict[EndpointType, string.Template] = {
    EndpointType.COMPLETIONS: string.Template(
        _BASE_TEMPLATE + "/completions?api-version=${api_version}"
    ),
    EndpointType.EMBEDDINGS: string.Template(
        _BASE_TEMPLATE + "/embeddings?api-version=${api_version}"
    ),
    EndpointType.CHAT: string.Template(
        _BASE_TEMPLATE + "/chat/completions?api-version=${api_version}"
    ),
}

# Characters that would move a value out of its URL component.
_FORBIDDEN_CHARS = set("/?#@%\\ \t\r\n")


@dataclass(frozen=True)
class TemplateVars:
    """Variables shared by every endpoint of one client."""

    resource_name: str
    api_version: str


class EndpointResolver:
    """
    Thread-safe cache of resolved endpoint URLs.

    The lock is held across lookup and resolution, so two calls racing on
    the same missing key render the template only once.
    """

    def __init__(self, template_vars: TemplateVars) -> None:
        self.template_vars = template_vars
        self._cache: Dict[Tuple[EndpointType, str], str] = {}
        self._lock = threading.Lock()

    def resolve(self, endpoint_type: EndpointType, deployment_id: str) -> str:
        """
        Return the URL for ``deployment_id`` on the given endpoint.

        Raises
        ------
        ConfigurationError
            If the endpoint type is unknown or the resource name / deployment
            id cannot form a valid URL.
        """
        if not deployment_id:
            raise ConfigurationError("deployment id must not be empty")

        key = (endpoint_type, deployment_id)
        with self._lock:
            url = self._cache.get(key)
            if url is None:
                url = self._build(endpoint_type, deployment_id)
                self._cache[key] = url
            return url

    def _build(self, endpoint_type: EndpointType, deployment_id: str) -> str:
        try:
            template = TEMPLATES[EndpointType(endpoint_type)]
        except (KeyError, ValueError):
            raise ConfigurationError(f"unknown endpoint type {endpoint_type!r}")

        for name, value in (
            ("resource name", self.template_vars.resource_name),
            ("deployment id", deployment_id),
            ("api version", self.template_vars.api_version),
        ):
            if not value or _FORBIDDEN_CHARS.intersection(value):
                raise ConfigurationError(f"malformed {name}: {value!r}")

        try:
            url = template.substitute(
                resource_name=self.template_vars.resource_name,
                deployment_id=deployment_id,
                api_version=self.template_vars.api_version,
            )
        except (KeyError, ValueError) as exc:
            raise ConfigurationError(f"cannot render endpoint template: {exc}")

        try:
            parts = urlsplit(url)
            hostname = parts.hostname
        except ValueError as exc:
            raise ConfigurationError(f"invalid endpoint URL {url!r}: {exc}")
        if parts.scheme != "https" or not hostname:
            raise ConfigurationError(f"invalid endpoint URL {url!r}")
        return url

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
