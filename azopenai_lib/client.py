"""
Entry point of the library.

Creating a client with an API key::

    client = AzOpenAIClient("my-resource", Authorizer(api_key=key))

Creating a client with an ``azure.identity`` credential::

    client = AzOpenAIClient(
        "my-resource",
        Authorizer(credential=DefaultAzureCredential()),
    )

Construction fails fast when no credentials are configured, but invalid
credentials or deployment names are only reported by the first call.
"""

import logging
from typing import Optional

import requests

from azopenai_lib.base.constants import API_VERSION
from azopenai_lib.services.chat import ChatService
from azopenai_lib.services.completions import CompletionsService
from azopenai_lib.services.embeddings import EmbeddingsService
from azopenai_lib.utils.auth import Authorizer
from azopenai_lib.utils.http import HttpRequester


class AzOpenAIClient:

    def __init__(
        self,
        resource_name: str,
        authorizer: Authorizer,
        session: Optional[requests.Session] = None,
        api_version: str = API_VERSION,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.resource_name = resource_name
        self.logger = logger or logging.getLogger(__name__)
        self.http = HttpRequester(
            resource_name=resource_name,
            authorizer=authorizer.validate(),
            session=session,
            api_version=api_version,
            logger=self.logger,
        )

    # ------------------------------------------------------------------ #
    def chat(self, deployment_id: str) -> ChatService:
        """New chat service sharing this client's transport."""
        return ChatService(self.http, deployment_id, self.logger)

    # ------------------------------------------------------------------ #
    def completions(self, deployment_id: str) -> CompletionsService:
        return CompletionsService(self.http, deployment_id, self.logger)

    # ------------------------------------------------------------------ #
    def embeddings(self, deployment_id: str) -> EmbeddingsService:
        return EmbeddingsService(self.http, deployment_id, self.logger)

    # ------------------------------------------------------------------ #
    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "AzOpenAIClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
