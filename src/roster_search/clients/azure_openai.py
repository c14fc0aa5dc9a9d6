"""
OpenAI client management.

Creates the async chat client used by the natural-language matcher, against
an Azure OpenAI deployment when an endpoint is configured and the public
OpenAI API otherwise.
"""

from typing import Optional, Union

from openai import AsyncAzureOpenAI, AsyncOpenAI

from config.settings import AzureOpenAISettings
from ..utils.logging import get_logger

logger = get_logger(__name__)

AsyncChatClient = Union[AsyncAzureOpenAI, AsyncOpenAI]


class OpenAIClientFactory:
    """
    Lazily builds and caches one async client per factory.

    Returns None from ``get_async_client`` when no API key is configured so
    callers can continue with local search only.
    """

    def __init__(self, config: AzureOpenAISettings, timeout: float = 30.0):
        self.config = config
        self.timeout = timeout
        self._async_client: Optional[AsyncChatClient] = None

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def get_async_client(self) -> Optional[AsyncChatClient]:
        if self._async_client is not None:
            return self._async_client

        if not self.config.is_configured:
            logger.info("OpenAI API key not configured; natural-language matching disabled")
            return None

        try:
            if self.config.use_azure:
                self._async_client = AsyncAzureOpenAI(
                    api_key=self.config.api_key,
                    api_version=self.config.api_version,
                    azure_endpoint=self.config.endpoint,
                    timeout=self.timeout,
                )
                logger.info("Asynchronous Azure OpenAI client created successfully")
            else:
                self._async_client = AsyncOpenAI(api_key=self.config.api_key, timeout=self.timeout)
                logger.info("Asynchronous OpenAI client created successfully")
        except Exception as e:
            logger.error(f"Failed to create asynchronous OpenAI client: {e}")
            self._async_client = None

        return self._async_client

    def get_chat_deployment(self) -> str:
        """Get the chat deployment (Azure) or model (OpenAI) name."""
        return self.config.chat_deployment

    async def close(self) -> None:
        if self._async_client is not None:
            await self._async_client.close()
            self._async_client = None
