"""Registry of ad provider clients.

The registry is responsible for:
- Initializing a client for each supported ad platform
- Providing access to a specific client by provider id
- Listing the providers jobs can currently be processed for
"""

import logging

from config import settings
from integrations.metrics_gateway_client import MetricsGatewayClient
from integrations.provider_protocol import AdProviderClient

logger = logging.getLogger(__name__)

# Provider ids as stored on integrations and jobs.
# Adding a new ad platform only requires appending one entry here.
KNOWN_PROVIDER_IDS: list[str] = ["google", "facebook", "linkedin", "tiktok"]


class ProviderRegistry:
    """Registry for the ad provider clients used by the job processor.

    Example:
        registry = ProviderRegistry()
        registry.register_provider(MetricsGatewayClient("google", url, key))
        client = registry.get_provider("google")
        rows = client.fetch_and_normalize(request)
    """

    def __init__(self):
        self._providers: dict[str, AdProviderClient] = {}

    def register_provider(self, provider: AdProviderClient) -> None:
        """Register a provider client under its ``provider_id``."""
        self._providers[provider.provider_id] = provider

    def get_provider(self, provider_id: str) -> AdProviderClient:
        """Get a provider by id.

        Raises:
            ValueError: If the provider is not registered.
        """
        if provider_id not in self._providers:
            raise ValueError(f"Unsupported provider: {provider_id}")
        return self._providers[provider_id]

    def list_providers(self) -> list[str]:
        """List all registered provider ids."""
        return list(self._providers.keys())

    def is_configured(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def initialize_default_providers(self) -> None:
        """Register a metrics gateway client for every known provider.

        Providers whose client reports itself unconfigured (no gateway URL)
        are skipped, so jobs for them fail as unsupported instead of
        hanging on a missing endpoint.
        """
        for provider_id in KNOWN_PROVIDER_IDS:
            try:
                client = MetricsGatewayClient(
                    provider_id,
                    base_url=settings.METRICS_GATEWAY_URL,
                    api_key=settings.METRICS_GATEWAY_API_KEY,
                    timeout=settings.METRICS_GATEWAY_TIMEOUT_SECONDS,
                )
                if client.is_configured():
                    self.register_provider(client)
                    logger.info("Provider registered: %s", provider_id)
                else:
                    logger.debug("Provider skipped (not configured): %s", provider_id)
            except Exception:
                logger.warning(
                    "Provider failed to initialize: %s", provider_id, exc_info=True
                )

        names = self.list_providers()
        if names:
            logger.info("Active providers: %s", ", ".join(names))
        else:
            logger.warning("No providers configured")

    def close(self) -> None:
        """Close any provider clients that hold network resources."""
        for provider in self._providers.values():
            close = getattr(provider, "close", None)
            if callable(close):
                close()


def get_provider_registry() -> ProviderRegistry:
    """Create and return a provider registry with default providers."""
    registry = ProviderRegistry()
    registry.initialize_default_providers()
    return registry
