"""Provider registry for selecting the active bank data aggregator.

The registry is responsible for:
- Knowing which aggregator integrations exist
- Building an integration's token provider and institution catalog
  for a given record store
- Keeping consumers independent of the concrete integration
"""

import importlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from integrations.aggregator_protocol import InstitutionCatalog, TokenProvider

logger = logging.getLogger(__name__)

# Each tuple is (provider_name, module_path, factory_name). A factory takes
# a RecordStore and returns an Aggregator.
# Adding a new provider only requires appending one entry here.
PROVIDER_DEFINITIONS: list[tuple[str, str, str]] = [
    ("Nordigen", "services.institution_service", "build_nordigen_aggregator"),
    ("Klarna", "integrations.klarna_client", "build_klarna_aggregator"),
]

ALL_PROVIDER_NAMES: list[str] = [name for name, _, _ in PROVIDER_DEFINITIONS]


@dataclass
class Aggregator:
    """The capabilities one aggregator integration exposes.

    ``close`` releases any HTTP client the factory opened.
    """

    name: str
    token_provider: TokenProvider
    catalog: InstitutionCatalog
    close: Callable[[], None] = field(default=lambda: None)


class ProviderRegistry:
    """Registry mapping provider names to aggregator factories.

    Example:
        registry = get_provider_registry()
        aggregator = registry.get_aggregator("Nordigen", store)
        banks = aggregator.catalog.list_institutions("ES")
    """

    def __init__(self):
        """Initialize the registry with no providers.

        Call register_provider() to add providers, or use
        initialize_default_providers() to load the known ones.
        """
        self._factories: dict[str, Callable] = {}

    def register_provider(self, name: str, factory: Callable) -> None:
        """Register a factory building an Aggregator from a RecordStore."""
        self._factories[name] = factory

    def get_aggregator(self, name: str, store) -> Aggregator:
        """Build the named aggregator on top of ``store``.

        Raises:
            ValueError: If the provider is not registered.
        """
        if name not in self._factories:
            raise ValueError(f"Provider '{name}' is not available")
        return self._factories[name](store)

    def list_providers(self) -> list[str]:
        return list(self._factories.keys())

    def is_registered(self, name: str) -> bool:
        return name in self._factories

    def initialize_default_providers(self) -> None:
        """Import and register every provider in PROVIDER_DEFINITIONS.

        A provider whose module fails to import is skipped so it never
        prevents the rest from loading.
        """
        for name, module_path, factory_name in PROVIDER_DEFINITIONS:
            try:
                module = importlib.import_module(module_path)
            except ImportError:
                logger.warning("Provider skipped (import failed): %s", name, exc_info=True)
                continue
            self.register_provider(name, getattr(module, factory_name))
            logger.debug("Provider registered: %s", name)


def get_provider_registry() -> ProviderRegistry:
    """Create and return a provider registry with default providers."""
    registry = ProviderRegistry()
    registry.initialize_default_providers()
    return registry
