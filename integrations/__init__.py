"""External API integrations.

This package contains:
- Aggregator protocol: value types and capability interfaces
- Provider registry: selects the active aggregator
- Nordigen client: GoCardless Bank Account Data REST transport
- Klarna client: placeholder Klarna Open Banking integration
"""

from integrations.aggregator_protocol import (
    Institution,
    InstitutionCatalog,
    TokenPair,
    TokenProvider,
)
from integrations.provider_registry import Aggregator, ProviderRegistry, get_provider_registry

__all__ = [
    "Aggregator",
    "Institution",
    "InstitutionCatalog",
    "ProviderRegistry",
    "TokenPair",
    "TokenProvider",
    "get_provider_registry",
]
