"""Factory for creating hosting provider instances."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sitesync.cloud.acquia import AcquiaProvider
from sitesync.cloud.interfaces import Provider
from sitesync.cloud.pantheon import PantheonProvider
from sitesync.errors import ValidationError

if TYPE_CHECKING:
    from sitesync.context import InventoryContext

PROVIDER_CLASSES: dict[str, type[Provider]] = {
    AcquiaProvider.name: AcquiaProvider,
    PantheonProvider.name: PantheonProvider,
}


def create_provider(name: str, context: "InventoryContext") -> Provider:
    """Instantiate the named provider with its configured endpoint.

    Raises:
        ValidationError: If no provider has that name.
    """
    try:
        provider_class = PROVIDER_CLASSES[name]
    except KeyError:
        raise ValidationError(f"Unknown provider: {name}") from None
    endpoint = getattr(context.settings, f"{name}_endpoint", None)
    return provider_class(context, endpoint=endpoint)


def get_providers(context: "InventoryContext") -> dict[str, Provider]:
    """Register every known provider in ``context`` and return them by name."""
    for name in PROVIDER_CLASSES:
        if name not in context.providers:
            context.register(create_provider(name, context))
    return context.providers
