"""
The static, ordered app catalog.

The catalog is owned by the product team, not by this service: we filter and
annotate it, but never store it. URLs come from settings so each deployment
can point at its own app hosts.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from account_hub.core.config import get_settings
from account_hub.core.errors import ValidationFailed
from account_hub_shared.schemas.common import AppStatus
from account_hub_shared.schemas.entitlements import AppDefinition


def build_catalog() -> list[AppDefinition]:
    settings = get_settings()
    return [
        AppDefinition(
            slug="nota",
            name="Velox Nota",
            tagline="Beautiful markdown notes",
            icon="📝",
            color="#f59e0b",
            url=settings.nota_url,
            status=AppStatus.AVAILABLE,
            free=True,  # free during beta
            monthly_price=4.99,
        ),
        AppDefinition(
            slug="contacts",
            name="Velox Contacts",
            tagline="Smart contact management",
            icon="👥",
            color="#3b82f6",
            url=settings.contacts_url,
            status=AppStatus.COMING_SOON,
            monthly_price=2.99,
        ),
        AppDefinition(
            slug="inventory",
            name="Velox Inventory",
            tagline="Track everything you own",
            icon="📦",
            color="#10b981",
            url=settings.inventory_url,
            status=AppStatus.COMING_SOON,
            monthly_price=4.99,
        ),
        AppDefinition(
            slug="projects",
            name="Velox Projects",
            tagline="Simple project tracking",
            icon="🎯",
            color="#8b5cf6",
            url=settings.projects_url,
            status=AppStatus.COMING_SOON,
            monthly_price=5.99,
        ),
    ]


@lru_cache
def get_catalog() -> tuple[AppDefinition, ...]:
    return tuple(build_catalog())


def get_app(slug: str) -> Optional[AppDefinition]:
    return next((app for app in get_catalog() if app.slug == slug), None)


def catalog_slugs() -> frozenset[str]:
    return frozenset(app.slug for app in get_catalog())


def validate_app_slugs(slugs: Optional[list[str]], *, required: bool = False) -> list[str]:
    """Order-preserving de-duplicated list of catalog slugs.

    Raises ValidationFailed for unknown slugs, or for an empty list when
    ``required`` is set.
    """
    cleaned: list[str] = []
    for slug in slugs or ():
        if slug not in cleaned:
            cleaned.append(slug)
    if required and not cleaned:
        raise ValidationFailed("At least one app must be selected")
    unknown = [slug for slug in cleaned if slug not in catalog_slugs()]
    if unknown:
        raise ValidationFailed(f"Unknown app slugs: {', '.join(unknown)}")
    return cleaned
