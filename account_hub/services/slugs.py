"""
Slug validation and generation for organizations and entities.
"""

from __future__ import annotations

import re

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from account_hub.core.errors import ValidationFailed
from account_hub_shared.schemas.common import SLUG_PATTERN

_SLUG_RE = re.compile(SLUG_PATTERN)
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def is_valid_slug(value: str) -> bool:
    return bool(_SLUG_RE.match(value))


def validate_slug(value: str) -> str:
    if not is_valid_slug(value):
        raise ValidationFailed(
            "Slug must be lowercase letters, numbers and single hyphens"
        )
    return value


def slugify(value: str, fallback: str) -> str:
    """Lowercase, collapse non-alphanumerics to hyphens, trim hyphens."""
    slug = _NON_ALNUM.sub("-", value.lower()).strip("-")
    return slug or fallback


async def unique_slug(
    session: AsyncSession,
    model,
    base: str,
    *scope,
) -> str:
    """First of ``base``, ``base-1``, ``base-2``... not used by ``model``.

    ``scope`` narrows the uniqueness check (e.g. ``Entity.org_id == org.id``).
    """
    result = await session.execute(
        select(model.slug).where(
            (model.slug == base) | model.slug.startswith(f"{base}-"),
            *scope,
        )
    )
    taken = set(result.scalars().all())
    candidate, n = base, 0
    while candidate in taken:
        n += 1
        candidate = f"{base}-{n}"
    return candidate


async def slug_in_use(session: AsyncSession, model, slug: str, *scope, exclude_id=None) -> bool:
    query = select(model.id).where(model.slug == slug, *scope)
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    result = await session.execute(query)
    return result.first() is not None
