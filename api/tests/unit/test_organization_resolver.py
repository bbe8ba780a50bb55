"""
Tests del OrganizationResolver sobre SQLite.

Verifica IDs secuenciales, caché por instancia y unicidad por nombre
normalizado con resoluciones concurrentes.
"""
import asyncio
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from pvz_registry.infrastructure.database.models import OrganizationModel
from pvz_registry.infrastructure.external.sheets_sync.organization_resolver import (
    OrganizationResolver,
    normalize_organization_name,
)
from pvz_registry.shared.exceptions.sync import ResolutionFailedError


async def _organizations(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(OrganizationModel).order_by(OrganizationModel.organization_id))
        return result.scalars().all()


@pytest.mark.parametrize(
    "raw, expected",
    [("  Acme   Co ", "Acme Co"), ("Acme\tCo", "Acme Co"), ("", ""), (None, ""), ("   ", "")],
)
def test_normalize_organization_name(raw, expected):
    assert normalize_organization_name(raw) == expected


@pytest.mark.asyncio
async def test_creates_sequential_zero_padded_ids(session_factory):
    resolver = OrganizationResolver(session_factory)

    first = await resolver.resolve("Acme Co", "+7 900 111-11-11")
    second = await resolver.resolve("Beta LLC")

    assert first == "000001"
    assert second == "000002"
    assert resolver.created_count == 2

    orgs = await _organizations(session_factory)
    assert [(o.organization_id, o.name, o.phone) for o in orgs] == [
        ("000001", "Acme Co", "+7 900 111-11-11"),
        ("000002", "Beta LLC", None),
    ]


@pytest.mark.asyncio
async def test_non_numeric_ids_are_ignored_for_next_id(session_factory):
    async with session_factory() as session:
        session.add_all(
            [
                OrganizationModel(organization_id="000041", name="Old"),
                OrganizationModel(organization_id="MANUAL-1", name="Manual"),
            ]
        )
        await session.commit()

    resolver = OrganizationResolver(session_factory)

    assert await resolver.resolve("New Org") == "000042"


@pytest.mark.asyncio
async def test_existing_organization_is_reused_and_not_modified(session_factory):
    async with session_factory() as session:
        session.add(OrganizationModel(organization_id="000007", name="Acme Co", phone="111"))
        await session.commit()

    resolver = OrganizationResolver(session_factory)

    assert await resolver.resolve("  Acme  Co", "999") == "000007"
    assert resolver.created_count == 0
    orgs = await _organizations(session_factory)
    assert len(orgs) == 1
    assert orgs[0].phone == "111"


@pytest.mark.asyncio
async def test_empty_name_resolves_to_none(session_factory):
    resolver = OrganizationResolver(session_factory)

    assert await resolver.resolve("   ") is None
    assert await resolver.resolve(None) is None
    assert await _organizations(session_factory) == []


@pytest.mark.asyncio
async def test_cache_is_per_instance(session_factory):
    resolver = OrganizationResolver(session_factory)
    await resolver.resolve("Acme Co")

    assert resolver.cache == {"Acme Co": "000001"}
    assert OrganizationResolver(session_factory).cache == {}


@pytest.mark.asyncio
async def test_concurrent_whitespace_variants_create_single_organization(session_factory):
    names = ["Acme Co", " Acme Co ", "Acme  Co", "\tAcme Co", "Acme Co  "]
    # Resolvers distintos simulan corridas solapadas (cachés independientes)
    resolvers = [OrganizationResolver(session_factory) for _ in names]

    ids = await asyncio.gather(*(r.resolve(n) for r, n in zip(resolvers, names)))

    assert set(ids) == {"000001"}
    orgs = await _organizations(session_factory)
    assert [(o.organization_id, o.name) for o in orgs] == [("000001", "Acme Co")]
    assert sum(r.created_count for r in resolvers) == 1


@pytest.mark.asyncio
async def test_store_error_raises_resolution_failed():
    failing_factory = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("db down")))
    resolver = OrganizationResolver(failing_factory)

    with pytest.raises(ResolutionFailedError) as exc_info:
        await resolver.resolve("Acme Co")

    assert exc_info.value.organization_name == "Acme Co"
    assert "db down" in exc_info.value.reason
