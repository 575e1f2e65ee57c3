"""Unit tests for PrincipalRepository."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from access.domain.value_objects import PrincipalId, SystemRole
from access.infrastructure.models import PrincipalModel
from access.infrastructure.principal_repository import PrincipalRepository
from access.ports.repositories import IPrincipalRepository


@pytest.fixture
def mock_session():
    return AsyncMock()


@pytest.fixture
def repository(mock_session):
    return PrincipalRepository(session=mock_session)


@pytest.fixture
def principal_model():
    return PrincipalModel(
        id="bob",
        email="bob@example.com",
        display_name="Bob",
        system_role="admin",
    )


def test_implements_protocol(repository):
    assert isinstance(repository, IPrincipalRepository)


def test_email_is_unique_regardless_of_case():
    indexes = {index.name: index for index in PrincipalModel.__table__.indexes}

    index = indexes["uq_principals_email_lower"]

    assert index.unique is True
    assert "lower" in str(index.expressions[0]).lower()


class TestGetByEmail:
    """Tests for get_by_email method."""

    @pytest.mark.asyncio
    async def test_maps_model(self, repository, mock_session, principal_model):
        result = MagicMock()
        result.scalar_one_or_none.return_value = principal_model
        mock_session.execute.return_value = result

        principal = await repository.get_by_email("  Bob@Example.COM ")

        assert principal.id == PrincipalId("bob")
        assert principal.system_role is SystemRole.ADMIN
        statement = mock_session.execute.call_args[0][0]
        assert "lower" in str(statement).lower()

    @pytest.mark.asyncio
    async def test_blank_email_skips_query(self, repository, mock_session):
        assert await repository.get_by_email("   ") is None
        mock_session.execute.assert_not_called()
