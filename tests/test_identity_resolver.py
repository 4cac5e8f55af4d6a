"""Tests for identity resolution."""

import pytest

from app.domain.models.resolution import (
    Conflict,
    NewContact,
    SameContact,
    SingleExternal,
    SinglePhone,
    choose_merge_winner,
)
from app.domain.services.identity_resolver import IdentityResolver

PHONE = "+998901234567"


@pytest.fixture
def resolver(db_session):
    """Create an identity resolver."""
    return IdentityResolver(db_session)


@pytest.mark.asyncio
class TestResolve:
    """Tests for resolution outcomes."""

    async def test_unknown_identity_is_new(self, resolver):
        """Test that nothing matches on an empty store."""
        resolution = await resolver.resolve(PHONE, "555")
        assert isinstance(resolution, NewContact)
        assert resolution.is_returning is False

    async def test_phone_match_without_external_id(self, resolver, make_contact, make_lead):
        """Test a phone-only match reports returning when leads exist."""
        contact = await make_contact(PHONE)
        await make_lead(contact)

        resolution = await resolver.resolve(PHONE)

        assert isinstance(resolution, SinglePhone)
        assert resolution.contact.id == contact.id
        assert resolution.lead_count == 1
        assert resolution.is_returning is True

    async def test_external_match_only(self, resolver, make_contact):
        """Test an external-id-only match with no leads."""
        contact = await make_contact("temp_555", external_id="555")

        resolution = await resolver.resolve(PHONE, "555")

        assert isinstance(resolution, SingleExternal)
        assert resolution.contact.id == contact.id
        assert resolution.is_returning is False

    async def test_both_keys_same_contact(self, resolver, make_contact):
        """Test that phone and external id on one contact resolve together."""
        contact = await make_contact(PHONE, external_id="555")

        resolution = await resolver.resolve(PHONE, "555")

        assert isinstance(resolution, SameContact)
        assert resolution.contact.id == contact.id

    async def test_conflict_reports_both_lead_counts(self, resolver, make_contact, make_lead):
        """Test a conflict between two contacts."""
        by_phone = await make_contact(PHONE)
        by_external = await make_contact("temp_555", external_id="555")
        await make_lead(by_external)

        resolution = await resolver.resolve(PHONE, "555")

        assert isinstance(resolution, Conflict)
        assert resolution.phone_contact.id == by_phone.id
        assert resolution.external_contact.id == by_external.id
        assert resolution.phone_lead_count == 0
        assert resolution.external_lead_count == 1
        assert resolution.is_returning is True


@pytest.mark.asyncio
class TestChooseMergeWinner:
    """Tests for merge winner selection."""

    async def test_more_leads_wins(self, make_contact):
        """Test that the contact with more leads survives."""
        a = await make_contact(PHONE)
        b = await make_contact("temp_1", external_id="1")
        winner, loser = choose_merge_winner(Conflict(a, b, phone_lead_count=1, external_lead_count=3))
        assert (winner.id, loser.id) == (b.id, a.id)

    async def test_tie_goes_to_phone_contact(self, make_contact):
        """Test that a tie keeps the phone-matched contact."""
        a = await make_contact(PHONE)
        b = await make_contact("temp_1", external_id="1")
        winner, loser = choose_merge_winner(Conflict(a, b, phone_lead_count=2, external_lead_count=2))
        assert (winner.id, loser.id) == (a.id, b.id)
