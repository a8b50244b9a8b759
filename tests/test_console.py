"""End-to-end console flows against the in-memory backend."""

from __future__ import annotations

import pytest
from _helpers import (
    FOUNDER_EMAIL,
    FOUNDER_PASSWORD,
    MEMBER_EMAIL,
    MEMBER_PASSWORD,
    make_identity,
    sent,
)

from founderdesk.errors import DomainError, PermissionDenied, ValidationFailure
from founderdesk.models import Role
from founderdesk.notes import UNKNOWN_AUTHOR
from founderdesk.resources.contacts import ContactDraft
from founderdesk.resources.team import credentials_filename


# ---------------------------------------------------------------------------
# Team provisioning
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_provisioned_member_appears_and_can_log_in(console, backend, founder):
    await console.session.login(FOUNDER_EMAIL, FOUNDER_PASSWORD)

    created = await console.provision_team_member("  Linus Member ", "linus@example.com")
    assert created.user.role is Role.TEAM_MEMBER
    assert created.user.name == "Linus Member"
    assert created.generated_password

    team = await console.list_team()
    assert [m.email for m in team] == ["linus@example.com"]

    await console.session.logout()
    identity = await console.session.login("linus@example.com", created.generated_password)
    assert identity.role is Role.TEAM_MEMBER


@pytest.mark.asyncio
async def test_provision_requires_name_and_email(console, backend, founder):
    await console.session.login(FOUNDER_EMAIL, FOUNDER_PASSWORD)
    with pytest.raises(ValidationFailure, match="Name and email are required"):
        await console.provision_team_member("", "x@example.com")
    with pytest.raises(ValidationFailure):
        await console.provision_team_member("X", "   ")
    assert sent(backend, "POST", "/api/v1/users/team-member") == []


@pytest.mark.asyncio
async def test_provision_duplicate_email_surfaces_detail(console, founder, member):
    await console.session.login(FOUNDER_EMAIL, FOUNDER_PASSWORD)
    with pytest.raises(DomainError, match="Email already registered"):
        await console.provision_team_member("Again", MEMBER_EMAIL)


@pytest.mark.asyncio
async def test_credentials_file_is_saved(console, founder, tmp_path):
    await console.session.login(FOUNDER_EMAIL, FOUNDER_PASSWORD)
    created = await console.provision_team_member("Mary Ann Smith", "mary@example.com")

    path = await console.save_member_credentials(created, tmp_path / "downloads")

    assert path.name == "team_member_Mary_Ann_Smith_credentials.txt"
    assert path.name == credentials_filename(created.user)
    content = path.read_text()
    assert "mary@example.com" in content
    assert created.generated_password in content


def test_credentials_filename_collapses_whitespace_runs():
    member = make_identity(Role.TEAM_MEMBER, id="5", name="Mary  Ann\tSmith")
    assert credentials_filename(member) == "team_member_Mary_Ann_Smith_credentials.txt"


@pytest.mark.asyncio
async def test_update_and_remove_team_member(console, backend, founder, member):
    await console.session.login(FOUNDER_EMAIL, FOUNDER_PASSWORD)
    member_id = str(member["id"])

    updated = await console.update_team_member(member_id, name="Grace Hopper")
    assert updated.name == "Grace Hopper"

    await console.remove_team_member(member_id)
    assert await console.list_team() == []


# ---------------------------------------------------------------------------
# Contacts and notes
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_contact_crud(console, backend, founder):
    await console.session.login(FOUNDER_EMAIL, FOUNDER_PASSWORD)

    contact = await console.create_contact(ContactDraft(name="Jo Angel", company="Angels Inc", phone=""))
    assert contact.phone is None
    assert contact.notes == []

    updated = await console.update_contact(contact.id, position="Partner")
    assert updated.position == "Partner"
    assert (await console.get_contact(contact.id)).company == "Angels Inc"

    await console.delete_contact(contact.id)
    assert await console.list_contacts() == []


@pytest.mark.asyncio
async def test_create_contact_requires_name(console, backend, founder):
    await console.session.login(FOUNDER_EMAIL, FOUNDER_PASSWORD)
    with pytest.raises(ValidationFailure, match="name is required"):
        await console.create_contact(ContactDraft(name="  "))
    assert sent(backend, "POST", "/api/v1/contacts") == []


@pytest.mark.asyncio
async def test_notes_are_stamped_by_server_and_decoded(console, backend, founder, member):
    contact = backend.add_contact("Investor", notes=["met at demo day"])
    contact_id = str(contact["id"])

    await console.session.login(FOUNDER_EMAIL, FOUNDER_PASSWORD)
    await console.add_note(contact_id, "Sent follow-up: deck v2")
    await console.session.logout()
    await console.session.login(MEMBER_EMAIL, MEMBER_PASSWORD)
    refreshed = await console.add_note(contact_id, "Booked a call")

    assert len(refreshed.notes) == 3
    notes = await console.contact_notes(contact_id)
    assert [n.author for n in notes] == [UNKNOWN_AUTHOR, "Ada Founder", "Grace Member"]
    assert [n.content for n in notes] == ["met at demo day", "Sent follow-up: deck v2", "Booked a call"]
    assert notes[0].legacy
    assert not notes[1].legacy


@pytest.mark.asyncio
async def test_blank_note_is_rejected_before_dispatch(console, backend, founder):
    contact = backend.add_contact("Investor")
    await console.session.login(FOUNDER_EMAIL, FOUNDER_PASSWORD)

    with pytest.raises(ValidationFailure):
        await console.add_note(str(contact["id"]), "   ")
    assert sent(backend, "POST", f"/api/v1/contacts/{contact['id']}/notes") == []


@pytest.mark.asyncio
async def test_team_member_reads_contacts_but_cannot_create(console, backend, member):
    backend.add_contact("Investor")
    await console.session.login(MEMBER_EMAIL, MEMBER_PASSWORD)

    assert [c.name for c in await console.list_contacts()] == ["Investor"]
    with pytest.raises(PermissionDenied):
        await console.create_contact(ContactDraft(name="Nope"))


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_health_check_against_backend(console):
    result = await console.health_check()
    assert result["success"] is True
    assert result["data"] == {"message": "Operations API"}
