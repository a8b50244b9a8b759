"""Team members: listing, edits, removal and provisioning."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from founderdesk.errors import ApiError, ValidationFailure
from founderdesk.gateway import ApiGateway
from founderdesk.models import Identity, ProvisionedMember

log = structlog.get_logger(__name__)

# Canonical provisioning contract: POST {name, email} -> {user, generated_password}.
PROVISION_PATH = "/users/team-member"


def credentials_filename(member: Identity) -> str:
    """File name offered for a member's credentials download."""
    name = re.sub(r"\s+", "_", member.name)
    return f"team_member_{name}_credentials.txt"


class TeamClient:
    def __init__(self, gateway: ApiGateway) -> None:
        self._gateway = gateway

    async def list(self) -> list[Identity]:
        body = await self._gateway.get("/users/team")
        return [Identity.model_validate(item) for item in body or []]

    async def update(self, member_id: str, **fields: Any) -> Identity:
        body = await self._gateway.put(f"/users/team/{member_id}", fields)
        return Identity.model_validate(body)

    async def remove(self, member_id: str) -> None:
        await self._gateway.delete(f"/users/team/{member_id}")
        log.info("team_member_removed", member_id=member_id)

    async def provision(self, name: str, email: str) -> ProvisionedMember:
        """Create a team member; the server generates their first password."""
        if not name.strip() or not email.strip():
            raise ValidationFailure("Name and email are required")
        body = await self._gateway.post(PROVISION_PATH, {"name": name.strip(), "email": email.strip()})
        try:
            member = ProvisionedMember.model_validate(body)
        except ValidationError as exc:
            raise ApiError("Error creating team member") from exc
        log.info("team_member_provisioned", member_id=member.user.id)
        return member

    async def download_credentials(self, member: ProvisionedMember) -> bytes:
        return await self._gateway.download(
            f"/auth/download-credentials/{member.user.id}",
            params={"generated_password": member.generated_password},
        )

    async def save_credentials(self, member: ProvisionedMember, directory: Path | str) -> Path:
        """Download the credentials file into ``directory`` and return its path."""
        content = await self.download_credentials(member)
        target = Path(directory) / credentials_filename(member.user)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        log.info("credentials_saved", member_id=member.user.id, path=str(target))
        return target
