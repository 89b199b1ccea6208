"""Campaign storage, party membership and invitations."""

from __future__ import annotations

from datetime import datetime

from .base import BaseStore
from .schemas import Campaign, CampaignCharacter, CampaignInvitation, Character


class CampaignStore(BaseStore[Campaign]):
    """Manages campaign persistence."""

    table = "campaigns"
    model = Campaign
    updatable = frozenset({"name", "description", "status", "setting", "is_ai_dm"})

    def create(
        self,
        name: str,
        dm_id: int,
        description: str | None = None,
        setting: str | None = None,
        is_ai_dm: bool = False,
        status: str = "active",
    ) -> Campaign:
        """Create a new campaign."""
        return self._create(
            {
                "name": name,
                "dm_id": dm_id,
                "description": description,
                "setting": setting,
                "is_ai_dm": is_ai_dm,
                "status": status,
                "created_at": datetime.now(),
            }
        )

    def list(self) -> list[Campaign]:
        """List all campaigns."""
        return self._list(order="name")

    def list_for_dm(self, dm_id: int) -> list[Campaign]:
        return self._list("dm_id = ?", (dm_id,), "created_at DESC")

    def list_for_player(self, user_id: int) -> list[Campaign]:
        """Campaigns where one of the user's characters is an active member."""
        rows = self.db.fetch_all(
            """
            SELECT DISTINCT c.* FROM campaigns c
            JOIN campaign_characters cc ON cc.campaign_id = c.id
            JOIN characters ch ON ch.id = cc.character_id
            WHERE ch.user_id = ? AND cc.is_active = 1
            ORDER BY c.created_at DESC
            """,
            (user_id,),
        )
        return [self._from_row(row) for row in rows]

    # -- party membership -------------------------------------------------

    def add_character(self, campaign_id: int, character_id: int) -> CampaignCharacter:
        """Add a character to a campaign, reactivating an existing membership."""
        row = self.db.fetch_one(
            "SELECT * FROM campaign_characters WHERE campaign_id = ? AND character_id = ?",
            (campaign_id, character_id),
        )
        if row:
            self.db.execute(
                "UPDATE campaign_characters SET is_active = 1 WHERE id = ?", (row["id"],)
            )
            membership_id = row["id"]
        else:
            membership_id = self.db.insert(
                "campaign_characters",
                {"campaign_id": campaign_id, "character_id": character_id, "is_active": 1},
            )
        row = self.db.fetch_one(
            "SELECT * FROM campaign_characters WHERE id = ?", (membership_id,)
        )
        return CampaignCharacter.model_validate(dict(row))

    def list_memberships(self, campaign_id: int) -> list[CampaignCharacter]:
        rows = self.db.fetch_all(
            "SELECT * FROM campaign_characters WHERE campaign_id = ? ORDER BY id",
            (campaign_id,),
        )
        return [CampaignCharacter.model_validate(dict(row)) for row in rows]

    def list_characters(self, campaign_id: int, characters) -> list[Character]:
        """Resolve the active characters of a campaign through a CharacterStore."""
        result = []
        for membership in self.list_memberships(campaign_id):
            if not membership.is_active:
                continue
            character = characters.get(membership.character_id)
            if character:
                result.append(character)
        return result

    def remove_character(self, campaign_id: int, character_id: int) -> bool:
        cursor = self.db.execute(
            "DELETE FROM campaign_characters WHERE campaign_id = ? AND character_id = ?",
            (campaign_id, character_id),
        )
        return cursor.rowcount > 0

    def is_player(self, user_id: int, campaign_id: int) -> bool:
        """True if the user owns an active character in the campaign."""
        row = self.db.fetch_one(
            """
            SELECT 1 FROM campaign_characters cc
            JOIN characters ch ON ch.id = cc.character_id
            WHERE cc.campaign_id = ? AND ch.user_id = ? AND cc.is_active = 1
            LIMIT 1
            """,
            (campaign_id, user_id),
        )
        return row is not None

    def is_participant(self, user_id: int, campaign: Campaign) -> bool:
        """DM or active player."""
        return campaign.dm_id == user_id or self.is_player(user_id, campaign.id)


class InvitationStore(BaseStore[CampaignInvitation]):
    table = "campaign_invitations"
    model = CampaignInvitation
    updatable = frozenset({"status"})

    def create(
        self, campaign_id: int, inviter_id: int, invitee_id: int, role: str = "player"
    ) -> CampaignInvitation:
        return self._create(
            {
                "campaign_id": campaign_id,
                "inviter_id": inviter_id,
                "invitee_id": invitee_id,
                "role": role,
                "status": "pending",
                "created_at": datetime.now(),
            }
        )

    def list_for_invitee(self, user_id: int) -> list[CampaignInvitation]:
        return self._list("invitee_id = ?", (user_id,), "created_at DESC")

    def list_for_campaign(self, campaign_id: int) -> list[CampaignInvitation]:
        return self._list("campaign_id = ?", (campaign_id,), "created_at DESC")

    def has_pending(self, campaign_id: int, invitee_id: int) -> bool:
        row = self.db.fetch_one(
            """
            SELECT 1 FROM campaign_invitations
            WHERE campaign_id = ? AND invitee_id = ? AND status = 'pending'
            """,
            (campaign_id, invitee_id),
        )
        return row is not None
