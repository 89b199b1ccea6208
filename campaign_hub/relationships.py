"""Relationship predictions generated for a whole campaign."""

import logging

from .generators import ContentGenerator
from .storage import Campaign, RelationshipPrediction, Storage

logger = logging.getLogger(__name__)


def generate_campaign_predictions(
    storage: Storage, generator: ContentGenerator, campaign: Campaign
) -> list[RelationshipPrediction]:
    """Analyze every relationship between the campaign's characters.

    A relationship that already has an untriggered prediction in this campaign
    is skipped. From each analysis the most probable prediction is stored.

    Raises:
        ValueError: If the campaign has fewer than two characters.
    """
    characters = {
        c.id: c for c in storage.campaigns.list_characters(campaign.id, storage.characters)
    }
    if len(characters) < 2:
        raise ValueError("Campaign needs at least 2 characters for relationship predictions")

    created = []
    for relationship in storage.relationships.list_among(characters):
        if storage.predictions.has_pending(relationship.id, campaign.id):
            continue
        analysis = generator.analyze_relationship(
            characters[relationship.source_character_id],
            characters[relationship.target_character_id],
            relationship,
            campaign,
        )
        if not analysis["predictions"]:
            continue
        best = max(analysis["predictions"], key=lambda p: p["probability"])
        created.append(
            storage.predictions.create(
                relationship.id,
                campaign.id,
                best["event"],
                best["outcome"],
                best["triggerCondition"],
                best["probability"],
            )
        )

    logger.info(f"Created {len(created)} relationship predictions for campaign {campaign.id}")
    return created
