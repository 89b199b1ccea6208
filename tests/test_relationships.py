"""Tests for campaign-wide relationship predictions."""

import json

import pytest

from campaign_hub.generators import ContentGenerator
from campaign_hub.relationships import generate_campaign_predictions
from campaign_hub.storage import Storage

from tests.conftest import MockLLMBackend


def analysis(*probabilities: int) -> str:
    return json.dumps(
        {
            "summary": "Uneasy allies.",
            "predictions": [
                {"event": f"Event {p}", "outcome": "Outcome", "triggerCondition": "Trigger", "probability": p}
                for p in probabilities
            ],
        }
    )


@pytest.fixture
def party(storage: Storage, seeded):
    brom = storage.characters.create(seeded["dm"].id, "Brom", "Dwarf", "Cleric")
    storage.campaigns.add_character(seeded["campaign"].id, brom.id)
    relationship = storage.relationships.create(seeded["character"].id, brom.id, "rival")
    return brom, relationship


class TestGenerateCampaignPredictions:
    def test_stores_most_probable_prediction(self, storage: Storage, seeded, party):
        llm = MockLLMBackend([analysis(30, 80, 55)])

        created = generate_campaign_predictions(storage, ContentGenerator(llm), seeded["campaign"])

        [prediction] = created
        assert prediction.predicted_event == "Event 80"
        assert prediction.probability == 80
        assert prediction.relationship_id == party[1].id
        assert storage.predictions.list_for_campaign(seeded["campaign"].id) == created

    def test_skips_relationship_with_pending_prediction(self, storage: Storage, seeded, party):
        llm = MockLLMBackend([analysis(60), analysis(70)])
        generator = ContentGenerator(llm)
        campaign = seeded["campaign"]

        generate_campaign_predictions(storage, generator, campaign)
        assert generate_campaign_predictions(storage, generator, campaign) == []
        assert len(llm.calls) == 1

    def test_ignores_relationships_outside_campaign(self, storage: Storage, seeded, party):
        stranger = storage.characters.create(seeded["outsider"].id, "Vex", "Tiefling", "Rogue")
        storage.relationships.create(seeded["character"].id, stranger.id, "friend")
        llm = MockLLMBackend([analysis(60)])

        created = generate_campaign_predictions(storage, ContentGenerator(llm), seeded["campaign"])

        assert len(created) == 1
        assert len(llm.calls) == 1

    def test_llm_unavailable_creates_nothing(self, storage: Storage, seeded, party):
        generator = ContentGenerator(MockLLMBackend(unavailable=True))
        assert generate_campaign_predictions(storage, generator, seeded["campaign"]) == []

    def test_needs_two_characters(self, storage: Storage, seeded):
        generator = ContentGenerator(MockLLMBackend())
        with pytest.raises(ValueError, match="at least 2 characters"):
            generate_campaign_predictions(storage, generator, seeded["campaign"])
