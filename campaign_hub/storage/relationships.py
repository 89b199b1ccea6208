"""Character relationships and the predictions made about them."""

from datetime import datetime
from typing import Any, Iterable

from .base import BaseStore
from .schemas import CharacterRelationship, RelationshipPrediction


class RelationshipStore(BaseStore[CharacterRelationship]):
    """Directed relationships: A's view of B is a separate row from B's view of A."""

    table = "character_relationships"
    model = CharacterRelationship
    json_columns = frozenset({"interaction_history"})
    updatable = frozenset({"relationship_type", "relationship_strength", "notes"})
    touch_column = "updated_at"

    def create(
        self,
        source_character_id: int,
        target_character_id: int,
        relationship_type: str,
        relationship_strength: int = 0,
        notes: str | None = None,
        interaction_history: list[dict[str, Any]] | None = None,
    ) -> CharacterRelationship:
        """Create a relationship. Raises ValueError for self or duplicate relationships."""
        if source_character_id == target_character_id:
            raise ValueError("A character cannot have a relationship with itself")
        if self.get_between(source_character_id, target_character_id):
            raise ValueError("Relationship already exists")
        now = datetime.now()
        return self._create(
            {
                "source_character_id": source_character_id,
                "target_character_id": target_character_id,
                "relationship_type": relationship_type,
                "relationship_strength": relationship_strength,
                "notes": notes,
                "interaction_history": interaction_history or [],
                "created_at": now,
                "updated_at": now,
            }
        )

    def get_between(self, source_character_id: int, target_character_id: int) -> CharacterRelationship | None:
        row = self.db.fetch_one(
            "SELECT * FROM character_relationships"
            " WHERE source_character_id = ? AND target_character_id = ?",
            (source_character_id, target_character_id),
        )
        return self._from_row(row)

    def list_for_character(self, character_id: int) -> list[CharacterRelationship]:
        """Relationships in either direction."""
        return self._list(
            "source_character_id = ? OR target_character_id = ?", (character_id, character_id)
        )

    def list_among(self, character_ids: Iterable[int]) -> list[CharacterRelationship]:
        """Relationships whose both ends are in ``character_ids``."""
        ids = list(character_ids)
        if not ids:
            return []
        marks = ", ".join("?" for _ in ids)
        return self._list(
            f"source_character_id IN ({marks}) AND target_character_id IN ({marks})",
            tuple(ids) * 2,
        )

    def add_interaction(
        self, relationship_id: int, interaction: dict[str, Any]
    ) -> CharacterRelationship | None:
        with self.db.transaction():
            relationship = self.get(relationship_id)
            if not relationship:
                return None
            history = [*relationship.interaction_history, interaction]
            self.db.update(
                self.table,
                relationship_id,
                self._to_columns({"interaction_history": history, "updated_at": datetime.now()}),
            )
        return self.get(relationship_id)


class PredictionStore(BaseStore[RelationshipPrediction]):
    table = "relationship_predictions"
    model = RelationshipPrediction

    def create(
        self,
        relationship_id: int,
        campaign_id: int,
        predicted_event: str,
        predicted_outcome: str,
        trigger_condition: str,
        probability: int = 50,
    ) -> RelationshipPrediction:
        return self._create(
            {
                "relationship_id": relationship_id,
                "campaign_id": campaign_id,
                "predicted_event": predicted_event,
                "predicted_outcome": predicted_outcome,
                "trigger_condition": trigger_condition,
                "probability": probability,
                "was_triggered": False,
                "created_at": datetime.now(),
            }
        )

    def list_for_campaign(self, campaign_id: int) -> list[RelationshipPrediction]:
        return self._list("campaign_id = ?", (campaign_id,), "created_at DESC, id DESC")

    def has_pending(self, relationship_id: int, campaign_id: int) -> bool:
        row = self.db.fetch_one(
            "SELECT 1 FROM relationship_predictions"
            " WHERE relationship_id = ? AND campaign_id = ? AND was_triggered = 0",
            (relationship_id, campaign_id),
        )
        return row is not None

    def trigger(self, prediction_id: int, actual_outcome: str | None) -> RelationshipPrediction | None:
        """Mark a prediction as having come to pass."""
        updated = self.db.update(
            self.table,
            prediction_id,
            self._to_columns(
                {
                    "was_triggered": True,
                    "actual_outcome": actual_outcome,
                    "triggered_at": datetime.now(),
                }
            ),
        )
        return self.get(prediction_id) if updated else None
