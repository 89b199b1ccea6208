"""LLM-backed content generation for campaigns, NPCs, characters and narration.

Every generator degrades gracefully: if the backend is unavailable or returns
something that is not the expected JSON object, the generator logs the failure
and returns a fixed fallback instead of raising.
"""

import copy
import json
import logging
import random
import re
from typing import Any

from . import prompts
from .models.base import LLMBackend, LLMUnavailableError, Message
from .storage import Campaign, Character, CharacterRelationship

logger = logging.getLogger(__name__)

FALLBACK_CAMPAIGN: dict[str, Any] = {
    "name": "The Forgotten Realms of Eldoria",
    "description": (
        "A once-prosperous kingdom now shadowed by an ancient evil. The heroes "
        "must uncover the source of the corruption before the realm is lost."
    ),
    "setting": "Homebrew",
    "worldQuirks": [],
    "factions": [],
    "keyLocations": [],
    "moralDilemmas": [],
    "secretThreats": [],
    "introNarrative": (
        "You stand at the edge of a village whose lanterns have gone dark. "
        "Something stirs in the hills, and the villagers are looking to you."
    ),
}

FALLBACK_ADVENTURE: dict[str, Any] = {
    "title": "The Lost Shrine",
    "description": "A forgotten shrine has been found in the hills, and something inside is waking.",
    "setting": "A wooded valley on the edge of civilization",
    "hooks": ["A villager begs the party to find a missing shepherd."],
    "mainQuest": {"title": "Seal the Shrine", "description": "Reach the inner sanctum and seal it."},
    "sideQuests": [],
    "npcs": [],
    "locations": [],
    "encounters": [],
    "treasures": [],
    "conclusion": "The shrine falls silent, for now.",
}

FALLBACK_NPC: dict[str, Any] = {
    "name": "Mysterious Stranger",
    "race": "Human",
    "class": "Commoner",
    "description": "A cloaked figure with a weathered face.",
    "personality": "Guarded but curious.",
    "motivation": "Unknown.",
    "background": "Few know where they came from.",
    "stats": {
        "strength": 10,
        "dexterity": 10,
        "constitution": 10,
        "intelligence": 10,
        "wisdom": 10,
        "charisma": 10,
    },
    "abilities": [],
    "items": [],
    "hooks": [],
}

FALLBACK_CHARACTER: dict[str, Any] = {
    "name": "Adventurer",
    "race": "Human",
    "class": "Fighter",
    "background": "Soldier",
    "level": 1,
    "alignment": "Neutral",
    "appearance": "Sturdy and travel-worn.",
    "personality": "Steady under pressure.",
    "backstory": "A former soldier looking for a new purpose.",
    "stats": {
        "strength": 15,
        "dexterity": 13,
        "constitution": 14,
        "intelligence": 10,
        "wisdom": 12,
        "charisma": 8,
    },
    "hp": 12,
    "maxHp": 12,
    "equipment": {"weapons": ["Longsword"], "armor": ["Chain mail"], "items": ["Backpack"]},
    "spells": [],
    "abilities": ["Second Wind"],
}

FALLBACK_ITEM: dict[str, Any] = {
    "name": "Traveler's Charm",
    "description": "A small brass charm worn smooth by many hands.",
    "backstory": "Passed between wanderers for generations, its origin long forgotten.",
    "type": "trinket",
    "rarity": "common",
    "weight": 0.1,
    "value": 1,
    "properties": [],
    "attunement": False,
    "quantity": 1,
    "isEquipped": False,
    "slot": 0,
    "source": "loot",
}

FALLBACK_NARRATION = (
    "The world holds its breath for a moment. Describe what your character "
    "does next, and the story will follow."
)

FALLBACK_DIALOGUE = "The figure regards you silently for a moment, then nods."

FALLBACK_BACKSTORY_TREE: dict[str, Any] = {
    "startNodeId": "start",
    "nodes": {
        "start": {
            "id": "start",
            "text": (
                "The night raiders burned your village, and you were the only one "
                "who saw which road they took."
            ),
            "choices": [
                {
                    "text": "Report them to the garrison and let the law answer.",
                    "nextNodeId": "duty",
                    "impact": {"alignment": "lawful", "background": ["Town watch"]},
                },
                {
                    "text": "Follow them alone into the hills.",
                    "nextNodeId": "freedom",
                    "impact": {"alignment": "chaotic", "personality": {"reckless": 2}},
                },
            ],
        },
        "duty": {
            "id": "duty",
            "text": "The garrison took you in, and years of drills taught you patience.",
            "ending": True,
        },
        "freedom": {
            "id": "freedom",
            "text": "The hills taught you to live by your wits and trust few people.",
            "ending": True,
        },
    },
}

FALLBACK_RELATIONSHIP_ANALYSIS: dict[str, Any] = {
    "summary": "Unable to analyze this relationship right now.",
    "dynamicFactors": [],
    "potentialConflicts": [],
    "growthOpportunities": [],
    "predictions": [],
}

_DICE_PATTERN = re.compile(
    r"roll(?:ed|s)\s+\d+|result\s+\d+|DC\s+\d+|success|failure|critical", re.IGNORECASE
)


def parse_json_object(text: str) -> dict[str, Any] | None:
    """Extract a JSON object from LLM response text.

    Handles markdown code fences and surrounding prose. Returns None when no
    object can be parsed.
    """
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*\n?", "", text)
        text = re.sub(r"\n?```\s*$", "", text)
        text = text.strip()

    try:
        result = json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if not match:
            return None
        try:
            result = json.loads(match.group())
        except json.JSONDecodeError:
            return None
    return result if isinstance(result, dict) else None


def contains_dice_roll(action: str) -> bool:
    return bool(_DICE_PATTERN.search(action))


def describe_alignment(law_chaos: int, good_evil: int) -> str:
    """Alignment label from accumulated tendencies (negative is lawful/good)."""
    if law_chaos <= -5:
        ethics = "lawful"
    elif law_chaos >= 5:
        ethics = "chaotic"
    else:
        ethics = "neutral"

    if good_evil <= -5:
        return f"{ethics} good"
    if good_evil >= 5:
        return f"{ethics} evil"
    return "true neutral" if ethics == "neutral" else f"{ethics} neutral"


def describe_personality(traits: dict[str, int]) -> str:
    """Phrase the strong traits (magnitude 2 or more); weak ones are dropped."""
    phrases = []
    for trait, value in traits.items():
        if value >= 4:
            phrases.append(f"extremely {trait}")
        elif value >= 2:
            phrases.append(f"notably {trait}")
        elif value <= -4:
            phrases.append(f"rarely {trait}")
        elif value <= -2:
            phrases.append(f"somewhat reluctant to be {trait}")
    return ", ".join(phrases)


def _character_line(character: Character) -> str:
    return (
        f"{character.name}, level {character.level} {character.race} "
        f"{character.character_class}. Background: {character.background or 'Unknown'}"
    )


class ContentGenerator:
    """Generates game content through an LLM backend.

    Args:
        llm: Backend used for all calls.
        rng: Random source for picking campaign genre, theme and tone. Pass a
             seeded ``random.Random`` for reproducible picks.
    """

    def __init__(self, llm: LLMBackend, rng: random.Random | None = None):
        self.llm = llm
        self.rng = rng or random.Random()

    def _complete(self, system: str, user: str, **kwargs) -> str | None:
        messages = [Message(role="system", content=system), Message(role="user", content=user)]
        try:
            return self.llm.chat(messages, **kwargs).text
        except LLMUnavailableError as e:
            logger.warning(f"LLM unavailable, using fallback content: {e}")
            return None

    def _complete_json(
        self, kind: str, system: str, user: str, fallback: dict[str, Any], **kwargs
    ) -> dict[str, Any]:
        text = self._complete(system, user, json_mode=True, **kwargs)
        if text is None:
            return copy.deepcopy(fallback)
        result = parse_json_object(text)
        if result is None:
            logger.warning(f"Could not parse {kind} JSON from LLM response, using fallback")
            return copy.deepcopy(fallback)
        return result

    def generate_campaign(
        self, genre: str | None = None, theme: str | None = None, tone: str | None = None
    ) -> dict[str, Any]:
        """Generate a campaign world. Unspecified genre, theme and tone are picked at random."""
        user = prompts.CAMPAIGN_USER.format(
            genre=genre or self.rng.choice(prompts.GENRES),
            theme=theme or self.rng.choice(prompts.THEMES),
            tone=tone or self.rng.choice(prompts.TONES),
            world_archetype=self.rng.choice(prompts.WORLD_ARCHETYPES),
            magical_element=self.rng.choice(prompts.MAGICAL_ELEMENTS),
        )
        return self._complete_json(
            "campaign",
            prompts.CAMPAIGN_SYSTEM,
            user,
            FALLBACK_CAMPAIGN,
            temperature=0.9,
            max_tokens=2000,
        )

    def generate_adventure(
        self,
        theme: str = "fantasy",
        setting: str = "medieval",
        difficulty: str = "medium",
        party_level: int = 1,
        party_size: int = 4,
        include_elements: list[str] | None = None,
    ) -> dict[str, Any]:
        user = prompts.ADVENTURE_USER.format(
            theme=theme,
            setting=setting,
            difficulty=difficulty,
            party_level=party_level,
            party_size=party_size,
            elements=", ".join(include_elements or []) or "none",
        )
        return self._complete_json("adventure", prompts.ADVENTURE_SYSTEM, user, FALLBACK_ADVENTURE)

    def generate_npc(
        self,
        race: str | None = None,
        role: str | None = None,
        alignment: str | None = None,
        is_hostile: bool = False,
    ) -> dict[str, Any]:
        user = prompts.NPC_USER.format(
            race=race or prompts.CHOOSE.format(what="race"),
            role=role or prompts.CHOOSE.format(what="role"),
            alignment=alignment or prompts.CHOOSE.format(what="alignment"),
            disposition="Hostile to players" if is_hostile else "Neutral or friendly",
        )
        return self._complete_json("NPC", prompts.NPC_SYSTEM, user, FALLBACK_NPC)

    def generate_character(
        self,
        race: str | None = None,
        character_class: str | None = None,
        level: int = 1,
        alignment: str | None = None,
    ) -> dict[str, Any]:
        user = prompts.CHARACTER_USER.format(
            race=race or prompts.CHOOSE.format(what="race"),
            character_class=character_class or prompts.CHOOSE.format(what="class"),
            level=level,
            alignment=alignment or prompts.CHOOSE.format(what="alignment"),
        )
        return self._complete_json(
            "character", prompts.CHARACTER_SYSTEM, user, FALLBACK_CHARACTER, temperature=0.8
        )

    def generate_item(
        self,
        item_type: str | None = None,
        rarity: str = "common",
        category: str | None = None,
        character_level: int = 1,
        context: str = "",
        enemy_type: str = "",
    ) -> dict[str, Any]:
        drop_note = ""
        if enemy_type:
            drop_note = f" The item is dropped by a defeated {enemy_type}."
        system = prompts.ITEM_SYSTEM.format(character_level=character_level, drop_note=drop_note)
        user = prompts.ITEM_USER.format(
            rarity=rarity,
            context=context or "No specific context provided",
            source=f"Dropped by {enemy_type}" if enemy_type else "Found within the environment",
            type_line=f"Preferred item type: {item_type}\n" if item_type else "",
            category_line=f"Category: {category}\n" if category else "",
            character_level=character_level,
        )
        return self._complete_json(
            "item", system, user, FALLBACK_ITEM, temperature=0.7, max_tokens=800
        )

    def generate_narration(self, context: str, action: str = "", auto_advance: bool = False) -> str:
        """Narrate the outcome of a player action, or advance the story on request."""
        is_roll = bool(action) and contains_dice_roll(action)
        if auto_advance or not action:
            user = prompts.NARRATION_ADVANCE_USER.format(context=context)
        elif is_roll:
            user = prompts.NARRATION_ROLL_USER.format(context=context, action=action)
        else:
            user = prompts.NARRATION_ACTION_USER.format(context=context, action=action)

        # Slightly lower temperature keeps roll outcomes on track
        text = self._complete(prompts.NARRATION_SYSTEM, user, temperature=0.7 if is_roll else 0.8)
        if not text or not text.strip():
            return FALLBACK_NARRATION
        return text.strip()

    def generate_dialogue(self, npc_info: str, context: str = "", player_prompt: str = "") -> str:
        user = prompts.DIALOGUE_USER.format(
            npc_info=npc_info,
            context=context or "None",
            player_line=f"Player says: {player_prompt}" if player_prompt else prompts.DIALOGUE_GREETING,
        )
        text = self._complete(prompts.DIALOGUE_SYSTEM, user)
        if not text or not text.strip():
            return FALLBACK_DIALOGUE
        return text.strip()

    def generate_backstory_tree(
        self,
        race: str = "human",
        character_class: str = "fighter",
        alignment: str = "neutral",
        theme: str = "classic fantasy",
    ) -> dict[str, Any]:
        """Generate a branching backstory as ``{"nodes": {...}, "startNodeId": ...}``.

        A response without a ``nodes`` object is replaced by the fallback tree.
        """
        system = prompts.BACKSTORY_TREE_SYSTEM.format(
            race=race, character_class=character_class, alignment=alignment, theme=theme
        )
        user = prompts.BACKSTORY_TREE_USER.format(
            race=race, character_class=character_class, theme=theme
        )
        tree = self._complete_json(
            "backstory tree", system, user, FALLBACK_BACKSTORY_TREE, temperature=0.7
        )
        if not isinstance(tree.get("nodes"), dict) or not tree["nodes"]:
            logger.warning("Backstory tree has no nodes, using fallback")
            return copy.deepcopy(FALLBACK_BACKSTORY_TREE)
        tree.setdefault("startNodeId", "start")
        return tree

    def finalize_backstory(
        self,
        narrative_path: list[dict[str, Any]],
        race: str = "human",
        character_class: str = "fighter",
        personality_traits: dict[str, int] | None = None,
        background_elements: list[str] | None = None,
        law_chaos: int = 0,
        good_evil: int = 0,
    ) -> str:
        """Turn the events and choices walked through a backstory tree into prose."""
        alignment = describe_alignment(law_chaos, good_evil)
        steps = []
        for i, step in enumerate(narrative_path, start=1):
            line = f"Event {i}: {step.get('nodeText', '')}"
            if step.get("choiceText"):
                line += f"\nYour choice: {step['choiceText']}"
            steps.append(line)

        user = prompts.BACKSTORY_FINAL_USER.format(
            race=race,
            character_class=character_class,
            path="\n\n".join(steps),
            alignment=alignment,
            personality=describe_personality(personality_traits or {}) or "balanced and adaptable",
            background=", ".join(background_elements or []) or "standard adventurer background",
        )
        text = self._complete(prompts.BACKSTORY_FINAL_SYSTEM, user, temperature=0.8)
        if text and text.strip():
            return text.strip()

        paragraphs = []
        for step in narrative_path:
            paragraph = step.get("nodeText", "")
            if step.get("choiceText"):
                paragraph += f" You chose: {step['choiceText']}"
            paragraphs.append(paragraph.strip())
        paragraphs.append(
            f"Those years shaped you into a {alignment} {race} {character_class}, "
            "and the road ahead is still unwritten."
        )
        return "\n\n".join(p for p in paragraphs if p)

    def analyze_relationship(
        self,
        source: Character,
        target: Character,
        relationship: CharacterRelationship,
        campaign: Campaign | None = None,
    ) -> dict[str, Any]:
        """Summarize a relationship and predict how it may develop.

        Predictions are normalized to ``event``, ``outcome``, ``triggerCondition``
        and an integer ``probability`` clamped to 0-100.
        """
        history = "\n".join(
            f"- {entry.get('date', 'unknown date')}: {entry.get('description', '')} "
            f"(impact {entry.get('impact', 0):+d}; {entry.get('context', 'no context')})"
            for entry in relationship.interaction_history
        )
        campaign_line = "No campaign context available."
        if campaign:
            campaign_line = f"{campaign.name}. Setting: {campaign.setting or 'Unknown'}"
        user = prompts.RELATIONSHIP_USER.format(
            source=_character_line(source),
            target=_character_line(target),
            relationship_type=relationship.relationship_type,
            strength=relationship.relationship_strength,
            notes=relationship.notes or "None",
            history=history or "No previous interactions recorded.",
            campaign=campaign_line,
        )
        result = self._complete_json(
            "relationship analysis",
            prompts.RELATIONSHIP_SYSTEM,
            user,
            FALLBACK_RELATIONSHIP_ANALYSIS,
            temperature=0.7,
            max_tokens=1500,
        )

        def strings(key: str) -> list[str]:
            value = result.get(key)
            return [str(v) for v in value] if isinstance(value, list) else []

        predictions = []
        for raw in result.get("predictions") or []:
            if not isinstance(raw, dict):
                continue
            try:
                probability = int(raw.get("probability", 50))
            except (TypeError, ValueError):
                probability = 50
            predictions.append(
                {
                    "event": str(raw.get("event") or raw.get("predicted_event") or ""),
                    "outcome": str(raw.get("outcome") or raw.get("predicted_outcome") or ""),
                    "triggerCondition": str(
                        raw.get("triggerCondition") or raw.get("trigger_condition") or ""
                    ),
                    "probability": min(100, max(0, probability)),
                }
            )

        return {
            "summary": str(result.get("summary") or FALLBACK_RELATIONSHIP_ANALYSIS["summary"]),
            "dynamicFactors": strings("dynamicFactors"),
            "potentialConflicts": strings("potentialConflicts"),
            "growthOpportunities": strings("growthOpportunities"),
            "predictions": predictions,
        }
