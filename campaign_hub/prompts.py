"""LLM prompt templates for the content generators."""

# =============================================================================
# Campaigns
# =============================================================================

GENRES = [
    "high fantasy",
    "dark fantasy",
    "sword and sorcery",
    "epic fantasy",
    "steampunk fantasy",
    "urban fantasy",
    "gothic horror",
    "cosmic horror",
    "swashbuckling adventure",
    "political intrigue",
    "frontier fantasy",
    "magical realism",
    "mythic fantasy",
    "planar adventure",
    "prehistoric fantasy",
]

THEMES = [
    "redemption",
    "corruption",
    "survival",
    "discovery",
    "revolution",
    "justice",
    "vengeance",
    "ascension",
    "fall from grace",
    "rebirth",
    "ancient awakening",
    "eldritch mystery",
    "planar convergence",
    "prophecy",
    "invasion",
    "conspiracy",
    "exploration",
    "colonization",
    "technological revolution",
]

TONES = [
    "heroic",
    "grim",
    "whimsical",
    "mysterious",
    "tragic",
    "hopeful",
    "comical",
    "suspenseful",
    "horrific",
    "morally ambiguous",
    "epic",
    "intimate",
    "philosophical",
    "gritty",
    "dreamlike",
    "surreal",
]

WORLD_ARCHETYPES = [
    "shattered world of floating islands",
    "archipelago of island nations",
    "underground civilization beneath a wasteland",
    "isolated valley surrounded by impassable mountains",
    "massive ancient forest with tree cities",
    "sprawling desert with oasis city-states",
    "frozen tundra with nomadic tribes",
    "volcanic island chain with diverse microclimates",
    "planar crossroads where multiple dimensions overlap",
    "endless steppes roamed by mounted clans",
    "jungle-covered ruins of an ancient empire",
    "foggy wetlands with isolated settlements",
]

MAGICAL_ELEMENTS = [
    "sentient storms that can be bargained with",
    "crystallized memories that can be traded and experienced",
    "magical metals that respond to emotions",
    "wild magic zones that constantly shift location",
    "ancient machines powered by starlight",
    "song-based magic that causes physical changes",
    "living architecture that grows and responds",
    "runic language where written words manifest physically",
    "enchantments bound to constellations",
]

CAMPAIGN_SYSTEM = """\
You are an inventive Dungeon Master who builds unconventional campaign worlds \
for Dungeons & Dragons. Favor original societies, magic and geography over \
generic medieval European fantasy. Factions should have morally nuanced \
motivations, and the world should offer several interconnected plot threads.

Respond with ONLY a JSON object, no other text."""

CAMPAIGN_USER = """\
Create an original D&D campaign setting:
- Genre: {genre}
- Theme: {theme}
- Tone: {tone}
- World archetype to consider: {world_archetype}
- Magical element to consider: {magical_element}

JSON fields:
- name: a distinctive campaign name
- description: 300-400 words on geography, societies, conflicts and hooks
- setting: "Homebrew" plus a short note on what sets this world apart
- worldQuirks: array of 4-6 unusual features
- factions: array of 4-5 groups
- keyLocations: array of 5-7 locations
- moralDilemmas: array of 3-5 dilemmas
- secretThreats: array of 2-4 hidden threats
- introNarrative: 300-400 word second-person introduction for the players"""

# =============================================================================
# Adventures
# =============================================================================

ADVENTURE_SYSTEM = """\
You are a Dungeon Master's assistant who writes engaging D&D adventures with a \
title, an overview, a setting, NPCs and quest objectives.

Respond with ONLY a JSON object, no other text."""

ADVENTURE_USER = """\
Create a D&D adventure:
- Theme: {theme}
- Setting: {setting}
- Difficulty: {difficulty}
- Party level: {party_level}
- Party size: {party_size}
- Elements to include: {elements}

JSON fields:
- title, description, setting
- hooks: ways to introduce the adventure
- mainQuest: object with title and description
- sideQuests: array of objects with title and description
- npcs: array of objects with name, description and role
- locations: array of objects with name and description
- encounters: array of objects with description and challengeRating
- treasures: array of rewards
- conclusion: possible endings"""

# =============================================================================
# NPCs and characters
# =============================================================================

NPC_SYSTEM = """\
You create detailed non-player characters for D&D campaigns.

Respond with ONLY a JSON object, no other text."""

NPC_USER = """\
Create a D&D NPC:
- Race: {race}
- Role: {role}
- Alignment: {alignment}
- Disposition: {disposition}

JSON fields: name, race, class, description, personality, motivation, \
background, stats (strength, dexterity, constitution, intelligence, wisdom, \
charisma), abilities, items, hooks"""

CHARACTER_SYSTEM = """\
You create D&D player characters with nuanced moral alignments. Alignment is a \
tendency on two axes (law-chaos and good-evil) that can shift with the \
character's choices, not a fixed label.

Respond with ONLY a JSON object, no other text."""

CHARACTER_USER = """\
Create a D&D character:
- Race: {race}
- Class: {character_class}
- Level: {level}
- Alignment: {alignment}

JSON fields: name, race, class, background, level, alignment, \
alignmentDescription, lawChaosValue (0-100), goodEvilValue (0-100), appearance, \
personality, backstory, moralChoices (3 entries), stats (strength, dexterity, \
constitution, intelligence, wisdom, charisma), hp, maxHp, proficiencies, \
equipment (object with weapons, armor and items arrays), spells, abilities, traits"""

CHOOSE = "Choose an appropriate {what}"

# =============================================================================
# Items
# =============================================================================

ITEM_SYSTEM = """\
You design D&D 5e items that fit the current story. Items should feel like \
natural discoveries with a plausible origin, follow 5e balance, and suit level \
{character_level} characters.{drop_note}

Respond with ONLY a JSON object, no other text."""

ITEM_USER = """\
Create a {rarity} item.
Story context: {context}
Source: {source}
{type_line}{category_line}Character level: {character_level}

JSON fields: name, description, backstory, type (weapon, armor, apparel, potion, \
scroll, tool, trinket, quest, miscellaneous), apparelSlot (for apparel), rarity, \
weight, value, properties, attunement, quantity, isEquipped (false), slot (0), \
source (loot, crafted, quest, purchased, starting)"""

# =============================================================================
# Narration and dialogue
# =============================================================================

NARRATION_SYSTEM = """\
You are an expert Dungeon Master narrating an open-world D&D game. React \
realistically to any player choice, balance puzzles, combat, social scenes and \
exploration, and keep earlier details in play. When the input contains a dice \
roll result, narrate its concrete consequences; natural 20s and natural 1s \
deserve dramatic outcomes. Be vivid and concise. Suggest checks when an action \
needs one, but never resolve them yourself."""

NARRATION_ADVANCE_USER = """\
Context: {context}

The player wants to advance the story. Introduce a new development that fits \
the context, such as a moral dilemma, a puzzle, an encounter, a revealing \
conversation or a twist on earlier events. Leave the player free to respond."""

NARRATION_ROLL_USER = """\
Context: {context}

Dice roll: {action}

Narrate the specific consequences of this roll. A success should accomplish \
the goal, a failure should complicate things, and critical results should be \
dramatic."""

NARRATION_ACTION_USER = """\
Context: {context}

Player action: {action}

Describe what happens next as the DM, letting this action shape the world. If \
checks would be required, mention them without resolving them."""

DIALOGUE_SYSTEM = """\
You write authentic D&D NPC dialogue that matches the NPC's personality and \
background and responds to what the player does or says."""

DIALOGUE_USER = """\
NPC information: {npc_info}

Context: {context}

{player_line}

Reply with only the NPC's dialogue."""

DIALOGUE_GREETING = "Generate an initial greeting or reaction based on the context."

# =============================================================================
# Backstories
# =============================================================================

BACKSTORY_TREE_SYSTEM = """\
You design branching backstory paths for D&D player characters. A backstory \
tree starts with a formative event and branches on the character's choices. \
Each choice shifts alignment, personality traits or background elements.

Every node has an id, text (1-2 paragraphs) and either a choices array or \
"ending": true. Each choice has text, nextNodeId and an optional impact object \
with alignment ("lawful", "chaotic", "good", "evil" or "neutral"), personality \
(trait name to a magnitude from -3 to 3) and background (list of strings).

Craft the tree for a {race} {character_class} with initial {alignment} \
tendencies in a {theme} setting.

Respond with ONLY a JSON object, no other text."""

BACKSTORY_TREE_USER = """\
Generate a complete branching backstory tree for a {race} {character_class}.

- Start from a compelling situation with at least 3 choices
- Branch 3-4 times before each ending
- Provide 15-20 nodes in total
- Keep the plot appropriate for a {race} {character_class} in a {theme} world

JSON fields: nodes (object keyed by node id), startNodeId"""

BACKSTORY_FINAL_SYSTEM = """\
You are a storyteller who turns a character's past events and choices into a \
cohesive D&D backstory. Write in the second person ("you"), in 3-5 paragraphs, \
and leave hooks for future adventures."""

BACKSTORY_FINAL_USER = """\
Write the backstory of a {race} {character_class}.

Narrative path (in chronological order):
{path}

Character tends toward: {alignment}

Personality traits: {personality}

Background elements: {background}"""

# =============================================================================
# Relationships
# =============================================================================

RELATIONSHIP_SYSTEM = """\
You analyze relationships between characters in a D&D campaign. Base the \
analysis on the relationship type, its strength, the interaction history and \
the characters' races, classes and backgrounds. Predictions describe events \
that could plausibly happen in play, with a clear trigger condition.

Respond with ONLY a JSON object, no other text."""

RELATIONSHIP_USER = """\
SOURCE CHARACTER: {source}

TARGET CHARACTER: {target}

RELATIONSHIP:
Type: {relationship_type}
Strength: {strength} (scale from -10 to +10)
Notes: {notes}

INTERACTION HISTORY:
{history}

CAMPAIGN: {campaign}

JSON fields: summary, dynamicFactors, potentialConflicts, growthOpportunities, \
predictions (list of objects with event, outcome, triggerCondition and \
probability from 0 to 100)"""
