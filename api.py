"""Flask REST API and Socket.IO relay for Campaign Hub."""

import atexit
import json
import logging
from datetime import datetime, timedelta
from typing import Any

from flask import Flask, jsonify, request

from campaign_hub.config import (
    CHAT_HISTORY_LIMIT,
    CORS_ORIGINS,
    DATABASE_PATH,
    GAME_LOG_LIMIT,
    JWT_EXPIRES_HOURS,
    JWT_SECRET_KEY,
    LLM_BACKEND,
    LOG_LEVEL,
)

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)
from flask_cors import CORS
from flask_jwt_extended import (
    JWTManager,
    create_access_token,
    get_jwt_identity,
    jwt_required,
)
from flask_socketio import SocketIO
from flasgger import Swagger
from pydantic import ValidationError

from campaign_hub import payloads
from campaign_hub.generators import FALLBACK_CHARACTER, ContentGenerator
from campaign_hub.models.base import LLMBackend
from campaign_hub.models.factory import get_backend, list_backends
from campaign_hub.planning import PlanningError, PlanningService
from campaign_hub.realtime import CampaignRelay, SessionRegistry
from campaign_hub.relationships import generate_campaign_predictions
from campaign_hub.storage import Campaign, Character, CharacterRelationship, Storage, StorageError

app = Flask(__name__)

# Enable CORS for the browser client
CORS(app, resources={r"/api/*": {"origins": CORS_ORIGINS}})

# =============================================================================
# Configuration
# =============================================================================

app.config["JWT_SECRET_KEY"] = JWT_SECRET_KEY
app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(hours=JWT_EXPIRES_HOURS)

jwt = JWTManager(app)

app.config["SWAGGER"] = {
    "title": "Campaign Hub API",
    "description": "REST API for tabletop campaigns, party planning and AI content",
    "version": "0.1.0",
    "specs_route": "/api/docs/",
}

swagger_template = {
    "swagger": "2.0",
    "info": {
        "title": "Campaign Hub API",
        "description": "Campaigns, characters, chat, party planning and AI-generated content",
        "version": "0.1.0",
    },
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "JWT Authorization header. Example: 'Bearer {token}'",
        }
    },
    "security": [{"Bearer": []}],
}

swagger = Swagger(app, template=swagger_template)

# =============================================================================
# Socket.IO Configuration
# =============================================================================

# Handlers run one at a time per client so a client's messages are applied in
# the order they were sent.
socketio = SocketIO(
    app, cors_allowed_origins=CORS_ORIGINS, async_mode="threading", async_handlers=False
)

# =============================================================================
# Services
# =============================================================================

storage: Storage
registry: SessionRegistry
planning_service: PlanningService
relay: CampaignRelay
generator: ContentGenerator


def _send_to_sid(sid: str, payload: dict[str, Any]) -> None:
    socketio.emit("message", payload, to=sid)


def init_services(db_path=None, llm: LLMBackend | None = None) -> None:
    """(Re)build the storage facade, socket registry, relay and generator."""
    global storage, registry, planning_service, relay, generator

    storage = Storage(db_path or DATABASE_PATH)
    registry = SessionRegistry()
    planning_service = PlanningService(storage)
    relay = CampaignRelay(registry, planning_service, storage, _send_to_sid)
    generator = ContentGenerator(llm or get_backend())


init_services()


def shutdown():
    """Drop socket registrations and close the database."""
    logger.info("Shutting down Campaign Hub...")
    registry.clear()
    storage.close()
    logger.info("Shutdown complete")


atexit.register(shutdown)


@socketio.on("connect")
def handle_connect(auth=None):
    """A socket connected. It receives nothing until it joins a campaign."""
    logger.info(f"Socket connected: {request.sid}")


@socketio.on("disconnect")
def handle_disconnect(reason=None):
    """Remove the socket from its campaign room."""
    logger.info(f"Socket disconnected: {request.sid}")
    relay.disconnect(request.sid)


@socketio.on("message")
def handle_message(data):
    """Handle a join, chat or planning message from a socket.

    Args:
        data: JSON object (or JSON string) with a ``type`` field
    """
    relay.handle(request.sid, data)


# =============================================================================
# Errors
# =============================================================================


class ApiError(Exception):
    """Raised by route helpers to short-circuit with an error response."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.message = message
        self.status = status


@app.errorhandler(ApiError)
def handle_api_error(e: ApiError):
    return jsonify({"error": e.message}), e.status


@app.errorhandler(ValidationError)
def handle_validation_error(e: ValidationError):
    details = json.loads(e.json(include_url=False, include_context=False))
    return jsonify({"error": "Invalid request", "details": details}), 400


@app.errorhandler(PlanningError)
def handle_planning_error(e: PlanningError):
    return jsonify({"error": str(e)}), e.status


@app.errorhandler(StorageError)
def handle_storage_error(e: StorageError):
    logger.error(f"Storage error on {request.method} {request.path}: {e}")
    return jsonify({"error": "Internal storage error"}), 500


@jwt.unauthorized_loader
def handle_missing_token(reason: str):
    return jsonify({"error": reason}), 401


@jwt.invalid_token_loader
def handle_invalid_token(reason: str):
    return jsonify({"error": reason}), 401


@jwt.expired_token_loader
def handle_expired_token(jwt_header, jwt_payload):
    return jsonify({"error": "Token has expired"}), 401


# =============================================================================
# Helpers
# =============================================================================


def current_user_id() -> int:
    return int(get_jwt_identity())


def _json_object() -> dict[str, Any]:
    """The request body as a dict; a missing body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ApiError("Request body must be a JSON object", 400)
    return data


def _body(model: type[payloads.Payload]) -> Any:
    """Validate the JSON body against a payload model."""
    return model.model_validate(_json_object())


def _load_campaign(campaign_id: int, dm_only: bool = False) -> Campaign:
    """Fetch a campaign the current user may access.

    Participants (DM or active player) may read; ``dm_only`` restricts to the DM.
    """
    campaign = storage.campaigns.get(campaign_id)
    if not campaign:
        raise ApiError("Campaign not found", 404)
    user_id = current_user_id()
    if dm_only:
        if campaign.dm_id != user_id:
            raise ApiError("Only the DM can do that", 403)
    elif not storage.campaigns.is_participant(user_id, campaign):
        raise ApiError("Not a participant in this campaign", 403)
    return campaign


def _load_own_character(character_id: int) -> Character:
    character = storage.characters.get(character_id)
    if not character:
        raise ApiError("Character not found", 404)
    if character.user_id != current_user_id():
        raise ApiError("Forbidden", 403)
    return character


def _current_username() -> str:
    user = storage.users.get(current_user_id())
    return user.username if user else f"user-{current_user_id()}"


def _limit_arg(default: int) -> int:
    limit = request.args.get("limit", default, type=int)
    return max(1, min(limit, 500))


# =============================================================================
# Auth Endpoints
# =============================================================================


@app.route("/api/auth/register", methods=["POST"])
def register():
    """
    Register a user account
    ---
    tags:
      - Authentication
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - username
            - password
          properties:
            username:
              type: string
              example: mira
            password:
              type: string
            email:
              type: string
    responses:
      201:
        description: User created, with an access token
      400:
        description: Invalid request or username taken
    """
    data = _body(payloads.Registration)
    try:
        user = storage.users.create(data.username, data.password, data.email)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    logger.info(f"Registered user {user.username} ({user.id})")
    return (
        jsonify({"user": user.to_json(), "access_token": create_access_token(identity=str(user.id))}),
        201,
    )


@app.route("/api/auth/token", methods=["POST"])
def get_token():
    """
    Get JWT access token
    ---
    tags:
      - Authentication
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - username
            - password
          properties:
            username:
              type: string
            password:
              type: string
    responses:
      200:
        description: Access token
        schema:
          type: object
          properties:
            access_token:
              type: string
            token_type:
              type: string
              example: bearer
            expires_in:
              type: integer
              example: 86400
      400:
        description: Missing credentials
      401:
        description: Invalid credentials
    """
    data = _body(payloads.Credentials)
    user = storage.users.authenticate(data.username, data.password)
    if not user:
        return jsonify({"error": "Invalid credentials"}), 401

    storage.user_sessions.upsert(user.id, "online")
    return jsonify(
        {
            "access_token": create_access_token(identity=str(user.id)),
            "token_type": "bearer",
            "expires_in": JWT_EXPIRES_HOURS * 3600,
        }
    )


@app.route("/api/auth/me", methods=["GET"])
@jwt_required()
def get_me():
    """
    Get the current user
    ---
    tags:
      - Authentication
    responses:
      200:
        description: The authenticated user
      404:
        description: User no longer exists
    """
    user = storage.users.get(current_user_id())
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user.to_json())


# =============================================================================
# Character Endpoints
# =============================================================================


@app.route("/api/characters", methods=["GET"])
@jwt_required()
def list_characters():
    """
    List the current user's characters
    ---
    tags:
      - Characters
    responses:
      200:
        description: Characters owned by the user, including bot companions
    """
    return jsonify([c.to_json() for c in storage.characters.list_for_user(current_user_id())])


@app.route("/api/characters", methods=["POST"])
@jwt_required()
def create_character():
    """
    Create a character
    ---
    tags:
      - Characters
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
            - race
            - class
          properties:
            name:
              type: string
              example: Thorin
            race:
              type: string
              example: Dwarf
            class:
              type: string
              example: Fighter
            level:
              type: integer
            stats:
              type: object
    responses:
      201:
        description: Character created
      400:
        description: Invalid request
    """
    data = _body(payloads.CharacterCreate)
    fields = data.provided()
    character = storage.characters.create(
        current_user_id(),
        fields.pop("name"),
        fields.pop("race"),
        fields.pop("character_class"),
        **{k: v for k, v in fields.items() if v is not None},
    )
    return jsonify(character.to_json()), 201


@app.route("/api/characters/<int:character_id>", methods=["GET"])
@jwt_required()
def get_character(character_id: int):
    """
    Get a character
    ---
    tags:
      - Characters
    parameters:
      - name: character_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Character
      403:
        description: Character belongs to another user
      404:
        description: Character not found
    """
    return jsonify(_load_own_character(character_id).to_json())


@app.route("/api/characters/<int:character_id>", methods=["PUT"])
@jwt_required()
def update_character(character_id: int):
    """
    Update a character
    ---
    tags:
      - Characters
    parameters:
      - name: character_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        schema:
          type: object
    responses:
      200:
        description: Updated character
      403:
        description: Character belongs to another user
      404:
        description: Character not found
    """
    _load_own_character(character_id)
    updates = _body(payloads.CharacterUpdate).provided()
    character = storage.characters.update(character_id, updates)
    return jsonify(character.to_json())


@app.route("/api/characters/<int:character_id>", methods=["DELETE"])
@jwt_required()
def delete_character(character_id: int):
    """
    Delete a character
    ---
    tags:
      - Characters
    parameters:
      - name: character_id
        in: path
        type: integer
        required: true
    responses:
      204:
        description: Deleted
      403:
        description: Character belongs to another user
      404:
        description: Character not found
    """
    _load_own_character(character_id)
    storage.characters.delete(character_id)
    return "", 204


@app.route("/api/characters/generate", methods=["POST"])
@jwt_required()
def generate_character():
    """
    Generate a character sheet with the LLM (not saved)
    ---
    tags:
      - Generation
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            race:
              type: string
            class:
              type: string
            level:
              type: integer
            alignment:
              type: string
    responses:
      200:
        description: Generated character sheet
    """
    data = _body(payloads.CharacterGenerate)
    return jsonify(
        generator.generate_character(
            race=data.race,
            character_class=data.character_class,
            level=data.level,
            alignment=data.alignment,
        )
    )


@app.route("/api/characters/generate-backstory-tree", methods=["POST"])
@jwt_required()
def generate_backstory_tree():
    """
    Generate a branching backstory tree for interactive character creation
    ---
    tags:
      - Generation
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            race:
              type: string
            class:
              type: string
            alignment:
              type: string
            theme:
              type: string
    responses:
      200:
        description: Tree with nodes keyed by id and a startNodeId
    """
    data = _body(payloads.BackstoryTreeRequest)
    return jsonify(
        generator.generate_backstory_tree(
            race=data.race,
            character_class=data.character_class,
            alignment=data.alignment,
            theme=data.theme,
        )
    )


@app.route("/api/characters/finalize-backstory", methods=["POST"])
@jwt_required()
def finalize_backstory():
    """
    Write a backstory from the path taken through a backstory tree
    ---
    tags:
      - Generation
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - narrativePath
          properties:
            race:
              type: string
            class:
              type: string
            narrativePath:
              type: array
              items:
                type: object
                properties:
                  nodeText:
                    type: string
                  choiceText:
                    type: string
            personalityTraits:
              type: object
            backgroundElements:
              type: array
              items:
                type: string
            alignmentTendencies:
              type: object
              properties:
                lawChaos:
                  type: integer
                goodEvil:
                  type: integer
    responses:
      200:
        description: The finished backstory
      400:
        description: Missing narrative path
    """
    data = _body(payloads.BackstoryFinalize)
    backstory = generator.finalize_backstory(
        [step.model_dump(by_alias=True) for step in data.narrative_path],
        race=data.race,
        character_class=data.character_class,
        personality_traits=data.personality_traits,
        background_elements=data.background_elements,
        law_chaos=data.alignment_tendencies.law_chaos,
        good_evil=data.alignment_tendencies.good_evil,
    )
    return jsonify({"backstory": backstory})


# =============================================================================
# Campaign Endpoints
# =============================================================================


@app.route("/api/campaigns", methods=["GET"])
@jwt_required()
def list_campaigns():
    """
    List campaigns the user runs or plays in
    ---
    tags:
      - Campaigns
    responses:
      200:
        description: Campaigns, DM campaigns first
    """
    user_id = current_user_id()
    campaigns = storage.campaigns.list_for_dm(user_id)
    seen = {c.id for c in campaigns}
    campaigns += [c for c in storage.campaigns.list_for_player(user_id) if c.id not in seen]
    return jsonify([c.to_json() for c in campaigns])


@app.route("/api/campaigns", methods=["POST"])
@jwt_required()
def create_campaign():
    """
    Create a campaign with the current user as DM
    ---
    tags:
      - Campaigns
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
          properties:
            name:
              type: string
              example: The Sunken Crown
            description:
              type: string
            setting:
              type: string
            isAiDm:
              type: boolean
    responses:
      201:
        description: Campaign created
      400:
        description: Invalid request
    """
    data = _body(payloads.CampaignCreate)
    campaign = storage.campaigns.create(
        name=data.name,
        dm_id=current_user_id(),
        description=data.description,
        setting=data.setting,
        is_ai_dm=data.is_ai_dm,
        status=data.status,
    )
    logger.info(f"Created campaign {campaign.id} '{campaign.name}'")
    return jsonify(campaign.to_json()), 201


@app.route("/api/campaigns/<int:campaign_id>", methods=["GET"])
@jwt_required()
def get_campaign(campaign_id: int):
    """
    Get campaign details
    ---
    tags:
      - Campaigns
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Campaign
      403:
        description: Not a participant
      404:
        description: Campaign not found
    """
    return jsonify(_load_campaign(campaign_id).to_json())


@app.route("/api/campaigns/<int:campaign_id>", methods=["PATCH"])
@jwt_required()
def update_campaign(campaign_id: int):
    """
    Update a campaign (DM only)
    ---
    tags:
      - Campaigns
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        schema:
          type: object
    responses:
      200:
        description: Updated campaign
      403:
        description: Not the DM
      404:
        description: Campaign not found
    """
    _load_campaign(campaign_id, dm_only=True)
    campaign = storage.campaigns.update(campaign_id, _body(payloads.CampaignUpdate).provided())
    return jsonify(campaign.to_json())


@app.route("/api/campaigns/<int:campaign_id>", methods=["DELETE"])
@jwt_required()
def delete_campaign(campaign_id: int):
    """
    Delete a campaign and everything in it (DM only)
    ---
    tags:
      - Campaigns
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
    responses:
      204:
        description: Deleted
      403:
        description: Not the DM
      404:
        description: Campaign not found
    """
    _load_campaign(campaign_id, dm_only=True)
    storage.campaigns.delete(campaign_id)
    logger.info(f"Deleted campaign {campaign_id}")
    return "", 204


@app.route("/api/campaigns/<int:campaign_id>/characters", methods=["GET"])
@jwt_required()
def list_campaign_characters(campaign_id: int):
    """
    List the active characters in a campaign
    ---
    tags:
      - Campaigns
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Characters
    """
    _load_campaign(campaign_id)
    characters = storage.campaigns.list_characters(campaign_id, storage.characters)
    return jsonify([c.to_json() for c in characters])


@app.route("/api/campaigns/<int:campaign_id>/characters", methods=["POST"])
@jwt_required()
def add_campaign_character(campaign_id: int):
    """
    Add a character to a campaign
    ---
    tags:
      - Campaigns
    description: The DM may add any character; players may add their own.
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - characterId
          properties:
            characterId:
              type: integer
    responses:
      201:
        description: Membership record
      403:
        description: Not allowed to add this character
      404:
        description: Campaign or character not found
    """
    data = _body(payloads.CampaignCharacterAdd)
    campaign = storage.campaigns.get(campaign_id)
    if not campaign:
        return jsonify({"error": "Campaign not found"}), 404
    character = storage.characters.get(data.character_id)
    if not character:
        return jsonify({"error": "Character not found"}), 404
    user_id = current_user_id()
    if user_id not in (campaign.dm_id, character.user_id):
        return jsonify({"error": "Forbidden"}), 403

    membership = storage.campaigns.add_character(campaign_id, character.id)
    return jsonify(membership.to_json()), 201


@app.route("/api/campaigns/<int:campaign_id>/adventures", methods=["GET"])
@jwt_required()
def list_adventures(campaign_id: int):
    """
    List adventures in a campaign
    ---
    tags:
      - Adventures
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Adventures, newest first
    """
    _load_campaign(campaign_id)
    return jsonify([a.to_json() for a in storage.adventures.list_for_campaign(campaign_id)])


@app.route("/api/campaigns/<int:campaign_id>/adventures", methods=["POST"])
@jwt_required()
def create_adventure(campaign_id: int):
    """
    Create an adventure (DM only)
    ---
    tags:
      - Adventures
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - title
          properties:
            title:
              type: string
            description:
              type: string
            location:
              type: string
    responses:
      201:
        description: Adventure created
    """
    _load_campaign(campaign_id, dm_only=True)
    data = _body(payloads.AdventureCreate)
    adventure = storage.adventures.create(
        campaign_id, data.title, data.description, data.location, data.status
    )
    return jsonify(adventure.to_json()), 201


@app.route("/api/campaigns/<int:campaign_id>/npcs", methods=["GET"])
@jwt_required()
def list_npcs(campaign_id: int):
    """
    List NPCs in a campaign
    ---
    tags:
      - Adventures
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: NPCs
    """
    _load_campaign(campaign_id)
    return jsonify([n.to_json() for n in storage.npcs.list_for_campaign(campaign_id)])


@app.route("/api/campaigns/<int:campaign_id>/npcs", methods=["POST"])
@jwt_required()
def create_npc(campaign_id: int):
    """
    Create an NPC (DM only)
    ---
    tags:
      - Adventures
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
    responses:
      201:
        description: NPC created
    """
    _load_campaign(campaign_id, dm_only=True)
    fields = _body(payloads.NpcCreate).provided()
    npc = storage.npcs.create(campaign_id, fields.pop("name"), **fields)
    return jsonify(npc.to_json()), 201


def _load_adventure(adventure_id: int, dm_only: bool = False):
    adventure = storage.adventures.get(adventure_id)
    if not adventure:
        raise ApiError("Adventure not found", 404)
    _load_campaign(adventure.campaign_id, dm_only=dm_only)
    return adventure


@app.route("/api/adventures/<int:adventure_id>/quests", methods=["GET"])
@jwt_required()
def list_quests(adventure_id: int):
    """
    List quests of an adventure, main quests first
    ---
    tags:
      - Adventures
    parameters:
      - name: adventure_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Quests
    """
    _load_adventure(adventure_id)
    return jsonify([q.to_json() for q in storage.quests.list_for_adventure(adventure_id)])


@app.route("/api/adventures/<int:adventure_id>/quests", methods=["POST"])
@jwt_required()
def create_quest(adventure_id: int):
    """
    Create a quest (DM only)
    ---
    tags:
      - Adventures
    parameters:
      - name: adventure_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - title
    responses:
      201:
        description: Quest created
    """
    _load_adventure(adventure_id, dm_only=True)
    fields = _body(payloads.QuestCreate).provided()
    quest = storage.quests.create(adventure_id, fields.pop("title"), **fields)
    return jsonify(quest.to_json()), 201


@app.route("/api/quests/<int:quest_id>", methods=["PATCH"])
@jwt_required()
def update_quest(quest_id: int):
    """
    Update a quest (DM only)
    ---
    tags:
      - Adventures
    parameters:
      - name: quest_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Updated quest
      404:
        description: Quest not found
    """
    quest = storage.quests.get(quest_id)
    if not quest:
        return jsonify({"error": "Quest not found"}), 404
    _load_adventure(quest.adventure_id, dm_only=True)
    quest = storage.quests.update(quest_id, _body(payloads.QuestUpdate).provided())
    return jsonify(quest.to_json())


# =============================================================================
# Game Log & Chat Endpoints
# =============================================================================


@app.route("/api/campaigns/<int:campaign_id>/logs", methods=["GET"])
@jwt_required()
def list_game_logs(campaign_id: int):
    """
    Get recent game log entries
    ---
    tags:
      - Game Log
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
      - name: limit
        in: query
        type: integer
        default: 50
    responses:
      200:
        description: Log entries, newest first
    """
    _load_campaign(campaign_id)
    logs = storage.game_logs.recent(campaign_id, _limit_arg(GAME_LOG_LIMIT))
    return jsonify([entry.to_json() for entry in logs])


@app.route("/api/campaigns/<int:campaign_id>/logs", methods=["POST"])
@jwt_required()
def create_game_log(campaign_id: int):
    """
    Append a game log entry (DM only)
    ---
    tags:
      - Game Log
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - content
          properties:
            content:
              type: string
            type:
              type: string
              example: narrative
            metadata:
              type: object
    responses:
      201:
        description: Log entry created
    """
    _load_campaign(campaign_id, dm_only=True)
    data = _body(payloads.GameLogCreate)
    entry = storage.game_logs.create(campaign_id, data.content, data.type, data.metadata)
    return jsonify(entry.to_json()), 201


@app.route("/api/campaigns/<int:campaign_id>/chat", methods=["GET"])
@jwt_required()
def get_chat_history(campaign_id: int):
    """
    Get campaign chat history
    ---
    tags:
      - Chat
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
      - name: limit
        in: query
        type: integer
        default: 50
    responses:
      200:
        description: Latest messages in chronological order
      403:
        description: Not a participant
    """
    _load_campaign(campaign_id)
    messages = storage.chat.history(campaign_id, _limit_arg(CHAT_HISTORY_LIMIT))
    return jsonify([m.to_json() for m in messages])


@app.route("/api/campaigns/<int:campaign_id>/chat", methods=["POST"])
@jwt_required()
def post_chat_message(campaign_id: int):
    """
    Post a chat message and relay it to connected sockets
    ---
    tags:
      - Chat
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - content
          properties:
            content:
              type: string
    responses:
      201:
        description: Stored message
      403:
        description: Not a participant
    """
    _load_campaign(campaign_id)
    data = _body(payloads.ChatPost)
    message = storage.chat.create(campaign_id, current_user_id(), data.content)
    relay.broadcast_chat(message, _current_username())
    return jsonify(message.to_json()), 201


# =============================================================================
# Party Planning Endpoints
# =============================================================================


def _load_plan(plan_id: int):
    plan = storage.plans.get(plan_id)
    if not plan:
        raise ApiError("Plan not found", 404)
    _load_campaign(plan.campaign_id)
    return plan


def _apply_planning(campaign_id: int, action: str, data: dict[str, Any]):
    """Persist a planning action and broadcast it like a socket client would."""
    return relay.apply_planning(campaign_id, current_user_id(), _current_username(), action, data)


@app.route("/api/campaigns/<int:campaign_id>/party-plans", methods=["GET"])
@jwt_required()
def list_party_plans(campaign_id: int):
    """
    List party plans in a campaign
    ---
    tags:
      - Party Planning
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Plans, newest first
    """
    _load_campaign(campaign_id)
    return jsonify([p.to_json() for p in storage.plans.list_for_campaign(campaign_id)])


@app.route("/api/campaigns/<int:campaign_id>/party-plans", methods=["POST"])
@jwt_required()
def create_party_plan(campaign_id: int):
    """
    Create a party plan
    ---
    tags:
      - Party Planning
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - title
          properties:
            title:
              type: string
            description:
              type: string
    responses:
      201:
        description: Plan created and broadcast to the campaign
    """
    _load_campaign(campaign_id)
    result = _apply_planning(campaign_id, "create_plan", _json_object())
    return jsonify(result.plan.to_json()), 201


@app.route("/api/party-plans/<int:plan_id>", methods=["GET"])
@jwt_required()
def get_party_plan(plan_id: int):
    """
    Get a party plan with its items
    ---
    tags:
      - Party Planning
    parameters:
      - name: plan_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Plan with items ordered by position
      404:
        description: Plan not found
    """
    _load_plan(plan_id)
    return jsonify(storage.plans.get_with_items(plan_id).to_json())


@app.route("/api/party-plans/<int:plan_id>", methods=["PUT"])
@jwt_required()
def update_party_plan(plan_id: int):
    """
    Update a party plan
    ---
    tags:
      - Party Planning
    parameters:
      - name: plan_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Updated plan
    """
    plan = _load_plan(plan_id)
    data = {**_json_object(), "planId": plan_id}
    result = _apply_planning(plan.campaign_id, "update_plan", data)
    return jsonify(result.plan.to_json())


@app.route("/api/party-plans/<int:plan_id>", methods=["DELETE"])
@jwt_required()
def delete_party_plan(plan_id: int):
    """
    Delete a party plan (creator or DM)
    ---
    tags:
      - Party Planning
    parameters:
      - name: plan_id
        in: path
        type: integer
        required: true
    responses:
      204:
        description: Deleted
      403:
        description: Not the creator or the DM
    """
    plan = _load_plan(plan_id)
    _apply_planning(plan.campaign_id, "delete_plan", {"planId": plan_id})
    return "", 204


@app.route("/api/party-plans/<int:plan_id>/items", methods=["POST"])
@jwt_required()
def create_plan_item(plan_id: int):
    """
    Add an item to a party plan
    ---
    tags:
      - Party Planning
    parameters:
      - name: plan_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - content
          properties:
            content:
              type: string
            type:
              type: string
              example: task
            status:
              type: string
              example: pending
            position:
              type: integer
            assignedToId:
              type: integer
    responses:
      201:
        description: Item created
    """
    plan = _load_plan(plan_id)
    data = {**_json_object(), "planId": plan_id}
    result = _apply_planning(plan.campaign_id, "create_item", data)
    return jsonify(result.item.to_json()), 201


def _load_plan_item(plan_id: int, item_id: int):
    plan = _load_plan(plan_id)
    item = storage.plans.items.get(item_id)
    if not item or item.plan_id != plan_id:
        raise ApiError("Item not found", 404)
    return plan, item


@app.route("/api/party-plans/<int:plan_id>/items/<int:item_id>", methods=["PUT"])
@jwt_required()
def update_plan_item(plan_id: int, item_id: int):
    """
    Update a plan item
    ---
    tags:
      - Party Planning
    parameters:
      - name: plan_id
        in: path
        type: integer
        required: true
      - name: item_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Updated item
    """
    plan, _ = _load_plan_item(plan_id, item_id)
    data = {**_json_object(), "itemId": item_id}
    result = _apply_planning(plan.campaign_id, "update_item", data)
    return jsonify(result.item.to_json())


@app.route("/api/party-plans/<int:plan_id>/items/<int:item_id>", methods=["DELETE"])
@jwt_required()
def delete_plan_item(plan_id: int, item_id: int):
    """
    Delete a plan item (creator or DM)
    ---
    tags:
      - Party Planning
    parameters:
      - name: plan_id
        in: path
        type: integer
        required: true
      - name: item_id
        in: path
        type: integer
        required: true
    responses:
      204:
        description: Deleted
    """
    plan, _ = _load_plan_item(plan_id, item_id)
    _apply_planning(plan.campaign_id, "delete_item", {"itemId": item_id})
    return "", 204


@app.route("/api/party-plans/<int:plan_id>/items/<int:item_id>/comments", methods=["GET"])
@jwt_required()
def list_item_comments(plan_id: int, item_id: int):
    """
    List comments on a plan item
    ---
    tags:
      - Party Planning
    responses:
      200:
        description: Comments, oldest first
    """
    _load_plan_item(plan_id, item_id)
    return jsonify([c.to_json() for c in storage.plans.comments.list_for_item(item_id)])


@app.route("/api/party-plans/<int:plan_id>/items/<int:item_id>/comments", methods=["POST"])
@jwt_required()
def add_item_comment(plan_id: int, item_id: int):
    """
    Comment on a plan item
    ---
    tags:
      - Party Planning
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - content
          properties:
            content:
              type: string
    responses:
      201:
        description: Comment created
    """
    plan, _ = _load_plan_item(plan_id, item_id)
    data = {**_json_object(), "itemId": item_id}
    result = _apply_planning(plan.campaign_id, "add_comment", data)
    return jsonify(result.comment.to_json()), 201


# =============================================================================
# Social Endpoints
# =============================================================================


@app.route("/api/friends", methods=["GET"])
@jwt_required()
def list_friends():
    """
    List friendships sent or received by the user
    ---
    tags:
      - Social
    responses:
      200:
        description: Friendships
    """
    return jsonify([f.to_json() for f in storage.friendships.list_for_user(current_user_id())])


@app.route("/api/friends", methods=["POST"])
@jwt_required()
def send_friend_request():
    """
    Send a friend request
    ---
    tags:
      - Social
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - friendId
          properties:
            friendId:
              type: integer
    responses:
      201:
        description: Pending friendship
      400:
        description: Request already exists
      404:
        description: User not found
    """
    data = _body(payloads.FriendRequest)
    user_id = current_user_id()
    if data.friend_id == user_id:
        return jsonify({"error": "Cannot befriend yourself"}), 400
    if not storage.users.get(data.friend_id):
        return jsonify({"error": "User not found"}), 404
    if storage.friendships.get_pair(user_id, data.friend_id):
        return jsonify({"error": "Friendship request already exists"}), 400
    return jsonify(storage.friendships.create(user_id, data.friend_id).to_json()), 201


@app.route("/api/friends/<int:friend_id>", methods=["PUT"])
@jwt_required()
def respond_friend_request(friend_id: int):
    """
    Accept or reject a friend request sent by friend_id
    ---
    tags:
      - Social
    parameters:
      - name: friend_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            status:
              type: string
              enum: [accepted, rejected]
    responses:
      200:
        description: Updated friendship
      400:
        description: Already processed
      404:
        description: Request not found
    """
    data = _body(payloads.StatusResponse)
    friendship = storage.friendships.get_pair(friend_id, current_user_id())
    if not friendship:
        return jsonify({"error": "Friendship request not found"}), 404
    if friendship.status != "pending":
        return jsonify({"error": "Friendship request is already processed"}), 400
    updated = storage.friendships.set_status(friend_id, current_user_id(), data.status)
    return jsonify(updated.to_json())


@app.route("/api/friends/<int:friend_id>", methods=["DELETE"])
@jwt_required()
def delete_friend(friend_id: int):
    """
    Remove a friendship in either direction
    ---
    tags:
      - Social
    responses:
      204:
        description: Deleted
      404:
        description: Friendship not found
    """
    user_id = current_user_id()
    sent = storage.friendships.delete_pair(user_id, friend_id)
    received = storage.friendships.delete_pair(friend_id, user_id)
    if not (sent or received):
        return jsonify({"error": "Friendship not found"}), 404
    return "", 204


@app.route("/api/users/online", methods=["GET"])
@jwt_required()
def list_online_users():
    """
    List users whose status is not offline
    ---
    tags:
      - Social
    responses:
      200:
        description: User status records
    """
    return jsonify([s.to_json() for s in storage.user_sessions.online()])


@app.route("/api/users/status", methods=["POST"])
@jwt_required()
def set_online_status():
    """
    Set the user's online status
    ---
    tags:
      - Social
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            status:
              type: string
              enum: [online, away, busy, offline]
    responses:
      200:
        description: Status record
      400:
        description: Invalid status
    """
    data = _body(payloads.OnlineStatus)
    return jsonify(storage.user_sessions.upsert(current_user_id(), data.status).to_json())


@app.route("/api/users/status", methods=["PUT"])
@jwt_required()
def update_social_status():
    """
    Update looking-for-party, looking-for-friends and the status message
    ---
    tags:
      - Social
    responses:
      200:
        description: Status record
    """
    updates = _body(payloads.SocialStatus).provided()
    return jsonify(storage.user_sessions.update_for_user(current_user_id(), updates).to_json())


@app.route("/api/users/looking-for-party", methods=["GET"])
@jwt_required()
def list_looking_for_party():
    """
    List users looking for a party
    ---
    tags:
      - Social
    responses:
      200:
        description: User status records
    """
    return jsonify([s.to_json() for s in storage.user_sessions.looking_for_party()])


@app.route("/api/users/looking-for-friends", methods=["GET"])
@jwt_required()
def list_looking_for_friends():
    """
    List users looking for friends
    ---
    tags:
      - Social
    responses:
      200:
        description: User status records
    """
    return jsonify([s.to_json() for s in storage.user_sessions.looking_for_friends()])


# =============================================================================
# Invitation Endpoints
# =============================================================================


@app.route("/api/invitations", methods=["GET"])
@jwt_required()
def list_invitations():
    """
    List invitations received by the user
    ---
    tags:
      - Invitations
    responses:
      200:
        description: Invitations
    """
    return jsonify([i.to_json() for i in storage.invitations.list_for_invitee(current_user_id())])


@app.route("/api/campaigns/<int:campaign_id>/invitations", methods=["POST"])
@jwt_required()
def create_invitation(campaign_id: int):
    """
    Invite a user to a campaign (DM only)
    ---
    tags:
      - Invitations
    parameters:
      - name: campaign_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - inviteeId
          properties:
            inviteeId:
              type: integer
            role:
              type: string
              enum: [player, spectator]
    responses:
      201:
        description: Pending invitation
      400:
        description: Invitation already pending
      403:
        description: Not the DM
      404:
        description: Campaign or invitee not found
    """
    data = _body(payloads.InvitationCreate)
    _load_campaign(campaign_id, dm_only=True)
    if not storage.users.get(data.invitee_id):
        return jsonify({"error": "Invitee not found"}), 404
    if storage.invitations.has_pending(campaign_id, data.invitee_id):
        return jsonify({"error": "User already has a pending invitation"}), 400
    invitation = storage.invitations.create(
        campaign_id, current_user_id(), data.invitee_id, data.role
    )
    return jsonify(invitation.to_json()), 201


@app.route("/api/invitations/<int:invitation_id>", methods=["PUT"])
@jwt_required()
def respond_invitation(invitation_id: int):
    """
    Accept or reject an invitation
    ---
    tags:
      - Invitations
    parameters:
      - name: invitation_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Updated invitation
      400:
        description: Already processed
      403:
        description: Invitation is for someone else
      404:
        description: Invitation not found
    """
    data = _body(payloads.StatusResponse)
    invitation = storage.invitations.get(invitation_id)
    if not invitation:
        return jsonify({"error": "Invitation not found"}), 404
    if invitation.invitee_id != current_user_id():
        return jsonify({"error": "Cannot respond to someone else's invitation"}), 403
    if invitation.status != "pending":
        return jsonify({"error": "Invitation is already processed"}), 400
    return jsonify(storage.invitations.update(invitation_id, {"status": data.status}).to_json())


@app.route("/api/invitations/<int:invitation_id>", methods=["DELETE"])
@jwt_required()
def delete_invitation(invitation_id: int):
    """
    Withdraw or dismiss an invitation (inviter or invitee)
    ---
    tags:
      - Invitations
    responses:
      204:
        description: Deleted
    """
    invitation = storage.invitations.get(invitation_id)
    if not invitation:
        return jsonify({"error": "Invitation not found"}), 404
    if current_user_id() not in (invitation.inviter_id, invitation.invitee_id):
        return jsonify({"error": "Cannot delete someone else's invitation"}), 403
    storage.invitations.delete(invitation_id)
    return "", 204


# =============================================================================
# Relationship Endpoints
# =============================================================================


def _load_own_relationship(relationship_id: int) -> CharacterRelationship:
    """Fetch a relationship whose source character belongs to the current user."""
    relationship = storage.relationships.get(relationship_id)
    if not relationship:
        raise ApiError("Relationship not found", 404)
    _load_own_character(relationship.source_character_id)
    return relationship


@app.route("/api/characters/relationships", methods=["POST"])
@jwt_required()
def create_relationship():
    """
    Record how one of your characters regards another character
    ---
    tags:
      - Relationships
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - sourceCharacterId
            - targetCharacterId
            - relationshipType
          properties:
            sourceCharacterId:
              type: integer
            targetCharacterId:
              type: integer
            relationshipType:
              type: string
              example: rival
            relationshipStrength:
              type: integer
              minimum: -10
              maximum: 10
            notes:
              type: string
    responses:
      201:
        description: Relationship created
      400:
        description: Invalid or duplicate relationship
      403:
        description: Source character belongs to someone else
      404:
        description: Character not found
    """
    data = _body(payloads.RelationshipCreate)
    _load_own_character(data.source_character_id)
    if not storage.characters.get(data.target_character_id):
        raise ApiError("Target character not found", 404)
    try:
        relationship = storage.relationships.create(
            data.source_character_id,
            data.target_character_id,
            data.relationship_type,
            data.relationship_strength,
            data.notes,
            [i.model_dump(by_alias=True) for i in data.interaction_history],
        )
    except ValueError as e:
        raise ApiError(str(e), 400)
    return jsonify(relationship.to_json()), 201


@app.route("/api/characters/<int:character_id>/relationships", methods=["GET"])
@jwt_required()
def list_character_relationships(character_id: int):
    """
    List relationships of one of your characters, in either direction
    ---
    tags:
      - Relationships
    responses:
      200:
        description: Relationships
    """
    _load_own_character(character_id)
    return jsonify([r.to_json() for r in storage.relationships.list_for_character(character_id)])


@app.route("/api/characters/relationships/<int:relationship_id>/interactions", methods=["POST"])
@jwt_required()
def add_relationship_interaction(relationship_id: int):
    """
    Append an interaction to a relationship's history
    ---
    tags:
      - Relationships
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - description
          properties:
            date:
              type: string
            description:
              type: string
            impact:
              type: integer
            context:
              type: string
    responses:
      200:
        description: Updated relationship
    """
    _load_own_relationship(relationship_id)
    interaction = _body(payloads.Interaction)
    if not interaction.date:
        interaction.date = datetime.now().isoformat()
    relationship = storage.relationships.add_interaction(
        relationship_id, interaction.model_dump(by_alias=True)
    )
    if not relationship:
        raise ApiError("Relationship not found", 404)
    return jsonify(relationship.to_json())


@app.route(
    "/api/characters/<int:source_id>/relationships/<int:target_id>/analyze", methods=["POST"]
)
@jwt_required()
def analyze_relationship(source_id: int, target_id: int):
    """
    Analyze a relationship with the LLM and suggest predictions
    ---
    tags:
      - Relationships
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            campaignId:
              type: integer
    responses:
      200:
        description: Summary, dynamics, conflicts, growth and predictions
      404:
        description: No relationship between the characters
    """
    data = _body(payloads.RelationshipAnalyze)
    source = _load_own_character(source_id)
    relationship = storage.relationships.get_between(source_id, target_id)
    target = storage.characters.get(target_id)
    if not relationship or not target:
        raise ApiError("Relationship not found", 404)
    campaign = _load_campaign(data.campaign_id) if data.campaign_id else None
    return jsonify(generator.analyze_relationship(source, target, relationship, campaign))


@app.route("/api/campaigns/<int:campaign_id>/relationships", methods=["GET"])
@jwt_required()
def list_campaign_relationships(campaign_id: int):
    """
    List relationships between the campaign's characters
    ---
    tags:
      - Relationships
    responses:
      200:
        description: Relationships
    """
    _load_campaign(campaign_id)
    character_ids = [m.character_id for m in storage.campaigns.list_memberships(campaign_id)]
    return jsonify([r.to_json() for r in storage.relationships.list_among(character_ids)])


@app.route("/api/campaigns/<int:campaign_id>/relationship-predictions", methods=["GET"])
@jwt_required()
def list_relationship_predictions(campaign_id: int):
    """
    List relationship predictions of a campaign, newest first
    ---
    tags:
      - Relationships
    responses:
      200:
        description: Predictions
    """
    _load_campaign(campaign_id)
    return jsonify([p.to_json() for p in storage.predictions.list_for_campaign(campaign_id)])


@app.route("/api/campaigns/<int:campaign_id>/relationship-predictions", methods=["POST"])
@jwt_required()
def create_relationship_prediction(campaign_id: int):
    """
    Save a prediction about a relationship in this campaign
    ---
    tags:
      - Relationships
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - relationshipId
            - predictedEvent
            - predictedOutcome
            - triggerCondition
          properties:
            relationshipId:
              type: integer
            predictedEvent:
              type: string
            predictedOutcome:
              type: string
            triggerCondition:
              type: string
            probability:
              type: integer
    responses:
      201:
        description: Prediction created
      400:
        description: Relationship is not between characters of this campaign
    """
    _load_campaign(campaign_id)
    data = _body(payloads.PredictionCreate)
    relationship = storage.relationships.get(data.relationship_id)
    if not relationship:
        raise ApiError("Relationship not found", 404)
    members = {m.character_id for m in storage.campaigns.list_memberships(campaign_id)}
    if not {relationship.source_character_id, relationship.target_character_id} <= members:
        raise ApiError("Relationship is not between characters of this campaign", 400)
    prediction = storage.predictions.create(
        relationship.id,
        campaign_id,
        data.predicted_event,
        data.predicted_outcome,
        data.trigger_condition,
        data.probability,
    )
    return jsonify(prediction.to_json()), 201


@app.route("/api/campaigns/<int:campaign_id>/generate-predictions", methods=["POST"])
@jwt_required()
def generate_relationship_predictions(campaign_id: int):
    """
    Generate predictions for every relationship in the campaign (DM only)
    ---
    tags:
      - Relationships
    responses:
      201:
        description: Count and list of created predictions
      400:
        description: Fewer than two characters in the campaign
    """
    campaign = _load_campaign(campaign_id, dm_only=True)
    try:
        created = generate_campaign_predictions(storage, generator, campaign)
    except ValueError as e:
        raise ApiError(str(e), 400)
    return jsonify({"count": len(created), "predictions": [p.to_json() for p in created]}), 201


@app.route("/api/relationship-predictions/<int:prediction_id>/trigger", methods=["POST"])
@jwt_required()
def trigger_relationship_prediction(prediction_id: int):
    """
    Mark a prediction as having happened
    ---
    tags:
      - Relationships
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            actualOutcome:
              type: string
    responses:
      200:
        description: Updated prediction
      404:
        description: Prediction not found
    """
    prediction = storage.predictions.get(prediction_id)
    if not prediction:
        raise ApiError("Prediction not found", 404)
    _load_campaign(prediction.campaign_id)
    data = _body(payloads.PredictionTrigger)
    return jsonify(storage.predictions.trigger(prediction_id, data.actual_outcome).to_json())


# =============================================================================
# Generation Endpoints
# =============================================================================


@app.route("/api/generate/campaign", methods=["POST"])
@jwt_required()
def generate_campaign():
    """
    Generate a campaign world
    ---
    tags:
      - Generation
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            genre:
              type: string
            theme:
              type: string
            tone:
              type: string
    responses:
      200:
        description: Generated campaign; unspecified options are picked at random
    """
    data = _body(payloads.CampaignGenerate)
    return jsonify(generator.generate_campaign(data.genre, data.theme, data.tone))


@app.route("/api/generate/adventure", methods=["POST"])
@jwt_required()
def generate_adventure():
    """
    Generate an adventure outline
    ---
    tags:
      - Generation
    responses:
      200:
        description: Generated adventure
    """
    data = _body(payloads.AdventureGenerate)
    return jsonify(
        generator.generate_adventure(
            theme=data.theme,
            setting=data.setting,
            difficulty=data.difficulty,
            party_level=data.party_level,
            party_size=data.party_size,
            include_elements=data.include_elements,
        )
    )


@app.route("/api/generate/npc", methods=["POST"])
@jwt_required()
def generate_npc():
    """
    Generate an NPC
    ---
    tags:
      - Generation
    responses:
      200:
        description: Generated NPC
    """
    data = _body(payloads.NpcGenerate)
    return jsonify(
        generator.generate_npc(
            race=data.race, role=data.role, alignment=data.alignment, is_hostile=data.is_hostile
        )
    )


@app.route("/api/generate/item", methods=["POST"])
@jwt_required()
def generate_item():
    """
    Generate an item that fits the story
    ---
    tags:
      - Generation
    responses:
      200:
        description: Generated item
    """
    data = _body(payloads.ItemGenerate)
    return jsonify(generator.generate_item(**data.model_dump()))


@app.route("/api/generate/narration", methods=["POST"])
@jwt_required()
def generate_narration():
    """
    Narrate the outcome of a player action
    ---
    tags:
      - Generation
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - context
            - playerAction
          properties:
            context:
              type: string
            playerAction:
              type: string
            isAutoAdvance:
              type: boolean
    responses:
      200:
        description: Narration text
        schema:
          type: object
          properties:
            narration:
              type: string
    """
    data = _body(payloads.NarrationRequest)
    narration = generator.generate_narration(
        data.context, data.player_action, auto_advance=data.is_auto_advance
    )
    return jsonify({"narration": narration})


@app.route("/api/generate/dialogue", methods=["POST"])
@jwt_required()
def generate_dialogue():
    """
    Generate an NPC line of dialogue
    ---
    tags:
      - Generation
    responses:
      200:
        description: Dialogue text
    """
    data = _body(payloads.DialogueRequest)
    return jsonify(
        {"dialogue": generator.generate_dialogue(data.npc_info, data.context, data.player_prompt)}
    )


# =============================================================================
# Bot Companion Endpoints
# =============================================================================

BOT_SUFFIX = "(Bot)"
COMPANION_EXPERTISE = [
    "D&D Rules",
    "Combat Tactics",
    "Character Building",
    "Roleplaying Tips",
    "Lore & History",
]


def _sheet_to_character_fields(sheet: dict[str, Any]) -> dict[str, Any]:
    """Validate a generated sheet, falling back to the stock sheet when it is unusable."""
    try:
        return payloads.CharacterCreate.model_validate(sheet).provided()
    except ValidationError as e:
        logger.warning(f"Generated character sheet rejected, using fallback: {e.error_count()} errors")
        return payloads.CharacterCreate.model_validate(FALLBACK_CHARACTER).provided()


@app.route("/api/bot-companion", methods=["GET"])
@jwt_required()
def list_bot_companions():
    """
    List the user's bot companions
    ---
    tags:
      - Bot Companions
    responses:
      200:
        description: Bot characters
    """
    bots = storage.characters.list_bots_for_user(current_user_id())
    return jsonify([b.to_json() for b in bots])


@app.route("/api/bot-companion/create", methods=["POST"])
@jwt_required()
def create_bot_companion():
    """
    Generate and save an AI companion character
    ---
    tags:
      - Bot Companions
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            name:
              type: string
            race:
              type: string
            class:
              type: string
            campaignId:
              type: integer
    responses:
      201:
        description: Companion created
      404:
        description: Campaign not found
    """
    data = _body(payloads.CompanionCreate)
    if data.campaign_id is not None:
        _load_campaign(data.campaign_id)

    sheet = generator.generate_character(race=data.race, character_class=data.character_class)
    fields = _sheet_to_character_fields(sheet)
    name = data.name or fields.pop("name")
    fields.pop("name", None)
    if BOT_SUFFIX not in name:
        name = f"{name} {BOT_SUFFIX}"

    character = storage.characters.create(
        current_user_id(),
        name,
        fields.pop("race"),
        fields.pop("character_class"),
        is_bot=True,
        **{k: v for k, v in fields.items() if v is not None},
    )

    if data.campaign_id is not None:
        storage.campaigns.add_character(data.campaign_id, character.id)
        storage.game_logs.create(
            data.campaign_id,
            f"{character.name} has joined the adventure as your companion.",
            "system",
        )

    logger.info(f"Created bot companion {character.id} for user {current_user_id()}")
    return (
        jsonify(
            {
                **character.to_json(),
                "personality": "Helpful and knowledgeable about D&D mechanics and lore.",
                "expertise": COMPANION_EXPERTISE,
            }
        ),
        201,
    )


@app.route("/api/bot-companion/query", methods=["POST"])
@jwt_required()
def query_bot_companion():
    """
    Ask a bot companion a question
    ---
    tags:
      - Bot Companions
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - query
            - companionId
          properties:
            query:
              type: string
            companionId:
              type: integer
            campaignId:
              type: integer
    responses:
      200:
        description: Companion answer
      404:
        description: Companion not found
    """
    data = _body(payloads.CompanionQuery)
    companion = storage.characters.get(data.companion_id)
    if not companion or not companion.is_bot or companion.user_id != current_user_id():
        return jsonify({"error": "Bot companion not found"}), 404

    context = ""
    if data.campaign_id is not None:
        campaign = _load_campaign(data.campaign_id)
        context = f"Campaign: {campaign.name}\nSetting: {campaign.setting or 'Fantasy world'}\n"
        recent = storage.game_logs.recent(campaign.id, 10)
        if recent:
            context += "\nRecent events:\n" + "\n".join(f"- {log.content}" for log in recent)

    bot_info = f"{companion.name} is a {companion.race} {companion.character_class}. {companion.background or ''}"
    answer = generator.generate_dialogue(bot_info.strip(), context, data.query)

    if data.campaign_id is not None:
        storage.game_logs.create(data.campaign_id, data.query, "player")
        storage.game_logs.create(data.campaign_id, answer, "companion")

    return jsonify({"answer": answer, "companionId": companion.id})


# =============================================================================
# Health Check
# =============================================================================


@app.route("/api/health", methods=["GET"])
def health_check():
    """
    Health check endpoint
    ---
    tags:
      - System
    responses:
      200:
        description: Service status
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            service:
              type: string
              example: campaign-hub
            version:
              type: string
              example: 0.1.0
            schema_version:
              type: integer
    """
    return jsonify(
        {
            "status": "ok",
            "service": "campaign-hub",
            "version": "0.1.0",
            "schema_version": storage.db.schema_version,
        }
    )


@app.route("/api/health/realtime", methods=["GET"])
def health_realtime():
    """
    Socket relay status
    ---
    tags:
      - System
    responses:
      200:
        description: Connected sockets and active campaign rooms
        schema:
          type: object
          properties:
            connections:
              type: integer
            campaigns:
              type: array
              items:
                type: integer
    """
    return jsonify(
        {"connections": registry.connection_count(), "campaigns": sorted(registry.campaigns())}
    )


@app.route("/api/health/llm", methods=["GET"])
def health_llm():
    """
    Check LLM backend availability
    ---
    tags:
      - System
    responses:
      200:
        description: LLM backend status
        schema:
          type: object
          properties:
            available:
              type: boolean
            backend:
              type: string
              example: openai
            model:
              type: string
              example: gpt-4o
            available_backends:
              type: array
              items:
                type: string
      503:
        description: LLM backend unavailable
    """
    llm = generator.llm
    available = llm.is_available()
    response_data = {
        "available": available,
        "backend": LLM_BACKEND,
        "model": llm.get_model_name(),
        "available_backends": list_backends(),
    }
    return jsonify(response_data), 200 if available else 503


# =============================================================================
# Run Server
# =============================================================================


def create_app():
    """Application factory for uWSGI/Gunicorn."""
    return app


if __name__ == "__main__":
    logger.info("Starting Campaign Hub")
    socketio.run(app, debug=True, host="0.0.0.0", port=5000, allow_unsafe_werkzeug=True)
