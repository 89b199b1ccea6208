"""Tests for the Flask REST API."""

import json
from unittest.mock import patch

import pytest


@pytest.fixture
def as_user(client, auth_headers):
    """Issue requests as a given user: ``as_user(user).get(url)``."""

    class _Requests:
        def __init__(self, user):
            self.headers = auth_headers(user)

        def get(self, url, **kwargs):
            return client.get(url, headers=self.headers, **kwargs)

        def post(self, url, **kwargs):
            return client.post(url, headers=self.headers, **kwargs)

        def put(self, url, **kwargs):
            return client.put(url, headers=self.headers, **kwargs)

        def patch(self, url, **kwargs):
            return client.patch(url, headers=self.headers, **kwargs)

        def delete(self, url, **kwargs):
            return client.delete(url, headers=self.headers, **kwargs)

    return _Requests


class TestHealthCheck:
    def test_health_check(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["status"] == "ok"
        assert data["service"] == "campaign-hub"
        assert data["schema_version"] >= 1

    def test_health_llm_available(self, client):
        data = client.get("/api/health/llm").get_json()
        assert data["available"] is True
        assert data["model"] == "mock-model"
        assert "openai" in data["available_backends"]

    def test_health_llm_unavailable(self, client, mock_llm):
        mock_llm.unavailable = True
        response = client.get("/api/health/llm")
        assert response.status_code == 503
        assert response.get_json()["available"] is False

    def test_realtime_health_empty(self, client):
        assert client.get("/api/health/realtime").get_json() == {"connections": 0, "campaigns": []}


class TestAuth:
    def test_register_and_login(self, client):
        response = client.post(
            "/api/auth/register", json={"username": "newbie", "password": "pw", "email": "n@x.io"}
        )
        assert response.status_code == 201
        data = response.get_json()
        assert data["user"]["username"] == "newbie"
        assert "passwordHash" not in data["user"]
        assert data["access_token"]

        token = client.post("/api/auth/token", json={"username": "newbie", "password": "pw"})
        assert token.status_code == 200
        assert token.get_json()["token_type"] == "bearer"

        me = client.get(
            "/api/auth/me",
            headers={"Authorization": f"Bearer {token.get_json()['access_token']}"},
        )
        assert me.get_json()["username"] == "newbie"

    def test_register_duplicate(self, client, api_seeded):
        response = client.post(
            "/api/auth/register", json={"username": "player_one", "password": "x"}
        )
        assert response.status_code == 400
        assert "already exists" in response.get_json()["error"]

    def test_login_marks_user_online(self, client, api_module, api_seeded):
        client.post("/api/auth/token", json={"username": "player_one", "password": "p1-pass"})
        session = api_module.storage.user_sessions.get_for_user(api_seeded["player"].id)
        assert session.status == "online"

    def test_bad_password(self, client, api_seeded):
        response = client.post(
            "/api/auth/token", json={"username": "player_one", "password": "nope"}
        )
        assert response.status_code == 401
        assert response.get_json() == {"error": "Invalid credentials"}

    def test_missing_fields(self, client):
        response = client.post("/api/auth/token", json={"username": "x"})
        assert response.status_code == 400
        data = response.get_json()
        assert data["error"] == "Invalid request"
        assert data["details"]

    def test_requires_token(self, client):
        response = client.get("/api/campaigns")
        assert response.status_code == 401
        assert "error" in response.get_json()

    def test_garbage_token(self, client):
        response = client.get("/api/campaigns", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestCharacterEndpoints:
    def test_create_and_list(self, as_user, api_seeded):
        me = as_user(api_seeded["outsider"])
        response = me.post(
            "/api/characters",
            json={"name": "Thorin", "race": "Dwarf", "class": "Fighter", "maxHp": 14, "hp": 14},
        )
        assert response.status_code == 201
        data = response.get_json()
        assert data["class"] == "Fighter"
        assert data["maxHp"] == 14

        listed = me.get("/api/characters").get_json()
        assert [c["name"] for c in listed] == ["Thorin"]

    def test_create_missing_class(self, as_user, api_seeded):
        response = as_user(api_seeded["outsider"]).post(
            "/api/characters", json={"name": "Thorin", "race": "Dwarf"}
        )
        assert response.status_code == 400

    def test_update(self, as_user, api_seeded):
        character_id = api_seeded["character"].id
        response = as_user(api_seeded["player"]).put(
            f"/api/characters/{character_id}", json={"level": 4, "backstory": "Raised by wolves"}
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["level"] == 4
        assert data["backstory"] == "Raised by wolves"
        assert data["name"] == "Mira"

    def test_other_users_character_forbidden(self, as_user, api_seeded):
        character_id = api_seeded["character"].id
        other = as_user(api_seeded["outsider"])
        assert other.get(f"/api/characters/{character_id}").status_code == 403
        assert other.delete(f"/api/characters/{character_id}").status_code == 403

    def test_delete(self, as_user, api_seeded):
        me = as_user(api_seeded["player"])
        character_id = api_seeded["character"].id
        assert me.delete(f"/api/characters/{character_id}").status_code == 204
        assert me.get(f"/api/characters/{character_id}").status_code == 404

    def test_generate(self, as_user, api_seeded, mock_llm):
        mock_llm.responses = [json.dumps({"name": "Sable", "race": "Tiefling", "class": "Warlock"})]
        response = as_user(api_seeded["player"]).post(
            "/api/characters/generate", json={"race": "Tiefling", "level": 2}
        )
        assert response.status_code == 200
        assert response.get_json()["name"] == "Sable"
        assert "Race: Tiefling" in mock_llm.calls[0][0][1].content


class TestCampaignEndpoints:
    def test_create_campaign(self, as_user, api_seeded):
        response = as_user(api_seeded["outsider"]).post(
            "/api/campaigns", json={"name": "Frostfall", "isAiDm": True}
        )
        assert response.status_code == 201
        data = response.get_json()
        assert data["dmId"] == api_seeded["outsider"].id
        assert data["isAiDm"] is True

    def test_create_campaign_missing_name(self, as_user, api_seeded):
        response = as_user(api_seeded["dm"]).post("/api/campaigns", json={})
        assert response.status_code == 400

    def test_list_includes_dm_and_player_campaigns(self, as_user, api_seeded):
        campaign_id = api_seeded["campaign"].id
        assert [c["id"] for c in as_user(api_seeded["dm"]).get("/api/campaigns").get_json()] == [
            campaign_id
        ]
        assert [
            c["id"] for c in as_user(api_seeded["player"]).get("/api/campaigns").get_json()
        ] == [campaign_id]
        assert as_user(api_seeded["outsider"]).get("/api/campaigns").get_json() == []

    def test_get_campaign_access(self, as_user, api_seeded):
        url = f"/api/campaigns/{api_seeded['campaign'].id}"
        assert as_user(api_seeded["player"]).get(url).status_code == 200
        assert as_user(api_seeded["outsider"]).get(url).status_code == 403
        assert as_user(api_seeded["dm"]).get("/api/campaigns/999").status_code == 404

    def test_update_campaign_dm_only(self, as_user, api_seeded):
        url = f"/api/campaigns/{api_seeded['campaign'].id}"
        assert as_user(api_seeded["player"]).patch(url, json={"status": "paused"}).status_code == 403

        response = as_user(api_seeded["dm"]).patch(url, json={"status": "paused"})
        assert response.status_code == 200
        assert response.get_json()["status"] == "paused"
        assert response.get_json()["name"] == "The Sunken Crown"

    def test_delete_campaign(self, as_user, api_seeded):
        url = f"/api/campaigns/{api_seeded['campaign'].id}"
        dm = as_user(api_seeded["dm"])
        assert dm.delete(url).status_code == 204
        assert dm.get(url).status_code == 404

    def test_campaign_characters(self, as_user, api_module, api_seeded):
        campaign_id = api_seeded["campaign"].id
        outsider = api_seeded["outsider"]
        character = api_module.storage.characters.create(outsider.id, "Brask", "Orc", "Barbarian")

        # The owner may add their own character; the DM may add anyone's
        response = as_user(outsider).post(
            f"/api/campaigns/{campaign_id}/characters", json={"characterId": character.id}
        )
        assert response.status_code == 201

        listed = as_user(api_seeded["dm"]).get(f"/api/campaigns/{campaign_id}/characters")
        assert sorted(c["name"] for c in listed.get_json()) == ["Brask", "Mira"]

    def test_cannot_add_someone_elses_character(self, as_user, api_seeded):
        response = as_user(api_seeded["outsider"]).post(
            f"/api/campaigns/{api_seeded['campaign'].id}/characters",
            json={"characterId": api_seeded["character"].id},
        )
        assert response.status_code == 403


class TestAdventureEndpoints:
    def test_adventures_npcs_and_quests(self, as_user, api_seeded):
        campaign_id = api_seeded["campaign"].id
        dm = as_user(api_seeded["dm"])
        player = as_user(api_seeded["player"])

        adventure = dm.post(
            f"/api/campaigns/{campaign_id}/adventures",
            json={"title": "The Drowned Vault", "location": "Under the harbor"},
        )
        assert adventure.status_code == 201
        adventure_id = adventure.get_json()["id"]

        assert player.post(
            f"/api/campaigns/{campaign_id}/adventures", json={"title": "Mine"}
        ).status_code == 403
        assert [a["title"] for a in player.get(f"/api/campaigns/{campaign_id}/adventures").get_json()] == [
            "The Drowned Vault"
        ]

        npc = dm.post(
            f"/api/campaigns/{campaign_id}/npcs",
            json={"name": "Captain Vell", "class": "Fighter", "isHostile": True},
        )
        assert npc.status_code == 201
        assert npc.get_json()["isHostile"] is True
        assert len(player.get(f"/api/campaigns/{campaign_id}/npcs").get_json()) == 1

        quest = dm.post(
            f"/api/adventures/{adventure_id}/quests",
            json={"title": "Find the key", "isMainQuest": True},
        )
        assert quest.status_code == 201
        quest_id = quest.get_json()["id"]

        updated = dm.patch(f"/api/quests/{quest_id}", json={"status": "completed"})
        assert updated.get_json()["status"] == "completed"
        assert player.patch(f"/api/quests/{quest_id}", json={"status": "failed"}).status_code == 403

        quests = player.get(f"/api/adventures/{adventure_id}/quests").get_json()
        assert quests[0]["isMainQuest"] is True

    def test_quest_not_found(self, as_user, api_seeded):
        assert as_user(api_seeded["dm"]).patch("/api/quests/999", json={}).status_code == 404


class TestLogAndChatEndpoints:
    def test_game_log(self, as_user, api_seeded):
        campaign_id = api_seeded["campaign"].id
        dm = as_user(api_seeded["dm"])
        dm.post(f"/api/campaigns/{campaign_id}/logs", json={"content": "Night falls."})
        dm.post(
            f"/api/campaigns/{campaign_id}/logs",
            json={"content": "Goblins attack!", "type": "combat", "metadata": {"round": 1}},
        )

        logs = as_user(api_seeded["player"]).get(
            f"/api/campaigns/{campaign_id}/logs?limit=1"
        ).get_json()
        assert len(logs) == 1
        assert logs[0]["content"] == "Goblins attack!"
        assert logs[0]["metadata"] == {"round": 1}

    def test_chat_history(self, as_user, api_seeded):
        campaign_id = api_seeded["campaign"].id
        player = as_user(api_seeded["player"])
        for text in ("one", "two", "three"):
            assert player.post(
                f"/api/campaigns/{campaign_id}/chat", json={"content": text}
            ).status_code == 201

        history = player.get(f"/api/campaigns/{campaign_id}/chat?limit=2").get_json()
        assert [m["content"] for m in history] == ["two", "three"]

    def test_chat_forbidden_for_outsider(self, as_user, api_seeded):
        url = f"/api/campaigns/{api_seeded['campaign'].id}/chat"
        outsider = as_user(api_seeded["outsider"])
        assert outsider.get(url).status_code == 403
        assert outsider.post(url, json={"content": "hi"}).status_code == 403

    def test_storage_error_returns_500(self, as_user, api_module, api_seeded):
        from campaign_hub.storage import StorageError

        with patch.object(api_module.storage.chat, "history", side_effect=StorageError("locked")):
            response = as_user(api_seeded["player"]).get(
                f"/api/campaigns/{api_seeded['campaign'].id}/chat"
            )
        assert response.status_code == 500
        assert "error" in response.get_json()


class TestPartyPlanEndpoints:
    def test_plan_flow(self, as_user, api_seeded):
        campaign_id = api_seeded["campaign"].id
        player = as_user(api_seeded["player"])

        created = player.post(
            f"/api/campaigns/{campaign_id}/party-plans", json={"title": "Heist"}
        )
        assert created.status_code == 201
        plan_id = created.get_json()["id"]

        item = player.post(f"/api/party-plans/{plan_id}/items", json={"content": "Scout"})
        assert item.status_code == 201
        item_id = item.get_json()["id"]

        updated = player.put(
            f"/api/party-plans/{plan_id}/items/{item_id}", json={"status": "done"}
        )
        assert updated.get_json()["status"] == "done"

        comment = as_user(api_seeded["dm"]).post(
            f"/api/party-plans/{plan_id}/items/{item_id}/comments", json={"content": "Nice"}
        )
        assert comment.status_code == 201
        comments = player.get(f"/api/party-plans/{plan_id}/items/{item_id}/comments").get_json()
        assert [c["content"] for c in comments] == ["Nice"]

        plan = player.get(f"/api/party-plans/{plan_id}").get_json()
        assert plan["title"] == "Heist"
        assert [i["content"] for i in plan["items"]] == ["Scout"]

        renamed = player.put(f"/api/party-plans/{plan_id}", json={"title": "Big Heist"})
        assert renamed.get_json()["title"] == "Big Heist"

        assert player.delete(f"/api/party-plans/{plan_id}/items/{item_id}").status_code == 204
        assert player.delete(f"/api/party-plans/{plan_id}").status_code == 204
        assert player.get(f"/api/party-plans/{plan_id}").status_code == 404

    def test_list_plans(self, as_user, api_seeded):
        campaign_id = api_seeded["campaign"].id
        player = as_user(api_seeded["player"])
        player.post(f"/api/campaigns/{campaign_id}/party-plans", json={"title": "A"})
        player.post(f"/api/campaigns/{campaign_id}/party-plans", json={"title": "B"})
        titles = [p["title"] for p in player.get(f"/api/campaigns/{campaign_id}/party-plans").get_json()]
        assert titles == ["B", "A"]

    def test_only_creator_or_dm_deletes(self, as_user, api_module, api_seeded):
        campaign_id = api_seeded["campaign"].id
        plan = api_module.storage.plans.create(campaign_id, "DM plan", api_seeded["dm"].id)
        response = as_user(api_seeded["player"]).delete(f"/api/party-plans/{plan.id}")
        assert response.status_code == 403

    def test_missing_title(self, as_user, api_seeded):
        response = as_user(api_seeded["player"]).post(
            f"/api/campaigns/{api_seeded['campaign'].id}/party-plans", json={}
        )
        assert response.status_code == 400

    def test_outsider_cannot_see_plan(self, as_user, api_module, api_seeded):
        plan = api_module.storage.plans.create(
            api_seeded["campaign"].id, "Secret", api_seeded["dm"].id
        )
        assert as_user(api_seeded["outsider"]).get(f"/api/party-plans/{plan.id}").status_code == 403

    def test_item_of_other_plan_not_found(self, as_user, api_module, api_seeded):
        campaign_id = api_seeded["campaign"].id
        dm_id = api_seeded["dm"].id
        first = api_module.storage.plans.create(campaign_id, "First", dm_id)
        second = api_module.storage.plans.create(campaign_id, "Second", dm_id)
        item = api_module.storage.plans.items.create(first.id, "Scout", dm_id)
        response = as_user(api_seeded["dm"]).put(
            f"/api/party-plans/{second.id}/items/{item.id}", json={"status": "done"}
        )
        assert response.status_code == 404

    def test_non_object_body_rejected(self, as_user, api_module, api_seeded):
        campaign_id = api_seeded["campaign"].id
        plan = api_module.storage.plans.create(campaign_id, "Storm the keep", api_seeded["dm"].id)
        player = as_user(api_seeded["player"])

        response = player.post(f"/api/party-plans/{plan.id}/items", json=["Scout"])
        assert response.status_code == 400
        assert response.get_json() == {"error": "Request body must be a JSON object"}

        response = player.post(f"/api/campaigns/{campaign_id}/party-plans", json="Storm")
        assert response.status_code == 400
        assert api_module.storage.plans.items.list_for_plan(plan.id) == []


class TestSocialEndpoints:
    def test_friend_request_flow(self, as_user, api_seeded):
        player_id = api_seeded["player"].id
        outsider_id = api_seeded["outsider"].id
        player = as_user(api_seeded["player"])
        outsider = as_user(api_seeded["outsider"])

        assert player.post("/api/friends", json={"friendId": outsider_id}).status_code == 201
        assert player.post("/api/friends", json={"friendId": outsider_id}).status_code == 400

        accepted = outsider.put(f"/api/friends/{player_id}", json={"status": "accepted"})
        assert accepted.get_json()["status"] == "accepted"
        assert outsider.put(
            f"/api/friends/{player_id}", json={"status": "rejected"}
        ).status_code == 400

        assert len(outsider.get("/api/friends").get_json()) == 1
        assert outsider.delete(f"/api/friends/{player_id}").status_code == 204
        assert player.get("/api/friends").get_json() == []

    def test_cannot_befriend_self(self, as_user, api_seeded):
        response = as_user(api_seeded["player"]).post(
            "/api/friends", json={"friendId": api_seeded["player"].id}
        )
        assert response.status_code == 400

    def test_friend_not_found(self, as_user, api_seeded):
        response = as_user(api_seeded["player"]).post("/api/friends", json={"friendId": 999})
        assert response.status_code == 404

    def test_invalid_response_status(self, as_user, api_seeded):
        response = as_user(api_seeded["player"]).put("/api/friends/1", json={"status": "maybe"})
        assert response.status_code == 400

    def test_status_and_lists(self, as_user, api_seeded):
        player = as_user(api_seeded["player"])
        assert player.post("/api/users/status", json={"status": "busy"}).get_json()["status"] == "busy"
        assert player.post("/api/users/status", json={"status": "asleep"}).status_code == 400

        player.put("/api/users/status", json={"lookingForParty": True, "statusMessage": "LFG"})
        lfp = player.get("/api/users/looking-for-party").get_json()
        assert [s["userId"] for s in lfp] == [api_seeded["player"].id]
        assert lfp[0]["statusMessage"] == "LFG"
        assert player.get("/api/users/looking-for-friends").get_json() == []
        assert [s["userId"] for s in player.get("/api/users/online").get_json()] == [
            api_seeded["player"].id
        ]


class TestInvitationEndpoints:
    def test_invite_and_accept(self, as_user, api_seeded):
        campaign_id = api_seeded["campaign"].id
        dm = as_user(api_seeded["dm"])
        outsider = as_user(api_seeded["outsider"])

        created = dm.post(
            f"/api/campaigns/{campaign_id}/invitations",
            json={"inviteeId": api_seeded["outsider"].id, "role": "spectator"},
        )
        assert created.status_code == 201
        invitation_id = created.get_json()["id"]

        duplicate = dm.post(
            f"/api/campaigns/{campaign_id}/invitations",
            json={"inviteeId": api_seeded["outsider"].id},
        )
        assert duplicate.status_code == 400

        [invitation] = outsider.get("/api/invitations").get_json()
        assert invitation["role"] == "spectator"

        assert as_user(api_seeded["player"]).put(
            f"/api/invitations/{invitation_id}", json={"status": "accepted"}
        ).status_code == 403
        accepted = outsider.put(f"/api/invitations/{invitation_id}", json={"status": "accepted"})
        assert accepted.get_json()["status"] == "accepted"

        assert dm.delete(f"/api/invitations/{invitation_id}").status_code == 204
        assert outsider.get("/api/invitations").get_json() == []

    def test_only_dm_invites(self, as_user, api_seeded):
        response = as_user(api_seeded["player"]).post(
            f"/api/campaigns/{api_seeded['campaign'].id}/invitations",
            json={"inviteeId": api_seeded["outsider"].id},
        )
        assert response.status_code == 403


class TestGenerationEndpoints:
    def test_generate_campaign(self, as_user, api_seeded, mock_llm):
        mock_llm.responses = [json.dumps({"name": "Glass Tides"})]
        response = as_user(api_seeded["dm"]).post(
            "/api/generate/campaign", json={"genre": "Steampunk"}
        )
        assert response.get_json() == {"name": "Glass Tides"}

    def test_generate_falls_back_when_llm_down(self, as_user, api_seeded, mock_llm):
        from campaign_hub.generators import FALLBACK_NPC

        mock_llm.unavailable = True
        response = as_user(api_seeded["dm"]).post("/api/generate/npc", json={})
        assert response.status_code == 200
        assert response.get_json() == FALLBACK_NPC

    def test_generate_adventure_and_item(self, as_user, api_seeded, mock_llm):
        mock_llm.responses = ['{"title": "Into the Mire"}', '{"name": "Fang Dagger"}']
        dm = as_user(api_seeded["dm"])
        assert dm.post(
            "/api/generate/adventure", json={"partyLevel": 3, "includeElements": ["bog"]}
        ).get_json()["title"] == "Into the Mire"
        assert dm.post(
            "/api/generate/item", json={"rarity": "rare", "enemyType": "wolf"}
        ).get_json()["name"] == "Fang Dagger"

    def test_narration(self, as_user, api_seeded, mock_llm):
        mock_llm.responses = ["The torch gutters."]
        response = as_user(api_seeded["player"]).post(
            "/api/generate/narration",
            json={"context": "A crypt", "playerAction": "I light a torch"},
        )
        assert response.get_json() == {"narration": "The torch gutters."}

    def test_narration_requires_action(self, as_user, api_seeded):
        response = as_user(api_seeded["player"]).post(
            "/api/generate/narration", json={"context": "A crypt"}
        )
        assert response.status_code == 400

    def test_dialogue(self, as_user, api_seeded, mock_llm):
        mock_llm.responses = ["Rooms are two silver."]
        response = as_user(api_seeded["player"]).post(
            "/api/generate/dialogue",
            json={"npcInfo": "Innkeeper", "context": "A tavern", "playerPrompt": "Rooms?"},
        )
        assert response.get_json() == {"dialogue": "Rooms are two silver."}


class TestBotCompanionEndpoints:
    def test_create_joins_campaign(self, as_user, api_module, api_seeded, mock_llm):
        mock_llm.responses = [
            json.dumps({"name": "Quill", "race": "Gnome", "class": "Wizard", "level": 2})
        ]
        campaign_id = api_seeded["campaign"].id
        response = as_user(api_seeded["player"]).post(
            "/api/bot-companion/create", json={"campaignId": campaign_id}
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data["name"] == "Quill (Bot)"
        assert data["isBot"] is True
        assert data["expertise"]

        members = api_module.storage.campaigns.list_characters(
            campaign_id, api_module.storage.characters
        )
        assert "Quill (Bot)" in [c.name for c in members]
        [log] = api_module.storage.game_logs.recent(campaign_id)
        assert log.type == "system"

    def test_invalid_sheet_uses_fallback(self, as_user, api_seeded, mock_llm):
        mock_llm.responses = [json.dumps({"name": "Nope", "level": 99})]
        response = as_user(api_seeded["player"]).post(
            "/api/bot-companion/create", json={"name": "Pal"}
        )
        data = response.get_json()
        assert data["name"] == "Pal (Bot)"
        assert data["class"] == "Fighter"

    def test_list_and_query(self, as_user, api_module, api_seeded, mock_llm):
        player = as_user(api_seeded["player"])
        campaign_id = api_seeded["campaign"].id
        mock_llm.unavailable = True
        companion = player.post("/api/bot-companion/create", json={}).get_json()

        assert [b["id"] for b in player.get("/api/bot-companion").get_json()] == [companion["id"]]

        mock_llm.unavailable = False
        mock_llm.responses = ["Flank the ogre."]
        answer = player.post(
            "/api/bot-companion/query",
            json={"query": "How do we beat the ogre?", "companionId": companion["id"], "campaignId": campaign_id},
        )
        assert answer.get_json() == {"answer": "Flank the ogre.", "companionId": companion["id"]}
        types = [log.type for log in api_module.storage.game_logs.recent(campaign_id)]
        assert types == ["companion", "player"]

    def test_query_unknown_companion(self, as_user, api_seeded):
        response = as_user(api_seeded["player"]).post(
            "/api/bot-companion/query", json={"query": "Hello?", "companionId": api_seeded["character"].id}
        )
        assert response.status_code == 404


class TestBackstoryEndpoints:
    def test_generate_tree(self, as_user, api_seeded, mock_llm):
        tree = {"startNodeId": "start", "nodes": {"start": {"id": "start", "text": "A storm.", "ending": True}}}
        mock_llm.responses = [json.dumps(tree)]

        response = as_user(api_seeded["player"]).post(
            "/api/characters/generate-backstory-tree", json={"race": "Elf", "class": "Ranger"}
        )

        assert response.status_code == 200
        assert response.get_json() == tree

    def test_finalize(self, as_user, api_seeded, mock_llm):
        mock_llm.responses = ["You grew up among the tides."]

        response = as_user(api_seeded["player"]).post(
            "/api/characters/finalize-backstory",
            json={
                "race": "Elf",
                "class": "Ranger",
                "narrativePath": [{"nodeText": "The raid.", "choiceText": "Hide"}],
                "personalityTraits": {"cautious": 4},
                "alignmentTendencies": {"lawChaos": -6, "goodEvil": 0},
            },
        )

        assert response.status_code == 200
        assert response.get_json() == {"backstory": "You grew up among the tides."}
        user_prompt = mock_llm.calls[0][0][1].content
        assert "lawful neutral" in user_prompt
        assert "extremely cautious" in user_prompt

    def test_finalize_falls_back_when_llm_down(self, as_user, api_seeded, mock_llm):
        mock_llm.unavailable = True
        response = as_user(api_seeded["player"]).post(
            "/api/characters/finalize-backstory",
            json={"narrativePath": [{"nodeText": "The raid.", "choiceText": None}]},
        )
        assert response.status_code == 200
        assert response.get_json()["backstory"].startswith("The raid.")

    def test_finalize_requires_path(self, as_user, api_seeded):
        response = as_user(api_seeded["player"]).post(
            "/api/characters/finalize-backstory", json={"narrativePath": []}
        )
        assert response.status_code == 400


class TestRelationshipEndpoints:
    @pytest.fixture
    def brom(self, api_module, api_seeded):
        s = api_module.storage
        character = s.characters.create(api_seeded["dm"].id, "Brom", "Dwarf", "Cleric")
        s.campaigns.add_character(api_seeded["campaign"].id, character.id)
        return character

    def create(self, as_user, api_seeded, target_id, **fields):
        return as_user(api_seeded["player"]).post(
            "/api/characters/relationships",
            json={
                "sourceCharacterId": api_seeded["character"].id,
                "targetCharacterId": target_id,
                "relationshipType": "rival",
                **fields,
            },
        )

    def test_create_and_list(self, as_user, api_seeded, brom):
        response = self.create(as_user, api_seeded, brom.id, relationshipStrength=-4)
        assert response.status_code == 201
        assert response.get_json()["relationshipStrength"] == -4

        mira_id = api_seeded["character"].id
        listed = as_user(api_seeded["player"]).get(f"/api/characters/{mira_id}/relationships").get_json()
        assert [r["targetCharacterId"] for r in listed] == [brom.id]

        campaign_id = api_seeded["campaign"].id
        shared = as_user(api_seeded["dm"]).get(f"/api/campaigns/{campaign_id}/relationships").get_json()
        assert len(shared) == 1

    def test_duplicate_and_strength_bounds(self, as_user, api_seeded, brom):
        self.create(as_user, api_seeded, brom.id)
        assert self.create(as_user, api_seeded, brom.id).status_code == 400
        assert self.create(as_user, api_seeded, brom.id, relationshipStrength=11).status_code == 400

    def test_only_owner_of_source(self, as_user, api_seeded, brom):
        response = as_user(api_seeded["dm"]).post(
            "/api/characters/relationships",
            json={
                "sourceCharacterId": api_seeded["character"].id,
                "targetCharacterId": brom.id,
                "relationshipType": "friend",
            },
        )
        assert response.status_code == 403

    def test_add_interaction(self, as_user, api_seeded, brom):
        relationship_id = self.create(as_user, api_seeded, brom.id).get_json()["id"]

        response = as_user(api_seeded["player"]).post(
            f"/api/characters/relationships/{relationship_id}/interactions",
            json={"description": "Saved each other", "impact": 3, "context": "Crypt"},
        )

        assert response.status_code == 200
        [interaction] = response.get_json()["interactionHistory"]
        assert interaction["description"] == "Saved each other"
        assert interaction["date"]

    def test_analyze(self, as_user, api_seeded, brom, mock_llm):
        self.create(as_user, api_seeded, brom.id)
        mock_llm.responses = [
            json.dumps(
                {
                    "summary": "Wary respect.",
                    "predictions": [{"event": "Duel", "outcome": "Truce", "triggerCondition": "Loot", "probability": 65}],
                }
            )
        ]
        mira_id = api_seeded["character"].id

        response = as_user(api_seeded["player"]).post(
            f"/api/characters/{mira_id}/relationships/{brom.id}/analyze",
            json={"campaignId": api_seeded["campaign"].id},
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["summary"] == "Wary respect."
        assert data["predictions"][0]["probability"] == 65
        assert "The Sunken Crown" in mock_llm.calls[0][0][1].content

    def test_analyze_without_relationship(self, as_user, api_seeded, brom):
        mira_id = api_seeded["character"].id
        response = as_user(api_seeded["player"]).post(
            f"/api/characters/{mira_id}/relationships/{brom.id}/analyze", json={}
        )
        assert response.status_code == 404

    def test_prediction_flow(self, as_user, api_seeded, brom):
        relationship_id = self.create(as_user, api_seeded, brom.id).get_json()["id"]
        campaign_id = api_seeded["campaign"].id
        player = as_user(api_seeded["player"])

        created = player.post(
            f"/api/campaigns/{campaign_id}/relationship-predictions",
            json={
                "relationshipId": relationship_id,
                "predictedEvent": "Duel",
                "predictedOutcome": "Truce",
                "triggerCondition": "Loot dispute",
                "probability": 70,
            },
        )
        assert created.status_code == 201
        prediction_id = created.get_json()["id"]

        triggered = player.post(
            f"/api/relationship-predictions/{prediction_id}/trigger",
            json={"actualOutcome": "They shook hands"},
        )
        assert triggered.status_code == 200
        assert triggered.get_json()["wasTriggered"] is True

        listed = player.get(f"/api/campaigns/{campaign_id}/relationship-predictions").get_json()
        assert [p["actualOutcome"] for p in listed] == ["They shook hands"]

        outsider = as_user(api_seeded["outsider"])
        assert outsider.post(f"/api/relationship-predictions/{prediction_id}/trigger", json={}).status_code == 403

    def test_prediction_needs_campaign_characters(self, as_user, api_module, api_seeded):
        stranger = api_module.storage.characters.create(api_seeded["outsider"].id, "Vex", "Tiefling", "Rogue")
        relationship_id = self.create(as_user, api_seeded, stranger.id).get_json()["id"]

        response = as_user(api_seeded["player"]).post(
            f"/api/campaigns/{api_seeded['campaign'].id}/relationship-predictions",
            json={
                "relationshipId": relationship_id,
                "predictedEvent": "Betrayal",
                "predictedOutcome": "Feud",
                "triggerCondition": "Gold",
            },
        )
        assert response.status_code == 400

    def test_generate_predictions_dm_only(self, as_user, api_seeded, brom, mock_llm):
        self.create(as_user, api_seeded, brom.id)
        mock_llm.responses = [
            json.dumps({"predictions": [{"event": "Duel", "outcome": "Truce", "triggerCondition": "Loot", "probability": 40}]})
        ]
        url = f"/api/campaigns/{api_seeded['campaign'].id}/generate-predictions"

        assert as_user(api_seeded["player"]).post(url).status_code == 403
        response = as_user(api_seeded["dm"]).post(url)

        assert response.status_code == 201
        assert response.get_json()["count"] == 1

    def test_generate_predictions_needs_two_characters(self, as_user, api_seeded):
        url = f"/api/campaigns/{api_seeded['campaign'].id}/generate-predictions"
        assert as_user(api_seeded["dm"]).post(url).status_code == 400
