"""
Integration tests for quiz endpoints: lifecycle, scorekeeping, helps,
rankings and public sharing.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import NotFoundError
from app.models.category import Category
from app.models.help import HelpType
from app.models.league import League
from app.models.team import Team
from app.services import quizzes as quiz_service
from app.services import share as share_service
from quizory_shared.schemas.common import HelpBehavior, Role, SubscriptionPlan
from quizory_shared.schemas.quizzes import QuizCreate


@pytest.fixture
async def league_night(session, make_org, add_member, auth_headers):
    """Premium org with an owner, two teams, two categories and two help types."""
    org = await make_org(plan=SubscriptionPlan.PREMIUM)
    owner = await add_member(org, Role.OWNER)
    teams = [Team(org_id=org.id, name="A"), Team(org_id=org.id, name="B")]
    categories = [Category(org_id=org.id, name="C1"), Category(org_id=org.id, name="C2")]
    joker = HelpType(org_id=org.id, name="Joker", behavior=HelpBehavior.DOUBLE_SCORE.value)
    chance = HelpType(org_id=org.id, name="Double Chance", behavior=HelpBehavior.MARKER_ONLY.value)
    session.add_all([*teams, *categories, joker, chance])
    await session.commit()
    return {
        "org": org,
        "owner": owner,
        "headers": auth_headers(owner),
        "teams": teams,
        "categories": categories,
        "joker": joker,
        "chance": chance,
        "base": f"/api/v1/orgs/{org.id}/quizzes",
    }


async def _create_quiz(client, data, **overrides):
    body = {
        "name": "Tuesday Quiz",
        "date": "2026-03-17T20:00:00Z",
        "location": "The Crown",
        "team_ids": [str(t.id) for t in data["teams"]],
        "category_ids": [str(c.id) for c in data["categories"]],
        **overrides,
    }
    return await client.post(data["base"], json=body, headers=data["headers"])


async def _score(client, data, quiz_id, team, category, points, bonus=0, locked=False):
    return await client.put(
        f"{data['base']}/{quiz_id}/scores",
        json={
            "team_id": str(team.id),
            "category_id": str(category.id),
            "points": points,
            "bonus_points": bonus,
            "is_locked": locked,
        },
        headers=data["headers"],
    )


class TestQuizLifecycle:
    async def test_create_builds_score_grid(self, client, league_night):
        data = league_night
        resp = await _create_quiz(client, data)
        assert resp.status_code == 201
        quiz = resp.json()
        assert quiz["status"] == "draft"

        scores = await client.get(f"{data['base']}/{quiz['id']}/scores", headers=data["headers"])
        assert scores.status_code == 200
        assert len(scores.json()) == 4
        assert all(s["points"] == 0 and not s["is_locked"] for s in scores.json())

    async def test_duplicate_ids_are_collapsed(self, client, league_night):
        data = league_night
        team = str(data["teams"][0].id)
        resp = await _create_quiz(client, data, team_ids=[team, team])
        scores = await client.get(
            f"{data['base']}/{resp.json()['id']}/scores", headers=data["headers"]
        )
        assert len(scores.json()) == 2

    async def test_foreign_team_rejected(self, client, league_night, make_org, session):
        data = league_night
        other = await make_org(name="Other")
        stranger = Team(org_id=other.id, name="Intruders")
        session.add(stranger)
        await session.commit()

        resp = await _create_quiz(client, data, team_ids=[str(stranger.id)])
        assert resp.status_code == 404

    async def test_status_transitions(self, client, league_night):
        data = league_night
        quiz_id = (await _create_quiz(client, data)).json()["id"]
        url = f"{data['base']}/{quiz_id}/status"

        bad = await client.post(url, json={"status": "finished"}, headers=data["headers"])
        assert bad.status_code == 409
        assert bad.json()["error"]["code"] == "invalid_quiz_transition"

        for status in ("live", "finished", "live"):
            resp = await client.post(url, json={"status": status}, headers=data["headers"])
            assert resp.status_code == 200
            assert resp.json()["status"] == status

    async def test_live_quiz_cannot_return_to_draft(self, client, league_night):
        data = league_night
        quiz_id = (await _create_quiz(client, data)).json()["id"]
        url = f"{data['base']}/{quiz_id}/status"

        await client.post(url, json={"status": "live"}, headers=data["headers"])
        resp = await client.post(url, json={"status": "draft"}, headers=data["headers"])
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "invalid_quiz_transition"

    async def test_list_filters_by_status(self, client, league_night):
        data = league_night
        live_id = (await _create_quiz(client, data, name="Live one")).json()["id"]
        await _create_quiz(client, data, name="Draft one")
        await client.post(
            f"{data['base']}/{live_id}/status", json={"status": "live"}, headers=data["headers"]
        )

        resp = await client.get(f"{data['base']}?status=live", headers=data["headers"])
        assert [q["name"] for q in resp.json()] == ["Live one"]

    async def test_deleted_quiz_is_gone(self, client, league_night):
        data = league_night
        quiz_id = (await _create_quiz(client, data)).json()["id"]

        resp = await client.delete(f"{data['base']}/{quiz_id}", headers=data["headers"])
        assert resp.status_code == 204
        gone = await client.get(f"{data['base']}/{quiz_id}", headers=data["headers"])
        assert gone.status_code == 404

    async def test_user_cannot_create(self, client, league_night, add_member, auth_headers):
        data = league_night
        user = await add_member(data["org"], Role.USER)
        resp = await client.post(
            data["base"],
            json={"name": "Mine", "date": "2026-03-17T20:00:00Z"},
            headers=auth_headers(user),
        )
        assert resp.status_code == 403


class TestMonthlyLimit:
    async def test_free_org_sixth_quiz_blocked(self, client, make_org, add_member, auth_headers):
        org = await make_org()
        owner = await add_member(org, Role.OWNER)
        base = f"/api/v1/orgs/{org.id}/quizzes"
        body = {"name": "Weekly", "date": "2026-03-17T20:00:00Z"}

        for _ in range(5):
            resp = await client.post(base, json=body, headers=auth_headers(owner))
            assert resp.status_code == 201

        resp = await client.post(base, json=body, headers=auth_headers(owner))
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "free_quiz_limit_reached"

    async def test_free_org_cannot_use_league(self, client, session, make_org, add_member, auth_headers):
        org = await make_org()
        owner = await add_member(org, Role.OWNER)
        league = League(org_id=org.id, name="Spring")
        session.add(league)
        await session.commit()

        resp = await client.post(
            f"/api/v1/orgs/{org.id}/quizzes",
            json={"name": "Weekly", "date": "2026-03-17T20:00:00Z", "league_id": str(league.id)},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "feature_requires_premium"


class TestScorekeeping:
    async def test_scenario_ranking(self, client, league_night):
        data = league_night
        a, b = data["teams"]
        c1, c2 = data["categories"]
        quiz_id = (await _create_quiz(client, data)).json()["id"]

        for team, category, points, bonus in [
            (a, c1, 10, 0), (a, c2, 5, 2), (b, c1, 8, 0), (b, c2, 8, 0),
        ]:
            resp = await _score(client, data, quiz_id, team, category, points, bonus)
            assert resp.status_code == 200

        help_resp = await client.post(
            f"{data['base']}/{quiz_id}/helps",
            json={"team_id": str(a.id), "help_type_id": str(data["joker"].id)},
            headers=data["headers"],
        )
        assert help_resp.status_code == 201

        ranking = await client.get(f"{data['base']}/{quiz_id}/ranking", headers=data["headers"])
        assert [(r["team_name"], r["points"], r["rank"]) for r in ranking.json()] == [
            ("A", 34, 1),
            ("B", 16, 2),
        ]

    async def test_locked_score_cannot_change(self, client, league_night):
        data = league_night
        a = data["teams"][0]
        c1 = data["categories"][0]
        quiz_id = (await _create_quiz(client, data)).json()["id"]

        locked = await _score(client, data, quiz_id, a, c1, 7, locked=True)
        assert locked.json()["is_locked"] is True

        resp = await _score(client, data, quiz_id, a, c1, 9)
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "score_locked"

    async def test_deleted_quiz_scores_are_frozen(self, client, league_night):
        data = league_night
        quiz_id = (await _create_quiz(client, data)).json()["id"]
        await client.delete(f"{data['base']}/{quiz_id}", headers=data["headers"])

        resp = await _score(client, data, quiz_id, data["teams"][0], data["categories"][0], 9)
        assert resp.status_code == 404

    async def test_negative_correction_allowed(self, client, league_night):
        data = league_night
        quiz_id = (await _create_quiz(client, data)).json()["id"]
        resp = await _score(client, data, quiz_id, data["teams"][0], data["categories"][0], -2)
        assert resp.status_code == 200
        assert resp.json()["points"] == -2

    async def test_plain_user_can_keep_score(self, client, league_night, add_member, auth_headers):
        data = league_night
        quiz_id = (await _create_quiz(client, data)).json()["id"]
        scorer = await add_member(data["org"], Role.USER)

        resp = await client.put(
            f"{data['base']}/{quiz_id}/scores",
            json={
                "team_id": str(data["teams"][1].id),
                "category_id": str(data["categories"][1].id),
                "points": 3,
            },
            headers=auth_headers(scorer),
        )
        assert resp.status_code == 200

    async def test_help_used_twice_conflicts(self, client, league_night):
        data = league_night
        quiz_id = (await _create_quiz(client, data)).json()["id"]
        body = {"team_id": str(data["teams"][1].id), "help_type_id": str(data["chance"].id)}
        url = f"{data['base']}/{quiz_id}/helps"

        assert (await client.post(url, json=body, headers=data["headers"])).status_code == 201
        again = await client.post(url, json=body, headers=data["headers"])
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "help_already_used"

        listed = await client.get(url, headers=data["headers"])
        assert len(listed.json()) == 1

    async def test_help_for_team_outside_quiz(self, client, league_night, session):
        data = league_night
        quiz_id = (await _create_quiz(client, data)).json()["id"]
        late = Team(org_id=data["org"].id, name="Late")
        session.add(late)
        await session.commit()

        resp = await client.post(
            f"{data['base']}/{quiz_id}/helps",
            json={"team_id": str(late.id), "help_type_id": str(data["joker"].id)},
            headers=data["headers"],
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "team_not_in_quiz"

    async def test_ranking_of_unscored_quiz_lists_zero_totals(self, client, league_night):
        data = league_night
        quiz_id = (await _create_quiz(client, data)).json()["id"]
        ranking = await client.get(f"{data['base']}/{quiz_id}/ranking", headers=data["headers"])
        assert [r["points"] for r in ranking.json()] == [0, 0]


class TestSharing:
    async def test_public_leaderboard(self, client, league_night):
        data = league_night
        quiz_id = (await _create_quiz(client, data)).json()["id"]
        await _score(client, data, quiz_id, data["teams"][1], data["categories"][0], 4)

        share = await client.post(
            f"{data['base']}/{quiz_id}/share", json={}, headers=data["headers"]
        )
        assert share.status_code == 201
        token = share.json()["token"]
        assert share.json()["url"].endswith(f"/api/v1/share/{token}")

        public = await client.get(f"/api/v1/share/{token}")
        assert public.status_code == 200
        board = public.json()
        assert board["quiz_name"] == "Tuesday Quiz"
        assert board["primary_color"] == "#5E35B1"
        assert board["rankings"][0]["team_name"] == "B"

    async def test_unknown_token(self, client):
        resp = await client.get("/api/v1/share/not-a-token")
        assert resp.status_code == 404

    async def test_expired_token(self, session, league_night, ctx_for):
        data = league_night
        ctx = ctx_for(data["owner"], data["org"], Role.OWNER)
        quiz = await quiz_service.create_quiz(
            ctx, session, QuizCreate(name="Old", date=datetime(2026, 1, 5, tzinfo=timezone.utc))
        )
        expires = datetime(2026, 2, 1, tzinfo=timezone.utc)
        created = await share_service.create_share_token(ctx, session, quiz.id, expires)

        board = await share_service.get_shared_leaderboard(
            session, created.token, now=expires - timedelta(days=1)
        )
        assert board.quiz_name == "Old"

        with pytest.raises(NotFoundError):
            await share_service.get_shared_leaderboard(
                session, created.token, now=expires + timedelta(seconds=1)
            )

    async def test_free_org_cannot_share(self, client, make_org, add_member, auth_headers):
        org = await make_org()
        owner = await add_member(org, Role.OWNER)
        base = f"/api/v1/orgs/{org.id}/quizzes"
        quiz = await client.post(
            base, json={"name": "Q", "date": "2026-03-17T20:00:00Z"}, headers=auth_headers(owner)
        )

        resp = await client.post(
            f"{base}/{quiz.json()['id']}/share", json={}, headers=auth_headers(owner)
        )
        assert resp.status_code == 409
