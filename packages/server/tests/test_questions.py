"""
Integration tests for the question bank and the per-org quiz defaults.

Tests cover:
- The questionBank gate on Free, Trial, expired Trial and Premium orgs
- Create/update/delete with ordered options, options replaced on update
- Category filter and pagination
- Role checks and tenant scoping
- Settings get-or-create and partial admin updates
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from quizory_shared.schemas.common import Role, SubscriptionPlan


@pytest.fixture
async def premium(make_org, add_member, auth_headers):
    org = await make_org(plan=SubscriptionPlan.PREMIUM)
    owner = await add_member(org, Role.OWNER)
    return org, auth_headers(owner)


async def _category(client, org, headers, name="History") -> str:
    resp = await client.post(
        f"/api/v1/orgs/{org.id}/categories", json={"name": name}, headers=headers
    )
    assert resp.status_code == 201
    return resp.json()["id"]


def _choice(category_id: str, text: str, order_index: int = 0) -> dict:
    return {
        "category_id": category_id,
        "type": "multiple_choice",
        "text": text,
        "order_index": order_index,
        "options": [
            {"text": "Belgrade", "is_correct": True, "order_index": 1},
            {"text": "Zagreb", "order_index": 0},
        ],
    }


class TestQuestionBankGate:
    async def test_blocked_on_free(self, client, make_org, add_member, auth_headers):
        org = await make_org()
        owner = await add_member(org, Role.OWNER)

        resp = await client.get(f"/api/v1/orgs/{org.id}/questions", headers=auth_headers(owner))
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "feature_requires_premium"

    async def test_allowed_on_trial(self, client, make_org, add_member, auth_headers):
        org = await make_org(
            plan=SubscriptionPlan.TRIAL,
            trial_ends_at=datetime.now(timezone.utc) + timedelta(days=3),
        )
        owner = await add_member(org, Role.OWNER)
        headers = auth_headers(owner)
        category_id = await _category(client, org, headers)

        created = await client.post(
            f"/api/v1/orgs/{org.id}/questions", json=_choice(category_id, "Capital?"), headers=headers
        )
        assert created.status_code == 201

        resp = await client.get(f"/api/v1/orgs/{org.id}/questions", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["total"] == 1

    async def test_blocked_after_trial_expires(self, client, make_org, add_member, auth_headers):
        org = await make_org(
            plan=SubscriptionPlan.TRIAL,
            trial_ends_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
        owner = await add_member(org, Role.OWNER)

        resp = await client.get(f"/api/v1/orgs/{org.id}/questions", headers=auth_headers(owner))
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "feature_requires_premium"


class TestQuestions:
    async def test_create_get_update_delete(self, client, premium):
        org, headers = premium
        base = f"/api/v1/orgs/{org.id}/questions"
        category_id = await _category(client, org, headers)

        created = await client.post(base, json=_choice(category_id, "Capital?"), headers=headers)
        assert created.status_code == 201
        question = created.json()
        assert question["type"] == "multiple_choice"
        # Options come back in display order
        assert [o["text"] for o in question["options"]] == ["Zagreb", "Belgrade"]
        assert [o["is_correct"] for o in question["options"]] == [False, True]

        updated = await client.put(
            f"{base}/{question['id']}",
            json={
                "text": "Capital of Serbia?",
                "options": [{"text": "True", "is_correct": True}],
            },
            headers=headers,
        )
        assert updated.status_code == 200
        body = updated.json()
        assert body["text"] == "Capital of Serbia?"
        assert body["category_id"] == category_id
        assert [o["text"] for o in body["options"]] == ["True"]

        fetched = await client.get(f"{base}/{question['id']}", headers=headers)
        assert len(fetched.json()["options"]) == 1

        assert (await client.delete(f"{base}/{question['id']}", headers=headers)).status_code == 204
        assert (await client.get(f"{base}/{question['id']}", headers=headers)).status_code == 404
        assert (await client.get(base, headers=headers)).json()["total"] == 0

    async def test_update_without_options_keeps_them(self, client, premium):
        org, headers = premium
        base = f"/api/v1/orgs/{org.id}/questions"
        category_id = await _category(client, org, headers)
        question = (
            await client.post(base, json=_choice(category_id, "Capital?"), headers=headers)
        ).json()

        resp = await client.put(
            f"{base}/{question['id']}", json={"order_index": 4}, headers=headers
        )
        assert resp.json()["order_index"] == 4
        assert len(resp.json()["options"]) == 2

    async def test_filter_by_category_and_paginate(self, client, premium):
        org, headers = premium
        base = f"/api/v1/orgs/{org.id}/questions"
        history = await _category(client, org, headers, "History")
        sport = await _category(client, org, headers, "Sport")

        for i in range(3):
            await client.post(base, json=_choice(history, f"History {i}", i), headers=headers)
        await client.post(base, json=_choice(sport, "Sport 0"), headers=headers)

        resp = await client.get(f"{base}?category_id={history}", headers=headers)
        page = resp.json()
        assert page["total"] == 3
        assert [q["text"] for q in page["items"]] == ["History 0", "History 1", "History 2"]

        second = await client.get(f"{base}?page=2&page_size=2", headers=headers)
        assert second.json()["total"] == 4
        assert len(second.json()["items"]) == 2

    async def test_unknown_type_rejected(self, client, premium):
        org, headers = premium
        category_id = await _category(client, org, headers)
        payload = _choice(category_id, "Capital?")
        payload["type"] = "essay"

        resp = await client.post(f"/api/v1/orgs/{org.id}/questions", json=payload, headers=headers)
        assert resp.status_code == 422

    async def test_foreign_category_not_found(
        self, client, premium, make_org, add_member, auth_headers
    ):
        org, headers = premium
        other = await make_org(plan=SubscriptionPlan.PREMIUM, name="Other")
        outsider = await add_member(other, Role.OWNER)
        foreign = await _category(client, other, auth_headers(outsider))

        resp = await client.post(
            f"/api/v1/orgs/{org.id}/questions", json=_choice(foreign, "Capital?"), headers=headers
        )
        assert resp.status_code == 404

    async def test_questions_are_tenant_scoped(
        self, client, premium, make_org, add_member, auth_headers
    ):
        org, headers = premium
        category_id = await _category(client, org, headers)
        question = (
            await client.post(
                f"/api/v1/orgs/{org.id}/questions", json=_choice(category_id, "Q"), headers=headers
            )
        ).json()
        other = await make_org(plan=SubscriptionPlan.PREMIUM, name="Other")
        outsider = await add_member(other, Role.OWNER)

        resp = await client.get(
            f"/api/v1/orgs/{other.id}/questions/{question['id']}", headers=auth_headers(outsider)
        )
        assert resp.status_code == 404

    async def test_user_reads_but_cannot_write(self, client, premium, add_member, auth_headers):
        org, headers = premium
        category_id = await _category(client, org, headers)
        user_headers = auth_headers(await add_member(org, Role.USER))

        listed = await client.get(f"/api/v1/orgs/{org.id}/questions", headers=user_headers)
        assert listed.status_code == 200

        resp = await client.post(
            f"/api/v1/orgs/{org.id}/questions", json=_choice(category_id, "Q"), headers=user_headers
        )
        assert resp.status_code == 403


class TestOrgSettings:
    async def test_defaults_created_on_first_read(self, client, make_org, add_member, auth_headers):
        org = await make_org()
        user = await add_member(org, Role.USER)

        resp = await client.get(f"/api/v1/orgs/{org.id}/settings", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.json()["default_categories_count"] == 6
        assert resp.json()["default_questions_per_category"] == 10

        again = await client.get(f"/api/v1/orgs/{org.id}/settings", headers=auth_headers(user))
        assert again.json()["org_id"] == str(org.id)

    async def test_admin_partial_update(self, client, make_org, add_member, auth_headers):
        org = await make_org()
        headers = auth_headers(await add_member(org, Role.ADMIN))
        url = f"/api/v1/orgs/{org.id}/settings"

        resp = await client.put(url, json={"default_categories_count": 8}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["default_categories_count"] == 8
        assert resp.json()["default_questions_per_category"] == 10

        fetched = await client.get(url, headers=headers)
        assert fetched.json()["default_categories_count"] == 8

    async def test_out_of_range_rejected(self, client, make_org, add_member, auth_headers):
        org = await make_org()
        headers = auth_headers(await add_member(org, Role.ADMIN))

        resp = await client.put(
            f"/api/v1/orgs/{org.id}/settings",
            json={"default_questions_per_category": 0},
            headers=headers,
        )
        assert resp.status_code == 422

    async def test_user_cannot_update(self, client, make_org, add_member, auth_headers):
        org = await make_org()
        user = await add_member(org, Role.USER)

        resp = await client.put(
            f"/api/v1/orgs/{org.id}/settings",
            json={"default_categories_count": 3},
            headers=auth_headers(user),
        )
        assert resp.status_code == 403
