"""
Subscription lifecycle: plan catalog, lazy free tier, cancellation and
admin management.
"""

from decimal import Decimal

from conftest import create_user, other_session
from deaf_assistant.libs.datetime import now
from deaf_assistant.models.subscription import Subscription
from deaf_assistant.services import subscription_service


class TestPlans:
    def test_catalog_is_public(self, client):
        resp = client.get("/api/subscriptions/plans")
        assert resp.status_code == 200
        plans = {p["id"]: p for p in resp.json()}
        assert list(plans) == ["free", "premium_monthly", "premium_yearly"]
        assert Decimal(plans["free"]["price"]) == 0
        assert Decimal(plans["premium_monthly"]["price"]) == Decimal("9.99")
        assert plans["premium_monthly"]["price_in_cents"] == 999
        assert plans["premium_yearly"]["price_in_cents"] == 9999
        assert plans["premium_yearly"]["billing_frequency"] == "Yearly"


class TestMySubscription:
    """GET /me creates the free tier on first read."""

    def test_free_tier_created_lazily(self, client, user_headers, user, db_session):
        _, user_id = user
        assert db_session.query(Subscription).filter_by(user_id=user_id).count() == 0

        resp = client.get("/api/subscriptions/me", headers=user_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["user_id"] == user_id
        assert body["plan_name"] == "Free Plan"
        assert Decimal(body["price"]) == 0
        assert body["currency"] == "USD"
        assert body["billing_frequency"] == "Monthly"
        assert body["payment_method"] == "None"
        assert body["is_active"] is True
        assert body["auto_renew"] is True
        assert body["end_date"] is None
        assert body["next_renewal_date"] is not None

    def test_repeated_reads_return_the_same_row(self, client, user_headers, user, db_session):
        first = client.get("/api/subscriptions/me", headers=user_headers).json()
        second = client.get("/api/subscriptions/me", headers=user_headers).json()
        assert first["id"] == second["id"]
        assert db_session.query(Subscription).filter_by(user_id=user[1]).count() == 1

    def test_requires_authentication(self, client):
        assert client.get("/api/subscriptions/me").status_code == 401

    def test_cancel(self, client, user_headers):
        missing = client.post("/api/subscriptions/me/cancel", headers=user_headers)
        assert missing.status_code == 404

        created = client.get("/api/subscriptions/me", headers=user_headers).json()
        resp = client.post("/api/subscriptions/me/cancel", headers=user_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["auto_renew"] is False
        assert body["cancellation_date"] is not None
        assert body["end_date"] == created["next_renewal_date"]
        assert body["is_active"] is True


class TestAdminSubscriptions:
    def test_owner_or_admin_can_read(self, client, user_headers, admin_headers):
        sub_id = client.get("/api/subscriptions/me", headers=user_headers).json()["id"]
        other_headers, _ = create_user(client, "other@example.com")

        assert client.get(f"/api/subscriptions/{sub_id}", headers=user_headers).status_code == 200
        assert client.get(f"/api/subscriptions/{sub_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/subscriptions/{sub_id}", headers=other_headers).status_code == 403
        assert client.get("/api/subscriptions/9999", headers=admin_headers).status_code == 404

    def test_list_is_admin_only(self, client, user_headers, admin_headers):
        client.get("/api/subscriptions/me", headers=user_headers)
        assert client.get("/api/subscriptions/", headers=user_headers).status_code == 403
        resp = client.get("/api/subscriptions/", headers=admin_headers)
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_create_rejects_second_subscription(self, client, user, admin_headers):
        _, user_id = user
        payload = {"user_id": user_id, "plan_name": "Premium Monthly", "price": "9.99"}

        resp = client.post("/api/subscriptions/", json=payload, headers=admin_headers)
        assert resp.status_code == 201
        assert Decimal(resp.json()["price"]) == Decimal("9.99")

        resp = client.post("/api/subscriptions/", json=payload, headers=admin_headers)
        assert resp.status_code == 409

    def test_create_for_unknown_user(self, client, admin_headers):
        resp = client.post(
            "/api/subscriptions/",
            json={"user_id": 9999, "plan_name": "Premium Monthly"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_update_and_delete(self, client, user_headers, admin_headers):
        sub = client.get("/api/subscriptions/me", headers=user_headers).json()
        payload = {
            "id": sub["id"],
            "plan_name": "Premium Yearly",
            "price": "99.99",
            "billing_frequency": "Yearly",
            "is_active": True,
        }

        resp = client.put(
            f"/api/subscriptions/{sub['id'] + 1}", json=payload, headers=admin_headers
        )
        assert resp.status_code == 400

        resp = client.put(f"/api/subscriptions/{sub['id']}", json=payload, headers=admin_headers)
        assert resp.status_code == 204
        updated = client.get("/api/subscriptions/me", headers=user_headers).json()
        assert updated["plan_name"] == "Premium Yearly"
        assert Decimal(updated["price"]) == Decimal("99.99")

        resp = client.delete(f"/api/subscriptions/{sub['id']}", headers=admin_headers)
        assert resp.status_code == 204
        resp = client.get(f"/api/subscriptions/{sub['id']}", headers=admin_headers)
        assert resp.status_code == 404


class TestSubscriptionService:
    def test_renewal_months(self):
        assert subscription_service.renewal_months("Yearly") == 12
        assert subscription_service.renewal_months("YEARLY") == 12
        assert subscription_service.renewal_months("Monthly") == 1
        assert subscription_service.renewal_months("weekly") == 1

    def test_get_or_create_is_idempotent(self, db_session, user):
        _, user_id = user
        first = subscription_service.get_or_create_free_subscription(db_session, user_id)
        second = subscription_service.get_or_create_free_subscription(db_session, user_id)
        assert first.id == second.id

    def test_concurrent_first_read_returns_winner_row(self, app, db_session, user, monkeypatch):
        _, user_id = user
        lookup = subscription_service.get_subscription_for_user
        winner_ids = []

        def lookup_racing_insert(db, uid):
            # the first lookup misses, then a competing request inserts the row
            if not winner_ids:
                with other_session(app) as other:
                    row = Subscription(
                        user_id=uid, plan_name="Free Plan", start_date=now(), is_active=True
                    )
                    other.add(row)
                    other.commit()
                    winner_ids.append(row.id)
                return None
            return lookup(db, uid)

        monkeypatch.setattr(subscription_service, "get_subscription_for_user", lookup_racing_insert)

        subscription = subscription_service.get_or_create_free_subscription(db_session, user_id)
        assert subscription.id == winner_ids[0]
        assert db_session.query(Subscription).filter_by(user_id=user_id).count() == 1

    def test_update_of_concurrently_deleted_subscription(
        self, app, client, user_headers, admin_headers, monkeypatch
    ):
        sub = client.get("/api/subscriptions/me", headers=user_headers).json()
        update = subscription_service.update_subscription

        def delete_then_update(db, *, db_obj, obj_in):
            with other_session(app) as other:
                other.query(Subscription).filter(Subscription.id == db_obj.id).delete()
                other.commit()
            return update(db, db_obj=db_obj, obj_in=obj_in)

        monkeypatch.setattr(subscription_service, "update_subscription", delete_then_update)

        resp = client.put(
            f"/api/subscriptions/{sub['id']}",
            json={"id": sub["id"], "plan_name": "Premium Monthly", "price": "9.99"},
            headers=admin_headers,
        )
        assert resp.status_code == 404
