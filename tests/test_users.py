"""
User administration and the caller's own profile.
"""

from conftest import create_user, login


class TestProfile:
    def test_read_and_update_me(self, client, user_headers):
        resp = client.put(
            "/api/users/me",
            json={"first_name": "Sam", "phone_number": "+15550100", "birthday": "1990-04-01"},
            headers=user_headers,
        )
        assert resp.status_code == 200

        me = client.get("/api/users/me", headers=user_headers).json()
        assert me["first_name"] == "Sam"
        assert me["last_name"] == "User"
        assert me["full_name"] == "Sam User"
        assert me["phone_number"] == "+15550100"
        assert me["birthday"] == "1990-04-01"

    def test_null_name_is_rejected(self, client, user_headers):
        resp = client.put("/api/users/me", json={"first_name": None}, headers=user_headers)
        assert resp.status_code == 400
        assert "first_name" in resp.json()["errors"]

        me = client.get("/api/users/me", headers=user_headers).json()
        assert me["first_name"] == "Test"

    def test_phone_can_be_cleared(self, client, user_headers):
        client.put("/api/users/me", json={"phone_number": "+15550100"}, headers=user_headers)
        resp = client.put("/api/users/me", json={"phone_number": None}, headers=user_headers)
        assert resp.status_code == 200
        assert resp.json()["phone_number"] is None


class TestAdminUsers:
    def test_regular_users_cannot_administer(self, client, user_headers, user):
        assert client.get("/api/users/", headers=user_headers).status_code == 403
        assert client.get(f"/api/users/{user[1]}", headers=user_headers).status_code == 403

    def test_list_and_get(self, client, admin_headers, user):
        emails = [u["email"] for u in client.get("/api/users/", headers=admin_headers).json()]
        assert "user@example.com" in emails
        assert client.get(f"/api/users/{user[1]}", headers=admin_headers).status_code == 200
        assert client.get("/api/users/9999", headers=admin_headers).status_code == 404

    def test_update_role(self, client, admin_headers, user):
        _, user_id = user
        payload = {
            "id": user_id,
            "email": "user@example.com",
            "first_name": "Test",
            "last_name": "User",
            "role": "Premium",
        }
        resp = client.put(f"/api/users/{user_id}", json=payload, headers=admin_headers)
        assert resp.status_code == 204

        body = client.get(f"/api/users/{user_id}", headers=admin_headers).json()
        assert body["role"] == "Premium"
        assert body["roles"] == ["Premium"]

        # the new role shows up in freshly issued tokens
        assert login(client, "user@example.com")["user"]["roles"] == ["Premium"]

    def test_update_rejects_unknown_role_and_taken_email(self, client, admin_headers, user):
        _, user_id = user
        create_user(client, "taken@example.com")
        base = {"id": user_id, "first_name": "Test", "last_name": "User"}

        resp = client.put(
            f"/api/users/{user_id}",
            json={**base, "email": "user@example.com", "role": "Wizard"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

        resp = client.put(
            f"/api/users/{user_id}",
            json={**base, "email": "taken@example.com"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

        resp = client.put(
            f"/api/users/{user_id + 100}",
            json={**base, "email": "user@example.com"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_delete_cascades(self, client, admin_headers, user_headers, user):
        _, user_id = user
        client.get("/api/subscriptions/me", headers=user_headers)
        client.post("/api/feedback/", json={"comment": "bye", "rating": 3}, headers=user_headers)

        assert client.delete(f"/api/users/{user_id}", headers=admin_headers).status_code == 204
        assert client.get(f"/api/users/{user_id}", headers=admin_headers).status_code == 404
        assert client.get("/api/subscriptions/", headers=admin_headers).json() == []
        assert client.get("/api/feedback/", headers=admin_headers).json() == []
        # the deleted user's token no longer resolves
        assert client.get("/api/users/me", headers=user_headers).status_code == 401
