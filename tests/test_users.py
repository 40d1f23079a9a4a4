"""
Identity and signup tests.
"""

import base64
import json

from app.core.auth import OBJECT_ID_CLAIM, PRINCIPAL_HEADER


def principal(auth_id=None, email=None, name=None):
    claims = []
    if auth_id:
        claims.append({"typ": OBJECT_ID_CLAIM, "val": auth_id})
    if email:
        claims.append({"typ": "preferred_username", "val": email})
    if name:
        claims.append({"typ": "name", "val": name})
    encoded = base64.b64encode(json.dumps({"claims": claims}).encode()).decode()
    return {PRINCIPAL_HEADER: encoded}


def signup(client, unique_id, **overrides):
    body = {
        "realName": "Test User",
        "emailAddress": f"user-{unique_id}@example.com",
        "authType": "azure",
        "authId": f"oid-{unique_id}",
    }
    body.update(overrides)
    return client.post("/api/signup", json=body)


def test_current_user_without_principal(client):
    """No principal header means not authenticated."""
    response = client.get("/api/current-user")

    assert response.status_code == 200
    assert response.json() == {"authenticated": False, "authType": "azure"}


def test_current_user_without_object_id(client):
    response = client.get("/api/current-user", headers=principal(email="a@b.c"))

    assert response.json() == {"authenticated": False, "authType": "azure"}


def test_current_user_unknown_identity_suggests_signup(client, unique_id):
    """Unknown identities get the claims needed to sign up."""
    response = client.get(
        "/api/current-user",
        headers=principal(f"oid-{unique_id}", "new@example.com", "New User"),
    )

    assert response.status_code == 200
    assert response.json() == {
        "authenticated": False,
        "authType": "azure",
        "authId": f"oid-{unique_id}",
        "suggestedEmail": "new@example.com",
        "suggestedName": "New User",
    }


def test_signup_then_authenticated(client, unique_id):
    """A signed-up identity is recognised on the next request."""
    response = signup(client, unique_id)

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    user = payload["user"]
    assert user["emailAddress"] == f"user-{unique_id}@example.com"
    assert user["realName"] == "Test User"
    assert user["authMethods"] == [{"type": "azure", "id": f"oid-{unique_id}"}]
    assert "createdAt" in user

    current = client.get("/api/current-user", headers=principal(f"oid-{unique_id}"))

    assert current.json()["authenticated"] is True
    assert current.json()["user"]["id"] == user["id"]


def test_signup_defaults_real_name(client, unique_id):
    response = signup(client, unique_id, realName=None)

    assert response.json()["user"]["realName"] == ""


def test_signup_requires_email(client, unique_id):
    response = signup(client, unique_id, emailAddress="")

    assert response.status_code == 400
    assert response.json() == {"error": "Email address is required"}


def test_malformed_principal_is_rejected(client):
    response = client.get("/api/current-user", headers={PRINCIPAL_HEADER: "%%%"})

    assert response.status_code == 400


def test_principal_with_non_list_claims_is_rejected(client):
    """A principal whose claims are not a list is a bad request, not a 500."""
    encoded = base64.b64encode(json.dumps({"claims": 5}).encode()).decode()
    response = client.get("/api/current-user", headers={PRINCIPAL_HEADER: encoded})

    assert response.status_code == 400
    assert "error" in response.json()


def test_add_auth_method(client, unique_id):
    """A second identity can be linked to an existing user."""
    user_id = signup(client, unique_id).json()["user"]["id"]

    response = client.post(
        f"/api/users/{user_id}/auth-methods",
        json={"authType": "azure", "authId": f"second-{unique_id}"},
    )

    assert response.status_code == 200
    assert len(response.json()["authMethods"]) == 2

    current = client.get("/api/current-user", headers=principal(f"second-{unique_id}"))
    assert current.json()["user"]["id"] == user_id


def test_add_auth_method_already_linked(client, unique_id):
    user_id = signup(client, unique_id).json()["user"]["id"]

    response = client.post(
        f"/api/users/{user_id}/auth-methods",
        json={"authType": "azure", "authId": f"oid-{unique_id}"},
    )

    assert response.status_code == 400


def test_add_auth_method_unknown_user(client, unique_id):
    response = client.post(
        "/api/users/missing/auth-methods",
        json={"authType": "azure", "authId": f"oid-{unique_id}"},
    )

    assert response.status_code == 404
    assert response.json() == {"error": "User missing not found"}


def test_user_store_failure(client, user_store, unique_id):
    user_store.fail = True

    response = client.get("/api/current-user", headers=principal(f"oid-{unique_id}"))

    assert response.status_code == 500
