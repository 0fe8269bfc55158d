from datetime import timedelta

from app.utils.auth import create_access_token


def test_health_check(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] is True


def test_register_returns_user_and_token(register_user):
    data = register_user("Jane@Example.com")

    assert data["email"] == "jane@example.com"
    assert data["first_name"] == "Jane"
    assert data["token"]
    assert "hashed_password" not in data


def test_register_rejects_duplicate_email(client, register_user):
    register_user()
    response = client.post(
        "/api/v1/users/register",
        json={
            "first_name": "Jane",
            "last_name": "Again",
            "email": "JANE@example.com",
            "password": "another-secret",
        },
    )

    assert response.status_code == 400
    body = response.json()
    assert body["status"] is False
    assert body["message"] == "Couldn't Create a New User. Please check your data!"


def test_register_requires_fields(client):
    response = client.post("/api/v1/users/register", json={"email": "jane@example.com"})
    assert response.status_code == 400
    assert "'password' is required." in response.json()["message"]


def test_login_returns_a_working_token(client, register_user):
    register_user()
    response = client.post(
        "/api/v1/users/login",
        json={"email": "jane@example.com", "password": "secret123"},
    )
    assert response.status_code == 200
    token = response.json()["data"]["token"]

    me = client.get("/api/v1/users/me", headers={"x-access-token": token})
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "jane@example.com"


def test_login_with_wrong_password(client, register_user):
    register_user()
    response = client.post(
        "/api/v1/users/login",
        json={"email": "jane@example.com", "password": "wrong-password"},
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid Credentials, Please Try Again."


def test_login_with_unknown_email(client):
    response = client.post(
        "/api/v1/users/login",
        json={"email": "nobody@example.com", "password": "secret123"},
    )
    assert response.status_code == 401


def test_bearer_header_is_accepted(client, register_user):
    token = register_user()["token"]
    response = client.get(
        "/api/v1/users/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200


def test_missing_token_is_forbidden(client):
    response = client.get("/api/v1/users/me")
    assert response.status_code == 403
    assert response.json() == {
        "status": False,
        "message": "A token is required for authentication",
        "data": None,
    }


def test_invalid_token_is_unauthorized(client):
    response = client.get("/api/v1/users/me", headers={"x-access-token": "garbage"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid Token"


def test_expired_token_is_unauthorized(client, register_user):
    user_id = register_user()["id"]
    token = create_access_token({"sub": user_id}, expires_delta=timedelta(minutes=-1))

    response = client.get("/api/v1/users/me", headers={"x-access-token": token})
    assert response.status_code == 401


def test_token_of_unknown_user_is_unauthorized(client):
    token = create_access_token({"sub": "2b0c9e4e-3a4f-4c33-9d55-0d5a3f2a9b10"})
    response = client.get("/api/v1/users/me", headers={"x-access-token": token})
    assert response.status_code == 401
