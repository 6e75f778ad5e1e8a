from datetime import timedelta

from internhub.core.auth import create_access_token, decode_token, hash_password, verify_password


def test_password_hashing():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


def test_token_roundtrip(settings):
    token = create_access_token({"sub": "abc", "kind": "student"}, settings)
    payload = decode_token(token, settings)
    assert payload["sub"] == "abc"
    assert payload["kind"] == "student"


def test_expired_token_is_rejected(settings):
    token = create_access_token({"sub": "abc"}, settings, expires_delta=timedelta(minutes=-1))
    assert decode_token(token, settings) is None


def test_register_student(client, db):
    resp = client.post("/api/auth/register", json={
        "firstName": "Grace",
        "lastName": "Hopper",
        "email": "Grace@Example.com",
        "password": "secret123",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["role"] == "intern"
    assert body["user"]["userType"] == "student"

    stored = db.students.find_one({"email": "grace@example.com"})
    assert stored["password"] != "secret123"
    assert stored["emailNotifications"] is True


def test_register_duplicate_email(client, register_student):
    student = register_student()
    resp = client.post("/api/auth/register", json={
        "firstName": "Again",
        "lastName": "Again",
        "email": student["email"],
        "password": "secret123",
    })
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "User already exists with this email"}


def test_register_validation_errors(client):
    resp = client.post("/api/auth/register", json={
        "firstName": " ",
        "lastName": "X",
        "email": "not-an-email",
        "password": "123",
    })
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"firstName", "email", "password"} <= fields


def test_register_cannot_choose_role(client):
    resp = client.post("/api/auth/register", json={
        "firstName": "Eve",
        "lastName": "X",
        "email": "eve@example.com",
        "password": "secret123",
        "role": "admin",
    })
    assert resp.status_code == 400


def test_login_student_and_company(client, register_student, register_organization):
    student = register_student()
    org = register_organization(name="Acme")

    resp = client.post("/api/auth/login", json={"email": student["email"], "password": "secret123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["userType"] == "student"

    resp = client.post("/api/auth/login", json={
        "email": org["email"], "password": "secret123", "userType": "company",
    })
    assert resp.status_code == 200
    assert resp.json()["user"] == {
        "id": org["id"], "name": "Acme", "email": org["email"], "role": "company", "userType": "organization",
    }


def test_login_wrong_password_or_kind(client, register_organization):
    org = register_organization()
    resp = client.post("/api/auth/login", json={"email": org["email"], "password": "nope12"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"

    resp = client.post("/api/auth/login", json={
        "email": org["email"], "password": "wrong!!", "userType": "company",
    })
    assert resp.status_code == 401


def test_me_requires_token(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["success"] is False
    assert resp.headers["www-authenticate"] == "Bearer"

    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


def test_me_returns_profile_without_password(client, register_student):
    student = register_student(first_name="Linus")
    resp = client.get("/api/auth/me", headers=student["headers"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["userType"] == "student"
    assert body["user"]["firstName"] == "Linus"
    assert "password" not in body["user"]


def test_token_of_deleted_principal_is_rejected(client, db, register_student):
    student = register_student()
    db.students.delete_many({})
    assert client.get("/api/auth/me", headers=student["headers"]).status_code == 401


def test_change_password(client, register_student):
    student = register_student()
    resp = client.put("/api/auth/password", headers=student["headers"], json={
        "currentPassword": "wrong", "newPassword": "newsecret",
    })
    assert resp.status_code == 401

    resp = client.put("/api/auth/password", headers=student["headers"], json={
        "currentPassword": "secret123", "newPassword": "newsecret",
    })
    assert resp.status_code == 200
    assert resp.json() == {"message": "Password updated successfully", "success": True}

    resp = client.post("/api/auth/login", json={"email": student["email"], "password": "newsecret"})
    assert resp.status_code == 200
