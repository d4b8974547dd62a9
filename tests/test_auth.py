# Auth API test suite: signup/login tokens, bearer parsing, expiry, and the host guard.
from __future__ import annotations

import time

import jwt
from fastapi.testclient import TestClient

from stayfinder.routes import auth

from factories import auth_headers, signup


def test_signup_login_and_me(client: TestClient):
    token, user = signup(client, "  Maria@Example.com ", "host", name="Maria")
    assert user["email"] == "maria@example.com"
    assert user["role"] == "host"

    claims = jwt.decode(token, auth.TOKEN_SECRET, algorithms=["HS256"], issuer="stayfinder")
    assert claims["sub"] == str(user["id"])
    assert claims["role"] == "host"

    r = client.post("/auth/login", json={"email": "MARIA@example.com", "password": "changeme123"})
    assert r.status_code == 200, r.text
    assert r.json()["token_type"] == "bearer"

    r = client.get("/auth/me", headers=auth_headers(r.json()["access_token"]))
    assert r.status_code == 200
    assert r.json()["name"] == "Maria"


def test_duplicate_email_and_bad_password(client: TestClient):
    signup(client, "dup@example.com")
    r = client.post(
        "/auth/signup",
        json={"name": "Again", "email": "DUP@example.com", "password": "changeme123"},
    )
    assert r.status_code == 409

    r = client.post("/auth/login", json={"email": "dup@example.com", "password": "wrong-password"})
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"


def test_rejected_tokens(client: TestClient):
    _, user = signup(client, "tok@example.com")

    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Token abc"}).status_code == 401
    assert client.get("/auth/me", headers=auth_headers("not-a-jwt")).status_code == 401

    past = int(time.time()) - 3600
    expired = jwt.encode(
        {"iss": "stayfinder", "sub": str(user["id"]), "iat": past - 60, "exp": past},
        auth.TOKEN_SECRET,
        algorithm="HS256",
    )
    r = client.get("/auth/me", headers=auth_headers(expired))
    assert r.status_code == 401
    assert "expired" in r.json()["detail"]

    foreign = jwt.encode(
        {"iss": "elsewhere", "sub": str(user["id"]), "exp": int(time.time()) + 60},
        auth.TOKEN_SECRET,
        algorithm="HS256",
    )
    assert client.get("/auth/me", headers=auth_headers(foreign)).status_code == 401


def test_guests_cannot_use_host_routes(client: TestClient):
    guest_token, _ = signup(client, "g@example.com")
    r = client.get("/api/v1/listings/mine", headers=auth_headers(guest_token))
    assert r.status_code == 403
