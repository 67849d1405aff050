"""
Auth endpoint tests: signup and signin over HTTP.

Covers the happy paths, the duplicate-email conflict, credential failures,
request validation, and the guarantee that the password hash never
appears in a response.
"""
import pytest
from httpx import AsyncClient

from app.dependencies import get_token_issuer


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_signup_returns_user_without_secret(async_client: AsyncClient):
    resp = await async_client.post("/auth/signup", json={
        "email": "a@x.com",
        "password": "pw",
        "name": "A",
    })
    assert resp.status_code == 201
    user = resp.json()
    assert user["email"] == "a@x.com"
    assert user["name"] == "A"
    assert isinstance(user["id"], int)
    assert "createdAt" in user
    assert "updatedAt" in user
    assert "hashPassword" not in user
    assert "hash_password" not in user
    assert "password" not in user
    assert "$2b$" not in resp.text


@pytest.mark.asyncio
async def test_signup_duplicate_email_is_rejected(async_client: AsyncClient):
    resp1 = await async_client.post("/auth/signup", json={
        "email": "a@x.com", "password": "pw", "name": "A",
    })
    assert resp1.status_code == 201

    resp2 = await async_client.post("/auth/signup", json={
        "email": "a@x.com", "password": "pw2", "name": "B",
    })
    assert resp2.status_code == 400
    assert resp2.json()["detail"] == "User already exists"


@pytest.mark.asyncio
async def test_signup_missing_name(async_client: AsyncClient):
    resp = await async_client.post("/auth/signup", json={
        "email": "noname@example.com", "password": "pw",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_signup_invalid_email(async_client: AsyncClient):
    resp = await async_client.post("/auth/signup", json={
        "email": "not-an-email", "password": "pw", "name": "Bad",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_signup_empty_password(async_client: AsyncClient):
    resp = await async_client.post("/auth/signup", json={
        "email": "empty@example.com", "password": "", "name": "Empty",
    })
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Signin
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_signin_returns_token_for_user(async_client: AsyncClient):
    signup = await async_client.post("/auth/signup", json={
        "email": "a@x.com", "password": "pw", "name": "A",
    })
    user_id = signup.json()["id"]

    resp = await async_client.post("/auth/signin", json={"email": "a@x.com", "password": "pw"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"

    payload = get_token_issuer().verify(body["access_token"])
    assert payload.user_id == user_id
    assert payload.email == "a@x.com"


@pytest.mark.asyncio
async def test_signin_wrong_password(async_client: AsyncClient):
    await async_client.post("/auth/signup", json={
        "email": "a@x.com", "password": "pw", "name": "A",
    })
    resp = await async_client.post("/auth/signin", json={"email": "a@x.com", "password": "wrong"})
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"
    assert "access_token" not in resp.json()


@pytest.mark.asyncio
async def test_signin_unknown_email(async_client: AsyncClient):
    resp = await async_client.post("/auth/signin", json={
        "email": "nobody@example.com", "password": "pw",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_signin_unknown_email_and_wrong_password_look_the_same(async_client: AsyncClient):
    await async_client.post("/auth/signup", json={
        "email": "a@x.com", "password": "pw", "name": "A",
    })
    wrong_pw = await async_client.post("/auth/signin", json={"email": "a@x.com", "password": "nope"})
    unknown = await async_client.post("/auth/signin", json={"email": "b@x.com", "password": "pw"})
    assert wrong_pw.json() == unknown.json()


@pytest.mark.asyncio
async def test_signin_is_post_only(async_client: AsyncClient):
    resp = await async_client.get("/auth/signin")
    assert resp.status_code == 405
