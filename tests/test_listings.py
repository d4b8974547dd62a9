# Listing API test suite: host management, soft delete, search filters, and price quotes.
from __future__ import annotations

from fastapi.testclient import TestClient

from factories import auth_headers, create_listing, days_from_now, request_booking, signup


def test_only_hosts_create_listings(client: TestClient):
    guest_token, _ = signup(client, "guest@example.com")
    r = client.post(
        "/api/v1/listings",
        headers=auth_headers(guest_token),
        json={"title": "x", "property_type": "House", "price_cents": 100, "city": "a", "country": "b", "max_guests": 1},
    )
    assert r.status_code == 403


def test_create_and_read_listing(client: TestClient):
    host_token, host = signup(client, "host@example.com", "host", name="Hilda")
    listing = create_listing(client, host_token, title="  Cozy Cabin  ", property_type="Cabin")
    assert listing["title"] == "Cozy Cabin"
    assert listing["host_id"] == host["id"]
    assert listing["status"] == "active"

    r = client.get(f"/api/v1/listings/{listing['id']}")
    assert r.status_code == 200
    assert r.json()["host"]["name"] == "Hilda"

    r = client.get("/api/v1/listings/999")
    assert r.status_code == 404


def test_listing_validation(client: TestClient):
    host_token, _ = signup(client, "host2@example.com", "host")
    base = {"title": "Place", "property_type": "House", "city": "a", "country": "b", "max_guests": 2}

    r = client.post("/api/v1/listings", headers=auth_headers(host_token), json={**base, "price_cents": 0})
    assert r.status_code == 422
    r = client.post("/api/v1/listings", headers=auth_headers(host_token), json={**base, "price_cents": 100, "max_guests": 0})
    assert r.status_code == 422
    r = client.post(
        "/api/v1/listings",
        headers=auth_headers(host_token),
        json={**base, "price_cents": 100, "minimum_stay": 5, "maximum_stay": 2},
    )
    assert r.status_code == 422


def test_drafts_are_private(client: TestClient):
    host_token, _ = signup(client, "host3@example.com", "host")
    draft = create_listing(client, host_token, status="draft")

    assert client.get(f"/api/v1/listings/{draft['id']}").status_code == 404
    r = client.get(f"/api/v1/listings/{draft['id']}", headers=auth_headers(host_token))
    assert r.status_code == 200
    assert client.get("/api/v1/listings").json() == []


def test_update_by_owner_only(client: TestClient):
    host_token, _ = signup(client, "host4@example.com", "host")
    other_token, _ = signup(client, "host5@example.com", "host")
    listing = create_listing(client, host_token)

    r = client.patch(f"/api/v1/listings/{listing['id']}", headers=auth_headers(other_token), json={"price_cents": 1})
    assert r.status_code == 403

    r = client.patch(
        f"/api/v1/listings/{listing['id']}",
        headers=auth_headers(host_token),
        json={"price_cents": 15000, "instant_book": True},
    )
    assert r.status_code == 200, r.text
    assert r.json()["price_cents"] == 15000
    assert r.json()["instant_book"] is True

    r = client.patch(f"/api/v1/listings/{listing['id']}", headers=auth_headers(host_token), json={"maximum_stay": 0})
    assert r.status_code == 422


# Soft delete keeps existing bookings manageable but refuses new ones
def test_deactivate_listing_keeps_bookings(client: TestClient):
    host_token, _ = signup(client, "host6@example.com", "host")
    listing = create_listing(client, host_token)
    guest_token, _ = signup(client, "guest6@example.com")
    booking = request_booking(client, guest_token, listing["id"], days_from_now(10), days_from_now(12)).json()

    r = client.delete(f"/api/v1/listings/{listing['id']}", headers=auth_headers(host_token))
    assert r.status_code == 200
    assert r.json()["status"] == "inactive"

    r = request_booking(client, guest_token, listing["id"], days_from_now(20), days_from_now(22))
    assert r.status_code == 404

    r = client.get(f"/api/v1/bookings/{booking['id']}", headers=auth_headers(guest_token))
    assert r.status_code == 200
    r = client.delete(f"/api/v1/bookings/{booking['id']}", headers=auth_headers(guest_token))
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"


def test_search_filters(client: TestClient):
    host_token, _ = signup(client, "host7@example.com", "host")
    lisbon = create_listing(client, host_token, city="Lisbon", country="Portugal", price_cents=8000, max_guests=2, amenities=["wifi"])
    porto = create_listing(
        client, host_token, city="Porto", country="Portugal", price_cents=20000, max_guests=6,
        property_type="House", amenities=["pool", "wifi"],
    )
    paris = create_listing(client, host_token, city="Paris", country="France", price_cents=30000, max_guests=4, amenities=["kitchen"])

    def ids(query: str) -> set:
        r = client.get(f"/api/v1/listings{query}")
        assert r.status_code == 200, r.text
        return {item["id"] for item in r.json()}

    assert ids("") == {lisbon["id"], porto["id"], paris["id"]}
    assert ids("?location=portugal") == {lisbon["id"], porto["id"]}
    assert ids("?guests=4") == {porto["id"], paris["id"]}
    assert ids("?min_price=10000&max_price=25000") == {porto["id"]}
    assert ids("?property_type=House") == {porto["id"]}
    assert ids("?amenities=pool&amenities=kitchen") == {porto["id"], paris["id"]}
    assert ids("?limit=2&page=2") and len(ids("?limit=2&page=2")) == 1


def test_search_by_availability(client: TestClient):
    host_token, _ = signup(client, "host8@example.com", "host")
    booked = create_listing(client, host_token, title="Booked")
    free = create_listing(client, host_token, title="Free")
    guest_token, _ = signup(client, "guest8@example.com")
    r = request_booking(client, guest_token, booked["id"], days_from_now(10), days_from_now(14))
    assert r.status_code == 201

    check_in, check_out = days_from_now(12), days_from_now(16)
    r = client.get(f"/api/v1/listings?check_in={check_in}&check_out={check_out}")
    assert [item["id"] for item in r.json()] == [free["id"]]

    # back-to-back with the existing stay
    check_in, check_out = days_from_now(14), days_from_now(16)
    r = client.get(f"/api/v1/listings?check_in={check_in}&check_out={check_out}")
    assert {item["id"] for item in r.json()} == {booked["id"], free["id"]}

    r = client.get(f"/api/v1/listings?check_in={check_in}")
    assert r.status_code == 400


def test_quote(client: TestClient):
    host_token, _ = signup(client, "host9@example.com", "host")
    listing = create_listing(client, host_token, price_cents=10000)
    guest_token, _ = signup(client, "guest9@example.com")

    check_in, check_out = days_from_now(30), days_from_now(33)
    r = client.get(f"/api/v1/listings/{listing['id']}/quote?check_in={check_in}&check_out={check_out}")
    assert r.status_code == 200, r.text
    quote = r.json()
    assert (quote["nights"], quote["subtotal_cents"], quote["fee_cents"], quote["total_cents"]) == (3, 30000, 3600, 33600)
    assert quote["currency"] == "USD"
    assert quote["available"] is True

    request_booking(client, guest_token, listing["id"], check_in, check_out)
    r = client.get(f"/api/v1/listings/{listing['id']}/quote?check_in={check_in}&check_out={check_out}")
    assert r.json()["available"] is False

    r = client.get(f"/api/v1/listings/{listing['id']}/quote?check_in={check_in}&check_out={check_in}")
    assert r.status_code == 400


# Explicit nulls only clear maximum_stay; other fields must be omitted to stay unchanged
def test_update_rejects_null_for_required_fields(client: TestClient):
    host_token, _ = signup(client, "host10@example.com", "host")
    listing = create_listing(client, host_token, maximum_stay=7)
    url = f"/api/v1/listings/{listing['id']}"

    for field in ("price_cents", "title", "max_guests", "instant_book", "amenities"):
        r = client.patch(url, headers=auth_headers(host_token), json={field: None})
        assert r.status_code == 422, (field, r.text)

    r = client.get(url)
    assert r.json()["price_cents"] == 10000
    assert r.json()["title"] == "Sunny Loft"

    r = client.patch(url, headers=auth_headers(host_token), json={"maximum_stay": None})
    assert r.status_code == 200, r.text
    assert r.json()["maximum_stay"] is None
