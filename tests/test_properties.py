from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status

from app.models import Property
from conftest import PASSWORD, auth_header, make_agent, make_message, make_property, make_user

NEW_LISTING = {"title": "Đất nền Thủ Đức", "kind": "land", "transactionType": "rent", "price": 1500}


@pytest.mark.asyncio
async def test_new_listing_hidden_from_public_but_visible_to_owner(client, session_maker):
    await client.post(
        "/api/auth/register",
        json={"name": "A", "email": "a@x.com", "password": PASSWORD, "phone": "0901"},
    )
    login = await client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})
    headers = {"Authorization": f"Bearer {login.json()['token']}"}

    created = await client.post("/api/properties", json=NEW_LISTING, headers=headers)
    assert created.status_code == status.HTTP_201_CREATED
    body = created.json()
    assert body["waitingStatus"] == "waiting"
    assert body["userId"] == login.json()["user"]["id"]

    public = await client.get("/api/properties")
    assert all(p["id"] != body["id"] for p in public.json()["properties"])

    mine = await client.get("/api/properties?owner=me", headers=headers)
    assert [p["id"] for p in mine.json()["properties"]] == [body["id"]]


@pytest.mark.asyncio
async def test_public_listing_only_reviewed_and_active(client, session_maker):
    visible = await make_property(session_maker, title="Visible")
    await make_property(session_maker, title="Waiting", waiting_status="waiting")
    await make_property(session_maker, title="Hidden", status="hidden")
    await make_property(session_maker, title="Blocked", waiting_status="block")

    response = await client.get("/api/properties")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [p["id"] for p in body["properties"]] == [visible.id]
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "totalPages": 1}


@pytest.mark.asyncio
async def test_owner_me_returns_every_state(client, session_maker):
    user = await make_user(session_maker)
    other = await make_user(session_maker, email="b@x.com")
    await make_property(session_maker, user_id=user.id, waiting_status="waiting")
    await make_property(session_maker, user_id=user.id, status="hidden")
    await make_property(session_maker, user_id=other.id)

    response = await client.get("/api/properties?owner=me", headers=auth_header(user))
    properties = response.json()["properties"]
    assert len(properties) == 2
    assert all(p["userId"] == user.id for p in properties)


@pytest.mark.asyncio
async def test_invalid_token_is_treated_as_anonymous(client, session_maker):
    await make_property(session_maker)
    response = await client.get("/api/properties?owner=me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_admin_waiting_status_filter(client, session_maker):
    admin = await make_user(session_maker, email="admin@x.com", role="admin")
    await make_property(session_maker, waiting_status="waiting")
    await make_property(session_maker, waiting_status="reviewed", status="hidden")
    await make_property(session_maker, waiting_status="block")

    waiting = await client.get("/api/properties?waitingStatus=waiting", headers=auth_header(admin))
    assert waiting.json()["pagination"]["total"] == 1

    everything = await client.get("/api/properties?waitingStatus=all", headers=auth_header(admin))
    assert everything.json()["pagination"]["total"] == 3

    # Non-admins cannot widen visibility
    user = await make_user(session_maker)
    as_user = await client.get("/api/properties?waitingStatus=all", headers=auth_header(user))
    assert as_user.json()["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_search_matches_title_or_location(client, session_maker):
    await make_property(session_maker, title="Nhà phố", location="Quận 7")
    await make_property(session_maker, title="Biệt thự ven sông", location="Thảo Điền")
    await make_property(session_maker, title="Kho xưởng", location="Bình Dương")

    response = await client.get("/api/properties?search=quận")
    assert response.json()["pagination"]["total"] == 1
    response = await client.get("/api/properties?search=ven sông")
    assert response.json()["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_like_wildcards_are_literal(client, session_maker):
    await make_property(session_maker, title="Giảm 50% phí")
    await make_property(session_maker, title="Nhà đẹp")
    response = await client.get("/api/properties?search=%25")
    assert response.json()["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_min_price_above_everything_returns_empty_page(client, session_maker):
    await make_property(session_maker, price=100)
    await make_property(session_maker, price=200)
    response = await client.get("/api/properties?minPrice=1000000")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["properties"] == []
    assert body["pagination"]["total"] == 0
    assert body["pagination"]["totalPages"] == 0


@pytest.mark.asyncio
async def test_malformed_numbers_are_ignored(client, session_maker):
    await make_property(session_maker, price=100)
    response = await client.get("/api/properties?minPrice=abc&bedrooms=two&page=-3&limit=zero")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["pagination"]["total"] == 1
    assert response.json()["pagination"]["page"] == 1


@pytest.mark.asyncio
async def test_transaction_and_kind_aliases(client, session_maker):
    await make_property(session_maker, transaction_type="sell", kind="flat")
    await make_property(session_maker, transaction_type="rent", kind="land")

    sale = await client.get("/api/properties?type=sale")
    assert sale.json()["pagination"]["total"] == 1
    apartment = await client.get("/api/properties?propertyType=apartment")
    assert apartment.json()["pagination"]["total"] == 1
    assert apartment.json()["properties"][0]["kind"] == "flat"
    unknown = await client.get("/api/properties?transactionType=lease")
    assert unknown.json()["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_sort_by_price(client, session_maker):
    await make_property(session_maker, title="B", price=200)
    await make_property(session_maker, title="A", price=100)
    await make_property(session_maker, title="C", price=300)

    asc = await client.get("/api/properties?sort=price-asc")
    assert [p["price"] for p in asc.json()["properties"]] == [100, 200, 300]
    desc = await client.get("/api/properties?sort=price-desc")
    assert [p["price"] for p in desc.json()["properties"]] == [300, 200, 100]
    fallback = await client.get("/api/properties?sort=bogus")
    assert fallback.status_code == status.HTTP_200_OK


@pytest.mark.asyncio
async def test_pagination(client, session_maker):
    for i in range(5):
        await make_property(session_maker, title=f"P{i}", price=i)
    response = await client.get("/api/properties?page=2&limit=2&sort=price-asc")
    body = response.json()
    assert [p["price"] for p in body["properties"]] == [2, 3]
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}


@pytest.mark.asyncio
async def test_filter_by_agent_email(client, session_maker):
    agent = await make_agent(session_maker)
    await make_property(session_maker, agent_id=agent.id)
    await make_property(session_maker)

    found = await client.get(f"/api/properties?agentEmail={agent.email}")
    assert found.json()["pagination"]["total"] == 1
    assert found.json()["properties"][0]["agent"]["id"] == agent.id
    assert found.json()["properties"][0]["contact"] == {"type": "agent", "agentId": agent.id}

    missing = await client.get("/api/properties?agentEmail=nobody@x.com")
    assert missing.json()["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_filter_by_contact_name(client, session_maker):
    asked = await make_property(session_maker)
    await make_property(session_maker)
    await make_message(session_maker, property_id=asked.id, recipient_user_id="x", sender_name="Trần Văn Bình")

    response = await client.get("/api/properties?contactName=bình")
    assert [p["id"] for p in response.json()["properties"]] == [asked.id]
    none = await client.get("/api/properties?contactName=nobody")
    assert none.json()["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_filter_by_owner_email(client, session_maker):
    owner = await make_user(session_maker, email="owner@x.com")
    await make_property(session_maker, user_id=owner.id)
    await make_property(session_maker)
    response = await client.get("/api/properties?userEmail=owner@")
    assert response.json()["pagination"]["total"] == 1
    assert response.json()["properties"][0]["owner"]["email"] == "owner@x.com"


@pytest.mark.asyncio
async def test_get_property_increments_views(client, session_maker):
    prop = await make_property(session_maker)
    first = await client.get(f"/api/properties/{prop.id}")
    second = await client.get(f"/api/properties/{prop.id}")
    assert first.json()["views"] == 1
    assert second.json()["views"] == 2


@pytest.mark.asyncio
async def test_get_unknown_property(client):
    response = await client.get("/api/properties/does-not-exist")
    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_create_requires_token(client):
    response = await client.post("/api/properties", json=NEW_LISTING)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_update_clears_agent_with_explicit_null(client, session_maker):
    user = await make_user(session_maker)
    agent = await make_agent(session_maker)
    prop = await make_property(session_maker, user_id=user.id, agent_id=agent.id, images=["a.jpg"])

    response = await client.put(
        f"/api/properties/{prop.id}",
        json={"agentId": None, "contactName": "Chị Lan", "contactPhone": "0902", "images": None},
        headers=auth_header(user),
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["agentId"] is None
    assert body["images"] == []
    assert body["contact"] == {"type": "personal", "name": "Chị Lan", "phone": "0902", "email": None}


@pytest.mark.asyncio
async def test_update_cannot_clear_title(client, session_maker):
    user = await make_user(session_maker)
    prop = await make_property(session_maker, user_id=user.id)
    response = await client.put(f"/api/properties/{prop.id}", json={"title": None}, headers=auth_header(user))
    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
async def test_only_admin_changes_waiting_status(client, session_maker):
    user = await make_user(session_maker)
    admin = await make_user(session_maker, email="admin@x.com", role="admin")
    prop = await make_property(session_maker, user_id=user.id, waiting_status="waiting")

    denied = await client.put(
        f"/api/properties/{prop.id}", json={"waitingStatus": "reviewed"}, headers=auth_header(user)
    )
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    approved = await client.put(
        f"/api/properties/{prop.id}", json={"waitingStatus": "reviewed"}, headers=auth_header(admin)
    )
    assert approved.status_code == status.HTTP_200_OK
    assert approved.json()["waitingStatus"] == "reviewed"


@pytest.mark.asyncio
async def test_stranger_cannot_modify(client, session_maker):
    owner = await make_user(session_maker)
    stranger = await make_user(session_maker, email="s@x.com")
    prop = await make_property(session_maker, user_id=owner.id)

    assert (await client.put(
        f"/api/properties/{prop.id}", json={"title": "X"}, headers=auth_header(stranger)
    )).status_code == status.HTTP_403_FORBIDDEN
    assert (await client.delete(
        f"/api/properties/{prop.id}", headers=auth_header(stranger)
    )).status_code == status.HTTP_403_FORBIDDEN
    assert (await client.patch(
        f"/api/properties/{prop.id}/status", headers=auth_header(stranger)
    )).status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
async def test_listing_agent_can_modify(client, session_maker):
    agent = await make_agent(session_maker)
    prop = await make_property(session_maker, agent_id=agent.id)
    response = await client.put(f"/api/properties/{prop.id}", json={"price": 42}, headers=auth_header(agent))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["price"] == 42


@pytest.mark.asyncio
async def test_patch_status_sets_or_toggles(client, session_maker):
    user = await make_user(session_maker)
    prop = await make_property(session_maker, user_id=user.id)
    headers = auth_header(user)

    toggled = await client.patch(f"/api/properties/{prop.id}/status", headers=headers)
    assert toggled.json()["status"] == "hidden"
    toggled = await client.patch(f"/api/properties/{prop.id}/status", headers=headers)
    assert toggled.json()["status"] == "active"
    explicit = await client.patch(f"/api/properties/{prop.id}/status", json={"status": "active"}, headers=headers)
    assert explicit.json()["status"] == "active"


@pytest.mark.asyncio
async def test_delete_property(client, session_maker):
    user = await make_user(session_maker)
    prop = await make_property(session_maker, user_id=user.id)
    response = await client.delete(f"/api/properties/{prop.id}", headers=auth_header(user))
    assert response.status_code == status.HTTP_200_OK
    async with session_maker() as session:
        assert await session.get(Property, prop.id) is None


@pytest.mark.asyncio
async def test_area_range(client, session_maker):
    await make_property(session_maker, title="Small", area=30)
    await make_property(session_maker, title="Medium", area=60)
    await make_property(session_maker, title="Large", area=120)

    response = await client.get("/api/properties?minArea=50&maxArea=100")
    assert [p["title"] for p in response.json()["properties"]] == ["Medium"]
    at_least = await client.get("/api/properties?minArea=60")
    assert at_least.json()["pagination"]["total"] == 2
    at_most = await client.get("/api/properties?maxArea=60")
    assert at_most.json()["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_bedrooms_and_bathrooms_match_exactly(client, session_maker):
    await make_property(session_maker, title="Two bed", bedrooms=2, bathrooms=1)
    await make_property(session_maker, title="Three bed", bedrooms=3, bathrooms=2)
    await make_property(session_maker, title="Three bed big", bedrooms=3, bathrooms=3)

    two = await client.get("/api/properties?bedrooms=2")
    assert [p["title"] for p in two.json()["properties"]] == ["Two bed"]
    three = await client.get("/api/properties?bedrooms=3")
    assert three.json()["pagination"]["total"] == 2
    both = await client.get("/api/properties?bedrooms=3&bathrooms=2")
    assert [p["title"] for p in both.json()["properties"]] == ["Three bed"]


@pytest.mark.asyncio
async def test_location_and_search_are_combined(client, session_maker):
    await make_property(session_maker, title="Penthouse", location="District 1")
    await make_property(session_maker, title="Penthouse", location="District 7")
    await make_property(session_maker, title="Townhouse", location="District 1")

    response = await client.get("/api/properties?search=penthouse&location=district 1")
    body = response.json()
    assert body["pagination"]["total"] == 1
    assert body["properties"][0]["location"] == "District 1"
    assert body["properties"][0]["title"] == "Penthouse"


@pytest.mark.asyncio
async def test_filter_by_owner_name(client, session_maker):
    owner = await make_user(session_maker, email="minh@x.com", name="Minh Tran")
    other = await make_user(session_maker, email="lan@x.com", name="Lan Pham")
    await make_property(session_maker, user_id=owner.id)
    await make_property(session_maker, user_id=other.id)

    response = await client.get("/api/properties?userName=minh")
    properties = response.json()["properties"]
    assert len(properties) == 1
    assert properties[0]["userId"] == owner.id

    unknown = await client.get("/api/properties?userName=nobody")
    assert unknown.status_code == status.HTTP_200_OK
    assert unknown.json()["properties"] == []
    assert unknown.json()["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_filter_by_agent_id(client, session_maker):
    agent = await make_agent(session_maker)
    other = await make_agent(session_maker, email="other@x.com")
    mine = await make_property(session_maker, agent_id=agent.id)
    await make_property(session_maker, agent_id=other.id)
    await make_property(session_maker)

    response = await client.get(f"/api/properties?agentId={agent.id}")
    assert [p["id"] for p in response.json()["properties"]] == [mine.id]
    unknown = await client.get("/api/properties?agentId=missing")
    assert unknown.json()["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_sort_by_age_and_area(client, session_maker):
    now = datetime.now(timezone.utc)
    await make_property(session_maker, title="Middle", area=50, created_at=now - timedelta(days=1))
    await make_property(session_maker, title="Old", area=80, created_at=now - timedelta(days=2))
    await make_property(session_maker, title="New", area=20, created_at=now)

    newest = await client.get("/api/properties")
    assert [p["title"] for p in newest.json()["properties"]] == ["New", "Middle", "Old"]
    oldest = await client.get("/api/properties?sort=oldest")
    assert [p["title"] for p in oldest.json()["properties"]] == ["Old", "Middle", "New"]
    area_asc = await client.get("/api/properties?sort=area-asc")
    assert [p["area"] for p in area_asc.json()["properties"]] == [20, 50, 80]
    area_desc = await client.get("/api/properties?sort=area-desc")
    assert [p["area"] for p in area_desc.json()["properties"]] == [80, 50, 20]


@pytest.mark.asyncio
async def test_oversized_paging_values_are_clamped(client, session_maker):
    await make_property(session_maker)

    huge_page = await client.get("/api/properties?page=99999999999999999999")
    assert huge_page.status_code == status.HTTP_200_OK
    assert huge_page.json()["pagination"]["page"] == 1
    assert huge_page.json()["pagination"]["total"] == 1

    exponent = await client.get("/api/properties?limit=1e300&page=1e300")
    assert exponent.status_code == status.HTTP_200_OK
    assert exponent.json()["pagination"]["limit"] == 10
    assert exponent.json()["pagination"]["page"] == 1

    capped = await client.get("/api/properties?limit=1000")
    assert capped.json()["pagination"]["limit"] == 100

    far_page = await client.get("/api/properties?page=2147483647")
    assert far_page.status_code == status.HTTP_200_OK
    assert far_page.json()["properties"] == []

    bedrooms = await client.get("/api/properties?bedrooms=99999999999999999999")
    assert bedrooms.status_code == status.HTTP_200_OK
    assert bedrooms.json()["pagination"]["total"] == 1
