import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from crud_scaffold.api.crud import CrudController
from crud_scaffold.api.deps import get_db
from crud_scaffold.common.authorization import (
    AuthorizationDecision,
    CrudAuthorizer,
    ReadOnlyAuthorizer,
)
from crud_scaffold.common.errors import QueryGenerationError, QueryParseError
from crud_scaffold.domain.entity import EntityConfig
from crud_scaffold.main import create_app
from sample_entities import Customer, CustomerCreate, CustomerUpdate, Order, Tag, TagCreate


class NoListingAuthorizer(CrudAuthorizer):
    async def can_list(self, request):
        return AuthorizationDecision.deny()


def build_app(db_session):
    app = create_app(
        CrudController(
            EntityConfig(Customer, create_schema=CustomerCreate, update_schema=CustomerUpdate),
            prefix="/customers",
        ),
        CrudController(EntityConfig(Order, page_size=2), prefix="/orders"),
        CrudController(
            EntityConfig(Tag, create_schema=TagCreate, update_schema=TagCreate, id_type=str),
            prefix="/tags",
        ),
        CrudController(
            EntityConfig(Customer, authorizer=ReadOnlyAuthorizer()), prefix="/archived-customers"
        ),
        CrudController(
            EntityConfig(Customer, authorizer=NoListingAuthorizer()), prefix="/private-customers"
        ),
    )
    app.dependency_overrides[get_db] = lambda: db_session
    return app


@pytest_asyncio.fixture
async def client(db_session):
    app = build_app(db_session)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides = {}


@pytest.mark.asyncio
async def test_first_page_envelope(client, twelve_customers):
    resp = await client.get("/api/customers", params={"query": json.dumps({"skip": 0, "take": 5})})

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["total"] == 12
    assert [r["id"] for r in body["data"]] == [12, 11, 10, 9, 8]
    assert body["nextQuery"] == {"skip": 5, "take": 5}


@pytest.mark.asyncio
async def test_last_page_has_null_next_query(client, twelve_customers):
    resp = await client.get("/api/customers", params={"query": json.dumps({"skip": 10, "take": 5})})

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["total"] == 12
    assert len(body["data"]) == 2
    assert body["nextQuery"] is None


@pytest.mark.asyncio
async def test_walking_next_query_visits_every_record(client, twelve_customers):
    seen = []
    query = {"where": {"tier": "basic"}, "take": 3}
    while query is not None:
        resp = await client.get("/api/customers", params={"query": json.dumps(query)})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["total"] == 8
        seen.extend(r["id"] for r in body["data"])
        query = body["nextQuery"]

    assert len(seen) == 8
    assert len(set(seen)) == 8


@pytest.mark.asyncio
async def test_flat_query_parameters(client, twelve_customers):
    resp = await client.get(
        "/api/customers",
        params={"where": '{"tier": "gold"}', "order": '{"id": "ASC"}', "take": "2"},
    )

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["total"] == 4
    assert [r["id"] for r in body["data"]] == [3, 6]
    assert body["nextQuery"]["skip"] == 2
    assert body["nextQuery"]["take"] == 2
    assert body["nextQuery"]["where"] == '{"tier": "gold"}'


@pytest.mark.asyncio
async def test_like_filter(client, named_customers):
    resp = await client.get(
        "/api/customers",
        params={"where": '{"name": {"like": "an"}}', "order": '{"name": "ASC"}'},
    )

    assert resp.status_code == 200, resp.text
    assert [r["name"] for r in resp.json()["data"]] == ["Ana", "Juan"]


@pytest.mark.asyncio
async def test_default_page_size_and_entity_page_size(client, twelve_customers, named_customers):
    resp = await client.get("/api/customers")
    assert len(resp.json()["data"]) == 10

    resp = await client.get("/api/orders")
    body = resp.json()
    assert body["total"] == 3
    assert len(body["data"]) == 2
    assert body["nextQuery"] == {"skip": 2, "take": 1}


@pytest.mark.asyncio
async def test_relations_are_serialized(client, named_customers):
    resp = await client.get(
        "/api/customers", params={"relations": "[orders,address]", "order": '{"name": "ASC"}'}
    )

    assert resp.status_code == 200, resp.text
    by_name = {r["name"]: r for r in resp.json()["data"]}
    assert sorted(o["product"] for o in by_name["Ana"]["orders"]) == ["Laptop", "Mouse"]
    assert by_name["Ana"]["address"]["city"] == "Cusco"
    assert by_name["Pedro"]["address"] is None
    assert by_name["Pedro"]["orders"] == []


@pytest.mark.asyncio
async def test_relations_are_omitted_unless_requested(client, named_customers):
    resp = await client.get("/api/customers")

    for record in resp.json()["data"]:
        assert "orders" not in record
        assert "address" not in record


@pytest.mark.asyncio
async def test_skip_beyond_integer_range_defaults(client, twelve_customers):
    resp = await client.get("/api/customers", params={"skip": "1e20", "take": "5"})

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["total"] == 12
    assert [r["id"] for r in body["data"]] == [12, 11, 10, 9, 8]


@pytest.mark.asyncio
async def test_take_beyond_integer_range_defaults(client, twelve_customers):
    resp = await client.get(
        "/api/customers", params={"query": '{"take": 99999999999999999999}'}
    )

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert len(body["data"]) == 10
    assert body["nextQuery"]["skip"] == 10


@pytest.mark.asyncio
async def test_malformed_where_is_a_client_error(client, twelve_customers):
    resp = await client.get("/api/customers", params={"where": "{not json"})

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_query"


@pytest.mark.asyncio
async def test_malformed_json_query_is_a_client_error(client, twelve_customers):
    resp = await client.get("/api/customers", params={"query": '{"skip": '})

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_unknown_field_falls_back_to_default_query(client, twelve_customers):
    resp = await client.get(
        "/api/customers", params={"query": json.dumps({"where": {"nickname": "x"}, "take": 3})}
    )

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["total"] == 12
    assert len(body["data"]) == 10
    assert body["nextQuery"] == {"skip": 10, "take": 2}


@pytest.mark.asyncio
async def test_find_one(client, named_customers):
    ana_id = named_customers["Ana"].id

    resp = await client.get(f"/api/customers/{ana_id}")

    assert resp.status_code == 200, resp.text
    assert resp.json()["name"] == "Ana"


@pytest.mark.asyncio
async def test_invalid_id(client):
    resp = await client.get("/api/customers/abc")

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Invalid Id"


@pytest.mark.asyncio
async def test_missing_record(client):
    resp = await client.get("/api/customers/404")

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "record_not_found"


@pytest.mark.asyncio
async def test_create(client):
    resp = await client.post("/api/customers", json={"name": "Ana", "email": "ana@example.com"})

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["id"] is not None
    assert body["tier"] == "basic"
    assert body["created_at"].endswith("+00:00")


@pytest.mark.asyncio
async def test_create_invalid_payload(client):
    resp = await client.post("/api/customers", json={"name": "Ana", "tier": "platinum"})

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["message"] == "Bad Request"
    assert error["details"]["errors"][0]["loc"] == ["tier"]


@pytest.mark.asyncio
async def test_create_with_id_is_rejected(client):
    resp = await client.post("/api/customers", json={"id": 7, "name": "Ana"})

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_many(client):
    resp = await client.post(
        "/api/customers/create-many", json={"records": [{"name": "Ana"}, {"name": "Juan"}]}
    )

    assert resp.status_code == 201, resp.text
    assert [r["name"] for r in resp.json()] == ["Ana", "Juan"]

    resp = await client.get("/api/customers")
    assert resp.json()["total"] == 2


@pytest.mark.asyncio
async def test_create_many_with_invalid_record_writes_nothing(client):
    resp = await client.post(
        "/api/customers/create-many", json={"records": [{"name": "Ana"}, {"tier": "gold"}]}
    )

    assert resp.status_code == 400
    assert [r["index"] for r in resp.json()["error"]["details"]["records"]] == [1]

    resp = await client.get("/api/customers")
    assert resp.json()["total"] == 0


@pytest.mark.asyncio
async def test_update(client, named_customers):
    juan_id = named_customers["Juan"].id

    resp = await client.put(f"/api/customers/{juan_id}", json={"tier": "gold"})

    assert resp.status_code == 200, resp.text
    assert resp.json()["tier"] == "gold"
    assert resp.json()["name"] == "Juan"


@pytest.mark.asyncio
async def test_update_missing_record(client):
    resp = await client.put("/api/customers/404", json={"tier": "gold"})

    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete(client, named_customers):
    pedro_id = named_customers["Pedro"].id

    resp = await client.delete(f"/api/customers/{pedro_id}")
    assert resp.status_code == 200, resp.text
    assert resp.json()["name"] == "Pedro"

    resp = await client.get(f"/api/customers/{pedro_id}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_string_ids(client):
    resp = await client.post("/api/tags", json={"code": "vip", "label": "VIP"})
    assert resp.status_code == 201, resp.text

    resp = await client.get("/api/tags/vip")
    assert resp.status_code == 200
    assert resp.json() == {"code": "vip", "label": "VIP"}

    resp = await client.get("/api/tags/missing")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_read_only_authorizer_denies_writes(client, named_customers):
    ana_id = named_customers["Ana"].id

    resp = await client.post("/api/archived-customers", json={"name": "Eve"})
    assert resp.status_code == 401
    assert resp.json()["error"]["details"] == {"reason": "read-only resource"}

    resp = await client.put(f"/api/archived-customers/{ana_id}", json={"name": "Eve"})
    assert resp.status_code == 401

    resp = await client.delete(f"/api/archived-customers/{ana_id}")
    assert resp.status_code == 401

    resp = await client.get(f"/api/archived-customers/{ana_id}")
    assert resp.status_code == 200
    resp = await client.get("/api/archived-customers")
    assert resp.json()["total"] == 3


@pytest.mark.asyncio
async def test_denied_listing(client, named_customers):
    resp = await client.get("/api/private-customers")

    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Not authorized"


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_app_level_errors_keep_client_error_details(db_session):
    app = build_app(db_session)

    @app.get("/api/strict")
    async def strict():
        raise QueryParseError(details={"parameter": "where"})

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        resp = await ac.get("/api/strict")

    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == {"parameter": "where"}


@pytest.mark.asyncio
async def test_app_level_server_errors_hide_details(db_session):
    app = build_app(db_session)

    @app.get("/api/broken")
    async def broken():
        raise QueryGenerationError(details={"reason": "OperationalError"})

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        resp = await ac.get("/api/broken")

    assert resp.status_code == 500
    assert "details" not in resp.json()["error"]
