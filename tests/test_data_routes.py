"""
End-to-end tests of the /data routes against the embedded store
"""
from jsonapi.errors import BAD_JSON_DETAIL
from operations.query_executor import NO_INDEX_DETAIL

EVENTS = "io.cozy.events"


def create(client, body, doctype=EVENTS):
    response = client.post(f"/data/{doctype}/", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def first_error(response):
    return response.json()["errors"][0]


class TestGet:

    def test_unknown_doctype(self, client):
        response = client.get(f"/data/{EVENTS}/4521C325")
        assert response.status_code == 404
        assert first_error(response)["detail"] == "wrong_doctype"
        assert response.headers["content-type"].startswith("application/vnd.api+json")

    def test_missing_document(self, client):
        create(client, {"title": "standup"})
        response = client.get(f"/data/{EVENTS}/4521C325")
        assert response.status_code == 404
        assert first_error(response)["detail"] == "missing"

    def test_get_created(self, client):
        created = create(client, {"title": "standup"})
        response = client.get(f"/data/{EVENTS}/{created['id']}")
        assert response.status_code == 200
        doc = response.json()
        assert doc["_id"] == created["id"]
        assert doc["_rev"] == created["rev"]
        assert doc["_type"] == EVENTS
        assert doc["title"] == "standup"

    def test_reserved_doctype(self, client):
        response = client.get("/data/io.cozy.files/some-id")
        assert response.status_code == 403
        error = first_error(response)
        assert error["status"] == "403"
        assert "reserved" in error["detail"]

    def test_unknown_host(self, client):
        response = client.get(f"/data/{EVENTS}/x", headers={"Host": "stranger.org"})
        assert response.status_code == 404
        assert first_error(response)["detail"] == "instance not found"


class TestList:

    def test_list(self, client):
        for n in range(3):
            create(client, {"n": n})
        response = client.get(f"/data/{EVENTS}/", params={"limit": 2, "skip": 1})
        assert response.status_code == 200
        body = response.json()
        assert body["total_rows"] == 3
        assert body["offset"] == 1
        assert len(body["docs"]) == 2

    def test_invalid_limit(self, client):
        create(client, {})
        response = client.get(f"/data/{EVENTS}/", params={"limit": "many"})
        assert response.status_code == 422
        assert first_error(response)["source"] == {"parameter": "limit"}


class TestCreate:

    def test_create(self, client):
        body = create(client, {"title": "standup"})
        assert body["ok"] is True
        assert body["type"] == EVENTS
        assert body["rev"].startswith("1-")
        assert body["data"]["_id"] == body["id"]
        assert body["data"]["_type"] == EVENTS

    def test_create_without_trailing_slash(self, client):
        response = client.post(f"/data/{EVENTS}", json={"n": 1})
        assert response.status_code == 201

    def test_create_with_id(self, client):
        response = client.post(f"/data/{EVENTS}/", json={"_id": "fixed"})
        assert response.status_code == 400

    def test_malformed_json(self, client):
        response = client.post(f"/data/{EVENTS}/", content=b"{oops",
                               headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert first_error(response)["detail"] == BAD_JSON_DETAIL

    def test_nan_is_refused_before_storing(self, client):
        create(client, {"n": 1})
        response = client.post(f"/data/{EVENTS}/", content=b'{"a": NaN}',
                               headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert first_error(response)["detail"] == BAD_JSON_DETAIL
        assert client.get(f"/data/{EVENTS}/").json()["total_rows"] == 1

    def test_reserved_doctype(self, client):
        response = client.post("/data/io.cozy.files/", json={"name": "x"})
        assert response.status_code == 403


class TestUpdate:

    def test_update(self, client):
        created = create(client, {"n": 1})
        response = client.put(f"/data/{EVENTS}/{created['id']}", json={
            "_id": created["id"], "_rev": created["rev"], "n": 2,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["rev"].startswith("2-")
        assert body["data"]["n"] == 2

    def test_id_mismatch(self, client):
        created = create(client, {"n": 1})
        response = client.put(f"/data/{EVENTS}/{created['id']}", json={
            "_id": "another", "_rev": created["rev"],
        })
        assert response.status_code == 400

    def test_create_with_fixed_id(self, client):
        response = client.put(f"/data/{EVENTS}/fixed-id", json={"n": 1})
        assert response.status_code == 200
        assert response.json()["id"] == "fixed-id"
        assert client.get(f"/data/{EVENTS}/fixed-id").json()["n"] == 1

    def test_no_rev_in_update(self, client):
        created = create(client, {"n": 1})
        response = client.put(f"/data/{EVENTS}/{created['id']}", json={
            "_id": created["id"], "n": 2,
        })
        assert response.status_code == 400
        assert first_error(response)["detail"] == BAD_JSON_DETAIL

    def test_create_over_existing_id(self, client):
        client.put(f"/data/{EVENTS}/fixed-id", json={"n": 1})
        response = client.put(f"/data/{EVENTS}/fixed-id", json={"n": 2})
        assert response.status_code == 409

    def test_stale_rev(self, client):
        created = create(client, {"n": 1})
        doc_url = f"/data/{EVENTS}/{created['id']}"
        client.put(doc_url, json={"_rev": created["rev"], "n": 2})
        response = client.put(doc_url, json={"_rev": created["rev"], "n": 3})
        assert response.status_code == 409
        assert first_error(response)["status"] == "409"

    def test_if_match_header(self, client):
        created = create(client, {"n": 1})
        response = client.put(f"/data/{EVENTS}/{created['id']}", json={"n": 2},
                               headers={"If-Match": created["rev"]})
        assert response.status_code == 200


class TestDelete:

    def test_delete_with_if_match(self, client):
        created = create(client, {"n": 1})
        doc_url = f"/data/{EVENTS}/{created['id']}"
        response = client.delete(doc_url, headers={"If-Match": created["rev"]})
        assert response.status_code == 200
        body = response.json()
        assert body["deleted"] is True
        assert body["rev"] != created["rev"]
        follow_up = client.get(doc_url)
        assert follow_up.status_code == 404
        assert first_error(follow_up)["detail"] == "deleted"

    def test_delete_with_query_rev(self, client):
        created = create(client, {"n": 1})
        response = client.delete(f"/data/{EVENTS}/{created['id']}", params={"rev": created["rev"]})
        assert response.status_code == 200

    def test_wrong_rev(self, client):
        created = create(client, {"n": 1})
        response = client.delete(f"/data/{EVENTS}/{created['id']}",
                                 headers={"If-Match": "1-deadbeef"})
        assert response.status_code == 409

    def test_header_and_query_disagree(self, client):
        created = create(client, {"n": 1})
        response = client.delete(f"/data/{EVENTS}/{created['id']}",
                                 params={"rev": "1-other"},
                                 headers={"If-Match": created["rev"]})
        assert response.status_code == 400

    def test_without_rev(self, client):
        created = create(client, {"n": 1})
        response = client.delete(f"/data/{EVENTS}/{created['id']}")
        assert response.status_code == 400


class TestIndexes:

    def test_created_then_exists(self, client):
        create(client, {"year": 2020})
        first = client.post(f"/data/{EVENTS}/_index", json={"index": {"fields": ["year"]}})
        second = client.post(f"/data/{EVENTS}/_index", json={"index": {"fields": ["year"]}})
        assert first.status_code == 200
        assert first.json()["result"] == "created"
        assert second.json()["result"] == "exists"
        assert first.json()["id"] == second.json()["id"]
        assert first.json()["name"] == second.json()["name"]

    def test_index_on_unknown_doctype(self, client):
        response = client.post("/data/io.cozy.nothing-yet/_index",
                               json={"index": {"fields": ["foo"]}})
        assert response.status_code == 200
        assert response.json()["result"] == "created"

    def test_malformed_index(self, client):
        response = client.post(f"/data/{EVENTS}/_index", json={"fields": ["year"]})
        assert response.status_code == 400


class TestFind:

    def test_find(self, client):
        for year in (2018, 2019, 2020, 2021):
            create(client, {"year": year})
        client.post(f"/data/{EVENTS}/_index", json={"index": {"fields": ["year"]}})
        response = client.post(f"/data/{EVENTS}/_find", json={
            "selector": {"year": {"$gte": 2019}},
            "sort": [{"year": "asc"}],
        })
        assert response.status_code == 200
        docs = response.json()["docs"]
        assert [d["year"] for d in docs] == [2019, 2020, 2021]

    def test_no_index(self, client):
        create(client, {"year": 2020})
        response = client.post(f"/data/{EVENTS}/_find", json={"selector": {"year": 2020}})
        assert response.status_code == 400
        error = first_error(response)
        assert error["title"] == "no_index"
        assert error["detail"] == NO_INDEX_DETAIL

    def test_reserved_doctype(self, client):
        response = client.post("/data/io.cozy.files/_find", json={"selector": {"_id": "x"}})
        assert response.status_code == 403

    def test_bad_in_argument(self, client):
        create(client, {"foo": "x"})
        client.post(f"/data/{EVENTS}/_index", json={"index": {"fields": ["foo"]}})
        response = client.post(f"/data/{EVENTS}/_find", json={"selector": {"foo": {"$in": "x"}}})
        assert response.status_code == 400
        assert first_error(response)["status"] == "400"

    def test_bad_regex(self, client):
        create(client, {"foo": "x"})
        client.post(f"/data/{EVENTS}/_index", json={"index": {"fields": ["foo"]}})
        response = client.post(f"/data/{EVENTS}/_find", json={"selector": {"foo": {"$regex": "("}}})
        assert response.status_code == 400
