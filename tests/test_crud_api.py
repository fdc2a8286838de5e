def _create_post(client, headers, title="a", content="b"):
    r = client.post("/api/post", json={"title": title, "content": content}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def test_create_then_get_returns_submitted_fields(client, user_headers):
    new_id = _create_post(client, user_headers)

    r = client.get(f"/api/post/{new_id}", headers=user_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["id"] == new_id
    assert body["title"] == "a"
    assert body["content"] == "b"
    assert body["created_at"]
    assert body["updated_at"]


def test_list_returns_all_rows(client, user_headers):
    _create_post(client, user_headers, title="one")
    _create_post(client, user_headers, title="two")

    r = client.get("/api/post", headers=user_headers)
    assert r.status_code == 200
    assert [p["title"] for p in r.json()] == ["one", "two"]


def test_create_rejects_missing_required_field(client, user_headers, pool):
    r = client.post("/api/post", json={"title": "only"}, headers=user_headers)
    assert r.status_code == 422
    assert pool.statements == []


def test_patch_changes_only_present_fields(client, user_headers):
    new_id = _create_post(client, user_headers)
    # pin updated_at so the automatic bump is observable
    r = client.patch(f"/api/post/{new_id}", json={"updated_at": "2000-01-01 00:00:00"}, headers=user_headers)
    assert r.status_code == 200

    r = client.patch(f"/api/post/{new_id}", json={"title": "c"}, headers=user_headers)
    assert r.status_code == 200, r.text

    body = client.get(f"/api/post/{new_id}", headers=user_headers).json()
    assert body["title"] == "c"
    assert body["content"] == "b"
    assert body["updated_at"] != "2000-01-01 00:00:00"


def test_patch_with_no_fields_is_noop_without_sql(client, user_headers, pool):
    new_id = _create_post(client, user_headers)
    pool.statements.clear()

    r = client.patch(f"/api/post/{new_id}", json={}, headers=user_headers)
    assert r.status_code == 200
    assert r.json() == {"updated": 0}
    assert pool.statements == []


def test_patch_missing_row_is_404(client, user_headers):
    r = client.patch("/api/post/999", json={"title": "x"}, headers=user_headers)
    assert r.status_code == 404


def test_put_replaces_row(client, user_headers):
    new_id = _create_post(client, user_headers)

    r = client.put(f"/api/post/{new_id}", json={"title": "t2", "content": "c2"}, headers=user_headers)
    assert r.status_code == 200, r.text

    body = client.get(f"/api/post/{new_id}", headers=user_headers).json()
    assert (body["title"], body["content"]) == ("t2", "c2")


def test_put_missing_row_is_404(client, user_headers):
    r = client.put("/api/post/999", json={"title": "t", "content": "c"}, headers=user_headers)
    assert r.status_code == 404


def test_delete_existing_then_missing(client, user_headers):
    new_id = _create_post(client, user_headers)

    r = client.delete(f"/api/post/{new_id}", headers=user_headers)
    assert r.status_code == 200
    assert client.get(f"/api/post/{new_id}", headers=user_headers).status_code == 404

    r = client.delete("/api/post/999", headers=user_headers)
    assert r.status_code == 404


def test_get_missing_row_is_404(client, user_headers):
    assert client.get("/api/post/12345", headers=user_headers).status_code == 404


def test_nested_route_lists_only_children_of_parent(client, user_headers):
    p1 = _create_post(client, user_headers, title="p1")
    p2 = _create_post(client, user_headers, title="p2")
    for post_id, title in ((p1, "c1"), (p1, "c2"), (p2, "c3")):
        r = client.post(
            "/api/comment",
            json={"title": title, "content": "x", "post_id": post_id},
            headers=user_headers,
        )
        assert r.status_code == 201, r.text

    r = client.get(f"/api/post/{p1}/comment", headers=user_headers)
    assert r.status_code == 200
    assert sorted(c["title"] for c in r.json()) == ["c1", "c2"]
    assert all(c["post_id"] == p1 for c in r.json())

    r = client.get("/api/post/777/comment", headers=user_headers)
    assert r.json() == []


def test_entities_without_relation_have_no_nested_route(client, admin_headers):
    r = client.get("/api/user/1/post", headers=admin_headers)
    assert r.status_code in (404, 405)


def test_storage_error_surfaces_as_500_with_driver_message(client, user_headers, pool):
    pool.inner.execute("DROP TABLE post")

    r = client.get("/api/post", headers=user_headers)
    assert r.status_code == 500
    assert "no such table" in r.json()["detail"]


def test_health_lists_entities(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["entities"] == ["comment", "post", "user"]
