def test_connection_flow(client, make_user):
    ann = make_user("Ann", role="athlete")
    ben = make_user("Ben", role="coach")

    # Ann asks Ben
    res = client.post(f"/connections/{ben['id']}", headers=ann["headers"])
    assert res.status_code == 201

    # Ben sees an incoming request carrying Ann's role
    res = client.get("/connections", headers=ben["headers"])
    assert res.status_code == 200
    body = res.json()
    assert [(c["user_id"], c["type"], c["name"]) for c in body["incoming"]] == [(ann["id"], "athlete", "Ann")]
    assert body["approved"] == []

    # Ann only sees it as outgoing
    body = client.get("/connections", headers=ann["headers"]).json()
    assert body["incoming"] == []
    assert [(c["user_id"], c["type"]) for c in body["outgoing"]] == [(ben["id"], "coach")]

    # Ben approves
    res = client.post(f"/connections/{ann['id']}/approve", headers=ben["headers"])
    assert res.status_code == 200

    for me, other in ((ann, ben), (ben, ann)):
        body = client.get("/connections", headers=me["headers"]).json()
        assert [c["user_id"] for c in body["approved"]] == [other["id"]]
        assert body["incoming"] == body["outgoing"] == []


def test_requester_cannot_approve(client, make_user):
    ann = make_user("Ann")
    ben = make_user("Ben", role="coach")
    client.post(f"/connections/{ben['id']}", headers=ann["headers"])

    res = client.post(f"/connections/{ben['id']}/approve", headers=ann["headers"])
    assert res.status_code == 400


def test_approve_twice_is_rejected(client, make_user):
    ann = make_user("Ann")
    ben = make_user("Ben", role="coach")
    client.post(f"/connections/{ben['id']}", headers=ann["headers"])
    client.post(f"/connections/{ann['id']}/approve", headers=ben["headers"])

    res = client.post(f"/connections/{ann['id']}/approve", headers=ben["headers"])
    assert res.status_code == 404


def test_duplicate_request_conflicts(client, make_user):
    ann = make_user("Ann")
    ben = make_user("Ben", role="coach")
    assert client.post(f"/connections/{ben['id']}", headers=ann["headers"]).status_code == 201
    assert client.post(f"/connections/{ben['id']}", headers=ann["headers"]).status_code == 409
    assert client.post(f"/connections/{ann['id']}", headers=ben["headers"]).status_code == 409


def test_self_and_unknown_targets(client, make_user):
    ann = make_user("Ann")
    res = client.post(f"/connections/{ann['id']}", headers=ann["headers"])
    assert res.status_code == 400

    res = client.post("/connections/doesnotexist", headers=ann["headers"])
    assert res.status_code == 404


def test_malformed_target_is_rejected_before_lookup(client, make_user, mock_db):
    ann = make_user("Ann")
    res = client.post("/connections/bad%20id", headers=ann["headers"])
    assert res.status_code == 400
    assert res.json()["detail"] == "Malformed target id"
    assert mock_db.connections.count_documents({}) == 0


def test_cancel_is_idempotent(client, make_user, mock_db):
    ann = make_user("Ann")
    ben = make_user("Ben", role="coach")
    client.post(f"/connections/{ben['id']}", headers=ann["headers"])

    res = client.delete(f"/connections/{ann['id']}", headers=ben["headers"])
    assert res.status_code == 200
    assert res.json()["removed"] is True
    assert mock_db.connections.count_documents({}) == 0

    res = client.delete(f"/connections/{ann['id']}", headers=ben["headers"])
    assert res.status_code == 200
    assert res.json()["removed"] is False


def test_type_uses_stored_role_not_client_input(client, make_user, mock_db):
    ann = make_user("Ann", role="athlete")
    mia = make_user("Mia", role="medical")
    client.post(f"/connections/{mia['id']}?role=manager", headers=ann["headers"])

    half = mock_db.connections.find_one({"_id": f"{ann['id']}/{mia['id']}"})
    assert half["type"] == "medical"


def test_candidates(client, make_user):
    ann = make_user("Ann")
    ben = make_user("Ben", role="coach")
    cat = make_user("Cat", role="medical")

    client.post(f"/connections/{ben['id']}", headers=ann["headers"])
    client.post(f"/connections/{ann['id']}/approve", headers=ben["headers"])
    client.post(f"/connections/{cat['id']}", headers=ann["headers"])

    res = client.get("/connections/candidates", headers=ann["headers"])
    assert res.status_code == 200
    assert {c["user_id"]: c["status"] for c in res.json()} == {cat["id"]: "requested"}

    res = client.get("/connections/candidates", headers=cat["headers"])
    assert {c["user_id"]: c["status"] for c in res.json()} == {ann["id"]: "incoming", ben["id"]: None}


def test_connections_page(client, make_user):
    ann = make_user("Ann")
    ben = make_user("Ben", role="coach")
    client.post(f"/connections/{ann['id']}", headers=ben["headers"])

    res = client.get("/connections/view", headers=ann["headers"])
    assert res.status_code == 200
    assert "Ben" in res.text
    assert "Approve" in res.text


def test_connections_require_auth(client):
    assert client.get("/connections").status_code == 401


def test_actions_are_logged(client, make_user, mock_db):
    ann = make_user("Ann")
    ben = make_user("Ben", role="coach")
    client.post(f"/connections/{ben['id']}", headers=ann["headers"])
    assert mock_db.activity_logs.find_one({"user_id": ann["id"], "action": "connection_request"})


def test_store_outage_is_503(client, make_user, mock_db, monkeypatch):
    from pymongo.errors import AutoReconnect
    from athletehub.db.store import RecordStore

    ann = make_user("Ann")
    ben = make_user("Ben", role="coach")

    def down(self, changes, guards=None):
        raise AutoReconnect("primary stepped down")

    monkeypatch.setattr(RecordStore, "_apply", down)
    res = client.post(f"/connections/{ben['id']}", headers=ann["headers"])
    assert res.status_code == 503
    assert mock_db.connections.count_documents({}) == 0
