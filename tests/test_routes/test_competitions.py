def test_competition_flow(client, make_user):
    coach = make_user("Coach Kim", role="coach")
    ann = make_user("Ann")

    res = client.post("/competitions", headers=coach["headers"], json={
        "name": "Spring Open", "location": "Oslo", "start_date": "04/12/2025", "type": "track",
    })
    assert res.status_code == 201
    comp = res.json()
    assert comp["start_date"].startswith("2025-04-12")
    assert comp["participants"] == []

    res = client.put(f"/competitions/{comp['_id']}/results", headers=coach["headers"], json={
        "athlete_id": ann["id"], "results": "11.9s", "position": 2,
    })
    assert res.status_code == 200
    assert res.json()["participants"] == [
        {"athlete": ann["id"], "results": "11.9s", "position": 2, "notes": None},
    ]

    # updating the same athlete replaces the entry
    client.put(f"/competitions/{comp['_id']}/results", headers=coach["headers"], json={
        "athlete_id": ann["id"], "results": "11.7s", "position": 1,
    })
    res = client.get(f"/competitions/{comp['_id']}", headers=ann["headers"])
    assert res.status_code == 200
    parts = res.json()["participants"]
    assert len(parts) == 1
    assert parts[0]["athlete"]["name"] == "Ann"
    assert parts[0]["position"] == 1
    assert res.json()["created_by"]["name"] == "Coach Kim"


def test_athlete_cannot_create(client, make_user):
    ann = make_user("Ann")
    res = client.post("/competitions", headers=ann["headers"], json={"name": "x", "start_date": "2025-01-01"})
    assert res.status_code == 403


def test_update_permissions(client, make_user):
    coach = make_user("Coach Kim", role="coach")
    other = make_user("Coach Lee", role="coach")
    boss = make_user("Max", role="manager")
    cid = client.post("/competitions", headers=coach["headers"],
                      json={"name": "Cup", "start_date": "2025-05-01"}).json()["_id"]

    assert client.put(f"/competitions/{cid}", headers=other["headers"], json={"location": "x"}).status_code == 403
    res = client.put(f"/competitions/{cid}", headers=boss["headers"], json={"location": "Bergen"})
    assert res.status_code == 200
    assert res.json()["location"] == "Bergen"


def test_only_managers_delete(client, make_user):
    coach = make_user("Coach Kim", role="coach")
    boss = make_user("Max", role="manager")
    cid = client.post("/competitions", headers=coach["headers"],
                      json={"name": "Cup", "start_date": "2025-05-01"}).json()["_id"]

    assert client.delete(f"/competitions/{cid}", headers=coach["headers"]).status_code == 403
    assert client.delete(f"/competitions/{cid}", headers=boss["headers"]).status_code == 200
    assert client.get(f"/competitions/{cid}", headers=boss["headers"]).status_code == 404
