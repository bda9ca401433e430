def _create(client, coach, athlete, **extra):
    payload = {"title": "Intervals", "athlete": athlete["id"], "scheduled_date": "2025-03-04",
               "exercises": [{"name": "400m repeats", "sets": 6}]}
    payload.update(extra)
    return client.post("/trainings", headers=coach["headers"], json=payload)


def test_training_flow(client, make_user):
    coach = make_user("Coach Kim", role="coach")
    athlete = make_user("Ann", role="athlete")

    res = _create(client, coach, athlete)
    assert res.status_code == 201
    training = res.json()
    assert training["status"] == "scheduled"
    assert training["coach"] == coach["id"]
    assert training["scheduled_date"].startswith("2025-03-04")

    # the athlete sees it with names expanded
    res = client.get("/trainings", headers=athlete["headers"])
    assert res.status_code == 200
    rows = res.json()
    assert len(rows) == 1
    assert rows[0]["athlete"]["name"] == "Ann"
    assert rows[0]["coach"]["name"] == "Coach Kim"

    # athlete completes it
    res = client.put(f"/trainings/{training['_id']}/complete", headers=athlete["headers"],
                     json={"feedback": "legs heavy"})
    assert res.status_code == 200
    assert res.json()["status"] == "completed"
    assert res.json()["feedback"] == "legs heavy"


def test_only_coaches_create(client, make_user):
    athlete = make_user("Ann")
    res = _create(client, athlete, athlete)
    assert res.status_code == 403


def test_unknown_athlete(client, make_user):
    coach = make_user("Coach Kim", role="coach")
    res = client.post("/trainings", headers=coach["headers"],
                      json={"title": "x", "athlete": "nobody", "scheduled_date": "2025-03-04"})
    assert res.status_code == 404


def test_bad_date_rejected(client, make_user):
    coach = make_user("Coach Kim", role="coach")
    athlete = make_user("Ann")
    res = _create(client, coach, athlete, scheduled_date="someday")
    assert res.status_code == 400


def test_list_filters_by_exact_id(client, make_user):
    coach = make_user("Coach Kim", role="coach")
    ann = make_user("Ann", role="athlete")
    # a name that contains "ann" must not pick up Ann's sessions
    anna = make_user("Annabel", role="athlete")
    _create(client, coach, ann)

    assert len(client.get("/trainings", headers=ann["headers"]).json()) == 1
    assert client.get("/trainings", headers=anna["headers"]).json() == []


def test_other_athlete_cannot_view_or_complete(client, make_user):
    coach = make_user("Coach Kim", role="coach")
    ann = make_user("Ann")
    bob = make_user("Bob")
    tid = _create(client, coach, ann).json()["_id"]

    assert client.get(f"/trainings/{tid}", headers=bob["headers"]).status_code == 403
    assert client.put(f"/trainings/{tid}/complete", headers=bob["headers"], json={}).status_code == 403


def test_update_and_delete_by_owner_only(client, make_user):
    coach = make_user("Coach Kim", role="coach")
    other = make_user("Coach Lee", role="coach")
    ann = make_user("Ann")
    tid = _create(client, coach, ann).json()["_id"]

    res = client.put(f"/trainings/{tid}", headers=other["headers"], json={"title": "mine now"})
    assert res.status_code == 403

    res = client.put(f"/trainings/{tid}", headers=coach["headers"], json={"title": "Tempo run"})
    assert res.status_code == 200
    assert res.json()["title"] == "Tempo run"

    assert client.delete(f"/trainings/{tid}", headers=other["headers"]).status_code == 403
    assert client.delete(f"/trainings/{tid}", headers=coach["headers"]).status_code == 200
    assert client.get(f"/trainings/{tid}", headers=coach["headers"]).status_code == 404
