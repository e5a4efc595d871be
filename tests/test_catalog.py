from pymongo.errors import PyMongoError


def test_countries_sorted_and_active_only(client, make_country):
    make_country("uk", name="United Kingdom", display_order=2)
    make_country("russia", display_order=1)
    make_country("georgia", display_order=1)
    make_country("atlantis", is_active=False)
    res = client.get("/api/countries")
    assert res.status_code == 200
    assert [c["slug"] for c in res.json()["data"]] == ["georgia", "russia", "uk"]


def test_country_detail_includes_colleges(client, make_country, make_college):
    russia = make_country("russia")
    make_college("Kazan Federal University", russia)
    make_college("Closed Institute", russia, is_active=False)
    res = client.get("/api/countries/russia")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["name"] == "Russia"
    assert [c["name"] for c in data["colleges"]] == ["Kazan Federal University"]
    assert client.get("/api/countries/narnia").status_code == 404


def test_create_country(client, db):
    res = client.post("/api/admin/countries", json={"name": " Georgia ", "slug": "georgia", "flag": "🇬🇪"})
    assert res.status_code == 201
    assert res.json()["data"]["name"] == "Georgia"
    assert db["country"].find_one({"slug": "georgia"})["is_active"] is True

    res = client.post("/api/admin/countries", json={"name": "Georgia again", "slug": "georgia"})
    assert res.status_code == 400
    assert db["country"].count_documents({}) == 1


def test_create_country_requires_name_and_slug(client):
    res = client.post("/api/admin/countries", json={"flag": "🇬🇪"})
    assert res.status_code == 400
    assert res.json()["details"]["missing_fields"] == ["name", "slug"]


def test_create_exam_resolves_countries(client, db, make_country):
    russia = make_country("russia")
    res = client.post(
        "/api/admin/exams",
        json={
            "name": "National Eligibility cum Entrance Test",
            "slug": "neet",
            "short_name": "NEET",
            "applicable_countries": ["russia"],
            "exam_pattern": {"sections": ["Physics", "Chemistry", "Biology"]},
        },
    )
    assert res.status_code == 201
    assert res.json()["data"]["applicable_countries"] == [str(russia["_id"])]
    assert db["exam"].find_one({"slug": "neet"})["applicable_countries"] == [russia["_id"]]


def test_create_exam_unknown_country(client, db, make_country):
    make_country("russia")
    res = client.post("/api/admin/exams", json={"name": "NEET", "slug": "neet", "applicable_countries": ["mars"]})
    assert res.status_code == 400
    assert res.json()["details"] == {"invalidCountries": ["mars"], "availableCountries": ["russia"]}
    assert db["exam"].count_documents({}) == 0


def test_exam_listing_and_detail(client, db):
    client.post("/api/admin/exams", json={"name": "IELTS Academic", "slug": "ielts", "display_order": 2})
    client.post("/api/admin/exams", json={"name": "NEET UG", "slug": "neet", "display_order": 1})
    client.post("/api/admin/exams", json={"name": "Retired Test", "slug": "old", "is_active": False})

    assert [e["slug"] for e in client.get("/api/exams").json()["data"]] == ["neet", "ielts"]
    assert client.get("/api/exams/neet").json()["data"]["name"] == "NEET UG"
    assert client.get("/api/exams/old").status_code == 404


def test_country_listing_store_failure_is_a_500(client, db, monkeypatch, make_country):
    make_country("russia")

    def boom(*args, **kwargs):
        raise PyMongoError("connection reset")

    monkeypatch.setattr(db["country"].__class__, "find", boom)
    res = client.get("/api/countries")
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to fetch country"}
