from datetime import timedelta

from bson import ObjectId

from duroos.auth.jwt import create_access_token

from conftest import auth_header, make_admin, make_lecture, make_series, make_sheikh


def test_requires_bearer_token(client, db):
    resp = client.post("/api/admin/sheikhs", json={"nameArabic": "الشيخ"})
    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_rejects_inactive_and_unknown_admins(client, db):
    inactive = make_admin(db, is_active=False)
    assert client.get("/api/admin/settings", headers=auth_header(inactive)).status_code == 401
    ghost = {"_id": ObjectId()}
    assert client.get("/api/admin/settings", headers=auth_header(ghost)).status_code == 401


def test_rejects_expired_token(client, db):
    admin = make_admin(db)
    token = create_access_token({"sub": str(admin["_id"])}, expires_delta=timedelta(seconds=-1))
    resp = client.get("/api/admin/settings", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Token expired"


def test_editor_can_write_but_not_delete(client, db):
    editor = make_admin(db, role="editor")
    created = client.post("/api/admin/sheikhs", json={"nameArabic": "الشيخ محمد", "nameEnglish": "Sheikh Muhammad"},
                          headers=auth_header(editor))
    assert created.status_code == 201
    sheikh = created.json()["sheikh"]
    assert sheikh["slug"] == "sheikh-muhammad"
    assert sheikh["honorific"] == "حفظه الله"

    resp = client.delete(f"/api/admin/sheikhs/{sheikh['_id']}", headers=auth_header(editor))
    assert resp.status_code == 403


def test_create_lecture_validates_references(client, db):
    admin = make_admin(db)
    resp = client.post("/api/admin/lectures", json={"titleArabic": "درس", "sheikhId": str(ObjectId())},
                       headers=auth_header(admin))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Sheikh not found"

    resp = client.post("/api/admin/lectures", json={"titleArabic": "درس", "sheikhId": "nope"},
                       headers=auth_header(admin))
    assert resp.status_code == 400


def test_create_update_toggle_delete_lecture(client, db):
    admin = make_admin(db)
    sheikh = make_sheikh(db)
    series = make_series(db, sheikh)
    payload = {
        "titleArabic": "الدرس الأول",
        "titleEnglish": "Lesson One",
        "sheikhId": str(sheikh["_id"]),
        "seriesId": str(series["_id"]),
        "lectureNumber": 1,
        "playCount": 99,
        "metadata": {"excelFilename": "import.xlsx", "serialNo": 4, "legacyCode": "X1"},
    }
    resp = client.post("/api/admin/lectures", json=payload, headers=auth_header(admin))
    assert resp.status_code == 201
    lecture = resp.json()["lecture"]
    assert lecture["slug"] == "lesson-one"
    assert lecture["playCount"] == 0
    assert lecture["published"] is False
    assert lecture["location"] == "غير محدد"
    assert lecture["metadata"] == {"excelFilename": "import.xlsx", "serialNo": 4, "legacyCode": "X1"}
    assert isinstance(db.lectures.find_one({"slug": "lesson-one"})["seriesId"], ObjectId)

    url = f"/api/admin/lectures/{lecture['_id']}"
    resp = client.patch(url, json={"titleEnglish": "Lesson 1", "seriesId": None}, headers=auth_header(admin))
    assert resp.json()["lecture"]["titleEnglish"] == "Lesson 1"
    assert resp.json()["lecture"]["seriesId"] is None
    assert resp.json()["lecture"]["titleArabic"] == "الدرس الأول"

    assert client.post(f"{url}/toggle-published", headers=auth_header(admin)).json()["published"] is True
    assert client.get(f"/api/lectures/{lecture['_id']}").status_code == 200

    assert client.delete(url, headers=auth_header(admin)).json()["success"] is True
    assert client.delete(url, headers=auth_header(admin)).status_code == 404


def test_series_delete_blocked_while_lectures_exist(client, db):
    admin = make_admin(db)
    sheikh = make_sheikh(db)
    series = make_series(db, sheikh)
    lecture = make_lecture(db, sheikh, series, published=False)

    resp = client.delete(f"/api/admin/series/{series['_id']}", headers=auth_header(admin))
    assert resp.status_code == 400
    assert "1 lectures" in resp.json()["message"]

    db.lectures.delete_one({"_id": lecture["_id"]})
    assert client.delete(f"/api/admin/series/{series['_id']}", headers=auth_header(admin)).status_code == 200


def test_sheikh_delete_blocked_while_referenced(client, db):
    admin = make_admin(db)
    sheikh = make_sheikh(db)
    make_lecture(db, sheikh)
    resp = client.delete(f"/api/admin/sheikhs/{sheikh['_id']}", headers=auth_header(admin))
    assert resp.status_code == 400


def test_sections_crud_and_reorder(client, db):
    admin = make_admin(db)
    headers = auth_header(admin)
    first = client.post("/api/admin/sections", json={"title": {"ar": "الحالية", "en": "Active Lessons"}},
                        headers=headers).json()["section"]
    second = client.post("/api/admin/sections", json={"title": {"ar": "المكتملة", "en": "Completed"}, "displayOrder": 1},
                         headers=headers).json()["section"]
    assert first["slug"] == "active-lessons"

    dup = client.post("/api/admin/sections", json={"title": {"ar": "x", "en": "Active Lessons"}}, headers=headers)
    assert dup.status_code == 400

    resp = client.put("/api/admin/sections/reorder", json=[
        {"id": first["_id"], "order": 5},
        {"id": second["_id"], "order": 0},
    ], headers=headers)
    assert resp.json()["updated"] == 2
    listed = client.get("/api/admin/sections", headers=headers).json()["sections"]
    assert [s["_id"] for s in listed] == [second["_id"], first["_id"]]

    sheikh = make_sheikh(db)
    series = make_series(db, sheikh, sectionId=ObjectId(first["_id"]))
    assert client.delete(f"/api/admin/sections/{first['_id']}", headers=headers).status_code == 200
    assert db.series.find_one({"_id": series["_id"]})["sectionId"] is None


def test_schedule_crud(client, db):
    admin = make_admin(db)
    headers = auth_header(admin)
    series = make_series(db, make_sheikh(db))

    bad = client.post("/api/admin/schedule", json={"seriesId": str(series["_id"]), "dayOfWeek": "Funday", "time": "x"},
                      headers=headers)
    assert bad.status_code == 400

    slot = client.post("/api/admin/schedule", json={"seriesId": str(series["_id"]), "dayOfWeek": "الجمعة",
                                                    "time": "بعد العصر"}, headers=headers).json()["schedule"]
    assert slot["dayOfWeekEnglish"] == "Friday"

    updated = client.patch(f"/api/admin/schedule/{slot['_id']}", json={"dayOfWeek": "السبت"}, headers=headers)
    assert updated.json()["schedule"]["dayOfWeekEnglish"] == "Saturday"
    assert client.delete(f"/api/admin/schedule/{slot['_id']}", headers=headers).status_code == 200


def test_settings_update_requires_admin(client, db):
    editor = make_admin(db, role="editor")
    admin = make_admin(db)
    patch = {"analytics": {"minPlaysToDisplay": 10}}

    assert client.patch("/api/admin/settings", json=patch, headers=auth_header(editor)).status_code == 403
    body = client.patch("/api/admin/settings", json=patch, headers=auth_header(admin)).json()
    assert body["settings"]["analytics"]["minPlaysToDisplay"] == 10
    assert body["settings"]["analytics"]["minDownloadsToDisplay"] == 500
    assert body["settings"]["homepage"]["showSchedule"] is True


def test_cache_admin(client, db, cache):
    admin = make_admin(db)
    cache.set("homepage:overview", 1)
    cache.set("homepage:sections", 2)
    cache.set("sitemap:xml", 3)

    stats = client.get("/api/admin/cache/stats", headers=auth_header(admin)).json()
    assert stats["stats"]["size"] == 3

    removed = client.delete("/api/admin/cache?pattern=homepage:*", headers=auth_header(admin)).json()
    assert removed["removed"] == 2
    assert client.delete("/api/admin/cache", headers=auth_header(admin)).json()["removed"] == 1
    assert cache.size() == 0


def test_admin_lecture_list_includes_unpublished_and_filters(client, db):
    admin = make_admin(db, role="editor")
    sheikh = make_sheikh(db)
    hidden_series = make_series(db, sheikh, isVisible=False)
    draft = make_lecture(db, sheikh, published=False, audioFileName="a/1.mp3")
    silent = make_lecture(db, sheikh, audioFileName="")
    tucked = make_lecture(db, sheikh, hidden_series, audioFileName="a/2.mp3")

    body = client.get("/api/admin/lectures", headers=auth_header(admin)).json()
    assert body["success"] is True
    assert [l["_id"] for l in body["lectures"]] == [str(tucked["_id"]), str(silent["_id"]), str(draft["_id"])]
    assert body["pagination"]["total"] == 3

    unpublished = client.get("/api/admin/lectures?published=false", headers=auth_header(admin)).json()
    assert [l["_id"] for l in unpublished["lectures"]] == [str(draft["_id"])]

    no_audio = client.get("/api/admin/lectures?noAudio=true", headers=auth_header(admin)).json()
    assert [l["_id"] for l in no_audio["lectures"]] == [str(silent["_id"])]


def test_admin_can_fetch_a_draft_lecture(client, db):
    admin = make_admin(db)
    sheikh = make_sheikh(db)
    draft = make_lecture(db, sheikh, published=False)

    assert client.get(f"/api/lectures/{draft['_id']}").status_code == 404
    body = client.get(f"/api/admin/lectures/{draft['_id']}", headers=auth_header(admin)).json()
    assert body["lecture"]["published"] is False
    assert body["lecture"]["sheikh"]["_id"] == str(sheikh["_id"])
    assert client.get(f"/api/admin/lectures/{ObjectId()}", headers=auth_header(admin)).status_code == 404


def test_admin_series_view_orders_every_lecture(client, db):
    admin = make_admin(db)
    sheikh = make_sheikh(db)
    series = make_series(db, sheikh, isVisible=False)
    third = make_lecture(db, sheikh, series, lectureNumber=3)
    first = make_lecture(db, sheikh, series, sortOrder=0, lectureNumber=9, published=False)
    second = make_lecture(db, sheikh, series, lectureNumber=2)

    body = client.get(f"/api/admin/series/{series['_id']}", headers=auth_header(admin)).json()
    assert [l["_id"] for l in body["series"]["lectures"]] == [str(first["_id"]), str(second["_id"]), str(third["_id"])]
    assert body["series"]["lectureCount"] == 3

    listed = client.get("/api/admin/series", headers=auth_header(admin)).json()["series"]
    assert [(s["_id"], s["lectureCount"]) for s in listed] == [(str(series["_id"]), 3)]
    assert client.get(f"/api/admin/series/{ObjectId()}", headers=auth_header(admin)).status_code == 404


def test_admin_dashboard_counts_everything(client, db):
    admin = make_admin(db, role="editor")
    sheikh = make_sheikh(db)
    make_series(db, sheikh, isVisible=False)
    make_lecture(db, sheikh, playCount=4, downloadCount=1, audioFileName="a.mp3")
    make_lecture(db, sheikh, playCount=6, published=False, audioFileName="b.mp3")
    make_lecture(db, sheikh)

    body = client.get("/api/admin/dashboard", headers=auth_header(admin)).json()
    assert body["stats"] == {
        "totalLectures": 3,
        "publishedLectures": 2,
        "unpublishedLectures": 1,
        "noAudioLectures": 1,
        "totalPlays": 10,
        "totalDownloads": 1,
        "totalSheikhs": 1,
        "totalSeries": 1,
    }
    assert len(body["recentLectures"]) == 3
    assert client.get("/api/admin/dashboard").status_code == 401
