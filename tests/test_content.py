from bson import ObjectId

from conftest import make_lecture, make_series, make_sheikh


def test_lecture_list_hides_unpublished_and_hidden_series(client, db):
    sheikh = make_sheikh(db)
    hidden = make_series(db, sheikh, isVisible=False)
    shown = make_series(db, sheikh)
    visible = {make_lecture(db, sheikh)["_id"], make_lecture(db, sheikh, shown)["_id"]}
    make_lecture(db, sheikh, hidden)
    make_lecture(db, sheikh, published=False)

    body = client.get("/api/lectures").json()
    assert body["success"] is True
    assert {l["_id"] for l in body["lectures"]} == {str(i) for i in visible}
    assert body["pagination"]["total"] == 2


def test_lecture_list_filters(client, db):
    a, b = make_sheikh(db), make_sheikh(db)
    mine = make_lecture(db, a, category="Fiqh")
    make_lecture(db, b, category="Fiqh")
    make_lecture(db, a, category="Tafsir")

    body = client.get(f"/api/lectures?sheikhId={a['_id']}&category=Fiqh").json()
    assert [l["_id"] for l in body["lectures"]] == [str(mine["_id"])]


def test_lecture_list_bad_id_is_400(client, db):
    resp = client.get("/api/lectures?sheikhId=not-an-id")
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_lecture_detail_by_slug_with_related(client, db):
    sheikh = make_sheikh(db)
    series = make_series(db, sheikh, slug="usool")
    lecture = make_lecture(db, sheikh, series, slug="usool-1", audioFileName="usool/01.mp3")
    sibling = make_lecture(db, sheikh, series)

    body = client.get("/api/lectures/usool-1").json()
    assert body["lecture"]["_id"] == str(lecture["_id"])
    assert body["lecture"]["series"]["slug"] == "usool"
    assert body["lecture"]["audioUrl"] == "https://audio.example.com/bucket/usool/01.mp3"
    assert [l["_id"] for l in body["relatedLectures"]] == [str(sibling["_id"])]


def test_lecture_in_hidden_series_is_404(client, db):
    sheikh = make_sheikh(db)
    lecture = make_lecture(db, sheikh, make_series(db, sheikh, isVisible=False))
    resp = client.get(f"/api/lectures/{lecture['_id']}")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Lecture not found"}


def test_play_counter(client, db):
    sheikh = make_sheikh(db)
    lecture = make_lecture(db, sheikh)
    assert client.post(f"/api/lectures/{lecture['_id']}/play").json()["playCount"] == 1
    assert db.lectures.find_one({"_id": lecture["_id"]})["playCount"] == 1


def test_verify_duration(client, db):
    sheikh = make_sheikh(db)
    lecture = make_lecture(db, sheikh, duration=600)
    url = f"/api/lectures/{lecture['_id']}/verify-duration"

    assert client.post(url, json={"duration": 601}).json() == {"success": True, "duration": 600, "updated": False}
    assert client.post(url, json={"duration": 1250}).json() == {"success": True, "duration": 1250, "updated": True}
    assert client.post(url, json={"duration": 0}).status_code == 400
    assert client.post(url, json={"duration": "long"}).status_code == 422


def test_stream_redirects_and_counts(client, db):
    sheikh = make_sheikh(db)
    lecture = make_lecture(db, sheikh, audioFileName="a b.mp3")

    resp = client.get(f"/stream/{lecture['_id']}", follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"] == "https://audio.example.com/bucket/a%20b.mp3"

    resp = client.get(f"/download/{lecture['_id']}", follow_redirects=False)
    assert resp.status_code == 307
    doc = db.lectures.find_one({"_id": lecture["_id"]})
    assert (doc["playCount"], doc["downloadCount"]) == (1, 1)


def test_stream_without_audio_is_404(client, db):
    sheikh = make_sheikh(db)
    lecture = make_lecture(db, sheikh)
    assert client.get(f"/stream/{lecture['_id']}", follow_redirects=False).status_code == 404
    assert client.get(f"/download/{ObjectId()}", follow_redirects=False).status_code == 404
    assert db.lectures.find_one({"_id": lecture["_id"]})["playCount"] == 0


def test_series_list_and_detail(client, db):
    sheikh = make_sheikh(db)
    series = make_series(db, sheikh, slug="tawheed")
    make_series(db, sheikh)  # empty, never listed
    l1 = make_lecture(db, sheikh, series, lectureNumber=2)
    l2 = make_lecture(db, sheikh, series, lectureNumber=1)

    listed = client.get("/api/series").json()["series"]
    assert [s["_id"] for s in listed] == [str(series["_id"])]
    assert listed[0]["lectureCount"] == 2

    detail = client.get("/api/series/tawheed").json()["series"]
    assert [l["_id"] for l in detail["lectures"]] == [str(l2["_id"]), str(l1["_id"])]
    assert detail["seriesType"] == "masjid"


def test_hidden_series_detail_is_404(client, db):
    sheikh = make_sheikh(db)
    series = make_series(db, sheikh, isVisible=False)
    make_lecture(db, sheikh, series)
    assert client.get(f"/api/series/{series['_id']}").status_code == 404


def test_sheikh_detail(client, db):
    sheikh = make_sheikh(db, slug="hasan")
    series = make_series(db, sheikh)
    make_lecture(db, sheikh, series)
    loose = make_lecture(db, sheikh)
    make_lecture(db, sheikh, make_series(db, sheikh, isVisible=False))

    listed = client.get("/api/sheikhs").json()["sheikhs"]
    assert listed[0]["lectureCount"] == 2

    detail = client.get("/api/sheikhs/hasan").json()["sheikh"]
    assert detail["lectureCount"] == 2
    assert [s["_id"] for s in detail["series"]] == [str(series["_id"])]
    assert [l["_id"] for l in detail["standaloneLectures"]] == [str(loose["_id"])]

    assert client.get("/api/sheikhs/nobody").status_code == 404


def test_lecture_with_missing_series_is_hidden_everywhere(client, db):
    sheikh = make_sheikh(db)
    orphan = make_lecture(db, sheikh, slug="orphan")
    db.lectures.update_one({"_id": orphan["_id"]}, {"$set": {"seriesId": ObjectId()}})
    kept = make_lecture(db, sheikh)

    assert client.get(f"/api/lectures/{orphan['_id']}").status_code == 404
    listed = client.get("/api/lectures").json()["lectures"]
    assert [l["_id"] for l in listed] == [str(kept["_id"])]
    assert client.get("/api/homepage/stats").json()["stats"]["totalLectures"] == 1
    assert client.get("/api/homepage").json()["stats"]["totalLectures"] == 1
    assert "/lectures/orphan" not in client.get("/sitemap.xml").text
    assert client.get("/api/sheikhs").json()["sheikhs"][0]["lectureCount"] == 1
