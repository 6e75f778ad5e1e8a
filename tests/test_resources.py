from bson import ObjectId


def resource_payload(**overrides):
    payload = {
        "title": "Writing a CV",
        "content": "word " * 450,
        "category": "resume",
        "tags": "cv, tips",
    }
    payload.update(overrides)
    return payload


def test_admin_resources_are_published_with_derived_fields(client, register_student):
    admin = register_student(admin=True)
    resp = client.post("/api/resources", headers=admin["headers"], json=resource_payload())
    assert resp.status_code == 201
    resource = resp.json()["resource"]
    assert resource["isPublished"] is True
    assert resource["readingTime"] == 3
    assert resource["excerpt"].endswith("...")
    assert len(resource["excerpt"]) == 203
    assert resource["tags"] == ["cv", "tips"]
    assert resource["authorKind"] == "student"


def test_other_resources_wait_for_review(client, register_organization):
    org = register_organization()
    resp = client.post("/api/resources", headers=org["headers"],
                       json=resource_payload(excerpt="Short", readingTime=7))
    resource = resp.json()["resource"]
    assert resource["isPublished"] is False
    assert resource["excerpt"] == "Short"
    assert resource["readingTime"] == 7

    assert client.get(f"/api/resources/{resource['_id']}").status_code == 404
    assert client.get("/api/resources").json()["total"] == 0


def test_fetch_counts_views(client, register_student):
    admin = register_student(admin=True)
    resource_id = client.post("/api/resources", headers=admin["headers"],
                              json=resource_payload()).json()["resource"]["_id"]
    client.get(f"/api/resources/{resource_id}")
    resp = client.get(f"/api/resources/{resource_id}")
    assert resp.json()["resource"]["views"] == 2
    assert resp.json()["resource"]["author"]["firstName"] == "Ada"


def test_search_by_category_and_tags(client, register_student):
    admin = register_student(admin=True)
    client.post("/api/resources", headers=admin["headers"], json=resource_payload())
    client.post("/api/resources", headers=admin["headers"],
                json=resource_payload(title="Interviews", category="interview", tags=["prep"]))

    assert client.get("/api/resources", params={"category": "interview"}).json()["total"] == 1
    assert client.get("/api/resources", params={"tags": "prep, other"}).json()["total"] == 1
    assert client.get("/api/resources", params={"tags": "nothing"}).json()["total"] == 0
    assert client.get("/api/resources", params={"category": "cooking"}).status_code == 400

    body = client.get("/api/resources/category/resume").json()
    assert body["category"] == "resume"
    assert body["total"] == 1

    assert client.get(f"/api/resources/author/{admin['id']}").json()["total"] == 2
    assert client.get("/api/resources/author/whoever").json()["total"] == 0


def test_edit_and_delete_permissions(client, register_student):
    author = register_student(admin=True)
    stranger = register_student()
    resource_id = client.post("/api/resources", headers=author["headers"],
                              json=resource_payload()).json()["resource"]["_id"]

    resp = client.put(f"/api/resources/{resource_id}", headers=stranger["headers"], json={"title": "Mine"})
    assert resp.status_code == 403
    assert client.put(f"/api/resources/{ObjectId()}", headers=stranger["headers"],
                      json={"title": "Mine"}).status_code == 404

    resp = client.put(f"/api/resources/{resource_id}", headers=author["headers"], json={"content": "short text"})
    assert resp.status_code == 200
    updated = resp.json()["resource"]
    assert updated["readingTime"] == 1
    assert updated["excerpt"] == "short text..."

    assert client.delete(f"/api/resources/{resource_id}", headers=stranger["headers"]).status_code == 403
    assert client.delete(f"/api/resources/{resource_id}", headers=author["headers"]).status_code == 200
    assert client.get(f"/api/resources/{resource_id}").status_code == 404


def test_admin_can_edit_any_resource(client, db, register_student, register_organization):
    org = register_organization()
    admin = register_student(admin=True)
    resource_id = client.post("/api/resources", headers=org["headers"],
                              json=resource_payload()).json()["resource"]["_id"]

    resp = client.put(f"/api/resources/{resource_id}", headers=admin["headers"], json={"category": "career"})
    assert resp.status_code == 200
    assert db.resources.find_one({"_id": ObjectId(resource_id)})["category"] == "career"


def test_like_featured_and_stats(client, register_student):
    admin = register_student(admin=True)
    first = client.post("/api/resources", headers=admin["headers"],
                        json=resource_payload(title="First")).json()["resource"]["_id"]
    client.post("/api/resources", headers=admin["headers"], json=resource_payload(title="Second"))

    resp = client.post(f"/api/resources/{first}/like", headers=admin["headers"])
    assert resp.json()["likes"] == 1
    assert client.post(f"/api/resources/{first}/like").status_code == 401

    featured = client.get("/api/resources/featured").json()["resources"]
    assert featured[0]["title"] == "First"

    stats = client.get("/api/resources/stats").json()["stats"]
    assert stats["totalResources"] == 2
    assert stats["resourcesByCategory"] == [{"_id": "resume", "count": 2}]
    assert stats["topAuthors"][0]["authorName"] == "Ada Lovelace"
    assert stats["topAuthors"][0]["count"] == 2


def test_unpublished_resources_cannot_be_liked(client, db, register_organization):
    org = register_organization()
    resource_id = client.post("/api/resources", headers=org["headers"],
                              json=resource_payload()).json()["resource"]["_id"]

    resp = client.post(f"/api/resources/{resource_id}/like", headers=org["headers"])
    assert resp.status_code == 404
    assert resp.json()["message"] == "Resource not found"
    assert db.resources.find_one({"_id": ObjectId(resource_id)})["likes"] == 0
