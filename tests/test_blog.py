from test_resources import resource_payload


def test_blog_lists_published_resources_only(client, register_student, register_organization):
    admin = register_student(admin=True)
    org = register_organization()
    client.post("/api/resources", headers=admin["headers"], json=resource_payload(title="Older"))
    client.post("/api/resources", headers=admin["headers"], json=resource_payload(title="Newer", excerpt="Short"))
    client.post("/api/resources", headers=org["headers"], json=resource_payload(title="Draft"))

    resp = client.get("/api/blog")
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 2
    assert body["pages"] == 1
    assert [post["title"] for post in body["posts"]] == ["Newer", "Older"]

    post = body["posts"][0]
    assert post["slug"] == post["_id"]
    assert post["excerpt"] == "Short"
    assert post["coverImage"] is None
    assert post["tags"] == ["cv", "tips"]
    assert post["author"]["name"] == "Ada Lovelace"
    assert "email" not in post["author"]


def test_blog_search_and_tag_filter(client, register_student):
    admin = register_student(admin=True)
    client.post("/api/resources", headers=admin["headers"],
                json=resource_payload(title="Interview questions", tags="interview"))
    client.post("/api/resources", headers=admin["headers"], json=resource_payload(title="CV basics"))

    titles = [p["title"] for p in client.get("/api/blog", params={"search": "INTERVIEW"}).json()["posts"]]
    assert titles == ["Interview questions"]
    titles = [p["title"] for p in client.get("/api/blog", params={"tag": "cv"}).json()["posts"]]
    assert titles == ["CV basics"]
    assert client.get("/api/blog", params={"search": "a.*b"}).json()["count"] == 0


def test_blog_post_detail(client, db, register_student, register_organization):
    admin = register_student(admin=True)
    org = register_organization()
    resource = client.post("/api/resources", headers=admin["headers"], json=resource_payload()).json()["resource"]
    draft = client.post("/api/resources", headers=org["headers"], json=resource_payload()).json()["resource"]

    resp = client.get(f"/api/blog/{resource['_id']}")
    assert resp.status_code == 200
    post = resp.json()["post"]
    assert post["title"] == "Writing a CV"
    assert post["author"]["email"] == admin["email"]
    assert post["updatedAt"] is not None
    assert db.resources.find_one({"title": "Writing a CV", "isPublished": True})["views"] == 0

    db.resources.update_one({"isPublished": True}, {"$set": {"slug": "writing-a-cv"}})
    assert client.get("/api/blog/writing-a-cv").json()["post"]["slug"] == "writing-a-cv"

    for missing in (draft["_id"], "no-such-post"):
        resp = client.get(f"/api/blog/{missing}")
        assert resp.status_code == 404
        assert resp.json()["message"] == "Blog post not found"
