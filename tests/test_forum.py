from bson import ObjectId


def post_payload(**overrides):
    payload = {"title": "Interview tips?", "content": "How do you prepare?", "category": "questions"}
    payload.update(overrides)
    return payload


def create_post(client, principal, **overrides):
    resp = client.post("/api/forum", headers=principal["headers"], json=post_payload(**overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()["post"]


def test_create_and_fetch_post(client, register_student):
    student = register_student(first_name="Tim")
    post = create_post(client, student, tags="prep, advice")
    assert post["tags"] == ["prep", "advice"]
    assert post["replies"] == []
    assert post["author"]["firstName"] == "Tim"

    client.get(f"/api/forum/{post['_id']}")
    resp = client.get(f"/api/forum/{post['_id']}")
    assert resp.json()["post"]["views"] == 2

    assert client.get(f"/api/forum/{ObjectId()}").status_code == 404


def test_organizations_can_post(client, register_organization):
    org = register_organization(name="Acme")
    post = create_post(client, org)
    assert post["authorKind"] == "organization"
    assert post["author"]["name"] == "Acme"


def test_replies_and_reply_likes(client, register_student, register_organization):
    student = register_student()
    org = register_organization()
    post = create_post(client, student)

    resp = client.post(f"/api/forum/{post['_id']}/reply", headers=org["headers"], json={"content": "Practice!"})
    assert resp.status_code == 201
    replies = resp.json()["replies"]
    assert len(replies) == 1
    assert replies[0]["authorKind"] == "organization"
    reply_id = replies[0]["_id"]

    resp = client.post(f"/api/forum/{post['_id']}/reply/{reply_id}/like", headers=student["headers"])
    assert resp.json()["likes"] == 1
    resp = client.post(f"/api/forum/{post['_id']}/reply/{reply_id}/like", headers=student["headers"])
    assert resp.json()["likes"] == 2

    assert client.post(f"/api/forum/{post['_id']}/reply/{ObjectId()}/like",
                       headers=student["headers"]).status_code == 404

    detail = client.get(f"/api/forum/{post['_id']}").json()["post"]
    assert detail["replyCount"] == 1
    assert detail["replies"][0]["likes"] == 2


def test_locked_posts_reject_replies(client, register_student):
    admin = register_student(admin=True)
    student = register_student()
    post = create_post(client, student)

    resp = client.put(f"/api/forum/{post['_id']}/lock", headers=admin["headers"])
    assert resp.json() == {"success": True, "message": "Post locked successfully", "isLocked": True}

    resp = client.post(f"/api/forum/{post['_id']}/reply", headers=student["headers"], json={"content": "Hi"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "This post is locked and cannot be replied to"

    resp = client.put(f"/api/forum/{post['_id']}/lock", headers=admin["headers"])
    assert resp.json()["isLocked"] is False


def test_pin_requires_admin(client, register_student):
    admin = register_student(admin=True)
    student = register_student()
    post = create_post(client, student)

    assert client.put(f"/api/forum/{post['_id']}/pin", headers=student["headers"]).status_code == 403
    resp = client.put(f"/api/forum/{post['_id']}/pin", headers=admin["headers"])
    assert resp.json()["isPinned"] is True

    pinned = client.get("/api/forum/pinned").json()["posts"]
    assert [p["_id"] for p in pinned] == [post["_id"]]


def test_edit_and_delete_permissions(client, register_student):
    author = register_student()
    stranger = register_student()
    admin = register_student(admin=True)
    post = create_post(client, author)

    assert client.put(f"/api/forum/{post['_id']}", headers=stranger["headers"],
                      json={"title": "Hijack"}).status_code == 403
    resp = client.put(f"/api/forum/{post['_id']}", headers=author["headers"], json={"title": "Edited"})
    assert resp.json()["post"]["title"] == "Edited"

    assert client.delete(f"/api/forum/{post['_id']}", headers=stranger["headers"]).status_code == 403
    assert client.delete(f"/api/forum/{post['_id']}", headers=admin["headers"]).status_code == 200
    assert client.get(f"/api/forum/{post['_id']}").status_code == 404


def test_listing_sort_and_stats(client, register_student):
    student = register_student()
    quiet = create_post(client, student, title="Quiet", category="general")
    busy = create_post(client, student, title="Busy")
    for _ in range(2):
        client.post(f"/api/forum/{busy['_id']}/reply", headers=student["headers"], json={"content": "+1"})
    client.post(f"/api/forum/{quiet['_id']}/like", headers=student["headers"])

    titles = [p["title"] for p in client.get("/api/forum", params={"sort": "replies"}).json()["posts"]]
    assert titles == ["Busy", "Quiet"]
    titles = [p["title"] for p in client.get("/api/forum", params={"sort": "likes"}).json()["posts"]]
    assert titles == ["Quiet", "Busy"]

    assert client.get("/api/forum/category/general").json()["total"] == 1
    assert client.get(f"/api/forum/author/{student['id']}").json()["total"] == 2

    stats = client.get("/api/forum/stats").json()["stats"]
    assert stats["totalPosts"] == 2
    assert stats["topAuthors"][0]["count"] == 2
    assert stats["topAuthors"][0]["totalLikes"] == 1
