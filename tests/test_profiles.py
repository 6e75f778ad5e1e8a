from bson import ObjectId


def test_student_profile_update(client, register_student):
    student = register_student()
    resp = client.put("/api/students/profile", headers=student["headers"],
                      json={"bio": "Hi", "skills": "python, sql ,"})
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["bio"] == "Hi"
    assert user["skills"] == ["python", "sql"]

    resp = client.get("/api/students/profile", headers=student["headers"])
    assert resp.json()["user"]["skills"] == ["python", "sql"]


def test_student_profile_rejects_long_bio_and_unknown_fields(client, register_student):
    student = register_student()
    assert client.put("/api/students/profile", headers=student["headers"],
                      json={"bio": "x" * 501}).status_code == 400
    assert client.put("/api/students/profile", headers=student["headers"],
                      json={"email": "new@example.com"}).status_code == 400


def test_student_routes_reject_organizations(client, register_organization):
    org = register_organization()
    assert client.get("/api/students/profile", headers=org["headers"]).status_code == 403


def test_resume_reference(client, db, register_student):
    student = register_student(resume="")
    resp = client.put("/api/students/resume", headers=student["headers"], json={"resume": "files/cv.pdf"})
    assert resp.status_code == 200
    assert db.students.find_one({"_id": ObjectId(student["id"])})["resume"] == "files/cv.pdf"


def test_education_entries(client, register_student):
    student = register_student()
    resp = client.post("/api/students/education", headers=student["headers"], json={
        "institution": "MIT",
        "degree": "BSc",
        "fieldOfStudy": "CS",
        "startDate": "2022-09-01T00:00:00",
    })
    assert resp.status_code == 201
    entries = resp.json()["education"]
    assert len(entries) == 1
    entry_id = entries[0]["_id"]
    assert entries[0]["current"] is False

    resp = client.put(f"/api/students/education/{entry_id}", headers=student["headers"],
                      json={"degree": "MSc", "current": True})
    assert resp.status_code == 200
    assert resp.json()["education"][0]["degree"] == "MSc"
    assert resp.json()["education"][0]["institution"] == "MIT"

    assert client.put(f"/api/students/education/{ObjectId()}", headers=student["headers"],
                      json={"degree": "PhD"}).status_code == 404

    resp = client.delete(f"/api/students/education/{entry_id}", headers=student["headers"])
    assert resp.status_code == 200
    assert resp.json()["education"] == []
    assert client.delete(f"/api/students/education/{entry_id}", headers=student["headers"]).status_code == 404


def test_experience_entries(client, register_student):
    student = register_student()
    resp = client.post("/api/students/experience", headers=student["headers"], json={
        "company": "Acme",
        "position": "Intern",
        "startDate": "2023-06-01T00:00:00",
        "description": "APIs",
    })
    assert resp.status_code == 201
    entry_id = resp.json()["experience"][0]["_id"]

    resp = client.put(f"/api/students/experience/{entry_id}", headers=student["headers"],
                      json={"position": "Engineer"})
    assert resp.json()["experience"][0]["position"] == "Engineer"

    resp = client.delete(f"/api/students/experience/{entry_id}", headers=student["headers"])
    assert resp.json()["experience"] == []


def test_preferences(client, register_student):
    student = register_student()
    resp = client.put("/api/students/preferences", headers=student["headers"], json={
        "types": "remote, hybrid",
        "locations": ["Berlin"],
        "salaryRange": {"min": 100, "max": 900},
    })
    assert resp.status_code == 200
    prefs = resp.json()["preferences"]
    assert prefs["types"] == ["remote", "hybrid"]
    assert prefs["locations"] == ["Berlin"]
    assert prefs["industries"] == []
    assert prefs["salaryRange"] == {"min": 100, "max": 900}


def test_organization_profile(client, register_organization):
    org = register_organization(name="Acme")
    resp = client.get("/api/organizations/profile", headers=org["headers"])
    assert resp.status_code == 200
    assert resp.json()["organization"]["name"] == "Acme"
    assert "password" not in resp.json()["organization"]

    resp = client.put("/api/organizations/profile", headers=org["headers"], json={
        "size": "11-50",
        "location": {"city": "Berlin", "zipCode": "10115"},
        "culture": {"values": "trust, speed"},
    })
    assert resp.status_code == 200
    updated = resp.json()["organization"]
    assert updated["size"] == "11-50"
    assert updated["location"] == {"city": "Berlin", "zipCode": "10115"}
    assert updated["culture"] == {"values": ["trust", "speed"], "benefits": []}

    assert client.put("/api/organizations/profile", headers=org["headers"],
                      json={"size": "huge"}).status_code == 400
    assert client.put("/api/organizations/profile", headers=org["headers"], json={}).status_code == 400


def test_organization_logo(client, db, register_organization):
    org = register_organization()
    resp = client.put("/api/organizations/logo", headers=org["headers"], json={"logo": "logos/acme.png"})
    assert resp.status_code == 200
    assert db.organizations.find_one({"_id": ObjectId(org["id"])})["logo"] == "logos/acme.png"


def test_public_organization_listing(client, db, register_organization):
    verified = register_organization(name="Verified Corp")
    register_organization(name="Unverified Corp")
    db.organizations.update_one(
        {"_id": ObjectId(verified["id"])},
        {"$set": {"isVerified": True, "location": {"city": "Berlin"}}},
    )

    resp = client.get("/api/organizations")
    body = resp.json()
    assert body["total"] == 1
    assert body["organizations"][0]["name"] == "Verified Corp"
    assert "password" not in body["organizations"][0]

    assert client.get("/api/organizations", params={"location": "berl"}).json()["total"] == 1
    assert client.get("/api/organizations", params={"search": "nothing"}).json()["total"] == 0


def test_public_organization_detail(client, register_organization):
    org = register_organization(name="Acme")
    resp = client.get(f"/api/organizations/{org['id']}")
    assert resp.status_code == 200
    assert resp.json()["organization"]["name"] == "Acme"
    assert "password" not in resp.json()["organization"]

    assert client.get(f"/api/organizations/{ObjectId()}").status_code == 404
    assert client.get("/api/organizations/garbage").status_code == 404


def test_organization_partial_nested_update_keeps_stored_fields(client, register_organization):
    org = register_organization()
    client.put("/api/organizations/profile", headers=org["headers"], json={
        "location": {"city": "Berlin", "country": "Germany"},
        "culture": {"values": "trust", "benefits": "remote, equity", "workEnvironment": "hybrid"},
        "socialMedia": {"linkedin": "acme", "twitter": "@acme"},
    })

    resp = client.put("/api/organizations/profile", headers=org["headers"], json={
        "location": {"city": "Munich"},
        "culture": {"values": "speed"},
        "socialMedia": {"twitter": "@acme_hq"},
    })
    assert resp.status_code == 200
    updated = resp.json()["organization"]
    assert updated["location"] == {"city": "Munich", "country": "Germany"}
    assert updated["culture"] == {"values": ["speed"], "benefits": ["remote", "equity"], "workEnvironment": "hybrid"}
    assert updated["socialMedia"] == {"linkedin": "acme", "twitter": "@acme_hq"}


def test_preferences_salary_range_partial_update(client, register_student):
    student = register_student()
    client.put("/api/students/preferences", headers=student["headers"],
               json={"salaryRange": {"min": 100, "max": 900}})

    resp = client.put("/api/students/preferences", headers=student["headers"], json={"salaryRange": {"max": 1200}})
    assert resp.status_code == 200
    assert resp.json()["preferences"]["salaryRange"] == {"min": 100, "max": 1200}


def test_profile_picture_reference(client, db, register_student, register_organization):
    student = register_student()
    resp = client.put("/api/students/profile-picture", headers=student["headers"],
                      json={"profilePicture": "avatars/ada.png"})
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Profile picture uploaded successfully",
        "profilePicture": "avatars/ada.png",
    }
    assert db.students.find_one({"_id": ObjectId(student["id"])})["profilePicture"] == "avatars/ada.png"

    assert client.put("/api/students/profile-picture", headers=student["headers"],
                      json={"profilePicture": "  "}).status_code == 400
    org = register_organization()
    assert client.put("/api/students/profile-picture", headers=org["headers"],
                      json={"profilePicture": "avatars/x.png"}).status_code == 403
