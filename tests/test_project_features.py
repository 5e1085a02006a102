from bson import ObjectId

import database


def make_project(client_user, **overrides):
    data = {"client_id": client_user["_id"], "title": "Loyalty app", "budget": 15000000, "status": "open"}
    data.update(overrides)
    return database.create_document("project", data)


def make_feature(project, freelancer, **overrides):
    data = {"project_id": project["_id"], "freelancer_id": freelancer["_id"], "status": "pending", "is_paid": False}
    data.update(overrides)
    return database.create_document("projectfeature", data)


def test_apply_to_project(client, db, freelancer, client_user, freelancer_headers):
    project = make_project(client_user)
    res = client.post("/api/projectfeatures", headers=freelancer_headers, json={"project_id": str(project["_id"])})
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["freelancer_id"] == str(freelancer["_id"])
    assert data["status"] == "pending"
    assert data["is_paid"] is False
    stored = db["projectfeature"].find_one({})
    assert stored["project_id"] == project["_id"]


def test_apply_twice_is_409(client, freelancer, client_user, freelancer_headers):
    project = make_project(client_user)
    make_feature(project, freelancer)
    res = client.post("/api/projectfeatures", headers=freelancer_headers, json={"project_id": str(project["_id"])})
    assert res.status_code == 409
    assert res.json()["message"] == "Freelancer already applied to this project"


def test_apply_to_missing_project(client, freelancer_headers):
    res = client.post("/api/projectfeatures", headers=freelancer_headers, json={"project_id": str(ObjectId())})
    assert res.status_code == 404
    assert res.json()["message"] == "Project not found"


def test_apply_with_bad_project_id(client, freelancer_headers):
    res = client.post("/api/projectfeatures", headers=freelancer_headers, json={"project_id": "123"})
    assert res.status_code == 400
    assert "project_id" in res.json()["errors"]


def test_list_with_joins_and_filters(client, freelancer, client_user, freelancer_headers):
    project = make_project(client_user)
    other = make_project(client_user, title="Other")
    make_feature(project, freelancer)
    make_feature(other, freelancer)

    res = client.get("/api/projectfeatures", headers=freelancer_headers)
    features = res.json()["data"]
    assert len(features) == 2
    assert {f["project"]["title"] for f in features} == {"Loyalty app", "Other"}
    assert all(f["freelancer"]["email"] == "budi@example.com" for f in features)
    assert all("password" not in f["freelancer"] for f in features)

    res = client.get(f"/api/projectfeatures?project_id={project['_id']}", headers=freelancer_headers)
    assert [f["project"]["title"] for f in res.json()["data"]] == ["Loyalty app"]

    res = client.get(f"/api/projectfeatures?freelancer_id={client_user['_id']}", headers=freelancer_headers)
    assert res.json()["data"] == []


def test_get_update_patch_delete(client, freelancer, client_user, freelancer_headers):
    feature = make_feature(make_project(client_user), freelancer)
    url = f"/api/projectfeatures/{feature['_id']}"

    res = client.get(url, headers=freelancer_headers)
    assert res.json()["data"]["project"]["title"] == "Loyalty app"

    res = client.put(url, headers=freelancer_headers, json={"is_paid": True})
    assert res.json()["data"]["is_paid"] is True
    assert res.json()["data"]["status"] == "pending"

    res = client.patch(url, headers=freelancer_headers, json={"status": "in progress"})
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "in progress"
    assert res.json()["data"]["is_paid"] is True

    res = client.patch(url, headers=freelancer_headers, json={"status": "done"})
    assert res.status_code == 400

    assert client.delete(url, headers=freelancer_headers).status_code == 200
    assert client.get(url, headers=freelancer_headers).status_code == 404
    assert client.patch(url, headers=freelancer_headers, json={"status": "completed"}).status_code == 404
