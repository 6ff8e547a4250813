def _pet(c, name="Rex"):
    return c.post("/api/pets", json={"name": name, "species": "dog"}).json["id"]


def test_expenses_gated_by_feature(user_client):
    r = user_client.get("/api/expenses")
    assert r.status_code == 403
    assert r.json["error"] == "Feature 'expenses' is not enabled"


def test_expenses_require_login(client, enable_features):
    enable_features("expenses")
    assert client.get("/api/expenses").status_code == 401


def test_per_user_override_unlocks_expenses(admin_client, user_client, other_client, user_ids):
    admin_client.post(
        "/api/features", json={"featureName": "expenses", "enabled": True, "userId": user_ids["user@example.com"]}
    )
    assert user_client.get("/api/expenses").status_code == 200
    assert other_client.get("/api/expenses").status_code == 403


def test_create_list_delete(user_client, enable_features):
    enable_features("expenses")
    pet_id = _pet(user_client)
    r = user_client.post(
        "/api/expenses",
        json={"title": "Kibble", "amount": "42.50", "category": "food", "date": "2026-03-01", "petId": pet_id},
    )
    assert r.status_code == 201
    assert r.json["amount"] == 42.5
    assert r.json["pet"]["name"] == "Rex"
    expense_id = r.json["id"]

    user_client.post("/api/expenses", json={"title": "Checkup", "amount": 80, "category": "vet", "date": "2026-03-15"})
    rows = user_client.get("/api/expenses").json
    assert [e["title"] for e in rows] == ["Checkup", "Kibble"]

    assert user_client.delete(f"/api/expenses/{expense_id}").status_code == 200
    assert len(user_client.get("/api/expenses").json) == 1


def test_create_validation(user_client, enable_features):
    enable_features("expenses")
    r = user_client.post("/api/expenses", json={"title": "", "amount": -1, "category": "yachts"})
    assert r.status_code == 400
    assert len(r.json["errors"]) == 4


def test_pet_must_belong_to_user(user_client, other_client, enable_features):
    enable_features("expenses")
    pet_id = _pet(other_client)
    r = user_client.post(
        "/api/expenses",
        json={"title": "Toy", "amount": 5, "category": "toys", "date": "2026-03-01", "petId": pet_id},
    )
    assert r.status_code == 404


def test_cannot_delete_someone_elses_expense(user_client, other_client, enable_features):
    enable_features("expenses")
    r = other_client.post("/api/expenses", json={"title": "Toy", "amount": 5, "category": "toys", "date": "2026-03-01"})
    assert user_client.delete(f"/api/expenses/{r.json['id']}").status_code == 404


def test_summary(user_client, enable_features):
    enable_features("expenses")
    for title, amount, category, day in (
        ("A", 10, "food", "2026-02-10"),
        ("B", 15.5, "food", "2026-03-01"),
        ("C", 100, "vet", "2026-03-05"),
    ):
        user_client.post("/api/expenses", json={"title": title, "amount": amount, "category": category, "date": day})
    r = user_client.get("/api/expenses/summary")
    assert r.json["total"] == 125.5
    assert r.json["count"] == 3
    assert r.json["byCategory"] == {"food": 25.5, "vet": 100.0}
    assert r.json["byMonth"] == {"2026-02": 10.0, "2026-03": 115.5}
