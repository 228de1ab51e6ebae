"""End-to-end HTTP flow through the API routers and response envelopes."""

from conftest import ADMIN_EMAIL, auth, contest_payload


def json_payload(**overrides) -> dict:
    payload = contest_payload(**overrides)
    payload["deadline"] = payload["deadline"].isoformat()
    return payload


class TestUserRoutes:
    async def test_register_then_read_back(self, client) -> None:
        body = {"email": "erin@example.com", "name": "Erin"}
        response = await client.post("/api/users", json=body, headers=auth("erin@example.com"))
        assert response.status_code == 201
        assert response.json()["data"]["user"]["role"] == "user"

        again = await client.post("/api/users", json=body, headers=auth("erin@example.com"))
        assert again.status_code == 200
        assert again.json()["data"]["created"] is False

        me = await client.get("/api/users/me", headers=auth("erin@example.com"))
        assert me.json()["data"]["user"]["email"] == "erin@example.com"

    async def test_register_other_email_forbidden(self, client) -> None:
        response = await client.post(
            "/api/users",
            json={"email": "someone@example.com", "name": "Someone"},
            headers=auth("erin@example.com"),
        )
        assert response.status_code == 403

    async def test_role_lookup(self, client, users) -> None:
        own = await client.get("/api/users/bob@example.com/role", headers=auth("bob@example.com"))
        assert own.json()["data"]["role"] == "user"

        other = await client.get("/api/users/alice@example.com/role", headers=auth("bob@example.com"))
        assert other.status_code == 403

        admin = await client.get("/api/users/alice@example.com/role", headers=auth(ADMIN_EMAIL))
        assert admin.json()["data"]["role"] == "creator"

    async def test_admin_promotes_user(self, client, users) -> None:
        response = await client.patch(
            "/api/admin/users/bob@example.com/role",
            json={"role": "creator"},
            headers=auth(ADMIN_EMAIL),
        )
        assert response.status_code == 200

        listing = await client.get("/api/admin/users?role=creator", headers=auth(ADMIN_EMAIL))
        emails = sorted(u["email"] for u in listing.json()["data"]["users"])
        assert emails == ["alice@example.com", "bob@example.com", "dave@example.com"]


class TestContestFlow:
    async def test_full_flow(self, client, users, gateway) -> None:
        created = await client.post("/api/creator/contests", json=json_payload(), headers=auth("alice@example.com"))
        assert created.status_code == 201
        contest_id = created.json()["data"]["contest_id"]
        assert created.json()["data"]["contest"]["status"] == "pending"

        listing = await client.get("/api/contests")
        assert listing.json()["data"]["total"] == 0

        approved = await client.patch(
            f"/api/admin/contests/{contest_id}/status",
            json={"status": "approved"},
            headers=auth(ADMIN_EMAIL),
        )
        assert approved.status_code == 200

        checkout = await client.post(
            "/api/payments/checkout-session",
            json={"contest_id": contest_id},
            headers=auth("bob@example.com"),
        )
        assert checkout.status_code == 201
        session_id = checkout.json()["data"]["session_id"]
        assert checkout.json()["data"]["url"] == f"https://checkout.test/{session_id}"

        gateway.pay(session_id)
        completed = await client.post(
            "/api/payments/complete", json={"session_id": session_id}, headers=auth("bob@example.com")
        )
        assert completed.status_code == 200
        assert completed.json()["message"] == "Payment recorded successfully"

        replay = await client.post(
            "/api/payments/complete", json={"session_id": session_id}, headers=auth("bob@example.com")
        )
        assert replay.json()["message"] == "Payment already recorded"

        status = await client.get(f"/api/payments/status/{contest_id}", headers=auth("bob@example.com"))
        assert status.json()["data"]["paid"] is True

        submitted = await client.post(
            f"/api/contests/{contest_id}/submission",
            json={"info": "Here is my logo", "link": "https://files.test/logo.png"},
            headers=auth("bob@example.com"),
        )
        assert submitted.status_code == 200

        submissions = await client.get(
            f"/api/creator/contests/{contest_id}/submissions", headers=auth("alice@example.com")
        )
        assert submissions.json()["data"]["total"] == 1

        declared = await client.post(
            f"/api/creator/contests/{contest_id}/winner",
            json={"participant_email": "bob@example.com"},
            headers=auth("alice@example.com"),
        )
        assert declared.json()["data"]["declared"] is True

        again = await client.post(
            f"/api/creator/contests/{contest_id}/winner",
            json={"participant_email": "bob@example.com"},
            headers=auth("alice@example.com"),
        )
        assert again.json()["message"] == "Winner already declared"

        detail = await client.get(f"/api/contests/{contest_id}")
        contest = detail.json()["data"]["contest"]
        assert contest["id"] == contest_id
        assert contest["participants_count"] == 1
        assert contest["winner"]["email"] == "bob@example.com"
        assert "transaction_id" not in contest["participants"][0]

        leaderboard = await client.get("/api/leaderboard")
        assert leaderboard.json()["data"]["leaderboard"][0]["email"] == "bob@example.com"

        wins = await client.get("/api/participations/me/wins", headers=auth("bob@example.com"))
        assert wins.json()["data"]["total"] == 1

    async def test_public_listing_filters(self, client, users, contest_factory) -> None:
        await contest_factory(users["alice"], approve=True, contest_type="Article Writing")
        await contest_factory(users["alice"], approve=True, contest_type="Image Design")

        response = await client.get("/api/contests?type=image design&sort=participants")
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["total_pages"] == 1

        types = await client.get("/api/contests/types")
        assert types.json()["data"]["types"] == ["Article Writing", "Image Design"]

        search = await client.get("/api/contests/search?type=writ")
        assert search.json()["data"]["total"] == 1

    async def test_edit_approved_contest_conflict(self, client, users, contest_factory) -> None:
        contest_id = await contest_factory(users["alice"], approve=True)
        response = await client.patch(
            f"/api/creator/contests/{contest_id}",
            json={"name": "Renamed Contest"},
            headers=auth("alice@example.com"),
        )
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"


class TestEnvelopes:
    async def test_request_validation(self, client, users) -> None:
        response = await client.post(
            "/api/creator/contests",
            json=json_payload(entry_price=-5),
            headers=auth("alice@example.com"),
        )
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "validation_error"
        assert "entry_price" in body["errors"]

    async def test_malformed_contest_id(self, client) -> None:
        response = await client.get("/api/contests/not-an-id")
        assert response.status_code == 422
        assert response.json()["message"] == "Invalid contest id"

    async def test_unknown_contest(self, client) -> None:
        response = await client.get("/api/contests/64b7f0c2a1b2c3d4e5f60718")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Contest not found", "error": "not_found"}

    async def test_submission_before_payment(self, client, users, contest_factory) -> None:
        contest_id = await contest_factory(users["alice"], approve=True)
        response = await client.post(
            f"/api/contests/{contest_id}/submission",
            json={"info": "Early entry"},
            headers=auth("bob@example.com"),
        )
        assert response.status_code == 404

    async def test_health(self, client) -> None:
        response = await client.get("/health")
        assert response.json() == {"status": "healthy"}
