"""
Tests for /api/settings.

Merging is shallow: a section sent in a PATCH replaces the stored section.
"""


class TestGetSettings:
    def test_stored_settings(self, client):
        data = client.get("/api/settings?userId=usr_1a2b3c").json()["data"]
        assert data["userId"] == "usr_1a2b3c"
        assert data["theme"] == "dark"
        assert data["privacy"]["profileVisible"] is True
        assert data["preferences"] == {"itemsPerPage": 25, "defaultView": "grid"}

    def test_defaults_created_on_first_read(self, client, store):
        assert "usr_4d5e6f" not in store.settings
        data = client.get("/api/settings?userId=usr_4d5e6f").json()["data"]
        assert data["theme"] == "system"
        assert data["notifications"] == {"email": True, "push": False, "sms": False, "marketing": False}
        assert "usr_4d5e6f" in store.settings

    def test_single_section(self, client):
        data = client.get("/api/settings?userId=usr_1a2b3c&section=theme").json()["data"]
        assert data == {"theme": "dark"}

    def test_unknown_section_creates_nothing(self, client, store):
        resp = client.get("/api/settings?userId=usr_4d5e6f&section=colours")
        assert resp.status_code == 400
        assert "usr_4d5e6f" not in store.settings

    def test_user_required(self, client):
        assert client.get("/api/settings").status_code == 400

    def test_unknown_user(self, client):
        assert client.get("/api/settings?userId=usr_ghost").status_code == 404


class TestPatchSettings:
    def test_nested_section_replaced_wholesale(self, client, store):
        resp = client.patch("/api/settings", json={
            "userId": "usr_1a2b3c",
            "notifications": {"email": False},
        })
        assert resp.status_code == 200
        assert resp.json()["data"]["notifications"] == {"email": False}
        assert store.settings.get("usr_1a2b3c")["notifications"] == {"email": False}
        assert store.settings.get("usr_1a2b3c")["theme"] == "dark"

    def test_patch_without_stored_settings(self, client, store):
        resp = client.patch("/api/settings", json={"userId": "usr_4d5e6f", "theme": "light"})
        assert resp.json()["data"]["theme"] == "light"
        assert store.settings.get("usr_4d5e6f")["language"] == "en-US"

    def test_invalid_timezone(self, client):
        resp = client.patch("/api/settings", json={"userId": "usr_1a2b3c", "timezone": "Mars/Olympus"})
        assert resp.status_code == 400

    def test_invalid_theme(self, client):
        resp = client.patch("/api/settings", json={"userId": "usr_1a2b3c", "theme": "neon"})
        assert resp.status_code == 400

    def test_unknown_field(self, client):
        resp = client.patch("/api/settings", json={"userId": "usr_1a2b3c", "fontSize": 14})
        assert resp.status_code == 400

    def test_nothing_to_update(self, client):
        resp = client.patch("/api/settings", json={"userId": "usr_1a2b3c"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "No settings provided"


class TestReplaceSettings:
    def test_put_overlays_defaults(self, client, store):
        resp = client.put("/api/settings", json={
            "userId": "usr_1a2b3c",
            "settings": {"language": "fr-FR"},
        })
        data = resp.json()["data"]
        assert data["language"] == "fr-FR"
        assert data["theme"] == "system"
        assert data["preferences"] == {}
        assert store.settings.get("usr_1a2b3c")["timezone"] == "UTC"


class TestResetSettings:
    def test_reset_one_section(self, client):
        resp = client.delete("/api/settings?userId=usr_1a2b3c&section=theme")
        body = resp.json()
        assert body["data"]["theme"] == "system"
        assert body["data"]["timezone"] == "America/Los_Angeles"
        assert body["message"] == "theme settings reset to defaults"

    def test_reset_everything(self, client):
        data = client.delete("/api/settings?userId=usr_1a2b3c").json()["data"]
        assert data["timezone"] == "UTC"
        assert data["preferences"] == {}

    def test_no_stored_settings(self, client):
        assert client.delete("/api/settings?userId=usr_4d5e6f").status_code == 404

    def test_unknown_section(self, client):
        assert client.delete("/api/settings?userId=usr_1a2b3c&section=colours").status_code == 400
