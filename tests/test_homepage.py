from __future__ import annotations

from packages.features.homepage.homepage import SETTINGS, SettingsUpdate, update_settings

URL = "/api/homepage-settings"


class TestHomepageSettings:
    def test_defaults_created_on_first_read(self, client):
        assert not SETTINGS.exists()
        data = client.get(URL).json()
        assert data["statistics"]["travelers"] == 30000
        assert data["logo"] == {"url": "/logo.png", "height": 64}
        assert SETTINGS.exists()

    def test_requires_admin(self, client, user_headers):
        assert client.put(URL, json={}, headers=user_headers).status_code == 403

    def test_sections_merge(self, client, admin_headers):
        resp = client.put(URL, json={"hero": {"title": "Europe Awaits"}}, headers=admin_headers)
        settings = resp.json()["settings"]
        assert settings["hero"]["title"] == "Europe Awaits"
        assert settings["hero"]["ctaText"] == "Explore Tours"
        assert settings["statistics"]["packages"] == 75

    def test_lists_replace_and_get_ids(self, client, admin_headers):
        body = {
            "features": [{"title": "Expert guides", "icon": "star"}],
            "testimonials": [{"id": "keep-me", "name": "Ana", "rating": 4, "text": "Great"}],
        }
        settings = client.put(URL, json=body, headers=admin_headers).json()["settings"]
        assert settings["features"][0]["id"].startswith("feat_")
        assert settings["testimonials"][0]["id"] == "keep-me"

        settings = client.put(URL, json={"features": []}, headers=admin_headers).json()["settings"]
        assert settings["features"] == []
        assert len(settings["testimonials"]) == 1

    def test_testimonial_rating_range(self, client, admin_headers):
        body = {"testimonials": [{"name": "Ana", "rating": 9}]}
        assert client.put(URL, json=body, headers=admin_headers).status_code == 400

    def test_update_fills_sections_of_older_files(self):
        SETTINGS.path.parent.mkdir(parents=True, exist_ok=True)
        SETTINGS.path.write_text('{"hero": {"title": "Old"}}')
        settings = update_settings(SettingsUpdate(logo={"height": 48}))
        assert settings["hero"]["title"] == "Old"
        assert settings["logo"] == {"url": "/logo.png", "height": 48}
        assert SETTINGS.load()["statistics"]["travelers"] == 30000
