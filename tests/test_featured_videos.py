"""
Featured video administration, including multipart uploads to local storage.
"""

from __future__ import annotations

from packages.features.featured_videos.featured_videos import VIDEOS, parse_bool

URL = "/admin/featured-videos"


def _add(title, order=0, active=True):
    return VIDEOS.insert({"title": title, "video_url": f"https://cdn.test/{title}.mp4", "display_order": order,
                          "is_active": active})


class TestParseBool:
    def test_values(self):
        assert parse_bool("true") is True
        assert parse_bool("0") is False
        assert parse_bool("") is True
        assert parse_bool(None, default=False) is False


class TestPublicList:
    def test_active_sorted(self, client):
        _add("b", order=2)
        _add("a", order=1)
        _add("hidden", active=False)
        titles = [v["title"] for v in client.get("/api/featured-videos").json()]
        assert titles == ["a", "b"]

    def test_all_includes_inactive(self, client):
        _add("hidden", active=False)
        assert len(client.get("/api/featured-videos?all=true").json()) == 1


class TestAdminVideos:
    def test_requires_admin(self, client, user_headers):
        assert client.get(URL, headers=user_headers).status_code == 403

    def test_create_with_upload(self, client, admin_headers, data_dir):
        resp = client.post(
            URL,
            data={"title": "Swiss Alps", "display_order": "3", "is_active": "false"},
            files={
                "video": ("alps.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4"),
                "thumbnail": ("alps.jpg", b"\xff\xd8\xff", "image/jpeg"),
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        video = resp.json()["video"]
        assert video["display_order"] == 3
        assert video["is_active"] is False
        assert video["video_url"].startswith("http://testserver/uploads/homepage/videos/video-")
        assert video["video_url"].endswith(".mp4")

        key = video["thumbnail_url"].split("/uploads/", 1)[1]
        assert (data_dir / "uploads" / key).read_bytes() == b"\xff\xd8\xff"

    def test_create_with_url(self, client, admin_headers):
        resp = client.post(URL, data={"title": "Rome", "video_url": "https://cdn.test/rome.mp4"}, headers=admin_headers)
        assert resp.json()["video"]["video_url"] == "https://cdn.test/rome.mp4"

    def test_create_requires_title_and_video(self, client, admin_headers):
        assert client.post(URL, data={"video_url": "https://x"}, headers=admin_headers).status_code == 400
        resp = client.post(URL, data={"title": "No video"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Video file is required"}

    def test_rejects_non_media(self, client, admin_headers):
        resp = client.post(
            URL,
            data={"title": "Bad"},
            files={"video": ("notes.txt", b"hello", "text/plain")},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert VIDEOS.count() == 0

    def test_update_and_delete(self, client, admin_headers):
        row = _add("a")
        resp = client.put(f"{URL}/{row['id']}", json={"title": "Renamed", "is_active": False}, headers=admin_headers)
        assert resp.json()["video"]["title"] == "Renamed"
        assert client.put(f"{URL}/nope", json={"title": "x"}, headers=admin_headers).status_code == 404

        assert client.delete(f"{URL}/{row['id']}", headers=admin_headers).json()["success"] is True
        assert client.delete(f"{URL}/{row['id']}", headers=admin_headers).status_code == 404

    def test_admin_list_includes_inactive(self, client, admin_headers):
        _add("hidden", active=False)
        assert len(client.get(URL, headers=admin_headers).json()["videos"]) == 1
