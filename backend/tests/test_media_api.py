"""
BlogSpace Backend — Media API Tests
=====================================

What:  End-to-end tests of /media and of the media cleanup done by post
       deletion and avatar replacement.
How:   httpx AsyncClient over ASGITransport; files land in the test
       STORAGE_ROOT and are fetched back through their served URL.

What we test:
    ✅ Uploaded files are stored under the uploader's id
    ✅ Only the uploader may DELETE a file (others get 403, file survives)
    ✅ Deleting a post removes its author's own media only
    ✅ Replacing an avatar removes the previous own avatar file only
"""

import pytest

from conftest import API, auth_header


async def _upload(client, token, png_bytes):
    response = await client.post(
        f"{API}/media/upload-image",
        files={"file": ("a.png", png_bytes, "image/png")},
        headers=auth_header(token),
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestMediaOwnership:

    @pytest.mark.asyncio
    async def test_upload_is_stored_under_uploader(self, test_client, make_user, png_bytes):
        alice = await make_user("alice")
        asset = await _upload(test_client, alice["token"], png_bytes)

        assert asset["publicId"].split("/")[0] == alice["user"]["id"]
        assert asset["type"] == "image"
        served = await test_client.get(asset["url"])
        assert served.status_code == 200
        assert served.content == png_bytes

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, test_client, make_user, png_bytes):
        alice, bob = await make_user("alice"), await make_user("bob")
        asset = await _upload(test_client, alice["token"], png_bytes)

        response = await test_client.delete(
            f"{API}/media/{asset['publicId']}", headers=auth_header(bob["token"])
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to delete this file"
        assert (await test_client.get(asset["url"])).status_code == 200

    @pytest.mark.asyncio
    async def test_uploader_can_delete(self, test_client, make_user, png_bytes):
        alice = await make_user("alice")
        asset = await _upload(test_client, alice["token"], png_bytes)

        response = await test_client.delete(
            f"{API}/media/{asset['publicId']}", headers=auth_header(alice["token"])
        )

        assert response.status_code == 200
        assert response.json()["message"] == "File deleted successfully"
        assert (await test_client.get(asset["url"])).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_requires_auth(self, test_client, make_user, png_bytes):
        alice = await make_user("alice")
        asset = await _upload(test_client, alice["token"], png_bytes)

        response = await test_client.delete(f"{API}/media/{asset['publicId']}")

        assert response.status_code == 401
        assert (await test_client.get(asset["url"])).status_code == 200


class TestMediaCleanup:

    @pytest.mark.asyncio
    async def test_deleting_post_removes_own_media(self, test_client, make_user, make_post, png_bytes):
        alice = await make_user("alice")
        asset = await _upload(test_client, alice["token"], png_bytes)
        post = await make_post(alice["token"], media=asset)

        response = await test_client.delete(f"{API}/blogs/{post['id']}", headers=auth_header(alice["token"]))

        assert response.status_code == 200
        assert (await test_client.get(asset["url"])).status_code == 404

    @pytest.mark.asyncio
    async def test_deleting_post_keeps_other_users_media(self, test_client, make_user, make_post, png_bytes):
        alice, bob = await make_user("alice"), await make_user("bob")
        asset = await _upload(test_client, alice["token"], png_bytes)
        gallery = [{**asset, "placement": "inline"}]
        post = await make_post(bob["token"], media=asset, mediaGallery=gallery)

        response = await test_client.delete(f"{API}/blogs/{post['id']}", headers=auth_header(bob["token"]))

        assert response.status_code == 200
        assert (await test_client.get(asset["url"])).status_code == 200

    @pytest.mark.asyncio
    async def test_replacing_post_media_keeps_other_users_file(self, test_client, make_user, make_post, png_bytes):
        alice, bob = await make_user("alice"), await make_user("bob")
        asset = await _upload(test_client, alice["token"], png_bytes)
        post = await make_post(bob["token"], media=asset)

        response = await test_client.put(
            f"{API}/blogs/{post['id']}",
            json={"media": None},
            headers=auth_header(bob["token"]),
        )

        assert response.status_code == 200
        assert (await test_client.get(asset["url"])).status_code == 200

    @pytest.mark.asyncio
    async def test_replacing_avatar_removes_previous_file(self, test_client, make_user, png_bytes):
        alice = await make_user("alice")
        first = await test_client.put(
            f"{API}/users/profile",
            files={"avatar": ("one.png", png_bytes, "image/png")},
            headers=auth_header(alice["token"]),
        )
        old_avatar = first.json()["avatar"]

        second = await test_client.put(
            f"{API}/users/profile",
            files={"avatar": ("two.png", png_bytes, "image/png")},
            headers=auth_header(alice["token"]),
        )

        assert second.status_code == 200, second.text
        new_avatar = second.json()["avatar"]
        assert new_avatar["publicId"] != old_avatar["publicId"]
        assert (await test_client.get(old_avatar["url"])).status_code == 404
        assert (await test_client.get(new_avatar["url"])).status_code == 200

    @pytest.mark.asyncio
    async def test_replacing_borrowed_avatar_keeps_file(self, test_client, make_user, png_bytes):
        alice, bob = await make_user("alice"), await make_user("bob")
        asset = await _upload(test_client, alice["token"], png_bytes)
        borrowed = await test_client.put(
            f"{API}/users/profile", json={"avatar": asset}, headers=auth_header(bob["token"])
        )
        assert borrowed.status_code == 200, borrowed.text

        response = await test_client.put(
            f"{API}/users/profile",
            files={"avatar": ("mine.png", png_bytes, "image/png")},
            headers=auth_header(bob["token"]),
        )

        assert response.status_code == 200
        assert (await test_client.get(asset["url"])).status_code == 200
