"""Upload the composite to Mux and return its public playback URL."""

import os
import time

import requests

from screen_narrator import config
from screen_narrator.constants import (
    HTTP_TIMEOUT_SECONDS,
    MUX_API_URL,
    MUX_POLL_ATTEMPTS,
    MUX_POLL_INTERVAL_SECONDS,
    MUX_STREAM_URL,
)
from screen_narrator.errors import UploadError


def _send(method, what: str, url: str, **kwargs):
    """Issue one HTTP call; transport failures become UploadError."""
    try:
        return method(url, timeout=HTTP_TIMEOUT_SECONDS, **kwargs)
    except requests.RequestException as e:
        raise UploadError(f"{what} failed: {e}", stage="upload") from e


class MuxUploader:
    """Direct-upload client: create upload, PUT the file, resolve asset -> playback id."""

    def __init__(self, token_id: str | None = None, token_secret: str | None = None,
                 http=None, sleep=time.sleep):
        token_id = token_id or config.require_env("MUX_TOKEN_ID")
        token_secret = token_secret or config.require_env("MUX_TOKEN_SECRET")
        self.http = http or requests.Session()
        self.http.auth = (token_id, token_secret)
        self.sleep = sleep

    def _json(self, response, what: str) -> dict:
        if response.status_code >= 400:
            raise UploadError(f"{what} failed ({response.status_code}): {response.text[:500]}", stage="upload")
        return response.json().get("data") or {}

    def create_upload(self) -> tuple[str, str]:
        response = _send(
            self.http.post, "Creating upload", f"{MUX_API_URL}/uploads",
            json={
                "new_asset_settings": {"playback_policy": ["public"], "video_quality": "basic"},
                "cors_origin": "*",
            },
        )
        data = self._json(response, "Creating upload")
        if not data.get("url") or not data.get("id"):
            raise UploadError(f"Error creating upload: {data}", stage="upload")
        return data["url"], data["id"]

    def wait_for_asset(self, upload_id: str) -> str:
        for _ in range(MUX_POLL_ATTEMPTS):
            self.sleep(MUX_POLL_INTERVAL_SECONDS)
            response = _send(self.http.get, "Checking upload", f"{MUX_API_URL}/uploads/{upload_id}")
            data = self._json(response, "Checking upload")
            if data.get("status") == "errored":
                raise UploadError(f"Mux rejected upload {upload_id}", stage="upload")
            if data.get("asset_id"):
                return data["asset_id"]
        raise UploadError(f"Upload {upload_id} has no asset after "
                          f"{MUX_POLL_ATTEMPTS * MUX_POLL_INTERVAL_SECONDS}s", stage="upload")

    def playback_id(self, asset_id: str) -> str:
        response = _send(self.http.get, "Reading asset", f"{MUX_API_URL}/assets/{asset_id}")
        data = self._json(response, "Reading asset")
        ids = data.get("playback_ids") or []
        if not ids:
            raise UploadError(f"Asset {asset_id} has no playback id", stage="upload")
        return ids[0]["id"]

    def upload(self, video_path: str) -> str:
        if not os.path.exists(video_path):
            raise UploadError(f"Video file not found: {video_path}", stage="upload")

        url, upload_id = self.create_upload()
        print("Uploading file...")
        with open(video_path, "rb") as f:
            # The signed URL carries its own auth
            response = _send(requests.put, "File upload", url, data=f, headers={"Content-Type": "video/mp4"})
        if response.status_code >= 400:
            raise UploadError(f"File upload failed ({response.status_code})", stage="upload")

        print("Waiting for processing...")
        asset_id = self.wait_for_asset(upload_id)
        playback = self.playback_id(asset_id)
        print(f"Asset ID: {asset_id}")
        print(f"Playback ID: {playback}")
        return f"{MUX_STREAM_URL}/{playback}"
