import hashlib
import logging
from pathlib import Path
from typing import Any

import requests

from .auth import SleepHQAuth
from .config import AppConfig
from .errors import UploadError

logger = logging.getLogger(__name__)

JSON_API = "application/vnd.api+json"
ZIP_CONTENT_TYPE = "application/x-zip-compressed"


def content_hash(path: Path, chunk_size: int = 1024 * 1024) -> str:
    """MD5 hex digest of the file, read in chunks."""
    md5 = hashlib.md5()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(chunk_size), b""):
            md5.update(chunk)
    return md5.hexdigest()


class SleepHQClient:
    """Uploads a dated archive to SleepHQ and asks for it to be processed.

    One upload is four calls: resolve the current team, create an import
    under it, post the file to the import, then trigger processing. Any
    failing step aborts the upload; nothing already created server-side is
    rolled back.
    """

    def __init__(self, config: AppConfig, auth: SleepHQAuth, session: requests.Session | None = None) -> None:
        self.config = config
        self.auth = auth
        self.session = session or requests.Session()
        self._token: str | None = None

    def _headers(self) -> dict:
        if self._token is None:
            self._token = self.auth.ensure_token()
        return {"Accept": JSON_API, "Authorization": f"Bearer {self._token}"}

    def _request(self, method: str, path: str, what: str, **kwargs) -> requests.Response:
        url = f"{self.config.api_url}{path}"
        try:
            resp = self.session.request(method, url, headers=self._headers(), timeout=self.config.request_timeout, **kwargs)
        except requests.RequestException as e:
            raise UploadError(f"{what} failed: {e}") from e
        if resp.status_code >= 400:
            raise UploadError(
                f"{what} failed with HTTP {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return resp

    @staticmethod
    def _json_data(resp: requests.Response, what: str) -> dict:
        try:
            payload = resp.json()
        except ValueError as e:
            raise UploadError(f"{what} returned invalid JSON: {e}", status_code=resp.status_code, body=resp.text) from e
        data = payload.get("data") if isinstance(payload, dict) else None
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _field(data: dict, name: str) -> Any:
        # JSON:API puts fields under "attributes"; some responses inline them.
        attributes = data.get("attributes")
        if isinstance(attributes, dict) and attributes.get(name) is not None:
            return attributes[name]
        return data.get(name)

    def get_team_id(self):
        resp = self._request("GET", "/me", "Team lookup")
        team_id = self._field(self._json_data(resp, "Team lookup"), "current_team_id")
        if team_id is None or team_id == "":
            raise UploadError("Failed to retrieve team ID", status_code=resp.status_code, body=resp.text)
        logger.info("Team ID: %s", team_id)
        return team_id

    def create_import(self, team_id):
        resp = self._request("POST", f"/teams/{team_id}/imports", "Import creation")
        import_id = self._field(self._json_data(resp, "Import creation"), "id")
        if import_id is None or import_id == "":
            raise UploadError("Failed to retrieve import ID", status_code=resp.status_code, body=resp.text)
        logger.info("Import ID: %s", import_id)
        return import_id

    def upload_file(self, import_id, archive_path: Path) -> requests.Response:
        logger.info("Uploading zip file...")
        data = {
            "name": archive_path.name,
            "path": str(archive_path),
            "content_hash": content_hash(archive_path),
        }
        with archive_path.open("rb") as fh:
            files = {"file": (archive_path.name, fh, ZIP_CONTENT_TYPE)}
            return self._request("POST", f"/imports/{import_id}/files", "Upload", data=data, files=files)

    def process_files(self, import_id) -> requests.Response:
        logger.info("Processing uploaded files...")
        return self._request("POST", f"/imports/{import_id}/process_files", "Process files")

    def upload(self, archive_path: Path) -> None:
        """Run the full upload sequence for `archive_path`; raises UploadError."""
        logger.info("Uploading and processing zip file...")
        self._token = self.auth.ensure_token()
        team_id = self.get_team_id()
        import_id = self.create_import(team_id)
        self.upload_file(import_id, archive_path)
        self.process_files(import_id)
        logger.info("Successfully uploaded and processed data from %s", archive_path.name)
