from __future__ import annotations
import json
import time
from functools import lru_cache
from typing import Any
from urllib.parse import quote

import httpx
import jwt
import structlog

from portal.config import settings
from portal.errors import SheetsExportError
from portal.schemas.submission import Submission

log = structlog.get_logger()

TOKEN_URL = "https://oauth2.googleapis.com/token"
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
APPEND_URL = "https://sheets.googleapis.com/v4/spreadsheets/{sheet_id}/values/{range}:append"

# Must match the header row of the target sheet.
SHEET_COLUMNS = (
    "submittedAt", "competitionName", "name", "email", "phone", "university",
    "registrationId", "instagramHandle", "school", "postLink", "redditPostLink",
    "fileName", "fileUrl", "isWinner", "rank", "refSource",
)


def submission_row(s: Submission) -> list[str]:
    return [
        s.submitted_at.isoformat(),
        s.competition_name,
        s.name or "",
        s.email or "",
        s.phone or "",
        s.university or "",
        s.registration_id or "",
        s.instagram_handle or "",
        s.school or "",
        s.post_link or "",
        s.reddit_post_link or "",
        s.file_name or "",
        s.file_url or "",
        "true" if s.is_winner else "false",
        str(s.rank) if s.rank else "",
        s.ref_source or "Direct",
    ]


class SheetsExporter:
    """Appends rows to a Google Sheet with a service-account credential."""

    def __init__(
        self,
        credentials: dict[str, Any],
        sheet_id: str,
        sheet_range: str = "Sheet1",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        try:
            self.client_email = credentials["client_email"]
            self.private_key = credentials["private_key"].replace("\\n", "\n")
        except (KeyError, AttributeError) as e:
            raise SheetsExportError("Service account credentials need client_email and private_key") from e
        self.sheet_id = sheet_id
        self.sheet_range = sheet_range
        self.timeout = timeout
        self._transport = transport
        self._token: str | None = None
        self._token_expires_at = 0.0

    @classmethod
    def from_settings(cls) -> "SheetsExporter | None":
        if not settings.google_sheets_credentials or not settings.google_sheet_id:
            log.warning("sheets_not_configured",
                        has_credentials=bool(settings.google_sheets_credentials),
                        has_sheet_id=bool(settings.google_sheet_id))
            return None
        try:
            creds = json.loads(settings.google_sheets_credentials)
        except json.JSONDecodeError:
            log.error("sheets_credentials_malformed")
            return None
        return cls(creds, settings.google_sheet_id, settings.google_sheet_range, settings.sheets_timeout_seconds)

    def _assertion(self, now: int) -> str:
        claims = {
            "iss": self.client_email,
            "scope": SHEETS_SCOPE,
            "aud": TOKEN_URL,
            "iat": now,
            "exp": now + 3600,
        }
        return jwt.encode(claims, self.private_key, algorithm="RS256")

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        now = int(time.time())
        # refresh a minute early
        if self._token and now < self._token_expires_at - 60:
            return self._token
        r = await client.post(
            TOKEN_URL,
            data={"grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer", "assertion": self._assertion(now)},
        )
        if r.status_code != 200:
            raise SheetsExportError(f"Token request failed ({r.status_code}): {r.text[:200]}")
        body = r.json()
        if not isinstance(body, dict) or not isinstance(body.get("access_token"), str):
            raise SheetsExportError("Token response carried no access_token")
        self._token = body["access_token"]
        self._token_expires_at = now + int(body.get("expires_in", 3600))
        return self._token

    async def append_row(self, row: list[str]) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            token = await self._access_token(client)
            url = APPEND_URL.format(sheet_id=quote(self.sheet_id.strip(), safe=""), range=quote(self.sheet_range, safe=""))
            r = await client.post(
                url,
                params={"valueInputOption": "USER_ENTERED"},
                headers={"Authorization": f"Bearer {token}"},
                json={"values": [row]},
            )
            if r.status_code != 200:
                raise SheetsExportError(f"Append failed ({r.status_code}): {r.text[:200]}")

    async def append_submission(self, s: Submission) -> None:
        await self.append_row(submission_row(s))


@lru_cache(maxsize=1)
def _default_exporter() -> SheetsExporter | None:
    try:
        return SheetsExporter.from_settings()
    except SheetsExportError as e:
        log.error("sheets_credentials_invalid", error=str(e))
        return None


def get_sheets_exporter() -> SheetsExporter | None:
    return _default_exporter()


async def mirror_submission(exporter: SheetsExporter | None, s: Submission) -> bool:
    """Best-effort copy to the sheet; the store write already succeeded, so failures are only logged."""
    if exporter is None:
        log.warning("sheets_mirror_skipped", submission_id=s.id)
        return False
    try:
        await exporter.append_submission(s)
    except SheetsExportError as e:
        log.error("sheets_mirror_failed", submission_id=s.id, error=str(e))
        return False
    except Exception as e:
        # the submission is already stored; nothing from the sink may fail the request
        log.error("sheets_mirror_failed", submission_id=s.id, error=repr(e), exc_info=e)
        return False
    log.info("sheets_mirror_ok", submission_id=s.id)
    return True
