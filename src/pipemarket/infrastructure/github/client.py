from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Callable

from pipemarket.core.config import GithubSettings
from pipemarket.core.errors import (
    AuthenticationError,
    ConfigurationError,
    SourceNotFoundError,
    TransientError,
    ValidationError,
)
from pipemarket.domain.models.user import GithubUser

logger = logging.getLogger(__name__)

Opener = Callable[..., Any]


class _GithubHttp:
    def __init__(self, settings: GithubSettings, opener: Opener | None = None) -> None:
        self.settings = settings
        self._opener = opener or urllib.request.urlopen

    def _read(self, request: urllib.request.Request) -> bytes:
        try:
            with self._opener(request, timeout=self.settings.timeout_seconds) as response:
                return response.read()
        except urllib.error.HTTPError as exc:
            # 4xx answers are definitive; the caller decides what they mean.
            if 400 <= exc.code < 500 and exc.code not in {408, 429}:
                raise
            endpoint = urllib.parse.urlsplit(request.full_url)._replace(query="").geturl()
            raise TransientError(f"GitHub request failed with HTTP {exc.code}: {endpoint}") from exc
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise TransientError(f"GitHub request failed: {exc}") from exc


class GithubIdentityProvider(_GithubHttp):
    """OAuth code exchange and user lookup against GitHub."""

    def exchange_code(self, code: str) -> str:
        if not self.settings.client_id or not self.settings.client_secret:
            raise ConfigurationError("GITHUB_CLIENT_ID and GITHUB_CLIENT_SECRET must be set for login")
        if not code or not code.strip():
            raise AuthenticationError("OAuth code is required")

        query = urllib.parse.urlencode(
            {
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "code": code.strip(),
            }
        )
        request = urllib.request.Request(
            f"{self.settings.oauth_base_url}/login/oauth/access_token?{query}",
            method="POST",
            headers={"Accept": "application/json"},
        )
        try:
            payload = _decode_json(self._read(request))
        except urllib.error.HTTPError as exc:
            raise AuthenticationError(f"OAuth code exchange rejected (HTTP {exc.code})") from exc

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            error = payload.get("error") if isinstance(payload, dict) else None
            raise AuthenticationError(f"OAuth code exchange failed: {error or 'no access token returned'}")
        return str(token)

    def lookup_user(self, access_token: str) -> GithubUser:
        request = urllib.request.Request(
            f"{self.settings.api_base_url}/user",
            method="GET",
            headers={
                "Accept": "application/json",
                "Authorization": f"token {access_token}",
            },
        )
        try:
            payload = _decode_json(self._read(request))
        except urllib.error.HTTPError as exc:
            raise AuthenticationError(f"GitHub user lookup rejected (HTTP {exc.code})") from exc

        if not isinstance(payload, dict) or "login" not in payload or "id" not in payload:
            raise TransientError("GitHub user lookup returned an unexpected payload")
        return GithubUser(username=str(payload["login"]), user_id=int(payload["id"]))


class GithubSourceFetcher(_GithubHttp):
    """Reads raw file content through the GitHub contents API."""

    def fetch_file(self, owner: str, repository: str, path: str) -> str:
        quoted_path = urllib.parse.quote(path.lstrip("/"))
        url = (
            f"{self.settings.api_base_url}/repos/"
            f"{urllib.parse.quote(owner)}/{urllib.parse.quote(repository)}/contents/{quoted_path}"
        )
        headers = {"Accept": "application/vnd.github.v3.raw"}
        if self.settings.api_token:
            headers["Authorization"] = f"token {self.settings.api_token}"
        request = urllib.request.Request(url, method="GET", headers=headers)

        logger.debug("Fetching %s/%s:%s", owner, repository, path)
        try:
            raw = self._read(request)
        except urllib.error.HTTPError as exc:
            if exc.code == 404:
                raise SourceNotFoundError(f"File not found on GitHub: {owner}/{repository}/{path}") from exc
            if exc.code == 403 and _rate_limited(exc):
                raise TransientError("GitHub API rate limit exceeded") from exc
            if exc.code in {401, 403}:
                raise ConfigurationError(
                    f"GitHub rejected the API token (HTTP {exc.code}); check GITHUB_TOKEN"
                ) from exc
            raise TransientError(f"GitHub request failed with HTTP {exc.code}: {url}") from exc
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError(f"Source file is not UTF-8 text: {owner}/{repository}/{path}") from exc


def _rate_limited(exc: urllib.error.HTTPError) -> bool:
    headers = exc.headers
    return headers is not None and headers.get("X-RateLimit-Remaining") == "0"


def _decode_json(raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise TransientError(f"GitHub returned invalid JSON: {exc}") from exc
