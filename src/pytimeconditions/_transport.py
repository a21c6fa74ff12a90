"""AstDB access over the Asterisk HTTP manager interface (``/rawman``)."""

from __future__ import annotations

import logging
from http.cookies import SimpleCookie
from typing import Any

import aiohttp

from pytimeconditions.config import TimeConditionsConfig
from pytimeconditions.exceptions import TimeConditionStoreError

_logger = logging.getLogger(__name__)

_AUTH_REQUIRED_MESSAGES = ("authentication required", "permission denied")


def parse_rawman(text: str) -> list[dict[str, str]]:
    """Split a rawman reply into ``Key: Value`` blocks.

    Blocks are separated by blank lines; the first block carries the
    ``Response`` header and any following ones are events.
    """
    blocks: list[dict[str, str]] = []
    current: dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip():
            if current:
                blocks.append(current)
                current = {}
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        current[key.strip()] = value[1:] if value.startswith(" ") else value
    if current:
        blocks.append(current)
    return blocks


def _is_success(block: dict[str, str]) -> bool:
    return block.get("Response", "").lower() == "success"


def _is_not_found(block: dict[str, str]) -> bool:
    return "not found" in block.get("Message", "").lower()


def _needs_login(block: dict[str, str]) -> bool:
    message = block.get("Message", "").lower()
    return any(marker in message for marker in _AUTH_REQUIRED_MESSAGES)


class AmiHttpStore:
    """Key-value store backed by Asterisk's AstDB.

    Implements :class:`~pytimeconditions._store.KeyValueStore` using the
    ``DBGet``/``DBPut``/``DBDel``/``DBGetTree`` manager actions.  Logs in
    lazily and once more when the manager reports an expired session.
    """

    def __init__(
        self,
        config: TimeConditionsConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session
        self._cookies: dict[str, str] = {}
        self._cookie_header: str = ""
        self._authenticated = False

    def _update_cookies(self, headers: Any) -> None:
        """Keep the ``mansession_id`` cookie across requests."""
        raw_cookies = headers.getall("Set-Cookie", [])
        changed = False
        for raw in raw_cookies:
            cookie: SimpleCookie = SimpleCookie()
            cookie.load(raw)
            for key, morsel in cookie.items():
                value = morsel.value
                if self._cookies.get(key) != value:
                    self._cookies[key] = value
                    changed = True

        if changed:
            self._cookie_header = "; ".join(f"{k}={v}" for k, v in self._cookies.items())

    async def _request(self, action: str, **params: str) -> list[dict[str, str]]:
        url = f"{self._config.ami_url.rstrip('/')}/rawman"
        query = {"action": action, **params}
        headers: dict[str, str] = {}
        if self._cookie_header:
            headers["cookie"] = self._cookie_header

        _logger.debug("AMI %s %s", action, params.get("Family", ""))

        try:
            async with self._http.get(url, params=query, headers=headers) as resp:
                self._update_cookies(resp.headers)
                text = await resp.text()
                if resp.status != 200:
                    raise TimeConditionStoreError(
                        f"HTTP {resp.status} from AMI {action}: {text[:200]}",
                        action=action,
                        status_code=resp.status,
                    )
        except TimeConditionStoreError:
            raise
        except aiohttp.ClientError as exc:
            raise TimeConditionStoreError(f"AMI {action} failed: {exc}", action=action) from exc

        blocks = parse_rawman(text)
        if not blocks:
            raise TimeConditionStoreError(f"Empty reply to AMI {action}", action=action)
        return blocks

    async def login(self) -> None:
        blocks = await self._request(
            "Login",
            Username=self._config.ami_username,
            Secret=self._config.ami_secret,
        )
        if not _is_success(blocks[0]):
            raise TimeConditionStoreError(
                f"AMI login rejected: {blocks[0].get('Message', '')}",
                action="Login",
            )
        self._authenticated = True

    async def _action(self, action: str, **params: str) -> list[dict[str, str]]:
        """Run an action, logging in first (and once more on session expiry)."""
        if not self._authenticated and self._config.ami_username:
            await self.login()
        blocks = await self._request(action, **params)
        if not _is_success(blocks[0]) and _needs_login(blocks[0]) and self._config.ami_username:
            self._authenticated = False
            await self.login()
            blocks = await self._request(action, **params)
        return blocks

    async def get(self, family: str, key: str) -> str | None:
        blocks = await self._action("DBGet", Family=family, Key=key)
        if not _is_success(blocks[0]):
            if _is_not_found(blocks[0]):
                return None
            raise TimeConditionStoreError(
                f"DBGet {family}/{key} failed: {blocks[0].get('Message', '')}",
                action="DBGet",
            )
        for block in blocks:
            if "Val" in block:
                return block["Val"]
        return None

    async def put(self, family: str, key: str, value: str) -> bool:
        blocks = await self._action("DBPut", Family=family, Key=key, Val=value)
        return _is_success(blocks[0])

    async def delete(self, family: str, key: str) -> bool:
        blocks = await self._action("DBDel", Family=family, Key=key)
        return _is_success(blocks[0])

    async def get_all(self, family: str) -> list[tuple[str, str]]:
        blocks = await self._action("DBGetTree", Family=family)
        if not _is_success(blocks[0]):
            if _is_not_found(blocks[0]):
                return []
            raise TimeConditionStoreError(
                f"DBGetTree {family} failed: {blocks[0].get('Message', '')}",
                action="DBGetTree",
            )

        prefix = f"/{family}/"
        entries: list[tuple[str, str]] = []
        for block in blocks[1:]:
            if "Key" not in block or "Val" not in block:
                continue
            key = block["Key"]
            # Some Asterisk versions report the full AstDB path.
            if key.startswith(prefix):
                key = key[len(prefix) :]
            entries.append((key, block["Val"]))
        return entries
