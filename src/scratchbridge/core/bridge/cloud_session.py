"""Scratch login and cloud-variable session.

``ScratchCloudClient`` logs in over HTTP and hands out
``ScratchCloudSession`` objects. A session keeps one websocket to the
Scratch cloud-data server open on a background reader thread, caches the
latest value of every cloud variable it sees, and reports ``open`` /
``error`` / ``close`` through registered callbacks. Reads are served from
the cache; writes go straight to the socket.
"""

from __future__ import annotations

import json
import re
import threading
from typing import Any, Callable

import requests
from websockets.sync.client import connect as ws_connect

from scratchbridge.core.bridge.constants import (
    DEFAULT_SCRATCH_API_TIMEOUT_SEC,
    MAX_CHUNK_CHARS,
    SCRATCH_BASE_URL,
    SCRATCH_CLOUD_PREFIX,
    SCRATCH_CLOUD_URL,
    SCRATCH_LOGIN_URL,
    SCRATCH_SESSION_COOKIE,
    SCRATCH_USER_AGENT,
)
from scratchbridge.core.bridge.runtime_shared import _log_with_loguru

SESSION_EVENTS = ("open", "error", "close")


class CloudLoginError(RuntimeError):
    pass


class CloudSessionError(RuntimeError):
    pass


def cloud_var_name(name: str) -> str:
    return name if name.startswith(SCRATCH_CLOUD_PREFIX) else f"{SCRATCH_CLOUD_PREFIX}{name}"


def plain_var_name(name: str) -> str:
    return name[len(SCRATCH_CLOUD_PREFIX) :] if name.startswith(SCRATCH_CLOUD_PREFIX) else name


def extract_session_id(res: Any) -> str:
    cookies = getattr(res, "cookies", None)
    if cookies is not None:
        sid = cookies.get(SCRATCH_SESSION_COOKIE)
        if sid:
            return str(sid)
    header = str(res.headers.get("Set-Cookie", "") or "")
    m = re.search(rf'{SCRATCH_SESSION_COOKIE}="?([^";]+)"?', header)
    return m.group(1) if m else ""


def _login_headers() -> dict[str, str]:
    return {
        "x-csrftoken": "a",
        "x-requested-with": "XMLHttpRequest",
        "Cookie": "scratchcsrftoken=a;scratchlanguage=en;",
        "referer": SCRATCH_BASE_URL,
        "User-Agent": SCRATCH_USER_AGENT,
    }


def _login_failure_message(res: Any) -> str:
    try:
        body = res.json()
    except ValueError:
        return ""
    if isinstance(body, list) and body and isinstance(body[0], dict):
        if body[0].get("success") == 0:
            return str(body[0].get("msg") or "rejected")
    return ""


class ScratchCloudSession:
    def __init__(
        self,
        project_id: str,
        *,
        username: str,
        session_id: str,
        connect: Callable[..., Any] | None = None,
        cloud_url: str = SCRATCH_CLOUD_URL,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self.project_id = str(project_id)
        self.username = username
        self.session_id = session_id
        self.cloud_url = cloud_url
        self.connected = False
        self._connect = connect or ws_connect
        self._log_fn = log
        self._ws: Any | None = None
        self._reader: threading.Thread | None = None
        self._closing = False
        self._values: dict[str, str] = {}
        self._values_lock = threading.Lock()
        self._send_lock = threading.Lock()
        self._listeners: dict[str, list[Callable[..., None]]] = {event: [] for event in SESSION_EVENTS}

    def _log(self, message: str) -> None:
        if self._log_fn is not None:
            self._log_fn(message)
            return
        _log_with_loguru(message, log_path=None, component="cloud")

    def on(self, event: str, callback: Callable[..., None]) -> None:
        if event not in self._listeners:
            raise ValueError(f"unknown session event: {event}")
        self._listeners[event].append(callback)

    def _emit(self, event: str, *args: object) -> None:
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(*args)
            except Exception as exc:
                self._log(f"WARN: {event} listener failed: {exc}")

    def start(self) -> None:
        if self._reader is not None and self._reader.is_alive():
            return
        self._closing = False
        self._reader = threading.Thread(
            target=self.run_reader,
            name=f"scratch-cloud-{self.project_id}",
            daemon=True,
        )
        self._reader.start()

    def _handshake_message(self) -> str:
        return json.dumps({"method": "handshake", "user": self.username, "project_id": self.project_id}) + "\n"

    def _open_socket(self) -> Any:
        return self._connect(
            self.cloud_url,
            additional_headers={"Cookie": f"{SCRATCH_SESSION_COOKIE}={self.session_id};"},
            origin=SCRATCH_BASE_URL,
            user_agent_header=SCRATCH_USER_AGENT,
        )

    def run_reader(self) -> None:
        """Connect, handshake, then apply incoming updates until the socket ends."""
        try:
            ws = self._open_socket()
            self._ws = ws
            ws.send(self._handshake_message())
            self.connected = True
            self._emit("open")
            for message in ws:
                self.apply_message(message)
        except Exception as exc:
            self.connected = False
            if not self._closing:
                self._emit("error", exc)
            return
        self.connected = False
        if not self._closing:
            self._emit("close")

    def apply_message(self, message: str | bytes) -> None:
        text = message.decode("utf-8", errors="replace") if isinstance(message, bytes) else str(message)
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                self._log(f"WARN: unparsable cloud message: {line[:80]}")
                continue
            if not isinstance(event, dict) or event.get("method") != "set":
                continue
            name = plain_var_name(str(event.get("name") or ""))
            if not name:
                continue
            with self._values_lock:
                self._values[name] = str(event.get("value", ""))

    def get(self, name: str) -> str | None:
        with self._values_lock:
            return self._values.get(plain_var_name(name))

    def set(self, name: str, value: object) -> None:
        rendered = str(value)
        if not rendered.isascii() or not rendered.isdigit():
            raise CloudSessionError(f"cloud value for {name} must be numeric")
        if len(rendered) > MAX_CHUNK_CHARS:
            raise CloudSessionError(f"cloud value for {name} exceeds {MAX_CHUNK_CHARS} digits")
        ws = self._ws
        if ws is None or not self.connected:
            raise CloudSessionError(f"cloud session for project {self.project_id} is not connected")
        message = json.dumps(
            {
                "method": "set",
                "name": cloud_var_name(name),
                "value": rendered,
                "user": self.username,
                "project_id": self.project_id,
            }
        )
        try:
            with self._send_lock:
                ws.send(message + "\n")
        except Exception as exc:
            raise CloudSessionError(f"cannot set {name}: {exc}") from exc
        with self._values_lock:
            self._values[plain_var_name(name)] = rendered

    def close(self, timeout_sec: float = 2.0) -> None:
        self._closing = True
        self.connected = False
        ws = self._ws
        self._ws = None
        if ws is not None:
            try:
                ws.close()
            except Exception as exc:
                self._log(f"WARN: cloud socket close failed: {exc}")
        reader = self._reader
        if reader is not None and reader.is_alive() and reader is not threading.current_thread():
            reader.join(timeout=timeout_sec)


class ScratchCloudClient:
    def __init__(
        self,
        *,
        http: Any | None = None,
        timeout_sec: float = DEFAULT_SCRATCH_API_TIMEOUT_SEC,
        connect: Callable[..., Any] | None = None,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self.http = http if http is not None else requests.Session()
        self.timeout_sec = timeout_sec
        self._connect = connect
        self._log_fn = log
        self.username = ""
        self.session_id = ""

    def login(self, username: str, password: str) -> None:
        try:
            res = self.http.post(
                SCRATCH_LOGIN_URL,
                json={"username": username, "password": password},
                headers=_login_headers(),
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            raise CloudLoginError(f"login request failed: {exc}") from exc
        if not res.ok:
            raise CloudLoginError(f"login rejected: HTTP {res.status_code}")
        reason = _login_failure_message(res)
        if reason:
            raise CloudLoginError(f"login rejected: {reason}")
        session_id = extract_session_id(res)
        if not session_id:
            raise CloudLoginError("login response carried no session cookie")
        self.username = username
        self.session_id = session_id

    def create_session(self, project_id: str, *, start: bool = True) -> ScratchCloudSession:
        if not self.session_id:
            raise CloudSessionError("login required before creating a cloud session")
        session = ScratchCloudSession(
            project_id,
            username=self.username,
            session_id=self.session_id,
            connect=self._connect,
            log=self._log_fn,
        )
        if start:
            session.start()
        return session


__all__ = [
    "CloudLoginError",
    "CloudSessionError",
    "SESSION_EVENTS",
    "ScratchCloudClient",
    "ScratchCloudSession",
    "cloud_var_name",
    "extract_session_id",
    "plain_var_name",
]
