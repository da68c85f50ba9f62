"Bridge service orchestration."
from __future__ import annotations

import enum
import signal
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from scratchbridge.core.bridge import service_utils as _service_utils
from scratchbridge.core.bridge.chunker import split_numeric_string_into_chunks, transmission_order
from scratchbridge.core.bridge.cloud_session import (
    CloudLoginError,
    CloudSessionError,
    ScratchCloudClient,
)
from scratchbridge.core.bridge.codec import decode_text, encode_text
from scratchbridge.core.bridge.constants import (
    QUEUE_ACKNOWLEDGED,
    QUEUE_EMPTY,
    QUEUE_ID_VAR,
    QUEUE_SENTINELS,
    REQUEST_VAR,
)
from scratchbridge.core.bridge.generator import GeminiAnswerGenerator
from scratchbridge.core.bridge.runtime_shared import _log_with_loguru
from scratchbridge.core.bridge.service_config import BridgeServiceConfig


class BridgeState(enum.Enum):
    DISCONNECTED = "disconnected"
    IDLE = "idle"
    PROCESSING = "processing"
    PUBLISHING = "publishing"


@dataclass(slots=True)
class BridgeContext:
    connected: bool = False
    last_queue_id: Optional[str] = None
    state: BridgeState = BridgeState.DISCONNECTED
    handled_requests: int = 0
    skipped_requests: int = 0


def is_new_request(queue_id: str, last_queue_id: Optional[str]) -> bool:
    return queue_id != last_queue_id and queue_id not in QUEUE_SENTINELS


class BridgeService:
    def __init__(
        self,
        config: BridgeServiceConfig,
        *,
        cloud_client: Any | None = None,
        generator: Any | None = None,
        sleep: Callable[[float], None] = time.sleep,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self.config = config
        self.context = BridgeContext()
        self.session: Any | None = None
        self.stop_requested = False
        self._sleep = sleep
        self._log_fn = log
        self._log_path: Path | None = None
        self.cloud_client = cloud_client or ScratchCloudClient(
            timeout_sec=config.scratch_api_timeout_sec,
            log=self._log,
        )
        self.generator = generator or GeminiAnswerGenerator(
            config.gemini_api_key,
            model=config.gemini_model,
            timeout_sec=config.gemini_api_timeout_sec,
            log=self._log,
        )

    def _daily_log_path(self) -> Path:
        return self.config.logs_dir / f"bridge-{datetime.now().strftime('%Y-%m-%d')}.log"

    def _log(self, message: str) -> None:
        if self._log_fn is not None:
            self._log_fn(message)
            return
        log_path = self._daily_log_path()
        rolled_over = self._log_path is not None and self._log_path != log_path
        self._log_path = log_path
        _log_with_loguru(message, log_path=log_path, component="bridge")
        if rolled_over:
            self._cleanup_logs()

    def _cleanup_logs(self) -> None:
        for path in _service_utils.expired_log_files(self.config.logs_dir, self.config.log_retention_days):
            try:
                path.unlink()
            except OSError as exc:
                self._log(f"WARN: cannot remove old log {path.name}: {exc}")

    def _handle_signal(self, signum: int, _frame: object) -> None:
        self._log(f"Signal received: {signum}")
        self.stop_requested = True

    def _on_session_open(self, *_args: object) -> None:
        self._log("Connected!")
        self.context.connected = True
        if self.context.state is BridgeState.DISCONNECTED:
            self.context.state = BridgeState.IDLE

    def _on_session_error(self, exc: object = None) -> None:
        self._log(f"ERROR: Connection error: {exc}")
        self.context.connected = False
        self.context.state = BridgeState.DISCONNECTED

    def _on_session_close(self, *_args: object) -> None:
        self._log("WARN: Connection closed")
        self.context.connected = False
        self.context.state = BridgeState.DISCONNECTED

    def start_session(self) -> bool:
        """Log in, open the cloud session and wait for it to settle."""
        missing = self.config.missing_required()
        if missing:
            self._log("ERROR: Missing configuration in .env or environment!")
            self._log(f"ERROR: Need: {', '.join(missing)}")
            return False

        try:
            self._log("Logging in...")
            self.cloud_client.login(self.config.scratch_username, self.config.scratch_password)
            self._log("Logged in!")
        except CloudLoginError as exc:
            self._log(f"ERROR: Login failed: {exc}")
            return False

        try:
            self._log(f"Connecting to project {self.config.project_id}...")
            session = self.cloud_client.create_session(self.config.project_id, start=False)
        except CloudSessionError as exc:
            self._log(f"ERROR: Connection failed: {exc}")
            return False

        session.on("error", self._on_session_error)
        session.on("close", self._on_session_close)
        session.on("open", self._on_session_open)
        self.session = session
        session.start()

        self._sleep(self.config.connect_settle_sec)
        if not self.context.connected:
            self._log(
                f"ERROR: Connection failed. Check if project {self.config.project_id} is shared."
            )
            return False
        return True

    def poll_once(self) -> float:
        """Run one polling cycle and return how long to sleep before the next."""
        try:
            if not self.context.connected:
                self.context.state = BridgeState.DISCONNECTED
                self._log("Not connected. Waiting...")
                return self.config.disconnected_backoff_sec
            self.context.state = BridgeState.IDLE
            queue_id = str(self.session.get(QUEUE_ID_VAR) or QUEUE_EMPTY)
            if is_new_request(queue_id, self.context.last_queue_id):
                self._log(f"New request: {queue_id}")
                self.context.last_queue_id = queue_id
                self._process_request(queue_id)
            return self.config.poll_interval_sec
        except Exception as exc:
            self._log(f"ERROR: Error: {exc}")
            return self.config.error_backoff_sec
        finally:
            if self.context.state in (BridgeState.PROCESSING, BridgeState.PUBLISHING):
                self.context.state = BridgeState.IDLE

    def _process_request(self, queue_id: str) -> None:
        self.context.state = BridgeState.PROCESSING
        encoded_prompt = self.session.get(REQUEST_VAR)
        self._log(f"Encoded question: {encoded_prompt}")
        if not encoded_prompt or encoded_prompt == QUEUE_EMPTY:
            self._log("Empty request, skipping")
            self.context.skipped_requests += 1
            return

        prompt = decode_text(encoded_prompt)
        self._log(f"Question: {_service_utils.compact_prompt_text(prompt)}")

        self.session.set(REQUEST_VAR, QUEUE_ACKNOWLEDGED)
        self._log(f"Processing request {queue_id}")

        answer = self.generator.generate(prompt)
        self._log(f"Answer: {_service_utils.compact_prompt_text(answer)}")

        self.publish_answer(answer)
        self.context.handled_requests += 1
        self._log(f"Done with request {queue_id}!")

    def publish_answer(self, answer: str) -> list[str]:
        """Write ``answer`` to the response slots, last slot first.

        Returns the names of the slots that were written successfully.
        """
        self.context.state = BridgeState.PUBLISHING
        chunks = split_numeric_string_into_chunks(encode_text(answer))
        self._log(f"Split into {len(chunks)} chunks")
        written: list[str] = []
        for var_name, chunk_data in transmission_order(chunks):
            try:
                self.session.set(var_name, chunk_data)
                written.append(var_name)
                self._log(f"Sent {var_name} ({len(chunk_data)} digits)")
            except Exception as exc:
                self._log(f"WARN: Failed to send {var_name}: {exc}")
            self._sleep(self.config.chunk_write_delay_sec)
        return written

    def _install_signal_handlers(self) -> dict[int, Any]:
        previous: dict[int, Any] = {signal.SIGINT: signal.signal(signal.SIGINT, self._handle_signal)}
        if hasattr(signal, "SIGTERM"):
            previous[signal.SIGTERM] = signal.signal(signal.SIGTERM, self._handle_signal)
        return previous

    @staticmethod
    def _restore_signal_handlers(previous: dict[int, Any]) -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    def serve_forever(self) -> None:
        while not self.stop_requested:
            self._sleep(self.poll_once())

    def run(self) -> int:
        self._log("Server starting...")
        self._cleanup_logs()
        self._log(f"Bridge config {self.config.describe()}")
        if not self.start_session():
            self._close_session()
            return 1

        previous_handlers = self._install_signal_handlers()
        self._log(f"Bridge started project={self.config.project_id}")
        try:
            self.serve_forever()
        finally:
            self._restore_signal_handlers(previous_handlers)
            self._close_session()
            self._log(
                "Bridge stopped "
                f"handled={self.context.handled_requests} skipped={self.context.skipped_requests}"
            )
        return 0

    def _close_session(self) -> None:
        session = self.session
        self.session = None
        if session is None:
            return
        try:
            session.close()
        except Exception as exc:
            self._log(f"WARN: session close failed: {exc}")
