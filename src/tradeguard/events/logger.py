"""コンプライアンスイベントの記録。

イベント記録は判定処理から見て投げっぱなし（fire-and-forget）とし、
記録の失敗が呼び出し元の判定を妨げてはならない。
"""

import json
import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

_AUDIT_LOGGER_NAME = "tradeguard.audit"


class ComplianceEventLogger(Protocol):
    """コンプライアンスイベントの記録先。"""

    def log_compliance_event(self, event_type: str, event_data: dict[str, Any]) -> None: ...


class LoggingComplianceEventLogger:
    """標準の logging にイベントを出力する。"""

    def __init__(self, logger_name: str = _AUDIT_LOGGER_NAME) -> None:
        self._logger = logging.getLogger(logger_name)

    def log_compliance_event(self, event_type: str, event_data: dict[str, Any]) -> None:
        self._logger.info("%s %s", event_type, json.dumps(event_data, default=str, ensure_ascii=False))


class JsonlComplianceEventLogger:
    """イベントを JSON Lines 形式で追記保存する。

    ファイルは追記のみで、既存の行を書き換えない。
    """

    def __init__(self, data_dir: Path) -> None:
        self._events_file = data_dir / "events" / "compliance.jsonl"
        self._lock = threading.Lock()

    @property
    def events_file(self) -> Path:
        return self._events_file

    def log_compliance_event(self, event_type: str, event_data: dict[str, Any]) -> None:
        entry = {
            "user_id": event_data.get("user_id"),
            "event_type": event_type,
            "event_data": event_data,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        line = json.dumps(entry, default=str, ensure_ascii=False)
        with self._lock:
            self._events_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self._events_file, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def read_events(self) -> list[dict[str, Any]]:
        """保存済みイベントを記録順に返す。"""
        if not self._events_file.exists():
            return []
        with open(self._events_file, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]


def emit_compliance_event(
    event_logger: ComplianceEventLogger | None,
    event_type: str,
    event_data: dict[str, Any],
) -> None:
    """イベントを記録する。記録先の例外はログに残して握りつぶす。"""
    if event_logger is None:
        return
    try:
        event_logger.log_compliance_event(event_type, event_data)
    except Exception:
        logger.exception("Failed to log compliance event %s", event_type)
