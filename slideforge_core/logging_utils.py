"""
Logging Utilities for SlideForge

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional
from enum import Enum


class LogLevel(str, Enum):
    """Log levels for generation events."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# Patterns for secret masking (environment variables, tokens, keys)
SECRET_PATTERNS = [
    (re.compile(r"(API_KEY|APIKEY|TOKEN|SECRET|PASSWORD|PASS|AUTH)[=:]\s*['\"]?([^'\"\ \n]+)", re.I), r"\1=***"),
    (re.compile(r"(Bearer|token)\s+([a-zA-Z0-9_\-\.]+)", re.I), r"\1 ***"),
    (re.compile(r"\bsk-[A-Za-z0-9_\-]{8,}"), "sk-***"),
]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def mask_secrets(text: str) -> str:
    """
    Mask secrets in text before logging.

    Args:
        text: Raw text that may contain secrets

    Returns:
        Text with secrets replaced by ***
    """
    masked = text
    for pattern, replacement in SECRET_PATTERNS:
        masked = pattern.sub(replacement, masked)
    return masked


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for entry points (CLI, web server)."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )


class GenerationEventLog:
    """
    Structured JSONL log of generation events.

    One line per event in ``{log_dir}/generation_events.jsonl``: state
    transitions, model attempts and fallbacks, keyed by request id.
    Secrets are masked before anything is written.
    """

    def __init__(self, log_dir: Path, min_level: LogLevel = LogLevel.INFO, mask_secrets_enabled: bool = True):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.min_level = min_level
        self.mask_secrets_enabled = mask_secrets_enabled
        self.json_log = self.log_dir / "generation_events.jsonl"

    def _should_log(self, level: LogLevel) -> bool:
        levels = [LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARNING, LogLevel.ERROR]
        return levels.index(level) >= levels.index(self.min_level)

    def log_event(
        self,
        request_id: str,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        level: LogLevel = LogLevel.INFO,
    ) -> None:
        """
        Append a structured event.

        Args:
            request_id: Generation request identifier
            event_type: Event name (e.g., "state", "model_attempt", "fallback")
            data: Event payload
            level: Log level
        """
        if not self._should_log(level):
            return

        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "request_id": request_id,
            "type": event_type,
            "data": data or {},
        }

        event_str = json.dumps(event, default=str)
        if self.mask_secrets_enabled:
            event_str = mask_secrets(event_str)

        with self.json_log.open("a", encoding="utf-8") as f:
            f.write(event_str + "\n")

    def read_events(self, request_id: Optional[str] = None) -> list:
        """Read back events, optionally filtered by request id."""
        if not self.json_log.exists():
            return []
        events = []
        with self.json_log.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                event = json.loads(line)
                if request_id is None or event.get("request_id") == request_id:
                    events.append(event)
        return events
