"""
Structured audit logging for orchestration decisions.

Produces JSON log entries via Python's standard logging module under
the ``mediavalet.audit`` logger name.  Each entry includes a timestamp,
event_type, optional chat_id, and event-specific fields.

Usage::

    audit = AuditLogger(chat_id="972500000000@c.us")
    audit.log_tool_execution(
        tool_name="create_image",
        args_summary=summarize_args({"prompt": "a cat"}),
        success=True,
        duration_ms=5400,
    )
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

_audit_logger = logging.getLogger("mediavalet.audit")

ARGS_SUMMARY_MAX_CHARS = 200


def summarize_args(args: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy of tool args with long string values truncated."""
    summary: Dict[str, Any] = {}
    for key, value in (args or {}).items():
        if isinstance(value, str) and len(value) > ARGS_SUMMARY_MAX_CHARS:
            value = value[:ARGS_SUMMARY_MAX_CHARS] + "..."
        summary[key] = value
    return summary


class AuditLogger:
    """Structured audit logger for key orchestration decisions."""

    def __init__(self, chat_id: Optional[str] = None) -> None:
        self._default_chat_id = chat_id

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _emit(self, event_type: str, fields: Dict[str, Any]) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        entry.update(fields)
        _audit_logger.info(json.dumps(entry, default=str, ensure_ascii=False))

    def _cid(self, chat_id: Optional[str] = None) -> str:
        return chat_id or self._default_chat_id or ""

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def log_tool_execution(
        self,
        tool_name: str,
        args_summary: Dict[str, Any],
        success: bool,
        duration_ms: int,
        error: Optional[str] = None,
        chat_id: Optional[str] = None,
    ) -> None:
        """Log a tool execution result."""
        fields: Dict[str, Any] = {
            "chat_id": self._cid(chat_id),
            "tool_name": tool_name,
            "args_summary": args_summary,
            "success": success,
            "duration_ms": duration_ms,
        }
        if error is not None:
            fields["error"] = error
        self._emit("tool_execution", fields)

    def log_duplicate_blocked(
        self,
        tool_name: str,
        reason: str,
        chat_id: Optional[str] = None,
    ) -> None:
        """Log a tool call rejected by the duplicate guard."""
        self._emit("duplicate_blocked", {
            "chat_id": self._cid(chat_id),
            "tool_name": tool_name,
            "reason": reason,
        })

    def log_loop_turn(
        self,
        iteration: int,
        tool_calls: List[str],
        final_answer: bool,
        chat_id: Optional[str] = None,
    ) -> None:
        """Log an agent loop turn summary."""
        self._emit("loop_turn", {
            "chat_id": self._cid(chat_id),
            "iteration": iteration,
            "tool_calls": tool_calls,
            "tool_calls_count": len(tool_calls),
            "final_answer": final_answer,
        })

    def log_step_completed(
        self,
        step_number: int,
        tool_name: Optional[str],
        success: bool,
        chat_id: Optional[str] = None,
    ) -> None:
        """Log the outcome of one multi-step plan step."""
        self._emit("step_completed", {
            "chat_id": self._cid(chat_id),
            "step_number": step_number,
            "tool_name": tool_name,
            "success": success,
        })

    def log_breaker_transition(
        self,
        breaker: str,
        old_state: str,
        new_state: str,
    ) -> None:
        """Log a circuit breaker state change."""
        self._emit("breaker_transition", {
            "breaker": breaker,
            "old_state": old_state,
            "new_state": new_state,
        })

    def log_fallback_exhausted(
        self,
        tool_name: str,
        providers: List[str],
        chat_id: Optional[str] = None,
    ) -> None:
        """Log a tool for which every provider failed."""
        self._emit("fallback_exhausted", {
            "chat_id": self._cid(chat_id),
            "tool_name": tool_name,
            "providers": providers,
        })
