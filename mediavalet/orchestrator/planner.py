"""Step Planner - Decides whether a request needs a multi-step plan.

The planner runs as one lightweight LLM call before execution. It returns
either a single-step verdict or an ordered list of steps, each naming at most
one tool and its parameters. Any failure degrades to single-step with
``fallback=True``.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from .models import Plan, PlanStep

logger = logging.getLogger(__name__)

PLANNER_SYSTEM_PROMPT = """\
You are the planner of a chat assistant that can create and edit images,
videos, music and speech, run polls, send locations, search the web and
read the chat history.

Decide whether the user's request needs several sequential steps.

Rules:
- A request is MULTI-STEP only when it asks for two or more distinct actions
  that must happen in order (e.g. "write a poem and then turn it into a song").
- One action with details or conditions is SINGLE-STEP.
- Each step uses at most one tool. Put concrete values the user gave into
  "parameters".

Return strict JSON only:
{
  "isMultiStep": true | false,
  "steps": [
    {"stepNumber": 1, "tool": "tool_name" | null, "action": "...", "parameters": {}}
  ],
  "reasoning": "..."
}

For single-step requests, "steps" must be an empty array.
"""

_FENCE_RE = re.compile(r"```(?:json)?\n?")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_UNWRAPPED_STEPS_RE = re.compile(r'"steps"\s*:\s*\[\s*"stepNumber"')
_TRAILING_COMMA_OBJ_RE = re.compile(r",\s*}")
_TRAILING_COMMA_ARR_RE = re.compile(r",\s*\]")


class StepPlanner:
    """LLM-based multi-step planner.

    Falls back to a single-step plan on any failure.
    """

    def __init__(self, llm_client: Any, config: Optional[Dict[str, Any]] = None):
        self.llm_client = llm_client
        self.config = config or {"temperature": 0.0, "max_tokens": 800}

    async def plan(self, prompt: str) -> Plan:
        messages = [
            {"role": "system", "content": PLANNER_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        try:
            response = await self.llm_client.chat_completion(
                messages=messages,
                config=self.config,
            )
        except Exception as e:
            logger.warning(f"[Planner] LLM call failed: {e}")
            return self._fallback()

        data = self._extract_json(getattr(response, "content", "") or "")
        if not data:
            logger.warning("[Planner] Failed to parse JSON from response")
            return self._fallback()
        return self._parse_result(data)

    @staticmethod
    def _fallback() -> Plan:
        return Plan(is_multi_step=False, fallback=True)

    def _parse_result(self, data: Dict[str, Any]) -> Plan:
        raw_steps = data.get("steps")
        reasoning = data.get("reasoning") or ""

        if not data.get("isMultiStep") or not isinstance(raw_steps, list) or len(raw_steps) < 2:
            logger.debug("[Planner] Single-step request detected")
            return Plan(is_multi_step=False, reasoning=reasoning)

        steps: List[PlanStep] = []
        for index, raw in enumerate(raw_steps):
            raw = raw if isinstance(raw, dict) else {}
            parameters = raw.get("parameters")
            steps.append(PlanStep(
                step_number=raw.get("stepNumber") or index + 1,
                action=raw.get("action") or f"Step {index + 1}",
                tool=raw.get("tool") or None,
                parameters=parameters if isinstance(parameters, dict) else {},
            ))

        logger.info(f"[Planner] Multi-step plan generated with {len(steps)} steps")
        return Plan(is_multi_step=True, steps=steps, reasoning=reasoning)

    @staticmethod
    def _extract_json(text: str) -> Optional[Dict[str, Any]]:
        """Extract the plan object from model output, repairing common damage."""
        raw = _FENCE_RE.sub("", (text or "")).strip()
        if not raw:
            return None
        try:
            parsed = json.loads(raw)
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            pass

        m = _OBJECT_RE.search(raw)
        if not m:
            return None
        candidate = m.group(0)

        # Steps listed as bare key/value pairs instead of objects
        if _UNWRAPPED_STEPS_RE.search(candidate):
            candidate = re.sub(r'"steps"\s*:\s*\[\s*', '"steps": [{', candidate, count=1)
            if '"reasoning"' in candidate:
                candidate = re.sub(r'\s*\]\s*,?\s*"reasoning"', '}], "reasoning"', candidate, count=1)
            else:
                candidate = re.sub(r"\s*\]\s*\}\s*$", "}]}", candidate, count=1)

        # Truncated output
        candidate = candidate.replace("...", "")
        if candidate.count("[") > candidate.count("]"):
            candidate += "]"
        if candidate.count("{") > candidate.count("}"):
            candidate += "}"
        candidate = _TRAILING_COMMA_OBJ_RE.sub("}", candidate)
        candidate = _TRAILING_COMMA_ARR_RE.sub("]", candidate)

        try:
            parsed = json.loads(candidate)
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            logger.error(f"[Planner] JSON parse failed: {candidate[:500]}")
            return None
