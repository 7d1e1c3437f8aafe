"""
MediaValet Chat Session - Stateful function-calling session over a chat client

The orchestrator talks to the model through a session: send a prompt (str) or
the responses to the previous turn's tool calls (list of FunctionResponse),
get back text and the next batch of requested calls.

Usage:
    session = ChatSession(client, tools=tool_schemas, system_instruction=SYSTEM)
    response = await session.send_message("Draw a cat")
    calls = response.function_calls()   # [FunctionCall("create_image", {...})]
    response = await session.send_message([FunctionResponse("create_image", {...})])
"""

import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Union

from ..protocols import LLMClientProtocol
from ..tools.models import FunctionCall, FunctionResponse

logger = logging.getLogger(__name__)


class SessionResponse:
    """One model reply: free text plus requested tool calls."""

    def __init__(self, content: str = "", calls: Optional[List[FunctionCall]] = None, raw: Any = None):
        self._content = content or ""
        self._calls = calls or []
        self.raw = raw

    def text(self) -> str:
        return self._content

    def function_calls(self) -> Optional[List[FunctionCall]]:
        return list(self._calls) if self._calls else None


class ChatSession:
    """
    Conversation state in OpenAI message format.

    Args:
        client: Chat-completion client (LLMClientProtocol)
        tools: Tool schemas (OpenAI format) offered on every turn
        system_instruction: Optional system prompt
        history: Prior messages to seed the session with
        config: Per-call config overrides (model, temperature, ...)
    """

    def __init__(
        self,
        client: LLMClientProtocol,
        tools: Optional[List[Dict[str, Any]]] = None,
        system_instruction: Optional[str] = None,
        history: Optional[List[Dict[str, Any]]] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.client = client
        self.tools = tools or None
        self.config = config
        self.messages: List[Dict[str, Any]] = []
        if system_instruction:
            self.messages.append({"role": "system", "content": system_instruction})
        self.messages.extend(history or [])
        self._pending: List[FunctionCall] = []

    async def send_message(
        self,
        message: Union[str, Sequence[FunctionResponse]],
    ) -> SessionResponse:
        if isinstance(message, str):
            self._answer_pending([])
            self.messages.append({"role": "user", "content": message})
        else:
            self._answer_pending(list(message))

        response = await self.client.chat_completion(
            messages=self.messages,
            tools=self.tools,
            config=self.config,
        )

        content = getattr(response, "content", "") or ""
        calls = [
            FunctionCall(name=tc.name, args=tc.arguments or {}, id=tc.id or f"call_{uuid.uuid4().hex[:12]}")
            for tc in (getattr(response, "tool_calls", None) or [])
        ]

        self.messages.append(self._build_assistant_message(content, calls))
        self._pending = calls

        logger.debug(f"[ChatSession] reply: {len(content)} chars, {len(calls)} tool calls")
        return SessionResponse(content, calls, raw=response)

    def _build_assistant_message(self, content: str, calls: List[FunctionCall]) -> Dict[str, Any]:
        msg_dict: Dict[str, Any] = {"role": "assistant", "content": content}
        if calls:
            msg_dict["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.args, ensure_ascii=False)},
                }
                for call in calls
            ]
        return msg_dict

    def _answer_pending(self, responses: List[FunctionResponse]) -> None:
        """Append one tool message per pending call, pairing by id, then by name in order."""
        pending = list(self._pending)
        self._pending = []

        unmatched = list(responses)
        for call in pending:
            match = next((r for r in unmatched if r.id and r.id == call.id), None)
            if match is None:
                match = next((r for r in unmatched if not r.id and r.name == call.name), None)
            if match is not None:
                unmatched.remove(match)
                payload = match.response
            else:
                payload = {"error": "Tool call was not executed"}
            self.messages.append({
                "role": "tool",
                "tool_call_id": call.id,
                "content": json.dumps(payload, ensure_ascii=False, default=str),
            })

        for response in unmatched:
            logger.warning(f"[ChatSession] Dropping response for unknown tool call: {response.name}")
