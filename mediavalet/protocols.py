"""
MediaValet Protocols - Abstract interfaces for dependency injection

These protocols define the contracts that external collaborators must fulfill:
the LLM client and chat session, tools, the outbound messaging channel,
context persistence and the step planner. The orchestration core only depends
on these shapes, never on concrete implementations.
"""

from typing import Protocol, List, Dict, Any, Optional, runtime_checkable


@runtime_checkable
class LLMClientProtocol(Protocol):
    """
    Abstract interface for LLM clients

    Implement this protocol to integrate any LLM provider. The returned object
    must expose ``content`` and ``tool_calls`` (see ``mediavalet.llm.LLMResponse``).
    """

    async def chat_completion(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict]] = None,
        config: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Call LLM for chat completion

        Args:
            messages: List of message dicts with 'role' and 'content'
            tools: Optional list of tool schemas (OpenAI format)
            config: Optional configuration (model, temperature, etc.)
        """
        ...


@runtime_checkable
class SessionResponseProtocol(Protocol):
    """One reply from a chat session"""

    def text(self) -> str:
        ...

    def function_calls(self) -> Optional[List[Any]]:
        """Requested tool calls, each exposing ``name`` and ``args``"""
        ...


@runtime_checkable
class ChatSessionProtocol(Protocol):
    """
    Abstract interface for a running LLM chat session

    ``send_message`` accepts either a prompt string or the list of
    FunctionResponse objects answering the previous turn's tool calls.

    Example:
        response = await session.send_message("Draw a cat")
        for call in response.function_calls() or []:
            ...
    """

    async def send_message(self, message: Any) -> SessionResponseProtocol:
        ...


@runtime_checkable
class ToolProtocol(Protocol):
    """
    Abstract interface for an executable tool

    Tools must return a result (dict or ToolResult) for expected failure
    modes instead of raising.
    """

    name: str

    async def execute(self, args: Dict[str, Any], context: Any) -> Any:
        ...


@runtime_checkable
class MessagingChannelProtocol(Protocol):
    """
    Abstract interface for the outbound messaging channel

    All methods are async; the orchestration core treats every send as best
    effort.
    """

    async def send_text_message(
        self,
        chat_id: str,
        text: str,
        quoted_message_id: Optional[str] = None,
        typing_delay: int = 0
    ) -> Any:
        ...

    async def send_file_by_url(
        self,
        chat_id: str,
        url: str,
        file_name: str,
        caption: str = "",
        quoted_message_id: Optional[str] = None,
        typing_delay: int = 0
    ) -> Any:
        ...

    async def send_location(
        self,
        chat_id: str,
        latitude: float,
        longitude: float,
        name: str = "",
        address: str = "",
        quoted_message_id: Optional[str] = None,
        typing_delay: int = 0
    ) -> Any:
        ...

    async def send_poll(
        self,
        chat_id: str,
        question: str,
        options: List[str],
        multiple_answers: bool = False,
        quoted_message_id: Optional[str] = None,
        typing_delay: int = 0
    ) -> Any:
        ...


@runtime_checkable
class ContextStoreProtocol(Protocol):
    """
    Abstract interface for persisted agent context

    Stored payload shape: {"tool_calls": [...], "generated_assets": {...}}
    """

    async def get_agent_context(self, chat_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def save_agent_context(self, chat_id: str, data: Dict[str, Any]) -> None:
        ...


@runtime_checkable
class PlannerProtocol(Protocol):
    """Abstract interface for the step planner"""

    async def plan(self, prompt: str) -> Any:
        ...
