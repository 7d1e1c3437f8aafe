"""MediaValet Green API channel - outbound WhatsApp messages via HTTP."""

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class GreenApiChannel:
    """Messaging channel backed by the Green API REST endpoints.

    Every send POSTs JSON to ``{base_url}/{method}/{instance_token}`` and raises
    ``httpx.HTTPStatusError`` on a non-2xx answer. Callers that want best-effort
    delivery wrap it in a Notifier.

    Args:
        base_url: API base, e.g. ``https://api.green-api.com/waInstance1101``.
        instance_token: API token of the instance.
        timeout: Request timeout in seconds (default 30).
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        base_url: str,
        instance_token: str,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = instance_token
        self._timeout = timeout
        self._transport = transport

    def _url(self, method: str) -> str:
        return f"{self._base_url}/{method}/{self._token}"

    async def _post(self, method: str, payload: Dict[str, Any]) -> Any:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(self._url(method), json=payload)
            response.raise_for_status()
        try:
            return response.json()
        except ValueError:
            return None

    async def send_text_message(
        self,
        chat_id: str,
        text: str,
        quoted_message_id: Optional[str] = None,
        typing_delay: int = 0,
    ) -> Any:
        payload: Dict[str, Any] = {
            "chatId": chat_id,
            "message": text,
            "typingTime": typing_delay,
        }
        if quoted_message_id:
            payload["quotedMessageId"] = quoted_message_id
        data = await self._post("sendMessage", payload)
        logger.info(f"Message sent to {chat_id}: {text[:50]}")
        return data

    async def send_file_by_url(
        self,
        chat_id: str,
        url: str,
        file_name: str,
        caption: str = "",
        quoted_message_id: Optional[str] = None,
        typing_delay: int = 0,
    ) -> Any:
        payload: Dict[str, Any] = {
            "chatId": chat_id,
            "urlFile": url,
            "fileName": file_name,
            "caption": caption,
            "typingTime": typing_delay,
        }
        if quoted_message_id:
            payload["quotedMessageId"] = quoted_message_id
        data = await self._post("sendFileByUrl", payload)
        logger.info(f"File sent to {chat_id}: {file_name}")
        return data

    async def send_location(
        self,
        chat_id: str,
        latitude: float,
        longitude: float,
        name: str = "",
        address: str = "",
        quoted_message_id: Optional[str] = None,
        typing_delay: int = 0,
    ) -> Any:
        payload: Dict[str, Any] = {
            "chatId": chat_id,
            "latitude": latitude,
            "longitude": longitude,
            "nameLocation": name,
            "address": address,
            "typingTime": typing_delay,
        }
        if quoted_message_id:
            payload["quotedMessageId"] = quoted_message_id
        data = await self._post("sendLocation", payload)
        logger.info(f"Location sent to {chat_id}: {latitude}, {longitude}")
        return data

    async def send_poll(
        self,
        chat_id: str,
        question: str,
        options: List[str],
        multiple_answers: bool = False,
        quoted_message_id: Optional[str] = None,
        typing_delay: int = 0,
    ) -> Any:
        # Polls are never sent as replies; the API rejects quoted polls
        payload: Dict[str, Any] = {
            "chatId": chat_id,
            "message": question,
            "options": [{"optionName": option} for option in options],
            "multipleAnswers": multiple_answers,
            "typingTime": typing_delay,
        }
        data = await self._post("sendPoll", payload)
        logger.info(f"Poll sent to {chat_id}: {len(options)} options")
        return data
