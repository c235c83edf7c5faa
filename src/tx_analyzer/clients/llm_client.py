from __future__ import annotations

from typing import Protocol

import httpx

from ..app_logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are a blockchain transaction analyst. Explain the transaction described by the user in 2-4 plain sentences for a non-expert.

Requirements:
1. Only use the facts provided; do not guess token prices, identities or intent
2. Mention the protocol when one is given
3. If risk reasons are listed, explain each one briefly; otherwise say no risk factors were detected
4. Reply with plain text only, no JSON and no markdown"""


class LlmError(Exception):
    """LLM 调用错误"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LlmUnavailable(LlmError):
    """连接失败、鉴权失败、限流或服务端错误"""


class LlmTimeout(LlmError):
    """请求超时"""


class LlmMalformedResponse(LlmError):
    """响应结构不符合预期"""


class LlmClient(Protocol):
    async def complete(self, prompt: str, timeout: float) -> str: ...


class ChatCompletionsClient:
    """OpenAI 兼容的 /v1/chat/completions 客户端"""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str = "",
        system_prompt: str = SYSTEM_PROMPT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.system_prompt = system_prompt
        self._transport = transport

    async def complete(self, prompt: str, timeout: float) -> str:
        """发送提示词并返回模型输出文本"""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        request_body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0,
        }

        logger.debug("llm_request", model=self.model, prompt_chars=len(prompt))

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/v1/chat/completions",
                    headers=headers,
                    json=request_body,
                )
        except httpx.TimeoutException as e:
            raise LlmTimeout("LLM request timeout") from e
        except httpx.RequestError as e:
            raise LlmUnavailable(f"LLM request error: {e}") from e

        if response.status_code != 200:
            raise LlmUnavailable(
                f"LLM request failed: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise LlmMalformedResponse("LLM response is not valid JSON") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise LlmMalformedResponse("Empty choices in LLM response")

        first = choices[0] if isinstance(choices, list) else None
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise LlmMalformedResponse("Empty content in LLM response")

        logger.info("llm_response", model=self.model, content_chars=len(content))
        return content.strip()

    async def health_check(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=5.0, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/v1/models")
                return response.status_code == 200
        except httpx.HTTPError:
            return False
