import asyncio
import logging

import anthropic
from openai import APIError, APITimeoutError, OpenAI

from app.services.llm.base import LLMError, LLMProvider

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a professional career coach and copywriter."


class OllamaProvider(LLMProvider):
    """Ollama LLM provider using OpenAI-compatible API."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "qwen3:14b",
    ):
        self.client = OpenAI(
            base_url=f"{base_url}/v1",
            api_key="ollama",  # Ollama doesn't require API key
            timeout=300.0,  # 5 minute timeout for CPU inference
        )
        self.model = model
        self.base_url = base_url

    async def generate(self, prompt: str, max_tokens: int = 2000) -> str:
        """Generate text from a prompt."""
        try:
            logger.info(f"Calling Ollama at {self.base_url} with model {self.model}")
            response = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=[
                    {"role": "system", "content": f"{SYSTEM_PROMPT} /no_think"},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
                temperature=0.2,
            )
        except APITimeoutError as e:
            logger.error(f"LLM timeout: {e}")
            raise LLMError("LLM request timed out") from e
        except APIError as e:
            logger.error(f"LLM API error: {e}")
            raise LLMError(f"LLM API error: {e!s}") from e

        if not response.choices:
            raise LLMError("Empty response from LLM")
        content = response.choices[0].message.content
        if not content:
            raise LLMError("Empty content in response")
        logger.info(f"Ollama response received, length: {len(content)}")
        return content.strip()


class ClaudeProvider(LLMProvider):
    """Anthropic Claude provider."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514"):
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model

    async def generate(self, prompt: str, max_tokens: int = 2000) -> str:
        try:
            response = await asyncio.to_thread(
                self.client.messages.create,
                model=self.model,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=0.2,
            )
        except anthropic.APIError as e:
            logger.error(f"Error generating content: {e}")
            raise LLMError(f"Failed to generate content: {e!s}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        if not text.strip():
            raise LLMError("Empty content in response")
        return text.strip()
