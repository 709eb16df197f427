"""Generative text model via the Anthropic Messages API."""

from anthropic import AsyncAnthropic

from app.core.logging import get_logger

logger = get_logger(__name__)


class AnthropicGenerativeModel:
    """Sends a single-turn prompt and returns the text reply."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.2,
        client: AsyncAnthropic | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.client = client or AsyncAnthropic(api_key=api_key)

    async def invoke(self, prompt: str, max_tokens: int) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=self.temperature,
            messages=[{"role": "user", "content": prompt}],
        )

        text = "".join(
            block.text for block in response.content if isinstance(getattr(block, "text", None), str)
        )
        usage = getattr(response, "usage", None)
        logger.debug(
            f"Model call complete ({self.model})",
            extra={
                "tokens_input": getattr(usage, "input_tokens", None),
                "tokens_output": getattr(usage, "output_tokens", None),
            },
        )
        return text
