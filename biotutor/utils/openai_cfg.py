from dataclasses import dataclass, field

from loguru import logger
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletionMessageParam

from biotutor.agents.types import Generation
from biotutor.utils.env_cfg import load_model_env, load_openai_env


@dataclass
class OpenAIGenerator:
    """
    Text generator backed by an OpenAI-compatible chat completions API.
    """

    model_id: str | None = None
    temperature: float | None = None
    system_prompt: str | None = None
    client: AsyncOpenAI = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """
        Post-initialization to load configurations.
        """
        _model_config = load_model_env()
        self.model_id = self.model_id or _model_config.gen_model
        if self.temperature is None:
            self.temperature = _model_config.temperature

        _openai_config = load_openai_env()
        self.client = AsyncOpenAI(
            api_key=_openai_config.api_key,
            base_url=_openai_config.api_base,
            timeout=_openai_config.timeout,
            max_retries=_openai_config.max_retries,
        )

    async def invoke(self, prompt: str) -> Generation:
        """
        Call OpenAI chat completion.

        Args:
            prompt (str): The user prompt.

        Returns:
            Generation: The response text.

        Raises:
            RuntimeError: If the chat inference fails.
        """
        try:
            messages: list[ChatCompletionMessageParam] = []
            if self.system_prompt:
                messages.append({"role": "system", "content": self.system_prompt})
            messages.append({"role": "user", "content": prompt})

            response = await self.client.chat.completions.create(
                model=self.model_id,
                messages=messages,
                temperature=self.temperature,
            )
            return Generation(content=response.choices[0].message.content or "")
        except Exception as e:
            logger.error("Error during chat inference: {}", e)
            raise RuntimeError(f"Chat inference failed: {e}")
