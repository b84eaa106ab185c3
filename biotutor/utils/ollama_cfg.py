from dataclasses import dataclass, field

import anyio
import ollama
import requests
from loguru import logger

from biotutor.agents.types import Generation
from biotutor.utils.env_cfg import load_host_env, load_model_env


@dataclass
class OllamaGenerator:
    """
    Text generator backed by the Ollama chat API.
    """

    model_id: str | None = None
    ollama_host: str | None = None
    temperature: float | None = None
    num_ctx: int = 8192
    seed: int = 42
    system_prompt: str | None = None
    client: ollama.AsyncClient = field(init=False, repr=False)

    def __post_init__(self) -> None:
        _model_config = load_model_env()
        self.model_id = self.model_id or _model_config.gen_model
        if self.temperature is None:
            self.temperature = _model_config.temperature
        self.ollama_host = self.ollama_host or load_host_env().ollama_host
        self.client = ollama.AsyncClient(host=self.ollama_host)

    def _get_ollama_health(self) -> bool:
        """
        Perform a health check by querying Ollama's /api/tags endpoint.

        Returns:
            bool: True if the Ollama server responds with model tags, False otherwise.
        """
        try:
            response = requests.get(f"{self.ollama_host}/api/tags", timeout=5)
        except requests.RequestException as e:
            logger.warning("Ollama health check failed: {}", e)
            return False
        return response.status_code == 200 and "models" in response.json()

    async def invoke(self, prompt: str) -> Generation:
        """
        Call the Ollama server with the configured model.

        Args:
            prompt (str): The prompt to send to the model.

        Returns:
            Generation: The model reply.

        Raises:
            RuntimeError: If the server is unreachable or the model id is missing.
        """
        if not await anyio.to_thread.run_sync(self._get_ollama_health):
            logger.error(
                "RuntimeError: Ollama server does not respond. Please ensure it is running and accessible."
            )
            raise RuntimeError(
                "Ollama server is not reachable. Please check your configuration."
            )
        if not self.model_id:
            logger.error("RuntimeError: Model ID is not set.")
            raise RuntimeError("Model ID must be a valid string.")

        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = await self.client.chat(
            model=self.model_id,
            messages=messages,
            options={
                "num_ctx": self.num_ctx,
                "temperature": self.temperature,
                "seed": self.seed,
            },
        )
        return Generation(content=response["message"]["content"].strip())
