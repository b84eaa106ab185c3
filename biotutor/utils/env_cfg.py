import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _as_bool(val: str | None, default: bool = False) -> bool:
    """
    Interpret an environment string as a boolean flag.

    Args:
        val (str | None): The raw environment value.
        default (bool, optional): Value used when the variable is unset. Defaults to False.

    Returns:
        bool: The parsed flag.
    """
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "on"}


def _optional_path(val: str | None) -> Path | None:
    return Path(val).expanduser() if val else None


@dataclass(frozen=True)
class HostConfig:
    """
    Dataclass for host configuration.
    """

    ollama_host: str


@dataclass(frozen=True)
class ModelConfig:
    """
    Dataclass for model configuration.
    """

    provider: str
    gen_model: str
    temperature: float


@dataclass(frozen=True)
class OpenAIConfig:
    """
    Dataclass for OpenAI-compatible API configuration.
    """

    api_key: str | None
    api_base: str | None
    timeout: float
    max_retries: int


@dataclass(frozen=True)
class PathConfig:
    """
    Dataclass for path configuration.
    """

    logs: Path
    prompts: Path
    queries: Path
    results: Path
    session_store: str
    content_docs: Path | None = None
    exam_docs: Path | None = None


@dataclass(frozen=True)
class RouterConfig:
    """
    Dataclass for routing and conversation-memory configuration.
    """

    strategy: str
    fail_open: bool
    max_recent_topics: int
    history_max_messages: int
    history_max_tokens: int


def load_host_env() -> HostConfig:
    """
    Loads host configuration from environment variables or defaults.

    Returns:
        HostConfig: Dataclass containing host configuration.
        - ollama_host (str): The Ollama host URL.
    """
    return HostConfig(
        ollama_host=os.getenv("OLLAMA_HOST", "http://localhost:11434"),
    )


def load_model_env() -> ModelConfig:
    """
    Loads model configuration from environment variables or defaults.

    Returns:
        ModelConfig: Dataclass containing model configuration.
        - provider (str): Which text generator backend to use ("openai" or "ollama").
        - gen_model (str): The generation model identifier.
        - temperature (float): Sampling temperature for every model call.
    """
    return ModelConfig(
        provider=os.getenv("LLM_PROVIDER", "openai").lower(),
        gen_model=os.getenv("LLM", "gpt-4o"),
        temperature=float(os.getenv("LLM_TEMPERATURE", "0.0")),
    )


def load_openai_env() -> OpenAIConfig:
    """
    Loads OpenAI client configuration from environment variables or defaults.

    Returns:
        OpenAIConfig: Dataclass containing OpenAI configuration.
        - api_key (str | None): The API key.
        - api_base (str | None): Optional base URL for OpenAI-compatible servers.
        - timeout (float): Request timeout in seconds.
        - max_retries (int): Client-side retry count.
    """
    return OpenAIConfig(
        api_key=os.getenv("OPENAI_API_KEY"),
        api_base=os.getenv("OPENAI_API_BASE") or None,
        timeout=float(os.getenv("OPENAI_TIMEOUT", "60")),
        max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
    )


def load_path_env() -> PathConfig:
    """
    Loads path configuration from environment variables or defaults.

    Returns:
        PathConfig: Dataclass containing path configuration.
        - logs (Path): Path to the log file.
        - prompts (Path): Path to the prompt templates directory.
        - queries (Path): Path to the queries file used by the route CLI.
        - results (Path): Path to the results directory.
        - session_store (str): SQLAlchemy URL of the conversation store.
        - content_docs (Path | None): Directory of teaching material, if any.
        - exam_docs (Path | None): Directory of past papers and mark schemes, if any.
    """
    home_dir = Path.home()
    data_dir: Path = home_dir / "biotutor"
    project_root: Path = Path(__file__).parents[2].resolve()
    utils_dir: Path = project_root / "biotutor" / "utils"

    return PathConfig(
        logs=Path(
            os.getenv("LOG_PATH", project_root / ".logs" / "biotutor.log")
        ).expanduser(),
        prompts=Path(os.getenv("PROMPTS_PATH", utils_dir / "prompts")).expanduser(),
        queries=Path(os.getenv("QUERIES_PATH", data_dir / "queries.txt")).expanduser(),
        results=Path(os.getenv("RESULTS_PATH", data_dir / "results")).expanduser(),
        session_store=os.getenv(
            "SESSION_STORE", f"sqlite:///{(data_dir / 'memory.db').as_posix()}"
        ),
        content_docs=_optional_path(os.getenv("CONTENT_DOCS_PATH")),
        exam_docs=_optional_path(os.getenv("EXAM_DOCS_PATH")),
    )


def load_router_env() -> RouterConfig:
    """
    Loads routing configuration from environment variables or defaults.

    Returns:
        RouterConfig: Dataclass containing routing configuration.
        - strategy (str): "lexical" for the scored pattern router, "llm" for the model router.
        - fail_open (bool): Domain-check result when the model call fails.
        - max_recent_topics (int): Bound on the recent topic history.
        - history_max_messages (int): Messages kept in response-generator history.
        - history_max_tokens (int): Token budget for response-generator history.
    """
    return RouterConfig(
        strategy=os.getenv("ROUTER_STRATEGY", "lexical").lower(),
        fail_open=_as_bool(os.getenv("TOPIC_CHECK_FAIL_OPEN"), False),
        max_recent_topics=int(os.getenv("MAX_RECENT_TOPICS", "5")),
        history_max_messages=int(os.getenv("HISTORY_MAX_MESSAGES", "15")),
        history_max_tokens=int(os.getenv("HISTORY_MAX_TOKENS", "6000")),
    )
