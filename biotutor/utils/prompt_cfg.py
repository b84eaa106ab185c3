from functools import lru_cache
from pathlib import Path

from loguru import logger

from biotutor.utils.env_cfg import load_path_env


@lru_cache(maxsize=None)
def _read_prompt(prompt_path: Path) -> str:
    with open(prompt_path, "r", encoding="utf-8") as f:
        logger.debug("Loaded prompt from '{}'", prompt_path)
        return f.read()


def load_prompt(kw: str, prompt_dir: Path | None = None) -> str:
    """
    Load a prompt template from the prompts directory based on the given keyword.

    Args:
        kw (str): The keyword to identify the prompt file.
        prompt_dir (Path | None, optional): Directory override. Defaults to the configured prompts path.

    Returns:
        str: The content of the prompt file.

    Raises:
        FileNotFoundError: If the prompt file for the given keyword does not exist.
    """
    directory = prompt_dir or load_path_env().prompts
    prompt_path = directory / f"{kw}.txt"
    if not prompt_path.is_file():
        logger.error("FileNotFoundError: Prompt file for keyword '{}' not found.", kw)
        raise FileNotFoundError(f"Prompt file for keyword '{kw}' not found.")
    return _read_prompt(prompt_path)
