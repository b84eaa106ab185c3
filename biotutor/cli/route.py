import json
import sys
from pathlib import Path
from time import time

from dotenv import load_dotenv
from loguru import logger

from biotutor.agents.policies import analyze_query_intent
from biotutor.agents.understanding import LexicalIntentRouter
from biotutor.utils.env_cfg import load_path_env
from biotutor.utils.logging_cfg import setup_logging

DEFAULT_QUERIES = (
    "What is photosynthesis?",
    "Explain how photosynthesis works",
    "Quiz me on cell biology",
    "Show me past exam questions on photosynthesis",
    "What's the mark scheme for photosynthesis questions?",
    "summarize our conversation",
)


def _store_output(filename: str, data: dict | list, output_path: str | Path) -> Path:
    """
    Stores the output data to a JSON file.

    Args:
        filename (str): The name of the output file (without extension).
        data (dict | list): The data to store.
        output_path (str | Path): The directory to store the output file.

    Returns:
        Path: The written file.
    """
    if not isinstance(output_path, Path):
        output_path = Path(output_path).expanduser()

    if not output_path.exists():
        logger.info("Creating output directory at {}", output_path)
        output_path.mkdir(parents=True, exist_ok=True)

    out_file = output_path / f"{filename}.json"
    with open(out_file, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    logger.info("Results stored in {}", out_file)
    return out_file


def load_queries(q_path: str | Path) -> list[str]:
    """
    Loads query strings from a text file. Creates the file with sample queries if none exists.

    Args:
        q_path (str | Path): The path to the query text file.

    Returns:
        list[str]: The list of query strings.
    """
    if not isinstance(q_path, Path):
        q_path = Path(q_path).expanduser()

    if q_path.exists():
        logger.info("Loading queries from {}", q_path)
        with open(q_path, "r", encoding="utf-8") as f:
            return [line.strip() for line in f if line.strip()]

    logger.info("Creating default query file at {}", q_path)
    q_path.parent.mkdir(parents=True, exist_ok=True)
    with open(q_path, "w", encoding="utf-8") as f:
        f.write("\n".join(DEFAULT_QUERIES) + "\n")
    return list(DEFAULT_QUERIES)


def route_query(router: LexicalIntentRouter, query: str) -> dict:
    """
    Routes one query and collects the decision with its intent scores.

    Args:
        router (LexicalIntentRouter): The router.
        query (str): The query string.

    Returns:
        dict: JSON-ready routing report for the query.
    """
    decision = router.route(query)
    scores = analyze_query_intent(query)
    return {
        "query": query,
        "responseType": decision.response_type.value,
        "retrievalTarget": decision.retrieval_target.value,
        "hasContextualReference": decision.has_contextual_reference,
        "scores": {
            "information": scores.information,
            "teaching": scores.teaching,
            "examQuestion": scores.exam_question,
            "markScheme": scores.mark_scheme,
        },
    }


def main() -> None:
    """
    Main entry point for the route CLI. Loads queries, routes each one, and stores a JSON report.
    """
    load_dotenv()
    setup_logging()
    path_config = load_path_env()
    router = LexicalIntentRouter()
    queries = load_queries(q_path=path_config.queries)
    report = [route_query(router, query) for query in queries]
    _store_output(
        filename=f"{int(time())}_routing", data=report, output_path=path_config.results
    )
    logger.info("All {} queries routed.", len(report))


if __name__ == "__main__":
    sys.path.append(str(Path(__file__).parents[2].resolve()))
    main()
