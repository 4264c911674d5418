#!/usr/bin/env python3
"""Retrieval example: summarise the most relevant part of a PDF.

This demonstrates driving the workflow manager directly:

* load settings from `.env` (needs `OPENAI_API_KEY`)
* extract a PDF, embed its chunks and the query in dependency order
* pick the closest chunk and stream a summary of it
* optionally ask which diagrams the chunk needs and generate them

Agents added after a run are picked up by the next `run()` call.
"""

from __future__ import annotations

import argparse
from typing import Sequence

from agent_workflow.core.config import WorkflowSettings
from agent_workflow.llm.factory import LLMFactory
from agent_workflow.tools.builtin import register_builtin_tools
from agent_workflow.tools.similarity import find_most_similar_chunk
from agent_workflow.tools.text import extract_descriptions, split_text_into_chunks
from agent_workflow.workflow.manager import WorkflowManager
from agent_workflow.workflow.task import InputBinding

CHUNK_SIZE = 800
CHUNK_OVERLAP = 100


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Summarise the part of a PDF closest to a query.")
    parser.add_argument("--pdf-url", required=True, help="URL of the PDF to read")
    parser.add_argument(
        "--query",
        default="What does the context contain?",
        help="Query used to select the relevant chunk",
    )
    parser.add_argument(
        "--prompt",
        default="Give me the summary of the context provided in 500 words.",
        help="Instruction sent with the selected chunk",
    )
    parser.add_argument(
        "--images",
        action="store_true",
        help="Also generate the diagrams the selected chunk calls for",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = WorkflowSettings()
    settings.setup_logging()

    manager = WorkflowManager(config=settings.engine)
    register_builtin_tools(manager.tools, LLMFactory.cached(settings.llm), settings.engine)

    manager.create_task(
        "extract", "Extract Text from PDF", "pdf_extractor", {"pdf_url": args.pdf_url}
    )
    manager.create_task(
        "embed_pdf",
        "Convert PDF to Embeddings",
        "pdf_to_embeddings",
        {"chunkSize": CHUNK_SIZE, "chunkOverlap": CHUNK_OVERLAP},
        bindings=[
            InputBinding(
                source_agent="extractor", source_task="extract", target_input="pdf_content"
            )
        ],
    )
    manager.create_task(
        "embed_query", "Convert Query to Embedding", "query_to_embedding", {"query": args.query}
    )

    manager.create_agent("extractor", "Text Extractor")
    manager.create_agent("embedder", "PDF Processor", depends_on=["extractor"])
    manager.create_agent("query", "Query Embedding")
    manager.assign_task_to_agent("extractor", "extract")
    manager.assign_task_to_agent("embedder", "embed_pdf")
    manager.assign_task_to_agent("query", "embed_query")

    manager.execute_workflow()

    text = manager.agents["extractor"].output["extract"]
    doc_embeddings = manager.agents["embedder"].output["embed_pdf"]
    query_embedding = manager.agents["query"].output["embed_query"]

    index = find_most_similar_chunk(query_embedding, doc_embeddings)
    # Same windows pdf_to_embeddings embedded, so the index selects the matching chunk.
    relevant = split_text_into_chunks(text, CHUNK_SIZE, CHUNK_OVERLAP)[index]
    print(f"Most similar chunk: {index}")

    manager.create_task(
        "summarise",
        "Summarise Context",
        "openai_content_generator",
        {
            "query": args.prompt,
            "context": relevant,
            "chunkSize": CHUNK_SIZE,
            "chunkOverlap": CHUNK_OVERLAP,
        },
    )
    manager.create_agent("writer", "Content Writer", depends_on=["embedder", "query"])
    manager.assign_task_to_agent("writer", "summarise")

    manager.execute_workflow()

    for chunk in manager.agents["writer"].streams["summarise"]:
        print(chunk, end="", flush=True)
    print()

    if args.images:
        _generate_images(manager, relevant)
    return 0


def _generate_images(manager: WorkflowManager, context: str) -> None:
    manager.create_task(
        "check_images", "Check Image Needs", "image_need_checker", {"content": context}
    )
    manager.create_agent("illustrator", "Image Need Checker", depends_on=["writer"])
    manager.assign_task_to_agent("illustrator", "check_images")
    manager.execute_workflow()

    descriptions = extract_descriptions(manager.agents["illustrator"].output["check_images"])
    if not descriptions:
        print("No images needed")
        return

    manager.create_agent("painter", "Image Generator", depends_on=["illustrator"], concurrent=True)
    for i, description in enumerate(descriptions):
        task_id = f"image_{i}"
        manager.create_task(
            task_id, f"Image {i + 1}", "image_generator", {"description": description}
        )
        manager.assign_task_to_agent("painter", task_id)
    manager.execute_workflow()

    for task_id, url in manager.agents["painter"].output_snapshot().items():
        print(f"{task_id}: {url}")


if __name__ == "__main__":
    raise SystemExit(main())
