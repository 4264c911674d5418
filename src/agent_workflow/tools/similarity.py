"""Vector similarity helpers for embedding-based retrieval.

Public helpers for callers that post-process tool outputs (see
`examples/rag_pipeline.py`). `flatten_embeddings` and `reconstruct_embeddings`
convert a chunk matrix to and from one flat vector plus row lengths, the shape
vector stores expect.
"""

from __future__ import annotations

import math
from collections.abc import Sequence


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    Returns 0.0 when either vector has zero magnitude.
    """
    if len(vec1) != len(vec2):
        raise ValueError(f"Vector lengths differ: {len(vec1)} != {len(vec2)}")

    dot = sum(a * b for a, b in zip(vec1, vec2))
    mag_a = math.sqrt(sum(a * a for a in vec1))
    mag_b = math.sqrt(sum(b * b for b in vec2))
    if mag_a == 0.0 or mag_b == 0.0:
        return 0.0
    return dot / (mag_a * mag_b)


def find_most_similar_chunk(
    query_embedding: Sequence[float],
    doc_embeddings: Sequence[Sequence[float]],
) -> int:
    """Index of the document embedding closest to the query.

    Ties keep the earliest index. An empty candidate list yields 0.
    """
    best_index = 0
    best_similarity = -math.inf
    for i, doc_embedding in enumerate(doc_embeddings):
        similarity = cosine_similarity(query_embedding, doc_embedding)
        if similarity > best_similarity:
            best_similarity = similarity
            best_index = i
    return best_index


def flatten_embeddings(embeddings: Sequence[Sequence[float]]) -> tuple[list[float], list[int]]:
    """Flatten a list of vectors into one list plus the per-vector lengths."""
    flattened: list[float] = []
    lengths: list[int] = []
    for vec in embeddings:
        lengths.append(len(vec))
        flattened.extend(float(v) for v in vec)
    return flattened, lengths


def reconstruct_embeddings(flattened: Sequence[float], lengths: Sequence[int]) -> list[list[float]]:
    """Inverse of `flatten_embeddings`."""
    if sum(lengths) != len(flattened):
        raise ValueError("Lengths do not match the flattened vector size")

    embeddings: list[list[float]] = []
    offset = 0
    for length in lengths:
        embeddings.append([float(v) for v in flattened[offset : offset + length]])
        offset += length
    return embeddings
