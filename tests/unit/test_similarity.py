"""Unit tests for similarity search helpers."""

from __future__ import annotations

import math

import pytest

from agent_workflow.tools.similarity import (
    cosine_similarity,
    find_most_similar_chunk,
    flatten_embeddings,
    reconstruct_embeddings,
)


def test_most_similar_chunk_prefers_exact_direction() -> None:
    assert find_most_similar_chunk([1, 0], [[1, 0], [0, 1], [0.9, 0.1]]) == 0


def test_most_similar_chunk_keeps_first_of_ties() -> None:
    assert find_most_similar_chunk([0, 1], [[1, 0], [0, 2], [0, 3]]) == 1


def test_cosine_similarity_values() -> None:
    assert cosine_similarity([1, 0], [0, 1]) == 0.0
    assert math.isclose(cosine_similarity([1, 1], [2, 2]), 1.0)
    assert math.isclose(cosine_similarity([1, 0], [-1, 0]), -1.0)


def test_cosine_similarity_zero_vector() -> None:
    assert cosine_similarity([0, 0], [1, 0]) == 0.0


def test_cosine_similarity_rejects_length_mismatch() -> None:
    with pytest.raises(ValueError, match="lengths differ"):
        cosine_similarity([1, 0], [1, 0, 0])


def test_flatten_records_lengths() -> None:
    flattened, lengths = flatten_embeddings([[1.0, 2.0], [3.0], [4.0, 5.0, 6.0]])

    assert flattened == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
    assert lengths == [2, 1, 3]
    assert reconstruct_embeddings(flattened, lengths) == [[1.0, 2.0], [3.0], [4.0, 5.0, 6.0]]


def test_reconstruct_rejects_inconsistent_lengths() -> None:
    with pytest.raises(ValueError):
        reconstruct_embeddings([1.0, 2.0], [3])
