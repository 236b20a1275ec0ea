"""Vector similarity for embedding results."""

import logging
import math
from collections.abc import Sequence

logger = logging.getLogger(__name__)


def vector_similarity(vector1: Sequence[float], vector2: Sequence[float]) -> float:
    """Cosine similarity of two vectors, normalized to the 0..1 range.

    Identical directions give 1.0, opposite directions 0.0 and orthogonal
    vectors 0.5. Zero-magnitude vectors give 0.0.

    Args:
        vector1: First vector
        vector2: Second vector

    Returns:
        Similarity rounded to 6 decimal places

    Raises:
        ValueError: If the vectors are empty or differ in length
    """
    if len(vector1) != len(vector2):
        raise ValueError("Vectors must have the same length")
    if not vector1:
        raise ValueError("Vectors cannot be empty")

    dot_product = sum(a * b for a, b in zip(vector1, vector2))
    magnitude1 = math.sqrt(sum(a * a for a in vector1))
    magnitude2 = math.sqrt(sum(b * b for b in vector2))

    if magnitude1 == 0 or magnitude2 == 0:
        logger.debug("Zero-magnitude vector; similarity is undefined")
        return 0.0

    similarity = min(max(dot_product / (magnitude1 * magnitude2), -1.0), 1.0)
    return round((similarity + 1) / 2, 6)
