from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np

from ..core.constants import FACE_EMBEDDING_SIZE, FACE_MATCH_THRESHOLD
from ..core.enums import VerificationStatus
from ..core.exceptions import ValidationError
from .model import VerificationOutcome


def validate_embedding(value: Any) -> list[float]:
    """Coerce a submitted face descriptor into a list of floats."""
    if not isinstance(value, (list, tuple)) or len(value) != FACE_EMBEDDING_SIZE:
        raise ValidationError(f"Face embedding must contain {FACE_EMBEDDING_SIZE} numbers")
    try:
        floats = [float(v) for v in value]
    except (TypeError, ValueError):
        raise ValidationError(f"Face embedding must contain {FACE_EMBEDDING_SIZE} numbers")
    if not all(math.isfinite(v) for v in floats):
        raise ValidationError(f"Face embedding must contain {FACE_EMBEDDING_SIZE} numbers")
    return floats


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValidationError("Face embeddings have different sizes")
    return float(np.linalg.norm(va - vb))


def compare_embeddings(
    enrolled: Sequence[float],
    captured: Sequence[float],
    *,
    threshold: float = FACE_MATCH_THRESHOLD,
) -> VerificationOutcome:
    distance = euclidean_distance(enrolled, captured)
    if distance <= threshold:
        return VerificationOutcome(VerificationStatus.PASSED, match_distance=distance, match_reason="match")
    return VerificationOutcome(
        VerificationStatus.FLAGGED,
        match_distance=distance,
        match_reason=f"distance_above_threshold ({distance:.3f} > {threshold})",
    )
