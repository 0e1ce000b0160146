from __future__ import annotations

from typing import Iterable, Optional, Sequence

import numpy as np

from ..core.constants import FACE_DESCRIPTOR_SIZE, FACE_MATCH_THRESHOLD
from ..core.exceptions import ValidationError
from .model import FaceMatch, FaceSample


class FaceMatcher:
    """Compare 128-d face descriptors computed by the browser.

    Similarity is ``max(0, 1 - distance / 2)`` where distance is Euclidean.
    """

    def __init__(self, threshold: float = FACE_MATCH_THRESHOLD):
        if not 0 < threshold <= 1:
            raise ValueError("threshold must be in (0, 1]")
        self.threshold = threshold

    @staticmethod
    def to_vector(descriptor: Iterable[float]) -> np.ndarray:
        try:
            vec = np.asarray(list(descriptor), dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise ValidationError("Dữ liệu khuôn mặt không hợp lệ") from exc
        if vec.shape != (FACE_DESCRIPTOR_SIZE,) or not np.all(np.isfinite(vec)):
            raise ValidationError("Dữ liệu khuôn mặt không hợp lệ")
        return vec

    @staticmethod
    def similarity(a: np.ndarray, b: np.ndarray) -> float:
        distance = float(np.linalg.norm(a - b))
        return max(0.0, 1.0 - distance / 2.0)

    def best_match(
        self,
        descriptor: Iterable[float],
        samples: Sequence[FaceSample],
        *,
        threshold: Optional[float] = None,
        exclude_user_id: Optional[int] = None,
    ) -> Optional[FaceMatch]:
        query = self.to_vector(descriptor)
        candidates = [s for s in samples if s.user_id != exclude_user_id]
        if not candidates:
            return None

        stored = np.asarray([s.descriptor for s in candidates], dtype=np.float64)
        distances = np.linalg.norm(stored - query, axis=1)
        idx = int(np.argmin(distances))
        distance = float(distances[idx])
        similarity = max(0.0, 1.0 - distance / 2.0)

        if similarity < (self.threshold if threshold is None else threshold):
            return None
        return FaceMatch(user_id=candidates[idx].user_id, distance=distance, similarity=similarity)
