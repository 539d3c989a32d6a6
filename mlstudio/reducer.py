"""
Reduction of an analysis batch into a per-result view and a winner.

The winner is the non-error result with the highest primary metric
(accuracy, r2_score or silhouette_score depending on the model type). A
single running maximum seeded at 0 is shared across all model types, so
only strictly positive scores can win and raw values from different scales
are compared directly. Ties keep the earlier result.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .models import AlgorithmResult, ClassificationResult, ErrorResult, ModelType
from .shared.logger import get_logger

logger = get_logger(__name__)

_METRICS: Dict[ModelType, Sequence[str]] = {
    ModelType.CLASSIFICATION: ("accuracy", "f1_score", "precision", "recall"),
    ModelType.REGRESSION: ("r2_score", "rmse", "mae", "mse"),
    ModelType.CLUSTERING: ("silhouette_score", "clusters_created"),
}

_DISPLAY: Dict[ModelType, Callable[[float], str]] = {
    ModelType.CLASSIFICATION: lambda score: f"{score * 100:.2f}% accuracy",
    ModelType.REGRESSION: lambda score: f"R² score: {score:.4f}",
    ModelType.CLUSTERING: lambda score: f"Silhouette: {score:.4f}",
}


def format_score(model_type: ModelType, score: float) -> str:
    """Human-readable rendering of a primary metric."""
    return _DISPLAY[model_type](score)


@dataclass(frozen=True)
class NormalizedResult:
    """One batch entry prepared for display."""

    algorithm: str
    model_type: Optional[ModelType]
    score: Optional[float]
    metrics: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    result: Optional[AlgorithmResult] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "model_type": self.model_type.value if self.model_type else None,
            "score": self.score,
            "metrics": self.metrics,
            "error": self.error,
        }


@dataclass(frozen=True)
class Winner:
    """Best model of a batch."""

    algorithm: str
    model_type: ModelType
    score: float
    display_score: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "model_type": self.model_type.value,
            "score": self.score,
            "display_score": self.display_score,
        }


@dataclass(frozen=True)
class ReducedResults:
    """Output of reduce_results."""

    per_result: List[NormalizedResult]
    winner: Optional[Winner] = None
    best_classification: Optional[ClassificationResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.per_result],
            "winner": self.winner.to_dict() if self.winner else None,
            "best_classification": (
                self.best_classification.model_dump() if self.best_classification else None
            ),
        }


def normalize_result(result: AlgorithmResult) -> NormalizedResult:
    """Flatten one result into algorithm, type, primary score and metrics."""
    if isinstance(result, ErrorResult):
        return NormalizedResult(
            algorithm=result.algorithm,
            model_type=None,
            score=None,
            error=result.error,
            result=result,
        )

    model_type = ModelType(result.model_type)
    return NormalizedResult(
        algorithm=result.algorithm,
        model_type=model_type,
        score=getattr(result, result.primary_metric),
        metrics={name: getattr(result, name) for name in _METRICS[model_type]},
        result=result,
    )


def _best_classification(batch: Sequence[AlgorithmResult]) -> Optional[ClassificationResult]:
    best: Optional[ClassificationResult] = None
    for result in batch:
        if not isinstance(result, ClassificationResult) or result.accuracy is None:
            continue
        if best is None or result.accuracy > best.accuracy:
            best = result
    return best


def reduce_results(batch: Sequence[AlgorithmResult]) -> ReducedResults:
    """Build the per-result view and pick the winner of a batch.

    Error entries are passed through and never compete. The accuracy
    dashboard (best_classification) is only filled when a winner exists.
    """
    per_result = [normalize_result(result) for result in batch]

    best_score = 0.0
    winner: Optional[NormalizedResult] = None
    for entry in per_result:
        if entry.is_error or entry.score is None:
            continue
        # NaN never compares greater, so it cannot win
        if entry.score > best_score:
            best_score = entry.score
            winner = entry

    if winner is None:
        return ReducedResults(per_result=per_result)

    logger.debug("Best model: %s (%s, %s)", winner.algorithm, winner.model_type.value, best_score)
    return ReducedResults(
        per_result=per_result,
        winner=Winner(
            algorithm=winner.algorithm,
            model_type=winner.model_type,
            score=best_score,
            display_score=format_score(winner.model_type, best_score),
        ),
        best_classification=_best_classification(batch),
    )
