"""
Pydantic models for the ML Studio client.

Every payload coming back from the remote service is parsed into one of
these models at the Remote Client boundary; a payload that does not fit
is rejected there instead of leaking half-populated dicts into the state.
"""

from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Literal, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DatasetMetadata(BaseModel):
    """Descriptive statistics of an uploaded dataset."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    rows: int = Field(ge=0)
    columns: int = Field(ge=0)
    columns_list: Tuple[str, ...] = ()
    memory_usage: Optional[str] = None
    duplicates_removed: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_column_count(self) -> "DatasetMetadata":
        if len(self.columns_list) != self.columns:
            raise ValueError(
                f"columns_list has {len(self.columns_list)} names but columns is {self.columns}"
            )
        return self


# ============= Algorithm Results =============


class ModelType(str, Enum):
    """Kind of model an algorithm result describes."""

    CLASSIFICATION = "classification"
    REGRESSION = "regression"
    CLUSTERING = "clustering"


class _ResultBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    algorithm: str


class ClassificationResult(_ResultBase):
    model_type: Literal["classification"] = "classification"
    accuracy: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    f1_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    precision: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    recall: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    primary_metric: ClassVar[str] = "accuracy"


class RegressionResult(_ResultBase):
    model_type: Literal["regression"] = "regression"
    r2_score: Optional[float] = None
    rmse: Optional[float] = Field(default=None, ge=0.0)
    mae: Optional[float] = Field(default=None, ge=0.0)
    mse: Optional[float] = Field(default=None, ge=0.0)

    primary_metric: ClassVar[str] = "r2_score"


class ClusteringResult(_ResultBase):
    model_type: Literal["clustering"] = "clustering"
    silhouette_score: Optional[float] = Field(default=None, ge=-1.0, le=1.0)
    clusters_created: Optional[int] = Field(default=None, gt=0)

    primary_metric: ClassVar[str] = "silhouette_score"


class ErrorResult(_ResultBase):
    """An algorithm that failed server-side. Carries no metrics."""

    error: str
    model_type: Optional[str] = None


ScoredResult = Union[ClassificationResult, RegressionResult, ClusteringResult]
AlgorithmResult = Union[ClassificationResult, RegressionResult, ClusteringResult, ErrorResult]

_RESULT_TYPES: Dict[str, Type[_ResultBase]] = {
    ModelType.CLASSIFICATION.value: ClassificationResult,
    ModelType.REGRESSION.value: RegressionResult,
    ModelType.CLUSTERING.value: ClusteringResult,
}


def parse_algorithm_result(data: Any) -> AlgorithmResult:
    """Parse one entry of an analysis batch.

    An entry with a non-empty ``error`` field is an ErrorResult whatever its
    model type; otherwise ``model_type`` selects the result class.

    Raises:
        ValueError: If the entry is not an object, names an unknown model
            type, or fails validation (pydantic's error is a ValueError).
    """
    if isinstance(data, _ResultBase):
        return data
    if not isinstance(data, dict):
        raise ValueError(f"Algorithm result must be an object, got {type(data).__name__}")
    if data.get("error"):
        return ErrorResult.model_validate(data)

    model_type = data.get("model_type")
    result_cls = _RESULT_TYPES.get(model_type)
    if result_cls is None:
        raise ValueError(f"Unknown model type: {model_type!r}")
    return result_cls.model_validate(data)


# ============= Endpoint Responses =============


class UploadResponse(BaseModel):
    """Success body of ``POST /upload``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    success: bool
    filename: str = Field(min_length=1)
    original_filename: Optional[str] = None
    info: DatasetMetadata


class AnalyzeResponse(BaseModel):
    """Success body of ``POST /analyze``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    success: bool
    results: List[AlgorithmResult] = Field(min_length=1)

    @field_validator("results", mode="before")
    @classmethod
    def _parse_results(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [parse_algorithm_result(item) for item in value]


# ============= Session Snapshot =============


class SessionSnapshot(BaseModel):
    """Persisted record ``{currentDataset, datasetInfo, timestamp}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    reference: str = Field(alias="currentDataset", min_length=1)
    metadata: DatasetMetadata = Field(alias="datasetInfo")
    timestamp: datetime

    def to_record(self) -> Dict[str, Any]:
        """Convert to the JSON-ready persisted shape."""
        return self.model_dump(mode="json", by_alias=True)
