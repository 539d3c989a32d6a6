"""
Integration test fixtures for the ML Studio client.

Provides:
- An in-process FastAPI fake of the analysis service (/health, /upload,
  /analyze, /dataset_info, /get_columns), served through httpx.ASGITransport
- A factory for StudioContext instances wired to it, sharing one session
  directory so a "restart" is just a second context
- A transport simulating an unreachable service
"""

import csv
import io
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi import FastAPI, File, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mlstudio import Settings, StudioContext

BASE_URL = "http://testserver"

IRIS_CSV = (
    "sepal_length,sepal_width,petal_length,petal_width,species\n"
    "5.1,3.5,1.4,0.2,setosa\n"
    "4.9,3.0,1.4,0.2,setosa\n"
    "5.1,3.5,1.4,0.2,setosa\n"
    "6.2,3.4,5.4,2.3,virginica\n"
).encode("utf-8")

# Canned metrics per algorithm id; anything else fails server-side
DEFAULT_SCORES: Dict[str, Dict[str, Any]] = {
    "random_forest": {"model_type": "classification", "accuracy": 0.92, "f1_score": 0.91,
                      "precision": 0.9, "recall": 0.93},
    "decision_tree": {"model_type": "classification", "accuracy": 0.85, "f1_score": 0.84,
                      "precision": 0.83, "recall": 0.86},
    "linear_regression": {"model_type": "regression", "r2_score": 0.81, "rmse": 0.4,
                          "mae": 0.3, "mse": 0.16},
    "clustering": {"model_type": "clustering", "silhouette_score": 0.65, "clusters_created": 3},
}


class AnalyzeRequest(BaseModel):
    filename: str
    algorithms: List[str]


class FakeBackend:
    """State of the fake service, inspectable from tests."""

    def __init__(self):
        self.datasets: Dict[str, Dict[str, Any]] = {}
        self.scores: Dict[str, Dict[str, Any]] = dict(DEFAULT_SCORES)
        self.analyze_requests: List[AnalyzeRequest] = []
        self.healthy = True

    def describe(self, filename: str, content: bytes) -> Dict[str, Any]:
        reader = csv.reader(io.StringIO(content.decode("utf-8")))
        header = next(reader)
        rows = [tuple(row) for row in reader if row]
        unique = list(dict.fromkeys(rows))
        return {
            "rows": len(unique),
            "columns": len(header),
            "columns_list": header,
            "memory_usage": f"{len(content) / 1024:.2f} KB",
            "duplicates_removed": len(rows) - len(unique),
        }

    def build_app(self) -> FastAPI:
        app = FastAPI(title="Fake ML Studio backend")

        @app.get("/health")
        async def health():
            if not self.healthy:
                return JSONResponse(status_code=503, content={"status": "unavailable"})
            return {"status": "healthy"}

        @app.post("/upload")
        async def upload(file: UploadFile = File(...)):
            if not file.filename.lower().endswith(".csv"):
                return JSONResponse(status_code=400, content={"error": "Only CSV is supported here"})
            content = await file.read()
            try:
                info = self.describe(file.filename, content)
            except (UnicodeDecodeError, StopIteration):
                return JSONResponse(status_code=400, content={"error": "Could not parse file"})

            stored = f"{Path(file.filename).stem}_{uuid.uuid4().hex[:8]}.csv"
            self.datasets[stored] = info
            return {
                "success": True,
                "filename": stored,
                "original_filename": file.filename,
                "info": info,
            }

        @app.post("/analyze")
        async def analyze(request: AnalyzeRequest):
            self.analyze_requests.append(request)
            if request.filename not in self.datasets:
                return JSONResponse(status_code=404, content={"error": "File not found"})
            results = []
            for name in request.algorithms:
                if name in self.scores:
                    results.append({"algorithm": name, **self.scores[name]})
                else:
                    results.append({"algorithm": name, "error": f"Unknown algorithm: {name}"})
            return {"success": True, "results": results}

        @app.get("/dataset_info/{filename}")
        async def dataset_info(filename: str):
            if filename not in self.datasets:
                return JSONResponse(status_code=404, content={"error": "File not found"})
            return self.datasets[filename]

        @app.get("/get_columns/{filename}")
        async def get_columns(filename: str):
            if filename not in self.datasets:
                return JSONResponse(status_code=404, content={"error": "File not found"})
            return self.datasets[filename]["columns_list"]

        return app


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def backend_transport(backend: FakeBackend) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=backend.build_app())


@pytest.fixture
def unreachable_transport() -> httpx.MockTransport:
    return httpx.MockTransport(_refuse)


@pytest.fixture
def studio_settings(tmp_path: Path) -> Settings:
    return Settings(api_url=BASE_URL, session_dir=tmp_path / "session")


@pytest.fixture
def make_studio(
    studio_settings: Settings, backend_transport: httpx.ASGITransport
) -> Callable[..., StudioContext]:
    """Factory for contexts sharing one session directory."""

    def factory(transport: Optional[httpx.AsyncBaseTransport] = None) -> StudioContext:
        return StudioContext(
            studio_settings,
            transport=transport or backend_transport,
            background_health_checks=False,
        )

    return factory


@pytest.fixture
def iris_file(tmp_path: Path) -> Path:
    path = tmp_path / "iris.csv"
    path.write_bytes(IRIS_CSV)
    return path
