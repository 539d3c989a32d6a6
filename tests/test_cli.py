"""
Tests for the command-line front end.
"""

import os

import httpx
import pytest

import main as cli
from mlstudio import StudioContext
from mlstudio.events import Outcome, OutcomeType


def _health_only(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/health":
        return httpx.Response(200, json={"status": "healthy"})
    return httpx.Response(404, json={"error": "not found"})


class TestParser:

    def test_analyze_defaults_to_empty_selection(self):
        args = cli.build_parser().parse_args(["analyze"])
        assert args.command == "analyze"
        assert args.algorithms == []

    def test_global_options(self, tmp_path):
        args = cli.build_parser().parse_args([
            "--api-url", "http://remote:5000",
            "--settings", str(tmp_path / "s.yaml"),
            "columns", "--refresh",
        ])
        assert args.api_url == "http://remote:5000"
        assert args.settings == tmp_path / "s.yaml"
        assert args.refresh is True

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestRender:

    def test_upload_succeeded_lists_columns(self, capsys, sample_metadata):
        cli.render(Outcome(
            type=OutcomeType.UPLOAD_SUCCEEDED,
            data={
                "reference": "iris_1.csv",
                "filename": "iris.csv",
                "size": "6.02 KB",
                "metadata": sample_metadata.model_dump(),
            },
        ))

        out = capsys.readouterr().out
        assert "Upload Successful! iris.csv -> iris_1.csv" in out
        assert "Rows:    150" in out
        assert "sepal_length, sepal_width" in out
        assert "Removed 1 duplicate rows" in out

    def test_column_tags_are_capped(self, capsys):
        columns = [f"c{i}" for i in range(11)]
        cli.render(Outcome(
            type=OutcomeType.DATASET_RESTORED,
            data={"reference": "wide.csv", "metadata": {
                "rows": 1, "columns": 11, "columns_list": columns,
                "memory_usage": None, "duplicates_removed": 0,
            }},
        ))

        out = capsys.readouterr().out
        assert "c7 (+3 more)" in out
        assert "c8" not in out
        assert "duplicate" not in out

    def test_analysis_results(self, capsys):
        cli.render(Outcome(
            type=OutcomeType.ANALYSIS_SUCCEEDED,
            data={
                "results": [
                    {"algorithm": "random_forest", "model_type": "classification", "score": 0.92,
                     "metrics": {"accuracy": 0.92, "f1_score": None}, "error": None},
                    {"algorithm": "svm", "model_type": None, "score": None, "metrics": {},
                     "error": "did not converge"},
                ],
                "winner": {"algorithm": "random_forest", "model_type": "classification",
                           "score": 0.92, "display_score": "92.00% accuracy"},
                "best_classification": None,
            },
        ))

        out = capsys.readouterr().out
        assert "random_forest [classification] accuracy=0.9200" in out
        assert "x svm: did not converge" in out
        assert "Best algorithm: random_forest (92.00% accuracy)" in out

    def test_failures_go_to_stderr(self, capsys):
        cli.render(Outcome(type=OutcomeType.ANALYSIS_FAILED, data={"message": "File not found"}))

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Analysis failed: File not found" in captured.err


class TestRunCommand:

    @pytest.mark.asyncio
    async def test_status_connected(self, settings, capsys):
        studio = StudioContext(settings, transport=httpx.MockTransport(_health_only),
                               background_health_checks=False)
        async with studio:
            args = cli.build_parser().parse_args(["status"])
            assert await cli.run_command(args, studio) == cli.EXIT_OK

        assert "Connected: True" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_upload_rejected_file_raises_validation_error(self, settings, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello", encoding="utf-8")
        studio = StudioContext(settings, transport=httpx.MockTransport(_health_only),
                               background_health_checks=False)
        async with studio:
            args = cli.build_parser().parse_args(["upload", str(path)])
            with pytest.raises(cli.ValidationError):
                await cli.run_command(args, studio)

    @pytest.mark.asyncio
    async def test_upload_service_error_exits_failed(self, settings, tmp_path):
        path = tmp_path / "iris.csv"
        path.write_text("a,b\n1,2\n", encoding="utf-8")
        studio = StudioContext(settings, transport=httpx.MockTransport(_health_only),
                               background_health_checks=False)
        async with studio:
            args = cli.build_parser().parse_args(["upload", str(path)])
            assert await cli.run_command(args, studio) == cli.EXIT_FAILED
            assert not studio.state.has_dataset


def test_main_reports_missing_file(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("MLSTUDIO_SESSION_DIR", str(tmp_path / "session"))
    monkeypatch.setattr(cli, "StudioContext", _offline_context)

    code = cli.main(["--settings", str(tmp_path / "absent.yaml"), "upload", str(tmp_path / "missing.csv")])

    assert code == cli.EXIT_REJECTED
    assert "File not found" in capsys.readouterr().err


def _offline_context(settings, **kwargs):
    kwargs["transport"] = httpx.MockTransport(_health_only)
    return StudioContext(settings, **kwargs)


def test_api_url_option_leaves_environment_untouched(tmp_path, monkeypatch):
    monkeypatch.delenv("MLSTUDIO_API_URL", raising=False)
    monkeypatch.setenv("MLSTUDIO_SESSION_DIR", str(tmp_path / "session"))
    built = []

    def recording_context(settings, **kwargs):
        built.append(settings)
        return _offline_context(settings, **kwargs)

    monkeypatch.setattr(cli, "StudioContext", recording_context)

    code = cli.main(["--api-url", "http://remote:5000", "--settings", str(tmp_path / "absent.yaml"), "health"])

    assert code == cli.EXIT_OK
    assert built[0].base_url == "http://remote:5000"
    assert "MLSTUDIO_API_URL" not in os.environ
