"""
Unit tests for the command line front-end.

Tests argument parsing, settings overrides, input sources, outcome reporting
and exit codes.
"""

import io
import logging

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from palmtext.cli import EXIT_OK, EXIT_OUTCOME, EXIT_USAGE, build_parser, main
from palmtext.llm.client import PalmTextClient
from palmtext.llm.prompts import (
    ExplainCodeParams,
    GetReferenceParams,
    Operation,
    OptimizeCodeParams,
)
from palmtext.llm.types import (
    GenerationConfig,
    PalmConnectionError,
    PalmRemoteError,
    RemoteError,
    SafetyWarning,
    Success,
    UnknownResponse,
)
from tests.fixtures.palm_responses import SUCCESS_RESPONSE


@pytest.fixture(autouse=True)
def no_dotenv():
    """Keep a local .env file out of CLI tests"""
    with patch("palmtext.cli.load_dotenv"):
        yield


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("PALM_API_KEY", "cli_test_key")


# ============================================================
# Parser Tests
# ============================================================


@pytest.mark.unit
def test_parser_reference_defaults():
    """Test reference subcommand defaults"""
    # ACT
    args = build_parser().parse_args(["reference", "H5N1"])

    # ASSERT
    assert args.command == "reference"
    assert args.source_type == "articles"
    assert args.source_date == "most recent"
    assert args.num_sources == 5
    assert args.citation_style == "APA"


@pytest.mark.unit
def test_parser_requires_language():
    """Test explain without --language is a usage error"""
    # ACT & ASSERT
    with pytest.raises(SystemExit) as exc_info:
        build_parser().parse_args(["explain", "x <- 1"])

    assert exc_info.value.code == 2


@pytest.mark.unit
def test_parser_rejects_unknown_aspect():
    """Test optimize --aspect is restricted to known aspects"""
    # ACT & ASSERT
    with pytest.raises(SystemExit):
        build_parser().parse_args(["optimize", "x", "--language", "R", "--aspect", "speed"])


# ============================================================
# Success Path Tests
# ============================================================


@pytest.mark.unit
def test_generate_prints_text(api_key, capsys):
    """Test a successful request prints the text and exits 0"""
    # ARRANGE
    with patch.object(PalmTextClient, "run", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = Success(text="A haiku.")

        # ACT
        code = main(["generate", "Write a haiku"])

    # ASSERT
    assert code == EXIT_OK
    assert capsys.readouterr().out == "A haiku.\n"
    operation, params = mock_run.call_args.args
    assert operation is Operation.GENERATE
    assert params.prompt == "Write a haiku"


@pytest.mark.unit
def test_end_to_end_with_mocked_http(api_key, capsys):
    """Test the full path from arguments to the HTTP payload"""
    # ARRANGE
    response = httpx.Response(200, json=SUCCESS_RESPONSE)

    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
        mock_post.return_value = response

        # ACT
        code = main(["--proxy", "--top-k", "7", "fix-grammar", "she go home"])

    # ASSERT
    assert code == EXIT_OK
    assert capsys.readouterr().out == "hello\n"
    url = mock_post.call_args.args[0]
    payload = mock_post.call_args.kwargs["json"]
    assert url.startswith("https://api.genai.gd.edu.kg/google/v1beta3/")
    assert url.endswith("?key=cli_test_key")
    assert payload["prompt"]["text"] == "Correct the grammar of: she go home"
    assert payload["topK"] == 7


@pytest.mark.unit
def test_success_run_is_quiet_by_default(api_key, caplog):
    """Test a successful run emits no INFO records without LOG_LEVEL set"""
    # ARRANGE
    response = httpx.Response(200, json=SUCCESS_RESPONSE)
    caplog.set_level(logging.NOTSET)

    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
        mock_post.return_value = response

        # ACT
        code = main(["generate", "hi"])

    # ASSERT
    assert code == EXIT_OK
    noisy = [
        record for record in caplog.records
        if record.name.startswith("palmtext") and record.levelno < logging.WARNING
    ]
    assert noisy == []


@pytest.mark.unit
def test_options_are_forwarded(api_key):
    """Test sampling and safety options reach the client"""
    # ARRANGE
    argv = [
        "--temperature", "0.2",
        "--max-output-tokens", "256",
        "--safety", "violence=high",
        "--safety", "medical = none",
        "reference", "RNN",
        "--source-type", "websites",
        "--num-sources", "3",
        "--citation-style", "MLA",
    ]

    with patch.object(PalmTextClient, "run", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = Success(text="refs")

        # ACT
        code = main(argv)

    # ASSERT
    assert code == EXIT_OK
    operation, params = mock_run.call_args.args
    assert operation is Operation.GET_REFERENCE
    assert params == GetReferenceParams(
        topic="RNN", source_type="websites", num_sources=3, citation_style="MLA",
    )
    kwargs = mock_run.call_args.kwargs
    assert kwargs["generation_config"] == GenerationConfig(temperature=0.2, max_output_tokens=256)
    assert kwargs["safety_overrides"] == {"violence": "high", "medical": "none"}


@pytest.mark.unit
def test_explain_reads_file(api_key, tmp_path):
    """Test --file supplies the code"""
    # ARRANGE
    script = tmp_path / "script.R"
    script.write_text("x <- 1\n", encoding="utf-8")

    with patch.object(PalmTextClient, "run", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = Success(text="explained")

        # ACT
        code = main(["explain", "--file", str(script), "--language", "R"])

    # ASSERT
    assert code == EXIT_OK
    assert mock_run.call_args.args[1] == ExplainCodeParams(code="x <- 1\n", language="R")


@pytest.mark.unit
def test_optimize_reads_stdin(api_key, monkeypatch):
    """Test code defaults to stdin"""
    # ARRANGE
    monkeypatch.setattr("sys.stdin", io.StringIO("foo(n - 1)"))

    with patch.object(PalmTextClient, "run", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = Success(text="faster")

        # ACT
        code = main(["optimize", "--language", "R", "--goal", "Improve the runtime."])

    # ASSERT
    assert code == EXIT_OK
    assert mock_run.call_args.args[1] == OptimizeCodeParams(
        code="foo(n - 1)", language="R", goal="Improve the runtime.",
    )


@pytest.mark.unit
def test_check_probes_first(api_key):
    """Test --check probes the model before the request"""
    # ARRANGE
    with patch.object(PalmTextClient, "check_connection", new_callable=AsyncMock) as mock_check, \
            patch.object(PalmTextClient, "run", new_callable=AsyncMock) as mock_run:
        mock_check.return_value = {"name": "models/text-bison-001"}
        mock_run.return_value = Success(text="ok")

        # ACT
        code = main(["--check", "generate", "hi"])

    # ASSERT
    assert code == EXIT_OK
    mock_check.assert_awaited_once()


# ============================================================
# Failure Path Tests
# ============================================================


@pytest.mark.unit
def test_missing_api_key(capsys):
    """Test a missing key is a usage error"""
    # ACT
    code = main(["generate", "hi"])

    # ASSERT
    assert code == EXIT_USAGE
    assert "PALM_API_KEY" in capsys.readouterr().err


@pytest.mark.unit
def test_malformed_safety_option(api_key, capsys):
    """Test --safety without '=' is a usage error"""
    # ACT
    code = main(["--safety", "violence", "generate", "hi"])

    # ASSERT
    assert code == EXIT_USAGE
    assert "CATEGORY=CODE" in capsys.readouterr().err


@pytest.mark.unit
def test_invalid_safety_code(api_key, capsys):
    """Test an unknown threshold code is a usage error"""
    # ARRANGE
    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
        # ACT
        code = main(["--safety", "violence=xyz9", "generate", "hi"])

    # ASSERT
    assert code == EXIT_USAGE
    assert "xyz9" in capsys.readouterr().err
    mock_post.assert_not_called()


@pytest.mark.unit
def test_empty_prompt(api_key, capsys):
    """Test an empty prompt is a usage error"""
    # ACT
    code = main(["generate", ""])

    # ASSERT
    assert code == EXIT_USAGE


@pytest.mark.unit
@pytest.mark.parametrize(
    "outcome, message",
    [
        (RemoteError(message="bad key"), "API error: bad key"),
        (SafetyWarning(categories=frozenset({"VIOLENCE"})), "violates safety setting(s): VIOLENCE"),
        (SafetyWarning(below_threshold=True), "safe inquiry, but there is safety feedback"),
        (UnknownResponse(), "unrecognized response"),
    ],
)
def test_non_success_outcomes(api_key, capsys, outcome, message):
    """Test each non-success outcome is reported with exit code 1"""
    # ARRANGE
    with patch.object(PalmTextClient, "run", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = outcome

        # ACT
        code = main(["generate", "hi"])

    # ASSERT
    captured = capsys.readouterr()
    assert code == EXIT_OUTCOME
    assert captured.out == ""
    assert message in captured.err


@pytest.mark.unit
@pytest.mark.parametrize(
    "error",
    [
        PalmConnectionError("PaLM connection error: ConnectError"),
        PalmRemoteError("API key not valid", code=400),
    ],
)
def test_transport_errors(api_key, capsys, error):
    """Test transport and probe failures exit with code 1"""
    # ARRANGE
    with patch.object(PalmTextClient, "check_connection", new_callable=AsyncMock) as mock_check, \
            patch.object(PalmTextClient, "run", new_callable=AsyncMock) as mock_run:
        mock_check.return_value = {}
        mock_run.side_effect = error
        if isinstance(error, PalmRemoteError):
            mock_check.side_effect = error

        # ACT
        code = main(["--check", "generate", "hi"])

    # ASSERT
    assert code == EXIT_OUTCOME
    assert str(error) in capsys.readouterr().err
