"""
Command line front-end.

    palmtext explain --language R script.R
    palmtext reference "recurrent neural network" --num-sources 3 --citation-style MLA
    echo "me and him goes home" | palmtext fix-grammar -

The API key is read from PALM_API_KEY (a local .env file is honored) unless
--api-key is given.
"""

import argparse
import asyncio
import sys
from typing import Dict, List, Optional

from dotenv import load_dotenv

from palmtext.config.logging_config import configure_logging, get_logger
from palmtext.config.settings import PalmSettings
from palmtext.llm.client import PalmTextClient
from palmtext.llm.prompts import (
    ExplainCodeParams,
    FixGrammarParams,
    GenerateParams,
    GetReferenceParams,
    Operation,
    OptimizationAspect,
    OptimizeCodeParams,
    SourceType,
)
from palmtext.llm.types import (
    PalmError,
    PalmRequestError,
    RemoteError,
    SafetyWarning,
    Success,
)

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_OUTCOME = 1
EXIT_USAGE = 2


def _read_text(value: str, path: Optional[str] = None) -> str:
    if path:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    if value == "-":
        return sys.stdin.read()
    return value


def _parse_safety(pairs: List[str]) -> Dict[str, str]:
    overrides = {}
    for pair in pairs:
        category, sep, code = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"expected CATEGORY=CODE, got '{pair}'")
        overrides[category.strip()] = code.strip()
    return overrides


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="palmtext",
        description="Query the PaLM 2 text model.",
    )
    parser.add_argument("--api-key", help="API key (default: $PALM_API_KEY)")
    parser.add_argument("--model-version", choices=["v1beta2", "v1beta3"])
    parser.add_argument("--proxy", action="store_true", default=None, help="Use the proxy host")
    parser.add_argument("--check", action="store_true", help="Probe the model before the request")
    parser.add_argument("--temperature", type=float)
    parser.add_argument("--max-output-tokens", type=int)
    parser.add_argument("--top-p", type=float)
    parser.add_argument("--top-k", type=int)
    parser.add_argument(
        "--safety", action="append", default=[], metavar="CATEGORY=CODE",
        help="Safety threshold override, e.g. violence=high (codes: unsp, lowa, meda, high, none)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("generate", help="Free-form text generation")
    p.add_argument("prompt", help="Prompt text, or - for stdin")

    p = sub.add_parser("fix-grammar", help="Correct the grammar of a text")
    p.add_argument("text", help="Text, or - for stdin")

    p = sub.add_parser("reference", help="Find references on a topic")
    p.add_argument("topic")
    p.add_argument("--source-type", default=SourceType.ARTICLES.value,
                   choices=[s.value for s in SourceType])
    p.add_argument("--source-date", default="most recent")
    p.add_argument("--num-sources", type=int, default=5)
    p.add_argument("--citation-style", default="APA")

    for name, help_text in (("explain", "Explain a code snippet"), ("optimize", "Optimize a code snippet")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("code", nargs="?", default="-", help="Code, or - for stdin")
        p.add_argument("--file", help="Read the code from a file")
        p.add_argument("--language", required=True)
        if name == "optimize":
            p.add_argument("--aspect", default=OptimizationAspect.GENERAL.value,
                           choices=[a.value for a in OptimizationAspect])
            p.add_argument("--goal", help="Free-form optimization goal (overrides --aspect)")

    return parser


def _operation(args: argparse.Namespace):
    if args.command == "generate":
        return Operation.GENERATE, GenerateParams(prompt=_read_text(args.prompt))
    if args.command == "fix-grammar":
        return Operation.FIX_GRAMMAR, FixGrammarParams(text=_read_text(args.text))
    if args.command == "reference":
        return Operation.GET_REFERENCE, GetReferenceParams(
            topic=args.topic,
            source_type=args.source_type,
            source_date=args.source_date,
            num_sources=args.num_sources,
            citation_style=args.citation_style,
        )
    code = _read_text(args.code, args.file)
    if args.command == "explain":
        return Operation.EXPLAIN_CODE, ExplainCodeParams(code=code, language=args.language)
    return Operation.OPTIMIZE_CODE, OptimizeCodeParams(
        code=code, language=args.language, aspect=args.aspect, goal=args.goal,
    )


def _settings(args: argparse.Namespace) -> PalmSettings:
    settings = PalmSettings.from_env()
    if args.api_key:
        settings.api_key = args.api_key
    if args.model_version:
        settings.model_version = args.model_version
    if args.proxy is not None:
        settings.use_proxy = args.proxy
    if args.temperature is not None:
        settings.temperature = args.temperature
    if args.max_output_tokens is not None:
        settings.max_output_tokens = args.max_output_tokens
    if args.top_p is not None:
        settings.top_p = args.top_p
    if args.top_k is not None:
        settings.top_k = args.top_k
    return settings


async def _run(settings: PalmSettings, args: argparse.Namespace, operation, params, safety):
    async with PalmTextClient.from_settings(settings) as client:
        if args.check:
            await client.check_connection()
        return await client.run(
            operation,
            params,
            generation_config=settings.generation_config(),
            safety_overrides=safety,
        )


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    configure_logging("WARN")

    parser = build_parser()
    args = parser.parse_args(argv)
    logger.debug(f"📋 Command: {args.command}")

    try:
        safety = _parse_safety(args.safety)
        settings = _settings(args)
        operation, params = _operation(args)
        outcome = asyncio.run(_run(settings, args, operation, params, safety))

    except (PalmRequestError, argparse.ArgumentTypeError, ValueError, OSError) as e:
        print(f"palmtext: {e}", file=sys.stderr)
        return EXIT_USAGE

    except PalmError as e:
        print(f"palmtext: {e}", file=sys.stderr)
        return EXIT_OUTCOME

    if isinstance(outcome, Success):
        print(outcome.text)
        return EXIT_OK

    if isinstance(outcome, RemoteError):
        print(f"palmtext: API error: {outcome.message}", file=sys.stderr)
    elif isinstance(outcome, SafetyWarning) and outcome.categories:
        print(
            "palmtext: prompt violates safety setting(s): "
            + ", ".join(sorted(outcome.categories)),
            file=sys.stderr,
        )
    elif isinstance(outcome, SafetyWarning):
        print("palmtext: safe inquiry, but there is safety feedback", file=sys.stderr)
    else:
        print("palmtext: unrecognized response from the API", file=sys.stderr)
    return EXIT_OUTCOME


if __name__ == "__main__":
    sys.exit(main())
