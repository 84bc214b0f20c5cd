from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Callable, TypeVar

from .artifacts import StagePaths, write_text
from .captions import TriggerPolicy, build_trigger_policy, format_human_readable, parse_caption_file
from .config import PipelineConfig
from .episode_locator import get_latest_episode_url
from .errors import PipelineError
from .prompts import compose_extraction_prompt, load_prompt_template
from .workflow import run_extraction_workflow
from .ytdlp_utils import download_captions


logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qcp",
        description="Quiz caption pipeline: locate, download captions, parse the final round, extract questions.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("locate", help="Print the URL of the latest episode from the listing page.")

    p_fetch = sub.add_parser("fetch", help="Download the captions track of an episode with yt-dlp.")
    p_fetch.add_argument("url", type=str)
    p_fetch.add_argument("--output-dir", type=Path)

    p_parse = sub.add_parser("parse", help="Extract the final-round transcript from a captions file.")
    p_parse.add_argument("captions", type=Path)
    p_parse.add_argument("-o", "--output", type=Path, required=True)
    p_parse.add_argument("--human-readable-out", type=Path)
    p_parse.add_argument("--policy", choices=["fixed", "multi", "marker"])

    p_prompt = sub.add_parser("prompt", help="Build the extraction prompt from a parsed transcript.")
    p_prompt.add_argument("transcript", type=Path)
    p_prompt.add_argument("-o", "--output", type=Path, required=True)
    p_prompt.add_argument("--prompt-file", type=Path)

    p_extract = sub.add_parser("extract", help="Send a parsed transcript to the chat model.")
    p_extract.add_argument("transcript", type=Path)
    p_extract.add_argument("-o", "--output", type=Path, required=True)
    p_extract.add_argument("--prompt-out", type=Path)
    p_extract.add_argument("--prompt-file", type=Path)

    p_all = sub.add_parser(
        "run-all", help="Run locate -> fetch -> parse -> prompt -> model. Without URL, uses the latest episode."
    )
    p_all.add_argument("url", type=str, nargs="?")
    p_all.add_argument("--output-root", type=Path)
    p_all.add_argument("--prompt-file", type=Path)
    p_all.add_argument("--policy", choices=["fixed", "multi", "marker"])

    return parser


def _print(msg: str) -> None:
    print(msg, file=sys.stderr)


def _run_stage(description: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    try:
        return func(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001
        raise PipelineError(f"An error occurred when {description}: {exc}") from exc


def _trigger_policy(args: argparse.Namespace, cfg: PipelineConfig) -> TriggerPolicy:
    if args.policy:
        return build_trigger_policy(
            args.policy,
            prefixes=cfg.trigger.prefixes,
            threshold_prefix=cfg.trigger.threshold_prefix,
            marker=cfg.trigger.marker,
        )
    return cfg.trigger.build()


def _prompt_template(prompt_file: Path | None, cfg: PipelineConfig) -> str | None:
    path = prompt_file or cfg.extract_prompt_file
    return load_prompt_template(path) if path else None


def _locate(cfg: PipelineConfig) -> str:
    return get_latest_episode_url(
        cfg.listing_url,
        base_url=cfg.episode_base_url,
        link_selector=cfg.episode_link_selector,
        timeout=cfg.http_timeout,
    )


def cmd_locate(args: argparse.Namespace, cfg: PipelineConfig) -> int:
    del args
    _print(f"[locate] Fetching {cfg.listing_url}")
    print(_locate(cfg))
    return 0


def cmd_fetch(args: argparse.Namespace, cfg: PipelineConfig) -> int:
    output_dir = args.output_dir or StagePaths.under(cfg.output_root).replay_dir
    _print(f"[fetch] Downloading captions for {args.url} -> {output_dir}")
    path = download_captions(
        cfg.ytdlp_bin,
        args.url,
        output_dir,
        file_stem=cfg.caption_file_stem,
        caption_suffix=cfg.caption_suffix,
    )
    _print(f"[fetch] Captions available at {path}")
    return 0


def cmd_parse(args: argparse.Namespace, cfg: PipelineConfig) -> int:
    policy = _trigger_policy(args, cfg)
    _print(f"[parse] Parsing {args.captions} with policy={policy}")
    transcript = parse_caption_file(args.captions, policy, boilerplate=cfg.boilerplate)
    write_text(args.output, transcript)
    _print(f"[parse] Wrote transcript -> {args.output}")
    if args.human_readable_out:
        write_text(args.human_readable_out, format_human_readable(transcript))
        _print(f"[parse] Wrote human-readable transcript -> {args.human_readable_out}")
    return 0


def cmd_prompt(args: argparse.Namespace, cfg: PipelineConfig) -> int:
    transcript = args.transcript.read_text(encoding="utf-8")
    prompt = compose_extraction_prompt(transcript, _prompt_template(args.prompt_file, cfg))
    write_text(args.output, prompt)
    _print(f"[prompt] Wrote prompt -> {args.output}")
    return 0


def cmd_extract(args: argparse.Namespace, cfg: PipelineConfig) -> int:
    transcript = args.transcript.read_text(encoding="utf-8")
    _print(f"[extract] Calling model={cfg.extract.model}")
    result = run_extraction_workflow(
        transcript=transcript,
        stage_cfg=cfg.extract,
        temperature=cfg.extract_temperature,
        prompt_template=_prompt_template(args.prompt_file, cfg),
    )
    if args.prompt_out:
        write_text(args.prompt_out, result.prompt)
        _print(f"[extract] Wrote prompt -> {args.prompt_out}")
    write_text(args.output, result.response)
    _print(f"[extract] Wrote model response -> {args.output}")
    return 0


def cmd_run_all(args: argparse.Namespace, cfg: PipelineConfig) -> int:
    paths = StagePaths.under(args.output_root or cfg.output_root)
    policy = _trigger_policy(args, cfg)
    logger.info("Using trigger policy %r", policy)

    url = args.url
    if not url:
        _print("[run-all] Getting latest replay URL...")
        url = _run_stage("getting the latest replay URL", _locate, cfg)
    _print(f"[run-all] Replay URL: {url}")

    captions_path = _run_stage(
        "downloading the replay captions",
        download_captions,
        cfg.ytdlp_bin,
        url,
        paths.replay_dir,
        file_stem=cfg.caption_file_stem,
        caption_suffix=cfg.caption_suffix,
    )
    _print(f"[run-all] Captions available at {captions_path}")

    transcript = _run_stage(
        "parsing the subtitle file", parse_caption_file, captions_path, policy, boilerplate=cfg.boilerplate
    )
    _run_stage("writing the parsed subtitles", write_text, paths.parsed_transcript, transcript)
    _print(f"[run-all] Transcript written -> {paths.parsed_transcript}")

    _run_stage(
        "writing the human-readable subtitle file",
        write_text,
        paths.human_readable,
        format_human_readable(transcript),
    )
    _print(f"[run-all] Human-readable transcript written -> {paths.human_readable}")

    template = _run_stage("loading the prompt template", _prompt_template, args.prompt_file, cfg)
    prompt = _run_stage("generating the AI prompt", compose_extraction_prompt, transcript, template)
    _run_stage("writing the AI prompt", write_text, paths.prompt, prompt)
    _print(f"[run-all] Prompt written -> {paths.prompt}")

    result = _run_stage(
        "calling the AI model",
        run_extraction_workflow,
        transcript=transcript,
        stage_cfg=cfg.extract,
        temperature=cfg.extract_temperature,
        prompt=prompt,
    )
    _run_stage("writing the AI response output file", write_text, paths.response, result.response)
    _print(f"[run-all] Model response written -> {paths.response}")
    return 0


def main(argv: list[str] | None = None) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
        logging.getLogger("quiz_caption_pipeline").setLevel(logging.INFO)
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return 0 if exc.code in (0, None) else 1

    try:
        cfg = PipelineConfig.from_env()
        if args.command == "locate":
            return cmd_locate(args, cfg)
        if args.command == "fetch":
            return cmd_fetch(args, cfg)
        if args.command == "parse":
            return cmd_parse(args, cfg)
        if args.command == "prompt":
            return cmd_prompt(args, cfg)
        if args.command == "extract":
            return cmd_extract(args, cfg)
        if args.command == "run-all":
            return cmd_run_all(args, cfg)
    except Exception as exc:  # noqa: BLE001
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
