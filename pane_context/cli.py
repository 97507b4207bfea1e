# pane_context/cli.py
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from . import config
from .config import DescribeRequest, PaneHintEntry
from .diagnostics import active_stages, stage_table
from .logging_setup import add_audit_sink, configure_logging
from .resolver import ContextResolver, NoCandidatesError, run_describe
from .tmux import TmuxCandidateSource, TmuxError


def parse_hint_entry(raw: str) -> PaneHintEntry:
    """'value' or 'value:weight' (the last ':' splits, so 'a:b:2' keeps 'a:b')."""
    value, sep, weight = raw.rpartition(":")
    if sep:
        try:
            return PaneHintEntry(value=value, weight=float(weight))
        except ValueError:
            pass
    return PaneHintEntry(value=raw)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="tmux-pane-context",
        description="Rank tmux panes of the current session against a hint.",
    )
    ap.add_argument("--hint", help="free-text pane hint")
    ap.add_argument("--hints", nargs="+", default=[], metavar="VALUE[:WEIGHT]",
                    help="structured hints with optional weights")
    ap.add_argument("--tag", action="append", default=[], help="tag to match (repeatable)")
    ap.add_argument("--debug", action="store_true", help="print the stage breakdown")
    ap.add_argument("--json", action="store_true", help="print the raw response as JSON")
    ap.add_argument("--tmux", default=config.TMUX_PATH, help="tmux binary")
    ap.add_argument("--log-level", default=config.LOG_LEVEL)
    return ap


def request_from_args(args: argparse.Namespace) -> DescribeRequest:
    return DescribeRequest(
        pane_hint=args.hint,
        pane_hints=[parse_hint_entry(h) for h in args.hints] or None,
        tags=list(args.tag) or None,
        debug=args.debug,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    add_audit_sink(config.AUDIT_PATH)

    resolver = ContextResolver(source=TmuxCandidateSource(args.tmux))
    request = request_from_args(args)
    try:
        response = asyncio.run(run_describe(resolver, request))
    except (NoCandidatesError, TmuxError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(response.model_dump(by_alias=True, exclude_none=True), ensure_ascii=False, indent=2))
        return 0

    for rank, pane in enumerate(response.session_panes, start=1):
        print(f"{rank:>2}. {pane.id} {pane.session}:{pane.window} {pane.title!r} score={pane.score}")
        for reason in pane.reasons:
            print(f"      - {reason}")

    if response.debug:
        hints = response.debug["hints"]
        print("\nHints:")
        for h in hints["weightedHints"]:
            print(f"  {h['source']:<9} {h['weight']:.6f}  {h['token']}")
        for issue in hints["issues"]:
            print(f"  ! {issue}")
        print("\nStages:")
        print(active_stages(stage_table(response.debug["stages"])).to_string())
    return 0


if __name__ == "__main__":
    sys.exit(main())
