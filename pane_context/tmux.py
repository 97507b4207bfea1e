from __future__ import annotations

"""
Candidate sources: where the resolver gets its pane snapshot from.

``TmuxCandidateSource`` shells out to the tmux binary; ``StaticCandidateSource``
serves a fixed list (tests, replays). Failures of the tmux binary surface as
``TmuxError`` and are not retried here.
"""

import asyncio
import os
from typing import List, Optional, Protocol, Sequence

from loguru import logger

from . import config
from .pipeline_types import Pane

LIST_PANES_FORMAT = (
    "#{pane_id}|#{session_name}|#{window_index}|#{pane_active}|#{window_active}"
    "|#{session_active}|#{pane_last}|#{pane_current_command}|#{pane_title}"
)


class TmuxError(RuntimeError):
    pass


class CandidateSource(Protocol):
    async def list_panes(self) -> List[Pane]:
        ...


def trim_quotes(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def parse_bool(value: Optional[str]) -> bool:
    if not value:
        return False
    return value == "1" or value.lower() == "true"


def parse_int(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_pane_line(line: str) -> Pane:
    # the title is last so a '|' inside it survives the split
    parts = line.split("|", 8)
    parts += [""] * (9 - len(parts))
    pane_id, session, window, active, win_active, sess_active, last, command, title = parts
    return Pane(
        id=trim_quotes(pane_id),
        session=session,
        window=window,
        title=trim_quotes(title) if title else "",
        current_command=trim_quotes(command) if command else None,
        is_active=parse_bool(active),
        is_active_window=parse_bool(win_active),
        is_active_session=parse_bool(sess_active),
        last_used=parse_int(last),
    )


def parse_list_panes(stdout: str) -> List[Pane]:
    text = stdout.strip()
    if not text:
        return []
    return [parse_pane_line(line) for line in text.splitlines() if line.strip()]


def build_tmux_error(args: Sequence[str], stderr: str = "", error: Optional[BaseException] = None) -> TmuxError:
    base = "tmux " + " ".join(args)
    if stderr and stderr.strip():
        return TmuxError(f"{base} failed: {stderr.strip()}")
    if error is not None:
        return TmuxError(f"{base} failed: {error}")
    return TmuxError(f"{base} failed")


class TmuxCandidateSource:
    def __init__(self, tmux_path: str = config.TMUX_PATH):
        self.tmux_path = tmux_path

    async def _exec(self, *args: str) -> str:
        try:
            proc = await asyncio.create_subprocess_exec(
                self.tmux_path,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise build_tmux_error(args, error=e) from e
        out, err = await proc.communicate()
        stderr = err.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            raise build_tmux_error(args, stderr=stderr, error=TmuxError(f"exit status {proc.returncode}"))
        return out.decode("utf-8", errors="replace")

    async def list_panes(self) -> List[Pane]:
        stdout = await self._exec("list-panes", "-a", "-F", LIST_PANES_FORMAT)
        panes = parse_list_panes(stdout)
        logger.debug("tmux reported {} pane(s)", len(panes))
        return panes

    async def get_current_session(self) -> Optional[str]:
        """Session of the client we run inside, or None outside tmux."""
        if not os.getenv("TMUX"):
            return None
        stdout = await self._exec("display-message", "-p", "#{session_name}")
        return stdout.strip() or None


class StaticCandidateSource:
    def __init__(self, panes: Sequence[Pane], current_session: Optional[str] = None):
        self.panes = list(panes)
        self.current_session = current_session

    async def list_panes(self) -> List[Pane]:
        return list(self.panes)

    async def get_current_session(self) -> Optional[str]:
        return self.current_session
