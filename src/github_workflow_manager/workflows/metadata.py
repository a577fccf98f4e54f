"""Extract the documentation block embedded in a workflow's comments.

Workflow files may open with a comment block like::

    # =============================================================
    # WORKFLOW: Deploy
    # PURPOSE: Deploy the service
    #   to production
    # ACTIONS:
    #   - Build the image
    #   - Roll out
    # =============================================================

The block is read with a small explicit state machine. `feed_line` is the only
transition; it never raises, and lines that match nothing are ignored.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum

from github_workflow_manager.workflows.models import MetadataBlock

logger = logging.getLogger(__name__)

_DELIMITER_RE = re.compile(r"^#+\s*={20,}\s*$")


class SectionKind(str, Enum):
    WORKFLOW = "WORKFLOW"
    PURPOSE = "PURPOSE"
    TRIGGER = "TRIGGER"
    SCOPE = "SCOPE"
    ACTIONS = "ACTIONS"
    INPUTS = "INPUTS"

    @property
    def header(self) -> str:
        return f"{self.value}:"


class ScanPhase(str, Enum):
    OUTSIDE = "outside"
    IN_BLOCK = "in_block"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class ParserState:
    """Immutable parser state; `collected` holds already-flushed sections."""

    phase: ScanPhase = ScanPhase.OUTSIDE
    section: SectionKind | None = None
    buffer: tuple[str, ...] = ()
    collected: MetadataBlock = field(default_factory=MetadataBlock)


def is_delimiter(line: str) -> bool:
    return bool(_DELIMITER_RE.match(line.strip()))


def strip_comment(line: str) -> str | None:
    """Return the text of a comment line, or None for non-comment lines."""

    trimmed = line.strip()
    if not trimmed.startswith("#"):
        return None
    return trimmed.lstrip("#").strip()


def flush(state: ParserState) -> ParserState:
    """Move the open section's buffer into `collected` and close the section."""

    block = state.collected
    items = list(state.buffer)
    if state.section is not None and items:
        if state.section is SectionKind.PURPOSE:
            block = block.model_copy(update={"purpose": " ".join(items)})
        elif state.section is SectionKind.TRIGGER:
            block = block.model_copy(update={"trigger": " ".join(items)})
        elif state.section is SectionKind.SCOPE:
            block = block.model_copy(update={"scope": " ".join(items)})
        elif state.section is SectionKind.ACTIONS:
            block = block.model_copy(update={"actions": [*block.actions, *items]})
        elif state.section is SectionKind.INPUTS:
            block = block.model_copy(update={"inputs": [*block.inputs, *items]})
        # WORKFLOW is a title only.
    return replace(state, section=None, buffer=(), collected=block)


def _match_header(text: str) -> tuple[SectionKind, str] | None:
    for kind in SectionKind:
        if text.startswith(kind.header):
            return kind, text[len(kind.header) :].strip()
    return None


def feed_line(state: ParserState, line: str) -> ParserState:
    """Advance the parser by one raw line of the file."""

    if state.phase is ScanPhase.DONE:
        return state

    if is_delimiter(line):
        if state.phase is ScanPhase.OUTSIDE:
            return replace(state, phase=ScanPhase.IN_BLOCK)
        return replace(flush(state), phase=ScanPhase.DONE)

    if state.phase is ScanPhase.OUTSIDE:
        return state

    text = strip_comment(line)
    if not text:
        return state

    header = _match_header(text)
    if header is not None:
        kind, rest = header
        opened = replace(flush(state), section=kind)
        return replace(opened, buffer=(rest,)) if rest else opened

    if text.startswith("-"):
        item = text[1:].strip()
        if not item:
            return state
        return replace(state, buffer=(*state.buffer, item))

    if state.section is not None:
        return replace(state, buffer=(*state.buffer, text))

    return state


def finish(state: ParserState) -> MetadataBlock | None:
    """Flush the last section; an all-empty block is reported as None."""

    block = flush(state).collected
    if block.is_empty():
        return None
    return block


def parse_metadata(content: str) -> MetadataBlock | None:
    """Parse the first delimited comment block of a workflow file."""

    try:
        state = ParserState()
        for line in content.splitlines():
            state = feed_line(state, line)
            if state.phase is ScanPhase.DONE:
                break
        return finish(state)
    except Exception:
        logger.warning("Error extracting metadata from workflow", exc_info=True)
        return None
