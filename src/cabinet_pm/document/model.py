"""
Renderer-neutral description of the PM report.

A report is an ordered tuple of Section objects. Each section carries a list of
blocks (paragraphs, bullet lists, key/value groups and tables) with plain-text
cells; exporters decide how to draw them. Page breaks are hints only.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, Union


class SectionKind(str, Enum):
    TITLE = "title"
    RISK_SUMMARY = "risk_summary"
    NODE_MAINTENANCE = "node_maintenance"
    NOTES = "notes"
    DIAGNOSTICS_SUMMARY = "diagnostics_summary"
    DIAGNOSTICS_CONTROLLER = "diagnostics_controller"
    DIAGNOSTICS_CLEAR = "diagnostics_clear"
    CABINET = "cabinet"


@dataclass(frozen=True)
class Paragraph:
    text: str
    # Rendering hint ("lead", "emphasis", "warning", "critical"); exporters may ignore it.
    style: Optional[str] = None


@dataclass(frozen=True)
class BulletList:
    items: Tuple[str, ...]
    title: Optional[str] = None
    style: Optional[str] = None


@dataclass(frozen=True)
class KeyValues:
    pairs: Tuple[Tuple[str, str], ...]
    title: Optional[str] = None


@dataclass(frozen=True)
class Table:
    headers: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...]
    title: Optional[str] = None
    page_break_before: bool = False


Block = Union[Paragraph, BulletList, KeyValues, Table]


@dataclass(frozen=True)
class Section:
    kind: SectionKind
    title: str
    blocks: Tuple[Block, ...] = ()
    page_break_before: bool = True
    anchor: Optional[str] = None


def table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    *,
    title: Optional[str] = None,
    page_break_before: bool = False,
) -> Table:
    return Table(
        headers=tuple(headers),
        rows=tuple(tuple(r) for r in rows),
        title=title,
        page_break_before=page_break_before,
    )


def key_values(pairs: Sequence[Tuple[str, str]], *, title: Optional[str] = None) -> KeyValues:
    return KeyValues(pairs=tuple((k, v) for k, v in pairs), title=title)


def bullets(items: Sequence[str], *, title: Optional[str] = None, style: Optional[str] = None) -> BulletList:
    return BulletList(items=tuple(items), title=title, style=style)


def slugify(text: str) -> str:
    out = []
    prev_dash = False
    for ch in text.lower():
        if ch.isalnum():
            out.append(ch)
            prev_dash = False
        elif not prev_dash:
            out.append("-")
            prev_dash = True
    return "".join(out).strip("-")
