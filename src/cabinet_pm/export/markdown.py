from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from ..document.model import Block, BulletList, KeyValues, Paragraph, Section, SectionKind, Table
from ..logging import get_logger
from ..util.errors import ExportError

LOG = get_logger(__name__)

PAGE_BREAK = "---"


def _md_cell(value: str) -> str:
    # Keep tables robust across Markdown renderers.
    # - Escape pipe characters to avoid accidental column splits.
    # - Replace newlines with <br> to keep rows intact.
    v = (value or "").replace("\n", "<br>").strip()
    v = v.replace("|", "\\|")
    return v


def _md_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    hdr = [_md_cell(str(h)) for h in headers]
    out: List[str] = []
    out.append("| " + " | ".join(hdr) + " |")
    out.append("| " + " | ".join(["---"] * len(headers)) + " |")
    for r in rows:
        rr = [_md_cell(str(c)) for c in r]
        out.append("| " + " | ".join(rr) + " |")
    return out


def _render_paragraph(p: Paragraph) -> List[str]:
    text = p.text.strip()
    if p.style in {"lead", "emphasis"}:
        return [f"**{text}**"]
    if p.style in {"warning", "critical"}:
        return [f"> {text}"]
    return [text]


def _render_block(block: Block) -> List[str]:
    lines: List[str] = []
    if isinstance(block, Paragraph):
        return _render_paragraph(block)
    if isinstance(block, Table) and block.page_break_before:
        lines.extend([PAGE_BREAK, ""])
    title = getattr(block, "title", None)
    if title:
        lines.extend([f"### {title}", ""])
    if isinstance(block, BulletList):
        prefix = "> " if block.style in {"warning", "critical"} else ""
        lines.extend(f"{prefix}- {item}" for item in block.items)
    elif isinstance(block, KeyValues):
        lines.extend(_md_table(["Field", "Value"], [[k, v] for k, v in block.pairs]))
    elif isinstance(block, Table):
        lines.extend(_md_table(block.headers, block.rows))
    return lines


def render_section_md(section: Section) -> List[str]:
    heading = "#" if section.kind is SectionKind.TITLE else "##"
    lines: List[str] = [f"{heading} {section.title}", ""]
    for block in section.blocks:
        lines.extend(_render_block(block))
        lines.append("")
    return lines


def render_report_md(sections: Sequence[Section]) -> str:
    lines: List[str] = []
    for i, section in enumerate(sections):
        if i > 0 and section.page_break_before:
            lines.extend([PAGE_BREAK, ""])
        lines.extend(render_section_md(section))
    return "\n".join(lines).rstrip() + "\n"


def write_report_md(path: Path, sections: Sequence[Section]) -> Path:
    text = render_report_md(sections)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to write report {path}: {e}") from e
    LOG.info("Wrote Markdown report", extra={"step": "export", "phase": "markdown", "path": str(path)})
    return path
