"""
Plain-text catalog dump.

Lists every catalog course as "[CODE] Name", handy for checking what the
resolver can match against without starting a dialogue.
"""

from __future__ import annotations

from pathlib import Path

from courseadvisor.catalog import CourseCatalog


def export_course_dump(catalog: CourseCatalog, out_path: str | Path) -> int:
    """
    Write the catalog listing to `out_path`. Returns number of courses written.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    lines.append(f"=== Course List Dump ({len(catalog)} courses) ===")
    lines.append("Format: [CODE] Name (credits, periods)")
    lines.append("=" * 45)
    lines.append("")

    count = 0
    for record in catalog:
        periods = "/".join(record.available_periods)
        lines.append(f"[{record.code}] {record.name} ({record.credits:g} hp, {periods})")
        count += 1

    out.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return count
