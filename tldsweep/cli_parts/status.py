from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich import box
from rich.panel import Panel
from rich.table import Table

from ..output import console
from ..version import __version__


def _compact_home(path: Path) -> str:
    home = Path.home().resolve()
    resolved = path.expanduser().resolve()
    try:
        rel = resolved.relative_to(home)
        return f"~/{rel.as_posix()}" if str(rel) != "." else "~"
    except ValueError:
        return str(resolved)


def render_runtime_status_panel(
    base: str,
    tld_count: int,
    candidate_count: int,
    workers: int,
    timeout: float,
    dns: Optional[str],
    cache_path: Path,
    csv_path: Optional[str],
    output_format: str,
) -> None:
    """Render the startup header with the effective runtime settings."""
    runtime_width = 80
    key_col_width = 11
    value_col_width = runtime_width - key_col_width - 6

    def _fit_value(value: object) -> str:
        text = str(value)
        # Keep cells on one line so the card stays aligned.
        max_len = max(20, value_col_width)
        if len(text) <= max_len:
            return text
        return f"{text[: max_len - 3]}..."

    status = Table(box=box.MINIMAL, show_header=False, pad_edge=False, expand=False)
    status.add_column("Key", width=key_col_width, no_wrap=True)
    status.add_column("Value", width=value_col_width, no_wrap=True, overflow="crop")
    status.add_row("Base", _fit_value(base))
    status.add_row("TLDs", _fit_value(tld_count))
    status.add_row("Candidates", _fit_value(candidate_count))
    status.add_row("Workers", _fit_value(workers))
    status.add_row("Timeout", _fit_value(timeout))
    status.add_row("DNS", _fit_value(dns or "system resolver"))
    status.add_row("TLD cache", _fit_value(_compact_home(cache_path)))
    status.add_row("CSV", _fit_value(_compact_home(Path(csv_path)) if csv_path else "disabled"))
    status.add_row("Format", _fit_value(output_format))

    console.print(
        Panel(status, title=f"tldsweep v{__version__}", border_style="blue", width=runtime_width + 4, expand=False)
    )
