from __future__ import annotations

import json
from typing import Any, Iterable

from rich import box
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from oasproto import __version__
from oasproto.core import events as ev
from oasproto.core.stages import CHECK_STAGES, REWRITE_STAGES

RULE_WIDTH = 64
RULE_LINE = "-" * RULE_WIDTH
STATUS_GLYPHS = {
    "pending": "⏸",
    "running": "⠋",
    "success": "✅",
    "failed": "❌",
    "skipped": "⏭",
    "warning": "⚠️",
}
MAX_LISTED = 20


def run_events(events: Iterable[ev.OasprotoEvent], renderer: "Renderer") -> int:
    exit_code = 0
    for event in events:
        renderer.handle(event)
        if isinstance(event, ev.CommandCompleted):
            exit_code = event.exit_code
    renderer.close()
    return exit_code


class Renderer:
    def handle(self, event: ev.OasprotoEvent) -> None:  # noqa: D401
        """Handle a single event."""

    def close(self) -> None:
        return None


class RewriteRichRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self.is_tty = console.is_terminal
        self.stage_status = {name: "pending" for name, _ in REWRITE_STAGES}
        self.stage_elapsed: dict[str, float] = {}
        self.warnings: list[ev.Warning] = []
        self._live: Live | None = None
        self._dry_run = False
        self._loaded: ev.DocumentLoaded | None = None
        self._generated: list[str] = []
        self._written: ev.DocumentWritten | None = None
        self._stage_failure: ev.StageFailed | None = None

    def handle(self, event: ev.OasprotoEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            self._dry_run = bool(event.options and event.options.get("dry_run"))
            _print_header(self.console, event)
            if self.is_tty:
                self._live = Live(self._render(), console=self.console, refresh_per_second=10)
                self._live.__enter__()
            return
        if isinstance(event, ev.StageStarted):
            self.stage_status[event.stage_id] = "running"
            self._refresh()
            return
        if isinstance(event, ev.StageCompleted):
            self.stage_status[event.stage_id] = event.status
            self.stage_elapsed[event.stage_id] = event.duration_ms
            self._refresh()
            return
        if isinstance(event, ev.StageFailed):
            self.stage_status[event.stage_id] = "failed"
            self.stage_elapsed[event.stage_id] = event.duration_ms
            self._stage_failure = event
            self._refresh()
            return
        if isinstance(event, ev.DocumentLoaded):
            self._loaded = event
            return
        if isinstance(event, ev.Warning):
            self.warnings.append(event)
            return
        if isinstance(event, ev.ComponentsGenerated):
            self._generated = list(event.names)
            return
        if isinstance(event, ev.DocumentWritten):
            self._written = event
            return
        if isinstance(event, ev.CommandCompleted):
            self._finish(event)

    def close(self) -> None:
        if self._live:
            self._live.__exit__(None, None, None)
            self._live = None

    def _finish(self, event: ev.CommandCompleted) -> None:
        self.close()
        if self.warnings:
            self.console.print(_warnings_panel(self.warnings))
        if not event.ok:
            if self._stage_failure:
                self.console.print(_stage_failure_panel(self._stage_failure))
            return
        lines = []
        if self._loaded:
            lines.append(f"Source:     {self._loaded.path}")
            lines.append(f"Schemas:    {self._loaded.schemas}")
        lines.append(f"Generated:  {', '.join(self._generated) if self._generated else '-'}")
        if self._dry_run:
            lines.append("Output:     (--dry-run, nothing written)")
        elif self._written:
            lines.append(f"Output:     {self._written.path} ({_format_bytes(self._written.bytes)})")
            lines.extend(["", "Next:", f"- oasproto check {self._written.path}"])
        self.console.print(Panel("\n".join(lines), title="Rewrite complete", box=box.ROUNDED, title_align="left"))

    def _refresh(self) -> None:
        if self._live:
            self._live.update(self._render())

    def _render(self) -> Group:
        total = len(REWRITE_STAGES)
        stage_table = Table(show_header=True, box=box.MINIMAL, show_lines=False)
        stage_table.add_column("#", justify="right", style="dim")
        stage_table.add_column("Stage")
        stage_table.add_column("Status")
        stage_table.add_column("Time", justify="right")
        for index, (stage_id, label) in enumerate(REWRITE_STAGES, start=1):
            status = self.stage_status.get(stage_id, "pending")
            elapsed = self.stage_elapsed.get(stage_id)
            status_text = f"{STATUS_GLYPHS.get(status, '?')} {status}"
            if stage_id == "write_document" and status == "skipped" and self._dry_run:
                status_text = f"{status_text} (--dry-run)"
            duration = _format_duration(elapsed) if elapsed is not None else ""
            stage_table.add_row(f"{index}/{total}", label, status_text, duration)
        return Group(Panel(stage_table, title="Stages", box=box.ROUNDED, title_align="left"))


class RewritePlainRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._dry_run = False
        self._warnings = 0

    def handle(self, event: ev.OasprotoEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            self._dry_run = bool(event.options and event.options.get("dry_run"))
            _print_header(self.console, event)
            return
        if isinstance(event, ev.StageStarted):
            label = _stage_label(event.stage_id, REWRITE_STAGES)
            index = _stage_index(event.stage_id, REWRITE_STAGES)
            self.console.print(_format_stage_start_line(index, label, len(REWRITE_STAGES)))
            return
        if isinstance(event, ev.StageCompleted):
            label = _stage_label(event.stage_id, REWRITE_STAGES)
            index = _stage_index(event.stage_id, REWRITE_STAGES)
            note = None
            if event.stage_id == "write_document" and event.status == "skipped" and self._dry_run:
                note = "(--dry-run)"
            self.console.print(
                _format_stage_line(index, label, event.status, event.duration_ms, note, len(REWRITE_STAGES))
            )
            return
        if isinstance(event, ev.StageFailed):
            label = _stage_label(event.stage_id, REWRITE_STAGES)
            index = _stage_index(event.stage_id, REWRITE_STAGES)
            line = _format_stage_line(index, label, "failed", event.duration_ms, None, len(REWRITE_STAGES))
            details = []
            if event.message:
                details.append(f"FAIL: {event.message}")
            if event.hint:
                details.append(f"HINT: {event.hint}")
            if details:
                line = f"{line}\n" + "\n".join(details)
            self.console.print(line)
            return
        if isinstance(event, ev.DocumentLoaded):
            self.console.print(f"Document: {event.path} ({event.schemas} schemas, {event.paths} paths)")
            return
        if isinstance(event, ev.Warning):
            self._warnings += 1
            self.console.print(_warning_line(event))
            return
        if isinstance(event, ev.ComponentsGenerated):
            self.console.print(f"Generated: {', '.join(event.names)}")
            return
        if isinstance(event, ev.DocumentWritten):
            self.console.print(f"Wrote {event.path} ({_format_bytes(event.bytes)}, {event.format})")
            return
        if isinstance(event, ev.CommandCompleted):
            if not event.ok:
                self.console.print("REWRITE FAIL")
            elif self._warnings:
                self.console.print(f"REWRITE OK ({self._warnings} warnings)")
            else:
                self.console.print("REWRITE OK")


class RewriteJsonRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._stages: dict[str, str] = {}
        self._warnings: list[dict[str, Any]] = []
        self._errors: list[dict[str, str]] = []
        self._generated: list[str] = []
        self._output: dict[str, Any] | None = None

    def handle(self, event: ev.OasprotoEvent) -> None:
        if isinstance(event, ev.StageCompleted):
            self._stages[event.stage_id] = event.status
            return
        if isinstance(event, ev.StageFailed):
            self._stages[event.stage_id] = "failed"
            self._errors.append({"stage": event.stage_id, "code": event.error_code, "message": event.message})
            return
        if isinstance(event, ev.Warning):
            self._warnings.append({"code": event.code, "location": event.location, "message": event.message})
            return
        if isinstance(event, ev.ComponentsGenerated):
            self._generated = list(event.names)
            return
        if isinstance(event, ev.DocumentWritten):
            self._output = {"path": str(event.path), "format": event.format, "bytes": event.bytes}
            return
        if isinstance(event, ev.CommandCompleted):
            payload = {
                "ok": event.ok,
                "stages": self._stages,
                "generated": self._generated,
                "output": self._output,
                "warnings": self._warnings,
                "errors": self._errors,
            }
            self.console.print_json(json.dumps(payload, sort_keys=True))


class CheckRichRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._checks: dict[str, str] = {}
        self._violations: list[dict[str, Any]] = []
        self._errors: list[str] = []

    def handle(self, event: ev.OasprotoEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            _print_header(self.console, event)
            return
        if isinstance(event, ev.StageCompleted):
            self._checks[event.stage_id] = event.status
            return
        if isinstance(event, ev.StageFailed):
            self._checks[event.stage_id] = "failed"
            if event.error_code != "invariant_violation":
                self._errors.append(event.message)
            return
        if isinstance(event, ev.InvariantsChecked):
            self._violations = list(event.violations)
            return
        if isinstance(event, ev.CommandCompleted):
            self._render_summary(event)

    def _render_summary(self, event: ev.CommandCompleted) -> None:
        table = Table(show_header=True, box=box.MINIMAL)
        table.add_column("Check", style="bold")
        table.add_column("Status")
        for stage_id, label in CHECK_STAGES:
            status = self._checks.get(stage_id, "skipped")
            table.add_row(label, _status_badge(status))
        self.console.print(table)
        if self._violations:
            violations = Table(show_header=True, box=box.MINIMAL, title="Violations", title_justify="left")
            violations.add_column("Code", style="bold")
            violations.add_column("Location")
            violations.add_column("Message")
            for item in self._violations[:MAX_LISTED]:
                violations.add_row(item["code"], item["location"], item["message"])
            self.console.print(violations)
            if len(self._violations) > MAX_LISTED:
                self.console.print(f"...and {len(self._violations) - MAX_LISTED} more")
        if self._errors:
            errors_text = "\n".join(f"- {error}" for error in self._errors)
            self.console.print(Panel(errors_text, title="Errors", box=box.ROUNDED, title_align="left"))
        overall = "success" if event.ok else "failed"
        self.console.print(Text.assemble(Text("Check status: "), _status_badge(overall)))


class CheckPlainRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console

    def handle(self, event: ev.OasprotoEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            _print_header(self.console, event)
            return
        if isinstance(event, ev.StageStarted):
            label = _stage_label(event.stage_id, CHECK_STAGES)
            index = _stage_index(event.stage_id, CHECK_STAGES)
            self.console.print(_format_stage_start_line(index, label, len(CHECK_STAGES)))
            return
        if isinstance(event, ev.StageFailed):
            self.console.print(f"FAIL: {event.message}")
            return
        if isinstance(event, ev.InvariantsChecked):
            for item in event.violations:
                self.console.print(f"{item['location']}: {item['code']}: {item['message']}")
            return
        if isinstance(event, ev.CommandCompleted):
            self.console.print("CHECK OK" if event.ok else "CHECK FAIL")


class CheckJsonRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._checks: dict[str, str] = {}
        self._violations: list[dict[str, Any]] = []
        self._errors: list[dict[str, str]] = []

    def handle(self, event: ev.OasprotoEvent) -> None:
        if isinstance(event, ev.StageCompleted):
            self._checks[event.stage_id] = event.status
            return
        if isinstance(event, ev.StageFailed):
            self._checks[event.stage_id] = "failed"
            self._errors.append({"check": event.stage_id, "message": event.message})
            return
        if isinstance(event, ev.InvariantsChecked):
            self._violations = list(event.violations)
            return
        if isinstance(event, ev.CommandCompleted):
            payload = {
                "ok": event.ok,
                "checks": self._checks,
                "violations": self._violations,
                "errors": self._errors,
            }
            self.console.print_json(json.dumps(payload, sort_keys=True))


def _format_duration(elapsed_ms: float) -> str:
    if elapsed_ms < 1000:
        return f"{elapsed_ms:.0f}ms"
    seconds = elapsed_ms / 1000
    if seconds < 10:
        return f"{seconds:.2f}s"
    return f"{seconds:.1f}s"


def _format_bytes(num: int) -> str:
    size = float(num)
    for unit in ["B", "KB", "MB"]:
        if size < 1024 or unit == "MB":
            if unit == "B":
                return f"{size:.0f} {unit}"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} MB"


def _print_header(console: Console, event: ev.CommandStarted) -> None:
    parts = [f"oasproto v{__version__}"]
    if event.document_path:
        parts.append(f"document: {event.document_path}")
    if event.config_path:
        parts.append(f"config: {event.config_path}")
    console.print(" | ".join(parts) + f"\n{RULE_LINE}")


def _format_stage_line(
    index: int,
    label: str,
    status: str,
    elapsed_ms: float | None,
    note: str | None = None,
    total: int = 6,
) -> str:
    glyph = STATUS_GLYPHS.get(status, "?")
    suffix = f" {_status_word(status)}"
    if note:
        suffix = f"{suffix} {note}"
    duration = f"  {_format_duration(elapsed_ms)}" if elapsed_ms is not None else ""
    padding = "." * max(2, 30 - len(label))
    return f"[{index}/{total}] {label} {padding} {glyph}{suffix}{duration}"


def _format_stage_start_line(index: int, label: str, total: int) -> str:
    padding = "." * max(2, 30 - len(label))
    return f"[{index}/{total}] {label} {padding} START"


def _stage_label(stage_id: str, mapping: list[tuple[str, str]]) -> str:
    for key, label in mapping:
        if key == stage_id:
            return label
    return stage_id


def _stage_index(stage_id: str, mapping: list[tuple[str, str]]) -> int:
    for index, (key, _label) in enumerate(mapping, start=1):
        if key == stage_id:
            return index
    return 0


def _status_word(status: str) -> str:
    return {
        "success": "OK",
        "failed": "FAIL",
        "skipped": "SKIP",
    }.get(status, status.upper())


def _status_badge(status: str) -> Text:
    normalized = status.strip().lower()
    label = {
        "success": "ok",
        "failed": "fail",
        "skipped": "skip",
    }.get(normalized, normalized)
    style = {
        "success": "bold black on green3",
        "failed": "bold white on red3",
        "skipped": "bold white on grey35",
    }.get(normalized, "bold white on grey35")
    return Text(f" {label} ", style=style)


def _warning_line(event: ev.Warning) -> str:
    location = f" at {event.location}" if event.location else ""
    return f"{event.level} {event.code}{location}: {event.message}"


def _warnings_panel(warnings: list[ev.Warning]) -> Panel:
    lines = [f"- {_warning_line(item)}" for item in warnings[:MAX_LISTED]]
    if len(warnings) > MAX_LISTED:
        lines.append(f"...and {len(warnings) - MAX_LISTED} more")
    return Panel(
        Text("\n".join(lines), style="orange1"),
        title="[orange1]Warnings[/orange1]",
        box=box.ROUNDED,
        title_align="left",
        border_style="orange1",
    )


def _stage_failure_panel(event: ev.StageFailed) -> Panel:
    body = "\n".join(
        [
            f"stage: {event.stage_id}",
            f"error: {event.message}",
        ]
    )
    if event.hint:
        body = "\n".join([body, f"hint: {event.hint}"])
    return Panel(body, title="Rewrite failed", box=box.ROUNDED, title_align="left")
