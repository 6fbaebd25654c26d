"""Watch mode for olio - re-lint help articles as they change on disk."""

import json
import logging
import signal
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .lint import lint_document

log = logging.getLogger(__name__)

BatchCallback = Callable[[set[str], set[str]], None]


class DebounceHandler(FileSystemEventHandler):
    """File system event handler with debouncing."""

    def __init__(self, library_path: Path, on_batch: BatchCallback | None, debounce_ms: int = 150):
        super().__init__()
        self.library_path = library_path
        self.on_batch = on_batch
        self.debounce_ms = debounce_ms

        # Pending changes by article id
        self.changed: set[str] = set()
        self.deleted: set[str] = set()
        self.last_event_time = 0.0

    def _should_skip(self, path: Path) -> bool:
        """Check if file should be skipped."""
        name = path.name

        if name.startswith("."):
            return True

        # Editor swap files and our own atomic-write temp files
        if name.endswith(("~", ".swp", ".tmp")):
            return True

        return not name.endswith(".md")

    def _extract_id(self, path: Path) -> str | None:
        if self._should_skip(path):
            return None
        return path.stem

    def _record(self, path_str: Any, deleted: bool) -> None:
        article_id = self._extract_id(Path(str(path_str)))
        if not article_id:
            return
        if deleted:
            self.changed.discard(article_id)
            self.deleted.add(article_id)
        else:
            self.deleted.discard(article_id)
            self.changed.add(article_id)
        self.last_event_time = time.time()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(event.src_path, deleted=False)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(event.src_path, deleted=False)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(event.src_path, deleted=True)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle renames, including the temp-file swap used by atomic writes."""
        if event.is_directory:
            return
        self._record(event.src_path, deleted=True)
        self._record(event.dest_path, deleted=False)

    def check_and_flush(self) -> None:
        """Flush if the debounce window has elapsed since the last event."""
        if not (self.changed or self.deleted):
            return

        elapsed = (time.time() - self.last_event_time) * 1000
        if elapsed >= self.debounce_ms:
            self.flush()

    def flush(self) -> None:
        """Process accumulated events."""
        if not (self.changed or self.deleted):
            return

        changed = set(self.changed)
        deleted = set(self.deleted)

        self.changed.clear()
        self.deleted.clear()

        if self.on_batch:
            self.on_batch(changed, deleted)


def lint_batch(runtime: Any, changed: set[str]) -> dict[str, list[dict[str, Any]]]:
    """Lint each changed article, returning findings keyed by article id."""
    results: dict[str, list[dict[str, Any]]] = {}
    for article_id in sorted(changed):
        article = runtime.library.get(article_id)
        if article is None:
            continue
        findings = lint_document(article.content, runtime.resolver, parser=runtime.parser)
        results[article_id] = [
            {
                "severity": f.severity,
                "message": f.message,
                "line": f.line,
                "start": f.start,
                "end": f.end,
            }
            for f in findings
        ]
    return results


def watch_library(
    runtime: Any,
    debounce_ms: int = 150,
    quiet: bool = False,
    json_output: bool = False,
) -> int:
    """
    Watch the help library and lint articles as they change.

    Args:
        runtime: Runtime instance with library and resolver
        debounce_ms: Debounce window in milliseconds
        quiet: Suppress output
        json_output: Output JSON events instead of human-readable

    Returns:
        Exit code
    """
    library_path: Path = runtime.library.storage.root
    if not library_path.exists():
        print(f"Error: Library not found: {library_path}", file=sys.stderr)
        return 1

    running = True

    def handle_batch(changed: set[str], deleted: set[str]) -> None:
        start_time = time.time()
        try:
            results = lint_batch(runtime, changed)
            duration_ms = int((time.time() - start_time) * 1000)

            if json_output:
                event = {
                    "type": "batch",
                    "linted": results,
                    "deleted": sorted(deleted),
                    "duration_ms": duration_ms,
                }
                print(json.dumps(event), flush=True)
            elif not quiet:
                for article_id, findings in results.items():
                    for f in findings:
                        print(
                            f"{article_id}:{f['line']}: {f['severity']}: {f['message']}",
                            flush=True,
                        )
                total = sum(len(f) for f in results.values())
                print(
                    f"Linted {len(results)} article(s), {total} finding(s), "
                    f"-{len(deleted)} deleted ({duration_ms}ms)",
                    flush=True,
                )
        except Exception as e:
            log.debug("Watch batch failed", exc_info=True)
            if json_output:
                print(json.dumps({"type": "error", "message": str(e)}), flush=True)
            else:
                print(f"Error: {e}", file=sys.stderr, flush=True)

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal running
        running = False
        if not quiet and not json_output:
            print("\nShutting down...", flush=True)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    handler = DebounceHandler(library_path, handle_batch, debounce_ms)
    observer = Observer()
    observer.schedule(handler, str(library_path), recursive=False)

    if not quiet and not json_output:
        print(f"Watching {library_path} (debounce: {debounce_ms}ms)", flush=True)
        print("Press Ctrl+C to stop", flush=True)

    observer.start()
    log.info("Watching %s", library_path)

    try:
        while running:
            time.sleep(0.1)
            handler.check_and_flush()
    finally:
        handler.flush()
        observer.stop()
        observer.join()

    if not quiet and not json_output:
        print("Watch stopped", flush=True)

    return 0
