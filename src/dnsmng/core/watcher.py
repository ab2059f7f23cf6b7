"""Watch loop — reverts external changes to the resolver file.

watchdog's observer thread produces events for the resolver file's
directory. The handler keeps only write-class events on the target file and
feeds them, together with subscription errors, into one queue. A single
worker thread drains that queue in delivery order and re-applies the active
addresses, so restoration writes never overlap.

Every restoration write produces filesystem events of its own. After
writing, the worker reads the file back; only when it holds exactly the
active content does it remember the stat signature seen during that read,
and it skips later events that still see that exact file. A writer racing
the restoration makes the read-back differ, so the worker writes again. An
external write always changes the signature (mtime at the very least), so it
is restored even when the content is identical.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from dnsmng.core.base import ResolverWriteError, WatchSetupError
from dnsmng.core.resolver import ResolverWriter, render_resolv_conf

logger = logging.getLogger(__name__)

# Seconds the worker waits for an item before checking the observer is alive.
HEALTH_CHECK_INTERVAL = 1.0

# Writes per event when another writer keeps racing the restoration.
MAX_RESTORE_ATTEMPTS = 3

_Signature = tuple[int, int, int]


@dataclass(frozen=True)
class _Change:
    event: FileSystemEvent


@dataclass(frozen=True)
class _Failure:
    error: BaseException


# Closes the channel; the worker exits when it reads this.
_CLOSE = None


def _stat_signature(st: os.stat_result) -> _Signature:
    return (st.st_ino, st.st_size, st.st_mtime_ns)


def _signature(path: str) -> _Signature | None:
    try:
        return _stat_signature(os.stat(path))
    except OSError:
        return None


def _snapshot(path: str) -> tuple[_Signature, str] | None:
    """Read the file and the signature it had while being read.

    Returns None when the file is unreadable or changed during the read.
    """
    try:
        with open(path) as f:
            before = _stat_signature(os.fstat(f.fileno()))
            content = f.read()
            after = _stat_signature(os.fstat(f.fileno()))
    except (OSError, UnicodeDecodeError):
        return None
    if before != after:
        return None
    return after, content


class ResolvConfHandler(FileSystemEventHandler):
    """Forward write-class events on one file to a sink."""

    def __init__(self, target: str, sink: Callable[[Any], None]) -> None:
        super().__init__()
        self.target = target
        self._sink = sink

    def is_write(self, event: FileSystemEvent) -> bool:
        if event.is_directory:
            return False
        if event.event_type in (EVENT_TYPE_MODIFIED, EVENT_TYPE_CREATED):
            return os.fsdecode(event.src_path) == self.target
        if event.event_type == EVENT_TYPE_MOVED:
            return os.fsdecode(event.dest_path) == self.target
        return False

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            if self.is_write(event):
                self._sink(_Change(event))
        except Exception as e:  # reported on the error channel
            self._sink(_Failure(e))


class ResolvConfWatcher:
    """Keep the resolver file equal to ``addresses`` until stopped."""

    def __init__(
        self,
        addresses: list[str],
        writer: ResolverWriter,
        observer_factory: Callable[[], Any] = Observer,
        health_check_interval: float = HEALTH_CHECK_INTERVAL,
    ) -> None:
        self.addresses = list(addresses)
        self.writer = writer
        self.path = writer.path
        # Follow symlinks (resolv.conf is often one) so events match the real file.
        self.target = os.path.realpath(self.path)
        self.restorations = 0

        self._observer_factory = observer_factory
        self._health_check_interval = health_check_interval
        self._queue: queue.Queue[Any] = queue.Queue()
        self._handler = ResolvConfHandler(self.target, self._queue.put)
        self._observer: Any = None
        self._worker: threading.Thread | None = None
        self._own_write: _Signature | None = None
        self._lock = threading.Lock()
        self._stopping = threading.Event()

    @property
    def handler(self) -> ResolvConfHandler:
        return self._handler

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._stopping.is_set()

    def _start_observer(self) -> None:
        watch_dir = os.path.dirname(self.target)
        if not os.path.isdir(watch_dir):
            raise WatchSetupError(self.path, f"directory {watch_dir} does not exist")

        observer = self._observer_factory()
        try:
            observer.schedule(self._handler, watch_dir, recursive=False)
            observer.start()
        except OSError as e:
            raise WatchSetupError(self.path, e.strerror or str(e)) from e
        self._observer = observer

    def start(self) -> None:
        """Subscribe to changes and start the restore worker.

        Raises WatchSetupError if the observer cannot be created or attached.
        """
        if self._worker is not None:
            return
        self._own_write = _signature(self.target)
        with self._lock:
            self._start_observer()
        self._worker = threading.Thread(target=self._run, name="dnsmng-watch", daemon=True)
        self._worker.start()
        logger.info("Watching %s for changes", self.path)

    def stop(self) -> None:
        """Stop the observer, close the channel and wait for the worker."""
        self._stopping.set()
        with self._lock:
            observer, self._observer = self._observer, None
            worker, self._worker = self._worker, None
        if observer is not None:
            observer.stop()
            observer.join()
        if worker is not None:
            self._queue.put(_CLOSE)
            worker.join()
            logger.info("Stopped watching %s", self.path)

    def run_forever(self) -> None:
        """Start watching and block until stop() or request_stop() is called."""
        self.start()
        try:
            self._stopping.wait()
        finally:
            self.stop()

    def request_stop(self) -> None:
        """Ask run_forever() to return; safe to call from a signal handler."""
        self._stopping.set()

    def _join_pending(self) -> None:
        self._queue.join()

    def __enter__(self) -> ResolvConfWatcher:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _run(self) -> None:
        while True:
            try:
                item = self._queue.get(timeout=self._health_check_interval)
            except queue.Empty:
                self._check_observer()
                continue
            try:
                if item is _CLOSE:
                    return
                if isinstance(item, _Failure):
                    logger.error("Watch error on %s: %s", self.path, item.error)
                else:
                    self._restore(item.event)
            finally:
                self._queue.task_done()

    def _restore(self, event: FileSystemEvent) -> None:
        if self._own_write is not None and _signature(self.target) == self._own_write:
            logger.debug("Ignoring %s event from our own write", event.event_type)
            return

        logger.info("Detected change in %s, restoring DNS settings", self.path)
        expected = render_resolv_conf(self.addresses)
        for attempt in range(1, MAX_RESTORE_ATTEMPTS + 1):
            try:
                self.writer.apply(self.addresses)
            except ResolverWriteError as e:
                logger.error("Error restoring DNS: %s", e)
                self._own_write = None
                return

            # Only a file that reads back as our content counts as our own write.
            snapshot = _snapshot(self.target)
            if snapshot is not None and snapshot[1] == expected:
                self._own_write = snapshot[0]
                self.restorations += 1
                return
            logger.warning(
                "%s changed while restoring (attempt %d/%d)",
                self.path,
                attempt,
                MAX_RESTORE_ATTEMPTS,
            )

        self._own_write = None
        logger.error(
            "Could not restore %s after %d attempts, waiting for the next change",
            self.path,
            MAX_RESTORE_ATTEMPTS,
        )

    def _check_observer(self) -> None:
        with self._lock:
            if self._stopping.is_set():
                return
            observer = self._observer
            if observer is not None:
                # An emitter stops on its own when the watched directory goes away,
                # leaving the dispatcher thread alive with nothing to dispatch.
                if observer.is_alive() and all(e.is_alive() for e in observer.emitters):
                    return
                logger.error("Observer for %s stopped unexpectedly, re-subscribing", self.path)
                self._observer = None
                observer.stop()
                observer.join()
            try:
                self._start_observer()
            except WatchSetupError as e:
                logger.error("%s", e)
