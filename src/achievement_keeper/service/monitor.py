# SPDX-License-Identifier: MIT

import os
import threading
from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Protocol, TypeAlias

from watchdog.events import (
    EVENT_TYPE_CLOSED_NO_WRITE,
    EVENT_TYPE_OPENED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from achievement_keeper import configuration
from achievement_keeper.logger import LOGGER
from achievement_keeper.model.snapshot import EntitySnapshot
from achievement_keeper.repository.scanner import scan

DEFAULT_DEBOUNCE_SECONDS = 0.5

# Read-only accesses, including our own rescans, must not retrigger a scan
IGNORED_EVENT_TYPES = frozenset({EVENT_TYPE_OPENED, EVENT_TYPE_CLOSED_NO_WRITE})

SnapshotSubscriber: TypeAlias = Callable[[list[EntitySnapshot]], None]
Scanner: TypeAlias = Callable[[Iterable[str]], list[EntitySnapshot]]


class RootState(Enum):
    IDLE = "idle"
    WATCHING = "watching"
    DEBOUNCING = "debouncing"


class DebounceTimer(Protocol):
    daemon: bool

    def start(self) -> None: ...

    def cancel(self) -> None: ...


class WatchObserver(Protocol):
    def schedule(
        self, event_handler: FileSystemEventHandler, path: str, recursive: bool
    ) -> Any: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def join(self, timeout: Optional[float] = None) -> None: ...

    def unschedule_all(self) -> None: ...

    def is_alive(self) -> bool: ...


def is_record_file_path(path: str | Path) -> bool:
    return Path(path).name.endswith(configuration.RECORD_FILE_NAMES)


class _RecordFileEventHandler(FileSystemEventHandler):
    def __init__(self, monitor: "ChangeMonitor", root: str) -> None:
        super().__init__()
        self._monitor = monitor
        self._root = root

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        for path in paths:
            if path:
                self._monitor.notify_path_changed(self._root, os.fsdecode(path))


class ChangeMonitor:
    """
    Watches the configured roots and publishes fresh snapshots.

    Bursts of record-file events are coalesced into one rescan of every
    root. Each rescan is handed to all subscribers; a subscriber that
    raises is logged and does not affect the others. After ``stop()``
    returns no further snapshot is delivered.
    """

    def __init__(
        self,
        roots: Sequence[str | Path] = (),
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        observer_factory: Callable[[], WatchObserver] = Observer,
        timer_factory: Callable[[float, Callable[[], None]], DebounceTimer] = (
            threading.Timer
        ),
        scanner: Scanner = scan,
    ) -> None:
        self._roots: list[str] = [str(root) for root in roots]
        self._debounce_seconds = debounce_seconds
        self._observer_factory = observer_factory
        self._timer_factory = timer_factory
        self._scanner = scanner

        self._lock = threading.RLock()
        self._subscribers: list[SnapshotSubscriber] = []
        self._observer: Optional[WatchObserver] = None
        self._timer: Optional[DebounceTimer] = None
        self._timer_generation = 0
        self._running = False
        self._root_states: dict[str, RootState] = {
            root: RootState.IDLE for root in self._roots
        }

    @property
    def roots(self) -> list[str]:
        return list(self._roots)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def root_states(self) -> dict[str, RootState]:
        with self._lock:
            return dict(self._root_states)

    def subscribe(self, subscriber: SnapshotSubscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

        return unsubscribe

    def start(self) -> list[EntitySnapshot]:
        """Begin watching and synchronously deliver an initial snapshot."""
        if self._running:
            self.stop()

        with self._lock:
            LOGGER.info(
                "Starting achievement monitoring for %d roots", len(self._roots)
            )
            self._running = True
            self._root_states = {root: RootState.IDLE for root in self._roots}

            observer = self._observer_factory()
            for root in self._roots:
                self.__watch_root(observer, root)

            watching = self._root_states.values()
            if any(state is RootState.WATCHING for state in watching):
                try:
                    observer.start()
                except (OSError, RuntimeError) as error:
                    LOGGER.error("File watcher failed to start: %s", error)
                    self._root_states = {root: RootState.IDLE for root in self._roots}
                else:
                    self._observer = observer

            return self.__deliver()

    def __watch_root(self, observer: WatchObserver, root: str) -> None:
        root_path = configuration.expand_path(root)
        if not root_path.is_dir():
            LOGGER.warning("Monitoring skipped, directory does not exist: %s", root)
            return
        try:
            observer.schedule(
                _RecordFileEventHandler(self, root), str(root_path), recursive=True
            )
        except OSError as error:
            LOGGER.warning("Monitoring failed for %s: %s", root, error)
            return
        self._root_states[root] = RootState.WATCHING
        LOGGER.info("Monitoring active for %s", root)

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            LOGGER.info("Stopping achievement monitoring")
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            observer = self._observer
            self._observer = None
            self._root_states = {root: RootState.IDLE for root in self._roots}

        # Joined outside the lock: the observer thread may be waiting on it
        if observer is not None:
            observer.unschedule_all()
            observer.stop()
            if observer.is_alive() and observer is not threading.current_thread():
                observer.join(timeout=5)

    def set_roots(self, roots: Sequence[str | Path]) -> list[EntitySnapshot]:
        self.stop()
        with self._lock:
            self._roots = [str(root) for root in roots]
        return self.start()

    def notify_path_changed(self, root: str, path: str | Path) -> bool:
        """
        Register a filesystem event; returns whether it armed the debounce.

        Only paths naming a record file count. The debounce is trailing:
        every matching event restarts the window.
        """
        if not is_record_file_path(path):
            return False

        with self._lock:
            if not self._running:
                return False
            if root in self._root_states:
                self._root_states[root] = RootState.DEBOUNCING
            if self._timer is not None:
                self._timer.cancel()
            self._timer_generation += 1
            generation = self._timer_generation
            timer = self._timer_factory(
                self._debounce_seconds,
                lambda: self.__on_debounce_elapsed(generation),
            )
            timer.daemon = True
            self._timer = timer
            timer.start()
        LOGGER.debug("Record file changed: %s", path)
        return True

    def __on_debounce_elapsed(self, generation: int) -> None:
        with self._lock:
            # A timer cancelled after it already fired must not deliver
            if not self._running or generation != self._timer_generation:
                return
            self._timer = None
            for root, state in self._root_states.items():
                if state is RootState.DEBOUNCING:
                    self._root_states[root] = RootState.WATCHING
            LOGGER.info("Debounce period finished, refreshing achievement data")
            self.__deliver()

    def __deliver(self) -> list[EntitySnapshot]:
        snapshots = self._scanner(self._roots)
        LOGGER.info("Refresh complete. Found %d entities.", len(snapshots))
        for subscriber in list(self._subscribers):
            try:
                subscriber(snapshots)
            except Exception:
                LOGGER.exception("Snapshot subscriber failed")
        return snapshots
