"""
Edit history for the DentalCeph editor.

HistoryEngine is the single point of mutation for the AnnotationStore. It
keeps an applied stack and a reverted stack of HistoryAction entries plus the
identifier counter, and emits store_changed after every change so the
canvas can repaint. Plain lists stand in for QUndoStack because entries
have to be dropped and re-tagged individually.

Contracts:
- freeze() marks elements permanent but leaves the undo log alone, so a
  frozen element can still be undone while its action is on the stack.
- purge_volatile() drops every erasable element and the whole log.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from PySide6.QtCore import QObject, Signal

from dentalceph.editor.annotations import (
    AnnotationBase,
    AnnotationKind,
    AnnotationStore,
)
from dentalceph.services.logging_service import get_logger


@dataclass(frozen=True)
class HistoryAction:
    """One appended annotation: its kind, id and the element itself."""
    kind: AnnotationKind
    element_id: int
    element: AnnotationBase


class HistoryEngine(QObject):
    """
    Undo/redo log layered over an AnnotationStore.

    Signals:
        store_changed: Emitted after any change to the store contents.
        history_changed: Emitted when undo/redo availability may have changed.
    """

    store_changed = Signal()
    history_changed = Signal()

    def __init__(self, store: Optional[AnnotationStore] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._store = store if store is not None else AnnotationStore()
        self._applied: List[HistoryAction] = []
        self._reverted: List[HistoryAction] = []
        self._next_id = 1

    @property
    def store(self) -> AnnotationStore:
        return self._store

    @property
    def can_undo(self) -> bool:
        return bool(self._applied)

    @property
    def can_redo(self) -> bool:
        return bool(self._reverted)

    @property
    def next_id(self) -> int:
        """The identifier the next append will receive."""
        return self._next_id

    @property
    def applied_actions(self) -> List[HistoryAction]:
        return list(self._applied)

    @property
    def reverted_actions(self) -> List[HistoryAction]:
        return list(self._reverted)

    def _notify(self) -> None:
        self.store_changed.emit()
        self.history_changed.emit()

    # ─── Log Operations ───────────────────────────────────────────────────

    def append(self, kind: AnnotationKind, element: AnnotationBase) -> int:
        """
        Add an element to the store and log it.

        Assigns the next identifier and discards any redo path.

        Returns:
            The identifier given to the element.
        """
        element_id = self._next_id
        self._next_id += 1
        element.id = element_id

        self._store.insert(kind, element)
        self._applied.append(HistoryAction(kind, element_id, element))
        self._reverted.clear()

        self._logger.debug(f"Appended {kind.name} #{element_id}")
        self._notify()
        return element_id

    def undo(self) -> None:
        """Remove the most recently applied element. No-op on an empty log."""
        if not self._applied:
            return

        action = self._applied.pop()
        self._store.remove(action.kind, action.element_id)
        self._reverted.append(action)

        self._logger.debug(f"Undo {action.kind.name} #{action.element_id}")
        self._notify()

    def redo(self) -> None:
        """Re-insert the most recently undone element. No-op when nothing was undone."""
        if not self._reverted:
            return

        action = self._reverted.pop()
        self._store.insert(action.kind, action.element)
        self._applied.append(action)

        self._logger.debug(f"Redo {action.kind.name} #{action.element_id}")
        self._notify()

    # ─── Bulk Operations ──────────────────────────────────────────────────

    def freeze(self) -> None:
        """Make every current element permanent."""
        count = 0
        for element in self._store.all_elements():
            if element.erasable:
                element.erasable = False
                count += 1
        for action in self._applied:
            action.element.erasable = False

        self._logger.info(f"Froze {count} annotation(s)")
        self._notify()

    def purge_volatile(self) -> None:
        """Remove every erasable element and discard the undo/redo log."""
        removed = 0
        for kind in AnnotationKind:
            items = self._store.collection(kind)
            kept = [element for element in items if not element.erasable]
            removed += len(items) - len(kept)
            items[:] = kept

        self._applied.clear()
        self._reverted.clear()

        self._logger.info(f"Cleared {removed} erasable annotation(s) and the edit history")
        self._notify()

    def discard(self, kind: AnnotationKind, element_ids: Iterable[int]) -> None:
        """Remove elements together with their entries in both stacks."""
        ids = set(element_ids)
        if not ids:
            return

        for element_id in ids:
            self._store.remove(kind, element_id)
        self._applied = [
            a for a in self._applied if not (a.kind == kind and a.element_id in ids)
        ]
        self._reverted = [
            a for a in self._reverted if not (a.kind == kind and a.element_id in ids)
        ]

        self._logger.debug(f"Discarded {kind.name} {sorted(ids)}")
        self._notify()

    def reclassify(
        self,
        element_id: int,
        from_kind: AnnotationKind,
        to_kind: AnnotationKind,
        replacement: AnnotationBase,
    ) -> None:
        """
        Move an element to another collection under the same identifier.

        Log entries for the element are re-tagged so undo/redo keep working.
        An element that is currently undone only has its log entries re-tagged.
        """
        removed = self._store.remove(from_kind, element_id)
        logged = any(
            a.kind == from_kind and a.element_id == element_id
            for a in self._applied + self._reverted
        )
        if removed is None and not logged:
            return

        replacement.id = element_id
        if removed is not None:
            self._store.insert(to_kind, replacement)

        def retag(actions: List[HistoryAction]) -> List[HistoryAction]:
            return [
                HistoryAction(to_kind, element_id, replacement)
                if a.kind == from_kind and a.element_id == element_id else a
                for a in actions
            ]

        self._applied = retag(self._applied)
        self._reverted = retag(self._reverted)

        self._logger.debug(f"Moved #{element_id} from {from_kind.name} to {to_kind.name}")
        self._notify()

    # ─── Unlogged Edits ───────────────────────────────────────────────────

    def reposition_text(self, text: AnnotationBase, x: float, y: float) -> None:
        """Move a text annotation without recording an undo step."""
        text.position.setX(x)
        text.position.setY(y)
        self.store_changed.emit()
