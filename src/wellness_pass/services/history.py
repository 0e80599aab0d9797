"""Undoable form-state store."""

import json
import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass, field

from ..db.local_cache import LocalCache
from ..models.form_state import FormState

logger = logging.getLogger(__name__)

STORAGE_KEY = "wellness-form-state-v1"
MAX_HISTORY = 100


@dataclass(frozen=True)
class HistoryState:
    """Form state with linear undo/redo history.

    ``past`` is oldest first; ``future`` is most-recently-undone first.
    """

    present: FormState = field(default_factory=FormState.default)
    past: tuple[FormState, ...] = ()
    future: tuple[FormState, ...] = ()


def _push(past: tuple[FormState, ...], state: FormState, limit: int) -> tuple[FormState, ...]:
    """Append to past, evicting the oldest entries beyond ``limit``."""
    return (*past, state)[-limit:]


def load_stored_state(cache: LocalCache | None) -> FormState:
    """Recover the last persisted form, or a blank one."""
    if cache is None:
        return FormState.default()
    raw = cache.get(STORAGE_KEY)
    if not raw:
        return FormState.default()
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed cached form state")
        return FormState.default()
    if not isinstance(data, dict):
        logger.warning("Ignoring malformed cached form state")
        return FormState.default()
    return FormState.from_dict(data)


class HistoryStore:
    """Holds the one editable FormState with bounded undo/redo.

    Every change of ``present`` is written to the local cache. Undo
    history itself is never persisted.
    """

    def __init__(
        self,
        cache: LocalCache | None = None,
        max_history: int = MAX_HISTORY,
        initial: FormState | None = None,
    ):
        self.cache = cache
        self.max_history = max_history
        if initial is None:
            initial = load_stored_state(cache)
        self._state = HistoryState(present=initial)

    @property
    def state(self) -> HistoryState:
        return self._state

    @property
    def present(self) -> FormState:
        return self._state.present

    @property
    def can_undo(self) -> bool:
        return bool(self._state.past)

    @property
    def can_redo(self) -> bool:
        return bool(self._state.future)

    def update(self, updater: Callable[[FormState], FormState]) -> bool:
        """Apply ``updater`` to the present state.

        Returns:
            True if a new history entry was recorded, False if the updater
            returned the present state unchanged
        """
        state = self._state
        next_state = updater(state.present)
        if next_state is state.present:
            return False
        self._commit(
            HistoryState(
                present=next_state,
                past=_push(state.past, state.present, self.max_history),
                future=(),
            )
        )
        return True

    def undo(self) -> bool:
        """Step back one entry. No-op with an empty past."""
        state = self._state
        if not state.past:
            return False
        self._commit(
            HistoryState(
                present=state.past[-1],
                past=state.past[:-1],
                future=(state.present, *state.future),
            )
        )
        return True

    def redo(self) -> bool:
        """Step forward one entry. No-op with an empty future."""
        state = self._state
        if not state.future:
            return False
        self._commit(
            HistoryState(
                present=state.future[0],
                past=_push(state.past, state.present, self.max_history),
                future=state.future[1:],
            )
        )
        return True

    def clear(self) -> bool:
        """Reset to a blank form, keeping the coach."""
        return self.update(lambda present: present.cleared())

    def _commit(self, state: HistoryState) -> None:
        previous = self._state
        self._state = state
        if state.present is not previous.present:
            self._persist(state.present)

    def _persist(self, present: FormState) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(STORAGE_KEY, json.dumps(present.to_dict()))
        except sqlite3.Error as e:
            logger.warning("Could not persist form state: %s", e)
