"""
Stage hooks: user callbacks run at fixed checkpoints of a frame.

A hook is any callable ``hook(state, dt)``. It is registered at one
HookStage and receives a monotonically increasing id that stays valid until
it is unregistered. Hooks at a stage run in registration order. Firing
iterates over a snapshot, so a hook may register, move or unregister hooks
without affecting the current pass.

Usage:
    hooks = HookRegistry()
    hook_id = hooks.register(lambda state, dt: print(dt), HookStage.AFTER_PRESSURE)
    hooks.fire(HookStage.AFTER_PRESSURE, state, 0.016)
    hooks.modify_stage(hook_id, HookStage.NEVER)
"""

from enum import IntEnum
from typing import Any, Protocol

import numpy as np

from fluidsim.fields.state import FieldId


class HookStage(IntEnum):
    """Checkpoints of a frame, in execution order."""

    START = 0
    AFTER_ADVECTION = 1
    AFTER_DIFFUSION = 2
    AFTER_DIVERGENCE = 3
    AFTER_PRESSURE = 4
    AFTER_PROJECTION = 5
    NEVER = 6  # Parked: registered but never fired


class Hook(Protocol):
    """Callable run at a checkpoint."""

    def __call__(self, state: Any, dt: float) -> None:
        ...


class HookRegistry:
    """Registered hooks keyed by id, each bound to one stage."""

    def __init__(self):
        self._hooks: dict[int, tuple[HookStage, Hook]] = {}
        self._next_id = 0

    def register(self, hook: Hook, stage: HookStage) -> int:
        """Register ``hook`` at ``stage``.

        Returns:
            Id of the new hook

        Raises:
            TypeError: If hook is not callable
        """
        if not callable(hook):
            raise TypeError(f"Hook must be callable, got {type(hook).__name__}")
        hook_id = self._next_id
        self._next_id += 1
        self._hooks[hook_id] = (HookStage(stage), hook)
        return hook_id

    def modify_stage(self, hook_id: int, stage: HookStage) -> bool:
        """Move a hook to another stage.

        Returns:
            False if no hook has this id
        """
        if hook_id not in self._hooks:
            return False
        _, hook = self._hooks[hook_id]
        self._hooks[hook_id] = (HookStage(stage), hook)
        return True

    def unregister(self, hook_id: int) -> None:
        """Remove a hook. Unknown ids are ignored."""
        self._hooks.pop(hook_id, None)

    def stage_of(self, hook_id: int) -> HookStage | None:
        entry = self._hooks.get(hook_id)
        return entry[0] if entry is not None else None

    def hooks_at(self, stage: HookStage) -> list[int]:
        """Ids of hooks registered at ``stage``, in firing order."""
        return [hid for hid, (s, _) in self._hooks.items() if s == stage]

    def fire(self, stage: HookStage, state: Any, dt: float) -> int:
        """Run every hook registered at ``stage``.

        Returns:
            Number of hooks run
        """
        if stage == HookStage.NEVER:
            return 0
        snapshot = [hook for s, hook in list(self._hooks.values()) if s == stage]
        for hook in snapshot:
            hook(state, dt)
        return len(snapshot)

    def __len__(self) -> int:
        return len(self._hooks)

    def __contains__(self, hook_id: int) -> bool:
        return hook_id in self._hooks


class FieldProbe:
    """Hook that keeps a numpy copy of one field each time it fires.

    Attributes:
        field_id: Field captured
        max_snapshots: Oldest snapshots are dropped beyond this count (None
            keeps every snapshot)
        snapshots: Captured arrays, oldest first
    """

    def __init__(self, field_id: FieldId, max_snapshots: int | None = None):
        self.field_id = FieldId(field_id)
        self.max_snapshots = max_snapshots
        self.snapshots: list[np.ndarray] = []

    def __call__(self, state: Any, dt: float) -> None:
        self.snapshots.append(state.field(self.field_id).to_numpy())
        if self.max_snapshots is not None and len(self.snapshots) > self.max_snapshots:
            del self.snapshots[0]

    @property
    def latest(self) -> np.ndarray | None:
        return self.snapshots[-1] if self.snapshots else None

    def clear(self) -> None:
        self.snapshots.clear()


__all__ = ["FieldProbe", "Hook", "HookRegistry", "HookStage"]
