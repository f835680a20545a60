"""
Module: reconcile

Purpose: Keyed enter/update/exit reconciliation of data against shapes.

Key Functions:
- reconcile: pure diff of current keys against incoming data
- join: apply a reconciliation to a ShapeGroup, with optional transitions

Architecture Notes:
- Shapes are identified by a stable key function over the data
- Enter starts from a zero state and transitions to the encoded attributes;
  exit transitions to the zero state and then removes the shape
- join() is idempotent: the same data twice gives zero deltas the second time
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Hashable, Iterable, Sequence

from vizpipe.render.shapes import Shape, ShapeGroup
from vizpipe.render.transitions import TransitionScheduler
from vizpipe.transform.records import accessor

logger = logging.getLogger(__name__)

Encode = Callable[[Any, int], dict[str, Any]]


class ReconciliationAction(str, Enum):
    """What happens to one key during a join."""

    CREATE = "create"
    UPDATE = "update"
    REVIVE = "revive"
    REMOVE = "remove"


@dataclass(frozen=True)
class Reconciliation:
    """Disjoint key lists plus the incoming data order."""

    create: list[Hashable] = field(default_factory=list)
    update: list[Hashable] = field(default_factory=list)
    # Keys whose shapes were exiting and come back
    revive: list[Hashable] = field(default_factory=list)
    remove: list[Hashable] = field(default_factory=list)
    order: list[Hashable] = field(default_factory=list)

    def actions(self) -> list[tuple[ReconciliationAction, Hashable]]:
        return (
            [(ReconciliationAction.CREATE, k) for k in self.create]
            + [(ReconciliationAction.UPDATE, k) for k in self.update]
            + [(ReconciliationAction.REVIVE, k) for k in self.revive]
            + [(ReconciliationAction.REMOVE, k) for k in self.remove]
        )

    def action_for(self, key: Hashable) -> ReconciliationAction | None:
        for action, k in self.actions():
            if k == key:
                return action
        return None


def reconcile(
    current_keys: Iterable[Hashable],
    data: Sequence[Any],
    key: str | Callable[[Any], Hashable],
    exiting_keys: Iterable[Hashable] = (),
) -> Reconciliation:
    """
    Diff the keys currently drawn against incoming data.

    Args:
        current_keys: Keys of the shapes already present
        data: Incoming data, in the order shapes should be drawn
        key: Field name or function giving each datum's identity
        exiting_keys: Keys of shapes still on their way out

    Returns:
        Reconciliation with create/update/revive/remove key lists. A key repeated
        in the data is bound once, to its first datum.
    """
    get_key = accessor(key)
    current = list(dict.fromkeys(current_keys))
    current_set = set(current)
    exiting_set = set(exiting_keys) - current_set

    order: list[Hashable] = []
    seen: set[Hashable] = set()
    for datum in data:
        k = get_key(datum)
        if k in seen:
            logger.debug(f"Duplicate key {k!r} in joined data; keeping the first datum")
            continue
        seen.add(k)
        order.append(k)

    return Reconciliation(
        create=[k for k in order if k not in current_set and k not in exiting_set],
        update=[k for k in order if k in current_set],
        revive=[k for k in order if k in exiting_set],
        remove=[k for k in current if k not in seen],
        order=order,
    )


@dataclass
class JoinResult:
    """Outcome of a join: which keys changed and how."""

    reconciliation: Reconciliation
    # key -> attribute -> (old, new)
    deltas: dict[Hashable, dict[str, tuple[Any, Any]]] = field(default_factory=dict)

    @property
    def created(self) -> list[Hashable]:
        return self.reconciliation.create

    @property
    def updated(self) -> list[Hashable]:
        return self.reconciliation.update

    @property
    def revived(self) -> list[Hashable]:
        return self.reconciliation.revive

    @property
    def removed(self) -> list[Hashable]:
        return self.reconciliation.remove

    @property
    def delta_count(self) -> int:
        return sum(len(d) for d in self.deltas.values())

    @property
    def changed(self) -> bool:
        return bool(self.created or self.revived or self.removed or self.delta_count)


def _diff(old: dict[str, Any], new: dict[str, Any]) -> dict[str, tuple[Any, Any]]:
    return {name: (old.get(name), value) for name, value in new.items() if old.get(name) != value}


def join(
    group: ShapeGroup,
    data: Sequence[Any],
    key: str | Callable[[Any], Hashable],
    encode: Encode,
    *,
    kind: str = "circle",
    zero_state: Encode | None = None,
    style: Callable[[Any, int], dict[str, Any]] | None = None,
    text: Callable[[Any, int], str] | None = None,
    duration: float = 0.0,
    scheduler: TransitionScheduler | None = None,
) -> JoinResult:
    """
    Bind data to the shapes of a group.

    - enter: create a shape at the zero state, then transition to encode()
    - update: rebind the datum and transition from the current attributes
    - exit: transition to the zero state, then remove

    Without a scheduler (or with duration 0) every change applies at once.

    Args:
        group: Group holding the shapes of this join
        data: Incoming data
        key: Identity of each datum (field name or function)
        encode: (datum, index) -> target attributes
        kind: Tag of newly created shapes
        zero_state: (datum, index) -> attributes before entering / after exiting
        style: (datum, index) -> style of the shape
        text: (datum, index) -> text content
        duration: Transition length in milliseconds
        scheduler: Scheduler running the transitions

    Returns:
        JoinResult with the reconciliation and per-key attribute deltas
    """
    get_key = accessor(key)
    animate = scheduler is not None and duration > 0
    result_deltas: dict[Hashable, dict[str, tuple[Any, Any]]] = {}

    live = group.keys(include_exiting=False)
    exiting = [k for k in group.keys() if group.get(k).exiting]
    recon = reconcile(live, data, get_key, exiting_keys=exiting)
    creating = set(recon.create)
    bound: set[Hashable] = set()

    for index, datum in enumerate(data):
        k = get_key(datum)
        if k in bound:
            continue
        bound.add(k)

        target = encode(datum, index)
        shape_style = style(datum, index) if style else None
        shape_text = text(datum, index) if text else None
        shape = group.get(k)

        if k in creating and shape is None:
            zero = zero_state(datum, index) if zero_state else {}
            shape = group.add(Shape(kind, k, datum=datum, attrs={**target, **zero}))
            if shape_style is not None:
                shape.style = dict(shape_style)
            shape.text = shape_text
            result_deltas[k] = {name: (zero.get(name), value) for name, value in target.items()}
            if animate and zero:
                scheduler.start(shape, target, duration)
            else:
                shape.attrs.update(target)
            continue

        # Update, or revive a shape that was on its way out
        if shape.exiting:
            shape.exiting = False
            if scheduler is not None:
                scheduler.cancel(shape)
        previous = scheduler.target(shape) if scheduler is not None else dict(shape.attrs)
        delta = _diff(previous, target)
        if shape_style is not None and shape_style != shape.style:
            delta.update({f"style:{n}": (shape.style.get(n), v) for n, v in shape_style.items() if shape.style.get(n) != v})
            shape.style = dict(shape_style)
        if text is not None and shape_text != shape.text:
            delta["text"] = (shape.text, shape_text)
            shape.text = shape_text
        shape.datum = datum
        if delta:
            result_deltas[k] = delta
            if animate:
                scheduler.start(shape, target, duration)
            else:
                if scheduler is not None:
                    scheduler.cancel(shape)
                shape.attrs.update(target)

    for k in recon.remove:
        shape = group.get(k)
        if shape is None:
            continue
        zero = zero_state(shape.datum, 0) if zero_state else {}
        if animate and zero:
            shape.exiting = True
            scheduler.start(shape, zero, duration, group=group, remove_on_end=True)
        else:
            if scheduler is not None:
                scheduler.cancel(shape)
            group.remove(k)

    group.reorder(recon.order)
    logger.debug(
        f"Join on {group.name}: {len(recon.create)} created, "
        f"{len(recon.update)} updated, {len(recon.revive)} revived, {len(recon.remove)} removed"
    )
    return JoinResult(reconciliation=recon, deltas=result_deltas)
