import math
from collections import Counter
from enum import Enum

from ..core.dynamic_graph import DynamicGraph
from ..core.graph import Frame
from ..exceptions import InvalidConfigurationError, OutOfRangeError


class Phase(str, Enum):
    """Segments of a transition between two consecutive frames.

    - ``IDLE``: nothing moves.
    - ``APPEAR``: new entities fade in (alpha 0 -> 1).
    - ``DISAPPEAR``: vanishing entities fade out (alpha 1 -> 0).
    - ``MORPH``: positions move toward the next frame.
    - ``SIMULTANEOUS``: all three of the above at once.
    """

    IDLE = "idle"
    APPEAR = "appear"
    DISAPPEAR = "disappear"
    MORPH = "morph"
    SIMULTANEOUS = "simultaneous"


PHASED = (Phase.IDLE, Phase.DISAPPEAR, Phase.MORPH, Phase.APPEAR)
SIMULTANEOUS = (Phase.IDLE, Phase.SIMULTANEOUS)

DEFAULT_DURATIONS = {
    Phase.IDLE: 0.5,
    Phase.APPEAR: 0.25,
    Phase.DISAPPEAR: 0.25,
    Phase.MORPH: 1.0,
    Phase.SIMULTANEOUS: 1.5,
}


def _phase(value) -> Phase:
    try:
        return Phase(value)
    except ValueError:
        raise OutOfRangeError(f"Unknown phase {value!r}") from None


def validate_phases(phases) -> tuple:
    """Check a custom phase ordering and return it as a tuple of ``Phase``.

    Valid orderings hold either exactly one each of APPEAR, DISAPPEAR and
    MORPH, or exactly one SIMULTANEOUS and none of those three. Any number of
    IDLE phases may be mixed in.

    Raises
    --
    InvalidConfigurationError
        If the ordering is neither phased nor simultaneous, or names an
        unknown phase.

    """
    try:
        phases = tuple(Phase(p) for p in phases)
    except ValueError as e:
        raise InvalidConfigurationError(f"Invalid phases: {e}") from None
    counts = Counter(phases)
    repeated = [p.value for p, c in counts.items() if p is not Phase.IDLE and c > 1]
    if repeated:
        raise InvalidConfigurationError(f"Phases other than idle present multiple times: {repeated}")
    three = (counts[Phase.APPEAR], counts[Phase.DISAPPEAR], counts[Phase.MORPH])
    if counts[Phase.SIMULTANEOUS] == 0 and three != (1, 1, 1):
        raise InvalidConfigurationError(
            "Phased transitions need exactly one appear, one disappear and one morph phase"
        )
    if counts[Phase.SIMULTANEOUS] == 1 and any(three):
        raise InvalidConfigurationError("A simultaneous transition cannot mix in appear, disappear or morph")
    return phases


class _TransitionState:
    """Accumulated effect of the phases replayed so far in one transition."""

    __slots__ = ("interpolation", "alpha", "adding", "added", "deleting", "deleted")

    def __init__(self):
        self.interpolation = 0.0
        self.alpha = 0.0
        self.adding = False
        self.added = False
        self.deleting = False
        self.deleted = False

    def perform(self, phase: Phase, elapsed: float, duration: float):
        done = elapsed >= duration
        progress = elapsed / duration
        if phase is Phase.APPEAR:
            self.adding = not done
            self.alpha = progress
            self.added = self.added or done
        elif phase is Phase.DISAPPEAR:
            self.deleting = not done
            self.alpha = progress
            self.deleted = self.deleted or done
        elif phase is Phase.MORPH:
            self.interpolation = progress
        elif phase is Phase.SIMULTANEOUS:
            self.adding = not done
            self.deleting = not done
            self.alpha = progress
            self.interpolation = progress
            if done:
                self.added = True
                self.deleted = True

    def alpha_of(self, entity):
        """New alpha for ``entity``, or None to leave it untouched."""
        is_new, is_old = entity.is_new, entity.is_old
        if not (is_new or is_old):
            return None
        alpha = entity.alpha
        if is_new and not self.added:
            alpha = 0.0
        if is_old and self.deleted:
            alpha = 0.0
        appearing = is_new and self.adding and not self.added
        disappearing = is_old and self.deleting
        if appearing or disappearing:
            fade_in = self.alpha if appearing else 1.0
            fade_out = 1.0 - self.alpha if disappearing else 1.0
            alpha = fade_in * fade_out
        return alpha


class Interpolator:
    """Render any point in time of a laid-out animation as a blended frame.

    Every transition between two consecutive frames is a sequence of phases
    (see ``Phase``); its duration is the sum of their durations.

    Parameters
    --
    phases : {"phased", "simultaneous"} or sequence of Phase, default "phased"
        ``"phased"`` is ``(idle, disappear, morph, appear)``,
        ``"simultaneous"`` is ``(idle, simultaneous)``. Custom orderings are
        checked with ``validate_phases``.
    durations : dict, optional
        Per-phase overrides of ``DEFAULT_DURATIONS``.
    prune_deleted : bool, default False
        Drop entities whose disappearance has completed instead of keeping them
        at alpha 0.

    Raises
    --
    InvalidConfigurationError
        On an invalid phase ordering or a non-positive duration.

    Examples
    --
    >>> interp = Interpolator()
    >>> interp.transition_duration()
    2.0
    >>> interp.set_phases("simultaneous")
    >>> interp.transition_duration()
    2.0

    """

    def __init__(self, phases="phased", durations=None, prune_deleted: bool = False):
        self._durations = dict(DEFAULT_DURATIONS)
        for phase, value in (durations or {}).items():
            self.set_duration(phase, value)
        self.set_phases(phases)
        self.prune_deleted = bool(prune_deleted)

    # ==================== Configuration ====================

    @property
    def phases(self) -> tuple:
        return self._phases

    def set_phases(self, phases):
        # Phase members are str too; only plain strings name a preset
        if type(phases) is str and phases in ("phased", "simultaneous"):
            self._phases = PHASED if phases == "phased" else SIMULTANEOUS
        else:
            if isinstance(phases, (str, Phase)):
                phases = [phases]
            self._phases = validate_phases(phases)

    def duration(self, phase) -> float:
        """Duration of one phase type (OutOfRangeError if unknown)."""
        return self._durations[_phase(phase)]

    def set_duration(self, phase, value: float):
        phase = _phase(phase)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not value > 0:
            raise InvalidConfigurationError(f"Duration of {phase.value!r} must be a positive number, got {value!r}")
        self._durations[phase] = float(value)

    def transition_duration(self) -> float:
        return sum(self._durations[p] for p in self._phases)

    def length(self, animation) -> float:
        """Total animation time; 0 for fewer than two frames."""
        count = len(_frames_of(animation))
        if count < 2:
            return 0.0
        return (count - 1) * self.transition_duration()

    # ==================== Rendering ====================

    def __call__(self, animation, time: float) -> Frame:
        return self.frame_at(animation, time)

    def frame_at(self, animation, time: float) -> Frame:
        """Blended frame at ``time``; stored frames are never modified.

        Parameters
        --
        animation : DynamicGraph or sequence of Frame
        time : float
            In ``[0, length(animation)]``.

        Returns
        ---
        Frame
            Independent copy of the earlier bounding frame with the entities
            new in the later one imported, positions morphed and alpha
            recomputed for every new or vanishing entity.

        Raises
        --
        OutOfRangeError
            If ``time`` lies outside ``[0, length]``.

        """
        frames = _frames_of(animation)
        length = self.length(frames)
        if time < 0:
            raise OutOfRangeError(f"time {time} < 0")
        if time > length:
            raise OutOfRangeError(f"time {time} > length {length}")
        if not frames:
            return Frame()

        transition = self.transition_duration()
        last = len(frames) - 1
        index = min(int(math.floor(time / transition)), last)
        offset = min(max(time - index * transition, 0.0), transition)
        state = self._replay(offset)

        current = frames[index].copy()
        # at an exact frame time both bounds are the same frame
        morphing = offset > 0 and index < last
        following = frames[index + 1] if morphing else None
        self._import_new(current, following)

        for node in current.nodes:
            if morphing and node.id in following.node_to_idx:
                nxt = following.nodes[following.node_to_idx[node.id]]
                node.x = node.x + state.interpolation * (nxt.x - node.x)
                node.y = node.y + state.interpolation * (nxt.y - node.y)
            alpha = state.alpha_of(node)
            if alpha is not None:
                node.alpha = alpha
        for edge in current.edges:
            alpha = state.alpha_of(edge)
            if alpha is not None:
                edge.alpha = alpha

        if self.prune_deleted and state.deleted:
            current.remove_edges_if(lambda e: e.is_old)
            current.remove_nodes_if(lambda n: n.is_old)
        return current

    def _replay(self, offset: float) -> _TransitionState:
        state = _TransitionState()
        for phase in self._phases:
            d = self._durations[phase]
            if offset < d:
                state.perform(phase, offset, d)
                return state
            state.perform(phase, d, d)
            offset -= d
        return state

    @staticmethod
    def _import_new(current: Frame, following: Frame | None):
        for node in current.nodes:
            node.is_new = False
        for edge in current.edges:
            edge.is_new = False
        if following is None:
            return
        for node in following.nodes:
            if node.is_new and node.id not in current.node_to_idx:
                imported = node.copy()
                imported.is_old = False
                current.add_node(imported)
        for edge in following.edges:
            if edge.is_new and edge.id not in current.edge_to_idx:
                imported = edge.copy()
                imported.is_old = False
                current.add_edge(imported)

    def __repr__(self):
        names = ", ".join(p.value for p in self._phases)
        return f"Interpolator(phases=[{names}], transition={self.transition_duration():g})"


def _frames_of(animation):
    if isinstance(animation, DynamicGraph):
        return animation.frames
    return list(animation)
