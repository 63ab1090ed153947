"""
Declarative effect graph.

    input -> shaper ------------------(x 1.0)---------> mix
                    -> delay ---------(x delay)-------> mix
                    -> reverb --------(x reverb*2)----> mix

build_effect_graph() assembles a fresh node list + connections per render from an
EffectSettings snapshot; render_graph() is a pure interpreter over it. Each
connection carries the linear gain its source is summed with at the destination
(the dry/wet levels). The echo feedback is state inside the feedback_delay
node, so the graph itself is acyclic.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import torch

from vocalfx.core.types import EffectSettings
from vocalfx.dsp.delay import MAX_FEEDBACK, feedback_delay
from vocalfx.dsp.envelopes import ms_to_s
from vocalfx.dsp.mixer import BranchSpec, MixBus
from vocalfx.dsp.reverb import (
    DEFAULT_IR_DECAY,
    DEFAULT_IR_DURATION_S,
    convolve_reverb,
    synthesize_impulse_response,
)
from vocalfx.dsp.waveshaper import apply_waveshaper, distortion_amount, make_distortion_curve

DELAY_TIME_MS = 350.0
FEEDBACK_SCALE = 0.6
# Tunable: echo level at the bus per unit of the delay setting
DELAY_WET_SCALE = 1.0
REVERB_WET_SCALE = 2.0

INPUT = "input"
OUTPUT = "mix"


@dataclass
class GraphNode:
    kind: str  # input | passthrough | waveshaper | feedback_delay | convolver | mix
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Connection:
    src: str
    dst: str
    gain: float = 1.0


@dataclass
class EffectGraph:
    sample_rate: int
    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    connections: List[Connection] = field(default_factory=list)

    def add(self, name: str, kind: str, **params) -> "EffectGraph":
        if name in self.nodes:
            raise ValueError(f"duplicate node '{name}'")
        self.nodes[name] = GraphNode(kind, params)
        return self

    def connect(self, src: str, dst: str, gain: float = 1.0) -> "EffectGraph":
        for name in (src, dst):
            if name not in self.nodes:
                raise ValueError(f"unknown node '{name}'")
        self.connections.append(Connection(src, dst, float(gain)))
        return self

    def inputs_of(self, name: str) -> List[Connection]:
        return [c for c in self.connections if c.dst == name]

    def topological_order(self) -> List[str]:
        indegree = {name: 0 for name in self.nodes}
        for c in self.connections:
            indegree[c.dst] += 1
        ready = deque(name for name, deg in indegree.items() if deg == 0)
        order = []
        while ready:
            name = ready.popleft()
            order.append(name)
            for c in self.connections:
                if c.src == name:
                    indegree[c.dst] -= 1
                    if indegree[c.dst] == 0:
                        ready.append(c.dst)
        if len(order) != len(self.nodes):
            raise ValueError("effect graph contains a cycle")
        return order


def feedback_gain(delay: float) -> float:
    """Echo feedback for a delay setting; capped so the loop always converges."""
    return min(delay * FEEDBACK_SCALE, MAX_FEEDBACK)


def build_effect_graph(
    settings: EffectSettings,
    sample_rate: int,
    impulse_response: Optional[torch.Tensor] = None,
    seed: Optional[int] = None,
    ir_duration: float = DEFAULT_IR_DURATION_S,
    ir_decay: float = DEFAULT_IR_DECAY,
) -> EffectGraph:
    """
    Assemble the graph for one render. Inactive branches (< 0.01) are left out
    entirely; the impulse response is synthesized only when reverb is active
    and none was supplied.
    """
    graph = EffectGraph(sample_rate=sample_rate)
    graph.add(INPUT, "input")

    amount = distortion_amount(settings.distortion)
    if amount is None:
        graph.add("shaper", "passthrough")
    else:
        graph.add("shaper", "waveshaper", curve=make_distortion_curve(amount))
    graph.add(OUTPUT, "mix")
    graph.connect(INPUT, "shaper")
    # Dry path
    graph.connect("shaper", OUTPUT, gain=1.0)

    if settings.delay_active:
        feedback = feedback_gain(settings.delay)
        if feedback >= 1.0:
            raise ValueError(f"feedback gain {feedback} would not converge")
        graph.add(
            "delay",
            "feedback_delay",
            delay_samples=int(round(ms_to_s(DELAY_TIME_MS) * sample_rate)),
            feedback=feedback,
        )
        graph.connect("shaper", "delay").connect("delay", OUTPUT, gain=settings.delay * DELAY_WET_SCALE)

    if settings.reverb_active:
        if impulse_response is None:
            impulse_response = synthesize_impulse_response(
                sample_rate, duration=ir_duration, decay=ir_decay, seed=seed
            )
        graph.add("reverb", "convolver", ir=impulse_response)
        graph.connect("shaper", "reverb").connect("reverb", OUTPUT, gain=settings.reverb * REVERB_WET_SCALE)

    return graph


def _process(node: GraphNode, x: torch.Tensor, sample_rate: int) -> torch.Tensor:
    kind = node.kind
    if kind == "passthrough":
        return x
    if kind == "waveshaper":
        return apply_waveshaper(x, sample_rate, node.params["curve"])
    if kind == "feedback_delay":
        return feedback_delay(x, node.params["delay_samples"], node.params["feedback"])
    if kind == "convolver":
        return convolve_reverb(x, node.params["ir"], sample_rate, normalize=node.params.get("normalize", True))
    raise ValueError(f"unknown node kind '{kind}'")


def render_graph(graph: EffectGraph, signal: torch.Tensor) -> torch.Tensor:
    """
    Run (channels, frames) signal through the graph and return the mix bus output.
    Node inputs are summed with their connection gains; nothing in graph or
    signal is mutated.
    """
    outputs: Dict[str, torch.Tensor] = {}
    for name in graph.topological_order():
        node = graph.nodes[name]
        if node.kind == "input":
            outputs[name] = signal
            continue

        bus = MixBus()
        for c in graph.inputs_of(name):
            bus.add(c.src, outputs[c.src], BranchSpec(c.src, gain=c.gain))
        summed = torch.zeros_like(signal) if len(bus) == 0 else bus.mix()

        outputs[name] = summed if node.kind == "mix" else _process(node, summed, graph.sample_rate)

    return outputs[OUTPUT]
