"""Typed filter-graph IR.

Chain builders emit GraphNode values, not filter text. Each node names
the labels it consumes and the single label it produces, so label
closure can be checked (emitter.py) independently of how the graph is
finally spelled for ffmpeg (filtergraph.py).

Raw source pads are written "<index>:v" / "<index>:a", the same way
ffmpeg addresses input streams.
"""

import re
from dataclasses import dataclass, field
from enum import Enum


VIDEO_TERMINAL = "v"
AUDIO_TERMINAL = "a"

_SOURCE_PAD = re.compile(r"^(\d+):([va])$")


class NodeKind(str, Enum):
    TRIM = "trim"
    SCALE_CROP = "scale_crop"
    MASK = "mask"
    ALPHA_MERGE = "alpha_merge"
    OVERLAY = "overlay"
    ATRIM = "atrim"
    VOLUME = "volume"
    EQUALIZE = "equalize"
    MIX = "mix"
    BACKGROUND_FILL = "background_fill"


@dataclass(frozen=True)
class GraphNode:
    kind: NodeKind
    inputs: tuple[str, ...]
    output: str
    params: dict = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class CompiledProgram:
    """Ordered nodes plus what the executor should map to the output."""

    nodes: tuple[GraphNode, ...]
    terminals: tuple[str, ...]
    source_count: int

    @property
    def has_audio(self) -> bool:
        return AUDIO_TERMINAL in self.terminals

    def nodes_of(self, kind: NodeKind) -> list[GraphNode]:
        return [n for n in self.nodes if n.kind == kind]


def source_pad(index: int, stream: str) -> str:
    """Label of a raw input stream, e.g. source_pad(2, "a") -> "2:a"."""
    return f"{index}:{stream}"


def parse_source_pad(label: str) -> tuple[int, str] | None:
    """Inverse of source_pad; None for anything that isn't a raw pad."""
    m = _SOURCE_PAD.match(label)
    if m is None:
        return None
    return int(m.group(1)), m.group(2)
