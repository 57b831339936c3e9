"""Graph emitter — join the chains into one checked program.

emit() is the last gate before text: it concatenates video then audio
nodes and checks that the result is a closed graph ffmpeg can wire up.
A failure here means a builder produced bad labels, so it raises
GraphConsistencyError (an AssertionError), not a user-facing error.

compile_collage() is the whole compiler: validate, plan, build, emit.
"""

from collections import Counter

from .audio_chain import build_audio_nodes
from .edit import ClipSpec, validate_clips
from .graph import (
    AUDIO_TERMINAL,
    VIDEO_TERMINAL,
    CompiledProgram,
    GraphNode,
    parse_source_pad,
)
from .layout import CanvasConfig, plan_tiles
from .video_chain import build_video_nodes


class GraphConsistencyError(AssertionError):
    """The emitted node list is not a closed, uniquely-labelled graph."""


def check_graph(nodes: list[GraphNode], source_count: int | None = None) -> None:
    """Verify label closure and uniqueness over an ordered node list.

    Checks, in order of the list:
      1. Every input is a raw source pad or an earlier node's output.
      2. Raw pads reference sources below source_count (when given).
      3. Output labels are unique and never shadow a raw pad.
      4. Each produced label is consumed at most once (ffmpeg links
         connect exactly two pads), and every non-terminal is consumed.
      5. Exactly one 'v' and at most one 'a'.

    Raises:
        GraphConsistencyError: Describing the first violation found.
    """
    produced = set()
    consumed = Counter()

    for pos, node in enumerate(nodes):
        for label in node.inputs:
            pad = parse_source_pad(label)
            if pad is not None:
                if source_count is not None and pad[0] >= source_count:
                    raise GraphConsistencyError(
                        f"node {pos} ({node.kind.value}) reads source {pad[0]} "
                        f"but only {source_count} sources exist"
                    )
                continue
            if label not in produced:
                raise GraphConsistencyError(
                    f"node {pos} ({node.kind.value}) reads [{label}] "
                    "before any node produced it"
                )
            consumed[label] += 1
            if consumed[label] > 1:
                raise GraphConsistencyError(f"label [{label}] is consumed twice")

        if parse_source_pad(node.output) is not None:
            raise GraphConsistencyError(
                f"node {pos} ({node.kind.value}) outputs raw pad label [{node.output}]"
            )
        if node.output in produced:
            raise GraphConsistencyError(f"label [{node.output}] is produced twice")
        produced.add(node.output)

    if VIDEO_TERMINAL not in produced:
        raise GraphConsistencyError("no node produces the video terminal [v]")

    dangling = sorted(
        label for label in produced
        if label not in (VIDEO_TERMINAL, AUDIO_TERMINAL) and not consumed[label]
    )
    if dangling:
        raise GraphConsistencyError(f"labels never consumed: {dangling}")

    for terminal in (VIDEO_TERMINAL, AUDIO_TERMINAL):
        if consumed[terminal]:
            raise GraphConsistencyError(
                f"terminal [{terminal}] is consumed inside the graph"
            )


def emit(
    video_nodes: list[GraphNode],
    audio_nodes: list[GraphNode],
    source_count: int | None = None,
) -> CompiledProgram:
    """Concatenate video then audio nodes into a checked CompiledProgram.

    Args:
        video_nodes: Output of build_video_nodes.
        audio_nodes: Output of build_audio_nodes (may be empty).
        source_count: Number of ffmpeg inputs; inferred from the highest
            raw pad index when omitted.

    Raises:
        GraphConsistencyError: The combined graph is not closed.
    """
    nodes = tuple(video_nodes) + tuple(audio_nodes)

    if source_count is None:
        indices = [
            pad[0]
            for node in nodes
            for pad in map(parse_source_pad, node.inputs)
            if pad is not None
        ]
        source_count = max(indices) + 1 if indices else 0

    check_graph(list(nodes), source_count)

    terminals = (VIDEO_TERMINAL,)
    if any(node.output == AUDIO_TERMINAL for node in nodes):
        terminals += (AUDIO_TERMINAL,)
    return CompiledProgram(nodes=nodes, terminals=terminals, source_count=source_count)


def compile_collage(
    clips: list[ClipSpec],
    cfg: CanvasConfig | None = None,
) -> CompiledProgram:
    """Compile clip edits into a collage program.

    Preconditions are checked before any node is built, so a caller
    never sees a partial program.

    Raises:
        ValueError: No clips, bad time range, negative volume, bad EQ.
        GraphConsistencyError: Internal builder bug.
    """
    if cfg is None:
        cfg = CanvasConfig()
    validate_clips(clips)

    tiles = plan_tiles(len(clips), cfg)
    video_nodes = build_video_nodes(clips, tiles, cfg)
    audio_nodes, _ = build_audio_nodes(clips)
    return emit(video_nodes, audio_nodes, source_count=len(clips))
