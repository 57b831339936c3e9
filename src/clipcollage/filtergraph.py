"""Serialize a CompiledProgram into ffmpeg filter_complex syntax.

This is the only place that knows how each NodeKind is spelled. Every
node becomes one filter chain: input pads, filter text, output pad:

  [0:v]trim=start=1.5:end=4,setpts=PTS-STARTPTS[v0_trimmed]

Chains are joined with ';' in program order.
"""

from .common import ffmpeg_color, format_number
from .graph import CompiledProgram, GraphNode, NodeKind


def _frame(aspect: float) -> str:
    # Largest centred window of the source with the requested aspect.
    # Never larger than the source on either side.
    r = format_number(aspect)
    return f"crop=w='min(iw,2*floor(ih*{r}/2))':h='min(ih,2*floor(iw/{r}/2))',"


def _scale_crop(p: dict) -> str:
    # Cover scaling against the tile's own ratio: a wider source is
    # height-led, a taller one width-led. The free side is the smallest
    # even value that still covers the tile, so the crop never has to pad.
    w, h = p["width"], p["height"]
    framing = _frame(p["aspect"]) if p.get("aspect") is not None else ""
    return (
        f"{framing}"
        f"scale=w='if(gte(a,{w}/{h}),2*ceil({h}*a/2),{w})'"
        f":h='if(gte(a,{w}/{h}),{h},2*ceil({w}/a/2))'"
        f",setsar=1,crop={w}:{h}"
    )


def _mask(p: dict) -> str:
    # Luma 255 inside the rounded rect, 0 outside: distance from the
    # pixel to the inner rect (shrunk by r on each side) against r.
    w, h, r = p["width"], p["height"], p["radius"]
    return (
        f"color=c=black:s={w}x{h},"
        f"geq=lum='if(gt(hypot(X-max({r},min(W-{r},X)),"
        f"Y-max({r},min(H-{r},Y))),{r}),0,255)':a=255"
    )


def _filter_text(node: GraphNode) -> str:
    p = node.params
    kind = node.kind
    if kind == NodeKind.BACKGROUND_FILL:
        return (
            f"color=c={ffmpeg_color(p['color'])}:s={p['width']}x{p['height']}"
            f":d={format_number(p['duration'])}"
        )
    if kind == NodeKind.TRIM:
        return (
            f"trim=start={format_number(p['start'])}:end={format_number(p['end'])}"
            ",setpts=PTS-STARTPTS"
        )
    if kind == NodeKind.SCALE_CROP:
        return _scale_crop(p)
    if kind == NodeKind.MASK:
        return _mask(p)
    if kind == NodeKind.ALPHA_MERGE:
        return "alphamerge"
    if kind == NodeKind.OVERLAY:
        text = f"overlay=x={p['x']}:y={p['y']}"
        if p.get("shortest"):
            text += ":shortest=1"
        return text
    if kind == NodeKind.ATRIM:
        return (
            f"atrim=start={format_number(p['start'])}:end={format_number(p['end'])}"
            ",asetpts=PTS-STARTPTS"
        )
    if kind == NodeKind.VOLUME:
        return f"volume={format_number(p['volume'])}"
    if kind == NodeKind.EQUALIZE:
        return (
            f"equalizer=f={format_number(p['frequency'])}:t=h:width_type=q"
            f":w={format_number(p['q'])}:g={format_number(p['gain'])}"
        )
    if kind == NodeKind.MIX:
        return f"amix=inputs={p['inputs']}:duration={p['duration']}"
    raise ValueError(f"No serializer for node kind {kind!r}")


def node_to_filter(node: GraphNode) -> str:
    """One node as a labelled filter chain."""
    pads_in = "".join(f"[{label}]" for label in node.inputs)
    return f"{pads_in}{_filter_text(node)}[{node.output}]"


def to_filter_chains(program: CompiledProgram) -> list[str]:
    return [node_to_filter(node) for node in program.nodes]


def to_filter_complex(program: CompiledProgram) -> str:
    """The full -filter_complex argument."""
    return ";".join(to_filter_chains(program))


def build_ffmpeg_args(
    program: CompiledProgram,
    inputs: list[str],
    output: str,
    encoder: str = "libx264",
    encoder_params: list[str] | None = None,
    audio_bitrate: str = "192k",
) -> list[str]:
    """Build ffmpeg arguments (without the executable) for a program.

    One -i per source in node index order, the filter graph, a map for
    [v] and (when the program has audio) [a], then codec settings and a
    fast-start mp4 flag.

    Raises:
        ValueError: len(inputs) differs from program.source_count.
    """
    if len(inputs) != program.source_count:
        raise ValueError(
            f"Program reads {program.source_count} sources but "
            f"{len(inputs)} input paths were given"
        )

    args = ["-y"]
    for path in inputs:
        args.extend(["-i", str(path)])
    args.extend(["-filter_complex", to_filter_complex(program)])
    for terminal in program.terminals:
        args.extend(["-map", f"[{terminal}]"])

    args.extend(["-c:v", encoder, *(encoder_params or [])])
    if program.has_audio:
        args.extend(["-c:a", "aac", "-b:a", audio_bitrate])
    args.extend(["-movflags", "+faststart", str(output)])
    return args
