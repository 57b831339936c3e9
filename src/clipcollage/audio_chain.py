"""Audio chain builder — trim, gain, and EQ per clip, then one mix.

Per clip:  [i:a] atrim ─► [ai_trimmed] volume ─► [ai_vol] (equalizer ─► [ai_eqK])*
All clip outputs feed a single amix ─► [a].

Zero-gain EQ bands are skipped entirely, so a flat clip is exactly
atrim → volume. A muted clip (volume 0) still feeds the mix; only a
source without an audio stream is left out.
"""

from .edit import ClipSpec
from .graph import AUDIO_TERMINAL, GraphNode, NodeKind, source_pad


EQ_Q = 1.41


def clip_audio_nodes(index: int, clip: ClipSpec) -> tuple[list[GraphNode], str]:
    """Build one clip's chain. Returns (nodes, final output label)."""
    trimmed = f"a{index}_trimmed"
    vol = f"a{index}_vol"
    nodes = [
        GraphNode(
            NodeKind.ATRIM,
            inputs=(source_pad(index, "a"),),
            output=trimmed,
            params={"start": clip.start_time, "end": clip.end_time},
        ),
        GraphNode(
            NodeKind.VOLUME,
            inputs=(trimmed,),
            output=vol,
            params={"volume": clip.volume},
        ),
    ]

    last = vol
    for band_index, band in enumerate(clip.equalizer):
        if band.gain_db == 0:
            continue
        eq = f"a{index}_eq{band_index}"
        nodes.append(GraphNode(
            NodeKind.EQUALIZE,
            inputs=(last,),
            output=eq,
            params={"frequency": band.frequency_hz, "q": EQ_Q, "gain": band.gain_db},
        ))
        last = eq
    return nodes, last


def build_audio_nodes(clips: list[ClipSpec]) -> tuple[list[GraphNode], bool]:
    """Build every clip's audio chain plus the final mix.

    Returns:
        (nodes, has_audio). has_audio is True when a Mix node producing
        the terminal 'a' was emitted.
    """
    nodes = []
    outputs = []
    for i, clip in enumerate(clips):
        if not clip.has_audio:
            continue
        clip_nodes, out = clip_audio_nodes(i, clip)
        nodes.extend(clip_nodes)
        outputs.append(out)

    if not outputs:
        return nodes, False

    nodes.append(GraphNode(
        NodeKind.MIX,
        inputs=tuple(outputs),
        output=AUDIO_TERMINAL,
        params={"inputs": len(outputs), "duration": "longest"},
    ))
    return nodes, True
