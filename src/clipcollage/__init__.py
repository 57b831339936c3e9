"""clipcollage — compile trimmed clips into a vertical collage.

Plan a centered two-column tile grid for N clips, compile per-clip
trim/scale/mask/overlay and trim/volume/EQ chains into an ffmpeg filter
graph, and normalize oversized or incompatible sources before they enter
the graph. Edits are declared in YAML manifests.
"""
