"""
Position handlers module.

Per-position processing steps run by the pipeline in order: speed
adjustment followed by idle event detection.
"""
