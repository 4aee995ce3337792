"""
vadbatch - Batch dispatcher for remote voice-activity detection.

Walks an input tree for WAV files, keeps the ones recorded as 16kHz mono
16-bit PCM, and hands each one to a pool of remote VAD endpoints in
round-robin order, mirroring the input layout under an output root.
"""

__version__ = "0.1.0"
