"""
ivf-scorer
==========

Timing repair and VMAF scoring for WebRTC test captures.

Participants of a real-time communication test record what they send
and what they receive as IVF files. Every frame carries a burned-in
millisecond clock and the sender's name label. This package reads
those overlays back, rebuilds a gap-free timeline for every capture,
and scores each received stream against the matching sent stream.

Components:
    - container: IVF parsing and field patching
    - recognition: OCR backends for the frame overlays
    - recovery: Timestamp and identity recovery
    - repair: Gap-filling rewrite of capture files
    - scoring: Pairing and libvmaf scoring
    - observability: Bucketed series for charts

Example:
    from ivf_scorer.config import settings
    from ivf_scorer.recognition import create_recognizer
    from ivf_scorer.scoring import VmafScorer

    scorer = VmafScorer.from_settings(settings, create_recognizer(settings))
    report = await scorer.calculate("/data/run-42")
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
