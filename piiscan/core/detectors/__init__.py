"""PII detectors: pattern, remote model, and hybrid composition."""

from piiscan.core.detectors.base import AllDetectorsFailedError, Detector, DetectorError
from piiscan.core.detectors.hybrid import HybridDetector
from piiscan.core.detectors.pattern import PatternDetector
from piiscan.core.detectors.remote import RemoteDetector

__all__ = [
    "AllDetectorsFailedError",
    "Detector",
    "DetectorError",
    "HybridDetector",
    "PatternDetector",
    "RemoteDetector",
]
