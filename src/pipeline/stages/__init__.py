"""
Pipeline stages for the object detection system.

- detect: encode, preprocess, infer, filter and annotate one frame
"""

from .detect import CONFIDENCE_THRESHOLD, DetectionListener, DetectionPipeline

__all__ = ["CONFIDENCE_THRESHOLD", "DetectionListener", "DetectionPipeline"]
