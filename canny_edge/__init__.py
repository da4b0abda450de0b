"""
Canny edge detection on packed BGR pixel buffers.
"""
from canny_edge.detector import CannyEdgeDetector, PipelineStages, detect_edges
from canny_edge.parameters import EdgeParameters

__all__ = ['CannyEdgeDetector', 'PipelineStages', 'EdgeParameters', 'detect_edges']
