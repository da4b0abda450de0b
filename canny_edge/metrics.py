"""
Edge map statistics and comparison against a reference edge map.
"""
import numpy as np
from typing import Dict, Optional
import logging
from scipy.spatial import cKDTree

logger = logging.getLogger(__name__)

def _edge_mask(edges: np.ndarray) -> np.ndarray:
    """Boolean edge mask from a (H, W) map or a (H, W, 3) BGR edge image."""
    if edges.ndim == 3:
        edges = edges[:, :, 0]
    return edges > 0

def compare_edge_maps(detected: np.ndarray, reference: np.ndarray,
                      max_samples: int = 10000) -> Dict[str, float]:
    """
    Score a detected edge map against a reference edge map.

    Args:
        detected: Edge map produced by the detector
        reference: Ground-truth or baseline edge map of the same size
        max_samples: Maximum number of samples for Hausdorff distance

    Returns:
        Dictionary of comparison metrics
    """
    detected_mask = _edge_mask(detected)
    reference_mask = _edge_mask(reference)

    if detected_mask.shape != reference_mask.shape:
        raise ValueError(f"Edge map shapes differ: {detected_mask.shape} vs {reference_mask.shape}")

    tp = int(np.sum(detected_mask & reference_mask))
    fp = int(np.sum(detected_mask & ~reference_mask))
    fn = int(np.sum(~detected_mask & reference_mask))
    tn = int(np.sum(~detected_mask & ~reference_mask))

    total_pixels = detected_mask.size
    precision = tp / (tp + fp) if (tp + fp) > 0 else 0.0
    recall = tp / (tp + fn) if (tp + fn) > 0 else 0.0
    f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0.0
    iou = tp / (tp + fp + fn) if (tp + fp + fn) > 0 else 0.0

    h_distance = approximate_hausdorff_distance(detected_mask, reference_mask, max_samples)

    logger.debug(f"Comparison: TP={tp}, FP={fp}, FN={fn}, precision={precision:.4f}, recall={recall:.4f}")

    return {
        'agreement': (tp + tn) / total_pixels,
        'precision': precision,
        'recall': recall,
        'f1_score': f1,
        'iou': iou,
        'hausdorff_distance': h_distance,
        'true_positives': tp,
        'false_positives': fp,
        'false_negatives': fn,
        'true_negatives': tn
    }

def approximate_hausdorff_distance(edges1: np.ndarray, edges2: np.ndarray,
                                   max_samples: int = 10000,
                                   max_distance: Optional[float] = None,
                                   seed: Optional[int] = 0) -> float:
    """
    Symmetric Hausdorff distance between the edge pixels of two maps.

    Large edge sets are subsampled; distances are found with KD-trees.

    Args:
        edges1: First edge map
        edges2: Second edge map
        max_samples: Maximum number of edge pixels used from each map
        max_distance: Value returned when either map has no edges (default: inf)
        seed: Seed for the subsampling generator

    Returns:
        Approximate Hausdorff distance in pixels
    """
    coords1 = np.argwhere(_edge_mask(edges1))
    coords2 = np.argwhere(_edge_mask(edges2))

    if len(coords1) == 0 or len(coords2) == 0:
        return max_distance if max_distance is not None else float('inf')

    rng = np.random.default_rng(seed)
    if len(coords1) > max_samples:
        coords1 = coords1[rng.choice(len(coords1), max_samples, replace=False)]
    if len(coords2) > max_samples:
        coords2 = coords2[rng.choice(len(coords2), max_samples, replace=False)]

    dist1, _ = cKDTree(coords2).query(coords1)
    dist2, _ = cKDTree(coords1).query(coords2)

    return float(max(np.max(dist1), np.max(dist2)))

def compute_edge_statistics(edges: np.ndarray,
                            magnitude: Optional[np.ndarray] = None) -> Dict[str, float]:
    """
    Summarize an edge map, optionally with the gradient magnitude behind it.

    Args:
        edges: Edge map (H, W) or BGR edge image (H, W, 3)
        magnitude: Rescaled gradient magnitude of the same size

    Returns:
        Dictionary of edge statistics
    """
    mask = _edge_mask(edges)
    edge_pixels = int(np.sum(mask))

    stats = {
        'edge_pixels': edge_pixels,
        'total_pixels': int(mask.size),
        'edge_fraction': edge_pixels / mask.size,
    }

    if magnitude is not None:
        if magnitude.shape != mask.shape:
            raise ValueError(f"Magnitude shape {magnitude.shape} does not match edges {mask.shape}")
        on_edges = magnitude[mask]
        off_edges = magnitude[~mask]
        stats['mean_magnitude_at_edges'] = float(np.mean(on_edges)) if on_edges.size else 0.0
        stats['mean_magnitude_off_edges'] = float(np.mean(off_edges)) if off_edges.size else 0.0

    return stats
