"""
Command-line interface for running the Canny edge detector on one image.
"""
import argparse
import json
import logging
import os
import warnings
from typing import Dict, Any, Optional

from canny_edge.detector import CannyEdgeDetector
from canny_edge.errors import CannyError, ThresholdOrderWarning
from canny_edge.io_utils import load_bgr_buffer, save_bgr_buffer, buffer_to_array, load_edge_map
from canny_edge.metrics import compare_edge_maps, compute_edge_statistics
from canny_edge.parameters import (
    EdgeParameters,
    DEFAULT_SIGMA,
    DEFAULT_LOW_THRESHOLD,
    DEFAULT_HIGH_THRESHOLD,
)
from canny_edge.processing import crop_workspace

def process_single_image(input_path: str, output_dir: str,
                         parameters: Optional[EdgeParameters] = None,
                         reference_path: Optional[str] = None,
                         plot: bool = False) -> Dict[str, Any]:
    """
    Detect edges in one image file and write the results.

    Args:
        input_path: Input image path
        output_dir: Output directory
        parameters: Detector parameters (defaults when None)
        reference_path: Optional reference edge map to compare against
        plot: Save a figure of the intermediate stages

    Returns:
        Dictionary with parameters, statistics and comparison metrics
    """
    parameters = parameters or EdgeParameters()
    buffer, width, height = load_bgr_buffer(input_path)

    detector = CannyEdgeDetector(parameters)
    buffer, stages = detector.process_image(buffer, width, height, keep_stages=True)

    os.makedirs(output_dir, exist_ok=True)
    base_name = os.path.splitext(os.path.basename(input_path))[0]

    edges_path = os.path.join(output_dir, f"{base_name}_edges.png")
    save_bgr_buffer(buffer, width, height, edges_path)

    edge_image = buffer_to_array(buffer, width, height)
    magnitude = crop_workspace(stages.magnitude, stages.half_radius)

    results = {
        'input_file': input_path,
        'output_dir': output_dir,
        'width': width,
        'height': height,
        'parameters': parameters.to_dict(),
        'mask_size': stages.mask_size,
        'statistics': compute_edge_statistics(edge_image, magnitude),
        'comparison_metrics': {},
    }

    if reference_path:
        reference = load_edge_map(reference_path)
        results['reference_file'] = reference_path
        results['comparison_metrics'] = compare_edge_maps(edge_image, reference)

    if plot:
        import matplotlib.pyplot as plt
        from canny_edge.viz import plot_stages
        fig = plot_stages(stages, os.path.join(output_dir, f"{base_name}_stages.png"))
        plt.close(fig)

    with open(os.path.join(output_dir, f"{base_name}_metrics.json"), 'w') as f:
        json.dump(results, f, indent=2)

    return results

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Canny edge detection')

    parser.add_argument('input', help='Input image file')
    parser.add_argument('-o', '--output', required=True, help='Output directory')

    parser.add_argument('--sigma', type=float, default=DEFAULT_SIGMA,
                       help=f'Gaussian sigma (default: {DEFAULT_SIGMA})')
    parser.add_argument('--low-threshold', type=int, default=DEFAULT_LOW_THRESHOLD,
                       help=f'Lower hysteresis threshold 0-255 (default: {DEFAULT_LOW_THRESHOLD})')
    parser.add_argument('--high-threshold', type=int, default=DEFAULT_HIGH_THRESHOLD,
                       help=f'Upper hysteresis threshold 0-255 (default: {DEFAULT_HIGH_THRESHOLD})')
    parser.add_argument('--raw-kernel', action='store_true',
                       help='Use the Gaussian kernel without normalizing it to sum 1')

    parser.add_argument('--reference', help='Reference edge map to compare against')
    parser.add_argument('--plot', action='store_true',
                       help='Save a figure of the intermediate stages')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser

def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    if not os.path.isfile(args.input):
        parser.error("Input file not found")
    if args.reference and not os.path.isfile(args.reference):
        parser.error("Reference file not found")

    try:
        parameters = EdgeParameters(sigma=args.sigma,
                                    low_threshold=args.low_threshold,
                                    high_threshold=args.high_threshold,
                                    normalize_kernel=not args.raw_kernel)
    except CannyError as e:
        parser.error(str(e))

    print(f"Processing {args.input}...")
    with warnings.catch_warnings():
        # Already reported through logging
        warnings.simplefilter('ignore', ThresholdOrderWarning)
        results = process_single_image(args.input, args.output, parameters,
                                       reference_path=args.reference, plot=args.plot)
    stats = results['statistics']
    print(f"Edge pixels: {stats['edge_pixels']} / {stats['total_pixels']}")
    print(f"Processing complete. Results saved to {args.output}")
    return 0

if __name__ == "__main__":
    main()
