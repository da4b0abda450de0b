"""
Visualization of intermediate pipeline grids.
"""
import numpy as np
from typing import Optional
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from canny_edge.detector import PipelineStages
from canny_edge.processing import crop_workspace

STAGE_TITLES = (
    ('luminance', 'Luminance'),
    ('smoothed', 'Smoothed'),
    ('magnitude', 'Gradient magnitude'),
    ('direction', 'Direction (0/45/90/135)'),
    ('suppressed', 'Non-max suppressed'),
    ('edges', 'Edges'),
)

def stage_images(stages: PipelineStages) -> dict:
    """Return each stage cropped to the original image size."""
    images = {'luminance': stages.luminance}
    for name, _ in STAGE_TITLES[1:]:
        images[name] = crop_workspace(getattr(stages, name), stages.half_radius)
    return images

def plot_stages(stages: PipelineStages, output_path: Optional[str] = None) -> plt.Figure:
    """
    Create a matplotlib figure with one panel per pipeline stage.

    Args:
        stages: Intermediate grids from CannyEdgeDetector.process_image
        output_path: Save the figure here when given

    Returns:
        Matplotlib figure
    """
    images = stage_images(stages)

    fig, axes = plt.subplots(2, 3, figsize=(15, 10))
    axes = axes.ravel()

    for ax, (name, title) in zip(axes, STAGE_TITLES):
        img = images[name]
        if name == 'direction':
            ax.imshow(img, cmap='twilight', vmin=0, vmax=180)
        else:
            ax.imshow(img, cmap='gray', vmin=0, vmax=max(255.0, float(np.max(img))))
        ax.set_title(title)
        ax.axis('off')

    fig.suptitle(f"mask size {stages.mask_size}")
    plt.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=100)
    return fig
