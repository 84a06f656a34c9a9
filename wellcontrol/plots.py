"""
Plots of the fluid columns and of pressure over a schedule.

1. Well snapshot: string and annulus fluid columns side by side versus depth
2. Progress sweep: BHP/ECD and returns versus cumulative pumped volume
"""

from typing import Optional, Tuple

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.patches import Patch, Rectangle

from .geometry import Side, WellGeometry
from .stack import StackState


def plot_well_snapshot(
    stack: StackState,
    geometry: WellGeometry,
    ax: Optional[plt.Axes] = None,
    figsize: Tuple[float, float] = (5, 8),
    title: Optional[str] = None,
) -> plt.Figure:
    """
    Draw the annulus | string | annulus columns coloured by fluid.

    Parameters
    ----------
    stack : StackState
        Fluid columns
    geometry : WellGeometry
        Well geometry (for the depth range)
    ax : plt.Axes, optional
        Axes to plot on (creates new figure if None)
    figsize : tuple, optional
        Figure size
    title : str, optional
        Axes title

    Returns
    -------
    plt.Figure
        The figure object
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    # x layout: left annulus [0,1], string [1,2], right annulus [2,3]
    columns = {Side.ANNULUS: (0.0, 2.0), Side.STRING: (1.0,)}
    legend = {}
    for side, lefts in columns.items():
        for seg in stack.segments(side):
            for x0 in lefts:
                ax.add_patch(Rectangle(
                    (x0, seg.top_md), 1.0, seg.length,
                    facecolor=seg.color, edgecolor='black', linewidth=0.3,
                ))
            legend.setdefault(seg.name, seg.color)

    ax.axhline(geometry.bit_md, color='black', linestyle='--', linewidth=1.0)
    ax.annotate('Bit', (3.0, geometry.bit_md), xytext=(4, -2), textcoords='offset points', fontsize=9)

    depth = max(geometry.bit_md, geometry.annulus_bottom_md, 1.0)
    ax.set_xlim(0.0, 3.0)
    ax.set_ylim(depth, 0.0)
    ax.set_xticks([0.5, 1.5, 2.5])
    ax.set_xticklabels(['Annulus', 'String', 'Annulus'])
    ax.set_ylabel('Measured depth [m]')
    if title:
        ax.set_title(title)

    handles = [Patch(facecolor=c, edgecolor='black', label=name) for name, c in legend.items()]
    if handles:
        ax.legend(handles=handles, loc='lower center', bbox_to_anchor=(0.5, -0.15), ncol=min(len(handles), 3), fontsize=8)

    fig.tight_layout()
    return fig


def plot_progress_sweep(
    df: pd.DataFrame,
    ax: Optional[plt.Axes] = None,
    figsize: Tuple[float, float] = (9, 5),
) -> plt.Figure:
    """
    Plot ECD and BHP versus cumulative pumped volume.

    Parameters
    ----------
    df : pd.DataFrame
        Output of ``reporting.progress_sweep``
    ax : plt.Axes, optional
        Axes to plot on (creates new figure if None)
    figsize : tuple, optional
        Figure size

    Returns
    -------
    plt.Figure
        The figure object
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    ax.plot(df['cumulative_volume'], df['ecd'], 'b-', linewidth=2, label='ECD')
    ax.set_xlabel('Cumulative pumped volume [m³]')
    ax.set_ylabel('ECD [kg/m³]', color='b')
    ax.grid(True, alpha=0.3)

    ax2 = ax.twinx()
    ax2.plot(df['cumulative_volume'], df['bhp'] / 1e3, 'r--', linewidth=1.5, label='BHP')
    ax2.set_ylabel('BHP [kPa]', color='r')

    # stage boundaries
    for _, group in df.groupby('stage'):
        ax.axvline(group['cumulative_volume'].min(), color='gray', linestyle=':', alpha=0.6)

    lines = ax.get_lines()[:1] + ax2.get_lines()[:1]
    ax.legend(lines, [l.get_label() for l in lines], loc='upper left')

    fig.tight_layout()
    return fig
