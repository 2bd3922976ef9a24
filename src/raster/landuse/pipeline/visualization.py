# -*- coding: utf-8 -*-
"""
Visualization Functions for Land-Use Analysis

This module contains functions for plotting the binned ES accessibility /
land-use density trends, raster maps and model diagnostics.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
import seaborn as sns
from matplotlib.colors import BoundaryNorm, ListedColormap
from mpl_toolkits.axes_grid1 import make_axes_locatable
from rasterio.plot import plotting_extent

from .config import (
    CLASS_COLORS, CURVE_COLORS, DEFAULT_DPI, MODEL_LABELS, PROBABILITY_CMAP,
    RASTER_CMAP, VIZ_FIGSIZE
)


def _save(fig, save_path):
    if save_path:
        fig.savefig(save_path, dpi=DEFAULT_DPI, bbox_inches='tight')


def _extent(layer):
    try:
        return plotting_extent(layer.data, layer.transform)
    except (AttributeError, TypeError, ValueError):
        return None


def plot_binned_fit(binned, fits, best_fit=None, x_label='ES accessibility',
                    y_label='Land-use density', fig_size=VIZ_FIGSIZE,
                    title='Land-Use Density vs. ES Accessibility', save_path=None):
    """
    Scatter the bin means with every fitted polynomial curve.

    Args:
        binned: DataFrame from bin_samples (x_mean, y_mean, count)
        fits: List of PolynomialFit
        best_fit: Fit to emphasise, or None
        x_label: Label for the x axis
        y_label: Label for the y axis
        fig_size: Size of the figure
        title: Title for the plot
        save_path: Path to save the figure, or None to display

    Returns:
        Figure and axes objects
    """
    fig, ax = plt.subplots(figsize=fig_size)

    sizes = 20 + 180 * binned['count'] / max(binned['count'].max(), 1)
    ax.scatter(binned['x_mean'], binned['y_mean'], s=sizes, color='#404040',
               alpha=0.7, edgecolor='white', label='Bin means', zorder=3)

    xs = np.linspace(binned['x_mean'].min(), binned['x_mean'].max(), 200)
    for i, fit in enumerate(fits):
        is_best = best_fit is not None and fit.degree == best_fit.degree
        ax.plot(
            xs, fit.predict(xs),
            color=CURVE_COLORS[i % len(CURVE_COLORS)],
            linewidth=3 if is_best else 1.5,
            linestyle='-' if is_best else '--',
            label=f"Degree {fit.degree} (R²={fit.r_squared:.3f}, AIC={fit.aic:.1f})"
                  + (" *" if is_best else ""),
        )

    ax.set_xlabel(x_label)
    ax.set_ylabel(y_label)
    ax.set_title(title, fontsize=16)
    ax.legend()
    ax.grid(alpha=0.3)

    _save(fig, save_path)
    return fig, ax


def plot_raster(layer, title=None, cmap=RASTER_CMAP, vmin=None, vmax=None,
                colorbar_label=None, fig_size=VIZ_FIGSIZE, save_path=None):
    """
    Plot a continuous raster layer with a colorbar.

    Args:
        layer: RasterLayer to draw
        title: Title for the plot, defaults to the layer name
        cmap: Colormap to use
        vmin: Lower color limit
        vmax: Upper color limit
        colorbar_label: Label for the colorbar
        fig_size: Size of the figure
        save_path: Path to save the figure, or None to display

    Returns:
        Figure and axes objects
    """
    fig, ax = plt.subplots(figsize=fig_size)

    image = ax.imshow(np.ma.masked_invalid(layer.data), cmap=cmap, vmin=vmin, vmax=vmax,
                      extent=_extent(layer))

    divider = make_axes_locatable(ax)
    cax = divider.append_axes("right", size="5%", pad=0.1)
    cbar = plt.colorbar(image, cax=cax)
    if colorbar_label:
        cbar.set_label(colorbar_label)

    ax.set_title(title or layer.name.replace('_', ' ').title(), fontsize=16)

    _save(fig, save_path)
    return fig, ax


def plot_classified_raster(layer, classes, colors=None, title=None,
                           fig_size=VIZ_FIGSIZE, save_path=None):
    """
    Plot a categorical raster with a legend.

    Args:
        layer: RasterLayer of class codes
        classes: Dictionary of class code to class name
        colors: Dictionary of class name to color, defaults to CLASS_COLORS
        title: Title for the plot
        fig_size: Size of the figure
        save_path: Path to save the figure, or None to display

    Returns:
        Figure and axes objects
    """
    colors = colors or CLASS_COLORS
    codes = sorted(classes)
    palette = [colors.get(classes[c], '#999999') for c in codes]

    # One bin per code, edges halfway between neighbouring codes
    edges = [codes[0] - 0.5]
    edges += [(a + b) / 2 for a, b in zip(codes[:-1], codes[1:])]
    edges += [codes[-1] + 0.5]

    cmap = ListedColormap(palette)
    cmap.set_bad('white')
    norm = BoundaryNorm(edges, cmap.N)

    fig, ax = plt.subplots(figsize=fig_size)
    ax.imshow(np.ma.masked_invalid(layer.data), cmap=cmap, norm=norm,
              interpolation='nearest', extent=_extent(layer))

    handles = [mpatches.Patch(color=palette[i], label=classes[c]) for i, c in enumerate(codes)]
    ax.legend(handles=handles, loc='lower right', framealpha=0.9)
    ax.set_title(title or layer.name.replace('_', ' ').title(), fontsize=16)

    _save(fig, save_path)
    return fig, ax


def plot_probability_map(layer, title=None, fig_size=VIZ_FIGSIZE, save_path=None):
    """Plot a land-use probability surface on a fixed [0, 1] scale."""
    return plot_raster(layer, title=title, cmap=PROBABILITY_CMAP, vmin=0.0, vmax=1.0,
                       colorbar_label='Probability', fig_size=fig_size, save_path=save_path)


def plot_confusion_matrix(conf_matrix, class_names=None, fig_size=(8, 6),
                          title='Confusion Matrix', save_path=None):
    """
    Visualize a row-normalized confusion matrix.

    Args:
        conf_matrix: Confusion matrix as array
        class_names: List of class names
        fig_size: Size of the figure
        title: Title for the plot
        save_path: Path to save the figure, or None to display

    Returns:
        Figure and axes objects
    """
    fig, ax = plt.subplots(figsize=fig_size)

    conf_matrix = np.asarray(conf_matrix, dtype=float)
    row_sums = conf_matrix.sum(axis=1, keepdims=True)
    conf_matrix_norm = np.divide(conf_matrix, row_sums, out=np.zeros_like(conf_matrix),
                                 where=row_sums > 0)

    sns.heatmap(
        conf_matrix_norm,
        annot=True,
        fmt='.2f',
        cmap='Blues',
        vmin=0.0,
        vmax=1.0,
        xticklabels=class_names if class_names is not None else 'auto',
        yticklabels=class_names if class_names is not None else 'auto',
        ax=ax
    )

    ax.set_xlabel('Predicted')
    ax.set_ylabel('True')
    ax.set_title(title, fontsize=16)

    _save(fig, save_path)
    return fig, ax


def plot_feature_importance(importance_df, title='Driver Importance',
                            fig_size=(8, 5), save_path=None):
    """Horizontal bar chart of driver importances."""
    fig, ax = plt.subplots(figsize=fig_size)

    sns.barplot(data=importance_df, x='importance', y='feature', color='#4c72b0', ax=ax)
    ax.set_xlabel('Relative importance')
    ax.set_ylabel('')
    ax.set_title(title, fontsize=16)

    _save(fig, save_path)
    return fig, ax


def plot_roc_curves(evaluations, fig_size=(7, 7), title='ROC Curves', save_path=None):
    """
    One ROC curve per evaluated model.

    Args:
        evaluations: Dictionary of model key to evaluate() output
        fig_size: Size of the figure
        title: Title for the plot
        save_path: Path to save the figure, or None to display

    Returns:
        Figure and axes objects
    """
    fig, ax = plt.subplots(figsize=fig_size)

    for i, (key, result) in enumerate(evaluations.items()):
        curve = result['roc_curve']
        if len(curve['fpr']) == 0:
            continue
        ax.plot(curve['fpr'], curve['tpr'], color=CURVE_COLORS[i % len(CURVE_COLORS)],
                label=f"{MODEL_LABELS.get(key, key)} (AUC={result['roc_auc']:.3f})")

    ax.plot([0, 1], [0, 1], color='gray', linestyle=':', label='Chance')
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.set_xlabel('False positive rate')
    ax.set_ylabel('True positive rate')
    ax.set_title(title, fontsize=16)
    ax.legend(loc='lower right')

    _save(fig, save_path)
    return fig, ax
