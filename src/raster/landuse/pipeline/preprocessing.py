# -*- coding: utf-8 -*-
"""
Preprocessing Functions for Raster Layers

This module contains the functions that bring heterogeneous rasters onto a
common grid and turn them into a regression-ready table: resampling,
masking to the reference coverage, normalization, land-use
reclassification, derived surfaces and binning.
"""

import numpy as np
import pandas as pd
from rasterio.warp import reproject
from rasterio.enums import Resampling
from scipy import ndimage

from .config import (
    ATTRACTION_BETA, COMMERCIAL_RULES, DEFAULT_RESAMPLING, LAYER_RESAMPLING,
    N_BINS, RESIDENTIAL_RULES
)
from .data_loading import RasterLayer
from .utils import get_logger

logger = get_logger("preprocessing")


def _same_grid(layer, reference):
    return (
        layer.shape == reference.shape
        and layer.transform == reference.transform
        and layer.crs == reference.crs
    )


def align_to_reference(layer, reference, resampling=DEFAULT_RESAMPLING):
    """
    Resample a layer onto the grid of a reference layer.

    Args:
        layer: RasterLayer to resample
        reference: RasterLayer defining the target transform, CRS and shape
        resampling: Name of a rasterio Resampling method ('nearest',
            'bilinear', 'average', ...)

    Returns:
        RasterLayer on the reference grid, missing cells as NaN
    """
    if _same_grid(layer, reference):
        return reference.derive(layer.data.copy(), name=layer.name)

    try:
        method = Resampling[resampling]
    except KeyError:
        raise ValueError(f"Unknown resampling method: {resampling}")

    src_crs = layer.crs or reference.crs
    dst_crs = reference.crs or layer.crs
    if src_crs is None:
        raise ValueError(
            f"Cannot align '{layer.name}': neither it nor '{reference.name}' has a CRS"
        )

    destination = np.full(reference.shape, np.nan, dtype=np.float64)
    reproject(
        source=layer.data.astype(np.float64),
        destination=destination,
        src_transform=layer.transform,
        src_crs=src_crs,
        src_nodata=np.nan,
        dst_transform=reference.transform,
        dst_crs=dst_crs,
        dst_nodata=np.nan,
        resampling=method,
    )

    logger.info(
        f"Resampled '{layer.name}' {layer.shape} -> {reference.shape} ({resampling})"
    )
    return reference.derive(destination, name=layer.name)


def align_layers(layers, reference_name, resampling=None):
    """
    Align every layer to the grid of one of them.

    Args:
        layers: Dictionary of layer name to RasterLayer
        reference_name: Name of the layer whose grid is used
        resampling: Optional mapping of layer name to resampling method;
            falls back to LAYER_RESAMPLING, then DEFAULT_RESAMPLING

    Returns:
        Dictionary of aligned layers
    """
    if reference_name not in layers:
        raise ValueError(f"Reference layer '{reference_name}' not found in {sorted(layers)}")

    methods = dict(LAYER_RESAMPLING)
    if resampling:
        methods.update(resampling)

    reference = layers[reference_name]
    aligned = {}
    for name, layer in layers.items():
        aligned[name] = align_to_reference(
            layer, reference, methods.get(name, DEFAULT_RESAMPLING)
        )
    return aligned


def null_mask(target, reference):
    """
    Set target cells to missing wherever the reference is missing.

    Args:
        target: RasterLayer to mask
        reference: RasterLayer on the same grid

    Returns:
        Masked copy of target
    """
    if target.shape != reference.shape:
        raise ValueError(
            f"Cannot mask '{target.name}' {target.shape} with "
            f"'{reference.name}' {reference.shape}: grids are not aligned"
        )
    data = target.data.copy()
    data[~reference.valid_mask] = np.nan
    return target.derive(data)


def mask_layers(layers, reference):
    """Null-mask every layer in a dictionary to the reference coverage."""
    return {name: null_mask(layer, reference) for name, layer in layers.items()}


def normalize(layer):
    """
    Rescale finite values to [0, 1] using the layer's own min and max.

    A constant layer maps to 0; missing and infinite cells become NaN.
    """
    data = layer.data.astype(np.float64)
    finite = np.isfinite(data)
    data[~finite] = np.nan
    if not finite.any():
        logger.warning(f"Layer '{layer.name}' has no finite cells. Normalization skipped.")
        return layer.derive(data)

    vmin = data[finite].min()
    vmax = data[finite].max()
    if vmax - vmin > 0:
        data[finite] = (data[finite] - vmin) / (vmax - vmin)
    else:
        logger.warning(f"Layer '{layer.name}' is constant ({vmin}). Normalized to 0.")
        data[finite] = 0.0
    return layer.derive(data)


def reclassify(layer, rules, default=0.0):
    """
    Map raw codes to new values through inclusive range rules.

    Args:
        layer: RasterLayer or array of codes
        rules: Iterable of (low, high, value); a cell with low <= code <= high
            becomes value. Later rules win where ranges overlap.
        default: Value for finite cells matching no rule

    Returns:
        Reclassified RasterLayer, or array if an array was given
    """
    codes = layer.data if isinstance(layer, RasterLayer) else np.asarray(layer, dtype=np.float64)
    finite = np.isfinite(codes)

    out = np.full(codes.shape, np.nan, dtype=np.float64)
    out[finite] = default
    for low, high, value in rules:
        selected = finite & (codes >= low) & (codes <= high)
        out[selected] = value

    if isinstance(layer, RasterLayer):
        return layer.derive(out)
    return out


def reclassify_residential(layer):
    """Residential indicator: codes 21-22 -> 21, other codes -> 0."""
    result = reclassify(layer, RESIDENTIAL_RULES)
    if isinstance(result, RasterLayer):
        result.name = "residential"
    return result


def reclassify_commercial(layer):
    """Commercial indicator: code 23 -> 23, other codes -> 0."""
    result = reclassify(layer, COMMERCIAL_RULES)
    if isinstance(result, RasterLayer):
        result.name = "commercial"
    return result


def combine_indicators(residential, commercial, name="developed"):
    """Binary layer that is 1 where either indicator is set."""
    if residential.shape != commercial.shape:
        raise ValueError("Residential and commercial indicators are not aligned")
    valid = residential.valid_mask & commercial.valid_mask
    data = np.full(residential.shape, np.nan)
    data[valid] = ((residential.data[valid] != 0) | (commercial.data[valid] != 0)).astype(float)
    return residential.derive(data, name=name)


def presence(indicator, name=None):
    """Binary layer: 1 where the indicator is set, 0 elsewhere, NaN kept."""
    data = np.where(indicator.valid_mask, (indicator.data != 0).astype(float), np.nan)
    return indicator.derive(data, name=name or f"{indicator.name}_presence")


def indicator_density(indicator, reference=None, window=1, name=None):
    """
    Share of cells carrying an indicator.

    Presence (indicator != 0) is averaged onto the reference grid when the
    grids differ, then smoothed with a square focal window that ignores
    missing cells.

    Args:
        indicator: Reclassified RasterLayer
        reference: Optional RasterLayer defining the output grid
        window: Focal window size in cells (1 disables smoothing)
        name: Name of the density layer

    Returns:
        RasterLayer with density in [0, 1]
    """
    name = name or f"{indicator.name}_density"
    density = presence(indicator, name=name)

    if reference is not None:
        density = align_to_reference(density, reference, "average")
        density = null_mask(density, reference)

    if window and window > 1:
        valid = density.valid_mask
        filled = np.where(valid, density.data, 0.0)
        total = ndimage.uniform_filter(filled, size=window, mode='constant', cval=0.0)
        count = ndimage.uniform_filter(valid.astype(float), size=window, mode='constant', cval=0.0)
        smoothed = np.full(density.shape, np.nan)
        ok = valid & (count > 0)
        smoothed[ok] = total[ok] / count[ok]
        density = density.derive(np.clip(smoothed, 0.0, 1.0))

    return density


def compute_es_accessibility(es, road_density, name="es_accessibility"):
    """
    Ecosystem-service accessibility surface.

    The normalized ES index is weighted by normalized road density, so
    services far from road infrastructure score low. The product is
    normalized again to [0, 1].

    Args:
        es: Ecosystem-service index RasterLayer
        road_density: Road density RasterLayer on the same grid
        name: Name of the output layer

    Returns:
        RasterLayer of ES accessibility
    """
    if es.shape != road_density.shape:
        raise ValueError(
            f"ES index {es.shape} and road density {road_density.shape} are not aligned"
        )
    es_norm = normalize(es)
    roads_norm = normalize(road_density)
    product = es_norm.data * roads_norm.data
    accessibility = normalize(es.derive(product, name=name))

    valid = int(accessibility.valid_mask.sum())
    logger.info(f"Derived ES accessibility over {valid} cells")
    return accessibility


def compute_attraction_map(factor, travel_time, beta=ATTRACTION_BETA, name=None):
    """
    Gravity-like attraction of a factor discounted by travel time.

    attraction = factor / travel_time ** beta, normalized to [0, 1].
    Non-positive travel times are treated as missing.
    """
    if factor.shape != travel_time.shape:
        raise ValueError(
            f"Factor {factor.shape} and travel time {travel_time.shape} are not aligned"
        )
    time = travel_time.data.copy()
    time[~(time > 0)] = np.nan
    with np.errstate(invalid='ignore', divide='ignore'):
        attraction = factor.data / np.power(time, beta)
    return normalize(factor.derive(attraction, name=name or f"{factor.name}_attraction"))


def build_feature_table(layers, columns=None):
    """
    Flatten aligned layers into a row-aligned table.

    Args:
        layers: Dictionary of layer name to RasterLayer on the same grid
        columns: Layer names to include, defaults to all

    Returns:
        DataFrame with a 'cell_index' column (flat index into the grid) and
        one column per layer; rows with any missing value are dropped
    """
    columns = list(columns) if columns is not None else list(layers)
    missing = [c for c in columns if c not in layers]
    if missing:
        raise ValueError(f"Layers not available for table: {missing}")

    shapes = {layers[c].shape for c in columns}
    if len(shapes) != 1:
        raise ValueError(f"Layers are not aligned: {sorted(shapes)}")

    table = pd.DataFrame({c: layers[c].data.ravel() for c in columns})
    table.insert(0, 'cell_index', np.arange(len(table)))

    total = len(table)
    table = table.dropna().reset_index(drop=True)
    logger.info(f"Feature table: {len(table)} of {total} cells kept ({total - len(table)} with missing values)")
    return table


def bin_samples(df, x, y, n_bins=N_BINS):
    """
    Average the dependent variable over groups of sorted samples.

    Rows where x is zero are collapsed into a single group. The remaining
    rows are sorted by x and split into n_bins contiguous groups whose sizes
    differ by at most one.

    Args:
        df: DataFrame with the samples
        x: Independent variable column
        y: Dependent variable column
        n_bins: Number of groups for the non-zero samples

    Returns:
        DataFrame with columns group, x_mean, y_mean, count, zero_group,
        ordered by non-decreasing x_mean
    """
    if n_bins < 1:
        raise ValueError(f"n_bins must be positive, got {n_bins}")

    data = df[[x, y]].dropna().sort_values(x, kind='mergesort')
    zero = data[data[x] == 0]
    nonzero = data[data[x] != 0]

    if len(nonzero) < n_bins:
        raise ValueError(
            f"Cannot split {len(nonzero)} non-zero samples of '{x}' into {n_bins} groups"
        )

    groups = []
    if len(zero):
        groups.append({
            'x_mean': 0.0,
            'y_mean': float(zero[y].mean()),
            'count': len(zero),
            'zero_group': True,
        })

    for positions in np.array_split(np.arange(len(nonzero)), n_bins):
        part = nonzero.iloc[positions]
        groups.append({
            'x_mean': float(part[x].mean()),
            'y_mean': float(part[y].mean()),
            'count': len(part),
            'zero_group': False,
        })

    binned = pd.DataFrame(groups).sort_values('x_mean', kind='mergesort').reset_index(drop=True)
    binned.insert(0, 'group', np.arange(len(binned)))

    logger.info(
        f"Binned {len(data)} samples of '{y}' by '{x}' into {len(binned)} groups "
        f"({len(zero)} zero-valued samples collapsed)"
    )
    return binned
