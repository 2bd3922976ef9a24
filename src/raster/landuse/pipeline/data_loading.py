# -*- coding: utf-8 -*-
"""
Data Loading Functions

This module contains the raster layer container and the functions for
reading and writing the study rasters.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
import rasterio
from tqdm import tqdm

from .config import DATA_DIR, LAYER_FILES
from .utils import get_logger

logger = get_logger("data_loading")


@dataclass
class RasterLayer:
    """A single-band grid with its georeference. Missing cells are NaN."""
    name: str
    data: np.ndarray
    transform: Any
    crs: Any = None
    nodata: Optional[float] = None

    @property
    def shape(self):
        return self.data.shape

    @property
    def valid_mask(self):
        return np.isfinite(self.data)

    def derive(self, data, name=None):
        """
        Build a new layer on this layer's grid.

        Args:
            data: Array with the same shape as this layer
            name: Name of the new layer, defaults to this layer's name

        Returns:
            RasterLayer sharing transform and CRS with this layer
        """
        data = np.asarray(data, dtype=np.float64)
        if data.shape != self.data.shape:
            raise ValueError(
                f"Cannot derive '{name or self.name}' from '{self.name}': "
                f"shape {data.shape} does not match {self.data.shape}"
            )
        return RasterLayer(
            name=name or self.name,
            data=data,
            transform=self.transform,
            crs=self.crs,
            nodata=self.nodata,
        )


def load_raster(file_path, name=None, band=1):
    """
    Load a single raster band as a float grid.

    Args:
        file_path: Path to the raster file
        name: Layer name, or None to use the file stem
        band: Band index to read (1-based)

    Returns:
        RasterLayer with nodata cells converted to NaN
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Raster file not found: {file_path}")

    if name is None:
        name = os.path.splitext(os.path.basename(file_path))[0]

    with rasterio.open(file_path) as src:
        data = src.read(band).astype(np.float64)
        nodata = src.nodata
        transform = src.transform
        crs = src.crs

    if nodata is not None and np.isfinite(nodata):
        data[data == nodata] = np.nan
    data[~np.isfinite(data)] = np.nan

    logger.info(
        f"Loaded '{name}' from {file_path}: {data.shape[1]}x{data.shape[0]} cells, "
        f"{int(np.isnan(data).sum())} missing, CRS: {crs}"
    )

    return RasterLayer(name=name, data=data, transform=transform, crs=crs, nodata=nodata)


def save_raster(layer, file_path):
    """
    Write a layer to a single-band float32 GeoTIFF with NaN as nodata.

    Args:
        layer: RasterLayer to write
        file_path: Output path

    Returns:
        Path to saved file
    """
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    height, width = layer.shape
    with rasterio.open(
        file_path,
        'w',
        driver='GTiff',
        height=height,
        width=width,
        count=1,
        dtype='float32',
        crs=layer.crs,
        transform=layer.transform,
        nodata=np.nan,
    ) as dst:
        dst.write(layer.data.astype(np.float32), 1)

    logger.info(f"Saved '{layer.name}' to {file_path}")
    return file_path


def load_study_layers(data_dir=DATA_DIR, layer_files=None) -> Dict[str, RasterLayer]:
    """
    Load every configured study raster.

    Args:
        data_dir: Directory holding the rasters
        layer_files: Mapping of layer name to file name, defaults to LAYER_FILES

    Returns:
        Dictionary of layer name to RasterLayer
    """
    if layer_files is None:
        layer_files = LAYER_FILES

    missing = [
        f"{name} ({os.path.join(data_dir, filename)})"
        for name, filename in layer_files.items()
        if not os.path.exists(os.path.join(data_dir, filename))
    ]
    if missing:
        raise FileNotFoundError(f"Missing study rasters: {', '.join(missing)}")

    layers = {}
    for name, filename in tqdm(layer_files.items(), desc="Loading rasters", disable=None):
        layers[name] = load_raster(os.path.join(data_dir, filename), name=name)

    logger.info(f"Loaded {len(layers)} study layers from {data_dir}")
    return layers
