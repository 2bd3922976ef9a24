import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest
import rasterio
from rasterio.crs import CRS
from rasterio.transform import from_origin

from raster.landuse.pipeline.data_loading import RasterLayer, save_raster

CRS_UTM = CRS.from_epsg(32617)
ORIGIN_X = 500000.0
ORIGIN_Y = 4000000.0


def make_layer(data, name="layer", cell_size=30.0, crs=CRS_UTM):
    data = np.asarray(data, dtype=np.float64)
    if data.ndim == 1:
        data = data.reshape(1, -1)
    return RasterLayer(
        name=name,
        data=data,
        transform=from_origin(ORIGIN_X, ORIGIN_Y, cell_size, cell_size),
        crs=crs,
    )


@pytest.fixture
def layer_factory():
    return make_layer


def _write_land_use(path, codes, cell_size):
    height, width = codes.shape
    data = np.where(np.isnan(codes), -9999, codes).astype(np.float32)
    with rasterio.open(
        path, 'w', driver='GTiff', height=height, width=width, count=1,
        dtype='float32', crs=CRS_UTM,
        transform=from_origin(ORIGIN_X, ORIGIN_Y, cell_size, cell_size),
        nodata=-9999,
    ) as dst:
        dst.write(data, 1)


@pytest.fixture
def study_dir(tmp_path):
    """Six study rasters: a 40x40 land-use grid at 30 m, drivers at 60 m."""
    rng = np.random.default_rng(7)
    size = 40
    rows, cols = np.mgrid[0:size, 0:size] / (size - 1)

    # Development is more likely towards the bottom-right corner
    score = 0.5 * rows + 0.5 * cols + rng.normal(0, 0.08, (size, size))
    codes = np.full((size, size), 41.0)
    codes[score > 0.45] = 21
    codes[score > 0.6] = 22
    codes[score > 0.75] = 23
    codes[rng.random((size, size)) < 0.05] = 11
    codes[:3, :3] = np.nan

    data_dir = tmp_path / "data"
    data_dir.mkdir()
    _write_land_use(str(data_dir / "land_use.tif"), codes, 30.0)

    half = size // 2
    crows, ccols = np.mgrid[0:half, 0:half] / (half - 1)
    coarse = {
        "road_density": crows * 10.0,
        "ecosystem_service": ccols * 5.0 + 1.0,
        "population_attraction": crows + ccols + rng.normal(0, 0.05, (half, half)),
        "employment_attraction": crows * ccols,
        "transportation_attraction": rng.random((half, half)),
    }
    for name, values in coarse.items():
        save_raster(make_layer(values, name=name, cell_size=60.0), str(data_dir / f"{name}.tif"))

    return data_dir
