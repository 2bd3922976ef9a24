import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin

from raster.landuse.pipeline.data_loading import (
    RasterLayer, load_raster, save_raster, load_study_layers
)
from raster.landuse.pipeline.config import LAYER_FILES
from conftest import make_layer, CRS_UTM


def test_save_and_load_raster_preserves_values_and_grid(tmp_path):
    layer = make_layer([[1.5, np.nan], [3.0, 4.25]], name="es")
    path = save_raster(layer, str(tmp_path / "out" / "es.tif"))

    loaded = load_raster(path)
    assert loaded.name == "es"
    assert loaded.shape == (2, 2)
    assert loaded.transform == layer.transform
    assert loaded.crs == layer.crs
    np.testing.assert_allclose(loaded.data, layer.data, equal_nan=True)


def test_load_raster_converts_nodata_to_nan(tmp_path):
    path = str(tmp_path / "codes.tif")
    with rasterio.open(
        path, 'w', driver='GTiff', height=1, width=3, count=1, dtype='int16',
        crs=CRS_UTM, transform=from_origin(0, 0, 30, 30), nodata=-1,
    ) as dst:
        dst.write(np.array([[21, -1, 23]], dtype=np.int16), 1)

    layer = load_raster(path, name="land_use")
    assert layer.name == "land_use"
    assert layer.data.dtype == np.float64
    assert layer.nodata == -1
    np.testing.assert_array_equal(layer.valid_mask, [[True, False, True]])
    assert layer.data[0, 2] == 23


def test_load_raster_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_raster(str(tmp_path / "nope.tif"))


def test_load_study_layers_reads_every_layer(study_dir):
    layers = load_study_layers(str(study_dir))
    assert set(layers) == set(LAYER_FILES)
    assert layers["land_use"].shape == (40, 40)
    assert layers["road_density"].shape == (20, 20)
    assert np.isnan(layers["land_use"].data[:3, :3]).all()


def test_load_study_layers_names_missing_layers(study_dir):
    (study_dir / "road_density.tif").unlink()
    with pytest.raises(FileNotFoundError, match="road_density"):
        load_study_layers(str(study_dir))


def test_derive_inherits_grid_and_checks_shape():
    base = make_layer(np.zeros((2, 3)), name="base")
    child = base.derive(np.ones((2, 3)), name="child")
    assert isinstance(child, RasterLayer)
    assert child.name == "child"
    assert child.transform == base.transform
    assert child.crs == base.crs

    with pytest.raises(ValueError, match="does not match"):
        base.derive(np.ones((3, 2)))
