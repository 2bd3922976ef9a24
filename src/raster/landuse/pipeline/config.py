# -*- coding: utf-8 -*-
"""
Configuration Settings

This module contains the paths, layer names and analysis parameters used by
the land-use / ecosystem-service accessibility pipeline.
"""

from datetime import datetime

# Input rasters are read from a fixed path relative to the working directory
DATA_DIR = "data"
OUTPUT_DIR = "outputs"

# Raster file names inside DATA_DIR
LAYER_FILES = {
    "land_use": "land_use.tif",
    "road_density": "road_density.tif",
    "ecosystem_service": "ecosystem_service.tif",
    "population_attraction": "population_attraction.tif",
    "employment_attraction": "employment_attraction.tif",
    "transportation_attraction": "transportation_attraction.tif",
}

# Every layer is resampled onto this grid and masked to its coverage
REFERENCE_LAYER = "land_use"

# Resampling per layer when aligning to the reference grid
LAYER_RESAMPLING = {
    "land_use": "nearest",
    "road_density": "bilinear",
    "ecosystem_service": "bilinear",
    "population_attraction": "bilinear",
    "employment_attraction": "bilinear",
    "transportation_attraction": "bilinear",
}
DEFAULT_RESAMPLING = "bilinear"

# Land-use reclassification rules: inclusive (low, high, value)
# NLCD developed classes: 21/22 open space and low intensity, 23 medium intensity
RESIDENTIAL_RULES = [(21, 22, 21)]
COMMERCIAL_RULES = [(23, 23, 23)]

LAND_USE_CLASSES = {
    0: "other",
    21: "residential",
    23: "commercial",
}

TARGET_CHOICES = ["residential", "commercial", "developed"]
DEFAULT_TARGET = "residential"

# Spatial drivers used by the predictive models
DRIVER_LAYERS = [
    "es_accessibility",
    "population_attraction",
    "employment_attraction",
    "transportation_attraction",
]

# Focal window (cells) used when turning land-use indicators into density
DENSITY_WINDOW = 3

# Binning and curve fitting
N_BINS = 20
POLY_DEGREES = (1, 2, 3)
INFORMATION_CRITERION = "aic"

# Gravity decay exponent for attraction maps
ATTRACTION_BETA = 2.0

# Model settings
RANDOM_SEED = 42
TEST_SIZE = 0.3

LOGISTIC_PARAMS = {
    "max_iter": 1000,
    "C": 1.0,
}

GBT_PARAMS = {
    "n_estimators": 100,
    "learning_rate": 0.1,
    "max_depth": 3,
    "subsample": 1.0,
}

MODEL_LABELS = {
    "logistic_regression": "Logistic Regression",
    "gradient_boosting": "Gradient Boosted Trees",
}

# Visualization settings
VIZ_FIGSIZE = (10, 8)
DEFAULT_DPI = 300
RASTER_CMAP = "viridis"
PROBABILITY_CMAP = "RdYlGn_r"
CLASS_COLORS = {
    "other": "#d9d9d9",
    "residential": "#f4a582",
    "commercial": "#b2182b",
}
CURVE_COLORS = ["#1b9e77", "#d95f02", "#7570b3"]

# Logging configuration
LOGGER_NAME = "landuse_analysis"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = "INFO"


def get_timestamp():
    """Get a timestamp in the standard format."""
    return datetime.now().strftime('%Y%m%d_%H%M%S')


def get_output_filename(prefix, extension):
    """Generate a file name with timestamp."""
    return f"{prefix}_{get_timestamp()}.{extension}"
