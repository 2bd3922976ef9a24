# -*- coding: utf-8 -*-
"""
Land-Use Density and Ecosystem-Service Accessibility Pipeline

This package aligns land-use and environmental-factor rasters onto a common
grid, derives an ecosystem-service accessibility surface, relates it to
residential and commercial land-use density through binned polynomial fits,
and trains logistic regression and gradient-boosted models that map
land-use probability from four spatial drivers.
"""

__version__ = '0.1.0'

from .config import DATA_DIR, OUTPUT_DIR, LAYER_FILES, REFERENCE_LAYER, DRIVER_LAYERS

from .data_loading import RasterLayer, load_raster, save_raster, load_study_layers

from .preprocessing import (
    align_to_reference,
    align_layers,
    null_mask,
    mask_layers,
    normalize,
    reclassify,
    reclassify_residential,
    reclassify_commercial,
    combine_indicators,
    presence,
    indicator_density,
    compute_es_accessibility,
    compute_attraction_map,
    build_feature_table,
    bin_samples,
)

from .curve_fitting import (
    PolynomialFit,
    fit_polynomial,
    fit_polynomials,
    select_best_fit,
    compare_fits,
)

from .training import (
    prepare_training_data,
    train_logistic_regression,
    train_gradient_boosting,
    train_models,
    evaluate,
    feature_importance,
    predict_surface,
    save_results,
)

__all__ = [
    'RasterLayer',
    'load_raster',
    'save_raster',
    'load_study_layers',
    'align_to_reference',
    'align_layers',
    'null_mask',
    'mask_layers',
    'normalize',
    'reclassify',
    'reclassify_residential',
    'reclassify_commercial',
    'combine_indicators',
    'presence',
    'indicator_density',
    'compute_es_accessibility',
    'compute_attraction_map',
    'build_feature_table',
    'bin_samples',
    'PolynomialFit',
    'fit_polynomial',
    'fit_polynomials',
    'select_best_fit',
    'compare_fits',
    'prepare_training_data',
    'train_logistic_regression',
    'train_gradient_boosting',
    'train_models',
    'evaluate',
    'feature_importance',
    'predict_surface',
    'save_results',
]
