# -*- coding: utf-8 -*-
"""
Main Land-Use Analysis Pipeline

This script runs the complete analysis: raster loading and alignment,
land-use reclassification, ES accessibility derivation, binned curve
fitting, land-use probability models, plots and reports.
"""

import os
import argparse
import time

import numpy as np
import matplotlib.pyplot as plt

from .config import (
    DATA_DIR, OUTPUT_DIR, REFERENCE_LAYER, N_BINS, POLY_DEGREES,
    INFORMATION_CRITERION, TARGET_CHOICES, DEFAULT_TARGET, TEST_SIZE,
    RANDOM_SEED, DRIVER_LAYERS, DENSITY_WINDOW, LAND_USE_CLASSES, MODEL_LABELS,
    LOG_LEVEL, get_timestamp, get_output_filename
)
from .data_loading import load_study_layers, save_raster
from .preprocessing import (
    align_layers, mask_layers, normalize, reclassify_residential,
    reclassify_commercial, combine_indicators, presence, indicator_density,
    compute_es_accessibility, build_feature_table, bin_samples
)
from .curve_fitting import fit_polynomials, select_best_fit, compare_fits
from .training import (
    prepare_training_data, train_models, evaluate, feature_importance,
    predict_surface, save_results
)
from .visualization import (
    plot_binned_fit, plot_raster, plot_classified_raster, plot_probability_map,
    plot_confusion_matrix, plot_feature_importance, plot_roc_curves
)
from .reporting import generate_analysis_report
from .utils import setup_logging, get_logger, save_results_summary, convert_time_format

logger = get_logger("main")


def output_directories(output_dir):
    """Results, visualization, model and report directories under output_dir."""
    return {
        'results': os.path.join(output_dir, "results"),
        'visualizations': os.path.join(output_dir, "visualizations"),
        'models': os.path.join(output_dir, "models"),
        'reports': os.path.join(output_dir, "reports"),
    }


def ensure_directories(output_dir):
    """Make sure every output directory exists."""
    directories = output_directories(output_dir)
    for directory in directories.values():
        os.makedirs(directory, exist_ok=True)
    return directories


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Land-use density vs. ecosystem-service accessibility analysis'
    )

    group = parser.add_argument_group('Data')
    group.add_argument('--data_dir', type=str, default=DATA_DIR,
                       help=f'Directory with the input rasters (default: {DATA_DIR})')
    group.add_argument('--reference_layer', type=str, default=REFERENCE_LAYER,
                       help='Layer whose grid and coverage all others follow')

    group = parser.add_argument_group('Analysis')
    group.add_argument('--n_bins', type=int, default=N_BINS,
                       help='Number of groups for the non-zero ES accessibility samples')
    group.add_argument('--degrees', type=int, nargs='+', default=list(POLY_DEGREES),
                       help='Polynomial degrees to fit')
    group.add_argument('--criterion', type=str, default=INFORMATION_CRITERION,
                       choices=['aic', 'bic'], help='Information criterion for model comparison')
    group.add_argument('--density_window', type=int, default=DENSITY_WINDOW,
                       help='Focal window (cells) for land-use density')
    group.add_argument('--target', type=str, default=DEFAULT_TARGET, choices=TARGET_CHOICES,
                       help='Land use predicted by the probability models')

    group = parser.add_argument_group('Training')
    group.add_argument('--test_size', type=float, default=TEST_SIZE,
                       help='Fraction of cells held out for evaluation')
    group.add_argument('--random_seed', type=int, default=RANDOM_SEED,
                       help='Random seed for reproducibility')

    group = parser.add_argument_group('Output')
    group.add_argument('--output_dir', type=str, default=OUTPUT_DIR, help='Output directory')
    group.add_argument('--save_models', action='store_true',
                       help='Save fitted models, metrics and probability rasters')
    group.add_argument('--save_visualizations', action='store_true',
                       help='Generate and save plots')
    group.add_argument('--log_file', type=str, default=None, help='Optional log file')
    group.add_argument('--log_level', type=str, default=LOG_LEVEL, help='Logging level')

    return parser.parse_args(argv)


def _save_figure(result, path, saved):
    fig, _ = result
    saved.append(path)
    plt.close(fig)


def run_analysis(data_dir=DATA_DIR, output_dir=OUTPUT_DIR, reference_layer=REFERENCE_LAYER,
                 n_bins=N_BINS, degrees=POLY_DEGREES, criterion=INFORMATION_CRITERION,
                 density_window=DENSITY_WINDOW, target=DEFAULT_TARGET, test_size=TEST_SIZE,
                 random_seed=RANDOM_SEED, save_models=False, save_visualizations=False):
    """
    Run the analysis end to end.

    Returns:
        Dictionary with layers, binned tables, fits, models, evaluations,
        probability surfaces and the paths of everything written
    """
    if target not in TARGET_CHOICES:
        raise ValueError(f"Unknown target '{target}', expected one of {TARGET_CHOICES}")

    start_time = time.time()
    timestamp = get_timestamp()
    directories = ensure_directories(output_dir)

    # 1. Load and align
    logger.info("Loading study rasters...")
    layers = load_study_layers(data_dir)

    logger.info(f"Aligning layers to '{reference_layer}' grid...")
    aligned = align_layers(layers, reference_layer)
    reference = aligned[reference_layer]
    masked = mask_layers(aligned, reference)

    # 2. Land use
    logger.info("Reclassifying land use...")
    residential = reclassify_residential(masked['land_use'])
    commercial = reclassify_commercial(masked['land_use'])
    developed = combine_indicators(residential, commercial)
    land_use_classes = residential.derive(
        np.where(commercial.data != 0, commercial.data, residential.data), name='land_use_classes'
    )
    densities = {
        'residential_density': indicator_density(residential, window=density_window,
                                                 name='residential_density'),
        'commercial_density': indicator_density(commercial, window=density_window,
                                                name='commercial_density'),
    }

    # 3. Drivers
    logger.info("Deriving ES accessibility and driver layers...")
    es_accessibility = compute_es_accessibility(masked['ecosystem_service'], masked['road_density'])
    drivers = {'es_accessibility': es_accessibility}
    for name in DRIVER_LAYERS:
        if name != 'es_accessibility':
            drivers[name] = normalize(masked[name])

    # 4. Curve fitting
    binned_tables = {}
    fit_results = {}
    fit_comparisons = {}
    for name, density in densities.items():
        logger.info(f"Fitting ES accessibility vs. {name}...")
        table = build_feature_table({'es_accessibility': es_accessibility, name: density})
        binned = bin_samples(table, 'es_accessibility', name, n_bins=n_bins)
        fits = fit_polynomials(binned['x_mean'], binned['y_mean'], degrees)
        best = select_best_fit(fits, criterion)
        binned_tables[name] = binned
        fit_results[name] = {'fits': fits, 'best': best}
        fit_comparisons[name] = {
            'table': compare_fits(fits, criterion),
            'best_degree': best.degree,
            'criterion': criterion,
        }

    # 5. Probability models
    logger.info(f"Training land-use probability models for '{target}'...")
    targets = {
        'residential': presence(residential, name='residential'),
        'commercial': presence(commercial, name='commercial'),
        'developed': developed,
    }
    table = build_feature_table({**drivers, 'target': targets[target]},
                                list(DRIVER_LAYERS) + ['target'])
    X_train, X_test, y_train, y_test = prepare_training_data(
        table, DRIVER_LAYERS, 'target', test_size=test_size, random_state=random_seed
    )
    models = train_models(X_train, y_train, random_state=random_seed)

    evaluations = {}
    importances = {}
    surfaces = {}
    for key, model in models.items():
        evaluations[key] = evaluate(model, X_test, y_test)
        importances[key] = feature_importance(model, DRIVER_LAYERS)
        surfaces[key] = predict_surface(model, drivers, DRIVER_LAYERS, reference,
                                        name=f"{key}_probability")
        logger.info(
            f"{MODEL_LABELS[key]}: accuracy={evaluations[key]['accuracy']:.4f}, "
            f"ROC AUC={evaluations[key]['roc_auc']:.4f}"
        )

    saved_paths = {}
    if save_models:
        saved_paths.update(save_results(evaluations, models, output_dir=directories['models'],
                                        prefix=target))
        for key, surface in surfaces.items():
            saved_paths[f"{key}_raster"] = save_raster(
                surface, os.path.join(directories['results'], get_output_filename(surface.name, "tif"))
            )

    # 6. Plots
    figures = []
    if save_visualizations:
        logger.info("Generating visualizations...")
        viz_dir = directories['visualizations']
        for name, binned in binned_tables.items():
            path = os.path.join(viz_dir, get_output_filename(f"{name}_fit", "png"))
            _save_figure(plot_binned_fit(
                binned, fit_results[name]['fits'], best_fit=fit_results[name]['best'],
                y_label=name.replace('_', ' ').title(),
                title=f"{name.replace('_', ' ').title()} vs. ES Accessibility",
                save_path=path), path, figures)

        path = os.path.join(viz_dir, get_output_filename("land_use_classes", "png"))
        _save_figure(plot_classified_raster(land_use_classes, LAND_USE_CLASSES,
                                            title='Residential and Commercial Land Use',
                                            save_path=path), path, figures)

        path = os.path.join(viz_dir, get_output_filename("es_accessibility", "png"))
        _save_figure(plot_raster(es_accessibility, title='ES Accessibility',
                                 colorbar_label='Normalized accessibility',
                                 save_path=path), path, figures)

        for key in models:
            label = MODEL_LABELS[key]
            path = os.path.join(viz_dir, get_output_filename(f"{key}_probability", "png"))
            _save_figure(plot_probability_map(surfaces[key],
                                              title=f"{target.title()} Probability - {label}",
                                              save_path=path), path, figures)
            path = os.path.join(viz_dir, get_output_filename(f"{key}_confusion_matrix", "png"))
            _save_figure(plot_confusion_matrix(evaluations[key]['confusion_matrix'],
                                               class_names=['other', target],
                                               title=f"Confusion Matrix - {label}",
                                               save_path=path), path, figures)
            path = os.path.join(viz_dir, get_output_filename(f"{key}_importance", "png"))
            _save_figure(plot_feature_importance(importances[key],
                                                 title=f"Driver Importance - {label}",
                                                 save_path=path), path, figures)

        path = os.path.join(viz_dir, get_output_filename("roc_curves", "png"))
        _save_figure(plot_roc_curves(evaluations, save_path=path), path, figures)

    # 7. Reports
    metadata = {
        'data_dir': data_dir,
        'reference_layer': reference_layer,
        'grid_shape': list(reference.shape),
        'n_bins': n_bins,
        'degrees': list(degrees),
        'criterion': criterion,
        'density_window': density_window,
        'target': target,
        'drivers': list(DRIVER_LAYERS),
        'training_rows': len(X_train),
        'test_rows': len(X_test),
    }
    reports = generate_analysis_report(fit_comparisons, evaluations, importances,
                                       output_dir=directories['reports'], metadata=metadata)

    execution_time = time.time() - start_time
    summary = save_results_summary(
        {
            'run': {**metadata, 'execution_time': convert_time_format(execution_time)},
            'curve_fits': {name: f"best degree {c['best_degree']} by {criterion.upper()}"
                           for name, c in fit_comparisons.items()},
            'models': {MODEL_LABELS[key]: f"accuracy {r['accuracy']:.4f}, ROC AUC {r['roc_auc']:.4f}"
                       for key, r in evaluations.items()},
        },
        os.path.join(directories['reports'], f"summary_{timestamp}")
    )
    reports.update({f"summary_{k}": v for k, v in summary.items()})

    logger.info(f"Pipeline finished in {convert_time_format(execution_time)}")

    return {
        'layers': masked,
        'drivers': drivers,
        'densities': densities,
        'binned': binned_tables,
        'fits': fit_results,
        'fit_comparisons': fit_comparisons,
        'models': models,
        'evaluations': evaluations,
        'importances': importances,
        'surfaces': surfaces,
        'figures': figures,
        'saved_paths': saved_paths,
        'reports': reports,
    }


def main(argv=None):
    """Pipeline entry point."""
    args = parse_args(argv)
    setup_logging(args.log_file, args.log_level)

    return run_analysis(
        data_dir=args.data_dir,
        output_dir=args.output_dir,
        reference_layer=args.reference_layer,
        n_bins=args.n_bins,
        degrees=args.degrees,
        criterion=args.criterion,
        density_window=args.density_window,
        target=args.target,
        test_size=args.test_size,
        random_seed=args.random_seed,
        save_models=args.save_models,
        save_visualizations=args.save_visualizations,
    )


if __name__ == '__main__':
    main()
