# -*- coding: utf-8 -*-
"""
Reporting

This module writes the analysis report (curve-fit comparison, model
evaluation and driver importance) as JSON, plain text and markdown.
"""

import json
import os
from datetime import datetime

import numpy as np

from .config import MODEL_LABELS, get_timestamp
from .utils import get_logger, save_json

logger = get_logger("reporting")


def _fmt(value, precision=4):
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return "n/a"
    return f"{value:.{precision}f}"


def generate_analysis_report(fit_comparisons, evaluations, importances,
                             output_dir='reports', metadata=None):
    """
    Generate the analysis report.

    Args:
        fit_comparisons: Dictionary of density name to a dict with
            'table' (compare_fits DataFrame), 'best_degree' and 'criterion'
        evaluations: Dictionary of model key to evaluate() output
        importances: Dictionary of model key to feature_importance DataFrame
        output_dir: Directory to save reports
        metadata: Optional dictionary of run settings to include

    Returns:
        Dictionary with report paths
    """
    os.makedirs(output_dir, exist_ok=True)
    timestamp = get_timestamp()
    generated = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    metadata = metadata or {}

    report = {
        'timestamp': timestamp,
        'metadata': metadata,
        'curve_fits': {
            name: {
                'criterion': comparison['criterion'],
                'best_degree': int(comparison['best_degree']),
                'fits': comparison['table'].to_dict(orient='records'),
            }
            for name, comparison in fit_comparisons.items()
        },
        'models': {
            key: {
                'accuracy': result['accuracy'],
                'roc_auc': result['roc_auc'],
                'confusion_matrix': np.asarray(result['confusion_matrix']).tolist(),
                'classification_report': result['classification_report'],
                'feature_importance': importances[key].to_dict(orient='records')
                if key in importances else [],
            }
            for key, result in evaluations.items()
        },
    }

    report_files = {}

    json_path = os.path.join(output_dir, f"analysis_report_{timestamp}.json")
    save_json(report, json_path)
    report_files['json'] = json_path

    txt_path = os.path.join(output_dir, f"analysis_report_{timestamp}.txt")
    with open(txt_path, 'w') as f:
        f.write("=" * 80 + "\n")
        f.write("LAND-USE DENSITY AND ES ACCESSIBILITY REPORT\n")
        f.write(f"Generated: {generated}\n")
        f.write("=" * 80 + "\n\n")

        if metadata:
            f.write("RUN SETTINGS\n")
            f.write("-" * 80 + "\n")
            for key, value in metadata.items():
                f.write(f"{key}: {value}\n")
            f.write("\n")

        f.write("CURVE FITS\n")
        f.write("-" * 80 + "\n")
        for name, comparison in fit_comparisons.items():
            f.write(f"{name} (best degree by {comparison['criterion'].upper()}: "
                    f"{comparison['best_degree']})\n")
            f.write(comparison['table'].to_string(index=False))
            f.write("\n\n")

        f.write("MODEL EVALUATION\n")
        f.write("-" * 80 + "\n")
        for key, result in evaluations.items():
            f.write(f"{MODEL_LABELS.get(key, key)}: accuracy={_fmt(result['accuracy'])}, "
                    f"ROC AUC={_fmt(result['roc_auc'])}\n")
        f.write("\n")

        for key, table in importances.items():
            f.write(f"DRIVER IMPORTANCE - {MODEL_LABELS.get(key, key).upper()}\n")
            f.write("-" * 80 + "\n")
            f.write(table.to_string(index=False))
            f.write("\n\n")
    report_files['text'] = txt_path

    md_path = os.path.join(output_dir, f"analysis_report_{timestamp}.md")
    with open(md_path, 'w') as f:
        f.write("# Land-Use Density and ES Accessibility Report\n\n")
        f.write(f"**Generated:** {generated}\n\n")

        f.write("## Curve Fits\n\n")
        for name, comparison in fit_comparisons.items():
            f.write(f"### {name.replace('_', ' ').title()}\n\n")
            f.write(f"| Degree | R² | AIC | BIC | Δ{comparison['criterion'].upper()} |\n")
            f.write("|--------|----|-----|-----|------|\n")
            delta_col = f"delta_{comparison['criterion']}"
            for _, row in comparison['table'].iterrows():
                marker = " **(best)**" if row['degree'] == comparison['best_degree'] else ""
                f.write(f"| {int(row['degree'])}{marker} | {row['r_squared']:.4f} | "
                        f"{row['aic']:.2f} | {row['bic']:.2f} | {row[delta_col]:.2f} |\n")
            f.write("\n")

        f.write("## Model Evaluation\n\n")
        f.write("| Model | Accuracy | ROC AUC | Precision (1) | Recall (1) |\n")
        f.write("|-------|----------|---------|---------------|------------|\n")
        for key, result in evaluations.items():
            positive = result['classification_report'].get('1', {})
            f.write(f"| {MODEL_LABELS.get(key, key)} | {_fmt(result['accuracy'])} | "
                    f"{_fmt(result['roc_auc'])} | {_fmt(positive.get('precision'))} | "
                    f"{_fmt(positive.get('recall'))} |\n")
        f.write("\n")

        f.write("### Generated Files\n\n")
        for report_type, path in report_files.items():
            f.write(f"- **{report_type.title()}:** {os.path.basename(path)}\n")
    report_files['markdown'] = md_path

    logger.info(f"Analysis report written to {output_dir}")
    return report_files


def load_reports(report_dir, timestamp=None):
    """
    Load JSON reports from the specified directory.

    Args:
        report_dir: Directory containing reports
        timestamp: Specific timestamp to load, or None for latest

    Returns:
        Dictionary of report name (without timestamp) to loaded data
    """
    if not os.path.isdir(report_dir):
        raise FileNotFoundError(f"Report directory not found: {report_dir}")

    json_files = [f for f in os.listdir(report_dir) if f.endswith('.json')]
    if not json_files:
        raise FileNotFoundError(f"No JSON report files found in {report_dir}")

    def split_name(filename):
        # name_YYYYmmdd_HHMMSS.json
        parts = filename[:-len('.json')].split('_')
        if len(parts) >= 3 and len(parts[-2]) == 8 and len(parts[-1]) == 6:
            return '_'.join(parts[:-2]), f"{parts[-2]}_{parts[-1]}"
        return None, None

    if timestamp is None:
        timestamps = [ts for _, ts in map(split_name, json_files) if ts]
        if not timestamps:
            raise ValueError("Could not identify timestamps in filenames")
        timestamp = max(timestamps)

    reports = {}
    for filename in json_files:
        key, ts = split_name(filename)
        if ts == timestamp:
            with open(os.path.join(report_dir, filename), 'r') as f:
                reports[key] = json.load(f)

    return reports
