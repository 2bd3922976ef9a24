import numpy as np
import pandas as pd
import pytest

from raster.landuse.pipeline.reporting import generate_analysis_report, load_reports


def test_generate_and_load_analysis_report(tmp_path):
    table = pd.DataFrame({
        'degree': [1, 2], 'aic': [10.0, 8.0], 'bic': [11.0, 9.5],
        'r_squared': [0.5, 0.7], 'n_obs': [11, 11], 'equation': ['y = 1', 'y = 2'],
        'delta_aic': [2.0, 0.0],
    })
    evaluations = {
        'logistic_regression': {
            'accuracy': 0.9, 'roc_auc': float('nan'),
            'confusion_matrix': np.array([[5, 1], [0, 4]]),
            'classification_report': {'1': {'precision': 0.8, 'recall': 1.0}},
        },
    }
    importances = {'logistic_regression': pd.DataFrame({'feature': ['a'], 'importance': [1.0]})}

    paths = generate_analysis_report(
        {'residential_density': {'table': table, 'best_degree': 2, 'criterion': 'aic'}},
        evaluations, importances, output_dir=str(tmp_path), metadata={'target': 'residential'},
    )
    assert set(paths) == {'json', 'text', 'markdown'}
    markdown = open(paths['markdown']).read()
    assert "| 2 **(best)** |" in markdown
    assert "n/a" in markdown

    reports = load_reports(str(tmp_path))
    report = reports['analysis_report']
    assert report['curve_fits']['residential_density']['best_degree'] == 2
    assert report['models']['logistic_regression']['confusion_matrix'] == [[5, 1], [0, 4]]


def test_load_reports_without_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_reports(str(tmp_path))
    with pytest.raises(FileNotFoundError):
        load_reports(str(tmp_path / "missing"))
