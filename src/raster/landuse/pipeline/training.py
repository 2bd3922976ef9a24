# -*- coding: utf-8 -*-
"""
Training and Evaluation Functions

This module contains functions for training the land-use probability models
(logistic regression and gradient-boosted trees) on the driver table,
evaluating them and projecting their predictions back onto the raster grid.
"""

import os
import pickle

import numpy as np
import pandas as pd
from sklearn.ensemble import GradientBoostingClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import (
    accuracy_score, classification_report, confusion_matrix, roc_auc_score, roc_curve
)
from sklearn.model_selection import train_test_split
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from .config import GBT_PARAMS, LOGISTIC_PARAMS, RANDOM_SEED, TEST_SIZE, get_timestamp
from .preprocessing import build_feature_table
from .utils import get_logger, save_json

logger = get_logger("training")


def prepare_training_data(table, features, target, test_size=TEST_SIZE, random_state=RANDOM_SEED):
    """
    Split the feature table into stratified train and test sets.

    Args:
        table: DataFrame with feature and target columns
        features: Feature column names
        target: Binary target column name
        test_size: Fraction of rows held out for testing
        random_state: Random seed for reproducibility

    Returns:
        X_train, X_test, y_train, y_test
    """
    missing = [c for c in list(features) + [target] if c not in table.columns]
    if missing:
        raise ValueError(f"Columns missing from training table: {missing}")

    X = table[list(features)]

    # checked before the int cast, which would truncate fractional values
    classes = set(np.unique(table[target]).tolist())
    if not classes <= {0, 1}:
        raise ValueError(f"Target '{target}' must be binary (0/1), found {sorted(classes)}")
    if len(classes) < 2:
        raise ValueError(f"Target '{target}' has a single class; cannot train a classifier")
    y = table[target].astype(int)

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=test_size, random_state=random_state, stratify=y
    )
    logger.info(
        f"Training rows: {len(X_train)}, test rows: {len(X_test)}, "
        f"positive share: {y.mean():.3f}"
    )
    return X_train, X_test, y_train, y_test


def train_logistic_regression(X, y, random_state=RANDOM_SEED, **params):
    """Standardize the drivers and fit a logistic regression."""
    settings = dict(LOGISTIC_PARAMS)
    settings.update(params)
    model = Pipeline([
        ('scaler', StandardScaler()),
        ('model', LogisticRegression(random_state=random_state, **settings)),
    ])
    model.fit(X, y)
    logger.info(f"Logistic regression trained on {len(X)} rows")
    return model


def train_gradient_boosting(X, y, random_state=RANDOM_SEED, **params):
    """Fit gradient-boosted decision trees."""
    settings = dict(GBT_PARAMS)
    settings.update(params)
    model = GradientBoostingClassifier(random_state=random_state, **settings)
    model.fit(X, y)
    logger.info(f"Gradient boosting trained on {len(X)} rows ({model.n_estimators_} trees)")
    return model


def train_models(X_train, y_train, random_state=RANDOM_SEED):
    """
    Train both land-use probability models.

    Returns:
        Dictionary of model key to fitted estimator
    """
    return {
        'logistic_regression': train_logistic_regression(X_train, y_train, random_state=random_state),
        'gradient_boosting': train_gradient_boosting(X_train, y_train, random_state=random_state),
    }


def evaluate(model, X_test, y_test):
    """
    Evaluate a fitted classifier on held-out rows.

    Args:
        model: Fitted estimator with predict_proba
        X_test: Test features
        y_test: Test labels

    Returns:
        Dictionary with accuracy, ROC AUC, classification report, confusion
        matrix, ROC curve points and predicted probabilities
    """
    y_true = np.asarray(y_test).astype(int)
    probabilities = model.predict_proba(X_test)[:, 1]
    predictions = (probabilities >= 0.5).astype(int)

    if len(np.unique(y_true)) > 1:
        auc = float(roc_auc_score(y_true, probabilities))
        fpr, tpr, _ = roc_curve(y_true, probabilities)
    else:
        logger.warning("Test set has a single class; ROC AUC is undefined")
        auc = float('nan')
        fpr, tpr = np.array([]), np.array([])

    return {
        'accuracy': float(accuracy_score(y_true, predictions)),
        'roc_auc': auc,
        'classification_report': classification_report(
            y_true, predictions, labels=[0, 1], output_dict=True, zero_division=0
        ),
        'confusion_matrix': confusion_matrix(y_true, predictions, labels=[0, 1]),
        'roc_curve': {'fpr': fpr, 'tpr': tpr},
        'probabilities': probabilities,
        'true_labels': y_true,
    }


def feature_importance(model, feature_names):
    """
    Driver importance for either model type.

    Logistic regression uses absolute standardized coefficients, boosted
    trees their impurity-based importances. Both are scaled to sum to 1.
    """
    estimator = model.named_steps['model'] if isinstance(model, Pipeline) else model

    if hasattr(estimator, 'feature_importances_'):
        values = np.asarray(estimator.feature_importances_, dtype=float)
        coefficients = np.full(len(values), np.nan)
    elif hasattr(estimator, 'coef_'):
        coefficients = np.asarray(estimator.coef_, dtype=float).ravel()
        values = np.abs(coefficients)
    else:
        raise ValueError(f"Model {type(estimator).__name__} exposes no importances")

    total = values.sum()
    if total > 0:
        values = values / total

    return pd.DataFrame({
        'feature': list(feature_names),
        'importance': values,
        'coefficient': coefficients,
    }).sort_values('importance', ascending=False).reset_index(drop=True)


def predict_surface(model, layers, features, reference, name=None):
    """
    Apply a model to every cell and reshape the output to the grid.

    Args:
        model: Fitted classifier with predict_proba
        layers: Dictionary of aligned driver layers
        features: Driver names in the order the model was trained with
        reference: RasterLayer whose grid the output takes
        name: Name of the probability layer

    Returns:
        RasterLayer of positive-class probability; cells with any missing
        driver stay NaN
    """
    table = build_feature_table(layers, features)
    surface = np.full(reference.data.size, np.nan)
    if len(table):
        surface[table['cell_index'].to_numpy()] = model.predict_proba(table[list(features)])[:, 1]

    layer = reference.derive(surface.reshape(reference.shape), name=name or "probability")
    logger.info(
        f"Predicted '{layer.name}' for {len(table)} cells "
        f"(mean probability {np.nanmean(surface) if len(table) else float('nan'):.3f})"
    )
    return layer


def save_results(evaluations, models, output_dir='results', prefix=''):
    """
    Save fitted models and evaluation metrics.

    Args:
        evaluations: Dictionary of model key to evaluation results
        models: Dictionary of model key to fitted estimator
        output_dir: Directory to save results
        prefix: Prefix for output filenames

    Returns:
        Dictionary with paths to saved files
    """
    timestamp = get_timestamp()
    if prefix:
        prefix = f"{prefix}_"
    os.makedirs(output_dir, exist_ok=True)

    paths = {}
    for key, model in models.items():
        model_path = os.path.join(output_dir, f"{prefix}{key}_{timestamp}.pkl")
        with open(model_path, 'wb') as f:
            pickle.dump(model, f)
        paths[key] = model_path

    metrics = {
        key: {k: v for k, v in result.items() if k not in ('probabilities', 'true_labels')}
        for key, result in evaluations.items()
    }
    results_path = os.path.join(output_dir, f"{prefix}evaluation_results_{timestamp}.json")
    save_json(metrics, results_path)
    paths['results'] = results_path

    logger.info(f"Saved {len(models)} models and metrics to {output_dir}")
    return paths
