import numpy as np
import pandas as pd
import pytest

from raster.landuse.pipeline.training import (
    prepare_training_data, train_models, evaluate, feature_importance,
    predict_surface, save_results
)
from raster.landuse.pipeline.utils import load_json
from conftest import make_layer

FEATURES = ["a", "b", "c", "d"]


@pytest.fixture
def driver_table():
    rng = np.random.default_rng(5)
    n = 600
    table = pd.DataFrame(rng.random((n, 4)), columns=FEATURES)
    table["target"] = (table["a"] + 0.3 * table["b"] + rng.normal(0, 0.05, n) > 0.65).astype(int)
    return table


@pytest.fixture
def trained(driver_table):
    X_train, X_test, y_train, y_test = prepare_training_data(
        driver_table, FEATURES, "target", test_size=0.3, random_state=0
    )
    return train_models(X_train, y_train, random_state=0), X_test, y_test


def test_prepare_training_data_is_stratified(driver_table):
    X_train, X_test, y_train, y_test = prepare_training_data(driver_table, FEATURES, "target", test_size=0.25)
    assert len(X_train) + len(X_test) == len(driver_table)
    assert list(X_train.columns) == FEATURES
    assert abs(y_train.mean() - y_test.mean()) < 0.05


def test_prepare_training_data_rejects_bad_targets(driver_table):
    single = driver_table.assign(target=1)
    with pytest.raises(ValueError, match="single class"):
        prepare_training_data(single, FEATURES, "target")

    multi = driver_table.assign(target=np.arange(len(driver_table)) % 3)
    with pytest.raises(ValueError, match="binary"):
        prepare_training_data(multi, FEATURES, "target")

    fractional = driver_table.assign(target=np.tile([0.0, 1.0, 1.7, 0.4], len(driver_table) // 4))
    with pytest.raises(ValueError, match="binary"):
        prepare_training_data(fractional, FEATURES, "target")

    with pytest.raises(ValueError, match="missing"):
        prepare_training_data(driver_table, FEATURES + ["e"], "target")


def test_models_learn_the_signal(trained):
    models, X_test, y_test = trained
    assert set(models) == {"logistic_regression", "gradient_boosting"}
    for model in models.values():
        result = evaluate(model, X_test, y_test)
        assert result["accuracy"] > 0.8
        assert result["roc_auc"] > 0.85
        assert result["confusion_matrix"].shape == (2, 2)
        assert result["confusion_matrix"].sum() == len(y_test)
        assert np.all((result["probabilities"] >= 0) & (result["probabilities"] <= 1))


def test_feature_importance_ranks_strongest_driver_first(trained):
    models, _, _ = trained
    for model in models.values():
        importance = feature_importance(model, FEATURES)
        assert importance.loc[0, "feature"] == "a"
        assert importance["importance"].sum() == pytest.approx(1.0)


def test_predict_surface_reshapes_to_grid(trained):
    models, _, _ = trained
    rng = np.random.default_rng(9)
    layers = {name: make_layer(rng.random((5, 6)), name=name) for name in FEATURES}
    layers["b"].data[2, 3] = np.nan
    reference = make_layer(np.zeros((5, 6)), name="land_use")

    surface = predict_surface(models["gradient_boosting"], layers, FEATURES, reference,
                              name="gbt_probability")
    assert surface.name == "gbt_probability"
    assert surface.shape == reference.shape
    assert surface.transform == reference.transform
    assert np.isnan(surface.data[2, 3])
    assert np.isnan(surface.data).sum() == 1
    valid = surface.data[~np.isnan(surface.data)]
    assert np.all((valid >= 0) & (valid <= 1))


def test_predict_surface_matches_row_predictions(trained):
    models, _, _ = trained
    rng = np.random.default_rng(10)
    layers = {name: make_layer(rng.random((3, 4)), name=name) for name in FEATURES}
    reference = make_layer(np.zeros((3, 4)))
    model = models["logistic_regression"]

    surface = predict_surface(model, layers, FEATURES, reference)
    rows = pd.DataFrame({name: layers[name].data.ravel() for name in FEATURES})
    expected = model.predict_proba(rows)[:, 1].reshape(3, 4)
    np.testing.assert_allclose(surface.data, expected)


def test_save_results_writes_models_and_metrics(trained, tmp_path):
    models, X_test, y_test = trained
    evaluations = {key: evaluate(model, X_test, y_test) for key, model in models.items()}
    paths = save_results(evaluations, models, output_dir=str(tmp_path), prefix="residential")

    for key in models:
        assert paths[key].endswith(".pkl")
    metrics = load_json(paths["results"])
    assert set(metrics) == set(models)
    assert "probabilities" not in metrics["logistic_regression"]
    assert len(metrics["gradient_boosting"]["confusion_matrix"]) == 2
