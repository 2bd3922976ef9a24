import logging

import numpy as np
import pytest

from raster.landuse.pipeline.config import LOGGER_NAME, get_output_filename
from raster.landuse.pipeline.utils import (
    setup_logging, get_logger, save_json, load_json, convert_time_format,
    save_results_summary
)


def test_setup_logging_rejects_unknown_level():
    with pytest.raises(ValueError, match="Invalid log level"):
        setup_logging(level="LOUD")


def test_setup_logging_does_not_stack_handlers(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    setup_logging(str(log_file), "DEBUG")
    logger = setup_logging(str(log_file), "INFO")
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2

    get_logger("test").info("hello from the pipeline")
    for handler in logger.handlers:
        handler.flush()
    assert "hello from the pipeline" in log_file.read_text()
    setup_logging(level="WARNING")


def test_save_json_converts_numpy_values(tmp_path):
    path = save_json(
        {'array': np.arange(3), 'int': np.int64(4), 'float': np.float32(0.5), 'flag': np.bool_(True)},
        str(tmp_path / "nested" / "data.json"),
    )
    assert load_json(path) == {'array': [0, 1, 2], 'int': 4, 'float': 0.5, 'flag': True}


def test_load_json_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_json(str(tmp_path / "missing.json"))


@pytest.mark.parametrize("seconds, expected", [
    (5, "5s"),
    (125, "2m 5s"),
    (3725, "1h 2m 5s"),
])
def test_convert_time_format(seconds, expected):
    assert convert_time_format(seconds) == expected


def test_save_results_summary(tmp_path):
    paths = save_results_summary({'models': {'accuracy': 0.9}, 'note': 'done'},
                                 str(tmp_path / "reports" / "summary"))
    text = open(paths['text']).read()
    assert "MODELS" in text and "accuracy: 0.9" in text
    assert "- **Accuracy:** 0.9" in open(paths['markdown']).read()


def test_output_filename_has_extension():
    assert get_output_filename("probability", "tif").startswith("probability_")
    assert get_output_filename("probability", "tif").endswith(".tif")
