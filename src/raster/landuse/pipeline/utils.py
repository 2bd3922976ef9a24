# -*- coding: utf-8 -*-
"""
Utility Functions

This module contains logging setup, JSON persistence and summary helpers
shared across the land-use analysis pipeline.
"""

import os
import json
import logging
import numpy as np
import pandas as pd
from datetime import datetime

from .config import LOGGER_NAME, LOG_FORMAT, LOG_LEVEL


def setup_logging(log_file=None, level=LOG_LEVEL):
    """
    Set up logging for the pipeline package.

    Calling it again replaces the handlers instead of stacking duplicates.

    Args:
        log_file: Path to log file, or None for console only
        level: Logging level name

    Returns:
        Logger object
    """
    logger = logging.getLogger(LOGGER_NAME)

    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")
    logger.setLevel(numeric_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name):
    """Return a child of the package logger."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def _serialize(obj):
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, pd.DataFrame):
        return obj.to_dict(orient='records')
    if isinstance(obj, pd.Series):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def save_json(data, file_path):
    """
    Save data as JSON file.

    Args:
        data: Data to save (numpy and pandas values are converted)
        file_path: Path to save JSON file

    Returns:
        Path to saved file
    """
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(file_path, 'w') as f:
        json.dump(data, f, default=_serialize, indent=2)

    return file_path


def load_json(file_path):
    """
    Load data from JSON file.

    Args:
        file_path: Path to JSON file

    Returns:
        Loaded data
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"JSON file not found: {file_path}")

    with open(file_path, 'r') as f:
        return json.load(f)


def save_results_summary(results_dict, output_path):
    """
    Save a summary of results to text and markdown files.

    Args:
        results_dict: Mapping of section name to a dict or a plain value
        output_path: Base path for output files (without extension)

    Returns:
        Dictionary with paths to saved files
    """
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    generated = datetime.now().strftime('%Y-%m-%d %H:%M:%S')

    txt_path = f"{output_path}.txt"
    with open(txt_path, 'w') as f:
        f.write("=" * 80 + "\n")
        f.write("LAND-USE ACCESSIBILITY ANALYSIS SUMMARY\n")
        f.write(f"Generated: {generated}\n")
        f.write("=" * 80 + "\n\n")

        for section, data in results_dict.items():
            f.write(f"{section.upper()}\n")
            f.write("-" * 80 + "\n")
            if isinstance(data, dict):
                for key, value in data.items():
                    f.write(f"{key}: {value}\n")
            else:
                f.write(f"{data}\n")
            f.write("\n")

    md_path = f"{output_path}.md"
    with open(md_path, 'w') as f:
        f.write("# Land-Use Accessibility Analysis Summary\n\n")
        f.write(f"*Generated: {generated}*\n\n")

        for section, data in results_dict.items():
            f.write(f"## {section.replace('_', ' ').title()}\n\n")
            if isinstance(data, dict):
                for key, value in data.items():
                    f.write(f"- **{str(key).replace('_', ' ').title()}:** {value}\n")
            else:
                f.write(f"{data}\n")
            f.write("\n")

    return {
        'text': txt_path,
        'markdown': md_path
    }


def convert_time_format(seconds):
    """
    Convert seconds to a human-readable time format.

    Args:
        seconds: Number of seconds

    Returns:
        Formatted time string
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    elif minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
