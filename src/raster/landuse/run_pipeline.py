# -*- coding: utf-8 -*-
"""
Run the Land-Use Analysis Pipeline

Starts the pipeline with the command line arguments, prints the headline
results and exits with a non-zero status if anything fails.
"""

import os
import sys
import time
import traceback
from datetime import datetime

from raster.landuse.pipeline.main import main


def run(argv=None):
    timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    print("===== LAND-USE ACCESSIBILITY PIPELINE =====")
    print(f"Date and time: {timestamp}")

    start_time = time.time()

    try:
        results = main(argv)
    except Exception as e:
        print(f"\nERROR while running the pipeline: {str(e)}")
        traceback.print_exc()
        return 1

    print("\n===== RESULTS =====")
    for name, comparison in results['fit_comparisons'].items():
        print(f"{name}: best polynomial degree {comparison['best_degree']} "
              f"({comparison['criterion'].upper()})")
    for key, evaluation in results['evaluations'].items():
        print(f"{key}: accuracy {evaluation['accuracy']:.4f}, ROC AUC {evaluation['roc_auc']:.4f}")
    if 'markdown' in results['reports']:
        print(f"Report: {os.path.abspath(results['reports']['markdown'])}")

    hours, remainder = divmod(time.time() - start_time, 3600)
    minutes, seconds = divmod(remainder, 60)
    print(f"\nTotal execution time: {int(hours)}h {int(minutes)}m {int(seconds)}s")
    return 0


if __name__ == "__main__":
    sys.exit(run(sys.argv[1:]))
