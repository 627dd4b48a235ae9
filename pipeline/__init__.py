"""
Pipeline orchestration modules.

- state: immutable explorer state and its user actions (GUI)
- explorer_pipeline: path-based load -> split -> convolve (CLI)
"""
from .state import (
    ExplorerState,
    LoadedImage,
    reset,
    load_image,
    drop_files,
    set_shape,
    split,
    run_all_convolutions,
    select,
    finish_run,
    report_error
)
from .explorer_pipeline import (
    Exploration,
    explore,
    load_and_split,
    save_results
)
