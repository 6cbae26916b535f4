"""Results cache directory housekeeping."""

import shutil
from pathlib import Path
from typing import Union


def reset_results_dir(path: Union[str, Path]) -> Path:
    """Remove the results directory and recreate it empty.

    Done once before a batch so captures from earlier runs don't linger.

    Raises:
        NotADirectoryError: If the path exists and is not a directory.
    """
    path = Path(path)
    if path.exists():
        if not path.is_dir():
            raise NotADirectoryError(f"Results path is not a directory: {path}")
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
