"""
Parallel loading of independent VCD files.

Each file is parsed in its own worker process; loads share no state.
"""

import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Optional

from vcdfile.config import ParserConfig
from vcdfile.errors import VCDFileError
from vcdfile.logging import logger
from vcdfile.model import VCDFile


def _load_one(args: tuple) -> tuple[str, Optional[VCDFile], Optional[VCDFileError], float]:
    """Worker: load one file.

    Returns:
        (filename, model or None, error or None, elapsed_time)
    """
    from vcdfile.loader import load_vcd_by_filename
    from vcdfile.logging import set_log_level
    set_log_level('SILENT')

    filename, config = args
    start_time = time.time()
    try:
        model = load_vcd_by_filename(filename, config)
        return (filename, model, None, time.time() - start_time)
    except VCDFileError as err:
        # The partial model can be large; the caller only needs the error
        err.partial = None
        return (filename, None, err, time.time() - start_time)


def load_parallel(
    filenames: list[str | Path],
    max_workers: int = 4,
    config: Optional[ParserConfig] = None,
) -> dict[str, VCDFile | VCDFileError]:
    """
    Load several VCD files in parallel.

    Args:
        filenames: Files to load
        max_workers: Maximum number of worker processes
        config: ParserConfig used for every file

    Returns:
        Dict mapping filename to its VCDFile, or to the VCDFileError that
        stopped it
    """
    filenames = [str(f) for f in filenames]
    results: dict[str, VCDFile | VCDFileError] = {}
    if not filenames:
        return results

    n_workers = min(max_workers, len(filenames))
    logger.info(f'Loading {len(filenames)} VCD files with {n_workers} workers')
    start_time = time.time()

    with ProcessPoolExecutor(max_workers=n_workers) as executor:
        futures = {executor.submit(_load_one, (f, config)): f for f in filenames}
        for future in as_completed(futures):
            filename, model, error, elapsed = future.result()
            if error is None:
                results[filename] = model
                logger.info(f'  {filename}: done ({elapsed:.2f}s)')
            else:
                results[filename] = error
                logger.error(f'  {filename}: {error}')

    logger.info(f'All loads complete ({time.time() - start_time:.2f}s)')
    # Keep input order
    return {f: results[f] for f in filenames}
