"""
fastsep Runner
==============

Resolves paths and options, then runs the separation stage.

Option precedence (highest first):
    1. Command-line flags
    2. manifest.yaml 'ica:' section
    3. Config file ($FASTSEP_CONFIG or --config)
    4. Built-in defaults

Usage:
    python -m fastsep domains/eeg_session
    python -m fastsep domains/eeg_session --approach deflation --n-components 8
    python -m fastsep domains/eeg_session --nonlinearity cubic --seed 42 -q
"""

import argparse
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from fastsep.config import get_config, load_config
from fastsep.core.ica import ICAOptions
from fastsep.io.manifest import SeparationManifest, load_manifest
from fastsep.stages import separation


def resolve_options(
    manifest: Optional[SeparationManifest] = None,
    overrides: Optional[Dict[str, Any]] = None,
    config=None,
) -> ICAOptions:
    """Merge CLI overrides > manifest ica: section > config > defaults."""
    values: Dict[str, Any] = {}
    if manifest is not None:
        values.update(manifest.ica)
    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})
    return ICAOptions.from_config(config or get_config(), values)


def run(
    observations_path: str,
    output_dir: str,
    options: Optional[ICAOptions] = None,
    verbose: bool = True,
) -> Dict[str, Any]:
    """
    Run blind source separation on observations.parquet.

    Args:
        observations_path: Path to observations.parquet
        output_dir: Output root (files go to <output_dir>/ica/)
        options: ICAOptions (None = config defaults)
        verbose: Print progress

    Returns:
        Stage result dict ('summary' DataFrame + written paths)
    """
    if options is None:
        options = resolve_options()

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    if verbose:
        print("=" * 70)
        print("FASTSEP")
        print("=" * 70)
        print(f"Input:    {observations_path}")
        print(f"Output:   {output_path}")
        print()

    start = time.time()
    result = separation.run(observations_path, str(output_path), options=options, verbose=verbose)

    if verbose:
        print()
        print(f"Completed in {time.time() - start:.1f}s")
        print("=" * 70)

    return result


def main(argv=None):
    """CLI entry point. Resolves data_path into explicit paths and calls run()."""
    parser = argparse.ArgumentParser(
        description="Blind source separation (FastICA)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Reads <data_path>/manifest.yaml (paths + optional ica: section) and
<data_path>/observations.parquet. Writes <output_dir>/ica/*.parquet.

Usage:
  python -m fastsep ~/domains/eeg_session
  python -m fastsep ~/domains/eeg_session --approach deflation --n-components 8
"""
    )
    parser.add_argument('data_path', help='Path to data directory (must contain manifest.yaml)')
    parser.add_argument('--config', help='YAML config file (overrides $FASTSEP_CONFIG)')
    parser.add_argument('--approach', choices=['symmetric', 'deflation'], help='Estimation approach')
    parser.add_argument('--n-components', type=int, help='Number of components (default: all signals)')
    parser.add_argument('--nonlinearity', help='cubic, tanh or gaussian (unknown values use tanh)')
    parser.add_argument('--max-iterations', type=int, help='Iteration cap')
    parser.add_argument('--epsilon', type=float, help='Convergence threshold')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible runs')
    parser.add_argument('--log-level', default='WARNING', help='Logging level (default: WARNING)')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    manifest = load_manifest(args.data_path)

    config = load_config(args.config) if args.config else get_config()
    options = resolve_options(
        manifest,
        overrides={
            'approach': args.approach,
            'n_components': args.n_components,
            'nonlinearity': args.nonlinearity,
            'max_iterations': args.max_iterations,
            'epsilon': args.epsilon,
            'random_seed': args.seed,
        },
        config=config,
    )

    return run(
        observations_path=str(manifest.observations_path),
        output_dir=str(manifest.output_dir),
        options=options,
        verbose=not args.quiet,
    )


if __name__ == '__main__':
    main()
