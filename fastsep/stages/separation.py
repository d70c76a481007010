"""
Stage: Blind Source Separation
==============================

Per-cohort ICA of the observation matrix.

Input:
    observations.parquet (signal_id, signal_0, value, optional cohort)

Output (under <output_dir>/ica/):
    unmixing.parquet     (cohort, component, signal_id, value)   k x N per cohort
    mixing.parquet       (cohort, signal_id, component, value)   N x k per cohort
    components.parquet   (cohort, component, signal_0, value)    k x M per cohort
    ica_summary.parquet  one row per cohort: convergence, iterations, degenerate

Algorithm:
    1. Per cohort: pivot observations to wide (rows=signal_id, cols=signal_0)
    2. run_ica on the N x M matrix
    3. Flatten the three output matrices to long format

Non-convergence and degenerate covariance do not stop the stage; they are
recorded in ica_summary.parquet. Fatal input errors for one cohort are
recorded there too and the cohort is skipped.
"""

from typing import Any, Dict, Optional

import polars as pl

from fastsep.core.ica import ICAOptions, run_ica
from fastsep.io.reader import load_observations, observations_to_matrix
from fastsep.io.writer import concat_frames, matrix_to_frame, write_output
from fastsep.validation import ICAError


def run(
    observations_path: str,
    output_dir: str,
    options: Optional[ICAOptions] = None,
    verbose: bool = True,
) -> Dict[str, Any]:
    """
    Separate every cohort in observations.parquet and write the outputs.

    Args:
        observations_path: Path to observations.parquet (or its directory)
        output_dir: Output root; files go to <output_dir>/ica/
        options: ICAOptions (None = defaults)
        verbose: Print progress

    Returns:
        Dict with 'summary' (DataFrame) and the written paths by name
    """
    options = options or ICAOptions()

    if verbose:
        print("=" * 70)
        print("BLIND SOURCE SEPARATION (FastICA)")
        print("=" * 70)

    obs = load_observations(observations_path)

    if verbose:
        print(f"\nLoaded observations: {obs.shape}")

    has_cohort = 'cohort' in obs.columns
    cohorts = sorted(obs['cohort'].unique().to_list()) if has_cohort else ['all']

    if verbose:
        opts = options.to_dict()
        print(f"Cohorts: {len(cohorts)}")
        print(f"Approach: {opts['approach']}, g={opts['nonlinearity']}, "
              f"max_iterations={opts['max_iterations']}, epsilon={opts['epsilon']}")

    unmixing_frames, mixing_frames, component_frames, summary_rows = [], [], [], []

    for cohort in cohorts:
        cohort_data = obs.filter(pl.col('cohort') == cohort) if has_cohort else obs
        cohort_label = str(cohort)

        matrix, signal_ids, index = observations_to_matrix(cohort_data)

        row: Dict[str, Any] = {
            'cohort': cohort_label,
            'n_signals': len(signal_ids),
            'n_samples': int(matrix.shape[1]),
            'status': 'ok',
            'error': '',
            'approach': '',
            'nonlinearity': '',
            'n_components': 0,
            'iterations': 0,
            'max_delta': float('nan'),
            'converged': False,
            'degenerate': False,
        }

        try:
            result = run_ica(matrix, options)
        except ICAError as e:
            row['status'] = 'error'
            detail = '; '.join(getattr(e, 'errors', [])) or str(e)
            row['error'] = f"{type(e).__name__}: {detail}"
            summary_rows.append(row)
            if verbose:
                print(f"  {cohort_label}: FAILED ({row['error']})")
            continue

        summary = result.summary()
        row.update({
            'approach': summary['approach'],
            'nonlinearity': summary['nonlinearity'],
            'n_components': summary['n_components'],
            'iterations': summary['iterations'],
            'max_delta': summary['max_delta'],
            'converged': summary['converged'],
            'degenerate': summary['degenerate'],
        })
        summary_rows.append(row)

        component_ids = list(range(result.n_components))
        extra = {'cohort': cohort_label}

        unmixing_frames.append(matrix_to_frame(
            result.unmixing, component_ids, signal_ids, 'component', 'signal_id', extra,
        ))
        mixing_frames.append(matrix_to_frame(
            result.mixing, signal_ids, component_ids, 'signal_id', 'component', extra,
        ))
        component_frames.append(matrix_to_frame(
            result.components, component_ids, index, 'component', 'signal_0', extra,
        ))

        if verbose:
            status = "converged" if result.converged else "NOT converged"
            print(f"  {cohort_label}: {len(signal_ids)} signals x {matrix.shape[1]} samples "
                  f"-> {result.n_components} components ({status}, "
                  f"{summary['iterations']} iterations)")

    summary_df = pl.DataFrame(summary_rows, infer_schema_length=None)

    written = {
        'unmixing': write_output(concat_frames(unmixing_frames), output_dir, 'unmixing', verbose),
        'mixing': write_output(concat_frames(mixing_frames), output_dir, 'mixing', verbose),
        'components': write_output(concat_frames(component_frames), output_dir, 'components', verbose),
        'ica_summary': write_output(summary_df, output_dir, 'ica_summary', verbose),
    }

    return {'summary': summary_df, **written}
