"""
Manifest — manifest.yaml for a separation run.

    paths:
      observations: observations.parquet
      output_dir: output
    ica:
      approach: symmetric
      n_components: 3
      nonlinearity: tanh
      max_iterations: 1000
      epsilon: 1.0e-4
      random_seed: 42

Relative paths resolve against the directory holding the manifest. The
'ica' section is optional and feeds ICAOptions.
"""

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any


MANIFEST_NAME = 'manifest.yaml'
DEFAULT_OBSERVATIONS = 'observations.parquet'
DEFAULT_OUTPUT_DIR = 'output'


@dataclass
class SeparationManifest:
    """Resolved manifest: absolute paths plus the raw 'ica' options."""
    data_dir: Path
    observations_path: Path
    output_dir: Path
    ica: Dict[str, Any] = field(default_factory=dict)


def get_ica_section(raw: Dict[str, Any]) -> Dict[str, Any]:
    """The 'ica' options of a parsed manifest (empty dict when absent)."""
    section = raw.get('ica') or {}
    if not isinstance(section, dict):
        raise ValueError(f"{MANIFEST_NAME} 'ica' section must be a mapping")
    return dict(section)


def load_manifest(data_path: str) -> SeparationManifest:
    """
    Read a manifest from a data directory or a .yaml file path.

    Raises:
        FileNotFoundError: No manifest at data_path
        ValueError: Manifest is not a mapping, or 'ica' is not a mapping
    """
    p = Path(data_path)
    manifest_file = p if p.suffix in ('.yaml', '.yml') else p / MANIFEST_NAME

    if not manifest_file.is_file():
        raise FileNotFoundError(f"No {MANIFEST_NAME} in {data_path}")

    with open(manifest_file) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"{manifest_file} must contain a mapping")

    data_dir = manifest_file.parent
    paths = raw.get('paths') or {}

    return SeparationManifest(
        data_dir=data_dir,
        observations_path=data_dir / paths.get('observations', DEFAULT_OBSERVATIONS),
        output_dir=data_dir / paths.get('output_dir', DEFAULT_OUTPUT_DIR),
        ica=get_ica_section(raw),
    )
