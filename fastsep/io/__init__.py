"""
Parquet / YAML I/O.

    reader     load_observations, observations_to_matrix, load_output
    writer     write_output, matrix_to_frame
    manifest   load_manifest (SeparationManifest), get_ica_section
"""

from fastsep.io.reader import load_observations, observations_to_matrix, load_output
from fastsep.io.writer import write_output, matrix_to_frame
from fastsep.io.manifest import SeparationManifest, load_manifest, get_ica_section

__all__ = [
    'load_observations',
    'observations_to_matrix',
    'load_output',
    'write_output',
    'matrix_to_frame',
    'SeparationManifest',
    'load_manifest',
    'get_ica_section',
]
