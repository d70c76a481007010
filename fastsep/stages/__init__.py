"""
Stage runners — read parquet, call engines, write parquet.

    fastsep.stages.separation   Per-cohort ICA (unmixing, mixing, components)
"""
