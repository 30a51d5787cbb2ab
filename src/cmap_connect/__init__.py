"""cmap-connect: rank-weighted connection scores with permutation significance.

Scores how well a rank-free query signature (a set of ±1 directions)
lines up with a ranked, signed reference profile inside a window of
length ``m`` starting ``F`` ranks down, normalised by the best score
any signature could reach at that window length.  Empirical p-values
come from a population of random ±1 signatures, and a pooled sweep
runner evaluates whole window-length or offset series in parallel.
"""
from .errors import ValidationError, SweepError
from .weighting import (
    WeightFunction, linear_rank_weight, constant_weight,
    PowerRankWeight, weight_vector,
)
from .profile import (
    ReferenceProfile, QuerySignature, Window,
    build_reference_profile, derive_query_signature,
    reference_profile_from_values,
)
from .scoring import (
    ScoreResult, max_connection_strength, connection_strength,
    connection_score, score, rank_weights, window_strength,
)
from .random_signatures import (
    RandomSignaturePopulation, as_generator, generate_random_signatures,
)
from .significance import (
    SignificanceResult, random_scores, estimate_p_value,
    evaluate_significance, estimate_significance,
)
from .sweep import (
    SweepRunner, partition,
    sweep_by_window_length, sweep_by_offset, sweep_significance,
)
from .sensitivity import OffsetSensitivity, offset_sensitivity, sensitivity_table
from .config import SweepParameters, DEFAULT_PARAMETERS, runner_from_config
from .export import (
    score_rows, significance_rows, result_to_dict, result_from_dict,
    series_to_json, series_from_json,
)

__all__ = [
    # Errors
    "ValidationError", "SweepError",
    # Weighting
    "WeightFunction", "linear_rank_weight", "constant_weight",
    "PowerRankWeight", "weight_vector",
    # Profile model
    "ReferenceProfile", "QuerySignature", "Window",
    "build_reference_profile", "derive_query_signature",
    "reference_profile_from_values",
    # Score engine
    "ScoreResult", "max_connection_strength", "connection_strength",
    "connection_score", "score", "rank_weights", "window_strength",
    # Random signatures
    "RandomSignaturePopulation", "as_generator", "generate_random_signatures",
    # Significance
    "SignificanceResult", "random_scores", "estimate_p_value",
    "evaluate_significance", "estimate_significance",
    # Sweeps
    "SweepRunner", "partition",
    "sweep_by_window_length", "sweep_by_offset", "sweep_significance",
    # Offset sensitivity
    "OffsetSensitivity", "offset_sensitivity", "sensitivity_table",
    # Configuration
    "SweepParameters", "DEFAULT_PARAMETERS", "runner_from_config",
    # Export
    "score_rows", "significance_rows", "result_to_dict", "result_from_dict",
    "series_to_json", "series_from_json",
]
