"""Elasticsearch rollup engine backend."""

from ._helpers import _ElasticBase, _translate_errors
from ._rollup_engine import ElasticRollupEngine

__all__ = [
    "ElasticRollupEngine",
    "_ElasticBase",
    "_translate_errors",
]
