from .base import RollupEngine
from .elastic import ElasticRollupEngine
from .factory import create_rollup_engine

__all__ = [
    "RollupEngine",
    "ElasticRollupEngine",
    "create_rollup_engine",
]
