"""Module search ranking components.

Contents
- ``similarity``: prefix similarity ratio, ordering key and result ranker
"""

from .similarity import ModuleResultRanker, create_result_ranker, ranking_key, ratio
