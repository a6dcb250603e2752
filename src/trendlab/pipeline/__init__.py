"""Pipeline orchestration — download → cache → tidy → analyze → report.

Components:
- Orchestrator: Main coordinator
- Fetcher: Upstream CSV → DatasetStore
- ShootingPipeline: NYPD shootings → STL + regression report
- CovidPipeline: JHU CSSE archives → rolling/LOESS report
"""

from trendlab.pipeline.fetcher import DatasetUnavailableError, Fetcher
from trendlab.pipeline.orchestrator import Orchestrator

__all__ = ["DatasetUnavailableError", "Fetcher", "Orchestrator"]
