"""
Pipeline de aprovisionamiento: etapas ordenadas + reporte final.
"""

from devbox.pipeline.runner import (
    Pipeline,
    PipelineOutcome,
    PipelineReport,
    build_pipeline,
    default_stages,
    host_probe,
)
from devbox.pipeline.stages import Stage, StageContext, StageResult, StageStatus

__all__ = [
    "Pipeline",
    "PipelineOutcome",
    "PipelineReport",
    "build_pipeline",
    "default_stages",
    "host_probe",
    "Stage",
    "StageContext",
    "StageResult",
    "StageStatus",
]
