"""
Report Models
=============

Pydantic models for the libvmaf JSON log and the scoring report.

libvmaf log contract (subset consumed here):
    {
        "frames": [
            {"frameNum": 0, "metrics": {"vmaf": 93.2, ...}},
            ...
        ],
        "pooled_metrics": {
            "vmaf": {"min": 71.0, "max": 99.1, "mean": 93.4, "harmonic_mean": 93.1}
        }
    }

Report contract (vmaf.json):
    {
        "Participant-000001_recv-by_Participant-000002": {
            "min": 71.0, "max": 99.1, "mean": 93.4, "harmonic_mean": 93.1
        }
    }
"""

from typing import Dict, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, RootModel


class PooledMetrics(BaseModel):
    """
    Single-number summaries of a per-frame metric series.

    Attributes:
        min: Lowest per-frame score
        max: Highest per-frame score
        mean: Arithmetic mean
        harmonic_mean: Harmonic mean (penalizes low outliers)
    """

    model_config = ConfigDict(extra="ignore")

    min: float
    max: float
    mean: float
    harmonic_mean: float


class VmafFrame(BaseModel):
    """One per-frame entry of the libvmaf log."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    frame_num: int = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("frameNum", "frameNumber", "frame_num"),
    )
    metrics: Dict[str, float] = Field(default_factory=dict)


class VmafLog(BaseModel):
    """Parsed libvmaf JSON log."""

    model_config = ConfigDict(extra="ignore")

    frames: List[VmafFrame] = Field(default_factory=list)
    pooled_metrics: Dict[str, PooledMetrics]

    def pooled(self, metric: str = "vmaf") -> PooledMetrics:
        """Pooled summary for a metric; KeyError when absent."""
        return self.pooled_metrics[metric]

    def series(self, metric: str = "vmaf") -> List[VmafFrame]:
        """Frames carrying the given metric, in log order."""
        return [f for f in self.frames if metric in f.metrics]


class SeriesPoint(BaseModel):
    """One bucket of the down-sampled time series."""

    x: int = Field(..., description="Frame number opening the bucket")
    y: float = Field(..., description="Mean metric value over the bucket")


class SeriesDocument(BaseModel):
    """Everything handed to the chart renderer for one pair."""

    title: str
    min: float
    max: float
    mean: float
    points: List[SeriesPoint] = Field(default_factory=list)


class ScoreReport(RootModel[Dict[str, PooledMetrics]]):
    """Degraded stream base name -> pooled metrics."""

