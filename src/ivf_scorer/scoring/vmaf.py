"""
VMAF Runner
===========

Scores one reference/degraded pair with ffmpeg's libvmaf filter.

The runner:
    - Aligns the two independently recovered clocks by the difference
      of their first pts, passed to ffmpeg as an input seek (-ss)
    - Scales both inputs to the reference geometry and frame rate
    - Lets libvmaf write a JSON log next to the degraded file
    - Optionally renders a side-by-side preview (reference | degraded)
    - Parses the pooled vmaf summary and writes the bucketed series

Output files for `<dir>/<name>.ivf`:
    <dir>/<name>.vmaf.json         libvmaf log
    <dir>/<name>.vmaf.series.json  bucketed series for charts
    <dir>/<name>.mp4               preview (optional)

Failure Policy:
    A non-zero exit, a missing ffmpeg or a malformed log raises
    ScoringError for this pair only.
"""

import asyncio
import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from pydantic import ValidationError

from ivf_scorer.container.reader import parse_ivf
from ivf_scorer.errors import ScoringError
from ivf_scorer.models.report import PooledMetrics, VmafLog
from ivf_scorer.observability.aggregator import build_series_document


logger = logging.getLogger(__name__)


PathLike = Union[str, Path]
CommandRunner = Callable[[List[str]], Awaitable[Tuple[str, str]]]


@dataclass(frozen=True, slots=True)
class ComparisonPaths:
    """Files produced while scoring one degraded stream."""

    base: Path
    log: Path
    series: Path
    preview: Path

    @classmethod
    def for_degraded(cls, degraded_path: PathLike) -> "ComparisonPaths":
        base = Path(degraded_path).with_suffix("")
        return cls(
            base=base,
            log=base.with_name(base.name + ".vmaf.json"),
            series=base.with_name(base.name + ".vmaf.series.json"),
            preview=base.with_name(base.name + ".mp4"),
        )

    @property
    def title(self) -> str:
        """Chart title derived from the comparison name."""
        return self.base.name.replace("_", " ")


def pts_offset_seconds(reference_start: int, degraded_start: int, frame_rate: float) -> float:
    """Seek applied to the reference so both inputs start at the same clock."""
    return (degraded_start - reference_start) / frame_rate


def build_vmaf_command(
    reference_path: PathLike,
    degraded_path: PathLike,
    width: int,
    height: int,
    frame_rate: float,
    offset_seconds: float,
    log_path: PathLike,
    model_path: str,
    threads: int = 1,
    ffmpeg_path: str = "ffmpeg",
    preview_path: Optional[PathLike] = None,
) -> List[str]:
    """
    Build the ffmpeg argument list for one comparison.

    Input 0 is the degraded stream, input 1 the reference seeked by
    `offset_seconds`.
    """
    scale = f"scale=w={width}:h={height}:flags=bicubic:eval=frame,fps=fps={frame_rate:g}"
    vmaf = (
        f"libvmaf=model='path={model_path}':log_fmt=json:log_path={log_path}"
        f":n_subsample=1:n_threads={threads}:shortest=1"
    )

    if preview_path is not None:
        graph = (
            f"[0:v]{scale},split[deg1][deg2];"
            f"[1:v]{scale},split[ref1][ref2];"
            f"[deg1][ref1]{vmaf}[vmaf];"
            f"[ref2][deg2]hstack=shortest=1[stacked]"
        )
    else:
        graph = (
            f"[0:v]{scale}[deg];"
            f"[1:v]{scale}[ref];"
            f"[deg][ref]{vmaf}[vmaf]"
        )

    cmd = [
        ffmpeg_path, "-loglevel", "warning", "-y", "-threads", str(threads),
        "-i", str(degraded_path),
        "-ss", str(offset_seconds), "-i", str(reference_path),
        "-filter_complex", graph,
        "-map", "[vmaf]", "-f", "null", "-",
    ]
    if preview_path is not None:
        cmd += [
            "-map", "[stacked]", "-c:v", "libx264", "-crf", "20",
            "-f", "mp4", str(preview_path),
        ]
    return cmd


async def run_command(cmd: List[str]) -> Tuple[str, str]:
    """
    Run a subprocess to completion.

    Returns:
        Tuple of (stdout, stderr)

    Raises:
        ScoringError: If the executable is missing or exits non-zero
    """
    logger.debug(f"run_command: {shlex.join(cmd)}")
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ScoringError(f"Failed to start {cmd[0]}: {e}")

    stdout, stderr = await process.communicate()
    stdout_text = stdout.decode(errors="replace")
    stderr_text = stderr.decode(errors="replace")
    if process.returncode != 0:
        raise ScoringError(
            f"{cmd[0]} exited with code {process.returncode}: {stderr_text.strip()}"
        )
    return stdout_text, stderr_text


def read_vmaf_log(log_path: PathLike) -> VmafLog:
    """
    Load and validate a libvmaf JSON log.

    Raises:
        ScoringError: If the file is missing or malformed
    """
    try:
        return VmafLog.model_validate_json(Path(log_path).read_bytes())
    except OSError as e:
        raise ScoringError(f"VMAF log {log_path} unreadable: {e}")
    except ValidationError as e:
        raise ScoringError(f"VMAF log {log_path} malformed: {e}")


class VmafRunner:
    """
    Runs libvmaf comparisons through ffmpeg.

    Attributes:
        ffmpeg_path: ffmpeg executable
        model_path: libvmaf model file
        threads: ffmpeg and libvmaf thread count
        preview: Whether to render side-by-side previews
        metric: Pooled metric read from the log
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        model_path: str = "/usr/share/model/vmaf_v0.6.1.json",
        threads: int = 1,
        preview: bool = False,
        runner: CommandRunner = run_command,
        metric: str = "vmaf",
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.model_path = model_path
        self.threads = max(1, threads)
        self.preview = preview
        self.metric = metric
        self._runner = runner

    async def run(self, reference_path: PathLike, degraded_path: PathLike) -> PooledMetrics:
        """
        Score a degraded stream against its reference.

        Returns:
            Pooled metric summary of the comparison

        Raises:
            ScoringError: If ffmpeg or its log fails
        """
        logger.info(
            f"runVmaf reference={reference_path} degraded={degraded_path} preview={self.preview}"
        )
        paths = ComparisonPaths.for_degraded(degraded_path)

        reference = await asyncio.to_thread(parse_ivf, reference_path)
        degraded = await asyncio.to_thread(parse_ivf, degraded_path)
        if reference.start_pts is None or degraded.start_pts is None:
            raise ScoringError(f"Empty stream in pair {reference_path} / {degraded_path}")

        offset = pts_offset_seconds(reference.start_pts, degraded.start_pts, reference.frame_rate)
        logger.debug(
            f"runVmaf reference_start={reference.start_pts} "
            f"degraded_start={degraded.start_pts} offset={offset:.3f}s"
        )

        cmd = build_vmaf_command(
            reference_path,
            degraded_path,
            width=reference.width,
            height=reference.height,
            frame_rate=reference.frame_rate,
            offset_seconds=offset,
            log_path=paths.log,
            model_path=self.model_path,
            threads=self.threads,
            ffmpeg_path=self.ffmpeg_path,
            preview_path=paths.preview if self.preview else None,
        )
        stdout, stderr = await self._runner(cmd)
        logger.debug(f"runVmaf stdout={stdout!r} stderr={stderr!r}")

        vmaf_log = read_vmaf_log(paths.log)
        try:
            metrics = vmaf_log.pooled(self.metric)
        except KeyError:
            raise ScoringError(f"VMAF log {paths.log} has no pooled '{self.metric}' metric")
        logger.info(f"VMAF metrics {paths.base}: {metrics.model_dump()}")

        document = build_series_document(
            paths.title,
            vmaf_log.series(self.metric),
            metrics,
            reference.frame_rate,
            self.metric,
        )
        await asyncio.to_thread(
            paths.series.write_text, document.model_dump_json(indent=2)
        )

        return metrics
