"""
Pairing & Scoring Orchestrator
==============================

Repairs every capture file under a directory, pairs reference and
degraded streams by participant, and scores each pair.

Run Phases:
    1. Scan: collect capture files recursively, skipping the output dir
    2. Repair: recover + rewrite each file into the output dir
    3. Pair: one reference per participant (last wins), any number of
       degraded streams per participant
    4. Score: libvmaf for every reference/degraded pair
    5. Report: vmaf.json in the output dir

Failure Policy:
    Any exception raised while repairing a file or scoring a pair is
    logged and that input is left out of the report; the run always
    continues with the remaining inputs.

Cleanup:
    Unless keep_intermediate_files is set, each degraded file is deleted
    after its scoring attempt and each reference after all its partners.
"""

import asyncio
import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Union

from ivf_scorer.config import Settings
from ivf_scorer.models.report import PooledMetrics, ScoreReport
from ivf_scorer.recognition.engine import Recognizer
from ivf_scorer.recovery.recovery import TimestampRecovery
from ivf_scorer.repair.naming import is_degraded_output
from ivf_scorer.repair.writer import DEFAULT_MAX_GAP_SECONDS, repair_ivf
from ivf_scorer.scoring.vmaf import VmafRunner


logger = logging.getLogger(__name__)


REPORT_FILENAME = "vmaf.json"

PathLike = Union[str, Path]


class VmafScorer:
    """
    End-to-end scoring run over a capture directory.

    Attributes:
        recovery: Timestamp recovery engine used for every file
        vmaf: Runner scoring each pair
        keep_intermediate_files: Keep repaired files after scoring
        output_subdir: Output directory name inside the scanned root
        extension: Capture file extension
        max_gap_seconds: Largest fillable gap, in seconds of frames

    Example:
        scorer = VmafScorer.from_settings(settings, recognizer)
        report = await scorer.calculate("/data/run-42")
    """

    def __init__(
        self,
        recovery: TimestampRecovery,
        vmaf: VmafRunner,
        keep_intermediate_files: bool = False,
        output_subdir: str = "vmaf",
        extension: str = ".ivf",
        max_gap_seconds: float = DEFAULT_MAX_GAP_SECONDS,
    ) -> None:
        self.recovery = recovery
        self.vmaf = vmaf
        self.keep_intermediate_files = keep_intermediate_files
        self.output_subdir = output_subdir
        self.extension = extension
        self.max_gap_seconds = max_gap_seconds

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        recognizer: Recognizer,
        preview: Optional[bool] = None,
        keep_intermediate_files: Optional[bool] = None,
    ) -> "VmafScorer":
        """Build a scorer from configuration, with per-run overrides."""
        recovery = TimestampRecovery(
            recognizer,
            workers=settings.worker_count,
            confidence_threshold=settings.recognition.confidence_threshold,
            clock_charset=settings.recognition.clock_charset,
            name_charset=settings.recognition.name_charset,
        )
        vmaf = VmafRunner(
            ffmpeg_path=settings.scoring.ffmpeg_path,
            model_path=settings.scoring.model_path,
            threads=settings.thread_count,
            preview=settings.scoring.preview if preview is None else preview,
        )
        return cls(
            recovery,
            vmaf,
            keep_intermediate_files=(
                settings.scoring.keep_intermediate_files
                if keep_intermediate_files is None
                else keep_intermediate_files
            ),
            output_subdir=settings.scoring.output_subdir,
            extension=settings.scoring.extension,
            max_gap_seconds=settings.repair.max_gap_seconds,
        )

    def collect_files(self, root: Path) -> List[Path]:
        """Capture files under `root`, excluding the output directory."""
        out_dir = root / self.output_subdir
        return sorted(
            path
            for path in root.rglob(f"*{self.extension}")
            if path.is_file() and out_dir not in path.parents
        )

    async def calculate(self, root_dir: PathLike) -> Dict[str, PooledMetrics]:
        """
        Repair, pair and score every capture file under `root_dir`.

        Returns:
            Degraded stream base name -> pooled metrics

        Raises:
            FileNotFoundError: If `root_dir` does not exist
        """
        root = Path(root_dir)
        if not await asyncio.to_thread(root.exists):
            raise FileNotFoundError(f"VMAF path {root} does not exist")

        files = await asyncio.to_thread(self.collect_files, root)
        logger.info(f"calculate {root}: {len(files)} capture files")
        out_dir = root / self.output_subdir
        await asyncio.to_thread(out_dir.mkdir, parents=True, exist_ok=True)

        reference: Dict[str, str] = {}
        degraded: Dict[str, List[str]] = defaultdict(list)

        for path in files:
            try:
                repaired = await repair_ivf(
                    path, out_dir, self.recovery, self.max_gap_seconds
                )
            except Exception as e:
                logger.error(f"repair_ivf error ({path}): {e}")
                continue

            name = repaired.participant_display_name
            if is_degraded_output(repaired.out_file_path):
                degraded[name].append(repaired.out_file_path)
            else:
                if name in reference:
                    logger.warning(
                        f"Participant {name}: reference {reference[name]} "
                        f"replaced by {repaired.out_file_path}"
                    )
                reference[name] = repaired.out_file_path

        for name in degraded.keys() - reference.keys():
            logger.warning(f"Participant {name}: no reference stream, degraded streams not scored")

        report: Dict[str, PooledMetrics] = {}
        for name, reference_path in reference.items():
            for degraded_path in degraded.get(name, []):
                try:
                    report[Path(degraded_path).stem] = await self.vmaf.run(
                        reference_path, degraded_path
                    )
                except Exception as e:
                    logger.error(f"runVmaf error ({degraded_path}): {e}")
                finally:
                    if not self.keep_intermediate_files:
                        await asyncio.to_thread(Path(degraded_path).unlink, missing_ok=True)
            if not self.keep_intermediate_files:
                await asyncio.to_thread(Path(reference_path).unlink, missing_ok=True)

        report_path = out_dir / REPORT_FILENAME
        await asyncio.to_thread(
            report_path.write_text, ScoreReport(report).model_dump_json(indent=2)
        )
        logger.info(f"calculate {root}: {len(report)} pairs scored, report at {report_path}")

        return report
