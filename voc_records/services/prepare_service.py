"""
Preparation pipeline for VOC Records.
Parses every annotation, builds the global label vocabulary, splits the
dataset and writes one record file per split plus the label map.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple
import threading
import time

from .config_service import PrepareConfig
from .interfaces import ILogger, IPrepareService
from .logging_service import NullLogger
from ..core.discovery import Pair, discover_pairs
from ..core.errors import MissingAnnotation, OutputWriteError, VocRecordsError
from ..core.example import encode_entry
from ..core.fsops import safe_mkdirs
from ..core.label_map import write_label_map
from ..core.models import DatasetEntry
from ..core.progress import Progress, ProgressCallback
from ..core.report import PrepareReport, write_report
from ..core.splitting import TEST, TRAIN, split_dataset
from ..core.tfrecord import RecordWriter
from ..core.vocabulary import LabelVocabulary, build_vocabulary
from ..core.voc_io import read_annotation


class PrepareService(IPrepareService):
    """Concrete implementation of the preparation pipeline."""

    def __init__(self, logger: Optional[ILogger] = None):
        self._logger = logger or NullLogger()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Phase one: parsing
    # ------------------------------------------------------------------
    def load_entries(self, pairs: Sequence[Pair], workers: int = 1) -> List[DatasetEntry]:
        """Parse every annotation, keeping input order. The first failure aborts."""
        def load(pair: Pair) -> DatasetEntry:
            image_path, xml_path = pair
            if not Path(xml_path).is_file():
                raise MissingAnnotation("Image has no matching XML annotation", path=image_path)
            annotation = read_annotation(xml_path, default_filename=Path(image_path).name)
            return DatasetEntry(image_path=image_path, annotation=annotation)

        if workers <= 1 or len(pairs) <= 1:
            return [load(p) for p in pairs]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="parse") as pool:
            # map re-raises the first error in input order
            return list(pool.map(load, pairs))

    # ------------------------------------------------------------------
    # Phase two: encoding
    # ------------------------------------------------------------------
    def write_split(self, entries: Sequence[DatasetEntry], vocabulary: LabelVocabulary,
                    path: Path, progress: Optional[Progress] = None,
                    progress_cb: Optional[ProgressCallback] = None) -> int:
        """Encode entries into one record file; the file exists even when entries is empty."""
        with RecordWriter(path) as writer:
            for entry in entries:
                writer.write(encode_entry(entry, vocabulary))
                if progress is not None:
                    with self._lock:
                        progress.step()
                        if progress_cb:
                            progress_cb(progress)
            count = writer.count
        self._logger.info(f"Wrote {count} examples", path=str(path))
        return count

    def run(self, config: PrepareConfig, progress_cb: Optional[ProgressCallback] = None,
            pairs: Optional[Sequence[Pair]] = None) -> PrepareReport:
        try:
            return self._prepare(config, progress_cb, pairs)
        except VocRecordsError as e:
            self._logger.error(f"Preparation failed: {e.message}", exception=e)
            raise
        finally:
            self._logger.detach_run_log()

    def _prepare(self, config: PrepareConfig, progress_cb: Optional[ProgressCallback],
                 pairs: Optional[Sequence[Pair]]) -> PrepareReport:
        report = PrepareReport()
        started = time.perf_counter()

        if pairs is None:
            pairs = discover_pairs(config.input_dirs)
        else:
            # fail on a missing annotation before anything is parsed or written
            for image_path, xml_path in pairs:
                if not Path(xml_path).is_file():
                    raise MissingAnnotation("Image has no matching XML annotation", path=image_path)
        self._logger.info(f"Found {len(pairs)} annotated images")

        entries = self.load_entries(pairs, workers=config.workers)

        vocabulary = build_vocabulary(
            (e.annotation for e in entries), policy=config.label_policy, start_id=config.start_id
        )
        self._logger.info(f"Label vocabulary has {len(vocabulary)} labels", policy=config.label_policy)

        split = split_dataset(entries, test_ratio=config.test_ratio, seed=config.seed)
        if not split.test:
            self._logger.warning("Test split is empty, an empty record file will be written")
        if not split.train:
            self._logger.warning("Train split is empty, an empty record file will be written")

        try:
            safe_mkdirs(config.output_dir)
            run_log = self._logger.attach_run_log(config.output_dir) if config.run_log else None
        except OSError as e:
            raise OutputWriteError("Cannot create output directory", path=config.output_dir, cause=e)
        if run_log is not None:
            # earlier messages only reached the console
            self._logger.info("Run started", images=len(pairs), labels=len(vocabulary),
                              seed=config.seed, test_ratio=config.test_ratio)

        progress = Progress(total=len(entries), stage="encode")
        lanes: Dict[str, Tuple[DatasetEntry, ...]] = {TRAIN: split.train, TEST: split.test}

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="encode") as pool:
            futures = {
                name: pool.submit(self.write_split, subset, vocabulary,
                                  config.record_path(name), progress, progress_cb)
                for name, subset in lanes.items()
            }
            counts = {name: fut.result() for name, fut in futures.items()}

        label_map_path = write_label_map(vocabulary, config.label_map_path)

        report.examples = len(entries)
        report.train = counts[TRAIN]
        report.test = counts[TEST]
        report.labels = dict(vocabulary.items())
        report.outputs = {
            TRAIN: str(config.record_path(TRAIN)),
            TEST: str(config.record_path(TEST)),
            "label_map": str(label_map_path),
        }
        if run_log is not None:
            report.outputs["log"] = str(run_log)
        report.finish()
        if config.write_report:
            path = write_report(config.output_dir, report)
            self._logger.debug(f"Report written to {path}")

        self._logger.debug(f"Performance: prepare took {(time.perf_counter() - started) * 1000.0:.2f}ms",
                           examples=report.examples)
        self._logger.info(report.summary())
        return report
