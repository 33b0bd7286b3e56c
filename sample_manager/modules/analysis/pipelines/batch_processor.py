"""
Batch Processor - analyse many independent buffers.

Uses ThreadPoolExecutor: numpy/scipy release the GIL in the heavy parts
and the pipeline is stateless, so one pipeline instance is shared.
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from tqdm import tqdm

from sample_manager.common.logging import get_logger
from sample_manager.common.logging.correlation import correlation_scope
from sample_manager.core.errors import SampleManagerError, ValidationError
from ..types import AudioBuffer, FeatureDescriptor
from .feature_extraction import FeatureExtractionPipeline

logger = get_logger(__name__)


@dataclass
class BatchItemResult:
    """Outcome for one buffer in a batch."""
    sample_id: str
    descriptor: Optional[FeatureDescriptor] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.descriptor is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sample_id': self.sample_id,
            'success': self.success,
            'descriptor': self.descriptor.to_dict() if self.descriptor else None,
            'error': self.error,
            'error_type': self.error_type,
        }


@dataclass
class BatchResult:
    """
    Result of batch processing.

    Results keep the input order regardless of completion order.
    """
    results: List[BatchItemResult]
    total: int
    successful: int
    failed: int
    total_time_sec: float

    # Category distribution over successful items
    category_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'successful': self.successful,
            'failed': self.failed,
            'total_time_sec': self.total_time_sec,
            'category_counts': self.category_counts,
            'results': [r.to_dict() for r in self.results],
        }

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.successful / self.total

    @property
    def failures(self) -> List[BatchItemResult]:
        return [r for r in self.results if not r.success]


class BatchProcessor:
    """
    Parallel batch analysis of decoded buffers.

    A failure on one buffer (DecodeError, ValidationError) is recorded in
    its BatchItemResult and does not stop the batch.

    Usage:
        processor = BatchProcessor(workers=4)
        result = processor.process([("kick", kick_buf), ("hat", hat_buf)])
        print(result.success_rate)
    """

    def __init__(
        self,
        pipeline: Optional[FeatureExtractionPipeline] = None,
        workers: int = 4,
        show_progress: bool = True,
    ):
        """
        Initialize batch processor.

        Args:
            pipeline: Pipeline instance (creates default if None)
            workers: Thread count; 1 runs sequentially in the caller's thread
            show_progress: Render a tqdm progress bar
        """
        if workers < 1:
            raise ValidationError(
                f"workers must be >= 1, got {workers}",
                data={"workers": workers},
            )
        self.pipeline = pipeline or FeatureExtractionPipeline()
        self.workers = workers
        self.show_progress = show_progress

    def process(
        self,
        items: Iterable[Tuple[str, AudioBuffer]],
        on_progress: Optional[Callable[[int, int, BatchItemResult], None]] = None,
    ) -> BatchResult:
        """
        Analyse (sample_id, buffer) pairs.

        Args:
            items: Pairs of identifier and decoded buffer
            on_progress: Callback(done_count, total, item_result)

        Returns:
            BatchResult with per-item outcomes in input order
        """
        pairs = list(items)
        total = len(pairs)
        start_time = time.time()
        results: List[Optional[BatchItemResult]] = [None] * total

        with tqdm(total=total, desc="Analyzing", unit="sample",
                  disable=not self.show_progress) as bar:
            done = 0
            for index, item_result in self._run(pairs):
                results[index] = item_result
                done += 1
                bar.update(1)
                if on_progress:
                    on_progress(done, total, item_result)

        final = [r for r in results if r is not None]
        successful = sum(1 for r in final if r.success)
        category_counts: Dict[str, int] = {}
        for r in final:
            if r.success:
                name = r.descriptor.category.value
                category_counts[name] = category_counts.get(name, 0) + 1

        batch = BatchResult(
            results=final,
            total=total,
            successful=successful,
            failed=total - successful,
            total_time_sec=time.time() - start_time,
            category_counts=category_counts,
        )
        logger.info("Batch complete", data={
            "total": batch.total,
            "successful": batch.successful,
            "failed": batch.failed,
            "time_sec": round(batch.total_time_sec, 3),
        })
        return batch

    def _run(self, pairs: List[Tuple[str, AudioBuffer]]):
        if self.workers == 1 or len(pairs) <= 1:
            for index, (sample_id, buffer) in enumerate(pairs):
                yield index, self._analyze_one(sample_id, buffer)
            return

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {
                executor.submit(self._analyze_one, sample_id, buffer): index
                for index, (sample_id, buffer) in enumerate(pairs)
            }
            for future in as_completed(futures):
                yield futures[future], future.result()

    def _analyze_one(self, sample_id: str, buffer: AudioBuffer) -> BatchItemResult:
        with correlation_scope(sample_id=sample_id):
            try:
                descriptor = self.pipeline.analyze(buffer)
            except SampleManagerError as e:
                return BatchItemResult(
                    sample_id=sample_id,
                    error=e.message,
                    error_type=e.__class__.__name__,
                )
        return BatchItemResult(sample_id=sample_id, descriptor=descriptor)
