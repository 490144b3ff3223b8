# kitchen_inventory/adapters/detection.py
"""
Detection adapter: object-detector output -> inventory upserts.

The detector itself (coco-ssd, YOLO, ...) is an external collaborator; it only
has to return labelled bounding boxes per frame. Per frame we count boxes per
recognised label and send one upsert per label. There is no smoothing across
frames: an item seen in N frames is added N times.
"""
from __future__ import annotations
import inspect
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import (
    Any, AsyncIterable, Callable, Dict, Iterable, List, Mapping, Optional, Protocol,
    Sequence, Tuple, Union,
)

from kitchen_inventory.db_models import StockStatus
from kitchen_inventory.errors import InventoryError
from kitchen_inventory.services.reconciliation import ReconciliationService, derive_status

logger = logging.getLogger(__name__)

BBox = Tuple[float, float, float, float]   # x, y, width, height


@dataclass
class Detection:
    label: str
    confidence: float = 1.0
    bbox: BBox = (0.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Detection":
        """
        Accepts both {label, confidence, boundingBox} and coco-ssd {class, score, bbox}.

        Raises ValueError when confidence or bbox is not numeric. A missing or
        null confidence counts as 1.0.
        """
        label = raw.get("label", raw.get("class"))
        confidence = raw.get("confidence", raw.get("score"))
        bbox = raw.get("bbox", raw.get("boundingBox"))
        try:
            confidence = 1.0 if confidence is None else float(confidence)
            bbox = (0.0, 0.0, 0.0, 0.0) if bbox is None else tuple(float(v) for v in bbox)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Malformed detection {dict(raw)!r}: {e}") from e
        if len(bbox) != 4:
            raise ValueError(f"Malformed detection {dict(raw)!r}: bbox needs 4 values")
        return cls(label=str(label or ""), confidence=confidence, bbox=bbox)


class Detector(Protocol):
    def detect(self, frame: Any) -> Union[Iterable[Detection], Any]:
        """Return the detections of one frame (may be a coroutine)."""
        ...


@dataclass
class FrameReport:
    counts: Dict[str, int] = field(default_factory=dict)
    dropped: int = 0
    applied: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class DetectionAdapter:
    """Turns one frame of detections into per-label upserts."""

    def __init__(
        self,
        service: ReconciliationService,
        allow_list: Iterable[str],
        *,
        placeholder_cost: str = "100",
        expiry_days: int = 10,
        min_confidence: float = 0.0,
        status_from_total: bool = True,
        clock: Callable[[], date] = date.today,
    ):
        self.service = service
        self.allow_list = frozenset(s.strip().lower() for s in allow_list if s and s.strip())
        self.placeholder_cost = placeholder_cost
        self.expiry_days = expiry_days
        self.min_confidence = min_confidence
        self.status_from_total = status_from_total
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        service: ReconciliationService,
        settings,
        clock: Callable[[], date] = date.today,
    ) -> "DetectionAdapter":
        return cls(
            service,
            settings.DETECTION_ALLOW_LIST,
            placeholder_cost=settings.DETECTION_PLACEHOLDER_COST,
            expiry_days=settings.DETECTION_EXPIRY_DAYS,
            min_confidence=settings.DETECTION_MIN_CONFIDENCE,
            status_from_total=settings.DETECTION_STATUS_FROM_TOTAL,
            clock=clock,
        )

    def count_frame(self, detections: Sequence[Detection]) -> Dict[str, int]:
        """Units per recognised label; each bounding box is one unit."""
        counts: Dict[str, int] = {}
        for det in detections:
            label = (det.label or "").strip().lower()
            if label not in self.allow_list or det.confidence < self.min_confidence:
                continue
            counts[label] = counts.get(label, 0) + 1
        return counts

    def expiry_for_today(self) -> str:
        return (self.clock() + timedelta(days=self.expiry_days)).isoformat()

    async def process_frame(self, detections: Sequence[Detection]) -> FrameReport:
        counts = self.count_frame(detections)
        report = FrameReport(counts=counts, dropped=len(detections) - sum(counts.values()))
        if not counts:
            return report

        expiry = self.expiry_for_today()
        for label, count in counts.items():
            status: Optional[StockStatus] = None if self.status_from_total else derive_status(count)
            try:
                result = await self.service.record_observation(
                    label,
                    count,
                    cost=self.placeholder_cost,
                    expiry=expiry,
                    status=status,
                )
            except InventoryError as e:
                # best effort: this frame's update for the label is lost
                logger.warning(f"Detection upsert failed for {label!r} (count={count}): {e.message}")
                report.failed.append(label)
                continue

            report.applied.append({
                "name": result.item.name,
                "count": count,
                "quantity": result.item.quantity,
                "status": result.item.status,
                "created": result.created,
            })

        logger.debug(f"Frame processed: counts={counts} dropped={report.dropped} failed={report.failed}")
        return report

    async def run(
        self,
        frames: Union[Iterable[Any], AsyncIterable[Any]],
        detector: Detector,
    ) -> int:
        """Detect and reconcile every frame until the source stops. Returns frames processed."""
        processed = 0
        if hasattr(frames, "__aiter__"):
            async for frame in frames:
                await self._handle(frame, detector)
                processed += 1
        else:
            for frame in frames:
                await self._handle(frame, detector)
                processed += 1
        logger.info(f"Detection loop finished after {processed} frames")
        return processed

    async def _handle(self, frame: Any, detector: Detector) -> FrameReport:
        found = detector.detect(frame)
        if inspect.isawaitable(found):
            found = await found
        detections: List[Detection] = []
        for d in found:
            if isinstance(d, Detection):
                detections.append(d)
                continue
            try:
                detections.append(Detection.from_dict(d))
            except (AttributeError, ValueError) as e:
                logger.warning(f"Skipping detection: {e}")
        return await self.process_frame(detections)
