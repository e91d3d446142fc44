"""
Annotation pipeline: normalize, map, draw, serialize.

Highlights and freehand strokes drawn on a browser canvas are burned into
the PDF in a single sequential pass. Annotations are applied in list order
so later marks stack on top of earlier ones on the same page.

The batch is best-effort: an annotation with a bad page index, too few
stroke points or an unknown kind is skipped and reported, never raised.
Only failures to load or serialize the document abort the operation, and
they surface as ``AnnotationError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .document_store import DocumentHandle, DocumentStore, PyMuPdfStore
from .errors import AnnotationError, DocumentLoadError, SerializationError
from .geometry import PageGeometry, map_points, map_rect
from .models import Annotation, FreehandStroke, Highlight, LineCap, parse_annotation

logger = logging.getLogger(__name__)

HIGHLIGHT_OPACITY = 0.3
STROKE_LINE_CAP = LineCap.ROUND


@dataclass(frozen=True)
class AnnotationSkipped:
    """One annotation left out of the batch, by its position in the request."""

    position: int
    reason: str


@dataclass
class AnnotationOutcome:
    content: bytes
    applied: int
    skipped: List[AnnotationSkipped] = field(default_factory=list)


def normalize_annotations(
    raw_annotations: Iterable[Any],
    page_count: int,
) -> Tuple[List[Tuple[int, Annotation]], List[AnnotationSkipped]]:
    """
    Keep the annotations that can be drawn on a document of ``page_count`` pages.

    Accepts decoded JSON entries or already-built annotation models. Returns
    the kept annotations paired with their request position, plus a record
    for every entry left out.
    """
    kept: List[Tuple[int, Annotation]] = []
    skipped: List[AnnotationSkipped] = []

    for position, raw in enumerate(raw_annotations):
        annotation = raw if isinstance(raw, (Highlight, FreehandStroke)) else parse_annotation(raw)
        if annotation is None:
            skipped.append(AnnotationSkipped(position, "unrecognized annotation kind"))
        elif not 0 <= annotation.page_index < page_count:
            skipped.append(AnnotationSkipped(position, f"page index {annotation.page_index} out of range"))
        else:
            kept.append((position, annotation))

    return kept, skipped


def apply_annotation(document: DocumentHandle, annotation: Annotation, page: PageGeometry) -> bool:
    """
    Draw one annotation onto its page. Returns False when it was skipped.
    """
    if isinstance(annotation, Highlight):
        rect = map_rect(annotation.rect, annotation.source_canvas_size, page)
        document.draw_filled_rect(
            annotation.page_index,
            rect.x,
            rect.y,
            rect.width,
            rect.height,
            annotation.color,
            HIGHLIGHT_OPACITY,
        )
        return True

    if isinstance(annotation, FreehandStroke):
        if len(annotation.points) < 2:
            return False
        points = map_points(annotation.points, annotation.source_canvas_size, page)
        document.draw_stroked_path(
            annotation.page_index,
            points,
            annotation.color,
            annotation.stroke_width,
            STROKE_LINE_CAP,
        )
        return True

    return False


def run_annotation_pipeline(
    document_bytes: bytes,
    annotations: Sequence[Any],
    store: Optional[DocumentStore] = None,
) -> AnnotationOutcome:
    """
    Burn ``annotations`` into the PDF given as ``document_bytes``.

    Raises:
        AnnotationError: If the document cannot be loaded or serialized.
    """
    store = store or PyMuPdfStore()

    try:
        document = store.load_document(document_bytes)
    except DocumentLoadError as exc:
        raise AnnotationError(str(exc), cause=exc) from exc

    try:
        kept, skipped = normalize_annotations(annotations, document.page_count())
        applied = 0
        geometry_cache: dict[int, PageGeometry] = {}

        for position, annotation in kept:
            page_index = annotation.page_index
            if page_index not in geometry_cache:
                geometry_cache[page_index] = document.page_geometry(page_index)

            if apply_annotation(document, annotation, geometry_cache[page_index]):
                applied += 1
            else:
                skipped.append(AnnotationSkipped(position, "freehand stroke needs at least 2 points"))

        try:
            content = document.serialize()
        except SerializationError as exc:
            raise AnnotationError(str(exc), cause=exc) from exc
    finally:
        document.close()

    skipped.sort(key=lambda entry: entry.position)
    for entry in skipped:
        logger.info(f"Skipped annotation #{entry.position}: {entry.reason}")
    logger.info(f"Applied {applied} annotation(s), skipped {len(skipped)}")

    return AnnotationOutcome(content=content, applied=applied, skipped=skipped)


def apply_annotations(
    document_bytes: bytes,
    annotations: Sequence[Any],
    store: Optional[DocumentStore] = None,
) -> bytes:
    """Return the annotated document bytes; see ``run_annotation_pipeline``."""
    return run_annotation_pipeline(document_bytes, annotations, store).content
