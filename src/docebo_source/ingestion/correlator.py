"""
Correlator Module - Build course records and emit them.
=======================================================

Joins each loaded course detail with the related-course list of the same
id, builds the CourseNode and stamps it with a content digest computed
over every field except the digest itself.
"""

from typing import Iterable, Optional

from docebo_source.shared.logging import StageTimer, get_logger
from docebo_source.shared.schemas import CourseDetail, CourseNode, RelatedCourseList
from docebo_source.shared.utils import compute_content_digest
from docebo_source.sinks import RecordSink

logger = get_logger(__name__)


def node_fingerprint(node: CourseNode) -> str:
    """Content digest of a node, independent of any digest it already carries."""
    return compute_content_digest(node.content_payload())


def build_course_node(
    detail: CourseDetail,
    related: Optional[RelatedCourseList] = None,
) -> CourseNode:
    """Build a node from a detail and its related list and set its digest."""
    node = CourseNode.from_detail(detail, related)
    node.internal.content_digest = node_fingerprint(node)
    return node


class Correlator:
    """Correlates course details with related lists and feeds a sink."""

    def correlate(
        self,
        details: Iterable[CourseDetail],
        related_lists: Iterable[RelatedCourseList],
    ) -> list[CourseNode]:
        """
        Build one node per detail, in detail order.

        A detail without a matching related list gets no relatedCourses.
        """
        related_by_id: dict[str, RelatedCourseList] = {}
        for related in related_lists:
            related_by_id.setdefault(related.id, related)

        return [build_course_node(d, related_by_id.get(d.key)) for d in details]

    def emit(self, nodes: Iterable[CourseNode], sink: RecordSink) -> int:
        """
        Hand every node to the sink.

        Returns:
            Number of records emitted
        """
        nodes = list(nodes)
        logger.info(f"Docebo: Creating {len(nodes)} Course nodes")

        with StageTimer(logger, "Course nodes created"):
            for node in nodes:
                if node.internal.content_digest is None:
                    node.internal.content_digest = node_fingerprint(node)
                sink.accept(node.to_record(), node.internal.content_digest)

        return len(nodes)
