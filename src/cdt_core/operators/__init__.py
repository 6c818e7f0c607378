"""Foliation check/fix and simplex/edge classification over an engine triangulation."""

from .foliation import (
    check_timeslices,
    fix_timeslices,
    label_span,
)

from .classify import (
    classify_3_simplices,
    reclassify_3_simplices,
    classify_edges,
    simplex_tags,
    top_multiplicity,
)
