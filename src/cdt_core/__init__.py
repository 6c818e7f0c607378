"""
CDT_CORE - Foliated S3 triangulations for CDT
==============================================

NO physics. NO action. NO ergodic moves.

Structure:
    contract/   - Constants and result records
    engine/     - Delaunay engine adapter (scipy.spatial / Qhull)
    builders/   - Nested labelled spheres, insertion, full build
    operators/  - Foliation check/fix, simplex and edge classification
    analysis/   - Post-build verification

Requirements:
    Python >= 3.9
    numpy >= 1.20
    scipy >= 1.11

Entry point:
    make_s3_triangulation(simplices, timeslices) -> FoliatedTriangulation
"""

import sys

import numpy as np
import scipy


def _release(version: str) -> tuple:
    return tuple(int(p) for p in version.split('.')[:2] if p.isdigit())


if sys.version_info < (3, 9):
    raise ImportError(f"cdt_core requires Python >= 3.9, got {sys.version}")

# Minimum releases of the numerical stack
for _module, _minimum in ((np, (1, 20)), (scipy, (1, 11))):
    if _release(_module.__version__) < _minimum:
        raise ImportError(
            f"cdt_core requires {_module.__name__} >= {'.'.join(map(str, _minimum))}, "
            f"got {_module.__version__}"
        )

from . import contract
from . import engine
from . import operators
from . import builders
from . import analysis

from .builders import make_s3_triangulation, build_foliated_triangulation
