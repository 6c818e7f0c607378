"""
Builders - point generation and the full foliated construction.

EXPORTS:
- Leaves: make_2_sphere, make_foliated_spheres, points_per_timeslice
- Insertion: insert_into_s3
- Full build: make_s3_triangulation (alias build_foliated_triangulation)
"""

from .spheres import make_2_sphere, make_foliated_spheres, points_per_timeslice
from .foliated import insert_into_s3, make_s3_triangulation, build_foliated_triangulation
