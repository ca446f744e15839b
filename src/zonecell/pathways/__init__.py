"""Career-pathways knowledge graph bridged to the zone graph."""

from zonecell.pathways.catalog import (
    CLUSTER_MAP,
    PROGRAM_SUFFIX,
    STAGE_MAP,
    Cluster,
    resolve_cluster,
    slugify,
    stage_for,
    training_category,
)
from zonecell.pathways.builder import (
    PathwayGraph,
    build_pathway_graph,
    load_pathway_graph,
    read_programs,
)

__all__ = [
    'CLUSTER_MAP', 'PROGRAM_SUFFIX', 'STAGE_MAP', 'Cluster',
    'resolve_cluster', 'slugify', 'stage_for', 'training_category',
    'PathwayGraph', 'build_pathway_graph', 'load_pathway_graph', 'read_programs',
]
