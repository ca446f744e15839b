"""`zonecell` - multi-resolution H3 zone indexing with graph loading.

Subpackages:
- spatial: Geometry reduction, ancestry, backbone partitions
- sources: Dataset catalog and readers
- pipeline: Orchestrator, processor, batching, run tracking
- graph: Cypher builders, Neo4j client, loader
- pathways: Career-pathways graph
"""

__version__ = "0.1.0"
