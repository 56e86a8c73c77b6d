"""
Node Metadata for Pipeline Visualization.

Annotates pipeline nodes with the state fields they read and write, the
services they call, and the document status they leave behind.

Usage:
    from pagecomposer.pipelines.metadata import NodeMetadata

    @dataclass
    class MyNode(BaseNode[MyState]):
        '''Node description.'''

        metadata: ClassVar[NodeMetadata] = NodeMetadata(
            inputs=["document_id"],
            outputs=["assembly"],
            services=["assembler.assemble"],
            writes_status="in_production",
        )

        async def run(self, ctx): ...
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class NodeMetadata:
    """
    Metadata for pipeline node visualization.

    Attributes:
        inputs: State fields read by this node
        outputs: State fields written by this node
        services: Service methods called (e.g., "injector.inject")
        writes_status: Document status written by this node, if it writes one
    """

    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)
    services: List[str] = field(default_factory=list)
    writes_status: Optional[str] = None

    @property
    def writes_document(self) -> bool:
        return self.writes_status is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "inputs": self.inputs,
            "outputs": self.outputs,
            "services": self.services,
            "writes_status": self.writes_status,
            "writes_document": self.writes_document,
        }


def get_node_metadata(node_class) -> Optional[NodeMetadata]:
    """Extract metadata from a node class if available."""
    return getattr(node_class, "metadata", None)


def get_pipeline_summary(node_classes: List) -> dict:
    """
    Summarize which nodes write the document and which services they use.

    Args:
        node_classes: List of node classes in the pipeline

    Returns:
        Dict with node_count, writer_nodes and services
    """
    writers = []
    services = []

    for node_class in node_classes:
        metadata = get_node_metadata(node_class)
        if metadata is None:
            continue
        if metadata.writes_document:
            writers.append(node_class.__name__)
        for service in metadata.services:
            if service not in services:
                services.append(service)

    return {
        "node_count": len(node_classes),
        "writer_nodes": writers,
        "services": services,
    }
