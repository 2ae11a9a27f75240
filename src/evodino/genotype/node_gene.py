"""
NEAT Node Gene Module.

This module implements the NodeGene class and NodeType enumeration
for the NEAT (NeuroEvolution of Augmenting Topologies) algorithm.

Classes:
    NodeType: Enumeration for node types (INPUT, HIDDEN, OUTPUT)
    NodeGene: Gene encoding a single network node
"""

from enum import Enum

class NodeType(Enum):
    """
    Nodes come in three types: input, hidden, output.
    """
    INPUT  = "input"
    HIDDEN = "hidden"
    OUTPUT = "output"

class NodeGene:
    """
    A gene describing a node in a Neural Network.

    Besides its ID and type, a node carries a real-valued 'layer': its
    topological depth. Input nodes sit at depth 0.0, output nodes at 1.0,
    and a hidden node created by splitting a connection sits halfway between
    the two ends of that connection. The layer is only used to order the
    evaluation of nodes and to keep the network feed-forward: a connection
    may only go from a lower to a higher layer.

    Hidden nodes apply ReLU to their weighted input, output nodes are linear.

    Public Attributes:
        id:    Unique identifier for this node
        type:  Type of node (INPUT, HIDDEN, or OUTPUT)
        layer: Topological depth of the node
    """

    def __init__(self, node_id: int, node_type: NodeType, layer: float):
        """
        Initialize a node gene.

        Parameters:
            node_id:   Unique identifier for this node
            node_type: Type of node (INPUT, HIDDEN, or OUTPUT)
            layer:     Topological depth used for evaluation ordering
        """
        self.id   : int      = node_id
        self.type : NodeType = node_type
        self.layer: float    = layer

    def to_dict(self) -> dict:
        return {"id": self.id, "type": self.type.value, "layer": self.layer}

    def __repr__(self):
        return f"NodeGene(node_id={self.id:03d}, node_type=NodeType.{self.type.name}, layer={self.layer})"

    def __str__(self):
        return f"[{self.type.value[0].upper()}{self.id},{self.layer:.3f}]"
