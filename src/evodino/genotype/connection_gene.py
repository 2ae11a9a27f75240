"""
NEAT Connection Gene Module

This module implements the ConnectionGene class for the
NEAT (NeuroEvolution of Augmenting Topologies) algorithm.

Classes:
    ConnectionGene: Gene encoding a weighted connection between nodes
"""

import random

class ConnectionGene:
    """
    A gene describing a weighted connection between two nodes in a Neural Network.

    Each connection gene represents a directed edge in the neural network graph,
    connecting a source node to a destination node with an associated weight.
    Connection genes are uniquely identified by their innovation number, which
    serves as a historical marker enabling proper gene alignment during crossover.

    Connections can be enabled or disabled, allowing NEAT to preserve structural
    information while temporarily deactivating pathways.

    Public Attributes:
        node_in:    ID of the source node
        node_out:   ID of the destination node
        weight:     Weight of the connection
        enabled:    Whether this connection is active in the network
        innovation: Innovation number uniquely identifying this connection

    Public Methods:
        mutate(strength): Stochastically reset or perturb the connection weight
    """

    # Fraction of weight mutations which replace the weight instead of perturbing it
    REPLACE_PROBABILITY = 0.1

    def __init__(self,
                 node_in   : int,
                 node_out  : int,
                 weight    : float,
                 innovation: int,
                 enabled   : bool = True):
        """
        Initialize a connection gene.

        Parameters:
            node_in:    ID of the source node
            node_out:   ID of the destination node
            weight:     Weight of the connection
            innovation: Number uniquely identifying this connection
            enabled:    Whether this connection is active in the network
        """
        self.node_in   : int   = node_in
        self.node_out  : int   = node_out
        self.weight    : float = weight
        self.enabled   : bool  = enabled
        self.innovation: int   = innovation

    def mutate(self, strength: float) -> None:
        """
        Mutate the weight of the connection.

        Mutating the weight can be accomplished in two ways:
         + replacing the current value by a new one drawn from uniform(-1, 1)
         + modifying the current value additively by strength * uniform(-1, 1)
        """
        if random.random() < self.REPLACE_PROBABILITY:
            self.weight = random.uniform(-1.0, 1.0)
        else:
            self.weight += random.uniform(-1.0, 1.0) * strength

    def to_dict(self) -> dict:
        return {
            "innovation": self.innovation,
            "from"      : self.node_in,
            "to"        : self.node_out,
            "weight"    : self.weight,
            "enabled"   : self.enabled
        }

    def __repr__(self):
        return (f"ConnectionGene(node_in={self.node_in:03d}, node_out={self.node_out:03d}, "
                f"weight={self.weight:+.6f}, enabled={self.enabled}, innovation={self.innovation:03d})")

    def __str__(self):
        s  = f"[{self.innovation:03d},{'E' if self.enabled else 'D'},"
        s += f"{self.node_in:02d}=>{self.node_out:02d},{self.weight:+.02f}]"
        return s
