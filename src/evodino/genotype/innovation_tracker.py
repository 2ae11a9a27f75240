"""
NEAT Innovation Tracker Module

This module implements the InnovationTracker class for the
NEAT (NeuroEvolution of Augmenting Topologies) algorithm.

Classes:
    InnovationTracker: Tracker for innovation numbers and node IDs within one training run
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from evodino.genotype.connection_gene import ConnectionGene

class InnovationTracker:
    """
    Tracks structural changes across all genomes of one training run.
    Ensures the same structural change gets the same innovation
    number (for connections) and ID (for nodes).

    A tracker is owned by the population that created it and is passed
    explicitly to every genome operation that needs it, so several
    independent runs can coexist.

    Public Methods:
        get_innovation_number(node_in, node_out): Innovation number of a connection
        get_split_IDs(conn_to_split):             Node ID and innovation numbers for a split
        find_split_IDs(conn_to_split):            The same, without assigning new IDs
        register_node_id(node_id):                Keep future node IDs above an existing one

    Public Properties:
        current: Highest innovation number assigned so far (-1 if none)
    """

    def __init__(self, num_inputs: int, num_outputs: int):
        """
        Parameters:
            num_inputs:  Number of input nodes of every genome in the run
            num_outputs: Number of output nodes of every genome in the run
        """
        self._next_innovation_number: int = 0
        self._next_node_id          : int = num_inputs + num_outputs

        # For each connection ever created, map its endpoints to its innovation number
        self._innovation_numbers: dict[tuple[int, int], int] = {}

        # When a connection is split, tracks what node was created and
        # what innovation numbers were assigned to the new connections.
        self._split_IDs: dict[int, tuple[int, int, int]] = {}

    @property
    def current(self) -> int:
        return self._next_innovation_number - 1

    @property
    def next_node_id(self) -> int:
        return self._next_node_id

    def get_innovation_number(self, node_in: int, node_out: int) -> int:
        """
        Get innovation number for a connection, identified by its endpoints.
        Returns existing innovation number if this connection was created
        before, otherwise assigns a new innovation number.

        Parameters:
            node_in:  node ID for the 'from' end of the connection
            node_out: node ID for the 'to'   end of the connection

        Returns:
            connection ID (a.k.a. innovation number)
        """
        key = (node_in, node_out)

        # This is a new connection
        if key not in self._innovation_numbers:
            self._innovation_numbers[key] = self._next_innovation_number
            self._next_innovation_number += 1

        return self._innovation_numbers[key]

    def get_split_IDs(self, conn_to_split: 'ConnectionGene') -> tuple[int, int, int]:
        """
        Get node ID and innovation numbers for splitting a connection.
        If this exact connection has been split before, returns the same
        values, otherwise creates new ones.

        Parameters:
            conn_to_split: the connection being split

        Returns:
            3-tuple: (new_node_id, innovation1, innovation2)
            innovation1 is for the connection from the 'from' node of 'conn_to_split' to the new node
            innovation2 is for the connection from the new node to the 'to' node of 'conn_to_split'
        """
        key = conn_to_split.innovation

        # This connection hasn't been split before
        if key not in self._split_IDs:

            new_node_id = self._next_node_id
            self._next_node_id += 1

            innov1 = self.get_innovation_number(conn_to_split.node_in, new_node_id)
            innov2 = self.get_innovation_number(new_node_id, conn_to_split.node_out)

            self._split_IDs[key] = (new_node_id, innov1, innov2)

        return self._split_IDs[key]

    def find_split_IDs(self, conn_to_split: 'ConnectionGene') -> tuple[int, int, int] | None:
        """
        Like get_split_IDs, but only looks up a split made before: returns None
        (and assigns nothing) if 'conn_to_split' has never been split.
        """
        return self._split_IDs.get(conn_to_split.innovation)

    def register_node_id(self, node_id: int) -> None:
        """
        Make sure node IDs handed out in the future are greater than 'node_id'.
        Used when genomes created elsewhere (e.g. imported) join this run.
        """
        self._next_node_id = max(self._next_node_id, node_id + 1)
