"""
NEAT Genome Module

This module implements the Genome class for the NEAT
(NeuroEvolution of Augmenting Topologies) algorithm.

Classes:
    Genome: Complete genome representing a neural network structure
"""

import copy
import json
import math
import random

from evodino.activations                 import relu_activation
from evodino.errors                      import InvalidModelError
from evodino.genotype.connection_gene    import ConnectionGene
from evodino.genotype.innovation_tracker import InnovationTracker
from evodino.genotype.node_gene          import NodeType, NodeGene

class Genome:
    """
    A NEAT genome representing a neural network as a collection of node and connection genes.

    In the NEAT (NeuroEvolution of Augmenting Topologies) algorithm, a genome encodes
    the structure and parameters of a neural network at the genotype level. It consists of:
    - Node genes: describe network nodes (input, hidden, output) and their depth
    - Connection genes: describe weighted connections between nodes, each with a unique
      innovation number for tracking historical markings during crossover

    The genome is also directly executable: it implements the Brain capability
    ('feedforward' returns the index of the strongest output node).

    Node numbering convention:
        - Input nodes:  [0, input_size)
        - Output nodes: [input_size, input_size + output_size)
        - Hidden nodes: [input_size + output_size, ...)

    Attributes:
        node_genes:   Dictionary mapping node IDs to NodeGene objects
        conn_genes:   Dictionary mapping innovation numbers to ConnectionGene objects
        fitness:      Raw fitness of the current generation
        next_node_id: Lowest node ID not yet used by this genome

    Public Properties:
        input_nodes:  List of all input node genes
        output_nodes: List of all output node genes
        hidden_nodes: List of all hidden node genes

    Public Methods:
        feedforward(inputs):                Index of the output node with the largest value
        activate(inputs):                   Values of all output nodes
        mutate_add_node(tracker):           Split a random enabled connection
        mutate_add_connection(tracker):     Connect two unconnected nodes
        mutate_weights(rate, strength):     Reset or perturb connection weights
        mutate_toggle():                    Flip the enabled flag of a random connection
        clone():                            Create an independent copy
        to_dict() / to_json():              Serialize the genome

    Static / Class Methods:
        crossover(better, worse):                            Create offspring from two parents
        compatibility_distance(genome1, genome2, c1, c2, c3): Genetic distance between two genomes
        from_dict(data, tracker) / from_json(text, tracker):  Deserialize a genome
    """

    # Number of random node pairs tried by 'mutate_add_connection' before giving up
    ADD_CONNECTION_ATTEMPTS = 30

    # Probability that a matching gene disabled in either parent is re-enabled in the offspring
    REENABLE_PROBABILITY = 0.25

    def __init__(self,
                 input_size : int,
                 output_size: int,
                 tracker    : InnovationTracker | None = None,
                 connect    : bool = True):
        """
        Initialize a genome with input and output nodes only.

        Parameters:
            input_size:  Number of input nodes
            output_size: Number of output nodes
            tracker:     Innovation tracker of the run (required when 'connect' is True)
            connect:     Fully connect inputs to outputs with weights in (-0.5, 0.5)
        """
        self.input_size      : int   = input_size
        self.output_size     : int   = output_size
        self.fitness         : float = 0.0
        self.adjusted_fitness: float = 0.0
        self.next_node_id    : int   = input_size + output_size

        self.node_genes: dict[int, NodeGene]       = {}  # node ID => node gene
        self.conn_genes: dict[int, ConnectionGene] = {}  # innovation number => connection gene

        # Input nodes sit at depth 0, output nodes at depth 1
        for i in range(input_size):
            self.node_genes[i] = NodeGene(i, NodeType.INPUT, 0.0)
        for i in range(output_size):
            node_id = input_size + i
            self.node_genes[node_id] = NodeGene(node_id, NodeType.OUTPUT, 1.0)

        if connect:
            if tracker is None:
                raise ValueError("An innovation tracker is needed to connect a new genome")
            for i in range(input_size):
                for j in range(output_size):
                    node_out   = input_size + j
                    innovation = tracker.get_innovation_number(i, node_out)
                    weight     = random.uniform(-1.0, 1.0) * 0.5
                    self.conn_genes[innovation] = ConnectionGene(i, node_out, weight, innovation)

    @property
    def input_nodes(self) -> list[NodeGene]:
        return [node for node in self.node_genes.values() if node.type == NodeType.INPUT]

    @property
    def output_nodes(self) -> list[NodeGene]:
        return [node for node in self.node_genes.values() if node.type == NodeType.OUTPUT]

    @property
    def hidden_nodes(self) -> list[NodeGene]:
        return [node for node in self.node_genes.values() if node.type == NodeType.HIDDEN]

    @property
    def num_enabled_connections(self) -> int:
        return sum(1 for conn in self.conn_genes.values() if conn.enabled)

    # ------------------------------------------------------------------
    # Evaluation

    def activate(self, inputs) -> list[float]:
        """
        Propagate an input vector through the network.

        Non-input nodes are processed in ascending layer order. Each one sums
        'weight * source value' over its enabled incoming connections, then
        applies ReLU (hidden nodes) or nothing (output nodes).

        Parameters:
            inputs: Vector of length 'input_size'

        Returns:
            The values of the output nodes, in node ID order
        """
        if len(inputs) != self.input_size:
            raise ValueError(f"Expected {self.input_size} inputs, got {len(inputs)}")

        values = {i: float(inputs[i]) for i in range(self.input_size)}

        incoming: dict[int, list[ConnectionGene]] = {}
        for conn in self.conn_genes.values():
            if conn.enabled:
                incoming.setdefault(conn.node_out, []).append(conn)

        for node in sorted(self.node_genes.values(), key=lambda n: n.layer):
            if node.type == NodeType.INPUT:
                continue
            total = 0.0
            for conn in incoming.get(node.id, []):
                total += values.get(conn.node_in, 0.0) * conn.weight
            values[node.id] = float(relu_activation(total)) if node.type == NodeType.HIDDEN else total

        return [values.get(self.input_size + i, 0.0) for i in range(self.output_size)]

    def feedforward(self, inputs) -> int:
        """
        Return the index of the output node with the largest value
        (ties are resolved to the lowest index).
        """
        outputs = self.activate(inputs)
        best_index = 0
        for i, value in enumerate(outputs):
            if value > outputs[best_index]:
                best_index = i
        return best_index

    # ------------------------------------------------------------------
    # Mutations

    def mutate_add_node(self, tracker: InnovationTracker) -> None:
        """
        Split an existing connection by adding a new node.

        The connection to split is selected at random from the enabled connections
        this genome has not split before, and gets disabled. The new hidden node
        sits halfway (in depth) between the ends of the split connection. The
        connection into the new node has weight 1.0 and the connection out of it
        inherits the old weight, so that the split initially leaves the function
        computed by the network unchanged.

        A connection that was split and later re-enabled (by crossover or a toggle
        mutation) is not split again: the tracker would hand back the hidden node
        and connections this genome already holds, with their evolved weights.
        """
        candidates = [gene for gene in self.conn_genes.values() if gene.enabled and self._can_split(gene, tracker)]
        if not candidates:
            return
        split_conn_gene = random.choice(candidates)

        layer_in  = self.node_genes[split_conn_gene.node_in].layer
        layer_out = self.node_genes[split_conn_gene.node_out].layer
        new_layer = (layer_in + layer_out) / 2
        if not layer_in < new_layer < layer_out:
            return  # depths too close to be told apart

        split_conn_gene.enabled = False

        # From the tracker, get the ID for the new node and the innovation
        # numbers (connection IDs) for the two new connections
        new_node_id, innov1, innov2 = tracker.get_split_IDs(split_conn_gene)

        self.node_genes[new_node_id] = NodeGene(new_node_id, NodeType.HIDDEN, new_layer)
        self.next_node_id = max(self.next_node_id, new_node_id + 1)

        self.conn_genes[innov1] = ConnectionGene(split_conn_gene.node_in, new_node_id, 1.0, innov1)
        self.conn_genes[innov2] = ConnectionGene(new_node_id, split_conn_gene.node_out, split_conn_gene.weight, innov2)

    def _can_split(self, conn_gene: ConnectionGene, tracker: InnovationTracker) -> bool:
        split_IDs = tracker.find_split_IDs(conn_gene)
        if split_IDs is None:
            return True
        new_node_id, innov1, innov2 = split_IDs
        return new_node_id not in self.node_genes and innov1 not in self.conn_genes and innov2 not in self.conn_genes

    def mutate_add_connection(self, tracker: InnovationTracker) -> None:
        """
        Add a new connection between two existing nodes.

        The nodes representing the two ends of the new connection are selected at
        random, however the connection must go from a lower to a higher layer
        (which keeps the network feed-forward) and the two nodes must not already
        be connected. The method gives up silently after a fixed number of failed
        attempts.
        """
        connected_nodes = {(conn.node_in, conn.node_out) for conn in self.conn_genes.values()}
        nodes = list(self.node_genes.values())

        for _ in range(self.ADD_CONNECTION_ATTEMPTS):
            node_from = random.choice(nodes)
            node_to   = random.choice(nodes)

            if node_from.id == node_to.id:
                continue
            if node_from.layer >= node_to.layer:
                continue
            if (node_from.id, node_to.id) in connected_nodes:
                continue

            innovation = tracker.get_innovation_number(node_from.id, node_to.id)
            weight     = random.uniform(-1.0, 1.0)
            self.conn_genes[innovation] = ConnectionGene(node_from.id, node_to.id, weight, innovation)
            return

    def mutate_weights(self, rate: float, strength: float) -> None:
        """
        With probability 'rate', mutate the weight of each connection.
        """
        for conn in self.conn_genes.values():
            if random.random() < rate:
                conn.mutate(strength)

    def mutate_toggle(self) -> None:
        """
        Flip the enabled flag of a randomly chosen connection.
        """
        if self.conn_genes:
            conn = random.choice(list(self.conn_genes.values()))
            conn.enabled = not conn.enabled

    # ------------------------------------------------------------------
    # Reproduction

    def clone(self) -> 'Genome':
        """
        Create an independent copy of the genome (with fitness reset to 0).
        """
        genome = Genome(self.input_size, self.output_size, connect=False)
        genome.node_genes   = {nid: copy.copy(node) for nid, node in self.node_genes.items()}
        genome.conn_genes   = {innov: copy.copy(conn) for innov, conn in self.conn_genes.items()}
        genome.next_node_id = self.next_node_id
        return genome

    @staticmethod
    def crossover(better: 'Genome', worse: 'Genome') -> 'Genome':
        """
        Perform NEAT crossover between two parents.

        NEAT crossover rules:
        - Matching genes: randomly inherit from either parent; if either parent has
          the gene disabled, the offspring's copy may be re-enabled
        - Disjoint/excess genes: inherited from the fitter parent only

        Parameters:
            better: the fitter parent
            worse:  the less fit parent

        Returns:
            New offspring genome
        """
        offspring = Genome(better.input_size, better.output_size, connect=False)
        offspring.node_genes   = {}
        offspring.next_node_id = max(better.next_node_id, worse.next_node_id)

        for innov, conn_better in better.conn_genes.items():
            conn_worse = worse.conn_genes.get(innov)
            if conn_worse is not None:
                conn_gene = copy.copy(conn_better if random.random() < 0.5 else conn_worse)
                if not conn_better.enabled or not conn_worse.enabled:
                    if random.random() < Genome.REENABLE_PROBABILITY:
                        conn_gene.enabled = True
            else:
                conn_gene = copy.copy(conn_better)
            offspring.conn_genes[innov] = conn_gene

        # Collect the IDs of all nodes needed by the offspring's connections,
        # plus all input and output nodes (even if they have no connections)
        node_ids = set()
        for conn_gene in offspring.conn_genes.values():
            node_ids.add(conn_gene.node_in)
            node_ids.add(conn_gene.node_out)
        for node in better.node_genes.values():
            if node.type != NodeType.HIDDEN:
                node_ids.add(node.id)

        # Keep the parents' node order (input, output, then hidden nodes by creation)
        for parent in (better, worse):
            for nid, node in parent.node_genes.items():
                if nid in node_ids and nid not in offspring.node_genes:
                    offspring.node_genes[nid] = copy.copy(node)

        return offspring

    @staticmethod
    def compatibility_distance(genome1: 'Genome',
                               genome2: 'Genome',
                               c1     : float,
                               c2     : float,
                               c3     : float) -> float:
        """
        Calculate genetic distance between two genomes using the NEAT formula.

           distance = (c1 * E / N) + (c2 * D / N) + c3 * W̄

        Where:
        - E = number of excess connection genes (beyond the smaller genome's max innovation number)
        - D = number of disjoint connection genes (non-matching, within range)
        - N = number of connection genes in larger genome (at least 1)
        - W̄ = average weight difference of matching connection genes

        Returns:
            the distance between 'genome1' and 'genome2'
        """
        innovs1 = set(genome1.conn_genes.keys())
        innovs2 = set(genome2.conn_genes.keys())

        matching_innovs     =  innovs1 & innovs2
        non_matching_innovs = (innovs1 | innovs2) - matching_innovs

        max_innov1 = max(innovs1) if innovs1 else -1
        max_innov2 = max(innovs2) if innovs2 else -1
        boundary   = min(max_innov1, max_innov2)

        num_excess   = sum(1 for innov in non_matching_innovs if innov >  boundary)
        num_disjoint = sum(1 for innov in non_matching_innovs if innov <= boundary)

        avg_weight_diff = 0.0
        if matching_innovs:
            weight_diff = sum(abs(genome1.conn_genes[i].weight - genome2.conn_genes[i].weight) for i in matching_innovs)
            avg_weight_diff = weight_diff / len(matching_innovs)

        N = max(len(genome1.conn_genes), len(genome2.conn_genes), 1)
        return c1 * num_excess / N + c2 * num_disjoint / N + c3 * avg_weight_diff

    # ------------------------------------------------------------------
    # Serialization

    def to_dict(self) -> dict:
        """
        Convert the genome to a dictionary:
            {
                "inputSize": 2, "outputSize": 1, "nextNodeId": 4,
                "nodes":       [{"id": 0, "type": "input", "layer": 0.0}, ...],
                "connections": [{"innovation": 0, "from": 0, "to": 2, "weight": 0.5, "enabled": true}, ...]
            }
        """
        return {
            "inputSize"  : self.input_size,
            "outputSize" : self.output_size,
            "nextNodeId" : self.next_node_id,
            "nodes"      : [node.to_dict() for node in self.node_genes.values()],
            "connections": [conn.to_dict() for conn in sorted(self.conn_genes.values(), key=lambda c: c.innovation)]
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict, tracker: InnovationTracker | None = None) -> 'Genome':
        """
        Create a Genome from its dictionary description.

        The description is fully validated before anything else happens. Then every
        connection's endpoints are replayed through the innovation tracker, so that
        future mutations stay numbered consistently with the genomes already known
        to it; the tracker's innovation number is the one stored in the new genome.

        Parameters:
            data:    Dictionary produced by 'to_dict()'
            tracker: Innovation tracker of the run the genome joins
                     (a new one is created if None)

        Returns:
            A new Genome object with the described structure

        Raises:
            InvalidModelError: If the description is malformed or inconsistent
        """
        try:
            input_size   = int(data["inputSize"])
            output_size  = int(data["outputSize"])
            next_node_id = int(data.get("nextNodeId", 0))
            nodes_data   = [(int(n["id"]), NodeType(n["type"]), float(n["layer"])) for n in data["nodes"]]
            conns_data   = [(int(c["from"]), int(c["to"]), float(c["weight"]), bool(c.get("enabled", True)))
                            for c in data["connections"]]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise InvalidModelError(f"Invalid genome description: {e}") from e

        if input_size < 1 or output_size < 1:
            raise InvalidModelError("A genome needs at least one input and one output node")

        cls._validate_nodes(nodes_data, input_size, output_size)
        layers = {nid: layer for nid, _, layer in nodes_data}

        seen_pairs = set()
        for node_in, node_out, weight, _ in conns_data:
            if node_in not in layers or node_out not in layers:
                raise InvalidModelError(f"Connection {node_in}->{node_out} references a missing node")
            if not layers[node_in] < layers[node_out]:
                raise InvalidModelError(f"Connection {node_in}->{node_out} does not go to a deeper layer")
            if (node_in, node_out) in seen_pairs:
                raise InvalidModelError(f"Duplicate connection {node_in}->{node_out}")
            if not math.isfinite(weight):
                raise InvalidModelError(f"Connection {node_in}->{node_out} has a non-finite weight")
            seen_pairs.add((node_in, node_out))

        # Validation passed, build the genome
        if tracker is None:
            tracker = InnovationTracker(input_size, output_size)

        genome = cls(input_size, output_size, connect=False)
        genome.node_genes = {nid: NodeGene(nid, node_type, layer) for nid, node_type, layer in nodes_data}
        genome.next_node_id = max([next_node_id, input_size + output_size] + [nid + 1 for nid in layers])
        for nid in layers:
            tracker.register_node_id(nid)

        for node_in, node_out, weight, enabled in conns_data:
            innovation = tracker.get_innovation_number(node_in, node_out)
            genome.conn_genes[innovation] = ConnectionGene(node_in, node_out, weight, innovation, enabled)

        return genome

    @classmethod
    def from_json(cls, text: str, tracker: InnovationTracker | None = None) -> 'Genome':
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise InvalidModelError(f"Genome is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidModelError("Genome JSON must be an object")
        return cls.from_dict(data, tracker)

    @staticmethod
    def _validate_nodes(nodes_data: list[tuple[int, NodeType, float]], input_size: int, output_size: int) -> None:
        """
        Validate that nodes follow the numbering convention and have finite depths.

        Raises:
            InvalidModelError: If the node list is inconsistent
        """
        input_ids  = sorted(nid for nid, t, _ in nodes_data if t == NodeType.INPUT)
        output_ids = sorted(nid for nid, t, _ in nodes_data if t == NodeType.OUTPUT)
        hidden_ids = [nid for nid, t, _ in nodes_data if t == NodeType.HIDDEN]

        expected_input_ids = list(range(input_size))
        if input_ids != expected_input_ids:
            raise InvalidModelError(f"Input nodes must be numbered {expected_input_ids}, got {input_ids}")

        expected_output_ids = list(range(input_size, input_size + output_size))
        if output_ids != expected_output_ids:
            raise InvalidModelError(f"Output nodes must be numbered {expected_output_ids}, got {output_ids}")

        min_hidden_id = input_size + output_size
        for hid in hidden_ids:
            if hid < min_hidden_id:
                raise InvalidModelError(f"Hidden node {hid} has ID below minimum {min_hidden_id}")

        all_ids = input_ids + output_ids + hidden_ids
        if len(all_ids) != len(set(all_ids)):
            raise InvalidModelError("Duplicate node IDs found in node list")

        if not all(math.isfinite(layer) for _, _, layer in nodes_data):
            raise InvalidModelError("Node layers must be finite")

    def __str__(self):
        node_genes_str  = ''.join(str(node) for node in self.input_nodes)
        node_genes_str += ''.join(str(node) for node in self.hidden_nodes)
        node_genes_str += ''.join(str(node) for node in self.output_nodes)
        conn_genes_str  = ''.join(str(conn) for conn in self.conn_genes.values())
        return f"Nodes: {node_genes_str}\nConns: {conn_genes_str}"
