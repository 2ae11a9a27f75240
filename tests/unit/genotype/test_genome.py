"""
Unit tests for the Genome class.

Covers construction, evaluation, the four mutation operators, cloning,
crossover, compatibility distance and serialization.
"""

import json
import random
import pytest
from unittest.mock import patch

from evodino.errors                      import InvalidModelError
from evodino.genotype.genome             import Genome
from evodino.genotype.innovation_tracker import InnovationTracker
from evodino.genotype.node_gene          import NodeType


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def tracker():
    return InnovationTracker(2, 1)


@pytest.fixture
def genome(tracker):
    """A fully connected 2-input, 1-output genome with weights [0.5, -0.5]."""
    g = Genome(2, 1, tracker)
    g.conn_genes[0].weight =  0.5
    g.conn_genes[1].weight = -0.5
    return g


def first_choice(seq):
    return seq[0]


def assert_layer_invariant(genome):
    for conn in genome.conn_genes.values():
        assert genome.node_genes[conn.node_in].layer < genome.node_genes[conn.node_out].layer


def assert_unique_pairs(genome):
    pairs = [(c.node_in, c.node_out) for c in genome.conn_genes.values()]
    assert len(pairs) == len(set(pairs))


# ============================================================================
# Test Construction
# ============================================================================

class TestGenomeInit:
    """Test Genome.__init__."""

    def test_node_numbering(self):
        g = Genome(3, 2, InnovationTracker(3, 2))
        assert [n.id for n in g.input_nodes] == [0, 1, 2]
        assert [n.id for n in g.output_nodes] == [3, 4]
        assert g.hidden_nodes == []
        assert g.next_node_id == 5

    def test_node_layers(self):
        g = Genome(3, 2, InnovationTracker(3, 2))
        assert all(n.layer == 0.0 for n in g.input_nodes)
        assert all(n.layer == 1.0 for n in g.output_nodes)

    def test_fully_connected(self):
        g = Genome(3, 2, InnovationTracker(3, 2))
        pairs = {(c.node_in, c.node_out) for c in g.conn_genes.values()}
        assert pairs == {(i, o) for i in range(3) for o in (3, 4)}
        assert all(c.enabled for c in g.conn_genes.values())

    def test_initial_weights_in_range(self):
        g = Genome(7, 2, InnovationTracker(7, 2))
        assert all(-0.5 <= c.weight <= 0.5 for c in g.conn_genes.values())

    def test_genomes_share_innovation_numbers(self, tracker):
        g1 = Genome(2, 1, tracker)
        g2 = Genome(2, 1, tracker)
        assert set(g1.conn_genes) == set(g2.conn_genes) == {0, 1}

    def test_unconnected(self):
        g = Genome(2, 1, connect=False)
        assert g.conn_genes == {}

    def test_connect_requires_tracker(self):
        with pytest.raises(ValueError, match="tracker"):
            Genome(2, 1)

    def test_fitness_starts_at_zero(self, genome):
        assert genome.fitness == 0.0


# ============================================================================
# Test Evaluation
# ============================================================================

class TestGenomeEvaluation:
    """Test activate() and feedforward()."""

    def test_weights_cancel(self, genome):
        assert genome.activate([1.0, 1.0]) == [0.0]
        assert genome.feedforward([1.0, 1.0]) == 0

    def test_linear_output(self, genome):
        # Output nodes are linear: negative values are kept
        assert genome.activate([0.0, 2.0]) == [pytest.approx(-1.0)]

    def test_disabled_connection_ignored(self, genome):
        genome.conn_genes[1].enabled = False
        assert genome.activate([1.0, 1.0]) == [pytest.approx(0.5)]

    def test_hidden_node_applies_relu(self, genome, tracker):
        with patch('random.choice', side_effect=first_choice):
            genome.mutate_add_node(tracker)   # splits 0 -> 2 (weight 0.5)
        # input 0 is negative, the hidden node clips it to 0
        assert genome.activate([-1.0, 0.0]) == [0.0]

    def test_argmax_of_outputs(self):
        g = Genome(1, 3, InnovationTracker(1, 3))
        for conn, w in zip(g.conn_genes.values(), [0.1, 0.9, 0.3]):
            conn.weight = w
        assert g.feedforward([1.0]) == 1

    def test_ties_resolve_to_lowest_index(self):
        g = Genome(1, 3, InnovationTracker(1, 3))
        for conn, w in zip(g.conn_genes.values(), [0.2, 0.7, 0.7]):
            conn.weight = w
        assert g.feedforward([1.0]) == 1

    def test_wrong_input_length(self, genome):
        with pytest.raises(ValueError, match="Expected 2 inputs"):
            genome.activate([1.0])


# ============================================================================
# Test Add-Node Mutation
# ============================================================================

class TestMutateAddNode:
    """Test mutate_add_node()."""

    def test_structure(self, genome, tracker):
        with patch('random.choice', side_effect=first_choice):
            genome.mutate_add_node(tracker)

        assert genome.conn_genes[0].enabled is False
        hidden = genome.hidden_nodes
        assert len(hidden) == 1
        assert hidden[0].id == 3
        assert hidden[0].layer == 0.5

        new_conns = {(c.node_in, c.node_out): c for c in genome.conn_genes.values() if c.innovation >= 2}
        assert new_conns[(0, 3)].weight == 1.0
        assert new_conns[(3, 2)].weight == 0.5
        assert all(c.enabled for c in new_conns.values())
        assert genome.next_node_id == 4

    def test_preserves_function_for_non_negative_inputs(self):
        tracker = InnovationTracker(7, 2)
        g = Genome(7, 2, tracker)
        g.mutate_weights(1.0, 0.5)
        inputs = [[random.random() for _ in range(7)] for _ in range(20)]

        for _ in range(10):
            before = [g.activate(x) for x in inputs]
            g.mutate_add_node(tracker)
            after = [g.activate(x) for x in inputs]
            for b, a in zip(before, after):
                assert a == pytest.approx(b, abs=1e-12)

    def test_re_enabled_split_connection_is_not_split_again(self, genome, tracker):
        with patch('random.choice', side_effect=first_choice):
            genome.mutate_add_node(tracker)            # splits 0 -> 2 into 0 -> 3 -> 2
        genome.conn_genes[2].weight = 2.0
        genome.conn_genes[3].weight = 3.0
        genome.conn_genes[0].enabled = True            # as crossover or a toggle may do

        inputs = [1.0, 0.5]
        before = genome.activate(inputs)
        with patch('random.choice', side_effect=first_choice):
            genome.mutate_add_node(tracker)

        assert genome.activate(inputs) == pytest.approx(before, abs=1e-12)
        assert genome.conn_genes[0].enabled is True
        assert genome.conn_genes[2].weight == 2.0
        assert genome.conn_genes[3].weight == 3.0
        # The next enabled connection (1 -> 2) was split instead
        assert genome.conn_genes[1].enabled is False
        assert len(genome.hidden_nodes) == 2

    def test_only_re_enabled_split_connections_is_noop(self, genome, tracker):
        with patch('random.choice', side_effect=first_choice):
            genome.mutate_add_node(tracker)
        genome.conn_genes[0].enabled = True
        for innovation in (1, 2, 3):
            genome.conn_genes[innovation].enabled = False

        genome.mutate_add_node(tracker)
        assert len(genome.hidden_nodes) == 1
        assert genome.conn_genes[0].enabled is True
        assert sorted(genome.conn_genes) == [0, 1, 2, 3]

    def test_no_enabled_connection_is_noop(self, tracker):
        g = Genome(2, 1, connect=False)
        g.mutate_add_node(tracker)
        assert g.node_genes.keys() == {0, 1, 2}
        assert g.conn_genes == {}

    def test_same_split_in_two_genomes(self, tracker):
        g1 = Genome(2, 1, tracker)
        g2 = Genome(2, 1, tracker)
        with patch('random.choice', side_effect=first_choice):
            g1.mutate_add_node(tracker)
            g2.mutate_add_node(tracker)
        assert g1.node_genes.keys() == g2.node_genes.keys()
        assert g1.conn_genes.keys() == g2.conn_genes.keys()


# ============================================================================
# Test Add-Connection Mutation
# ============================================================================

class TestMutateAddConnection:
    """Test mutate_add_connection()."""

    def test_saturated_genome_gives_up_silently(self, genome, tracker):
        before = dict(genome.conn_genes)
        assert genome.mutate_add_connection(tracker) is None
        assert genome.conn_genes == before

    def test_connects_hidden_node(self, genome, tracker):
        with patch('random.choice', side_effect=first_choice):
            genome.mutate_add_node(tracker)   # hidden node 3 between 0 and 2
        # The only missing feed-forward pair is 1 -> 3
        for _ in range(20):
            genome.mutate_add_connection(tracker)
        pairs = {(c.node_in, c.node_out) for c in genome.conn_genes.values()}
        assert (1, 3) in pairs
        assert_layer_invariant(genome)
        assert_unique_pairs(genome)

    def test_uses_tracker_numbers(self, genome, tracker):
        with patch('random.choice', side_effect=first_choice):
            genome.mutate_add_node(tracker)
        for _ in range(20):
            genome.mutate_add_connection(tracker)
        for conn in genome.conn_genes.values():
            assert tracker.get_innovation_number(conn.node_in, conn.node_out) == conn.innovation


# ============================================================================
# Test Weight / Toggle Mutations
# ============================================================================

class TestMutateWeights:
    """Test mutate_weights() and mutate_toggle()."""

    def test_rate_zero(self, genome):
        genome.mutate_weights(0.0, 1.0)
        assert [c.weight for c in genome.conn_genes.values()] == [0.5, -0.5]

    def test_rate_one(self, genome):
        genome.mutate_weights(1.0, 0.2)
        assert genome.conn_genes[0].weight != 0.5
        assert genome.conn_genes[1].weight != -0.5

    def test_toggle_flips_one_connection(self, genome):
        genome.mutate_toggle()
        assert sorted(c.enabled for c in genome.conn_genes.values()) == [False, True]

    def test_toggle_twice_restores(self, genome):
        with patch('random.choice', side_effect=first_choice):
            genome.mutate_toggle()
            genome.mutate_toggle()
        assert all(c.enabled for c in genome.conn_genes.values())

    def test_toggle_without_connections(self):
        g = Genome(2, 1, connect=False)
        g.mutate_toggle()
        assert g.conn_genes == {}


# ============================================================================
# Test Layer Invariant
# ============================================================================

class TestLayerInvariant:
    """Connections always go from a lower to a higher layer."""

    def test_random_mutation_sequences(self):
        tracker = InnovationTracker(4, 2)
        genomes = [Genome(4, 2, tracker) for _ in range(6)]

        for _ in range(60):
            for g in genomes:
                operator = random.choice(['node', 'conn', 'weights', 'toggle'])
                if operator == 'node':
                    g.mutate_add_node(tracker)
                elif operator == 'conn':
                    g.mutate_add_connection(tracker)
                elif operator == 'weights':
                    g.mutate_weights(0.8, 0.2)
                else:
                    g.mutate_toggle()
            a, b = random.sample(genomes, 2)
            genomes[random.randrange(len(genomes))] = Genome.crossover(a, b)

        for g in genomes:
            assert_layer_invariant(g)
            assert_unique_pairs(g)


# ============================================================================
# Test Clone
# ============================================================================

class TestClone:
    """Test clone()."""

    def test_same_structure_and_weights(self, genome):
        genome.fitness = 12.0
        copy = genome.clone()
        assert copy.to_dict() == genome.to_dict()
        assert copy.fitness == 0.0

    def test_independent(self, genome):
        copy = genome.clone()
        copy.conn_genes[0].weight = 9.0
        copy.node_genes[0].layer = 0.1
        assert genome.conn_genes[0].weight == 0.5
        assert genome.node_genes[0].layer == 0.0


# ============================================================================
# Test Crossover
# ============================================================================

class TestCrossover:
    """Test Genome.crossover()."""

    def test_genes_unique_to_better_are_inherited(self, genome, tracker):
        better = genome.clone()
        with patch('random.choice', side_effect=first_choice):
            better.mutate_add_node(tracker)
        child = Genome.crossover(better, genome)
        assert child.conn_genes.keys() == better.conn_genes.keys()
        assert 3 in child.node_genes

    def test_genes_unique_to_worse_are_dropped(self, genome, tracker):
        worse = genome.clone()
        with patch('random.choice', side_effect=first_choice):
            worse.mutate_add_node(tracker)
        child = Genome.crossover(genome, worse)
        assert child.conn_genes.keys() == {0, 1}
        assert 3 not in child.node_genes

    def test_matching_weights_from_either_parent(self, genome):
        other = genome.clone()
        other.conn_genes[0].weight = 2.0
        seen = set()
        for _ in range(50):
            seen.add(Genome.crossover(genome, other).conn_genes[0].weight)
        assert seen == {0.5, 2.0}

    def test_input_output_nodes_always_present(self):
        g1 = Genome(3, 2, connect=False)
        g2 = Genome(3, 2, connect=False)
        child = Genome.crossover(g1, g2)
        assert child.node_genes.keys() == {0, 1, 2, 3, 4}

    def test_disabled_gene_sometimes_reenabled(self, genome):
        other = genome.clone()
        genome.conn_genes[0].enabled = False
        other.conn_genes[0].enabled  = False
        enabled = sum(Genome.crossover(genome, other).conn_genes[0].enabled for _ in range(2000))
        assert 0.2 < enabled / 2000 < 0.3

    def test_next_node_id_is_max_of_parents(self, genome, tracker):
        better = genome.clone()
        with patch('random.choice', side_effect=first_choice):
            better.mutate_add_node(tracker)
        assert Genome.crossover(genome, better).next_node_id == 4

    def test_child_is_independent(self, genome):
        child = Genome.crossover(genome, genome.clone())
        child.conn_genes[0].weight = 7.0
        assert genome.conn_genes[0].weight == 0.5


# ============================================================================
# Test Compatibility Distance
# ============================================================================

class TestCompatibilityDistance:
    """Test Genome.compatibility_distance()."""

    def test_identity(self):
        tracker = InnovationTracker(4, 2)
        g = Genome(4, 2, tracker)
        for _ in range(5):
            g.mutate_add_node(tracker)
            g.mutate_add_connection(tracker)
        assert Genome.compatibility_distance(g, g, 1.0, 1.0, 0.4) == 0.0

    def test_symmetric_under_weight_differences(self, genome):
        other = genome.clone()
        other.mutate_weights(1.0, 0.5)
        d12 = Genome.compatibility_distance(genome, other, 1.0, 1.0, 0.4)
        d21 = Genome.compatibility_distance(other, genome, 1.0, 1.0, 0.4)
        assert d12 == pytest.approx(d21)
        assert d12 > 0.0

    def test_weight_term(self, genome):
        other = genome.clone()
        other.conn_genes[0].weight = 1.5    # |diff| = 1.0
        other.conn_genes[1].weight = 0.0    # |diff| = 0.5
        d = Genome.compatibility_distance(genome, other, 1.0, 1.0, 0.4)
        assert d == pytest.approx(0.4 * 0.75)

    def test_excess_genes(self, genome, tracker):
        other = genome.clone()
        with patch('random.choice', side_effect=first_choice):
            other.mutate_add_node(tracker)   # adds innovations 2 and 3
        # E = 2, D = 0, N = 4, matching weights equal
        d = Genome.compatibility_distance(genome, other, 1.0, 1.0, 0.4)
        assert d == pytest.approx(0.5)

    def test_disjoint_and_excess_genes(self, genome, tracker):
        g1 = genome.clone()
        g2 = genome.clone()
        with patch('random.choice', side_effect=first_choice):
            g1.mutate_add_node(tracker)      # splits 0 -> 2: innovations 2, 3
        with patch('random.choice', side_effect=lambda seq: seq[-1]):
            g2.mutate_add_node(tracker)      # splits 1 -> 2: innovations 4, 5
        # Innovations 2, 3 are disjoint, 4, 5 excess; N = 4
        d = Genome.compatibility_distance(g1, g2, 1.0, 2.0, 0.4)
        assert d == pytest.approx(1.0 * 2 / 4 + 2.0 * 2 / 4)

    def test_empty_genomes(self):
        g1 = Genome(2, 1, connect=False)
        g2 = Genome(2, 1, connect=False)
        assert Genome.compatibility_distance(g1, g2, 1.0, 1.0, 0.4) == 0.0


# ============================================================================
# Test Serialization
# ============================================================================

class TestSerialization:
    """Test to_dict/from_dict and to_json/from_json."""

    @pytest.fixture
    def evolved(self):
        tracker = InnovationTracker(3, 2)
        g = Genome(3, 2, tracker)
        for _ in range(4):
            g.mutate_add_node(tracker)
            g.mutate_add_connection(tracker)
        g.mutate_toggle()
        return g

    def test_dict_format(self, genome):
        data = genome.to_dict()
        assert data["inputSize"] == 2
        assert data["outputSize"] == 1
        assert data["nextNodeId"] == 3
        assert {"id": 0, "type": "input", "layer": 0.0} in data["nodes"]
        assert data["connections"][0] == {"innovation": 0, "from": 0, "to": 2, "weight": 0.5, "enabled": True}

    def test_round_trip_preserves_outputs(self, evolved):
        restored = Genome.from_json(evolved.to_json())
        for _ in range(10):
            x = [random.uniform(-1, 1) for _ in range(3)]
            assert restored.activate(x) == pytest.approx(evolved.activate(x))

    def test_round_trip_preserves_structure(self, evolved):
        restored = Genome.from_json(evolved.to_json())
        assert restored.node_genes.keys() == evolved.node_genes.keys()
        assert restored.next_node_id == evolved.next_node_id
        assert restored.num_enabled_connections == evolved.num_enabled_connections

    def test_import_replays_through_tracker(self, evolved):
        tracker = InnovationTracker(3, 2)
        tracker.get_innovation_number(2, 4)
        tracker.get_innovation_number(0, 3)
        restored = Genome.from_dict(evolved.to_dict(), tracker)

        for conn in restored.conn_genes.values():
            assert conn.innovation == tracker.get_innovation_number(conn.node_in, conn.node_out)
        assert tracker.next_node_id > max(restored.node_genes)

    def test_import_does_not_touch_tracker_on_failure(self, evolved):
        tracker = InnovationTracker(3, 2)
        data = evolved.to_dict()
        data["connections"].append(dict(data["connections"][0]))
        with pytest.raises(InvalidModelError):
            Genome.from_dict(data, tracker)
        assert tracker.current == -1

    def test_malformed_json(self):
        with pytest.raises(InvalidModelError):
            Genome.from_json("not json")

    def test_missing_field(self, genome):
        data = genome.to_dict()
        del data["nodes"]
        with pytest.raises(InvalidModelError):
            Genome.from_dict(data)

    def test_unknown_node_type(self, genome):
        data = genome.to_dict()
        data["nodes"][0]["type"] = "bias"
        with pytest.raises(InvalidModelError):
            Genome.from_dict(data)

    def test_bad_input_numbering(self, genome):
        data = genome.to_dict()
        data["nodes"][0]["id"] = 9
        with pytest.raises(InvalidModelError, match="Input nodes"):
            Genome.from_dict(data)

    def test_connection_to_missing_node(self, genome):
        data = genome.to_dict()
        data["connections"][0]["to"] = 42
        with pytest.raises(InvalidModelError, match="missing node"):
            Genome.from_dict(data)

    def test_backward_connection(self, genome):
        data = genome.to_dict()
        data["connections"][0]["from"], data["connections"][0]["to"] = 2, 0
        with pytest.raises(InvalidModelError, match="deeper layer"):
            Genome.from_dict(data)

    def test_duplicate_connection(self, genome):
        data = genome.to_dict()
        data["connections"][1]["from"] = 0
        with pytest.raises(InvalidModelError, match="Duplicate"):
            Genome.from_dict(data)

    def test_json_keys_are_camel_case(self, genome):
        assert set(json.loads(genome.to_json())) == {"inputSize", "outputSize", "nextNodeId", "nodes", "connections"}

    def test_node_types_survive(self, evolved):
        restored = Genome.from_json(evolved.to_json())
        for nid, node in evolved.node_genes.items():
            assert restored.node_genes[nid].type == node.type
        assert any(n.type == NodeType.HIDDEN for n in restored.node_genes.values())
