"""
Unit tests for ConnectionGene.
"""

import pytest
from unittest.mock import patch

from evodino.genotype.connection_gene import ConnectionGene


@pytest.fixture
def conn():
    return ConnectionGene(0, 3, 0.5, 7)


class TestConnectionGeneInit:
    """Test ConnectionGene.__init__."""

    def test_attributes(self, conn):
        assert conn.node_in == 0
        assert conn.node_out == 3
        assert conn.weight == 0.5
        assert conn.innovation == 7
        assert conn.enabled is True

    def test_disabled(self):
        assert ConnectionGene(0, 1, 0.0, 0, enabled=False).enabled is False


class TestConnectionGeneMutate:
    """Test ConnectionGene.mutate."""

    def test_perturbation(self, conn):
        # First draw decides perturbation (>= 0.1), second is the perturbation
        with patch('random.random', return_value=0.5), \
             patch('random.uniform', return_value=0.5):
            conn.mutate(0.2)
        assert conn.weight == pytest.approx(0.6)

    def test_replacement(self, conn):
        with patch('random.random', return_value=0.05), \
             patch('random.uniform', return_value=-0.75):
            conn.mutate(0.2)
        assert conn.weight == -0.75

    def test_perturbation_bounded(self, conn):
        for _ in range(200):
            before = conn.weight
            conn.mutate(0.2)
            change = abs(conn.weight - before)
            # Either a bounded perturbation or a replacement inside (-1, 1)
            assert change <= 0.2 + 1e-12 or abs(conn.weight) < 1.0

    def test_replacement_frequency(self):
        replaced = 0
        for _ in range(5000):
            gene = ConnectionGene(0, 1, 100.0, 0)
            gene.mutate(0.2)
            if abs(gene.weight) < 1.0:
                replaced += 1
        assert 0.07 < replaced / 5000 < 0.13


class TestConnectionGeneSerialization:
    """Test to_dict / repr / str."""

    def test_to_dict(self, conn):
        assert conn.to_dict() == {"innovation": 7, "from": 0, "to": 3, "weight": 0.5, "enabled": True}

    def test_str(self, conn):
        assert str(conn) == "[007,E,00=>03,+0.50]"

    def test_str_disabled(self, conn):
        conn.enabled = False
        assert ",D," in str(conn)
