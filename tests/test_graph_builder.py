"""
Tests for the relational -> graph transform and the Cypher it is written with.
"""

import pytest

from db.enums import NodeLabel, RelationshipType
from migrations.sql_to_polyglot.extractor import PersonMediaRoleRow
from migrations.sql_to_polyglot.graph_builder import GraphModelBuilder
from migrations.sql_to_polyglot.loader import edge_write_query, node_write_query
from migrations.sql_to_polyglot.schema import RELATIONSHIP_ENDPOINTS, graph_schema_statements
from tests.conftest import sample_entities, sample_relationships


@pytest.fixture
def builder() -> GraphModelBuilder:
    return GraphModelBuilder(sample_entities())


class TestNodes:
    """Flat camelCase node rows keyed by the relational id"""

    def test_every_label_present(self, builder):
        nodes = builder.nodes()
        assert set(nodes) == set(NodeLabel)
        assert len(nodes[NodeLabel.MEDIA]) == 3
        assert len(nodes[NodeLabel.WATCHLIST]) == 3

    def test_media_row(self, builder):
        media = {row["id"]: row for row in builder.nodes()[NodeLabel.MEDIA]}
        assert media[7] == {
            "id": 7,
            "name": "Breaking Bad",
            "type": "Series",
            "runtime": 47,
            "description": "Chemist turns to crime",
            "cover": "bb.jpg",
            "ageLimit": 18,
            "release": "2008-01-20",
        }
        # Null numbers are written as explicit nulls
        assert "ageLimit" in media[3] and media[3]["ageLimit"] is None

    def test_watchlist_shares_profile_id(self, builder):
        rows = builder.nodes()[NodeLabel.WATCHLIST]
        assert [(row["id"], row["isLocked"]) for row in rows] == [(1, False), (2, False), (3, True)]

    def test_user_row_keeps_password_hash(self, builder):
        user = builder.nodes()[NodeLabel.USER][0]
        assert user["password"] == "hash-a"
        assert user["email"] == "alice@example.com"


class TestRelationships:
    """Edge rows in the canonical direction of each type"""

    def test_every_type_present(self, builder):
        edges = builder.relationships(sample_relationships())
        assert set(edges) == set(RelationshipType)

    def test_pairwise_edges(self, builder):
        edges = builder.relationships(sample_relationships())
        assert edges[RelationshipType.OWNS] == [
            {"fromId": 1, "toId": 1},
            {"fromId": 1, "toId": 2},
            {"fromId": 2, "toId": 3},
        ]
        assert edges[RelationshipType.BELONGS_TO_GENRE][-1] == {"fromId": 7, "toId": 2}
        assert edges[RelationshipType.GIVES_ACCESS_TO] == [{"fromId": 2, "toId": 2}]

    def test_worked_on_carries_role_name(self, builder):
        edges = builder.relationships(sample_relationships())[RelationshipType.WORKED_ON]
        assert {"fromId": 1, "toId": 7, "role": "Director"} in edges
        assert len(edges) == 4

    def test_worked_on_skips_unknown_person_or_role(self, builder):
        relationships = sample_relationships()
        relationships.person_media_roles = [
            PersonMediaRoleRow(1, 7, 1),
            PersonMediaRoleRow(42, 7, 1),
            PersonMediaRoleRow(1, 7, 42),
        ]
        assert builder.worked_on_edges(relationships) == [{"fromId": 1, "toId": 7, "role": "Actor"}]

    def test_reviewed_edge_properties(self, builder):
        edges = builder.relationships(sample_relationships())[RelationshipType.REVIEWED]
        assert edges[1] == {
            "fromId": 1,
            "toId": 7,
            "rating": 5,
            "description": "Great",
            "createdAt": "2024-03-01T12:30:00",
        }
        assert edges[0]["description"] is None


class TestCypher:
    """Batched write statements"""

    def test_node_query_converts_dates(self):
        assert node_write_query(NodeLabel.MEDIA) == (
            "UNWIND $rows AS row CREATE (n:Media) SET n = row, n.release = date(row.release)"
        )
        assert node_write_query(NodeLabel.GENRE) == "UNWIND $rows AS row CREATE (n:Genre) SET n = row"

    def test_edge_query_uses_canonical_direction(self):
        query = edge_write_query(RelationshipType.WORKED_ON)
        assert "MATCH (a:Person {id: row.fromId})" in query
        assert "MATCH (b:Media {id: row.toId})" in query
        assert "CREATE (a)-[:WORKED_ON {role: row.role}]->(b)" in query

    @pytest.mark.parametrize("rel_type", list(RelationshipType))
    def test_every_type_has_endpoints(self, rel_type):
        assert rel_type in RELATIONSHIP_ENDPOINTS

    def test_schema_statements(self):
        statements = graph_schema_statements()
        assert "CREATE CONSTRAINT media_id IF NOT EXISTS FOR (n:Media) REQUIRE n.id IS UNIQUE" in statements
        assert "CREATE INDEX person_name IF NOT EXISTS FOR (n:Person) ON (n.firstName, n.lastName)" in statements
