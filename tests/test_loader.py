"""
Tests for chunked bulk writes in migrations/sql_to_polyglot/loader.py
"""

import pytest

from db.enums import NodeLabel
from db.schemas import SubscriptionDocument
from migrations.sql_to_polyglot.loader import BatchLoadError, DocumentBatchLoader, GraphBatchLoader, chunked
from tests.conftest import FakeGraphDriver


def subscriptions(count: int) -> list[SubscriptionDocument]:
    return [SubscriptionDocument(id=i, name=f"plan-{i}", price=i % 20) for i in range(1, count + 1)]


class TestChunked:
    @pytest.mark.parametrize(
        "total, batch_size, sizes",
        [
            (2500, 1000, [1000, 1000, 500]),
            (1000, 1000, [1000]),
            (3, 1, [1, 1, 1]),
            (0, 1000, []),
        ],
    )
    def test_chunk_sizes(self, total, batch_size, sizes):
        assert [len(chunk) for chunk in chunked(list(range(total)), batch_size)] == sizes

    @pytest.mark.parametrize("batch_size", [0, -5])
    def test_non_positive_batch_size_rejected(self, batch_size):
        with pytest.raises(ValueError):
            list(chunked([1, 2, 3], batch_size))


class TestDocumentBatchLoader:
    """One insert_many per chunk"""

    async def test_loads_in_chunks(self, fake_mongo):
        loader = DocumentBatchLoader(fake_mongo, batch_size=1000)
        assert await loader.load("subscriptions", subscriptions(2500)) == 2500
        assert fake_mongo["subscriptions"].insert_calls == [1000, 1000, 500]
        assert fake_mongo["subscriptions"].documents[0] == {"_id": 1, "name": "plan-1", "price": 1}

    async def test_failed_chunk_reports_committed_count(self, fake_mongo):
        fake_mongo["subscriptions"].fail_on_insert = 1
        loader = DocumentBatchLoader(fake_mongo, batch_size=1000)
        with pytest.raises(BatchLoadError) as exc_info:
            await loader.load("subscriptions", subscriptions(2500))
        assert exc_info.value.batch_index == 1
        assert exc_info.value.committed == 1000
        assert exc_info.value.kind == "subscriptions"
        # The first chunk stays written
        assert len(fake_mongo["subscriptions"].documents) == 1000

    async def test_unordered_chunk_counts_documents_written_around_a_duplicate(self, fake_mongo):
        fake_mongo["subscriptions"].documents.append({"_id": 1502, "name": "existing", "price": 0})
        loader = DocumentBatchLoader(fake_mongo, batch_size=1000)
        with pytest.raises(BatchLoadError) as exc_info:
            await loader.load("subscriptions", subscriptions(2500))
        assert exc_info.value.batch_index == 1
        # 1000 from the first chunk plus 999 of the second
        assert exc_info.value.committed == 1999
        assert len(fake_mongo["subscriptions"].documents) == 2000


class TestGraphBatchLoader:
    """One parameterized UNWIND statement per chunk"""

    async def test_loads_nodes_in_chunks(self):
        driver = FakeGraphDriver()
        loader = GraphBatchLoader(driver, batch_size=2)
        rows = [{"id": i, "name": f"genre-{i}"} for i in range(5)]
        assert await loader.load_nodes(NodeLabel.GENRE, rows) == 5
        assert [len(params["rows"]) for _, params in driver.queries] == [2, 2, 1]
        assert all(query.startswith("UNWIND $rows AS row CREATE (n:Genre)") for query, _ in driver.queries)

    async def test_failed_chunk_reports_committed_count(self):
        calls = []

        def handler(query, params):
            calls.append(query)
            if len(calls) == 3:
                raise RuntimeError("constraint violated")
            return []

        loader = GraphBatchLoader(FakeGraphDriver(handler), batch_size=2)
        with pytest.raises(BatchLoadError) as exc_info:
            await loader.load_nodes(NodeLabel.GENRE, [{"id": i} for i in range(5)])
        assert exc_info.value.committed == 4
        assert exc_info.value.batch_index == 2
        assert isinstance(exc_info.value.__cause__, RuntimeError)
