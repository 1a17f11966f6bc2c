import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex

from slugkit import slug_space_usage
from slugkit import SpaceUsageSQLGateway
from slugkit.base.domain import Filter
from slugkit.sql.testing import FakeSQLDatabase


@pytest.fixture
def sql_gateway():
    return SpaceUsageSQLGateway(FakeSQLDatabase())


def to_sql(query) -> str:
    return str(
        query.compile(
            compile_kwargs={"literal_binds": True}, dialect=postgresql.dialect()
        )
    ).replace("\n", "")


KEY_FILTERS = [
    Filter(field="strategy", values=["nanoid"]),
    Filter(field="alphabet_hash", values=["abc"]),
    Filter(field="length", values=[7]),
    Filter(field="namespace", values=[None]),
]


async def test_increment_usage(sql_gateway, patched_now):
    record = {"id": 1, "usage_count": 4}
    sql_gateway.provider.result.return_value = [record]

    assert await sql_gateway.increment_usage(KEY_FILTERS) == record

    (query,) = sql_gateway.provider.queries[0]
    sql = to_sql(query)
    assert sql.startswith("UPDATE slug_space_usage SET ")
    assert "usage_count=(slug_space_usage.usage_count + 1)" in sql
    assert "CASE WHEN" in sql
    assert (
        "WHERE slug_space_usage.strategy = 'nanoid' "
        "AND slug_space_usage.alphabet_hash = 'abc' "
        "AND slug_space_usage.length = 7 "
        "AND slug_space_usage.namespace IS NULL"
    ) in sql
    assert "RETURNING slug_space_usage.id" in sql


async def test_increment_usage_no_match(sql_gateway):
    sql_gateway.provider.result.return_value = []

    assert await sql_gateway.increment_usage(KEY_FILTERS) is None


def test_unique_index_treats_nulls_as_equal():
    (index,) = [x for x in slug_space_usage.indexes if x.unique]

    sql = str(CreateIndex(index).compile(dialect=postgresql.dialect()))

    assert sql.startswith("CREATE UNIQUE INDEX idx_strategy_alphabet_length_namespace")
    assert sql.endswith("NULLS NOT DISTINCT")
