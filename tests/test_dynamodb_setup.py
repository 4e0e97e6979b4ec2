"""Tablo tanımları ve kurulum scripti unit testleri."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from data_layer.infrastructure.dynamodb_setup import create_tables, delete_tables, table_definitions
from marketmate.config import Settings
from marketmate.store.dynamodb_store import USER_CREATED_INDEX


def _not_found(operation="DescribeTable"):
    return ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "yok"}}, operation)


class TestTableDefinitions:
    def test_all_tables_prefixed(self):
        names = [d["TableName"] for d in table_definitions(Settings(table_prefix="Dev"))]
        assert names == [
            "DevSales", "DevSaleItems", "DevCosts", "DevCostCategories",
            "DevProducts", "DevMarkets", "DevProfiles", "DevRecentActivity",
            "DevBugs", "DevFeatureRequests", "DevFeatureVotes",
        ]

    def test_sale_items_composite_key_without_index(self):
        defs = {d["TableName"]: d for d in table_definitions(Settings())}
        sale_items = defs["MarketMateSaleItems"]
        assert [k["KeyType"] for k in sale_items["KeySchema"]] == ["HASH", "RANGE"]
        assert "GlobalSecondaryIndexes" not in sale_items

    def test_user_created_index_attributes_defined(self):
        defs = {d["TableName"]: d for d in table_definitions(Settings())}
        sales = defs["MarketMateSales"]
        assert sales["GlobalSecondaryIndexes"][0]["IndexName"] == USER_CREATED_INDEX
        attrs = {a["AttributeName"] for a in sales["AttributeDefinitions"]}
        assert attrs == {"sale_id", "user_id", "created_at"}


class TestCreateDelete:
    def test_creates_only_missing_tables(self):
        client = MagicMock()

        def describe(TableName):
            if TableName == "MarketMateSales":
                return {"Table": {}}
            raise _not_found()

        client.describe_table.side_effect = describe

        created = create_tables(Settings(), client=client)

        assert "MarketMateSales" not in created
        assert len(created) == 10
        assert client.create_table.call_count == 10

    def test_unexpected_error_propagates(self):
        client = MagicMock()
        client.describe_table.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "no"}}, "DescribeTable"
        )
        with pytest.raises(ClientError):
            create_tables(Settings(), client=client)

    def test_delete_skips_missing(self):
        client = MagicMock()
        client.delete_table.side_effect = [None, _not_found("DeleteTable")] + [None] * 9
        deleted = delete_tables(Settings(), client=client)
        assert len(deleted) == 10


class TestFeedbackTables:
    def test_votes_keyed_by_user_then_feature(self):
        defs = {d["TableName"]: d for d in table_definitions(Settings())}
        votes = defs["MarketMateFeatureVotes"]
        assert [(k["AttributeName"], k["KeyType"]) for k in votes["KeySchema"]] == [
            ("user_id", "HASH"), ("feature_id", "RANGE"),
        ]
        assert "GlobalSecondaryIndexes" in defs["MarketMateBugs"]
        assert "GlobalSecondaryIndexes" not in defs["MarketMateFeatureRequests"]
