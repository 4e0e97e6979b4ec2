"""DynamoDB tablo oluşturma ve silme.

11 tablo: Sales, SaleItems, Costs, CostCategories, Products, Markets,
Profiles, RecentActivity, Bugs, FeatureRequests, FeatureVotes.
Tablo adları MARKETMATE_TABLE_PREFIX ile öneklenir.
"""
from __future__ import annotations

from typing import Optional

import boto3
from botocore.exceptions import ClientError

from marketmate.config import Settings, load_settings
from marketmate.store.dynamodb_store import BOTO_CONFIG, USER_CREATED_INDEX

# (mantıksal tablo, hash anahtarı, range anahtarı, UserCreatedIndex var mı)
_TABLE_LAYOUT = [
    ("sales", "sale_id", None, True),
    ("sale_items", "sale_id", "item_id", False),
    ("costs", "cost_id", None, True),
    ("cost_categories", "category_id", None, True),
    ("products", "product_id", None, True),
    ("markets", "market_id", None, True),
    ("profiles", "user_id", None, False),
    ("activity", "activity_id", None, True),
    ("bugs", "bug_id", None, True),
    ("feature_requests", "feature_id", None, False),
    ("feature_votes", "user_id", "feature_id", False),
]


def _table_definition(settings: Settings, key: str, hash_key: str, range_key: Optional[str],
                      user_index: bool) -> dict:
    key_schema = [{"AttributeName": hash_key, "KeyType": "HASH"}]
    attributes = {hash_key}
    if range_key:
        key_schema.append({"AttributeName": range_key, "KeyType": "RANGE"})
        attributes.add(range_key)

    definition = {
        "TableName": settings.table_name(key),
        "KeySchema": key_schema,
        "BillingMode": "PAY_PER_REQUEST",
    }
    if user_index:
        attributes.update({"user_id", "created_at"})
        definition["GlobalSecondaryIndexes"] = [
            {
                "IndexName": USER_CREATED_INDEX,
                "KeySchema": [
                    {"AttributeName": "user_id", "KeyType": "HASH"},
                    {"AttributeName": "created_at", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ]
    definition["AttributeDefinitions"] = [
        {"AttributeName": name, "AttributeType": "S"} for name in sorted(attributes)
    ]
    return definition


def table_definitions(settings: Optional[Settings] = None) -> list[dict]:
    """Ayarlardaki önek ile tüm tablo tanımlarını üretir."""
    settings = settings or load_settings()
    return [_table_definition(settings, *layout) for layout in _TABLE_LAYOUT]


def _client(settings: Settings, client=None):
    return client or boto3.client(
        "dynamodb", region_name=settings.region, verify=settings.verify_ssl, config=BOTO_CONFIG
    )


def create_tables(settings: Optional[Settings] = None, client=None) -> list[str]:
    """Eksik tabloları oluşturur, oluşturulan tablo adlarını döndürür."""
    settings = settings or load_settings()
    dynamodb = _client(settings, client)
    created = []

    for table_def in table_definitions(settings):
        table_name = table_def["TableName"]
        try:
            dynamodb.describe_table(TableName=table_name)
            print(f"  ⏭️  {table_name} zaten mevcut, atlanıyor")
        except ClientError as e:
            if e.response["Error"]["Code"] == "ResourceNotFoundException":
                print(f"  🔨 {table_name} oluşturuluyor...")
                dynamodb.create_table(**table_def)
                # Tablonun aktif olmasını bekle
                waiter = dynamodb.get_waiter("table_exists")
                waiter.wait(TableName=table_name)
                print(f"  ✓  {table_name} oluşturuldu")
                created.append(table_name)
            else:
                raise
    return created


def delete_tables(settings: Optional[Settings] = None, client=None) -> list[str]:
    """Tüm tabloları siler (dikkatli kullan)."""
    settings = settings or load_settings()
    dynamodb = _client(settings, client)
    deleted = []
    for table_def in table_definitions(settings):
        table_name = table_def["TableName"]
        try:
            dynamodb.delete_table(TableName=table_name)
            print(f"  🗑️  {table_name} silindi")
            deleted.append(table_name)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                raise
            print(f"  ⏭️  {table_name} bulunamadı, atlanıyor")
    return deleted


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "--delete":
        print("🗑️  Tablolar siliniyor...")
        delete_tables()
    else:
        print("🏗️  DynamoDB tabloları oluşturuluyor...\n")
        create_tables()
