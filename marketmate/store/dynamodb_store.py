"""Uzak tablo deposu - DynamoDB üzerinde satış, maliyet, ürün ve pazar kayıtları.

Her tablo `<entity>_id` hash anahtarına ve `UserCreatedIndex`
(user_id HASH, created_at RANGE) GSI'ına sahiptir. `created_at` sabit
genişlikli UTC ISO-8601 metni olduğundan aralık sorguları `gte` ile yapılır.
Var olan kayıtları değiştiren/silen çağrılar `user_id` alır ve koşul ifadesiyle
sadece o kullanıcının kayıtlarına dokunur.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from marketmate.config import Settings, load_settings
from marketmate.errors import RecordNotFoundError, StoreError
from marketmate.models.market import (
    Activity,
    BugReport,
    CostCategory,
    CostRecord,
    FeatureRequest,
    Market,
    Product,
    SaleLineItem,
    SaleRecord,
    StockDelta,
    UserProfile,
)
from marketmate.store.codec import from_items, optional_from_item, to_item
from marketmate.time_utils import to_iso, utcnow

logger = logging.getLogger(__name__)

BOTO_CONFIG = Config(retries={"max_attempts": 3})
USER_CREATED_INDEX = "UserCreatedIndex"
# DynamoDB tek transaction'da en fazla 100 işlem kabul eder
MAX_TRANSACTION_ITEMS = 100

_serializer = TypeSerializer()


def new_line_item_id(position: int) -> str:
    """Satır sırasını koruyan RANGE anahtarı: 0001#9f2c4e1a7b3d"""
    return f"{position:04d}#{uuid.uuid4().hex[:12]}"


def restamp_line_items(sale_id: str, items: list[SaleLineItem]) -> list[SaleLineItem]:
    """Satırları verilen satışa bağlar ve yeni satır kimlikleri atar."""
    return [
        dataclasses.replace(item, sale_id=sale_id, item_id=new_line_item_id(i + 1))
        for i, item in enumerate(items)
    ]


def _owned(key_attr: str) -> str:
    """Kayıt var ve oturumdaki kullanıcıya ait (:uid) koşulu."""
    return f"attribute_exists({key_attr}) AND user_id = :uid"


def _typed(values: dict[str, Any]) -> dict[str, Any]:
    """Düşük seviye client için tipli attribute değerleri ({"S": ...})."""
    return {k: _serializer.serialize(v) for k, v in values.items()}


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        logger.error("DynamoDB hatası [%s] %s: %s", operation, code, e)
        if code == "ConditionalCheckFailedException":
            raise RecordNotFoundError(operation, str(e)) from e
        raise StoreError(operation, str(e)) from e
    except BotoCoreError as e:
        logger.error("DynamoDB bağlantı hatası [%s]: %s", operation, e)
        raise StoreError(operation, str(e)) from e


class MarketStore:
    """DynamoDB tablolarına erişen depo sınıfı. Resource/client dışarıdan verilebilir."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        dynamodb_resource: Optional[Any] = None,
        dynamodb_client: Optional[Any] = None,
    ):
        self.settings = settings or load_settings()

        # AWS istemcileri - dependency injection destekli
        self.dynamodb = dynamodb_resource or boto3.resource(
            "dynamodb",
            region_name=self.settings.region,
            verify=self.settings.verify_ssl,
            config=BOTO_CONFIG,
        )
        self.client = dynamodb_client or self.dynamodb.meta.client

        # Tablo referansları
        names = self.settings.table_names
        self.table_names = names
        self.sales_table = self.dynamodb.Table(names["sales"])
        self.sale_items_table = self.dynamodb.Table(names["sale_items"])
        self.costs_table = self.dynamodb.Table(names["costs"])
        self.cost_categories_table = self.dynamodb.Table(names["cost_categories"])
        self.products_table = self.dynamodb.Table(names["products"])
        self.markets_table = self.dynamodb.Table(names["markets"])
        self.profiles_table = self.dynamodb.Table(names["profiles"])
        self.activity_table = self.dynamodb.Table(names["activity"])
        self.bugs_table = self.dynamodb.Table(names["bugs"])
        self.feature_requests_table = self.dynamodb.Table(names["feature_requests"])
        self.feature_votes_table = self.dynamodb.Table(names["feature_votes"])

    # --- Yardımcılar ---

    def _query_all(
        self, table: Any, operation: str, max_items: Optional[int] = None, **kwargs: Any
    ) -> list[dict]:
        """Sayfalı sorgu; LastEvaluatedKey bitene ya da max_items dolana kadar okur."""
        items: list[dict] = []
        with _store_errors(operation):
            resp = table.query(**kwargs)
            items.extend(resp.get("Items", []))
            while "LastEvaluatedKey" in resp and (max_items is None or len(items) < max_items):
                resp = table.query(ExclusiveStartKey=resp["LastEvaluatedKey"], **kwargs)
                items.extend(resp.get("Items", []))
        if max_items is not None:
            items = items[:max_items]
        return items

    def _scan_all(self, table: Any, operation: str, **kwargs: Any) -> list[dict]:
        items: list[dict] = []
        with _store_errors(operation):
            resp = table.scan(**kwargs)
            items.extend(resp.get("Items", []))
            while "LastEvaluatedKey" in resp:
                resp = table.scan(ExclusiveStartKey=resp["LastEvaluatedKey"], **kwargs)
                items.extend(resp.get("Items", []))
        return items

    def _user_created_query(
        self,
        table: Any,
        operation: str,
        user_id: str,
        since: Optional[datetime] = None,
        **kwargs: Any,
    ) -> list[dict]:
        key = Key("user_id").eq(user_id)
        if since is not None:
            key = key & Key("created_at").gte(to_iso(since))
        return self._query_all(
            table,
            operation,
            IndexName=USER_CREATED_INDEX,
            KeyConditionExpression=key,
            ScanIndexForward=False,
            **kwargs,
        )

    def _put(self, table: Any, operation: str, record: Any) -> None:
        with _store_errors(operation):
            table.put_item(Item=to_item(record))

    # --- Satışlar ---

    def fetch_sales(
        self, user_id: str, since: Optional[datetime] = None, include_items: bool = False
    ) -> list[SaleRecord]:
        """Kullanıcının satışlarını en yeniden eskiye döndürür (created_at >= since)."""
        sales = from_items(
            SaleRecord, self._user_created_query(self.sales_table, "fetch_sales", user_id, since)
        )
        if include_items:
            for sale in sales:
                sale.items = self.fetch_sale_items(sale.sale_id)
        return sales

    def fetch_sale(self, sale_id: str, include_items: bool = True) -> Optional[SaleRecord]:
        with _store_errors("fetch_sale"):
            resp = self.sales_table.get_item(Key={"sale_id": sale_id})
        sale = optional_from_item(SaleRecord, resp.get("Item"))
        if sale is not None and include_items:
            sale.items = self.fetch_sale_items(sale_id)
        return sale

    def fetch_sale_items(self, sale_id: str) -> list[SaleLineItem]:
        items = self._query_all(
            self.sale_items_table,
            "fetch_sale_items",
            KeyConditionExpression=Key("sale_id").eq(sale_id),
        )
        return from_items(SaleLineItem, items)

    def put_sale(self, sale: SaleRecord) -> None:
        self._put(self.sales_table, "put_sale", sale)

    def _require_sale_owner(self, sale_id: str, user_id: str, operation: str) -> None:
        """Satış yoksa ya da başka kullanıcıya aitse RecordNotFoundError fırlatır."""
        with _store_errors(operation):
            resp = self.sales_table.get_item(
                Key={"sale_id": sale_id}, ProjectionExpression="user_id"
            )
        owner = (resp.get("Item") or {}).get("user_id")
        if owner != user_id:
            logger.warning("Satış sahibi eşleşmedi [%s]: %s", operation, sale_id)
            raise RecordNotFoundError(operation, f"Satış bulunamadı: {sale_id}")

    def delete_line_items(self, sale_id: str, user_id: str) -> int:
        """Satışın tüm satırlarını siler, silinen satır sayısını döndürür."""
        self._require_sale_owner(sale_id, user_id, "delete_line_items")
        return self._delete_sale_items(sale_id, "delete_line_items")

    def _delete_sale_items(self, sale_id: str, operation: str) -> int:
        keys = self._query_all(
            self.sale_items_table,
            operation,
            KeyConditionExpression=Key("sale_id").eq(sale_id),
            ProjectionExpression="sale_id, item_id",
        )
        with _store_errors(operation):
            with self.sale_items_table.batch_writer() as batch:
                for key in keys:
                    batch.delete_item(Key={"sale_id": key["sale_id"], "item_id": key["item_id"]})
        return len(keys)

    def insert_line_items(
        self, sale_id: str, items: list[SaleLineItem], user_id: str
    ) -> list[SaleLineItem]:
        """Satırları yeni kimliklerle ekler ve eklenen satırları döndürür."""
        self._require_sale_owner(sale_id, user_id, "insert_line_items")
        rows = restamp_line_items(sale_id, items)
        with _store_errors("insert_line_items"):
            with self.sale_items_table.batch_writer() as batch:
                for row in rows:
                    batch.put_item(Item=to_item(row))
        return rows

    @staticmethod
    def _sale_update_args(
        sale: SaleRecord, user_id: str
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        names = {"#total": "total_amount", "#method": "payment_method"}
        values: dict[str, Any] = {
            ":total": sale.total_amount, ":method": sale.payment_method, ":uid": user_id,
        }
        set_parts = ["#total = :total", "#method = :method"]
        remove_parts = []
        for attr, placeholder in (("notes", "notes"), ("source", "source")):
            names[f"#{placeholder}"] = attr
            value = getattr(sale, attr)
            if value is None:
                remove_parts.append(f"#{placeholder}")
            else:
                set_parts.append(f"#{placeholder} = :{placeholder}")
                values[f":{placeholder}"] = value
        expression = "SET " + ", ".join(set_parts)
        if remove_parts:
            expression += " REMOVE " + ", ".join(remove_parts)
        return expression, names, values

    def update_sale(self, sale: SaleRecord, user_id: str) -> None:
        """Satışın toplam, ödeme yöntemi, not ve kaynak alanlarını günceller.

        Sadece kaydın sahibi güncelleyebilir; aksi halde RecordNotFoundError.
        """
        expression, names, values = self._sale_update_args(sale, user_id)
        with _store_errors("update_sale"):
            self.sales_table.update_item(
                Key={"sale_id": sale.sale_id},
                UpdateExpression=expression,
                ConditionExpression=_owned("sale_id"),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )

    def transact_sale_edit(
        self,
        sale: SaleRecord,
        deltas: list[StockDelta],
        items: list[SaleLineItem],
        user_id: str,
    ) -> list[SaleLineItem]:
        """Stok değişiklikleri, satır değişimi ve satış güncellemesini tek transaction'da yazar.

        Ya tüm işlemler uygulanır ya da hiçbiri. Satış ve ürünler user_id'ye ait
        değilse transaction iptal olur.
        """
        existing = self._query_all(
            self.sale_items_table,
            "transact_sale_edit",
            KeyConditionExpression=Key("sale_id").eq(sale.sale_id),
            ProjectionExpression="sale_id, item_id",
        )
        rows = restamp_line_items(sale.sale_id, items)
        products = self.table_names["products"]
        sale_items = self.table_names["sale_items"]

        operations: list[dict] = []
        for delta in deltas:
            operations.append({"Update": {
                "TableName": products,
                "Key": _typed({"product_id": delta.product_id}),
                "UpdateExpression": "ADD stock_quantity :change",
                "ConditionExpression": _owned("product_id"),
                "ExpressionAttributeValues": _typed({":change": delta.change, ":uid": user_id}),
            }})
        for key in existing:
            operations.append({"Delete": {
                "TableName": sale_items,
                "Key": _typed({"sale_id": key["sale_id"], "item_id": key["item_id"]}),
            }})
        for row in rows:
            operations.append({"Put": {"TableName": sale_items, "Item": _typed(to_item(row))}})

        expression, names, values = self._sale_update_args(sale, user_id)
        operations.append({"Update": {
            "TableName": self.table_names["sales"],
            "Key": _typed({"sale_id": sale.sale_id}),
            "UpdateExpression": expression,
            "ConditionExpression": _owned("sale_id"),
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": _typed(values),
        }})

        if len(operations) > MAX_TRANSACTION_ITEMS:
            raise StoreError(
                "transact_sale_edit",
                f"Transaction limiti aşıldı: {len(operations)} > {MAX_TRANSACTION_ITEMS}",
            )

        with _store_errors("transact_sale_edit"):
            self.client.transact_write_items(TransactItems=operations)
        logger.info(
            "Satış transaction ile güncellendi: %s (%d stok değişikliği, %d satır)",
            sale.sale_id, len(deltas), len(rows),
        )
        return rows

    # --- Stok ---

    def adjust_stock(self, product_id: str, change: int, user_id: str) -> int:
        """Ürün stoğunu atomik olarak artırır/azaltır, yeni miktarı döndürür."""
        with _store_errors("adjust_stock"):
            resp = self.products_table.update_item(
                Key={"product_id": product_id},
                UpdateExpression="ADD stock_quantity :change",
                ConditionExpression=_owned("product_id"),
                ExpressionAttributeValues={":change": change, ":uid": user_id},
                ReturnValues="UPDATED_NEW",
            )
        return int(resp.get("Attributes", {}).get("stock_quantity", 0))

    # --- Ürünler ---

    def fetch_products(self, user_id: str) -> list[Product]:
        return from_items(
            Product, self._user_created_query(self.products_table, "fetch_products", user_id)
        )

    def put_product(self, product: Product) -> None:
        self._put(self.products_table, "put_product", product)

    def delete_product(self, product_id: str, user_id: str) -> None:
        with _store_errors("delete_product"):
            self.products_table.delete_item(
                Key={"product_id": product_id},
                ConditionExpression=_owned("product_id"),
                ExpressionAttributeValues={":uid": user_id},
            )

    # --- Maliyetler ---

    def fetch_costs(self, user_id: str, since: Optional[datetime] = None) -> list[CostRecord]:
        return from_items(
            CostRecord, self._user_created_query(self.costs_table, "fetch_costs", user_id, since)
        )

    def put_cost(self, cost: CostRecord) -> None:
        self._put(self.costs_table, "put_cost", cost)

    def delete_cost(self, cost_id: str, user_id: str) -> None:
        with _store_errors("delete_cost"):
            self.costs_table.delete_item(
                Key={"cost_id": cost_id},
                ConditionExpression=_owned("cost_id"),
                ExpressionAttributeValues={":uid": user_id},
            )

    def fetch_cost_categories(self, user_id: str) -> list[CostCategory]:
        return from_items(
            CostCategory,
            self._user_created_query(self.cost_categories_table, "fetch_cost_categories", user_id),
        )

    def put_cost_category(self, category: CostCategory) -> None:
        self._put(self.cost_categories_table, "put_cost_category", category)

    # --- Pazar oturumları ---

    def put_market(self, market: Market) -> None:
        self._put(self.markets_table, "put_market", market)

    def update_market_open(self, market_id: str, is_open: bool, user_id: str) -> None:
        with _store_errors("update_market_open"):
            self.markets_table.update_item(
                Key={"market_id": market_id},
                UpdateExpression="SET is_open = :open",
                ConditionExpression=_owned("market_id"),
                ExpressionAttributeValues={":open": is_open, ":uid": user_id},
            )

    def fetch_open_market(self, user_id: str) -> Optional[Market]:
        """Kullanıcının açık durumdaki en yeni pazar oturumunu döndürür."""
        items = self._user_created_query(
            self.markets_table,
            "fetch_open_market",
            user_id,
            FilterExpression=Attr("is_open").eq(True),
            max_items=1,
        )
        return optional_from_item(Market, items[0] if items else None)

    # --- Profil ---

    def fetch_profile(self, user_id: str) -> Optional[UserProfile]:
        with _store_errors("fetch_profile"):
            resp = self.profiles_table.get_item(Key={"user_id": user_id})
        return optional_from_item(UserProfile, resp.get("Item"))

    def update_profile_currency(self, user_id: str, currency: str) -> None:
        with _store_errors("update_profile_currency"):
            self.profiles_table.update_item(
                Key={"user_id": user_id},
                UpdateExpression="SET currency = :currency, updated_at = :ts",
                ExpressionAttributeValues={":currency": currency, ":ts": to_iso(utcnow())},
            )

    # --- Aktivite akışı ---

    def fetch_activities(self, user_id: str, limit: int = 100) -> list[Activity]:
        items = self._user_created_query(
            self.activity_table, "fetch_activities", user_id, max_items=limit, Limit=limit
        )
        return from_items(Activity, items[:limit])

    def put_activity(self, activity: Activity) -> None:
        self._put(self.activity_table, "put_activity", activity)

    # --- Geri bildirim ---

    def put_bug(self, bug: BugReport) -> None:
        self._put(self.bugs_table, "put_bug", bug)

    def put_feature_request(self, feature: FeatureRequest) -> None:
        # has_voted kullanıcıya özel ekran durumudur, tabloya yazılmaz
        self._put(
            self.feature_requests_table,
            "put_feature_request",
            dataclasses.replace(feature, has_voted=None),
        )

    def fetch_feature_requests(self) -> list[FeatureRequest]:
        """Teslim edilmemiş özellik isteklerini oy sayısına göre azalan sırada döndürür."""
        items = self._scan_all(
            self.feature_requests_table,
            "fetch_feature_requests",
            FilterExpression=Attr("delivered").eq(False),
        )
        features = from_items(FeatureRequest, items)
        features.sort(key=lambda f: f.votes, reverse=True)
        return features

    def fetch_voted_feature_ids(self, user_id: str) -> set[str]:
        items = self._query_all(
            self.feature_votes_table,
            "fetch_voted_feature_ids",
            KeyConditionExpression=Key("user_id").eq(user_id),
            ProjectionExpression="feature_id",
        )
        return {item["feature_id"] for item in items}

    def set_feature_vote(self, feature_id: str, user_id: str, voted: bool) -> None:
        """Oyu ekler ya da kaldırır; oy kaydı ve sayaç tek transaction'da değişir.

        Zaten verilmiş oy tekrar eklenemez, olmayan oy kaldırılamaz; bu
        durumda transaction iptal olur ve StoreError fırlatılır.
        """
        vote_key = {"user_id": user_id, "feature_id": feature_id}
        if voted:
            vote_op = {"Put": {
                "TableName": self.table_names["feature_votes"],
                "Item": _typed({**vote_key, "created_at": to_iso(utcnow())}),
                "ConditionExpression": "attribute_not_exists(feature_id)",
            }}
        else:
            vote_op = {"Delete": {
                "TableName": self.table_names["feature_votes"],
                "Key": _typed(vote_key),
                "ConditionExpression": "attribute_exists(feature_id)",
            }}
        counter_op = {"Update": {
            "TableName": self.table_names["feature_requests"],
            "Key": _typed({"feature_id": feature_id}),
            "UpdateExpression": "ADD votes :change",
            "ConditionExpression": "attribute_exists(feature_id)",
            "ExpressionAttributeValues": _typed({":change": 1 if voted else -1}),
        }}
        with _store_errors("set_feature_vote"):
            self.client.transact_write_items(TransactItems=[vote_op, counter_op])

    # --- Hesap silme ---

    def delete_account_data(self, user_id: str) -> int:
        """Kullanıcının tüm kayıtlarını ve profilini siler, silinen kayıt sayısını döndürür.

        Oylar sayaçları düşürülerek geri alınır. DynamoDB'de cascade silme
        olmadığı için her tablo kullanıcı indeksinden taranır.
        """
        deleted = 0
        for feature_id in sorted(self.fetch_voted_feature_ids(user_id)):
            self.set_feature_vote(feature_id, user_id, voted=False)
            deleted += 1

        owned_tables = (
            (self.sales_table, "sale_id"),
            (self.costs_table, "cost_id"),
            (self.cost_categories_table, "category_id"),
            (self.products_table, "product_id"),
            (self.markets_table, "market_id"),
            (self.activity_table, "activity_id"),
            (self.bugs_table, "bug_id"),
        )
        for table, key in owned_tables:
            rows = self._user_created_query(
                table, "delete_account_data", user_id, ProjectionExpression=key
            )
            if key == "sale_id":
                for row in rows:
                    deleted += self._delete_sale_items(row[key], "delete_account_data")
            with _store_errors("delete_account_data"):
                with table.batch_writer() as batch:
                    for row in rows:
                        batch.delete_item(Key={key: row[key]})
            deleted += len(rows)

        with _store_errors("delete_account_data"):
            self.profiles_table.delete_item(Key={"user_id": user_id})
        logger.info("Hesap verileri silindi: %s (%d kayıt)", user_id, deleted)
        return deleted
