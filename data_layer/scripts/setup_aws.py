"""AWS altyapısını kurar.

Kullanım:
    python -m data_layer.scripts.setup_aws              # Tabloları kur
    python -m data_layer.scripts.setup_aws --delete     # Tabloları sil
    python -m data_layer.scripts.setup_aws --region eu-west-1  # Farklı region
"""
import dataclasses
import sys
from typing import Optional

from marketmate.config import configure_logging, load_settings
from data_layer.infrastructure.dynamodb_setup import create_tables, delete_tables


def main(argv: Optional[list] = None):
    configure_logging()
    settings = load_settings()
    delete_mode = False

    # Argümanları parse et
    args = sys.argv[1:] if argv is None else argv
    for i, arg in enumerate(args):
        if arg == "--delete":
            delete_mode = True
        elif arg == "--region" and i + 1 < len(args):
            settings = dataclasses.replace(settings, region=args[i + 1])

    if delete_mode:
        print("🗑️  AWS kaynakları siliniyor...\n")
        delete_tables(settings)
        print("\n✅ Tüm tablolar silindi!")
        return

    print("=" * 60)
    print("🚀 AWS Altyapı Kurulumu - MarketMate")
    print(f"   Region: {settings.region}")
    print(f"   Tablo öneki: {settings.table_prefix}")
    print("=" * 60)

    print("\n📊 DynamoDB Tabloları")
    print("-" * 40)
    created = create_tables(settings)

    print("\n" + "=" * 60)
    print("✅ AWS altyapısı hazır!")
    print(f"   DynamoDB: {len(created)} yeni tablo oluşturuldu")
    print(f"   Region: {settings.region}")
    print("=" * 60)


if __name__ == "__main__":
    main()
