# src/libs/price-common/price_common/config.py
import os
from dotenv import load_dotenv

# A local .env file fills in whatever the real environment leaves unset.
load_dotenv()


# Service identity, stamped on every log record
SERVICE_NAME = os.getenv("SERVICE_NAME", "price-update-service")
ENVIRONMENT = os.getenv("ENVIRONMENT", "local")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Product store (PostgreSQL)
POSTGRES_USER = os.getenv("POSTGRES_USER", "user")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "password")
POSTGRES_DB = os.getenv("POSTGRES_DB", "product_db")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "postgres")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))

# Kafka
KAFKA_BOOTSTRAP_SERVERS = os.getenv("KAFKA_BOOTSTRAP_SERVERS_HOST") or os.getenv("KAFKA_BOOTSTRAP_SERVERS", "kafka:9093")
KAFKA_PRODUCT_PRICE_CHANGES_TOPIC = os.getenv("KAFKA_PRODUCT_PRICE_CHANGES_TOPIC", "product-price-changes")
KAFKA_PRICE_UPDATE_DLQ_TOPIC = os.getenv("KAFKA_PRICE_UPDATE_DLQ_TOPIC", "price_update_service.dlq")
KAFKA_PRICE_UPDATE_GROUP_ID = os.getenv("KAFKA_PRICE_UPDATE_GROUP_ID", "price_update_group_product_prices")

# Attempts against the product store per delivery before the message is left for redelivery
PRICE_UPDATE_MAX_ATTEMPTS = int(os.getenv("PRICE_UPDATE_MAX_ATTEMPTS", "3"))

# Health and metrics endpoint
WEB_HOST = os.getenv("WEB_HOST", "0.0.0.0")
WEB_PORT = int(os.getenv("WEB_PORT", "8080"))
