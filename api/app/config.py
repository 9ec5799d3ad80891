from pydantic_settings import BaseSettings, SettingsConfigDict

from common.clients.orderspace import TOKEN_URL
from common.orders.service import OrderServiceConfig


class Settings(BaseSettings):
    app_env: str = "dev"
    log_level: str = "INFO"
    host: str = "localhost"
    port: int = 8080

    orderspace_base_url: str = "https://api.orderspace.com/v1"
    orderspace_client_id: str = ""
    orderspace_client_secret: str = ""
    orderspace_token_url: str = TOKEN_URL

    woo_base_url: str = ""
    woo_consumer_key: str = ""
    woo_consumer_secret: str = ""
    woo_query_string_auth: bool = False

    # accepted for deployment parity; nothing reads or writes a database yet
    db_connection_string: str | None = None

    recent_orders_count: int = 10
    http_timeout_seconds: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def orderspace_configured(self) -> bool:
        return bool(self.orderspace_base_url and self.orderspace_client_id and self.orderspace_client_secret)

    @property
    def woo_configured(self) -> bool:
        return bool(self.woo_base_url and self.woo_consumer_key and self.woo_consumer_secret)

    def order_service_config(self) -> OrderServiceConfig:
        return OrderServiceConfig(
            orderspace_base_url=self.orderspace_base_url,
            orderspace_client_id=self.orderspace_client_id,
            orderspace_client_secret=self.orderspace_client_secret,
            orderspace_token_url=self.orderspace_token_url,
            woo_base_url=self.woo_base_url,
            woo_consumer_key=self.woo_consumer_key,
            woo_consumer_secret=self.woo_consumer_secret,
            woo_query_string_auth=self.woo_query_string_auth,
            recent_count=self.recent_orders_count,
            timeout_seconds=self.http_timeout_seconds,
        )


settings = Settings()
