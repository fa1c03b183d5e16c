# tvcast/core/config.py
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configurações globais do serviço.

    Lê do ambiente e do .env:
    - tvcast_db_host, tvcast_db_port, tvcast_db_user, tvcast_db_password, tvcast_db_name
      (ou DATABASE_URL direto)
    - parâmetros de agenda, HLS, presença, cache de disponibilidade e proxy
    - NOTIFICATIONS_MQTT_* para espelhar eventos "viewer-joined" em um broker MQTT

    Expõe propriedades derivadas:
    - settings.database_url
    - settings.NOTIFICATIONS_MQTT_TOPIC_PREFIX
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "TVCast Core"
    LOG_LEVEL: str = "INFO"

    # ------------------------------------------------------------------
    # Banco
    # ------------------------------------------------------------------
    tvcast_db_host: str = "localhost"
    tvcast_db_port: int = 5432
    tvcast_db_user: str = "tvcast"
    tvcast_db_password: str = "tvcast123"
    tvcast_db_name: str = "tvcast_db"

    DATABASE_URL: Optional[str] = Field(
        default=None,
        alias="DATABASE_URL",
    )

    # ------------------------------------------------------------------
    # Agenda (Schedule Resolver)
    # ------------------------------------------------------------------
    # fuso de referência fixo (UTC+3), independente do fuso do espectador
    SCHEDULE_UTC_OFFSET_MINUTES: int = 180
    SCHEDULE_POLL_SECONDS: int = 60

    # ------------------------------------------------------------------
    # Playlist HLS
    # ------------------------------------------------------------------
    HLS_TARGET_DURATION: int = 10
    HLS_DEFAULT_SEGMENT_SECONDS: int = 180

    # ------------------------------------------------------------------
    # Presença (contador de espectadores)
    # ------------------------------------------------------------------
    PRESENCE_TTL_SECONDS: int = 300
    PRESENCE_HEARTBEAT_SECONDS: int = 20

    # ------------------------------------------------------------------
    # Cache de disponibilidade / proxy
    # ------------------------------------------------------------------
    AVAILABILITY_CACHE_TTL_SECONDS: float = 60.0
    AVAILABILITY_CHECK_TIMEOUT_SECONDS: float = 5.0
    PROXY_CACHE_MAX_AGE_SECONDS: int = 300
    PROXY_USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    PROXY_ACCEPT_LANGUAGE: str = "en-US,en;q=0.9,ru;q=0.8"

    # ------------------------------------------------------------------
    # Notificações de novos espectadores (espelho MQTT opcional)
    # ------------------------------------------------------------------
    NOTIFICATIONS_MQTT_ENABLED: bool = False
    NOTIFICATIONS_MQTT_HOST: str = "localhost"
    NOTIFICATIONS_MQTT_PORT: int = 1883
    NOTIFICATIONS_MQTT_USERNAME: Optional[str] = None
    NOTIFICATIONS_MQTT_PASSWORD: Optional[str] = None
    NOTIFICATIONS_MQTT_BASE_TOPIC: str = "tvcast/notifications/#"

    # ==================================================================
    # Propriedades derivadas
    # ==================================================================

    @property
    def database_url(self) -> str:
        """
        URL async do banco para o SQLAlchemy.

        Prioridade:
        1) DATABASE_URL, se setada
        2) senão, monta a partir de tvcast_db_* com +asyncpg
        """
        url = self.DATABASE_URL
        if not url:
            url = (
                f"postgresql+asyncpg://"
                f"{self.tvcast_db_user}:{self.tvcast_db_password}"
                f"@{self.tvcast_db_host}:{self.tvcast_db_port}/{self.tvcast_db_name}"
            )

        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        return url

    @property
    def NOTIFICATIONS_MQTT_TOPIC_PREFIX(self) -> str:
        """
        tvcast/notifications/#  -> tvcast/notifications
        """
        topic = self.NOTIFICATIONS_MQTT_BASE_TOPIC
        if topic.endswith("/#"):
            return topic[:-2]
        return topic.rstrip("/")


settings = Settings()
