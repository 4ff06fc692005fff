"""Configuración central basada en variables de entorno."""

from dataclasses import dataclass

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Falta algún valor obligatorio para hablar con el almacén de entidades."""


@dataclass(frozen=True, slots=True)
class EntityStoreConfig:
    """Parámetros inmutables para el cliente REST de entidades."""

    api_url: str
    api_key: str
    timeout: float = 10.0


class Settings(BaseSettings):
    """Valores globales leídos desde `.env` o el entorno."""

    environment: str = "development"
    log_level: str | None = Field(
        default=None,
        description="Nivel de logging global (ej. debug, info, warning). Cuando no se define, usa un valor por ambiente.",
    )
    log_file_path: str | None = Field(
        default=None,
        description="Archivo rotativo opcional; sin valor sólo se escribe a stderr.",
    )
    request_log_skip_prefixes: tuple[str, ...] = Field(
        default=("/health",),
        description="Prefijos de ruta para los que no se registrarán eventos de request.started/completed.",
    )
    # Base44 publica estas variables sin prefijo; aceptamos ambas variantes
    base44_app_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SMS_RELAY_BASE44_APP_ID", "BASE44_APP_ID"),
    )
    base44_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SMS_RELAY_BASE44_API_KEY", "BASE44_API_KEY"),
    )
    base44_api_url_template: str = "https://app.base44.com/api/apps/{app_id}/entities"
    entity_store_timeout: float = 10.0
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="SMS_RELAY_", extra="allow", populate_by_name=True
    )

    def entity_store_config(self) -> EntityStoreConfig:
        """Construye la configuración explícita del almacén de entidades."""
        if not self.base44_app_id or not self.base44_api_key:
            msg = "Base44 no está configurado (BASE44_APP_ID/BASE44_API_KEY)"
            raise ConfigurationError(msg)
        api_url = self.base44_api_url_template.format(app_id=self.base44_app_id)
        return EntityStoreConfig(
            api_url=api_url.rstrip("/"),
            api_key=self.base44_api_key,
            timeout=self.entity_store_timeout,
        )


settings = Settings()
