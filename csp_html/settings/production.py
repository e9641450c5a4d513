# settings/production.py

import os
from .base import BaseConfig, ConfigError

class ProductionConfig(BaseConfig):
    """
    Configurações específicas para o ambiente de Produção.
    DEBUG é desativado.
    Exige integridade (SRI) habilitada para os assets emitidos.
    """
    DEBUG = False

    CSP_INTEGRITY_ENABLED = os.getenv('CSP_INTEGRITY_ENABLED', 'true').lower() == 'true'

    @classmethod
    def validate(cls) -> None:
        # Chama a validação da classe base primeiro
        super().validate()
        # Adiciona validação específica para produção
        if not cls.CSP_INTEGRITY_ENABLED:
            raise ConfigError("CSP_INTEGRITY_ENABLED must be enabled in production")
