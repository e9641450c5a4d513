# settings/development.py

from .base import BaseConfig

class DevelopmentConfig(BaseConfig):
    """
    Configurações específicas para o ambiente de Desenvolvimento.

    - Ativa DEBUG.
    - Define nível de log para DEBUG (decisões de hash/nonce por elemento).
    """

    DEBUG: bool = True

    # Integridade desativada para permitir edição manual dos assets em dist/
    CSP_INTEGRITY_ENABLED: bool = False

    LOG_LEVEL: str = 'DEBUG'
