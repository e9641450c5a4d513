# settings/testing.py

from .base import BaseConfig

class TestingConfig(BaseConfig):
    """
    Configurações específicas para o ambiente de Teste.
    Ativa TESTING.
    Define nível de log para ERROR para reduzir ruído em testes.
    Ignora variáveis de ambiente da política para builds reprodutíveis.
    """
    DEBUG = False
    TESTING = True
    LOG_LEVEL = 'ERROR' # Reduz o output de log durante a execução dos testes

    CSP_POLICY = {}
    CSP_ENABLED = True
    CSP_INTEGRITY_ENABLED = True
    CSP_HASHING_METHOD = 'sha384'
    CSP_HASH_ENABLED = {'script-src': True, 'style-src': True}
    CSP_NONCE_ENABLED = {'script-src': True, 'style-src': True}
    CSP_PRIME_REACT_ENABLED = False
    CSP_PUBLIC_PATH = ''
    CSP_OUTPUT_DIR = None # Mantém os arquivos gerados apenas em memória
