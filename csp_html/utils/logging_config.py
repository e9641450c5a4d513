import logging
import logging.handlers
import json
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from colorama import Fore, Style, init as colorama_init

ROOT_LOGGER_NAME = 'csp_html'

class StructuredFormatter(logging.Formatter):
    """
    Formatter personalizado para logs estruturados em JSON.
    """

    EXTRA_FIELDS = ('page', 'directive', 'operation', 'processing_time')

    def format(self, record):
        # Criar estrutura base do log
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Adicionar informações de exceção se presente
        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        # Adicionar campos extras se presentes
        for name in self.EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        return json.dumps(log_entry, ensure_ascii=False)

class ColoredFormatter(logging.Formatter):
    """
    Formatter de console com cores por nível (colorama).
    """

    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.MAGENTA,
    }

    def __init__(self, use_colors: bool = True):
        super().__init__('%(asctime)s - %(name)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
        self.use_colors = use_colors

    def format(self, record):
        message = super().format(record)
        color = self.COLORS.get(record.levelname, '')
        if self.use_colors and color:
            return f"{color}{message}{Style.RESET_ALL}"
        return message

class PageLoggerAdapter(logging.LoggerAdapter):
    """
    Adapter para adicionar o contexto da página aos logs.
    """

    def process(self, msg, kwargs):
        extra = kwargs.get('extra', {})

        # Mesclar com contexto do adapter
        for key, value in self.extra.items():
            if key not in extra:
                extra[key] = value

        kwargs['extra'] = extra
        return msg, kwargs

    def log_performance(self, level, operation, processing_time, success=True):
        """
        Log específico para métricas de performance.
        """
        extra = {
            'operation': operation,
            'processing_time': processing_time,
        }
        message = f"Operation {operation} {'completed' if success else 'failed'} in {processing_time:.3f}s"
        self.log(level, message, extra=extra)

def get_page_logger(page: str) -> PageLoggerAdapter:
    return PageLoggerAdapter(logging.getLogger(ROOT_LOGGER_NAME), {'page': page})

def setup_logging(level: str = "INFO", log_file: Optional[str] = None, json_logs: bool = False):
    """
    Configura o logging do pacote.

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Arquivo de log rotativo (opcional)
        json_logs: Usa StructuredFormatter no arquivo em vez de texto

    Returns:
        logging.Logger: logger raiz do pacote
    """
    colorama_init(autoreset=True)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))

    # Remover handlers existentes
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(use_colors=sys.stderr.isatty()))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        if json_logs:
            file_handler.setFormatter(StructuredFormatter())
        else:
            file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s'))
        logger.addHandler(file_handler)

    return logger
