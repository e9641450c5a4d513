import json
import logging

from csp_html.utils.logging_config import ROOT_LOGGER_NAME, StructuredFormatter, get_page_logger, setup_logging


def test_structured_formatter_includes_page_extras():
    record = logging.LogRecord('csp_html.plugin', logging.ERROR, __file__, 10, 'boom', None, None)
    record.page = 'index.html'
    record.directive = 'script-src'

    entry = json.loads(StructuredFormatter().format(record))

    assert entry['level'] == 'ERROR'
    assert entry['message'] == 'boom'
    assert entry['page'] == 'index.html'
    assert entry['directive'] == 'script-src'
    assert 'operation' not in entry


def test_setup_logging_writes_json_file(tmp_path):
    log_file = tmp_path / 'logs' / 'build.log'
    logger = setup_logging('DEBUG', str(log_file), json_logs=True)
    try:
        get_page_logger('about.html').log_performance(logging.INFO, 'build_page', 0.25)
        for handler in logger.handlers:
            handler.flush()

        entry = json.loads(log_file.read_text(encoding='utf-8').splitlines()[-1])
        assert entry['page'] == 'about.html'
        assert entry['operation'] == 'build_page'
        assert entry['message'] == 'Operation build_page completed in 0.250s'
    finally:
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.NOTSET)
