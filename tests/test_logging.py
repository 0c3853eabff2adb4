import logging

import structlog

from odportal.core.logging import get_logger, setup_logging


def test_httpx_request_logs_stay_out_of_info():
    setup_logging(log_level="DEBUG")
    assert logging.getLogger("httpx").level == logging.WARNING

    setup_logging(log_level="ERROR")
    assert logging.getLogger("httpx").level == logging.ERROR


def test_unknown_level_falls_back_to_info():
    setup_logging(log_level="chatty")
    assert logging.getLogger("httpx").level == logging.WARNING
    assert structlog.get_config()["wrapper_class"] is structlog.make_filtering_bound_logger(logging.INFO)


def test_json_output_renders_events(capsys):
    setup_logging(json_output=True)
    get_logger("odportal.tests").info("od_request.created", request_id="R1")
    assert '"event": "od_request.created"' in capsys.readouterr().out
