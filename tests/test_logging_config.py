"""Tests for logging helpers."""

import logging

from common.logging_config import SensitiveDataFilter, get_upload_logger, mask_secrets, setup_logging


def test_mask_secrets_in_options():
    masked = mask_secrets('options={"token": "abc123", "quality": "high"}')
    assert 'abc123' not in masked
    assert '***MASKED***' in masked
    assert '"quality": "high"' in masked


def test_mask_bearer_header():
    assert mask_secrets('Authorization: Bearer xyz') == 'Authorization: Bearer ***MASKED***'
    assert mask_secrets('sent bearer xyz') == 'sent bearer ***MASKED***'


def test_filter_masks_args():
    record = logging.LogRecord('t', logging.INFO, __file__, 1, 'value %s', ('password=hunter2',), None)
    SensitiveDataFilter().filter(record)
    assert record.getMessage() == 'value password=***MASKED***'


def test_setup_logging_is_idempotent():
    logger = setup_logging('recvault-test-component', log_level='DEBUG')
    again = setup_logging('recvault-test-component', log_level='DEBUG')
    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG


def test_upload_logger_prefixes_upload_id(caplog):
    base = logging.getLogger('recvault-test-upload')
    log = get_upload_logger(base, 'upload_1_abc')
    with caplog.at_level(logging.INFO, logger='recvault-test-upload'):
        log.info('chunk stored')
    assert '[upload_id=upload_1_abc] chunk stored' in caplog.text
