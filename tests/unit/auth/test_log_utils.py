import logging

from mozvpn_client.auth.log_utils import get_auth_logger


def test_prefix_and_extra(caplog) -> None:
    log = get_auth_logger(base_logger_name="mozvpn-client.test", attempt_id="9f1c2a77d0e6", port=9443)
    with caplog.at_level(logging.INFO, logger="mozvpn-client.test"):
        log.info("waiting")
    record = caplog.records[-1]
    assert record.getMessage() == "[attempt_id=9f1c2a port=9443] waiting"
    assert record.attempt_id == "9f1c2a"
    assert record.port == 9443


def test_no_context_leaves_message_untouched(caplog) -> None:
    log = get_auth_logger(base_logger_name="mozvpn-client.test")
    with caplog.at_level(logging.INFO, logger="mozvpn-client.test"):
        log.info("plain")
    assert caplog.records[-1].getMessage() == "plain"
